"""
Unit tests for field_renderer module.
"""

from unittest.mock import MagicMock

import pytest

from schema_form.field_renderer import (
    CHECKBOX_CAPTION,
    SELECT_PLACEHOLDER,
    ControlKind,
    FieldControl,
    FieldRenderer,
    GroupView,
    parse_number_input,
)
from schema_form.json_utils import MISSING


SERVER_SCHEMA = {
    'type': 'object',
    'required': ['host', 'port', 'protocol'],
    'properties': {
        'host': {'type': 'string', 'title': 'Host', 'description': 'Hostname', 'minLength': 1},
        'port': {'type': 'integer', 'minimum': 1, 'maximum': 65535},
        'protocol': {'type': 'string', 'enum': ['http', 'https'], 'enumNames': ['HTTP', 'HTTPS']},
        'mode': {'type': 'string', 'enum': ['a', 'b']},
        'ratio': {'type': 'number'},
        'email': {'type': 'string', 'format': 'email'},
        'enabled': {'type': 'boolean'},
        'extra': {'type': 'null'},
    }
}


def _renderer(schema=SERVER_SCHEMA, max_depth=3):
    commit = MagicMock(return_value="outcome")
    errors = {'value': None}
    renderer = FieldRenderer(
        schema,
        commit,
        max_depth=max_depth,
        get_error=lambda: errors['value'],
        set_error=lambda message: errors.__setitem__('value', message),
    )
    return renderer, commit, errors


def _field(group, name):
    return next(field for field in group.fields if field.name == name)


class TestParseNumberInput:
    """Test cases for parse_number_input."""

    def test_integral_and_decimal_literals(self):
        """Test that integral literals become int and others float."""
        assert parse_number_input("42") == 42
        assert isinstance(parse_number_input("42"), int)
        assert parse_number_input("2.5") == 2.5
        assert parse_number_input("-1e3") == -1000.0

    def test_invalid_input_discarded(self):
        """Test that non-numeric, non-finite or underscored input is discarded."""
        for raw in ("abc", "", "  ", "1_000", "nan", "inf", None, True):
            assert parse_number_input(raw) is None

    def test_integer_mode(self):
        """Test integer mode rejects fractions and normalizes integral floats."""
        assert parse_number_input("3.0", integer=True) == 3
        assert isinstance(parse_number_input("3.0", integer=True), int)
        assert parse_number_input("3.5", integer=True) is None

    def test_numeric_values_pass_through(self):
        """Test that numbers are accepted as they are."""
        assert parse_number_input(7) == 7
        assert parse_number_input(1.5) == 1.5
        assert parse_number_input(float('inf')) is None


class TestRequiredness:
    """Test cases for is_field_required."""

    def test_required_list(self):
        """Test membership in the root required list."""
        renderer, _, _ = _renderer()

        assert renderer.is_field_required(('host',))
        assert not renderer.is_field_required(('ratio',))

    def test_required_true(self):
        """Test that required: true makes every field required."""
        renderer, _, _ = _renderer({'type': 'object', 'required': True, 'properties': {}})

        assert renderer.is_field_required(('anything',))

    def test_only_root_list_consulted(self):
        """Test that nested required lists are not consulted."""
        schema = {
            'type': 'object',
            'required': ['name'],
            'properties': {
                'inner': {
                    'type': 'object',
                    'required': ['x'],
                    'properties': {'x': {'type': 'string'}, 'name': {'type': 'string'}}
                }
            }
        }
        renderer, _, _ = _renderer(schema)

        assert not renderer.is_field_required(('inner', 'x'))
        assert renderer.is_field_required(('inner', 'name'))


class TestObjectRendering:
    """Test cases for object groups."""

    def test_fields_in_declaration_order(self):
        """Test that every declared property is rendered in order."""
        renderer, _, _ = _renderer()

        group = renderer.render(SERVER_SCHEMA, {'host': 'example.org'})

        assert isinstance(group, GroupView)
        assert [field.name for field in group.fields] == list(SERVER_SCHEMA['properties'])

    def test_labels_and_descriptions(self):
        """Test that labels use title or name and carry descriptions."""
        renderer, _, _ = _renderer()

        group = renderer.render(SERVER_SCHEMA, {})
        host = _field(group, 'host')
        port = _field(group, 'port')

        assert host.label == 'Host'
        assert host.description == 'Hostname'
        assert host.required
        assert port.label == 'port'

    def test_values_bound_to_paths(self):
        """Test that child controls carry their path and current value."""
        renderer, _, _ = _renderer()

        group = renderer.render(SERVER_SCHEMA, {'host': 'example.org', 'port': 80})

        assert _field(group, 'host').content.path == ('host',)
        assert _field(group, 'host').content.value == 'example.org'
        assert _field(group, 'port').content.value == '80'

    def test_unsupported_leaf_renders_nothing(self):
        """Test that a null-typed leaf renders no control."""
        renderer, _, _ = _renderer()

        group = renderer.render(SERVER_SCHEMA, {})

        assert _field(group, 'extra').content is None

    def test_non_dict_value_treated_as_empty(self):
        """Test that an object schema over a scalar value renders empty controls."""
        renderer, _, _ = _renderer()

        group = renderer.render(SERVER_SCHEMA, "oops")

        assert _field(group, 'host').content.value == ""


class TestDepthLimit:
    """Test cases for the depth-limited JSON editor."""

    NESTED = {
        'type': 'object',
        'properties': {
            'limits': {
                'type': 'object',
                'properties': {'max': {'type': 'integer'}}
            },
            'tags': {'type': 'array', 'items': {'type': 'string'}},
        }
    }

    def test_nested_objects_recurse_below_limit(self):
        """Test that nested objects become groups below max_depth."""
        renderer, _, _ = _renderer(self.NESTED)

        group = renderer.render(self.NESTED, {'limits': {'max': 3}})
        limits = _field(group, 'limits').content

        assert isinstance(limits, GroupView)
        assert limits.fields[0].content.path == ('limits', 'max')

    def test_limit_yields_json_editor(self):
        """Test that objects and arrays at max_depth become JSON editors."""
        renderer, _, _ = _renderer(self.NESTED, max_depth=1)

        group = renderer.render(self.NESTED, {'limits': {'max': 3}})
        limits = _field(group, 'limits').content
        tags = _field(group, 'tags').content

        assert limits.kind == ControlKind.JSON_EDITOR
        assert limits.value == '{\n  "max": 3\n}'
        assert tags.kind == ControlKind.JSON_EDITOR
        assert tags.value == '[]'

    def test_json_editor_commits_parsed_value(self):
        """Test that valid sub-editor text commits and clears the error."""
        renderer, commit, errors = _renderer(self.NESTED, max_depth=1)
        errors['value'] = "stale"
        tags = _field(renderer.render(self.NESTED, {}), 'tags').content

        tags.on_input('["a", "b"]')

        commit.assert_called_once_with(('tags',), ['a', 'b'])
        assert errors['value'] is None

    def test_json_editor_invalid_text_sets_error(self):
        """Test that invalid sub-editor text sets the shared error, no commit."""
        renderer, commit, errors = _renderer(self.NESTED, max_depth=1)
        tags = _field(renderer.render(self.NESTED, {}), 'tags').content

        tags.on_input('["a", ')

        commit.assert_not_called()
        assert errors['value']

    def test_max_depth_zero_root_editor(self):
        """Test that max_depth 0 renders the whole object as JSON."""
        renderer, _, _ = _renderer(self.NESTED, max_depth=0)

        control = renderer.render(self.NESTED, None)

        assert isinstance(control, FieldControl)
        assert control.kind == ControlKind.JSON_EDITOR
        assert control.path == ()
        assert control.value == '{}'


class TestLeafControls:
    """Test cases for leaf controls and their commits."""

    def test_text_control(self):
        """Test text control attributes."""
        renderer, _, _ = _renderer()
        host = _field(renderer.render(SERVER_SCHEMA, {}), 'host').content

        assert host.kind == ControlKind.TEXT
        assert host.placeholder == 'Hostname'
        assert host.constraints == {'minLength': 1}
        assert host.required

    def test_format_input_types(self):
        """Test that string formats map to input types."""
        renderer, _, _ = _renderer()

        for fmt, expected in (('email', 'email'), ('uri', 'url'), ('date', 'date'),
                              ('date-time', 'datetime-local'), ('hostname', 'text')):
            control = renderer.render_field_input({'type': 'string', 'format': fmt}, None, ('x',), False)
            assert control.input_type == expected

    def test_empty_text_optional_removes_field(self):
        """Test that clearing an optional text field commits MISSING."""
        renderer, commit, _ = _renderer()
        email = _field(renderer.render(SERVER_SCHEMA, {'email': 'a@b.c'}), 'email').content

        email.on_input("")

        commit.assert_called_once_with(('email',), MISSING)

    def test_blank_optional_text_keeps_existing_empty_string(self):
        """Test that committing the blank display of an optional "" keeps the key."""
        renderer, commit, _ = _renderer()
        group = renderer.render(SERVER_SCHEMA, {'email': '', 'mode': ''})

        _field(group, 'email').content.on_input("")
        _field(group, 'mode').content.on_input("")

        assert commit.call_args_list[0].args == (('email',), "")
        assert commit.call_args_list[1].args == (('mode',), "")

    def test_empty_text_required_commits_empty_string(self):
        """Test that clearing a required text field commits an empty string."""
        renderer, commit, _ = _renderer()
        host = _field(renderer.render(SERVER_SCHEMA, {'host': 'x'}), 'host').content

        host.on_input("")

        commit.assert_called_once_with(('host',), "")

    def test_select_options(self):
        """Test blank placeholder option and enumNames labels."""
        renderer, _, _ = _renderer()
        group = renderer.render(SERVER_SCHEMA, {'protocol': 'https'})
        protocol = _field(group, 'protocol').content
        mode = _field(group, 'mode').content

        assert protocol.kind == ControlKind.SELECT
        assert protocol.value == 'https'
        assert protocol.options == [("", SELECT_PLACEHOLDER), ('http', 'HTTP'), ('https', 'HTTPS')]
        assert mode.options[1:] == [('a', 'a'), ('b', 'b')]

    def test_select_blank_choice(self):
        """Test blank select commits MISSING when optional, empty string when required."""
        renderer, commit, _ = _renderer()
        group = renderer.render(SERVER_SCHEMA, {})

        _field(group, 'mode').content.on_input("")
        _field(group, 'protocol').content.on_input("")

        assert commit.call_args_list[0].args == (('mode',), MISSING)
        assert commit.call_args_list[1].args == (('protocol',), "")

    def test_number_commit(self):
        """Test that numeric text commits a number."""
        renderer, commit, _ = _renderer()
        ratio = _field(renderer.render(SERVER_SCHEMA, {}), 'ratio').content

        ratio.on_input("0.25")

        commit.assert_called_once_with(('ratio',), 0.25)

    def test_malformed_number_discarded(self):
        """Test that non-numeric input is dropped without error."""
        renderer, commit, errors = _renderer()
        ratio = _field(renderer.render(SERVER_SCHEMA, {}), 'ratio').content

        assert ratio.on_input("12abc") is None
        commit.assert_not_called()
        assert errors['value'] is None

    def test_empty_number(self):
        """Test empty numeric input: MISSING when optional, no-op when required."""
        renderer, commit, _ = _renderer()
        group = renderer.render(SERVER_SCHEMA, {'port': 80, 'ratio': 1})

        _field(group, 'ratio').content.on_input("")
        _field(group, 'port').content.on_input("")

        commit.assert_called_once_with(('ratio',), MISSING)

    def test_integer_control(self):
        """Test integer step and fractional input rejection."""
        renderer, commit, _ = _renderer()
        port = _field(renderer.render(SERVER_SCHEMA, {}), 'port').content

        assert port.kind == ControlKind.INTEGER
        assert port.constraints == {'minimum': 1, 'maximum': 65535, 'step': 1}

        port.on_input("80.5")
        commit.assert_not_called()
        port.on_input("8080")
        commit.assert_called_once_with(('port',), 8080)

    def test_checkbox(self):
        """Test checkbox caption and boolean commits."""
        renderer, commit, _ = _renderer()
        enabled = _field(renderer.render(SERVER_SCHEMA, {}), 'enabled').content

        assert enabled.kind == ControlKind.CHECKBOX
        assert enabled.value is False
        assert enabled.caption == CHECKBOX_CAPTION

        enabled.on_input(1)
        commit.assert_called_once_with(('enabled',), True)

    def test_checkbox_caption_from_description(self):
        """Test that the checkbox caption uses the description."""
        renderer, _, _ = _renderer()

        control = renderer.render_field_input(
            {'type': 'boolean', 'description': 'Use TLS'}, True, ('tls',), False
        )

        assert control.caption == 'Use TLS'
        assert control.value is True

    @pytest.mark.parametrize("schema,value,raw", [
        ({'type': 'string'}, "hello", "hello"),
        ({'type': 'string'}, "", ""),
        ({'type': 'integer'}, 42, "42"),
        ({'type': 'number'}, 2.5, "2.5"),
        ({'type': 'boolean'}, True, True),
    ])
    def test_display_then_commit_is_identity(self, schema, value, raw):
        """Test that committing the displayed value gives back the same value."""
        renderer, commit, _ = _renderer({'type': 'object', 'properties': {'x': schema}})
        control = renderer.render_field_input(schema, value, ('x',), False)

        assert control.value == raw
        control.on_input(control.value)

        commit.assert_called_once_with(('x',), value)
