"""
Unit tests for streamlit_form module.
"""

from datetime import date, time
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

import schema_form.session_manager as session_manager
import schema_form.streamlit_form as streamlit_form
from schema_form.streamlit_form import (
    _on_format,
    _on_toggle,
    _poll_pending_parse,
    _widget_key,
    render_dynamic_json_form,
)


FLAT_SCHEMA = {
    'type': 'object',
    'required': ['name'],
    'properties': {
        'name': {'type': 'string', 'minLength': 3},
        'count': {'type': 'integer'},
        'mode': {'type': 'string', 'enum': ['a', 'b'], 'enumNames': ['Alpha', 'Beta']},
        'enabled': {'type': 'boolean'},
    }
}

NESTED_SCHEMA = {
    'type': 'object',
    'properties': {
        'server': {'type': 'object', 'properties': {'host': {'type': 'string'}}}
    }
}


class _DummyContext:
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class _SessionState:
    def __init__(self, initial=None):
        super().__setattr__("_data", dict(initial or {}))

    def get(self, key, default=None):
        return self._data.get(key, default)

    def __getitem__(self, key):
        return self._data[key]

    def __setitem__(self, key, value):
        self._data[key] = value

    def __contains__(self, key):
        return key in self._data

    def __getattr__(self, name):
        if name in self._data:
            return self._data[name]
        raise AttributeError(name)

    def __setattr__(self, name, value):
        if name == "_data":
            super().__setattr__(name, value)
        else:
            self._data[name] = value


def _mock_st():
    def _columns(spec, **_kwargs):
        count = spec if isinstance(spec, int) else len(spec)
        return tuple(_DummyContext() for _ in range(count))

    return SimpleNamespace(
        session_state=_SessionState(),
        columns=MagicMock(side_effect=_columns),
        container=MagicMock(return_value=_DummyContext()),
        button=MagicMock(return_value=False),
        text_input=MagicMock(),
        text_area=MagicMock(),
        date_input=MagicMock(),
        time_input=MagicMock(),
        selectbox=MagicMock(),
        checkbox=MagicMock(),
        markdown=MagicMock(),
        caption=MagicMock(),
        info=MagicMock(),
        code=MagicMock(),
        error=MagicMock(),
        rerun=MagicMock(),
        fragment=MagicMock(),
    )


@pytest.fixture
def mock_st(monkeypatch):
    st = _mock_st()
    monkeypatch.setattr(streamlit_form, "st", st)
    monkeypatch.setattr(session_manager, "st", st)
    return st


def _widget_call(widget_mock, key):
    for call in widget_mock.call_args_list:
        if call.kwargs.get('key') == key:
            return call
    raise AssertionError(f"No widget drawn with key {key}")


def _fire(st, call):
    """Invoke a widget's on_change the way Streamlit does."""
    call.kwargs['on_change'](*call.kwargs.get('args', ()))


class TestRenderDynamicJsonForm:
    """Test cases for render_dynamic_json_form."""

    def test_creates_and_stores_controller(self, mock_st):
        """Test that the first render creates the controller."""
        controller = render_dynamic_json_form(FLAT_SCHEMA, {'name': 'abc'}, MagicMock(), key="form")

        assert mock_st.session_state.form_controllers["form"] is controller

    def test_reuses_controller_and_applies_update(self, mock_st):
        """Test that later renders reuse the controller and pass the new value."""
        first = render_dynamic_json_form(FLAT_SCHEMA, {'name': 'abc'}, MagicMock(), key="form")
        second = render_dynamic_json_form(FLAT_SCHEMA, {'name': 'xyz'}, MagicMock(), key="form")

        assert first is second
        assert second.value == {'name': 'xyz'}
        assert mock_st.session_state["form::name"] == "xyz"

    def test_seeds_widget_state(self, mock_st):
        """Test that each widget's state is seeded from the controller."""
        render_dynamic_json_form(
            FLAT_SCHEMA, {'name': 'abc', 'count': 2, 'mode': 'b', 'enabled': True}, MagicMock(), key="form"
        )

        assert mock_st.session_state["form::name"] == "abc"
        assert mock_st.session_state["form::count"] == "2"
        assert mock_st.session_state["form::mode"] == "b"
        assert mock_st.session_state["form::enabled"] is True

    def test_required_label(self, mock_st):
        """Test that required fields are marked in their label."""
        render_dynamic_json_form(FLAT_SCHEMA, {'name': 'abc'}, MagicMock(), key="form")

        assert _widget_call(mock_st.text_input, "form::name").args[0] == "name *"
        assert _widget_call(mock_st.text_input, "form::count").args[0] == "count"

    def test_select_options(self, mock_st):
        """Test that enum fields become a selectbox with a placeholder."""
        render_dynamic_json_form(FLAT_SCHEMA, {'name': 'abc'}, MagicMock(), key="form")

        call = _widget_call(mock_st.selectbox, "form::mode")
        assert call.kwargs['options'] == ["", "a", "b"]
        assert call.kwargs['format_func']("b") == "Beta"

    def test_widget_change_commits(self, mock_st):
        """Test that a widget on_change forwards the new value."""
        on_change = MagicMock()
        render_dynamic_json_form(FLAT_SCHEMA, {'name': 'abc', 'count': 2}, on_change, key="form")

        mock_st.session_state["form::count"] = "7"
        _fire(mock_st, _widget_call(mock_st.text_input, "form::count"))

        on_change.assert_called_once_with({'name': 'abc', 'count': 7})

    def test_checkbox_change_commits(self, mock_st):
        """Test that toggling a checkbox commits a boolean."""
        on_change = MagicMock()
        render_dynamic_json_form(FLAT_SCHEMA, {'name': 'abc'}, on_change, key="form")

        mock_st.session_state["form::enabled"] = True
        _fire(mock_st, _widget_call(mock_st.checkbox, "form::enabled"))

        on_change.assert_called_once_with({'name': 'abc', 'enabled': True})

    def test_constraint_feedback(self, mock_st):
        """Test that a constraint violation is shown without blocking."""
        render_dynamic_json_form(FLAT_SCHEMA, {'name': 'ab'}, MagicMock(), key="form")

        messages = [call.args[0] for call in mock_st.error.call_args_list]
        assert any("at least 3 characters" in message for message in messages)

    def test_max_depth_override(self, mock_st):
        """Test that max_depth turns nested objects into JSON editors."""
        controller = render_dynamic_json_form(FLAT_SCHEMA, {'name': 'abc'}, MagicMock(), key="form", max_depth=0)

        assert controller.max_depth == 0
        _widget_call(mock_st.text_area, "form::<root>::json")
        mock_st.text_input.assert_not_called()

    def test_raw_text_mode_uses_editor(self, mock_st):
        """Test that a raw-text only schema draws the JSON editor and format button."""
        render_dynamic_json_form(NESTED_SCHEMA, {}, MagicMock(), key="form")

        _widget_call(mock_st.text_area, "form::<root>::json")
        _widget_call(mock_st.button, "form::format")
        keys = [call.kwargs.get('key') for call in mock_st.button.call_args_list]
        assert "form::toggle" not in keys

    def test_poller_only_while_parse_pending(self, mock_st):
        """Test that the fragment poller runs only with a pending parse."""
        controller = render_dynamic_json_form(NESTED_SCHEMA, {}, MagicMock(), key="form")
        mock_st.fragment.assert_not_called()

        controller.on_text_edit('{"server": null}')
        render_dynamic_json_form(NESTED_SCHEMA, {}, MagicMock(), key="form")

        mock_st.fragment.assert_called_once()
        assert mock_st.fragment.call_args.kwargs['run_every'] == pytest.approx(0.3)


class TestDateWidgets:
    """Test cases for date and date-time fields."""

    def test_date_picker(self, mock_st):
        """Test that a date-format string uses a date picker."""
        on_change = MagicMock()
        schema = {'type': 'string', 'format': 'date'}
        render_dynamic_json_form(schema, "2024-05-01", on_change, key="form")

        key = _widget_key("form", (), "date")
        assert mock_st.session_state[key] == date(2024, 5, 1)

        mock_st.session_state[key] = date(2024, 6, 2)
        _fire(mock_st, _widget_call(mock_st.date_input, key))

        on_change.assert_called_once_with("2024-06-02")

    def test_unparseable_date_falls_back_to_text(self, mock_st):
        """Test that an unparseable date is edited as text."""
        render_dynamic_json_form({'type': 'string', 'format': 'date'}, "someday", MagicMock(), key="form")

        mock_st.date_input.assert_not_called()
        assert mock_st.session_state["form::<root>"] == "someday"

    def test_datetime_inputs(self, mock_st):
        """Test that date-time strings use date and time inputs."""
        on_change = MagicMock()
        render_dynamic_json_form({'type': 'string', 'format': 'date-time'}, "2024-05-01T10:30", on_change, key="form")

        date_key = _widget_key("form", (), "date")
        time_key = _widget_key("form", (), "time")
        assert mock_st.session_state[date_key] == date(2024, 5, 1)
        assert mock_st.session_state[time_key] == time(10, 30)

        mock_st.session_state[time_key] = time(11, 45)
        _widget_call(mock_st.time_input, time_key).kwargs['on_change']()

        on_change.assert_called_once_with("2024-05-01T11:45")


class TestCallbacks:
    """Test cases for button and poller callbacks."""

    def test_toggle_and_format(self, mock_st):
        """Test that button callbacks reach the stored controller."""
        controller = MagicMock()
        mock_st.session_state['form_controllers'] = {"form": controller}

        _on_toggle("form")
        _on_format("form")

        controller.toggle_mode.assert_called_once()
        controller.format_json.assert_called_once()

    def test_callbacks_without_controller(self, mock_st):
        """Test that callbacks for a dropped form do nothing."""
        _on_toggle("gone")
        _on_format("gone")
        _poll_pending_parse("gone")

        mock_st.rerun.assert_not_called()

    def test_poll_reruns_after_fired_parse(self, mock_st):
        """Test that the poller reruns the page only when a timer fired."""
        controller = MagicMock()
        mock_st.session_state['form_controllers'] = {"form": controller}

        controller.pump.return_value = 0
        _poll_pending_parse("form")
        mock_st.rerun.assert_not_called()

        controller.pump.return_value = 1
        _poll_pending_parse("form")
        mock_st.rerun.assert_called_once()
