"""
Recursive field renderer for the schema form editor.

Walks a schema node and its value in lockstep and returns a toolkit-neutral
view description: one control per leaf field, or a nested JSON editor once
the depth limit is reached. Every control carries an ``on_input`` callback
bound to its path; all of them funnel into a single commit function.
"""

import json
import logging
import math
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .json_utils import MISSING, parse_json_text, to_json_text, DEFAULT_INDENT
from .schema_defaults import generate_default_value, get_required_names

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3
SELECT_PLACEHOLDER = "Select an option..."
CHECKBOX_CAPTION = "Enable this option"

# JSON-Schema string formats mapped to host input types
FORMAT_INPUT_TYPES = {
    'email': 'email',
    'uri': 'url',
    'date': 'date',
    'date-time': 'datetime-local',
}


class ControlKind:
    """Control kind constants."""
    TEXT = "text"
    SELECT = "select"
    NUMBER = "number"
    INTEGER = "integer"
    CHECKBOX = "checkbox"
    JSON_EDITOR = "json_editor"


@dataclass
class FieldControl:
    """A single input control bound to a path."""
    kind: str
    path: Tuple[str, ...]
    value: Any
    on_input: Callable[[Any], Any]
    required: bool = False
    input_type: str = "text"
    placeholder: Optional[str] = None
    options: List[Tuple[str, str]] = field(default_factory=list)
    constraints: Dict[str, Any] = field(default_factory=dict)
    caption: Optional[str] = None
    error: Optional[str] = None


@dataclass
class FieldView:
    """A labeled field inside an object group."""
    name: str
    label: str
    required: bool
    description: Optional[str]
    content: Union["GroupView", FieldControl, None]


@dataclass
class GroupView:
    """The declared properties of an object, in declaration order."""
    path: Tuple[str, ...]
    fields: List[FieldView] = field(default_factory=list)


def parse_number_input(raw: Any, integer: bool = False) -> Optional[Union[int, float]]:
    """
    Convert raw numeric input to a number.

    Returns:
        The number, or None when the input must be discarded
    """
    if isinstance(raw, bool) or raw is None:
        return None

    if isinstance(raw, (int, float)):
        number = raw
    else:
        text = str(raw).strip()
        if not text or '_' in text:
            return None
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return None

    if isinstance(number, float):
        if not math.isfinite(number):
            return None
        if integer:
            if not number.is_integer():
                return None
            number = int(number)
    return number


def _display_text(value: Any) -> str:
    if value is None or value is MISSING:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return json.dumps(value)
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


class FieldRenderer:
    """
    Maps a schema tree onto field controls.

    Args:
        root_schema: Schema of the whole form; its ``required`` decides requiredness
        commit: Called as ``commit(path, value)`` for every leaf edit
        max_depth: Depth at which object/array nodes become JSON editors
        get_error: Returns the shared parse error
        set_error: Sets or clears the shared parse error
        indent: Indentation for nested JSON editors
    """

    def __init__(
        self,
        root_schema: Dict[str, Any],
        commit: Callable[[Tuple[str, ...], Any], Any],
        max_depth: int = DEFAULT_MAX_DEPTH,
        get_error: Optional[Callable[[], Optional[str]]] = None,
        set_error: Optional[Callable[[Optional[str]], None]] = None,
        indent: int = DEFAULT_INDENT,
    ):
        self.root_schema = root_schema if isinstance(root_schema, dict) else {}
        self.commit = commit
        self.max_depth = max_depth
        self.get_error = get_error or (lambda: None)
        self.set_error = set_error or (lambda message: None)
        self.indent = indent

    def is_field_required(self, path: Tuple[str, ...]) -> bool:
        """
        Resolve requiredness from the root schema only.

        Nested objects' own ``required`` lists are not consulted.
        """
        required = self.root_schema.get('required')
        if isinstance(required, bool):
            return required
        if path and isinstance(required, (list, tuple)):
            return path[-1] in get_required_names(self.root_schema)
        return False

    def render(self, schema: Dict[str, Any], value: Any,
               path: Tuple[str, ...] = (), depth: int = 0) -> Union[GroupView, FieldControl, None]:
        """Render one schema node and its value."""
        path = tuple(path)
        if not isinstance(schema, dict):
            return None
        schema_type = schema.get('type')

        if depth >= self.max_depth and schema_type in ('object', 'array'):
            return self._render_json_editor(schema, value, path)

        properties = schema.get('properties')
        if schema_type == 'object' and isinstance(properties, dict) and properties:
            return self._render_object(properties, value, path, depth)

        return self.render_field_input(schema, value, path, self.is_field_required(path))

    def _render_object(self, properties: Dict[str, Any], value: Any,
                       path: Tuple[str, ...], depth: int) -> GroupView:
        object_value = value if isinstance(value, dict) else {}
        group = GroupView(path=path)

        for field_name, field_schema in properties.items():
            if not isinstance(field_schema, dict):
                logger.warning(f"Skipping property {field_name!r}: schema is not an object")
                continue
            field_path = path + (field_name,)
            group.fields.append(FieldView(
                name=field_name,
                label=field_schema.get('title') or field_name,
                required=self.is_field_required(field_path),
                description=field_schema.get('description'),
                content=self.render(field_schema, object_value.get(field_name), field_path, depth + 1),
            ))
        return group

    def _render_json_editor(self, schema: Dict[str, Any], value: Any,
                            path: Tuple[str, ...]) -> FieldControl:
        current = value if value is not None else generate_default_value(schema)
        return FieldControl(
            kind=ControlKind.JSON_EDITOR,
            path=path,
            value=to_json_text(current, self.indent),
            on_input=partial(self._on_json_input, path),
            error=self.get_error(),
        )

    def _on_json_input(self, path: Tuple[str, ...], text: str) -> Any:
        result = parse_json_text(text)
        if not result.ok:
            self.set_error(result.error)
            return None
        outcome = self.commit(path, result.value)
        self.set_error(None)
        return outcome

    def render_field_input(self, schema: Dict[str, Any], value: Any,
                           path: Tuple[str, ...], required: bool) -> Optional[FieldControl]:
        """Render the control for a leaf node; unsupported types render nothing."""
        schema_type = schema.get('type')

        if schema_type == 'string':
            if schema.get('enum'):
                return self._render_select(schema, value, path, required)
            return self._render_text(schema, value, path, required)
        elif schema_type in ('number', 'integer'):
            return self._render_number(schema, value, path, required, schema_type == 'integer')
        elif schema_type == 'boolean':
            return FieldControl(
                kind=ControlKind.CHECKBOX,
                path=path,
                value=bool(value) if value is not None else False,
                on_input=partial(self._on_checkbox_input, path),
                required=required,
                input_type="checkbox",
                caption=schema.get('description') or CHECKBOX_CAPTION,
            )

        logger.debug(f"No control for type {schema_type!r} at {'.'.join(path) or '<root>'}")
        return None

    def _render_select(self, schema, value, path, required):
        enum_values = [str(option) for option in schema.get('enum', [])]
        enum_names = schema.get('enumNames') or []
        options = [("", SELECT_PLACEHOLDER)]
        for index, option in enumerate(enum_values):
            label = enum_names[index] if index < len(enum_names) and enum_names[index] else option
            options.append((option, str(label)))

        return FieldControl(
            kind=ControlKind.SELECT,
            path=path,
            value=value if isinstance(value, str) else "",
            on_input=partial(self._on_text_input, path, required, value),
            required=required,
            input_type="select",
            options=options,
        )

    def _render_text(self, schema, value, path, required):
        constraints = {
            key: schema[key]
            for key in ('minLength', 'maxLength', 'pattern')
            if schema.get(key) is not None
        }
        return FieldControl(
            kind=ControlKind.TEXT,
            path=path,
            value=_display_text(value),
            on_input=partial(self._on_text_input, path, required, value),
            required=required,
            input_type=FORMAT_INPUT_TYPES.get(schema.get('format'), "text"),
            placeholder=schema.get('description'),
            constraints=constraints,
        )

    def _render_number(self, schema, value, path, required, integer):
        constraints = {
            key: schema[key]
            for key in ('minimum', 'maximum')
            if schema.get(key) is not None
        }
        if integer:
            constraints['step'] = 1
        return FieldControl(
            kind=ControlKind.INTEGER if integer else ControlKind.NUMBER,
            path=path,
            value=_display_text(value),
            on_input=partial(self._on_number_input, path, required, integer),
            required=required,
            input_type="number",
            placeholder=schema.get('description'),
            constraints=constraints,
        )

    def _on_text_input(self, path, required, current, raw):
        text = "" if raw is None else str(raw)
        # An optional field holding "" keeps it when its blank display is committed
        if not text and not required and current != "":
            return self.commit(path, MISSING)
        return self.commit(path, text)

    def _on_number_input(self, path, required, integer, raw):
        if raw is None or raw == "":
            if not required:
                return self.commit(path, MISSING)
            return None

        number = parse_number_input(raw, integer)
        if number is None:
            logger.debug(f"Discarded non-numeric input at {'.'.join(path)}: {raw!r}")
            return None
        return self.commit(path, number)

    def _on_checkbox_input(self, path, checked):
        return self.commit(path, bool(checked))
