"""
Streamlit rendering for the dynamic JSON form.

Draws a ``FormView`` with Streamlit widgets. The controller lives in session
state across reruns and is the single source of truth: before a widget is
drawn its session-state entry is re-seeded from the controller, and widget
``on_change`` callbacks push edits back through the control's ``on_input``.
"""

import streamlit as st
import logging
from datetime import date, datetime, time
from typing import Any, Callable, Dict, Optional, Tuple

from dateutil import parser as date_parser

from .dynamic_form import DynamicJsonForm, FormView, SummaryView
from .field_renderer import ControlKind, FieldControl, FieldView, GroupView, parse_number_input
from .model_builder import check_constraints
from .session_manager import SessionManager

logger = logging.getLogger(__name__)

JSON_EDITOR_HEIGHT = 300
NESTED_EDITOR_HEIGHT = 150
FORMAT_BUTTON_LABEL = "Format JSON"
DATETIME_FORMAT = "%Y-%m-%dT%H:%M"


def _widget_key(form_key: str, path: Tuple[str, ...], suffix: str = "") -> str:
    key = f"{form_key}::{'/'.join(path) or '<root>'}"
    return f"{key}::{suffix}" if suffix else key


def _seed(widget_key: str, value: Any) -> None:
    # Widgets are created without ``value=`` so the seeded state wins
    st.session_state[widget_key] = value


def _on_widget_change(widget_key: str, on_input: Callable[[Any], Any],
                      convert: Optional[Callable[[Any], Any]] = None) -> None:
    raw = st.session_state.get(widget_key)
    on_input(convert(raw) if convert else raw)


def _parse_date(text: Any) -> Optional[datetime]:
    if not text:
        return None
    try:
        return date_parser.parse(str(text))
    except (ValueError, OverflowError) as e:
        logger.warning(f"Failed to parse date string '{text}': {e}")
        raise


def _constraint_schema(control: FieldControl) -> Dict[str, Any]:
    schema_type = {
        ControlKind.TEXT: 'string',
        ControlKind.NUMBER: 'number',
        ControlKind.INTEGER: 'integer',
    }[control.kind]
    schema = {'type': schema_type}
    schema.update({k: v for k, v in control.constraints.items() if k != 'step'})
    return schema


def _show_constraint_feedback(control: FieldControl) -> None:
    """Show constraint violations under a control; edits are never blocked."""
    if control.kind not in (ControlKind.TEXT, ControlKind.NUMBER, ControlKind.INTEGER):
        return
    if not control.constraints or control.value == "":
        return
    if control.kind == ControlKind.TEXT:
        value = control.value
    else:
        value = parse_number_input(control.value, control.kind == ControlKind.INTEGER)
    for message in check_constraints(_constraint_schema(control), value):
        st.error(message)


def _render_text(control: FieldControl, label: str, help_text: Optional[str], form_key: str) -> None:
    if control.input_type == 'date':
        try:
            _render_date(control, label, help_text, form_key)
            return
        except (ValueError, OverflowError):
            pass
    elif control.input_type == 'datetime-local':
        try:
            _render_datetime(control, label, help_text, form_key)
            return
        except (ValueError, OverflowError):
            pass

    widget_key = _widget_key(form_key, control.path)
    _seed(widget_key, control.value)
    hints = [help_text] if help_text else []
    if control.constraints.get('pattern'):
        hints.append(f"Pattern: {control.constraints['pattern']}")
    st.text_input(
        label,
        key=widget_key,
        placeholder=control.placeholder,
        help=" | ".join(hints) or None,
        on_change=_on_widget_change,
        args=(widget_key, control.on_input),
    )
    _show_constraint_feedback(control)


def _render_date(control: FieldControl, label: str, help_text: Optional[str], form_key: str) -> None:
    """Render a date-format string with a date picker; empty clears the field."""
    current = _parse_date(control.value)
    widget_key = _widget_key(form_key, control.path, "date")
    _seed(widget_key, current.date() if current else None)
    st.date_input(
        label,
        key=widget_key,
        help=help_text,
        on_change=_on_widget_change,
        args=(widget_key, control.on_input, lambda d: d.isoformat() if isinstance(d, date) else ""),
    )


def _render_datetime(control: FieldControl, label: str, help_text: Optional[str], form_key: str) -> None:
    """Render a date-time string as date + time inputs, committed as ``YYYY-MM-DDTHH:MM``."""
    current = _parse_date(control.value)
    date_key = _widget_key(form_key, control.path, "date")
    time_key = _widget_key(form_key, control.path, "time")
    _seed(date_key, current.date() if current else None)
    _seed(time_key, current.time().replace(second=0, microsecond=0) if current else None)

    def _commit_datetime():
        date_part = st.session_state.get(date_key)
        if not isinstance(date_part, date):
            control.on_input("")
            return
        time_part = st.session_state.get(time_key) or time(0, 0)
        control.on_input(datetime.combine(date_part, time_part).strftime(DATETIME_FORMAT))

    col1, col2 = st.columns(2)
    with col1:
        st.date_input(f"{label} (Date)", key=date_key, help=help_text, on_change=_commit_datetime)
    with col2:
        st.time_input(f"{label} (Time)", key=time_key, on_change=_commit_datetime)


def _render_select(control: FieldControl, label: str, help_text: Optional[str], form_key: str) -> None:
    widget_key = _widget_key(form_key, control.path)
    values = [value for value, _ in control.options]
    labels = dict(control.options)
    _seed(widget_key, control.value if control.value in values else "")
    st.selectbox(
        label,
        options=values,
        key=widget_key,
        format_func=lambda value: labels.get(value, value),
        help=help_text,
        on_change=_on_widget_change,
        args=(widget_key, control.on_input),
    )


def _render_number(control: FieldControl, label: str, help_text: Optional[str], form_key: str) -> None:
    # text_input so an empty or partial entry reaches the parser
    widget_key = _widget_key(form_key, control.path)
    _seed(widget_key, control.value)
    hints = [help_text] if help_text else []
    if 'minimum' in control.constraints:
        hints.append(f"Min: {control.constraints['minimum']}")
    if 'maximum' in control.constraints:
        hints.append(f"Max: {control.constraints['maximum']}")
    st.text_input(
        label,
        key=widget_key,
        placeholder=control.placeholder,
        help=" | ".join(hints) or None,
        on_change=_on_widget_change,
        args=(widget_key, control.on_input),
    )
    _show_constraint_feedback(control)


def _render_checkbox(control: FieldControl, label: str, help_text: Optional[str], form_key: str) -> None:
    widget_key = _widget_key(form_key, control.path)
    _seed(widget_key, bool(control.value))
    st.markdown(f"**{label}**")
    st.checkbox(
        control.caption or label,
        key=widget_key,
        help=help_text,
        on_change=_on_widget_change,
        args=(widget_key, control.on_input),
    )


def _render_json_editor(control: FieldControl, label: str, help_text: Optional[str], form_key: str,
                        height: int = NESTED_EDITOR_HEIGHT) -> None:
    widget_key = _widget_key(form_key, control.path, "json")
    _seed(widget_key, control.value)
    st.text_area(
        label,
        key=widget_key,
        height=height,
        help=help_text,
        on_change=_on_widget_change,
        args=(widget_key, control.on_input),
    )


_CONTROL_RENDERERS = {
    ControlKind.TEXT: _render_text,
    ControlKind.SELECT: _render_select,
    ControlKind.NUMBER: _render_number,
    ControlKind.INTEGER: _render_number,
    ControlKind.CHECKBOX: _render_checkbox,
    ControlKind.JSON_EDITOR: _render_json_editor,
}


def render_control(control: Optional[FieldControl], label: str, form_key: str,
                   help_text: Optional[str] = None) -> None:
    """Draw one control; ``None`` (unsupported type) draws nothing."""
    if control is None:
        return
    if control.required:
        label = f"{label} *"
    renderer = _CONTROL_RENDERERS.get(control.kind)
    if renderer is None:
        logger.warning(f"No Streamlit widget for control kind {control.kind!r}")
        return
    renderer(control, label, help_text, form_key)


def render_group(group: GroupView, form_key: str) -> None:
    """Draw the fields of an object in declaration order."""
    for field_view in group.fields:
        _render_field(field_view, form_key)


def _render_field(field_view: FieldView, form_key: str) -> None:
    content = field_view.content
    if isinstance(content, GroupView):
        label = f"{field_view.label} *" if field_view.required else field_view.label
        st.markdown(f"**{label}**")
        if field_view.description:
            st.caption(field_view.description)
        with st.container(border=True):
            render_group(content, form_key)
    else:
        render_control(content, field_view.label, form_key, field_view.description)


def _render_summary(summary: SummaryView) -> None:
    st.info(summary.intro)
    st.code(summary.text, language="json")
    st.caption(summary.hint)


def _on_toggle(form_key: str) -> None:
    controller = SessionManager.get_form_controller(form_key)
    if controller is not None:
        controller.toggle_mode()


def _on_format(form_key: str) -> None:
    controller = SessionManager.get_form_controller(form_key)
    if controller is not None:
        controller.format_json()


def _poll_pending_parse(form_key: str) -> None:
    """Fire due debounce timers between reruns; a fired parse needs a full rerun."""
    controller = SessionManager.get_form_controller(form_key)
    if controller is not None and controller.pump():
        st.rerun()


def render_form_view(view: FormView, form_key: str, root_label: str = "Value") -> None:
    """Draw a ``FormView`` produced by ``DynamicJsonForm.render()``."""
    if view.show_toggle or view.show_format_button:
        col1, col2 = st.columns(2)
        with col1:
            if view.show_toggle:
                st.button(view.toggle_label, key=f"{form_key}::toggle", on_click=_on_toggle, args=(form_key,))
        with col2:
            if view.show_format_button:
                st.button(FORMAT_BUTTON_LABEL, key=f"{form_key}::format", on_click=_on_format, args=(form_key,))

    if view.editor is not None:
        _render_json_editor(view.editor, "JSON", None, form_key, height=JSON_EDITOR_HEIGHT)
    elif view.summary is not None:
        _render_summary(view.summary)
    elif isinstance(view.body, GroupView):
        render_group(view.body, form_key)
    else:
        render_control(view.body, root_label, form_key)

    if view.error:
        st.error(view.error)


def render_dynamic_json_form(
    schema: Dict[str, Any],
    value: Any,
    on_change: Callable[[Any], None],
    key: str,
    max_depth: Optional[int] = None,
    config: Optional[Dict[str, Any]] = None,
) -> DynamicJsonForm:
    """
    Draw a schema-driven editor for ``value`` and return its controller.

    Args:
        schema: JSON-Schema-like description of the value
        value: Current value, owned by the caller
        on_change: Receives every new value
        key: Unique key for this form within the page
        max_depth: Overrides ``editor.max_depth`` from the configuration
        config: Application configuration (defaults when None)

    Returns:
        The DynamicJsonForm stored in session state for ``key``
    """
    controller = SessionManager.get_form_controller(key)
    if controller is None:
        controller = DynamicJsonForm.from_config(schema, value, on_change, config=config)
        SessionManager.set_form_controller(key, controller)
        logger.info(f"Created form controller {key}")
    else:
        controller.on_change = on_change
        # ``value`` is stale once a due parse has been forwarded
        if controller.pump():
            st.rerun()
        controller.update(schema, value)

    if max_depth is not None:
        controller.max_depth = max_depth

    render_form_view(controller.render(), key, root_label=controller.schema.get('title') or "Value")

    if controller.has_pending_parse:
        interval = max(controller.sync.debounce_ms, 50) / 1000.0
        st.fragment(run_every=interval)(_poll_pending_parse)(key)

    return controller
