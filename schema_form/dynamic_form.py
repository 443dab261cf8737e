"""
Dynamic JSON form controller.

Combines the mode selector, the raw-text synchronizer and the field renderer
over one value owned by the caller. The caller passes ``(schema, value,
on_change)``, receives every new value through ``on_change`` and feeds it
back with ``update()``; the form never mutates the value in place.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union

from .config_loader import get_editor_settings
from .exceptions import PathUpdateError
from .field_renderer import (
    ControlKind, DEFAULT_MAX_DEPTH, FieldControl, FieldRenderer, GroupView,
)
from .json_utils import DEFAULT_INDENT, MISSING, to_json_text, update_value_at_path
from .mode_selector import EditorMode, ModeSelector
from .raw_text_sync import DEFAULT_DEBOUNCE_MS, RawTextSynchronizer
from .scheduler import Scheduler
from .schema_defaults import generate_default_value

logger = logging.getLogger(__name__)

SUMMARY_INTRO = "Form view not available for this JSON structure. Using simplified view:"
SUMMARY_HINT = "Use JSON mode for full editing capabilities."


class CommitStatus:
    """Commit status constants."""
    COMMITTED = "committed"
    IGNORED = "ignored"


@dataclass(frozen=True)
class CommitOutcome:
    """
    Result of a leaf commit.

    An IGNORED outcome carries the path-update error; the owner was handed
    its previous value back and nothing is shown to the user.
    """
    status: str
    value: Any
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status == CommitStatus.COMMITTED

    @classmethod
    def committed(cls, value: Any) -> "CommitOutcome":
        return cls(CommitStatus.COMMITTED, value)

    @classmethod
    def ignored(cls, value: Any, error: Exception) -> "CommitOutcome":
        return cls(CommitStatus.IGNORED, value, error)


@dataclass
class SummaryView:
    """Read-only view shown when the value does not match an object schema."""
    text: str
    intro: str = SUMMARY_INTRO
    hint: str = SUMMARY_HINT


@dataclass
class FormView:
    """Everything a host needs to draw the form for one render pass."""
    mode: str
    show_toggle: bool
    toggle_label: str
    show_format_button: bool
    error: Optional[str] = None
    editor: Optional[FieldControl] = None
    summary: Optional[SummaryView] = None
    body: Union[GroupView, FieldControl, None] = None


def _same_json(left: Any, right: Any) -> bool:
    # 1 == True and 1 == 1.0 in Python but not as JSON text
    if left is right:
        return True
    try:
        return json.dumps(left, sort_keys=False) == json.dumps(right, sort_keys=False)
    except (TypeError, ValueError):
        return left == right


class DynamicJsonForm:
    """
    Schema-driven editor for a JSON value owned by the caller.

    Args:
        schema: JSON-Schema-like description of the value
        value: Current value (None when absent)
        on_change: Receives every new value
        max_depth: Depth at which nested objects/arrays become JSON editors
        scheduler: Scheduler pumped by the host for the debounce timer
        debounce_ms: Quiescence interval for raw-text parsing
        indent: Indentation of the raw text
        skip_resync_while_pending: Do not overwrite the text buffer from the
            owner's value while a debounced parse is pending
    """

    def __init__(
        self,
        schema: Dict[str, Any],
        value: Any,
        on_change: Callable[[Any], None],
        max_depth: int = DEFAULT_MAX_DEPTH,
        scheduler: Optional[Scheduler] = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        indent: int = DEFAULT_INDENT,
        skip_resync_while_pending: bool = False,
    ):
        self.schema = schema if isinstance(schema, dict) else {}
        self.value = value
        self.on_change = on_change
        self.max_depth = max_depth
        self.indent = indent
        self.modes = ModeSelector(self.schema)
        self.sync = RawTextSynchronizer(
            self._forward,
            scheduler=scheduler,
            debounce_ms=debounce_ms,
            indent=indent,
            skip_resync_while_pending=skip_resync_while_pending,
        )
        self.sync.resync(self._value_or_default())
        logger.debug(f"Form created in {self.modes.mode} mode (max_depth={max_depth})")

    @classmethod
    def from_config(cls, schema: Dict[str, Any], value: Any, on_change: Callable[[Any], None],
                    config: Optional[Dict[str, Any]] = None,
                    scheduler: Optional[Scheduler] = None) -> "DynamicJsonForm":
        """Build a form using the ``editor`` section of the configuration."""
        settings = get_editor_settings(config)
        return cls(
            schema,
            value,
            on_change,
            max_depth=settings['max_depth'],
            scheduler=scheduler,
            debounce_ms=settings['debounce_ms'],
            indent=settings['indent'],
            skip_resync_while_pending=settings['skip_resync_while_pending'],
        )

    @property
    def mode(self) -> str:
        return self.modes.mode

    @property
    def error(self) -> Optional[str]:
        return self.sync.error

    @property
    def raw_text(self) -> str:
        return self.sync.text

    @property
    def scheduler(self) -> Scheduler:
        return self.sync.scheduler

    def _value_or_default(self) -> Any:
        return self.value if self.value is not None else generate_default_value(self.schema)

    def _forward(self, value: Any) -> None:
        self.on_change(value)

    def _set_error(self, message: Optional[str]) -> None:
        self.sync.error = message

    def update(self, schema: Dict[str, Any], value: Any) -> bool:
        """
        Receive the owner's current schema and value.

        Re-derives the text buffer when either changed. This overwrites an
        unsynced edit unless ``skip_resync_while_pending`` is set.

        Returns:
            True if the schema or value changed
        """
        schema = schema if isinstance(schema, dict) else {}
        schema_changed = not _same_json(schema, self.schema)
        value_changed = not _same_json(value, self.value)
        if not (schema_changed or value_changed):
            return False

        self.schema = schema
        self.value = value
        if schema_changed:
            self.modes.set_schema(schema)
            logger.info(f"Schema changed, mode is now {self.modes.mode}")
        self.sync.resync(self._value_or_default())
        return True

    def toggle_mode(self) -> bool:
        """
        Switch between structured and raw-text editing.

        Leaving raw-text mode requires the buffer to parse; on failure the
        parse error is set and the form stays in raw-text mode.

        Returns:
            True if the transition happened
        """
        if not self.modes.show_toggle:
            logger.warning("Mode toggle requested for a raw-text only schema")
            return False

        if self.modes.is_raw_text:
            result = self.sync.parse_now()
            if not result.ok:
                logger.info(f"Switch to structured mode refused: {result.error}")
                return False
            self._forward(result.value)
            self.sync.error = None
            self.modes.switch_to(EditorMode.STRUCTURED)
            # enforce() keeps property-less objects in raw-text mode
            return not self.modes.is_raw_text

        self.sync.text = to_json_text(self._value_or_default(), self.indent)
        self.modes.switch_to(EditorMode.RAW_TEXT)
        return True

    def format_json(self) -> bool:
        """Canonically re-indent the raw text buffer."""
        return self.sync.format()

    def on_text_edit(self, text: str) -> None:
        """Handle a keystroke-level edit of the raw text buffer."""
        self.sync.on_text_edit(text)

    def commit(self, path: Tuple[str, ...], value: Any) -> CommitOutcome:
        """
        Forward a leaf edit to the owner.

        Args:
            path: Location of the edited field, empty for the root
            value: New value, or MISSING to drop the field

        Returns:
            CommitOutcome; IGNORED when the path update was rejected
        """
        path = tuple(path)
        if not path:
            new_value = None if value is MISSING else value
            self._forward(new_value)
            return CommitOutcome.committed(new_value)

        previous = self.value
        try:
            new_value = update_value_at_path(previous, path, value)
        except PathUpdateError as e:
            logger.error(f"Failed to update form value: {e}")
            self._forward(previous)
            return CommitOutcome.ignored(previous, e)

        self._forward(new_value)
        return CommitOutcome.committed(new_value)

    def should_show_summary(self) -> bool:
        """True when an object schema faces a non-object or empty value with real raw text."""
        if self.schema.get('type') != 'object':
            return False
        value = self.value
        empty = not isinstance(value, (dict, list)) or len(value) == 0
        text = self.sync.text
        return empty and bool(text) and text != "{}"

    def render(self) -> FormView:
        """Describe the form for the current mode and value."""
        raw = self.modes.is_raw_text
        view = FormView(
            mode=self.modes.mode,
            show_toggle=self.modes.show_toggle,
            toggle_label="Switch to Form" if raw else "Switch to JSON",
            show_format_button=raw,
            error=self.sync.error,
        )

        if raw:
            view.editor = FieldControl(
                kind=ControlKind.JSON_EDITOR,
                path=(),
                value=self.sync.text,
                on_input=self.on_text_edit,
                error=self.sync.error,
            )
        elif self.should_show_summary():
            view.summary = SummaryView(text=self.sync.text)
        else:
            renderer = FieldRenderer(
                self.schema,
                self.commit,
                max_depth=self.max_depth,
                get_error=lambda: self.sync.error,
                set_error=self._set_error,
                indent=self.indent,
            )
            view.body = renderer.render(self.schema, self.value)
        return view

    def pump(self) -> int:
        """Run debounced work that is due; returns the number of fired timers."""
        return self.sync.scheduler.run_due()

    @property
    def has_pending_parse(self) -> bool:
        return self.sync.has_pending_parse

    def teardown(self) -> None:
        """Release the pending debounce timer."""
        self.sync.teardown()
        logger.debug("Form torn down")
