"""
Raw-text synchronizer for the schema form editor.

Keeps a text buffer mirroring the owner's value, debounces parse attempts
while the user types and forwards successful parses to the owner. Parse
errors are only surfaced for explicit actions; transient invalid states
during typing are expected and stay silent.
"""

import logging
from typing import Any, Callable, Optional

from .json_utils import DEFAULT_INDENT, ParseResult, parse_json_text, to_json_text
from .scheduler import PendingTimer, Scheduler

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 300


class RawTextSynchronizer:
    """
    Text buffer with a debounced parse/commit pipeline.

    Args:
        on_change: Called with each successfully parsed value
        scheduler: Scheduler that owns the debounce timer
        debounce_ms: Quiescence interval before a parse is attempted
        indent: Indentation used when serializing
        skip_resync_while_pending: Ignore owner resyncs while a parse is pending
    """

    def __init__(
        self,
        on_change: Callable[[Any], None],
        scheduler: Optional[Scheduler] = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        indent: int = DEFAULT_INDENT,
        skip_resync_while_pending: bool = False,
    ):
        self.on_change = on_change
        self.scheduler = scheduler or Scheduler()
        self.debounce_ms = debounce_ms
        self.indent = indent
        self.skip_resync_while_pending = skip_resync_while_pending
        self.text = ""
        self.error: Optional[str] = None
        self._timer = PendingTimer(self.scheduler)

    @property
    def has_pending_parse(self) -> bool:
        return self._timer.is_pending

    def on_text_edit(self, new_text: str) -> None:
        """Store the edit verbatim and schedule a debounced parse."""
        self.text = new_text
        self._schedule_parse(new_text)

    def _schedule_parse(self, text: str) -> None:
        self._timer.replace(self.debounce_ms, lambda: self._parse_and_forward(text))
        logger.debug(f"Scheduled parse in {self.debounce_ms}ms ({len(text)} chars)")

    def _parse_and_forward(self, text: str) -> None:
        result = parse_json_text(text)
        if not result.ok:
            # Mid-typing states are expected to be invalid
            logger.debug(f"Debounced parse skipped: {result.error}")
            return
        self.on_change(result.value)
        self.error = None

    def format(self) -> bool:
        """
        Re-serialize the buffer with canonical indentation.

        Returns:
            True if the buffer was formatted, False on a blank buffer or a
            parse failure (the latter sets ``error``)
        """
        stripped = self.text.strip()
        if not stripped:
            return False

        result = parse_json_text(stripped)
        if not result.ok:
            self.error = result.error
            logger.info(f"Format refused: {result.error}")
            return False

        formatted = to_json_text(result.value, self.indent)
        self.text = formatted
        self._schedule_parse(formatted)
        self.error = None
        return True

    def parse_now(self) -> ParseResult:
        """
        Parse the buffer immediately for an explicit action.

        Returns:
            ParseResult; a failure also sets ``error``
        """
        result = parse_json_text(self.text)
        if not result.ok:
            self.error = result.error
        return result

    def resync(self, value: Any) -> bool:
        """
        Overwrite the buffer from the owner's value.

        Returns:
            True if the buffer was replaced
        """
        if self.skip_resync_while_pending and self.has_pending_parse:
            logger.debug("Resync skipped while a parse is pending")
            return False
        self.text = to_json_text(value, self.indent)
        return True

    def teardown(self) -> None:
        """Release the pending timer."""
        self._timer.release()
