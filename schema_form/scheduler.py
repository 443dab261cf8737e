"""
Cooperative timer scheduling for the editor's debounce.

Timers never run on their own thread: the host event loop pumps
``Scheduler.run_due()`` (the Streamlit adapter does so on every rerun), and
tests drive it with a fake clock.
"""

import heapq
import itertools
import logging
import time
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    """A scheduled callback that can be cancelled before it fires."""

    def __init__(self, deadline: float, callback: Callable[[], None]):
        self.deadline = deadline
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


class Scheduler:
    """
    Deadline-ordered timer queue pumped by its owner.

    Args:
        clock: Callable returning the current time in seconds
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._queue: List[tuple] = []
        self._counter = itertools.count()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule ``callback`` to run ``delay_ms`` milliseconds from now."""
        handle = TimerHandle(self.clock() + delay_ms / 1000.0, callback)
        heapq.heappush(self._queue, (handle.deadline, next(self._counter), handle))
        return handle

    def run_due(self) -> int:
        """
        Run every active timer whose deadline has passed.

        Returns:
            Number of callbacks that fired
        """
        fired = 0
        now = self.clock()
        while self._queue and self._queue[0][0] <= now:
            _, _, handle = heapq.heappop(self._queue)
            if not handle.active:
                continue
            handle.fired = True
            handle.callback()
            fired += 1
        return fired

    @property
    def has_pending(self) -> bool:
        return any(handle.active for _, _, handle in self._queue)


class PendingTimer:
    """
    Single owned timer slot with replace-cancels-previous semantics.

    At most one timer is live per slot; ``release()`` must be called on
    teardown so a torn-down owner is never called back.
    """

    def __init__(self, scheduler: Scheduler):
        self.scheduler = scheduler
        self._handle: Optional[TimerHandle] = None

    def replace(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        if self._handle is not None and self._handle.active:
            self._handle.cancel()
            logger.debug("Cancelled pending timer")
        self._handle = self.scheduler.call_later(delay_ms, callback)
        return self._handle

    def release(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def is_pending(self) -> bool:
        return self._handle is not None and self._handle.active
