"""
Debounced Recompute Scheduler

After each command the read snapshot needs rebuilding. Rapid commands
(e.g. several expenses entered in a row) should cause one rebuild, not
one per command.

This is an explicit dirty flag plus a deadline, driven by tick(). It
needs no timer thread or event loop: the host calls tick() whenever it
gets control (a UI frame, a periodic check) and flush() when it needs
fresh data right now.

CRITICAL: Only derived views go through here. Persistence of the
mutation itself is synchronous and never delayed.
"""

import time
from typing import Callable, Optional


class RecomputeScheduler:
    """
    Coalesces recompute requests inside a delay window.

    Each request() pushes the deadline out by the delay, so a burst of
    requests runs the callback once, delay_ms after the last of them.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        delay_ms: int = 50,
        clock: Optional[Callable[[], float]] = None,
    ):
        if delay_ms < 0:
            raise ValueError("delay_ms cannot be negative")
        self._callback = callback
        self._delay = delay_ms / 1000.0
        self._clock = clock or time.monotonic
        self._dirty = False
        self._due_at: Optional[float] = None
        self.run_count = 0

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def due_at(self) -> Optional[float]:
        return self._due_at

    def request(self) -> None:
        """Mark derived state stale and (re)start the delay window."""
        self._dirty = True
        self._due_at = self._clock() + self._delay

    def tick(self, now: Optional[float] = None) -> bool:
        """
        Run the recompute if one is pending and its window has passed.

        Returns:
            True if the callback ran
        """
        if not self._dirty:
            return False
        now = self._clock() if now is None else now
        if now < self._due_at:
            return False
        return self._run()

    def flush(self) -> bool:
        """Run a pending recompute immediately."""
        if not self._dirty:
            return False
        return self._run()

    def _run(self) -> bool:
        # Clear first so a callback that requests again is not lost
        self._dirty = False
        self._due_at = None
        self._callback()
        self.run_count += 1
        return True
