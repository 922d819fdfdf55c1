"""Deterministic, manually advanced implementation of :class:`Clock`.

Time only moves when :meth:`ManualClock.advance` or
:meth:`ManualClock.set_time` is called, which makes expiry and
auto-dismiss behaviour reproducible without sleeping.
"""

from __future__ import annotations

import heapq
import itertools
from collections.abc import Callable


class ManualTimer:
    """Handle for a callback scheduled on a :class:`ManualClock`."""

    __slots__ = ("due_ms", "_callback", "_cancelled", "_fired")

    def __init__(self, due_ms: float, callback: Callable[[], None]) -> None:
        self.due_ms = due_ms
        self._callback = callback
        self._cancelled = False
        self._fired = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        return not (self._cancelled or self._fired)

    def _fire(self) -> None:
        if not self.active:
            return
        self._fired = True
        self._callback()


class ManualClock:
    """A :class:`~notes_client.core.protocols.Clock` driven by hand.

    Usage::

        clock = ManualClock(start_ms=1_700_000_000_000)
        clock.after(3000, on_timeout)
        clock.advance(3000)   # on_timeout runs here
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._queue: list[tuple[float, int, ManualTimer]] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def after(self, delay_ms: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self._now + max(0.0, delay_ms), callback)
        heapq.heappush(self._queue, (timer.due_ms, next(self._seq), timer))
        return timer

    def pending(self) -> int:
        """Number of timers that are still armed."""
        return sum(1 for _, _, timer in self._queue if timer.active)

    def advance(self, delta_ms: float) -> None:
        """Move time forward by *delta_ms*, firing every due timer in order."""
        if delta_ms < 0:
            raise ValueError("Cannot move a clock backwards.")
        self._run_until(self._now + delta_ms)

    def set_time(self, now_ms: float) -> None:
        """Jump to an absolute time, firing timers due on the way."""
        if now_ms < self._now:
            raise ValueError("Cannot move a clock backwards.")
        self._run_until(now_ms)

    def _run_until(self, target_ms: float) -> None:
        # Callbacks may schedule new timers; the heap picks them up if due.
        while self._queue and self._queue[0][0] <= target_ms:
            due_ms, _, timer = heapq.heappop(self._queue)
            self._now = max(self._now, due_ms)
            timer._fire()
        self._now = target_ms
