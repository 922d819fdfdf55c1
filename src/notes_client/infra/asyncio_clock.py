"""Event-loop backed implementation of :class:`~notes_client.core.protocols.Clock`.

Timers are plain ``loop.call_later`` handles, so they run on the same
thread as every other state mutation and need no locking.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable


class AsyncioClock:
    """Wall-clock time plus ``call_later`` scheduling.

    The loop is resolved lazily so the clock can be built before
    ``asyncio.run`` starts one.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def now_ms(self) -> float:
        return time.time() * 1000.0

    def after(self, delay_ms: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay_ms) / 1000.0, callback)
