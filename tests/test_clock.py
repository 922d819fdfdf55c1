"""Tests for the clocks (core/clock.py, infra/asyncio_clock.py)."""

from __future__ import annotations

import asyncio
import time

import pytest

from notes_client.core.clock import ManualClock
from notes_client.infra.asyncio_clock import AsyncioClock


class TestManualClock:
    def test_starts_at_given_time(self) -> None:
        assert ManualClock(start_ms=42).now_ms() == 42.0

    def test_timer_fires_when_due(self) -> None:
        clock = ManualClock()
        fired: list[float] = []
        clock.after(100, lambda: fired.append(clock.now_ms()))

        clock.advance(99)
        assert fired == []
        clock.advance(1)
        assert fired == [100.0]

    def test_zero_delay_never_fires_synchronously(self) -> None:
        clock = ManualClock()
        fired: list[str] = []
        clock.after(0, lambda: fired.append("x"))
        assert fired == []
        clock.advance(0)
        assert fired == ["x"]

    def test_negative_delay_is_clamped(self) -> None:
        clock = ManualClock(start_ms=10)
        timer = clock.after(-50, lambda: None)
        assert timer.due_ms == 10.0

    def test_timers_fire_in_due_order(self) -> None:
        clock = ManualClock()
        order: list[str] = []
        clock.after(300, lambda: order.append("c"))
        clock.after(100, lambda: order.append("a"))
        clock.after(200, lambda: order.append("b"))
        clock.advance(1000)
        assert order == ["a", "b", "c"]
        assert clock.now_ms() == 1000.0

    def test_same_due_time_fires_in_schedule_order(self) -> None:
        clock = ManualClock()
        order: list[int] = []
        for i in range(3):
            clock.after(50, lambda i=i: order.append(i))
        clock.advance(50)
        assert order == [0, 1, 2]

    def test_cancelled_timer_does_not_fire(self) -> None:
        clock = ManualClock()
        fired: list[str] = []
        timer = clock.after(10, lambda: fired.append("x"))
        timer.cancel()
        clock.advance(100)
        assert fired == []
        assert timer.cancelled() is True

    def test_callback_can_schedule_due_timer(self) -> None:
        clock = ManualClock()
        order: list[str] = []

        def first() -> None:
            order.append("first")
            clock.after(10, lambda: order.append("second"))

        clock.after(10, first)
        clock.advance(30)
        assert order == ["first", "second"]

    def test_pending_counts_active_timers(self) -> None:
        clock = ManualClock()
        keep = clock.after(10, lambda: None)
        drop = clock.after(10, lambda: None)
        drop.cancel()
        assert clock.pending() == 1
        clock.advance(10)
        assert clock.pending() == 0
        assert keep.active is False

    def test_set_time_fires_timers_on_the_way(self) -> None:
        clock = ManualClock(start_ms=1000)
        fired: list[float] = []
        clock.after(500, lambda: fired.append(clock.now_ms()))
        clock.set_time(2000)
        assert fired == [1500.0]
        assert clock.now_ms() == 2000.0

    def test_cannot_move_backwards(self) -> None:
        clock = ManualClock(start_ms=1000)
        with pytest.raises(ValueError):
            clock.advance(-1)
        with pytest.raises(ValueError):
            clock.set_time(999)


class TestAsyncioClock:
    def test_now_is_wall_clock_ms(self) -> None:
        before = time.time() * 1000.0
        now = AsyncioClock().now_ms()
        assert before <= now <= time.time() * 1000.0

    async def test_after_runs_on_the_loop(self) -> None:
        fired = asyncio.Event()
        AsyncioClock().after(1, fired.set)
        await asyncio.wait_for(fired.wait(), timeout=1)

    async def test_cancelled_handle_does_not_fire(self) -> None:
        calls: list[str] = []
        handle = AsyncioClock().after(0, lambda: calls.append("x"))
        handle.cancel()
        await asyncio.sleep(0.01)
        assert calls == []
        assert handle.cancelled() is True
