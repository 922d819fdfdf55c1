"""Tests for NotificationQueue (core/notification_queue.py).

Time is driven by :class:`ManualClock`, so auto-dismiss and progress are
checked at exact instants.
"""

from __future__ import annotations

import pytest

from notes_client.core.clock import ManualClock
from notes_client.core.models import Notification, NotificationAction, NotificationKind
from notes_client.core.notification_queue import DEFAULT_DURATION_MS, NotificationQueue


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _queue(default_duration_ms: float | None = DEFAULT_DURATION_MS) -> tuple[NotificationQueue, ManualClock]:
    clock = ManualClock(start_ms=1000)
    return NotificationQueue(clock, default_duration_ms=default_duration_ms), clock


def _messages(queue: NotificationQueue) -> list[str]:
    return [n.message for n in queue.items]


class _NeverTimer:
    def cancel(self) -> None:
        pass

    def cancelled(self) -> bool:
        return False


class _FrozenSchedulerClock:
    """Clock whose timers never fire, so only ``tick`` can remove entries."""

    def __init__(self) -> None:
        self.now = 0.0

    def now_ms(self) -> float:
        return self.now

    def after(self, delay_ms: float, callback: object) -> _NeverTimer:
        return _NeverTimer()


# ---------------------------------------------------------------------------
# Enqueue
# ---------------------------------------------------------------------------

class TestEnqueue:
    def test_ids_are_unique_and_increasing(self) -> None:
        queue, _ = _queue()
        ids = [queue.info(f"m{i}") for i in range(5)]
        assert ids == sorted(set(ids))

    def test_display_order_is_insertion_order(self) -> None:
        queue, _ = _queue()
        queue.success("a")
        queue.error("b")
        queue.warning("c")
        assert _messages(queue) == ["a", "b", "c"]

    def test_kind_helpers_set_kind(self) -> None:
        queue, _ = _queue()
        ids = {
            NotificationKind.SUCCESS: queue.success("s"),
            NotificationKind.ERROR: queue.error("e"),
            NotificationKind.WARNING: queue.warning("w"),
            NotificationKind.INFO: queue.info("i"),
        }
        for kind, nid in ids.items():
            notification = queue.get(nid)
            assert notification is not None
            assert notification.kind is kind

    def test_kind_helpers_apply_default_duration(self) -> None:
        queue, _ = _queue(default_duration_ms=2500)
        nid = queue.info("hello")
        notification = queue.get(nid)
        assert notification is not None
        assert notification.duration_ms == 2500

    def test_enqueue_accepts_kind_string(self) -> None:
        queue, _ = _queue()
        nid = queue.enqueue("warning", "careful")
        notification = queue.get(nid)
        assert notification is not None
        assert notification.kind is NotificationKind.WARNING

    def test_empty_message_rejected(self) -> None:
        queue, _ = _queue()
        with pytest.raises(ValueError):
            queue.info("")

    def test_options_are_kept(self) -> None:
        queue, clock = _queue()
        action = NotificationAction("Undo", lambda: None)
        nid = queue.error("Deleted", title="Notes", persistent=True, actions=[action])
        notification = queue.get(nid)
        assert notification == Notification(
            id=nid,
            kind=NotificationKind.ERROR,
            message="Deleted",
            created_at_ms=clock.now_ms(),
            title="Notes",
            duration_ms=DEFAULT_DURATION_MS,
            persistent=True,
            actions=(action,),
        )


# ---------------------------------------------------------------------------
# Auto-dismiss
# ---------------------------------------------------------------------------

class TestAutoDismiss:
    def test_timed_entry_removed_after_duration(self) -> None:
        queue, clock = _queue()
        nid = queue.success("Saved", duration_ms=3000)
        clock.advance(2999)
        assert nid in queue
        clock.advance(1)
        assert nid not in queue

    def test_persistent_entry_stays(self) -> None:
        queue, clock = _queue()
        nid = queue.warning("Offline", persistent=True)
        clock.advance(60_000)
        assert nid in queue

    @pytest.mark.parametrize("duration", [None, 0])
    def test_no_duration_stays(self, duration: float | None) -> None:
        queue, clock = _queue()
        nid = queue.info("sticky", duration_ms=duration)
        clock.advance(60_000)
        assert nid in queue
        assert clock.pending() == 0

    def test_manual_dismiss_cancels_timer(self) -> None:
        queue, clock = _queue()
        nid = queue.info("x", duration_ms=1000)
        assert queue.dismiss(nid) is True
        assert clock.pending() == 0

    def test_timer_after_dismiss_has_no_effect(self) -> None:
        queue, clock = _queue()
        first = queue.info("first", duration_ms=1000)
        second = queue.info("second", persistent=True)
        changes: list[int] = []
        queue.subscribe(lambda items: changes.append(len(items)))
        queue.dismiss(first)
        clock.advance(5000)
        assert list(queue.items)[0].id == second
        assert changes == [1]

    def test_removal_keeps_order_of_the_rest(self) -> None:
        queue, clock = _queue()
        queue.info("a", persistent=True)
        queue.info("b", duration_ms=100)
        queue.info("c", persistent=True)
        clock.advance(100)
        assert _messages(queue) == ["a", "c"]


# ---------------------------------------------------------------------------
# Dismissal
# ---------------------------------------------------------------------------

class TestDismiss:
    def test_dismiss_is_idempotent(self) -> None:
        queue, _ = _queue()
        nid = queue.info("x")
        assert queue.dismiss(nid) is True
        assert queue.dismiss(nid) is False

    def test_dismiss_unknown_id(self) -> None:
        queue, _ = _queue()
        assert queue.dismiss(999) is False

    def test_dismiss_all(self) -> None:
        queue, clock = _queue()
        queue.info("a")
        queue.error("b", persistent=True)
        queue.dismiss_all()
        assert len(queue) == 0
        assert clock.pending() == 0

    def test_ids_not_reused_after_dismiss(self) -> None:
        queue, _ = _queue()
        first = queue.info("a")
        queue.dismiss(first)
        assert queue.info("b") != first


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

class TestActions:
    def test_action_runs_and_dismisses(self) -> None:
        queue, _ = _queue()
        calls: list[str] = []
        nid = queue.error("Deleted", actions=[NotificationAction("Undo", lambda: calls.append("undo"))])
        assert queue.invoke_action(nid, 0) is True
        assert calls == ["undo"]
        assert nid not in queue

    def test_action_can_keep_entry(self) -> None:
        queue, _ = _queue()
        action = NotificationAction("Details", lambda: None, dismiss_on_invoke=False)
        nid = queue.info("Sync done", actions=[action])
        queue.invoke_action(nid, 0)
        assert nid in queue

    def test_action_on_dismissed_entry(self) -> None:
        queue, _ = _queue()
        calls: list[str] = []
        nid = queue.info("x", actions=[NotificationAction("Go", lambda: calls.append("go"))])
        queue.dismiss(nid)
        assert queue.invoke_action(nid, 0) is False
        assert calls == []

    def test_bad_action_index(self) -> None:
        queue, _ = _queue()
        nid = queue.info("x")
        with pytest.raises(IndexError):
            queue.invoke_action(nid, 0)


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

class TestProgress:
    def test_fraction_decreases_linearly(self) -> None:
        queue, clock = _queue()
        nid = queue.info("x", duration_ms=4000)
        assert queue.remaining_fraction(nid) == 1.0
        clock.advance(1000)
        assert queue.remaining_fraction(nid) == pytest.approx(0.75)
        clock.advance(2000)
        assert queue.remaining_fraction(nid) == pytest.approx(0.25)

    def test_fraction_none_for_untimed_or_unknown(self) -> None:
        queue, _ = _queue()
        nid = queue.info("x", persistent=True)
        assert queue.remaining_fraction(nid) is None
        assert queue.remaining_fraction(12345) is None

    def test_tick_removes_finished_entries(self) -> None:
        clock = _FrozenSchedulerClock()
        queue = NotificationQueue(clock)
        nid = queue.info("x", duration_ms=100)
        keep = queue.info("y", persistent=True)
        clock.now = 200
        assert queue.tick() == [nid]
        assert [n.id for n in queue.items] == [keep]


# ---------------------------------------------------------------------------
# Listeners
# ---------------------------------------------------------------------------

class TestSubscribe:
    def test_listener_sees_every_change(self) -> None:
        queue, clock = _queue()
        seen: list[list[str]] = []
        queue.subscribe(lambda items: seen.append([n.message for n in items]))
        queue.info("a", duration_ms=10)
        queue.info("b", persistent=True)
        clock.advance(10)
        assert seen == [["a"], ["a", "b"], ["b"]]

    def test_unsubscribe(self) -> None:
        queue, _ = _queue()
        seen: list[int] = []
        unsubscribe = queue.subscribe(lambda items: seen.append(len(items)))
        unsubscribe()
        queue.info("a")
        assert seen == []
