"""Ordered queue of transient, optionally self-dismissing notifications.

The queue owns every :class:`~notes_client.core.models.Notification`
from :meth:`NotificationQueue.enqueue` until it is removed, either by an
explicit :meth:`~NotificationQueue.dismiss`, by its auto-dismiss timer,
or by :meth:`~NotificationQueue.tick` noticing its progress hit zero.

Guarantees
----------
* Display order is insertion order; removal never reorders the rest.
* Removal is idempotent: a second dismiss, or a timer firing after a
  manual dismiss, has no effect.
* Pure local state: no I/O, and no failure modes of its own.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterable
from typing import Any

from notes_client.core.models import Notification, NotificationAction, NotificationKind
from notes_client.core.protocols import Clock, TimerHandle

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 5000

QueueListener = Callable[[tuple[Notification, ...]], None]


class NotificationQueue:
    """Insertion-ordered store of live notifications.

    Parameters
    ----------
    clock:
        Time source and scheduler for auto-dismiss timers.
    default_duration_ms:
        Duration applied by the :meth:`success`/:meth:`error`/
        :meth:`warning`/:meth:`info` helpers when the caller gives none.
    """

    def __init__(self, clock: Clock, *, default_duration_ms: float | None = DEFAULT_DURATION_MS) -> None:
        self._clock = clock
        self._default_duration_ms = default_duration_ms
        self._entries: dict[int, Notification] = {}
        self._timers: dict[int, TimerHandle] = {}
        self._ids = itertools.count(1)
        self._listeners: list[QueueListener] = []

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def items(self) -> tuple[Notification, ...]:
        """Live notifications, oldest first."""
        return tuple(self._entries.values())

    def get(self, notification_id: int) -> Notification | None:
        return self._entries.get(notification_id)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, notification_id: object) -> bool:
        return notification_id in self._entries

    def subscribe(self, listener: QueueListener) -> Callable[[], None]:
        """Call *listener* with :attr:`items` after every change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def enqueue(
        self,
        kind: NotificationKind | str,
        message: str,
        *,
        title: str | None = None,
        duration_ms: float | None = None,
        persistent: bool = False,
        actions: Iterable[NotificationAction] = (),
    ) -> int:
        """Append a notification at the tail and return its id.

        A timer is armed only when *duration_ms* is positive and
        *persistent* is false.
        """
        if not message:
            raise ValueError("A notification needs a message.")

        notification = Notification(
            id=next(self._ids),
            kind=NotificationKind(kind),
            message=message,
            created_at_ms=self._clock.now_ms(),
            title=title,
            duration_ms=duration_ms,
            persistent=persistent,
            actions=tuple(actions),
        )
        self._entries[notification.id] = notification

        if duration_ms is not None and notification.is_timed:
            nid = notification.id
            self._timers[nid] = self._clock.after(
                duration_ms, lambda: self._auto_dismiss(nid),
            )

        logger.debug("Queued %s notification #%d", notification.kind.value, notification.id)
        self._notify()
        return notification.id

    def dismiss(self, notification_id: int) -> bool:
        """Remove one notification.  Returns ``False`` if it was not live."""
        notification = self._entries.pop(notification_id, None)
        if notification is None:
            return False
        timer = self._timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()
        self._notify()
        return True

    def dismiss_all(self) -> None:
        """Remove every notification and cancel every pending timer."""
        if not self._entries:
            return
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._entries.clear()
        self._notify()

    def invoke_action(self, notification_id: int, index: int) -> bool:
        """Run action *index* of a live notification.

        Returns ``False`` when the notification is no longer live.

        Raises
        ------
        IndexError
            If the notification has no action at *index*.
        """
        notification = self._entries.get(notification_id)
        if notification is None:
            return False
        action = notification.actions[index]
        action.callback()
        if action.dismiss_on_invoke:
            self.dismiss(notification_id)
        return True

    # ------------------------------------------------------------------
    # Kind helpers
    # ------------------------------------------------------------------

    def success(self, message: str, **options: Any) -> int:
        return self._enqueue_kind(NotificationKind.SUCCESS, message, options)

    def error(self, message: str, **options: Any) -> int:
        return self._enqueue_kind(NotificationKind.ERROR, message, options)

    def warning(self, message: str, **options: Any) -> int:
        return self._enqueue_kind(NotificationKind.WARNING, message, options)

    def info(self, message: str, **options: Any) -> int:
        return self._enqueue_kind(NotificationKind.INFO, message, options)

    def _enqueue_kind(self, kind: NotificationKind, message: str, options: dict[str, Any]) -> int:
        options.setdefault("duration_ms", self._default_duration_ms)
        return self.enqueue(kind, message, **options)

    # ------------------------------------------------------------------
    # Auto-dismiss progress
    # ------------------------------------------------------------------

    def remaining_fraction(self, notification_id: int) -> float | None:
        """Share of the display time left, from 1.0 down to 0.0.

        ``None`` for unknown ids and for entries that never auto-dismiss.
        """
        notification = self._entries.get(notification_id)
        if notification is None or not notification.is_timed:
            return None
        duration = notification.duration_ms or 0.0
        elapsed = self._clock.now_ms() - notification.created_at_ms
        return max(0.0, min(1.0, 1.0 - elapsed / duration))

    def tick(self) -> list[int]:
        """Recompute progress and drop entries whose time ran out.

        Returns the ids removed by this tick.
        """
        finished = [
            nid for nid in list(self._entries)
            if self.remaining_fraction(nid) == 0.0
        ]
        return [nid for nid in finished if self.dismiss(nid)]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _auto_dismiss(self, notification_id: int) -> None:
        self._timers.pop(notification_id, None)
        if self.dismiss(notification_id):
            logger.debug("Auto-dismissed notification #%d", notification_id)

    def _notify(self) -> None:
        snapshot = self.items
        for listener in list(self._listeners):
            listener(snapshot)
