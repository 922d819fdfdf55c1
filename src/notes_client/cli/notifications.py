"""Rich rendering of the notification queue.

Each render ticks the queue once, so entries whose time ran out are
dropped, then reads :attr:`items` and :meth:`remaining_fraction`.
"""

from __future__ import annotations

from rich.markup import escape

from notes_client.cli.console import console
from notes_client.core.models import Notification, NotificationKind
from notes_client.core.notification_queue import NotificationQueue

_KIND_STYLES: dict[NotificationKind, tuple[str, str]] = {
    NotificationKind.SUCCESS: ("green", "✔"),
    NotificationKind.ERROR: ("red", "✖"),
    NotificationKind.WARNING: ("yellow", "!"),
    NotificationKind.INFO: ("blue", "i"),
}

_BAR_WIDTH = 20


def format_notification(notification: Notification, remaining: float | None) -> str:
    """Return Rich markup for one notification line."""
    colour, icon = _KIND_STYLES[notification.kind]
    text = f"[bold {colour}]{icon}[/bold {colour}] "
    if notification.title:
        text += f"[bold]{escape(notification.title)}:[/bold] "
    text += escape(notification.message)
    if remaining is not None:
        filled = round(remaining * _BAR_WIDTH)
        text += f"  [{colour}]{'━' * filled}[/{colour}][dim]{'─' * (_BAR_WIDTH - filled)}[/dim]"
    if notification.actions:
        labels = " ".join(f"[reverse] {escape(action.label)} [/reverse]" for action in notification.actions)
        text += f"\n   {labels}"
    return text


def render_notifications(queue: NotificationQueue) -> None:
    """Print every live notification, oldest first."""
    queue.tick()
    for notification in queue.items:
        console.print(format_notification(notification, queue.remaining_fraction(notification.id)))
