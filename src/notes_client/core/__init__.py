"""Core / service layer: the session state machine and notification queue.

Rules
-----
* No ``print()`` calls.
* No filesystem or network I/O.
* No imports from ``cli`` or ``infra``.
* Time comes only from an injected :class:`~notes_client.core.protocols.Clock`.
"""

from notes_client.core.clock import ManualClock
from notes_client.core.models import (
    AuthPayload,
    AuthResult,
    Notification,
    NotificationAction,
    NotificationKind,
    SessionState,
    SessionStatus,
    UserProfile,
)
from notes_client.core.notification_queue import NotificationQueue
from notes_client.core.protocols import Clock, IdentityService, NotificationSink, TimerHandle, TokenStorage
from notes_client.core.session_store import SessionStore

__all__: list[str] = [
    "AuthPayload",
    "AuthResult",
    "Clock",
    "IdentityService",
    "ManualClock",
    "Notification",
    "NotificationAction",
    "NotificationKind",
    "NotificationQueue",
    "NotificationSink",
    "SessionState",
    "SessionStatus",
    "SessionStore",
    "TimerHandle",
    "TokenStorage",
    "UserProfile",
]
