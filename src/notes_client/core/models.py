"""Domain models for notes-client.

Value objects are **frozen** dataclasses with no behaviour beyond data
access and a few derived properties.  They carry zero I/O and zero
dependencies on external packages.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class SessionStatus(str, enum.Enum):
    """States of the session state machine."""

    UNAUTHENTICATED = "unauthenticated"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Profile record of the signed-in user."""

    id: str
    """Server-side user identifier."""

    name: str
    """Display name."""

    email: str
    """Account email address."""

    extra: Mapping[str, Any] = field(default_factory=dict)
    """Every other field the server sent, untouched."""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> UserProfile:
        """Build a profile from a raw ``user`` object."""
        raw_id = payload.get("id", payload.get("_id", ""))
        known = {"id", "_id", "name", "email"}
        return cls(
            id=str(raw_id),
            name=str(payload.get("name") or ""),
            email=str(payload.get("email") or ""),
            extra={k: v for k, v in payload.items() if k not in known},
        )

    def merged(self, other: UserProfile) -> UserProfile:
        """Return this profile patched with the non-empty fields of *other*."""
        return UserProfile(
            id=other.id or self.id,
            name=other.name or self.name,
            email=other.email or self.email,
            extra={**self.extra, **other.extra},
        )


@dataclass(frozen=True, slots=True)
class SessionState:
    """Immutable snapshot of the session.

    ``user`` and ``token`` are either both present or both ``None``.
    """

    status: SessionStatus = SessionStatus.UNAUTHENTICATED
    user: UserProfile | None = None
    token: str | None = None
    error: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED

    @property
    def is_loading(self) -> bool:
        return self.status is SessionStatus.LOADING


@dataclass(frozen=True, slots=True)
class AuthPayload:
    """Successful response of a login or registration call."""

    token: str
    user: UserProfile


@dataclass(frozen=True, slots=True)
class AuthResult:
    """Structured outcome of a session command.

    The session store returns this instead of raising.
    """

    success: bool
    user: UserProfile | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

class NotificationKind(str, enum.Enum):
    """Severity of a notification; drives presentation only."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class NotificationAction:
    """A labelled button attached to a notification."""

    label: str
    callback: Callable[[], object]
    dismiss_on_invoke: bool = True


@dataclass(frozen=True, slots=True)
class Notification:
    """A transient message owned by the notification queue."""

    id: int
    kind: NotificationKind
    message: str
    created_at_ms: float
    title: str | None = None
    duration_ms: float | None = None
    """Auto-dismiss delay; ``None`` means the entry stays until dismissed."""

    persistent: bool = False
    actions: tuple[NotificationAction, ...] = ()

    @property
    def is_timed(self) -> bool:
        """True when the entry will auto-dismiss."""
        return (
            not self.persistent
            and self.duration_ms is not None
            and self.duration_ms > 0
        )
