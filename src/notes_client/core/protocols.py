"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols, never on concrete
implementations, preserving the dependency inversion principle.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol

from notes_client.core.models import AuthPayload, UserProfile


class TimerHandle(Protocol):
    """Cancellation token returned by :meth:`Clock.after`.

    ``asyncio.TimerHandle`` satisfies this protocol structurally.
    """

    def cancel(self) -> None:
        """Prevent the callback from running.  Idempotent."""
        ...  # pragma: no cover

    def cancelled(self) -> bool:
        """Return ``True`` once :meth:`cancel` has been called."""
        ...  # pragma: no cover


class Clock(Protocol):
    """Source of wall-clock time and one-shot delayed callbacks."""

    def now_ms(self) -> float:
        """Milliseconds since the Unix epoch."""
        ...  # pragma: no cover

    def after(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run *callback* once, *delay_ms* milliseconds from now.

        A non-positive delay fires on the next scheduler turn, never
        synchronously inside this call.
        """
        ...  # pragma: no cover


class TokenStorage(Protocol):
    """Durable home of the single persisted session token."""

    def load(self) -> str | None:
        """Return the stored token, or ``None`` when nothing is stored."""
        ...  # pragma: no cover

    def save(self, token: str) -> None:
        """Replace the stored token.

        Raises
        ------
        StorageError
            When the backing store cannot be written.
        """
        ...  # pragma: no cover

    def clear(self) -> None:
        """Remove the stored token.  No-op when nothing is stored."""
        ...  # pragma: no cover


class IdentityService(Protocol):
    """Contract for the remote identity API.

    Implementations must map all transport and payload failures to
    :class:`~notes_client.exceptions.RemoteError` subclasses:

    * :class:`~notes_client.exceptions.AuthError` for 401/403
    * :class:`~notes_client.exceptions.NetworkError` when no response arrived
    * :class:`~notes_client.exceptions.ServerError` for everything else
    """

    def set_token(self, token: str) -> None:
        """Attach *token* as the bearer credential of later calls."""
        ...  # pragma: no cover

    def clear_token(self) -> None:
        """Stop sending a bearer credential."""
        ...  # pragma: no cover

    async def login(self, email: str, password: str) -> AuthPayload:
        ...  # pragma: no cover

    async def register(self, name: str, email: str, password: str) -> AuthPayload:
        ...  # pragma: no cover

    async def logout(self, token: str | None = None) -> None:
        """Invalidate *token*, or the attached token when omitted."""
        ...  # pragma: no cover

    async def get_current_user(self) -> UserProfile:
        ...  # pragma: no cover

    async def refresh_token(self) -> str:
        ...  # pragma: no cover

    async def update_profile(self, fields: Mapping[str, Any]) -> UserProfile:
        ...  # pragma: no cover

    async def change_password(self, current_password: str, new_password: str) -> None:
        ...  # pragma: no cover

    async def get_user_stats(self) -> dict[str, Any]:
        ...  # pragma: no cover


class NotificationSink(Protocol):
    """The slice of the notification queue the session store may use."""

    def warning(self, message: str, **options: Any) -> int:
        ...  # pragma: no cover

    def error(self, message: str, **options: Any) -> int:
        ...  # pragma: no cover
