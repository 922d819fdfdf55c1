"""Session lifecycle manager: the authentication state machine.

This is the central service consumed by the UI layer.  It depends on an
:class:`~notes_client.core.protocols.IdentityService`, a
:class:`~notes_client.core.protocols.TokenStorage` and a
:class:`~notes_client.core.protocols.Clock`, all injected at
construction time.

States and transitions
----------------------
::

    UNAUTHENTICATED ──login/register/bootstrap──▶ LOADING
    LOADING ──success──▶ AUTHENTICATED ──logout/expiry/401──▶ UNAUTHENTICATED
    LOADING ──failure──▶ FAILED

Guarantees
----------
* Commands never raise: remote and decode failures come back as an
  :class:`~notes_client.core.models.AuthResult`.
* ``user`` and ``token`` are set together or not at all.
* At most one expiry timer is armed; arming a new one cancels the old.
* The persisted token is written only on login, register and refresh
  success, and cleared only when a session ends.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any

from notes_client.core.models import AuthPayload, AuthResult, SessionState, SessionStatus, UserProfile
from notes_client.core.protocols import Clock, IdentityService, NotificationSink, TimerHandle, TokenStorage
from notes_client.core.token_codec import decode_expiry, is_expired
from notes_client.exceptions import AuthError, NotesClientError, RemoteError, StorageError, TokenDecodeError

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."
SESSION_REJECTED_MESSAGE = "Your session is no longer valid. Please log in again."

SessionListener = Callable[[SessionState], None]


class SessionStore:
    """Single owner of the client's authentication state.

    Parameters
    ----------
    identity:
        Remote identity API.
    storage:
        Durable home of the session token.
    clock:
        Time source and scheduler for the expiry timer.
    notifications:
        Optional sink that receives a warning when a session ends on its
        own (expiry or rejection by the server).
    """

    def __init__(
        self,
        identity: IdentityService,
        storage: TokenStorage,
        clock: Clock,
        *,
        notifications: NotificationSink | None = None,
    ) -> None:
        self._identity = identity
        self._storage = storage
        self._clock = clock
        self._notifications = notifications
        self._state = SessionState()
        self._expiry_timer: TimerHandle | None = None
        self._listeners: list[SessionListener] = []
        self._background: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call *listener* with the new state after every transition.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Session commands
    # ------------------------------------------------------------------

    async def bootstrap(self) -> SessionState:
        """Restore the session from the persisted token, if any."""
        token = self._load_token()
        if not token:
            self._set_state(SessionState())
            return self._state

        self._set_state(replace(self._state, status=SessionStatus.LOADING, error=None))
        self._identity.set_token(token)
        try:
            user = await self._identity.get_current_user()
        except Exception as exc:  # noqa: BLE001
            message = self._failure_message(exc, "Failed to load user")
            logger.warning("Could not restore session: %s", message)
            self._teardown()
            self._set_state(SessionState(status=SessionStatus.FAILED, error=message))
            self._set_state(SessionState(status=SessionStatus.UNAUTHENTICATED, error=message))
            return self._state

        self._enter_authenticated(user, token)
        return self._state

    async def login(self, email: str, password: str) -> AuthResult:
        """Sign in with credentials."""
        return await self._authenticate(
            lambda: self._identity.login(email, password),
            "Login failed",
        )

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        """Create an account and sign in to it."""
        return await self._authenticate(
            lambda: self._identity.register(name, email, password),
            "Registration failed",
        )

    async def logout(self) -> None:
        """End the session.

        The remote invalidation is best-effort; the local session is
        always cleared.
        """
        if self._state.token:
            try:
                await self._identity.logout()
            except Exception as exc:  # noqa: BLE001
                logger.warning("Logout request failed: %s", exc)
        self._end_session()

    async def refresh(self) -> AuthResult:
        """Exchange the current token for a fresh one.

        Any failure ends the session.
        """
        user = self._state.user
        if not self._state.token or user is None:
            return AuthResult(success=False, error="Not authenticated")

        try:
            token = await self._identity.refresh_token()
        except Exception as exc:  # noqa: BLE001
            message = self._failure_message(exc, "Failed to refresh session")
            logger.info("Token refresh failed, signing out: %s", message)
            await self.logout()
            return AuthResult(success=False, error=message)

        self._save_token(token)
        self._identity.set_token(token)
        return self._enter_authenticated(user, token)

    async def update_profile(self, **fields: Any) -> AuthResult:
        """Patch the signed-in user's profile."""
        try:
            updated = await self._identity.update_profile(fields)
        except Exception as exc:  # noqa: BLE001
            return self._command_failure(exc, "Failed to update profile")

        current = self._state.user
        user = current.merged(updated) if current is not None else updated
        if self._state.token is not None:
            self._set_state(replace(self._state, user=user, error=None))
        return AuthResult(success=True, user=user)

    async def change_password(self, current_password: str, new_password: str) -> AuthResult:
        """Change the account password.  No effect on session state."""
        try:
            await self._identity.change_password(current_password, new_password)
        except Exception as exc:  # noqa: BLE001
            return self._command_failure(exc, "Failed to change password")
        return AuthResult(success=True, user=self._state.user)

    async def get_user_stats(self) -> dict[str, Any] | None:
        """Fetch account statistics, or ``None`` if they are unavailable."""
        try:
            return await self._identity.get_user_stats()
        except AuthError:
            self.handle_auth_failure()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not load user stats: %s", exc)
        return None

    async def settle(self) -> None:
        """Wait for remote logouts started in the background by a forced logout."""
        if self._background:
            await asyncio.gather(*self._background)

    def is_token_expired(self) -> bool:
        """True when no token is held or the held one is past its expiry."""
        return is_expired(self._state.token, self._clock.now_ms())

    def clear_error(self) -> None:
        if self._state.error is not None:
            self._set_state(replace(self._state, error=None))

    def handle_auth_failure(self, token: str | None = None) -> None:
        """React to a 401/403 from any authenticated call.

        The server no longer accepts the token, so the session is torn
        down locally without another remote round-trip.  *token* is the
        bearer that was rejected; a rejection of any token other than the
        current one leaves the session alone.
        """
        if self._state.token is None:
            return
        if token is not None and token != self._state.token:
            logger.debug("Ignoring rejection of a token that is no longer current")
            return
        logger.info("Server rejected the session token; signing out")
        self._end_session()
        if self._notifications is not None:
            self._notifications.warning(SESSION_REJECTED_MESSAGE)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _authenticate(
        self,
        call: Callable[[], Awaitable[AuthPayload]],
        default_error: str,
    ) -> AuthResult:
        self._set_state(replace(self._state, status=SessionStatus.LOADING, error=None))
        try:
            payload = await call()
        except Exception as exc:  # noqa: BLE001
            message = self._failure_message(exc, default_error)
            self._disarm_expiry()
            self._identity.clear_token()
            self._set_state(SessionState(status=SessionStatus.FAILED, error=message))
            return AuthResult(success=False, error=message)

        self._save_token(payload.token)
        self._identity.set_token(payload.token)
        return self._enter_authenticated(payload.user, payload.token)

    def _enter_authenticated(self, user: UserProfile, token: str) -> AuthResult:
        # Expiry is checked first so a dead token is never published.
        self._disarm_expiry()
        remaining = self._remaining_ms(token)
        if remaining <= 0:
            self._expire(token)
            return AuthResult(success=False, error=SESSION_EXPIRED_MESSAGE)

        self._set_state(SessionState(status=SessionStatus.AUTHENTICATED, user=user, token=token))
        self._expiry_timer = self._clock.after(remaining, self._on_expiry_timer)
        logger.debug("Session expires in %.0f ms", remaining)
        return AuthResult(success=True, user=user)

    def _remaining_ms(self, token: str) -> float:
        try:
            expiry_ms = decode_expiry(token)
        except TokenDecodeError as exc:
            logger.warning("Unreadable session token, treating as expired: %s", exc)
            return 0.0
        return expiry_ms - self._clock.now_ms()

    def _disarm_expiry(self) -> None:
        if self._expiry_timer is not None:
            self._expiry_timer.cancel()
            self._expiry_timer = None

    def _on_expiry_timer(self) -> None:
        self._expiry_timer = None
        token = self._state.token
        if token is not None:
            self._expire(token)

    def _expire(self, token: str) -> None:
        """Force a logout because *token* is past (or lacks) its expiry."""
        logger.info("Session token expired; signing out")
        self._spawn_remote_logout(token)
        self._end_session()
        if self._notifications is not None:
            self._notifications.warning(SESSION_EXPIRED_MESSAGE)

    def _teardown(self) -> None:
        self._disarm_expiry()
        self._clear_token()
        self._identity.clear_token()

    def _end_session(self) -> None:
        self._teardown()
        self._set_state(SessionState(status=SessionStatus.UNAUTHENTICATED))

    def _spawn_remote_logout(self, token: str) -> None:
        """Start a best-effort logout call for the token being dropped."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; skipping remote logout")
            return
        # The shared bearer header is gone by the time the task runs.
        task = loop.create_task(self._remote_logout(token))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _remote_logout(self, token: str) -> None:
        try:
            await self._identity.logout(token)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Logout request failed: %s", exc)

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        logger.debug("Session state -> %s", state.status.value)
        for listener in list(self._listeners):
            listener(state)

    # ------------------------------------------------------------------
    # Failure mapping
    # ------------------------------------------------------------------

    def _command_failure(self, exc: Exception, default_error: str) -> AuthResult:
        message = self._failure_message(exc, default_error)
        if isinstance(exc, AuthError):
            self.handle_auth_failure()
        return AuthResult(success=False, error=message)

    @staticmethod
    def _failure_message(exc: Exception, default_error: str) -> str:
        if isinstance(exc, RemoteError):
            return exc.server_message or default_error
        if isinstance(exc, NotesClientError):
            return str(exc) or default_error
        logger.exception("Unexpected identity service failure", exc_info=exc)
        return default_error

    # ------------------------------------------------------------------
    # Persistence (single writer)
    # ------------------------------------------------------------------

    def _load_token(self) -> str | None:
        try:
            return self._storage.load()
        except StorageError as exc:
            logger.warning("Could not read the stored token: %s", exc)
            return None

    def _save_token(self, token: str) -> None:
        try:
            self._storage.save(token)
        except StorageError as exc:
            logger.warning("Could not persist the session token: %s", exc)

    def _clear_token(self) -> None:
        try:
            self._storage.clear()
        except StorageError as exc:
            logger.warning("Could not clear the stored token: %s", exc)
