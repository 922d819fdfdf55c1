"""httpx backed implementation of :class:`~notes_client.core.protocols.IdentityService`.

This module is the **only** place in the codebase that imports
``httpx``.  Transport and HTTP failures are caught here and re-raised as
typed :class:`~notes_client.exceptions.RemoteError` subclasses, so nothing
raw escapes the infrastructure boundary.

A 401/403 answer to any request that carried a bearer token is also
reported, together with that token, to the registered auth-failure
listeners, so the session store can sign out no matter which endpoint
noticed the dead token.  A rejected logout is never reported.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from notes_client.config import ClientConfig
from notes_client.core.models import AuthPayload, UserProfile
from notes_client.exceptions import AuthError, NetworkError, ServerError

logger = logging.getLogger(__name__)

_NETWORK_MESSAGE = "Network error. Please check your connection."
_MAX_RETRY_WAIT_SECONDS = 8.0


class HttpIdentityService:
    """Client for the ``/auth`` endpoints of the notes API.

    Usage::

        async with HttpIdentityService("http://localhost:5000/api") as api:
            payload = await api.login("a@b.com", "secret")
            api.set_token(payload.token)
            user = await api.get_current_user()

    Parameters
    ----------
    base_url:
        API root; endpoint paths are appended to it.
    timeout_seconds:
        Per-request timeout.  Timeouts surface as :class:`NetworkError`.
    retry_attempts:
        Total attempts for idempotent GETs that fail without a response.
        Mutating calls are sent exactly once.
    retry_wait_seconds:
        Base of the exponential back-off between attempts.
    client:
        Pre-built ``httpx.AsyncClient`` (tests inject one with a
        ``MockTransport``).  Its lifecycle stays with the caller.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 30.0,
        retry_attempts: int = 3,
        retry_wait_seconds: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers={"Content-Type": "application/json"},
        )
        self._retry_attempts = max(1, retry_attempts)
        self._retry_wait_seconds = retry_wait_seconds
        self._token: str | None = None
        self._auth_failure_listeners: list[Callable[[str], None]] = []

    @classmethod
    def from_config(cls, config: ClientConfig) -> HttpIdentityService:
        return cls(
            config.api_url,
            timeout_seconds=config.timeout_seconds,
            retry_attempts=config.retry_attempts,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> HttpIdentityService:
        return self

    async def __aexit__(self, *_args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Bearer token
    # ------------------------------------------------------------------

    @property
    def token(self) -> str | None:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token

    def clear_token(self) -> None:
        self._token = None

    def add_auth_failure_listener(self, listener: Callable[[str], None]) -> Callable[[], None]:
        """Register *listener* for 401/403 on authenticated requests.

        The listener is called with the bearer token that was rejected.

        Returns a function that removes the listener.
        """
        self._auth_failure_listeners.append(listener)

        def remove() -> None:
            if listener in self._auth_failure_listeners:
                self._auth_failure_listeners.remove(listener)

        return remove

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> AuthPayload:
        data = await self._request(
            "POST", "/auth/login", body={"email": email, "password": password}, bearer=None,
        )
        return self._parse_auth_payload(data)

    async def register(self, name: str, email: str, password: str) -> AuthPayload:
        data = await self._request(
            "POST",
            "/auth/register",
            body={"name": name, "email": email, "password": password},
            bearer=None,
        )
        return self._parse_auth_payload(data)

    async def logout(self, token: str | None = None) -> None:
        await self._request(
            "POST", "/auth/logout", bearer=token or self._token, report_auth_failure=False,
        )

    async def get_current_user(self) -> UserProfile:
        data = await self._request("GET", "/auth/me", bearer=self._token, retry=True)
        return self._parse_user(data)

    async def refresh_token(self) -> str:
        data = await self._request("POST", "/auth/refresh", bearer=self._token)
        token = data.get("token")
        if not isinstance(token, str) or not token:
            raise ServerError("Refresh response did not contain a token.")
        return token

    async def update_profile(self, fields: Mapping[str, Any]) -> UserProfile:
        data = await self._request("PUT", "/auth/profile", body=dict(fields), bearer=self._token)
        return self._parse_user(data)

    async def change_password(self, current_password: str, new_password: str) -> None:
        await self._request(
            "PUT",
            "/auth/password",
            body={"currentPassword": current_password, "newPassword": new_password},
            bearer=self._token,
        )

    async def get_user_stats(self) -> dict[str, Any]:
        return await self._request("GET", "/auth/stats", bearer=self._token, retry=True)

    async def check_health(self) -> dict[str, Any]:
        """Ping ``GET /health``; used by diagnostics."""
        return await self._request("GET", "/health", bearer=None, retry=True)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        bearer: str | None,
        body: dict[str, Any] | None = None,
        retry: bool = False,
        report_auth_failure: bool = True,
    ) -> dict[str, Any]:
        if not retry:
            return await self._send(
                method, path, bearer=bearer, body=body, report_auth_failure=report_auth_failure,
            )

        result: dict[str, Any] = {}
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=self._retry_wait_seconds, max=_MAX_RETRY_WAIT_SECONDS),
            retry=retry_if_exception_type(NetworkError),
            reraise=True,
            before_sleep=lambda state: logger.warning(
                "Retrying %s %s after network error (attempt %d of %d)",
                method, path, state.attempt_number, self._retry_attempts,
            ),
        ):
            with attempt:
                result = await self._send(
                    method, path, bearer=bearer, body=body, report_auth_failure=report_auth_failure,
                )
        return result

    async def _send(
        self,
        method: str,
        path: str,
        *,
        bearer: str | None,
        body: dict[str, Any] | None,
        report_auth_failure: bool = True,
    ) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {bearer}"} if bearer else {}
        logger.debug("API request: %s %s", method, path)
        try:
            response = await self._client.request(method, path, json=body, headers=headers)
        except httpx.TransportError as exc:
            logger.warning("Network error on %s %s: %s", method, path, exc)
            raise NetworkError(
                _NETWORK_MESSAGE,
                hint="Check NOTES_API_URL and that the API server is running.",
            ) from exc
        logger.debug("API response: %s %s", response.status_code, path)

        if response.status_code in (401, 403):
            server_message = self._error_text(response)
            if bearer and report_auth_failure:
                self._notify_auth_failure(bearer)
            raise AuthError(
                server_message or ("Unauthorized" if response.status_code == 401 else "Forbidden"),
                status_code=response.status_code,
                server_message=server_message,
            )
        if not response.is_success:
            server_message = self._error_text(response)
            logger.warning("API error %s on %s %s", response.status_code, method, path)
            raise ServerError(
                server_message or f"Request failed with status {response.status_code}",
                status_code=response.status_code,
                server_message=server_message,
            )
        return self._json_object(response)

    def _notify_auth_failure(self, bearer: str) -> None:
        for listener in list(self._auth_failure_listeners):
            listener(bearer)

    # ------------------------------------------------------------------
    # Payload parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _json_object(response: httpx.Response) -> dict[str, Any]:
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise ServerError(
                "The API returned a response that is not JSON.",
                status_code=response.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise ServerError(
                "The API returned an unexpected data structure.",
                status_code=response.status_code,
            )
        return data

    @staticmethod
    def _error_text(response: httpx.Response) -> str | None:
        """Pull ``error`` (or ``message``) out of an error body."""
        try:
            data = response.json()
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        for key in ("error", "message"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
        return None

    @staticmethod
    def _parse_user(data: dict[str, Any]) -> UserProfile:
        user = data.get("user")
        if not isinstance(user, dict):
            raise ServerError("The API response did not contain a user.")
        return UserProfile.from_payload(user)

    @classmethod
    def _parse_auth_payload(cls, data: dict[str, Any]) -> AuthPayload:
        token = data.get("token")
        if not isinstance(token, str) or not token:
            raise ServerError("The API response did not contain a token.")
        return AuthPayload(token=token, user=cls._parse_user(data))
