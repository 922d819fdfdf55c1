"""Custom exception hierarchy for notes-client.

All exceptions that cross layer boundaries must inherit from
:class:`NotesClientError`.  Raw third-party exceptions (e.g. from httpx
or PyJWT) must NEVER propagate beyond the infrastructure or codec layer.
They must be caught and re-raised as a typed subclass defined here.

Hierarchy
---------
NotesClientError
├── ValidationError
├── RemoteError
│   ├── AuthError
│   ├── NetworkError
│   └── ServerError
├── TokenDecodeError
├── StorageError
├── ConfigError
└── EnvironmentError
"""

from __future__ import annotations


class NotesClientError(Exception):
    """Base exception for all notes-client errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Local validation ------------------------------------------------------

class ValidationError(NotesClientError):
    """Raised when form input fails pre-flight checks.

    Never reaches the session store: callers validate first and only
    submit input that passed.
    """

    def __init__(
        self,
        message: str,
        *,
        field_errors: dict[str, str] | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.field_errors: dict[str, str] = dict(field_errors or {})
        """Field name → human-readable problem, in check order."""


# --- Remote calls ----------------------------------------------------------

class RemoteError(NotesClientError):
    """Base for failures of a call to the identity API."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        server_message: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code: int | None = status_code
        self.server_message: str | None = server_message
        """The ``error`` text from the response body, when there was one."""


class AuthError(RemoteError):
    """Raised on HTTP 401/403: the session is no longer accepted."""


class NetworkError(RemoteError):
    """Raised when the request never produced a response."""


class ServerError(RemoteError):
    """Raised for any other non-2xx response or an unusable payload."""


# --- Tokens ----------------------------------------------------------------

class TokenDecodeError(NotesClientError):
    """Raised when a bearer token's expiry claim cannot be read."""


# --- Local environment -----------------------------------------------------

class StorageError(NotesClientError):
    """Raised when the persisted token cannot be read or written."""


class ConfigError(NotesClientError):
    """Raised when the client configuration is invalid."""


class EnvironmentError(NotesClientError):
    """Raised when a required runtime dependency is not available."""
