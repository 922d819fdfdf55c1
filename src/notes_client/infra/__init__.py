"""Infrastructure layer: external system integration.

This layer wraps all interaction with the identity API, the event loop
and the filesystem.  Every raw third-party exception must be caught
here and re-raised as a
:class:`~notes_client.exceptions.NotesClientError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from notes_client.infra.asyncio_clock import AsyncioClock
from notes_client.infra.http_identity_service import HttpIdentityService
from notes_client.infra.token_storage import FileTokenStorage, MemoryTokenStorage

__all__: list[str] = [
    "AsyncioClock",
    "FileTokenStorage",
    "HttpIdentityService",
    "MemoryTokenStorage",
]
