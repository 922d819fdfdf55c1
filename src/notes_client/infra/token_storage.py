"""Persistence of the single session token.

Rules
-----
* One durable string, nothing else.
* Raw ``OSError`` never escapes; it is re-raised as
  :class:`~notes_client.exceptions.StorageError`.
"""

from __future__ import annotations

import os
from pathlib import Path

from notes_client.exceptions import StorageError


class FileTokenStorage:
    """Keeps the token in a user-private file.

    Usage::

        storage = FileTokenStorage(Path("~/.notes_client/token").expanduser())
        storage.save(token)
        storage.load()   # -> token
        storage.clear()
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        try:
            content = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Cannot read token file {self._path}: {exc}") from exc
        token = content.strip()
        return token or None

    def save(self, token: str) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(token)
        except OSError as exc:
            raise StorageError(
                f"Cannot write token file {self._path}: {exc}",
                hint="Check permissions or set NOTES_TOKEN_PATH.",
            ) from exc

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot remove token file {self._path}: {exc}") from exc


class MemoryTokenStorage:
    """In-process token storage; nothing survives the process."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def load(self) -> str | None:
        return self._token

    def save(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None
