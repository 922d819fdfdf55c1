"""Tests for token persistence (infra/token_storage.py)."""

from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from notes_client.exceptions import StorageError
from notes_client.infra.token_storage import FileTokenStorage, MemoryTokenStorage


class TestFileTokenStorage:
    def test_missing_file_loads_none(self, tmp_path: Path) -> None:
        assert FileTokenStorage(tmp_path / "token").load() is None

    def test_save_then_load(self, tmp_path: Path) -> None:
        storage = FileTokenStorage(tmp_path / "nested" / "dir" / "token")
        storage.save("abc.def.ghi")
        assert storage.load() == "abc.def.ghi"

    def test_save_overwrites(self, tmp_path: Path) -> None:
        storage = FileTokenStorage(tmp_path / "token")
        storage.save("a-much-longer-first-token")
        storage.save("short")
        assert storage.load() == "short"

    def test_whitespace_is_stripped(self, tmp_path: Path) -> None:
        path = tmp_path / "token"
        path.write_text("  tok\n", encoding="utf-8")
        assert FileTokenStorage(path).load() == "tok"

    def test_blank_file_loads_none(self, tmp_path: Path) -> None:
        path = tmp_path / "token"
        path.write_text("\n", encoding="utf-8")
        assert FileTokenStorage(path).load() is None

    def test_clear_removes_file(self, tmp_path: Path) -> None:
        storage = FileTokenStorage(tmp_path / "token")
        storage.save("tok")
        storage.clear()
        assert not storage.path.exists()
        assert storage.load() is None

    def test_clear_missing_file_is_fine(self, tmp_path: Path) -> None:
        FileTokenStorage(tmp_path / "token").clear()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_is_user_private(self, tmp_path: Path) -> None:
        storage = FileTokenStorage(tmp_path / "token")
        storage.save("tok")
        assert stat.S_IMODE(os.stat(storage.path).st_mode) == 0o600

    def test_unwritable_location_raises_storage_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        storage = FileTokenStorage(blocker / "token")

        with pytest.raises(StorageError) as info:
            storage.save("tok")

        assert info.value.hint

    def test_unreadable_path_raises_storage_error(self, tmp_path: Path) -> None:
        # A directory where the file should be.
        path = tmp_path / "token"
        path.mkdir()
        with pytest.raises(StorageError):
            FileTokenStorage(path).load()


class TestMemoryTokenStorage:
    def test_round_trip(self) -> None:
        storage = MemoryTokenStorage()
        assert storage.load() is None
        storage.save("tok")
        assert storage.load() == "tok"
        storage.clear()
        assert storage.load() is None

    def test_initial_token(self) -> None:
        assert MemoryTokenStorage("seed").load() == "seed"
