"""Tests for the filesystem upload store."""

from __future__ import annotations

import io
import os
import time
from pathlib import Path

import pytest

from filerelay.errors import StorageFailure
from filerelay.storage.file_store import FileStore, sanitize_filename


class TestSanitizeFilename:
    def test_keeps_plain_name(self):
        assert sanitize_filename("report (final).pdf") == "report (final).pdf"

    def test_strips_directories(self):
        assert sanitize_filename("../../etc/passwd") == "passwd"

    def test_drops_unsafe_characters(self):
        assert sanitize_filename("a<b>c|d.txt") == "abcd.txt"

    def test_keeps_unicode_letters(self):
        assert sanitize_filename("照片.png") == "照片.png"

    @pytest.mark.parametrize("name", [None, "", "...", "///", "<>"])
    def test_fallback_name(self, name):
        assert sanitize_filename(name) == "file"


class TestSaveAndLocate:
    def test_round_trip(self, file_store: FileStore):
        path = file_store.save("0123", "hello.txt", io.BytesIO(b"0123456789"))

        assert path == file_store.root / "0123" / "hello.txt"
        located = file_store.locate("0123")
        assert located == path
        assert located.read_bytes() == b"0123456789"

    def test_one_file_per_code(self, file_store: FileStore):
        file_store.save("0001", "a.txt", io.BytesIO(b"a"))
        file_store.save("0002", "b.txt", io.BytesIO(b"b"))
        assert file_store.locate("0001").read_bytes() == b"a"
        assert file_store.locate("0002").read_bytes() == b"b"

    def test_save_replaces_leftover_directory(self, file_store: FileStore):
        file_store.save("0005", "old.txt", io.BytesIO(b"old"))
        file_store.save("0005", "new.txt", io.BytesIO(b"new"))

        files = list((file_store.root / "0005").iterdir())
        assert [f.name for f in files] == ["new.txt"]

    def test_locate_missing_code(self, file_store: FileStore):
        with pytest.raises(StorageFailure):
            file_store.locate("9999")

    def test_locate_empty_directory(self, file_store: FileStore):
        (file_store.root / "0007").mkdir()
        with pytest.raises(StorageFailure):
            file_store.locate("0007")

    @pytest.mark.parametrize("code", ["", "../x", "12a4"])
    def test_malformed_code_rejected(self, file_store: FileStore, code: str):
        with pytest.raises(StorageFailure):
            file_store.save(code, "x.txt", io.BytesIO(b"x"))


class TestDelete:
    def test_delete_existing(self, file_store: FileStore):
        file_store.save("0010", "x.txt", io.BytesIO(b"x"))
        assert file_store.delete("0010") is True
        assert not (file_store.root / "0010").exists()

    def test_delete_missing_is_noop(self, file_store: FileStore):
        assert file_store.delete("0010") is False


class TestListing:
    def test_list_codes_ignores_other_entries(self, file_store: FileStore):
        file_store.save("0001", "x.txt", io.BytesIO(b"x"))
        (file_store.root / "notes").mkdir()
        (file_store.root / "stray.txt").write_text("x")

        assert list(file_store.list_codes()) == ["0001"]

    def test_stale_codes_by_mtime(self, file_store: FileStore):
        file_store.save("0001", "x.txt", io.BytesIO(b"x"))
        file_store.save("0002", "y.txt", io.BytesIO(b"y"))
        old = time.time() - 10_000
        os.utime(file_store.root / "0001", (old, old))

        assert file_store.stale_codes(max_age=5_000) == ["0001"]

    def test_creates_root(self, tmp_path: Path):
        root = tmp_path / "a" / "b"
        FileStore(root)
        assert root.is_dir()
