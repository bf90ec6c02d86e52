"""
Filesystem backing for uploads.

Layout: ``<root>/<code>/<filename>``. Each code directory holds exactly
one file. Only the sweeper deletes directories; ``save`` replaces the
contents of a leftover directory that no live entry owns.
"""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path
from typing import BinaryIO

from filerelay.errors import StorageFailure

logger = logging.getLogger(__name__)

_COPY_CHUNK = 1024 * 1024


def sanitize_filename(filename: str | None) -> str:
    """Keep only the basename's safe characters; never return an empty name."""
    name = Path(filename or "").name
    safe = "".join(c for c in name if c.isalnum() or c in " .-_()").strip()
    if not safe or set(safe) == {"."}:
        return "file"
    return safe


class FileStore:
    """One directory per access code, containing exactly one file."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageFailure(f"Cannot create upload directory {self._root}: {e}") from e

    @property
    def root(self) -> Path:
        return self._root

    def _dir_for(self, code: str) -> Path:
        if not code or not code.isdigit():
            raise StorageFailure(f"Malformed code {code!r}")
        return self._root / code

    def save(self, code: str, filename: str | None, source: BinaryIO) -> Path:
        """
        Copy ``source`` into the directory for ``code``.

        Returns:
            Path of the written file.

        Raises:
            StorageFailure: if the directory or file cannot be written.
        """
        code_dir = self._dir_for(code)
        dest = code_dir / sanitize_filename(filename)
        try:
            if code_dir.exists():
                logger.warning("Replacing stale upload directory for code %s", code)
                shutil.rmtree(code_dir)
            code_dir.mkdir(parents=True)
            with dest.open("wb") as out:
                shutil.copyfileobj(source, out, _COPY_CHUNK)
        except OSError as e:
            raise StorageFailure(f"Failed to save upload for code {code}: {e}") from e
        return dest

    def locate(self, code: str) -> Path:
        """Path to the single file stored for ``code``."""
        code_dir = self._dir_for(code)
        try:
            for child in sorted(code_dir.iterdir()):
                if child.is_file():
                    return child
        except OSError as e:
            raise StorageFailure(f"Failed to read upload for code {code}: {e}") from e
        raise StorageFailure(f"No file stored for code {code}")

    def delete(self, code: str) -> bool:
        """
        Remove the directory for ``code``.

        Returns False if there was nothing to delete.
        """
        code_dir = self._dir_for(code)
        if not code_dir.exists():
            return False
        try:
            shutil.rmtree(code_dir)
        except OSError as e:
            raise StorageFailure(f"Failed to delete upload for code {code}: {e}") from e
        return True

    def list_codes(self) -> dict[str, float]:
        """Map of code -> directory modification time for everything on disk."""
        found: dict[str, float] = {}
        for child in self._root.iterdir():
            if child.is_dir() and child.name.isdigit():
                try:
                    found[child.name] = child.stat().st_mtime
                except OSError:
                    # Deleted between iterdir() and stat()
                    continue
        return found

    def stale_codes(self, max_age: float, now: float | None = None) -> list[str]:
        """Codes whose directory was last modified more than ``max_age`` seconds ago."""
        now = time.time() if now is None else now
        return sorted(
            code for code, mtime in self.list_codes().items()
            if now - mtime > max_age
        )
