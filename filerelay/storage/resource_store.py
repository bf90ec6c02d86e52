"""
In-memory metadata store for uploaded resources.

Maps access code -> ResourceEntry. The map itself is guarded by one
short-lived lock (insert, lookup, evict); each entry additionally has its
own lock so the check-and-decrement in ``consume`` is atomic per code
without serializing downloads of unrelated codes.

A code stays reserved until its upload directory is gone: expired and
exhausted entries hold it until the sweeper evicts them, and evicted
(retired) entries hold it until the sweeper has deleted the directory
and called ``release``.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from filerelay.config.settings import RelaySettings, get_settings
from filerelay.errors import CodeSpaceExhausted, InvalidCode, PayloadTooLarge
from filerelay.storage.models import ResourceEntry

logger = logging.getLogger(__name__)


def format_code(value: int, width: int) -> str:
    """Render ``value`` as a zero-padded decimal string of ``width`` digits."""
    return f"{value:0{width}d}"


@dataclass
class _Slot:
    """One map cell: the current entry plus the lock serializing its mutation."""

    entry: ResourceEntry
    lock: threading.Lock = field(default_factory=threading.Lock)

    # Set once the slot has been dropped from the map; late consumers must fail
    removed: bool = False


class ResourceStore:
    """Concurrent code -> ResourceEntry map with code generation and quota accounting."""

    def __init__(
        self,
        settings: Optional[RelaySettings] = None,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._settings = settings or get_settings().relay
        self._clock = clock
        self._rng = rng or random.SystemRandom()
        self._slots: dict[str, _Slot] = {}
        self._lock = threading.Lock()

    @property
    def settings(self) -> RelaySettings:
        return self._settings

    @property
    def code_space(self) -> int:
        """Number of distinct codes of the configured width."""
        return 10 ** self._settings.code_length

    # ----- Code generation -----

    def generate_code(self) -> str:
        """Return a code not held by any entry currently in the store."""
        with self._lock:
            return self._generate_code_locked()

    def _generate_code_locked(self) -> str:
        space = self.code_space
        width = self._settings.code_length

        if len(self._slots) >= space:
            raise CodeSpaceExhausted(f"All {space} codes are in use")

        for _ in range(self._settings.max_code_attempts):
            code = format_code(self._rng.randrange(space), width)
            if code not in self._slots:
                return code

        # Crowded space: probe linearly from a random offset
        start = self._rng.randrange(space)
        for i in range(space):
            code = format_code((start + i) % space, width)
            if code not in self._slots:
                logger.warning("Code generation fell back to linear probe (%d live)", len(self._slots))
                return code

        raise CodeSpaceExhausted(f"All {space} codes are in use")

    # ----- Mutations -----

    def create(self, size_bytes: int) -> ResourceEntry:
        """
        Reserve a fresh code and register a new entry with a full download quota.

        Generation and insertion happen under the same lock, so concurrent
        uploads never share a code.

        Raises:
            PayloadTooLarge: if size_bytes exceeds the configured cap; no code is reserved.
            CodeSpaceExhausted: if every code is taken.
        """
        if size_bytes < 0:
            raise ValueError(f"size_bytes must be non-negative, got {size_bytes}")
        if size_bytes > self._settings.max_upload_bytes:
            raise PayloadTooLarge(size_bytes, self._settings.max_upload_bytes)

        now = self._clock()
        with self._lock:
            code = self._generate_code_locked()
            entry = ResourceEntry(
                code=code,
                uploaded_at=now,
                size_bytes=size_bytes,
                remaining_downloads=self._settings.max_downloads,
            )
            self._slots[code] = _Slot(entry=entry)

        logger.debug("Created entry %s (%d bytes)", code, size_bytes)
        return entry

    def consume(self, code: str) -> ResourceEntry:
        """
        Spend one download of ``code`` and return the updated snapshot.

        Raises:
            InvalidCode: if the code is unknown, expired or exhausted.
        """
        with self._lock:
            slot = self._slots.get(code)
        if slot is None:
            raise InvalidCode()

        with slot.lock:
            entry = slot.entry
            if (
                slot.removed
                or entry.is_exhausted
                or entry.is_expired(self._clock(), self._settings.resource_ttl)
            ):
                raise InvalidCode()
            slot.entry = entry.decremented()
            return slot.entry

    def discard(self, code: str) -> bool:
        """Drop an entry immediately (used when its upload could not be stored)."""
        with self._lock:
            slot = self._slots.pop(code, None)
            if slot is None:
                return False
            with slot.lock:
                slot.removed = True
        return True

    def evict_expired(self) -> list[str]:
        """
        Retire every entry older than the TTL and return their codes.

        Retired entries can no longer be consumed but keep their code
        reserved until ``release`` is called, once their directory is gone.
        """
        now = self._clock()
        ttl = self._settings.resource_ttl
        with self._lock:
            expired = [
                code for code, slot in self._slots.items()
                if not slot.removed and slot.entry.is_expired(now, ttl)
            ]
            for code in expired:
                slot = self._slots[code]
                with slot.lock:
                    slot.removed = True
        if expired:
            logger.info("Evicted %d expired entries", len(expired))
        return expired

    def reserve(self, code: str) -> bool:
        """
        Hold a code that has no entry so its leftover directory can be deleted.

        Returns False if the code is already taken. The reservation is
        retired from the start and is freed by ``release``.
        """
        now = self._clock()
        with self._lock:
            if code in self._slots:
                return False
            placeholder = ResourceEntry(code=code, uploaded_at=now, size_bytes=0, remaining_downloads=0)
            self._slots[code] = _Slot(entry=placeholder, removed=True)
        return True

    def release(self, code: str) -> bool:
        """Free a retired code for reuse. Live entries are never released."""
        with self._lock:
            slot = self._slots.get(code)
            if slot is None or not slot.removed:
                return False
            del self._slots[code]
        return True

    # ----- Queries -----

    def get(self, code: str) -> Optional[ResourceEntry]:
        """Snapshot of the live entry for ``code`` without spending a download."""
        with self._lock:
            slot = self._slots.get(code)
        if slot is None or slot.removed:
            return None
        return slot.entry

    def codes(self) -> list[str]:
        """Codes of live entries (retired ones excluded)."""
        with self._lock:
            return [code for code, slot in self._slots.items() if not slot.removed]

    def retired_codes(self) -> list[str]:
        """Codes still reserved while their directory awaits deletion."""
        with self._lock:
            return [code for code, slot in self._slots.items() if slot.removed]

    def __contains__(self, code: object) -> bool:
        with self._lock:
            slot = self._slots.get(code)
            return slot is not None and not slot.removed

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for slot in self._slots.values() if not slot.removed)
