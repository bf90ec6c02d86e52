"""
Data models for the relay storage layer.

Plain dataclasses. ``ResourceEntry`` is immutable: the store swaps in a
new instance on every decrement, so callers always hold a consistent
snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class ResourceEntry:
    """
    Metadata for one uploaded file, keyed by its access code.

    The file itself lives in the FileStore under the same code.
    """

    # Zero-padded decimal string, e.g. "0042"
    code: str

    # Unix timestamp (seconds) of the upload
    uploaded_at: float

    # Size of the uploaded file. Informational only.
    size_bytes: int

    # Downloads left before the code stops working
    remaining_downloads: int

    def age(self, now: float) -> float:
        return now - self.uploaded_at

    def is_expired(self, now: float, ttl: float) -> bool:
        """True once the entry is strictly older than ``ttl`` seconds."""
        return self.age(now) > ttl

    @property
    def is_exhausted(self) -> bool:
        return self.remaining_downloads <= 0

    def decremented(self) -> ResourceEntry:
        """Return a copy with one fewer download remaining."""
        if self.remaining_downloads <= 0:
            raise ValueError(f"Entry {self.code} has no downloads remaining")
        return replace(self, remaining_downloads=self.remaining_downloads - 1)


@dataclass
class SweepReport:
    """Outcome of one expiry sweep."""

    started_at: float
    finished_at: float = 0.0

    # Codes removed from the metadata store this pass
    evicted: list[str] = field(default_factory=list)

    # Codes whose backing directory was deleted (expired or orphaned)
    deleted: list[str] = field(default_factory=list)

    # code -> error message for deletions that failed
    failed: dict[str, str] = field(default_factory=dict)

    # Idle rate-limiter identities dropped
    limiters_evicted: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "evicted": list(self.evicted),
            "deleted": list(self.deleted),
            "failed": dict(self.failed),
            "limiters_evicted": self.limiters_evicted,
        }
