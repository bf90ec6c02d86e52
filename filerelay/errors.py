"""
Error kinds raised by the relay core.

The HTTP layer maps each of these to a status code. ``InvalidCode``
deliberately carries no cause: unknown, expired and exhausted codes
all look the same to a client.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for all relay errors."""


class RateLimited(RelayError):
    """Admission denied for a client identity. Nothing was mutated."""

    def __init__(self, identity: str) -> None:
        super().__init__(f"Rate limit exceeded for {identity}")
        self.identity = identity


class InvalidCode(RelayError):
    """The code is unknown, expired or has no downloads left."""

    def __init__(self) -> None:
        super().__init__("Invalid code")


class PayloadTooLarge(RelayError):
    """Upload exceeds the configured size cap."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Upload of {size} bytes exceeds limit of {limit} bytes")
        self.size = size
        self.limit = limit


class StorageFailure(RelayError):
    """Writing, reading or deleting backing storage failed."""


class CodeSpaceExhausted(RelayError):
    """Every possible code is held by a live entry."""
