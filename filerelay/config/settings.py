"""
Central configuration for the file relay service.

All tunables live here. Nothing is hardcoded in module code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from functools import lru_cache


def _project_root() -> Path:
    """Walk up from this file to find the project root (where pyproject.toml lives)."""
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    # Fallback: two levels up from config/settings.py
    return Path(__file__).resolve().parent.parent.parent


@dataclass(frozen=True)
class RelaySettings:
    """Settings for uploaded resources and their access codes."""

    # Number of decimal digits in an access code (zero-padded)
    code_length: int = 4

    # Successful downloads allowed per upload
    max_downloads: int = 3

    # Seconds after upload before a resource becomes invalid
    resource_ttl: float = 8 * 60 * 60

    # Largest accepted upload (bytes)
    max_upload_bytes: int = 100 * 1024 * 1024

    # Random draws before falling back to a linear probe for a free code
    max_code_attempts: int = 1000


@dataclass(frozen=True)
class RateLimitSettings:
    """Settings for per-client admission control (token bucket)."""

    # Tokens held by a full bucket
    bucket_capacity: int = 20

    # Seconds needed to refill one token
    refill_interval: float = 1.0

    # Forget clients not seen for this many seconds
    eviction_ttl: float = 600.0


@dataclass(frozen=True)
class SweeperSettings:
    """Settings for the background expiry sweep."""

    # Seconds between sweeps
    interval: float = 3600.0

    # Also delete upload directories with no live entry once older than TTL
    purge_orphans: bool = True


@dataclass(frozen=True)
class ApiSettings:
    """Settings for the HTTP layer."""

    cors_origins: tuple[str, ...] = ("*",)
    cors_methods: tuple[str, ...] = ("GET", "POST", "OPTIONS")
    cors_headers: tuple[str, ...] = ("Content-Type", "Authorization")


@dataclass
class Settings:
    """
    Top-level settings container. Aggregates all subsystem settings.

    Usage:
        settings = get_settings()
        print(settings.relay.code_length)
        print(settings.rate_limit.bucket_capacity)
    """

    project_root: Path = field(default_factory=_project_root)
    relay: RelaySettings = field(default_factory=RelaySettings)
    rate_limit: RateLimitSettings = field(default_factory=RateLimitSettings)
    sweeper: SweeperSettings = field(default_factory=SweeperSettings)
    api: ApiSettings = field(default_factory=ApiSettings)

    @property
    def data_dir(self) -> Path:
        """Root directory for all runtime data (uploads, logs)."""
        return self.project_root / "data"

    @property
    def uploads_dir(self) -> Path:
        """One subdirectory per access code lives here."""
        return self.data_dir / "uploads"

    @property
    def logs_dir(self) -> Path:
        """Root directory for log files."""
        return self.data_dir / "logs"

    def ensure_dirs(self) -> None:
        """Create all required data directories if they don't exist."""
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Returns the singleton Settings instance.

    Call this instead of constructing Settings() directly so the entire
    application shares one config object.
    """
    settings = Settings()
    settings.ensure_dirs()
    return settings
