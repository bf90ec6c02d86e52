"""In-memory per-client token bucket rate limiting with idle eviction."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from filerelay.config.settings import RateLimitSettings, get_settings
from filerelay.errors import RateLimited


class TokenBucketLimiter:
    """
    A single token bucket for one client identity.

    Tokens are whole numbers refilled lazily on access: every full
    ``refill_interval`` elapsed since the last admitted request adds one
    token, up to ``capacity``. Refill and decrement share one lock.
    """

    def __init__(
        self,
        capacity: int,
        refill_interval: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        if refill_interval <= 0:
            raise ValueError(f"refill_interval must be positive, got {refill_interval}")
        self._capacity = capacity
        self._refill_interval = refill_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._tokens = capacity
        self._last_refill = clock()
        self._last_seen = self._last_refill

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def tokens(self) -> int:
        with self._lock:
            return self._tokens

    @property
    def last_seen(self) -> float:
        with self._lock:
            return self._last_seen

    def try_acquire(self) -> bool:
        """Refill, then take one token if available. Returns True if admitted."""
        with self._lock:
            now = self._clock()
            self._last_seen = now
            new_tokens = int((now - self._last_refill) // self._refill_interval)
            self._tokens = min(self._capacity, self._tokens + max(new_tokens, 0))

            if self._tokens > 0:
                self._tokens -= 1
                self._last_refill = now
                return True
            return False


class LimiterRegistry:
    """
    Per-client admission gate.

    Holds one TokenBucketLimiter per identity (usually the client address),
    created lazily with a full bucket. The registry lock only covers the
    lookup; admission checks lock the individual bucket.
    """

    def __init__(
        self,
        settings: Optional[RateLimitSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or get_settings().rate_limit
        self._clock = clock
        self._limiters: dict[str, TokenBucketLimiter] = {}
        self._lock = threading.Lock()

    def get_or_create(self, identity: str) -> TokenBucketLimiter:
        """Return the limiter for ``identity``, creating it on first access."""
        with self._lock:
            limiter = self._limiters.get(identity)
            if limiter is None:
                limiter = TokenBucketLimiter(
                    capacity=self._settings.bucket_capacity,
                    refill_interval=self._settings.refill_interval,
                    clock=self._clock,
                )
                self._limiters[identity] = limiter
            return limiter

    def is_allowed(self, identity: str) -> bool:
        """Check if a request from ``identity`` is admitted. Thread-safe."""
        return self.get_or_create(identity).try_acquire()

    def check(self, identity: str) -> None:
        """Like is_allowed(), but raises RateLimited on denial."""
        if not self.is_allowed(identity):
            raise RateLimited(identity)

    def evict_stale(self) -> int:
        """Remove limiters not seen for longer than eviction_ttl. Returns count evicted."""
        # A request that fetched a limiter just before eviction spends a token on
        # the detached bucket; harmless while eviction_ttl is far above the refill time.
        now = self._clock()
        ttl = self._settings.eviction_ttl
        with self._lock:
            stale_keys = [
                k for k, limiter in self._limiters.items()
                if (now - limiter.last_seen) > ttl
            ]
            for k in stale_keys:
                del self._limiters[k]
            return len(stale_keys)

    @property
    def bucket_count(self) -> int:
        """Number of tracked identities (for monitoring)."""
        with self._lock:
            return len(self._limiters)
