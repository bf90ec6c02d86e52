"""FastAPI HTTP layer with per-client rate limiting."""

from filerelay.api.app import create_app
from filerelay.api.rate_limiter import LimiterRegistry, TokenBucketLimiter

__all__ = [
    "create_app",
    "LimiterRegistry",
    "TokenBucketLimiter",
]
