"""Per-request admission check shared by the rate-limited routes."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from filerelay.errors import RateLimited

logger = logging.getLogger(__name__)


def client_identity(request: Request) -> str:
    """Rate-limit key for a request: the client's network address."""
    return request.client.host if request.client else "unknown"


def admit(request: Request) -> None:
    """Raise 429 if the calling client is out of tokens."""
    limiters = request.app.state.limiters
    try:
        limiters.check(client_identity(request))
    except RateLimited as exc:
        logger.info("Rejected request to %s: %s", request.url.path, exc)
        raise HTTPException(status_code=429, detail="Rate limit exceeded") from exc
