"""Pydantic response models for the API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class PingResponse(BaseModel):
    message: str = "pong"


class SweepSummary(BaseModel):
    """Outcome of the most recent expiry sweep."""

    started_at: float
    finished_at: float
    evicted: int
    deleted: int
    failed: int
    limiters_evicted: int


class StatsResponse(BaseModel):
    """Service statistics."""

    live_resources: int
    tracked_clients: int
    sweeper_running: bool
    last_sweep: Optional[SweepSummary] = None


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    detail: str
