"""Health, ping and stats routes."""

from __future__ import annotations

from fastapi import APIRouter, Request

from filerelay.api.admission import admit
from filerelay.api.schemas import PingResponse, StatsResponse, SweepSummary

router = APIRouter(tags=["system"])


@router.get("/health")
def health() -> dict:
    """Simple liveness check. Not rate limited."""
    return {"status": "ok"}


@router.get("/ping", response_model=PingResponse)
def ping(request: Request) -> PingResponse:
    admit(request)
    return PingResponse()


@router.get("/stats", response_model=StatsResponse)
def stats(request: Request) -> StatsResponse:
    """Return live entry and client counts plus the last sweep outcome."""
    admit(request)
    state = request.app.state
    report = state.sweeper.last_report

    last_sweep = None
    if report is not None:
        last_sweep = SweepSummary(
            started_at=report.started_at,
            finished_at=report.finished_at,
            evicted=len(report.evicted),
            deleted=len(report.deleted),
            failed=len(report.failed),
            limiters_evicted=report.limiters_evicted,
        )

    return StatsResponse(
        live_resources=len(state.resource_store),
        tracked_clients=state.limiters.bucket_count,
        sweeper_running=state.sweeper.is_running,
        last_sweep=last_sweep,
    )
