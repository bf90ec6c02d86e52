"""Background jobs: periodic expiry sweep."""

from filerelay.jobs.sweeper import ExpirySweeper

__all__ = ["ExpirySweeper"]
