"""
Background expiry sweep.

Runs in its own thread on a fixed interval. Each pass evicts expired
entries from the ResourceStore, deletes their upload directories, purges
orphaned directories and drops idle rate-limiter identities.

Entries become invalid for download the moment their TTL passes
(``ResourceStore.consume`` checks age itself); the sweep only reclaims
memory and disk afterwards.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Callable, Optional

from filerelay.config.settings import SweeperSettings, get_settings
from filerelay.errors import StorageFailure
from filerelay.storage.file_store import FileStore
from filerelay.storage.models import SweepReport
from filerelay.storage.resource_store import ResourceStore

if TYPE_CHECKING:
    from filerelay.api.rate_limiter import LimiterRegistry

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """
    Periodic cleanup task.

    A failure to delete one code's directory is logged and recorded in
    the SweepReport; the pass carries on with the remaining codes. The
    code stays reserved in the store and is retried on the next pass.
    """

    def __init__(
        self,
        store: ResourceStore,
        file_store: FileStore,
        limiters: Optional[LimiterRegistry] = None,
        settings: Optional[SweeperSettings] = None,
        clock: Callable[[], float] = time.time,
        name: str = "expiry-sweeper",
    ) -> None:
        self._store = store
        self._file_store = file_store
        self._limiters = limiters
        self._settings = settings or get_settings().sweeper
        self._clock = clock
        self._name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._sweep_lock = threading.Lock()
        self._last_report: Optional[SweepReport] = None

    def start(self) -> None:
        """Start sweeping in a background thread."""
        if self.is_running:
            logger.warning("Sweeper '%s' already running, skipping start()", self._name)
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name=self._name, daemon=True)
        self._thread.start()
        logger.info("Sweeper '%s' started (interval %.0fs)", self._name, self._settings.interval)

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the sweeper to stop and wait for the thread to finish."""
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Sweeper '%s' stopped", self._name)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def last_report(self) -> Optional[SweepReport]:
        return self._last_report

    def _loop(self) -> None:
        # First pass happens one interval after start
        while not self._stop_event.wait(self._settings.interval):
            try:
                self.run_once()
            except Exception:
                logger.exception("Unhandled error in sweeper '%s'", self._name)

    def run_once(self) -> SweepReport:
        """Execute a single sweep synchronously and return its report."""
        with self._sweep_lock:
            report = SweepReport(started_at=self._clock())

            report.evicted = self._store.evict_expired()
            # Also retries codes whose deletion failed on an earlier pass
            for code in self._store.retired_codes():
                self._delete(code, report)

            if self._settings.purge_orphans:
                self._purge_orphans(report)

            if self._limiters is not None:
                report.limiters_evicted = self._limiters.evict_stale()

            report.finished_at = self._clock()
            self._last_report = report

        logger.info(
            "Sweep done: evicted=%d deleted=%d failed=%d limiters_evicted=%d",
            len(report.evicted), len(report.deleted), len(report.failed),
            report.limiters_evicted,
        )
        return report

    def _purge_orphans(self, report: SweepReport) -> None:
        """Delete directories older than the TTL that no entry owns."""
        ttl = self._store.settings.resource_ttl
        try:
            stale = self._file_store.stale_codes(ttl, now=self._clock())
        except OSError as e:
            logger.error("Could not list upload directory: %s", e)
            report.failed["*"] = str(e)
            return

        for code in stale:
            if code in report.deleted:
                continue
            # Fails if an upload owns the code; otherwise no upload can take it until release
            if not self._store.reserve(code):
                continue
            logger.info("Purging orphaned upload directory %s", code)
            self._delete(code, report)

    def _delete(self, code: str, report: SweepReport) -> None:
        """Delete a retired code's directory, then free the code. Failures stay reserved."""
        try:
            if self._file_store.delete(code):
                report.deleted.append(code)
        except StorageFailure as e:
            report.failed[code] = str(e)
            logger.error("Failed to delete upload %s: %s", code, e)
            return
        self._store.release(code)
