"""Periodic knowledge base refresh."""

import logging
import threading
import time

from .service import KnowledgeService

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Refreshes the knowledge base at startup when stale and then on a fixed interval.

    The interval timer runs on a daemon thread and fires regardless of how
    the previous refresh went. Overlapping triggers are coalesced by the
    service's single-flight guard.
    """

    def __init__(self, service: KnowledgeService, interval_seconds: float | None = None):
        """Initialize the scheduler.

        Args:
            service: Knowledge service to refresh
            interval_seconds: Seconds between refreshes (defaults to the service's refresh interval)
        """
        self.service = service
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else service.refresh_interval.total_seconds()
        )
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self, refresh_now: bool = True) -> threading.Thread:
        """Run the startup refresh if needed, then start the interval thread.

        The startup refresh completes before this method returns.

        Args:
            refresh_now: If False, skip the startup staleness check

        Returns:
            threading.Thread: The interval thread (already started)
        """
        if self.is_running:
            logger.debug("[SCHEDULER] Already running")
            return self._thread

        if refresh_now and self.service.needs_update:
            logger.info("[SCHEDULER] Knowledge base is stale, refreshing before serving")
            self._run_refresh()

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="kb-refresh", daemon=True)
        self._thread.start()
        logger.info(f"[SCHEDULER] Scheduled refresh every {self.interval_seconds / 3600:g}h")
        return self._thread

    def stop(self, timeout: float | None = None):
        """Stop the interval thread. A refresh already running is not interrupted."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self):
        # Fixed cadence: each refresh runs on its own thread so a slow crawl
        # does not push back the next trigger
        next_run = time.monotonic() + self.interval_seconds
        while not self._stop_event.wait(max(0.0, next_run - time.monotonic())):
            next_run += self.interval_seconds
            logger.info("[SCHEDULER] Running scheduled refresh")
            threading.Thread(target=self._run_refresh, name="kb-refresh-run", daemon=True).start()

    def _run_refresh(self):
        try:
            self.service.refresh()
        except Exception as e:
            logger.error(f"[SCHEDULER] Refresh failed: {e}")
