"""Knowledge service: owns the store, the crawler and the crawl timestamp."""

import logging
import threading
from concurrent.futures import Future
from datetime import datetime, timedelta, timezone
from typing import Any

from .config import KnowledgeConfig
from .crawler import CrawlReport, KnowledgeCrawler
from .search import SearchResult, search
from .store import KnowledgeStore

logger = logging.getLogger(__name__)


class KnowledgeService:
    """Entry point for refreshing and querying the knowledge base.

    Crawls are single-flight: a refresh requested while another one is
    running does not start a second crawl, it waits for the running one and
    returns (or raises) its outcome.
    """

    def __init__(
        self,
        config: KnowledgeConfig | None = None,
        store: KnowledgeStore | None = None,
        crawler: KnowledgeCrawler | None = None,
    ):
        """Initialize the knowledge service.

        Args:
            config: Knowledge base configuration (defaults to KnowledgeConfig())
            store: Optional pre-populated store
            crawler: Optional crawler; built from config and store if omitted
        """
        self.config = config or KnowledgeConfig()
        self.store = store if store is not None else KnowledgeStore()
        self.crawler = crawler or KnowledgeCrawler(self.config, self.store)

        self.last_crawl_time: datetime | None = None
        self.last_report: CrawlReport | None = None

        self._flight_lock = threading.Lock()
        self._in_flight: Future | None = None

    @property
    def refresh_interval(self) -> timedelta:
        return timedelta(hours=self.config.refresh_interval_hours)

    @property
    def needs_update(self) -> bool:
        """True when no crawl has completed or the last one is older than the refresh interval."""
        if self.last_crawl_time is None:
            return True
        return datetime.now(timezone.utc) - self.last_crawl_time > self.refresh_interval

    @property
    def is_crawling(self) -> bool:
        with self._flight_lock:
            return self._in_flight is not None

    def refresh(self, start_paths: list[str] | None = None) -> int:
        """Run a full crawl, or join the one already running.

        Args:
            start_paths: Seed paths to crawl (defaults to config.seed_paths).
                Ignored when joining a crawl that is already running.

        Returns:
            Number of documents in the store after the crawl

        Raises:
            CrawlError: If the crawl was aborted
        """
        with self._flight_lock:
            flight = self._in_flight
            leader = flight is None
            if leader:
                flight = Future()
                self._in_flight = flight

        if not leader:
            logger.info("[KB] Crawl already in progress, waiting for it to finish")
            return flight.result()

        try:
            report = self.crawler.crawl(start_paths)
        except Exception as e:
            logger.error(f"[KB] Knowledge base refresh failed, keeping {len(self.store)} existing entries: {e}")
            with self._flight_lock:
                self._in_flight = None
            flight.set_exception(e)
            raise

        self.last_report = report
        self.last_crawl_time = report.finished_at
        entries = len(self.store)
        logger.info(f"[KB] Knowledge base refreshed: {entries} entries")

        with self._flight_lock:
            self._in_flight = None
        flight.set_result(entries)
        return entries

    def search(self, query: str, limit: int | None = None) -> list[SearchResult]:
        """Search the knowledge base.

        Args:
            query: Case-insensitive substring to look for
            limit: Maximum number of results (default from config)

        Returns:
            Ranked search results
        """
        if limit is None:
            limit = self.config.search_top_k
        return search(self.store, query, limit=limit, excerpt_length=self.config.excerpt_length)

    def stats(self) -> dict[str, Any]:
        return {
            "totalEntries": len(self.store),
            "lastScrapeTime": self.last_crawl_time.isoformat() if self.last_crawl_time else None,
            "needsUpdate": self.needs_update,
        }
