"""Depth-bounded crawler for the documentation site.

Each seed path is walked with an explicit worklist of (path, depth) pairs.
A URL is fetched at most once per crawl, independent of whether an earlier
crawl already stored it. Visitation tracks the shallowest depth each URL was
scheduled at, so a page reached again closer to a seed is expanded further.
"""

import logging
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from tqdm import tqdm

from ..exceptions import CrawlError, CrawlTimeoutError
from .config import KnowledgeConfig
from .extractor import extract_content
from .store import Document, KnowledgeStore

logger = logging.getLogger(__name__)


@dataclass
class CrawlReport:
    """Counters for one completed crawl."""

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None
    pages_fetched: int = 0
    pages_stored: int = 0
    pages_failed: int = 0
    max_depth_reached: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "pagesFetched": self.pages_fetched,
            "pagesStored": self.pages_stored,
            "pagesFailed": self.pages_failed,
            "maxDepthReached": self.max_depth_reached,
        }


class KnowledgeCrawler:
    """Crawls the configured seed paths and writes pages into a KnowledgeStore."""

    def __init__(self, config: KnowledgeConfig, store: KnowledgeStore, session: requests.Session | None = None):
        """Initialize the crawler.

        Args:
            config: Knowledge base configuration
            store: Store that receives extracted documents
            session: Optional requests session (a new one is created if omitted)
        """
        self.config = config
        self.store = store
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": config.user_agent})

    def crawl(self, start_paths: list[str] | None = None) -> CrawlReport:
        """Crawl every seed path in order and upsert pages into the store.

        Args:
            start_paths: Seed paths to crawl (defaults to config.seed_paths)

        Returns:
            CrawlReport for the completed crawl

        Raises:
            CrawlError: If the crawl is aborted. Documents stored before the
                failure stay in the store.
        """
        start_paths = list(start_paths or self.config.seed_paths)
        report = CrawlReport()
        seen: dict[str, int] = {}
        fetched: dict[str, list[str]] = {}
        deadline = time.monotonic() + self.config.crawl_timeout if self.config.crawl_timeout else None

        logger.info(
            f"[CRAWLER] Starting crawl of {len(start_paths)} section(s) from {self.config.base_url} "
            f"(max depth: {self.config.max_depth})"
        )

        pbar = tqdm(desc="Crawling pages", unit="page", disable=not self.config.show_progress, file=sys.stderr)

        try:
            for index, seed in enumerate(start_paths):
                if index > 0:
                    time.sleep(self.config.seed_delay)
                self._crawl_section(seed, seen, fetched, report, deadline, pbar)
        except CrawlError as e:
            logger.error(f"[CRAWLER] Crawl aborted: {e}")
            raise
        except Exception as e:
            logger.error(f"[CRAWLER] Crawl aborted: {e}")
            raise CrawlError(f"Crawl aborted: {e}") from e
        finally:
            pbar.close()

        report.finished_at = datetime.now(timezone.utc)
        logger.info(
            f"[CRAWLER] Crawl complete: {report.pages_fetched} fetched, {report.pages_stored} stored, "
            f"{report.pages_failed} failed"
        )
        return report

    def _crawl_section(
        self,
        seed: str,
        seen: dict[str, int],
        fetched: dict[str, list[str]],
        report: CrawlReport,
        deadline: float | None,
        pbar: tqdm,
    ):
        """Walk one seed path depth-first up to max_depth.

        Every seed starts at depth 0, even when an earlier section already
        reached it as a link. Pages fetched earlier in the crawl are expanded
        again from their cached links instead of being requested a second time.
        """
        seed_url = self._absolute_url(seed)
        if seen.get(seed_url) == 0:
            logger.debug(f"[CRAWLER] Seed already walked in this crawl: {seed_url}")
            return
        seen[seed_url] = 0

        logger.info(f"[CRAWLER] Crawling section {seed}")
        to_visit: list[tuple[str, int]] = [(seed, 0)]

        while to_visit:
            path, depth = to_visit.pop()
            page_url = self._absolute_url(path)

            # Superseded by a shallower schedule of the same URL
            if depth > seen[page_url]:
                continue

            if page_url in fetched:
                links = fetched[page_url]
            else:
                if deadline is not None and time.monotonic() > deadline:
                    raise CrawlTimeoutError(f"Crawl exceeded {self.config.crawl_timeout}s deadline")

                if depth > 0:
                    time.sleep(self.config.child_delay)

                links = self._visit(page_url, depth, report)
                fetched[page_url] = links
                pbar.update(1)
                pbar.set_postfix_str(f"depth={depth}, queue={len(to_visit)}", refresh=True)

            if depth >= self.config.max_depth:
                continue

            # Reverse so the first link on the page is visited first
            for link in reversed(links):
                link_url = self._absolute_url(link)
                if link_url in seen and seen[link_url] <= depth + 1:
                    continue
                seen[link_url] = depth + 1
                to_visit.append((link, depth + 1))

    def _visit(self, url: str, depth: int, report: CrawlReport) -> list[str]:
        """Fetch one page, store it if it has enough text, and return its links.

        Failures are logged and reported as an empty link list.
        """
        try:
            logger.debug(f"[CRAWLER] Fetching (depth {depth}): {url}")
            response = self.session.get(url, timeout=self.config.request_timeout)
            response.raise_for_status()

            soup = BeautifulSoup(response.text, "html.parser")
            # Collect links before extraction strips navigation
            links = self.discover_links(soup)
            page = extract_content(soup)
        except Exception as e:
            logger.warning(f"[CRAWLER] Failed to crawl {url}: {e}")
            report.pages_failed += 1
            return []

        report.pages_fetched += 1
        report.max_depth_reached = max(report.max_depth_reached, depth)

        if len(page.content) > self.config.min_content_length:
            self.store.upsert(Document(url=url, title=page.title, content=page.content))
            report.pages_stored += 1
            logger.debug(f"[CRAWLER] Stored {url} ({len(page.content)} chars)")
        else:
            logger.debug(f"[CRAWLER] Skipping {url}: only {len(page.content)} chars of content")

        return links

    def discover_links(self, soup: BeautifulSoup) -> list[str]:
        """Return in-scope, site-root relative links in document order.

        Args:
            soup: Parsed page

        Returns:
            At most config.max_links_per_page unique paths
        """
        links: list[str] = []
        if self.config.max_links_per_page == 0:
            return links

        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].split("#")[0].strip()

            # Only site-root relative links; protocol-relative URLs point off-site
            if not href.startswith("/") or href.startswith("//"):
                continue
            if not any(href.startswith(prefix) for prefix in self.config.link_prefixes):
                continue

            if href not in links:
                links.append(href)
                if len(links) >= self.config.max_links_per_page:
                    break

        return links

    def _absolute_url(self, path: str) -> str:
        return urljoin(self.config.base_url + "/", path).split("#")[0]
