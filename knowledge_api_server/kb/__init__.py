"""Crawl-and-index engine for the knowledge base."""

from .config import KnowledgeConfig
from .crawler import CrawlReport, KnowledgeCrawler
from .extractor import ExtractedPage, extract_content
from .scheduler import RefreshScheduler
from .search import SearchResult, make_excerpt, search
from .service import KnowledgeService
from .store import Document, KnowledgeStore

__all__ = [
    "CrawlReport",
    "Document",
    "ExtractedPage",
    "KnowledgeConfig",
    "KnowledgeCrawler",
    "KnowledgeService",
    "KnowledgeStore",
    "RefreshScheduler",
    "SearchResult",
    "extract_content",
    "make_excerpt",
    "search",
]
