"""Exceptions raised by the knowledge API server."""


class KnowledgeServerError(Exception):
    """Base class for knowledge server errors."""


class CrawlError(KnowledgeServerError):
    """A crawl was aborted before visiting every seed path."""


class CrawlTimeoutError(CrawlError):
    """The overall crawl deadline was exceeded."""


class BackendError(KnowledgeServerError):
    """The chat completion backend failed or returned an unusable response."""
