"""Knowledge API Server - keyword search and retrieval-augmented chat over a crawled documentation site."""

from .config import ServerConfig
from .exceptions import BackendError, CrawlError, CrawlTimeoutError, KnowledgeServerError
from .kb import Document, KnowledgeConfig, KnowledgeService, KnowledgeStore, RefreshScheduler
from .server import KnowledgeServer

__version__ = "0.1.0"
__all__ = [
    "BackendError",
    "CrawlError",
    "CrawlTimeoutError",
    "Document",
    "KnowledgeConfig",
    "KnowledgeServer",
    "KnowledgeServerError",
    "KnowledgeService",
    "KnowledgeStore",
    "RefreshScheduler",
    "ServerConfig",
]
