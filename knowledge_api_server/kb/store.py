"""Thread-safe in-memory knowledge store keyed by canonical URL."""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class Document:
    """One indexed page."""

    url: str
    title: str
    content: str
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON shape used by the HTTP API."""
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "lastUpdated": self.last_updated.isoformat(),
        }


class KnowledgeStore:
    """Mapping of canonical URL to Document.

    Writes replace whole documents under a lock, and reads work on a snapshot
    copied under the same lock, so a search running alongside a crawl sees
    every document either in its previous or its new committed state. The
    lock is never held across network I/O.
    """

    def __init__(self):
        self._documents: dict[str, Document] = {}
        self._lock = threading.RLock()

    def upsert(self, document: Document):
        """Insert a document or overwrite the one stored under the same URL.

        An overwritten URL keeps its original insertion position.
        """
        with self._lock:
            self._documents[document.url] = document

    def get(self, url: str) -> Document | None:
        with self._lock:
            return self._documents.get(url)

    def snapshot(self) -> list[Document]:
        """Return the stored documents in insertion order."""
        with self._lock:
            return list(self._documents.values())

    def clear(self):
        with self._lock:
            self._documents.clear()

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._documents

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)
