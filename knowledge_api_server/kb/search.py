"""Term-presence ranking over the knowledge store."""

import logging
from dataclasses import dataclass
from typing import Any

from .store import Document, KnowledgeStore

logger = logging.getLogger(__name__)

TITLE_WEIGHT = 2
CONTENT_WEIGHT = 1
ELLIPSIS = "..."


@dataclass
class SearchResult:
    """A scored document with a preview excerpt."""

    document: Document
    score: int
    excerpt: str

    def to_dict(self) -> dict[str, Any]:
        result = self.document.to_dict()
        result["score"] = self.score
        result["excerpt"] = self.excerpt
        return result


def score_document(document: Document, query: str) -> int:
    """Score a document by where the query occurs (case-insensitive).

    Args:
        document: Document to score
        query: Query, treated as one substring

    Returns:
        2 for a title match plus 1 for a content match, 0 when neither matches
    """
    needle = query.lower()
    score = 0
    if needle in document.title.lower():
        score += TITLE_WEIGHT
    if needle in document.content.lower():
        score += CONTENT_WEIGHT
    return score


def make_excerpt(content: str, query: str, length: int = 300) -> str:
    """Cut a window of content centered on the first occurrence of query.

    The window extends length // 2 characters either side of the match and is
    marked with "..." on each side that does not reach the string boundary.
    When the query does not occur in content, the first length characters are
    returned followed by "...".
    """
    index = content.lower().find(query.lower()) if query else -1
    if index == -1:
        return content[:length] + ELLIPSIS

    padding = length // 2
    start = max(0, index - padding)
    end = min(len(content), index + len(query) + padding)

    excerpt = content[start:end]
    if start > 0:
        excerpt = ELLIPSIS + excerpt
    if end < len(content):
        excerpt = excerpt + ELLIPSIS
    return excerpt


def search(store: KnowledgeStore, query: str, limit: int = 5, excerpt_length: int = 300) -> list[SearchResult]:
    """Rank store documents against a query.

    Args:
        store: Knowledge store to search (read from a snapshot)
        query: Case-insensitive substring to look for
        limit: Maximum number of results
        excerpt_length: Total excerpt window in characters

    Returns:
        Results ordered by descending score; ties keep store insertion order
    """
    if not query or limit <= 0:
        return []

    scored = []
    for document in store.snapshot():
        score = score_document(document, query)
        if score > 0:
            scored.append((score, document))

    # sorted() is stable, which keeps insertion order among equal scores
    scored = sorted(scored, key=lambda item: item[0], reverse=True)[:limit]

    logger.debug(f"[KB] Search {query!r}: {len(scored)} result(s) returned")

    return [
        SearchResult(document=document, score=score, excerpt=make_excerpt(document.content, query, excerpt_length))
        for score, document in scored
    ]
