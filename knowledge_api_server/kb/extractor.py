"""Plain-text extraction from documentation pages."""

import re
from dataclasses import dataclass

from bs4 import BeautifulSoup

UNTITLED = "Untitled"

# Elements that never carry article text
STRIP_SELECTORS = ["script", "style", "nav", "header", "footer", ".sidebar"]

# Content containers, most specific first
CONTENT_SELECTORS = [".content", ".main-content", "#content", "main", ".article-content"]


@dataclass
class ExtractedPage:
    """Title and normalized body text of one page."""

    title: str
    content: str


def normalize_text(text: str) -> str:
    """Collapse every whitespace run, newlines included, to a single space and trim."""
    return re.sub(r"\s+", " ", text).strip()


def extract_title(soup: BeautifulSoup) -> str:
    """Resolve the page title: <title>, then first <h1>, then "Untitled"."""
    for tag_name in ("title", "h1"):
        tag = soup.find(tag_name)
        if tag:
            text = normalize_text(tag.get_text())
            if text:
                return text
    return UNTITLED


def extract_content(page: BeautifulSoup | str) -> ExtractedPage:
    """Extract (title, content) from a page.

    Boilerplate elements are removed before the body text is read, so a
    BeautifulSoup argument is modified in place. Callers that still need the
    navigation links must collect them first.

    Args:
        page: Parsed document or raw HTML

    Returns:
        ExtractedPage with the resolved title and normalized body text
    """
    soup = BeautifulSoup(page, "html.parser") if isinstance(page, str) else page

    title = extract_title(soup)

    for element in soup.select(", ".join(STRIP_SELECTORS)):
        element.extract()

    content = ""
    for selector in CONTENT_SELECTORS:
        matches = soup.select(selector)
        if matches:
            content = "\n".join(match.get_text(separator=" ") for match in matches)
            break
    else:
        root = soup.body or soup
        content = root.get_text(separator=" ")

    return ExtractedPage(title=title, content=normalize_text(content))
