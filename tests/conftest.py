"""Shared pytest fixtures for Knowledge API Server tests."""

from unittest.mock import MagicMock

import pytest
import requests

from knowledge_api_server.config import ServerConfig
from knowledge_api_server.kb.config import KnowledgeConfig
from knowledge_api_server.kb.service import KnowledgeService
from knowledge_api_server.kb.store import Document, KnowledgeStore
from knowledge_api_server.server import KnowledgeServer


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no network access")


@pytest.fixture
def default_config():
    """Provide a default ServerConfig instance for testing."""
    config = ServerConfig()
    config.OPENAI_API_KEY = "test-key"
    config.SYSTEM_PROMPT_PATH = "nonexistent_system_prompt.md"
    return config


@pytest.fixture
def kb_config():
    """Provide a KnowledgeConfig with politeness delays disabled."""
    return KnowledgeConfig(
        base_url="https://docs.example.com",
        seed_paths=["/Asset"],
        child_delay=0,
        seed_delay=0,
    )


@pytest.fixture
def store():
    return KnowledgeStore()


@pytest.fixture
def workflow_document():
    return Document(
        url="https://knowledge.eptura.com/Asset/Modules",
        title="Workflow Module",
        content="This module helps manage workflows...",
    )


@pytest.fixture
def service(kb_config, store):
    return KnowledgeService(kb_config, store=store)


@pytest.fixture
def server(default_config, service):
    return KnowledgeServer(default_config, service)


@pytest.fixture
def client(server):
    with server.app.test_client() as client:
        yield client


def make_response(html: str, status_code: int = 200):
    """Build a fake requests response carrying an HTML body."""
    response = MagicMock()
    response.text = html
    response.status_code = status_code
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    else:
        response.raise_for_status.return_value = None
    return response


def page_html(title: str, body: str, links=()) -> str:
    """Build a documentation page with a nav of links and a content div."""
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return (
        f"<html><head><title>{title}</title></head><body>"
        f"<nav>{anchors}</nav>"
        f'<div class="content"><p>{body}</p></div>'
        f"</body></html>"
    )


class FakeSite:
    """Serves canned pages by absolute URL and records every requested URL."""

    def __init__(self, pages):
        self.pages = pages
        self.requested = []

    def get(self, url, timeout=None, **kwargs):
        self.requested.append(url)
        if url not in self.pages:
            return make_response("Not Found", 404)
        html = self.pages[url]
        if isinstance(html, Exception):
            raise html
        return make_response(html)


@pytest.fixture
def fake_site():
    """Factory building a FakeSite wired into a MagicMock requests session."""

    def _build(pages):
        site = FakeSite(pages)
        session = MagicMock()
        session.headers = {}
        session.get.side_effect = site.get
        return site, session

    return _build
