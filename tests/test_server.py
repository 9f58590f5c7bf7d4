"""Tests for KnowledgeServer routes."""

import os
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
import requests

from knowledge_api_server.exceptions import CrawlError
from knowledge_api_server.kb.store import Document
from knowledge_api_server.server import KnowledgeServer


@pytest.mark.unit
class TestKnowledgeServer:
    """Test KnowledgeServer initialization and prompt loading."""

    def test_server_initialization(self, server, default_config, service):
        assert server.config == default_config
        assert server.service is service
        assert server.app is not None
        assert server.scheduler.service is service

    def test_system_prompt_loading_default(self, default_config, service, tmp_path):
        default_config.SYSTEM_PROMPT_PATH = str(tmp_path / "nonexistent.md")

        server = KnowledgeServer(default_config, service, default_system_prompt="Custom default prompt")

        assert server.get_system_prompt() == "Custom default prompt"

    def test_system_prompt_caching(self, default_config, service, tmp_path):
        """Test that system prompt is cached and reloaded on file change."""
        prompt_file = tmp_path / "test_prompt.md"
        prompt_file.write_text("Original prompt")
        default_config.SYSTEM_PROMPT_PATH = str(prompt_file)

        server = KnowledgeServer(default_config, service)

        assert server.get_system_prompt() == "Original prompt"
        assert server.get_system_prompt() == "Original prompt"

        prompt_file.write_text("Updated prompt")
        stat = prompt_file.stat()
        os.utime(prompt_file, (stat.st_atime, stat.st_mtime + 10))

        assert server.get_system_prompt() == "Updated prompt"


@pytest.mark.unit
class TestInfoRoutes:
    """Test liveness, health and stats routes."""

    def test_root_is_plain_text(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.mimetype == "text/plain"
        assert "running" in response.get_data(as_text=True)

    def test_health_endpoint(self, client, store, workflow_document):
        store.upsert(workflow_document)

        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.get_json()
        assert data == {"status": "healthy", "knowledgeBaseSize": 1, "lastScrapeTime": None}

    def test_stats_before_any_crawl(self, client):
        response = client.get("/api/knowledge/stats")

        assert response.status_code == 200
        assert response.get_json() == {"totalEntries": 0, "lastScrapeTime": None, "needsUpdate": True}

    def test_stats_after_crawl(self, client, service):
        service.last_crawl_time = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        data = client.get("/api/knowledge/stats").get_json()

        assert data["lastScrapeTime"] == "2026-01-02T03:04:05+00:00"

    def test_unknown_route_is_json_404(self, client):
        response = client.get("/api/unknown")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Not found"}

    def test_wrong_method_is_json_404(self, client):
        response = client.delete("/api/health")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Not found"}

    def test_security_headers(self, client):
        response = client.get("/api/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_cors_allows_configured_origin(self, client):
        response = client.get("/api/health", headers={"Origin": "http://localhost:5173"})

        assert response.headers.get("Access-Control-Allow-Origin") == "http://localhost:5173"

    def test_cors_rejects_unknown_origin(self, client):
        response = client.get("/api/health", headers={"Origin": "https://evil.example.com"})

        assert "Access-Control-Allow-Origin" not in response.headers


@pytest.mark.unit
class TestSearchRoute:
    """Test /api/search."""

    def test_empty_store(self, client):
        response = client.get("/api/search?q=workflow")

        assert response.status_code == 200
        assert response.get_json() == {"results": []}

    def test_workflow_result(self, client, store, workflow_document):
        store.upsert(workflow_document)

        response = client.get("/api/search?q=workflow&limit=5")

        results = response.get_json()["results"]
        assert len(results) == 1
        assert results[0]["score"] == 3
        assert results[0]["url"] == "https://knowledge.eptura.com/Asset/Modules"
        assert "workflows" in results[0]["excerpt"]

    def test_default_limit_is_ten(self, client, store):
        for i in range(15):
            store.upsert(Document(url=f"https://docs.example.com/{i}", title="Guide", content="guide text"))

        results = client.get("/api/search?q=guide").get_json()["results"]

        assert len(results) == 10

    def test_missing_query(self, client):
        response = client.get("/api/search")

        assert response.status_code == 400
        assert "q" in response.get_json()["error"]

    def test_blank_query(self, client):
        response = client.get("/api/search?q=%20%20")

        assert response.status_code == 400

    def test_invalid_limit(self, client):
        response = client.get("/api/search?q=guide&limit=lots")

        assert response.status_code == 400
        assert "limit" in response.get_json()["error"]


@pytest.mark.unit
class TestScrapeRoute:
    """Test /api/scrape."""

    @pytest.mark.parametrize("method", ["get", "post"])
    def test_scrape_success(self, client, service, method):
        with patch.object(service, "refresh", return_value=42) as refresh:
            response = getattr(client, method)("/api/scrape")

        refresh.assert_called_once_with()
        assert response.status_code == 200
        assert response.get_json() == {"message": "Knowledge base updated successfully.", "entriesCount": 42}

    def test_scrape_failure(self, client, service):
        with patch.object(service, "refresh", side_effect=CrawlError("Crawl aborted: site down")):
            response = client.post("/api/scrape")

        assert response.status_code == 500
        data = response.get_json()
        assert data["error"] == "Failed to update knowledge base."
        assert "site down" in data["details"]


@pytest.mark.unit
class TestChatRoute:
    """Test /api/chat."""

    def test_missing_message(self, client):
        response = client.post("/api/chat", json={})

        assert response.status_code == 400
        assert response.get_json() == {"error": "Message is required."}

    def test_invalid_json_body(self, client):
        response = client.post("/api/chat", data="not json", content_type="application/json")

        assert response.status_code == 400
        assert response.get_json() == {"error": "Message is required."}

    def test_blank_message(self, client):
        response = client.post("/api/chat", json={"message": "   "})

        assert response.status_code == 400

    def test_conversation_must_be_list(self, client):
        response = client.post("/api/chat", json={"message": "hi", "conversation": "nope"})

        assert response.status_code == 400
        assert "conversation" in response.get_json()["error"]

    def test_chat_with_sources(self, client, store, workflow_document):
        store.upsert(workflow_document)

        with patch("knowledge_api_server.server.call_chat_completion", return_value="Use the Workflow Module.") as call:
            response = client.post("/api/chat", json={"message": "workflow"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["response"] == "Use the Workflow Module."
        assert data["sources"] == [{"title": "Workflow Module", "url": "https://knowledge.eptura.com/Asset/Modules"}]

        messages = call.call_args[0][0]
        assert messages[0]["role"] == "system"
        assert "Workflow Module" in messages[0]["content"]
        assert "https://knowledge.eptura.com/Asset/Modules" in messages[0]["content"]
        assert messages[-1] == {"role": "user", "content": "workflow"}

    def test_chat_context_limited_to_three(self, client, store):
        for i in range(6):
            store.upsert(Document(url=f"https://docs.example.com/{i}", title=f"Report {i}", content="report text"))

        with patch("knowledge_api_server.server.call_chat_completion", return_value="ok"):
            data = client.post("/api/chat", json={"message": "report"}).get_json()

        assert len(data["sources"]) == 3

    def test_chat_forwards_last_ten_turns(self, client):
        conversation = [{"role": "user" if i % 2 == 0 else "assistant", "content": f"turn {i}"} for i in range(14)]

        with patch("knowledge_api_server.server.call_chat_completion", return_value="ok") as call:
            client.post("/api/chat", json={"message": "next", "conversation": conversation})

        messages = call.call_args[0][0]
        # system + 10 history turns + new message
        assert len(messages) == 12
        assert messages[1]["content"] == "turn 4"
        assert messages[-2]["content"] == "turn 13"

    def test_chat_without_matches_still_answers(self, client):
        with patch("knowledge_api_server.server.call_chat_completion", return_value="No idea") as call:
            data = client.post("/api/chat", json={"message": "unrelated"}).get_json()

        assert data == {"response": "No idea", "sources": []}
        assert "No relevant knowledge base articles" in call.call_args[0][0][0]["content"]

    def test_backend_failure(self, client):
        with patch(
            "knowledge_api_server.server.call_chat_completion",
            side_effect=requests.ConnectionError("connection refused"),
        ):
            response = client.post("/api/chat", json={"message": "hello"})

        assert response.status_code == 500
        data = response.get_json()
        assert data["error"] == "Failed to process chat request."
        assert "connection refused" in data["details"]


@pytest.mark.unit
class TestRateLimit:
    """Test the per-client request limit."""

    def test_limit_exceeded_is_json_429(self, default_config, service):
        default_config.RATE_LIMIT = "2 per minute"
        server = KnowledgeServer(default_config, service)

        with server.app.test_client() as client:
            assert client.get("/api/health").status_code == 200
            assert client.get("/api/health").status_code == 200
            response = client.get("/api/health")

        assert response.status_code == 429
        assert response.get_json() == {"error": "Too many requests, please try again later."}
        assert "Retry-After" in response.headers

    def test_limit_is_per_client(self, default_config, service):
        default_config.RATE_LIMIT = "1 per minute"
        server = KnowledgeServer(default_config, service)

        with server.app.test_client() as client:
            client.get("/api/health", environ_base={"REMOTE_ADDR": "10.0.0.1"})
            response = client.get("/api/health", environ_base={"REMOTE_ADDR": "10.0.0.2"})

        assert response.status_code == 200

    def test_limit_can_be_disabled(self, default_config, service):
        default_config.RATE_LIMIT = "1 per minute"
        default_config.RATE_LIMIT_ENABLED = False
        server = KnowledgeServer(default_config, service)

        with server.app.test_client() as client:
            statuses = [client.get("/api/health").status_code for _ in range(3)]

        assert statuses == [200, 200, 200]
