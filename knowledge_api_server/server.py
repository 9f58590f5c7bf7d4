"""Core Knowledge API Server implementation."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import HTTPException

from .backends import call_chat_completion
from .config import ServerConfig
from .kb.scheduler import RefreshScheduler
from .kb.service import KnowledgeService
from .prompts import DEFAULT_SYSTEM_PROMPT, build_messages, build_system_prompt, sources_from_results

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(config: ServerConfig):
    """Configure root logging from LOG_LEVEL and optional rotating LOG_FILE."""
    level = getattr(logging, config.LOG_LEVEL, logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler) for h in root.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

    if config.LOG_FILE:
        log_file = Path(config.LOG_FILE)
        # Use RotatingFileHandler for automatic log rotation
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=config.LOG_MAX_BYTES,
            backupCount=config.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

        max_mb = config.LOG_MAX_BYTES / (1024 * 1024)
        print(f"File logging enabled: {log_file.absolute()}")
        print(f"  Rotation: {max_mb:.1f}MB max, {config.LOG_BACKUP_COUNT} backups")


class KnowledgeServer:
    """Flask server exposing knowledge base search and retrieval-augmented chat."""

    def __init__(
        self,
        config: ServerConfig,
        service: KnowledgeService,
        name: str = "Eptura Knowledge",
        default_system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ):
        """Initialize the Knowledge API Server.

        Args:
            config: ServerConfig instance
            service: Knowledge service answering searches and refreshes
            name: Display name for the server
            default_system_prompt: Default system prompt if the prompt file doesn't exist
        """
        self.name = name
        self.config = config
        self.service = service
        self.default_system_prompt = default_system_prompt
        self.scheduler = RefreshScheduler(service)

        # System prompt caching
        self._system_prompt_cache: Optional[str] = None
        self._system_prompt_mtime: Optional[float] = None

        # Create Flask app
        self.app = Flask(__name__)
        CORS(
            self.app,
            resources={r"/api/*": {"origins": config.ALLOWED_ORIGINS}},
            supports_credentials=True,
            methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
        )

        # Per-client request limit applied to every route
        self.limiter = Limiter(
            get_remote_address,
            app=self.app,
            default_limits=[config.RATE_LIMIT],
            storage_uri=config.RATE_LIMIT_STORAGE_URI,
            enabled=config.RATE_LIMIT_ENABLED,
            headers_enabled=True,
        )

        # Register routes
        self._register_routes()

    def _register_routes(self):
        """Register Flask routes and error handlers."""
        self.app.route("/", methods=["GET"])(self.index)
        self.app.route("/api/health", methods=["GET"])(self.health)
        self.app.route("/api/chat", methods=["POST"])(self.chat)
        self.app.route("/api/search", methods=["GET"])(self.search)
        self.app.route("/api/scrape", methods=["GET", "POST"])(self.scrape)
        self.app.route("/api/knowledge/stats", methods=["GET"])(self.knowledge_stats)

        self.app.register_error_handler(404, self.not_found)
        self.app.register_error_handler(405, self.not_found)
        self.app.register_error_handler(429, self.rate_limited)
        self.app.register_error_handler(Exception, self.internal_error)
        self.app.after_request(self.add_security_headers)

    def get_system_prompt(self) -> str:
        """Load system prompt from markdown file with smart caching."""
        prompt_path = Path(self.config.SYSTEM_PROMPT_PATH)

        if not prompt_path.exists():
            return self.default_system_prompt

        try:
            current_mtime = prompt_path.stat().st_mtime

            # Check if cache is valid
            if self._system_prompt_cache is not None and self._system_prompt_mtime == current_mtime:
                return self._system_prompt_cache

            # Read and cache the prompt
            self._system_prompt_cache = prompt_path.read_text(encoding="utf-8")
            self._system_prompt_mtime = current_mtime

            return self._system_prompt_cache
        except OSError as e:
            logger.warning(f"[SERVER] Error reading system prompt: {e}")
            return self.default_system_prompt

    def index(self):
        """Plain-text liveness endpoint."""
        return f"{self.name} API server is running.", 200, {"Content-Type": "text/plain; charset=utf-8"}

    def health(self):
        """Health check endpoint."""
        stats = self.service.stats()
        return jsonify(
            {
                "status": "healthy",
                "knowledgeBaseSize": stats["totalEntries"],
                "lastScrapeTime": stats["lastScrapeTime"],
            }
        )

    def chat(self):
        """Answer a message using knowledge base articles as context."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}

        message = data.get("message")
        if not isinstance(message, str) or not message.strip():
            return jsonify({"error": "Message is required."}), 400

        conversation = data.get("conversation") or []
        if not isinstance(conversation, list):
            return jsonify({"error": "Field 'conversation' must be an array."}), 400

        try:
            results = self.service.search(message, limit=self.config.CHAT_CONTEXT_RESULTS)
            system_prompt = build_system_prompt(self.get_system_prompt(), results)
            messages = build_messages(system_prompt, conversation, message, self.config.MAX_HISTORY_MESSAGES)

            logger.debug(f"[SERVER] Chat request with {len(results)} context article(s), {len(messages)} messages")
            reply = call_chat_completion(messages, self.config)
        except Exception as e:
            logger.error(f"[SERVER] Chat request failed: {e}")
            return jsonify({"error": "Failed to process chat request.", "details": str(e)}), 500

        return jsonify({"response": reply, "sources": sources_from_results(results)})

    def search(self):
        """Search the knowledge base directly."""
        query = request.args.get("q", "")
        if not query.strip():
            return jsonify({"error": "Query parameter 'q' is required."}), 400

        raw_limit = request.args.get("limit")
        limit = self.config.SEARCH_DEFAULT_LIMIT
        if raw_limit is not None:
            try:
                limit = int(raw_limit)
            except ValueError:
                return jsonify({"error": "Query parameter 'limit' must be an integer."}), 400

        results = self.service.search(query, limit=limit)
        return jsonify({"results": [result.to_dict() for result in results]})

    def scrape(self):
        """Run a full crawl and wait for it to finish."""
        try:
            entries = self.service.refresh()
        except Exception as e:
            logger.error(f"[SERVER] Manual scrape failed: {e}")
            return jsonify({"error": "Failed to update knowledge base.", "details": str(e)}), 500

        return jsonify({"message": "Knowledge base updated successfully.", "entriesCount": entries})

    def knowledge_stats(self):
        """Knowledge base size and staleness."""
        return jsonify(self.service.stats())

    def not_found(self, error):
        return jsonify({"error": "Not found"}), 404

    def rate_limited(self, error):
        logger.warning(f"[SERVER] Rate limit exceeded for {get_remote_address()}: {error.description}")
        return jsonify({"error": "Too many requests, please try again later."}), 429

    def internal_error(self, error):
        if isinstance(error, HTTPException):
            return jsonify({"error": error.description}), error.code
        logger.exception(f"[SERVER] Unhandled error: {error}")
        return jsonify({"error": "Internal server error", "details": str(error)}), 500

    def add_security_headers(self, response):
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
        return response

    def run(self, port: Optional[int] = None, host: Optional[str] = None, debug: bool = False, refresh: bool = True):
        """Run the Flask server.

        Args:
            port: Port to run on (defaults to config.DEFAULT_PORT)
            host: Host to bind to (defaults to config.DEFAULT_HOST, which is 127.0.0.1 for security)
            debug: Enable debug mode
            refresh: Crawl on startup when stale and schedule periodic refreshes
        """
        port = port or self.config.DEFAULT_PORT
        host = host or self.config.DEFAULT_HOST

        print(
            f"""
╭────────────────────────────────────╮
│  {self.name} - Knowledge API       │
╰────────────────────────────────────╯

Model: {self.config.BACKEND_MODEL}
Knowledge base: {self.service.config.base_url}
Host: {host}
Port: {port}
API: http://localhost:{port}/api
"""
        )

        # Security warning if binding to all interfaces
        if host == "0.0.0.0":
            print("⚠️  WARNING: Server is binding to 0.0.0.0 (all network interfaces)")
            print("   This exposes the API to your entire network without authentication.")
            print("   For security, use HOST=127.0.0.1 (localhost only) unless you need network access.\n")

        if not self.config.OPENAI_API_KEY:
            print("⚠️  Warning: OPENAI_API_KEY is not set. /api/chat requests will fail.\n")

        if refresh and self.config.REFRESH_ON_STARTUP:
            # Blocks until the startup crawl (if any) finishes
            self.scheduler.start()

        # Debug reloader would start a second scheduler in the child process
        self.app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)
