"""Base configuration for the Knowledge API Server."""

from typing import List, Optional


class ServerConfig:
    """Base configuration class for the Knowledge API Server.

    Projects should subclass this and override as needed.
    """

    # Chat completion backend (any OpenAI-compatible API)
    OPENAI_API_KEY: str = ""
    OPENAI_ENDPOINT: str = "https://api.openai.com/v1"
    BACKEND_MODEL: str = "gpt-3.5-turbo"
    DEFAULT_TEMPERATURE: float = 0.7
    MAX_TOKENS: int = 1000
    SYSTEM_PROMPT_PATH: str = "system_prompt.md"

    # Server configuration
    DEFAULT_HOST: str = "127.0.0.1"  # Default to localhost for security (use 0.0.0.0 for all interfaces)
    DEFAULT_PORT: int = 3001

    # Origins allowed to call the API from a browser
    ALLOWED_ORIGINS: List[str] = [
        "https://eptura-frontend-12.vercel.app",
        "http://localhost:5173",  # local Vite dev server
    ]

    # Conversation turns forwarded to the backend along with the new message
    MAX_HISTORY_MESSAGES: int = 10

    # Knowledge base documents embedded in the chat prompt
    CHAT_CONTEXT_RESULTS: int = 3

    # Default result count for the search endpoint
    SEARCH_DEFAULT_LIMIT: int = 10

    # Crawl on startup when the knowledge base is stale, then on an interval
    REFRESH_ON_STARTUP: bool = True

    # Per-client request limit (flask-limiter syntax) and its counter storage
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT: str = "100 per 15 minutes"
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    LOG_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB default
    LOG_BACKUP_COUNT: int = 5  # Keep 5 backup files

    # Backend timeout settings (in seconds)
    BACKEND_CONNECT_TIMEOUT: int = 10  # Connection timeout
    BACKEND_READ_TIMEOUT: int = 60  # Read timeout

    # Retry settings for backend calls
    BACKEND_RETRY_ATTEMPTS: int = 3  # Number of retry attempts for connection errors
    BACKEND_RETRY_INITIAL_DELAY: float = 1.0  # Initial delay in seconds (doubles each retry)

    @classmethod
    def from_env(cls, env_prefix: str = ""):
        """Create config from environment variables with optional prefix.

        Args:
            env_prefix: Prefix for environment variables (e.g., "EPTURA_")

        Returns:
            ServerConfig instance populated from environment
        """
        import os

        from dotenv import load_dotenv

        load_dotenv()

        config = cls()

        # Helper to get env var with prefix
        def get_env(name: str, default):
            # Try with prefix first, then without
            prefixed = os.getenv(f"{env_prefix}{name}", None)
            if prefixed is not None:
                return prefixed
            return os.getenv(name, default)

        config.OPENAI_API_KEY = get_env("OPENAI_API_KEY", cls.OPENAI_API_KEY)
        config.OPENAI_ENDPOINT = get_env("OPENAI_ENDPOINT", cls.OPENAI_ENDPOINT).rstrip("/")
        config.BACKEND_MODEL = get_env("OPENAI_MODEL", cls.BACKEND_MODEL)
        config.DEFAULT_TEMPERATURE = float(get_env("TEMPERATURE", str(cls.DEFAULT_TEMPERATURE)))
        config.MAX_TOKENS = int(get_env("MAX_TOKENS", str(cls.MAX_TOKENS)))
        config.SYSTEM_PROMPT_PATH = get_env("SYSTEM_PROMPT_PATH", cls.SYSTEM_PROMPT_PATH)
        config.DEFAULT_HOST = get_env("HOST", cls.DEFAULT_HOST)
        config.DEFAULT_PORT = int(get_env("PORT", str(cls.DEFAULT_PORT)))
        origins = get_env("ALLOWED_ORIGINS", None)
        if origins:
            config.ALLOWED_ORIGINS = [origin.strip() for origin in origins.split(",") if origin.strip()]
        config.REFRESH_ON_STARTUP = get_env("REFRESH_ON_STARTUP", "").lower() not in ("false", "0", "no")
        config.RATE_LIMIT_ENABLED = get_env("RATE_LIMIT_ENABLED", "").lower() not in ("false", "0", "no")
        config.RATE_LIMIT = get_env("RATE_LIMIT", cls.RATE_LIMIT)
        config.RATE_LIMIT_STORAGE_URI = get_env("RATE_LIMIT_STORAGE_URI", cls.RATE_LIMIT_STORAGE_URI)
        config.LOG_LEVEL = get_env("LOG_LEVEL", cls.LOG_LEVEL).upper()
        config.LOG_FILE = get_env("LOG_FILE", cls.LOG_FILE) or None
        config.LOG_MAX_BYTES = int(get_env("LOG_MAX_BYTES", str(cls.LOG_MAX_BYTES)))
        config.LOG_BACKUP_COUNT = int(get_env("LOG_BACKUP_COUNT", str(cls.LOG_BACKUP_COUNT)))
        config.BACKEND_CONNECT_TIMEOUT = int(get_env("BACKEND_CONNECT_TIMEOUT", str(cls.BACKEND_CONNECT_TIMEOUT)))
        config.BACKEND_READ_TIMEOUT = int(get_env("BACKEND_READ_TIMEOUT", str(cls.BACKEND_READ_TIMEOUT)))
        config.BACKEND_RETRY_ATTEMPTS = int(get_env("BACKEND_RETRY_ATTEMPTS", str(cls.BACKEND_RETRY_ATTEMPTS)))
        config.BACKEND_RETRY_INITIAL_DELAY = float(
            get_env("BACKEND_RETRY_INITIAL_DELAY", str(cls.BACKEND_RETRY_INITIAL_DELAY))
        )

        return config
