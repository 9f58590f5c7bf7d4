"""Knowledge base configuration dataclass."""

import os
from dataclasses import dataclass, field

# Browser-like user agent; the documentation site blocks obvious bots
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0 Safari/537.36"
)

DEFAULT_SEED_PATHS = [
    "/Asset",
    "/Asset/Modules",
    "/Asset/Getting_Started",
    "/Asset/Administration",
]


@dataclass
class KnowledgeConfig:
    """Configuration for crawling and searching the knowledge base.

    Attributes:
        base_url: Origin every crawled path is joined to (e.g., "https://knowledge.eptura.com")
        seed_paths: Site-root relative paths crawled in order on each refresh
        link_prefixes: Path prefixes a discovered link must start with to be followed.
            Defaults to the first segment of each seed path (e.g., "/Asset").

        # Crawling settings
        max_depth: Maximum link hops from a seed (inclusive, default: 3)
        max_links_per_page: Discovered links followed per page (default: 10)
        min_content_length: Pages with extracted text this short or shorter are not stored (default: 50)
        request_timeout: HTTP request timeout in seconds (default: 10)
        child_delay: Seconds to wait before each child page visit (default: 0.5)
        seed_delay: Seconds to wait between seed sections (default: 1.0)
        crawl_timeout: Overall crawl deadline in seconds (None = unbounded)
        user_agent: User agent string sent with every request
        show_progress: Show a progress bar while crawling (default: False)

        # Refresh settings
        refresh_interval_hours: Hours between scheduled refreshes (default: 24)

        # Search settings
        search_top_k: Default number of results for internal callers (default: 5)
        excerpt_length: Total excerpt window in characters (default: 300)
    """

    # Core settings
    base_url: str = "https://knowledge.eptura.com"
    seed_paths: list[str] = field(default_factory=lambda: list(DEFAULT_SEED_PATHS))
    link_prefixes: list[str] | None = None

    # Crawling settings
    max_depth: int = 3
    max_links_per_page: int = 10
    min_content_length: int = 50
    request_timeout: float = 10.0
    child_delay: float = 0.5
    seed_delay: float = 1.0
    crawl_timeout: float | None = None
    user_agent: str = DEFAULT_USER_AGENT
    show_progress: bool = False

    # Refresh settings
    refresh_interval_hours: float = 24

    # Search settings
    search_top_k: int = 5
    excerpt_length: int = 300

    def __post_init__(self):
        """Normalize paths and validate limits."""
        self.base_url = self.base_url.rstrip("/")

        if not self.seed_paths:
            raise ValueError("At least one seed path is required")
        self.seed_paths = [_as_root_path(p) for p in self.seed_paths]

        if self.link_prefixes is None:
            prefixes = []
            for path in self.seed_paths:
                segment = "/" + path.strip("/").split("/")[0]
                if segment not in prefixes:
                    prefixes.append(segment)
            self.link_prefixes = prefixes
        else:
            self.link_prefixes = [_as_root_path(p) for p in self.link_prefixes]

        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.max_links_per_page < 0:
            raise ValueError(f"max_links_per_page must be >= 0, got {self.max_links_per_page}")
        if self.refresh_interval_hours <= 0:
            raise ValueError(f"refresh_interval_hours must be positive, got {self.refresh_interval_hours}")
        if self.crawl_timeout is not None and self.crawl_timeout <= 0:
            raise ValueError(f"crawl_timeout must be positive, got {self.crawl_timeout}")

    @classmethod
    def from_env(cls, env_prefix: str = ""):
        """Create config from KB_* environment variables with optional prefix.

        Args:
            env_prefix: Prefix for environment variables (e.g., "EPTURA_")

        Returns:
            KnowledgeConfig instance populated from environment
        """
        from dotenv import load_dotenv

        load_dotenv()

        def get_env(name: str):
            prefixed = os.getenv(f"{env_prefix}{name}", None)
            if prefixed is not None:
                return prefixed
            return os.getenv(name, None)

        def split_list(value: str) -> list[str]:
            return [item.strip() for item in value.split(",") if item.strip()]

        kwargs = {}
        if get_env("KB_BASE_URL"):
            kwargs["base_url"] = get_env("KB_BASE_URL")
        if get_env("KB_SEED_PATHS"):
            kwargs["seed_paths"] = split_list(get_env("KB_SEED_PATHS"))
        if get_env("KB_LINK_PREFIXES"):
            kwargs["link_prefixes"] = split_list(get_env("KB_LINK_PREFIXES"))
        if get_env("KB_MAX_DEPTH"):
            kwargs["max_depth"] = int(get_env("KB_MAX_DEPTH"))
        if get_env("KB_REFRESH_INTERVAL_HOURS"):
            kwargs["refresh_interval_hours"] = float(get_env("KB_REFRESH_INTERVAL_HOURS"))
        if get_env("KB_CRAWL_TIMEOUT"):
            kwargs["crawl_timeout"] = float(get_env("KB_CRAWL_TIMEOUT"))

        return cls(**kwargs)


def _as_root_path(path: str) -> str:
    """Ensure a path is site-root relative (leading slash, no trailing slash)."""
    path = path.strip()
    if not path.startswith("/"):
        path = "/" + path
    return path.rstrip("/") or "/"
