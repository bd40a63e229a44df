"""
Unified Run Configuration
=========================
Single source of truth for all scraper defaults and runtime limits.

Every subsystem (CLI, navigation sessions, retry ladder, retrieval) reads
from this object. Environment variables and CLI flags populate it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError
from .presets import CATALOG_ORIGIN, CATEGORIES_URL, INDEX_URL

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canonical defaults - the ONLY place these numbers live
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "base_origin": CATALOG_ORIGIN,
    "index_url": INDEX_URL,
    "categories_url": CATEGORIES_URL,
    "data_dir": "data",
    "headless": True,
    "use_browser": True,
    "user_agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
    ),
    # Navigation timeouts (ms). 0 means wait indefinitely.
    "primary_timeout_ms": 0,
    "retry_timeout_ms": 30_000,
    "content_timeout_ms": 5_000,
    "discovery_timeout_ms": 60_000,
    "delay_between_pages": 0.0,      # seconds
    # Retrieval
    "embedding_backend": "openai",   # "openai" | "bow"
    "embedding_model": "text-embedding-3-small",
    "generation_model": "gpt-4o-mini",
    "top_k": 3,
}

# Artifact file names inside ``data_dir``
FAILED_TARGETS_FILE = "failed_targets.json"
PRODUCTS_FILE = "products.json"
CATEGORY_TREE_FILE = "category_products.json"
MERGED_PRODUCTS_FILE = "merged_products.json"
LINK_CONTENT_FILE = "internal_links_content.json"
FAILED_LINKS_FILE = "failed_internal_links.json"
REPOSITORY_FILE = "vector_entries.json"
VOCABULARY_FILE = "vocabulary.json"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ScraperRunConfig:
    """
    Unified configuration consumed by every scraper subsystem.

    Populate via:
      - ``ScraperRunConfig()``                 -> all defaults
      - ``ScraperRunConfig(data_dir="/tmp")``  -> override one value
      - ``ScraperRunConfig.from_env()``        -> CATALOG_* / OPENAI_* variables
      - ``cfg.apply_cli_args(ns)``             -> argparse overrides
    """

    # ---- Catalog ----
    base_origin: str = _DEFAULTS["base_origin"]
    index_url: str = _DEFAULTS["index_url"]
    categories_url: str = _DEFAULTS["categories_url"]

    # ---- Storage ----
    data_dir: str = _DEFAULTS["data_dir"]

    # ---- Navigation ----
    headless: bool = _DEFAULTS["headless"]
    use_browser: bool = _DEFAULTS["use_browser"]
    user_agent: str = _DEFAULTS["user_agent"]
    primary_timeout_ms: int = _DEFAULTS["primary_timeout_ms"]
    retry_timeout_ms: int = _DEFAULTS["retry_timeout_ms"]
    content_timeout_ms: int = _DEFAULTS["content_timeout_ms"]
    discovery_timeout_ms: int = _DEFAULTS["discovery_timeout_ms"]
    delay_between_pages: float = _DEFAULTS["delay_between_pages"]

    # ---- Retrieval ----
    embedding_backend: str = _DEFAULTS["embedding_backend"]
    embedding_model: str = _DEFAULTS["embedding_model"]
    generation_model: str = _DEFAULTS["generation_model"]
    top_k: int = _DEFAULTS["top_k"]
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None

    # -----------------------------------------------------------------------
    # Factory helpers
    # -----------------------------------------------------------------------
    @classmethod
    def from_env(cls) -> "ScraperRunConfig":
        """Build config from environment variables (call ``load_dotenv`` first)."""
        return cls(
            base_origin=os.getenv("CATALOG_BASE_ORIGIN", _DEFAULTS["base_origin"]),
            index_url=os.getenv("CATALOG_INDEX_URL", _DEFAULTS["index_url"]),
            categories_url=os.getenv("CATALOG_CATEGORIES_URL", _DEFAULTS["categories_url"]),
            data_dir=os.getenv("CATALOG_DATA_DIR", _DEFAULTS["data_dir"]),
            headless=_env_bool("CATALOG_HEADLESS", _DEFAULTS["headless"]),
            use_browser=_env_bool("CATALOG_USE_BROWSER", _DEFAULTS["use_browser"]),
            delay_between_pages=float(
                os.getenv("CATALOG_DELAY_BETWEEN_PAGES", _DEFAULTS["delay_between_pages"])
            ),
            embedding_backend=os.getenv("CATALOG_EMBEDDING_BACKEND", _DEFAULTS["embedding_backend"]),
            embedding_model=os.getenv("OPENAI_EMBEDDING_MODEL", _DEFAULTS["embedding_model"]),
            generation_model=os.getenv("OPENAI_MODEL", _DEFAULTS["generation_model"]),
            top_k=int(os.getenv("CATALOG_TOP_K", _DEFAULTS["top_k"])),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
        )

    def apply_cli_args(self, args) -> "ScraperRunConfig":
        """Override fields from an argparse Namespace (``__main__.py``)."""
        if getattr(args, "data_dir", None):
            self.data_dir = args.data_dir
        if getattr(args, "static", False):
            self.use_browser = False
        if getattr(args, "headed", False):
            self.headless = False
        if getattr(args, "embedding_backend", None):
            self.embedding_backend = args.embedding_backend
        if getattr(args, "top_k", None):
            self.top_k = args.top_k
        return self

    # -----------------------------------------------------------------------
    # Validation
    # -----------------------------------------------------------------------
    @property
    def needs_openai(self) -> bool:
        return self.embedding_backend == "openai"

    def require_openai(self) -> None:
        """Raise ``ConfigurationError`` when the OpenAI credential is absent."""
        if not self.openai_api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY is not set; it is required for embeddings and answers",
                {'embedding_backend': self.embedding_backend},
            )

    def validate(self) -> None:
        if self.embedding_backend not in ("openai", "bow"):
            raise ConfigurationError(
                f"Unknown embedding backend: {self.embedding_backend}",
                {'allowed': ['openai', 'bow']},
            )
        if self.top_k < 1:
            raise ConfigurationError("top_k must be at least 1", {'top_k': self.top_k})

    # -----------------------------------------------------------------------
    # Artifact paths
    # -----------------------------------------------------------------------
    def path(self, filename: str) -> Path:
        return Path(self.data_dir) / filename

    # -----------------------------------------------------------------------
    # Logging helper
    # -----------------------------------------------------------------------
    def log_summary(self, command: str) -> None:
        """Emit a structured summary to the logger."""
        logger.info("=" * 60)
        logger.info("CATALOG SCRAPER RUN CONFIG")
        logger.info("=" * 60)
        logger.info(f"  Command:          {command}")
        logger.info(f"  Origin:           {self.base_origin}")
        logger.info(f"  Data Dir:         {Path(self.data_dir).absolute()}")
        logger.info(f"  Driver:           {'Playwright' if self.use_browser else 'static (requests)'}")
        logger.info(f"  Headless:         {self.headless}")
        logger.info(f"  Retry Timeout:    {self.retry_timeout_ms}ms")
        logger.info(f"  Content Timeout:  {self.content_timeout_ms}ms")
        logger.info(f"  Embeddings:       {self.embedding_backend}")
        if self.needs_openai:
            logger.info(f"  Embedding Model:  {self.embedding_model}")
        logger.info(f"  Generation Model: {self.generation_model}")
        logger.info("=" * 60)
