"""Runtime settings for compintel.

Fetch pacing, retry and cache limits, crawl depth and the Wayback switch all
come from the environment.  A `.env` file at the project root is read on
import, and real environment variables take precedence over it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from the package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Fetcher
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    rate_limit_interval: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_INTERVAL", "2.0"))
    )
    max_retries: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_MAX_RETRIES", "3"))
    )
    retry_base_delay: float = field(
        default_factory=lambda: float(os.environ.get("FETCH_RETRY_BASE_DELAY", "1.0"))
    )
    cache_ttl: float = field(
        default_factory=lambda: float(os.environ.get("CACHE_TTL_SECONDS", "1800"))
    )

    # ------------------------------------------------------------------
    # Orchestrator
    # ------------------------------------------------------------------
    default_max_pages: int = field(
        default_factory=lambda: int(os.environ.get("SCRAPE_MAX_PAGES", "3"))
    )
    wayback_enabled: bool = field(
        default_factory=lambda: _env_bool("WAYBACK_ENABLED", "true")
    )
    enrichment_workers: int = field(
        default_factory=lambda: int(os.environ.get("ENRICHMENT_WORKERS", "3"))
    )
    content_max_chars: int = field(
        default_factory=lambda: int(os.environ.get("CONTENT_MAX_CHARS", "10000"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )


# Shared instance; import it rather than building Settings() ad hoc:
#   from compintel.config import settings
settings = Settings()
