"""HTTP fetcher with retry/backoff, per-domain pacing and a TTL cache.

Only server-rendered HTML is handled; nothing here executes JavaScript.
"""

from __future__ import annotations

import json
import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

import httpx

from compintel.config import settings
from compintel.scraper.errors import FetchError, ParseError
from compintel.scraper.models import RawPage

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Request fingerprint
# ---------------------------------------------------------------------------
_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:123.0) Gecko/20100101 Firefox/123.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.3 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
]

_BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

# Upper bound (seconds) of the random jitter added to each backoff delay.
_JITTER_MAX = 1.0


# ---------------------------------------------------------------------------
# Shared state
# ---------------------------------------------------------------------------

@dataclass
class _CacheEntry:
    body: str
    expires_at: float


class FetcherState:
    """Response cache and per-domain request times for one fetcher.

    ``lock`` guards both maps.  It is held only while reading or updating
    them, never across network I/O or a sleep.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.cache: dict[str, _CacheEntry] = {}
        self.last_request: dict[str, float] = {}

    def cached(self, url: str, now: float) -> str | None:
        """Return the cached body for *url*, evicting it if it has expired."""
        with self.lock:
            entry = self.cache.get(url)
            if entry is None:
                return None
            if entry.expires_at <= now:
                del self.cache[url]
                return None
            return entry.body

    def store(self, url: str, body: str, ttl: float, now: float) -> None:
        with self.lock:
            self.cache[url] = _CacheEntry(body=body, expires_at=now + ttl)

    def reserve_slot(self, domain: str, interval: float, now: float) -> float:
        """Book the next request slot for *domain* and return the wait in seconds.

        The check and the update happen under one lock acquisition, so two
        callers racing on the same domain get consecutive slots.
        """
        with self.lock:
            last = self.last_request.get(domain)
            wait = 0.0 if last is None else max(0.0, last + interval - now)
            self.last_request[domain] = now + wait
            return wait

    def clear(self) -> None:
        with self.lock:
            self.cache.clear()


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------

class Fetcher:
    """Polite HTTP GET client used by every stage of the engine.

    Args:
        state: Shared cache / rate-limiter state.  A fresh one is created when
            omitted.
        client: Pre-built ``httpx.Client``.  When omitted the fetcher builds
            and owns one (closed by :meth:`close`).
        min_interval: Minimum seconds between requests to the same domain.
        max_retries: Total attempts per URL.
        backoff_base: Base delay for exponential backoff between attempts.
        cache_ttl: Seconds a successful body stays cached.
    """

    def __init__(
        self,
        *,
        state: FetcherState | None = None,
        client: httpx.Client | None = None,
        timeout: float | None = None,
        min_interval: float | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        cache_ttl: float | None = None,
    ) -> None:
        self.state = state or FetcherState()
        self.min_interval = settings.rate_limit_interval if min_interval is None else min_interval
        self.max_retries = max(1, settings.max_retries if max_retries is None else max_retries)
        self.backoff_base = settings.retry_base_delay if backoff_base is None else backoff_base
        self.cache_ttl = settings.cache_ttl if cache_ttl is None else cache_ttl

        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=settings.request_timeout if timeout is None else timeout,
            follow_redirects=True,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def clear_cache(self) -> None:
        self.state.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        return {"User-Agent": random.choice(_USER_AGENTS), **_BROWSER_HEADERS}

    def _respect_rate_limit(self, domain: str) -> None:
        wait = self.state.reserve_slot(domain, self.min_interval, time.monotonic())
        if wait > 0:
            logger.info("[FETCH] Rate limiting: waiting %.2fs for %s", wait, domain)
            time.sleep(wait)

    def _backoff(self, attempt: int) -> float:
        return self.backoff_base * (2 ** attempt) + random.uniform(0, _JITTER_MAX)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def fetch_page(self, url: str) -> RawPage:
        """Fetch *url* and return a :class:`RawPage`.

        Served from the cache when a fresh entry exists.  Otherwise waits for
        the domain's next request slot and issues the GET, retrying non-2xx
        responses and transport errors with exponential backoff.

        Raises:
            FetchError: If every attempt failed, or *url* is not an absolute
                http(s) URL.
        """
        cached = self.state.cached(url, time.monotonic())
        if cached is not None:
            logger.debug("[FETCH] Using cached body for %s", url)
            return RawPage(url=url, html=cached, status_code=200, from_cache=True)

        try:
            parsed = urlparse(url)
        except ValueError as exc:
            raise FetchError(url, cause=exc) from exc
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise FetchError(url, cause=ValueError("not an absolute http(s) URL"))
        domain = parsed.netloc.lower()

        last_status: int | None = None
        last_exc: BaseException | None = None

        for attempt in range(self.max_retries):
            self._respect_rate_limit(domain)
            logger.debug("[FETCH] Attempt %d/%d: %s", attempt + 1, self.max_retries, url)
            try:
                response = self._client.get(url, headers=self._headers())
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                last_status, last_exc = None, exc
                logger.warning(
                    "[FETCH] Attempt %d/%d failed for %s: %s",
                    attempt + 1, self.max_retries, url, exc,
                )
            else:
                if response.is_success:
                    html = response.text
                    self.state.store(url, html, self.cache_ttl, time.monotonic())
                    logger.info("[FETCH] Fetched %s (%d chars)", url, len(html))
                    return RawPage(url=url, html=html, status_code=response.status_code)
                last_status, last_exc = response.status_code, None
                logger.warning(
                    "[FETCH] Attempt %d/%d for %s returned HTTP %d",
                    attempt + 1, self.max_retries, url, response.status_code,
                )

            if attempt < self.max_retries - 1:
                time.sleep(self._backoff(attempt))

        raise FetchError(url, status_code=last_status, cause=last_exc)

    def fetch(self, url: str) -> str:
        """Return the body of *url*; see :meth:`fetch_page`."""
        return self.fetch_page(url).html

    def get_json(self, url: str) -> Any:
        """Fetch *url* and decode its body as JSON.

        Raises:
            FetchError: On network / status failure.
            ParseError: If the body is not valid JSON.
        """
        body = self.fetch(url)
        try:
            return json.loads(body)
        except ValueError as exc:
            raise ParseError(f"invalid JSON from {url}: {exc}") from exc
