"""Competitive-intelligence scraping engine.

Public API::

    from compintel import scrape
    result = scrape("https://example.com/pricing", max_pages=3)
"""

from __future__ import annotations

from compintel.scraper import ScrapedResult, ScrapeEngine, ScrapeError


def scrape(url: str, max_pages: int | None = None) -> ScrapedResult:
    """One-off scrape with a throwaway :class:`ScrapeEngine`.

    Long-running callers should keep one engine alive instead, so the
    response cache and per-domain rate limiter carry over between calls.
    """
    with ScrapeEngine() as engine:
        return engine.scrape(url, max_pages=max_pages)


__all__ = ["scrape", "ScrapeEngine", "ScrapedResult", "ScrapeError"]
