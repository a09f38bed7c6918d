"""Scrape orchestrator.

Pipeline for one seed URL:

    fetch seed ─┬─ alternative sources (waits on the seed body)
                └─ Wayback lookup
    normalise → extractors → structured-pricing reconciliation
    → related pages (coupons / discounts) → quality → ScrapedResult

Only a failure to fetch or parse the seed page aborts the scrape; every
other stage degrades to "no data" and logs why.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from datetime import datetime, timezone

from compintel.config import settings
from compintel.scraper.content import (
    extract_description,
    extract_headings,
    extract_readable_text,
    extract_title,
)
from compintel.scraper.discovery import discover_related_pages
from compintel.scraper.enricher import (
    collect_alternative_sources,
    lookup_wayback,
    reconcile_pricing,
    structured_pricing,
)
from compintel.scraper.errors import FetchError, ParseError, ScrapeError
from compintel.scraper.extractors import extract_coupons, extract_discounts, extract_signals
from compintel.scraper.fetcher import Fetcher
from compintel.scraper.models import (
    HTML_SOURCE,
    EnrichmentFinding,
    PageRef,
    ScrapedResult,
    ScrapeMetadata,
)
from compintel.scraper.normalizer import normalize
from compintel.scraper.quality import data_quality
from compintel.scraper.scoring import CAPS, MIN_CONFIDENCE, rank

logger = logging.getLogger(__name__)


class ScrapeEngine:
    """Owns one :class:`Fetcher`, so its cache and rate limiter are shared
    by every :meth:`scrape` call made through this engine.

    Args:
        fetcher: Fetcher to use.  When omitted the engine builds one and
            closes it in :meth:`close`.
        include_history: Query the Wayback Machine for archived snapshots.
            Defaults to ``settings.wayback_enabled``.
        max_workers: Thread-pool size for the enrichment fan-out.
    """

    def __init__(
        self,
        fetcher: Fetcher | None = None,
        *,
        include_history: bool | None = None,
        max_workers: int | None = None,
    ) -> None:
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or Fetcher()
        self.include_history = (
            settings.wayback_enabled if include_history is None else include_history
        )
        self.max_workers = max(2, max_workers or settings.enrichment_workers)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        if self._owns_fetcher:
            self.fetcher.close()

    def __enter__(self) -> "ScrapeEngine":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def _alternative_sources(self, seed: Future, url: str) -> list[EnrichmentFinding]:
        return collect_alternative_sources(seed.result(), url)

    def _fan_out(self, url: str) -> tuple[str, list[EnrichmentFinding]]:
        """Fetch the seed and run the enrichment tasks next to it.

        Returns the seed body and the findings in a fixed order (page sources
        first, then history) regardless of which task finished first.

        Raises:
            ScrapeError: If the seed page could not be fetched.
        """
        alternative: list[EnrichmentFinding] = []
        history: EnrichmentFinding | None = None

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="enrich") as pool:
            seed = pool.submit(self.fetcher.fetch, url)
            tasks = {pool.submit(self._alternative_sources, seed, url): "alternative-sources"}
            if self.include_history:
                tasks[pool.submit(lookup_wayback, self.fetcher, url)] = "wayback"

            try:
                html = seed.result()
            except FetchError as exc:
                raise ScrapeError(url, exc) from exc

            for future in as_completed(tasks):
                name = tasks[future]
                try:
                    outcome = future.result()
                except Exception as exc:
                    logger.warning("[ENRICH] %s task failed for %s: %s", name, url, exc)
                    continue
                if name == "wayback":
                    history = outcome
                else:
                    alternative = outcome

        findings = list(alternative)
        if history is not None:
            findings.append(history)
        return html, findings

    def _related_pages(self, pages: list[PageRef]):
        """Fetch each related page in turn and yield ``(page, document)`` pairs.

        Pages that fail to fetch or parse are logged and skipped.
        """
        for page in pages:
            try:
                doc = normalize(self.fetcher.fetch(page.url), page.url)
            except (FetchError, ParseError) as exc:
                logger.warning("[SCRAPE] Skipping related page %s: %s", page.url, exc)
                continue
            yield page, doc

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def scrape(self, url: str, max_pages: int | None = None) -> ScrapedResult:
        """Scrape *url* and up to *max_pages* related pages.

        Raises:
            ScrapeError: If the seed page could not be fetched or parsed.
        """
        started = time.perf_counter()
        budget = settings.default_max_pages if max_pages is None else max(0, max_pages)
        logger.info("[SCRAPE] Starting scrape for %s (max %d related pages)", url, budget)

        html, findings = self._fan_out(url)
        try:
            doc = normalize(html, url)
        except ParseError as exc:
            raise ScrapeError(url, exc) from exc

        signals = extract_signals(doc)
        pricing = reconcile_pricing(signals.pricing, structured_pricing(findings))

        coupons = list(signals.coupons)
        discounts = list(signals.discounts)
        pages: list[PageRef] = []
        for page, related in self._related_pages(discover_related_pages(doc, url, budget)):
            coupons.extend(extract_coupons(related))
            discounts.extend(extract_discounts(related))
            pages.append(page)

        sources = [HTML_SOURCE]
        for finding in findings:
            if finding.source not in sources:
                sources.append(finding.source)

        result = ScrapedResult(
            title=extract_title(doc),
            description=extract_description(doc),
            metadata=ScrapeMetadata(
                url=url,
                scraped_at=datetime.now(timezone.utc).isoformat(),
                pages_scraped=1 + len(pages),
                sources=sources,
            ),
            pricing=pricing,
            coupons=rank(coupons, min_confidence=MIN_CONFIDENCE["coupons"], limit=CAPS["coupons"]),
            discounts=rank(
                discounts, min_confidence=MIN_CONFIDENCE["discounts"], limit=CAPS["discounts"]
            ),
            features=signals.features,
            buttons=signals.buttons,
            pages=pages,
            headings=extract_headings(doc),
            content=extract_readable_text(html, url, max_chars=settings.content_max_chars),
            findings=findings,
        )
        result.metadata.data_quality = data_quality(result)
        result.metadata.processing_time_ms = int((time.perf_counter() - started) * 1000)

        logger.info(
            "[SCRAPE] Found: %d pricing items, %d coupons, %d discounts, %d features, %d buttons",
            len(result.pricing), len(result.coupons), len(result.discounts),
            len(result.features), len(result.buttons),
        )
        logger.info(
            "[SCRAPE] Completed %s in %dms (quality %.1f, sources: %s)",
            url, result.metadata.processing_time_ms, result.metadata.data_quality,
            ", ".join(sources),
        )
        return result
