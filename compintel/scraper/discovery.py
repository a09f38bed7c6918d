"""Related-page discovery: pricing / plans / offers links on the seed page."""

from __future__ import annotations

import logging
import re
from urllib.parse import urldefrag, urljoin, urlparse

from compintel.scraper.models import PageRef, PageType
from compintel.scraper.normalizer import Document

logger = logging.getLogger(__name__)

_KEYWORDS = re.compile(r"pricing|plans|offers|coupons|discounts|deals|promotions", re.IGNORECASE)
_SKIPPED_SCHEMES = ("mailto:", "tel:", "javascript:", "data:")

_PAGE_TYPES: list[tuple[re.Pattern[str], PageType]] = [
    (re.compile(r"pricing"), "pricing"),
    (re.compile(r"plans"), "plans"),
    (re.compile(r"features"), "features"),
    (re.compile(r"offers|deals"), "offers"),
    (re.compile(r"coupons"), "coupons"),
]

DEFAULT_PAGE_TITLE = "Related page"


def classify_page_type(url: str) -> PageType:
    """Page type from keywords in *url*; unknown URLs count as pricing pages."""
    lowered = url.lower()
    for pattern, page_type in _PAGE_TYPES:
        if pattern.search(lowered):
            return page_type
    return "pricing"


def _origin(url: str) -> tuple[str, str]:
    parsed = urlparse(url)
    return parsed.scheme.lower(), parsed.netloc.lower()


def discover_related_pages(doc: Document, seed_url: str, max_pages: int) -> list[PageRef]:
    """Return up to *max_pages* same-origin links that look like pricing pages.

    A link qualifies when its text or href mentions pricing, plans, offers,
    coupons, discounts, deals or promotions.  Fragments are stripped before
    comparison, so ``/pricing#team`` and ``/pricing`` are one page, and the
    seed itself is never returned.
    """
    if max_pages <= 0:
        return []

    seed, _ = urldefrag(seed_url)
    seed_origin = _origin(seed)
    pages: list[PageRef] = []
    seen: set[str] = {seed}

    for anchor in doc.select("a[href]"):
        href = (doc.attr(anchor, "href") or "").strip()
        if not href or href.startswith("#") or href.lower().startswith(_SKIPPED_SCHEMES):
            continue
        text = doc.text(anchor)
        if not (_KEYWORDS.search(text) or _KEYWORDS.search(href)):
            continue

        try:
            target, _ = urldefrag(urljoin(seed, href))
            origin = _origin(target)
        except ValueError:
            logger.debug("[DISCOVER] Skipping malformed link %r", href)
            continue
        if origin != seed_origin or target in seen:
            continue
        seen.add(target)
        pages.append(
            PageRef(
                url=target,
                title=text[:100] or DEFAULT_PAGE_TITLE,
                type=classify_page_type(target),
            )
        )
        if len(pages) >= max_pages:
            break

    logger.info("[DISCOVER] %d related page(s) found on %s", len(pages), seed_url)
    return pages
