"""Page-level content: title, description, headings and readable text.

The readable text and headings are what callers hand to the change-analysis
collaborator when comparing two scrapes of the same URL.
"""

from __future__ import annotations

import trafilatura
from bs4 import BeautifulSoup

from compintel.scraper.models import NO_DESCRIPTION, NO_TITLE
from compintel.scraper.normalizer import CHROME_TAGS, STRIPPED_TAGS, Document

_MAX_HEADINGS = 20
_MAX_DESCRIPTION = 200


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _meta_content(doc: Document, selector: str) -> str:
    node = doc.select_one(selector)
    if node is None:
        return ""
    return " ".join((doc.attr(node, "content") or "").split())


def _bs4_fallback(html: str) -> str:
    """Text of ``<main>``, ``<article>`` or ``<body>`` with code and page chrome removed."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup([*STRIPPED_TAGS, *CHROME_TAGS]):
        tag.decompose()
    container = soup.find("main") or soup.find("article") or soup.body or soup
    return " ".join(container.get_text(" ", strip=True).split())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_title(doc: Document) -> str:
    """``<title>``, else the first ``<h1>``, else :data:`NO_TITLE`."""
    for selector in ("title", "h1"):
        node = doc.select_one(selector)
        if node is not None:
            text = doc.text(node)
            if text:
                return text
    return NO_TITLE


def extract_description(doc: Document) -> str:
    """Meta / Open Graph description, else the first paragraph, else a placeholder."""
    description = (
        _meta_content(doc, 'meta[name="description"]')
        or _meta_content(doc, 'meta[property="og:description"]')
    )
    if not description:
        first_p = doc.select_one("p")
        if first_p is not None:
            description = doc.text(first_p)[:_MAX_DESCRIPTION]
    return description or NO_DESCRIPTION


def extract_headings(doc: Document, limit: int = _MAX_HEADINGS) -> list[str]:
    """Distinct ``h1``–``h3`` texts in document order."""
    seen: set[str] = set()
    headings: list[str] = []
    for node in doc.select("h1, h2, h3"):
        text = doc.text(node)
        if text and text not in seen:
            seen.add(text)
            headings.append(text)
        if len(headings) >= limit:
            break
    return headings


def extract_readable_text(html: str, url: str = "", max_chars: int = 10_000) -> str:
    """Return the main readable text of *html*, at most *max_chars* long.

    ``trafilatura`` does the extraction; the BeautifulSoup fallback covers pages
    where it finds nothing (very short or unusual markup).
    """
    text: str | None = trafilatura.extract(
        html,
        include_links=False,
        include_images=False,
        include_tables=True,
        url=url or None,
    )

    if not text:
        text = _bs4_fallback(html)

    return (text or "")[:max_chars]
