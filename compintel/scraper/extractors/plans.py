"""Plan/tier context lookups shared by several extractors."""

from __future__ import annotations

import re

from bs4 import Tag

from compintel.scraper.normalizer import Document
from compintel.scraper.scoring import looks_like_script

# Containers that usually wrap one pricing tier.
PLAN_CONTAINER = '[class*="plan"], [class*="tier"], [class*="card"], [class*="package"]'
# Narrower variant for features and buttons: generic cards are too noisy there.
TIER_CONTAINER = '[class*="plan"], [class*="tier"]'

_NAME_SELECTOR = 'h1, h2, h3, h4, .title, [class*="name"], [class*="label"]'
_FEATURE_SELECTOR = 'li, [class*="feature"], [class*="benefit"], [class*="include"]'

_TIER_WORDS = re.compile(
    r"\b(Basic|Standard|Premium|Pro|Enterprise|Starter|Free|Plus|Advanced|Business|"
    r"Individual|Team|Professional|Lite|Ultimate)\b",
    re.IGNORECASE,
)

DEFAULT_PLAN = "Standard Plan"
_MAX_PLAN_FEATURES = 8
# Section headings only; an h1 is usually the page title.
_SECTION_HEADINGS = ("h2", "h3", "h4")
_SECTION_DEPTH = 3
_PAGE_ROOTS = {"body", "html", "[document]"}


def _usable_name(doc: Document, heading: Tag) -> str | None:
    text = doc.text(heading)
    if "$" in text or not 2 <= len(text) < 50:
        return None
    return text


def plan_heading(doc: Document, node: Tag, container: str = PLAN_CONTAINER) -> str | None:
    """Name of the tier *node* belongs to, read from its container's heading."""
    parent = doc.closest(node, container)
    if parent is None:
        return None
    heading = parent.select_one(_NAME_SELECTOR)
    if heading is None:
        return None
    return _usable_name(doc, heading)


def section_heading(doc: Document, node: Tag) -> str | None:
    """Closest heading before *node* that shares one of its nearest ancestors."""
    heading = node.find_previous(_SECTION_HEADINGS)
    if heading is None:
        return None
    scope = {
        id(ancestor)
        for ancestor in list(node.parents)[:_SECTION_DEPTH]
        if ancestor.name not in _PAGE_ROOTS
    }
    if not any(id(ancestor) in scope for ancestor in heading.parents):
        return None
    return _usable_name(doc, heading)


def plan_name(doc: Document, node: Tag, text: str) -> str:
    """Name of the plan *node* prices.

    Tried in order: the heading of the enclosing tier container, the nearest
    preceding section heading, a tier word in *text*, the default.
    """
    heading = plan_heading(doc, node) or section_heading(doc, node)
    if heading:
        return heading
    match = _TIER_WORDS.search(text)
    return match.group(1) if match else DEFAULT_PLAN


def plan_features(doc: Document, node: Tag) -> list[str]:
    """Short feature bullets that live in the same tier container as *node*."""
    parent = doc.closest(node, PLAN_CONTAINER)
    if parent is None:
        return []

    features: list[str] = []
    for item in parent.select(_FEATURE_SELECTOR):
        text = doc.text(item)
        if (
            3 < len(text) < 120
            and "$" not in text
            and not looks_like_script(text)
            and text not in features
        ):
            features.append(text)
        if len(features) >= _MAX_PLAN_FEATURES:
            break
    return features
