"""Feature extractor: product capabilities listed on the page."""

from __future__ import annotations

import re

from bs4 import Tag

from compintel.scraper.extractors.plans import TIER_CONTAINER, plan_heading
from compintel.scraper.models import FeatureCategory, FeatureItem
from compintel.scraper.normalizer import CHROME_TAGS, Document
from compintel.scraper.scoring import (
    CAPS,
    CODE_TAGS,
    FEATURE_WEIGHTS,
    MIN_CONFIDENCE,
    looks_like_script,
    rank,
    score,
)

_CANDIDATE_SELECTORS = [
    "li",
    '[class*="feature"]',
    '[class*="benefit"]',
    '[class*="capability"]',
    '[class*="include"]',
    '[class*="spec"]:not([class*="special"])',
]
_CHROME_CLASSES = '.navigation, .menu, [class*="breadcrumb"], [class*="cookie"]'

_CHROME_TEXT = [
    re.compile(
        r"^(home|about( us)?|contact( us)?|log ?in|log ?out|sign ?(up|in)|register|privacy"
        r"( policy)?|terms( of (service|use))?|cookies?( policy| settings)?|blog|careers|faq|"
        r"sitemap|support)$",
        re.I,
    ),
    re.compile(
        r"^(search|cart|menu|toggle|close|open|main content|skip to( main)? content|"
        r"skip navigation|back to top|accessibility)$",
        re.I,
    ),
    re.compile(r"©|\bcopyright\b|all rights reserved", re.I),
    re.compile(r"^\d+$"),
    re.compile(r"^[^\w\s]+$"),
    re.compile(r"javascript:|onclick=", re.I),
]

_CATEGORY_RULES: list[tuple[re.Pattern[str], FeatureCategory]] = [
    (re.compile(r"\b(enterprise|unlimited|priority|dedicated|custom|sso|saml|sla|audit logs?)\b", re.I), "enterprise"),
    (re.compile(r"\b(premium|pro|plus|advanced|enhanced|extended)\b", re.I), "premium"),
    (re.compile(r"\b(add-?ons?|extensions?|plugins?|extras?|additional)\b", re.I), "addon"),
]
_PLAN_RULES: list[tuple[re.Pattern[str], FeatureCategory]] = [
    (re.compile(r"enterprise|business", re.I), "enterprise"),
    (re.compile(r"\b(pro|premium|plus)\b", re.I), "premium"),
]

_LIST_CONTEXT = '[class*="feature"], [class*="benefit"], ul, ol'
_ICON = 'svg, img, i[class*="icon"], [class*="icon"], [class*="check"], [class*="tick"]'
_CHECK_MARKS = ("✓", "✔", "☑", "✅")


def is_valid_feature(doc: Document, node: Tag, text: str) -> bool:
    """Length window, outside page chrome, and not a navigation label."""
    if not 5 <= len(text) <= 200:
        return False
    if doc.within(node, CHROME_TAGS) or doc.closest(node, _CHROME_CLASSES) is not None:
        return False
    return not any(pattern.search(text) for pattern in _CHROME_TEXT)


def categorize_feature(text: str, plan: str | None = None) -> FeatureCategory:
    for pattern, category in _CATEGORY_RULES:
        if pattern.search(text):
            return category
    if plan:
        for pattern, category in _PLAN_RULES:
            if pattern.search(plan):
                return category
    return "core"


def _signals(doc: Document, node: Tag, text: str) -> list[str]:
    signals: list[str] = []
    if doc.closest(node, _LIST_CONTEXT) is not None:
        signals.append("list_context")
    if text[:1].isupper() and len(text) > 8:
        signals.append("sentence_case")
    if node.select_one(_ICON) is not None or text.startswith(_CHECK_MARKS):
        signals.append("icon")
    if len(text) > 150:
        signals.append("too_long")
    if looks_like_script(text):
        signals.append("script_like")
    if doc.within(node, CODE_TAGS):
        signals.append("code_tag")
    return signals


def extract_features(doc: Document) -> list[FeatureItem]:
    """Return ranked :class:`FeatureItem` records found in *doc*."""
    items: list[FeatureItem] = []

    for node in doc.select_all(_CANDIDATE_SELECTORS):
        # List wrappers: their items are candidates of their own.
        if node.name != "li" and node.select_one("li") is not None:
            continue
        text = doc.text(node)
        if not is_valid_feature(doc, node, text):
            continue
        plan = plan_heading(doc, node, TIER_CONTAINER)
        items.append(
            FeatureItem(
                text=text,
                category=categorize_feature(text, plan),
                confidence=score(FEATURE_WEIGHTS, _signals(doc, node, text)),
                plan=plan,
            )
        )

    return rank(items, min_confidence=MIN_CONFIDENCE["features"], limit=CAPS["features"])
