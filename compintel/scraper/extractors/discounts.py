"""Discount extractor: percentage / fixed savings, BOGO, free trials and more."""

from __future__ import annotations

import re

from bs4 import Tag

from compintel.scraper.extractors.terms import find_conditions, find_expiry
from compintel.scraper.models import DiscountItem, DiscountType
from compintel.scraper.normalizer import CHROME_TAGS, Document
from compintel.scraper.scoring import (
    CAPS,
    CODE_TAGS,
    DISCOUNT_WEIGHTS,
    MIN_CONFIDENCE,
    looks_like_script,
    rank,
    score,
)

_CONTAINER_SELECTORS = [
    '[class*="discount"]',
    '[class*="sale"]',
    '[class*="offer"]',
    '[class*="deal"]',
    '[class*="promo"]',
    '[class*="special"]',
    '[class*="save"]',
]
_CONTAINER = ", ".join(_CONTAINER_SELECTORS)
_TEXT_SELECTORS = "p, li, span, strong, b, em, small, h1, h2, h3, h4, h5, h6, td, label"

# Tried in order; the first pattern that matches decides the type.
_PATTERNS: list[tuple[re.Pattern[str], DiscountType]] = [
    (re.compile(r"(\d{1,3})\s*%\s*(?:off|discount|savings?)\b", re.I), "percentage"),
    (re.compile(r"\bsave\s+(?:up\s+to\s+)?(\d{1,3})\s*%", re.I), "percentage"),
    (re.compile(r"[$€£]\s?(\d+(?:\.\d{2})?)\s*(?:off|discount)\b", re.I), "fixed"),
    (re.compile(r"\bsave\s+(?:up\s+to\s+)?[$€£]\s?(\d+(?:\.\d{2})?)", re.I), "fixed"),
    (re.compile(r"\bbuy\s+(?:\d+|one|two)\s+get\s+(?:\d+|one|two)\s+free\b|\bbogo\b", re.I), "bogo"),
    (
        re.compile(
            r"\bfree\s+(?:\d+[- ]day\s+)?(?:trial|month|week)\b|\b\d+[- ]day\s+free\s+trial\b",
            re.I,
        ),
        "free-trial",
    ),
    (re.compile(r"\bfree\s+(?:standard\s+)?shipping\b", re.I), "free-shipping"),
    (re.compile(r"\blimited[- ]time\b|\bflash\s+sale\b|\btoday\s+only\b", re.I), "limited-time"),
]

_URGENCY = re.compile(r"limited[- ]time|today|ends|expires?|hurry|last\s+chance|until", re.I)

_MAX_TEXT = 120


def classify_discount(text: str) -> tuple[DiscountType, str | None] | None:
    """Type of the first discount pattern in *text*, plus its captured number."""
    for pattern, kind in _PATTERNS:
        match = pattern.search(text)
        if match:
            value = match.group(1) if match.groups() else None
            return kind, value
    return None


def _signals(doc: Document, node: Tag, text: str) -> list[str]:
    signals: list[str] = []
    if doc.closest(node, _CONTAINER) is not None:
        signals.append("discount_container")
    if _URGENCY.search(text):
        signals.append("urgency")
    if len(text) > 150:
        signals.append("too_long")
    if looks_like_script(text):
        signals.append("script_like")
    if doc.within(node, CODE_TAGS):
        signals.append("code_tag")
    return signals


def extract_discounts(doc: Document) -> list[DiscountItem]:
    """Return ranked :class:`DiscountItem` records found in *doc*."""
    items: list[DiscountItem] = []

    for node in doc.select_all([*_CONTAINER_SELECTORS, _TEXT_SELECTORS]):
        if doc.within(node, CHROME_TAGS):
            continue
        text = doc.text(node)
        if not 5 <= len(text) <= 300:
            continue
        classified = classify_discount(text)
        if classified is None:
            continue
        kind, value = classified

        items.append(
            DiscountItem(
                text=text[:_MAX_TEXT],
                type=kind,
                confidence=score(DISCOUNT_WEIGHTS, _signals(doc, node, text)),
                percentage=value if kind == "percentage" else None,
                amount=value if kind == "fixed" else None,
                conditions=find_conditions(text),
                valid_until=find_expiry(text),
            )
        )

    return rank(items, min_confidence=MIN_CONFIDENCE["discounts"], limit=CAPS["discounts"])
