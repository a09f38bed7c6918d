"""Call-to-action button extractor."""

from __future__ import annotations

import re

from bs4 import Tag

from compintel.scraper.extractors.plans import TIER_CONTAINER, plan_heading
from compintel.scraper.models import ButtonItem, ButtonType
from compintel.scraper.normalizer import CHROME_TAGS, Document
from compintel.scraper.scoring import (
    BUTTON_WEIGHTS,
    CAPS,
    MIN_CONFIDENCE,
    looks_like_script,
    rank,
    score,
)

_CANDIDATE_SELECTORS = [
    "button",
    '[role="button"]',
    ".btn",
    '[class*="button"]',
    'a[class*="btn"]',
    'a[class*="cta"]',
    'input[type="submit"], input[type="button"]',
    '[class*="call-to-action"]',
]

_INVALID_TEXT = re.compile(
    r"^(close|×|x|✕|prev(ious)?|next|back|more|less|menu|toggle|search|"
    r"accept( all)?( cookies)?|reject( all)?|cookie settings|dismiss|ok|got it|"
    r"skip|play|pause|share|copy|[<>‹›«»]+)$",
    re.I,
)

# Priority order: the first rule that matches decides the type.
_TYPE_RULES: list[tuple[re.Pattern[str], ButtonType]] = [
    (re.compile(r"sign\s?up|register|create\s+(an\s+)?account|join", re.I), "signup"),
    (re.compile(r"\btrial\b|try\s+(it\s+)?(for\s+)?free|start\s+free", re.I), "trial"),
    (re.compile(r"\bdemo\b|book\s+a\s+call|schedule", re.I), "demo"),
    (re.compile(r"\bbuy\b|purchase|checkout|add\s+to\s+cart|order|subscribe|upgrade", re.I), "purchase"),
    (re.compile(r"contact|talk\s+to|get\s+in\s+touch|sales", re.I), "contact"),
    (re.compile(r"download|install", re.I), "download"),
    (re.compile(r"pricing|see\s+plans|view\s+plans|compare\s+plans", re.I), "pricing"),
]

_PRIMARY_CLASS = re.compile(r"\bcta\b|primary|btn-primary|call-to-action")
_CTA_KEYWORD = re.compile(r"get\s+started|sign\s?up|\btry\b|\bbuy\b|contact|start", re.I)
_HERO_CONTEXT = '[class*="hero"], [class*="banner"], [class*="cta"], [class*="jumbotron"]'
_HIDDEN_STYLE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.I)


def _button_text(doc: Document, node: Tag) -> str:
    if node.name == "input":
        return " ".join((doc.attr(node, "value") or "").split())
    return doc.text(node)


def is_hidden(doc: Document, node: Tag) -> bool:
    if node.has_attr("hidden") or doc.attr(node, "aria-hidden") == "true":
        return True
    if node.name == "input" and (doc.attr(node, "type") or "").lower() == "hidden":
        return True
    return bool(_HIDDEN_STYLE.search(doc.attr(node, "style") or ""))


def classify_button(text: str) -> ButtonType:
    for pattern, kind in _TYPE_RULES:
        if pattern.search(text):
            return kind
    return "cta"


def _signals(doc: Document, node: Tag, text: str) -> list[str]:
    signals: list[str] = []
    if _PRIMARY_CLASS.search(doc.classes(node)):
        signals.append("primary_class")
    if _CTA_KEYWORD.search(text):
        signals.append("cta_keyword")
    if doc.closest(node, _HERO_CONTEXT) is not None:
        signals.append("hero_context")
    if doc.within(node, CHROME_TAGS):
        signals.append("chrome")
    if looks_like_script(text):
        signals.append("script_like")
    return signals


def _target(doc: Document, node: Tag) -> str | None:
    href = doc.attr(node, "href")
    if href is None:
        anchor = node.find_parent("a")
        href = doc.attr(anchor, "href") if anchor is not None else None
    if not href or href.startswith(("#", "javascript:")):
        return None
    return doc.absolute(href)


def extract_buttons(doc: Document) -> list[ButtonItem]:
    """Return ranked :class:`ButtonItem` records found in *doc*.

    Buttons in the page chrome are kept but scored lower than the same
    button in the page body.
    """
    items: list[ButtonItem] = []

    for node in doc.select_all(_CANDIDATE_SELECTORS):
        if is_hidden(doc, node):
            continue
        text = _button_text(doc, node)
        if not 1 <= len(text) <= 60 or _INVALID_TEXT.match(text):
            continue
        items.append(
            ButtonItem(
                text=text,
                type=classify_button(text),
                confidence=score(BUTTON_WEIGHTS, _signals(doc, node, text)),
                url=_target(doc, node),
                plan=plan_heading(doc, node, TIER_CONTAINER),
            )
        )

    return rank(items, min_confidence=MIN_CONFIDENCE["buttons"], limit=CAPS["buttons"])
