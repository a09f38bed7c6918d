"""Coupon-code extractor."""

from __future__ import annotations

import re

from bs4 import Tag

from compintel.scraper.extractors.terms import discount_value, find_expiry, has_discount_value
from compintel.scraper.models import CouponItem
from compintel.scraper.normalizer import CHROME_TAGS, Document
from compintel.scraper.scoring import (
    CAPS,
    CODE_TAGS,
    COUPON_WEIGHTS,
    MIN_CONFIDENCE,
    looks_like_script,
    rank,
    score,
)

_CONTAINER_SELECTORS = [
    '[class*="coupon"]',
    '[class*="promo"]',
    '[class*="voucher"]',
    '[class*="code"]',
    "[data-coupon], [data-promo-code]",
]
_CONTAINER = (
    '[class*="coupon"], [class*="promo"], [class*="voucher"], '
    "[data-coupon], [data-promo-code]"
)
_TEXT_SELECTORS = "p, li, span, strong, b, em, small, h1, h2, h3, h4, h5, h6, td, label"

_KEYED_PATTERNS = [
    re.compile(
        r"(?i:\b(?:use|enter|apply|with)\s+(?:the\s+)?(?:promo\s+|coupon\s+|discount\s+)?code)"
        r"\s*:?\s*[\"'“]?([A-Z0-9]{3,20})\b"
    ),
    re.compile(r"(?i:\b(?:code|coupon|promo|voucher))\s*:\s*[\"'“]?([A-Z0-9]{3,20})\b"),
]
_BARE_TOKEN = re.compile(r"\b([A-Z0-9]{4,15})\b")
_CODE_SHAPE = re.compile(r"[A-Z0-9]{3,20}")

# Uppercase words that show up in navigation and banners, never as codes.
UI_WORDS = frozenset({
    "HOME", "ABOUT", "CONTACT", "LOGIN", "LOGOUT", "SIGNUP", "MENU", "SEARCH",
    "CART", "HELP", "FAQ", "FAQS", "BLOG", "SHOP", "ACCOUNT", "SALE", "FREE",
    "OFF", "NEW", "NOW", "BUY", "SAVE", "DEAL", "DEALS", "CODE", "PROMO",
    "COUPON", "TODAY", "ONLY", "USD", "EUR", "GBP", "HOT", "TOP",
})

_MAX_DESCRIPTION = 100


def is_plausible_code(code: str) -> bool:
    return (
        3 <= len(code) <= 20
        and any(c.isalpha() for c in code)
        and code.upper() not in UI_WORDS
    )


def _keyed_codes(text: str) -> list[str]:
    codes: list[str] = []
    for pattern in _KEYED_PATTERNS:
        for match in pattern.finditer(text):
            code = match.group(1)
            if is_plausible_code(code) and code not in codes:
                codes.append(code)
    return codes


def _bare_codes(doc: Document, node: Tag, text: str) -> list[str]:
    """Uppercase tokens inside a coupon-styled element.

    Letters-only tokens are accepted only when the element is explicitly a
    code holder (``*code*`` class or data attribute); otherwise a digit is
    required, which keeps banner words like ``SUMMER`` out.
    """
    explicit = "code" in doc.classes(node) or node.has_attr("data-coupon") or node.has_attr("data-promo-code")
    codes: list[str] = []
    for attr in ("data-coupon", "data-promo-code"):
        value = (doc.attr(node, attr) or "").strip()
        if _CODE_SHAPE.fullmatch(value) and is_plausible_code(value):
            codes.append(value)
    for match in _BARE_TOKEN.finditer(text):
        code = match.group(1)
        if not is_plausible_code(code) or code in codes:
            continue
        if explicit or any(c.isdigit() for c in code):
            codes.append(code)
    return codes


def _describe(text: str, code: str) -> str:
    description = " ".join(text.replace(code, " ").split())
    return description[:_MAX_DESCRIPTION] or "Discount code"


def _signals(doc: Document, node: Tag, text: str, keyed: bool) -> list[str]:
    signals: list[str] = []
    if keyed:
        signals.append("keyed_phrase")
    if doc.closest(node, _CONTAINER) is not None:
        signals.append("coupon_container")
    if has_discount_value(text):
        signals.append("discount_nearby")
    if len(text) > 200:
        signals.append("too_long")
    if looks_like_script(text):
        signals.append("script_like")
    if doc.within(node, CODE_TAGS):
        signals.append("code_tag")
    return signals


def extract_coupons(doc: Document) -> list[CouponItem]:
    """Return ranked :class:`CouponItem` records found in *doc*."""
    items: list[CouponItem] = []

    def collect(node: Tag, allow_bare: bool) -> None:
        text = doc.text(node)
        if len(text) > 400:
            return
        keyed = _keyed_codes(text)
        bare = [c for c in _bare_codes(doc, node, text) if c not in keyed] if allow_bare else []
        for codes, is_keyed in ((keyed, True), (bare, False)):
            if not codes:
                continue
            confidence = score(COUPON_WEIGHTS, _signals(doc, node, text, is_keyed))
            for code in codes:
                items.append(
                    CouponItem(
                        code=code,
                        description=_describe(text, code),
                        discount=discount_value(text),
                        confidence=confidence,
                        expiry=find_expiry(text),
                    )
                )

    for node in doc.select_all(_CONTAINER_SELECTORS):
        if not doc.within(node, CHROME_TAGS):
            collect(node, allow_bare=True)
    for node in doc.select(_TEXT_SELECTORS):
        if not doc.within(node, CHROME_TAGS):
            collect(node, allow_bare=False)

    return rank(items, min_confidence=MIN_CONFIDENCE["coupons"], limit=CAPS["coupons"])
