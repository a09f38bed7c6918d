"""Pricing extractor: price points, the tier they belong to, billing and model.

Pipeline:
    candidate nodes → price regexes → plausibility checks → scoring → rank
"""

from __future__ import annotations

import re

from compintel.scraper.extractors.plans import PLAN_CONTAINER, plan_features, plan_name
from compintel.scraper.models import Billing, PricingCategory, PricingItem
from compintel.scraper.normalizer import CHROME_TAGS, Document
from compintel.scraper.scoring import (
    CAPS,
    CODE_TAGS,
    MIN_CONFIDENCE,
    PRICING_WEIGHTS,
    looks_like_script,
    rank,
    score,
)

# ---------------------------------------------------------------------------
# Candidates and patterns
# ---------------------------------------------------------------------------
_CANDIDATE_SELECTORS = [
    '[class*="price"]:not([class*="old"]):not([class*="was"])',
    '[class*="cost"]',
    '[class*="plan"]',
    '[class*="tier"]',
    '[id*="price"]',
    '[id*="pricing"]',
    "[data-price], [data-cost], [data-testid*=price]",
    ".pricing-card, .plan-card, .subscription-card",
    '[itemtype*="schema.org/Offer"], [itemtype*="schema.org/Product"]',
]

_AMOUNT = r"\d+(?:,\d{3})*(?:\.\d{2})?"
_PRICE_PATTERNS = [
    re.compile(rf"[$€£₹]\s?{_AMOUNT}"),
    re.compile(rf"\b(?:USD|EUR|GBP|INR)\s?{_AMOUNT}"),
    re.compile(rf"\b{_AMOUNT}\s?(?:USD|EUR|GBP|INR)\b"),
]

_CURRENCIES = [("$", "USD"), ("€", "EUR"), ("£", "GBP"), ("₹", "INR")]

_MIN_PRICE = 0.01
_MAX_PRICE = 50_000

_BILLING_RULES: list[tuple[re.Pattern[str], Billing]] = [
    (re.compile(r"\bmonths?\b|\bmonthly\b|/\s?mo\b|\bper\s+mo\b", re.I), "monthly"),
    (re.compile(r"\byears?\b|\byearly\b|\bannual(?:ly)?\b|/\s?yr\b", re.I), "yearly"),
    (re.compile(r"\bweeks?\b|\bweekly\b|/\s?wk\b", re.I), "weekly"),
    (re.compile(r"\bday\b|\bdaily\b|/\s?day\b", re.I), "daily"),
]

_CATEGORY_RULES: list[tuple[re.Pattern[str], PricingCategory]] = [
    (re.compile(r"\bfree\b|\$0(?![\d.,])|no[\s-]?cost", re.I), "freemium"),
    (re.compile(r"enterprise|custom|contact[\s-]?(?:us|sales)|call[\s-]?us", re.I), "enterprise"),
    (re.compile(r"usage|per[\s-]?(?:request|api|call)|pay[\s-]?as[\s-]?you[\s-]?go", re.I), "usage-based"),
    (re.compile(r"month|year|annual|subscription|recurring|/\s?mo\b|/\s?yr\b", re.I), "subscription"),
]

_CONTEXT_CONTAINER = '[class*="pricing"], [class*="plan"], [class*="cost"], [class*="tier"]'
_BILLING_KEYWORD = re.compile(r"month|year|annual|plan|subscription|billing|/\s?mo\b|/\s?yr\b", re.I)
_CLEAN_PRICE = re.compile(rf"[$€£₹]\s?{_AMOUNT}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def find_prices(text: str) -> list[str]:
    """Every price-looking token in *text*, in order of first appearance.

    Patterns are tried in priority order and a later match overlapping an
    earlier one is ignored, so ``"$49 USD"`` yields ``"$49"`` once.
    """
    found: list[tuple[int, int, str]] = []
    for pattern in _PRICE_PATTERNS:
        for match in pattern.finditer(text):
            start, end = match.span()
            if any(start < f_end and f_start < end for f_start, f_end, _ in found):
                continue
            price = re.sub(r"^([$€£₹])\s+", r"\1", " ".join(match.group(0).split()))
            found.append((start, end, price))
    prices: list[str] = []
    for _, _, price in sorted(found):
        if price not in prices:
            prices.append(price)
    return prices


def price_value(price: str) -> float | None:
    digits = re.sub(r"[^\d.]", "", price)
    try:
        return float(digits)
    except ValueError:
        return None


def is_valid_price(price: str, context: str) -> bool:
    """Plausible amount, and not lifted out of script-like text."""
    value = price_value(price)
    if value is None or not _MIN_PRICE <= value <= _MAX_PRICE:
        return False
    return not looks_like_script(context)


def detect_currency(price: str) -> str:
    for symbol, code in _CURRENCIES:
        if symbol in price:
            return code
    for _, code in _CURRENCIES:
        if code in price.upper():
            return code
    return "USD"


def detect_billing(text: str) -> Billing:
    for pattern, billing in _BILLING_RULES:
        if pattern.search(text):
            return billing
    return "one-time"


def categorize_pricing(text: str, plan: str) -> PricingCategory:
    haystack = f"{text} {plan}"
    for pattern, category in _CATEGORY_RULES:
        if pattern.search(haystack):
            return category
    return "one-time"


def _signals(doc: Document, node, text: str) -> list[str]:
    signals: list[str] = []
    if doc.closest(node, _CONTEXT_CONTAINER) is not None:
        signals.append("pricing_container")
    if _BILLING_KEYWORD.search(text):
        signals.append("billing_keyword")
    if node.select_one('[class*="currency"], [class*="symbol"]') is not None:
        signals.append("currency_markup")
    if _CLEAN_PRICE.fullmatch(text):
        signals.append("clean_price")
    if len(text) > 150:
        signals.append("too_long")
    if looks_like_script(text):
        signals.append("script_like")
    if doc.within(node, CODE_TAGS):
        signals.append("code_tag")
    return signals


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_pricing(doc: Document) -> list[PricingItem]:
    """Return ranked :class:`PricingItem` records found in *doc*."""
    items: list[PricingItem] = []

    for node in doc.select_all(_CANDIDATE_SELECTORS):
        if doc.within(node, CHROME_TAGS):
            continue
        text = doc.text(node)
        if not 2 <= len(text) <= 300:
            continue

        prices = [p for p in find_prices(text) if is_valid_price(p, text)]
        if not prices:
            continue
        # A wrapper around several tier cards would attach every price to
        # whichever heading comes first; the cards themselves are candidates.
        if len(prices) > 1 and node.select_one(PLAN_CONTAINER) is not None:
            continue

        plan = plan_name(doc, node, text)
        features = plan_features(doc, node)
        billing = detect_billing(text)
        category = categorize_pricing(text, plan)
        confidence = score(PRICING_WEIGHTS, _signals(doc, node, text))

        for price in prices:
            items.append(
                PricingItem(
                    price=price,
                    plan=plan,
                    billing=billing,
                    category=category,
                    confidence=confidence,
                    features=list(features),
                    currency=detect_currency(price),
                )
            )

    return rank(items, min_confidence=MIN_CONFIDENCE["pricing"], limit=CAPS["pricing"])
