"""Confidence scoring shared by the signal extractors.

Each extractor reduces a candidate to a set of named *signals* (``"script_like"``,
``"pricing_container"``, ...) and looks their weights up in a table below.
:func:`score` adds them to the table's ``base`` and clamps the total to
``[MIN_SCORE, MAX_SCORE]``.  The tables are read-only; bump
:data:`WEIGHTS_VERSION` whenever a weight changes so stored confidences can
be traced back to the table that produced them.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Hashable, Iterable, Mapping, Protocol, Sequence, TypeVar

WEIGHTS_VERSION = "1"

MIN_SCORE = 0.1
MAX_SCORE = 1.0

PRICING_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "base": 0.5,
    "pricing_container": 0.25,
    "billing_keyword": 0.15,
    "currency_markup": 0.1,
    "clean_price": 0.2,
    "too_long": -0.2,
    "script_like": -0.6,
    "code_tag": -0.8,
})

COUPON_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "base": 0.6,
    "keyed_phrase": 0.2,
    "coupon_container": 0.15,
    "discount_nearby": 0.1,
    "too_long": -0.2,
    "script_like": -0.5,
    "code_tag": -0.8,
})

DISCOUNT_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "base": 0.6,
    "discount_container": 0.2,
    "urgency": 0.1,
    "too_long": -0.2,
    "script_like": -0.6,
    "code_tag": -0.8,
})

FEATURE_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "base": 0.5,
    "list_context": 0.2,
    "sentence_case": 0.15,
    "icon": 0.1,
    "too_long": -0.2,
    "script_like": -0.5,
    "code_tag": -0.8,
})

BUTTON_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "base": 0.6,
    "primary_class": 0.2,
    "cta_keyword": 0.15,
    "hero_context": 0.1,
    "chrome": -0.2,
    "script_like": -0.5,
})

# Per-collection minimum confidence and size cap.
MIN_CONFIDENCE: Mapping[str, float] = MappingProxyType({
    "pricing": 0.4,
    "coupons": 0.5,
    "discounts": 0.5,
    "features": 0.4,
    "buttons": 0.5,
})

CAPS: Mapping[str, int] = MappingProxyType({
    "pricing": 12,
    "coupons": 8,
    "discounts": 10,
    "features": 25,
    "buttons": 18,
})

CODE_TAGS = ("script", "style", "noscript")

_SCRIPT_PATTERNS = [
    re.compile(r"function\s*\("),
    re.compile(r"\bvar\s+\w+\s*="),
    re.compile(r"\|\||&&"),
    re.compile(r"\breturn\s+[\w$.()\[\]]+\s*;"),
    re.compile(r"\bconsole\.\w"),
    re.compile(r"\bdocument\.\w"),
    re.compile(r"\bwindow\.\w"),
    re.compile(r"\$\{|\}\$"),
    re.compile(r"\d{10,}"),  # long ids / timestamps
]


def looks_like_script(text: str) -> bool:
    """``True`` when *text* reads like leaked JavaScript rather than content."""
    return any(pattern.search(text) for pattern in _SCRIPT_PATTERNS)


def clamp(value: float, low: float = MIN_SCORE, high: float = MAX_SCORE) -> float:
    return max(low, min(high, value))


def score(weights: Mapping[str, float], signals: Iterable[str]) -> float:
    """Base weight plus every distinct signal's weight, clamped.

    Raises:
        KeyError: If a signal has no entry in *weights*.
    """
    total = weights["base"] + sum(weights[signal] for signal in set(signals))
    return round(clamp(total), 3)


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------

class _Ranked(Protocol):
    confidence: float

    @property
    def dedup_key(self) -> Hashable: ...


T = TypeVar("T", bound=_Ranked)


def rank(items: Iterable[T], *, min_confidence: float, limit: int) -> list[T]:
    """Filter, deduplicate, sort and truncate extracted items.

    Items below *min_confidence* are dropped.  Among items sharing a
    ``dedup_key`` the most confident one is kept (the first one on ties).
    The survivors are sorted by confidence, descending; the sort is stable so
    equal scores keep document order.
    """
    best: dict[Hashable, T] = {}
    order: list[Hashable] = []
    for item in items:
        if item.confidence < min_confidence:
            continue
        key = item.dedup_key
        current = best.get(key)
        if current is None:
            best[key] = item
            order.append(key)
        elif item.confidence > current.confidence:
            best[key] = item

    ranked: Sequence[T] = sorted(
        (best[key] for key in order), key=lambda i: i.confidence, reverse=True
    )
    return list(ranked[:limit])
