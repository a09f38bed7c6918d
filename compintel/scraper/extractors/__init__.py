"""Signal extractors: pure functions from a :class:`Document` to ranked items.

Public API::

    from compintel.scraper.extractors import extract_signals
    signals = extract_signals(normalize(html, url))
"""

from __future__ import annotations

from dataclasses import dataclass, field

from compintel.scraper.extractors.buttons import extract_buttons
from compintel.scraper.extractors.coupons import extract_coupons
from compintel.scraper.extractors.discounts import extract_discounts
from compintel.scraper.extractors.features import extract_features
from compintel.scraper.extractors.pricing import extract_pricing
from compintel.scraper.models import (
    ButtonItem,
    CouponItem,
    DiscountItem,
    FeatureItem,
    PricingItem,
)
from compintel.scraper.normalizer import Document


@dataclass
class PageSignals:
    """Everything the five extractors found on one page."""

    pricing: list[PricingItem] = field(default_factory=list)
    coupons: list[CouponItem] = field(default_factory=list)
    discounts: list[DiscountItem] = field(default_factory=list)
    features: list[FeatureItem] = field(default_factory=list)
    buttons: list[ButtonItem] = field(default_factory=list)


def extract_signals(doc: Document) -> PageSignals:
    return PageSignals(
        pricing=extract_pricing(doc),
        coupons=extract_coupons(doc),
        discounts=extract_discounts(doc),
        features=extract_features(doc),
        buttons=extract_buttons(doc),
    )


__all__ = [
    "PageSignals",
    "extract_signals",
    "extract_pricing",
    "extract_coupons",
    "extract_discounts",
    "extract_features",
    "extract_buttons",
]
