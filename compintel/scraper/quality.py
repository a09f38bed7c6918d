"""Data-quality score (0–100) for a finished :class:`ScrapedResult`."""

from __future__ import annotations

from typing import Sequence

from compintel.scraper.models import NO_DESCRIPTION, NO_TITLE, ScrapedResult

PRICING_WEIGHT = 40
FEATURE_WEIGHT = 25
DIVERSITY_WEIGHT = 15
TITLE_POINTS = 5
DESCRIPTION_POINTS = 5
POINTS_PER_CATEGORY = 2


def _average_confidence(items: Sequence) -> float:
    if not items:
        return 0.0
    return sum(item.confidence for item in items) / len(items)


def data_quality(result: ScrapedResult) -> float:
    """Weighted quality score, rounded to one decimal place.

    * 40 × mean pricing confidence
    * 25 × mean feature confidence
    * completeness: 5 for a title, 5 for a description, 2 per non-empty category
    * 15 × share of the five categories that are non-empty

    An empty category contributes nothing.
    """
    categories = [result.pricing, result.coupons, result.discounts, result.features, result.buttons]
    non_empty = sum(1 for items in categories if items)

    total = PRICING_WEIGHT * _average_confidence(result.pricing)
    total += FEATURE_WEIGHT * _average_confidence(result.features)
    if result.title and result.title != NO_TITLE:
        total += TITLE_POINTS
    if result.description and result.description != NO_DESCRIPTION:
        total += DESCRIPTION_POINTS
    total += POINTS_PER_CATEGORY * non_empty
    total += DIVERSITY_WEIGHT * non_empty / len(categories)

    return round(min(100.0, total), 1)
