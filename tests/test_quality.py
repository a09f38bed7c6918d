"""Tests for the data-quality score."""

from __future__ import annotations

from compintel.scraper.models import (
    NO_DESCRIPTION,
    NO_TITLE,
    ButtonItem,
    CouponItem,
    DiscountItem,
    FeatureItem,
    PricingItem,
    ScrapedResult,
    ScrapeMetadata,
)
from compintel.scraper.quality import data_quality


def _result(**kwargs) -> ScrapedResult:
    fields = {
        "title": NO_TITLE,
        "description": NO_DESCRIPTION,
        "metadata": ScrapeMetadata(url="https://example.com/", scraped_at="2025-01-01T00:00:00+00:00"),
    }
    fields.update(kwargs)
    return ScrapedResult(**fields)


def _price(confidence: float) -> PricingItem:
    return PricingItem(
        price="$10", plan="Pro", billing="monthly", category="subscription", confidence=confidence
    )


def _feature(confidence: float) -> FeatureItem:
    return FeatureItem(text="SSO", category="enterprise", confidence=confidence)


class TestDataQuality:
    def test_empty_result_scores_zero(self) -> None:
        assert data_quality(_result()) == 0.0

    def test_title_and_description_only(self) -> None:
        assert data_quality(_result(title="Acme", description="Pricing")) == 10.0

    def test_weighted_components(self) -> None:
        result = _result(
            title="Acme",
            description="Pricing",
            pricing=[_price(0.9)],
            features=[_feature(0.8)],
        )
        # 36 pricing + 20 features + 10 text + 4 completeness + 6 diversity
        assert data_quality(result) == 76.0

    def test_average_of_confidences(self) -> None:
        result = _result(pricing=[_price(1.0), _price(0.5)])
        # 40 * 0.75 + 2 + 3
        assert data_quality(result) == 35.0

    def test_capped_at_100(self) -> None:
        result = _result(
            title="Acme",
            description="Pricing",
            pricing=[_price(1.0)],
            coupons=[CouponItem(code="SAVE20", description="", discount="20%", confidence=1.0)],
            discounts=[DiscountItem(text="20% off", type="percentage", confidence=1.0)],
            features=[_feature(1.0)],
            buttons=[ButtonItem(text="Buy", type="purchase", confidence=1.0)],
        )
        assert data_quality(result) == 100.0
