"""Tests for the pure scoring helpers: weights, script detection and rank()."""

from __future__ import annotations

import pytest

from compintel.scraper.models import FeatureItem
from compintel.scraper.scoring import (
    BUTTON_WEIGHTS,
    COUPON_WEIGHTS,
    DISCOUNT_WEIGHTS,
    FEATURE_WEIGHTS,
    MAX_SCORE,
    MIN_SCORE,
    PRICING_WEIGHTS,
    looks_like_script,
    rank,
    score,
)


def _feature(text: str, confidence: float) -> FeatureItem:
    return FeatureItem(text=text, category="core", confidence=confidence)


class TestScore:
    def test_base_only(self) -> None:
        assert score(PRICING_WEIGHTS, []) == 0.5

    def test_signals_add_to_base(self) -> None:
        assert score(PRICING_WEIGHTS, ["pricing_container", "billing_keyword"]) == 0.9

    def test_repeated_signal_counts_once(self) -> None:
        assert score(DISCOUNT_WEIGHTS, ["urgency", "urgency"]) == 0.7

    def test_clamped_to_floor(self) -> None:
        assert score(COUPON_WEIGHTS, ["code_tag", "script_like"]) == MIN_SCORE

    def test_clamped_to_ceiling(self) -> None:
        signals = ["keyed_phrase", "coupon_container", "discount_nearby"]
        assert score(COUPON_WEIGHTS, signals) == MAX_SCORE

    def test_unknown_signal_raises(self) -> None:
        with pytest.raises(KeyError):
            score(BUTTON_WEIGHTS, ["no_such_signal"])

    def test_tables_are_read_only(self) -> None:
        with pytest.raises(TypeError):
            FEATURE_WEIGHTS["base"] = 0.9  # type: ignore[index]


class TestLooksLikeScript:
    @pytest.mark.parametrize(
        "text",
        [
            "function(e){return e}",
            "var price = 49;",
            "a || b",
            "return total;",
            "console.log('x')",
            "window.dataLayer = []",
            "${price}",
            "id 16987654321234",
        ],
    )
    def test_detects_script(self, text: str) -> None:
        assert looks_like_script(text) is True

    @pytest.mark.parametrize(
        "text",
        ["$49/month", "Return policy: 30 days", "Download the document", "Pro & Team plans"],
    )
    def test_plain_copy_is_not_script(self, text: str) -> None:
        assert looks_like_script(text) is False


class TestRank:
    def test_drops_items_below_minimum(self) -> None:
        ranked = rank([_feature("a", 0.3), _feature("b", 0.6)], min_confidence=0.4, limit=10)
        assert [i.text for i in ranked] == ["b"]

    def test_keeps_most_confident_duplicate(self) -> None:
        ranked = rank(
            [_feature("same", 0.5), _feature("same", 0.9), _feature("same", 0.7)],
            min_confidence=0.1,
            limit=10,
        )
        assert len(ranked) == 1
        assert ranked[0].confidence == 0.9

    def test_sorted_descending_and_stable(self) -> None:
        items = [_feature("a", 0.5), _feature("b", 0.8), _feature("c", 0.5), _feature("d", 0.8)]
        ranked = rank(items, min_confidence=0.1, limit=10)
        assert [i.text for i in ranked] == ["b", "d", "a", "c"]

    def test_truncation_keeps_highest(self) -> None:
        items = [_feature(str(n), n / 10) for n in range(1, 10)]
        ranked = rank(items, min_confidence=0.1, limit=3)
        assert [i.confidence for i in ranked] == [0.9, 0.8, 0.7]

    def test_empty_input(self) -> None:
        assert rank([], min_confidence=0.5, limit=5) == []
