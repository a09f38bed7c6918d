"""Tests for settings, logging setup and the collaborator interfaces."""

from __future__ import annotations

import logging

from compintel.collaborators import (
    ChangeAnalyzer,
    ChangeInsight,
    InMemorySnapshotStore,
    SnapshotStore,
)
from compintel.config import Settings
from compintel.log import configure_logging
from compintel.scraper.models import ScrapedResult, ScrapeMetadata


def _result(url: str, title: str) -> ScrapedResult:
    return ScrapedResult(
        title=title,
        description="",
        metadata=ScrapeMetadata(url=url, scraped_at="2025-01-01T00:00:00+00:00"),
    )


class TestSettings:
    def test_defaults(self, monkeypatch) -> None:
        for name in ("RATE_LIMIT_INTERVAL", "FETCH_MAX_RETRIES", "CACHE_TTL_SECONDS", "WAYBACK_ENABLED"):
            monkeypatch.delenv(name, raising=False)
        s = Settings()
        assert s.rate_limit_interval == 2.0
        assert s.max_retries == 3
        assert s.cache_ttl == 1800
        assert s.wayback_enabled is True

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("RATE_LIMIT_INTERVAL", "0.5")
        monkeypatch.setenv("SCRAPE_MAX_PAGES", "7")
        monkeypatch.setenv("WAYBACK_ENABLED", "false")
        s = Settings()
        assert s.rate_limit_interval == 0.5
        assert s.default_max_pages == 7
        assert s.wayback_enabled is False


class TestConfigureLogging:
    def test_repeated_calls_do_not_stack_handlers(self) -> None:
        configure_logging("DEBUG")
        logger = configure_logging("INFO")
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO
        assert logger.propagate is False


class TestSnapshotStore:
    def test_latest_returns_newest(self) -> None:
        store = InMemorySnapshotStore()
        store.save(_result("https://example.com/", "v1"))
        store.save(_result("https://example.com/", "v2"))
        store.save(_result("https://other.com/", "other"))

        assert store.latest("https://example.com/").title == "v2"
        assert store.latest("https://missing.com/") is None
        assert len(store) == 2

    def test_satisfies_protocol(self) -> None:
        assert isinstance(InMemorySnapshotStore(), SnapshotStore)


class TestChangeAnalyzerProtocol:
    def test_structural_implementation(self) -> None:
        class KeywordAnalyzer:
            def analyze_changes(self, previous, current, *, url, source_type, competitor_name):
                if "$59" in current and "$59" not in previous:
                    return [
                        ChangeInsight(
                            type="pricing",
                            title=f"{competitor_name} changed pricing",
                            description="Pro plan now $59",
                            confidence=0.8,
                            is_important=True,
                            evidence=["$59"],
                        )
                    ]
                return []

        analyzer = KeywordAnalyzer()
        assert isinstance(analyzer, ChangeAnalyzer)

        before = _result("https://example.com/", "Pro $49").content_snapshot()
        after = _result("https://example.com/", "Pro $59").content_snapshot()
        insights = analyzer.analyze_changes(
            before, after, url="https://example.com/", source_type="pricing", competitor_name="Acme"
        )
        assert insights[0].is_important is True
        assert insights[0].evidence == ["$59"]
