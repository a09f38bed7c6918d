"""Interfaces to the services around the engine.

The engine produces :class:`ScrapedResult` objects and nothing else.  Keeping
them, and explaining how two of them differ, is the job of the collaborators
defined here.  Only :class:`InMemorySnapshotStore` ships with the package; it
backs the HTTP app's ``/scrape/latest`` route.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Literal, Protocol, runtime_checkable

from compintel.scraper.models import ScrapedResult

InsightType = Literal["pricing", "feature", "messaging", "promotion", "other"]


@dataclass
class ChangeInsight:
    """One difference between two snapshots of a competitor page."""

    type: InsightType
    title: str
    description: str
    confidence: float
    is_important: bool = False
    evidence: list[str] = field(default_factory=list)


@runtime_checkable
class SnapshotStore(Protocol):
    """Key-value persistence for scrape results, keyed by seed URL."""

    def save(self, result: ScrapedResult) -> None: ...

    def latest(self, url: str) -> ScrapedResult | None: ...


@runtime_checkable
class ChangeAnalyzer(Protocol):
    """Explains what changed between two serialised snapshots.

    *previous* and *current* are :meth:`ScrapedResult.content_snapshot`
    strings for the same URL.
    """

    def analyze_changes(
        self,
        previous: str,
        current: str,
        *,
        url: str,
        source_type: str,
        competitor_name: str,
    ) -> list[ChangeInsight]: ...


class InMemorySnapshotStore:
    """Process-local :class:`SnapshotStore` keeping the newest result per URL."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: dict[str, ScrapedResult] = {}

    def save(self, result: ScrapedResult) -> None:
        with self._lock:
            self._results[result.metadata.url] = result

    def latest(self, url: str) -> ScrapedResult | None:
        with self._lock:
            return self._results.get(url)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
