"""Data models for the scraper pipeline.

These are plain dataclasses.  Every record produced by an extractor carries a
``confidence`` in ``[0, 1]``; :class:`ScrapedResult` is the root object handed
back to callers by :class:`~compintel.scraper.engine.ScrapeEngine`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Optional

Billing = Literal["monthly", "yearly", "weekly", "daily", "one-time"]
PricingCategory = Literal["subscription", "one-time", "usage-based", "freemium", "enterprise"]
DiscountType = Literal[
    "percentage", "fixed", "bogo", "free-trial", "free-shipping", "limited-time"
]
FeatureCategory = Literal["core", "premium", "enterprise", "addon"]
ButtonType = Literal[
    "cta", "signup", "trial", "purchase", "contact", "demo", "download", "pricing"
]
PageType = Literal["pricing", "plans", "features", "offers", "coupons"]

NO_TITLE = "No title found"
NO_DESCRIPTION = "No description found"
HTML_SOURCE = "html-scraping"


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int
    from_cache: bool = False


# ---------------------------------------------------------------------------
# Signal records
# ---------------------------------------------------------------------------

@dataclass
class PricingItem:
    price: str
    plan: str
    billing: Billing
    category: PricingCategory
    confidence: float
    features: list[str] = field(default_factory=list)
    currency: str = "USD"
    source: str = HTML_SOURCE

    @property
    def dedup_key(self) -> tuple[str, str]:
        return (self.price, self.plan)


@dataclass
class CouponItem:
    code: str
    description: str
    discount: str
    confidence: float
    expiry: Optional[str] = None

    @property
    def dedup_key(self) -> str:
        return self.code


@dataclass
class DiscountItem:
    text: str
    type: DiscountType
    confidence: float
    percentage: Optional[str] = None
    amount: Optional[str] = None
    conditions: Optional[str] = None
    valid_until: Optional[str] = None

    @property
    def dedup_key(self) -> str:
        return self.text


@dataclass
class FeatureItem:
    text: str
    category: FeatureCategory
    confidence: float
    plan: Optional[str] = None

    @property
    def dedup_key(self) -> str:
        return self.text


@dataclass
class ButtonItem:
    text: str
    type: ButtonType
    confidence: float
    url: Optional[str] = None
    plan: Optional[str] = None

    @property
    def dedup_key(self) -> str:
        return self.text


@dataclass
class PageRef:
    """A related page found on the seed page."""

    url: str
    title: str
    type: PageType


@dataclass
class EnrichmentFinding:
    """One piece of data recovered from a non-heuristic source.

    ``source`` is the provenance tag recorded in ``metadata.sources``
    (``json-ld``, ``microdata``, ``feed``, ``api-endpoint``,
    ``wayback-machine``).
    """

    source: str
    confidence: float
    data: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Root result
# ---------------------------------------------------------------------------

@dataclass
class ScrapeMetadata:
    url: str
    scraped_at: str
    pages_scraped: int = 1
    processing_time_ms: int = 0
    data_quality: float = 0.0
    sources: list[str] = field(default_factory=lambda: [HTML_SOURCE])


@dataclass
class ScrapedResult:
    title: str
    description: str
    metadata: ScrapeMetadata
    pricing: list[PricingItem] = field(default_factory=list)
    coupons: list[CouponItem] = field(default_factory=list)
    discounts: list[DiscountItem] = field(default_factory=list)
    features: list[FeatureItem] = field(default_factory=list)
    buttons: list[ButtonItem] = field(default_factory=list)
    pages: list[PageRef] = field(default_factory=list)
    headings: list[str] = field(default_factory=list)
    content: str = ""
    findings: list[EnrichmentFinding] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable dict of the whole result."""
        return asdict(self)

    def content_snapshot(self) -> str:
        """Serialise the human-readable parts of the page for change analysis.

        Two snapshots of the same URL can be handed to a
        :class:`~compintel.collaborators.ChangeAnalyzer`; the engine itself
        never diffs them.
        """
        parts = [f"Title: {self.title}", f"Description: {self.description}"]
        if self.headings:
            parts.append("Headings:\n" + "\n".join(f"- {h}" for h in self.headings))
        if self.content:
            parts.append(self.content)
        return "\n\n".join(parts)
