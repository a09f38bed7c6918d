"""Alternative data sources: structured markup, feeds, API hints and Wayback.

These run over the *raw* HTML (before normalisation strips ``<script>``),
since JSON-LD and inline API configuration live inside script tags.
Every finding is tagged with a provenance string that ends up in
``metadata.sources``.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any, Iterator
from urllib.parse import quote, urljoin

from bs4 import BeautifulSoup, Tag

from compintel.scraper.errors import FetchError, ParseError
from compintel.scraper.extractors.plans import DEFAULT_PLAN
from compintel.scraper.extractors.pricing import (
    categorize_pricing,
    detect_billing,
    detect_currency,
    find_prices,
    price_value,
)
from compintel.scraper.models import EnrichmentFinding, PricingItem
from compintel.scraper.scoring import CAPS, MIN_CONFIDENCE, looks_like_script, rank

if TYPE_CHECKING:
    from compintel.scraper.fetcher import Fetcher

logger = logging.getLogger(__name__)

JSON_LD = "json-ld"
MICRODATA = "microdata"
FEED = "feed"
API_ENDPOINT = "api-endpoint"
WAYBACK = "wayback-machine"

CONFIDENCE = {
    JSON_LD: 0.9,
    MICRODATA: 0.8,
    API_ENDPOINT: 0.7,
    FEED: 0.6,
    WAYBACK: 0.5,
}

WAYBACK_CDX_URL = "https://web.archive.org/cdx/search/cdx"
_WAYBACK_LIMIT = 5

_STRUCTURED_TYPES = {"Product", "Offer", "AggregateOffer"}
_MICRODATA_SCOPE = '[itemtype*="schema.org/Product"], [itemtype*="schema.org/Offer"]'
_MICRODATA_TYPE = re.compile(r"schema\.org/(?:Product|Offer)")
_FEED_TYPES = 'link[type="application/rss+xml"], link[type="application/atom+xml"]'
_API_LITERAL = re.compile(r"""(?:api|endpoint)["']?\s*:\s*["']([^"']+)["']""", re.IGNORECASE)
_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "INR": "₹"}


# ---------------------------------------------------------------------------
# Structured markup
# ---------------------------------------------------------------------------

def _types(node: dict[str, Any]) -> set[str]:
    value = node.get("@type")
    if isinstance(value, list):
        return {str(v) for v in value}
    return {str(value)} if value else set()


def _text(value: Any) -> str:
    """Plain string from a JSON-LD text value.

    Names and descriptions may be given as a list of alternatives or as a
    language-tagged ``{"@value": ...}`` object; the first string wins.
    """
    if isinstance(value, str):
        return " ".join(value.split())
    if isinstance(value, dict):
        return _text(value.get("@value"))
    if isinstance(value, list):
        for entry in value:
            text = _text(entry)
            if text:
                return text
    return ""


def _json_ld_nodes(data: Any) -> Iterator[dict[str, Any]]:
    """Walk top-level lists and ``@graph`` containers, yielding every object."""
    if isinstance(data, list):
        for entry in data:
            yield from _json_ld_nodes(entry)
    elif isinstance(data, dict):
        if "@graph" in data:
            yield from _json_ld_nodes(data["@graph"])
        yield data


def _json_ld_findings(soup: BeautifulSoup, url: str) -> list[EnrichmentFinding]:
    findings: list[EnrichmentFinding] = []
    for script in soup.select('script[type="application/ld+json"]'):
        raw = script.string or script.get_text()
        if not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError as exc:
            logger.warning("[ENRICH] Skipping malformed JSON-LD on %s: %s", url, exc)
            continue
        for node in _json_ld_nodes(data):
            if _types(node) & _STRUCTURED_TYPES:
                findings.append(
                    EnrichmentFinding(source=JSON_LD, confidence=CONFIDENCE[JSON_LD], data=node)
                )
    return findings


def _itemprop(element: Tag, name: str) -> str:
    prop = element.select_one(f'[itemprop="{name}"]')
    if prop is None:
        return ""
    content = prop.get("content")
    if content:
        return " ".join(str(content).split())
    return " ".join(prop.get_text(" ", strip=True).split())


def _microdata_findings(soup: BeautifulSoup) -> list[EnrichmentFinding]:
    findings: list[EnrichmentFinding] = []
    for element in soup.select(_MICRODATA_SCOPE):
        # A nested Offer is read through its enclosing Product.
        if element.find_parent(attrs={"itemtype": _MICRODATA_TYPE}) is not None:
            continue
        data = {
            "name": _itemprop(element, "name"),
            "price": _itemprop(element, "price"),
            "currency": _itemprop(element, "priceCurrency"),
            "description": _itemprop(element, "description"),
        }
        if data["name"] or data["price"]:
            findings.append(
                EnrichmentFinding(source=MICRODATA, confidence=CONFIDENCE[MICRODATA], data=data)
            )
    return findings


# ---------------------------------------------------------------------------
# Feeds and API hints
# ---------------------------------------------------------------------------

def _feed_findings(soup: BeautifulSoup, url: str) -> list[EnrichmentFinding]:
    findings: list[EnrichmentFinding] = []
    for link in soup.select(_FEED_TYPES):
        href = link.get("href")
        if not href:
            continue
        try:
            feed_url = urljoin(url, str(href)) if url else str(href)
        except ValueError:
            logger.debug("[ENRICH] Skipping malformed feed link %r", href)
            continue
        findings.append(
            EnrichmentFinding(
                source=FEED,
                confidence=CONFIDENCE[FEED],
                data={"feed_url": feed_url},
            )
        )
    return findings


def _api_findings(soup: BeautifulSoup) -> list[EnrichmentFinding]:
    script_text = "\n".join(
        script.get_text()
        for script in soup.find_all("script")
        if script.get("type") != "application/ld+json"
    )
    seen: list[str] = []
    for match in _API_LITERAL.finditer(script_text):
        api_url = match.group(1)
        lowered = api_url.lower()
        if ("price" in lowered or "product" in lowered) and api_url not in seen:
            seen.append(api_url)
    return [
        EnrichmentFinding(
            source=API_ENDPOINT, confidence=CONFIDENCE[API_ENDPOINT], data={"api_url": api_url}
        )
        for api_url in seen
    ]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def collect_alternative_sources(html: str, url: str = "") -> list[EnrichmentFinding]:
    """Return every non-heuristic finding in *html*.

    Malformed JSON-LD blocks are logged and skipped; nothing here raises for
    bad page content.
    """
    soup = BeautifulSoup(html, "html.parser")
    findings = [
        *_json_ld_findings(soup, url),
        *_microdata_findings(soup),
        *_feed_findings(soup, url),
        *_api_findings(soup),
    ]
    for finding in findings:
        logger.info(
            "[ENRICH] Found alternative data source: %s (confidence: %.1f)",
            finding.source, finding.confidence,
        )
    return findings


def lookup_wayback(fetcher: Fetcher, url: str) -> EnrichmentFinding | None:
    """Query the Wayback Machine CDX API for up to five snapshots of *url*.

    Returns ``None`` when the archive has nothing, answers with something
    other than a CDX table, or cannot be reached.
    """
    cdx_url = f"{WAYBACK_CDX_URL}?url={quote(url, safe='')}&output=json&limit={_WAYBACK_LIMIT}"
    try:
        rows = fetcher.get_json(cdx_url)
    except (FetchError, ParseError) as exc:
        logger.warning("[ENRICH] Wayback Machine lookup failed for %s: %s", url, exc)
        return None

    if not isinstance(rows, list) or len(rows) < 2:
        return None

    # First row is the CDX header: urlkey, timestamp, original, mimetype, statuscode, ...
    snapshots = [
        {
            "timestamp": row[1],
            "url": f"https://web.archive.org/web/{row[1]}/{row[2]}",
            "status": row[4],
        }
        for row in rows[1:]
        if isinstance(row, list) and len(row) >= 5
    ]
    if not snapshots:
        return None

    logger.info("[ENRICH] Found historical data with %d snapshots", len(snapshots))
    return EnrichmentFinding(
        source=WAYBACK, confidence=CONFIDENCE[WAYBACK], data={"snapshots": snapshots}
    )


# ---------------------------------------------------------------------------
# Structured pricing
# ---------------------------------------------------------------------------

def _format_price(value: Any, currency: str) -> str | None:
    text = " ".join(str(value).split())
    if not text:
        return None
    found = find_prices(text)
    if found:
        return found[0]
    if price_value(text) is None:
        return None
    symbol = _SYMBOLS.get(currency.upper())
    return f"{symbol}{text}" if symbol else f"{text} {currency.upper()}"


def _structured_item(
    price: Any,
    currency: str,
    plan: str | None,
    context: str,
    finding: EnrichmentFinding,
) -> PricingItem | None:
    formatted = _format_price(price, currency or "USD")
    if formatted is None or looks_like_script(formatted):
        return None
    value = price_value(formatted)
    if value is None or not 0 <= value <= 50_000:
        return None
    plan = plan or DEFAULT_PLAN
    return PricingItem(
        price=formatted,
        plan=plan,
        billing=detect_billing(context),
        category="freemium" if value == 0 else categorize_pricing(context, plan),
        confidence=finding.confidence,
        currency=detect_currency(formatted) if not currency else currency.upper(),
        source=finding.source,
    )


def _offers(node: dict[str, Any]) -> list[dict[str, Any]]:
    if _types(node) & {"Offer", "AggregateOffer"}:
        return [node]
    offers = node.get("offers")
    if isinstance(offers, dict):
        return [offers]
    if isinstance(offers, list):
        return [o for o in offers if isinstance(o, dict)]
    return []


def structured_pricing(findings: list[EnrichmentFinding]) -> list[PricingItem]:
    """Turn JSON-LD and microdata findings into :class:`PricingItem` records."""
    items: list[PricingItem] = []
    for finding in findings:
        if finding.source == JSON_LD:
            node = finding.data
            product_name = _text(node.get("name")) if "Product" in _types(node) else ""
            for offer in _offers(node):
                price = offer.get("price", offer.get("lowPrice"))
                if price is None:
                    continue
                price_spec = offer.get("priceSpecification")
                unit = price_spec.get("unitText", "") if isinstance(price_spec, dict) else ""
                plan = _text(offer.get("name")) or product_name
                context = " ".join(
                    part for part in (plan, _text(node.get("description")), _text(unit)) if part
                )
                item = _structured_item(
                    price, _text(offer.get("priceCurrency")), plan or None, context, finding
                )
                if item is not None:
                    items.append(item)
        elif finding.source == MICRODATA:
            data = finding.data
            if not data.get("price"):
                continue
            context = f"{data.get('name', '')} {data.get('description', '')}"
            item = _structured_item(
                data["price"], data.get("currency", ""), data.get("name") or None, context, finding
            )
            if item is not None:
                items.append(item)
    return items


def reconcile_pricing(heuristic: list[PricingItem], structured: list[PricingItem]) -> list[PricingItem]:
    """Merge structured and heuristic pricing, letting structured data win.

    A heuristic item is dropped when a structured item names the same plan
    (case-insensitive).  The survivors are re-ranked together.
    """
    if not structured:
        return heuristic
    named = {item.plan.casefold() for item in structured if item.plan != DEFAULT_PLAN}
    kept = [item for item in heuristic if item.plan.casefold() not in named]
    return rank(
        [*structured, *kept],
        min_confidence=MIN_CONFIDENCE["pricing"],
        limit=CAPS["pricing"],
    )
