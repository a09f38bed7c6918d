"""compintel CLI: run the scraping engine from a terminal.

Usage:
    python cli/main.py --help
    python cli/main.py scrape https://example.com/pricing --max-pages 2
    python cli/main.py scrape https://example.com/pricing --json
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from compintel.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import Optional

import typer

from compintel.config import settings
from compintel.log import configure_logging
from compintel.scraper import ScrapedResult, ScrapeEngine, ScrapeError

app = typer.Typer(
    name="compintel",
    help="Competitive-intelligence scraping engine CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Configure logging before any sub-command runs."""
    configure_logging("DEBUG" if verbose else None)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
def _echo_summary(result: ScrapedResult) -> None:
    meta = result.metadata
    typer.echo(f"[scrape] Title       : {result.title}")
    typer.echo(f"[scrape] Description : {result.description}")
    typer.echo(
        f"[scrape] Pages       : {meta.pages_scraped}  "
        f"({meta.processing_time_ms} ms, quality {meta.data_quality:.1f})"
    )
    typer.echo(f"[scrape] Sources     : {', '.join(meta.sources)}")

    typer.echo(f"\nPricing ({len(result.pricing)})")
    for item in result.pricing:
        typer.echo(
            f"  {item.price:<12} {item.plan}  [{item.billing}, {item.category}]  "
            f"conf={item.confidence:.2f}"
        )
    typer.echo(f"\nCoupons ({len(result.coupons)})")
    for coupon in result.coupons:
        expiry = f"  expires {coupon.expiry}" if coupon.expiry else ""
        typer.echo(f"  {coupon.code:<12} {coupon.discount}{expiry}  conf={coupon.confidence:.2f}")
    typer.echo(f"\nDiscounts ({len(result.discounts)})")
    for discount in result.discounts:
        typer.echo(f"  [{discount.type}] {discount.text}  conf={discount.confidence:.2f}")
    typer.echo(f"\nFeatures ({len(result.features)})")
    for feature in result.features:
        typer.echo(f"  [{feature.category}] {feature.text}")
    typer.echo(f"\nButtons ({len(result.buttons)})")
    for button in result.buttons:
        typer.echo(f"  [{button.type}] {button.text}" + (f" → {button.url}" if button.url else ""))
    if result.pages:
        typer.echo(f"\nRelated pages ({len(result.pages)})")
        for page in result.pages:
            typer.echo(f"  [{page.type}] {page.url}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Argument(..., help="Seed URL to scrape."),
    max_pages: Optional[int] = typer.Option(
        None, "--max-pages", min=0, help="Related pages to follow (default: SCRAPE_MAX_PAGES)."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON."),
) -> None:
    """Scrape a competitor page and print the signals found on it."""
    pages = settings.default_max_pages if max_pages is None else max_pages
    if not as_json:
        typer.echo(f"[scrape] Scraping {url!r} (up to {pages} related page(s)) …")

    try:
        with ScrapeEngine() as engine:
            result = engine.scrape(url, max_pages=pages)
    except ScrapeError as exc:
        typer.echo(f"[scrape] {exc}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        _echo_summary(result)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
