"""Scraper package: fetch, normalise, extract and score competitor pages."""

from compintel.scraper.engine import ScrapeEngine
from compintel.scraper.errors import FetchError, ParseError, ScrapeError, ScraperError
from compintel.scraper.fetcher import Fetcher, FetcherState
from compintel.scraper.models import RawPage, ScrapedResult
from compintel.scraper.normalizer import Document, normalize

__all__ = [
    "ScrapeEngine",
    "Fetcher",
    "FetcherState",
    "Document",
    "normalize",
    "RawPage",
    "ScrapedResult",
    "ScraperError",
    "FetchError",
    "ParseError",
    "ScrapeError",
]
