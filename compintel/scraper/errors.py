"""Exception taxonomy for the scraping engine."""

from __future__ import annotations


class ScraperError(Exception):
    """Base class for every error raised by :mod:`compintel.scraper`."""


class FetchError(ScraperError):
    """An HTTP fetch failed after the retry budget was exhausted.

    Attributes:
        url: The URL that could not be fetched.
        status_code: Last HTTP status seen, or ``None`` for transport errors.
        cause: The last underlying exception, if any.
    """

    def __init__(
        self,
        url: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.cause = cause
        if status_code is not None:
            reason = f"HTTP {status_code}"
        elif cause is not None:
            reason = f"{type(cause).__name__}: {cause}"
        else:
            reason = "unknown error"
        super().__init__(f"could not fetch {url} ({reason})")


class ParseError(ScraperError):
    """Markup or an embedded JSON payload could not be parsed."""


class ScrapeError(ScraperError):
    """The seed page of a scrape could not be fetched and parsed.

    This is the only failure :meth:`ScrapeEngine.scrape` surfaces to callers.
    """

    def __init__(self, url: str, cause: BaseException | str) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"failed to scrape {url}: {cause}")
