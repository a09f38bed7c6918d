"""HTML normalisation: raw markup in, queryable :class:`Document` out.

Embedded code and binary containers are removed before any extractor sees
the tree, so inline JavaScript can never be read back as page content.
"""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Comment, Tag
from bs4.builder import ParserRejectedMarkup

from compintel.scraper.errors import ParseError

STRIPPED_TAGS = ["script", "style", "noscript", "iframe", "object", "embed"]
CHROME_TAGS = ("nav", "footer", "header")


class Document:
    """Read-only view over a parsed page.

    Extractors treat the wrapped tree as immutable: they query it through
    ``select`` / ``closest`` / ``text`` / ``attr`` and never modify nodes, so
    running them twice over one document gives identical results.
    """

    def __init__(self, soup: BeautifulSoup, url: str = "") -> None:
        self._soup = soup
        self.url = url

    @property
    def root(self) -> BeautifulSoup:
        return self._soup

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def select(self, selector: str) -> list[Tag]:
        return self._soup.select(selector)

    def select_one(self, selector: str) -> Tag | None:
        return self._soup.select_one(selector)

    def select_all(self, selectors: Iterable[str]) -> list[Tag]:
        """Run several selectors and return matches in first-seen order, once each."""
        seen: set[int] = set()
        nodes: list[Tag] = []
        for selector in selectors:
            for node in self._soup.select(selector):
                if id(node) not in seen:
                    seen.add(id(node))
                    nodes.append(node)
        return nodes

    # ------------------------------------------------------------------
    # Node helpers
    # ------------------------------------------------------------------
    @staticmethod
    def text(node: Tag) -> str:
        """Visible text of *node* with whitespace collapsed to single spaces."""
        return " ".join(node.get_text(" ", strip=True).split())

    @staticmethod
    def attr(node: Tag, name: str) -> str | None:
        value = node.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    @staticmethod
    def classes(node: Tag) -> str:
        """Space-joined, lower-cased class list (``""`` when absent)."""
        return " ".join(node.get("class") or []).lower()

    @staticmethod
    def closest(node: Tag, selector: str) -> Tag | None:
        """Nearest ancestor-or-self of *node* matching *selector*."""
        return node.css.closest(selector)

    @staticmethod
    def within(node: Tag, names: Iterable[str] = CHROME_TAGS) -> bool:
        """``True`` if *node* is, or sits inside, one of the tags in *names*."""
        names = tuple(names)
        return node.name in names or node.find_parent(names) is not None

    def absolute(self, href: str) -> str | None:
        """Resolve *href* against the page URL, or ``None`` when it is malformed."""
        if not self.url:
            return href
        try:
            return urljoin(self.url, href)
        except ValueError:
            return None


def normalize(html: str, url: str = "") -> Document:
    """Parse *html* and strip non-content nodes.

    Raises:
        ParseError: If the parser rejects the markup outright.
    """
    try:
        soup = BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as exc:
        raise ParseError(f"could not parse HTML from {url or '<string>'}: {exc}") from exc

    for tag in soup(STRIPPED_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    return Document(soup, url=url)
