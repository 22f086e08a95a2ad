"""
Session extraction from rendered detail pages.

Every field is located by a fixed CSS selector. A selector that matches nothing
leaves its field empty; only markup that cannot be parsed at all is an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from session_catalog.domain.errors import ParseError
from session_catalog.domain.models import Session


@dataclass(frozen=True)
class FieldSelectors:
    title: str = ".session-title"
    description: str = ".session-description"
    date: str = ".session-date"
    time: str = ".session-dates time"
    location: str = ".session-location"
    duration: str = ".session-duration"
    speakers: str = ".speaker-name"


class SessionExtractor:
    """
    Parse detail-page markup into a `Session`.

    Scalar fields take the first match; speakers collect every match in
    document order, keeping duplicates exactly as the page lists them.
    """

    def __init__(self, selectors: FieldSelectors | None = None, parser: str = "html.parser") -> None:
        self.selectors = selectors or FieldSelectors()
        self.parser = parser

    def extract(self, markup: str, identifier: str, url: str) -> Session:
        try:
            soup = BeautifulSoup(markup, self.parser)
        except ParserRejectedMarkup as exc:
            raise ParseError(f"failed to parse HTML for session {identifier}: {exc}") from exc

        sel = self.selectors
        return Session(
            id=identifier,
            url=url,
            title=self._first_text(soup, sel.title),
            description=self._first_text(soup, sel.description),
            date=self._first_text(soup, sel.date),
            time=self._first_text(soup, sel.time),
            location=self._first_text(soup, sel.location),
            duration=self._first_text(soup, sel.duration),
            speakers=tuple(self._all_texts(soup, sel.speakers)),
        )

    @staticmethod
    def _first_text(soup: BeautifulSoup, selector: str) -> str:
        node = soup.select_one(selector)
        if node is None:
            return ""
        return node.get_text().strip()

    @staticmethod
    def _all_texts(soup: BeautifulSoup, selector: str) -> List[str]:
        names = (node.get_text().strip() for node in soup.select(selector))
        return [name for name in names if name]


__all__ = ["FieldSelectors", "SessionExtractor"]
