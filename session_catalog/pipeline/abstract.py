"""
Abstract interfaces for the fetch pipeline.

The loader and the retrying fetch job only depend on these protocols, so the
concurrency and retry logic can run against stub fetchers without a browser.
"""

from __future__ import annotations

import abc
from typing import Protocol, runtime_checkable

from session_catalog.domain.models import Session


@runtime_checkable
class PageFetcher(Protocol):
    """
    Renders one URL and returns the resulting document markup.
    """

    async def fetch(self, url: str, timeout: float) -> str:
        """
        Fetch and render a page.

        Parameters
        ----------
        url : str
            Absolute URL of the page to render.
        timeout : float
            Deadline in seconds for the whole call.

        Returns
        -------
        str
            The rendered document markup.

        Raises
        ------
        FetchTimeout
            If the page did not render its primary content before the deadline.
        FetchTransportError
            If the page could not be retrieved at all.
        """
        ...


@runtime_checkable
class RecordExtractor(Protocol):
    """Parses rendered markup into a session."""

    def extract(self, markup: str, identifier: str, url: str) -> Session:
        ...


class FetchJob(abc.ABC):
    """
    Unit of work for one identifier, as consumed by the loader's workers.
    """

    @abc.abstractmethod
    def url_for(self, identifier: str) -> str:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    async def run(self, identifier: str) -> Session:  # pragma: no cover - interface only
        """Produce the session for `identifier` or raise a terminal error."""
        raise NotImplementedError


__all__ = ["FetchJob", "PageFetcher", "RecordExtractor"]
