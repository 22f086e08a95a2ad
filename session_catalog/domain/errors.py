"""
Error taxonomy for the session catalog.

Fetch and parse errors are per-session and recoverable: the fetch job retries
them and the loader drops the session once the retry budget is spent. Snapshot
errors are fatal for an offline run. `RecordNotFound` is a normal negative
lookup result, not a fault.
"""

from __future__ import annotations

from typing import Optional


class CatalogError(Exception):
    """Base class for all catalog errors."""


class FetchError(CatalogError):
    """A page could not be retrieved."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class FetchTimeout(FetchError):
    def __init__(self, url: str, timeout_seconds: float) -> None:
        super().__init__(url, f"timed out after {timeout_seconds:g}s waiting for {url}")
        self.timeout_seconds = timeout_seconds


class FetchTransportError(FetchError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(url, f"failed to load {url}: {reason}")
        self.reason = reason


class ParseError(CatalogError):
    """Markup could not be parsed as a document at all."""


class FetchJobError(CatalogError):
    """
    Terminal failure of a fetch job after its retry budget.

    The last underlying error is available as `__cause__`.
    """

    def __init__(self, identifier: str, url: str, attempts: int, last_error: Optional[BaseException] = None) -> None:
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(f"session {identifier} ({url}) failed after {attempts} attempt(s){detail}")
        self.identifier = identifier
        self.url = url
        self.attempts = attempts


class RecordNotFound(CatalogError, LookupError):
    def __init__(self, identifier: str) -> None:
        super().__init__(
            f"Session with ID {identifier} not found. Use list_sessions to see available session IDs."
        )
        self.identifier = identifier


class CatalogNotReady(CatalogError):
    """The catalog is still loading and the caller chose not to wait (longer)."""


class CatalogSealed(CatalogError):
    """A write was attempted after the catalog was marked ready."""


class SnapshotError(CatalogError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"failed to load sessions from {path}: {reason}")
        self.path = path


__all__ = [
    "CatalogError",
    "CatalogNotReady",
    "CatalogSealed",
    "FetchError",
    "FetchJobError",
    "FetchTimeout",
    "FetchTransportError",
    "ParseError",
    "RecordNotFound",
    "SnapshotError",
]
