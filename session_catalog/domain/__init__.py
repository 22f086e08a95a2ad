"""
Domain package for the session catalog.

Exports the session model, the transient pipeline values and the error
taxonomy. Keep this package focused on data definitions.
"""

from session_catalog.domain.errors import (
    CatalogError,
    CatalogNotReady,
    CatalogSealed,
    FetchError,
    FetchJobError,
    FetchTimeout,
    FetchTransportError,
    ParseError,
    RecordNotFound,
    SnapshotError,
)
from session_catalog.domain.models import FetchJobResult, LoadReport, Session, SessionsResult

__all__ = [
    "CatalogError",
    "CatalogNotReady",
    "CatalogSealed",
    "FetchError",
    "FetchJobError",
    "FetchJobResult",
    "FetchTimeout",
    "FetchTransportError",
    "LoadReport",
    "ParseError",
    "RecordNotFound",
    "Session",
    "SessionsResult",
    "SnapshotError",
]
