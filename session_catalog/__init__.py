"""
Session Catalog - in-memory catalog of GopherCon 2025 agenda sessions.

The catalog is populated by concurrently rendering each session's detail page
in a headless browser, extracting its fields and merging the results into a
thread-safe store, or from an offline JSON snapshot. It provides:

- A bounded async worker pool with per-session retry and linear backoff
- A reader/writer-locked store with a one-shot readiness signal
- Blocking and non-blocking read queries (list all, get by id)
- A typer CLI for listing, looking up and snapshotting sessions
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from session_catalog.config import Settings, get_settings
from session_catalog.domain import (
    CatalogError,
    CatalogNotReady,
    FetchJobError,
    FetchTimeout,
    FetchTransportError,
    LoadReport,
    ParseError,
    RecordNotFound,
    Session,
    SessionsResult,
    SnapshotError,
)
from session_catalog.orchestrator import (
    BackgroundLoad,
    CatalogLoader,
    load_live_catalog,
    load_snapshot_catalog,
    start_loading,
)
from session_catalog.queries import QueryMode, SessionQueries
from session_catalog.store import CatalogStore
from session_catalog.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "Session",
    "SessionsResult",
    "LoadReport",
    # Errors
    "CatalogError",
    "CatalogNotReady",
    "FetchJobError",
    "FetchTimeout",
    "FetchTransportError",
    "ParseError",
    "RecordNotFound",
    "SnapshotError",
    # Loading
    "BackgroundLoad",
    "CatalogLoader",
    "load_live_catalog",
    "load_snapshot_catalog",
    "start_loading",
    # Store and queries
    "CatalogStore",
    "QueryMode",
    "SessionQueries",
    # Logging
    "configure_logging",
    "get_logger",
]
