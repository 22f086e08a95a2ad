"""
Infrastructure package for the session catalog.

Centralizes I/O concerns: the headless browser that renders session pages and
the JSON snapshot used by offline mode. Keep this layer focused on I/O and
resource management, decoupled from loader/query logic.
"""

from session_catalog.infrastructure.browser import PlaywrightPageFetcher
from session_catalog.infrastructure.snapshot import load_snapshot, save_snapshot

__all__ = [
    "PlaywrightPageFetcher",
    "load_snapshot",
    "save_snapshot",
]
