"""
Utilities package for the session catalog.

Exports shared helpers for logging, profiling and thread synchronisation.
Keep this package lightweight and free of domain-specific logic.
"""

from session_catalog.utils.logging import configure_logging, get_logger
from session_catalog.utils.profiler import ProfileStats, profile_block
from session_catalog.utils.sync import ReadinessSignal, ReadWriteLock

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
    "ReadinessSignal",
    "ReadWriteLock",
]
