"""
Read operations exposed to the serving layer.

Two behaviours are supported for reads that arrive before loading finishes:

- ``blocking``: wait for the catalog to become ready (optionally bounded by
  ``wait_timeout``; expiry raises `CatalogNotReady`).
- ``non_blocking``: answer immediately from whatever is loaded so far and flag
  the answer with ``complete=False``.

A lookup for an id that failed to load is indistinguishable from a lookup for
an id that never existed: both raise `RecordNotFound` once the catalog is ready.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from session_catalog.config import Settings, get_settings
from session_catalog.domain.errors import CatalogNotReady, RecordNotFound
from session_catalog.domain.models import SessionsResult
from session_catalog.store import CatalogStore


class QueryMode(str, Enum):
    BLOCKING = "blocking"
    NON_BLOCKING = "non_blocking"


class SessionQueries:
    """
    `list_all` / `get_by_id` over a `CatalogStore`.

    Safe to call from any thread, including while a load is in progress.
    """

    def __init__(
        self,
        store: CatalogStore,
        mode: QueryMode | str = QueryMode.BLOCKING,
        wait_timeout: Optional[float] = None,
    ) -> None:
        self.store = store
        self.mode = QueryMode(mode)
        self.wait_timeout = wait_timeout

    @classmethod
    def from_settings(cls, store: CatalogStore, settings: Optional[Settings] = None) -> "SessionQueries":
        settings = settings or get_settings()
        return cls(store, settings.query_mode, settings.query_wait_timeout_seconds)

    def _await_ready(self) -> bool:
        """Apply the read policy; returns whether the catalog is ready."""
        if self.mode is QueryMode.NON_BLOCKING:
            return self.store.ready.is_set()
        if not self.store.ready.wait(self.wait_timeout):
            raise CatalogNotReady(f"sessions are still loading after {self.wait_timeout:g}s")
        return True

    def list_all(self) -> SessionsResult:
        """All loaded sessions, in no particular order."""
        complete = self._await_ready()
        return SessionsResult(sessions=self.store.list(), complete=complete)

    def get_by_id(self, session_id: str) -> SessionsResult:
        """
        The session with `session_id`, wrapped in a one-element result.

        Raises
        ------
        RecordNotFound
            The catalog is ready and has no such session.
        CatalogNotReady
            Non-blocking mode only: the session is not loaded (yet) and the
            catalog is still loading.
        """
        complete = self._await_ready()
        session = self.store.get(session_id)
        if session is None and not complete and self.store.ready.is_set():
            # The load finished in between; answer from the final catalog.
            complete = True
            session = self.store.get(session_id)
        if session is not None:
            return SessionsResult(sessions=[session], complete=complete)
        if complete:
            raise RecordNotFound(session_id)
        raise CatalogNotReady(f"session {session_id} is not loaded yet; sessions are still loading")


__all__ = ["QueryMode", "SessionQueries"]
