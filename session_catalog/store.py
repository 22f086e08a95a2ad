"""
Concurrency-safe in-memory catalog of sessions.

The store owns its map and lock; nothing outside this module touches either.
Reads share the lock, writes take it exclusively, and once the readiness
signal fires the catalog is sealed against further writes.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from session_catalog.domain.errors import CatalogSealed
from session_catalog.domain.models import Session
from session_catalog.utils.logging import get_logger
from session_catalog.utils.sync import ReadinessSignal, ReadWriteLock

log = get_logger(__name__)


class CatalogStore:
    """
    Keyed store of sessions plus the readiness signal consumed by queries.

    Example
    -------
        store = CatalogStore()
        store.put(Session(id="42", title="Generics"))
        store.mark_ready()
        store.get("42").title  # "Generics"
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        self._lock = ReadWriteLock()
        self.ready = ReadinessSignal()

    def put(self, session: Session) -> None:
        """Insert or replace one session under its id."""
        with self._lock.write_locked():
            self._ensure_writable()
            self._sessions[session.id] = session

    def put_many(self, sessions: Iterable[Session]) -> int:
        """
        Merge a batch of sessions in a single exclusive write.

        Later entries replace earlier ones with the same id. Returns the number
        of entries merged.
        """
        batch = list(sessions)
        with self._lock.write_locked():
            self._ensure_writable()
            for session in batch:
                self._sessions[session.id] = session
        return len(batch)

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock.read_locked():
            return self._sessions.get(session_id)

    def list(self) -> List[Session]:
        """Return a new list of all sessions; callers may keep or mutate it freely."""
        with self._lock.read_locked():
            return list(self._sessions.values())

    def mark_ready(self) -> bool:
        """Seal the catalog and wake every waiting reader. Safe to call repeatedly."""
        with self._lock.write_locked():
            fired = self.ready.fire()
            count = len(self._sessions)
        if fired:
            log.info(f"[CATALOG READY] {count} session(s)", extra={"sessions": count})
        return fired

    def _ensure_writable(self) -> None:
        if self.ready.is_set():
            raise CatalogSealed("catalog is ready; no further writes are accepted")

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock.read_locked():
            return session_id in self._sessions


__all__ = ["CatalogStore"]
