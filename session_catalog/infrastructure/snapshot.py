"""
Offline snapshot of the catalog.

A snapshot is a JSON array of session objects using the same field names as
`Session`. Loading validates every entry; any I/O or validation problem is a
`SnapshotError`, since an offline run has no other data source.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List

from pydantic import TypeAdapter, ValidationError

from session_catalog.domain.errors import SnapshotError
from session_catalog.domain.models import Session
from session_catalog.utils.logging import get_logger

log = get_logger(__name__)

_SESSIONS_ADAPTER = TypeAdapter(List[Session])


def load_snapshot(path: Path | str) -> List[Session]:
    """
    Read and validate a snapshot file.

    Raises
    ------
    SnapshotError
        If the file is missing, unreadable, not JSON, or has invalid entries.
    """
    snapshot_path = Path(path)
    try:
        raw = snapshot_path.read_bytes()
    except OSError as exc:
        raise SnapshotError(str(snapshot_path), exc.strerror or str(exc)) from exc

    try:
        sessions = _SESSIONS_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        raise SnapshotError(str(snapshot_path), f"invalid session data: {exc}") from exc

    log.info(f"Loaded {len(sessions)} session(s) from {snapshot_path}", extra={"path": str(snapshot_path)})
    return sessions


def save_snapshot(path: Path | str, sessions: Iterable[Session]) -> int:
    """Write sessions to `path` sorted by id. Returns the number written."""
    snapshot_path = Path(path)
    ordered = sorted(sessions, key=lambda s: s.id)
    payload = [session.model_dump(mode="json") for session in ordered]

    snapshot_path.parent.mkdir(parents=True, exist_ok=True)
    with snapshot_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
        f.write("\n")

    log.info(f"Saved {len(payload)} session(s) to {snapshot_path}", extra={"path": str(snapshot_path)})
    return len(payload)


__all__ = ["load_snapshot", "save_snapshot"]
