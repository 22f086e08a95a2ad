"""
Domain models for the session catalog.

`Session` mirrors the JSON shape used by the offline snapshot file. The other
types are short-lived values exchanged between the fetch workers, the merge
loop and query callers.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, TypedDict

from pydantic import BaseModel, Field


class Session(BaseModel):
    """
    A single conference session.

    Only `id` is mandatory; every other field is best-effort and defaults to an
    empty value when the detail page (or snapshot entry) does not carry it.
    """

    id: str = Field(..., min_length=1, description="Stable session identifier; the catalog key.")
    title: str = Field("", description="Session title.")
    url: str = Field("", description="Detail page the session was scraped from.")
    date: str = Field("", description="Human-readable date as published.")
    time: str = Field("", description="Time slot as published.")
    location: str = Field("", description="Room or stage.")
    duration: str = Field("", description="Duration as published.")
    description: str = Field("", description="Abstract.")
    speakers: Tuple[str, ...] = Field((), description="Speaker names in page order.")

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }


class SessionsResult(BaseModel):
    """
    Payload returned by the query operations.

    `complete` is False when the catalog was read before loading finished.
    """

    sessions: List[Session] = Field(default_factory=list)
    complete: bool = True


@dataclass(frozen=True)
class FetchJobResult:
    """Outcome of one fetch job, consumed once by the merge loop."""

    identifier: str
    session: Optional[Session] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.session is not None and self.error is None


class LoadReport(TypedDict, total=False):
    """
    Summary of one catalog load.

    Fields are optional so snapshot and live loads can fill only what applies.
    """

    source: str
    requested: int
    loaded: int
    failed: List[str]
    duration_seconds: float
    peak_rss_bytes: Optional[int]
    cpu_percent: Optional[float]
    error: Optional[str]


__all__ = ["FetchJobResult", "LoadReport", "Session", "SessionsResult"]
