"""
Pytest configuration for the session catalog.

Provides fixtures for:
- Settings with fast retry/backoff values
- Rendered session markup
- Stub page fetchers standing in for the headless browser
"""

from __future__ import annotations

from typing import Callable

import pytest

from session_catalog.config import Settings
from session_catalog.store import CatalogStore
from tests.stubs import SleepRecorder, StubFetcher, render_session_html


@pytest.fixture
def session_html() -> Callable[..., str]:
    return render_session_html


@pytest.fixture
def stub_fetcher() -> StubFetcher:
    return StubFetcher()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def store() -> CatalogStore:
    return CatalogStore()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """
    Settings fixture with fast, deterministic values.

    Backoff is zero so retry paths do not slow the suite down.
    """
    return Settings(
        session_url_template="https://agenda.test/session/{session_id}",
        session_ids=["101", "102", "103"],
        fetch_timeout_seconds=5.0,
        fetch_max_attempts=3,
        fetch_backoff_seconds=0.0,
        fetch_workers=2,
        offline=False,
        data_file=str(tmp_path / "sessions_backup.json"),
        log_level="DEBUG",
    )
