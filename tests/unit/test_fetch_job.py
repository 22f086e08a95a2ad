from __future__ import annotations

import asyncio

import pytest

from session_catalog.domain.errors import FetchJobError, FetchTimeout, FetchTransportError, ParseError
from session_catalog.domain.models import Session
from session_catalog.pipeline.extractor import SessionExtractor
from session_catalog.pipeline.fetch_job import RetryingFetchJob
from tests.stubs import SleepRecorder, StubFetcher, render_session_html

URL_TEMPLATE = "https://agenda.test/session/{session_id}"
MAX_ATTEMPTS = 3


class _ScriptedFetcher:
    """Fetcher that replays a fixed list of outcomes, one per call."""

    def __init__(self, outcomes: list[object]) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[tuple[str, float]] = []

    async def fetch(self, url: str, timeout: float) -> str:
        self.calls.append((url, timeout))
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return str(outcome)


def _job(fetcher, sleep: SleepRecorder, **kwargs) -> RetryingFetchJob:
    kwargs.setdefault("max_attempts", MAX_ATTEMPTS)
    return RetryingFetchJob(fetcher, url_template=URL_TEMPLATE, backoff_seconds=1.0, sleep=sleep, **kwargs)


@pytest.mark.asyncio
async def test_fails_twice_then_succeeds_with_linear_backoff(sleep_recorder: SleepRecorder) -> None:
    fetcher = StubFetcher(failures={"42": 2})

    session = await _job(fetcher, sleep_recorder).run("42")

    assert session.id == "42"
    assert session.title == "Talk 42"
    assert len(fetcher.calls) == MAX_ATTEMPTS
    assert sleep_recorder.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_always_failing_fetch_raises_terminal_error(sleep_recorder: SleepRecorder) -> None:
    fetcher = StubFetcher(always_fail=["42"])

    with pytest.raises(FetchJobError) as excinfo:
        await _job(fetcher, sleep_recorder).run("42")

    error = excinfo.value
    assert error.identifier == "42"
    assert error.url == "https://agenda.test/session/42"
    assert error.attempts == MAX_ATTEMPTS
    assert "42" in str(error)
    assert isinstance(error.__cause__, FetchTransportError)
    assert len(fetcher.calls) == MAX_ATTEMPTS
    # No sleep after the final attempt.
    assert sleep_recorder.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_first_success_returns_without_sleeping(sleep_recorder: SleepRecorder) -> None:
    fetcher = StubFetcher()

    session = await _job(fetcher, sleep_recorder).run("7")

    assert session.url == "https://agenda.test/session/7"
    assert len(fetcher.calls) == 1
    assert sleep_recorder.delays == []


class _FlakyExtractor:
    """Extractor that rejects the first `failures` documents it sees."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self._inner = SessionExtractor()

    def extract(self, markup: str, identifier: str, url: str) -> Session:
        if self.failures > 0:
            self.failures -= 1
            raise ParseError(f"failed to parse HTML for session {identifier}")
        return self._inner.extract(markup, identifier, url)


@pytest.mark.asyncio
async def test_timeouts_and_parse_errors_are_retried(sleep_recorder: SleepRecorder) -> None:
    url = "https://agenda.test/session/9"
    fetcher = _ScriptedFetcher(
        [FetchTimeout(url, 5.0), render_session_html(), render_session_html(title="Recovered")]
    )

    session = await _job(fetcher, sleep_recorder, extractor=_FlakyExtractor(1)).run("9")

    assert session.title == "Recovered"
    assert len(fetcher.calls) == 3


@pytest.mark.asyncio
async def test_last_error_is_reported_after_exhaustion(sleep_recorder: SleepRecorder) -> None:
    url = "https://agenda.test/session/9"
    fetcher = _ScriptedFetcher([FetchTimeout(url, 5.0), FetchTimeout(url, 5.0), render_session_html()])

    with pytest.raises(FetchJobError) as excinfo:
        await _job(fetcher, sleep_recorder, extractor=_FlakyExtractor(1)).run("9")

    assert isinstance(excinfo.value.__cause__, ParseError)


@pytest.mark.asyncio
async def test_blank_page_is_not_a_failure(sleep_recorder: SleepRecorder) -> None:
    fetcher = _ScriptedFetcher([""])

    session = await _job(fetcher, sleep_recorder).run("9")

    assert session.id == "9"
    assert session.title == ""
    assert sleep_recorder.delays == []


@pytest.mark.asyncio
async def test_unexpected_errors_are_retried_and_wrapped(sleep_recorder: SleepRecorder) -> None:
    fetcher = _ScriptedFetcher([KeyError("boom"), KeyError("boom"), KeyError("boom")])

    with pytest.raises(FetchJobError) as excinfo:
        await _job(fetcher, sleep_recorder).run("9")

    error = excinfo.value
    assert error.identifier == "9"
    assert error.url == "https://agenda.test/session/9"
    assert error.attempts == MAX_ATTEMPTS
    assert isinstance(error.__cause__, KeyError)
    assert sleep_recorder.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_cancellation_is_not_retried(sleep_recorder: SleepRecorder) -> None:
    fetcher = _ScriptedFetcher([asyncio.CancelledError()])

    with pytest.raises(asyncio.CancelledError):
        await _job(fetcher, sleep_recorder).run("9")

    assert len(fetcher.calls) == 1
    assert sleep_recorder.delays == []


@pytest.mark.asyncio
async def test_timeout_is_passed_to_fetcher(sleep_recorder: SleepRecorder) -> None:
    fetcher = _ScriptedFetcher([render_session_html()])

    await _job(fetcher, sleep_recorder, timeout_seconds=12.5).run("1")

    assert fetcher.calls == [("https://agenda.test/session/1", 12.5)]


@pytest.mark.asyncio
async def test_single_attempt_budget_does_not_sleep(sleep_recorder: SleepRecorder) -> None:
    fetcher = StubFetcher(always_fail=["1"])

    with pytest.raises(FetchJobError) as excinfo:
        await _job(fetcher, sleep_recorder, max_attempts=1).run("1")

    assert excinfo.value.attempts == 1
    assert sleep_recorder.delays == []


def test_from_settings_uses_configured_values(test_settings) -> None:
    job = RetryingFetchJob.from_settings(StubFetcher(), test_settings)

    assert job.max_attempts == test_settings.fetch_max_attempts
    assert job.timeout_seconds == test_settings.fetch_timeout_seconds
    assert job.url_for("5") == "https://agenda.test/session/5"


def test_zero_attempts_is_rejected() -> None:
    with pytest.raises(ValueError):
        RetryingFetchJob(StubFetcher(), max_attempts=0)
