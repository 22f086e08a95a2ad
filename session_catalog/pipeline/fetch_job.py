"""
Retrying fetch job: fetch + extract for one session id.

Attempts are bounded and spaced with a linear backoff (1 unit after the first
failure, 2 units after the second, ...). Any error from the fetcher or the
extractor counts as a failed attempt; retry bookkeeping is delegated to tenacity.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_incrementing

from session_catalog.agenda import SESSION_URL_TEMPLATE, session_url
from session_catalog.config import Settings, get_settings
from session_catalog.domain.errors import FetchJobError
from session_catalog.domain.models import Session
from session_catalog.pipeline.abstract import FetchJob, PageFetcher, RecordExtractor
from session_catalog.pipeline.extractor import SessionExtractor
from session_catalog.utils.logging import get_logger

log = get_logger(__name__)

# Cancellation is a BaseException and is never retried.
RETRYABLE_ERRORS = (Exception,)

SleepFunc = Callable[[float], Awaitable[None]]


class RetryingFetchJob(FetchJob):
    """
    Fetch a session detail page and extract it, retrying failed attempts.

    Parameters
    ----------
    fetcher : PageFetcher
        Renders pages; shared by every worker of a load.
    extractor : RecordExtractor, optional
        Defaults to `SessionExtractor` with the standard selectors.
    url_template : str
        Template with a `{session_id}` placeholder.
    timeout_seconds : float
        Per-fetch deadline handed to the fetcher.
    max_attempts : int
        Total attempts including the first one.
    backoff_seconds : float
        Length of one backoff unit.
    sleep : callable
        Awaitable sleep used between attempts; injectable for tests.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        extractor: Optional[RecordExtractor] = None,
        *,
        url_template: str = SESSION_URL_TEMPLATE,
        timeout_seconds: float = 30.0,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.fetcher = fetcher
        self.extractor = extractor or SessionExtractor()
        self.url_template = url_template
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        fetcher: PageFetcher,
        settings: Optional[Settings] = None,
        extractor: Optional[RecordExtractor] = None,
    ) -> "RetryingFetchJob":
        settings = settings or get_settings()
        return cls(
            fetcher,
            extractor,
            url_template=settings.session_url_template,
            timeout_seconds=settings.fetch_timeout_seconds,
            max_attempts=settings.fetch_max_attempts,
            backoff_seconds=settings.fetch_backoff_seconds,
        )

    def url_for(self, identifier: str) -> str:
        return session_url(identifier, self.url_template)

    async def run(self, identifier: str) -> Session:
        url = self.url_for(identifier)
        attempts = 0

        async def attempt() -> Session:
            nonlocal attempts
            attempts += 1
            markup = await self.fetcher.fetch(url, self.timeout_seconds)
            return self.extractor.extract(markup, identifier, url)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.backoff_seconds, increment=self.backoff_seconds),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            sleep=self._sleep,
            before_sleep=self._log_retry(identifier),
            reraise=True,
        )
        try:
            return await retrying(attempt)
        except RETRYABLE_ERRORS as exc:
            raise FetchJobError(identifier, url, attempts, exc) from exc

    def _log_retry(self, identifier: str) -> Callable[[RetryCallState], None]:
        def before_sleep(state: RetryCallState) -> None:
            error = state.outcome.exception() if state.outcome else None
            delay = state.next_action.sleep if state.next_action else 0.0
            log.warning(
                f"[RETRY] session {identifier} attempt {state.attempt_number}/{self.max_attempts} "
                f"failed: {error}; retrying in {delay:.1f}s",
                extra={"session_id": identifier, "attempt": state.attempt_number, "delay": delay},
            )

        return before_sleep


__all__ = ["RETRYABLE_ERRORS", "RetryingFetchJob"]
