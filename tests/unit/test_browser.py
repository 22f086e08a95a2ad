from __future__ import annotations

import asyncio
from typing import Any, Optional

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from session_catalog.domain.errors import FetchTimeout, FetchTransportError
from session_catalog.infrastructure import browser as browser_module
from session_catalog.infrastructure.browser import PlaywrightPageFetcher


class FakePage:
    def __init__(self, html: str, goto_error: Optional[BaseException] = None, hang: bool = False) -> None:
        self.html = html
        self.goto_error = goto_error
        self.hang = hang
        self.visited: list[str] = []
        self.selectors: list[str] = []

    async def goto(self, url: str, wait_until: str) -> None:
        self.visited.append(url)
        if self.hang:
            await asyncio.sleep(60)
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_selector(self, selector: str, state: str) -> None:
        self.selectors.append(selector)

    async def content(self) -> str:
        return self.html


class FakeContext:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.closed = False
        self.routes: list[str] = []
        self.default_timeout: Optional[float] = None

    def set_default_timeout(self, timeout: float) -> None:
        self.default_timeout = timeout

    async def route(self, pattern: str, handler: Any) -> None:
        self.routes.append(pattern)

    async def new_page(self) -> FakePage:
        return self.page

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.contexts: list[FakeContext] = []
        self.closed = 0

    async def new_context(self, user_agent: Optional[str] = None) -> FakeContext:
        context = FakeContext(self.page)
        self.contexts.append(context)
        return context

    async def close(self) -> None:
        self.closed += 1


class FakeChromium:
    def __init__(self, browser: FakeBrowser, launch_error: Optional[BaseException] = None) -> None:
        self.browser = browser
        self.launch_error = launch_error
        self.launch_kwargs: dict[str, Any] = {}

    async def launch(self, **kwargs: Any) -> FakeBrowser:
        self.launch_kwargs = kwargs
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    def __init__(self, chromium: FakeChromium) -> None:
        self.chromium = chromium
        self.stopped = 0

    async def stop(self) -> None:
        self.stopped += 1


class FakeDriver:
    def __init__(self, playwright: FakePlaywright) -> None:
        self.playwright = playwright

    async def start(self) -> FakePlaywright:
        return self.playwright


def _install(monkeypatch, page: FakePage, launch_error: Optional[BaseException] = None):
    fake_browser = FakeBrowser(page)
    fake_playwright = FakePlaywright(FakeChromium(fake_browser, launch_error))
    monkeypatch.setattr(browser_module, "async_playwright", lambda: FakeDriver(fake_playwright))
    return fake_browser, fake_playwright


@pytest.mark.asyncio
async def test_fetch_returns_rendered_markup(monkeypatch) -> None:
    page = FakePage("<h1 class='session-title'>Hi</h1>")
    fake_browser, fake_playwright = _install(monkeypatch, page)

    async with PlaywrightPageFetcher(".session-title") as fetcher:
        html = await fetcher.fetch("https://agenda.test/session/1", timeout=5)

    assert html == page.html
    assert page.visited == ["https://agenda.test/session/1"]
    assert page.selectors == [".session-title"]
    (context,) = fake_browser.contexts
    assert context.closed
    assert context.default_timeout == 5000
    assert context.routes == ["**/*"]
    assert fake_browser.closed == 1
    assert fake_playwright.stopped == 1


@pytest.mark.asyncio
async def test_launch_passes_headless_and_flags(monkeypatch) -> None:
    _, fake_playwright = _install(monkeypatch, FakePage(""))
    fetcher = PlaywrightPageFetcher(headless=False, launch_args=["--disable-gpu"])

    await fetcher.open()
    try:
        assert fetcher.is_open
        assert fake_playwright.chromium.launch_kwargs == {"headless": False, "args": ["--disable-gpu"]}
    finally:
        await fetcher.close()
    assert not fetcher.is_open


@pytest.mark.asyncio
async def test_resource_blocking_can_be_disabled(monkeypatch) -> None:
    fake_browser, _ = _install(monkeypatch, FakePage("<p/>"))

    async with PlaywrightPageFetcher(block_resources=False) as fetcher:
        await fetcher.fetch("https://agenda.test/session/1", timeout=5)

    assert fake_browser.contexts[0].routes == []


@pytest.mark.asyncio
async def test_navigation_error_maps_to_transport_error_and_closes_context(monkeypatch) -> None:
    page = FakePage("", goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
    fake_browser, _ = _install(monkeypatch, page)

    async with PlaywrightPageFetcher() as fetcher:
        with pytest.raises(FetchTransportError, match="ERR_NAME_NOT_RESOLVED") as excinfo:
            await fetcher.fetch("https://agenda.test/session/1", timeout=5)

    assert excinfo.value.url == "https://agenda.test/session/1"
    assert fake_browser.contexts[0].closed


@pytest.mark.asyncio
async def test_playwright_timeout_maps_to_fetch_timeout(monkeypatch) -> None:
    page = FakePage("", goto_error=PlaywrightTimeoutError("Timeout 5000ms exceeded"))
    _install(monkeypatch, page)

    async with PlaywrightPageFetcher() as fetcher:
        with pytest.raises(FetchTimeout):
            await fetcher.fetch("https://agenda.test/session/1", timeout=5)


@pytest.mark.asyncio
async def test_hung_page_is_bounded_by_timeout(monkeypatch) -> None:
    page = FakePage("", hang=True)
    fake_browser, _ = _install(monkeypatch, page)

    async with PlaywrightPageFetcher() as fetcher:
        with pytest.raises(FetchTimeout) as excinfo:
            await fetcher.fetch("https://agenda.test/session/1", timeout=0.05)

    assert excinfo.value.timeout_seconds == 0.05
    assert fake_browser.contexts[0].closed


@pytest.mark.asyncio
async def test_launch_failure_raises_transport_error_and_stops_driver(monkeypatch) -> None:
    _, fake_playwright = _install(monkeypatch, FakePage(""), launch_error=PlaywrightError("Executable doesn't exist"))
    fetcher = PlaywrightPageFetcher()

    with pytest.raises(FetchTransportError, match="browser launch failed"):
        await fetcher.open()

    assert not fetcher.is_open
    assert fake_playwright.stopped == 1


@pytest.mark.asyncio
async def test_fetch_before_open_is_an_error() -> None:
    with pytest.raises(RuntimeError):
        await PlaywrightPageFetcher().fetch("https://agenda.test/session/1", timeout=5)


@pytest.mark.asyncio
async def test_close_is_idempotent(monkeypatch) -> None:
    fake_browser, fake_playwright = _install(monkeypatch, FakePage(""))
    fetcher = await PlaywrightPageFetcher().open()

    await fetcher.close()
    await fetcher.close()

    assert fake_browser.closed == 1
    assert fake_playwright.stopped == 1


def test_from_settings_reads_browser_options(test_settings) -> None:
    settings = test_settings.model_copy(update={"browser_headless": False, "browser_block_resources": False})

    fetcher = PlaywrightPageFetcher.from_settings(settings)

    assert fetcher.headless is False
    assert fetcher.block_resources is False
    assert fetcher.ready_selector == settings.ready_selector
