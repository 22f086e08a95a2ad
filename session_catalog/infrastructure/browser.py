"""
Headless-browser page fetcher built on Playwright's async API.

Lifecycle is two nested scopes: the Playwright driver process and the Chromium
browser it launches. Both are acquired by `open()` (or `async with`) and
released exactly once by `close()`, however the load ends. Each `fetch` runs in
its own short-lived browser context so a wedged page only stalls its own call.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

from playwright.async_api import Browser, Playwright, Route, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from session_catalog.config import Settings, get_settings
from session_catalog.domain.errors import FetchTimeout, FetchTransportError
from session_catalog.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_LAUNCH_ARGS: tuple[str, ...] = (
    "--disable-gpu",
    "--no-sandbox",
    "--disable-background-networking",
    "--disable-default-apps",
    "--disable-extensions",
    "--disable-sync",
    "--disable-translate",
)

BLOCKED_RESOURCE_TYPES = frozenset({"image", "font", "media"})


async def _block_heavy_resources(route: Route) -> None:
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
        return
    await route.continue_()


class PlaywrightPageFetcher:
    """
    Render pages in headless Chromium and return their markup.

    Parameters
    ----------
    ready_selector : str
        CSS selector of the element that marks the primary content as rendered.
    headless : bool
        Launch Chromium without a window.
    block_resources : bool
        Abort image, font and media requests to speed up rendering.
    launch_args : sequence[str]
        Extra Chromium command-line flags.
    user_agent : str, optional
        Override the browser's user agent.

    Example
    -------
        async with PlaywrightPageFetcher() as fetcher:
            html = await fetcher.fetch("https://example.com", timeout=30)
    """

    def __init__(
        self,
        ready_selector: str = ".session-title",
        *,
        headless: bool = True,
        block_resources: bool = True,
        launch_args: Sequence[str] = DEFAULT_LAUNCH_ARGS,
        user_agent: Optional[str] = None,
    ) -> None:
        self.ready_selector = ready_selector
        self.headless = headless
        self.block_resources = block_resources
        self.launch_args = list(launch_args)
        self.user_agent = user_agent
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PlaywrightPageFetcher":
        settings = settings or get_settings()
        return cls(
            settings.ready_selector,
            headless=settings.browser_headless,
            block_resources=settings.browser_block_resources,
        )

    @property
    def is_open(self) -> bool:
        return self._browser is not None

    async def open(self) -> "PlaywrightPageFetcher":
        """Start the driver and launch the browser. No-op if already open."""
        if self._browser is not None:
            return self
        log.info("Launching headless browser...")
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=self.launch_args,
            )
        except PlaywrightError as exc:
            await self.close()
            raise FetchTransportError("chromium://launch", f"browser launch failed: {exc}") from exc
        log.info("Browser ready.")
        return self

    async def close(self) -> None:
        """Close the browser, then stop the driver. Safe to call repeatedly."""
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        try:
            if browser is not None:
                await browser.close()
        finally:
            if playwright is not None:
                await playwright.stop()
                log.info("Browser closed.")

    async def __aenter__(self) -> "PlaywrightPageFetcher":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def fetch(self, url: str, timeout: float) -> str:
        browser = self._browser
        if browser is None:
            raise RuntimeError("browser is not open; use 'async with PlaywrightPageFetcher()'")

        log.debug(f"Fetching {url!r}.", extra={"url": url})
        try:
            return await asyncio.wait_for(self._render(browser, url, timeout), timeout)
        except (asyncio.TimeoutError, PlaywrightTimeoutError) as exc:
            raise FetchTimeout(url, timeout) from exc
        except PlaywrightError as exc:
            raise FetchTransportError(url, str(exc)) from exc

    async def _render(self, browser: Browser, url: str, timeout: float) -> str:
        context = await browser.new_context(user_agent=self.user_agent)
        try:
            context.set_default_timeout(timeout * 1000)
            if self.block_resources:
                await context.route("**/*", _block_heavy_resources)
            page = await context.new_page()
            await page.goto(url, wait_until="domcontentloaded")
            await page.wait_for_selector(self.ready_selector, state="visible")
            return await page.content()
        finally:
            await context.close()


__all__ = ["BLOCKED_RESOURCE_TYPES", "DEFAULT_LAUNCH_ARGS", "PlaywrightPageFetcher"]
