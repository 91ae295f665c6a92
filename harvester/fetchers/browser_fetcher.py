"""
Browser Fetcher Module

Headless browser fetcher using Playwright for JavaScript-rendered pages.

The browser is driven through an explicit ``BrowserSession`` handle that is
acquired and released by ``BrowserFetcher.session()``. The session is
closed on every exit path, exactly once.
"""

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from harvester.config import config
from harvester.errors import InteractionError
from harvester.fetchers.http_fetcher import FetchResult


logger = logging.getLogger(__name__)


class By(str, Enum):
    """Element location strategies."""

    ID = "id"
    NAME = "name"
    TAG_NAME = "tag"
    CLASS_NAME = "class"
    CSS_SELECTOR = "css"

    def to_selector(self, value: str) -> str:
        """Translate a strategy and value into a Playwright CSS selector."""
        if self in ATTRIBUTE_SELECTORS:
            return ATTRIBUTE_SELECTORS[self].format(css_string(value))
        return value


def css_string(value: str) -> str:
    """Escape a value for use inside a double-quoted CSS string."""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\a ")


ATTRIBUTE_SELECTORS = {
    By.ID: '[id="{}"]',
    By.NAME: '[name="{}"]',
    By.CLASS_NAME: '[class~="{}"]',
}


@dataclass(frozen=True)
class Interaction:
    """
    One step performed on the page before capture.

    Example:
        Interaction(By.ID, "load-more")
        Interaction.parse("class=tab-spotlight")
    """

    by: By
    value: str
    action: str = "click"

    @classmethod
    def parse(cls, text: str) -> "Interaction":
        """Parse ``BY=VALUE`` (e.g. ``id=more``, ``class=tab``) into a click."""
        by, sep, value = text.partition("=")
        if not sep or not value:
            raise ValueError(f"Expected BY=VALUE, got {text!r}")
        try:
            strategy = By(by.strip().lower())
        except ValueError:
            choices = ", ".join(b.value for b in By)
            raise ValueError(f"Unknown strategy {by!r}. Use one of: {choices}") from None
        return cls(strategy, value.strip())


@dataclass
class BrowserFetchResult(FetchResult):
    """Extended result for browser fetches."""

    final_url: str = ""


class BrowserSession:
    """
    Handle over one live browser page.

    Every browser operation goes through the session; nothing is kept in
    module state. ``close()`` may be called any number of times, the
    underlying browser is released only once.

    Example:
        async with fetcher.session() as session:
            await session.navigate("https://example.com")
            await session.click(By.ID, "more")
            await session.pause(2.0)
            html = await session.markup()
    """

    def __init__(
        self,
        page,
        timeout: int | None = None,
        on_close: Callable[[], Awaitable[None]] | None = None,
    ):
        """
        Args:
            page: A Playwright page (or any object with the same API)
            timeout: Navigation/interaction timeout in ms (default from config)
            on_close: Coroutine releasing the page's browser
        """
        self._page = page
        self._timeout = timeout or config.browser.timeout
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def url(self) -> str:
        return self._page.url

    async def navigate(self, url: str) -> int:
        """
        Load a URL.

        Returns:
            HTTP status of the main document (200 when the browser reports
            no response, e.g. for ``data:`` URLs)
        """
        response = await self._page.goto(url, timeout=self._timeout)
        return response.status if response else 200

    def locate(self, by: By, value: str):
        """First element matching the strategy (lazy Playwright locator)."""
        return self._page.locator(by.to_selector(value)).first

    async def click(self, by: By, value: str) -> None:
        """
        Click the first matching element.

        Raises:
            InteractionError: If no element turns up within the timeout or
                it cannot be clicked
        """
        try:
            await self.locate(by, value).click(timeout=self._timeout)
        except PlaywrightError as e:
            raise InteractionError(by.value, value, str(e)) from e

    async def perform(self, interaction: Interaction) -> None:
        if interaction.action != "click":
            raise InteractionError(
                interaction.by.value,
                interaction.value,
                f"unsupported action {interaction.action!r}",
            )
        logger.debug(f"Clicking {interaction.by.value}={interaction.value}")
        await self.click(interaction.by, interaction.value)

    async def pause(self, seconds: float) -> None:
        """Let scripts run for a fixed time."""
        if seconds > 0:
            await self._page.wait_for_timeout(seconds * 1000)

    async def markup(self) -> str:
        """Markup of the page as it stands now."""
        return await self._page.content()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close:
            await self._on_close()


def should_block_request(request) -> bool:
    """Check if a browser request should be aborted (resource blocking)."""
    if config.browser.block_images and request.resource_type == "image":
        return True
    if config.browser.block_fonts and request.resource_type == "font":
        return True
    if config.browser.block_media and request.resource_type == "media":
        return True

    if config.browser.block_analytics:
        url = request.url.lower()
        for blocked in config.browser.blocked_domains:
            if blocked in url:
                return True

    return False


class BrowserFetcher:
    """
    Fetcher for JavaScript-rendered content.

    Features:
    - Playwright-driven Chromium/Firefox/WebKit, headless by default
    - Scoped sessions, released on every exit path
    - Click interactions located by id, name, tag, class or CSS
    - Fixed settle pause before capture
    - Resource blocking (images, fonts, media, analytics)

    Example:
        fetcher = BrowserFetcher()
        result = await fetcher.fetch(
            "https://example.com/spa",
            interactions=[Interaction(By.ID, "load-more")],
        )
    """

    def __init__(
        self,
        headless: bool | None = None,
        timeout: int | None = None,
        settle_delay: float | None = None,
        launcher: Callable[[], Awaitable[BrowserSession]] | None = None,
    ):
        """
        Initialize the browser fetcher.

        Args:
            headless: Run in headless mode (default from config)
            timeout: Navigation/interaction timeout in ms (default from config)
            settle_delay: Pause after navigation and each interaction, in
                seconds (default from config)
            launcher: Coroutine function opening a session (default launches
                Playwright)
        """
        self._headless = headless if headless is not None else config.browser.headless
        self._timeout = timeout or config.browser.timeout
        self._settle_delay = (
            settle_delay if settle_delay is not None else config.browser.settle_delay
        )
        self._launcher = launcher or self._launch

    async def _launch(self) -> BrowserSession:
        """Start Playwright, open a browser and a page."""
        playwright = await async_playwright().start()
        try:
            browser_type = getattr(playwright, config.browser.browser_type)
            browser = await browser_type.launch(headless=self._headless)
        except Exception:
            await playwright.stop()
            raise

        async def shutdown() -> None:
            try:
                await browser.close()
            finally:
                await playwright.stop()

        try:
            page = await browser.new_page()

            async def handle_route(route):
                if should_block_request(route.request):
                    await route.abort()
                else:
                    await route.continue_()

            await page.route("**/*", handle_route)
        except Exception:
            await shutdown()
            raise

        return BrowserSession(page, timeout=self._timeout, on_close=shutdown)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserSession]:
        """Open a browser session, closing it however the block exits."""
        session = await self._launcher()
        try:
            yield session
        finally:
            await session.close()

    async def fetch(
        self,
        url: str,
        interactions: Sequence[Interaction] = (),
        settle_delay: float | None = None,
    ) -> BrowserFetchResult:
        """
        Fetch a URL in the browser, run interactions, capture the markup.

        Args:
            url: The URL to fetch
            interactions: Steps to perform after loading, in order
            settle_delay: Override of the settle pause in seconds

        Returns:
            BrowserFetchResult with the rendered content. A browser failure
            (launch, navigation, a crashed page) yields status 0 and an
            ``error``.

        Raises:
            InteractionError: If an interaction cannot be performed
        """
        delay = self._settle_delay if settle_delay is None else settle_delay
        start_time = time.time()

        try:
            async with self.session() as session:
                status_code = await session.navigate(url)
                await session.pause(delay)
                for interaction in interactions:
                    await session.perform(interaction)
                    await session.pause(delay)

                content = await session.markup()
                final_url = session.url
        except PlaywrightError as e:
            logger.debug(f"Browser fetch of {url} failed: {e}")
            return BrowserFetchResult(
                url=url,
                status_code=0,
                error=str(e) or type(e).__name__,
                response_time=time.time() - start_time,
            )

        logger.debug(f"Rendered {url} ({len(content)} chars, status {status_code})")

        return BrowserFetchResult(
            url=url,
            status_code=status_code,
            content=content,
            final_url=final_url,
            response_time=time.time() - start_time,
        )

    async def fetch_markup(
        self,
        url: str,
        interactions: Sequence[Interaction] = (),
    ) -> str:
        """
        Fetch rendered markup.

        Raises:
            RetrievalError: On a browser failure or non-2xx status
            InteractionError: If an interaction cannot be performed
        """
        result = await self.fetch(url, interactions)
        result.raise_for_status()
        return result.content
