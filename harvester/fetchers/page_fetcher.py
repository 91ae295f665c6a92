"""
Page Fetcher Module

Single entry point for retrieving markup in one of three modes:

- ``static``: one HTTP request
- ``dynamic``: a browser session that runs page scripts and interactions
- ``auto``: static first, re-rendered in the browser when the markup
  looks script-built
"""

import logging
from enum import Enum
from typing import Sequence

from harvester.fetchers.browser_fetcher import BrowserFetcher, Interaction
from harvester.fetchers.http_fetcher import FetchResult, HTTPFetcher
from harvester.fetchers.site_detector import SiteDetector
from harvester.safety.rate_limiter import FixedDelayLimiter


logger = logging.getLogger(__name__)


class FetchMode(str, Enum):
    """How a page is retrieved."""

    STATIC = "static"
    DYNAMIC = "dynamic"
    AUTO = "auto"


class PageFetcher:
    """
    Fetches pages in static, dynamic or auto mode.

    Every network call (HTTP request or browser navigation) first waits on
    the politeness limiter.

    Example:
        fetcher = PageFetcher()
        result = await fetcher.fetch("https://example.com", FetchMode.AUTO)
        html = result.content
    """

    def __init__(
        self,
        http_fetcher: HTTPFetcher | None = None,
        browser_fetcher: BrowserFetcher | None = None,
        site_detector: SiteDetector | None = None,
        limiter: FixedDelayLimiter | None = None,
    ):
        self._http = http_fetcher or HTTPFetcher()
        self._browser = browser_fetcher
        self._detector = site_detector or SiteDetector()
        self._limiter = limiter or FixedDelayLimiter()

    @property
    def limiter(self) -> FixedDelayLimiter:
        return self._limiter

    @property
    def browser(self) -> BrowserFetcher:
        """Browser fetcher, created on first use."""
        if self._browser is None:
            self._browser = BrowserFetcher()
        return self._browser

    async def _fetch_static(self, url: str, min_delay: float) -> FetchResult:
        await self._limiter.wait(min_delay)
        result = await self._http.fetch(url)
        result.raise_for_status()
        return result

    async def _fetch_dynamic(
        self, url: str, interactions: Sequence[Interaction], min_delay: float
    ) -> FetchResult:
        await self._limiter.wait(min_delay)
        result = await self.browser.fetch(url, interactions)
        result.raise_for_status()
        return result

    async def fetch(
        self,
        url: str,
        mode: FetchMode | str = FetchMode.STATIC,
        interactions: Sequence[Interaction] = (),
        min_delay: float = 0.0,
    ) -> FetchResult:
        """
        Fetch a page.

        Args:
            url: The URL to fetch
            mode: static, dynamic or auto
            interactions: Browser steps (dynamic mode, or auto mode once it
                switches to the browser)
            min_delay: Lower bound on the politeness pause before each
                network call (robots.txt Crawl-delay)

        Returns:
            A successful FetchResult (a BrowserFetchResult when a browser
            produced it)

        Raises:
            RetrievalError: If the page could not be retrieved
            InteractionError: If a browser interaction failed
        """
        mode = FetchMode(mode)

        if mode is FetchMode.DYNAMIC:
            return await self._fetch_dynamic(url, interactions, min_delay)

        if mode is FetchMode.STATIC and interactions:
            logger.warning(f"Ignoring {len(interactions)} interaction(s) for static fetch of {url}")

        result = await self._fetch_static(url, min_delay)

        if mode is FetchMode.AUTO:
            analysis = self._detector.analyze(result)
            if analysis.requires_browser or interactions:
                logger.info(f"Switching to browser for {url}: {'; '.join(analysis.reasons) or 'interactions requested'}")
                return await self._fetch_dynamic(url, interactions, min_delay)

        return result

    async def fetch_markup(
        self,
        url: str,
        mode: FetchMode | str = FetchMode.STATIC,
        interactions: Sequence[Interaction] = (),
    ) -> str:
        """Fetch a page and return only its markup."""
        result = await self.fetch(url, mode, interactions)
        return result.content

