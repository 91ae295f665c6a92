"""
Tests for fetch mode selection and site detection.
"""

import logging

import httpx
import pytest

from harvester.errors import RetrievalError
from harvester.fetchers.browser_fetcher import BrowserFetcher, BrowserFetchResult, By, Interaction
from harvester.fetchers.http_fetcher import FetchResult, HTTPFetcher
from harvester.fetchers.page_fetcher import FetchMode, PageFetcher
from harvester.fetchers.site_detector import SiteDetector


ARTICLE_PAGE = (
    "<html><body><article>"
    + "<p>Static pages carry their whole content in the first response. </p>" * 10
    + "</article></body></html>"
)

APP_SHELL = (
    '<html><head><script src="/_next/static/main.js"></script></head>'
    '<body><div id="__next"></div></body></html>'
)


class RecordingLimiter:
    """Counts politeness waits instead of sleeping."""

    def __init__(self):
        self.calls = 0
        self.min_delays = []

    async def wait(self, min_delay: float = 0.0) -> float:
        self.calls += 1
        self.min_delays.append(min_delay)
        return 0.0


def http_returning(body: str, status: int = 200) -> HTTPFetcher:
    transport = httpx.MockTransport(lambda request: httpx.Response(status, text=body))
    return HTTPFetcher(transport=transport)


@pytest.fixture
def browser_setup(make_page, make_launcher):
    launcher = make_launcher(make_page(html="<html><body><h1>Rendered</h1></body></html>"))
    return launcher, BrowserFetcher(settle_delay=0, launcher=launcher)


class TestSiteDetector:
    """Tests for SiteDetector."""

    def test_full_page_needs_no_browser(self):
        analysis = SiteDetector().analyze(FetchResult(url="https://example.com", status_code=200, content=ARTICLE_PAGE))

        assert analysis.requires_browser is False
        assert analysis.text_length >= 200
        assert analysis.reasons == []

    def test_empty_mount_point(self):
        analysis = SiteDetector().analyze(FetchResult(url="https://example.com", status_code=200, content=APP_SHELL))

        assert analysis.requires_browser is True
        assert "next.js" in analysis.detected_frameworks
        assert "Empty application mount point" in analysis.reasons

    def test_scripts_do_not_count_as_text(self):
        content = "<html><body><script>" + "var x = 1;" * 100 + "</script><p>Hi</p></body></html>"

        analysis = SiteDetector().analyze(FetchResult(url="https://example.com", status_code=200, content=content))

        assert analysis.text_length == 2
        assert analysis.requires_browser is True

    def test_frameworks_alone_do_not_require_browser(self):
        content = ARTICLE_PAGE.replace("<article>", '<article data-reactroot="">')

        analysis = SiteDetector().analyze(FetchResult(url="https://example.com", status_code=200, content=content))

        assert analysis.detected_frameworks == ["react"]
        assert analysis.requires_browser is False


class TestPageFetcher:
    """Tests for PageFetcher."""

    @pytest.mark.asyncio
    async def test_static(self, browser_setup):
        launcher, browser = browser_setup
        limiter = RecordingLimiter()
        fetcher = PageFetcher(http_returning(ARTICLE_PAGE), browser, limiter=limiter)

        result = await fetcher.fetch("https://example.com/", FetchMode.STATIC)

        assert not isinstance(result, BrowserFetchResult)
        assert result.content == ARTICLE_PAGE
        assert launcher.opened == 0
        assert limiter.calls == 1

    @pytest.mark.asyncio
    async def test_static_error_status(self, browser_setup):
        _, browser = browser_setup
        fetcher = PageFetcher(http_returning("gone", status=410), browser, limiter=RecordingLimiter())

        with pytest.raises(RetrievalError) as exc_info:
            await fetcher.fetch("https://example.com/old", "static")

        assert exc_info.value.status_code == 410

    @pytest.mark.asyncio
    async def test_static_ignores_interactions(self, browser_setup, caplog):
        launcher, browser = browser_setup
        fetcher = PageFetcher(http_returning(ARTICLE_PAGE), browser, limiter=RecordingLimiter())

        with caplog.at_level(logging.WARNING, logger="harvester.fetchers.page_fetcher"):
            await fetcher.fetch("https://example.com/", "static", [Interaction(By.ID, "more")])

        assert launcher.opened == 0
        assert "Ignoring 1 interaction(s)" in caplog.text

    @pytest.mark.asyncio
    async def test_dynamic(self, browser_setup):
        launcher, browser = browser_setup
        limiter = RecordingLimiter()
        fetcher = PageFetcher(http_returning(ARTICLE_PAGE), browser, limiter=limiter)

        result = await fetcher.fetch("https://example.com/", FetchMode.DYNAMIC)

        assert isinstance(result, BrowserFetchResult)
        assert "<h1>Rendered</h1>" in result.content
        assert launcher.opened == launcher.closed == 1
        assert limiter.calls == 1

    @pytest.mark.asyncio
    async def test_dynamic_navigation_failure(self, make_page, make_launcher):
        browser = BrowserFetcher(settle_delay=0, launcher=make_launcher(make_page(goto_error="net::ERR_FAILED")))
        fetcher = PageFetcher(http_returning(ARTICLE_PAGE), browser, limiter=RecordingLimiter())

        with pytest.raises(RetrievalError) as exc_info:
            await fetcher.fetch("https://example.com/", FetchMode.DYNAMIC)

        assert exc_info.value.status_code == 0

    @pytest.mark.asyncio
    async def test_auto_keeps_complete_static_page(self, browser_setup):
        launcher, browser = browser_setup
        fetcher = PageFetcher(http_returning(ARTICLE_PAGE), browser, limiter=RecordingLimiter())

        result = await fetcher.fetch("https://example.com/", FetchMode.AUTO)

        assert result.content == ARTICLE_PAGE
        assert launcher.opened == 0

    @pytest.mark.asyncio
    async def test_auto_switches_for_app_shell(self, browser_setup):
        launcher, browser = browser_setup
        limiter = RecordingLimiter()
        fetcher = PageFetcher(http_returning(APP_SHELL), browser, limiter=limiter)

        result = await fetcher.fetch("https://example.com/", FetchMode.AUTO)

        assert isinstance(result, BrowserFetchResult)
        assert launcher.opened == 1
        # One wait for the HTTP request, one for the browser navigation
        assert limiter.calls == 2

    @pytest.mark.asyncio
    async def test_min_delay_reaches_every_wait(self, browser_setup):
        _, browser = browser_setup
        limiter = RecordingLimiter()
        fetcher = PageFetcher(http_returning(APP_SHELL), browser, limiter=limiter)

        await fetcher.fetch("https://example.com/", FetchMode.AUTO, min_delay=3.0)

        assert limiter.min_delays == [3.0, 3.0]

    @pytest.mark.asyncio
    async def test_auto_switches_for_interactions(self, make_page, make_launcher):
        page = make_page(
            html='<html><body><button id="more">More</button></body></html>',
            reveals={'[id="more"]': "<p>Extra</p>"},
        )
        browser = BrowserFetcher(settle_delay=0.01, launcher=make_launcher(page))
        fetcher = PageFetcher(http_returning(ARTICLE_PAGE), browser, limiter=RecordingLimiter())

        result = await fetcher.fetch("https://example.com/", "auto", [Interaction(By.ID, "more")])

        assert isinstance(result, BrowserFetchResult)
        assert "<p>Extra</p>" in result.content

    @pytest.mark.asyncio
    async def test_fetch_markup(self, browser_setup):
        _, browser = browser_setup
        fetcher = PageFetcher(http_returning("<p>plain</p>"), browser, limiter=RecordingLimiter())

        assert await fetcher.fetch_markup("https://example.com/") == "<p>plain</p>"

    @pytest.mark.asyncio
    async def test_unknown_mode(self, browser_setup):
        _, browser = browser_setup
        fetcher = PageFetcher(http_returning("<p>plain</p>"), browser, limiter=RecordingLimiter())

        with pytest.raises(ValueError):
            await fetcher.fetch("https://example.com/", "turbo")
