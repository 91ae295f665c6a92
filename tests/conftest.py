"""
Shared fixtures: sample pages and an in-memory stand-in for a Playwright page.
"""

import pytest
from playwright.async_api import Error as PlaywrightError

from harvester.fetchers.browser_fetcher import BrowserSession


LINKS_PAGE = """
<html>
  <head><title>Links</title></head>
  <body>
    <p>Two links follow.</p>
    <a href="https://www.example.com/first">First link</a>
    <a href="https://www.example.com/second">Second link</a>
  </body>
</html>
"""

COURSES_PAGE = """
<html>
  <body>
    <div class="course featured" id="c1">
      <h2 class="title">Intro to Parsing</h2>
      <span class="instructors">Ada Lovelace</span>
      <a class="more" href="/courses/1">Details</a>
      <span class="geo" data-lat="51.5" data-lon="-0.12"></span>
    </div>
    <div class="course" id="c2">
      <h2 class="title">Browser Automation</h2>
      <a class="more" href="/courses/2">Details</a>
      <span class="geo" data-lat="48.8" data-lon="2.35"></span>
    </div>
    <div class="course" id="c3">
      <h2 class="title">Tabular Data</h2>
      <span class="instructors">Grace Hopper</span>
      <a class="more" href="/courses/3">Details</a>
      <span class="geo" data-lat="40.7" data-lon="-74.0"></span>
    </div>
  </body>
</html>
"""


class FakeResponse:
    def __init__(self, status: int):
        self.status = status


class FakeLocator:
    """Mimics ``page.locator(selector).first``."""

    def __init__(self, page: "FakePage", selector: str):
        self._page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    async def click(self, timeout=None):
        self._page.clicked.append(self.selector)
        if self.selector not in self._page.reveals:
            raise PlaywrightError(f"Timeout {timeout}ms exceeded waiting for {self.selector}")
        self._page.pending.append(self._page.reveals[self.selector])


class FakePage:
    """
    A page whose markup only changes through clicks.

    Clicking a selector listed in ``reveals`` queues a fragment; the fragment
    is rendered into the body once the page is given time to run scripts
    (``wait_for_timeout``), like content loaded by an async handler.
    """

    def __init__(
        self,
        html: str = "<html><body><h1>Home</h1></body></html>",
        reveals: dict | None = None,
        status: int | None = 200,
        goto_error: str | None = None,
        crash_error: str | None = None,
    ):
        self.url = "about:blank"
        self._html = html
        self.reveals = reveals or {}
        self._status = status
        self._goto_error = goto_error
        self._crash_error = crash_error
        self.pending: list[str] = []
        self.rendered: list[str] = []
        self.clicked: list[str] = []
        self.waits: list[float] = []

    async def goto(self, url, timeout=None):
        if self._goto_error:
            raise PlaywrightError(self._goto_error)
        self.url = url
        return FakeResponse(self._status) if self._status is not None else None

    def locator(self, selector):
        return FakeLocator(self, selector)

    async def wait_for_timeout(self, ms):
        if self._crash_error:
            raise PlaywrightError(self._crash_error)
        self.waits.append(ms)
        self.rendered.extend(self.pending)
        self.pending.clear()

    async def content(self):
        return self._html.replace("</body>", "".join(self.rendered) + "</body>")


class SessionFactory:
    """Launcher for ``BrowserFetcher`` that counts opened and closed sessions."""

    def __init__(self, page: FakePage):
        self.page = page
        self.opened = 0
        self.closed = 0

    async def _on_close(self):
        self.closed += 1

    async def __call__(self) -> BrowserSession:
        self.opened += 1
        return BrowserSession(self.page, timeout=500, on_close=self._on_close)


@pytest.fixture
def links_page() -> str:
    return LINKS_PAGE


@pytest.fixture
def courses_page() -> str:
    return COURSES_PAGE


@pytest.fixture
def spotlight_page() -> FakePage:
    """Home page where the Spotlight panel appears only after clicking its tab."""
    return FakePage(
        html="<html><body><button id=\"tab-spotlight\">Show</button></body></html>",
        reveals={'[id="tab-spotlight"]': "<section><h2>Spotlight</h2></section>"},
    )


@pytest.fixture
def make_page():
    return FakePage


@pytest.fixture
def make_launcher():
    return SessionFactory
