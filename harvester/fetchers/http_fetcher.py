"""
HTTP Fetcher Module

Static page retrieval: one GET per page with browser-like headers.
No retries; failures are reported on the result, or raised as
RetrievalError by ``fetch_markup``.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from harvester.config import config
from harvester.errors import RetrievalError
from harvester.fetchers.headers import RequestHeaders


logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Markup and metadata of one retrieval."""

    url: str
    status_code: int
    content: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    response_time: float = 0.0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        """2xx status and no transport error."""
        return self.error is None and 200 <= self.status_code < 300

    def raise_for_status(self) -> None:
        """Raise RetrievalError unless the fetch succeeded."""
        if not self.success:
            raise RetrievalError(self.url, self.status_code, self.error)


class HTTPFetcher:
    """
    Fetches static HTML over HTTP(S).

    Transport failures (timeouts, refused connections, DNS errors) come
    back as results with status 0 and an ``error`` message.

    Example:
        fetcher = HTTPFetcher()
        result = await fetcher.fetch("https://quotes.toscrape.com")
        result.raise_for_status()
        html = result.content
    """

    def __init__(
        self,
        headers: RequestHeaders | None = None,
        timeout: float | None = None,
        follow_redirects: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            headers: Header builder (default from config)
            timeout: Request timeout in seconds (default from config)
            follow_redirects: Follow redirects (default from config)
            transport: httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self._headers = headers or RequestHeaders(rotate=config.fetch.user_agent_rotation)
        self._timeout = config.fetch.timeout if timeout is None else timeout
        self._follow_redirects = (
            config.fetch.follow_redirects if follow_redirects is None else follow_redirects
        )
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=self._follow_redirects,
            http2=config.fetch.http2,
            transport=self._transport,
        )

    async def fetch(self, url: str, headers: dict | None = None) -> FetchResult:
        """
        GET a URL.

        Args:
            url: The URL to fetch
            headers: Extra headers merged over the browser profile's

        Returns:
            FetchResult; never raises for HTTP or transport failures
        """
        request_headers = {**self._headers.build(), **(headers or {})}
        started = time.perf_counter()

        try:
            async with self._client() as client:
                response = await client.get(url, headers=request_headers)
        except httpx.TimeoutException:
            error = "Request timed out"
        except httpx.RequestError as e:
            error = str(e) or type(e).__name__
        else:
            elapsed = time.perf_counter() - started
            logger.debug(f"GET {url} -> {response.status_code} in {elapsed:.2f}s")
            return FetchResult(
                url=url,
                status_code=response.status_code,
                content=response.text,
                headers=dict(response.headers),
                response_time=elapsed,
            )

        logger.debug(f"GET {url} failed: {error}")
        return FetchResult(
            url=url,
            status_code=0,
            error=error,
            response_time=time.perf_counter() - started,
        )

    async def fetch_markup(self, url: str) -> str:
        """
        GET a URL and return its markup.

        Raises:
            RetrievalError: On a non-2xx status or a transport failure
        """
        result = await self.fetch(url)
        result.raise_for_status()
        return result.content
