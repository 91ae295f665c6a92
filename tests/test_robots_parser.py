"""
Tests for the robots.txt parser module.
"""

import httpx
import pytest

from harvester.safety.robots_parser import RobotsParser


ROBOTS_TXT = """
User-agent: *
Disallow: /private/
Crawl-delay: 3
"""


def robots_transport(status=200, body=ROBOTS_TXT, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(str(request.url))
        return httpx.Response(status, text=body)

    return httpx.MockTransport(handler)


class TestRobotsParser:
    """Tests for RobotsParser class."""

    def test_get_robots_url(self):
        """Test robots.txt URL extraction."""
        parser = RobotsParser()

        cases = [
            ("https://example.com/page/subpage", "https://example.com/robots.txt"),
            ("https://api.example.com/v1/users", "https://api.example.com/robots.txt"),
            ("http://localhost:8000/test", "http://localhost:8000/robots.txt"),
        ]

        for input_url, expected in cases:
            assert parser._get_robots_url(input_url) == expected

    def test_get_domain(self):
        """Test domain extraction from URLs."""
        parser = RobotsParser()

        cases = [
            ("https://example.com/page", "example.com"),
            ("https://sub.example.com/page", "sub.example.com"),
            ("http://localhost:8000/test", "localhost:8000"),
        ]

        for input_url, expected in cases:
            assert parser._get_domain(input_url) == expected


@pytest.mark.asyncio
async def test_allows_and_disallows_paths():
    """Test that rules are applied per path."""
    parser = RobotsParser(enabled=True, transport=robots_transport())

    assert await parser.can_fetch("https://example.com/public/page") is True
    assert await parser.can_fetch("https://example.com/private/page") is False


@pytest.mark.asyncio
async def test_rules_fetched_once_per_host():
    """Test that robots.txt is requested once per host."""
    seen = []
    parser = RobotsParser(enabled=True, transport=robots_transport(seen=seen))

    await parser.can_fetch("https://example.com/a")
    await parser.can_fetch("https://example.com/b")
    await parser.can_fetch("https://other.example.com/a")

    assert seen == [
        "https://example.com/robots.txt",
        "https://other.example.com/robots.txt",
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [403, 404])
async def test_missing_robots_allows_everything(status):
    parser = RobotsParser(enabled=True, transport=robots_transport(status=status, body=""))

    assert await parser.can_fetch("https://example.com/private/page") is True


@pytest.mark.asyncio
async def test_server_error_disallows_everything():
    parser = RobotsParser(enabled=True, transport=robots_transport(status=503, body=""))

    assert await parser.can_fetch("https://example.com/") is False


@pytest.mark.asyncio
async def test_unreachable_host_disallows_everything():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    parser = RobotsParser(enabled=True, transport=httpx.MockTransport(handler))

    assert await parser.can_fetch("https://example.com/") is False


@pytest.mark.asyncio
async def test_disabled_never_fetches():
    """Test that a disabled parser allows everything without a request."""
    seen = []
    parser = RobotsParser(enabled=False, transport=robots_transport(seen=seen))

    assert await parser.can_fetch("https://example.com/private/page") is True
    assert seen == []


@pytest.mark.asyncio
async def test_crawl_delay():
    parser = RobotsParser(enabled=True, transport=robots_transport())

    assert await parser.get_crawl_delay("https://example.com/") == 3.0


@pytest.mark.asyncio
async def test_no_crawl_delay():
    parser = RobotsParser(enabled=True, transport=robots_transport(body="User-agent: *\nDisallow:\n"))

    assert await parser.get_crawl_delay("https://example.com/") is None


@pytest.mark.asyncio
async def test_disabled_has_no_crawl_delay():
    seen = []
    parser = RobotsParser(enabled=False, transport=robots_transport(seen=seen))

    assert await parser.get_crawl_delay("https://example.com/") is None
    assert seen == []
