"""
Robots.txt Module

Checks URLs against their host's robots.txt before they are fetched.
Rules are fetched once per host and kept for the rest of the run.
"""

import logging
from typing import Dict, Optional
from urllib.parse import urlsplit
from urllib.robotparser import RobotFileParser

import httpx

from harvester.config import config


logger = logging.getLogger(__name__)

# Rules used when robots.txt cannot be read reliably
DISALLOW_ALL = "User-agent: *\nDisallow: /"

# A host without a robots.txt (or hiding it) sets no rules
NO_RULES_STATUSES = (403, 404)


class RobotsParser:
    """
    Answers "may this URL be fetched?" from the host's robots.txt.

    A missing (404) or forbidden (403) file allows everything. A server
    error or an unreachable host disallows everything for that host.

    Example:
        robots = RobotsParser()
        if await robots.can_fetch("https://example.com/products"):
            ...
    """

    USER_AGENT = "*"

    def __init__(
        self,
        user_agent: str | None = None,
        timeout: float | None = None,
        enabled: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            user_agent: Agent name the rules are matched against
            timeout: robots.txt request timeout in seconds (default from config)
            enabled: Check rules at all (default from config)
            transport: httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self._user_agent = user_agent or self.USER_AGENT
        self._timeout = config.politeness.robots_timeout if timeout is None else timeout
        self._enabled = config.politeness.respect_robots_txt if enabled is None else enabled
        self._transport = transport
        self._rules: Dict[str, RobotFileParser] = {}

    def _get_robots_url(self, url: str) -> str:
        parts = urlsplit(url)
        return f"{parts.scheme}://{parts.netloc}/robots.txt"

    def _get_domain(self, url: str) -> str:
        return urlsplit(url).netloc

    async def _download(self, robots_url: str) -> str:
        """robots.txt text, "" when there is none, DISALLOW_ALL on failure."""
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(robots_url)
        except httpx.RequestError as e:
            logger.warning(f"Could not read {robots_url}: {e}")
            return DISALLOW_ALL

        if response.status_code == 200:
            return response.text
        if response.status_code in NO_RULES_STATUSES:
            return ""
        logger.warning(f"{robots_url} answered {response.status_code}; treating host as disallowed")
        return DISALLOW_ALL

    async def _rules_for(self, url: str) -> RobotFileParser:
        domain = self._get_domain(url)
        rules = self._rules.get(domain)
        if rules is None:
            rules = RobotFileParser()
            rules.parse((await self._download(self._get_robots_url(url))).splitlines())
            self._rules[domain] = rules
        return rules

    async def can_fetch(self, url: str) -> bool:
        """
        Check a URL against robots.txt.

        Returns:
            True if allowed or checking is disabled, False if disallowed
        """
        if not self._enabled:
            return True
        rules = await self._rules_for(url)
        return rules.can_fetch(self._user_agent, url)

    async def get_crawl_delay(self, url: str) -> Optional[float]:
        """Crawl-delay for the URL's host, if robots.txt sets one (None when disabled)."""
        if not self._enabled:
            return None
        delay = (await self._rules_for(url)).crawl_delay(self._user_agent)
        return None if delay is None else float(delay)
