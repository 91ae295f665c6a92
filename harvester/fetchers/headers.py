"""
Request Headers Module

Browser-like request headers for static fetches. Many sites answer the
default ``python-httpx`` User-Agent with an error page, so every request
carries the User-Agent of a real desktop browser.
"""

import random
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class BrowserProfile:
    """A User-Agent with its matching Client Hints (empty for non-Chromium)."""

    user_agent: str
    sec_ch_ua: str = ""
    sec_ch_ua_platform: str = ""
    accept_language: str = "en-US,en;q=0.9"


BROWSER_PROFILES = [
    # Chrome on Windows
    BrowserProfile(
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
        sec_ch_ua='"Google Chrome";v="131", "Chromium";v="131", "Not_A Brand";v="24"',
        sec_ch_ua_platform='"Windows"',
    ),
    # Firefox on Linux
    BrowserProfile(
        user_agent="Mozilla/5.0 (X11; Linux x86_64; rv:133.0) Gecko/20100101 Firefox/133.0",
    ),
    # Safari on macOS
    BrowserProfile(
        user_agent="Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.1 Safari/605.1.15",
    ),
]


class RequestHeaders:
    """
    Builds request headers from browser profiles.

    Uses the first profile unless rotation is on, in which case each call
    picks a random one.

    Example:
        headers = RequestHeaders(rotate=True).build()
    """

    def __init__(
        self,
        profiles: list[BrowserProfile] | None = None,
        rotate: bool = False,
    ):
        """
        Args:
            profiles: Browser profiles (uses defaults if None)
            rotate: Pick a random profile per call
        """
        self._profiles = list(profiles) if profiles else BROWSER_PROFILES.copy()
        self._rotate = rotate

    def profile(self) -> BrowserProfile:
        if self._rotate:
            return random.choice(self._profiles)
        return self._profiles[0]

    def build(self) -> Dict[str, str]:
        """Headers for one request."""
        profile = self.profile()

        headers = {
            "User-Agent": profile.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": profile.accept_language,
        }

        # Client Hints are only sent by Chromium browsers
        if profile.sec_ch_ua:
            headers["Sec-Ch-Ua"] = profile.sec_ch_ua
            headers["Sec-Ch-Ua-Mobile"] = "?0"
            headers["Sec-Ch-Ua-Platform"] = profile.sec_ch_ua_platform

        return headers
