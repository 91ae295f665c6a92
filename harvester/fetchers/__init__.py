"""Fetchers module - HTTP and Browser-based content fetching."""

from .http_fetcher import HTTPFetcher, FetchResult
from .browser_fetcher import BrowserFetcher, BrowserSession, By, Interaction
from .site_detector import SiteDetector
from .page_fetcher import FetchMode, PageFetcher

__all__ = [
    "HTTPFetcher",
    "FetchResult",
    "BrowserFetcher",
    "BrowserSession",
    "By",
    "Interaction",
    "SiteDetector",
    "FetchMode",
    "PageFetcher",
]
