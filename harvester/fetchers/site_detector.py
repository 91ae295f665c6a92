"""
Site Detector Module

Decides whether statically fetched markup is complete or whether the page
builds its content with JavaScript and must be rendered in a browser.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List

from harvester.fetchers.http_fetcher import FetchResult


# Markers of client-side frameworks; reported, never decisive on their own
FRAMEWORK_MARKERS: Dict[str, re.Pattern] = {
    name: re.compile("|".join(patterns), re.IGNORECASE)
    for name, patterns in {
        "react": [r"data-reactroot", r"react-dom", r"_reactRootContainer"],
        "vue": [r"data-v-[a-f0-9]+", r"__VUE__", r"vue(\.min)?\.js"],
        "angular": [r"ng-app", r"ng-version", r"angular(\.min)?\.js"],
        "next.js": [r"__NEXT_DATA__", r"_next/static"],
        "nuxt": [r"__NUXT__", r"_nuxt/"],
    }.items()
}

EMPTY_MOUNT_POINT = re.compile(
    r'<div\s+id=["\'](?:root|app|__next)["\']\s*>\s*</div>',
    re.IGNORECASE,
)

INVISIBLE_BLOCKS = re.compile(r"<(script|style)[^>]*>[\s\S]*?</\1>", re.IGNORECASE)
TAGS = re.compile(r"<[^>]+>")
WHITESPACE = re.compile(r"\s+")


def visible_text(markup: str) -> str:
    """Text a reader would see: scripts, styles and tags removed."""
    text = TAGS.sub(" ", INVISIBLE_BLOCKS.sub("", markup))
    return WHITESPACE.sub(" ", text).strip()


@dataclass
class SiteAnalysis:
    """Verdict on one static fetch."""

    url: str
    requires_browser: bool
    text_length: int
    detected_frameworks: List[str] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)


class SiteDetector:
    """
    Detects pages whose static markup is only an application shell.

    A page needs the browser when it has an empty mount point
    (``<div id="root"></div>``) or less visible text than
    ``min_text_length``.

    Example:
        analysis = SiteDetector().analyze(fetch_result)
        if analysis.requires_browser:
            result = await browser_fetcher.fetch(fetch_result.url)
    """

    def __init__(self, min_text_length: int = 200):
        self._min_text_length = min_text_length

    def analyze(self, result: FetchResult) -> SiteAnalysis:
        content = result.content
        reasons = []

        frameworks = [name for name, marker in FRAMEWORK_MARKERS.items() if marker.search(content)]
        if frameworks:
            reasons.append(f"Detected frameworks: {', '.join(frameworks)}")

        empty_mount = EMPTY_MOUNT_POINT.search(content) is not None
        if empty_mount:
            reasons.append("Empty application mount point")

        text_length = len(visible_text(content))
        too_little_text = text_length < self._min_text_length
        if too_little_text:
            reasons.append(f"Low text content ({text_length} chars)")

        return SiteAnalysis(
            url=result.url,
            requires_browser=empty_mount or too_little_text,
            text_length=text_length,
            detected_frameworks=frameworks,
            reasons=reasons,
        )
