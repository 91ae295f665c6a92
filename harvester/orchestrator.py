"""
Main Orchestrator Module

Runs the extraction pipeline over a list of URLs, one page at a time:
robots.txt check -> fetch -> normalize -> parse -> extract -> clean.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from harvester.config import HarvesterConfig, config as default_config
from harvester.errors import InteractionError, MalformedMarkupError, RetrievalError
from harvester.fetchers.browser_fetcher import BrowserFetchResult, Interaction
from harvester.fetchers.page_fetcher import FetchMode, PageFetcher
from harvester.parsing.document import parse_markup
from harvester.pipeline.exporters import create_exporter
from harvester.pipeline.normalizer import TextCleaner, normalize_markup
from harvester.pipeline.plans import ExtractionPlan
from harvester.pipeline.records import ResultTable
from harvester.safety.rate_limiter import FixedDelayLimiter
from harvester.safety.robots_parser import RobotsParser


logger = logging.getLogger(__name__)


class PageStatus(Enum):
    """Outcome of one page."""
    EXTRACTED = "extracted"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class PageResult:
    """Result of processing a single page."""

    url: str
    status: PageStatus
    records: int = 0
    status_code: int = 0
    error: Optional[str] = None
    used_browser: bool = False

    @property
    def success(self) -> bool:
        return self.status is PageStatus.EXTRACTED


@dataclass
class HarvestStats:
    """Statistics for one run."""

    started_at: float = 0.0
    finished_at: float = 0.0
    pages_processed: int = 0
    pages_successful: int = 0
    pages_failed: int = 0
    pages_skipped: int = 0
    records_extracted: int = 0
    bytes_downloaded: int = 0
    browser_fetches: int = 0
    http_fetches: int = 0
    politeness_wait: float = 0.0

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        if self.finished_at:
            return self.finished_at - self.started_at
        return time.time() - self.started_at

    @property
    def success_rate(self) -> float:
        """Success rate percentage."""
        if self.pages_processed == 0:
            return 0.0
        return (self.pages_successful / self.pages_processed) * 100

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "duration_seconds": round(self.duration, 2),
            "pages_processed": self.pages_processed,
            "pages_successful": self.pages_successful,
            "pages_failed": self.pages_failed,
            "pages_skipped": self.pages_skipped,
            "success_rate": round(self.success_rate, 2),
            "records_extracted": self.records_extracted,
            "bytes_downloaded": self.bytes_downloaded,
            "browser_fetches": self.browser_fetches,
            "http_fetches": self.http_fetches,
            "politeness_wait_seconds": round(self.politeness_wait, 2),
        }


@dataclass
class HarvestReport:
    """Everything a run produced."""

    table: ResultTable
    pages: List[PageResult] = field(default_factory=list)
    stats: HarvestStats = field(default_factory=HarvestStats)


class Harvester:
    """
    Sequential pipeline runner.

    Pages are processed strictly one after another; each page gets a fresh
    document tree that is dropped once its records are built. A page that
    fails (retrieval, broken markup, failed interaction) is logged and
    recorded, and the run moves on to the next URL. With
    ``on_retrieval_error="abort"`` a RetrievalError ends the run instead.

    Example:
        harvester = Harvester()
        report = await harvester.run(["https://quotes.toscrape.com"], plan)
        print(report.table.rows())
    """

    def __init__(
        self,
        config: HarvesterConfig | None = None,
        fetcher: PageFetcher | None = None,
        robots: RobotsParser | None = None,
        cleaner: TextCleaner | None = None,
    ):
        """
        Initialize the harvester.

        Args:
            config: Custom configuration (uses global if None)
            fetcher: Page fetcher (default built from config)
            robots: robots.txt checker (default built from config)
            cleaner: Cleaner applied to every record
        """
        self._config = config or default_config
        self._fetcher = fetcher or PageFetcher(
            limiter=FixedDelayLimiter(delay=self._config.politeness.delay),
        )
        self._robots = robots or RobotsParser(
            enabled=self._config.politeness.respect_robots_txt,
        )
        self._cleaner = cleaner or TextCleaner()

    def extract(self, url: str, markup: str, plan: ExtractionPlan) -> ResultTable:
        """
        Normalize, parse and extract one page's markup.

        Raises:
            MalformedMarkupError: If the markup cannot be parsed
        """
        document = parse_markup(normalize_markup(markup))
        table = plan.extract(document)

        records = []
        for record in table.records:
            record = self._cleaner.clean_record(record)
            if self._config.source_field:
                record = {self._config.source_field: url, **record}
            records.append(record)

        return ResultTable(tuple(records))

    async def process_page(
        self,
        url: str,
        plan: ExtractionPlan,
        mode: FetchMode,
        interactions: Sequence[Interaction],
        stats: HarvestStats,
    ) -> tuple[PageResult, ResultTable]:
        """Run one URL through the pipeline."""
        if not await self._robots.can_fetch(url):
            logger.warning(f"Skipping {url}: disallowed by robots.txt")
            return PageResult(url=url, status=PageStatus.SKIPPED, error="Blocked by robots.txt"), ResultTable()

        crawl_delay = await self._robots.get_crawl_delay(url) or 0.0

        try:
            result = await self._fetcher.fetch(url, mode, interactions, min_delay=crawl_delay)
        except RetrievalError as e:
            if self._config.on_retrieval_error == "abort":
                raise
            logger.warning(f"Skipping {url}: {e}")
            return PageResult(
                url=url,
                status=PageStatus.FAILED,
                status_code=e.status_code,
                error=str(e),
            ), ResultTable()
        except InteractionError as e:
            logger.error(f"Interaction failed on {url}: {e}")
            return PageResult(url=url, status=PageStatus.FAILED, error=str(e), used_browser=True), ResultTable()

        used_browser = isinstance(result, BrowserFetchResult)
        if used_browser:
            stats.browser_fetches += 1
        else:
            stats.http_fetches += 1
        stats.bytes_downloaded += len(result.content)

        try:
            table = self.extract(url, result.content, plan)
        except MalformedMarkupError as e:
            logger.error(f"Unparseable markup from {url}: {e}")
            return PageResult(
                url=url,
                status=PageStatus.FAILED,
                status_code=result.status_code,
                error=str(e),
                used_browser=used_browser,
            ), ResultTable()

        logger.info(f"Extracted {len(table)} record(s) from {url}")

        return PageResult(
            url=url,
            status=PageStatus.EXTRACTED,
            records=len(table),
            status_code=result.status_code,
            used_browser=used_browser,
        ), table

    async def run(
        self,
        urls: Sequence[str],
        plan: ExtractionPlan,
        mode: FetchMode | str | None = None,
        interactions: Sequence[Interaction] = (),
    ) -> HarvestReport:
        """
        Run the pipeline on a list of URLs.

        Args:
            urls: URLs to process, in order
            plan: Extraction plan applied to every page
            mode: Fetch mode (default from config)
            interactions: Browser steps for dynamic/auto fetches

        Returns:
            HarvestReport with the combined table, per-page results and stats
        """
        mode = FetchMode(mode or self._config.default_mode)
        stats = HarvestStats(started_at=time.time())
        waited_before = self._fetcher.limiter.get_stats()["total_wait"]
        pages: List[PageResult] = []
        table = ResultTable()

        for url in urls:
            page, page_table = await self.process_page(url, plan, mode, interactions, stats)
            pages.append(page)
            table = table.concat(page_table)

            stats.pages_processed += 1
            if page.status is PageStatus.EXTRACTED:
                stats.pages_successful += 1
                stats.records_extracted += page.records
            elif page.status is PageStatus.SKIPPED:
                stats.pages_skipped += 1
            else:
                stats.pages_failed += 1

        stats.politeness_wait = self._fetcher.limiter.get_stats()["total_wait"] - waited_before
        stats.finished_at = time.time()
        return HarvestReport(table=table, pages=pages, stats=stats)

    async def export(
        self,
        report: HarvestReport,
        format: str = "json",
        filename: str | None = None,
    ) -> str:
        """
        Export a report's table to file.

        Args:
            report: Result of ``run``
            format: Export format (json, jsonl, csv, sqlite)
            filename: Output filename

        Returns:
            Path to exported file
        """
        self._config.ensure_directories()
        exporter = create_exporter(format, export_dir=self._config.storage.export_path)
        return await exporter.export(report.table, filename)
