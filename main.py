"""
Harvester - CLI Entry Point

Fetch pages, extract records with a JSON plan, export them as a table.
"""

import asyncio
import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from harvester.config import config
from harvester.errors import HarvesterError
from harvester.fetchers.browser_fetcher import BrowserFetcher, Interaction
from harvester.fetchers.page_fetcher import FetchMode, PageFetcher
from harvester.orchestrator import Harvester, HarvestReport
from harvester.pipeline.plans import ExtractionPlan, load_plan, parse_plan
from harvester.safety.rate_limiter import FixedDelayLimiter
from harvester.safety.robots_parser import RobotsParser


console = Console()

# Used when no --plan is given: one record per link on the page
DEFAULT_PLAN = {
    "container": {"tag": "a", "has": ["href"]},
    "fields": [
        {"name": "text", "rule": "text"},
        {"name": "href", "rule": "attr", "attribute": "href"},
    ],
}


def setup_logging(level: str = "INFO") -> None:
    """Configure logging with rich handler."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def load_urls_from_file(filepath: str) -> list[str]:
    """Load URLs from a text file (one per line, # for comments)."""
    path = Path(filepath)
    if not path.exists():
        console.print(f"[red]File not found: {filepath}[/red]")
        sys.exit(1)

    urls = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                urls.append(line)

    return urls


def resolve_plan(path: str | None) -> ExtractionPlan:
    """Load the plan file, or fall back to the link plan."""
    try:
        return load_plan(path) if path else parse_plan(DEFAULT_PLAN)
    except (OSError, ValueError, ValidationError) as e:
        console.print(f"[red]Invalid plan {path}: {e}[/red]")
        sys.exit(1)


def print_report(report: HarvestReport, preview: int = 10) -> None:
    """Print a preview of the table and the run statistics."""
    table = report.table
    if len(table):
        preview_table = Table(title=f"First {min(preview, len(table))} of {len(table)} records")
        for column in table.columns:
            preview_table.add_column(column, overflow="fold")
        for row in table.rows()[:preview]:
            preview_table.add_row(*["" if v is None else str(v) for v in row])
        console.print(preview_table)

    for page in report.pages:
        if not page.success:
            console.print(f"[yellow]{page.status.value}: {page.url} ({page.error})[/yellow]")

    console.print("\n[bold]Final Statistics:[/bold]")
    for key, value in report.stats.to_dict().items():
        console.print(f"  {key}: {value}")


def build_harvester(args: argparse.Namespace) -> Harvester:
    """Harvester wired from command-line options; global config is left as is."""
    delay = args.delay if args.delay is not None else config.politeness.delay

    fetcher = PageFetcher(
        browser_fetcher=BrowserFetcher(headless=not args.headed),
        limiter=FixedDelayLimiter(delay=delay),
    )
    robots = RobotsParser(enabled=False) if args.no_robots else None
    return Harvester(fetcher=fetcher, robots=robots)


async def main_async(args: argparse.Namespace) -> None:
    """Async main function."""
    setup_logging(args.log_level)

    urls = []
    if args.url:
        urls.append(args.url)
    if args.file:
        urls.extend(load_urls_from_file(args.file))

    if not urls:
        console.print("[red]No URLs provided. Use --url or --file[/red]")
        sys.exit(1)

    try:
        interactions = [Interaction.parse(text) for text in args.click]
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    plan = resolve_plan(args.plan)

    harvester = build_harvester(args)

    console.print("\n[bold blue]Harvester[/bold blue]")
    console.print(f"URLs to process: {len(urls)}")
    console.print(f"Mode: {args.mode}")
    console.print(f"Export format: {args.format}")
    console.print()

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Harvesting...", total=None)
            report = await harvester.run(urls, plan, mode=args.mode, interactions=interactions)
            progress.update(task, description="Complete!")

        print_report(report)

        if len(report.table):
            export_path = await harvester.export(report, format=args.format, filename=args.output)
            console.print(f"\n[green]Results exported to: {export_path}[/green]")
        else:
            console.print("\n[yellow]No records extracted, nothing exported[/yellow]")

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
    except HarvesterError as e:
        console.print(f"\n[red]Error: {e}[/red]")
        sys.exit(1)


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Harvester - fetch pages and extract records into a table",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --url https://quotes.toscrape.com --plan quotes.json
  %(prog)s --file urls.txt --mode auto --format csv --output results.csv
  %(prog)s --url https://example.com/app --mode dynamic --click id=load-more
        """,
    )

    # URL sources
    parser.add_argument(
        "--url", "-u",
        help="Single URL to process",
    )
    parser.add_argument(
        "--file", "-f",
        help="File containing URLs (one per line)",
    )

    # Extraction
    parser.add_argument(
        "--plan", "-p",
        help="JSON extraction plan (default: one record per link)",
    )

    # Fetching
    parser.add_argument(
        "--mode", "-m",
        choices=[m.value for m in FetchMode],
        default=config.default_mode,
        help=f"Fetch mode (default: {config.default_mode})",
    )
    parser.add_argument(
        "--click",
        action="append",
        default=[],
        metavar="BY=VALUE",
        help="Click an element before capture (repeatable; BY is id, name, tag, class or css)",
    )
    parser.add_argument(
        "--delay",
        type=float,
        help=f"Pause between network calls in seconds (default: {config.politeness.delay})",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window",
    )
    parser.add_argument(
        "--no-robots",
        action="store_true",
        help="Do not check robots.txt",
    )

    # Output options
    parser.add_argument(
        "--format",
        choices=["json", "jsonl", "csv", "sqlite"],
        default="json",
        help="Export format (default: json)",
    )
    parser.add_argument(
        "--output", "-o",
        help="Output filename (auto-generated if not specified)",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=config.log_level,
        help=f"Logging level (default: {config.log_level})",
    )

    args = parser.parse_args()

    asyncio.run(main_async(args))


if __name__ == "__main__":
    main()
