"""
Configuration module for Harvester.

Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from pathlib import Path
from typing import Literal
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FetchConfig(BaseSettings):
    """Static (HTTP) fetch configuration."""

    model_config = SettingsConfigDict(env_prefix="HARVESTER_FETCH_")

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")
    http2: bool = Field(default=True, description="Negotiate HTTP/2 when available")
    user_agent_rotation: bool = Field(
        default=False,
        description="Pick a random browser profile per request instead of the first one",
    )


class PolitenessConfig(BaseSettings):
    """Politeness configuration: fixed pauses and robots.txt."""

    model_config = SettingsConfigDict(env_prefix="HARVESTER_POLITE_")

    delay: float = Field(default=1.0, description="Fixed pause between network calls (seconds)")
    respect_robots_txt: bool = Field(default=True, description="Respect robots.txt rules")
    robots_timeout: float = Field(default=10.0, description="robots.txt request timeout (seconds)")


class BrowserConfig(BaseSettings):
    """Headless browser configuration."""

    model_config = SettingsConfigDict(env_prefix="HARVESTER_BROWSER_")

    headless: bool = Field(default=True, description="Run browser in headless mode")
    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Playwright browser engine",
    )
    timeout: int = Field(default=30000, description="Navigation/interaction timeout in milliseconds")
    settle_delay: float = Field(
        default=2.0,
        description="Pause after navigation/interactions so script-driven content can appear (seconds)",
    )

    # Resource blocking
    block_images: bool = Field(default=True, description="Block image requests")
    block_fonts: bool = Field(default=True, description="Block font requests")
    block_media: bool = Field(default=True, description="Block media requests")
    block_analytics: bool = Field(default=True, description="Block analytics/tracking")

    blocked_domains: list[str] = Field(
        default=[
            "google-analytics.com",
            "googletagmanager.com",
            "doubleclick.net",
            "analytics.",
            "tracker.",
        ],
        description="Domains to block"
    )


class StorageConfig(BaseSettings):
    """Export storage configuration."""

    model_config = SettingsConfigDict(env_prefix="HARVESTER_STORAGE_")

    base_path: Path = Field(default=Path("storage"), description="Base storage directory")
    export_subdir: str = Field(default="exports", description="Export files subdirectory")
    sqlite_db_name: str = Field(default="harvest.db", description="SQLite database filename")

    @property
    def export_path(self) -> Path:
        """Full path to export directory."""
        return self.base_path / self.export_subdir


class HarvesterConfig(BaseSettings):
    """Main configuration aggregating all sub-configs."""

    model_config = SettingsConfigDict(
        env_prefix="HARVESTER_",
        env_nested_delimiter="__",
    )

    # Sub-configurations
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    politeness: PolitenessConfig = Field(default_factory=PolitenessConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    # Pipeline behaviour
    default_mode: Literal["static", "dynamic", "auto"] = Field(
        default="static",
        description="Fetch mode used when none is given",
    )
    on_retrieval_error: Literal["skip", "abort"] = Field(
        default="skip",
        description="Skip the page or abort the run on a failed retrieval",
    )
    source_field: str | None = Field(
        default="url",
        description="Column holding the page URL of each record (None to omit)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    def ensure_directories(self) -> None:
        """Create the export directory if it doesn't exist."""
        self.storage.export_path.mkdir(parents=True, exist_ok=True)


# Global config instance (can be overridden)
config = HarvesterConfig()
