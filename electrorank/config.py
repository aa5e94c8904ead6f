"""Configuration helpers for the ElectroRank page generator."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .utils import env_int

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"
OUTPUT_DIR = BASE_DIR / "pages"
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
FEED_DATA_DIR = Path(__file__).resolve().parent / "data" / "feeds"

DEFAULT_PAGE_QUOTA = 5
DEFAULT_SITEMAP_LIMIT = 100
DEFAULT_PING_URL = "https://www.google.com/ping?sitemap={sitemap}"
DEFAULT_NOTIFY_TIMEOUT = 10
DEFAULT_ASSOCIATE_TAG = "electrorank-21"


def _env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


@dataclass(frozen=True)
class Settings:
    """Site and job level settings used during a run."""

    site_name: str = "ElectroRank"
    base_url: str = "https://electrorank.com"
    data_dir: Path = field(default_factory=lambda: DATA_DIR)
    output_dir: Path = field(default_factory=lambda: OUTPUT_DIR)
    page_quota: int = DEFAULT_PAGE_QUOTA
    sitemap_limit: int = DEFAULT_SITEMAP_LIMIT
    ping_url: str | None = DEFAULT_PING_URL
    notify_timeout: float = DEFAULT_NOTIFY_TIMEOUT
    schedule_hour: int = 2
    schedule_minute: int = 0
    associate_tag: str = DEFAULT_ASSOCIATE_TAG

    @property
    def data_file(self) -> Path:
        return self.data_dir / "products.json"

    def abs_url(self, path: str) -> str:
        base = (self.base_url or "https://example.com").rstrip("/")
        if path.startswith("/"):
            return f"{base}{path}"
        return f"{base}/{path}"


def load_settings() -> Settings:
    """Build settings from ``ELECTRORANK_*`` and ``SITE_*`` environment variables."""

    data_dir = _env("ELECTRORANK_DATA_DIR")
    output_dir = _env("ELECTRORANK_OUTPUT_DIR")
    ping_raw = os.getenv("ELECTRORANK_PING_URL")
    if ping_raw is None:
        ping_url: str | None = DEFAULT_PING_URL
    else:
        ping_url = ping_raw.strip() or None
    return Settings(
        site_name=_env("SITE_NAME", "ElectroRank") or "ElectroRank",
        base_url=_env("SITE_BASE_URL", "https://electrorank.com") or "https://electrorank.com",
        data_dir=Path(data_dir) if data_dir else DATA_DIR,
        output_dir=Path(output_dir) if output_dir else OUTPUT_DIR,
        page_quota=env_int("ELECTRORANK_PAGE_QUOTA", DEFAULT_PAGE_QUOTA, minimum=0),
        sitemap_limit=env_int("ELECTRORANK_SITEMAP_LIMIT", DEFAULT_SITEMAP_LIMIT, minimum=0),
        ping_url=ping_url,
        notify_timeout=env_int("ELECTRORANK_NOTIFY_TIMEOUT", DEFAULT_NOTIFY_TIMEOUT, minimum=1),
        schedule_hour=env_int("ELECTRORANK_SCHEDULE_HOUR", 2, minimum=0, maximum=23),
        schedule_minute=env_int("ELECTRORANK_SCHEDULE_MINUTE", 0, minimum=0, maximum=59),
        associate_tag=_env("AMAZON_ASSOCIATE_TAG", DEFAULT_ASSOCIATE_TAG) or DEFAULT_ASSOCIATE_TAG,
    )


def ensure_directories(settings: Settings) -> None:
    """Create the data and output directories if missing."""

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.output_dir.mkdir(parents=True, exist_ok=True)
