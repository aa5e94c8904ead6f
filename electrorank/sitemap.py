"""Sitemap assembly, robots.txt and search engine notification."""
from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from datetime import date, datetime, timezone
from html import escape as html_escape
from pathlib import Path
from typing import List
from urllib.parse import quote

import requests

from .config import Settings
from .errors import NotifyError
from .models import PageType
from .repository import ProductRepository
from .utils import path_segment, write_text_atomic

logger = logging.getLogger(__name__)

HOME = "home"

# (changefreq, priority) per entry kind.
ENTRY_POLICY = {
    HOME: ("daily", 1.0),
    PageType.CATEGORY: ("daily", 0.9),
    PageType.PRODUCT: ("weekly", 0.8),
    PageType.COMPARISON: ("weekly", 0.7),
}


@dataclass(frozen=True)
class SitemapEntry:
    loc: str
    lastmod: str
    changefreq: str
    priority: float

    def to_xml(self) -> str:
        return "\n".join(
            [
                "  <url>",
                f"    <loc>{html_escape(self.loc)}</loc>",
                f"    <lastmod>{self.lastmod}</lastmod>",
                f"    <changefreq>{self.changefreq}</changefreq>",
                f"    <priority>{self.priority:.1f}</priority>",
                "  </url>",
            ]
        )


def normalize_page_path(page_path: str) -> str:
    """Return ``page_path`` with forward slashes and no file extension.

    Empty, ``.`` and ``..`` segments are dropped.
    """

    parts = [part for part in page_path.replace("\\", "/").split("/") if part not in ("", ".", "..")]
    root, _ext = posixpath.splitext("/".join(parts))
    return root


class SitemapAssembler:
    """Build ``sitemap.xml`` from the store's categories and recent page log."""

    def __init__(self, repository: ProductRepository, settings: Settings) -> None:
        self.repository = repository
        self.settings = settings

    def _entry(self, path: str, kind: str, lastmod: str) -> SitemapEntry:
        changefreq, priority = ENTRY_POLICY.get(kind, ENTRY_POLICY[PageType.COMPARISON])
        return SitemapEntry(
            loc=self.settings.abs_url(path),
            lastmod=lastmod,
            changefreq=changefreq,
            priority=priority,
        )

    def entries(self, today: date | None = None) -> List[SitemapEntry]:
        lastmod = (today or datetime.now(timezone.utc).date()).isoformat()
        entries = [self._entry("/", HOME, lastmod)]
        for category in self.repository.distinct_categories():
            entries.append(
                self._entry(f"/category/{path_segment(category)}", PageType.CATEGORY, lastmod)
            )
        for record in self.repository.recent_page_log(self.settings.sitemap_limit):
            path = normalize_page_path(record.page_path)
            entries.append(self._entry(f"/{path}", record.page_type, lastmod))
        return entries

    def build(self, today: date | None = None) -> str:
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        lines.extend(entry.to_xml() for entry in self.entries(today))
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"

    def write(self, output_dir: Path | None = None, today: date | None = None) -> Path:
        target = Path(output_dir or self.settings.output_dir) / "sitemap.xml"
        write_text_atomic(target, self.build(today))
        logger.info("Sitemap generated at %s", target)
        return target

    @property
    def sitemap_url(self) -> str:
        return self.settings.abs_url("/sitemap.xml")


def write_robots(settings: Settings, output_dir: Path | None = None) -> Path:
    target = Path(output_dir or settings.output_dir) / "robots.txt"
    content = (
        "User-agent: *\nAllow: /\n"
        f"Sitemap: {settings.abs_url('/sitemap.xml')}\n"
    )
    write_text_atomic(target, content)
    return target


def notify_search_engines(sitemap_url: str, settings: Settings) -> None:
    """Ping the configured index endpoint; raises ``NotifyError`` on failure."""

    if not settings.ping_url:
        logger.debug("No ping URL configured; skipping sitemap notification")
        return
    ping_url = settings.ping_url.replace("{sitemap}", quote(sitemap_url, safe=""))
    logger.info("Pinging search engine about sitemap update...")
    try:
        response = requests.get(ping_url, timeout=settings.notify_timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise NotifyError(f"Sitemap ping failed: {exc}") from exc
    logger.info("Successfully pinged %s", ping_url.split("?", 1)[0])
