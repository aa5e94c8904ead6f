"""Product feed providers consumed by the daily job."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Protocol, Sequence

from .affiliates import amazon_affiliate_url
from .config import FEED_DATA_DIR
from .errors import FeedError
from .utils import load_json

logger = logging.getLogger(__name__)

FEED_CATEGORIES: tuple[str, ...] = (
    "mobiles",
    "laptops",
    "earbuds",
    "headphones",
    "accessories",
    "appliances",
)


class FeedProvider(Protocol):
    """Anything that can return raw product records for one category."""

    name: str

    def fetch_category(self) -> List[dict]:
        """Return raw product mappings; raise ``FeedError`` when unavailable."""


@dataclass
class StaticFeed:
    """Feed that serves bundled JSON datasets in place of a live scraper."""

    category: str
    dataset: Path
    name: str = ""
    associate_tag: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.category.title()

    def _load(self) -> List[dict]:
        if not self.dataset.exists():
            raise FeedError(f"{self.name} feed dataset missing at {self.dataset}")
        try:
            payload = load_json(self.dataset)
        except (OSError, ValueError) as error:
            raise FeedError(f"{self.name} feed unreadable: {error}") from error
        if isinstance(payload, dict):
            title = payload.get("name")
            if title:
                self.name = str(title)
            items = payload.get("items")
        else:
            items = payload
        if not isinstance(items, list):
            raise FeedError(f"{self.name} feed returned malformed data")
        return [item for item in items if isinstance(item, dict)]

    def fetch_category(self) -> List[dict]:
        logger.info("Scraping %s...", self.category)
        records: List[dict] = []
        for item in self._load():
            record = dict(item)
            record.setdefault("category", self.category)
            product_id = record.get("productId") or record.get("product_id")
            if product_id and not record.get("affiliateUrl"):
                record["affiliateUrl"] = amazon_affiliate_url(str(product_id), self.associate_tag)
            records.append(record)
        return records


def default_feeds(
    *,
    data_dir: Path | None = None,
    categories: Sequence[str] = FEED_CATEGORIES,
    associate_tag: str | None = None,
) -> List[StaticFeed]:
    """Return one static feed per category, reading ``<category>.json``."""

    base = data_dir or FEED_DATA_DIR
    return [
        StaticFeed(
            category=category,
            dataset=base / f"{category}.json",
            associate_tag=associate_tag,
        )
        for category in categories
    ]
