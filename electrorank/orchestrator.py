"""Daily job: ingest feeds, rescore, regenerate pages and refresh the sitemap."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .config import Settings, ensure_directories, load_settings
from .errors import FeedError, NotifyError, StoreError
from .feeds import FeedProvider, default_feeds
from .models import PlannedPage, Product
from .pages import PageBuilder
from .planner import PageBudgetPlanner
from .repository import ProductRepository
from .scoring import score_product
from .sitemap import SitemapAssembler, notify_search_engines, write_robots

LOGGER = logging.getLogger(__name__)

_RULE = "=" * 40


@dataclass
class JobSummary:
    """Outcome of one daily job run, filled in stage by stage."""

    products_ingested: int = 0
    scores_updated: int = 0
    pages: List[PlannedPage] = field(default_factory=list)
    feed_errors: List[str] = field(default_factory=list)
    sitemap_path: Optional[Path] = None
    duration_seconds: float = 0.0
    aborted: bool = False
    error: Optional[str] = None

    @property
    def pages_generated(self) -> int:
        return len(self.pages)

    def to_dict(self) -> dict:
        return {
            "products_ingested": self.products_ingested,
            "scores_updated": self.scores_updated,
            "pages_generated": self.pages_generated,
            "pages": [page.to_dict() for page in self.pages],
            "feed_errors": list(self.feed_errors),
            "sitemap_path": str(self.sitemap_path) if self.sitemap_path else None,
            "duration_seconds": self.duration_seconds,
            "aborted": self.aborted,
            "error": self.error,
        }


def _banner(title: str) -> None:
    LOGGER.info(_RULE)
    LOGGER.info(title)
    LOGGER.info(_RULE)


class DailyJob:
    """Run every stage of the daily job against one store handle.

    The job owns the store lifecycle: it calls ``init()`` before the first
    stage and ``close()`` when the run ends, whatever the outcome.
    """

    def __init__(
        self,
        repository: ProductRepository | None = None,
        *,
        settings: Settings | None = None,
        feeds: Sequence[FeedProvider] | None = None,
        builder: PageBuilder | None = None,
        notify: bool = True,
    ) -> None:
        self.settings = settings or load_settings()
        self.repository = repository or ProductRepository(self.settings.data_file)
        self.feeds = list(feeds) if feeds is not None else default_feeds(
            associate_tag=self.settings.associate_tag
        )
        self.builder = builder or PageBuilder(self.repository, self.settings)
        self.planner = PageBudgetPlanner(
            self.repository, self.builder, quota=self.settings.page_quota
        )
        self.sitemap = SitemapAssembler(self.repository, self.settings)
        self.notify = notify

    # ------------------------------------------------------------------
    # Stages

    def _convert(self, name: str, records: object) -> List[Product]:
        if not isinstance(records, (list, tuple)):
            raise FeedError(f"{name} feed returned {type(records).__name__} instead of a list")
        products: List[Product] = []
        for record in records:
            try:
                product = Product.from_feed(record)
            except (TypeError, ValueError) as error:
                LOGGER.warning("Skipping malformed %s record: %s", name, error)
                continue
            product.score = score_product(product)
            products.append(product)
        return products

    def ingest(self, summary: JobSummary) -> int:
        _banner("Starting feeds...")
        total = 0
        for feed in self.feeds:
            name = getattr(feed, "name", feed.__class__.__name__)
            try:
                LOGGER.info("Running %s feed...", name)
                products = self._convert(name, feed.fetch_category())
            except Exception as error:
                LOGGER.error("Error fetching %s: %s", name, error)
                summary.feed_errors.append(name)
                continue
            for product in products:
                self.repository.upsert(product)
            LOGGER.info("%s: %s products fetched and saved", name, len(products))
            total += len(products)
        LOGGER.info("Total products ingested: %s", total)
        summary.products_ingested = total
        return total

    def recalculate_scores(self, summary: JobSummary) -> int:
        _banner("Recalculating product scores...")
        updated = self.repository.recompute_all_scores()
        summary.scores_updated = updated
        return updated

    def generate_pages(self, summary: JobSummary, quota: int | None = None) -> List[PlannedPage]:
        budget = self.settings.page_quota if quota is None else quota
        _banner(f"Generating up to {budget} new pages...")
        pages = self.planner.run(budget)
        for page in pages:
            LOGGER.info("  - %s: %s", page.type, page.path)
        summary.pages = pages
        return pages

    def update_sitemap(self, summary: JobSummary) -> Optional[Path]:
        _banner("Updating sitemap...")
        try:
            path = self.sitemap.write()
            write_robots(self.settings)
        except OSError as error:
            LOGGER.error("Error writing sitemap: %s", error)
            return None
        summary.sitemap_path = path
        if self.notify:
            try:
                notify_search_engines(self.sitemap.sitemap_url, self.settings)
            except NotifyError as error:
                LOGGER.warning("%s", error)
        return path

    # ------------------------------------------------------------------

    def run_once(self, quota: int | None = None) -> JobSummary:
        """Run all stages; never raises, even when the store is unavailable."""

        started = time.monotonic()
        summary = JobSummary()
        _banner("ELECTRORANK DAILY JOB STARTED")
        try:
            ensure_directories(self.settings)
            self.repository.init()
            self.ingest(summary)
            self.recalculate_scores(summary)
            self.generate_pages(summary, quota)
            self.update_sitemap(summary)
        except StoreError as error:
            summary.aborted = True
            summary.error = str(error)
            LOGGER.error("Store unavailable, aborting remaining stages: %s", error)
        except Exception as error:
            summary.aborted = True
            summary.error = str(error)
            LOGGER.exception("FATAL ERROR in daily job")
        finally:
            self.repository.close()
            summary.duration_seconds = round(time.monotonic() - started, 2)
        self._log_summary(summary)
        return summary

    def _log_summary(self, summary: JobSummary) -> None:
        _banner("DAILY JOB SUMMARY")
        LOGGER.info("Products ingested: %s", summary.products_ingested)
        LOGGER.info("Scores updated: %s", summary.scores_updated)
        LOGGER.info("Pages generated: %s", summary.pages_generated)
        if summary.feed_errors:
            LOGGER.info("Failed feeds: %s", ", ".join(summary.feed_errors))
        LOGGER.info("Duration: %.2f seconds", summary.duration_seconds)
        if summary.aborted:
            LOGGER.info("Run aborted: %s", summary.error)
        LOGGER.info(_RULE)
