from dataclasses import replace

from electrorank.errors import FeedError, NotifyError
from electrorank.models import PageType
from electrorank.orchestrator import DailyJob, JobSummary
from electrorank.repository import ProductRepository


class ListFeed:
    def __init__(self, name, records=None, error=None):
        self.name = name
        self.records = records or []
        self.error = error

    def fetch_category(self):
        if self.error is not None:
            raise self.error
        return list(self.records)


def earbud(product_id, rating, reviews, price):
    return {
        "productId": product_id,
        "name": f"Buds {product_id}",
        "category": "earbuds",
        "rating": rating,
        "reviewCount": reviews,
        "price": price,
    }


def test_full_run_with_bundled_feeds(settings):
    summary = DailyJob(settings=settings, notify=False).run_once()

    assert not summary.aborted
    assert summary.products_ingested == 30
    assert summary.scores_updated == 30
    found = [page.type for page in summary.pages]
    assert found.count(PageType.CATEGORY) == 6
    assert found.count(PageType.PRODUCT) + found.count(PageType.COMPARISON) == settings.page_quota
    assert summary.sitemap_path == settings.output_dir / "sitemap.xml"
    assert (settings.output_dir / "robots.txt").exists()
    assert summary.duration_seconds >= 0


def test_failing_feed_does_not_block_others(settings):
    feeds = [
        ListFeed("Broken", error=FeedError("scraper down")),
        ListFeed("Earbuds", [earbud("A", 4.5, 9234, 26900), earbud("B", 4.6, 9000, 20000)]),
        ListFeed("Crashing", error=RuntimeError("unexpected")),
    ]
    job = DailyJob(settings=settings, feeds=feeds, notify=False)

    summary = job.run_once()

    assert summary.feed_errors == ["Broken", "Crashing"]
    assert summary.products_ingested == 2
    assert [page.path for page in summary.pages] == [
        "category/earbuds.html",
        "product/B.html",
        "product/A.html",
        "compare/B-vs-A.html",
    ]
    with ProductRepository(settings.data_file) as repository:
        assert {p.product_id: p.score for p in repository.load_products()} == {"A": 15.54, "B": 16.2}


def test_malformed_records_are_skipped(settings):
    feeds = [ListFeed("Earbuds", [earbud("A", 4.5, 100, 1000), {"name": "no id"}])]
    summary = DailyJob(settings=settings, feeds=feeds, notify=False).run_once()

    assert summary.products_ingested == 1
    assert summary.feed_errors == []


def test_non_mapping_records_do_not_abort_the_run(settings):
    feeds = [
        ListFeed("Mixed", [["not", "a", "dict"], "junk", earbud("A", 4.5, 100, 1000)]),
        ListFeed("Good", [earbud("B", 4.0, 100, 1000)]),
    ]
    summary = DailyJob(settings=settings, feeds=feeds, notify=False).run_once()

    assert not summary.aborted
    assert summary.feed_errors == []
    assert summary.products_ingested == 2


def test_feed_returning_non_list_is_isolated(settings):
    class NoneFeed:
        name = "Empty"

        def fetch_category(self):
            return None

    feeds = [NoneFeed(), ListFeed("Good", [earbud("B", 4.0, 100, 1000)])]
    summary = DailyJob(settings=settings, feeds=feeds, notify=False).run_once()

    assert not summary.aborted
    assert summary.feed_errors == ["Empty"]
    assert summary.products_ingested == 1


def test_non_finite_numbers_do_not_abort_the_run(settings):
    infinite = dict(earbud("INF", 4.0, 100, 1000), price="inf", reviewCount="inf")
    not_a_number = dict(earbud("NAN", 4.0, 100, 1000), rating="nan")
    feeds = [
        ListFeed("Odd", [infinite, not_a_number]),
        ListFeed("Good", [earbud("B", 4.0, 100, 1000)]),
    ]
    summary = DailyJob(settings=settings, feeds=feeds, notify=False).run_once()

    assert not summary.aborted
    assert summary.products_ingested == 3
    with ProductRepository(settings.data_file) as repository:
        scores = {p.product_id: p.score for p in repository.load_products()}
    assert scores == {"INF": 8.0, "NAN": 0.0, "B": 8.0}


def test_reingesting_same_feed_does_not_duplicate(settings):
    feeds = [ListFeed("Earbuds", [earbud("A", 4.0, 100, 1000)])]
    DailyJob(settings=settings, feeds=feeds, notify=False).run_once()
    feeds[0].records = [earbud("A", 4.9, 500, 900)]
    DailyJob(settings=settings, feeds=feeds, notify=False).run_once()

    with ProductRepository(settings.data_file) as repository:
        products = repository.load_products()
    assert len(products) == 1
    assert products[0].rating == 4.9


def test_store_unavailable_aborts_without_raising(settings, tmp_path):
    broken = ProductRepository(tmp_path)
    feed = ListFeed("Earbuds", [earbud("A", 4.0, 100, 1000)])

    summary = DailyJob(broken, settings=settings, feeds=[feed], notify=False).run_once()

    assert summary.aborted
    assert summary.error
    assert summary.products_ingested == 0
    assert summary.pages == []
    assert summary.sitemap_path is None
    assert not broken.is_open


def test_unexpected_stage_error_is_reported(settings, monkeypatch):
    job = DailyJob(settings=settings, feeds=[], notify=False)

    def explode(summary, quota=None):
        raise RuntimeError("planner crashed")

    monkeypatch.setattr(job, "generate_pages", explode)
    summary = job.run_once()

    assert summary.aborted
    assert summary.error == "planner crashed"
    assert summary.sitemap_path is None


def test_notify_failure_is_swallowed(settings, monkeypatch):
    def failing_notify(sitemap_url, settings):
        raise NotifyError("ping timed out")

    monkeypatch.setattr("electrorank.orchestrator.notify_search_engines", failing_notify)
    feeds = [ListFeed("Earbuds", [earbud("A", 4.0, 100, 1000)])]
    summary = DailyJob(settings=settings, feeds=feeds, notify=True).run_once()

    assert not summary.aborted
    assert summary.sitemap_path is not None


def test_quota_override_limits_pages(settings):
    feeds = [ListFeed("Earbuds", [earbud(f"E{i}", 4.0 + i / 10, 100, 1000) for i in range(5)])]
    summary = DailyJob(settings=replace(settings, page_quota=2), feeds=feeds, notify=False).run_once()

    assert [page.type for page in summary.pages] == [
        PageType.CATEGORY,
        PageType.PRODUCT,
        PageType.PRODUCT,
    ]


def test_summary_to_dict():
    summary = JobSummary(products_ingested=3, scores_updated=3)
    payload = summary.to_dict()
    assert payload["pages_generated"] == 0
    assert payload["sitemap_path"] is None
    assert payload["aborted"] is False
