import json

import pytest

from electrorank.errors import FeedError
from electrorank.feeds import FEED_CATEGORIES, StaticFeed, default_feeds
from electrorank.models import Product


def test_default_feeds_cover_every_category():
    feeds = default_feeds()
    assert [feed.category for feed in feeds] == list(FEED_CATEGORIES)
    for feed in feeds:
        assert feed.dataset.exists()


def test_bundled_feeds_produce_valid_products():
    for feed in default_feeds(associate_tag="mytag-21"):
        records = feed.fetch_category()
        assert records, feed.category
        for record in records:
            product = Product.from_feed(record)
            assert product.category == feed.category
            assert "tag=mytag-21" in product.affiliate_url


def test_static_feed_adds_category_and_affiliate_link(tmp_path):
    dataset = tmp_path / "earbuds.json"
    dataset.write_text(
        json.dumps(
            {
                "name": "Earbuds",
                "items": [
                    {"productId": "E1", "name": "Buds One", "price": 1999},
                    {"productId": "E2", "name": "Buds Two", "affiliateUrl": "https://shop.example/e2"},
                    "not a record",
                ],
            }
        ),
        encoding="utf-8",
    )

    records = StaticFeed(category="earbuds", dataset=dataset).fetch_category()

    assert [record["productId"] for record in records] == ["E1", "E2"]
    assert records[0]["category"] == "earbuds"
    assert records[0]["affiliateUrl"] == "https://www.amazon.in/dp/E1?tag=electrorank-21"
    assert records[1]["affiliateUrl"] == "https://shop.example/e2"


def test_static_feed_accepts_plain_list_datasets(tmp_path):
    dataset = tmp_path / "mobiles.json"
    dataset.write_text(json.dumps([{"productId": "M1", "name": "Phone"}]), encoding="utf-8")
    feed = StaticFeed(category="mobiles", dataset=dataset)
    assert feed.name == "Mobiles"
    assert len(feed.fetch_category()) == 1


def test_missing_dataset_raises_feed_error(tmp_path):
    feed = StaticFeed(category="tablets", dataset=tmp_path / "tablets.json")
    with pytest.raises(FeedError, match="missing"):
        feed.fetch_category()


@pytest.mark.parametrize("content", ["{broken", json.dumps({"items": "nope"})])
def test_unreadable_dataset_raises_feed_error(tmp_path, content):
    dataset = tmp_path / "laptops.json"
    dataset.write_text(content, encoding="utf-8")
    with pytest.raises(FeedError):
        StaticFeed(category="laptops", dataset=dataset).fetch_category()
