import pytest

from electrorank.errors import RenderError, StoreError
from electrorank.models import PageType, Product
from electrorank.pages import PageBuilder, category_path, comparison_path, product_path
from electrorank.scoring import score_product


def build_product(product_id: str, *, category="earbuds", rating=4.0, reviews=1000, price=10000, name=None):
    product = Product(
        product_id=product_id,
        name=name or f"Sample {product_id}",
        category=category,
        price=price,
        rating=rating,
        review_count=reviews,
        brand="Brand",
        specifications={"driver": "11mm", "battery": "30h"},
        affiliate_url=f"https://www.amazon.in/dp/{product_id}?tag=electrorank-21",
    )
    product.score = score_product(product)
    return product


@pytest.fixture
def builder(repository, settings):
    repository.upsert_many(
        [
            build_product("A", rating=4.5, reviews=9234, price=26900),
            build_product("B", rating=4.6, reviews=9000, price=20000),
            build_product("L1", category="laptops"),
        ]
    )
    return PageBuilder(repository, settings)


def test_paths_are_derived_from_type_and_key():
    assert category_path("earbuds") == "category/earbuds.html"
    assert product_path("A") == "product/A.html"
    assert comparison_path("A", "B") == "compare/A-vs-B.html"


def test_category_page_lists_ranked_products(builder, repository, settings):
    record = builder.category_page("earbuds")

    assert record.page_type == PageType.CATEGORY
    assert record.page_path == "category/earbuds.html"
    assert record.title == "Best Earbuds in India - Ranked by ElectroRank"
    document = (settings.output_dir / record.page_path).read_text(encoding="utf-8")
    assert document.index("/product/B") < document.index("/product/A")
    assert '<a href="/category/laptops">Best Laptops</a>' in document
    assert '<a href="/category/earbuds">' not in document
    assert 'rel="sponsored nofollow noopener"' in document
    assert "https://electrorank.test/category/earbuds" in document
    assert [entry.page_path for entry in repository.load_page_log()] == ["category/earbuds.html"]


def test_product_page_escapes_names_and_links_related(repository, settings):
    repository.upsert_many(
        [
            build_product("X1", name="Buds <Pro> & Co", rating=4.7, reviews=12000),
            build_product("X2"),
        ]
    )
    record = PageBuilder(repository, settings).product_page("X1")

    document = (settings.output_dir / "product" / "X1.html").read_text(encoding="utf-8")
    assert record.title == "Buds <Pro> & Co Review - Price, Specs & Rating | ElectroRank"
    assert "Buds &lt;Pro&gt; &amp; Co" in document
    assert "<Pro>" not in document
    assert "Highly popular with extensive reviews" in document
    assert '<a href="/product/X2">' in document
    assert '<a href="/product/X1">' not in document


def test_comparison_page_highlights_winner(builder, settings):
    record = builder.comparison_page("A", "B")

    assert record.page_path == "compare/A-vs-B.html"
    assert record.title == "Sample A vs Sample B - Detailed Comparison"
    document = (settings.output_dir / record.page_path).read_text(encoding="utf-8")
    assert "<strong>Sample B</strong> scores higher" in document
    assert "(a lead of 0.66 over Sample A)" in document
    assert '<a href="/category/laptops">View all laptops</a>' in document


def test_unknown_product_raises_render_error(builder, repository):
    with pytest.raises(RenderError):
        builder.product_page("missing")
    with pytest.raises(RenderError):
        builder.comparison_page("A", "missing")
    assert repository.load_page_log() == []


def test_store_failure_while_logging_becomes_render_error(builder, monkeypatch):
    def broken_append(record):
        raise StoreError("disk full")

    monkeypatch.setattr(builder.repository, "append_page_log", broken_append)
    with pytest.raises(RenderError, match="disk full"):
        builder.category_page("earbuds")


def test_unwritable_output_raises_render_error(builder, settings):
    settings.output_dir.mkdir(parents=True, exist_ok=True)
    (settings.output_dir / "category").write_text("not a directory", encoding="utf-8")
    with pytest.raises(RenderError):
        builder.category_page("earbuds")


def test_page_paths_stay_inside_output_dir(repository, settings):
    repository.upsert_many(
        [
            build_product("../../escaped", category="../earbuds"),
            build_product("B2", category="../earbuds"),
        ]
    )
    builder = PageBuilder(repository, settings)

    product = builder.product_page("../../escaped")
    category = builder.category_page("../earbuds")
    comparison = builder.comparison_page("../../escaped", "B2")

    assert product.page_path == "product/escaped.html"
    assert category.page_path == "category/earbuds.html"
    assert comparison.page_path == "compare/escaped-vs-B2.html"
    written = sorted(
        str(path.relative_to(settings.output_dir)).replace("\\", "/")
        for path in settings.output_dir.rglob("*.html")
    )
    assert written == ["category/earbuds.html", "compare/escaped-vs-B2.html", "product/escaped.html"]
    assert not (settings.output_dir.parent / "escaped.html").exists()
    document = (settings.output_dir / category.page_path).read_text(encoding="utf-8")
    assert 'href="/product/escaped"' in document


def test_publish_refuses_paths_outside_output_dir(builder):
    with pytest.raises(RenderError, match="outside"):
        builder._publish("product", "../escaped.html", "Escaped", "<html></html>")
