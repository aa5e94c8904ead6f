"""Render category, product and comparison pages and record them in the log."""
from __future__ import annotations

import logging
from html import escape as html_escape
from pathlib import Path
from typing import Dict, List, Sequence

from .affiliates import affiliate_rel
from .config import Settings
from .errors import RenderError, StoreError
from .models import GeneratedPage, PageType, Product
from .renderer import render
from .repository import ProductRepository
from .scoring import compare_products
from .utils import format_count, format_price, path_segment, write_text_atomic

LOGGER = logging.getLogger(__name__)

CATEGORY_PAGE_LIMIT = 20
RELATED_LINK_LIMIT = 4
CARD_SPEC_LIMIT = 4


def category_path(category: str) -> str:
    return f"category/{path_segment(category)}.html"


def product_path(product_id: str) -> str:
    return f"product/{path_segment(product_id)}.html"


def comparison_path(first_id: str, second_id: str) -> str:
    return f"compare/{path_segment(first_id)}-vs-{path_segment(second_id)}.html"


def page_url(page_path: str) -> str:
    """Site-relative URL for a page path, without the ``.html`` suffix."""

    return "/" + page_path.rsplit(".", 1)[0]


def _display_name(category: str) -> str:
    return category[:1].upper() + category[1:]


def _singular(category: str) -> str:
    return category[:-1] if category.endswith("s") else category


def _spec_items(specifications: Dict[str, str], limit: int | None = None) -> List[tuple[str, str]]:
    items = list(specifications.items())
    return items[:limit] if limit is not None else items


def _affiliate_link(product: Product, label: str = "View on Amazon") -> str:
    return (
        f'<a href="{html_escape(product.affiliate_url)}" class="cta-button" '
        f'target="_blank" rel="{affiliate_rel()}">{html_escape(label)}</a>'
    )


class PageBuilder:
    """Produce one page at a time from the current store contents.

    Each public method returns the ``GeneratedPage`` that was appended to the
    log, or raises ``RenderError`` when anything about that single page fails.
    """

    def __init__(
        self,
        repository: ProductRepository,
        settings: Settings,
        *,
        template_dir: Path | None = None,
    ) -> None:
        self.repository = repository
        self.settings = settings
        self.output_dir = Path(settings.output_dir)
        self.template_dir = template_dir

    # ------------------------------------------------------------------
    # Shared helpers

    def _render(self, template_name: str, fields: Dict[str, object]) -> str:
        fields.setdefault("SITE_NAME", self.settings.site_name)
        return render(template_name, fields, template_dir=self.template_dir)

    def _publish(self, page_type: str, page_path: str, title: str, document: str) -> GeneratedPage:
        target = self.output_dir / page_path
        if not target.resolve().is_relative_to(self.output_dir.resolve()):
            raise RenderError(f"Refusing to write {page_path} outside {self.output_dir}")
        try:
            write_text_atomic(target, document)
        except OSError as error:
            raise RenderError(f"Unable to write {page_path}: {error}") from error
        try:
            return self.repository.append_page_log(
                GeneratedPage(page_type=page_type, page_path=page_path, title=title)
            )
        except StoreError as error:
            raise RenderError(f"Unable to log {page_path}: {error}") from error

    def _lookup(self, product_id: str) -> Product:
        try:
            product = self.repository.by_id(product_id)
        except StoreError as error:
            raise RenderError(f"Unable to load product {product_id}: {error}") from error
        if product is None:
            raise RenderError(f"Product {product_id} not found")
        return product

    def _category_links(self, categories: Sequence[str], label: str, *, exclude: str | None = None) -> str:
        return "".join(
            f'<li><a href="{page_url(category_path(category))}">'
            + html_escape(label.format(category=category, name=_display_name(category)))
            + "</a></li>"
            for category in categories
            if category != exclude
        )

    # ------------------------------------------------------------------
    # Category pages

    def _product_card(self, product: Product) -> str:
        specs = "".join(
            f"<li><strong>{html_escape(key)}:</strong> {html_escape(value)}</li>"
            for key, value in _spec_items(product.specifications, CARD_SPEC_LIMIT)
        )
        return "\n".join(
            [
                '<div class="product-card">',
                f'<h3><a href="{page_url(product_path(product.product_id))}">{html_escape(product.name)}</a></h3>',
                f'<div class="product-score">Score: {product.score}</div>',
                f'<div class="product-rating">&#11088; {product.rating}/5 ({format_count(product.review_count)} reviews)</div>',
                f'<div class="product-price">&#8377;{format_price(product.price)}</div>',
                f'<ul class="product-specs">{specs}</ul>',
                _affiliate_link(product),
                "</div>",
            ]
        )

    def category_page(self, category: str) -> GeneratedPage:
        LOGGER.info("Generating category page for: %s", category)
        try:
            products = self.repository.by_category(category, CATEGORY_PAGE_LIMIT)
            categories = self.repository.distinct_categories()
        except StoreError as error:
            raise RenderError(f"Unable to load category {category}: {error}") from error
        name = _display_name(category)
        title = f"Best {name} in India - Ranked by {self.settings.site_name}"
        page_path = category_path(category)
        document = self._render(
            "category",
            {
                "TITLE": title,
                "DESCRIPTION": (
                    f"Compare and find the best {category} based on ratings, reviews, and price. "
                    f"Top {len(products)} {category} ranked by our algorithm."
                ),
                "KEYWORDS": f"{category}, best {category}, buy {category}, {category} reviews, {category} comparison",
                "CATEGORY_NAME": name,
                "HEADING": f"Best {name} in India",
                "INTRO_TEXT": (
                    f"We've analyzed {len(products)} {category} based on ratings, reviews, and pricing "
                    f"to help you make the best purchase decision. Our {self.settings.site_name} score "
                    "combines multiple factors to rank products objectively."
                ),
                "PRODUCTS": "\n".join(self._product_card(product) for product in products),
                "INTERNAL_LINKS": self._category_links(categories, "Best {name}", exclude=category),
                "URL": self.settings.abs_url(page_url(page_path)),
            },
        )
        return self._publish(PageType.CATEGORY, page_path, title, document)

    # ------------------------------------------------------------------
    # Product pages

    def product_page(self, product_id: str) -> GeneratedPage:
        LOGGER.info("Generating product page for: %s", product_id)
        product = self._lookup(product_id)
        try:
            related = self.repository.by_category(product.category, RELATED_LINK_LIMIT + 1)
        except StoreError as error:
            raise RenderError(f"Unable to load related products for {product_id}: {error}") from error

        specifications = "".join(
            '<div class="spec-item">'
            f'<div class="spec-label">{html_escape(_display_name(key))}</div>'
            f'<div class="spec-value">{html_escape(value)}</div>'
            "</div>"
            for key, value in _spec_items(product.specifications)
        )
        pros = [
            f"High {self.settings.site_name} score of {product.score}",
            f"Rated {product.rating}/5 by {format_count(product.review_count)} users",
        ]
        if product.rating >= 4.5:
            pros.append("Excellent user ratings")
        if product.review_count >= 10000:
            pros.append("Highly popular with extensive reviews")
        cons: List[str] = []
        if product.rating < 4.0:
            cons.append("Below average user ratings")
        if product.review_count < 1000:
            cons.append("Limited user reviews available")
        cons.append("Price may vary; check current offers on Amazon")

        name = html_escape(product.name)
        description = "\n".join(
            [
                f"<p>The <strong>{name}</strong> by {html_escape(product.brand)} is a "
                f"{html_escape(_singular(product.category))} that has earned a "
                f"{html_escape(self.settings.site_name)} score of {product.score}.</p>",
                f"<p>With {format_count(product.review_count)} user reviews and an average rating of "
                f"{product.rating}/5, it is priced at &#8377;{format_price(product.price)}.</p>",
                "<p>Our ranking algorithm weighs user ratings, review volume, and pricing "
                "to provide an objective assessment.</p>",
            ]
        )
        internal_links = "".join(
            f'<li><a href="{page_url(product_path(other.product_id))}">{html_escape(other.name)}</a></li>'
            for other in [item for item in related if item.product_id != product.product_id][:RELATED_LINK_LIMIT]
        )

        title = f"{product.name} Review - Price, Specs & Rating | {self.settings.site_name}"
        page_path = product_path(product.product_id)
        document = self._render(
            "product",
            {
                "TITLE": title,
                "DESCRIPTION": (
                    f"{product.name} detailed review. {self.settings.site_name} Score: {product.score}. "
                    f"Price: ₹{format_price(product.price)}. Rating: {product.rating}/5."
                ),
                "KEYWORDS": f"{product.name}, {product.brand}, {product.category}, review, price, specifications",
                "PRODUCT_NAME": product.name,
                "CATEGORY": path_segment(product.category),
                "CATEGORY_NAME": _display_name(product.category),
                "BRAND": product.brand,
                "PRICE": format_price(product.price),
                "RATING": product.rating,
                "REVIEW_COUNT": format_count(product.review_count),
                "SCORE": product.score,
                "IMAGE_URL": product.image_url,
                "AFFILIATE_URL": product.affiliate_url,
                "SPECIFICATIONS": specifications,
                "DESCRIPTION_CONTENT": description,
                "PROS": "<ul>" + "".join(f"<li>{html_escape(item)}</li>" for item in pros) + "</ul>",
                "CONS": "<ul>" + "".join(f"<li>{html_escape(item)}</li>" for item in cons) + "</ul>",
                "INTERNAL_LINKS": internal_links,
                "URL": self.settings.abs_url(page_url(page_path)),
            },
        )
        return self._publish(PageType.PRODUCT, page_path, title, document)

    # ------------------------------------------------------------------
    # Comparison pages

    def _detail_section(self, product: Product) -> str:
        specs = "".join(
            f"<li><strong>{html_escape(key)}:</strong> {html_escape(value)}</li>"
            for key, value in _spec_items(product.specifications)
        )
        return "\n".join(
            [
                '<div class="product-section">',
                f"<h2>{html_escape(product.name)}</h2>",
                f'<div class="score-badge">Score: {product.score}</div>',
                f'<div class="price">&#8377;{format_price(product.price)}</div>',
                f'<ul class="specs-list">{specs}</ul>',
                _affiliate_link(product),
                "</div>",
            ]
        )

    def comparison_page(self, first_id: str, second_id: str) -> GeneratedPage:
        LOGGER.info("Generating comparison page for: %s vs %s", first_id, second_id)
        first = self._lookup(first_id)
        second = self._lookup(second_id)
        try:
            categories = self.repository.distinct_categories()
        except StoreError as error:
            raise RenderError(f"Unable to load categories: {error}") from error
        result = compare_products(first, second)
        winner = result.winner

        def _row(label: str, left: str, right: str, highlight: bool = False) -> str:
            css = ' class="winner"' if highlight else ""
            return f"<tr{css}><td><strong>{label}</strong></td><td>{left}</td><td>{right}</td></tr>"

        table = "\n".join(
            [
                "<table>",
                "<thead><tr><th>Feature</th>"
                f"<th>{html_escape(first.name)}</th><th>{html_escape(second.name)}</th></tr></thead>",
                "<tbody>",
                _row(
                    f"{html_escape(self.settings.site_name)} Score",
                    str(first.score),
                    str(second.score),
                    highlight=winner is first,
                ),
                _row("Rating", f"&#11088; {first.rating}/5", f"&#11088; {second.rating}/5"),
                _row("Reviews", format_count(first.review_count), format_count(second.review_count)),
                _row(
                    "Price",
                    f"&#8377;{format_price(first.price)}",
                    f"&#8377;{format_price(second.price)}",
                    highlight=first.price < second.price,
                ),
                _row("Brand", html_escape(first.brand), html_escape(second.brand)),
                "</tbody>",
                "</table>",
            ]
        )
        verdict_parts = [
            f"<p>Based on our analysis, <strong>{html_escape(winner.name)}</strong> scores higher with a "
            f"{html_escape(self.settings.site_name)} score of {winner.score} "
            f"(a lead of {result.score_difference:.2f} over {html_escape(result.loser.name)}).</p>",
        ]
        if first.price < second.price:
            verdict_parts.append(
                f"<p>The {html_escape(first.name)} offers better value for money at "
                f"&#8377;{format_price(first.price)}.</p>"
            )
        if first.rating > second.rating:
            verdict_parts.append(f"<p>The {html_escape(first.name)} has higher user ratings.</p>")

        title = f"{first.name} vs {second.name} - Detailed Comparison"
        page_path = comparison_path(first.product_id, second.product_id)
        document = self._render(
            "comparison",
            {
                "TITLE": title,
                "DESCRIPTION": (
                    f"Compare {first.name} and {second.name}. See specs, prices, ratings, "
                    "and our verdict to help you choose the right product."
                ),
                "KEYWORDS": f"{first.name}, {second.name}, comparison, vs, which is better",
                "HEADING": f"{first.name} vs {second.name}",
                "INTRO_TEXT": (
                    f"Detailed comparison between {first.name} and {second.name}. We've analyzed "
                    "specifications, pricing, user ratings, and reviews to help you decide."
                ),
                "COMPARISON_TABLE": table,
                "PRODUCTS_DETAIL": "\n".join([self._detail_section(first), self._detail_section(second)]),
                "VERDICT": "\n".join(verdict_parts),
                "INTERNAL_LINKS": self._category_links(categories, "View all {category}"),
                "URL": self.settings.abs_url(page_url(page_path)),
            },
        )
        return self._publish(PageType.COMPARISON, page_path, title, document)
