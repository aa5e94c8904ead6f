"""Reporting helpers for summarizing the ranked catalog."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Sequence

from .models import GeneratedPage, Product
from .scoring import rank_products
from .utils import format_price


@dataclass
class CategoryStats:
    """Aggregate metrics for one category."""

    category: str
    total_products: int
    min_price: float | None
    max_price: float | None
    average_score: float | None
    top_product: str | None


@dataclass
class CatalogStats:
    total_products: int
    categories: list[CategoryStats]
    top_product: Product | None
    pages_logged: int
    latest_page_at: str | None


def summarize_catalog(
    products: Sequence[Product], pages: Sequence[GeneratedPage] = ()
) -> CatalogStats:
    """Compute per-category statistics for the provided catalog."""

    grouped: Dict[str, List[Product]] = defaultdict(list)
    for product in products:
        grouped[product.category or "uncategorized"].append(product)

    categories: list[CategoryStats] = []
    for category in sorted(grouped):
        items = rank_products(grouped[category])
        prices = [product.price for product in items]
        scores = [product.score for product in items]
        categories.append(
            CategoryStats(
                category=category,
                total_products=len(items),
                min_price=min(prices) if prices else None,
                max_price=max(prices) if prices else None,
                average_score=(sum(scores) / len(scores)) if scores else None,
                top_product=items[0].name if items else None,
            )
        )

    ranked = rank_products(products)
    latest = max((page.generated_at for page in pages), default=None)
    return CatalogStats(
        total_products=len(products),
        categories=categories,
        top_product=ranked[0] if ranked else None,
        pages_logged=len(pages),
        latest_page_at=latest,
    )


def generate_stats_report(
    *,
    products: Sequence[Product],
    pages: Sequence[GeneratedPage] = (),
    last_updated: str | None = None,
) -> str:
    """Return a formatted report summarizing the catalog and page history."""

    stats = summarize_catalog(products, pages)
    lines: list[str] = ["Catalog Summary"]
    if stats.total_products == 0:
        lines.append("  No products available.")
    else:
        lines.append(f"  Total products: {stats.total_products}")
        if last_updated:
            lines.append(f"  Catalog last updated: {last_updated}")
        if stats.top_product:
            lines.append(
                f"  Top product: {stats.top_product.name} (score {stats.top_product.score:.2f})"
            )
        for category in stats.categories:
            price_text = "no pricing data"
            if category.min_price is not None and category.max_price is not None:
                price_text = f"₹{format_price(category.min_price)}–₹{format_price(category.max_price)}"
            score_text = (
                f"avg score {category.average_score:.2f}"
                if category.average_score is not None
                else "no scores"
            )
            lines.append(
                f"  {category.category}: {category.total_products} products, {price_text}, "
                f"{score_text}, best: {category.top_product}"
            )

    lines.append("")
    lines.append("Page History")
    if stats.pages_logged == 0:
        lines.append("  No pages have been generated yet.")
    else:
        lines.append(f"  Pages logged: {stats.pages_logged}")
        if stats.latest_page_at:
            lines.append(f"  Most recent page generated: {stats.latest_page_at}")
    return "\n".join(lines)
