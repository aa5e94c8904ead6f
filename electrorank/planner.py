"""Decide which pages to (re)generate on a run under the daily page quota."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .config import DEFAULT_PAGE_QUOTA
from .errors import RenderError
from .models import GeneratedPage, PageType, PlannedPage
from .pages import PageBuilder
from .repository import ProductRepository

LOGGER = logging.getLogger(__name__)

COMPARISON_POOL_SIZE = 4


@dataclass(frozen=True)
class PagePlan:
    """Targets selected from one store snapshot before anything is rendered."""

    quota: int
    categories: Tuple[str, ...] = ()
    product_candidates: Tuple[str, ...] = ()
    comparison_pair: Optional[Tuple[str, str]] = None

    @property
    def is_empty(self) -> bool:
        return not self.categories


class PageBudgetPlanner:
    """Regenerate every category page, then spend the quota on products and one comparison.

    Category pages are never counted against the quota. Product candidates are
    the global top ``quota`` products; a candidate whose page fails does not
    consume budget. If budget remains, a single comparison between the two best
    products of the first category is generated.
    """

    def __init__(
        self,
        repository: ProductRepository,
        builder: PageBuilder,
        *,
        quota: int = DEFAULT_PAGE_QUOTA,
    ) -> None:
        self.repository = repository
        self.builder = builder
        self.quota = quota

    def plan(self, quota: int | None = None) -> PagePlan:
        budget = self.quota if quota is None else quota
        if budget < 0:
            raise ValueError("page quota cannot be negative")
        categories = tuple(self.repository.distinct_categories())
        if not categories:
            return PagePlan(quota=budget)
        candidates = tuple(product.product_id for product in self.repository.top_by_score(budget))
        pool = self.repository.by_category(categories[0], COMPARISON_POOL_SIZE)
        pair = (pool[0].product_id, pool[1].product_id) if len(pool) >= 2 else None
        return PagePlan(
            quota=budget,
            categories=categories,
            product_candidates=candidates,
            comparison_pair=pair,
        )

    def _attempt(self, description: str, produce, *args: str) -> GeneratedPage | None:
        try:
            return produce(*args)
        except RenderError as error:
            LOGGER.error("Skipping %s: %s", description, error)
            return None

    def run(self, quota: int | None = None) -> List[PlannedPage]:
        """Generate pages and return what was produced, in generation order."""

        plan = self.plan(quota)
        generated: List[PlannedPage] = []
        if plan.is_empty:
            LOGGER.info("No categories found; run the feeds first")
            return generated

        LOGGER.info("Generating category pages for all %s categories", len(plan.categories))
        for category in plan.categories:
            page = self._attempt(f"category page {category}", self.builder.category_page, category)
            if page:
                generated.append(PlannedPage(PageType.CATEGORY, page.page_path))

        used = 0
        for product_id in plan.product_candidates:
            if used >= plan.quota:
                break
            page = self._attempt(f"product page {product_id}", self.builder.product_page, product_id)
            if page:
                generated.append(PlannedPage(PageType.PRODUCT, page.page_path))
                used += 1

        if used < plan.quota:
            if plan.comparison_pair is None:
                LOGGER.info(
                    "Fewer than 2 products in %s; no comparison page this run", plan.categories[0]
                )
            else:
                first_id, second_id = plan.comparison_pair
                page = self._attempt(
                    f"comparison page {first_id} vs {second_id}",
                    self.builder.comparison_page,
                    first_id,
                    second_id,
                )
                if page:
                    generated.append(PlannedPage(PageType.COMPARISON, page.page_path))
                    used += 1

        LOGGER.info(
            "Generated %s pages (%s category + %s product/comparison)",
            len(generated),
            len(generated) - used,
            used,
        )
        return generated
