"""Ranking score and ordering rules shared by the store and page planner."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List

from .models import Product

_TWO_PLACES = Decimal("0.01")


def calculate_score(rating: float | None, review_count: float | None, price: float | None) -> float:
    """Return ``rating*2 + reviews/1000 - price/10000`` rounded to 2 decimals.

    Missing inputs count as zero. The result is not clamped, so expensive
    items with few reviews can score below zero.
    """

    raw = (rating or 0) * 2 + (review_count or 0) / 1000 - (price or 0) / 10000
    # ROUND_HALF_UP on a Decimal rounds half away from zero.
    return float(Decimal(str(raw)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def score_product(product: Product) -> float:
    return calculate_score(product.rating, product.review_count, product.price)


def ranking_key(product: Product) -> tuple[float, str]:
    """Sort key: score descending, then ``product_id`` ascending."""

    return (-product.score, product.product_id)


def rank_products(products: Iterable[Product]) -> List[Product]:
    return sorted(products, key=ranking_key)


def top_n_products(products: Iterable[Product], n: int = 10) -> List[Product]:
    if n <= 0:
        return []
    return rank_products(products)[:n]


@dataclass(frozen=True)
class Comparison:
    """Head-to-head outcome between two products."""

    first: Product
    second: Product
    winner: Product
    score_difference: float
    price_difference: float

    @property
    def loser(self) -> Product:
        return self.second if self.winner is self.first else self.first


def pick_winner(first: Product, second: Product) -> Product:
    """Return the higher scoring product; ties go to the smaller ``product_id``."""

    if first.score > second.score:
        return first
    if second.score > first.score:
        return second
    return first if first.product_id <= second.product_id else second


def compare_products(first: Product, second: Product) -> Comparison:
    return Comparison(
        first=first,
        second=second,
        winner=pick_winner(first, second),
        score_difference=round(abs(first.score - second.score), 2),
        price_difference=round(abs(first.price - second.price), 2),
    )
