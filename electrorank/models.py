"""Data models used by the ElectroRank pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping

from .utils import parse_number, timestamp


class PageType:
    """Kinds of generated pages; values double as log and sitemap keys."""

    CATEGORY = "category"
    PRODUCT = "product"
    COMPARISON = "comparison"

    ALL = (CATEGORY, PRODUCT, COMPARISON)


# Feeds may use camelCase keys or the snake_case field names.
_FEED_ALIASES: Dict[str, tuple[str, ...]] = {
    "product_id": ("productId", "product_id", "id", "asin"),
    "name": ("name", "title"),
    "review_count": ("reviewCount", "review_count", "rating_count"),
    "image_url": ("imageUrl", "image_url", "image"),
    "affiliate_url": ("affiliateUrl", "affiliate_url", "url"),
}


def _pick(payload: Mapping[str, object], key: str) -> object:
    for alias in _FEED_ALIASES.get(key, (key,)):
        if alias in payload and payload[alias] not in (None, ""):
            return payload[alias]
    return None


def _clean_specifications(value: object) -> Dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    specs: Dict[str, str] = {}
    for key, raw in value.items():
        if raw in (None, ""):
            continue
        specs[str(key)] = str(raw)
    return specs


@dataclass
class Product:
    """A single ranked catalog item keyed by ``product_id``."""

    product_id: str
    name: str
    category: str
    price: float = 0.0
    rating: float = 0.0
    review_count: int = 0
    score: float = 0.0
    brand: str = ""
    specifications: Dict[str, str] = field(default_factory=dict)
    image_url: str = ""
    affiliate_url: str = ""
    created_at: str = field(default_factory=timestamp)
    last_updated: str = field(default_factory=timestamp)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "rating": self.rating,
            "review_count": self.review_count,
            "score": self.score,
            "brand": self.brand,
            "specifications": dict(self.specifications),
            "image_url": self.image_url,
            "affiliate_url": self.affiliate_url,
            "created_at": self.created_at,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "Product":
        return cls(
            product_id=str(payload["product_id"]),
            name=str(payload.get("name") or ""),
            category=str(payload.get("category") or ""),
            price=parse_number(payload.get("price")) or 0.0,
            rating=parse_number(payload.get("rating")) or 0.0,
            review_count=int(parse_number(payload.get("review_count")) or 0),
            score=parse_number(payload.get("score")) or 0.0,
            brand=str(payload.get("brand") or ""),
            specifications=_clean_specifications(payload.get("specifications")),
            image_url=str(payload.get("image_url") or ""),
            affiliate_url=str(payload.get("affiliate_url") or ""),
            created_at=str(payload.get("created_at") or timestamp()),
            last_updated=str(payload.get("last_updated") or timestamp()),
        )

    @classmethod
    def from_feed(cls, payload: Mapping[str, object]) -> "Product":
        """Build a product from a raw feed record.

        Missing rating, review count or price become ``0``; a record without an
        id, name or category is rejected with ``ValueError`` and a record that
        is not a mapping with ``TypeError``.
        """

        if not isinstance(payload, Mapping):
            raise TypeError(f"feed record must be a mapping, got {type(payload).__name__}")
        product_id = _pick(payload, "product_id")
        name = _pick(payload, "name")
        category = payload.get("category")
        if not product_id or not name or not category:
            raise ValueError("feed record needs productId, name and category")
        return cls(
            product_id=str(product_id).strip(),
            name=str(name).strip(),
            category=str(category).strip().lower(),
            price=parse_number(payload.get("price")) or 0.0,
            rating=parse_number(payload.get("rating")) or 0.0,
            review_count=int(parse_number(_pick(payload, "review_count")) or 0),
            brand=str(payload.get("brand") or ""),
            specifications=_clean_specifications(payload.get("specifications")),
            image_url=str(_pick(payload, "image_url") or ""),
            affiliate_url=str(_pick(payload, "affiliate_url") or ""),
        )

    def overwrite_from(self, incoming: "Product") -> None:
        """Take every mutable field from ``incoming`` and refresh ``last_updated``."""

        self.name = incoming.name
        self.category = incoming.category
        self.price = incoming.price
        self.rating = incoming.rating
        self.review_count = incoming.review_count
        self.score = incoming.score
        self.brand = incoming.brand
        self.specifications = dict(incoming.specifications)
        self.image_url = incoming.image_url
        self.affiliate_url = incoming.affiliate_url
        self.touch()

    def touch(self) -> None:
        self.last_updated = timestamp()


@dataclass
class GeneratedPage:
    """One entry of the append-only page generation log."""

    page_type: str
    page_path: str
    title: str
    generated_at: str = field(default_factory=timestamp)
    sequence: int = 0

    def to_dict(self) -> dict:
        return {
            "page_type": self.page_type,
            "page_path": self.page_path,
            "title": self.title,
            "generated_at": self.generated_at,
            "sequence": self.sequence,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "GeneratedPage":
        return cls(
            page_type=str(payload["page_type"]),
            page_path=str(payload["page_path"]),
            title=str(payload.get("title") or ""),
            generated_at=str(payload.get("generated_at") or ""),
            sequence=int(payload.get("sequence") or 0),
        )


@dataclass(frozen=True)
class PlannedPage:
    """A page the planner generated during a run."""

    type: str
    path: str

    def to_dict(self) -> dict:
        return {"type": self.type, "path": self.path}
