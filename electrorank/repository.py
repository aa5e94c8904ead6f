"""Persistence layer for products and the page generation log, stored in JSON."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .config import DATA_DIR
from .errors import StoreError
from .models import GeneratedPage, Product
from .scoring import rank_products, score_product, top_n_products
from .utils import dump_json, load_json, timestamp

logger = logging.getLogger(__name__)


def _empty_document() -> dict:
    return {
        "last_updated": None,
        "products": [],
        "pages_generated": [],
        "next_sequence": 1,
    }


class ProductRepository:
    """Store products and generated-page history in a single JSON document.

    Every mutation rewrites the document through an atomic rename while
    holding ``_lock``, so concurrent callers are serialized and an interrupted
    run never leaves a half-written file behind.
    """

    def __init__(self, data_file: Path | None = None) -> None:
        self.data_file = data_file or DATA_DIR / "products.json"
        self._lock = threading.RLock()
        self._open = False

    # ------------------------------------------------------------------
    # Lifecycle

    def init(self) -> None:
        with self._lock:
            try:
                if not self.data_file.exists():
                    logger.debug("Creating new data file at %s", self.data_file)
                    dump_json(self.data_file, _empty_document())
                else:
                    self._load_raw_data()
            except OSError as error:
                raise StoreError(f"Unable to open store at {self.data_file}: {error}") from error
            self._open = True
            logger.info("Product store ready at %s", self.data_file)

    def close(self) -> None:
        with self._lock:
            self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def __enter__(self) -> "ProductRepository":
        self.init()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Raw document access

    def _require_open(self) -> None:
        if not self._open:
            raise StoreError("Product store is not initialised")

    def _load_raw_data(self) -> dict:
        try:
            data = load_json(self.data_file, default=_empty_document())
        except (OSError, ValueError) as error:
            raise StoreError(f"Unable to read {self.data_file}: {error}") from error
        if not isinstance(data, dict):
            raise StoreError(f"Malformed store document at {self.data_file}")
        data.setdefault("last_updated", None)
        data.setdefault("products", [])
        data.setdefault("pages_generated", [])
        data.setdefault("next_sequence", len(data["pages_generated"]) + 1)
        return data

    def _save_raw_data(self, data: dict) -> None:
        try:
            dump_json(self.data_file, data)
        except (OSError, TypeError, ValueError) as error:
            raise StoreError(f"Unable to write {self.data_file}: {error}") from error

    def _split_products(self, data: dict) -> Tuple[List[Product], List[object]]:
        """Return parsed products and the raw rows that could not be parsed.

        Unparseable rows are carried through every rewrite untouched; the
        store never deletes a committed row.
        """

        products: List[Product] = []
        unreadable: List[object] = []
        for raw in data.get("products", []):
            try:
                if not isinstance(raw, dict):
                    raise TypeError(f"expected an object, got {type(raw).__name__}")
                products.append(Product.from_dict(raw))
            except (KeyError, TypeError, ValueError) as error:
                logger.debug("Keeping unreadable product row as-is: %s", error)
                unreadable.append(raw)
        return products, unreadable

    def _read_products(self, data: dict) -> List[Product]:
        return self._split_products(data)[0]

    def _store_products(self, data: dict, products: Iterable[Product], unreadable: List[object]) -> None:
        data["products"] = [product.to_dict() for product in products] + unreadable

    # ------------------------------------------------------------------
    # Products

    def load_products(self) -> List[Product]:
        with self._lock:
            self._require_open()
            return self._read_products(self._load_raw_data())

    def upsert(self, product: Product) -> str:
        """Insert or overwrite ``product`` by id and return its identity."""

        self.upsert_many([product])
        return product.product_id

    def upsert_many(self, products: Iterable[Product]) -> List[Product]:
        incoming = list(products)
        with self._lock:
            self._require_open()
            data = self._load_raw_data()
            parsed, unreadable = self._split_products(data)
            existing = {product.product_id: product for product in parsed}
            for product in incoming:
                stored = existing.get(product.product_id)
                if stored:
                    stored.overwrite_from(product)
                else:
                    product.touch()
                    existing[product.product_id] = product
            self._store_products(data, existing.values(), unreadable)
            data["last_updated"] = timestamp()
            self._save_raw_data(data)
            return list(existing.values())

    def recompute_all_scores(self) -> int:
        """Re-derive every stored score and return the number of rows touched."""

        with self._lock:
            self._require_open()
            data = self._load_raw_data()
            products, unreadable = self._split_products(data)
            for product in products:
                product.score = score_product(product)
            self._store_products(data, products, unreadable)
            self._save_raw_data(data)
            logger.info("Updated scores for %s products", len(products))
            return len(products)

    def top_by_score(self, limit: int = 20) -> List[Product]:
        return top_n_products(self.load_products(), limit)

    def by_category(self, category: str, limit: int = 50) -> List[Product]:
        if limit <= 0:
            return []
        matches = [product for product in self.load_products() if product.category == category]
        return rank_products(matches)[:limit]

    def by_id(self, product_id: str) -> Optional[Product]:
        for product in self.load_products():
            if product.product_id == product_id:
                return product
        return None

    def distinct_categories(self) -> List[str]:
        """Categories currently present, sorted ascending."""

        return sorted({product.category for product in self.load_products() if product.category})

    def get_last_updated(self) -> Optional[str]:
        with self._lock:
            self._require_open()
            return self._load_raw_data().get("last_updated")

    # ------------------------------------------------------------------
    # Generated page log

    def append_page_log(self, record: GeneratedPage) -> GeneratedPage:
        with self._lock:
            self._require_open()
            data = self._load_raw_data()
            record.sequence = int(data["next_sequence"])
            data["next_sequence"] = record.sequence + 1
            data["pages_generated"].append(record.to_dict())
            self._save_raw_data(data)
            return record

    def load_page_log(self) -> List[GeneratedPage]:
        with self._lock:
            self._require_open()
            data = self._load_raw_data()
        records: List[GeneratedPage] = []
        for raw in data.get("pages_generated", []):
            if not isinstance(raw, dict):
                continue
            try:
                records.append(GeneratedPage.from_dict(raw))
            except (KeyError, TypeError, ValueError) as error:
                logger.debug("Skipping invalid page log payload: %s", error)
        return records

    def recent_page_log(self, limit: int = 10) -> List[GeneratedPage]:
        """Most recent log entries first; ``sequence`` breaks timestamp ties."""

        if limit <= 0:
            return []
        records = self.load_page_log()
        records.sort(key=lambda record: (record.generated_at, record.sequence), reverse=True)
        return records[:limit]
