"""
Catalog Index
=============

In-memory product catalog with substring search and exact-code lookup.

The products, load time and filename live together in one immutable
snapshot. ``replace()`` builds a new snapshot and swaps the reference
under a lock; readers grab the reference once per call, so a search
running during a replace sees either the whole old catalog or the whole
new one, never a mix.
"""

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Final

from order_entry.schemas.domain import CatalogStatus, Product
from order_entry.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SEARCH_LIMIT: Final[int] = 15


@dataclass(frozen=True)
class CatalogSnapshot:
    """One loaded catalog, never mutated after creation."""

    products: tuple[Product, ...] = ()
    loaded_at: datetime | None = None
    filename: str | None = None
    # Upper-cased (code, name) per product, same order as products
    keys: tuple[tuple[str, str], ...] = field(default=(), repr=False)


class CatalogIndex:
    """
    Holds the current catalog and answers search and lookup queries.

    No ranking and no typo tolerance: search is a case-insensitive
    substring test on code or name, in catalog order, truncated.
    """

    def __init__(self, search_limit: int = DEFAULT_SEARCH_LIMIT) -> None:
        self._search_limit = search_limit
        self._lock = threading.Lock()
        self._snapshot = CatalogSnapshot()

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def replace(
        self,
        products: Iterable[Product],
        filename: str | None = None,
        loaded_at: datetime | None = None,
    ) -> int:
        """
        Atomically swap in a whole new catalog.

        Args:
            products: New products, in catalog order
            filename: Source file name, for status reporting
            loaded_at: Load time (defaults to now, UTC)

        Returns:
            Number of products now loaded
        """
        items = tuple(products)
        snapshot = CatalogSnapshot(
            products=items,
            loaded_at=loaded_at or datetime.now(timezone.utc),
            filename=filename,
            keys=tuple((p.code.upper(), p.name.upper()) for p in items),
        )
        with self._lock:
            self._snapshot = snapshot

        logger.info("Catalog replaced", products=len(items), filename=filename)
        return len(items)

    def clear(self) -> None:
        """Drop the loaded catalog."""
        with self._lock:
            self._snapshot = CatalogSnapshot()
        logger.info("Catalog cleared")

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def search(self, query: str, limit: int | None = None) -> list[Product]:
        """
        Find products whose code or name contains the query.

        Args:
            query: Search text, case-insensitive; surrounding blanks ignored
            limit: Max results (defaults to the index limit)

        Returns:
            Up to ``limit`` products in catalog order; [] for an empty query
        """
        needle = (query or "").strip().upper()
        if not needle:
            return []

        snapshot = self._snapshot
        max_results = limit if limit is not None else self._search_limit

        matches: list[Product] = []
        for product, (code, name) in zip(snapshot.products, snapshot.keys):
            if needle in code or needle in name:
                matches.append(product)
                if len(matches) >= max_results:
                    break
        return matches

    def lookup_exact(self, code: str) -> Product | None:
        """
        Case-insensitive exact match on the product code.

        Returns:
            The first product with that code in catalog order, or None
        """
        wanted = (code or "").strip().upper()
        if not wanted:
            return None

        snapshot = self._snapshot
        for product, (product_code, _) in zip(snapshot.products, snapshot.keys):
            if product_code == wanted:
                return product
        return None

    def products(self) -> list[Product]:
        """All products of the current catalog."""
        return list(self._snapshot.products)

    @property
    def count(self) -> int:
        return len(self._snapshot.products)

    def status(self) -> CatalogStatus:
        snapshot = self._snapshot
        return CatalogStatus(
            loaded=bool(snapshot.products),
            product_count=len(snapshot.products),
            loaded_at=snapshot.loaded_at,
            filename=snapshot.filename,
        )
