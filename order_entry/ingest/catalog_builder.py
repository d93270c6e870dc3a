"""
Catalog Builder
===============

Turns decoded spreadsheet rows into canonical Product records.

Rows are string-keyed records as produced by the spreadsheet decoder; the
keys of the first row define the header set. Each logical field is read
from the header picked by the column resolver, prices go through the
price parser, and rows whose code ends up empty are dropped.
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from order_entry.ingest.column_resolver import EXTENDED_COLUMNS, resolve_columns
from order_entry.schemas.domain import PRICE_FIELDS, Product, to_text
from order_entry.utils.logger import get_logger
from order_entry.utils.price_parser import ZERO, parse_price

logger = get_logger(__name__)


class CatalogBuilder:
    """
    Build Product lists from raw rows using a candidate header table.

    Example:
        >>> builder = CatalogBuilder()
        >>> products = builder.build([{"SKU": "A1", "PRODUCTO": "Widget", "PDV c/IVA UNIDAD": "100,50"}])
        >>> products[0].pos_unit
        Decimal('100.50')
    """

    def __init__(self, columns: Mapping[str, Sequence[str]] | None = None) -> None:
        """
        Args:
            columns: Logical field → candidate headers; defaults to the
                     extended ten-field table
        """
        self._columns = dict(columns or EXTENDED_COLUMNS)

    @property
    def columns(self) -> dict[str, Sequence[str]]:
        return dict(self._columns)

    def build(self, rows: Sequence[Mapping[str, Any]]) -> list[Product]:
        """
        Build the catalog, preserving row order.

        Args:
            rows: Decoded spreadsheet rows

        Returns:
            Products for every row with a non-empty code (empty list for no rows)
        """
        if not rows:
            return []

        headers = list(rows[0].keys())
        resolved = resolve_columns(headers, self._columns)

        products: list[Product] = []
        discarded = 0
        for row in rows:
            code = _read_text(row, resolved.get("code"))
            if not code:
                discarded += 1
                continue

            prices = {
                field: _read_price(row, resolved.get(field)) for field in PRICE_FIELDS
            }
            products.append(
                Product(code=code, name=_read_text(row, resolved.get("name")), **prices)
            )

        logger.info(
            "Catalog built",
            rows=len(rows),
            products=len(products),
            discarded=discarded,
        )
        return products


def _read_text(row: Mapping[str, Any], header: str | None) -> str:
    if header is None:
        return ""
    return to_text(row.get(header)).strip()


def _read_price(row: Mapping[str, Any], header: str | None) -> Decimal:
    if header is None:
        return ZERO
    return parse_price(row.get(header))
