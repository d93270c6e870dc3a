"""
Column Resolver
===============

Maps raw spreadsheet headers to the logical catalog fields.

Catalog spreadsheets in the wild name their columns inconsistently
("SKU", "Código", "SKU / CODIGO" ...), so every logical field carries a
priority-ordered list of candidate header names and the first header that
matches wins. Matching is case-insensitive and substring based:

    Pass 1: for each candidate, the first header equal to it or containing it
    Pass 2: for each candidate, the first header containing its first word

Two candidates can match the same header; the outcome is deterministic
(candidate order, then header order) but not guaranteed to be right.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Final

from order_entry.utils.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# Candidate Header Tables
# =============================================================================

CODE_CANDIDATES: Final[tuple[str, ...]] = (
    "SKU",
    "CODIGO",
    "SKU / CODIGO",
    "SKU/CODIGO",
    "COD",
    "CÓDIGO",
)

NAME_CANDIDATES: Final[tuple[str, ...]] = (
    "PRODUCTO",
    "DESCRIPCION",
    "DESCRIPCIÓN",
    "NOMBRE",
    "ARTICULO",
)

# Ten logical fields, keyed by Product attribute
EXTENDED_COLUMNS: Final[dict[str, tuple[str, ...]]] = {
    "code": CODE_CANDIDATES,
    "name": NAME_CANDIDATES,
    "cost_unit": ("COSTO C/IVA UNIDAD", "COSTO IVA UNIDAD", "COSTO UNIDAD"),
    "cost_bulk": ("COSTO C/IVA BULTO", "COSTO IVA BULTO", "COSTO BULTO"),
    "distributor_unit": (
        "DISTRIBUIDOR c/IVA UNIDAD",
        "DIST c/IVA UNIDAD",
        "DISTRIBUIDOR UNIDAD",
    ),
    "distributor_bulk": (
        "DISTRIBUIDOR c/IVA BULTO",
        "DIST c/IVA BULTO",
        "DISTRIBUIDOR BULTO",
    ),
    "pos_unit": ("PDV c/IVA UNIDAD", "PDV IVA UNIDAD", "PDV UNIDAD"),
    "pos_bulk": ("PDV c/IVA BULTO", "PDV IVA BULTO", "PDV BULTO"),
    "retail_bulk": ("PVP Sugerido BULTO", "PVP BULTO", "PVP SUGERIDO BULTO"),
    "retail_unit": ("PVP Sugerido UNIDAD", "PVP UNIDAD", "PVP SUGERIDO UNIDAD"),
}

# Four logical fields: one distributor and one point-of-sale price
BASIC_COLUMNS: Final[dict[str, tuple[str, ...]]] = {
    "code": CODE_CANDIDATES,
    "name": NAME_CANDIDATES,
    "distributor_unit": (
        "DISTRIBUIDOR c/IVA UNIDAD",
        "DIST c/IVA",
        "PRECIO DIST",
        "DISTRIBUIDOR",
        "PRECIO DISTRIBUIDOR",
    ),
    "pos_unit": (
        "PDV c/IVA UNIDAD",
        "PDV c/IVA",
        "PRECIO PDV",
        "PDV",
        "PRECIO PVP",
        "PVP",
    ),
}

COLUMN_PROFILES: Final[dict[str, dict[str, tuple[str, ...]]]] = {
    "extended": EXTENDED_COLUMNS,
    "basic": BASIC_COLUMNS,
}


# =============================================================================
# Resolution
# =============================================================================


def resolve_column(headers: Sequence[Any], candidates: Iterable[str]) -> str | None:
    """
    Pick the raw header that maps to a logical field.

    Args:
        headers: Raw header strings, in sheet order
        candidates: Accepted header names, highest priority first

    Returns:
        The matching raw header, or None if neither pass matches

    Examples:
        >>> resolve_column(["Sku / Código", "Producto"], CODE_CANDIDATES)
        'Sku / Código'

        >>> resolve_column(["Precio PDV final"], ["PDV c/IVA UNIDAD"])
        'Precio PDV final'

        >>> resolve_column(["Stock"], NAME_CANDIDATES) is None
        True
    """
    raw_headers = [str(header) for header in headers]
    normalized = [header.strip().upper() for header in raw_headers]
    candidate_list = list(candidates)

    for candidate in candidate_list:
        wanted = candidate.strip().upper()
        if not wanted:
            continue
        for raw, header in zip(raw_headers, normalized):
            if header == wanted or wanted in header:
                return raw

    for candidate in candidate_list:
        words = candidate.split()
        if not words:
            continue
        token = words[0].upper()
        for raw in raw_headers:
            if token in raw.upper():
                return raw

    return None


def resolve_columns(
    headers: Sequence[Any],
    columns: Mapping[str, Sequence[str]],
) -> dict[str, str | None]:
    """
    Resolve every logical field of a candidate table against the headers.

    Fields resolve independently, so two fields may map to the same header.
    The code field falls back to the first header when nothing matches;
    that keeps every row from being discarded for lack of a code, at the
    price of possibly reading the wrong column.

    Args:
        headers: Raw header strings, in sheet order
        columns: Logical field name → candidate header names

    Returns:
        Logical field name → raw header (None when unresolved)
    """
    resolved = {field: resolve_column(headers, candidates) for field, candidates in columns.items()}

    if "code" in resolved and resolved["code"] is None and headers:
        resolved["code"] = str(headers[0])
        logger.warning(
            "Code column not found, falling back to first header",
            header=resolved["code"],
        )

    logger.info("Columns resolved", columns=resolved)
    return resolved
