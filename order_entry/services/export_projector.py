"""
Export Projector
================

Flattens order lines into spreadsheet-ready records with a fixed column
order. Pure: no I/O, no state. The spreadsheet encoder and the download
transport live elsewhere.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Final

from order_entry.schemas.domain import LineData


@dataclass(frozen=True)
class ExportColumn:
    """One output column: header text, source attribute and display width."""

    header: str
    attribute: str
    width: int = 15


EXPORT_COLUMNS: Final[tuple[ExportColumn, ...]] = (
    ExportColumn("SKU / CÓDIGO", "code", 15),
    ExportColumn("PRODUCTO", "name", 35),
    ExportColumn("CANTIDAD", "quantity", 10),
    ExportColumn("MODALIDAD", "modality", 12),
    ExportColumn("OBSERVACIÓN", "observation", 20),
    ExportColumn("AGENTE", "agent", 15),
    ExportColumn("LOCALIDAD", "location", 15),
    ExportColumn("PDV", "point_of_sale", 20),
    ExportColumn("COSTO C/IVA UNIDAD", "cost_unit"),
    ExportColumn("COSTO C/IVA BULTO", "cost_bulk"),
    ExportColumn("DIST. c/IVA UNIDAD", "distributor_unit"),
    ExportColumn("DIST. c/IVA BULTO", "distributor_bulk"),
    ExportColumn("PDV c/IVA UNIDAD", "pos_unit"),
    ExportColumn("PDV c/IVA BULTO", "pos_bulk"),
    ExportColumn("PVP Sugerido BULTO", "retail_bulk"),
    ExportColumn("PVP Sugerido UNIDAD", "retail_unit"),
    ExportColumn("SUBTOTAL", "subtotal", 12),
)

EXPORT_HEADERS: Final[tuple[str, ...]] = tuple(column.header for column in EXPORT_COLUMNS)

COLUMN_WIDTHS: Final[dict[str, int]] = {column.header: column.width for column in EXPORT_COLUMNS}


def project(lines: Iterable[LineData]) -> list[dict[str, Any]]:
    """
    Map order lines to flat export records.

    Callers are expected to pass ``OrderBook.valid_lines()``; lines
    without a code or name are skipped here as well, so the result has one
    record per valid line. An empty result means there is nothing to export.

    Args:
        lines: Order lines

    Returns:
        Records keyed by EXPORT_HEADERS, in that order
    """
    return [
        {column.header: getattr(line, column.attribute) for column in EXPORT_COLUMNS}
        for line in lines
        if line.is_valid
    ]
