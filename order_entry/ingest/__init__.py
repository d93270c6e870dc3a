"""
Ingest Module
=============

Catalog ingestion: spreadsheet decoding, column resolution and
Product construction.
"""

from order_entry.ingest.catalog_builder import CatalogBuilder
from order_entry.ingest.column_resolver import (
    BASIC_COLUMNS,
    COLUMN_PROFILES,
    EXTENDED_COLUMNS,
    resolve_column,
    resolve_columns,
)
from order_entry.ingest.spreadsheet import export_filename, read_rows, write_xlsx

__all__ = [
    "CatalogBuilder",
    "BASIC_COLUMNS",
    "COLUMN_PROFILES",
    "EXTENDED_COLUMNS",
    "resolve_column",
    "resolve_columns",
    "read_rows",
    "write_xlsx",
    "export_filename",
]
