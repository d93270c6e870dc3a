"""
Services Package
================

Catalog index, order book, export projection, catalog sources,
persisted state and the order desk that wires them together.
"""

from order_entry.services.catalog_index import CatalogIndex, CatalogSnapshot
from order_entry.services.catalog_source import (
    CatalogSource,
    HybridCatalogSource,
    LocalCatalogSource,
    RemoteCatalogSource,
    UploadResult,
    build_catalog_source,
    build_local_source,
)
from order_entry.services.export_projector import EXPORT_COLUMNS, EXPORT_HEADERS, project
from order_entry.services.order_book import OrderBook, OrderBookEvent
from order_entry.services.order_desk import ExportFile, OrderDesk
from order_entry.services.state_store import StateStore

__all__ = [
    "CatalogIndex",
    "CatalogSnapshot",
    "CatalogSource",
    "LocalCatalogSource",
    "RemoteCatalogSource",
    "HybridCatalogSource",
    "UploadResult",
    "build_catalog_source",
    "build_local_source",
    "EXPORT_COLUMNS",
    "EXPORT_HEADERS",
    "project",
    "OrderBook",
    "OrderBookEvent",
    "OrderDesk",
    "ExportFile",
    "StateStore",
]
