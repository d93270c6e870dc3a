"""
Schemas Package
===============

Pydantic models for domain objects, API requests and responses.
"""

from order_entry.schemas.domain import (
    MODALITY_OPTIONS,
    PRICE_FIELDS,
    CatalogStatus,
    LineData,
    OrderLine,
    OrderSnapshot,
    Product,
    dump_products,
    load_products,
)
from order_entry.schemas.requests import ExportRequest
from order_entry.schemas.responses import (
    ErrorResponse,
    MessageResponse,
    ProductListResponse,
    ProductResponse,
    StatusResponse,
    UploadResponse,
)

__all__ = [
    # Domain models
    "Product",
    "LineData",
    "OrderLine",
    "OrderSnapshot",
    "CatalogStatus",
    "PRICE_FIELDS",
    "MODALITY_OPTIONS",
    "dump_products",
    "load_products",
    # Request models
    "ExportRequest",
    # Response models
    "ErrorResponse",
    "MessageResponse",
    "ProductListResponse",
    "ProductResponse",
    "StatusResponse",
    "UploadResponse",
]
