"""
Pydantic Response Models
========================

API response schemas for the order-entry server. Every body carries an
``ok`` flag so the remote catalog client can tell results from errors
without inspecting status codes.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from order_entry.schemas.domain import CatalogStatus, Product


class StatusResponse(BaseModel):
    """Response for GET /api/status."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "ok": True,
                "catalog": {
                    "loaded": True,
                    "product_count": 1250,
                    "loaded_at": "2024-01-15T10:30:00Z",
                    "filename": "catalogo.xlsx",
                },
            }
        }
    )

    ok: Literal[True] = True
    catalog: CatalogStatus


class UploadResponse(BaseModel):
    """
    Response for POST /api/catalog/upload.

    Attributes:
        message: Human-readable status message
        product_count: Number of products kept after discarding rows without a code
        filename: Original name of the uploaded file
    """

    ok: Literal[True] = True
    message: str = "Catalog loaded"
    product_count: Annotated[int, Field(ge=0)]
    filename: str


class ProductListResponse(BaseModel):
    """Response for catalog listing and search."""

    ok: Literal[True] = True
    products: list[Product] = Field(default_factory=list)


class ProductResponse(BaseModel):
    """Response for exact code lookup."""

    ok: Literal[True] = True
    product: Product


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    ok: Literal[True] = True
    message: str


class ErrorResponse(BaseModel):
    """Error body shared by every endpoint."""

    ok: Literal[False] = False
    error: str
    details: dict = Field(default_factory=dict)
