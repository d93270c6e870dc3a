"""
Catalog Routes
==============

Endpoints:
- GET /api/status - Catalog status
- POST /api/catalog/upload - Replace the catalog with a spreadsheet
- GET /api/catalog/products - Whole catalog
- GET /api/catalog/search?q= - Substring search on code or name
- GET /api/catalog/sku/{sku} - Exact code lookup (404 when missing)
- DELETE /api/catalog - Unload the catalog
"""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import JSONResponse

from order_entry.api.dependencies import get_catalog_source
from order_entry.schemas.responses import (
    ErrorResponse,
    MessageResponse,
    ProductListResponse,
    ProductResponse,
    StatusResponse,
    UploadResponse,
)
from order_entry.services.catalog_source import CatalogSource
from order_entry.utils.errors import CatalogUploadError
from order_entry.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

CatalogDep = Annotated[CatalogSource, Depends(get_catalog_source)]


@router.get(
    "/status",
    response_model=StatusResponse,
    summary="Catalog status",
)
async def catalog_status(source: CatalogDep) -> StatusResponse:
    """Whether a catalog is loaded, with its size and origin."""
    return StatusResponse(catalog=await source.status())


@router.post(
    "/catalog/upload",
    response_model=UploadResponse,
    summary="Upload catalog",
    description=(
        "Replace the catalog with the first sheet of an .xlsx, .xls or .csv file "
        "sent as the multipart field 'catalog'. Columns are matched by header name; "
        "rows without a code are discarded."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "File rejected"},
    },
)
async def upload_catalog(
    source: CatalogDep,
    catalog: Annotated[UploadFile | None, File(description="Catalog spreadsheet")] = None,
) -> UploadResponse:
    """
    Load a new catalog.

    A rejected file leaves the previous catalog in place.
    """
    if catalog is None or not catalog.filename:
        raise CatalogUploadError(message="No file uploaded")

    content = await catalog.read()
    logger.info("Catalog upload received", filename=catalog.filename, size_bytes=len(content))

    result = await source.upload(catalog.filename, content)
    return UploadResponse(product_count=result.product_count, filename=result.filename)


@router.get(
    "/catalog/products",
    response_model=ProductListResponse,
    summary="List catalog",
)
async def list_products(source: CatalogDep) -> ProductListResponse:
    return ProductListResponse(products=await source.products())


@router.get(
    "/catalog/search",
    response_model=ProductListResponse,
    summary="Search catalog",
)
async def search_products(
    source: CatalogDep,
    q: Annotated[str, Query(description="Text contained in the code or name")] = "",
) -> ProductListResponse:
    return ProductListResponse(products=await source.search(q))


@router.get(
    "/catalog/sku/{sku:path}",
    response_model=ProductResponse,
    summary="Look up product by code",
    responses={
        404: {"model": ErrorResponse, "description": "No product with that code"},
    },
)
async def get_product(sku: str, source: CatalogDep) -> ProductResponse | JSONResponse:
    product = await source.lookup_exact(sku)
    if product is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=ErrorResponse(error="Product not found", details={"sku": sku}).model_dump(),
        )
    return ProductResponse(product=product)


@router.delete(
    "/catalog",
    response_model=MessageResponse,
    summary="Clear catalog",
)
async def clear_catalog(source: CatalogDep) -> MessageResponse:
    await source.clear()
    return MessageResponse(message="Catalog cleared")
