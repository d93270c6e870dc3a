"""
FastAPI Application
===================

Catalog server for remote order-entry clients.

Every failure, including malformed requests, is answered with the
``{"ok": false, "error": ..., "details": ...}`` body.
"""

import time
from contextlib import asynccontextmanager
from typing import Annotated, Any, AsyncGenerator
from uuid import uuid4

import structlog
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from order_entry import __version__
from order_entry.api.dependencies import get_catalog_source
from order_entry.api.routes import catalog_router, order_router
from order_entry.config.settings import get_settings
from order_entry.schemas.responses import ErrorResponse
from order_entry.services.catalog_source import CatalogSource
from order_entry.utils.errors import OrderEntryError
from order_entry.utils.logger import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Polled by load balancers; not worth a log line each.
_QUIET_PATHS = frozenset({"/health"})


def _error(status_code: int, error: str, details: dict | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details or {})
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Restore the saved catalog before the first request is served."""
    settings = get_settings()
    catalog = await get_catalog_source().status()
    logger.info(
        "Catalog server started",
        version=__version__,
        port=settings.port,
        catalog_loaded=catalog.loaded,
        products=catalog.product_count,
    )
    yield
    logger.info("Catalog server stopped")


async def request_context(request: Request, call_next: Any) -> Any:
    """
    Bind a request id to every log event emitted while handling the request.

    An incoming X-Request-ID is reused so a remote client's retries can be
    correlated with the server log. The id and the elapsed seconds are
    echoed back as X-Request-ID and X-Process-Time.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
    started = time.perf_counter()

    with structlog.contextvars.bound_contextvars(request_id=request_id):
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        if request.url.path not in _QUIET_PATHS:
            logger.info(
                "Request handled",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(elapsed * 1000, 2),
            )

    response.headers[REQUEST_ID_HEADER] = request_id
    response.headers["X-Process-Time"] = f"{elapsed:.4f}"
    return response


async def order_entry_error_handler(request: Request, exc: OrderEntryError) -> JSONResponse:
    logger.warning(
        "Request rejected",
        error_type=type(exc).__name__,
        error=exc.message,
        details=exc.details,
        path=request.url.path,
    )
    return _error(status.HTTP_400_BAD_REQUEST, exc.message, exc.details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
    logger.warning("Invalid request body", fields=fields, path=request.url.path)
    return _error(status.HTTP_400_BAD_REQUEST, "Invalid request", {"fields": fields})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", error_type=type(exc).__name__, path=request.url.path)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred")


def create_app() -> FastAPI:
    """Build the catalog server with its middleware, error handlers and routes."""
    settings = get_settings()
    docs = settings.is_development

    app = FastAPI(
        title="Order Entry API",
        description=(
            "Product catalog server for order entry. Accepts spreadsheet catalogs, "
            "answers search and code lookups, and exports orders as workbooks."
        ),
        version=__version__,
        docs_url="/docs" if docs else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=lifespan,
    )

    # Remote clients may be served from another origin during development.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if docs else [],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.middleware("http")(request_context)

    app.add_exception_handler(OrderEntryError, order_entry_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/health", tags=["Health"], summary="Liveness and catalog state")
    async def health(
        source: Annotated[CatalogSource, Depends(get_catalog_source)],
    ) -> dict[str, Any]:
        catalog = await source.status()
        return {
            "status": "healthy",
            "version": __version__,
            "checks": {
                "catalog": {
                    "loaded": catalog.loaded,
                    "product_count": catalog.product_count,
                },
            },
        }

    @app.get("/", tags=["Info"], include_in_schema=False)
    async def root() -> dict[str, str]:
        return {"service": "order-entry", "version": __version__}

    app.include_router(catalog_router, prefix="/api", tags=["Catalog"])
    app.include_router(order_router, prefix="/api", tags=["Order"])

    return app


app = create_app()
