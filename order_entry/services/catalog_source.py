"""
Catalog Sources
===============

One async interface over the catalog, with three implementations:

- LocalCatalogSource: decodes, builds and indexes catalogs in process
- RemoteCatalogSource: talks to the order-entry server over HTTP
- HybridCatalogSource: uses the remote source until it first becomes
  unreachable, then switches to the local one for good

Callers see the same contracts whichever source is active. Only the remote
source adds a failure mode (CatalogUnavailableError), and the hybrid source
absorbs it.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from order_entry.config.settings import Settings
from order_entry.ingest.catalog_builder import CatalogBuilder
from order_entry.ingest.column_resolver import COLUMN_PROFILES
from order_entry.ingest.spreadsheet import XLSX_MEDIA_TYPE, file_extension, read_rows
from order_entry.schemas.domain import CatalogStatus, Product
from order_entry.schemas.responses import (
    ProductListResponse,
    ProductResponse,
    StatusResponse,
    UploadResponse,
)
from order_entry.services.catalog_index import CatalogIndex
from order_entry.services.state_store import StateStore
from order_entry.utils.errors import (
    CatalogUnavailableError,
    CatalogUploadError,
    EmptyCatalogError,
    FileSizeError,
    UnsupportedFileError,
)
from order_entry.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class UploadResult:
    """Outcome of a successful catalog upload."""

    product_count: int
    filename: str


class CatalogSource(ABC):
    """
    Abstract catalog backend.

    Implementations must provide status, upload, search, exact lookup,
    listing and clearing with identical semantics.
    """

    @abstractmethod
    async def status(self) -> CatalogStatus:
        """Whether a catalog is loaded and how many products it has."""

    @abstractmethod
    async def upload(self, filename: str, content: bytes) -> UploadResult:
        """
        Replace the catalog with the contents of a spreadsheet file.

        Raises:
            UnsupportedFileError, FileSizeError, EmptyCatalogError,
            SpreadsheetError: The file was rejected
        """

    @abstractmethod
    async def search(self, query: str) -> list[Product]:
        """Up to N products whose code or name contains the query."""

    @abstractmethod
    async def lookup_exact(self, code: str) -> Product | None:
        """First product whose code equals ``code``, ignoring case."""

    @abstractmethod
    async def products(self) -> list[Product]:
        """The whole catalog."""

    @abstractmethod
    async def clear(self) -> None:
        """Unload the catalog."""


# =============================================================================
# In-process
# =============================================================================


class LocalCatalogSource(CatalogSource):
    """Catalog decoded, built and searched in this process."""

    def __init__(
        self,
        index: CatalogIndex | None = None,
        builder: CatalogBuilder | None = None,
        store: StateStore | None = None,
        max_file_size_bytes: int = 10 * 1024 * 1024,
        allowed_extensions: list[str] | None = None,
    ) -> None:
        """
        Args:
            index: Index to serve from (a fresh one by default)
            builder: Catalog builder (extended column table by default)
            store: Where to persist uploaded catalogs; None disables saving
            max_file_size_bytes: Upload size limit
            allowed_extensions: Accepted extensions, with the dot
        """
        self._index = index or CatalogIndex()
        self._builder = builder or CatalogBuilder()
        self._store = store
        self._max_file_size_bytes = max_file_size_bytes
        self._allowed_extensions = [
            ext.lower() for ext in (allowed_extensions or [".xlsx", ".xls", ".csv"])
        ]

    @property
    def index(self) -> CatalogIndex:
        return self._index

    def restore(self) -> int:
        """Load the saved catalog, if any, into the index."""
        if self._store is None:
            return 0
        products = self._store.load_catalog()
        if not products:
            return 0
        return self._index.replace(products)

    async def status(self) -> CatalogStatus:
        return self._index.status()

    async def upload(self, filename: str, content: bytes) -> UploadResult:
        extension = file_extension(filename)
        if extension not in self._allowed_extensions:
            raise UnsupportedFileError(
                message=f"Only {', '.join(self._allowed_extensions)} files are accepted",
                details={"filename": filename},
            )
        if len(content) > self._max_file_size_bytes:
            raise FileSizeError(
                message="File is too large",
                details={
                    "filename": filename,
                    "size_bytes": len(content),
                    "max_bytes": self._max_file_size_bytes,
                },
            )

        rows = await asyncio.to_thread(read_rows, content, filename)
        if not rows:
            raise EmptyCatalogError(
                message="The spreadsheet is empty",
                details={"filename": filename},
            )

        products = self._builder.build(rows)
        count = self._index.replace(products, filename=filename)
        if self._store is not None:
            self._store.save_catalog(products)
        return UploadResult(product_count=count, filename=filename)

    async def search(self, query: str) -> list[Product]:
        return self._index.search(query)

    async def lookup_exact(self, code: str) -> Product | None:
        return self._index.lookup_exact(code)

    async def products(self) -> list[Product]:
        return self._index.products()

    async def clear(self) -> None:
        self._index.clear()
        if self._store is not None:
            self._store.clear_catalog()


# =============================================================================
# Remote
# =============================================================================


class RemoteCatalogSource(CatalogSource):
    """
    Catalog served by an order-entry server.

    Connection errors are retried with exponential backoff; any transport
    failure that survives the retries becomes CatalogUnavailableError.

    Usage:
        async with RemoteCatalogSource("http://localhost:3000") as source:
            products = await source.search("tornillo")
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        max_retries: int = 3,
        retry_wait: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Server URL, without the /api suffix
            timeout: Read timeout in seconds
            max_retries: Attempts for connection errors
            retry_wait: Backoff multiplier in seconds
            transport: Custom httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(connect=5.0, read=timeout, write=timeout, pool=5.0)
        self.max_retries = max_retries
        self._retry_wait = retry_wait
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._log = logger.bind(service="catalog-server", base_url=self.base_url)

    async def __aenter__(self) -> "RemoteCatalogSource":
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"User-Agent": "order-entry/1.0"},
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = self._get_client()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential(multiplier=self._retry_wait, max=5),
                retry=retry_if_exception_type((httpx.ConnectError, httpx.ConnectTimeout)),
                reraise=True,
            ):
                with attempt:
                    response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            self._log.error("catalog_request_failed", method=method, path=path, error=str(e))
            raise CatalogUnavailableError(
                message="Catalog server unreachable",
                details={"path": path, "error": str(e)},
            ) from e

        if response.status_code >= 500:
            self._log.error(
                "catalog_server_error",
                method=method,
                path=path,
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise CatalogUnavailableError(
                message="Catalog server error",
                details={"path": path, "status_code": response.status_code},
            )
        return response

    def _parse(self, response: httpx.Response, model: type[Any]) -> Any:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            self._log.error("catalog_response_invalid", status_code=response.status_code, error=str(e))
            raise CatalogUnavailableError(
                message="Unexpected response from catalog server",
                details={"status_code": response.status_code},
            ) from e

    async def status(self) -> CatalogStatus:
        response = await self._request("GET", "/api/status")
        return self._parse(response, StatusResponse).catalog

    async def upload(self, filename: str, content: bytes) -> UploadResult:
        self._log.info("catalog_upload_started", filename=filename, size_bytes=len(content))
        response = await self._request(
            "POST",
            "/api/catalog/upload",
            files={"catalog": (filename, content, XLSX_MEDIA_TYPE)},
        )

        if response.status_code != 200:
            try:
                body = response.json()
            except ValueError:
                body = {}
            raise CatalogUploadError(
                message=body.get("error") or "Catalog upload rejected",
                details={"status_code": response.status_code, **(body.get("details") or {})},
            )

        result = self._parse(response, UploadResponse)
        self._log.info("catalog_upload_completed", products=result.product_count)
        return UploadResult(product_count=result.product_count, filename=result.filename)

    async def search(self, query: str) -> list[Product]:
        if not (query or "").strip():
            return []
        response = await self._request("GET", "/api/catalog/search", params={"q": query})
        return self._parse(response, ProductListResponse).products

    async def lookup_exact(self, code: str) -> Product | None:
        wanted = (code or "").strip()
        if not wanted:
            return None
        response = await self._request("GET", f"/api/catalog/sku/{quote(wanted, safe='')}")
        if response.status_code == 404:
            return None
        return self._parse(response, ProductResponse).product

    async def products(self) -> list[Product]:
        response = await self._request("GET", "/api/catalog/products")
        return self._parse(response, ProductListResponse).products

    async def clear(self) -> None:
        await self._request("DELETE", "/api/catalog")


# =============================================================================
# Remote with local fallback
# =============================================================================


class HybridCatalogSource(CatalogSource):
    """
    Prefer the remote catalog; on the first CatalogUnavailableError switch
    to the local source permanently and replay the failed call there.
    """

    def __init__(self, remote: RemoteCatalogSource, local: LocalCatalogSource) -> None:
        self._remote = remote
        self._local = local
        self._active: CatalogSource = remote

    @property
    def using_remote(self) -> bool:
        return self._active is self._remote

    @property
    def local(self) -> LocalCatalogSource:
        return self._local

    async def detect(self) -> CatalogStatus:
        """Probe the remote status once; fall back if it is unreachable."""
        return await self.status()

    def _fall_back(self, error: CatalogUnavailableError) -> None:
        if self._active is self._local:
            return
        self._active = self._local
        logger.warning(
            "Remote catalog unavailable, switching to local catalog",
            error=error.message,
            details=error.details,
        )

    async def _call(self, operation: str, *args: Any) -> Any:
        if self._active is self._remote:
            try:
                return await getattr(self._remote, operation)(*args)
            except CatalogUnavailableError as e:
                self._fall_back(e)
        return await getattr(self._local, operation)(*args)

    async def status(self) -> CatalogStatus:
        return await self._call("status")

    async def upload(self, filename: str, content: bytes) -> UploadResult:
        return await self._call("upload", filename, content)

    async def search(self, query: str) -> list[Product]:
        return await self._call("search", query)

    async def lookup_exact(self, code: str) -> Product | None:
        return await self._call("lookup_exact", code)

    async def products(self) -> list[Product]:
        return await self._call("products")

    async def clear(self) -> None:
        await self._call("clear")

    async def aclose(self) -> None:
        await self._remote.aclose()


def build_local_source(settings: Settings, store: StateStore | None = None) -> LocalCatalogSource:
    """Local source configured from settings."""
    return LocalCatalogSource(
        index=CatalogIndex(search_limit=settings.search_limit),
        builder=CatalogBuilder(COLUMN_PROFILES[settings.catalog_profile]),
        store=store,
        max_file_size_bytes=settings.max_file_size_bytes,
        allowed_extensions=settings.allowed_extensions,
    )


def build_catalog_source(settings: Settings, store: StateStore | None = None) -> CatalogSource:
    """
    Pick the catalog source for this process.

    A configured ``remote_catalog_url`` gives a hybrid source that falls
    back to a local one; otherwise the catalog is purely local.
    """
    local = build_local_source(settings, store)
    if not settings.remote_catalog_url:
        return local

    remote = RemoteCatalogSource(
        settings.remote_catalog_url,
        timeout=settings.remote_timeout,
        max_retries=settings.remote_max_retries,
    )
    return HybridCatalogSource(remote, local)
