"""
Order Desk
==========

Calling layer for an order-entry session. Wires the order book to a
catalog source and to the state store:

- restores saved lines when it starts and saves after every book change
- turns search text into suggestions and code entry into a product selection
- exports the valid lines as an .xlsx download

Catalog outages never escape from suggest/select: they are logged and
answered with no suggestions, so the order stays editable.
"""

from dataclasses import dataclass
from datetime import date

from order_entry.config.settings import Settings, get_settings
from order_entry.ingest.spreadsheet import export_filename, write_xlsx
from order_entry.schemas.domain import Product
from order_entry.services.catalog_source import (
    CatalogSource,
    HybridCatalogSource,
    LocalCatalogSource,
    UploadResult,
    build_catalog_source,
)
from order_entry.services.export_projector import COLUMN_WIDTHS, project
from order_entry.services.order_book import OrderBook, OrderBookEvent
from order_entry.services.state_store import StateStore
from order_entry.utils.errors import CatalogUnavailableError
from order_entry.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExportFile:
    """An encoded order ready to be downloaded."""

    filename: str
    content: bytes
    rows: int


class OrderDesk:
    """
    One order-entry session.

    Usage:
        desk = OrderDesk.from_settings()
        await desk.load_catalog("catalogo.xlsx", content)
        line_id = desk.book.lines()[0].id
        await desk.select_code(line_id, "A1")
        export = desk.export(date.today())
    """

    def __init__(
        self,
        source: CatalogSource,
        book: OrderBook | None = None,
        store: StateStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._source = source
        self._store = store

        if book is None:
            snapshot = store.load_order() if store is not None else None
            book = OrderBook(snapshot)
            if snapshot is not None:
                logger.info(
                    "Order restored",
                    lines=len(book),
                    row_id_counter=book.row_id_counter,
                )
        self._book = book
        self._unsubscribe = book.subscribe(self._persist) if store is not None else None

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "OrderDesk":
        """Session with a state store and catalog source built from settings."""
        settings = settings or get_settings()
        store = StateStore(settings.state_dir, prefix=settings.state_key_prefix)
        source = build_catalog_source(settings, store)

        local = source.local if isinstance(source, HybridCatalogSource) else source
        if isinstance(local, LocalCatalogSource):
            local.restore()

        return cls(source, store=store, settings=settings)

    @property
    def book(self) -> OrderBook:
        return self._book

    @property
    def source(self) -> CatalogSource:
        return self._source

    def close(self) -> None:
        """Stop saving book changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    async def load_catalog(self, filename: str, content: bytes) -> UploadResult:
        """
        Replace the catalog with a spreadsheet file.

        Raises:
            OrderEntryError: The file was rejected; the previous catalog is kept
        """
        result = await self._source.upload(filename, content)
        logger.info("Catalog loaded", filename=result.filename, products=result.product_count)
        return result

    async def suggest(self, query: str) -> list[Product]:
        """Autocomplete suggestions for the text typed into a code or name cell."""
        try:
            return await self._source.search(query)
        except CatalogUnavailableError as e:
            logger.warning("Catalog unavailable for search", query=query, error=e.message)
            return []

    async def select_code(self, line_id: int, code: str) -> Product | None:
        """
        Resolve a typed code and copy the product onto the line.

        Returns:
            The selected product, or None if the code is unknown (the line
            is left unchanged)
        """
        try:
            product = await self._source.lookup_exact(code)
        except CatalogUnavailableError as e:
            logger.warning("Catalog unavailable for lookup", code=code, error=e.message)
            return None

        if product is None or not self._book.apply_product_selection(line_id, product):
            return None
        return product

    def select_product(self, line_id: int, product: Product) -> bool:
        """Copy a product picked from the suggestions onto the line."""
        return self._book.apply_product_selection(line_id, product)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def export(self, today: date | None = None) -> ExportFile | None:
        """
        Encode the valid lines as a workbook.

        Returns:
            The file, or None when no line has both a code and a name
        """
        valid = self._book.valid_lines()
        if not valid:
            logger.info("Nothing to export")
            return None

        records = project(valid)

        content = write_xlsx(records, self._settings.export_sheet_name, COLUMN_WIDTHS)
        filename = export_filename(self._settings.export_filename_prefix, today or date.today())
        logger.info("Order exported", filename=filename, rows=len(records))
        return ExportFile(filename=filename, content=content, rows=len(records))

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _persist(self, event: OrderBookEvent) -> None:
        if self._store is None:
            return
        if not self._store.save_order(self._book.snapshot()):
            logger.warning("Order changes not saved", kind=event.kind)
