"""Unit tests for the OrderDesk calling layer.

Tests for:
- Catalog loading, suggestions and code selection
- Saving and restoring the order
- Export of valid lines
- Degraded behaviour when the catalog is unreachable
"""
import io
from datetime import date
from decimal import Decimal

import httpx
import openpyxl

from order_entry.services.catalog_source import (
    HybridCatalogSource,
    LocalCatalogSource,
    RemoteCatalogSource,
)
from order_entry.services.export_projector import EXPORT_HEADERS
from order_entry.services.order_desk import OrderDesk
from order_entry.services.state_store import StateStore


def unreachable() -> RemoteCatalogSource:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    return RemoteCatalogSource(
        "http://catalog.test",
        max_retries=1,
        retry_wait=0,
        transport=httpx.MockTransport(handler),
    )


class TestCatalogFlow:
    """Tests for load, suggest and select."""

    async def test_load_and_suggest(self, local_source, settings, catalog_xlsx):
        """Test suggestions come from the loaded catalog."""
        desk = OrderDesk(local_source, settings=settings)

        result = await desk.load_catalog("catalogo.xlsx", catalog_xlsx)
        suggestions = await desk.suggest("torn")

        assert result.product_count == 2
        assert [p.code for p in suggestions] == ["B-200"]

    async def test_select_code(self, local_source, settings, catalog_xlsx):
        """Test a typed code fills the line with the product."""
        desk = OrderDesk(local_source, settings=settings)
        await desk.load_catalog("catalogo.xlsx", catalog_xlsx)
        line_id = desk.book.lines()[0].id

        product = await desk.select_code(line_id, "a1")
        desk.book.update_field(line_id, "quantity", 3)

        assert product.code == "A1"
        assert desk.book.get(line_id).name == "Widget"
        assert desk.book.total() == Decimal("301.50")

    async def test_select_unknown_code(self, local_source, settings):
        """Test an unknown code leaves the line as it was."""
        desk = OrderDesk(local_source, settings=settings)
        line_id = desk.book.lines()[0].id

        assert await desk.select_code(line_id, "NOPE") is None
        assert desk.book.get(line_id).code == ""

    async def test_select_product(self, local_source, settings, widget):
        """Test picking a suggestion copies it onto the line."""
        desk = OrderDesk(local_source, settings=settings)
        line_id = desk.book.add_line()

        assert desk.select_product(line_id, widget) is True
        assert desk.book.get(line_id).pos_unit == Decimal("100.50")

    async def test_unreachable_remote_is_not_an_error(self, settings):
        """Test a dead remote catalog yields no suggestions instead of raising."""
        desk = OrderDesk(unreachable(), settings=settings)

        assert await desk.suggest("a1") == []
        assert await desk.select_code(desk.book.lines()[0].id, "A1") is None

    async def test_hybrid_degrades_to_local(self, local_source, settings, catalog_xlsx):
        """Test a hybrid source keeps serving from the local catalog."""
        await local_source.upload("catalogo.xlsx", catalog_xlsx)
        desk = OrderDesk(HybridCatalogSource(unreachable(), local_source), settings=settings)

        assert [p.code for p in await desk.suggest("widget")] == ["A1"]


class TestPersistence:
    """Tests for saving the order on every change."""

    async def test_changes_are_saved_and_restored(self, local_source, state_store, settings, widget):
        """Test a new desk picks up where the last one stopped."""
        desk = OrderDesk(local_source, store=state_store, settings=settings)
        line_id = desk.book.lines()[0].id
        desk.select_product(line_id, widget)
        desk.book.update_field(line_id, "quantity", 2)
        second = desk.book.add_line()
        desk.book.delete_line(second)

        reopened = OrderDesk(LocalCatalogSource(), store=state_store, settings=settings)

        assert reopened.book.lines() == desk.book.lines()
        assert reopened.book.total() == Decimal("201.00")
        assert reopened.book.add_line() == second + 1

    async def test_close_stops_saving(self, local_source, state_store, settings):
        """Test nothing is saved after close."""
        desk = OrderDesk(local_source, store=state_store, settings=settings)
        desk.book.add_line({"code": "SAVED"})
        desk.close()
        desk.book.add_line({"code": "NOT SAVED"})

        codes = [line.code for line in state_store.load_order().lines]

        assert codes == ["", "SAVED"]

    def test_from_settings_restores_catalog(self, settings, products):
        """Test a desk built from settings loads the saved catalog."""
        StateStore(settings.state_dir, prefix=settings.state_key_prefix).save_catalog(products)

        desk = OrderDesk.from_settings(settings)

        assert isinstance(desk.source, LocalCatalogSource)
        assert desk.source.index.count == len(products)


class TestExport:
    """Tests for OrderDesk.export."""

    def test_nothing_to_export(self, local_source, settings):
        """Test a book without valid lines exports nothing."""
        desk = OrderDesk(local_source, settings=settings)
        desk.book.add_line({"code": "NO-NAME"})

        assert desk.export(date(2024, 3, 7)) is None

    def test_projector_not_called_without_valid_lines(self, local_source, settings, monkeypatch):
        """Test the projector is skipped when no line is valid."""
        def fail(lines):
            raise AssertionError("project() called with no valid lines")

        monkeypatch.setattr("order_entry.services.order_desk.project", fail)
        desk = OrderDesk(local_source, settings=settings)

        assert desk.export(date(2024, 3, 7)) is None

    def test_export_valid_lines(self, local_source, settings, widget):
        """Test the workbook holds one row per valid line."""
        desk = OrderDesk(local_source, settings=settings)
        line_id = desk.book.lines()[0].id
        desk.select_product(line_id, widget)
        desk.book.update_field(line_id, "quantity", 3)
        desk.book.add_line()

        export = desk.export(date(2024, 3, 7))

        assert export.filename == "Pedido_2024-03-07.xlsx"
        assert export.rows == 1
        ws = openpyxl.load_workbook(io.BytesIO(export.content)).active
        assert ws.title == "Pedido"
        assert tuple(c.value for c in ws[1]) == EXPORT_HEADERS
        row = [c.value for c in ws[2]]
        assert row[0] == "A1"
        assert row[2] == 3
        assert row[-1] == 301.5
        assert ws.max_row == 2
