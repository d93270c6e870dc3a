"""Unit tests for the file-backed state store.

Tests for:
- Catalog and order round trips
- Key naming
- Missing and corrupt state
"""
from decimal import Decimal

from order_entry.schemas.domain import OrderLine, OrderSnapshot, Product
from order_entry.services.order_book import OrderBook
from order_entry.services.state_store import StateStore


class TestCatalogState:
    """Tests for saving and loading the catalog."""

    def test_round_trip(self, state_store, products):
        """Test products survive a save/load with exact Decimals."""
        assert state_store.save_catalog(products) is True

        loaded = state_store.load_catalog()

        assert loaded == products
        assert loaded[0].pos_unit == Decimal("100.50")

    def test_exponent_prices_round_trip(self, state_store):
        """Test prices held in exponent form load back with the same value."""
        product = Product(code="E1", pos_unit=Decimal("1E+2"), cost_unit=1e20, retail_unit=0.00005)
        state_store.save_catalog([product])

        loaded = state_store.load_catalog()

        assert loaded == [product]
        assert loaded[0].pos_unit == Decimal("100")
        assert loaded[0].cost_unit == Decimal("100000000000000000000")
        assert loaded[0].retail_unit == Decimal("0.00005")

    def test_key_naming(self, tmp_path, products):
        """Test files are named <prefix>_<key>.json."""
        store = StateStore(tmp_path, prefix="pedidomaslog")
        store.save_catalog(products)

        assert (tmp_path / "pedidomaslog_catalog.json").exists()

    def test_missing(self, state_store):
        """Test nothing saved loads as None."""
        assert state_store.load_catalog() is None

    def test_corrupt(self, state_store):
        """Test a corrupt file loads as None instead of raising."""
        path = state_store.path_for("catalog")
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")

        assert state_store.load_catalog() is None

    def test_clear(self, state_store, products):
        """Test clearing removes the saved catalog."""
        state_store.save_catalog(products)
        state_store.clear_catalog()
        state_store.clear_catalog()

        assert state_store.load_catalog() is None


class TestOrderState:
    """Tests for saving and loading the order."""

    def test_round_trip(self, state_store, widget):
        """Test lines and counter survive a save/load."""
        book = OrderBook()
        line_id = book.lines()[0].id
        book.apply_product_selection(line_id, widget)
        book.update_field(line_id, "quantity", 3)
        book.update_field(line_id, "modality", "Consignación")
        book.add_line()
        book.delete_line(book.add_line())

        state_store.save_order(book.snapshot())
        snapshot = state_store.load_order()

        assert snapshot is not None
        assert snapshot.row_id_counter == 3
        assert snapshot.lines == book.lines()
        assert OrderBook(snapshot).total() == Decimal("301.50")

    def test_exponent_prices_round_trip(self, state_store):
        """Test line prices in exponent form are not mangled by the reload."""
        line = OrderLine(id=1, code="A", name="B", pos_unit=Decimal("1E+2"), cost_bulk=0.00005)
        state_store.save_order(OrderSnapshot(lines=[line], row_id_counter=1))

        snapshot = state_store.load_order()

        assert snapshot.lines == [line]
        assert snapshot.lines[0].pos_unit == Decimal("100")
        assert snapshot.lines[0].cost_bulk == Decimal("0.00005")

    def test_three_keys(self, tmp_path):
        """Test rows and counter are stored under separate keys."""
        store = StateStore(tmp_path, prefix="pedidomaslog")
        store.save_order(OrderBook().snapshot())

        assert (tmp_path / "pedidomaslog_rows.json").exists()
        assert (tmp_path / "pedidomaslog_rowIdCounter.json").exists()

    def test_missing(self, state_store):
        """Test no saved order loads as None."""
        assert state_store.load_order() is None

    def test_corrupt_rows(self, state_store):
        """Test unreadable rows load as None."""
        path = state_store.path_for("rows")
        path.parent.mkdir(parents=True)
        path.write_text('[{"id": "x"}]', encoding="utf-8")

        assert state_store.load_order() is None

    def test_missing_counter(self, state_store):
        """Test rows without a counter still load."""
        state_store.save_order(OrderSnapshot(lines=OrderBook().lines(), row_id_counter=1))
        state_store.path_for("rowIdCounter").unlink()

        snapshot = state_store.load_order()

        assert snapshot.row_id_counter == 0
        assert OrderBook(snapshot).add_line() == 2

    def test_last_write_wins(self, state_store):
        """Test a later save replaces the earlier one."""
        book = OrderBook()
        state_store.save_order(book.snapshot())
        book.add_line({"code": "LAST"})
        state_store.save_order(book.snapshot())

        snapshot = state_store.load_order()

        assert [line.code for line in snapshot.lines] == ["", "LAST"]

    def test_write_failure_reported(self, tmp_path):
        """Test an unwritable directory makes save return False."""
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory", encoding="utf-8")
        store = StateStore(blocker / "state")

        assert store.save_order(OrderBook().snapshot()) is False
