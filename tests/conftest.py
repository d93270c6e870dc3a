"""
Test Configuration and Fixtures
================================

Shared pytest fixtures for order-entry tests.
"""

import io
from collections.abc import Callable
from decimal import Decimal

import openpyxl
import pytest

from order_entry.config.settings import Settings
from order_entry.schemas.domain import Product
from order_entry.services.catalog_index import CatalogIndex
from order_entry.services.catalog_source import LocalCatalogSource
from order_entry.services.state_store import StateStore

EXTENDED_HEADERS = [
    "SKU",
    "PRODUCTO",
    "COSTO C/IVA UNIDAD",
    "COSTO C/IVA BULTO",
    "DISTRIBUIDOR c/IVA UNIDAD",
    "DISTRIBUIDOR c/IVA BULTO",
    "PDV c/IVA UNIDAD",
    "PDV c/IVA BULTO",
    "PVP Sugerido BULTO",
    "PVP Sugerido UNIDAD",
]


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment, with state under tmp_path."""
    return Settings(
        _env_file=None,
        state_dir=str(tmp_path / "state"),
        environment="development",
    )


@pytest.fixture
def catalog_rows():
    """Decoded rows of a small extended-profile catalog."""
    return [
        {
            "SKU": "A1",
            "PRODUCTO": "Widget",
            "COSTO C/IVA UNIDAD": "80",
            "COSTO C/IVA BULTO": "960",
            "DISTRIBUIDOR c/IVA UNIDAD": "90,00",
            "DISTRIBUIDOR c/IVA BULTO": "1080",
            "PDV c/IVA UNIDAD": "100,50",
            "PDV c/IVA BULTO": "1206",
            "PVP Sugerido BULTO": "1500",
            "PVP Sugerido UNIDAD": "$ 125",
        },
        {
            "SKU": "B-200",
            "PRODUCTO": "Tornillo hexagonal",
            "COSTO C/IVA UNIDAD": "",
            "COSTO C/IVA BULTO": "",
            "DISTRIBUIDOR c/IVA UNIDAD": "",
            "DISTRIBUIDOR c/IVA BULTO": "",
            "PDV c/IVA UNIDAD": "12.5",
            "PDV c/IVA BULTO": "",
            "PVP Sugerido BULTO": "",
            "PVP Sugerido UNIDAD": "N/A",
        },
        {
            "SKU": "",
            "PRODUCTO": "Fila sin código",
            "COSTO C/IVA UNIDAD": "",
            "COSTO C/IVA BULTO": "",
            "DISTRIBUIDOR c/IVA UNIDAD": "",
            "DISTRIBUIDOR c/IVA BULTO": "",
            "PDV c/IVA UNIDAD": "5",
            "PDV c/IVA BULTO": "",
            "PVP Sugerido BULTO": "",
            "PVP Sugerido UNIDAD": "",
        },
    ]


@pytest.fixture
def widget():
    """A fully priced catalog product."""
    return Product(code="A1", name="Widget", pos_unit=Decimal("100.50"), cost_unit=Decimal("80"))


@pytest.fixture
def products(widget):
    """Small catalog in catalog order."""
    return [
        widget,
        Product(code="B-200", name="Tornillo hexagonal", pos_unit=Decimal("12.5")),
        Product(code="C3", name="Tuerca", pos_unit=Decimal("3")),
        Product(code="a1", name="Widget duplicado", pos_unit=Decimal("1")),
    ]


@pytest.fixture
def make_xlsx() -> Callable[..., bytes]:
    """Build .xlsx bytes from a header row and data rows."""

    def _make(headers: list[str], rows: list[list], title: str = "Catalogo") -> bytes:
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = title
        ws.append(headers)
        for row in rows:
            ws.append(row)
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def catalog_xlsx(make_xlsx):
    """Two-product catalog workbook with the extended headers."""
    return make_xlsx(
        EXTENDED_HEADERS,
        [
            ["A1", "Widget", 80, 960, 90, 1080, "100,50", 1206, 1500, 125],
            ["B-200", "Tornillo hexagonal", None, None, None, None, 12.5, None, None, None],
            [None, "Fila sin código", None, None, None, None, 5, None, None, None],
        ],
    )


@pytest.fixture
def state_store(tmp_path):
    """State store writing under a temporary directory."""
    return StateStore(tmp_path / "state", prefix="test")


@pytest.fixture
def local_source(state_store):
    """In-process catalog source with persistence."""
    return LocalCatalogSource(index=CatalogIndex(search_limit=15), store=state_store)
