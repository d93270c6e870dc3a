"""
Domain Models
=============

Catalog products, order lines and the snapshots that carry them across
the persistence and HTTP boundaries.
"""

import math
import re
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Final

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, TypeAdapter, field_validator

from order_entry.utils.price_parser import parse_price

# =============================================================================
# Field Sets
# =============================================================================

PRICE_FIELDS: Final[tuple[str, ...]] = (
    "cost_unit",
    "cost_bulk",
    "distributor_unit",
    "distributor_bulk",
    "pos_unit",
    "pos_bulk",
    "retail_bulk",
    "retail_unit",
)

LINE_TEXT_FIELDS: Final[tuple[str, ...]] = (
    "code",
    "name",
    "modality",
    "observation",
    "agent",
    "location",
    "point_of_sale",
)

MODALITY_OPTIONS: Final[tuple[str, ...]] = ("", "Firme", "Consignación")

_LEADING_INT_RE: Final[re.Pattern[str]] = re.compile(r"\s*[+-]?\d+")

# JSON prices are fixed-point so they read back through parse_price unchanged.
Price = Annotated[Decimal, PlainSerializer(lambda d: format(d, "f"), return_type=str, when_used="json")]


def to_text(value: Any) -> str:
    """Stringify a cell or form value; None and NaN become ''."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return value if isinstance(value, str) else str(value)


def coerce_quantity(value: Any) -> int:
    """
    Coerce user input to a quantity of at least 1.

    Integers pass through, floats truncate, strings use their leading
    integer ("3 cajas" → 3). Anything else, or anything below 1, is 1.
    """
    if isinstance(value, bool) or value is None:
        return 1
    if isinstance(value, int):
        quantity = value
    elif isinstance(value, (float, Decimal)):
        try:
            quantity = int(value)
        except (OverflowError, ValueError):
            return 1
    else:
        match = _LEADING_INT_RE.match(str(value))
        if not match:
            return 1
        quantity = int(match.group(0))
    return max(quantity, 1)


# =============================================================================
# Catalog
# =============================================================================


class Product(BaseModel):
    """
    One catalog entry, immutable once built.

    Codes keep their original case but are compared case-insensitively.
    Duplicate codes are allowed; lookups return the first one.

    Attributes:
        code: Product code (SKU), non-empty
        name: Product description
        cost_unit: Unit cost incl. VAT
        cost_bulk: Bulk (case) cost incl. VAT
        distributor_unit: Distributor unit price incl. VAT
        distributor_bulk: Distributor bulk price incl. VAT
        pos_unit: Point-of-sale unit price incl. VAT
        pos_bulk: Point-of-sale bulk price incl. VAT
        retail_bulk: Suggested retail bulk price
        retail_unit: Suggested retail unit price
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "code": "A1",
                "name": "Widget",
                "pos_unit": "100.50",
            }
        },
    )

    code: Annotated[str, Field(min_length=1, description="Product code (SKU)")]
    name: Annotated[str, Field(description="Product description")] = ""
    cost_unit: Price = Decimal("0")
    cost_bulk: Price = Decimal("0")
    distributor_unit: Price = Decimal("0")
    distributor_bulk: Price = Decimal("0")
    pos_unit: Price = Decimal("0")
    pos_bulk: Price = Decimal("0")
    retail_bulk: Price = Decimal("0")
    retail_unit: Price = Decimal("0")

    @field_validator("code", "name", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> str:
        return to_text(value).strip()

    @field_validator(*PRICE_FIELDS, mode="before")
    @classmethod
    def parse_prices(cls, value: Any) -> Decimal:
        return parse_price(value)

    def prices(self) -> dict[str, Decimal]:
        """Return the eight price fields keyed by field name."""
        return {field: getattr(self, field) for field in PRICE_FIELDS}


class CatalogStatus(BaseModel):
    """Whether a catalog is loaded, and what it holds."""

    loaded: bool = False
    product_count: Annotated[int, Field(ge=0)] = 0
    loaded_at: datetime | None = None
    filename: str | None = None


# =============================================================================
# Order
# =============================================================================


class LineData(BaseModel):
    """
    Editable content of an order line, without its identity.

    Used as the seed for new lines and as the row payload of export
    requests. Assignment is validated, so every write goes through the
    same coercions as construction: quantity is clamped to >= 1, prices
    go through the price parser, unknown modalities become ''.
    """

    model_config = ConfigDict(validate_assignment=True)

    code: str = ""
    name: str = ""
    cost_unit: Price = Decimal("0")
    cost_bulk: Price = Decimal("0")
    distributor_unit: Price = Decimal("0")
    distributor_bulk: Price = Decimal("0")
    pos_unit: Price = Decimal("0")
    pos_bulk: Price = Decimal("0")
    retail_bulk: Price = Decimal("0")
    retail_unit: Price = Decimal("0")
    quantity: Annotated[int, Field(ge=1)] = 1
    modality: str = ""
    observation: str = ""
    agent: str = ""
    location: str = ""
    point_of_sale: str = ""

    @field_validator("code", "name", "observation", "agent", "location", "point_of_sale", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return to_text(value)

    @field_validator("modality", mode="before")
    @classmethod
    def coerce_modality(cls, value: Any) -> str:
        text = to_text(value)
        return text if text in MODALITY_OPTIONS else ""

    @field_validator(*PRICE_FIELDS, mode="before")
    @classmethod
    def parse_prices(cls, value: Any) -> Decimal:
        return parse_price(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity_value(cls, value: Any) -> int:
        return coerce_quantity(value)

    @property
    def subtotal(self) -> Decimal:
        """Point-of-sale unit price times quantity."""
        return self.pos_unit * self.quantity

    @property
    def is_valid(self) -> bool:
        """A line is exportable once it has both a code and a name."""
        return bool(self.code) and bool(self.name)


class OrderLine(LineData):
    """An order line with its stable, never reused identity."""

    id: Annotated[int, Field(ge=1, description="Line identity")]

    def data(self) -> LineData:
        """Copy of the editable fields, without the id."""
        return LineData.model_validate(self.model_dump(exclude={"id"}))


class OrderSnapshot(BaseModel):
    """Serializable state of an order book."""

    lines: list[OrderLine] = Field(default_factory=list)
    row_id_counter: Annotated[int, Field(ge=0)] = 0


# =============================================================================
# Serialization
# =============================================================================

_PRODUCT_LIST: Final[TypeAdapter[list[Product]]] = TypeAdapter(list[Product])


def dump_products(products: list[Product]) -> str:
    """Serialize a product list to JSON (Decimals as strings)."""
    return _PRODUCT_LIST.dump_json(products).decode("utf-8")


def load_products(payload: str | bytes) -> list[Product]:
    """Deserialize a product list produced by dump_products()."""
    return _PRODUCT_LIST.validate_json(payload)
