"""
Pydantic Request Models
=======================

API request schemas for the order-entry server.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from order_entry.schemas.domain import LineData


class ExportRequest(BaseModel):
    """
    Request body for POST /api/order/export.

    Attributes:
        rows: Order lines to export; lines without code or name are skipped
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "rows": [
                    {
                        "code": "A1",
                        "name": "Widget",
                        "pos_unit": "100.50",
                        "quantity": 3,
                        "modality": "Firme",
                    }
                ]
            }
        }
    )

    rows: Annotated[
        list[LineData],
        Field(default_factory=list, description="Order lines to export"),
    ]
