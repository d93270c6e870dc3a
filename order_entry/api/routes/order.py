"""
Order Routes
============

Endpoints:
- POST /api/order/export - Encode order lines as an .xlsx download
"""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Response

from order_entry.config.settings import Settings, get_settings
from order_entry.ingest.spreadsheet import XLSX_MEDIA_TYPE, export_filename, write_xlsx
from order_entry.schemas.requests import ExportRequest
from order_entry.schemas.responses import ErrorResponse
from order_entry.services.export_projector import COLUMN_WIDTHS, project
from order_entry.utils.errors import EmptyOrderError
from order_entry.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/order/export",
    summary="Export order",
    description=(
        "Project the order lines onto the fixed export columns and return them as a "
        "single-sheet workbook. Lines without a code or a name are left out."
    ),
    response_class=Response,
    responses={
        200: {"content": {XLSX_MEDIA_TYPE: {}}, "description": "Workbook download"},
        400: {"model": ErrorResponse, "description": "Nothing to export"},
    },
)
async def export_order(
    request: ExportRequest,
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    valid = [row for row in request.rows if row.is_valid]
    if not valid:
        raise EmptyOrderError(
            message="Nothing to export",
            details={"rows": len(request.rows)},
        )

    records = project(valid)

    content = write_xlsx(records, settings.export_sheet_name, COLUMN_WIDTHS)
    filename = export_filename(settings.export_filename_prefix, date.today())
    logger.info("Order exported", filename=filename, rows=len(records))

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
