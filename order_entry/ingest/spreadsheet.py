"""
Spreadsheet Codec
=================

Boundary between raw file bytes and the row records the catalog core
works on.

Decoding reads the first worksheet with pandas (openpyxl engine for .xlsx,
xlrd for legacy .xls, the C parser for .csv). The first row is the header
row and empty cells become ''. Encoding writes a single worksheet with
openpyxl, including fixed column widths.
"""

import io
from collections.abc import Mapping, Sequence
from datetime import date
from pathlib import Path
from typing import Any, Final

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from order_entry.utils.errors import SpreadsheetError, UnsupportedFileError
from order_entry.utils.logger import get_logger

logger = get_logger(__name__)

EXCEL_ENGINES: Final[dict[str, str]] = {
    ".xlsx": "openpyxl",
    ".xlsm": "openpyxl",
    ".xls": "xlrd",
}

XLSX_MEDIA_TYPE: Final[str] = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
)


def file_extension(filename: str) -> str:
    """Lower-cased extension including the dot ('' when there is none)."""
    return Path(filename or "").suffix.lower()


# =============================================================================
# Decoding
# =============================================================================


def read_rows(content: bytes, filename: str) -> list[dict[str, Any]]:
    """
    Decode the first sheet of a spreadsheet into row records.

    Args:
        content: Raw file bytes
        filename: Original filename, used to pick the reader

    Returns:
        One dict per data row keyed by header text, empty cells as ''

    Raises:
        UnsupportedFileError: Extension is not .xlsx/.xlsm/.xls/.csv
        SpreadsheetError: The bytes cannot be read as that format
    """
    extension = file_extension(filename)

    try:
        if extension == ".csv":
            frame = pd.read_csv(
                io.BytesIO(content),
                dtype=str,
                keep_default_na=False,
                encoding="utf-8-sig",
            )
        elif extension in EXCEL_ENGINES:
            frame = pd.read_excel(
                io.BytesIO(content),
                sheet_name=0,
                dtype=object,
                engine=EXCEL_ENGINES[extension],
            )
        else:
            raise UnsupportedFileError(
                message=f"Unsupported file type: {extension or filename}",
                details={"filename": filename},
            )
    except UnsupportedFileError:
        raise
    except pd.errors.EmptyDataError:
        return []
    except Exception as e:
        logger.error("Failed to decode spreadsheet", filename=filename, error=str(e))
        raise SpreadsheetError(
            message="Could not read the spreadsheet",
            details={"filename": filename, "error": str(e)},
        ) from e

    frame.columns = [str(column) for column in frame.columns]
    frame = frame.astype(object).where(pd.notna(frame), "")
    rows = frame.to_dict(orient="records")

    logger.debug(
        "Spreadsheet decoded",
        filename=filename,
        rows=len(rows),
        headers=list(frame.columns),
    )
    return rows


# =============================================================================
# Encoding
# =============================================================================


def write_xlsx(
    records: Sequence[Mapping[str, Any]],
    sheet_name: str,
    widths: Mapping[str, int] | None = None,
) -> bytes:
    """
    Encode flat records as a single-sheet .xlsx workbook.

    Args:
        records: Rows sharing the same keys; keys of the first row become
                 the header row
        sheet_name: Worksheet title
        widths: Optional header → column width (characters)

    Returns:
        Workbook bytes

    Raises:
        SpreadsheetError: If there are no records or writing fails
    """
    if not records:
        raise SpreadsheetError(message="Nothing to write")

    headers = list(records[0].keys())
    widths = widths or {}

    try:
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_name

        ws.append(headers)
        for cell in ws[1]:
            cell.font = Font(bold=True)

        for record in records:
            ws.append([record.get(header, "") for header in headers])

        for index, header in enumerate(headers, start=1):
            if header in widths:
                ws.column_dimensions[get_column_letter(index)].width = widths[header]

        buffer = io.BytesIO()
        wb.save(buffer)
    except Exception as e:
        logger.error("Failed to encode spreadsheet", error=str(e))
        raise SpreadsheetError(
            message="Could not write the spreadsheet",
            details={"error": str(e)},
        ) from e

    return buffer.getvalue()


def export_filename(prefix: str, today: date) -> str:
    """
    Suggested download name for an exported order.

    Example:
        >>> export_filename("Pedido", date(2024, 3, 7))
        'Pedido_2024-03-07.xlsx'
    """
    return f"{prefix}_{today:%Y-%m-%d}.xlsx"
