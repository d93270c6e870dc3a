"""Unit tests for the spreadsheet codec.

Tests for:
- Decoding .xlsx and .csv into row records
- Unsupported and unreadable files
- Encoding records as a workbook
- Export file naming
"""
import io
from datetime import date

import openpyxl
import pytest

from order_entry.ingest.spreadsheet import (
    export_filename,
    file_extension,
    read_rows,
    write_xlsx,
)
from order_entry.utils.errors import SpreadsheetError, UnsupportedFileError


class TestReadRows:
    """Tests for read_rows."""

    def test_xlsx_first_row_is_header(self, make_xlsx):
        """Test .xlsx rows are keyed by the header row."""
        content = make_xlsx(["SKU", "PRODUCTO"], [["A1", "Widget"], ["B2", "Bolt"]])

        rows = read_rows(content, "catalogo.xlsx")

        assert rows == [
            {"SKU": "A1", "PRODUCTO": "Widget"},
            {"SKU": "B2", "PRODUCTO": "Bolt"},
        ]

    def test_xlsx_empty_cells_become_empty_strings(self, make_xlsx):
        """Test blank cells decode as ''."""
        content = make_xlsx(["SKU", "PRODUCTO", "PDV"], [["A1", None, 10]])

        row = read_rows(content, "catalogo.xlsx")[0]

        assert row["PRODUCTO"] == ""
        assert row["PDV"] == 10

    def test_only_first_sheet(self):
        """Test other worksheets are ignored."""
        wb = openpyxl.Workbook()
        wb.active.append(["SKU"])
        wb.active.append(["FIRST"])
        other = wb.create_sheet("Otra")
        other.append(["SKU"])
        other.append(["SECOND"])
        buffer = io.BytesIO()
        wb.save(buffer)

        rows = read_rows(buffer.getvalue(), "libro.xlsx")

        assert rows == [{"SKU": "FIRST"}]

    def test_header_only_workbook(self, make_xlsx):
        """Test a workbook with headers but no data has no rows."""
        assert read_rows(make_xlsx(["SKU", "PRODUCTO"], []), "vacio.xlsx") == []

    def test_csv(self):
        """Test .csv files keep their cells as text."""
        content = "SKU,PRODUCTO,PDV c/IVA UNIDAD\nA1,Widget,\"100,50\"\n".encode("utf-8")

        rows = read_rows(content, "catalogo.csv")

        assert rows == [{"SKU": "A1", "PRODUCTO": "Widget", "PDV c/IVA UNIDAD": "100,50"}]

    def test_csv_with_bom(self):
        """Test a UTF-8 byte order mark does not leak into the first header."""
        content = "\ufeffSKU,PRODUCTO\nA1,Widget\n".encode("utf-8")

        assert list(read_rows(content, "catalogo.csv")[0]) == ["SKU", "PRODUCTO"]

    def test_empty_csv(self):
        """Test an empty file decodes to no rows."""
        assert read_rows(b"", "vacio.csv") == []

    def test_unsupported_extension(self):
        """Test unknown extensions are rejected."""
        with pytest.raises(UnsupportedFileError):
            read_rows(b"%PDF-1.4", "catalogo.pdf")

    def test_corrupt_workbook(self):
        """Test bytes that are not a workbook raise SpreadsheetError."""
        with pytest.raises(SpreadsheetError):
            read_rows(b"not a zip file", "catalogo.xlsx")


class TestWriteXlsx:
    """Tests for write_xlsx."""

    def test_round_trip_through_openpyxl(self):
        """Test header row, values and sheet title of the written workbook."""
        records = [
            {"SKU / CÓDIGO": "A1", "CANTIDAD": 3},
            {"SKU / CÓDIGO": "B2", "CANTIDAD": 1},
        ]

        content = write_xlsx(records, "Pedido", {"SKU / CÓDIGO": 15})

        wb = openpyxl.load_workbook(io.BytesIO(content))
        ws = wb.active
        assert ws.title == "Pedido"
        assert [c.value for c in ws[1]] == ["SKU / CÓDIGO", "CANTIDAD"]
        assert [c.value for c in ws[2]] == ["A1", 3]
        assert ws.max_row == 3
        assert ws[1][0].font.bold is True
        assert ws.column_dimensions["A"].width == 15

    def test_no_records(self):
        """Test writing nothing is an error."""
        with pytest.raises(SpreadsheetError):
            write_xlsx([], "Pedido")


class TestNaming:
    """Tests for file name helpers."""

    def test_export_filename(self):
        """Test the dated download name."""
        assert export_filename("Pedido", date(2024, 3, 7)) == "Pedido_2024-03-07.xlsx"

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [("a.XLSX", ".xlsx"), ("b.csv", ".csv"), ("sin_extension", ""), ("", "")],
    )
    def test_file_extension(self, filename, expected):
        """Test extensions are lower-cased and include the dot."""
        assert file_extension(filename) == expected
