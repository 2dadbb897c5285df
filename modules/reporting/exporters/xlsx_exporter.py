"""Excel (XLSX) exporter."""

from dataclasses import dataclass
from datetime import date, datetime, time as dt_time
from decimal import Decimal
from io import BytesIO
import re
from typing import Any, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from modules.reporting.core.interfaces import ExportFormat, PopulatedReport, PrintElement, PrintPage
from modules.reporting.core.registry import register_exporter
from modules.reporting.exporters.base import BaseExporter

_NATIVE_TYPES = (int, float, Decimal, date, datetime, dt_time, bool)
_INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")


@dataclass
class XlsxExportConfiguration:
    """
    XLSX export options.

    All knobs default off: every page goes to one sheet, cells are written
    as their display text and spacer rows between bands are kept.
    """
    one_page_per_sheet: bool = False
    detect_cell_type: bool = False
    collapse_row_span: bool = False
    sheet_names: Tuple[str, ...] = ()


@register_exporter(ExportFormat.XLSX)
class XlsxExporter(BaseExporter):
    """Spreadsheet exporter using openpyxl."""

    configuration_class = XlsxExportConfiguration

    header_fill = PatternFill(start_color="4F81BD", end_color="4F81BD", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF")

    def _render(self, report: PopulatedReport) -> bytes:
        wb = Workbook()
        wb.remove(wb.active)  # Remove default sheet

        if self.configuration.one_page_per_sheet:
            last = len(report.pages)
            for index, page in enumerate(report.pages):
                ws = wb.create_sheet(self._sheet_name(report, index))
                row = 1
                if page.number == 1:
                    row = self._write_title(ws, report, row)
                row = self._write_page(ws, report, page, row)
                if page.number == last:
                    self._write_summary(ws, report, row)
                self._size_columns(ws, report)
        else:
            ws = wb.create_sheet(self._sheet_name(report, 0))
            row = self._write_title(ws, report, 1)
            for page in report.pages:
                row = self._write_page(ws, report, page, row)
            self._write_summary(ws, report, row)
            self._size_columns(ws, report)

        buffer = BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    def _sheet_name(self, report: PopulatedReport, index: int) -> str:
        names = self.configuration.sheet_names
        if index < len(names):
            name = names[index]
        elif self.configuration.one_page_per_sheet:
            name = f"Page {index + 1}"
        else:
            name = report.name
        name = _INVALID_SHEET_CHARS.sub("_", name).strip() or "Report"
        return name[:31]

    def _spacer(self, row: int) -> int:
        return row if self.configuration.collapse_row_span else row + 1

    def _write_title(self, ws: Worksheet, report: PopulatedReport, row: int) -> int:
        if not report.title:
            return row
        for element in report.title:
            cell = ws.cell(row, 1, self._element_line(element))
            cell.font = Font(size=14, bold=True)
            row += 1
        return self._spacer(row)

    def _write_page(self, ws: Worksheet, report: PopulatedReport, page: PrintPage, row: int) -> int:
        if not report.column_headers:
            return row

        for col, header in enumerate(report.column_headers, start=1):
            cell = ws.cell(row, col, header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = Alignment(horizontal="center", vertical="center")
        row += 1

        for print_row in page.rows:
            for col, element in enumerate(print_row.cells, start=1):
                ws.cell(row, col, self._cell_value(element))
            row += 1

        return self._spacer(row)

    def _write_summary(self, ws: Worksheet, report: PopulatedReport, row: int) -> int:
        for element in report.summary:
            ws.cell(row, 1, element.label or element.name).font = Font(bold=True)
            ws.cell(row, 2, self._cell_value(element))
            row += 1
        return row

    def _cell_value(self, element: PrintElement) -> Any:
        if self.configuration.detect_cell_type and isinstance(element.value, _NATIVE_TYPES):
            return element.value
        return element.text

    def _size_columns(self, ws: Worksheet, report: PopulatedReport) -> None:
        for col in range(1, max(len(report.column_headers), 2) + 1):
            ws.column_dimensions[get_column_letter(col)].width = 20
