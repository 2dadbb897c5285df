"""
DOCX exporter implementation.

Writes the populated report as a Microsoft Word document with python-docx.
Self-registers with the ExporterRegistry.
"""

from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from docx import Document
from docx.enum.section import WD_ORIENT
from docx.shared import Pt

from modules.reporting.core.interfaces import ExportFormat, PopulatedReport
from modules.reporting.core.registry import register_exporter
from modules.reporting.exporters.base import BaseExporter

DEFAULT_TABLE_STYLE = "Table Grid"


@dataclass
class DocxExportConfiguration:
    """DOCX export options"""
    page_breaks: bool = True
    table_style: Optional[str] = None  # Overrides the template's table style


@register_exporter(ExportFormat.DOCX)
class DocxExporter(BaseExporter):
    """
    Microsoft Word (DOCX) exporter.

    The first title element becomes a heading, each report page a table
    (separated by page breaks), and summary elements trailing paragraphs.
    Unknown table style names fail the export.
    """

    configuration_class = DocxExportConfiguration

    def _render(self, report: PopulatedReport) -> bytes:
        doc = Document()

        normal = doc.styles["Normal"]
        normal.font.name = report.style.font
        normal.font.size = Pt(report.style.font_size)

        if report.page.orientation == "landscape":
            section = doc.sections[0]
            section.orientation = WD_ORIENT.LANDSCAPE
            section.page_width, section.page_height = section.page_height, section.page_width

        for index, element in enumerate(report.title):
            if index == 0:
                doc.add_heading(self._element_line(element), level=1)
            else:
                doc.add_paragraph(self._element_line(element))

        table_style = self.configuration.table_style or report.style.table_style or DEFAULT_TABLE_STYLE

        for page in report.pages:
            if page.number > 1 and self.configuration.page_breaks:
                doc.add_page_break()
            if not report.column_headers:
                continue

            data = self._page_table(report, page.number)
            table = doc.add_table(rows=len(data), cols=len(report.column_headers))
            table.style = table_style
            for row, values in zip(table.rows, data):
                for cell, value in zip(row.cells, values):
                    cell.text = value
            for cell in table.rows[0].cells:
                for run in cell.paragraphs[0].runs:
                    run.bold = True

        for label, text in self._summary_pairs(report):
            paragraph = doc.add_paragraph()
            paragraph.add_run(f"{label}: ").bold = True
            paragraph.add_run(text)

        buffer = BytesIO()
        doc.save(buffer)
        return buffer.getvalue()
