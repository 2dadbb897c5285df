"""
PDF exporter implementation.

Lays the populated report out as fixed, paginated PDF pages with reportlab.
Output is written in invariant mode so identical reports give identical bytes.
"""

from dataclasses import dataclass
from html import escape
from io import BytesIO
from typing import BinaryIO, Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, LETTER, LEGAL, landscape, portrait
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from modules.reporting.core.exceptions import ExportError
from modules.reporting.core.interfaces import ExportFormat, PopulatedReport, StyleSettings
from modules.reporting.core.registry import register_exporter
from modules.reporting.exporters.base import BaseExporter
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


PAGE_SIZES = {
    "A4": A4,
    "LETTER": LETTER,
    "LEGAL": LEGAL,
}


@dataclass
class PdfExportConfiguration:
    """PDF export options"""
    page_size: str = "A4"
    margin_inches: float = 0.75
    compress: bool = False


@register_exporter(ExportFormat.PDF)
class PdfExporter(BaseExporter):
    """
    PDF exporter.

    Title elements become heading paragraphs, every report page becomes a
    table on its own PDF page, and the summary follows the last page.
    """

    configuration_class = PdfExportConfiguration

    def _render(self, report: PopulatedReport) -> bytes:
        buffer = BytesIO()
        self._write(report, buffer)
        return buffer.getvalue()

    def _write(self, report: PopulatedReport, stream: BinaryIO) -> None:
        config = self.configuration
        if config.page_size.upper() not in PAGE_SIZES:
            raise ExportError(f"Unknown PDF page size '{config.page_size}'", export_format=self.export_format.value)

        page_size = PAGE_SIZES[config.page_size.upper()]
        page_size = landscape(page_size) if report.page.orientation == "landscape" else portrait(page_size)
        margin = config.margin_inches * inch

        doc = SimpleDocTemplate(
            stream,
            pagesize=page_size,
            leftMargin=margin,
            rightMargin=margin,
            topMargin=margin,
            bottomMargin=margin,
            title=report.name,
            invariant=1,
            pageCompression=1 if config.compress else 0,
        )

        styles = self._create_styles(report.style)
        story = []

        for element in report.title:
            story.append(Paragraph(escape(self._element_line(element), quote=False), styles["ReportTitle"]))
        if report.title:
            story.append(Spacer(1, 0.2 * inch))

        for page in report.pages:
            if page.number > 1:
                story.append(PageBreak())
            if report.column_headers:
                table = Table(self._page_table(report, page.number), repeatRows=1)
                table.setStyle(self._table_style(report.style))
                story.append(table)

        if report.summary:
            story.append(Spacer(1, 0.3 * inch))
            summary = Table([list(pair) for pair in self._summary_pairs(report)], hAlign="LEFT")
            summary.setStyle(TableStyle([
                ("FONTNAME", (0, 0), (-1, -1), report.style.font),
                ("FONTSIZE", (0, 0), (-1, -1), report.style.font_size),
                ("LINEABOVE", (0, 0), (-1, 0), 0.5, colors.black),
            ]))
            story.append(summary)

        doc.build(story)

    def _create_styles(self, style: StyleSettings):
        """Create PDF paragraph styles."""
        styles = getSampleStyleSheet()

        styles.add(ParagraphStyle(
            name="ReportTitle",
            parent=styles["Heading1"],
            fontName=style.font,
            fontSize=style.font_size + 7,
            leading=style.font_size + 11,
            alignment=TA_CENTER,
            spaceAfter=6,
        ))

        return styles

    def _table_style(self, style: StyleSettings) -> TableStyle:
        return TableStyle([
            ("FONTNAME", (0, 0), (-1, -1), style.font),
            ("FONTSIZE", (0, 0), (-1, -1), style.font_size),
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#4F81BD")),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ])


@register_exporter(ExportFormat.PDF_STREAM)
class PdfStreamExporter(PdfExporter):
    """
    PDF exporter writing into a stream.

    Produces the same bytes as PdfExporter, written incrementally into the
    target stream instead of returned as one buffer.
    """

    def _render(self, report: PopulatedReport) -> BinaryIO:
        stream = BytesIO()
        self._write(report, stream)
        stream.seek(0)
        return stream

    def export_into(self, report: PopulatedReport, stream: BinaryIO) -> BinaryIO:
        """
        Write the PDF into a caller-supplied binary stream.

        Args:
            report: Report to export
            stream: Writable binary stream (file, HTTP response body, ...)

        Returns:
            The same stream, positioned after the written document
        """
        try:
            self._write(report, stream)
        except ExportError:
            raise
        except Exception as e:
            logger.error(f"❌ PDF stream export of '{report.name}' failed: {e}")
            raise ExportError(
                f"{self.export_format.value} export of report '{report.name}' failed: {e}",
                export_format=self.export_format.value,
            ) from e
        return stream
