"""PowerPoint (PPTX) exporter."""

from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from pptx import Presentation
from pptx.util import Inches, Pt

from modules.reporting.core.interfaces import ExportFormat, PopulatedReport
from modules.reporting.core.registry import register_exporter
from modules.reporting.exporters.base import BaseExporter


@dataclass
class PptxExportConfiguration:
    """PPTX export options"""
    slide_layout_index: int = 5  # "Title Only" in the default template
    font_size: Optional[float] = None  # Defaults to the template font size


@register_exporter(ExportFormat.PPTX)
class PptxExporter(BaseExporter):
    """One slide per report page, plus a summary slide when the report has one."""

    configuration_class = PptxExportConfiguration

    def _render(self, report: PopulatedReport) -> bytes:
        prs = Presentation()
        layout = prs.slide_layouts[self.configuration.slide_layout_index]
        font_size = Pt(self.configuration.font_size or report.style.font_size)

        heading = self._element_line(report.title[0]) if report.title else report.name
        page_count = len(report.pages)

        for page in report.pages:
            slide = prs.slides.add_slide(layout)
            if slide.shapes.title is not None:
                suffix = f" ({page.number}/{page_count})" if page_count > 1 else ""
                slide.shapes.title.text = heading + suffix

            if not report.column_headers:
                continue

            data = self._page_table(report, page.number)
            shape = slide.shapes.add_table(
                len(data),
                len(report.column_headers),
                Inches(0.5),
                Inches(1.5),
                prs.slide_width - Inches(1),
                Inches(0.35) * len(data),
            )
            for row_index, values in enumerate(data):
                for col_index, value in enumerate(values):
                    cell = shape.table.cell(row_index, col_index)
                    cell.text = value
                    for paragraph in cell.text_frame.paragraphs:
                        for run in paragraph.runs:
                            run.font.size = font_size

        if report.summary:
            slide = prs.slides.add_slide(layout)
            if slide.shapes.title is not None:
                slide.shapes.title.text = "Summary"
            box = slide.shapes.add_textbox(Inches(0.5), Inches(1.5), prs.slide_width - Inches(1), Inches(1))
            frame = box.text_frame
            for index, (label, text) in enumerate(self._summary_pairs(report)):
                paragraph = frame.paragraphs[0] if index == 0 else frame.add_paragraph()
                paragraph.text = f"{label}: {text}"
                for run in paragraph.runs:
                    run.font.size = font_size

        buffer = BytesIO()
        prs.save(buffer)
        return buffer.getvalue()
