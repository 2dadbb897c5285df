"""Base exporter class."""

from abc import abstractmethod
from typing import List, Tuple
import time

from modules.reporting.core.exceptions import ExportError
from modules.reporting.core.interfaces import ExportOutput, IExporter, PopulatedReport, PrintElement
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class BaseExporter(IExporter):
    """
    Base class for exporters.

    Subclasses implement ``_render``; ``export`` times it and turns any
    rendering fault into an ExportError naming the format.
    """

    def export(self, report: PopulatedReport) -> ExportOutput:
        start_time = time.time()
        try:
            output = self._render(report)
        except ExportError:
            raise
        except Exception as e:
            logger.error(f"❌ {self.export_format.value} export of '{report.name}' failed: {e}")
            raise ExportError(
                f"{self.export_format.value} export of report '{report.name}' failed: {e}",
                export_format=self.export_format.value,
            ) from e

        export_time = (time.time() - start_time) * 1000
        logger.info(f"✅ Exported '{report.name}' to {self.export_format.value} in {export_time:.2f}ms")
        return output

    @abstractmethod
    def _render(self, report: PopulatedReport) -> ExportOutput:
        """Produce the output; may raise anything."""
        pass

    def _element_line(self, element: PrintElement) -> str:
        """Display text of a title or summary element."""
        if element.label:
            return f"{element.label}: {element.text}"
        return element.text

    def _page_table(self, report: PopulatedReport, page_number: int) -> List[List[str]]:
        """Header row plus display text of every row on one page."""
        page = report.pages[page_number - 1]
        return [list(report.column_headers)] + [[cell.text for cell in row.cells] for row in page.rows]

    def _summary_pairs(self, report: PopulatedReport) -> List[Tuple[str, str]]:
        return [(element.label or element.name, element.text) for element in report.summary]
