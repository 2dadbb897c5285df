"""
Exporters for reporting module.

Exporters write a populated report out in one document format.
"""

# Import all exporters to trigger self-registration
from modules.reporting.exporters.pdf_exporter import PdfExporter, PdfStreamExporter, PdfExportConfiguration
from modules.reporting.exporters.xml_exporter import XmlExporter, XmlExportConfiguration
from modules.reporting.exporters.xlsx_exporter import XlsxExporter, XlsxExportConfiguration
from modules.reporting.exporters.docx_exporter import DocxExporter, DocxExportConfiguration
from modules.reporting.exporters.pptx_exporter import PptxExporter, PptxExportConfiguration

__all__ = [
    "PdfExporter",
    "PdfStreamExporter",
    "XmlExporter",
    "XlsxExporter",
    "DocxExporter",
    "PptxExporter",
    "PdfExportConfiguration",
    "XmlExportConfiguration",
    "XlsxExportConfiguration",
    "DocxExportConfiguration",
    "PptxExportConfiguration",
]
