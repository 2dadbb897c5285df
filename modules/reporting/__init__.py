"""
Reporting Module

Report generation facade.
Resolves templates, fills them from any data source and exports the
result to PDF, XML, XLSX, DOCX or PPTX.
"""

__version__ = "1.0.0"

from modules.reporting.core.interfaces import (
    XML_DATA_DOCUMENT,
    TemplateIdentifier,
    TemplateKind,
    ExportFormat,
    CompiledTemplate,
    PopulatedReport,
    IRowSource,
    IExporter,
    ISink,
)

from modules.reporting.core.registry import (
    ExporterRegistry,
    register_exporter,
)

from modules.reporting.core.exceptions import (
    ReportingException,
    UnsupportedTemplateFormat,
    TemplateLoadError,
    TemplateCompileError,
    InvalidDataSource,
    FillError,
    ExportError,
    SinkWriteError,
    DirectoryNotFoundError,
    XmlParseError,
)

# Import implementations to trigger registration
import modules.reporting.exporters

# Export configuration
from modules.reporting.config import (
    ReportingConfig,
    get_reporting_config,
    set_reporting_config,
)

from modules.reporting.data_sources import DataSourceKind, DataSourceVariant, adapt, parse_xml
from modules.reporting.templates import TemplateResolver
from modules.reporting.filler import fill
from modules.reporting.sinks import FileSink, build_download_response
from modules.reporting.engine import ReportEngine

__all__ = [
    # Identifiers and model
    "XML_DATA_DOCUMENT",
    "TemplateIdentifier",
    "TemplateKind",
    "ExportFormat",
    "CompiledTemplate",
    "PopulatedReport",
    # Interfaces
    "IRowSource",
    "IExporter",
    "ISink",
    # Registry
    "ExporterRegistry",
    "register_exporter",
    # Exceptions
    "ReportingException",
    "UnsupportedTemplateFormat",
    "TemplateLoadError",
    "TemplateCompileError",
    "InvalidDataSource",
    "FillError",
    "ExportError",
    "SinkWriteError",
    "DirectoryNotFoundError",
    "XmlParseError",
    # Configuration
    "ReportingConfig",
    "get_reporting_config",
    "set_reporting_config",
    # Pipeline
    "DataSourceKind",
    "DataSourceVariant",
    "adapt",
    "parse_xml",
    "TemplateResolver",
    "fill",
    "FileSink",
    "build_download_response",
    "ReportEngine",
]
