"""
Core components for reporting module.
"""

from modules.reporting.core.interfaces import (
    XML_DATA_DOCUMENT,
    TemplateKind,
    TemplateIdentifier,
    ExportFormat,
    ParameterDefinition,
    FieldDefinition,
    VariableDefinition,
    QueryDefinition,
    ElementDefinition,
    PageSettings,
    StyleSettings,
    CompiledTemplate,
    PrintElement,
    PrintRow,
    PrintPage,
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
    ConfigurationException,
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

__all__ = [
    # Identifiers and formats
    "XML_DATA_DOCUMENT",
    "TemplateKind",
    "TemplateIdentifier",
    "ExportFormat",
    # Template model
    "ParameterDefinition",
    "FieldDefinition",
    "VariableDefinition",
    "QueryDefinition",
    "ElementDefinition",
    "PageSettings",
    "StyleSettings",
    "CompiledTemplate",
    # Populated model
    "PrintElement",
    "PrintRow",
    "PrintPage",
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
    "ConfigurationException",
    "UnsupportedTemplateFormat",
    "TemplateLoadError",
    "TemplateCompileError",
    "InvalidDataSource",
    "FillError",
    "ExportError",
    "SinkWriteError",
    "DirectoryNotFoundError",
    "XmlParseError",
]
