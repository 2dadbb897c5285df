"""
Core interfaces for the reporting module.

Holds the template model, the populated report model and the abstract
interfaces every row source, exporter and sink implements.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union, BinaryIO

from modules.reporting.core.exceptions import UnsupportedTemplateFormat


# Parameter key under which an XML document is handed to the fill step
XML_DATA_DOCUMENT = "XML_DATA_DOCUMENT"


# ==============================================================================
# TEMPLATE IDENTIFIERS
# ==============================================================================

class TemplateKind(str, Enum):
    """Template form, derived from the identifier extension"""
    COMPILED = "compiled"
    SOURCE = "source"


@dataclass(frozen=True)
class TemplateIdentifier:
    """A template resource name plus its extension-derived kind."""
    path: str
    kind: TemplateKind

    @property
    def name(self) -> str:
        return Path(self.path).stem

    @classmethod
    def parse(
        cls,
        identifier: str,
        source_extension: str = ".source",
        compiled_extension: str = ".compiled"
    ) -> "TemplateIdentifier":
        """
        Classify a template identifier by extension.

        Pure string inspection; the file system is never consulted.

        Raises:
            UnsupportedTemplateFormat: If the extension is neither source nor compiled
        """
        text = str(identifier)
        if text.endswith(compiled_extension):
            return cls(path=text, kind=TemplateKind.COMPILED)
        if text.endswith(source_extension):
            return cls(path=text, kind=TemplateKind.SOURCE)
        raise UnsupportedTemplateFormat(
            f"Unsupported template extension for '{text}' "
            f"(expected '{compiled_extension}' or '{source_extension}')",
            template=text,
        )


# ==============================================================================
# EXPORT FORMATS
# ==============================================================================

class ExportFormat(str, Enum):
    """Supported output document encodings"""
    PDF = "pdf"
    PDF_STREAM = "pdf_stream"
    XML_DUMP = "xml"
    XLSX = "xlsx"
    DOCX = "docx"
    PPTX = "pptx"

    @property
    def extension(self) -> str:
        return _FORMAT_EXTENSIONS[self]

    @property
    def media_type(self) -> str:
        return _FORMAT_MEDIA_TYPES[self]


_FORMAT_EXTENSIONS = {
    ExportFormat.PDF: ".pdf",
    ExportFormat.PDF_STREAM: ".pdf",
    ExportFormat.XML_DUMP: ".xml",
    ExportFormat.XLSX: ".xlsx",
    ExportFormat.DOCX: ".docx",
    ExportFormat.PPTX: ".pptx",
}

_FORMAT_MEDIA_TYPES = {
    ExportFormat.PDF: "application/pdf",
    ExportFormat.PDF_STREAM: "application/pdf",
    ExportFormat.XML_DUMP: "application/xml",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ExportFormat.PPTX: "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}


# ==============================================================================
# TEMPLATE MODEL
# ==============================================================================

@dataclass(frozen=True)
class ParameterDefinition:
    """Parameter declared by a template"""
    name: str
    required: bool = False
    default: Any = None
    description: str = ""


@dataclass(frozen=True)
class FieldDefinition:
    """Field read from every data row"""
    name: str
    type: Optional[str] = None
    column: Optional[str] = None
    xpath: Optional[str] = None

    @property
    def source_key(self) -> str:
        """Row key, column or attribute the value is read from."""
        return self.column or self.name

    @property
    def xpath_expression(self) -> str:
        """XPath, relative to the selected node, for XML sources."""
        return self.xpath or self.name


@dataclass(frozen=True)
class VariableDefinition:
    """Variable accumulated over the detail rows"""
    name: str
    expression: str
    calculation: str = "nothing"


@dataclass(frozen=True)
class QueryDefinition:
    """Query the engine runs itself (SQL on a connection, XPath on a document)"""
    language: str
    text: str


@dataclass(frozen=True)
class ElementDefinition:
    """Text element of a band"""
    name: str
    label: str = ""
    expression: Optional[str] = None
    text: Optional[str] = None
    pattern: Optional[str] = None


@dataclass(frozen=True)
class PageSettings:
    rows_per_page: int = 40
    orientation: str = "portrait"


@dataclass(frozen=True)
class StyleSettings:
    font: str = "Helvetica"
    font_size: float = 9
    table_style: Optional[str] = None


@dataclass(frozen=True)
class CompiledTemplate:
    """
    Engine-ready, immutable template.

    ``expressions`` maps ``"<section>.<name>"`` keys (``title``, ``detail``,
    ``summary``, ``variables``) to compiled expression callables. They are
    rebuilt from the definition on load and take no part in equality.
    """
    name: str
    description: str = ""
    parameters: Tuple[ParameterDefinition, ...] = ()
    fields: Tuple[FieldDefinition, ...] = ()
    variables: Tuple[VariableDefinition, ...] = ()
    query: Optional[QueryDefinition] = None
    page: PageSettings = field(default_factory=PageSettings)
    style: StyleSettings = field(default_factory=StyleSettings)
    title: Tuple[ElementDefinition, ...] = ()
    detail: Tuple[ElementDefinition, ...] = ()
    summary: Tuple[ElementDefinition, ...] = ()
    expressions: Mapping[str, Callable[..., Any]] = field(default_factory=dict, compare=False, repr=False)

    def expression(self, section: str, name: str) -> Optional[Callable[..., Any]]:
        return self.expressions.get(f"{section}.{name}")

    def to_definition(self) -> Dict[str, Any]:
        """Convert to the plain dictionary form used by source and compiled files."""
        definition: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "parameters": [_drop_none(vars(p)) for p in self.parameters],
            "fields": [_drop_none(vars(f)) for f in self.fields],
            "variables": [vars(v).copy() for v in self.variables],
            "page": vars(self.page).copy(),
            "style": _drop_none(vars(self.style)),
            "bands": {
                "title": [_drop_none(vars(e)) for e in self.title],
                "detail": [_drop_none(vars(e)) for e in self.detail],
                "summary": [_drop_none(vars(e)) for e in self.summary],
            },
        }
        if self.query is not None:
            definition["query"] = vars(self.query).copy()
        return definition


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


# ==============================================================================
# POPULATED REPORT MODEL
# ==============================================================================

@dataclass(frozen=True)
class PrintElement:
    """Evaluated band element: raw value plus its display text"""
    name: str
    label: str
    value: Any
    text: str


@dataclass(frozen=True)
class PrintRow:
    number: int
    cells: Tuple[PrintElement, ...]

    def value(self, name: str) -> Any:
        for cell in self.cells:
            if cell.name == name:
                return cell.value
        raise KeyError(name)


@dataclass(frozen=True)
class PrintPage:
    number: int
    rows: Tuple[PrintRow, ...]


@dataclass(frozen=True)
class PopulatedReport:
    """
    Filled report, read-only after creation.

    Carries no reference to the data source it was filled from, so it can be
    exported any number of times to any format.
    """
    name: str
    parameters: Mapping[str, Any]
    title: Tuple[PrintElement, ...]
    column_headers: Tuple[str, ...]
    pages: Tuple[PrintPage, ...]
    summary: Tuple[PrintElement, ...]
    variables: Mapping[str, Any]
    page: PageSettings = field(default_factory=PageSettings)
    style: StyleSettings = field(default_factory=StyleSettings)

    @property
    def row_count(self) -> int:
        return sum(len(page.rows) for page in self.pages)

    @property
    def rows(self) -> List[PrintRow]:
        return [row for page in self.pages for row in page.rows]

    @property
    def column_names(self) -> Tuple[str, ...]:
        if not self.pages or not self.pages[0].rows:
            return ()
        return tuple(cell.name for cell in self.pages[0].rows[0].cells)


# ==============================================================================
# ROW SOURCE INTERFACE
# ==============================================================================

class IRowSource(ABC):
    """
    Abstract interface for row-by-row engine data sources.

    Each record is exposed as a mapping from field key to value.
    """

    kind: str = "rows"

    @abstractmethod
    def __iter__(self) -> Iterator[Mapping[str, Any]]:
        """Yield the remaining records."""
        pass


# ==============================================================================
# EXPORTER INTERFACE
# ==============================================================================

ExportOutput = Union[bytes, str, BinaryIO]


class IExporter(ABC):
    """
    Abstract interface for exporters.

    Each exporter handles one ExportFormat and self-registers with the
    ExporterRegistry.

    Example:
        @register_exporter(ExportFormat.DOCX)
        class DocxExporter(IExporter):
            def export(self, report):
                # Implementation
    """

    export_format: ExportFormat
    configuration_class: type = type(None)

    def __init__(self, configuration: Optional[Any] = None):
        """
        Initialize exporter with configuration.

        Args:
            configuration: Format-specific configuration, defaults applied when None
        """
        if configuration is None and self.configuration_class is not type(None):
            configuration = self.configuration_class()
        self.configuration = configuration

    @abstractmethod
    def export(self, report: PopulatedReport) -> ExportOutput:
        """
        Export a populated report.

        Args:
            report: Report to export, never mutated

        Returns:
            Bytes, a string or a binary stream depending on the format

        Raises:
            ExportError: If rendering fails
        """
        pass


# ==============================================================================
# SINK INTERFACE
# ==============================================================================

class ISink(ABC):
    """Abstract interface for destinations of exported documents."""

    @abstractmethod
    def write(self, data: ExportOutput, destination: Union[str, Path]) -> Path:
        """
        Write exported output to a destination.

        Raises:
            SinkWriteError: If the write fails
        """
        pass
