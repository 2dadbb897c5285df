"""
Report Engine - Main orchestrator.

Coordinates the template resolver, data source adapter, filler, exporters
and sink to produce report documents.
"""

from pathlib import Path
from typing import Any, Mapping, Optional, Union
import time

from modules.reporting.config import ReportingConfig, get_reporting_config
from modules.reporting.core.exceptions import ExportError, ReportingException
from modules.reporting.core.interfaces import (
    CompiledTemplate,
    ExportFormat,
    ExportOutput,
    ISink,
    PopulatedReport,
    TemplateIdentifier,
)
from modules.reporting.core.registry import ExporterRegistry
from modules.reporting.data_sources.adapter import adapt
from modules.reporting.data_sources.variants import DataSourceVariant
from modules.reporting.filler import fill
from modules.reporting.sinks.file_sink import FileSink
from modules.reporting.templates.loader import TemplateResolver
from shared.utils.logger import log_error, setup_logger

logger = setup_logger(__name__)


class ReportEngine:
    """
    Main report engine.

    Orchestrates the reporting pipeline:
    1. Resolve the template
    2. Adapt the data source
    3. Fill the template
    4. Export to a format
    5. Hand the document to the sink

    Holds only its injected collaborators; every call is independent.
    """

    def __init__(
        self,
        resolver: Optional[TemplateResolver] = None,
        config: Optional[ReportingConfig] = None,
        sink: Optional[ISink] = None
    ):
        """
        Initialize report engine.

        Args:
            resolver: Template resolver (optional, built from config)
            config: Reporting configuration (optional)
            sink: Document sink (optional, defaults to a FileSink on the output dir)
        """
        self.config = config or get_reporting_config()
        self.resolver = resolver or TemplateResolver(config=self.config)
        self.sink = sink or FileSink(self.config.output_dir)

        logger.info("✅ Initialized ReportEngine")

    def resolve(self, identifier: Union[str, Path, TemplateIdentifier]) -> CompiledTemplate:
        """Resolve a template identifier (see TemplateResolver.resolve)."""
        return self.resolver.resolve(identifier)

    def populate(
        self,
        template: Union[str, Path, TemplateIdentifier, CompiledTemplate],
        variant: DataSourceVariant,
        params: Optional[Mapping[str, Any]] = None
    ) -> PopulatedReport:
        """
        Resolve, adapt and fill.

        Args:
            template: Template identifier or an already resolved template
            variant: Data source
            params: Report parameters (optional)

        Returns:
            PopulatedReport
        """
        logger.debug(f"Populating {getattr(template, 'name', template)} from {getattr(variant, 'kind', None)} data source")

        if not isinstance(template, CompiledTemplate):
            template = self.resolve(template)

        source, parameters = adapt(variant, params)
        return fill(template, source, parameters)

    def export(
        self,
        report: PopulatedReport,
        export_format: Union[ExportFormat, str],
        configuration: Optional[Any] = None
    ) -> ExportOutput:
        """
        Export a populated report.

        Args:
            report: Report to export
            export_format: Target format
            configuration: Format-specific configuration (optional)

        Returns:
            Bytes, a string or a binary stream depending on the format

        Raises:
            ExportError: If the format is unknown or rendering fails
        """
        try:
            exporter = ExporterRegistry.get(ExportFormat(export_format), configuration)
        except ValueError as e:
            raise ExportError(f"Unsupported export format: {export_format}", export_format=str(export_format)) from e

        return exporter.export(report)

    def export_to_file(
        self,
        report: PopulatedReport,
        export_format: Union[ExportFormat, str],
        destination: Union[str, Path, None] = None,
        configuration: Optional[Any] = None
    ) -> Path:
        """
        Export a report and write it through the sink.

        Args:
            report: Report to export
            export_format: Target format
            destination: Target path (defaults to the report name plus the format extension)
            configuration: Format-specific configuration (optional)

        Returns:
            Path written

        Raises:
            ExportError: If rendering fails
            SinkWriteError: If the document cannot be written
        """
        data = self.export(report, export_format, configuration)
        if destination is None:
            destination = f"{report.name}{ExportFormat(export_format).extension}"
        return self.sink.write(data, destination)

    def generate(
        self,
        template: Union[str, Path, TemplateIdentifier, CompiledTemplate],
        variant: DataSourceVariant,
        export_format: Union[ExportFormat, str],
        destination: Union[str, Path, None] = None,
        params: Optional[Mapping[str, Any]] = None,
        configuration: Optional[Any] = None
    ) -> Path:
        """
        Run the whole pipeline: resolve, adapt, fill, export, write.

        Any failure aborts the pipeline and propagates; nothing partial is written.

        Returns:
            Path of the written document
        """
        start_time = time.time()

        try:
            report = self.populate(template, variant, params)
            path = self.export_to_file(report, export_format, destination, configuration)
        except ReportingException as e:
            log_error(logger, e, context=f"❌ Report generation for '{template}' failed")
            raise

        generation_time = (time.time() - start_time) * 1000
        logger.info(f"✅ Generation completed in {generation_time:.2f}ms")
        return path
