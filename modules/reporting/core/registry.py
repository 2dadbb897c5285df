"""
Registry pattern implementation for exporters.

Exporters self-register with the registry.
Zero core code changes when adding new formats.
"""

from typing import Any, Callable, Dict, List, Optional

from modules.reporting.core.interfaces import ExportFormat, IExporter
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class ExporterRegistry:
    """
    Registry for exporters.

    Exporters self-register using @register_exporter decorator.
    """

    _REGISTRY: Dict[ExportFormat, Callable[..., IExporter]] = {}

    @classmethod
    def register(
        cls,
        export_format: ExportFormat,
        factory_func: Callable[..., IExporter]
    ) -> None:
        """
        Register an exporter factory function.

        Args:
            export_format: Format the exporter produces
            factory_func: Function that takes a configuration and returns IExporter
        """
        if export_format in cls._REGISTRY:
            logger.warning(f"Exporter '{export_format.value}' already registered, overwriting")

        cls._REGISTRY[export_format] = factory_func
        logger.debug(f"Registered exporter: {export_format.value}")

    @classmethod
    def get(cls, export_format: ExportFormat, configuration: Optional[Any] = None) -> IExporter:
        """
        Get exporter instance from registry.

        Args:
            export_format: Format to export to
            configuration: Format-specific configuration (optional)

        Returns:
            IExporter instance

        Raises:
            ValueError: If no exporter is registered for the format
        """
        export_format = ExportFormat(export_format)
        factory_func = cls._REGISTRY.get(export_format)

        if not factory_func:
            available = [f.value for f in cls._REGISTRY]
            raise ValueError(
                f"Exporter '{export_format.value}' not registered. "
                f"Available: {available}. "
                f"Make sure the exporter module has been imported."
            )

        logger.debug(f"Creating exporter instance: {export_format.value}")
        return factory_func(configuration)

    @classmethod
    def list_formats(cls) -> List[ExportFormat]:
        """Get list of registered formats"""
        return list(cls._REGISTRY.keys())

    @classmethod
    def is_registered(cls, export_format: ExportFormat) -> bool:
        """Check if a format has an exporter"""
        return export_format in cls._REGISTRY


def register_exporter(export_format: ExportFormat):
    """
    Decorator to register an exporter.

    Usage:
        @register_exporter(ExportFormat.XLSX)
        class XlsxExporter(IExporter):
            def export(self, report):
                # Implementation
    """
    def decorator(cls):
        def factory(configuration=None):
            return cls(configuration)
        cls.export_format = export_format
        ExporterRegistry.register(export_format, factory)
        return cls
    return decorator
