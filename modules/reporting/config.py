"""
Reporting module configuration.

Centralizes all configuration for standalone usage.
"""

from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field

from modules.reporting.core.exceptions import ConfigurationException


@dataclass
class ReportingConfig:
    """
    Configuration for the reporting module.

    Paths are stored as given; nothing here touches the file system.
    """

    # Path configuration
    project_root: Path = field(default_factory=Path.cwd)
    templates_dir: Optional[Path] = None
    output_dir: Optional[Path] = None

    # Template identifiers
    source_extension: str = ".source"
    compiled_extension: str = ".compiled"

    # Runtime settings
    cache_templates: bool = False
    default_rows_per_page: int = 40

    def __post_init__(self):
        """Initialize default paths if not provided."""
        self.project_root = Path(self.project_root)

        if self.templates_dir is None:
            self.templates_dir = self.project_root / "reports" / "templates"

        if self.output_dir is None:
            self.output_dir = self.project_root / "reports" / "output"

        self.templates_dir = Path(self.templates_dir)
        self.output_dir = Path(self.output_dir)
        self.source_extension = _normalize_extension(self.source_extension)
        self.compiled_extension = _normalize_extension(self.compiled_extension)

        if self.source_extension == self.compiled_extension:
            raise ConfigurationException(
                f"Source and compiled template extensions must differ "
                f"(both are '{self.source_extension}')"
            )

        if self.default_rows_per_page < 1:
            raise ConfigurationException("default_rows_per_page must be at least 1")

    @classmethod
    def from_settings(cls) -> "ReportingConfig":
        """Build configuration from environment settings (pydantic-settings)."""
        from shared.utils.config import get_settings

        settings = get_settings()
        return cls(
            templates_dir=Path(settings.REPORTS_TEMPLATES_DIR),
            output_dir=Path(settings.REPORTS_OUTPUT_DIR),
            cache_templates=settings.REPORTS_CACHE_TEMPLATES,
            default_rows_per_page=settings.REPORTS_ROWS_PER_PAGE,
        )


def _normalize_extension(extension: str) -> str:
    return extension if extension.startswith(".") else f".{extension}"


# Global configuration instance
_config_instance: Optional[ReportingConfig] = None


def get_reporting_config() -> ReportingConfig:
    """
    Get global reporting config instance.

    Returns:
        ReportingConfig instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = ReportingConfig.from_settings()
    return _config_instance


def set_reporting_config(config: Optional[ReportingConfig]) -> None:
    """
    Set global reporting config instance.

    Args:
        config: ReportingConfig instance, or None to fall back to settings again
    """
    global _config_instance
    _config_instance = config
