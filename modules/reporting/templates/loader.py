"""
Template resolver implementation.

Turns a template identifier into a ready-to-fill CompiledTemplate, compiling
source templates on demand or loading pre-compiled artifacts.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional, Union
from pathlib import Path
import hashlib
import json

from modules.reporting.core.exceptions import TemplateCompileError, TemplateLoadError
from modules.reporting.core.interfaces import CompiledTemplate, TemplateIdentifier, TemplateKind
from modules.reporting.config import ReportingConfig, get_reporting_config
from modules.reporting.templates.compiler import build_template, compile_source
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


ARTIFACT_FORMAT = "reportkit-compiled"
ARTIFACT_VERSION = 2


# ==============================================================================
# COMPILED ARTIFACTS
# ==============================================================================

def _encode_value(value: Any) -> Any:
    """Tag dates and datetimes so they survive the JSON round trip."""
    if isinstance(value, datetime):
        return {"$datetime": value.isoformat()}
    if isinstance(value, date):
        return {"$date": value.isoformat()}
    if isinstance(value, dict):
        return {key: _encode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode_value(item) for item in value]
    return value


def _decode_value(value: Any) -> Any:
    if isinstance(value, dict):
        if len(value) == 1:
            key, item = next(iter(value.items()))
            if key == "$datetime":
                return datetime.fromisoformat(item)
            if key == "$date":
                return date.fromisoformat(item)
        return {key: _decode_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_decode_value(item) for item in value]
    return value


def _checksum(definition: Dict[str, Any]) -> str:
    canonical = json.dumps(definition, sort_keys=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def write_compiled(template: CompiledTemplate, destination: Union[str, Path]) -> Path:
    """
    Serialize a compiled template to an artifact file.

    Args:
        template: Template to serialize
        destination: Artifact path

    Returns:
        Path written

    Raises:
        TemplateCompileError: If the template holds unserializable values or
            the artifact cannot be written
    """
    destination = Path(destination)
    definition = _encode_value(template.to_definition())

    try:
        envelope = {
            "format": ARTIFACT_FORMAT,
            "version": ARTIFACT_VERSION,
            "checksum": _checksum(definition),
            "template": definition,
        }
    except (TypeError, ValueError) as e:
        raise TemplateCompileError(
            f"Template '{template.name}' cannot be serialized: {e}", template=template.name
        ) from e

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with open(destination, "w", encoding="utf-8") as f:
            json.dump(envelope, f, indent=2, sort_keys=True)
    except OSError as e:
        logger.error(f"❌ Failed to write compiled template {destination}: {e}")
        raise TemplateCompileError(
            f"Cannot write compiled template '{destination}': {e}", template=template.name
        ) from e

    logger.info(f"✅ Wrote compiled template '{template.name}' to {destination}")
    return destination


def load_compiled(path: Union[str, Path]) -> CompiledTemplate:
    """
    Load a compiled template artifact.

    Raises:
        TemplateLoadError: If the artifact is missing, corrupt or version-incompatible
    """
    path = Path(path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            envelope = json.load(f)
    except FileNotFoundError as e:
        raise TemplateLoadError(f"Compiled template not found: {path}", template=str(path)) from e
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TemplateLoadError(f"Cannot read compiled template '{path}': {e}", template=str(path)) from e

    if not isinstance(envelope, dict) or envelope.get("format") != ARTIFACT_FORMAT:
        raise TemplateLoadError(f"Not a compiled template artifact: {path}", template=str(path))

    version = envelope.get("version")
    if version != ARTIFACT_VERSION:
        raise TemplateLoadError(
            f"Compiled template '{path}' has version {version}, expected {ARTIFACT_VERSION}; recompile it",
            template=str(path),
        )

    definition = envelope.get("template")
    if not isinstance(definition, dict) or envelope.get("checksum") != _checksum(definition):
        raise TemplateLoadError(f"Compiled template '{path}' is corrupt (checksum mismatch)", template=str(path))

    try:
        return build_template(_decode_value(definition), path.stem)
    except (TypeError, ValueError) as e:
        raise TemplateLoadError(f"Compiled template '{path}' holds an invalid value: {e}", template=str(path)) from e
    except TemplateCompileError as e:
        raise TemplateLoadError(f"Compiled template '{path}' is corrupt: {e}", template=str(path)) from e


# ==============================================================================
# RESOLVER
# ==============================================================================

class TemplateResolver:
    """
    Template resolver.

    Dispatches on the identifier extension: compiled artifacts are loaded,
    source templates are compiled, anything else is rejected before any
    file-system access.
    """

    def __init__(
        self,
        templates_dir: Optional[Path] = None,
        config: Optional[ReportingConfig] = None,
        cache_templates: Optional[bool] = None
    ):
        """
        Initialize template resolver.

        Args:
            templates_dir: Directory relative identifiers are resolved against (optional)
            config: Reporting configuration (optional, defaults to global config)
            cache_templates: Memoize resolved templates by path (optional, defaults to config)
        """
        self.config = config or get_reporting_config()
        self.templates_dir = Path(templates_dir) if templates_dir is not None else self.config.templates_dir
        self.cache_templates = self.config.cache_templates if cache_templates is None else cache_templates

        # Cache for resolved templates
        self._cache: Dict[Path, CompiledTemplate] = {}

    def identify(self, identifier: Union[str, Path]) -> TemplateIdentifier:
        """Classify an identifier without touching the file system."""
        return TemplateIdentifier.parse(
            str(identifier),
            source_extension=self.config.source_extension,
            compiled_extension=self.config.compiled_extension,
        )

    def path_for(self, identifier: TemplateIdentifier) -> Path:
        path = Path(identifier.path)
        if not path.is_absolute():
            path = self.templates_dir / path
        return path

    def resolve(self, identifier: Union[str, Path, TemplateIdentifier]) -> CompiledTemplate:
        """
        Resolve a template identifier to a compiled template.

        Args:
            identifier: Template identifier, e.g. "invoice.source" or "invoice.compiled"

        Returns:
            CompiledTemplate ready to fill

        Raises:
            UnsupportedTemplateFormat: If the extension is not recognized
            TemplateLoadError: If a compiled artifact cannot be loaded
            TemplateCompileError: If a source template cannot be compiled
        """
        if not isinstance(identifier, TemplateIdentifier):
            identifier = self.identify(identifier)

        path = self.path_for(identifier)

        if self.cache_templates and path in self._cache:
            logger.debug(f"Loading template '{path}' from cache")
            return self._cache[path]

        if identifier.kind is TemplateKind.COMPILED:
            logger.debug(f"Loading compiled template: {path}")
            template = load_compiled(path)
        else:
            template = compile_source(path, self.config.default_rows_per_page)

        if self.cache_templates:
            self._cache[path] = template

        return template

    def compile_to_file(
        self,
        source: Union[str, Path],
        destination: Optional[Union[str, Path]] = None
    ) -> Path:
        """
        Compile a source template and write the compiled artifact.

        Args:
            source: Source template identifier or path
            destination: Artifact path (defaults to the source path with the compiled extension)

        Returns:
            Path of the written artifact
        """
        identifier = self.identify(source)
        if identifier.kind is not TemplateKind.SOURCE:
            raise TemplateCompileError(f"Not a source template: {source}", template=str(source))

        source_path = self.path_for(identifier)
        template = compile_source(source_path, self.config.default_rows_per_page)

        if destination is None:
            destination = source_path.with_suffix(self.config.compiled_extension)

        return write_compiled(template, destination)

    def reload(self) -> None:
        """Drop memoized templates."""
        self._cache.clear()
        logger.info("Cleared template cache")
