"""
Batch template recompilation.

Compiles every source template in a directory to a compiled artifact,
reporting the outcome per file.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from modules.reporting.config import ReportingConfig, get_reporting_config
from modules.reporting.core.exceptions import DirectoryNotFoundError, ReportingException
from modules.reporting.templates.compiler import compile_source
from modules.reporting.templates.loader import write_compiled
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass
class FileCompileResult:
    """Outcome of compiling one source template"""
    source: Path
    success: bool
    output: Optional[Path] = None
    error_message: Optional[str] = None


@dataclass
class BatchCompileResult:
    """Outcome of a batch recompile"""
    directory: Path
    results: List[FileCompileResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[FileCompileResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[FileCompileResult]:
        return [r for r in self.results if not r.success]

    @property
    def success(self) -> bool:
        return not self.failed


def list_template_files(directory: Union[str, Path], extension: Optional[str] = None) -> List[Path]:
    """
    List files in a directory with the given extension.

    Args:
        directory: Directory to scan (not recursive)
        extension: File extension, with or without the dot (defaults to the source extension)

    Returns:
        Sorted list of matching files, empty if none match

    Raises:
        DirectoryNotFoundError: If the directory does not exist
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise DirectoryNotFoundError(f"Template directory not found: {directory}", path=str(directory))

    extension = extension or get_reporting_config().source_extension
    if not extension.startswith("."):
        extension = f".{extension}"

    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == extension)


def recompile(path: Union[str, Path], config: Optional[ReportingConfig] = None) -> Path:
    """
    Compile one source template next to itself.

    Returns:
        Path of the compiled artifact

    Raises:
        TemplateCompileError: If the source cannot be compiled
    """
    path = Path(path)
    config = config or get_reporting_config()
    template = compile_source(path, config.default_rows_per_page)
    return write_compiled(template, path.with_suffix(config.compiled_extension))


def recompile_all(
    directory: Union[str, Path],
    extension: Optional[str] = None,
    config: Optional[ReportingConfig] = None
) -> BatchCompileResult:
    """
    Recompile every source template in a directory.

    A failing file is logged and recorded; the remaining files are still compiled.

    Raises:
        DirectoryNotFoundError: If the directory does not exist
    """
    config = config or get_reporting_config()
    batch = BatchCompileResult(directory=Path(directory))

    for path in list_template_files(directory, extension or config.source_extension):
        try:
            output = recompile(path, config)
            batch.results.append(FileCompileResult(source=path, success=True, output=output))
        except ReportingException as e:
            logger.error(f"❌ Failed to compile {path.name}: {e}")
            batch.results.append(FileCompileResult(source=path, success=False, error_message=str(e)))

    logger.info(f"✅ Recompiled {len(batch.succeeded)}/{len(batch.results)} templates in {batch.directory}")
    return batch
