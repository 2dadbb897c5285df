"""
File sink implementation.

Writes exported documents to the local file system.
"""

from pathlib import Path
from typing import Optional, Union
import os
import shutil
import tempfile

from modules.reporting.core.exceptions import SinkWriteError
from modules.reporting.core.interfaces import ExportOutput, ISink
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class FileSink(ISink):
    """
    Local file sink.

    Accepts bytes, text (written as UTF-8) or a readable binary stream.
    Write failures are raised as SinkWriteError, never swallowed, and
    leave no partial file at the destination.
    """

    def __init__(self, output_dir: Union[str, Path, None] = None):
        """
        Initialize file sink.

        Args:
            output_dir: Directory relative destinations are resolved against (optional)
        """
        self.output_dir = Path(output_dir) if output_dir is not None else None

    def write(self, data: ExportOutput, destination: Union[str, Path]) -> Path:
        path = Path(destination)
        if self.output_dir is not None and not path.is_absolute():
            path = self.output_dir / path

        # Written next to the destination, then moved into place
        temp_path: Optional[Path] = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "wb", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
            ) as f:
                temp_path = Path(f.name)
                if isinstance(data, str):
                    f.write(data.encode("utf-8"))
                elif isinstance(data, (bytes, bytearray)):
                    f.write(data)
                else:
                    shutil.copyfileobj(data, f)
                f.flush()
            os.replace(temp_path, path)
            temp_path = None
        except OSError as e:
            logger.error(f"❌ Failed to write {path}: {e}")
            raise SinkWriteError(f"Failed to write report to '{path}': {e}", destination=str(path)) from e
        finally:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)

        logger.info(f"✅ Wrote {path}")
        return path
