"""
Maintenance tools for reporting module.
"""

from modules.reporting.tools.recompile import (
    BatchCompileResult,
    FileCompileResult,
    list_template_files,
    recompile,
    recompile_all,
)

__all__ = [
    "BatchCompileResult",
    "FileCompileResult",
    "list_template_files",
    "recompile",
    "recompile_all",
]
