"""
Template management for reporting module.
"""

from modules.reporting.templates.compiler import (
    compile_expression,
    compile_source,
    compile_template_string,
    build_template,
)
from modules.reporting.templates.loader import (
    TemplateResolver,
    load_compiled,
    write_compiled,
)

__all__ = [
    "TemplateResolver",
    "compile_expression",
    "compile_source",
    "compile_template_string",
    "build_template",
    "load_compiled",
    "write_compiled",
]
