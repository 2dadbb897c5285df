"""
Template compiler.

Turns a YAML template definition into an engine-ready CompiledTemplate.
Expressions are Jinja2 expressions compiled in a sandboxed environment and
evaluated against F (row fields), P (parameters), V (variables) and
REPORT_COUNT (1-based row number).
"""

from dataclasses import fields as dataclass_fields
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

import yaml
from jinja2 import StrictUndefined, TemplateSyntaxError
from jinja2.sandbox import SandboxedEnvironment

from modules.reporting.core.exceptions import TemplateCompileError
from modules.reporting.core.interfaces import (
    CompiledTemplate,
    ElementDefinition,
    FieldDefinition,
    PageSettings,
    ParameterDefinition,
    QueryDefinition,
    StyleSettings,
    VariableDefinition,
)
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


CALCULATIONS = ("nothing", "sum", "count", "average", "lowest", "highest", "first")
QUERY_LANGUAGES = ("sql", "xpath")
ORIENTATIONS = ("portrait", "landscape")
BANDS = ("title", "detail", "summary")
FIELD_TYPES = ("str", "int", "float", "decimal", "bool")

# Plain YAML scalars a compiled artifact can hold (keys starting with "$" are reserved)
_VALUE_TYPES = (str, int, float, bool, date, datetime)

_TOP_LEVEL_KEYS = {
    "name", "description", "parameters", "fields", "variables",
    "query", "page", "style", "bands",
}

_expression_env = SandboxedEnvironment(undefined=StrictUndefined)


def compile_expression(source: str) -> Callable[..., Any]:
    """
    Compile a single expression.

    Raises:
        TemplateSyntaxError: If Jinja2 cannot parse the expression
    """
    return _expression_env.compile_expression(str(source), undefined_to_none=False)


def coerce_value(value: Any, type_name: Optional[str]) -> Any:
    """Convert a raw field value to the declared field type."""
    if value is None or type_name is None:
        return value
    if type_name == "str":
        return str(value)
    if type_name == "int":
        return int(value)
    if type_name == "float":
        return float(value)
    if type_name == "decimal":
        return Decimal(str(value))
    if type_name == "bool":
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "y")
        return bool(value)
    raise ValueError(f"Unknown field type: {type_name}")


# ==============================================================================
# DEFINITION -> COMPILED TEMPLATE
# ==============================================================================

def build_template(
    definition: Dict[str, Any],
    default_name: str = "template",
    default_rows_per_page: int = 40
) -> CompiledTemplate:
    """
    Build a CompiledTemplate from a plain definition dictionary.

    Args:
        definition: Parsed template definition
        default_name: Name used when the definition has none
        default_rows_per_page: Page size used when the definition has none

    Returns:
        CompiledTemplate with all expressions compiled

    Raises:
        TemplateCompileError: If the definition is malformed
    """
    if not isinstance(definition, dict):
        raise TemplateCompileError(
            f"Template definition must be a mapping, got {type(definition).__name__}",
            template=default_name,
        )

    name = str(definition.get("name") or default_name)
    _check_values(definition, "template", name)

    unknown = set(definition) - _TOP_LEVEL_KEYS
    if unknown:
        raise TemplateCompileError(f"Unknown template keys: {sorted(unknown)}", template=name)

    parameters = _parse_entries(definition, "parameters", ParameterDefinition, name)
    fields = _parse_entries(definition, "fields", FieldDefinition, name)
    variables = _parse_entries(definition, "variables", VariableDefinition, name)

    for field_def in fields:
        if field_def.type is not None and field_def.type not in FIELD_TYPES:
            raise TemplateCompileError(
                f"Field '{field_def.name}' has unknown type '{field_def.type}'", template=name
            )

    for variable in variables:
        if variable.calculation not in CALCULATIONS:
            raise TemplateCompileError(
                f"Variable '{variable.name}' has unknown calculation '{variable.calculation}'",
                template=name,
            )

    query = None
    if definition.get("query") is not None:
        query = _parse_section(definition["query"], "query", QueryDefinition, name)
        if query.language not in QUERY_LANGUAGES:
            raise TemplateCompileError(f"Unknown query language '{query.language}'", template=name)

    page_values = dict(definition.get("page") or {})
    page_values.setdefault("rows_per_page", default_rows_per_page)
    page = _parse_section(page_values, "page", PageSettings, name)
    if not isinstance(page.rows_per_page, int) or page.rows_per_page < 1:
        raise TemplateCompileError("page.rows_per_page must be a positive integer", template=name)
    if page.orientation not in ORIENTATIONS:
        raise TemplateCompileError(f"Unknown page orientation '{page.orientation}'", template=name)

    style = _parse_section(definition.get("style") or {}, "style", StyleSettings, name)

    bands = definition.get("bands") or {}
    if not isinstance(bands, dict):
        raise TemplateCompileError("'bands' must be a mapping", template=name)
    unknown_bands = set(bands) - set(BANDS)
    if unknown_bands:
        raise TemplateCompileError(f"Unknown bands: {sorted(unknown_bands)}", template=name)

    elements = {band: _parse_elements(bands.get(band), band, name) for band in BANDS}

    expressions: Dict[str, Callable[..., Any]] = {}
    for variable in variables:
        expressions[f"variables.{variable.name}"] = _compile(variable.expression, f"variables.{variable.name}", name)
    for band, band_elements in elements.items():
        for element in band_elements:
            if element.expression is not None:
                key = f"{band}.{element.name}"
                expressions[key] = _compile(element.expression, key, name)

    return CompiledTemplate(
        name=name,
        description=str(definition.get("description") or ""),
        parameters=parameters,
        fields=fields,
        variables=variables,
        query=query,
        page=page,
        style=style,
        title=elements["title"],
        detail=elements["detail"],
        summary=elements["summary"],
        expressions=expressions,
    )


def _compile(source: str, key: str, template_name: str) -> Callable[..., Any]:
    try:
        return compile_expression(source)
    except TemplateSyntaxError as e:
        raise TemplateCompileError(
            f"Invalid expression for '{key}' in template '{template_name}': {e}",
            template=template_name,
        ) from e


def _parse_section(values: Any, section: str, cls: Type, template_name: str):
    if not isinstance(values, dict):
        raise TemplateCompileError(f"'{section}' must be a mapping", template=template_name)

    allowed = {f.name for f in dataclass_fields(cls)}
    unknown = set(values) - allowed
    if unknown:
        raise TemplateCompileError(
            f"Unknown keys in '{section}': {sorted(unknown)}", template=template_name
        )

    try:
        return cls(**values)
    except TypeError as e:
        raise TemplateCompileError(f"Invalid '{section}': {e}", template=template_name) from e


def _parse_entries(definition: Dict[str, Any], section: str, cls: Type, template_name: str) -> Tuple:
    entries = definition.get(section) or []
    if not isinstance(entries, list):
        raise TemplateCompileError(f"'{section}' must be a list", template=template_name)

    parsed = tuple(
        _parse_section(entry, f"{section}[{index}]", cls, template_name)
        for index, entry in enumerate(entries)
    )
    _check_unique([entry.name for entry in parsed], section, template_name)
    return parsed


def _parse_elements(entries: Any, band: str, template_name: str) -> Tuple[ElementDefinition, ...]:
    if entries is None:
        return ()
    if not isinstance(entries, list):
        raise TemplateCompileError(f"Band '{band}' must be a list", template=template_name)

    elements: List[ElementDefinition] = []
    for index, entry in enumerate(entries):
        if isinstance(entry, str):
            # Shorthand: a bare string is an expression
            entry = {"expression": entry}
        values = dict(entry) if isinstance(entry, dict) else entry
        if isinstance(values, dict):
            values.setdefault("name", values.get("label") or f"{band}_{index + 1}")
        element = _parse_section(values, f"bands.{band}[{index}]", ElementDefinition, template_name)
        if (element.expression is None) == (element.text is None):
            raise TemplateCompileError(
                f"Element '{element.name}' in band '{band}' needs exactly one of 'expression' or 'text'",
                template=template_name,
            )
        elements.append(element)

    _check_unique([e.name for e in elements], f"bands.{band}", template_name)
    return tuple(elements)


def _check_values(value: Any, where: str, template_name: str) -> None:
    """Reject values a compiled artifact cannot store."""
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str) or key.startswith("$"):
                raise TemplateCompileError(f"Invalid key {key!r} in '{where}'", template=template_name)
            _check_values(item, f"{where}.{key}", template_name)
    elif isinstance(value, list):
        for index, item in enumerate(value):
            _check_values(item, f"{where}[{index}]", template_name)
    elif value is not None and not isinstance(value, _VALUE_TYPES):
        raise TemplateCompileError(
            f"Unsupported {type(value).__name__} value in '{where}'", template=template_name
        )


def _check_unique(names: List[str], section: str, template_name: str) -> None:
    seen = set()
    for name in names:
        if name in seen:
            raise TemplateCompileError(f"Duplicate name '{name}' in '{section}'", template=template_name)
        seen.add(name)


# ==============================================================================
# SOURCE FILES
# ==============================================================================

def compile_template_string(
    text: str,
    default_name: str = "template",
    default_rows_per_page: int = 40
) -> CompiledTemplate:
    """
    Compile template source text.

    Raises:
        TemplateCompileError: On invalid YAML or a malformed definition
    """
    try:
        definition = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise TemplateCompileError(f"Invalid YAML in template '{default_name}': {e}", template=default_name) from e

    return build_template(definition, default_name, default_rows_per_page)


def compile_source(path: Path, default_rows_per_page: int = 40) -> CompiledTemplate:
    """
    Compile a template source file.

    Args:
        path: Path to the source template
        default_rows_per_page: Page size used when the template has none

    Returns:
        CompiledTemplate

    Raises:
        TemplateCompileError: If the file cannot be read or compiled
    """
    path = Path(path)
    logger.debug(f"Compiling template source: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateCompileError(f"Cannot read template source '{path}': {e}", template=str(path)) from e

    template = compile_template_string(text, path.stem, default_rows_per_page)
    logger.info(f"Compiled template '{template.name}' from {path}")
    return template
