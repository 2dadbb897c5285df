"""
Report filler.

Binds a compiled template to an engine data source and parameters,
producing an immutable PopulatedReport.
"""

from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple
import time

from jinja2 import Undefined
from lxml import etree
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from modules.reporting.core.exceptions import FillError
from modules.reporting.core.interfaces import (
    XML_DATA_DOCUMENT,
    CompiledTemplate,
    ElementDefinition,
    IRowSource,
    PopulatedReport,
    PrintElement,
    PrintPage,
    PrintRow,
)
from modules.reporting.data_sources.row_sources import CursorRowSource
from modules.reporting.templates.compiler import coerce_value
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


def fill(
    template: CompiledTemplate,
    source: Any = None,
    params: Optional[Mapping[str, Any]] = None
) -> PopulatedReport:
    """
    Fill a template.

    Args:
        template: Compiled template
        source: Row source, live connection, or None (as returned by adapt)
        params: Parameter map (optional)

    Returns:
        PopulatedReport holding every evaluated row

    Raises:
        FillError: If a required parameter is missing, a field cannot be read,
            the template query fails or an expression cannot be evaluated
    """
    start_time = time.time()
    parameters = _resolve_parameters(template, dict(params or {}))
    variables = _VariableState(template)

    title = _evaluate_band(template, "title", template.title, {
        "F": {}, "P": parameters, "V": variables.snapshot(), "REPORT_COUNT": 0,
    })

    rows: List[PrintRow] = []
    for number, record in enumerate(_records(template, source, parameters), start=1):
        fields = _read_fields(template, record, number)
        context = {"F": fields, "P": parameters, "V": variables.snapshot(), "REPORT_COUNT": number}
        variables.update(context, number)
        context["V"] = variables.snapshot()
        rows.append(PrintRow(number=number, cells=_evaluate_band(template, "detail", template.detail, context, number)))

    summary = _evaluate_band(template, "summary", template.summary, {
        "F": {}, "P": parameters, "V": variables.snapshot(), "REPORT_COUNT": len(rows),
    })

    report = PopulatedReport(
        name=template.name,
        parameters=MappingProxyType(parameters),
        title=title,
        column_headers=tuple(element.label or element.name for element in template.detail),
        pages=_paginate(rows, template.page.rows_per_page),
        summary=summary,
        variables=MappingProxyType(variables.snapshot()),
        page=template.page,
        style=template.style,
    )

    fill_time = (time.time() - start_time) * 1000
    logger.info(f"Filled '{template.name}': {report.row_count} rows, {len(report.pages)} pages in {fill_time:.2f}ms")
    return report


# ==============================================================================
# PARAMETERS AND FIELDS
# ==============================================================================

def _resolve_parameters(template: CompiledTemplate, params: Dict[str, Any]) -> Dict[str, Any]:
    for parameter in template.parameters:
        if parameter.name in params:
            continue
        if parameter.default is not None:
            params[parameter.name] = parameter.default
        elif parameter.required:
            raise FillError(
                f"Required parameter '{parameter.name}' missing for template '{template.name}'",
                template=template.name,
            )
        else:
            params[parameter.name] = None
    return params


def _read_fields(template: CompiledTemplate, record: Mapping[str, Any], number: int) -> Dict[str, Any]:
    if not template.fields:
        return dict(record)

    fields: Dict[str, Any] = {}
    for field_def in template.fields:
        try:
            raw = record[field_def.source_key]
        except KeyError as e:
            raise FillError(
                f"Field '{field_def.source_key}' not found in row {number} of template '{template.name}'",
                template=template.name,
            ) from e

        try:
            fields[field_def.name] = coerce_value(raw, field_def.type)
        except (TypeError, ValueError, ArithmeticError) as e:
            raise FillError(
                f"Cannot convert field '{field_def.name}' value {raw!r} to {field_def.type} "
                f"in row {number} of template '{template.name}'",
                template=template.name,
            ) from e
    return fields


# ==============================================================================
# RECORD SOURCES
# ==============================================================================

def _records(template: CompiledTemplate, source: Any, params: Dict[str, Any]) -> Iterator[Mapping[str, Any]]:
    if isinstance(source, IRowSource):
        records: Iterable[Mapping[str, Any]] = source
    elif source is not None:
        records = _query_connection(template, source, params)
    elif template.query is not None and template.query.language == "xpath" and params.get(XML_DATA_DOCUMENT) is not None:
        records = _query_document(template, params[XML_DATA_DOCUMENT])
    else:
        return iter(())

    return _guarded(template, records)


def _guarded(template: CompiledTemplate, records: Iterable[Mapping[str, Any]]) -> Iterator[Mapping[str, Any]]:
    iterator = iter(records)
    while True:
        try:
            record = next(iterator)
        except StopIteration:
            return
        except FillError:
            raise
        except Exception as e:
            raise FillError(f"Reading data for template '{template.name}' failed: {e}", template=template.name) from e
        yield record


def _query_connection(template: CompiledTemplate, connection: Any, params: Dict[str, Any]) -> Iterable[Mapping[str, Any]]:
    if template.query is None or template.query.language != "sql":
        logger.warning(f"Template '{template.name}' has no SQL query; a connection source yields no rows")
        return ()

    if not hasattr(connection, "execute"):
        raise FillError(
            f"Unsupported data source for template '{template.name}': {type(connection).__name__}",
            template=template.name,
        )

    statement = text(template.query.text)
    bind_names = list(statement.compile().params)
    missing = [name for name in bind_names if name not in params]
    if missing:
        raise FillError(
            f"Query of template '{template.name}' needs parameters {missing}",
            template=template.name,
        )

    try:
        result = connection.execute(statement, {name: params[name] for name in bind_names})
    except SQLAlchemyError as e:
        raise FillError(f"Query of template '{template.name}' failed: {e}", template=template.name) from e

    return CursorRowSource(result)


def _query_document(template: CompiledTemplate, document: Any) -> Iterator[Mapping[str, Any]]:
    try:
        nodes = document.xpath(template.query.text)
    except (etree.XPathError, AttributeError) as e:
        raise FillError(f"XPath query of template '{template.name}' failed: {e}", template=template.name) from e

    if not isinstance(nodes, list):
        nodes = [nodes]

    for node in nodes:
        if template.fields:
            yield {f.source_key: _xpath_value(template, node, f.xpath_expression) for f in template.fields}
        else:
            yield {child.tag: child.text for child in node if isinstance(child.tag, str)}


def _xpath_value(template: CompiledTemplate, node: Any, expression: str) -> Any:
    try:
        result = node.xpath(expression)
    except etree.XPathError as e:
        raise FillError(
            f"Invalid field XPath '{expression}' in template '{template.name}': {e}",
            template=template.name,
        ) from e

    if isinstance(result, list):
        if not result:
            return None
        result = result[0]
    if isinstance(result, etree._Element):
        return result.text
    if isinstance(result, str):
        return str(result)
    return result


# ==============================================================================
# VARIABLES
# ==============================================================================

class _VariableState:
    """Running variable values for one fill."""

    def __init__(self, template: CompiledTemplate):
        self.template = template
        self.values: Dict[str, Any] = {}
        self._counts: Dict[str, int] = {}
        self._sums: Dict[str, Any] = {}
        for variable in template.variables:
            self.values[variable.name] = 0 if variable.calculation == "count" else None
            self._counts[variable.name] = 0
            self._sums[variable.name] = None

    def snapshot(self) -> Dict[str, Any]:
        return dict(self.values)

    def update(self, context: Dict[str, Any], number: int) -> None:
        for variable in self.template.variables:
            context["V"] = self.snapshot()
            value = _evaluate(self.template, "variables", variable.name, context, number)
            self._accumulate(variable.name, variable.calculation, value, number)

    def _accumulate(self, name: str, calculation: str, value: Any, number: int) -> None:
        if calculation == "nothing":
            self.values[name] = value
            return
        if calculation == "first":
            if number == 1:
                self.values[name] = value
            return
        if value is None:
            return

        try:
            if calculation == "count":
                self._counts[name] += 1
                self.values[name] = self._counts[name]
            elif calculation in ("sum", "average"):
                self._counts[name] += 1
                total = self._sums[name]
                self._sums[name] = value if total is None else total + value
                if calculation == "sum":
                    self.values[name] = self._sums[name]
                else:
                    self.values[name] = self._sums[name] / self._counts[name]
            elif calculation == "lowest":
                current = self.values[name]
                self.values[name] = value if current is None else min(current, value)
            elif calculation == "highest":
                current = self.values[name]
                self.values[name] = value if current is None else max(current, value)
        except (TypeError, ArithmeticError) as e:
            raise FillError(
                f"Cannot calculate {calculation} of variable '{name}' at row {number} "
                f"of template '{self.template.name}': {e}",
                template=self.template.name,
            ) from e


# ==============================================================================
# EXPRESSIONS
# ==============================================================================

def _evaluate(
    template: CompiledTemplate,
    section: str,
    name: str,
    context: Dict[str, Any],
    number: Optional[int] = None
) -> Any:
    where = f"'{section}.{name}' in template '{template.name}'"
    if number is not None:
        where += f" at row {number}"

    expression = template.expression(section, name)
    if expression is None:
        raise FillError(f"No compiled expression for {where}", template=template.name)

    try:
        value = expression(**context)
    except Exception as e:
        raise FillError(f"Cannot evaluate {where}: {e}", template=template.name) from e

    if isinstance(value, Undefined):
        raise FillError(f"Expression {where} is undefined", template=template.name)
    return value


def _evaluate_band(
    template: CompiledTemplate,
    band: str,
    elements: Tuple[ElementDefinition, ...],
    context: Dict[str, Any],
    number: Optional[int] = None
) -> Tuple[PrintElement, ...]:
    printed = []
    for element in elements:
        if element.expression is None:
            value = element.text
        else:
            value = _evaluate(template, band, element.name, context, number)

        try:
            display = _format(value, element.pattern)
        except (ValueError, TypeError) as e:
            raise FillError(
                f"Pattern {element.pattern!r} cannot format '{band}.{element.name}' "
                f"value {value!r} in template '{template.name}'",
                template=template.name,
            ) from e

        printed.append(PrintElement(name=element.name, label=element.label, value=value, text=display))
    return tuple(printed)


def _format(value: Any, pattern: Optional[str]) -> str:
    if value is None:
        return ""
    if pattern:
        return pattern.format(value)
    return str(value)


def _paginate(rows: List[PrintRow], rows_per_page: int) -> Tuple[PrintPage, ...]:
    if not rows:
        return (PrintPage(number=1, rows=()),)

    return tuple(
        PrintPage(number=index + 1, rows=tuple(rows[start:start + rows_per_page]))
        for index, start in enumerate(range(0, len(rows), rows_per_page))
    )
