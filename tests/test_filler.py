"""
Tests for filling templates from every data source shape.
"""

from decimal import Decimal

import pytest
from sqlalchemy import text

from modules.reporting.core.exceptions import FillError
from modules.reporting.core.interfaces import XML_DATA_DOCUMENT
from modules.reporting.data_sources import DataSourceVariant, adapt, parse_xml
from modules.reporting.filler import fill
from modules.reporting.templates.compiler import compile_template_string

from conftest import ORDERS_XML


def _fill(template, variant, params=None):
    source, parameters = adapt(variant, params)
    return fill(template, source, parameters)


def test_fill_row_collection(invoice_template, amount_rows):
    report = _fill(invoice_template, DataSourceVariant.row_collection(amount_rows), {"title": "Q1"})

    assert report.row_count == 3
    assert [row.value("amount") for row in report.rows] == [10, 20, 30]
    assert [row.value("running") for row in report.rows] == [10, 30, 60]
    assert report.column_headers == ("Amount", "Running total")
    assert report.column_names == ("amount", "running")
    assert report.variables["total"] == 60
    assert report.variables["lines"] == 3


def test_title_and_summary_bands(invoice_template, amount_rows):
    report = _fill(invoice_template, DataSourceVariant.row_collection(amount_rows), {"title": "Q1"})

    assert [e.text for e in report.title] == ["Q1", "EUR"]
    assert report.title[1].label == "Currency"
    assert [(e.name, e.text) for e in report.summary] == [("total", "60.00"), ("lines", "3")]


def test_rows_are_paginated(invoice_template, amount_rows):
    report = _fill(invoice_template, DataSourceVariant.row_collection(amount_rows), {"title": "Q1"})

    assert [len(page.rows) for page in report.pages] == [2, 1]
    assert [page.number for page in report.pages] == [1, 2]
    assert [row.number for row in report.rows] == [1, 2, 3]


def test_supplied_parameter_overrides_default(invoice_template):
    report = _fill(invoice_template, DataSourceVariant.row_collection([]), {"title": "Q1", "currency": "USD"})

    assert report.parameters["currency"] == "USD"
    assert report.title[1].text == "USD"


def test_missing_required_parameter(invoice_template, amount_rows):
    with pytest.raises(FillError, match="title"):
        _fill(invoice_template, DataSourceVariant.row_collection(amount_rows))


def test_empty_source_yields_one_empty_page(invoice_template):
    report = _fill(invoice_template, DataSourceVariant.row_collection([]), {"title": "Q1"})

    assert report.row_count == 0
    assert len(report.pages) == 1
    assert report.variables == {"total": None, "lines": 0}
    assert report.summary[0].text == ""


def test_exhausted_cursor_yields_empty_report(invoice_template):
    cursor = iter([{"amount": 1}, {"amount": 2}, {"amount": 3}])

    first = _fill(invoice_template, DataSourceVariant.cursor(cursor), {"title": "Q1"})
    second = _fill(invoice_template, DataSourceVariant.cursor(cursor), {"title": "Q1"})

    assert first.row_count == 3
    assert second.row_count == 0


def test_sqlalchemy_result_as_cursor(invoice_template, sales_engine):
    with sales_engine.connect() as conn:
        result = conn.execute(text("SELECT amount FROM sales ORDER BY id"))
        report = _fill(invoice_template, DataSourceVariant.cursor(result), {"title": "All"})

    assert [row.value("amount") for row in report.rows] == [5, 7, 11]


def test_live_connection_runs_template_query(resolver, sales_engine):
    template = resolver.resolve("sales.source")

    with sales_engine.connect() as conn:
        report = _fill(template, DataSourceVariant.live_connection(conn), {"region": "north"})

    assert [row.value("product") for row in report.rows] == ["Widget", "Gadget"]
    assert report.variables["total"] == 12


def test_live_connection_missing_bind_parameter(resolver, sales_engine):
    template = resolver.resolve("sales.source")

    with sales_engine.connect() as conn:
        with pytest.raises(FillError):
            _fill(template, DataSourceVariant.live_connection(conn))


def test_live_connection_query_failure_wrapped(sales_engine):
    template = compile_template_string(
        "name: broken\nquery:\n  language: sql\n  text: SELECT * FROM missing_table\n"
    )

    with sales_engine.connect() as conn:
        with pytest.raises(FillError, match="failed") as exc_info:
            _fill(template, DataSourceVariant.live_connection(conn))

    assert exc_info.value.__cause__ is not None


def test_xml_tree_runs_xpath_query(resolver):
    template = resolver.resolve("orders.source")
    document = parse_xml(ORDERS_XML)

    report = _fill(template, DataSourceVariant.xml_tree(document))

    assert [row.value("customer") for row in report.rows] == ["Acme", "Globex"]
    assert [row.value("amount") for row in report.rows] == [12.5, 40.0]
    assert report.variables["highest"] == 40.0
    assert report.parameters[XML_DATA_DOCUMENT] is document


def test_flat_map_fills_parameters_without_rows(invoice_template):
    report = _fill(invoice_template, DataSourceVariant.flat_map({"title": "Alice"}))

    assert report.row_count == 0
    assert report.title[0].text == "Alice"


def test_missing_field_in_row(invoice_template):
    with pytest.raises(FillError, match="amount"):
        _fill(invoice_template, DataSourceVariant.row_collection([{"total": 1}]), {"title": "Q1"})


def test_unconvertible_field_value(invoice_template):
    with pytest.raises(FillError, match="convert"):
        _fill(invoice_template, DataSourceVariant.row_collection([{"amount": "ten"}]), {"title": "Q1"})


def test_undefined_expression_reference():
    template = compile_template_string("name: x\nbands:\n  detail:\n    - F.nope\n")

    with pytest.raises(FillError, match="undefined"):
        fill(template, adapt(DataSourceVariant.row_collection([{"a": 1}]))[0], {})


def test_failing_cursor_wrapped_as_fill_error(invoice_template):
    def broken_cursor():
        yield {"amount": 1}
        raise RuntimeError("connection reset")

    with pytest.raises(FillError, match="connection reset"):
        _fill(invoice_template, DataSourceVariant.cursor(broken_cursor()), {"title": "Q1"})


@pytest.mark.parametrize("calculation, expected", [
    ("nothing", Decimal("3")),
    ("sum", Decimal("6")),
    ("count", 3),
    ("average", Decimal("2")),
    ("lowest", Decimal("1")),
    ("highest", Decimal("3")),
    ("first", Decimal("1")),
])
def test_variable_calculations(calculation, expected):
    template = compile_template_string(
        "name: calc\n"
        "fields:\n  - name: n\n    type: decimal\n"
        f"variables:\n  - name: v\n    expression: F.n\n    calculation: {calculation}\n"
    )

    report = fill(template, adapt(DataSourceVariant.row_collection([{"n": 1}, {"n": 2}, {"n": 3}]))[0], {})

    assert report.variables["v"] == expected


def test_report_is_read_only(invoice_template, amount_rows):
    report = _fill(invoice_template, DataSourceVariant.row_collection(amount_rows), {"title": "Q1"})

    with pytest.raises(TypeError):
        report.parameters["title"] = "changed"
    with pytest.raises(AttributeError):
        report.name = "changed"
