"""
Shared fixtures for reporting tests.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from sqlalchemy import create_engine, text

import modules.reporting  # noqa: F401  (registers exporters)
from modules.reporting.config import ReportingConfig, set_reporting_config
from modules.reporting.templates.loader import TemplateResolver


INVOICE_SOURCE = """\
name: invoice
description: Invoice lines
parameters:
  - name: title
    required: true
  - name: currency
    default: EUR
fields:
  - name: amount
    type: int
variables:
  - name: total
    expression: F.amount
    calculation: sum
  - name: lines
    expression: F.amount
    calculation: count
page:
  rows_per_page: 2
bands:
  title:
    - name: heading
      expression: P.title
    - name: currency
      label: Currency
      expression: P.currency
  detail:
    - name: amount
      label: Amount
      expression: F.amount
    - name: running
      label: Running total
      expression: V.total
  summary:
    - name: total
      label: Total
      expression: V.total
      pattern: "{:.2f}"
    - name: lines
      label: Lines
      expression: V.lines
"""

SQL_SOURCE = """\
name: sales
parameters:
  - name: region
    required: true
fields:
  - name: product
    type: str
  - name: amount
    type: int
query:
  language: sql
  text: "SELECT product, amount FROM sales WHERE region = :region ORDER BY id"
variables:
  - name: total
    expression: F.amount
    calculation: sum
bands:
  detail:
    - name: product
      label: Product
      expression: F.product
    - name: amount
      label: Amount
      expression: F.amount
  summary:
    - name: total
      label: Total
      expression: V.total
"""

XML_SOURCE = """\
name: orders
fields:
  - name: customer
    xpath: "@customer"
  - name: amount
    type: float
    xpath: amount
query:
  language: xpath
  text: /orders/order
variables:
  - name: highest
    expression: F.amount
    calculation: highest
bands:
  detail:
    - name: customer
      label: Customer
      expression: F.customer
    - name: amount
      label: Amount
      expression: F.amount
  summary:
    - name: highest
      label: Highest
      expression: V.highest
"""

ORDERS_XML = """\
<orders>
  <order customer="Acme"><amount>12.5</amount></order>
  <order customer="Globex"><amount>40</amount></order>
</orders>
"""

AMOUNT_ROWS = [{"amount": 10}, {"amount": 20}, {"amount": 30}]


@pytest.fixture
def templates_dir(tmp_path):
    """Directory holding the sample source templates."""
    directory = tmp_path / "templates"
    directory.mkdir()
    (directory / "invoice.source").write_text(INVOICE_SOURCE, encoding="utf-8")
    (directory / "sales.source").write_text(SQL_SOURCE, encoding="utf-8")
    (directory / "orders.source").write_text(XML_SOURCE, encoding="utf-8")
    return directory


@pytest.fixture
def reporting_config(tmp_path, templates_dir):
    config = ReportingConfig(
        project_root=tmp_path,
        templates_dir=templates_dir,
        output_dir=tmp_path / "output",
    )
    set_reporting_config(config)
    yield config
    set_reporting_config(None)


@pytest.fixture
def resolver(reporting_config):
    return TemplateResolver(config=reporting_config)


@pytest.fixture
def invoice_template(resolver):
    return resolver.resolve("invoice.source")


@pytest.fixture
def amount_rows():
    return [dict(row) for row in AMOUNT_ROWS]


@pytest.fixture
def sales_engine():
    """In-memory SQLite database with a small sales table."""
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE sales (id INTEGER PRIMARY KEY, region TEXT, product TEXT, amount INTEGER)"))
        conn.execute(
            text("INSERT INTO sales (region, product, amount) VALUES (:region, :product, :amount)"),
            [
                {"region": "north", "product": "Widget", "amount": 5},
                {"region": "north", "product": "Gadget", "amount": 7},
                {"region": "south", "product": "Gizmo", "amount": 11},
            ],
        )
    yield engine
    engine.dispose()
