"""
Tests for the ReportEngine facade and the command-line interface.
"""

import json
import logging

import pytest
from lxml import etree

from modules.reporting.__main__ import main
from modules.reporting.core.exceptions import (
    ExportError,
    FillError,
    SinkWriteError,
    UnsupportedTemplateFormat,
)
from modules.reporting.core.interfaces import ExportFormat, ISink
from modules.reporting.data_sources import DataSourceVariant
from modules.reporting.engine import ReportEngine

from conftest import AMOUNT_ROWS


class _MemorySink(ISink):
    def __init__(self):
        self.written = {}

    def write(self, data, destination):
        self.written[str(destination)] = data
        return destination


class _FailingSink(ISink):
    def write(self, data, destination):
        raise SinkWriteError("disk full", destination=str(destination))


def test_populate_from_identifier(reporting_config, amount_rows):
    engine = ReportEngine(config=reporting_config)

    report = engine.populate("invoice.source", DataSourceVariant.row_collection(amount_rows), {"title": "Q1"})

    assert report.row_count == 3


def test_populate_accepts_resolved_template(reporting_config, invoice_template, amount_rows):
    engine = ReportEngine(config=reporting_config)

    report = engine.populate(invoice_template, DataSourceVariant.row_collection(amount_rows), {"title": "Q1"})

    assert report.name == "invoice"


def test_export_unknown_format(reporting_config, invoice_template):
    engine = ReportEngine(config=reporting_config)
    report = engine.populate(invoice_template, DataSourceVariant.flat_map({"title": "Q1"}))

    with pytest.raises(ExportError):
        engine.export(report, "rtf")


def test_generate_writes_through_sink(reporting_config, amount_rows):
    sink = _MemorySink()
    engine = ReportEngine(config=reporting_config, sink=sink)

    engine.generate(
        "invoice.source",
        DataSourceVariant.row_collection(amount_rows),
        ExportFormat.XML_DUMP,
        params={"title": "Q1"},
    )

    dump = sink.written["invoice.xml"]
    root = etree.fromstring(dump.encode("utf-8"))
    assert len([f for f in root.iter("field") if f.get("name") == "amount"]) == 3


def test_generate_default_file_sink(reporting_config, amount_rows):
    engine = ReportEngine(config=reporting_config)

    path = engine.generate(
        "invoice.source",
        DataSourceVariant.row_collection(amount_rows),
        "pdf",
        params={"title": "Q1"},
    )

    assert path == reporting_config.output_dir / "invoice.pdf"
    assert path.read_bytes().startswith(b"%PDF")


def test_generate_surfaces_sink_failure(reporting_config, amount_rows):
    engine = ReportEngine(config=reporting_config, sink=_FailingSink())

    with pytest.raises(SinkWriteError):
        engine.generate("invoice.source", DataSourceVariant.row_collection(amount_rows), "pdf", params={"title": "Q1"})


def test_generate_aborts_on_fill_error(reporting_config, amount_rows):
    sink = _MemorySink()
    engine = ReportEngine(config=reporting_config, sink=sink)

    with pytest.raises(FillError):
        engine.generate("invoice.source", DataSourceVariant.row_collection(amount_rows), "pdf")

    assert sink.written == {}


def test_generate_rejects_unknown_template_extension(reporting_config):
    engine = ReportEngine(config=reporting_config, sink=_MemorySink())

    with pytest.raises(UnsupportedTemplateFormat):
        engine.generate("invoice.txt", DataSourceVariant.flat_map({}), "pdf")


def test_cli_render_rows(reporting_config, tmp_path):
    rows_file = tmp_path / "rows.json"
    rows_file.write_text(json.dumps(AMOUNT_ROWS), encoding="utf-8")
    output = tmp_path / "out" / "invoice.xlsx"

    exit_code = main([
        "render", "invoice.source",
        "--format", "xlsx",
        "--output", str(output),
        "--rows", str(rows_file),
        "--param", "title=Q1",
    ])

    assert exit_code == 0
    assert output.exists()


def test_cli_render_reports_errors(reporting_config, tmp_path):
    exit_code = main([
        "render", "invoice.source",
        "--format", "pdf",
        "--output", str(tmp_path / "invoice.pdf"),
    ])

    assert exit_code == 1


def test_cli_rejects_bad_param(reporting_config, tmp_path):
    exit_code = main([
        "render", "invoice.source",
        "--format", "pdf",
        "--output", str(tmp_path / "invoice.pdf"),
        "--param", "novalue",
    ])

    assert exit_code == 1


def test_cli_recompile(templates_dir):
    assert main(["recompile", str(templates_dir)]) == 0
    assert (templates_dir / "invoice.compiled").exists()


def test_generate_logs_failure_context(reporting_config, amount_rows, caplog):
    engine = ReportEngine(config=reporting_config, sink=_MemorySink())

    with caplog.at_level(logging.ERROR):
        with pytest.raises(FillError):
            engine.generate("invoice.source", DataSourceVariant.row_collection(amount_rows), "pdf")

    assert "Report generation for 'invoice.source' failed" in caplog.text
    assert "FillError" in caplog.text
    assert "template=invoice" in caplog.text
