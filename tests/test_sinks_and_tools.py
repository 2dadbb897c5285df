"""
Tests for sinks and the batch recompile tool.
"""

from io import BytesIO

import pytest

from modules.reporting.core.exceptions import DirectoryNotFoundError, SinkWriteError
from modules.reporting.core.interfaces import ExportFormat
from modules.reporting.sinks import FileSink, build_download_response
from modules.reporting.templates.loader import load_compiled
from modules.reporting.tools import list_template_files, recompile, recompile_all


def test_file_sink_writes_bytes_text_and_streams(tmp_path):
    sink = FileSink(tmp_path)

    assert sink.write(b"\x00\x01", "a/b.bin").read_bytes() == b"\x00\x01"
    assert sink.write("héllo", "c.xml").read_text(encoding="utf-8") == "héllo"
    assert sink.write(BytesIO(b"stream"), tmp_path / "d.pdf").read_bytes() == b"stream"


def test_file_sink_surfaces_write_failure(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(SinkWriteError) as exc_info:
        FileSink().write(b"data", blocker / "report.pdf")

    assert exc_info.value.destination == str(blocker / "report.pdf")
    assert isinstance(exc_info.value.__cause__, OSError)


def test_download_response():
    response = build_download_response("<a/>", ExportFormat.XML_DUMP, "dump.xml")

    assert response.body == b"<a/>"
    assert response.media_type == "application/xml"
    assert response.headers["content-disposition"] == 'attachment; filename="dump.xml"'


def test_download_response_default_filename():
    response = build_download_response(BytesIO(b"%PDF"), ExportFormat.PDF_STREAM)

    assert response.body == b"%PDF"
    assert 'filename="report.pdf"' in response.headers["content-disposition"]


def test_list_template_files(templates_dir):
    (templates_dir / "notes.txt").write_text("x", encoding="utf-8")

    names = [p.name for p in list_template_files(templates_dir)]

    assert names == ["invoice.source", "orders.source", "sales.source"]
    assert list_template_files(templates_dir, "txt") == [templates_dir / "notes.txt"]
    assert list_template_files(templates_dir, ".compiled") == []


def test_list_template_files_missing_directory(tmp_path):
    with pytest.raises(DirectoryNotFoundError):
        list_template_files(tmp_path / "missing")


def test_recompile_single_file(templates_dir):
    artifact = recompile(templates_dir / "invoice.source")

    assert artifact == templates_dir / "invoice.compiled"
    assert load_compiled(artifact).name == "invoice"


def test_recompile_all_reports_each_file(templates_dir):
    (templates_dir / "broken.source").write_text("name: [broken", encoding="utf-8")

    batch = recompile_all(templates_dir)

    assert len(batch.results) == 4
    assert [r.source.name for r in batch.failed] == ["broken.source"]
    assert batch.failed[0].error_message
    assert len(batch.succeeded) == 3
    assert not batch.success
    assert (templates_dir / "sales.compiled").exists()


def test_recompile_all_missing_directory(tmp_path):
    with pytest.raises(DirectoryNotFoundError):
        recompile_all(tmp_path / "missing")


class _DroppingStream:
    """Binary stream that fails after its first chunk."""

    def __init__(self):
        self.reads = 0

    def read(self, size=-1):
        self.reads += 1
        if self.reads == 1:
            return b"partial"
        raise OSError("connection dropped")


def test_file_sink_leaves_no_partial_file(tmp_path):
    sink = FileSink(tmp_path)

    with pytest.raises(SinkWriteError):
        sink.write(_DroppingStream(), "report.pdf")

    assert list(tmp_path.iterdir()) == []


def test_file_sink_keeps_previous_file_on_failure(tmp_path):
    sink = FileSink(tmp_path)
    sink.write(b"previous", "report.pdf")

    with pytest.raises(SinkWriteError):
        sink.write(_DroppingStream(), "report.pdf")

    assert (tmp_path / "report.pdf").read_bytes() == b"previous"
    assert [p.name for p in tmp_path.iterdir()] == ["report.pdf"]


def test_file_sink_destination_is_directory(tmp_path):
    (tmp_path / "report.pdf").mkdir()

    with pytest.raises(SinkWriteError):
        FileSink(tmp_path).write(b"data", "report.pdf")

    assert [p.name for p in tmp_path.iterdir()] == ["report.pdf"]


def test_recompile_all_records_unwritable_artifact(templates_dir):
    (templates_dir / "invoice.compiled").mkdir()

    batch = recompile_all(templates_dir)

    assert len(batch.results) == 3
    assert [r.source.name for r in batch.failed] == ["invoice.source"]
    assert (templates_dir / "orders.compiled").is_file()
    assert (templates_dir / "sales.compiled").is_file()


def test_recompile_all_records_undecodable_source(templates_dir):
    (templates_dir / "latin.source").write_bytes(b"name: caf\xe9\n")

    batch = recompile_all(templates_dir)

    assert len(batch.results) == 4
    assert [r.source.name for r in batch.failed] == ["latin.source"]
    assert len(batch.succeeded) == 3
