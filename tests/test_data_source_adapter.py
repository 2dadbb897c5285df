"""
Tests for the data source adapter and row sources.
"""

import sqlite3
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace

import pytest

from modules.reporting.core.exceptions import InvalidDataSource, XmlParseError
from modules.reporting.core.interfaces import XML_DATA_DOCUMENT
from modules.reporting.data_sources import (
    CursorRowSource,
    DataSourceKind,
    DataSourceVariant,
    RowCollectionSource,
    adapt,
    parse_xml,
)


def test_row_collection_wraps_rows_and_keeps_params():
    rows = [{"amount": 10}, {"amount": 20}]
    source, params = adapt(DataSourceVariant.row_collection(rows), {"title": "Q1"})

    assert isinstance(source, RowCollectionSource)
    assert source.rows is rows
    assert params == {"title": "Q1"}


def test_row_collection_reads_object_attributes():
    source, _ = adapt(DataSourceVariant.row_collection([SimpleNamespace(amount=5)]))

    record = next(iter(source))
    assert record["amount"] == 5
    with pytest.raises(KeyError):
        record["missing"]


def test_cursor_wraps_cursor_and_keeps_params():
    cursor = iter([{"amount": 1}])
    source, params = adapt(DataSourceVariant.cursor(cursor), {"title": "Q1"})

    assert isinstance(source, CursorRowSource)
    assert source.cursor is cursor
    assert params == {"title": "Q1"}


def test_cursor_maps_dbapi_tuples_by_description():
    conn = sqlite3.connect(":memory:")
    cursor = conn.execute("SELECT 10 AS amount, 'a' AS code")

    source, _ = adapt(DataSourceVariant.cursor(cursor))

    assert [dict(r) for r in source] == [{"amount": 10, "code": "a"}]
    assert list(source) == []
    conn.close()


def test_xml_tree_becomes_reserved_parameter():
    document = parse_xml("<orders><order/></orders>")
    caller_params = {"title": "Q1"}

    source, params = adapt(DataSourceVariant.xml_tree(document), caller_params)

    assert source is None
    assert params[XML_DATA_DOCUMENT] is document
    assert params["title"] == "Q1"
    assert XML_DATA_DOCUMENT not in caller_params


def test_xml_tree_overwrites_existing_reserved_key():
    document = parse_xml("<a/>")
    _, params = adapt(DataSourceVariant.xml_tree(document), {XML_DATA_DOCUMENT: "stale"})

    assert params[XML_DATA_DOCUMENT] is document


def test_live_connection_passes_through(sales_engine):
    with sales_engine.connect() as conn:
        source, params = adapt(DataSourceVariant.live_connection(conn), {"region": "north"})

        assert source is conn
        assert params == {"region": "north"}


def test_flat_map_becomes_parameters():
    source, params = adapt(DataSourceVariant.flat_map({"name": "Alice"}))

    assert source is None
    assert params == {"name": "Alice"}


def test_flat_map_replaces_supplied_parameters():
    _, params = adapt(DataSourceVariant.flat_map({"name": "Alice"}), {"other": 1})

    assert params == {"name": "Alice"}


def test_missing_variant_rejected():
    with pytest.raises(InvalidDataSource):
        adapt(None)


def test_missing_kind_rejected():
    with pytest.raises(InvalidDataSource):
        adapt(DataSourceVariant(kind=None, value=[]))


def test_unknown_kind_rejected():
    with pytest.raises(InvalidDataSource):
        adapt(SimpleNamespace(kind="spreadsheet", value=[]))


def test_kind_given_as_string_is_accepted():
    source, _ = adapt(SimpleNamespace(kind="row_collection", value=[]))

    assert isinstance(source, RowCollectionSource)
    assert DataSourceKind("row_collection") is DataSourceKind.ROW_COLLECTION


def test_parse_xml_rejects_malformed_documents():
    with pytest.raises(XmlParseError):
        parse_xml("<orders><order></orders>")


def test_parse_xml_accepts_bytes():
    tree = parse_xml(b"<?xml version='1.0' encoding='UTF-8'?><a><b>1</b></a>")

    assert tree.xpath("/a/b")[0].text == "1"


def test_parse_xml_from_many_threads():
    documents = [f"<n><v>{i}</v></n>" for i in range(32)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        trees = list(pool.map(parse_xml, documents))

    assert [tree.xpath("/n/v")[0].text for tree in trees] == [str(i) for i in range(32)]
