"""
Data sources for reporting module.

Adapts the supported data shapes for the fill step.
"""

from modules.reporting.data_sources.variants import DataSourceKind, DataSourceVariant
from modules.reporting.data_sources.row_sources import RowCollectionSource, CursorRowSource
from modules.reporting.data_sources.adapter import adapt
from modules.reporting.data_sources.xml_parser import parse_xml

__all__ = [
    "DataSourceKind",
    "DataSourceVariant",
    "RowCollectionSource",
    "CursorRowSource",
    "adapt",
    "parse_xml",
]
