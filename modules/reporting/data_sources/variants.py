"""
Data source variants.

A tagged union over the five data shapes a report can be filled from.
Exactly one shape is active per variant; callers pick it explicitly through
the named constructors.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence


class DataSourceKind(str, Enum):
    """Data source shape"""
    ROW_COLLECTION = "row_collection"
    CURSOR = "cursor"
    XML_TREE = "xml_tree"
    LIVE_CONNECTION = "live_connection"
    FLAT_MAP = "flat_map"


@dataclass(frozen=True)
class DataSourceVariant:
    """
    One data source shape plus its value.

    Example:
        >>> DataSourceVariant.row_collection([{"amount": 10}, {"amount": 20}])
        >>> DataSourceVariant.cursor(connection.execute(text("SELECT amount FROM lines")))
        >>> DataSourceVariant.xml_tree(parse_xml("<invoice>...</invoice>"))
        >>> DataSourceVariant.live_connection(engine.connect())
        >>> DataSourceVariant.flat_map({"name": "Alice"})
    """
    kind: DataSourceKind
    value: Any

    @classmethod
    def row_collection(cls, rows: Sequence[Any]) -> "DataSourceVariant":
        """Ordered in-memory rows (mappings or objects with attributes)."""
        return cls(DataSourceKind.ROW_COLLECTION, rows)

    @classmethod
    def cursor(cls, cursor: Iterable[Any]) -> "DataSourceVariant":
        """Forward-only result cursor (SQLAlchemy Result or DB-API cursor)."""
        return cls(DataSourceKind.CURSOR, cursor)

    @classmethod
    def xml_tree(cls, document: Any) -> "DataSourceVariant":
        """Parsed XML document (lxml element or element tree)."""
        return cls(DataSourceKind.XML_TREE, document)

    @classmethod
    def live_connection(cls, connection: Any) -> "DataSourceVariant":
        """Open database connection the template query runs against."""
        return cls(DataSourceKind.LIVE_CONNECTION, connection)

    @classmethod
    def flat_map(cls, values: Mapping[str, Any]) -> "DataSourceVariant":
        """Parameter name to value mapping, no row iteration."""
        return cls(DataSourceKind.FLAT_MAP, values)
