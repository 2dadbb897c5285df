"""
Row-by-row engine data sources.
"""

from collections.abc import Mapping as MappingABC
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Sequence

from modules.reporting.core.interfaces import IRowSource


class _AttributeRecord(MappingABC):
    """Read-only mapping view over an object's attributes."""

    def __init__(self, obj: Any):
        self._obj = obj

    def __getitem__(self, key: str) -> Any:
        try:
            return getattr(self._obj, key)
        except AttributeError:
            raise KeyError(key) from None

    def __iter__(self) -> Iterator[str]:
        return iter(k for k in dir(self._obj) if not k.startswith("_"))

    def __len__(self) -> int:
        return sum(1 for _ in self)


class RowCollectionSource(IRowSource):
    """
    Wraps an in-memory sequence of rows.

    Mapping rows are read by key, any other object by attribute. The
    sequence itself is not copied or modified.
    """

    kind = "row_collection"

    def __init__(self, rows: Sequence[Any]):
        self.rows = rows if rows is not None else []

    def __iter__(self) -> Iterator[Mapping[str, Any]]:
        for row in self.rows:
            if isinstance(row, MappingABC):
                yield row
            else:
                yield _AttributeRecord(row)


class CursorRowSource(IRowSource):
    """
    Wraps a forward-only cursor.

    Rows are consumed as they are read; iterating an exhausted cursor
    yields nothing.
    """

    kind = "cursor"

    def __init__(self, cursor: Iterable[Any]):
        self.cursor = cursor
        self._column_names: Optional[List[str]] = None

    def __iter__(self) -> Iterator[Mapping[str, Any]]:
        for row in self.cursor:
            yield self._to_record(row)

    def _to_record(self, row: Any) -> Mapping[str, Any]:
        # SQLAlchemy Row
        mapping = getattr(row, "_mapping", None)
        if mapping is not None:
            return mapping

        if isinstance(row, MappingABC):
            return row

        # DB-API tuple row
        return dict(zip(self._names(), row))

    def _names(self) -> List[str]:
        if self._column_names is None:
            description = getattr(self.cursor, "description", None) or []
            self._column_names = [column[0] for column in description]
        return self._column_names
