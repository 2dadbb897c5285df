"""
Data source adapter.

Normalizes the five data source shapes into the single contract the filler
takes: an engine data source (row source, connection or nothing) plus a
parameter map.
"""

from typing import Any, Dict, Mapping, Optional, Tuple

from modules.reporting.core.exceptions import InvalidDataSource
from modules.reporting.core.interfaces import XML_DATA_DOCUMENT
from modules.reporting.data_sources.row_sources import CursorRowSource, RowCollectionSource
from modules.reporting.data_sources.variants import DataSourceKind, DataSourceVariant
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


def adapt(
    variant: Optional[DataSourceVariant],
    params: Optional[Mapping[str, Any]] = None
) -> Tuple[Any, Dict[str, Any]]:
    """
    Adapt a data source variant for filling.

    Args:
        variant: Tagged data source
        params: Caller parameters (optional, never modified)

    Returns:
        (engine data source, parameters) where the data source is a row
        source, the live connection itself, or None

    Raises:
        InvalidDataSource: If the variant or its tag is absent
    """
    kind = getattr(variant, "kind", None)
    if variant is None or kind is None:
        raise InvalidDataSource("A data source variant with a kind is required")

    try:
        kind = DataSourceKind(kind)
    except ValueError as e:
        raise InvalidDataSource(f"Unknown data source kind: {kind!r}") from e

    params = dict(params or {})
    logger.debug(f"Adapting {kind.value} data source")

    if kind is DataSourceKind.ROW_COLLECTION:
        return RowCollectionSource(variant.value), params

    elif kind is DataSourceKind.CURSOR:
        return CursorRowSource(variant.value), params

    elif kind is DataSourceKind.XML_TREE:
        if XML_DATA_DOCUMENT in params:
            logger.debug(f"Overwriting existing '{XML_DATA_DOCUMENT}' parameter with the XML tree")
        params[XML_DATA_DOCUMENT] = variant.value
        return None, params

    elif kind is DataSourceKind.LIVE_CONNECTION:
        return variant.value, params

    elif kind is DataSourceKind.FLAT_MAP:
        if params:
            logger.warning("Flat map data source replaces the supplied parameters; ignoring them")
        return None, dict(variant.value or {})

    raise InvalidDataSource(f"Unhandled data source kind: {kind.value}")
