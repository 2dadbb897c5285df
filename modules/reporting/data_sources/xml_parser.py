"""
XML parsing for XML tree data sources.
"""

from typing import Union

from lxml import etree

from modules.reporting.core.exceptions import XmlParseError
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


def parse_xml(xml: Union[str, bytes]) -> etree._ElementTree:
    """
    Parse XML content with lxml.

    Args:
        xml: XML string or bytes

    Returns:
        lxml element tree

    Raises:
        XmlParseError: If the content is not well-formed XML
    """
    data = xml.encode("utf-8") if isinstance(xml, str) else xml
    # lxml parsers must not be shared between threads
    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=True)
    try:
        return etree.fromstring(data, parser).getroottree()
    except etree.XMLSyntaxError as e:
        logger.error(f"Failed to parse XML: {e}")
        raise XmlParseError(f"Error parsing XML: {e}") from e
