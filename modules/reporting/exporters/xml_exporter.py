"""
XML dump exporter.

Serializes the populated report structure (parameters, bands, pages, rows
and variables) as an XML document built with lxml.
"""

from dataclasses import dataclass
from typing import Any, Iterable

from lxml import etree

from modules.reporting.core.interfaces import (
    XML_DATA_DOCUMENT,
    ExportFormat,
    PopulatedReport,
    PrintElement,
)
from modules.reporting.core.registry import register_exporter
from modules.reporting.exporters.base import BaseExporter

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


@dataclass
class XmlExportConfiguration:
    """XML dump options"""
    pretty_print: bool = True
    include_parameters: bool = True


@register_exporter(ExportFormat.XML_DUMP)
class XmlExporter(BaseExporter):
    """
    XML dump exporter.

    Layout:
        <populatedReport name="..." rows="N" pages="P">
          <parameters><parameter name="...">value</parameter></parameters>
          <title><element name="..." label="...">text</element></title>
          <pages>
            <page number="1">
              <row number="1"><field name="..." label="...">text</field></row>
            </page>
          </pages>
          <summary>...</summary>
          <variables><variable name="...">value</variable></variables>
        </populatedReport>

    The XML document handed in as a data source parameter is never dumped.
    """

    configuration_class = XmlExportConfiguration

    def _render(self, report: PopulatedReport) -> str:
        root = etree.Element(
            "populatedReport",
            name=report.name,
            rows=str(report.row_count),
            pages=str(len(report.pages)),
        )

        if self.configuration.include_parameters:
            parameters = etree.SubElement(root, "parameters")
            for name in sorted(report.parameters):
                if name == XML_DATA_DOCUMENT:
                    continue
                self._value_element(parameters, "parameter", name, report.parameters[name])

        self._band(root, "title", report.title)

        pages = etree.SubElement(root, "pages")
        for page in report.pages:
            page_element = etree.SubElement(pages, "page", number=str(page.number))
            for row in page.rows:
                row_element = etree.SubElement(page_element, "row", number=str(row.number))
                for cell in row.cells:
                    field = etree.SubElement(row_element, "field", name=cell.name, label=cell.label)
                    field.text = cell.text

        self._band(root, "summary", report.summary)

        variables = etree.SubElement(root, "variables")
        for name, value in report.variables.items():
            self._value_element(variables, "variable", name, value)

        body = etree.tostring(root, encoding="unicode", pretty_print=self.configuration.pretty_print)
        return XML_DECLARATION + body

    def _band(self, root: etree._Element, tag: str, elements: Iterable[PrintElement]) -> None:
        band = etree.SubElement(root, tag)
        for element in elements:
            node = etree.SubElement(band, "element", name=element.name, label=element.label)
            node.text = element.text

    def _value_element(self, parent: etree._Element, tag: str, name: str, value: Any) -> None:
        node = etree.SubElement(parent, tag, name=name)
        if value is None:
            node.set("null", "true")
        else:
            node.text = str(value)
