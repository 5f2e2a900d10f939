"""stepnet export: netlist documents to TIA Portal Openness XML.

Public API::

    from stepnet.export import to_openness_xml
    xml_text = to_openness_xml(document)
"""

from .openness import to_openness_xml
from .xml import RawXml, XmlElement, escape_xml

__all__ = ["RawXml", "XmlElement", "escape_xml", "to_openness_xml"]
