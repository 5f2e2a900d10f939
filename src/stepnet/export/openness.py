"""TIA Portal Openness XML for netlist documents.

Element names, attribute names and namespace URIs are the import tool's
fixed contract and are emitted exactly as below.
"""

from __future__ import annotations

from stepnet.model.netlist import (
    FunctionBlock,
    InstanceDB,
    Interface,
    LiteralAccess,
    LocalAccess,
    Member,
    MultilingualText,
    NetlistDocument,
    Network,
    Part,
    Wire,
)

from .xml import XML_DECLARATION, XmlElement

INTERFACE_NS = "http://www.siemens.com/automation/Openness/SW/Interface/v5"
FLGNET_NS = "http://www.siemens.com/automation/Openness/SW/NetworkSource/FlgNet/v4"

# Interface of the instance DB, identical for every generated block.
INSTANCE_DB_INTERFACE = f"""<Interface><Sections xmlns="{INTERFACE_NS}">
  <Section Name="Input" />
  <Section Name="Output">
    <Member Name="Uit_Stap_Tekst" Datatype="Int" />
  </Section>
  <Section Name="InOut" />
  <Section Name="Static">
    <Member Name="Stap" Datatype="Array[0..31] of Bool" Remanence="Retain" />
    <Member Name="Stap_A" Datatype="Array[0..31] of Bool" Remanence="Retain" />
    <Member Name="Stap_B" Datatype="Array[0..31] of Bool" Remanence="Retain" />
    <Member Name="Stap_C" Datatype="Array[0..31] of Bool" Remanence="Retain" />
    <Member Name="Hulp" Datatype="Array[1..32] of Bool" Remanence="Retain" />
    <Member Name="Tijd" Datatype="Array[1..10] of IEC_TIMER" Version="1.0" Remanence="Retain">
      <AttributeList>
        <BooleanAttribute Name="SetPoint" SystemDefined="true">true</BooleanAttribute>
      </AttributeList>
    </Member>
    <Member Name="Teller" Datatype="Array[1..10] of Int" Remanence="Retain" />
    <Member Name="Melding" Datatype="Array[0..2] of &quot;Program Alarm Message&quot;" />
  </Section>
</Sections></Interface>"""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def to_openness_xml(document: NetlistDocument, pretty: bool = True) -> str:
    """Render *document* as an importable Openness XML string."""
    return XML_DECLARATION + document_element(document).render(pretty)


def document_element(document: NetlistDocument) -> XmlElement:
    root = XmlElement("Document", XmlElement("Engineering").attr("version", document.engineering_version))
    root.add(function_block_element(document.function_block))
    if document.instance_db is not None:
        root.add(instance_db_element(document.instance_db))
    return root


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

def function_block_element(fb: FunctionBlock) -> XmlElement:
    attributes = XmlElement(
        "AttributeList",
        XmlElement("AutoNumber", "false"),
        interface_element(fb.interface),
        XmlElement("IsRetainMemResEnabled", "true"),
        XmlElement("MemoryLayout", fb.memory_layout),
        XmlElement("MemoryReserve", str(fb.memory_reserve)),
        XmlElement("Name", fb.name),
        XmlElement("Namespace"),
        XmlElement("Number", str(fb.number)),
        XmlElement("ProgrammingLanguage", fb.programming_language),
        XmlElement("RetainMemoryReserve", str(fb.retain_memory_reserve)),
        XmlElement("SetENOAutomatically", "true"),
    )
    objects = XmlElement("ObjectList", text_element(fb.comment))
    objects.add(*(network_element(net) for net in fb.networks))
    objects.add(text_element(fb.title))
    return XmlElement("SW.Blocks.FB", attributes, objects).attr("ID", fb.uid)


def instance_db_element(idb: InstanceDB) -> XmlElement:
    attributes = XmlElement(
        "AttributeList",
        XmlElement("AutoNumber", "false"),
        XmlElement("InstanceOfName", idb.instance_of_name),
        XmlElement("InstanceOfType", idb.instance_of_type),
    )
    attributes.add_raw(INSTANCE_DB_INTERFACE)
    attributes.add(
        XmlElement("Name", idb.name),
        XmlElement("Namespace"),
        XmlElement("Number", str(idb.number)),
        XmlElement("ProgrammingLanguage", "DB"),
    )
    objects = XmlElement("ObjectList", text_element(idb.comment), text_element(idb.title))
    return XmlElement("SW.Blocks.InstanceDB", attributes, objects).attr("ID", idb.uid)


def text_element(text: MultilingualText) -> XmlElement:
    items = XmlElement("ObjectList")
    for item in text.items:
        items.add(
            XmlElement(
                "MultilingualTextItem",
                XmlElement(
                    "AttributeList",
                    XmlElement("Culture", item.culture),
                    XmlElement("Text", item.text),
                ),
            ).attr("ID", item.uid).attr("CompositionName", "Items")
        )
    return (
        XmlElement("MultilingualText", items)
        .attr("ID", text.uid)
        .attr("CompositionName", text.composition_name)
    )


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------

def interface_element(interface: Interface) -> XmlElement:
    sections = XmlElement("Sections").attr("xmlns", INTERFACE_NS)
    for section in interface.sections:
        el = XmlElement("Section").attr("Name", section.name.value)
        el.add(*(member_element(m) for m in section.members))
        sections.add(el)
    return XmlElement("Interface", sections)


def member_element(member: Member) -> XmlElement:
    el = (
        XmlElement("Member")
        .attr("Name", member.name)
        .attr("Datatype", member.datatype)
        .attr("Remanence", member.remanence)
    )
    for sub in member.subelements:
        comment = XmlElement("Comment", XmlElement("MultiLanguageText", sub.comment).attr("Lang", sub.lang))
        el.add(XmlElement("Subelement", comment).attr("Path", sub.path))
    return el


# ---------------------------------------------------------------------------
# Networks
# ---------------------------------------------------------------------------

def network_element(network: Network) -> XmlElement:
    parts = XmlElement("Parts")
    parts.add(*(_PART_WRITERS[p.kind](p) for p in network.parts))
    wires = XmlElement("Wires")
    wires.add(*(wire_element(w) for w in network.wires))

    flgnet = XmlElement("FlgNet", parts, wires).attr("xmlns", FLGNET_NS)
    attributes = XmlElement(
        "AttributeList",
        XmlElement("NetworkSource", flgnet),
        XmlElement("ProgrammingLanguage", network.programming_language),
    )
    objects = XmlElement("ObjectList", text_element(network.comment), text_element(network.title))
    return (
        XmlElement("SW.Blocks.CompileUnit", attributes, objects)
        .attr("ID", network.uid)
        .attr("CompositionName", "CompileUnits")
    )


def part_element(part: Part) -> XmlElement:
    el = XmlElement("Part").attr("Name", part.name.value).attr("UId", part.uid)
    if part.cardinality:
        el.add(
            XmlElement("TemplateValue", str(part.cardinality))
            .attr("Name", "Card")
            .attr("Type", "Cardinality")
        )
    for port in part.negated_inputs:
        el.add(XmlElement("Negated").attr("Name", port))
    return el


def _constant(constant_type: str, value: str) -> XmlElement:
    return XmlElement(
        "Constant",
        XmlElement("ConstantType", constant_type),
        XmlElement("ConstantValue", value),
    )


def local_access_element(access: LocalAccess) -> XmlElement:
    index = XmlElement("Access", _constant("DInt", str(access.index))).attr("Scope", "LiteralConstant")
    component = (
        XmlElement("Component", index)
        .attr("Name", access.variable)
        .attr("AccessModifier", "Array")
    )
    return (
        XmlElement("Access", XmlElement("Symbol", component))
        .attr("Scope", "LocalVariable")
        .attr("UId", access.uid)
    )


def literal_access_element(access: LiteralAccess) -> XmlElement:
    return (
        XmlElement("Access", _constant(access.constant_type, access.value))
        .attr("Scope", "LiteralConstant")
        .attr("UId", access.uid)
    )


_PART_WRITERS = {
    "part": part_element,
    "local": local_access_element,
    "literal": literal_access_element,
}


def wire_element(wire: Wire) -> XmlElement:
    el = XmlElement("Wire").attr("UId", wire.uid)
    if wire.source.port is None:
        el.add(XmlElement("IdentCon").attr("UId", wire.source.uid))
    else:
        el.add(XmlElement("NameCon").attr("UId", wire.source.uid).attr("Name", wire.source.port))
    el.add(XmlElement("NameCon").attr("UId", wire.target.uid).attr("Name", wire.target.port))
    return el
