"""Tests for the Openness XML writer (stepnet.export.openness)."""

import xml.etree.ElementTree as ET
from collections import Counter

from conftest import SIMPLE_PROGRAM, make_program, parse_text
from stepnet.export import to_openness_xml
from stepnet.export.openness import (
    FLGNET_NS,
    INSTANCE_DB_INTERFACE,
    INTERFACE_NS,
    function_block_element,
)
from stepnet.export.xml import XML_DECLARATION
from stepnet.generate import build_document

IF = f"{{{INTERFACE_NS}}}"
FN = f"{{{FLGNET_NS}}}"


def export(program, **options):
    pretty = options.pop("pretty", True)
    return to_openness_xml(build_document(program, **options), pretty=pretty)


def tree(xml_text):
    return ET.fromstring(xml_text.encode("utf-8"))


def compile_units(root):
    return root.findall("SW.Blocks.FB/ObjectList/SW.Blocks.CompileUnit")


def flgnet(unit):
    return unit.find(f"AttributeList/NetworkSource/{FN}FlgNet")


# ===========================================================================
# Document shape
# ===========================================================================


class TestDocument:
    def test_declaration_and_root(self):
        """Output starts with the XML declaration and a Document root."""
        xml = export(make_program(1, 2))
        assert xml.startswith(XML_DECLARATION)
        root = tree(xml)
        assert root.tag == "Document"
        assert root.find("Engineering").get("version") == "V18"

    def test_one_compile_unit_per_network(self):
        """Each network becomes one FBD compile unit."""
        units = compile_units(tree(export(make_program(1, 2, 3))))
        assert len(units) == 4
        assert all(u.get("CompositionName") == "CompileUnits" for u in units)
        assert all(u.findtext("AttributeList/ProgrammingLanguage") == "FBD" for u in units)

    def test_block_attribute_order(self):
        """Block attributes appear in the order the importer expects."""
        doc = build_document(parse_text(SIMPLE_PROGRAM).program)
        attributes = function_block_element(doc.function_block).find("AttributeList")
        assert [c.name for c in attributes.children] == [
            "AutoNumber",
            "Interface",
            "IsRetainMemResEnabled",
            "MemoryLayout",
            "MemoryReserve",
            "Name",
            "Namespace",
            "Number",
            "ProgrammingLanguage",
            "RetainMemoryReserve",
            "SetENOAutomatically",
        ]
        assert attributes.find("Name").children == ["FB304"]

    def test_block_object_list_order(self):
        root = tree(export(make_program(1)))
        objects = root.find("SW.Blocks.FB/ObjectList")
        tags = [c.tag for c in objects]
        assert tags == ["MultilingualText", "SW.Blocks.CompileUnit", "SW.Blocks.CompileUnit", "MultilingualText"]
        assert objects[0].get("CompositionName") == "Comment"
        assert objects[-1].get("CompositionName") == "Title"

    def test_interface_namespace(self):
        """The interface lives in the v5 interface namespace."""
        root = tree(export(make_program(1)))
        sections = root.find(f"SW.Blocks.FB/AttributeList/Interface/{IF}Sections")
        assert sections is not None
        names = [s.get("Name") for s in sections.findall(f"{IF}Section")]
        assert names == ["Input", "Output", "InOut", "Static", "Temp", "Constant"]
        stap = sections.find(f"{IF}Section[@Name='Static']/{IF}Member")
        assert (stap.get("Name"), stap.get("Datatype"), stap.get("Remanence")) == (
            "Stap", "Array[0..31] of Bool", "Retain",
        )

    def test_step_comments_on_array(self):
        """Each Stap element carries its step label as a comment."""
        root = tree(export(parse_text(SIMPLE_PROGRAM).program))
        stap = root.find(f".//{IF}Member[@Name='Stap']")
        subs = stap.findall(f"{IF}Subelement")
        assert [s.get("Path") for s in subs] == ["0", "1", "2"]
        text = subs[1].find(f"{IF}Comment/{IF}MultiLanguageText")
        assert (text.get("Lang"), text.text) == ("nl-NL", "STAP 1: Vullen")


# ===========================================================================
# Networks
# ===========================================================================


class TestNetworkXml:
    def test_flgnet_namespace(self):
        units = compile_units(tree(export(make_program(1, 2))))
        for unit in units:
            net = flgnet(unit)
            assert net is not None
            assert net.find(f"{FN}Parts") is not None
            assert net.find(f"{FN}Wires") is not None

    def test_card_matches_incoming_wires(self):
        """The Card attribute agrees with the wires into each gate."""
        for unit in compile_units(tree(export(make_program(1, 2, 3)))):
            net = flgnet(unit)
            targets = Counter(
                wire.findall(f"{FN}NameCon")[-1].get("UId") for wire in net.iter(f"{FN}Wire")
            )
            for part in net.iter(f"{FN}Part"):
                if part.get("Name") != "A":
                    continue
                card = part.find(f"{FN}TemplateValue[@Name='Card']")
                assert card.get("Type") == "Cardinality"
                assert int(card.text) == targets[part.get("UId")]

    def test_latch_then_coil(self):
        """Every step but the last latches; the last uses a coil."""
        units = compile_units(tree(export(make_program(1, 2))))
        names = [[p.get("Name") for p in flgnet(u).iter(f"{FN}Part")] for u in units]
        assert names == [["A", "Sr"], ["A", "Sr"], ["A", "Coil"]]

    def test_negated_inputs(self):
        """Negated gate inputs are listed by port name."""
        net = flgnet(compile_units(tree(export(make_program(1, 2))))[1])
        gate = next(p for p in net.iter(f"{FN}Part") if p.get("Name") == "A")
        assert [n.get("Name") for n in gate.findall(f"{FN}Negated")] == ["in2"]

    def test_local_access(self):
        net = flgnet(compile_units(tree(export(make_program(1))))[0])
        access = net.find(f"{FN}Parts/{FN}Access[@Scope='LocalVariable']")
        component = access.find(f"{FN}Symbol/{FN}Component")
        assert (component.get("Name"), component.get("AccessModifier")) == ("Stap", "Array")
        index = component.find(f"{FN}Access[@Scope='LiteralConstant']/{FN}Constant")
        assert index.findtext(f"{FN}ConstantType") == "DInt"
        assert index.findtext(f"{FN}ConstantValue") == "1"

    def test_literal_access(self):
        """The false literal is a Bool constant."""
        net = flgnet(compile_units(tree(export(make_program(1))))[1])
        literal = net.find(f"{FN}Parts/{FN}Access[@Scope='LiteralConstant']")
        assert literal.findtext(f"{FN}Constant/{FN}ConstantType") == "Bool"
        assert literal.findtext(f"{FN}Constant/{FN}ConstantValue") == "false"

    def test_wire_endpoints(self):
        net = flgnet(compile_units(tree(export(make_program(1))))[1])
        wires = list(net.iter(f"{FN}Wire"))
        first = [(c.tag.removeprefix(FN), c.get("Name")) for c in wires[0]]
        assert first == [("IdentCon", None), ("NameCon", "in1")]
        gate_out = next(w for w in wires if w[0].get("Name") == "out")
        assert [c.get("Name") for c in gate_out] == ["out", "in"]

    def test_titles(self):
        """Network titles carry the step label per culture."""
        units = compile_units(tree(export(parse_text(SIMPLE_PROGRAM).program)))
        title = units[1].find("ObjectList/MultilingualText[@CompositionName='Title']")
        items = title.findall("ObjectList/MultilingualTextItem")
        assert [i.findtext("AttributeList/Culture") for i in items] == ["nl-NL", "en-GB"]
        assert items[0].findtext("AttributeList/Text") == "STAP 1: Vullen"
        comment = units[1].find("ObjectList/MultilingualText[@CompositionName='Comment']")
        assert comment.findtext("ObjectList/MultilingualTextItem/AttributeList/Text") == ""


# ===========================================================================
# Escaping, formatting and the instance DB
# ===========================================================================


class TestSerialization:
    def test_description_escaped(self):
        """Special characters in descriptions are escaped."""
        program = parse_text("STAP 1: Vullen & <legen> \"snel\"").program
        xml = export(program)
        assert "Vullen &amp; &lt;legen&gt; &quot;snel&quot;" in xml
        units = compile_units(tree(xml))
        assert units[0].findtext(
            "ObjectList/MultilingualText[@CompositionName='Title']/ObjectList/"
            "MultilingualTextItem/AttributeList/Text"
        ) == 'STAP 1: Vullen & <legen> "snel"'

    def test_empty_text_not_self_closed(self):
        assert "<Text></Text>" in export(make_program(1))

    def test_compact(self):
        xml = export(make_program(1, 2), pretty=False)
        body = xml[len(XML_DECLARATION):]
        assert "\n" not in body
        assert len(compile_units(tree(xml))) == 3

    def test_pretty_and_compact_same_tree(self):
        """Pretty printing does not change the element tree."""
        pretty = tree(export(make_program(1, 2)))
        compact = tree(export(make_program(1, 2), pretty=False))
        assert [e.tag for e in pretty.iter()] == [e.tag for e in compact.iter()]

    def test_deterministic(self):
        """The same program always gives the same XML."""
        assert export(make_program(1, 2)) == export(make_program(1, 2))

    def test_instance_db(self):
        xml = export(parse_text(SIMPLE_PROGRAM).program, include_instance_db=True)
        assert INSTANCE_DB_INTERFACE in xml
        root = tree(xml)
        idb = root.find("SW.Blocks.InstanceDB")
        assert idb.findtext("AttributeList/Name") == "FB304_DB"
        assert idb.findtext("AttributeList/InstanceOfName") == "FB304"
        assert idb.findtext("AttributeList/ProgrammingLanguage") == "DB"
        members = idb.findall(f"AttributeList/Interface/{IF}Sections/{IF}Section/{IF}Member")
        assert "Melding" in [m.get("Name") for m in members]
