"""Netlist document model: one FBD function block and its networks.

Every element that the target schema addresses carries a ``uid`` that is
unique across the whole document.  Networks hold parts (gates, latches,
coils, memory accesses, literal constants) and the wires between their
named ports.
"""

from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import Annotated, Literal, Self, Union

from pydantic import BaseModel, Field, model_validator


class SectionName(str, Enum):
    INPUT = "Input"
    OUTPUT = "Output"
    INOUT = "InOut"
    STATIC = "Static"
    TEMP = "Temp"
    CONSTANT = "Constant"


class PartType(str, Enum):
    """FBD instruction names as the import tool spells them."""

    AND = "A"
    SR = "Sr"
    COIL = "Coil"


# Fixed port lists; AND gates accept in1..inN.
PART_INPUTS: dict[PartType, tuple[str, ...]] = {
    PartType.SR: ("s", "r1", "operand"),
    PartType.COIL: ("in", "operand"),
}
PART_OUTPUTS: dict[PartType, tuple[str, ...]] = {
    PartType.AND: ("out",),
    PartType.SR: ("q",),
    PartType.COIL: (),
}


# ---------------------------------------------------------------------------
# Texts
# ---------------------------------------------------------------------------

class TextItem(BaseModel):
    uid: int
    culture: str
    text: str = ""


class MultilingualText(BaseModel):
    uid: int
    composition_name: Literal["Comment", "Title"]
    items: list[TextItem] = []


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------

class Subelement(BaseModel):
    """Per-index comment on an array member (``Path`` = array index)."""

    path: str
    comment: str
    lang: str = "nl-NL"


class Member(BaseModel):
    name: str
    datatype: str
    remanence: str | None = None
    subelements: list[Subelement] = []


class InterfaceSection(BaseModel):
    name: SectionName
    members: list[Member] = []


class Interface(BaseModel):
    sections: list[InterfaceSection] = Field(
        default_factory=lambda: [InterfaceSection(name=n) for n in SectionName]
    )

    def section(self, name: SectionName) -> InterfaceSection:
        for sec in self.sections:
            if sec.name == name:
                return sec
        raise KeyError(name)


# ---------------------------------------------------------------------------
# Network parts
# ---------------------------------------------------------------------------

class Part(BaseModel):
    """A gate, latch or coil instruction."""

    kind: Literal["part"] = "part"
    uid: int
    name: PartType
    cardinality: int | None = None
    negated_inputs: list[str] = []

    def has_input(self, port: str) -> bool:
        if self.name == PartType.AND:
            return port.startswith("in") and port[2:].isdigit() and int(port[2:]) >= 1
        return port in PART_INPUTS[self.name]

    def has_output(self, port: str) -> bool:
        return port in PART_OUTPUTS[self.name]


class LocalAccess(BaseModel):
    """Read/write of one element of a local array, e.g. ``Stap[3]``."""

    kind: Literal["local"] = "local"
    uid: int
    variable: str
    index: int


class LiteralAccess(BaseModel):
    kind: Literal["literal"] = "literal"
    uid: int
    constant_type: str = "Bool"
    value: str = "false"


NetworkPart = Annotated[
    Union[Part, LocalAccess, LiteralAccess],
    Field(discriminator="kind"),
]


class Connection(BaseModel):
    """One wire endpoint.  ``port`` is None for a bare access (IdentCon)."""

    uid: int
    port: str | None = None


class Wire(BaseModel):
    uid: int
    source: Connection
    target: Connection

    @model_validator(mode="after")
    def _target_port(self) -> Self:
        if self.target.port is None:
            raise ValueError("wire target must name a port")
        return self


class Network(BaseModel):
    """One compile unit: a small wired FBD graph."""

    uid: int
    title: MultilingualText
    comment: MultilingualText
    programming_language: str = "FBD"
    parts: list[NetworkPart] = []
    wires: list[Wire] = []

    @model_validator(mode="after")
    def _wiring_consistent(self) -> Self:
        part_ids = {p.uid for p in self.parts}
        for w in self.wires:
            for end in (w.source, w.target):
                if end.uid not in part_ids:
                    raise ValueError(f"wire {w.uid} references unknown part {end.uid}")
        incoming = Counter(w.target.uid for w in self.wires)
        for p in self.parts:
            if isinstance(p, Part) and p.name == PartType.AND:
                if (p.cardinality or 0) != incoming[p.uid]:
                    raise ValueError(
                        f"gate {p.uid} declares cardinality {p.cardinality} "
                        f"but has {incoming[p.uid]} incoming wires"
                    )
        return self

    def part(self, uid: int) -> Part | LocalAccess | LiteralAccess:
        for p in self.parts:
            if p.uid == uid:
                return p
        raise KeyError(uid)

    def parts_of(self, part_type: PartType) -> list[Part]:
        return [p for p in self.parts if isinstance(p, Part) and p.name == part_type]


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

class FunctionBlock(BaseModel):
    uid: int
    name: str
    number: int
    interface: Interface = Interface()
    networks: list[Network] = []
    comment: MultilingualText
    title: MultilingualText
    programming_language: str = "FBD"
    memory_layout: str = "Optimized"
    memory_reserve: int = 4000
    retain_memory_reserve: int = 4000


class InstanceDB(BaseModel):
    uid: int
    name: str
    number: int
    instance_of_name: str
    instance_of_type: Literal["FB", "FC"] = "FB"
    comment: MultilingualText
    title: MultilingualText


class NetlistDocument(BaseModel):
    engineering_version: str = "V18"
    function_block: FunctionBlock
    instance_db: InstanceDB | None = None

    def all_uids(self) -> list[int]:
        """Every identifier in document order (used to check uniqueness)."""
        uids: list[int] = []

        def _text(t: MultilingualText) -> None:
            uids.append(t.uid)
            uids.extend(i.uid for i in t.items)

        fb = self.function_block
        uids.append(fb.uid)
        _text(fb.comment)
        for net in fb.networks:
            uids.append(net.uid)
            _text(net.title)
            _text(net.comment)
            uids.extend(p.uid for p in net.parts)
            uids.extend(w.uid for w in net.wires)
        _text(fb.title)
        if self.instance_db is not None:
            uids.append(self.instance_db.uid)
            _text(self.instance_db.comment)
            _text(self.instance_db.title)
        return uids
