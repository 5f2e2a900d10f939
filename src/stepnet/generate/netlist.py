"""Netlist generator: ``Program`` to ``NetlistDocument``.

One FBD function block is emitted with a fixed interface (the ``Stap``
step-bit array plus helper, timer and counter arrays) and one network per
step:

* Rest: an AND gate with one negated input per sequential step bit sets
  an SR latch on ``Stap[0]``; the first sequential step resets it.
* Sequential step *n*: AND(``Stap[prev]``, NOT ``Stap[n]``, ``false``)
  sets an SR latch on ``Stap[n]`` that the next step resets.  The last
  step drives a coil instead.

AND-gate cardinality is resolved after a network's wiring is complete,
from the number of wires that terminate at the gate.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Sequence

from pydantic import BaseModel

from stepnet.model.netlist import (
    Connection,
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
    PartType,
    SectionName,
    Subelement,
    TextItem,
    Wire,
)
from stepnet.model.program import Program, RestStep, SequentialStep

from .uid import IdScheme, UidAllocator, UidPlan

logger = logging.getLogger(__name__)

STEP_ARRAY = "Stap"
STEP_ARRAY_TYPE = "Array[0..31] of Bool"
STEP_ARRAY_SIZE = 32

# Static members present in every generated block, after ``Stap``.
STATIC_MEMBERS: tuple[tuple[str, str], ...] = (
    ("Stap_A", STEP_ARRAY_TYPE),
    ("Stap_B", STEP_ARRAY_TYPE),
    ("Stap_C", STEP_ARRAY_TYPE),
    ("Hulp", "Array[1..32] of Bool"),
    ("Tijd", "Array[1..10] of IEC_TIMER"),
    ("Teller", "Array[1..10] of Int"),
)
OUTPUT_MEMBERS: tuple[tuple[str, str], ...] = (
    ("Uit_Stap_Tekst", "Int"),
)


class GenerationError(Exception):
    """A Program that cannot be turned into a netlist."""


class GeneratorOptions(BaseModel):
    id_scheme: IdScheme = IdScheme.MONOTONIC
    include_instance_db: bool = False
    cultures: tuple[str, ...] = ("nl-NL", "en-GB")


def multilingual_text(
    alloc: UidAllocator,
    composition_name: str,
    text: str = "",
    cultures: Sequence[str] = ("nl-NL", "en-GB"),
    *,
    deferred: bool = False,
) -> MultilingualText:
    """Text element with one item per culture.

    With *deferred* only the element's own identifier is taken; the items
    are added later by ``add_text_items``.
    """
    result = MultilingualText(uid=alloc.next(), composition_name=composition_name)
    if not deferred:
        add_text_items(result, alloc, text, cultures)
    return result


def add_text_items(
    target: MultilingualText, alloc: UidAllocator, text: str, cultures: Sequence[str],
) -> None:
    target.items = [TextItem(uid=alloc.next(), culture=c, text=text) for c in cultures]


def build_interface(program: Program) -> Interface:
    interface = Interface()
    static = interface.section(SectionName.STATIC)
    static.members.append(Member(
        name=STEP_ARRAY,
        datatype=STEP_ARRAY_TYPE,
        remanence="Retain",
        subelements=[Subelement(path=str(s.number), comment=s.label) for s in program.steps],
    ))
    for name, datatype in STATIC_MEMBERS:
        static.members.append(Member(name=name, datatype=datatype, remanence="Retain"))
    output = interface.section(SectionName.OUTPUT)
    for name, datatype in OUTPUT_MEMBERS:
        output.members.append(Member(name=name, datatype=datatype))
    return interface


class NetworkBuilder:
    """Collects the parts and wires of one network."""

    def __init__(
        self,
        uid: int,
        alloc: UidAllocator,
        title: str,
        cultures: Sequence[str],
        *,
        defer_text_items: bool = False,
    ):
        self.uid = uid
        self.alloc = alloc
        self.title_text = title
        self.cultures = tuple(cultures)
        self.defer_text_items = defer_text_items
        self.title = multilingual_text(alloc, "Title", title, cultures, deferred=defer_text_items)
        self.comment = multilingual_text(alloc, "Comment", "", cultures, deferred=defer_text_items)
        self.parts: list[Part | LocalAccess | LiteralAccess] = []
        self.wires: list[Wire] = []

    def access(self, index: int, variable: str = STEP_ARRAY) -> LocalAccess:
        access = LocalAccess(uid=self.alloc.next(), variable=variable, index=index)
        self.parts.append(access)
        return access

    def literal(self, value: bool = False) -> LiteralAccess:
        access = LiteralAccess(uid=self.alloc.next(), value="true" if value else "false")
        self.parts.append(access)
        return access

    def part(self, part_type: PartType) -> Part:
        part = Part(uid=self.alloc.next(), name=part_type)
        self.parts.append(part)
        return part

    def connect(
        self,
        source: Part | LocalAccess | LiteralAccess,
        source_port: str | None,
        target: Part,
        target_port: str,
        *,
        negated: bool = False,
    ) -> Wire:
        if isinstance(source, Part) and not source.has_output(source_port or ""):
            raise ValueError(f"{source.name.value} has no output {source_port!r}")
        if not target.has_input(target_port):
            raise ValueError(f"{target.name.value} has no input {target_port!r}")
        wire = Wire(
            uid=self.alloc.next(),
            source=Connection(uid=source.uid, port=source_port),
            target=Connection(uid=target.uid, port=target_port),
        )
        self.wires.append(wire)
        if negated and target_port not in target.negated_inputs:
            target.negated_inputs.append(target_port)
        return wire

    def build(self) -> Network:
        incoming = Counter(w.target.uid for w in self.wires)
        for part in self.parts:
            if isinstance(part, Part) and part.name == PartType.AND:
                part.cardinality = incoming[part.uid]
        if self.defer_text_items:
            add_text_items(self.comment, self.alloc, "", self.cultures)
            add_text_items(self.title, self.alloc, self.title_text, self.cultures)
        return Network(
            uid=self.uid,
            title=self.title,
            comment=self.comment,
            parts=self.parts,
            wires=self.wires,
        )


class NetlistGenerator:
    def __init__(self, options: GeneratorOptions | None = None, **overrides):
        base = options or GeneratorOptions()
        if overrides:
            base = GeneratorOptions.model_validate({**base.model_dump(), **overrides})
        self.options = base

    def build(self, program: Program) -> NetlistDocument:
        if not program.steps:
            raise GenerationError("program has no steps to generate")

        opts = self.options
        plan = UidPlan(opts.id_scheme)
        doc = plan.document

        fb_name = str(program.function_block) if program.function_block else "FB1"
        deferred = plan.defers_text_items
        fb_uid = doc.next()
        comment = multilingual_text(doc, "Comment", "", opts.cultures, deferred=deferred)
        title = multilingual_text(doc, "Title", "", opts.cultures, deferred=deferred)

        for step in program.steps:
            if step.number >= STEP_ARRAY_SIZE:
                logger.warning("%s is outside %s[0..%d]", step.label, STEP_ARRAY, STEP_ARRAY_SIZE - 1)

        sequential = program.sequential_steps
        networks: list[Network] = []
        rest = program.rest_step
        if rest is not None:
            networks.append(self._rest_network(plan, rest, sequential))
        for index in range(len(sequential)):
            networks.append(self._step_network(plan, index, sequential))

        fb = FunctionBlock(
            uid=fb_uid,
            name=fb_name,
            number=_block_number(fb_name),
            interface=build_interface(program),
            networks=networks,
            comment=comment,
            title=title,
        )
        idb = self._instance_db(doc, program, fb, deferred) if opts.include_instance_db else None
        if deferred:
            texts = [fb.comment, fb.title]
            if idb is not None:
                texts += [idb.comment, idb.title]
            for text in texts:
                add_text_items(text, doc, "", opts.cultures)
        logger.info("generated %s with %d networks", fb_name, len(networks))
        return NetlistDocument(function_block=fb, instance_db=idb)

    # -- networks ---------------------------------------------------------

    def _builder(self, plan: UidPlan, alloc: UidAllocator, title: str) -> NetworkBuilder:
        return NetworkBuilder(
            plan.document.next(), alloc, title, self.options.cultures,
            defer_text_items=plan.defers_text_items,
        )

    def _finish(self, net: NetworkBuilder) -> Network:
        network = net.build()
        if net.alloc.overflowed:
            raise GenerationError(
                f"network {net.title_text!r} needs more identifiers than its band allows"
            )
        return network

    def _rest_network(
        self, plan: UidPlan, rest: RestStep, sequential: list[SequentialStep],
    ) -> Network:
        net = self._builder(plan, plan.rest_network(), rest.label)
        step_bits = [net.access(s.number) for s in sequential]
        gate = net.part(PartType.AND)
        for i, bit in enumerate(step_bits, start=1):
            net.connect(bit, None, gate, f"in{i}", negated=True)
        latch = net.part(PartType.SR)
        if sequential:
            net.connect(net.access(sequential[0].number), None, latch, "r1")
        net.connect(gate, "out", latch, "s")
        net.connect(net.access(rest.number), None, latch, "operand")
        return self._finish(net)

    def _step_network(self, plan: UidPlan, index: int, sequential: list[SequentialStep]) -> Network:
        step = sequential[index]
        net = self._builder(plan, plan.step_network(index), step.label)

        previous = sequential[index - 1].number if index > 0 else 0
        prev_bit = net.access(previous)
        own_bit = net.access(step.number)
        placeholder = net.literal(False)
        gate = net.part(PartType.AND)
        net.connect(prev_bit, None, gate, "in1")
        net.connect(own_bit, None, gate, "in2", negated=True)
        net.connect(placeholder, None, gate, "in3")

        if index == len(sequential) - 1:
            coil = net.part(PartType.COIL)
            operand = net.access(step.number)
            net.connect(gate, "out", coil, "in")
            net.connect(operand, None, coil, "operand")
        else:
            latch = net.part(PartType.SR)
            reset_bit = net.access(sequential[index + 1].number)
            operand = net.access(step.number)
            net.connect(gate, "out", latch, "s")
            net.connect(reset_bit, None, latch, "r1")
            net.connect(operand, None, latch, "operand")
        return self._finish(net)

    # -- instance DB ------------------------------------------------------

    def _instance_db(
        self, doc: UidAllocator, program: Program, fb: FunctionBlock, deferred: bool = False,
    ) -> InstanceDB:
        uid = doc.next()
        cultures = self.options.cultures
        return InstanceDB(
            uid=uid,
            name=program.symbolic_instance_name or f"{fb.name}_DB",
            number=fb.number,
            instance_of_name=fb.name,
            comment=multilingual_text(doc, "Comment", "", cultures, deferred=deferred),
            title=multilingual_text(doc, "Title", "", cultures, deferred=deferred),
        )


def _block_number(name: str) -> int:
    digits = re.sub(r"\D", "", name)
    return int(digits) if digits and int(digits) else 1


def build_document(program: Program, **options) -> NetlistDocument:
    return NetlistGenerator(GeneratorOptions(**options)).build(program)
