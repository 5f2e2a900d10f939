"""Shared test helpers for the stepnet test suite."""

import textwrap

from stepnet.model.netlist import MultilingualText, TextItem
from stepnet.model.program import Program, RestStep, SequentialStep
from stepnet.parse.parser import ProgramParser
from stepnet.pipeline import ParseResult, parse


SIMPLE_PROGRAM = """\
Vuller FB304
RUST: Wachten
  - Start vullen
STAP 1: Vullen
  - Klep open
  - Pomp aan
STAP 2: Legen
  - Niveau hoog
"""


def parse_text(source: str, **kwargs) -> ParseResult:
    """Run the full parse pipeline on dedented *source*."""
    return parse(textwrap.dedent(source).strip("\n"), **kwargs)


def parse_raw(source: str) -> Program:
    """Parse already-normalized text without validation."""
    return ProgramParser().parse(textwrap.dedent(source).strip("\n"))


def make_program(*numbers: int, rest: bool = True, keyword: str = "STAP") -> Program:
    """Program with an optional Rest step and one sequential step per number."""
    steps = [RestStep(keyword="RUST", description="Wachten")] if rest else []
    steps += [SequentialStep(keyword=keyword, number=n, description=f"Stap {n}") for n in numbers]
    return Program(name="Test", steps=steps)


def text(uid: int, composition_name: str = "Title", value: str = "") -> MultilingualText:
    """Single-culture MultilingualText for hand-built networks."""
    return MultilingualText(
        uid=uid,
        composition_name=composition_name,
        items=[TextItem(uid=uid + 1, culture="nl-NL", text=value)],
    )


def diagnostic_codes(diagnostics) -> list[str]:
    return [d.code.value for d in diagnostics]
