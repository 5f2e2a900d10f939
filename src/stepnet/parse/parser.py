"""Step-program parser: normalized text to a ``Program`` model.

The parser never raises on malformed input.  Every problem is recorded
as a ``Diagnostic`` on the returned Program, and unrecognized lines are
kept verbatim in their warnings.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Sequence

from stepnet.config.syntax import DEFAULT_SYNTAX_RULES, SyntaxRules
from stepnet.model.diagnostics import DiagnosticCode, warning
from stepnet.model.program import (
    FunctionBlockTag,
    Program,
    RestStep,
    SequentialStep,
    Statistics,
)

from ._classifiers import Line, LineStrategy, ParseState, default_strategies

logger = logging.getLogger(__name__)

_BLOCK_TAG = re.compile(r"^\s*(FB|FC)\s*(\d+)\s*$", re.IGNORECASE)

# Metadata keys that fill Program fields the text left empty.
_NAME_KEYS = ("name", "program_name")
_BLOCK_KEYS = ("function_block",)
_IDB_KEYS = ("symbolic_instance_name", "symbolic_idb")


class ProgramParser:
    """Classifies each line with an ordered list of strategies.

    Custom strategies can be passed to change or extend the recognized
    grammar; they are tried in the given order and the first match wins.
    """

    def __init__(
        self,
        syntax_rules: SyntaxRules | None = None,
        strategies: Sequence[LineStrategy] | None = None,
    ):
        self.rules = syntax_rules or DEFAULT_SYNTAX_RULES
        self.strategies = list(strategies) if strategies is not None else default_strategies(self.rules)

    def parse(self, text: str, metadata: dict[str, Any] | None = None) -> Program:
        state = ParseState(rules=self.rules)

        for number, raw in enumerate(text.split("\n"), start=1):
            stripped = raw.strip()
            if not stripped:
                state.blank_line()
                continue
            line = Line(number=number, raw=raw.rstrip(), text=stripped)
            for strategy in self.strategies:
                if strategy.match(line, state):
                    logger.debug("line %d classified as %s", number, strategy.name)
                    if strategy.counts_as_content:
                        state.seen_content = True
                    break

        for transition in state.pending_transitions:
            state.report(warning(
                DiagnosticCode.ORPHAN_TRANSITION,
                f"transition from step {transition.from_step} is not followed by a step",
                transition.line_number,
            ))

        program = state.program
        _apply_metadata(program, metadata or {})
        program.statistics = compute_statistics(program, state)
        logger.info(
            "parsed %r: %d steps, %d variables, %d errors, %d warnings",
            program.name, len(program.steps), len(program.variables),
            len(program.errors), len(program.warnings),
        )
        return program


def compute_statistics(program: Program, state: ParseState | None = None) -> Statistics:
    steps = program.steps
    conditions = sum(s.condition_count for s in steps)
    conditions += sum(len(t.conditions) for s in steps for t in s.transitions)
    external = state.external_references if state is not None else sum(
        1 for _, c in program.iter_conditions() if c.external_reference is not None
    )
    variables = len(program.variables)
    return Statistics(
        total_steps=len(steps),
        rest_steps=sum(1 for s in steps if isinstance(s, RestStep)),
        sequential_steps=sum(1 for s in steps if isinstance(s, SequentialStep)),
        total_conditions=conditions,
        total_variables=variables,
        cross_references=len(program.cross_references),
        external_references=external,
        non_sequential_transitions=sum(len(s.transitions) for s in steps),
        unrecognized_lines=state.unrecognized_lines if state is not None else 0,
        complexity_score=round(len(steps) * 2 + conditions * 1.5 + variables * 1.2 + external * 3),
    )


def _apply_metadata(program: Program, metadata: dict[str, Any]) -> None:
    extra = dict(metadata)

    for key in _NAME_KEYS:
        value = extra.pop(key, None)
        if value and not program.name:
            program.name = str(value)

    for key in _IDB_KEYS:
        value = extra.pop(key, None)
        if value and not program.symbolic_instance_name:
            program.symbolic_instance_name = str(value)

    for key in _BLOCK_KEYS:
        value = extra.pop(key, None)
        if not value or program.function_block is not None:
            continue
        if isinstance(value, FunctionBlockTag):
            program.function_block = value
        elif isinstance(value, dict):
            program.function_block = FunctionBlockTag.model_validate(value)
        else:
            m = _BLOCK_TAG.match(str(value))
            if m:
                program.function_block = FunctionBlockTag(block_type=m[1].upper(), number=int(m[2]))
            else:
                extra[key] = value

    program.metadata.update(extra)


def parse_program(
    text: str,
    metadata: dict[str, Any] | None = None,
    syntax_rules: SyntaxRules | None = None,
) -> Program:
    return ProgramParser(syntax_rules).parse(text, metadata)

