"""Line-classification strategies for the step-program parser.

Each strategy is an independent object with ``match(line, state)``: it
either claims the line (updating the shared ``ParseState``) and returns
True, or leaves everything untouched and returns False.  The parser tries
them in a fixed priority order and stops at the first match.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from stepnet._patterns import alternation, compiled
from stepnet.config.syntax import SyntaxRules
from stepnet.model.diagnostics import Diagnostic, DiagnosticCode, Severity, error, warning
from stepnet.model.program import (
    Assignment,
    Condition,
    ConditionGroup,
    FunctionBlockTag,
    LogicOperator,
    Program,
    RestStep,
    SequentialStep,
    Transition,
    Variable,
)

from ._conditions import ConditionExtractor

logger = logging.getLogger(__name__)

_HEADER = re.compile(r"^(?P<name>.+?)\s+(?P<type>FB|FC)(?P<number>\d+)$", re.IGNORECASE)
_VARIABLE = re.compile(r"^(?P<name>(?:[^-+=<>!()\s][^=<>!()]*?)?)\s*=(?!=)\s*(?P<value>.*)$")
_NAME_STOPWORDS = {"NIET", "NOT", "NICHT", "EN", "AND", "OF", "OR"}


@dataclass
class Line:
    number: int
    raw: str
    text: str
    """Stripped line content."""

    @property
    def indented(self) -> bool:
        return self.raw[:1].isspace()


@dataclass
class ParseState:
    """Mutable state shared by the strategies during one parse."""

    rules: SyntaxRules
    program: Program = field(default_factory=Program)
    extractor: ConditionExtractor | None = None

    step: RestStep | SequentialStep | None = None
    """Step currently collecting conditions; None before the first
    declaration and after an end keyword."""

    in_exit: bool = False
    """Entry block of the open step is closed; conditions go to exit."""

    variable: Variable | None = None
    """Standalone variable currently collecting conditions."""

    pending_transitions: list[Transition] = field(default_factory=list)
    """VON-STEP lines waiting for the next declaration."""

    seen_content: bool = False
    """A non-comment line has been classified (the header must be first)."""

    external_references: int = 0
    unrecognized_lines: int = 0

    def __post_init__(self) -> None:
        if self.extractor is None:
            self.extractor = ConditionExtractor(self.rules)

    def report(self, diagnostic: Diagnostic) -> None:
        if diagnostic.severity is Severity.ERROR:
            self.program.errors.append(diagnostic)
        else:
            self.program.warnings.append(diagnostic)

    def close_variable(self) -> None:
        self.variable = None

    def blank_line(self) -> None:
        self.close_variable()
        if self.step is not None and self.step.entry_conditions:
            self.in_exit = True


def add_to_groups(groups: list[ConditionGroup], condition: Condition) -> None:
    """``+`` after a group opens an OR sibling; otherwise join the last group."""
    if condition.operator is LogicOperator.OR and groups:
        groups.append(ConditionGroup(operator=LogicOperator.OR, conditions=[condition]))
    elif not groups:
        groups.append(ConditionGroup(operator=LogicOperator.AND, conditions=[condition]))
    else:
        groups[-1].conditions.append(condition)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class LineStrategy:
    name = "line"
    counts_as_content = True

    def __init__(self, rules: SyntaxRules):
        self.rules = rules

    def match(self, line: Line, state: ParseState) -> bool:
        raise NotImplementedError


class CommentLine(LineStrategy):
    name = "comment"
    counts_as_content = False

    def match(self, line, state):
        prefix = self.rules.comment_prefix
        if not prefix or not line.text.startswith(prefix):
            return False
        state.program.comments.append(line.text[len(prefix):].strip())
        return True


class HeaderLine(LineStrategy):
    """``<name> <FB|FC><number>`` on the first unindented line.

    A first line without ``:`` or ``=`` that is not keyword syntax is
    taken as the bare program name.
    """

    name = "header"

    def __init__(self, rules):
        super().__init__(rules)
        keywords = alternation([
            *rules.declaration_keywords(),
            *rules.step_keywords.end,
            rules.conditions.transition_keyword,
        ])
        self._keyword_line = compiled(rf"^(?:\+\s*)?(?:{keywords})\b", re.IGNORECASE)

    def match(self, line, state):
        if state.seen_content or line.indented or state.program.name:
            return False
        m = _HEADER.match(line.text)
        if m:
            state.program.name = m["name"].strip()
            state.program.function_block = FunctionBlockTag(
                block_type=m["type"].upper(), number=int(m["number"]),
            )
            return True
        conditions = self.rules.conditions
        if ":" in line.text or "=" in line.text \
                or line.text.startswith((conditions.and_prefix, conditions.or_prefix)) \
                or self._keyword_line.match(line.text):
            return False
        state.program.name = line.text
        return True


class SymbolicIdbLine(LineStrategy):
    name = "symbolic_idb"

    def __init__(self, rules):
        super().__init__(rules)
        prefixes = alternation(rules.symbolic_idb_prefixes)
        self._pattern = compiled(rf"^(?:{prefixes})\s*:\s*(?P<name>.*)$", re.IGNORECASE)

    def match(self, line, state):
        m = self._pattern.match(line.text)
        if not m:
            return False
        state.program.symbolic_instance_name = m["name"].strip()
        return True


class DeclarationLine(LineStrategy):
    """REST/STEP declarations and the end keywords that close a step."""

    name = "declaration"

    def __init__(self, rules):
        super().__init__(rules)
        flags = re.IGNORECASE
        decls = alternation(rules.declaration_keywords())
        ends = alternation(rules.step_keywords.end)
        self._decl = compiled(rf"^(?P<kw>{decls})(?:\s*(?P<number>\d+))?\s*:\s*(?P<desc>.*)$", flags)
        self._end = compiled(rf"^(?:{ends})\s*[:.]?\s*$", flags) if ends else None

    def match(self, line, state):
        if self._end is not None and self._end.match(line.text):
            state.close_variable()
            state.step = None
            state.in_exit = False
            return True

        m = self._decl.match(line.text)
        if not m:
            return False

        keyword = m["kw"].upper()
        common = dict(
            keyword=keyword,
            description=m["desc"].strip(),
            transitions=list(state.pending_transitions),
            line_number=line.number,
        )
        if self.rules.is_rest_keyword(keyword):
            step = RestStep(**common)
        else:
            number = int(m["number"]) if m["number"] else 1
            step = SequentialStep(number=number, **common)

        state.close_variable()
        state.pending_transitions.clear()
        state.program.steps.append(step)
        state.step = step
        state.in_exit = False
        logger.debug("line %d: %s", line.number, step.label)
        return True


class TransitionLine(LineStrategy):
    """``[+] VON STEP n``: a non-sequential predecessor of the next step."""

    name = "transition"

    def __init__(self, rules):
        super().__init__(rules)
        von = re.escape(rules.conditions.transition_keyword)
        steps = alternation(rules.step_keywords.step)
        or_prefix = re.escape(rules.conditions.or_prefix)
        self._pattern = compiled(
            rf"^(?P<or>{or_prefix}\s*)?{von}\s+(?:{steps})\s*(?P<number>\d+)\s*$", re.IGNORECASE,
        )

    def match(self, line, state):
        m = self._pattern.match(line.text)
        if not m:
            return False
        state.close_variable()
        state.pending_transitions.append(Transition(
            from_step=int(m["number"]), is_or=bool(m["or"]), line_number=line.number,
        ))
        return True


class VariableLine(LineStrategy):
    """Unindented ``name = [value]``.

    Outside a step this declares a standalone variable; inside an open
    step it is a set-target of that step.
    """

    name = "variable"

    def match(self, line, state):
        if line.indented:
            return False
        m = _VARIABLE.match(line.text)
        if not m:
            return False

        name, value = m["name"].strip(), m["value"].strip()
        if not name:
            state.report(error(
                DiagnosticCode.EMPTY_IDENTIFIER, "assignment without a name", line.number, line.text,
            ))
            return True

        if state.step is not None:
            state.step.assignments.append(Assignment(target=name, value=value, line_number=line.number))
            return True

        variable = Variable(
            name=name,
            value=value,
            source=line.text,
            line_number=line.number,
        )
        state.program.variables.append(variable)
        state.variable = variable
        return True


class ConditionLine(LineStrategy):
    """Indented, marked, or heuristically condition-shaped lines."""

    name = "condition"

    def match(self, line, state):
        if state.step is None and state.variable is None and not state.pending_transitions:
            return False

        extractor = state.extractor
        _, _, marked = extractor.split_marker(line.text)
        if not (line.indented or marked or extractor.looks_like_condition(line.text)):
            return False

        extracted = extractor.extract(line.text, line.number)
        for diagnostic in extracted.diagnostics:
            state.report(diagnostic)
        condition = extracted.condition
        if condition.cross_reference is not None:
            state.program.cross_references.append(condition.cross_reference)
        if condition.external_reference is not None:
            state.external_references += 1

        if state.pending_transitions:
            state.pending_transitions[-1].conditions.append(condition)
        elif state.variable is not None:
            state.variable.conditions.append(condition)
        else:
            step = state.step
            if isinstance(step, RestStep) or state.in_exit:
                add_to_groups(step.exit_conditions, condition)
            else:
                add_to_groups(step.entry_conditions, condition)
            self._record_names(step, condition)
        return True

    def _record_names(self, step: RestStep | SequentialStep, condition: Condition) -> None:
        upper = condition.text.upper()
        keywords = self.rules.variables
        tables = (
            (step.timers, keywords.timer, condition.timer is not None),
            (step.markers, keywords.marker, False),
            (step.faults, keywords.fault, False),
        )
        for table, words, forced in tables:
            if forced or any(w.upper() in upper for w in words):
                name = _first_name(condition.text)
                if name not in table:
                    table.append(name)


def _first_name(text: str) -> str:
    for word in text.split():
        if len(word) > 2 and word[0].isalpha() and word.upper() not in _NAME_STOPWORDS:
            return word
    return text


class UnrecognizedLine(LineStrategy):
    name = "unrecognized"

    def match(self, line, state):
        state.unrecognized_lines += 1
        state.report(warning(
            DiagnosticCode.UNRECOGNIZED_LINE,
            f"unrecognized line: {line.text}",
            line.number, line.raw,
        ))
        return True


STRATEGY_ORDER: tuple[type[LineStrategy], ...] = (
    CommentLine,
    HeaderLine,
    SymbolicIdbLine,
    DeclarationLine,
    TransitionLine,
    VariableLine,
    ConditionLine,
    UnrecognizedLine,
)


def default_strategies(rules: SyntaxRules) -> list[LineStrategy]:
    return [cls(rules) for cls in STRATEGY_ORDER]
