"""Condition-line extraction.

A condition line is peeled in a fixed order: group marker, negation
keyword, then the independent detectors (cross-reference, timer,
comparison, external reference).  The observed grammar puts at most one
of cross-reference/timer/comparison on a line; when several match, every
value is kept and the line is flagged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from stepnet._patterns import alternation, compiled
from stepnet.config.syntax import SyntaxRules
from stepnet.model.diagnostics import Diagnostic, DiagnosticCode, error, warning
from stepnet.model.program import (
    Comparison,
    Condition,
    CrossReference,
    LogicOperator,
    TimerSpec,
)

_EXTERNAL = re.compile(r"\*([^*]+)\*")
_STEP_LIST = re.compile(r"\d+")


@dataclass
class Extracted:
    """One parsed condition line plus what it produced on the side."""

    condition: Condition
    marked: bool = False
    """Line carried an explicit ``-``/``+`` group marker."""

    diagnostics: list[Diagnostic] = field(default_factory=list)


class ConditionExtractor:
    """Turns single condition lines into ``Condition`` values."""

    def __init__(self, rules: SyntaxRules):
        self.rules = rules
        syntax = rules.conditions
        steps = alternation(rules.step_keywords.step)
        timers = alternation(rules.variables.timer)
        units = alternation(syntax.timer_units)
        flags = re.IGNORECASE

        self._negation = compiled(rf"^(?:{alternation(syntax.negation)})\s+", flags)
        self._cross_ref = compiled(
            rf"\(\s*(?P<program>(?:[^()]*?\s)?)(?P<kw>{steps})\s*"
            rf"(?P<steps>\d+(?:\s*\+\s*\d+)*)\s*\)",
            flags,
        )
        self._timer = compiled(
            rf"\b(?:{timers})\s*~?\s*(?P<value>\d+)\s*(?P<unit>{units})\b(?:\s*\?\?)?",
            flags,
        )
        self._comparison = compiled(
            r"(?P<lhs>[\w.\[\]]+)\s*(?P<op>==|!=|<>|>=|<=|>|<)\s*(?P<rhs>\S.*?)\s*$"
        )

    # -- marker / negation ------------------------------------------------

    def split_marker(self, text: str) -> tuple[str, bool, bool]:
        """Return ``(rest, is_or, marked)`` for a stripped line."""
        syntax = self.rules.conditions
        for prefix, is_or in ((syntax.or_prefix, True), (syntax.and_prefix, False)):
            if prefix and text.startswith(prefix):
                return text[len(prefix):].strip(), is_or, True
        return text, False, False

    def split_negation(self, text: str) -> tuple[str, bool]:
        m = self._negation.match(text)
        if m:
            return text[m.end():].strip(), True
        return text, False

    # -- heuristics -------------------------------------------------------

    def signal_count(self, text: str) -> int:
        """Number of enabled "looks like a condition" signals in *text*."""
        heur = self.rules.heuristics
        body, _, _ = self.split_marker(text.strip())
        checks = (
            (heur.negation, lambda: self._negation.match(body)),
            (heur.timer, lambda: self._timer.search(body)),
            (heur.comparison, lambda: self._comparison.search(body)),
            (heur.cross_reference, lambda: self._cross_ref.search(body)),
        )
        return sum(1 for enabled, test in checks if enabled and test())

    def looks_like_condition(self, text: str) -> bool:
        return self.signal_count(text) >= self.rules.heuristics.min_signals

    # -- extraction -------------------------------------------------------

    def extract(self, line: str, line_number: int | None = None) -> Extracted:
        text, is_or, marked = self.split_marker(line.strip())
        text, negated = self.split_negation(text)
        diagnostics: list[Diagnostic] = []

        cross_ref = None
        m = self._cross_ref.search(text)
        if m:
            program = m["program"].strip()
            if not program:
                diagnostics.append(error(
                    DiagnosticCode.EMPTY_IDENTIFIER,
                    "cross-reference without a program name",
                    line_number, line,
                ))
            else:
                cross_ref = CrossReference(
                    program_name=program,
                    step_numbers=[int(n) for n in _STEP_LIST.findall(m["steps"])],
                    description=text[:m.start()].strip(),
                    line_number=line_number,
                )

        timer = None
        m = self._timer.search(text)
        if m:
            timer = TimerSpec(value=int(m["value"]), unit=m["unit"])

        comparison = None
        m = self._comparison.search(text)
        if m:
            comparison = Comparison(
                variable=m["lhs"],
                operator=m["op"],
                value=m["rhs"].replace('"', "").replace("'", ""),
            )

        m = _EXTERNAL.search(text)
        external = m.group(1).strip() if m else None

        condition = Condition(
            text=text,
            negated=negated,
            operator=LogicOperator.OR if is_or else LogicOperator.AND,
            comparison=comparison,
            cross_reference=cross_ref,
            timer=timer,
            external_reference=external,
            line_number=line_number,
        )
        if len(condition.kinds) > 1:
            diagnostics.append(warning(
                DiagnosticCode.AMBIGUOUS_CONDITION,
                f"condition matches several forms ({', '.join(condition.kinds)})",
                line_number, line,
            ))
        return Extracted(condition=condition, marked=marked, diagnostics=diagnostics)
