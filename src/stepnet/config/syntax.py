"""Keyword and syntax configuration for the step-program dialects.

The DSL is written in Dutch, German or English; every keyword set is
configuration rather than code.  Defaults cover all three locales.
"""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, Field, model_validator


class StepKeywords(BaseModel):
    step: list[str] = ["STAP", "SCHRITT", "STEP"]
    rest: list[str] = ["RUST", "RUHE", "REST", "IDLE"]
    end: list[str] = ["KLAAR", "FERTIG", "END"]

    @model_validator(mode="after")
    def _non_empty(self) -> Self:
        if not self.step or not self.rest:
            raise ValueError("step and rest keyword lists must not be empty")
        overlap = {k.upper() for k in self.step} & {k.upper() for k in self.rest}
        if overlap:
            raise ValueError(f"keywords used for both step and rest: {sorted(overlap)}")
        return self


class VariableKeywords(BaseModel):
    """Keywords that put a variable or condition name into a group."""

    timer: list[str] = ["TIJD", "TIME", "ZEIT"]
    marker: list[str] = ["MARKER", "FLAG", "MERKER"]
    fault: list[str] = ["STORING", "FAULT", "STÖRUNG"]


class ConditionSyntax(BaseModel):
    and_prefix: str = "-"
    or_prefix: str = "+"
    negation: list[str] = ["NIET", "NICHT", "NOT"]
    transition_keyword: str = "VON"
    timer_units: list[str] = ["Sek", "Min", "s", "m"]


class ConditionHeuristics(BaseModel):
    """Signals that mark an unmarked, unindented line as a condition.

    Imported documents often lose the ``-``/``+`` markers and the
    indentation; a line showing at least *min_signals* of the enabled
    signals is still read as a condition.
    """

    negation: bool = True
    timer: bool = True
    comparison: bool = True
    cross_reference: bool = True
    min_signals: int = Field(default=1, ge=1)


class SyntaxRules(BaseModel):
    step_keywords: StepKeywords = StepKeywords()
    variables: VariableKeywords = VariableKeywords()
    conditions: ConditionSyntax = ConditionSyntax()
    heuristics: ConditionHeuristics = ConditionHeuristics()
    symbolic_idb_prefixes: list[str] = [
        "Symbol IDB",
        "Symbolic IDB",
        "Symbool IDB",
        "Symbolik IDB",
    ]
    comment_prefix: str = "//"

    def declaration_keywords(self) -> list[str]:
        return [*self.step_keywords.rest, *self.step_keywords.step]

    def is_rest_keyword(self, keyword: str) -> bool:
        return keyword.upper() in {k.upper() for k in self.step_keywords.rest}


DEFAULT_SYNTAX_RULES = SyntaxRules()
