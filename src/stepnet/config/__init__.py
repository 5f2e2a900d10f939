"""Syntax and validation rule sets.

Both are plain pydantic models, so a customised rule set is just JSON::

    rules = load_validation_rules("rules.json")
    Path("defaults.json").write_text(dump_rules(DEFAULT_VALIDATION_RULES))
"""

from __future__ import annotations

from pathlib import Path

from .syntax import (
    DEFAULT_SYNTAX_RULES,
    ConditionHeuristics,
    ConditionSyntax,
    StepKeywords,
    SyntaxRules,
    VariableKeywords,
)
from .validation import (
    DEFAULT_VALIDATION_RULES,
    CrossReferenceMode,
    CrossReferenceRules,
    GroupRule,
    StepRules,
    StepTypeRule,
    TimerRules,
    ValidationRules,
)


def load_syntax_rules(path: str | Path) -> SyntaxRules:
    return SyntaxRules.model_validate_json(Path(path).read_text(encoding="utf-8"))


def load_validation_rules(path: str | Path) -> ValidationRules:
    return ValidationRules.model_validate_json(Path(path).read_text(encoding="utf-8"))


def dump_rules(rules: SyntaxRules | ValidationRules) -> str:
    return rules.model_dump_json(indent=2)


__all__ = [
    "DEFAULT_SYNTAX_RULES",
    "DEFAULT_VALIDATION_RULES",
    "ConditionHeuristics",
    "ConditionSyntax",
    "CrossReferenceMode",
    "CrossReferenceRules",
    "GroupRule",
    "StepKeywords",
    "StepRules",
    "StepTypeRule",
    "SyntaxRules",
    "TimerRules",
    "ValidationRules",
    "VariableKeywords",
    "dump_rules",
    "load_syntax_rules",
    "load_validation_rules",
]
