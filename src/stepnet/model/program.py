"""Program model produced by the step-program parser.

A Program is an ordered list of steps.  Steps are a closed tagged variant
(``RestStep`` / ``SequentialStep``) discriminated on ``kind``; each step
carries condition groups, explicit VON-STEP transitions and the names of
timers, markers and faults referenced in its conditions.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .diagnostics import Diagnostic


class LogicOperator(str, Enum):
    AND = "AND"
    OR = "OR"


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

class Comparison(BaseModel):
    """``lhs OP rhs`` embedded in a condition line."""

    model_config = ConfigDict(frozen=True)

    variable: str
    operator: Literal["==", "!=", "<>", ">=", "<=", ">", "<"]
    value: str


class TimerSpec(BaseModel):
    """``TIJD 10s ??``: how long the step must have been active."""

    model_config = ConfigDict(frozen=True)

    value: int
    unit: str


class CrossReference(BaseModel):
    """Reference to one or more steps of another program.

    ``Pump running (Filler STEP 3+4)`` yields program_name ``Filler`` and
    step_numbers ``[3, 4]``.
    """

    model_config = ConfigDict(frozen=True)

    program_name: str
    step_numbers: list[int]
    description: str = ""
    line_number: int | None = None

    @field_validator("step_numbers")
    @classmethod
    def _ordered_unique(cls, v: list[int]) -> list[int]:
        if not v:
            raise ValueError("step_numbers must not be empty")
        return list(dict.fromkeys(v))


class Condition(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    negated: bool = False
    operator: LogicOperator = LogicOperator.AND
    comparison: Comparison | None = None
    cross_reference: CrossReference | None = None
    timer: TimerSpec | None = None
    external_reference: str | None = None
    line_number: int | None = None

    @property
    def kinds(self) -> list[str]:
        """Names of the structured detectors that matched this line."""
        found = []
        if self.cross_reference is not None:
            found.append("cross_reference")
        if self.timer is not None:
            found.append("timer")
        if self.comparison is not None:
            found.append("comparison")
        return found


class ConditionGroup(BaseModel):
    operator: LogicOperator = LogicOperator.AND
    conditions: list[Condition] = []


def count_conditions(groups: list[ConditionGroup]) -> int:
    return sum(len(g.conditions) for g in groups)


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

class Transition(BaseModel):
    """An explicit non-sequential predecessor (``VON STEP n``)."""

    from_step: int
    is_or: bool = False
    line_number: int | None = None
    conditions: list[Condition] = []


class Assignment(BaseModel):
    """In-step set-target such as ``Pump on =``."""

    target: str
    value: str = ""
    line_number: int | None = None


class _StepBase(BaseModel):
    keyword: str
    description: str = ""
    entry_conditions: list[ConditionGroup] = []
    exit_conditions: list[ConditionGroup] = []
    transitions: list[Transition] = []
    assignments: list[Assignment] = []
    timers: list[str] = []
    markers: list[str] = []
    faults: list[str] = []
    line_number: int | None = None

    @property
    def condition_count(self) -> int:
        return count_conditions(self.entry_conditions) + count_conditions(self.exit_conditions)


class RestStep(_StepBase):
    """The idle/home state; always bit 0 of the step array."""

    kind: Literal["rest"] = "rest"
    number: Literal[0] = 0

    @property
    def label(self) -> str:
        return f"{self.keyword}: {self.description}".strip()


class SequentialStep(_StepBase):
    kind: Literal["sequential"] = "sequential"
    number: int = Field(ge=0)

    @property
    def label(self) -> str:
        return f"{self.keyword} {self.number}: {self.description}".strip()


Step = Annotated[Union[RestStep, SequentialStep], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------

class Variable(BaseModel):
    """A standalone ``name = value`` declaration outside any open step."""

    name: str
    value: str = ""
    group: str = "general"
    """Validation rule-group key; assigned when the program is validated."""
    source: str = ""
    line_number: int | None = None
    conditions: list[Condition] = []


# ---------------------------------------------------------------------------
# Program
# ---------------------------------------------------------------------------

class FunctionBlockTag(BaseModel):
    block_type: Literal["FB", "FC"] = "FB"
    number: int = Field(ge=0)

    def __str__(self) -> str:
        return f"{self.block_type}{self.number}"


class Statistics(BaseModel):
    total_steps: int = 0
    rest_steps: int = 0
    sequential_steps: int = 0
    total_conditions: int = 0
    total_variables: int = 0
    cross_references: int = 0
    external_references: int = 0
    non_sequential_transitions: int = 0
    unrecognized_lines: int = 0
    complexity_score: int = 0


class Program(BaseModel):
    name: str = ""
    function_block: FunctionBlockTag | None = None
    symbolic_instance_name: str = ""
    steps: list[Step] = []
    variables: list[Variable] = []
    cross_references: list[CrossReference] = []
    comments: list[str] = []
    errors: list[Diagnostic] = []
    warnings: list[Diagnostic] = []
    statistics: Statistics = Statistics()
    metadata: dict[str, Any] = {}

    @property
    def rest_step(self) -> RestStep | None:
        return next((s for s in self.steps if isinstance(s, RestStep)), None)

    @property
    def sequential_steps(self) -> list[SequentialStep]:
        return [s for s in self.steps if isinstance(s, SequentialStep)]

    def step_numbers(self) -> set[int]:
        return {s.number for s in self.steps}

    def variables_by_group(self) -> dict[str, list[Variable]]:
        groups: dict[str, list[Variable]] = {}
        for var in self.variables:
            groups.setdefault(var.group, []).append(var)
        return groups

    def iter_conditions(self):
        """Yield ``(step, condition)`` for every entry and exit condition."""
        for step in self.steps:
            for group in (*step.entry_conditions, *step.exit_conditions):
                for cond in group.conditions:
                    yield step, cond
