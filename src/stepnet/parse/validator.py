"""Semantic validation of a parsed ``Program``.

All checks are collected, never raised: the validator appends its
diagnostics to the Program and returns them in a ``ValidationReport``
together with the rule-group partition of the standalone variables.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Mapping

from pydantic import BaseModel, ConfigDict

from stepnet.config.validation import (
    DEFAULT_VALIDATION_RULES,
    CrossReferenceMode,
    StepTypeRule,
    ValidationRules,
)
from stepnet.model.diagnostics import Diagnostic, DiagnosticCode, Severity, error, warning
from stepnet.model.program import CrossReference, Program, RestStep

logger = logging.getLogger(__name__)


class RegistryEntry(BaseModel):
    """What cross-reference resolution needs to know about another program."""

    model_config = ConfigDict(frozen=True)

    name: str
    step_numbers: frozenset[int] = frozenset()


Registry = Mapping[str, RegistryEntry]


def snapshot_registry(programs: Iterable[Program | RegistryEntry]) -> Registry:
    """Read-only name -> entry mapping, built between parses."""
    entries: dict[str, RegistryEntry] = {}
    for item in programs:
        if not isinstance(item, RegistryEntry):
            item = RegistryEntry(name=item.name, step_numbers=frozenset(item.step_numbers()))
        entries[item.name] = item
    return MappingProxyType(entries)


class ValidationReport(BaseModel):
    errors: list[Diagnostic] = []
    warnings: list[Diagnostic] = []
    variable_groups: dict[str, list[str]] = {}
    """Rule-group key -> names of the variables classified into it."""

    def add(self, diagnostic: Diagnostic) -> None:
        if diagnostic.severity is Severity.ERROR:
            self.errors.append(diagnostic)
        else:
            self.warnings.append(diagnostic)


class ProgramValidator:
    def __init__(self, rules: ValidationRules | None = None, registry: Registry | None = None):
        self.rules = rules or DEFAULT_VALIDATION_RULES
        self.registry: Registry = registry if registry is not None else MappingProxyType({})

    def validate(self, program: Program) -> ValidationReport:
        report = ValidationReport(variable_groups={key: [] for key in self.rules.groups})
        self._check_step_numbers(program, report)
        self._check_transitions(program, report)
        self._check_step_rules(program, report)
        self._check_variables(program, report)
        self._check_timers(program, report)
        self._check_cross_references(program, report)

        program.errors.extend(report.errors)
        program.warnings.extend(report.warnings)
        logger.info(
            "validated %r: %d errors, %d warnings",
            program.name, len(report.errors), len(report.warnings),
        )
        return report

    # -- structure --------------------------------------------------------

    def _check_step_numbers(self, program: Program, report: ValidationReport) -> None:
        seen: set[int] = set()
        rest_seen = False
        for step in program.steps:
            if isinstance(step, RestStep):
                if rest_seen:
                    report.add(error(
                        DiagnosticCode.DUPLICATE_REST,
                        f"second rest step '{step.label}'",
                        step.line_number,
                    ))
                rest_seen = True
                continue
            if step.number == 0:
                report.add(error(
                    DiagnosticCode.DUPLICATE_STEP,
                    f"'{step.label}' uses step bit 0, which belongs to the rest step",
                    step.line_number,
                ))
                continue
            if step.number in seen:
                report.add(error(
                    DiagnosticCode.DUPLICATE_STEP,
                    f"duplicate step number {step.number}",
                    step.line_number,
                ))
            seen.add(step.number)

        numbers = sorted(seen)
        for prev, cur in zip(numbers, numbers[1:]):
            if cur == prev + 1:
                continue
            bridged = any(
                s.transitions for s in program.sequential_steps if s.number == cur
            )
            if not bridged:
                first = next(s for s in program.sequential_steps if s.number == cur)
                report.add(warning(
                    DiagnosticCode.MISSING_SEQUENTIAL_STEP,
                    f"steps {prev + 1}..{cur - 1} missing before step {cur}",
                    first.line_number,
                ))

    def _check_transitions(self, program: Program, report: ValidationReport) -> None:
        known = program.step_numbers()
        for step in program.steps:
            for transition in step.transitions:
                if transition.from_step not in known:
                    report.add(error(
                        DiagnosticCode.INVALID_TRANSITION,
                        f"'{step.label}' continues from unknown step {transition.from_step}",
                        transition.line_number,
                    ))

    def _check_step_rules(self, program: Program, report: ValidationReport) -> None:
        for step in program.steps:
            rule: StepTypeRule = (
                self.rules.steps.rest if isinstance(step, RestStep) else self.rules.steps.sequential
            )
            if not step.description.strip():
                report.add(warning(
                    DiagnosticCode.EMPTY_STEP_DESCRIPTION,
                    f"'{step.label}' has no description",
                    step.line_number,
                ))
            if step.entry_conditions and not rule.allows_entry_conditions:
                report.add(error(
                    DiagnosticCode.INVALID_ENTRY_CONDITIONS,
                    f"'{step.label}' must not have entry conditions",
                    step.line_number,
                ))
            if step.exit_conditions and not rule.allows_exit_conditions:
                report.add(warning(
                    DiagnosticCode.TOO_MANY_CONDITIONS,
                    f"'{step.label}' must not have exit conditions",
                    step.line_number,
                ))
            if rule.max_conditions is not None and step.condition_count > rule.max_conditions:
                report.add(warning(
                    DiagnosticCode.TOO_MANY_CONDITIONS,
                    f"'{step.label}' has {step.condition_count} conditions, maximum is {rule.max_conditions}",
                    step.line_number,
                ))
            if rule.max_transitions is not None and len(step.transitions) > rule.max_transitions:
                report.add(warning(
                    DiagnosticCode.TOO_MANY_TRANSITIONS,
                    f"'{step.label}' has {len(step.transitions)} VON transitions, "
                    f"maximum is {rule.max_transitions}",
                    step.line_number,
                ))

    # -- variables --------------------------------------------------------

    def _check_variables(self, program: Program, report: ValidationReport) -> None:
        for var in program.variables:
            key = self.rules.classify(var.source or f"{var.name} =")
            var.group = key
            report.variable_groups.setdefault(key, []).append(var.name)
            group = self.rules.groups.get(key)
            if group is None:
                continue
            if group.requires_conditions and not var.conditions:
                report.add(warning(
                    DiagnosticCode.MISSING_CONDITIONS,
                    f"variable '{var.name}' of group {group.name} requires conditions",
                    var.line_number,
                ))
            if group.max_conditions is not None and len(var.conditions) > group.max_conditions:
                report.add(warning(
                    DiagnosticCode.TOO_MANY_CONDITIONS,
                    f"variable '{var.name}' has {len(var.conditions)} conditions, "
                    f"maximum is {group.max_conditions}",
                    var.line_number,
                ))

    def _check_timers(self, program: Program, report: ValidationReport) -> None:
        rules = self.rules.timer
        for _, cond in program.iter_conditions():
            timer = cond.timer
            if timer is None:
                continue
            if not rules.unit_allowed(timer.unit) or timer.value > rules.max_value:
                report.add(warning(
                    DiagnosticCode.TIMER_OUT_OF_RANGE,
                    f"timer {timer.value}{timer.unit} outside allowed range "
                    f"(max {rules.max_value}, units {', '.join(rules.allowed_units)})",
                    cond.line_number,
                ))

    # -- cross references -------------------------------------------------

    def _check_cross_references(self, program: Program, report: ValidationReport) -> None:
        settings = self.rules.cross_references
        if settings.mode is CrossReferenceMode.LENIENT:
            return
        make = error if settings.mode is CrossReferenceMode.STRICT else warning
        for ref in program.cross_references:
            problem = self._resolve(ref, settings.require_steps_exist)
            if problem:
                report.add(make(DiagnosticCode.UNRESOLVED_CROSS_REFERENCE, problem, ref.line_number))

    def _resolve(self, ref: CrossReference, require_steps: bool) -> str | None:
        entry = self.registry.get(ref.program_name)
        if entry is None:
            return f"referenced program '{ref.program_name}' not found"
        if require_steps:
            missing = [n for n in ref.step_numbers if n not in entry.step_numbers]
            if missing:
                return f"steps {missing} not found in program '{ref.program_name}'"
        return None


def validate_program(
    program: Program,
    rules: ValidationRules | None = None,
    registry: Registry | None = None,
) -> ValidationReport:
    return ProgramValidator(rules, registry).validate(program)


__all__ = [
    "ProgramValidator",
    "Registry",
    "RegistryEntry",
    "ValidationReport",
    "snapshot_registry",
    "validate_program",
]
