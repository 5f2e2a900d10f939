"""End-to-end entry points: text -> Program -> Openness XML.

Configuration is always passed explicitly; nothing is kept between calls
except the compiled-pattern cache.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Iterable

from pydantic import BaseModel

from stepnet.config.syntax import SyntaxRules
from stepnet.config.validation import ValidationRules
from stepnet.export.openness import to_openness_xml
from stepnet.generate.netlist import GenerationError, GeneratorOptions, NetlistGenerator
from stepnet.generate.uid import IdScheme
from stepnet.model.diagnostics import Diagnostic
from stepnet.model.program import Program, Statistics
from stepnet.parse.normalize import SourceKind, normalize_text
from stepnet.parse.parser import ProgramParser
from stepnet.parse.validator import ProgramValidator, Registry

logger = logging.getLogger(__name__)


class ParseResult(BaseModel):
    program: Program
    source: SourceKind = SourceKind.DIRECT_ENTRY
    normalized_text: str = ""
    variable_groups: dict[str, list[str]] = {}

    @property
    def errors(self) -> list[Diagnostic]:
        return self.program.errors

    @property
    def warnings(self) -> list[Diagnostic]:
        return self.program.warnings

    @property
    def statistics(self) -> Statistics:
        return self.program.statistics

    @property
    def ok(self) -> bool:
        return not self.program.errors


def parse(
    text: str,
    source: SourceKind | str = SourceKind.DIRECT_ENTRY,
    metadata: dict[str, Any] | None = None,
    *,
    syntax_rules: SyntaxRules | None = None,
    validation_rules: ValidationRules | None = None,
    registry: Registry | None = None,
) -> ParseResult:
    """Normalize, parse and validate *text*.

    Never raises on malformed input; every problem is a diagnostic on the
    returned result.  Line numbers refer to the normalized text.
    """
    source = SourceKind(source)
    normalized = normalize_text(text, source, syntax_rules)
    program = ProgramParser(syntax_rules).parse(normalized, metadata)
    report = ProgramValidator(validation_rules, registry).validate(program)
    return ParseResult(
        program=program,
        source=source,
        normalized_text=normalized,
        variable_groups=report.variable_groups,
    )


def generate(
    program: Program,
    *,
    pretty: bool = True,
    id_scheme: IdScheme | str = IdScheme.MONOTONIC,
    include_instance_db: bool = False,
) -> str:
    """Openness XML for *program*; raises ``GenerationError`` if it has no steps."""
    options = GeneratorOptions(id_scheme=id_scheme, include_instance_db=include_instance_db)
    document = NetlistGenerator(options).build(program)
    return to_openness_xml(document, pretty=pretty)


def compile_text(
    text: str,
    source: SourceKind | str = SourceKind.DIRECT_ENTRY,
    metadata: dict[str, Any] | None = None,
    *,
    syntax_rules: SyntaxRules | None = None,
    validation_rules: ValidationRules | None = None,
    registry: Registry | None = None,
    pretty: bool = True,
    id_scheme: IdScheme | str = IdScheme.MONOTONIC,
    include_instance_db: bool = False,
    allow_errors: bool = False,
) -> tuple[ParseResult, str]:
    """Parse and generate in one call.

    Structural errors block generation unless *allow_errors* is set.
    """
    result = parse(
        text, source, metadata,
        syntax_rules=syntax_rules,
        validation_rules=validation_rules,
        registry=registry,
    )
    if result.errors and not allow_errors:
        first = result.errors[0]
        raise GenerationError(f"{len(result.errors)} error(s) in program, first: {first}")
    xml = generate(
        result.program,
        pretty=pretty,
        id_scheme=id_scheme,
        include_instance_db=include_instance_db,
    )
    return result, xml


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

class Summary(BaseModel):
    programs: int = 0
    total_steps: int = 0
    total_conditions: int = 0
    total_variables: int = 0
    errors: int = 0
    warnings: int = 0
    average_complexity: float = 0.0
    step_types: dict[str, int] = {}
    variable_groups: dict[str, int] = {}
    diagnostic_codes: dict[str, int] = {}


def summarize(results: Iterable[ParseResult]) -> Summary:
    """Aggregate statistics over several parse results."""
    results = list(results)
    step_types: Counter[str] = Counter()
    groups: Counter[str] = Counter()
    codes: Counter[str] = Counter()
    summary = Summary(programs=len(results))

    for result in results:
        stats = result.statistics
        summary.total_steps += stats.total_steps
        summary.total_conditions += stats.total_conditions
        summary.total_variables += stats.total_variables
        summary.errors += len(result.errors)
        summary.warnings += len(result.warnings)
        step_types.update(step.kind for step in result.program.steps)
        groups.update(var.group for var in result.program.variables)
        codes.update(d.code.value for d in (*result.errors, *result.warnings))

    if results:
        summary.average_complexity = round(
            sum(r.statistics.complexity_score for r in results) / len(results), 2
        )
    summary.step_types = dict(step_types)
    summary.variable_groups = dict(groups)
    summary.diagnostic_codes = dict(codes)
    return summary
