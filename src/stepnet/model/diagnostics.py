"""Diagnostics collected while parsing and validating a step program.

Nothing in the parse/validate stages raises on bad input. Every problem
becomes a Diagnostic appended to the Program's ``errors`` or ``warnings``
list, and the caller decides whether errors block export.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class DiagnosticCode(str, Enum):
    # Structural errors
    DUPLICATE_STEP = "DUPLICATE_STEP"
    DUPLICATE_REST = "DUPLICATE_REST"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    EMPTY_IDENTIFIER = "EMPTY_IDENTIFIER"
    INVALID_ENTRY_CONDITIONS = "INVALID_ENTRY_CONDITIONS"
    UNRESOLVED_CROSS_REFERENCE = "UNRESOLVED_CROSS_REFERENCE"

    # Advisory
    MISSING_SEQUENTIAL_STEP = "MISSING_SEQUENTIAL_STEP"
    MISSING_CONDITIONS = "MISSING_CONDITIONS"
    EMPTY_STEP_DESCRIPTION = "EMPTY_STEP_DESCRIPTION"
    TOO_MANY_CONDITIONS = "TOO_MANY_CONDITIONS"
    TOO_MANY_TRANSITIONS = "TOO_MANY_TRANSITIONS"
    TIMER_OUT_OF_RANGE = "TIMER_OUT_OF_RANGE"
    AMBIGUOUS_CONDITION = "AMBIGUOUS_CONDITION"
    ORPHAN_TRANSITION = "ORPHAN_TRANSITION"
    UNRECOGNIZED_LINE = "UNRECOGNIZED_LINE"


class Diagnostic(BaseModel):
    """A single error or warning.

    *text* carries the raw source line where one exists, so unrecognized
    input is never lost.
    """

    code: DiagnosticCode
    severity: Severity
    message: str
    line_number: int | None = None
    text: str | None = None

    def __str__(self) -> str:
        loc = f"line {self.line_number}: " if self.line_number is not None else ""
        return f"{loc}[{self.code.value}] {self.message}"


def error(code: DiagnosticCode, message: str, line_number: int | None = None, text: str | None = None) -> Diagnostic:
    return Diagnostic(code=code, severity=Severity.ERROR, message=message, line_number=line_number, text=text)


def warning(code: DiagnosticCode, message: str, line_number: int | None = None, text: str | None = None) -> Diagnostic:
    return Diagnostic(code=code, severity=Severity.WARNING, message=message, line_number=line_number, text=text)
