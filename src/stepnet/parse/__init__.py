"""Text side of the compiler: normalizer, parser and semantic validator."""

from .normalize import SourceKind, normalize_text
from .parser import ProgramParser, compute_statistics, parse_program
from .validator import (
    ProgramValidator,
    Registry,
    RegistryEntry,
    ValidationReport,
    snapshot_registry,
    validate_program,
)

__all__ = [
    "ProgramParser",
    "ProgramValidator",
    "Registry",
    "RegistryEntry",
    "SourceKind",
    "ValidationReport",
    "compute_statistics",
    "normalize_text",
    "parse_program",
    "snapshot_registry",
    "validate_program",
]
