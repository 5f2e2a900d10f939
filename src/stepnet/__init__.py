"""stepnet: REST/STEP step programs to TIA Portal Openness FBD networks.

Most callers only need the pipeline functions::

    from stepnet import compile_text
    result, xml = compile_text(text, metadata={"name": "Filler"})
"""

__version__ = "0.1.0"

from .config import (
    DEFAULT_SYNTAX_RULES,
    DEFAULT_VALIDATION_RULES,
    CrossReferenceMode,
    SyntaxRules,
    ValidationRules,
)
from .export import to_openness_xml
from .generate import GenerationError, IdScheme, NetlistGenerator, build_document
from .model import Diagnostic, DiagnosticCode, NetlistDocument, Program, Severity
from .parse import (
    ProgramParser,
    ProgramValidator,
    RegistryEntry,
    SourceKind,
    normalize_text,
    snapshot_registry,
)
from .pipeline import ParseResult, Summary, compile_text, generate, parse, summarize

__all__ = [
    "DEFAULT_SYNTAX_RULES",
    "DEFAULT_VALIDATION_RULES",
    "CrossReferenceMode",
    "Diagnostic",
    "DiagnosticCode",
    "GenerationError",
    "IdScheme",
    "NetlistDocument",
    "NetlistGenerator",
    "ParseResult",
    "Program",
    "ProgramParser",
    "ProgramValidator",
    "RegistryEntry",
    "Severity",
    "SourceKind",
    "Summary",
    "SyntaxRules",
    "ValidationRules",
    "build_document",
    "compile_text",
    "generate",
    "normalize_text",
    "parse",
    "snapshot_registry",
    "summarize",
    "to_openness_xml",
]
