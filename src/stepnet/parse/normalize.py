"""Text normalizer: canonical line layout before parsing.

Every REST/STEP declaration, VON-STEP transition, variable assignment and
condition ends up on its own line with upper-case keywords and uniform
``KEYWORD[ n]: description`` spacing.  Normalization is a best-effort
text-to-text transform: it never raises, and applying it twice gives the
same text as applying it once.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from stepnet._patterns import alternation, compiled
from stepnet.config.syntax import DEFAULT_SYNTAX_RULES, SyntaxRules

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    DOCUMENT_IMPORT = "document-import"
    DIRECT_ENTRY = "direct-entry"


_TYPOGRAPHIC = str.maketrans({
    "“": '"',
    "”": '"',
    "„": '"',
    "‘": "'",
    "’": "'",
    "‚": "'",
    "–": "-",
    "—": "-",
    "…": "...",
    " ": " ",
})

_INDENT = "  "
_RUNS = re.compile(r"[ \t]+")
_BULLET = re.compile(r"^[•·▪▫]\s*")
_NUMBERED_ITEM = re.compile(r"^\d+[.)]\s+")
# Colon spacing after a word, except between the digits of a value like 12:30.
_COLON = re.compile(r"([^\W\d])\s*:\s*|(\d)\s*:(?!\s*\d)\s*")
_EQUALS = re.compile(r"(?<![=<>!])\s*=(?!=)\s*")
_AND_MARKER = re.compile(r"^-\s*")
_OR_MARKER = re.compile(r"^\+\s*")


def normalize_text(
    text: str,
    source: SourceKind | str = SourceKind.DIRECT_ENTRY,
    syntax_rules: SyntaxRules | None = None,
) -> str:
    rules = syntax_rules or DEFAULT_SYNTAX_RULES
    source = SourceKind(source)

    text = text.replace("\r\n", "\n").replace("\r", "\n").translate(_TYPOGRAPHIC)
    if source is SourceKind.DOCUMENT_IMPORT:
        text = text.replace("\f", "").replace("\v", "\n")

    lines = [_clean_whitespace(line) for line in text.split("\n")]
    if source is SourceKind.DOCUMENT_IMPORT:
        lines = [_document_markers(line) for line in lines]
    lines = _split_embedded_declarations(lines, rules)
    lines = [_canonical_line(line, rules) for line in lines]

    result = "\n".join(lines).strip("\n")
    logger.debug("normalized %d lines from %s input", len(lines), source.value)
    return result


def _clean_whitespace(line: str) -> str:
    """Trim, collapse internal runs, keep indentation as one two-space marker."""
    stripped = line.strip()
    if not stripped:
        return ""
    indent = _INDENT if line[:1].isspace() else ""
    return indent + _RUNS.sub(" ", stripped)


def _split_indent(line: str) -> tuple[str, str]:
    if line.startswith(_INDENT):
        return _INDENT, line[len(_INDENT):]
    return "", line


def _document_markers(line: str) -> str:
    """Bullets and numbered list items from word processors become ``- `` markers."""
    indent, body = _split_indent(line)
    if _BULLET.match(body):
        return _BULLET.sub("- ", body)
    if _NUMBERED_ITEM.match(body):
        return _NUMBERED_ITEM.sub("- ", body)
    return indent + body


# ---------------------------------------------------------------------------
# Embedded declarations
# ---------------------------------------------------------------------------

def _keyword_patterns(rules: SyntaxRules) -> dict[str, re.Pattern[str]]:
    steps = alternation(rules.step_keywords.step)
    rests = alternation(rules.step_keywords.rest)
    decls = alternation(rules.declaration_keywords())
    von = re.escape(rules.conditions.transition_keyword)
    flags = re.IGNORECASE
    return {
        "embedded_step": compiled(
            rf"^(?P<before>.+?)\s+(?P<kw>{steps})\s*(?P<num>\d+)\s*[:.]\s*(?P<after>.*)$", flags),
        "embedded_rest": compiled(
            rf"^(?P<before>.+?)\s+(?P<kw>{rests})\s*:\s*(?P<after>.*)$", flags),
        "starts_with_decl": compiled(rf"^(?:{decls})\b", flags),
        "decl_shape": compiled(rf"^(?:{decls})\s*\d*\s*:", flags),
        "transition": compiled(
            rf"^(?P<plus>\+\s*)?{von}\s+(?P<kw>{steps})\s+(?P<num>\d+)\s*$", flags),
        "rest": compiled(rf"^(?P<kw>{rests})\s*(?:[:.]\s*|(?=\()|$)", flags),
        "step_numbered": compiled(rf"^(?P<kw>{steps})\s*[-.(\s]*(?P<num>\d+)\s*[:.)]*\s*", flags),
        "step_unnumbered": compiled(rf"^(?P<kw>{steps})\s*[:.](?!\s*\d)\s*", flags),
    }


def _is_reference_context(before: str) -> bool:
    """True when a keyword after *before* belongs to a reference, not a declaration."""
    before = before.strip()
    if before.count("(") > before.count(")"):
        return True
    return before.endswith("+") or before in ("-", "")


def _is_comment(body: str, rules: SyntaxRules) -> bool:
    return bool(rules.comment_prefix) and body.startswith(rules.comment_prefix)


def _split_embedded_declarations(lines: list[str], rules: SyntaxRules) -> list[str]:
    pats = _keyword_patterns(rules)
    out: list[str] = []
    for line in lines:
        indent, body = _split_indent(line)
        if not body or _is_comment(body, rules):
            out.append(line)
            continue
        pieces = _split_body(body, pats)
        out.append(indent + pieces[0])
        out.extend(pieces[1:])
    return out


def _split_body(body: str, pats: dict[str, re.Pattern[str]]) -> list[str]:
    """Split *body* at embedded declarations until no further split applies."""
    if pats["starts_with_decl"].match(body) or pats["transition"].match(body):
        return [body]

    m = pats["embedded_step"].match(body)
    if m and not _is_reference_context(m["before"]):
        return [*_split_body(m["before"].strip(), pats), f"{m['kw'].upper()} {m['num']}: {m['after']}"]

    m = pats["embedded_rest"].match(body)
    if m and not _is_reference_context(m["before"]) \
            and not compiled(r"\([^)]*:[^)]*\)").search(m["before"]):
        return [*_split_body(m["before"].strip(), pats), f"{m['kw'].upper()}: {m['after']}"]

    return [body]


# ---------------------------------------------------------------------------
# Per-line canonical form
# ---------------------------------------------------------------------------

def _canonical_line(line: str, rules: SyntaxRules) -> str:
    if not line:
        return ""
    pats = _keyword_patterns(rules)
    indent, body = _split_indent(line)
    if _is_comment(body, rules):
        return line

    m = pats["transition"].match(body)
    if m:
        plus = "+ " if m["plus"] else ""
        return f"{plus}{rules.conditions.transition_keyword.upper()} {m['kw'].upper()} {m['num']}"

    # Indented lines are conditions unless they carry a full declaration.
    if not indent or pats["decl_shape"].match(body):
        declared = _canonical_declaration(body, pats)
        if declared is not None:
            indent, body = "", declared

    body = _COLON.sub(lambda m: (m[1] or m[2]) + ": ", body)
    body = _EQUALS.sub(" = ", body)
    if _AND_MARKER.match(body):
        indent, body = "", _AND_MARKER.sub("- ", body)
    elif _OR_MARKER.match(body):
        indent, body = "", _OR_MARKER.sub("+ ", body)
    body = _RUNS.sub(" ", body).strip()
    return indent + body if body else ""


def _canonical_declaration(body: str, pats: dict[str, re.Pattern[str]]) -> str | None:
    m = pats["rest"].match(body)
    if m:
        return f"{m['kw'].upper()}: {body[m.end():]}"
    m = pats["step_numbered"].match(body)
    if m:
        return f"{m['kw'].upper()} {m['num']}: {body[m.end():]}"
    m = pats["step_unnumbered"].match(body)
    if m:
        return f"{m['kw'].upper()} 1: {body[m.end():]}"
    return None
