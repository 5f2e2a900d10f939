"""Tests for the text normalizer (stepnet.parse.normalize)."""

import pytest

from stepnet import _patterns
from stepnet.config import SyntaxRules, StepKeywords
from stepnet.parse.normalize import SourceKind, normalize_text


# ===========================================================================
# Declarations
# ===========================================================================


class TestDeclarations:
    @pytest.mark.parametrize("raw, expected", [
        ("stap 1 : vullen tank", "STAP 1: vullen tank"),
        ("Stap 12:Legen", "STAP 12: Legen"),
        ("schritt 3. Entleeren", "SCHRITT 3: Entleeren"),
        ("rust: wachten", "RUST: wachten"),
        ("Ruhe:Warten", "RUHE: Warten"),
        ("REST", "REST:"),
    ])
    def test_keyword_and_spacing(self, raw, expected):
        """Keywords are uppercased and the colon gets one trailing space."""
        assert normalize_text(raw) == expected

    def test_unnumbered_step_gets_one(self):
        """A step keyword without a number becomes step 1."""
        assert normalize_text("Schritt: Start") == "SCHRITT 1: Start"

    def test_indented_step_mention_keeps_case(self):
        """Indented lines are conditions unless they carry a full declaration."""
        assert normalize_text("STAP 1: a\n  stap 2 loopt") == "STAP 1: a\n  stap 2 loopt"

    def test_indented_full_declaration_is_dedented(self):
        assert normalize_text("  stap 2: legen") == "STAP 2: legen"

    def test_transition_line(self):
        """VON STAP lines are canonicalised, with or without a plus."""
        assert normalize_text("von stap 3") == "VON STAP 3"
        assert normalize_text("+von  stap 3") == "+ VON STAP 3"


# ===========================================================================
# Embedded declarations
# ===========================================================================


class TestEmbeddedDeclarations:
    def test_step_split_onto_own_line(self):
        """A declaration trailing a condition moves to the next line."""
        assert normalize_text("Pomp aan STAP 2: legen") == "Pomp aan\nSTAP 2: legen"

    def test_rest_split_onto_own_line(self):
        assert normalize_text("Einde cyclus RUST: wachten") == "Einde cyclus\nRUST: wachten"

    def test_cross_reference_not_split(self):
        """STAP inside a parenthesised reference stays put."""
        line = "- Pomp loopt (Vuller STAP 3+4)"
        assert normalize_text(line) == line

    def test_open_parenthesis_not_split(self):
        """An unterminated reference still counts as a reference."""
        line = "- Klep open (Vuller STAP 3.)"
        assert normalize_text(line) == line

    def test_after_plus_not_split(self):
        """STAP after a plus is an OR alternative, not a declaration."""
        assert normalize_text("Klep open + STAP 3: x") == "Klep open + STAP 3: x"

    def test_comment_untouched(self):
        assert normalize_text("// stap 1: oud") == "// stap 1: oud"

    def test_several_declarations_on_one_line(self):
        """Every embedded declaration gets its own line in one pass."""
        assert normalize_text("a RUST: b STAP 2: c") == "a\nRUST: b\nSTAP 2: c"


# ===========================================================================
# Line canonical form
# ===========================================================================


class TestCanonicalLines:
    def test_markers_get_one_space_and_are_dedented(self):
        """Dash and plus markers are normalised to "- " and "+ "."""
        assert normalize_text("-Pomp aan\n  +Klep open") == "- Pomp aan\n+ Klep open"

    def test_equals_spacing(self):
        assert normalize_text("Pomp aan=") == "Pomp aan ="
        assert normalize_text("Teller=3") == "Teller = 3"

    @pytest.mark.parametrize("line", ["- Druk >= 5", "- Modus == 'Auto'", "- Klep != 1", "- Druk <= 2"])
    def test_comparison_operators_untouched(self, line):
        assert normalize_text(line) == line

    def test_whitespace_runs_collapsed(self):
        """Tabs and repeated spaces inside a line become one space."""
        assert normalize_text("Pomp    aan \t nu") == "Pomp aan nu"

    def test_indentation_kept_as_single_marker(self):
        """Any indentation is reduced to two spaces."""
        assert normalize_text("STAP 1: a\n\tPomp aan\n        Klep open") == "STAP 1: a\n  Pomp aan\n  Klep open"

    def test_line_endings(self):
        """CR and CRLF are both treated as line breaks."""
        assert normalize_text("STAP 1: a\r\nSTAP 2: b\rSTAP 3: c") == "STAP 1: a\nSTAP 2: b\nSTAP 3: c"

    def test_outer_blank_lines_stripped(self):
        assert normalize_text("\n\nSTAP 1: a\n\n") == "STAP 1: a"

    def test_inner_blank_lines_kept(self):
        assert normalize_text("STAP 1: a\n- x\n\n- y") == "STAP 1: a\n- x\n\n- y"

    def test_rest_with_parenthesised_description(self):
        """A bracketed rest description keeps its opening bracket."""
        assert normalize_text("RUST (idle)") == "RUST: (idle)"
        assert normalize_text("rust(wachten op start)") == "RUST: (wachten op start)"

    @pytest.mark.parametrize("line", ["Tijd 12:30 = a", "- Start om 06:00", "- Verhouding 3 : 1"])
    def test_colon_between_digits_untouched(self, line):
        """Times and ratios are not treated as keyword colons."""
        assert normalize_text(line) == line

    def test_typographic_characters(self):
        """Curly quotes and en dashes from word processors are replaced."""
        assert normalize_text("- Modus == “Auto” – nu") == '- Modus == "Auto" - nu'


# ===========================================================================
# Document import
# ===========================================================================


class TestDocumentImport:
    def test_bullets_become_markers(self):
        """Word bullets turn into dash markers."""
        result = normalize_text("STAP 1: a\n• Pomp aan\n▪ Klep open", SourceKind.DOCUMENT_IMPORT)
        assert result == "STAP 1: a\n- Pomp aan\n- Klep open"

    def test_numbered_items_become_markers(self):
        result = normalize_text("STAP 1: a\n1. Pomp aan\n2) Klep open", "document-import")
        assert result == "STAP 1: a\n- Pomp aan\n- Klep open"

    def test_numbered_items_untouched_in_direct_entry(self):
        """Numbered lists are only rewritten for imported documents."""
        assert normalize_text("1. Pomp aan") == "1. Pomp aan"

    def test_page_breaks(self):
        """Form feeds and vertical tabs become line breaks."""
        result = normalize_text("STAP 1: a\f\vSTAP 2: b", SourceKind.DOCUMENT_IMPORT)
        assert result == "STAP 1: a\nSTAP 2: b"


# ===========================================================================
# Fixed point
# ===========================================================================


SAMPLES = [
    "stap 1 : vullen\n  -pomp aan\n  + klep open",
    "Vuller FB304\nrust:wachten\n\nstap 1: a\nPomp aan STAP 2: legen\nvon stap 1",
    "Pomp vrijgave=\n  - NIET storing\n  - TIJD 10s ??\n  - Niveau>=80",
    "- Pomp loopt (Vuller STAP 3+4)\nEinde RUST: x\nSchritt: Start",
    "• Pomp aan\n3. Klep open\n\tNIET Storing",
    "a RUST: b STAP 2: c",
    "RUST (idle)\nTijd 12:30 = a\n- Start om 06:00",
]


class TestIdempotence:
    @pytest.mark.parametrize("sample", SAMPLES)
    @pytest.mark.parametrize("source", list(SourceKind))
    def test_normalizing_twice_changes_nothing(self, sample, source):
        """Normalized text is a fixed point."""
        once = normalize_text(sample, source)
        assert normalize_text(once, source) == once


class TestCustomKeywords:
    def test_configured_keywords(self):
        """Only the configured keywords are recognised."""
        rules = SyntaxRules(step_keywords=StepKeywords(step=["PHASE"], rest=["HOME"], end=[]))
        assert normalize_text("home: wait\nphase 2 : go", syntax_rules=rules) == "HOME: wait\nPHASE 2: go"
        assert normalize_text("stap 1: a", syntax_rules=rules) == "stap 1: a"


class TestPatternCache:
    def test_patterns_reused(self):
        """The second call compiles no new patterns."""
        normalize_text("stap 1: a")
        before = _patterns.cache_info()
        normalize_text("stap 2: b")
        after = _patterns.cache_info()
        assert after.hits > before.hits
        assert after.maxsize == 512

    def test_alternation_longest_first(self):
        """Longer keywords are tried first and duplicates dropped."""
        assert _patterns.alternation(["ST", "STAP", "ST"]) == "STAP|ST"
