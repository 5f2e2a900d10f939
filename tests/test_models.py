"""Tests for Pydantic model validators on the program and netlist models."""

import pytest
from pydantic import ValidationError

from conftest import SIMPLE_PROGRAM, parse_text, text
from stepnet.model import (
    Connection,
    CrossReference,
    Diagnostic,
    DiagnosticCode,
    FunctionBlockTag,
    Network,
    Part,
    PartType,
    Program,
    RestStep,
    SequentialStep,
    Severity,
    Wire,
)
from stepnet.model.netlist import LocalAccess


# ===========================================================================
# Program model
# ===========================================================================


class TestSteps:
    def test_discriminated_on_kind(self):
        """The kind field picks the step class when loading JSON."""
        program = Program.model_validate({
            "steps": [
                {"kind": "rest", "keyword": "RUST"},
                {"kind": "sequential", "keyword": "STAP", "number": 1},
            ],
        })
        assert isinstance(program.steps[0], RestStep)
        assert isinstance(program.steps[1], SequentialStep)

    def test_rest_number_fixed(self):
        """A rest step is always step 0."""
        with pytest.raises(ValidationError):
            RestStep(keyword="RUST", number=3)

    def test_negative_step_number(self):
        """Step numbers cannot be negative."""
        with pytest.raises(ValidationError):
            SequentialStep(keyword="STAP", number=-1)

    def test_labels(self):
        """An empty description leaves just the keyword and colon."""
        assert RestStep(keyword="RUST", description="Wachten").label == "RUST: Wachten"
        assert SequentialStep(keyword="STAP", number=4).label == "STAP 4:"

    def test_json_round_trip(self):
        """A parsed program survives a JSON round trip."""
        program = parse_text(SIMPLE_PROGRAM).program
        again = Program.model_validate_json(program.model_dump_json())
        assert again == program
        assert again.steps[2].entry_conditions == program.steps[2].entry_conditions

    def test_program_helpers(self):
        program = parse_text(SIMPLE_PROGRAM).program
        assert program.rest_step is program.steps[0]
        assert [s.number for s in program.sequential_steps] == [1, 2]
        assert program.step_numbers() == {0, 1, 2}
        assert len(list(program.iter_conditions())) == 4


class TestCrossReference:
    def test_duplicates_removed_in_order(self):
        """Repeated step numbers collapse, first occurrence kept."""
        ref = CrossReference(program_name="Vuller", step_numbers=[4, 3, 4])
        assert ref.step_numbers == [4, 3]

    def test_empty_step_list(self):
        with pytest.raises(ValidationError, match="must not be empty"):
            CrossReference(program_name="Vuller", step_numbers=[])


class TestSmallModels:
    def test_function_block_tag(self):
        """Tags render as block type plus number."""
        assert str(FunctionBlockTag(number=304)) == "FB304"
        assert str(FunctionBlockTag(block_type="FC", number=2)) == "FC2"

    def test_diagnostic_str(self):
        """Diagnostics print their code and line before the message."""
        diag = Diagnostic(
            code=DiagnosticCode.DUPLICATE_STEP,
            severity=Severity.ERROR,
            message="duplicate step number 2",
            line_number=4,
        )
        assert str(diag) == "line 4: [DUPLICATE_STEP] duplicate step number 2"

    def test_diagnostic_str_without_line(self):
        diag = Diagnostic(code=DiagnosticCode.DUPLICATE_REST, severity=Severity.ERROR, message="x")
        assert str(diag) == "[DUPLICATE_REST] x"


# ===========================================================================
# Netlist model
# ===========================================================================


def _network(cardinality, wires):
    return Network(
        uid=1,
        title=text(10),
        comment=text(12, "Comment"),
        parts=[
            LocalAccess(uid=20, variable="Stap", index=1),
            LocalAccess(uid=21, variable="Stap", index=2),
            Part(uid=22, name=PartType.AND, cardinality=cardinality),
        ],
        wires=wires,
    )


def _wire(uid, source, target_port, target=22):
    return Wire(uid=uid, source=Connection(uid=source), target=Connection(uid=target, port=target_port))


class TestNetwork:
    def test_consistent_cardinality(self):
        net = _network(2, [_wire(30, 20, "in1"), _wire(31, 21, "in2")])
        assert net.parts_of(PartType.AND)[0].cardinality == 2
        assert net.part(21).index == 2

    def test_cardinality_mismatch(self):
        """A gate whose cardinality disagrees with its wires is rejected."""
        with pytest.raises(ValidationError, match="cardinality"):
            _network(2, [_wire(30, 20, "in1")])

    def test_unknown_endpoint(self):
        """Wires must connect parts of the same network."""
        with pytest.raises(ValidationError, match="unknown part 99"):
            _network(1, [_wire(30, 99, "in1")])

    def test_wire_target_needs_port(self):
        """A wire target without a port name is rejected."""
        with pytest.raises(ValidationError, match="target must name a port"):
            Wire(uid=1, source=Connection(uid=2), target=Connection(uid=3))

    def test_part_lookup_missing(self):
        net = _network(0, [])
        with pytest.raises(KeyError):
            net.part(99)


class TestPartPorts:
    @pytest.mark.parametrize("port, ok", [("in1", True), ("in12", True), ("in0", False), ("in", False), ("s", False)])
    def test_and_inputs(self, port, ok):
        """AND inputs are in1 upwards."""
        assert Part(uid=1, name=PartType.AND).has_input(port) is ok

    def test_latch_ports(self):
        latch = Part(uid=1, name=PartType.SR)
        assert latch.has_input("s") and latch.has_input("r1") and latch.has_input("operand")
        assert latch.has_output("q")
        assert not latch.has_output("out")

    def test_coil_has_no_outputs(self):
        """A coil only has an input."""
        coil = Part(uid=1, name=PartType.COIL)
        assert coil.has_input("in")
        assert not coil.has_output("out")
