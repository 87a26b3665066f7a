"""
Verification suite for the Intcode machine.

Covers the loader, the instruction decoder, operand resolution, the
run-state transitions and the fault taxonomy, using the reference programs
the machine is expected to reproduce exactly.
"""

from __future__ import annotations

import sys

import pytest

from intcode.chips import Memory, to_signed
from intcode.errors import (
    ParseError, MachineFault, InvalidOpcode, InvalidAddressingMode,
    ImmediateWriteFault, AddressFault,
)
from intcode.instructions import (
    decode, split_instruction, Position, Immediate, Relative,
    Add, Multiply, Input, Halt, AdjustRelativeBase,
)
from intcode.loader import parse_program, load, load_with_input
from intcode.machine import IntcodeMachine, S_RUNNING, S_WAITING, S_HALTED


QUINE = "109,1,204,-1,1001,100,1,100,1008,100,16,101,1006,101,0,99"
COMPARE_TO_8 = (
    "3,21,1008,21,8,20,1005,20,22,107,8,21,20,1006,20,31,1106,0,36,98,0,0,"
    "1002,21,125,20,4,20,1105,1,46,104,999,1105,1,46,1101,1000,1,20,4,20,"
    "1105,1,46,98,99"
)


def run_with(listing: str, *inputs: int) -> IntcodeMachine:
    machine = load(listing)
    for v in inputs:
        machine.push_input(v)
    machine.run_until_stopped()
    return machine


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def test_parse_program_strips_whitespace():
    assert parse_program(" 1, 2 ,-3\n") == [1, 2, -3]


def test_parse_program_rejects_bad_tokens():
    with pytest.raises(ParseError) as info:
        parse_program("1,x,3")
    assert info.value.token == "x"
    assert info.value.position == 1

    for listing in ["", "1,,2", "1_0", "1.5", "0x10"]:
        with pytest.raises(ParseError):
            parse_program(listing)


def test_parse_program_rejects_values_beyond_64_bits():
    with pytest.raises(ParseError) as info:
        parse_program("104,9223372036854775808,99")
    assert info.value.token == "9223372036854775808"
    assert info.value.position == 1

    with pytest.raises(ParseError):
        parse_program("-9223372036854775809")

    assert parse_program("9223372036854775807,-9223372036854775808") == [
        2 ** 63 - 1, -2 ** 63,
    ]


def test_parse_error_is_value_error():
    with pytest.raises(ValueError):
        load("1,2,three")


def test_load_initial_state():
    m = load("1,0,0,0,99")
    assert m.memory.snapshot() == [1, 0, 0, 0, 99]
    assert m.ip.value == 0
    assert m.rb.value == 0
    assert m.state.value == S_RUNNING
    assert m.output_count() == 0
    assert len(m.inputs) == 0


def test_from_listing():
    m = IntcodeMachine.from_listing("104,7,99")
    assert m.memory.snapshot() == [104, 7, 99]
    assert m.run_until_stopped() == S_HALTED
    assert m.all_outputs() == [7]

    with pytest.raises(ParseError):
        IntcodeMachine.from_listing("104,,99")


def test_load_with_input_queues_seed():
    m = load_with_input("3,0,4,0,99", 77)
    m.run_until_stopped()
    assert m.all_outputs() == [77]


# ---------------------------------------------------------------------------
# Decoder
# ---------------------------------------------------------------------------

def test_split_instruction():
    assert split_instruction(1002) == (2, (0, 1, 0))
    assert split_instruction(21101) == (1, (1, 1, 2))
    assert split_instruction(99) == (99, (0, 0, 0))


def test_decode_variants():
    mem = Memory([1002, 4, 3, 4, 109, -7, 203, 5, 99])
    ins = decode(mem, 0)
    assert ins == Multiply(Position(4), Immediate(3), Position(4))
    assert ins.size == 4
    assert str(ins) == "MUL [4] #3 [4]"

    assert decode(mem, 4) == AdjustRelativeBase(Immediate(-7))
    assert decode(mem, 6) == Input(Relative(5))
    assert str(decode(mem, 6)) == "IN rb[+5]"
    assert decode(mem, 8) == Halt()
    assert decode(mem, 8).size == 1


def test_decode_ignores_mode_digits_past_arity():
    # Halt takes no operands, so its mode digits are never checked.
    assert decode(Memory([30099]), 0) == Halt()


def test_decode_does_not_write():
    mem = Memory([11101, 1, 1, 0, 99])
    with pytest.raises(ImmediateWriteFault):
        decode(mem, 0)
    assert mem.snapshot() == [11101, 1, 1, 0, 99]


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

def test_position_mode_arithmetic():
    m = run_with("1,9,10,3,2,3,11,0,99,30,40,50")
    assert m.memory.snapshot() == [3500, 9, 10, 70, 2, 3, 11, 0, 99, 30, 40, 50]
    assert m.has_halted()
    assert m.ip.value == 8


def test_small_programs():
    cases = [
        ("1,0,0,0,99", [2, 0, 0, 0, 99]),
        ("2,3,0,3,99", [2, 3, 0, 6, 99]),
        ("2,4,4,5,99,0", [2, 4, 4, 5, 99, 9801]),
        ("1,1,1,4,99,5,6,0,99", [30, 1, 1, 4, 2, 5, 6, 0, 99]),
        ("1002,4,3,4,33", [1002, 4, 3, 4, 99]),
        ("1101,100,-1,4,0", [1101, 100, -1, 4, 99]),
    ]
    for listing, expected in cases:
        assert run_with(listing).memory.snapshot() == expected, listing


def test_comparisons():
    cases = [
        ("3,9,8,9,10,9,4,9,99,-1,8", {8: 1, 9: 0}),   # == 8, position
        ("3,9,7,9,10,9,4,9,99,-1,8", {7: 1, 9: 0}),   # < 8, position
        ("3,3,1108,-1,8,3,4,3,99", {8: 1, 9: 0}),     # == 8, immediate
        ("3,3,1107,-1,8,3,4,3,99", {7: 1, 9: 0}),     # < 8, immediate
    ]
    for listing, expectations in cases:
        for given, expected in expectations.items():
            assert run_with(listing, given).all_outputs() == [expected]


def test_jumps():
    for listing in ["3,12,6,12,15,1,13,14,13,4,13,99,-1,0,1,9",
                    "3,3,1105,-1,9,1101,0,0,12,4,12,99,1"]:
        assert run_with(listing, 0).all_outputs() == [0]
        assert run_with(listing, 7).all_outputs() == [1]


def test_compare_to_eight():
    assert run_with(COMPARE_TO_8, 7).all_outputs() == [999]
    assert run_with(COMPARE_TO_8, 8).all_outputs() == [1000]
    assert run_with(COMPARE_TO_8, 9).all_outputs() == [1001]


def test_relative_mode_quine():
    expected = [int(v) for v in QUINE.split(",")]
    assert run_with(QUINE).all_outputs() == expected


def test_large_numbers():
    assert run_with("1102,34915192,34915192,7,4,7,99,0").all_outputs() == [1219070632396864]
    assert run_with("104,1125899906842624,99").all_outputs() == [1125899906842624]


def test_cells_wrap_at_64_bits():
    m = run_with("1102,9223372036854775807,2,7,4,7,99,0")
    assert m.all_outputs() == [-2]
    assert to_signed(2 ** 63) == -2 ** 63


def test_memory_grows_on_write():
    m = run_with("1101,2,3,100,4,100,99")
    assert m.all_outputs() == [5]
    assert m.memory_size() == 101
    assert m.get_cell(99) == 0


def test_memory_grows_on_read():
    m = run_with("4,50,99")
    assert m.all_outputs() == [0]
    assert m.memory_size() == 51


def test_relative_write():
    m = run_with("109,20,21101,3,4,0,204,0,99")
    assert m.all_outputs() == [7]
    assert m.rb.value == 20
    assert m.get_cell(20) == 7


def test_set_and_get_cell():
    m = load("1,0,0,0,99")
    m.set_cell(1, 4)
    m.set_cell(2, 4)
    m.run_until_stopped()
    assert m.get_cell(0) == 198
    assert m.get_cell(10) == 0
    assert m.memory_size() == 11


def test_inputs_consumed_in_order_once():
    m = run_with("3,0,3,1,4,0,4,1,99", 7, 8)
    assert m.all_outputs() == [7, 8]
    assert m.inputs.consumed == [7, 8]
    assert m.inputs.pending == []


def test_deterministic():
    a = run_with(COMPARE_TO_8, 8)
    b = run_with(COMPARE_TO_8, 8)
    assert a.memory.snapshot() == b.memory.snapshot()
    assert a.all_outputs() == b.all_outputs()
    assert a.stats() == b.stats()


# ---------------------------------------------------------------------------
# Run states
# ---------------------------------------------------------------------------

def test_waits_for_input_and_resumes():
    m = load("3,0,4,0,99")
    assert m.run_until_stopped() == S_WAITING
    assert m.is_waiting()
    assert m.ip.value == 0
    assert m.output_count() == 0
    assert m.last_output() is None

    m.push_input(5)
    assert m.state.value == S_RUNNING
    assert m.run_until_stopped() == S_HALTED
    assert m.has_halted()
    assert m.all_outputs() == [5]


def test_resume_does_not_skip_or_repeat_input():
    m = load("3,0,3,1,4,0,4,1,99")
    m.push_input(7)
    m.run_until_stopped()
    assert m.is_waiting()
    assert m.ip.value == 2
    m.push_input(8)
    m.run_until_stopped()
    assert m.all_outputs() == [7, 8]


def test_push_input_while_running_keeps_state():
    m = load("3,0,4,0,99")
    m.push_input(1)
    assert m.state.value == S_RUNNING


def test_halted_is_absorbing():
    m = run_with("99")
    assert m.has_halted()
    m.push_input(1)
    assert m.has_halted()
    assert m.step() is False
    assert m.run_until_stopped() == S_HALTED
    assert m.ip.value == 0


def test_output_at():
    m = run_with("104,1,104,2,104,3,99")
    assert [m.output_at(i) for i in range(4)] == [1, 2, 3, None]
    assert m.last_output() == 3


def test_stats_count_steps():
    m = run_with("3,0,4,0,99", 5)
    s = m.stats()
    assert s["steps"] == 3
    assert s["inputs_consumed"] == 1
    assert s["outputs"] == 1
    assert "Steps: 3" in m.stats_summary()


# ---------------------------------------------------------------------------
# Faults
# ---------------------------------------------------------------------------

def test_invalid_opcode():
    m = load("1101,1,1,5,98,0")
    with pytest.raises(InvalidOpcode) as info:
        m.run_until_stopped()
    assert info.value.ip == 4
    assert info.value.instruction == 98
    assert info.value.opcode == 98
    assert m.has_halted()
    assert m.fault is info.value
    assert m.step() is False


def test_negative_instruction_is_invalid():
    with pytest.raises(InvalidOpcode):
        run_with("-1")


def test_invalid_addressing_mode():
    with pytest.raises(InvalidAddressingMode) as info:
        run_with("301,0,0,0,99")
    assert info.value.mode == 3
    assert info.value.operand == 1
    assert info.value.instruction == 301


def test_immediate_write_leaves_memory_untouched():
    m = load("11101,1,1,0,99")
    with pytest.raises(ImmediateWriteFault) as info:
        m.run_until_stopped()
    assert info.value.ip == 0
    assert m.memory.snapshot() == [11101, 1, 1, 0, 99]
    assert m.has_halted()


def test_fault_undoes_read_growth():
    # Decoding reads the missing operand cells 2 and 3 as zeros.
    m = load("11101,1")
    with pytest.raises(ImmediateWriteFault):
        m.run_until_stopped()
    assert m.memory.snapshot() == [11101, 1]

    # The read of cell 1000 succeeds, then the write target is negative.
    m = load("1,1000,0,-5")
    with pytest.raises(AddressFault):
        m.run_until_stopped()
    assert m.memory_size() == 4
    assert m.memory.snapshot() == [1, 1000, 0, -5]


def test_immediate_input_target_faults_without_consuming():
    m = load("103,0,99")
    m.push_input(4)
    with pytest.raises(ImmediateWriteFault):
        m.run_until_stopped()
    assert m.inputs.pending == [4]


def test_negative_address():
    with pytest.raises(AddressFault) as info:
        run_with("204,-1,99")
    assert info.value.address == -1


def test_faults_share_base_class():
    for listing in ["98", "301,0,0,0,99", "11101,1,1,0,99", "204,-1,99"]:
        with pytest.raises(MachineFault):
            run_with(listing)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    print("=" * 60)
    print("Intcode Machine — Verification Suite")
    print("=" * 60)

    tests = [(name, fn) for name, fn in globals().items()
             if name.startswith("test_") and callable(fn)]
    failed = 0
    for name, fn in tests:
        try:
            fn()
        except Exception as e:
            failed += 1
            print(f"  FAIL: {name}: {e!r}")
        else:
            print(f"  ok:   {name}")

    print("\n" + "=" * 60)
    if failed == 0:
        print("ALL TESTS PASSED")
    else:
        print(f"{failed}/{len(tests)} TESTS FAILED")
        sys.exit(1)


if __name__ == "__main__":
    main()
