"""
Amplifier chains: serial pipelines and feedback rings of machines.
"""

from __future__ import annotations

import pytest

from intcode.amplifiers import run_chain, run_feedback_loop, best_phase_setting
from intcode.errors import NoOutputError


CHAIN_A = "3,15,3,16,1002,16,10,16,1,16,15,15,4,15,99,0,0"
CHAIN_B = ("3,23,3,24,1002,24,10,24,1002,23,-1,23,"
           "101,5,23,23,1,24,23,23,4,23,99,0,0")
FEEDBACK = ("3,26,1001,26,-4,26,3,27,1002,27,2,27,1,27,26,27,4,27,"
            "1001,28,-1,28,1005,28,6,99,0,0,5")


def test_chain_with_fixed_phases():
    assert run_chain(CHAIN_A, [4, 3, 2, 1, 0]) == 43210
    assert run_chain(CHAIN_B, [0, 1, 2, 3, 4]) == 54321


def test_chain_best_phase_setting():
    assert best_phase_setting(CHAIN_A, range(5)) == (43210, (4, 3, 2, 1, 0))


def test_feedback_loop_reference_value():
    assert run_feedback_loop(FEEDBACK, [9, 8, 7, 6, 5]) == 139629729


def test_feedback_best_phase_setting():
    signal, ordering = best_phase_setting(FEEDBACK, range(5, 10), feedback=True)
    assert signal == 139629729
    assert ordering == (9, 8, 7, 6, 5)


def test_amplifier_without_output():
    with pytest.raises(NoOutputError):
        run_chain("3,0,3,0,99", [0])
