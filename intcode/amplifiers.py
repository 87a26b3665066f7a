"""
amplifiers — chains of Intcode machines wired output → input.

Each amplifier runs its own copy of one program. Its first input is the
phase setting, every later input is the signal produced by the amplifier
before it. In a feedback loop the last amplifier feeds the first and the
ring is cycled round-robin until every machine has halted.
"""

from __future__ import annotations

import itertools
from typing import Iterable, Sequence

from .errors import NoOutputError
from .loader import parse_program
from .machine import IntcodeMachine


def _boot(program: list[int], phase: int) -> IntcodeMachine:
    machine = IntcodeMachine(program)
    machine.push_input(phase)
    return machine


def _signal_from(machine: IntcodeMachine, index: int) -> int:
    signal = machine.last_output()
    if signal is None:
        raise NoOutputError(
            f"amplifier {index} stopped ({machine.state_name}) without output"
        )
    return signal


def run_chain(listing: str, phases: Sequence[int], signal: int = 0) -> int:
    """Run amplifiers one after another; return the last signal."""
    program = parse_program(listing)
    for index, phase in enumerate(phases):
        machine = _boot(program, phase)
        machine.push_input(signal)
        machine.run_until_stopped()
        signal = _signal_from(machine, index)
    return signal


def run_feedback_loop(listing: str, phases: Sequence[int],
                      signal: int = 0) -> int:
    """Cycle a ring of amplifiers until all have halted; return the last signal."""
    program = parse_program(listing)
    machines = [_boot(program, phase) for phase in phases]

    while not all(m.has_halted() for m in machines):
        for index, machine in enumerate(machines):
            machine.push_input(signal)
            machine.run_until_stopped()
            signal = _signal_from(machine, index)
    return signal


def best_phase_setting(listing: str, phases: Iterable[int],
                       feedback: bool = False) -> tuple[int, tuple[int, ...]]:
    """Try every ordering of `phases`. Returns (best signal, ordering)."""
    run = run_feedback_loop if feedback else run_chain
    results = (
        (run(listing, ordering), ordering)
        for ordering in itertools.permutations(tuple(phases))
    )
    return max(results, key=lambda result: result[0])
