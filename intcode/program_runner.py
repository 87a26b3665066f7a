"""
program_runner — Instruction-at-a-time execution control for the debugger.

Wraps IntcodeHost to manage scripted input, a rolling execution trace,
and the output log, with a tick() interface the TUI can drive.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .errors import MachineFault
from .host import IntcodeHost


@dataclass
class TraceEntry:
    step: int           # machine step count before execution
    ip: int
    text: str           # disassembly at the time it ran


class ProgramRunner:
    """Steps one machine, feeding scripted input whenever it waits."""

    def __init__(self, trace_depth: int = 200):
        self.host = IntcodeHost()
        self.machine = self.host.machine
        self.scripted: deque[int] = deque()
        self.trace: deque[TraceEntry] = deque(maxlen=trace_depth)
        self.output_lines: list[str] = []
        self.phase: str = "idle"  # "idle" | "running" | "waiting" | "halted" | "fault"
        self._outputs_seen = 0

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------

    def load_file(self, path: str | Path):
        self.host.load_file(path)
        self._reset()

    def load_listing(self, listing: str):
        self.host.load_listing(listing)
        self._reset()

    def restart(self):
        """Fresh machine on the same program. Scripted input is kept."""
        self.host.reset()
        self._reset()

    def _reset(self):
        self.machine = self.host.machine
        self.trace.clear()
        self.output_lines.clear()
        self.phase = "idle"
        self._outputs_seen = 0

    # -------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------

    def add_inputs(self, values: Iterable[int]):
        """Queue values to hand to the machine when it next waits."""
        self.scripted.extend(values)

    def provide_input(self, value: int):
        """Push a value straight into the machine."""
        self.machine.push_input(value)
        if self.phase == "waiting":
            self.phase = "running"

    # -------------------------------------------------------------------
    # Tick interface
    # -------------------------------------------------------------------

    def _collect_outputs(self):
        while self._outputs_seen < self.machine.output_count():
            value = self.machine.output_at(self._outputs_seen)
            self.output_lines.append(str(value))
            self._outputs_seen += 1

    def tick(self) -> bool:
        """Execute one instruction.

        Returns False when the machine has halted, faulted, or is waiting
        for input that no script provides. MachineFault propagates after
        the phase is set to "fault".
        """
        if self.phase in ("halted", "fault"):
            return False

        m = self.machine
        if m.is_waiting():
            if not self.scripted:
                self.phase = "waiting"
                return False
            m.push_input(self.scripted.popleft())

        ip = m.ip.value
        entry = TraceEntry(step=m.steps, ip=ip, text=self.host.describe(ip))
        try:
            m.step()
        except MachineFault:
            self.phase = "fault"
            raise

        if not m.is_waiting():
            self.trace.append(entry)
        self._collect_outputs()

        if m.has_halted():
            self.phase = "halted"
            return False
        if m.is_waiting() and not self.scripted:
            self.phase = "waiting"
            return False
        self.phase = "running"
        return True
