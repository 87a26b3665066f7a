"""
Intcode machine — fetch/decode/execute state machine over a growable tape.

Models the machine as components: cell memory, instruction pointer and
relative base registers, an input queue consumed in order and an
append-only output queue. Execution is cooperative: an Input instruction
with nothing to read parks the machine in WAITING without advancing the
instruction pointer, and push_input() makes it runnable again.
"""

from __future__ import annotations

from .chips import Memory, Register, InputQueue, OutputQueue, WORD_BITS
from .errors import MachineFault, ImmediateWriteFault, AddressFault
from .instructions import (
    Instruction, Operand, Position, Immediate, Relative, decode,
    Add, Multiply, Input, Output, JumpIfTrue, JumpIfFalse,
    LessThan, Equals, AdjustRelativeBase, Halt,
)


# Run states
S_RUNNING = 0
S_WAITING = 1
S_HALTED  = 2

STATE_NAMES = {
    S_RUNNING: "RUNNING",
    S_WAITING: "WAITING",
    S_HALTED: "HALTED",
}


class IntcodeMachine:
    """Single Intcode machine instance. Owns its memory and queues."""

    def __init__(self, program: list[int] | None = None):
        # --- Storage ---
        self.memory = Memory(program)

        # --- Registers ---
        self.ip = Register(WORD_BITS)                 # instruction pointer
        self.rb = Register(WORD_BITS, signed=True)    # relative base
        self.state = Register(2)

        # --- IO ---
        self.inputs = InputQueue()
        self.outputs = OutputQueue()

        # Set once a fault has terminated the machine.
        self.fault: MachineFault | None = None

        # --- Counters ---
        self.steps = 0
        self.mem_reads = 0
        self.mem_writes = 0
        self.jumps = 0
        self.waits = 0

    @classmethod
    def from_listing(cls, listing: str) -> "IntcodeMachine":
        from .loader import parse_program
        return cls(parse_program(listing))

    # -------------------------------------------------------------------
    # Direct memory access (pre-execution patching, inspection)
    # -------------------------------------------------------------------

    def set_cell(self, address: int, value: int):
        self.memory.write(address, value)

    def get_cell(self, address: int) -> int:
        return self.memory.read(address)

    def memory_size(self) -> int:
        return len(self.memory)

    # -------------------------------------------------------------------
    # Operand resolution
    # -------------------------------------------------------------------

    def _address(self, operand: Operand, instruction: int) -> int:
        if isinstance(operand, Position):
            addr = operand.address
        elif isinstance(operand, Relative):
            addr = self.rb.value + operand.offset
        else:
            raise ImmediateWriteFault(self.ip.value, instruction)
        if addr < 0:
            raise AddressFault(self.ip.value, instruction, addr)
        return addr

    def read(self, operand: Operand, instruction: int) -> int:
        if isinstance(operand, Immediate):
            return operand.value
        self.mem_reads += 1
        return self.memory.read(self._address(operand, instruction))

    def write(self, operand: Operand, value: int, instruction: int):
        addr = self._address(operand, instruction)
        self.mem_writes += 1
        self.memory.write(addr, value)

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------

    def step(self) -> bool:
        """Execute one instruction. Returns True if still running."""
        if self.state.value != S_RUNNING:
            return False

        ip = self.ip.value
        size = len(self.memory)
        try:
            raw = self.memory.read(ip)
            ins = decode(self.memory, ip)
            self._execute(ins, raw)
        except MachineFault as fault:
            # Writes come after every check, so only read growth can be undone.
            self.memory.truncate(size)
            self.fault = fault
            self.state.load(S_HALTED)
            raise

        if self.state.value != S_WAITING:
            self.steps += 1
        return self.state.value == S_RUNNING

    def _execute(self, ins: Instruction, raw: int):
        ip = self.ip.value

        if isinstance(ins, (Add, Multiply, LessThan, Equals)):
            a = self.read(ins.left, raw)
            b = self.read(ins.right, raw)
            if isinstance(ins, Add):
                result = a + b
            elif isinstance(ins, Multiply):
                result = a * b
            elif isinstance(ins, LessThan):
                result = 1 if a < b else 0
            else:
                result = 1 if a == b else 0
            self.write(ins.target, result, raw)
            self.ip.load(ip + ins.size)

        elif isinstance(ins, Input):
            if not self.inputs.ready():
                # Leave ip on this instruction; it is decoded again on resume.
                self.waits += 1
                self.state.load(S_WAITING)
                return
            # Resolve the target before consuming so a fault keeps the input.
            self._address(ins.target, raw)
            self.write(ins.target, self.inputs.pop(), raw)
            self.ip.load(ip + ins.size)

        elif isinstance(ins, Output):
            self.outputs.push(self.read(ins.source, raw))
            self.ip.load(ip + ins.size)

        elif isinstance(ins, (JumpIfTrue, JumpIfFalse)):
            cond = self.read(ins.condition, raw)
            taken = cond != 0 if isinstance(ins, JumpIfTrue) else cond == 0
            if taken:
                dest = self.read(ins.destination, raw)
                if dest < 0:
                    raise AddressFault(ip, raw, dest)
                self.jumps += 1
                self.ip.load(dest)
            else:
                self.ip.load(ip + ins.size)

        elif isinstance(ins, AdjustRelativeBase):
            self.rb.load(self.rb.value + self.read(ins.offset, raw))
            self.ip.load(ip + ins.size)

        elif isinstance(ins, Halt):
            self.state.load(S_HALTED)

        else:
            raise TypeError(f"unhandled instruction {ins!r}")

    def run_until_stopped(self) -> int:
        """Run until WAITING or HALTED. Returns the resulting state."""
        while self.step():
            pass
        return self.state.value

    # -------------------------------------------------------------------
    # IO
    # -------------------------------------------------------------------

    def push_input(self, value: int):
        self.inputs.push(value)
        if self.state.value == S_WAITING:
            self.state.load(S_RUNNING)

    def output_at(self, index: int) -> int | None:
        return self.outputs.at(index)

    def last_output(self) -> int | None:
        return self.outputs.last()

    def output_count(self) -> int:
        return len(self.outputs)

    def all_outputs(self) -> list[int]:
        return list(self.outputs.buffer)

    def has_halted(self) -> bool:
        return self.state.value == S_HALTED

    def is_waiting(self) -> bool:
        return self.state.value == S_WAITING

    @property
    def state_name(self) -> str:
        return STATE_NAMES[self.state.value]

    # -------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------

    def stats(self) -> dict:
        return {
            "steps": self.steps,
            "mem_reads": self.mem_reads,
            "mem_writes": self.mem_writes,
            "jumps": self.jumps,
            "waits": self.waits,
            "memory_size": len(self.memory),
            "inputs_consumed": len(self.inputs.consumed),
            "outputs": len(self.outputs),
        }

    def stats_summary(self) -> str:
        s = self.stats()
        return (
            f"Steps: {s['steps']}\n"
            f"Memory: {s['mem_reads']}R/{s['mem_writes']}W "
            f"({s['memory_size']} cells)\n"
            f"Jumps taken: {s['jumps']}\n"
            f"IO: {s['inputs_consumed']} in, {s['outputs']} out, "
            f"{s['waits']} waits"
        )
