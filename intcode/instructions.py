"""
Instruction decoder for the Intcode machine.

An instruction cell holds the opcode in its two low decimal digits and one
addressing-mode digit per operand above them:

    ABCDE      DE = opcode, C = mode of operand 1,
    01002      B = mode of operand 2, A = mode of operand 3

decode() turns the cells at an address into one of the instruction classes
below. Operands are Position / Immediate / Relative values; instructions and
operands are immutable and only live for the duration of one step.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import ClassVar, Union

from .chips import Memory
from .errors import InvalidOpcode, InvalidAddressingMode, ImmediateWriteFault


# Addressing modes
MODE_POSITION  = 0
MODE_IMMEDIATE = 1
MODE_RELATIVE  = 2

# Opcodes
OP_ADD      = 1
OP_MULTIPLY = 2
OP_INPUT    = 3
OP_OUTPUT   = 4
OP_JUMP_IF_TRUE  = 5
OP_JUMP_IF_FALSE = 6
OP_LESS_THAN = 7
OP_EQUALS    = 8
OP_ADJUST_RELATIVE_BASE = 9
OP_HALT     = 99


# ---------------------------------------------------------------------------
# Operands
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Position:
    address: int

    def __str__(self) -> str:
        return f"[{self.address}]"


@dataclass(frozen=True)
class Immediate:
    value: int

    def __str__(self) -> str:
        return f"#{self.value}"


@dataclass(frozen=True)
class Relative:
    offset: int

    def __str__(self) -> str:
        return f"rb[{self.offset:+d}]"


Operand = Union[Position, Immediate, Relative]


def make_operand(mode: int, raw: int) -> Operand | None:
    """Wrap a raw operand cell according to its mode digit. None if unknown."""
    if mode == MODE_POSITION:
        return Position(raw)
    if mode == MODE_IMMEDIATE:
        return Immediate(raw)
    if mode == MODE_RELATIVE:
        return Relative(raw)
    return None


# ---------------------------------------------------------------------------
# Instructions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Instruction:
    OPCODE: ClassVar[int]
    MNEMONIC: ClassVar[str]
    # Index of the operand the instruction writes to, if any.
    WRITES: ClassVar[int | None] = None

    @classmethod
    def arity(cls) -> int:
        return len(fields(cls))

    @property
    def size(self) -> int:
        return 1 + self.arity()

    @property
    def operands(self) -> tuple[Operand, ...]:
        return tuple(getattr(self, f.name) for f in fields(self))

    def __str__(self) -> str:
        return " ".join([self.MNEMONIC, *(str(op) for op in self.operands)])


@dataclass(frozen=True)
class Add(Instruction):
    OPCODE = OP_ADD
    MNEMONIC = "ADD"
    WRITES = 2
    left: Operand
    right: Operand
    target: Operand


@dataclass(frozen=True)
class Multiply(Instruction):
    OPCODE = OP_MULTIPLY
    MNEMONIC = "MUL"
    WRITES = 2
    left: Operand
    right: Operand
    target: Operand


@dataclass(frozen=True)
class Input(Instruction):
    OPCODE = OP_INPUT
    MNEMONIC = "IN"
    WRITES = 0
    target: Operand


@dataclass(frozen=True)
class Output(Instruction):
    OPCODE = OP_OUTPUT
    MNEMONIC = "OUT"
    source: Operand


@dataclass(frozen=True)
class JumpIfTrue(Instruction):
    OPCODE = OP_JUMP_IF_TRUE
    MNEMONIC = "JNZ"
    condition: Operand
    destination: Operand


@dataclass(frozen=True)
class JumpIfFalse(Instruction):
    OPCODE = OP_JUMP_IF_FALSE
    MNEMONIC = "JZ"
    condition: Operand
    destination: Operand


@dataclass(frozen=True)
class LessThan(Instruction):
    OPCODE = OP_LESS_THAN
    MNEMONIC = "LT"
    WRITES = 2
    left: Operand
    right: Operand
    target: Operand


@dataclass(frozen=True)
class Equals(Instruction):
    OPCODE = OP_EQUALS
    MNEMONIC = "EQ"
    WRITES = 2
    left: Operand
    right: Operand
    target: Operand


@dataclass(frozen=True)
class AdjustRelativeBase(Instruction):
    OPCODE = OP_ADJUST_RELATIVE_BASE
    MNEMONIC = "ARB"
    offset: Operand


@dataclass(frozen=True)
class Halt(Instruction):
    OPCODE = OP_HALT
    MNEMONIC = "HLT"


INSTRUCTION_SET: dict[int, type[Instruction]] = {
    cls.OPCODE: cls for cls in (
        Add, Multiply, Input, Output, JumpIfTrue, JumpIfFalse,
        LessThan, Equals, AdjustRelativeBase, Halt,
    )
}


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def split_instruction(value: int) -> tuple[int, tuple[int, int, int]]:
    """Split an instruction cell into (opcode, (mode1, mode2, mode3))."""
    opcode = value % 100
    modes = tuple((value // 10 ** (k + 1)) % 10 for k in (1, 2, 3))
    return opcode, modes


def decode(memory: Memory, ip: int) -> Instruction:
    """Decode the instruction starting at `ip`.

    Raises InvalidOpcode, InvalidAddressingMode, or ImmediateWriteFault.
    Nothing is written to memory; operand cells past the end read as 0.
    """
    value = memory.read(ip)
    # Negative cells never hold a valid instruction.
    if value < 0:
        raise InvalidOpcode(ip, value)

    opcode, modes = split_instruction(value)
    cls = INSTRUCTION_SET.get(opcode)
    if cls is None:
        raise InvalidOpcode(ip, value)

    operands = []
    for k in range(cls.arity()):
        operand = make_operand(modes[k], memory.read(ip + 1 + k))
        if operand is None:
            raise InvalidAddressingMode(ip, value, modes[k], k + 1)
        operands.append(operand)

    if cls.WRITES is not None and isinstance(operands[cls.WRITES], Immediate):
        raise ImmediateWriteFault(ip, value)

    return cls(*operands)
