"""
Exception hierarchy for the Intcode machine and its drivers.

ParseError is raised before a machine exists. MachineFault and its
subclasses are unrecoverable: the faulting machine is halted and the
fault propagates to whoever called step()/run_until_stopped().
"""

from __future__ import annotations


class IntcodeError(Exception):
    """Base class for everything raised by this package."""


class ParseError(IntcodeError, ValueError):
    """Program listing contains a token that is not a 64-bit signed integer."""

    def __init__(self, token: str, position: int):
        self.token = token
        self.position = position
        super().__init__(f"invalid integer {token!r} at position {position}")


class MachineFault(IntcodeError):
    """Malformed or unsupported program. Terminates the machine."""

    def __init__(self, message: str, ip: int, instruction: int):
        self.ip = ip
        self.instruction = instruction
        super().__init__(f"{message} (ip={ip}, instruction={instruction})")


class InvalidOpcode(MachineFault):
    def __init__(self, ip: int, instruction: int):
        self.opcode = instruction % 100
        super().__init__(f"invalid opcode {self.opcode}", ip, instruction)


class InvalidAddressingMode(MachineFault):
    def __init__(self, ip: int, instruction: int, mode: int, operand: int):
        self.mode = mode
        self.operand = operand
        super().__init__(
            f"invalid addressing mode {mode} for operand {operand}",
            ip, instruction,
        )


class ImmediateWriteFault(MachineFault):
    def __init__(self, ip: int, instruction: int):
        super().__init__("write to immediate operand", ip, instruction)


class AddressFault(MachineFault):
    def __init__(self, ip: int, instruction: int, address: int):
        self.address = address
        super().__init__(f"negative address {address}", ip, instruction)


class ControllerError(IntcodeError):
    """A driver received a value its protocol does not define."""


class NoOutputError(ControllerError):
    """A machine stopped without producing the output a driver expected."""
