"""
Storage primitives for the Intcode machine.

Models the machine's parts as small components: a growable memory tape of
64-bit signed cells, registers, and the input/output queues.
"""

from __future__ import annotations


WORD_BITS = 64


def to_signed(x: int, bits: int = WORD_BITS) -> int:
    """Wrap an arbitrary integer into a two's complement field of `bits`."""
    x &= (1 << bits) - 1
    if x >= (1 << (bits - 1)):
        x -= (1 << bits)
    return x


class Memory:
    """Flat cell memory. Initially finite, grows with zeros on demand."""

    def __init__(self, contents: list[int] | None = None,
                 data_bits: int = WORD_BITS):
        self.data_bits = data_bits
        self.cells: list[int] = [to_signed(v, data_bits) for v in contents or []]

    def ensure(self, addr: int):
        """Grow the tape so that `addr` is a valid index."""
        if addr < 0:
            raise IndexError(f"negative address {addr}")
        if addr >= len(self.cells):
            self.cells.extend([0] * (addr + 1 - len(self.cells)))

    def read(self, addr: int) -> int:
        self.ensure(addr)
        return self.cells[addr]

    def write(self, addr: int, val: int):
        self.ensure(addr)
        self.cells[addr] = to_signed(val, self.data_bits)

    def truncate(self, size: int):
        """Drop cells at and past `size`."""
        del self.cells[size:]

    def window(self, start: int, count: int) -> list[int]:
        """Cells [start, start + count) without growing the tape."""
        start = max(0, start)
        out = self.cells[start:start + count]
        return out + [0] * (count - len(out))

    def snapshot(self) -> list[int]:
        return list(self.cells)

    def __len__(self) -> int:
        return len(self.cells)


class Register:
    """Integer register. Signed registers wrap to their width."""

    def __init__(self, width: int = WORD_BITS, signed: bool = False):
        self.width = width
        self.signed = signed
        self.value = 0
        self._mask = (1 << width) - 1

    def load(self, val: int):
        if self.signed:
            self.value = to_signed(val, self.width)
        else:
            self.value = val & self._mask


class InputQueue:
    """Pending input values. Consumed values are kept but never re-read."""

    def __init__(self):
        self.buffer: list[int] = []
        self.cursor = 0

    def push(self, val: int):
        self.buffer.append(val)

    def peek(self) -> int | None:
        if self.cursor < len(self.buffer):
            return self.buffer[self.cursor]
        return None

    def pop(self) -> int | None:
        val = self.peek()
        if val is not None:
            self.cursor += 1
        return val

    def ready(self) -> bool:
        return self.cursor < len(self.buffer)

    @property
    def pending(self) -> list[int]:
        return self.buffer[self.cursor:]

    @property
    def consumed(self) -> list[int]:
        return self.buffer[:self.cursor]

    def __len__(self) -> int:
        return len(self.buffer) - self.cursor


class OutputQueue:
    """Append-only output values."""

    def __init__(self):
        self.buffer: list[int] = []

    def push(self, val: int):
        self.buffer.append(val)

    def at(self, index: int) -> int | None:
        if 0 <= index < len(self.buffer):
            return self.buffer[index]
        return None

    def last(self) -> int | None:
        return self.buffer[-1] if self.buffer else None

    def __len__(self) -> int:
        return len(self.buffer)
