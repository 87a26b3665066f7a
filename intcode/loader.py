"""
loader — comma-separated program listings → machines.
"""

from __future__ import annotations

import re
from pathlib import Path

from .chips import WORD_BITS
from .errors import ParseError
from .machine import IntcodeMachine


_INTEGER = re.compile(r"[+-]?[0-9]+")
_CELL_MIN = -(1 << (WORD_BITS - 1))
_CELL_MAX = (1 << (WORD_BITS - 1)) - 1


def parse_program(listing: str) -> list[int]:
    """Parse `1,9,10,3` style text into a list of cells.

    Every token must be a decimal integer that fits a 64-bit signed cell.
    """
    cells = []
    for position, token in enumerate(listing.split(",")):
        text = token.strip()
        if not _INTEGER.fullmatch(text):
            raise ParseError(text, position)
        value = int(text)
        if not _CELL_MIN <= value <= _CELL_MAX:
            raise ParseError(text, position)
        cells.append(value)
    return cells


def load(listing: str) -> IntcodeMachine:
    return IntcodeMachine(parse_program(listing))


def load_with_input(listing: str, value: int) -> IntcodeMachine:
    """Load a program with one input value already queued."""
    machine = load(listing)
    machine.push_input(value)
    return machine


def read_listing(path: str | Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def load_file(path: str | Path) -> IntcodeMachine:
    return load(read_listing(path))
