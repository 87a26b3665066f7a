"""
IntcodeHost — high-level interface to one Intcode machine.

Provides program loading (text file or listing → memory), input feeding,
run-to-stop with a result dict, and disassembly for tracing and the
debugger. Also the small drivers that only need one machine: the
gravity-assist noun/verb search and the diagnostic runner.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable

from .chips import Memory
from .errors import IntcodeError, MachineFault
from .instructions import decode
from .loader import parse_program, read_listing
from .machine import IntcodeMachine, S_HALTED, S_WAITING, STATE_NAMES


class IntcodeHost:
    """High-level interface to an Intcode machine.

    Args:
        listing: Optional program text to load immediately.
        trace: When True, every executed instruction is printed to stderr
            as `ip: disassembly` while running.
    """

    def __init__(self, listing: str | None = None, trace: bool = False):
        self.machine = IntcodeMachine()
        self.program: list[int] = []
        self.trace = trace
        if listing is not None:
            self.load_listing(listing)

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------

    def load_listing(self, listing: str):
        """Parse a listing and replace the machine with a fresh one."""
        self.program = parse_program(listing)
        self.machine = IntcodeMachine(self.program)

    def load_file(self, path: str | Path):
        self.load_listing(read_listing(path))

    def reset(self):
        """Fresh machine on the last loaded program."""
        self.machine = IntcodeMachine(self.program)

    def patch(self, cells: dict[int, int]):
        for address, value in cells.items():
            self.machine.set_cell(address, value)

    # -------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------

    def feed(self, values: Iterable[int]):
        for v in values:
            self.machine.push_input(v)

    def run(self) -> dict:
        """
        Run until the machine halts or waits for input.

        Returns dict with run state, outputs, and stats.
        """
        m = self.machine
        if self.trace:
            while m.state.value not in (S_HALTED, S_WAITING):
                ip = m.ip.value
                print(f"{ip:6d}: {self.describe(ip)}", file=sys.stderr, flush=True)
                m.step()
        else:
            m.run_until_stopped()

        return {
            "ok": m.has_halted() and m.fault is None,
            "state": STATE_NAMES[m.state.value],
            "outputs": m.all_outputs(),
            "stats": m.stats(),
        }

    # -------------------------------------------------------------------
    # Disassembly
    # -------------------------------------------------------------------

    def describe(self, address: int) -> str:
        """Disassemble the instruction at `address`, or show it as data.

        Reads live memory, so operand cells past the end are grown exactly as
        executing the instruction would grow them.
        """
        try:
            return str(decode(self.machine.memory, address))
        except MachineFault:
            return f"DATA {self.machine.memory.read(address)}"

    def disassemble(self, start: int = 0, count: int = 20) -> list[tuple[int, str]]:
        """Disassemble `count` rows from `start`, walking instruction sizes.

        Works on a copy of memory; the machine is not modified.
        """
        view = Memory(self.machine.memory.snapshot())
        size = len(view)
        rows = []
        addr = start
        while len(rows) < count and addr < size:
            try:
                ins = decode(view, addr)
                rows.append((addr, str(ins)))
                addr += ins.size
            except MachineFault:
                rows.append((addr, f"DATA {view.read(addr)}"))
                addr += 1
        return rows


# ---------------------------------------------------------------------------
# Single-machine drivers
# ---------------------------------------------------------------------------

def run_diagnostic(listing: str, inputs: Iterable[int]) -> list[int]:
    """Run a program on the given inputs; return every output."""
    host = IntcodeHost(listing)
    host.feed(inputs)
    return host.run()["outputs"]


def find_noun_verb(listing: str, target: int,
                   limit: int = 100) -> tuple[int, int] | None:
    """First (noun, verb) that, patched into cells 1 and 2, leaves `target` in cell 0."""
    program = parse_program(listing)
    for noun in range(limit):
        for verb in range(limit):
            machine = IntcodeMachine(program)
            machine.set_cell(1, noun)
            machine.set_cell(2, verb)
            try:
                machine.run_until_stopped()
            except MachineFault:
                # This patch makes the program malformed; try the next pair.
                continue
            if machine.get_cell(0) == target:
                return noun, verb
    return None


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _parse_patch(text: str) -> tuple[int, int]:
    address, sep, value = text.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected ADDR=VALUE, got {text!r}")
    try:
        addr, val = int(address, 0), int(value, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected ADDR=VALUE, got {text!r}") from None
    if addr < 0:
        raise argparse.ArgumentTypeError(f"negative address in {text!r}")
    return addr, val


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run an Intcode program",
        prog="python -m intcode.host",
    )
    parser.add_argument("file", help="Path to a comma-separated program listing")
    parser.add_argument("-i", "--input", type=int, action="append", default=[],
                        help="Input value (repeatable, consumed in order)")
    parser.add_argument("--patch", type=_parse_patch, action="append", default=[],
                        metavar="ADDR=VALUE",
                        help="Overwrite a memory cell before running")
    parser.add_argument("--trace", action="store_true",
                        help="Print every executed instruction to stderr")
    parser.add_argument("--stats", action="store_true",
                        help="Print execution counters to stderr")
    args = parser.parse_args(argv)

    path = Path(args.file)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1

    host = IntcodeHost(trace=args.trace)
    try:
        host.load_file(path)
        host.patch(dict(args.patch))
        host.feed(args.input)
        result = host.run()
    except IntcodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for value in result["outputs"]:
        print(value)
    if args.stats:
        print(host.machine.stats_summary(), file=sys.stderr)
    if result["state"] == STATE_NAMES[S_WAITING]:
        print(f"Waiting for input at ip={host.machine.ip.value}",
              file=sys.stderr, flush=True)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
