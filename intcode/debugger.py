"""
Textual TUI debugger for the Intcode machine.

Instruction-stepping debugger that loads a program listing, runs it on the
machine, and displays disassembly, registers, memory and IO at every step.

Usage:
    python -m intcode.debugger program.txt
    python -m intcode.debugger program.txt -i 1 -i 5
    python -m intcode.debugger --run program.txt
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import ScrollableContainer
from textual.widgets import Static, RichLog, Footer, Input
from textual import work

from .errors import IntcodeError
from .program_runner import ProgramRunner


def _esc(text: str) -> str:
    """Escape Rich markup characters in text."""
    return text.replace("[", "\\[")


MEMORY_COLUMNS = 8
MEMORY_ROWS = 16
DISASSEMBLY_ROWS = 24


# ---------------------------------------------------------------------------
# CSS
# ---------------------------------------------------------------------------

DEBUGGER_CSS = """
Screen {
    layout: grid;
    grid-size: 2 3;
    grid-columns: 1fr 1fr;
    grid-rows: 1fr 1fr 1fr;
}

.panel {
    border: solid $accent;
    border-title-align: left;
    overflow-y: auto;
    height: 100%;
}

#input-box {
    dock: bottom;
    display: none;
}
"""


# ---------------------------------------------------------------------------
# Panel widgets
# ---------------------------------------------------------------------------

class DisassemblyPanel(ScrollableContainer):
    """Instructions from the instruction pointer onwards."""
    BORDER_TITLE = "Disassembly"

    def compose(self) -> ComposeResult:
        yield Static("", id="disasm-content")


class StatePanel(ScrollableContainer):
    """Machine state: registers, counters."""
    BORDER_TITLE = "Machine State"

    def compose(self) -> ComposeResult:
        yield Static("", id="state-content")


class MemoryPanel(ScrollableContainer):
    """Memory cells around the instruction pointer."""
    BORDER_TITLE = "Memory"

    def compose(self) -> ComposeResult:
        yield Static("", id="memory-content")


class TracePanel(ScrollableContainer):
    """Most recently executed instructions."""
    BORDER_TITLE = "Trace"

    def compose(self) -> ComposeResult:
        yield Static("", id="trace-content")


class IOPanel(ScrollableContainer):
    """Input queue and output queue contents."""
    BORDER_TITLE = "IO"

    def compose(self) -> ComposeResult:
        yield Static("", id="io-content")


class OutputPanel(ScrollableContainer):
    """Accumulated program output."""
    BORDER_TITLE = "Output"

    def compose(self) -> ComposeResult:
        yield RichLog(id="output-log", markup=True, wrap=True)


# ---------------------------------------------------------------------------
# Main debugger app
# ---------------------------------------------------------------------------

class IntcodeDebugger(App):
    """Textual TUI debugger for the Intcode machine."""

    CSS = DEBUGGER_CSS
    TITLE = "Intcode Debugger"

    BINDINGS = [
        Binding("s", "step_1", "Step"),
        Binding("space", "step_1", "Step", show=False),
        Binding("n", "step_10", "x10"),
        Binding("f", "step_100", "x100"),
        Binding("r", "run_to_end", "Run"),
        Binding("b", "toggle_breakpoint", "Break"),
        Binding("i", "prompt_input", "Input"),
        Binding("escape", "cancel_input", "Cancel", show=False),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, runner: ProgramRunner, auto_run: bool = False):
        super().__init__()
        self.runner = runner
        self.auto_run = auto_run
        self.breakpoints: set[int] = set()
        self._output_line_count = 0

    def compose(self) -> ComposeResult:
        yield DisassemblyPanel(id="disasm-panel", classes="panel")
        yield StatePanel(id="state-panel", classes="panel")
        yield MemoryPanel(id="memory-panel", classes="panel")
        yield TracePanel(id="trace-panel", classes="panel")
        yield IOPanel(id="io-panel", classes="panel")
        yield OutputPanel(id="output-panel", classes="panel")
        yield Input(placeholder="integer input, Enter to push", id="input-box")
        yield Footer()

    def on_mount(self) -> None:
        self.refresh_panels()
        if self.auto_run:
            self.action_run_to_end()

    # -------------------------------------------------------------------
    # Panel refresh
    # -------------------------------------------------------------------

    def refresh_panels(self) -> None:
        self._refresh_disassembly()
        self._refresh_state()
        self._refresh_memory()
        self._refresh_trace()
        self._refresh_io()
        self._refresh_output()

    def _refresh_disassembly(self) -> None:
        m = self.runner.machine
        ip = m.ip.value
        lines = []
        for addr, text in self.runner.host.disassemble(ip, DISASSEMBLY_ROWS):
            prefix = "●" if addr in self.breakpoints else " "
            marker = "▸" if addr == ip else " "
            line = f"{prefix}{marker} {addr:6d}│ {_esc(text)}"
            if addr == ip:
                line = f"[bold reverse]{line}[/bold reverse]"
            lines.append(line)
        content = self.query_one("#disasm-content", Static)
        content.update("\n".join(lines) if lines else "(past end of program)")

    def _refresh_state(self) -> None:
        m = self.runner.machine
        fault = _esc(str(m.fault)) if m.fault is not None else "-"
        text = (
            f"[bold]State:[/bold] {m.state_name}    [bold]Step:[/bold] {m.steps}\n"
            f"[bold]IP:[/bold] {m.ip.value}  [bold]RB:[/bold] {m.rb.value}\n"
            f"[bold]Memory:[/bold] {m.memory_size()} cells  "
            f"{m.mem_reads}R/{m.mem_writes}W\n"
            f"[bold]Jumps:[/bold] {m.jumps}  [bold]Waits:[/bold] {m.waits}\n"
            f"[bold]Fault:[/bold] {fault}\n"
            f"[bold]Phase:[/bold] {self.runner.phase}"
        )
        content = self.query_one("#state-content", Static)
        content.update(text)

    def _refresh_memory(self) -> None:
        m = self.runner.machine
        ip = m.ip.value
        start = max(0, ip - ip % MEMORY_COLUMNS - MEMORY_COLUMNS * 2)
        cells = m.memory.window(start, MEMORY_COLUMNS * MEMORY_ROWS)
        lines = []
        for row in range(MEMORY_ROWS):
            base = start + row * MEMORY_COLUMNS
            parts = []
            for col in range(MEMORY_COLUMNS):
                addr = base + col
                cell = f"{cells[row * MEMORY_COLUMNS + col]:>8d}"
                if addr == ip:
                    cell = f"[green]{cell}[/green]"
                parts.append(cell)
            lines.append(f"{base:6d}: " + " ".join(parts))
        content = self.query_one("#memory-content", Static)
        content.update("\n".join(lines))

    def _refresh_trace(self) -> None:
        lines = [
            f"{e.step:8d}  {e.ip:6d}: {_esc(e.text)}"
            for e in reversed(self.runner.trace)
        ]
        content = self.query_one("#trace-content", Static)
        content.update("\n".join(lines) if lines else "(nothing executed)")

    def _refresh_io(self) -> None:
        m = self.runner.machine

        def fmt(values: list[int]) -> str:
            if not values:
                return "(empty)"
            return " ".join(str(v) for v in values[-16:])

        text = (
            f"[bold]Consumed:[/bold] {fmt(m.inputs.consumed)}\n"
            f"[bold]Pending:[/bold]  {fmt(m.inputs.pending)}\n"
            f"[bold]Scripted:[/bold] {fmt(list(self.runner.scripted))}\n"
            f"[bold]Outputs:[/bold]  {m.output_count()}  "
            f"[bold]Last:[/bold] {m.last_output()}"
        )
        content = self.query_one("#io-content", Static)
        content.update(text)

    def _refresh_output(self) -> None:
        log = self.query_one("#output-log", RichLog)
        while self._output_line_count < len(self.runner.output_lines):
            log.write(self.runner.output_lines[self._output_line_count])
            self._output_line_count += 1

    # -------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------

    def _report_error(self, err: Exception) -> None:
        """Show an error in the output panel."""
        self.runner.output_lines.append(f"\\[ERROR] {_esc(str(err))}")
        self.refresh_panels()

    def _do_steps(self, count: int) -> None:
        try:
            for _ in range(count):
                if not self.runner.tick():
                    break
        except IntcodeError as e:
            self._report_error(e)
            return
        self.refresh_panels()

    def action_step_1(self) -> None:
        self._do_steps(1)

    def action_step_10(self) -> None:
        self._do_steps(10)

    def action_step_100(self) -> None:
        self._do_steps(100)

    def action_toggle_breakpoint(self) -> None:
        ip = self.runner.machine.ip.value
        if ip in self.breakpoints:
            self.breakpoints.discard(ip)
        else:
            self.breakpoints.add(ip)
        self._refresh_disassembly()

    def action_prompt_input(self) -> None:
        box = self.query_one("#input-box", Input)
        box.display = True
        box.focus()

    def action_cancel_input(self) -> None:
        box = self.query_one("#input-box", Input)
        box.value = ""
        box.display = False
        self.set_focus(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        text = event.value.strip()
        event.input.value = ""
        try:
            value = int(text)
        except ValueError:
            self._report_error(ValueError(f"not an integer: {text!r}"))
            return
        event.input.display = False
        self.set_focus(None)
        self.runner.provide_input(value)
        self.refresh_panels()

    @work(thread=True)
    def action_run_to_end(self) -> None:
        """Run until halt, starvation or a breakpoint in a background thread."""
        try:
            count = 0
            while self.runner.tick():
                count += 1
                if self.runner.machine.ip.value in self.breakpoints:
                    break
                if count % 500 == 0:
                    self.call_from_thread(self.refresh_panels)
        except IntcodeError as e:
            self.call_from_thread(self._report_error, e)
            return
        self.call_from_thread(self.refresh_panels)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main():
    parser = argparse.ArgumentParser(
        description="Intcode TUI debugger",
        prog="python -m intcode.debugger",
    )
    parser.add_argument("file", help="Path to a comma-separated program listing")
    parser.add_argument("-i", "--input", type=int, action="append", default=[],
                        help="Scripted input value (repeatable)")
    parser.add_argument("--run", action="store_true",
                        help="Run to completion immediately (auto-run mode)")
    args = parser.parse_args()

    runner = ProgramRunner()
    path = Path(args.file)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    try:
        runner.load_file(path)
    except IntcodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    runner.add_inputs(args.input)

    app = IntcodeDebugger(runner, auto_run=args.run)
    app.run()


if __name__ == "__main__":
    main()
