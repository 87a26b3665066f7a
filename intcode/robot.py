"""
Hull painting robot driven by an Intcode program.

Protocol per move: the robot pushes the color of the panel it stands on
(0 black, 1 white); the program answers with two outputs, the color to
paint and the direction to turn (0 left, 1 right). The robot paints,
turns, and moves forward one panel. It stops when the program halts.
"""

from __future__ import annotations

from .errors import ControllerError, NoOutputError
from .grid import Position, ORIGIN, NORTH, EAST, SOUTH, WEST, render_cells


BLACK = 0
WHITE = 1

TURN_LEFT = 0
TURN_RIGHT = 1

# Clockwise.
HEADINGS = [NORTH, EAST, SOUTH, WEST]


class HullPaintingRobot:
    def __init__(self, machine, start_color: int = BLACK):
        self.machine = machine
        self.position = ORIGIN
        self.heading = 0
        self.panels: dict[Position, int] = {}
        self.moves = 0
        self._read = 0
        if start_color != BLACK:
            self.panels[ORIGIN] = self._check_color(start_color)

    @staticmethod
    def _check_color(color: int) -> int:
        if color not in (BLACK, WHITE):
            raise ControllerError(f"invalid color {color}")
        return color

    def color_at(self, position: Position) -> int:
        return self.panels.get(position, BLACK)

    def _next_output(self) -> int:
        value = self.machine.output_at(self._read)
        if value is None:
            raise NoOutputError("robot program stopped before answering")
        self._read += 1
        return value

    def step(self) -> bool:
        """One sense/paint/turn/move cycle. Returns False once halted."""
        if self.machine.has_halted():
            return False
        self.machine.push_input(self.color_at(self.position))
        self.machine.run_until_stopped()
        if self.machine.output_at(self._read) is None and self.machine.has_halted():
            return False

        color = self._check_color(self._next_output())
        turn = self._next_output()
        if turn == TURN_LEFT:
            self.heading = (self.heading - 1) % len(HEADINGS)
        elif turn == TURN_RIGHT:
            self.heading = (self.heading + 1) % len(HEADINGS)
        else:
            raise ControllerError(f"invalid turn direction {turn}")

        self.panels[self.position] = color
        self.position = self.position + HEADINGS[self.heading]
        self.moves += 1
        return not self.machine.has_halted()

    def run(self) -> int:
        """Paint until the program halts. Returns the number of panels painted."""
        while self.step():
            pass
        return self.painted_count()

    def painted_count(self) -> int:
        return len(self.panels)

    def render(self) -> str:
        white = {p: "#" for p, c in self.panels.items() if c == WHITE}
        return render_cells(white)
