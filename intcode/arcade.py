"""
Arcade cabinet driven by an Intcode program.

The program draws by emitting (x, y, tile) triples. The special triple
(-1, 0, n) updates the score instead. In free play (cell 0 patched to 2)
the program reads joystick positions: -1 left, 0 neutral, 1 right.
"""

from __future__ import annotations

from .errors import ControllerError
from .grid import Position, render_cells


TILE_EMPTY  = 0
TILE_WALL   = 1
TILE_BLOCK  = 2
TILE_PADDLE = 3
TILE_BALL   = 4

TILE_CHARS = {
    TILE_EMPTY: " ",
    TILE_WALL: "#",
    TILE_BLOCK: "+",
    TILE_PADDLE: "-",
    TILE_BALL: "*",
}

SCORE_POSITION = Position(-1, 0)
FREE_PLAY = 2


class ArcadeCabinet:
    def __init__(self, machine, free_play: bool = False):
        self.machine = machine
        self.screen: dict[Position, int] = {}
        self.score = 0
        self.ball: Position | None = None
        self.paddle: Position | None = None
        self.frames = 0
        self._read = 0
        if free_play:
            self.machine.set_cell(0, FREE_PLAY)

    def _draw_pending(self):
        """Consume every complete output triple produced so far."""
        while self.machine.output_at(self._read + 2) is not None:
            x = self.machine.output_at(self._read)
            y = self.machine.output_at(self._read + 1)
            value = self.machine.output_at(self._read + 2)
            self._read += 3

            pos = Position(x, y)
            if pos == SCORE_POSITION:
                self.score = value
                continue
            if value not in TILE_CHARS:
                raise ControllerError(f"invalid tile {value} at {pos}")
            self.screen[pos] = value
            if value == TILE_BALL:
                self.ball = pos
            elif value == TILE_PADDLE:
                self.paddle = pos

    def tick(self, joystick: int | None = None):
        """Optionally move the joystick, run until the next input request, redraw."""
        if joystick is not None:
            self.machine.push_input(joystick)
        self.machine.run_until_stopped()
        self._draw_pending()
        self.frames += 1

    def block_count(self) -> int:
        return sum(1 for tile in self.screen.values() if tile == TILE_BLOCK)

    def joystick(self) -> int:
        """Follow the ball with the paddle."""
        if self.ball is None or self.paddle is None:
            return 0
        if self.paddle.x < self.ball.x:
            return 1
        if self.paddle.x > self.ball.x:
            return -1
        return 0

    def play(self) -> int:
        """Play until the program halts or no blocks remain. Returns the score."""
        self.tick()
        while not self.machine.has_halted() and self.block_count() > 0:
            self.tick(self.joystick())
        return self.score

    def render(self) -> str:
        header = f"Score {self.score} - Frame {self.frames}\n"
        cells = {p: TILE_CHARS[t] for p, t in self.screen.items()}
        return header + render_cells(cells)
