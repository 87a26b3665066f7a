"""
Grid helpers shared by the robot, arcade and droid controllers.

Screen coordinates: x grows to the right, y grows downwards.
"""

from __future__ import annotations

from typing import NamedTuple


class Position(NamedTuple):
    x: int
    y: int

    def __add__(self, other: "Position") -> "Position":
        return Position(self.x + other.x, self.y + other.y)

    def neighbors(self) -> list["Position"]:
        return [self + d for d in (NORTH, SOUTH, WEST, EAST)]

    def manhattan(self, other: "Position") -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)


ORIGIN = Position(0, 0)
NORTH = Position(0, -1)
SOUTH = Position(0, 1)
WEST = Position(-1, 0)
EAST = Position(1, 0)


def render_cells(cells: dict[Position, str], blank: str = " ",
                 margin: int = 0) -> str:
    """Render a sparse map of position → character as text lines."""
    if not cells:
        return ""
    xs = [p.x for p in cells]
    ys = [p.y for p in cells]
    lines = []
    for y in range(min(ys) - margin, max(ys) + margin + 1):
        row = "".join(
            cells.get(Position(x, y), blank)
            for x in range(min(xs) - margin, max(xs) + margin + 1)
        )
        lines.append(row)
    return "\n".join(lines) + "\n"
