"""
Repair droid: explores an unknown maze through an Intcode program.

The droid pushes one movement command (1 north, 2 south, 3 west, 4 east)
and reads one status reply: 0 hit a wall and did not move, 1 moved,
2 moved and is now on the oxygen system. explore() keeps walking to the
nearest unexplored cell until the whole reachable area is mapped.
"""

from __future__ import annotations

from collections import deque

from .errors import ControllerError, NoOutputError
from .grid import Position, ORIGIN, NORTH, SOUTH, WEST, EAST, render_cells


COMMANDS = {NORTH: 1, SOUTH: 2, WEST: 3, EAST: 4}

STATUS_WALL   = 0
STATUS_MOVED  = 1
STATUS_OXYGEN = 2

TILE_FLOOR  = "."
TILE_WALL   = "#"
TILE_OXYGEN = "O"
TILE_START  = "S"
TILE_DROID  = "D"


class RepairDroid:
    def __init__(self, machine):
        self.machine = machine
        self.position = ORIGIN
        self.tiles: dict[Position, str] = {ORIGIN: TILE_START}
        self.frontier: set[Position] = set()
        self.oxygen: Position | None = None
        self.moves = 0
        self._read = 0
        self._discover(ORIGIN)

    # -------------------------------------------------------------------
    # Map bookkeeping
    # -------------------------------------------------------------------

    def _discover(self, pos: Position):
        self.frontier.discard(pos)
        if self.tiles[pos] == TILE_WALL:
            return
        for n in pos.neighbors():
            if n not in self.tiles:
                self.frontier.add(n)

    def _put(self, pos: Position, tile: str):
        if self.tiles.get(pos) != TILE_START:
            self.tiles[pos] = tile
        if tile == TILE_OXYGEN:
            self.oxygen = pos
        self._discover(pos)

    def is_open(self, pos: Position) -> bool:
        tile = self.tiles.get(pos)
        return tile is not None and tile != TILE_WALL

    # -------------------------------------------------------------------
    # Movement
    # -------------------------------------------------------------------

    def move(self, direction: Position) -> bool:
        """Try one step. Returns True if the droid moved."""
        target = self.position + direction
        self.machine.push_input(COMMANDS[direction])
        self.machine.run_until_stopped()
        status = self.machine.output_at(self._read)
        if status is None:
            raise NoOutputError("droid program stopped without a status reply")
        self._read += 1
        self.moves += 1

        if status == STATUS_WALL:
            self._put(target, TILE_WALL)
            return False
        if status == STATUS_MOVED:
            self._put(target, TILE_FLOOR)
        elif status == STATUS_OXYGEN:
            self._put(target, TILE_OXYGEN)
        else:
            raise ControllerError(f"unexpected status reply {status}")
        self.position = target
        return True

    def route(self, start: Position, goal: Position) -> list[Position] | None:
        """Shortest list of directions over open cells; `goal` may be unexplored."""
        if start == goal:
            return []
        previous: dict[Position, tuple[Position, Position]] = {}
        queue = deque([start])
        seen = {start}
        while queue:
            pos = queue.popleft()
            for direction in COMMANDS:
                nxt = pos + direction
                if nxt in seen:
                    continue
                if nxt != goal and not self.is_open(nxt):
                    continue
                seen.add(nxt)
                previous[nxt] = (pos, direction)
                if nxt == goal:
                    path = []
                    while nxt != start:
                        nxt, step = previous[nxt]
                        path.append(step)
                    return path[::-1]
                queue.append(nxt)
        return None

    def explore(self) -> int:
        """Map every reachable cell. Returns the number of moves issued."""
        while self.frontier:
            goal = min(self.frontier, key=lambda p: (p.manhattan(self.position), p))
            path = self.route(self.position, goal)
            if path is None:
                # No open path leads there.
                self.frontier.discard(goal)
                continue
            for i, direction in enumerate(path):
                moved = self.move(direction)
                if not moved and i != len(path) - 1:
                    raise ControllerError(
                        f"blocked at {self.position} on a known route to {goal}"
                    )
        return self.moves

    # -------------------------------------------------------------------
    # Queries over the explored map
    # -------------------------------------------------------------------

    def distances_from(self, start: Position) -> dict[Position, int]:
        dist = {start: 0}
        queue = deque([start])
        while queue:
            pos = queue.popleft()
            for n in pos.neighbors():
                if n not in dist and self.is_open(n):
                    dist[n] = dist[pos] + 1
                    queue.append(n)
        return dist

    def shortest_path_to_oxygen(self) -> int | None:
        if self.oxygen is None:
            return None
        return self.distances_from(ORIGIN).get(self.oxygen)

    def oxygen_fill_time(self) -> int | None:
        """Minutes for oxygen to spread from the system to every open cell."""
        if self.oxygen is None:
            return None
        return max(self.distances_from(self.oxygen).values())

    def render(self) -> str:
        cells = dict(self.tiles)
        cells[self.position] = TILE_DROID
        return render_cells(cells, margin=1)
