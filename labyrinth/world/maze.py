# labyrinth/world/maze.py
import string
from collections import deque
from enum import IntEnum
from typing import Iterable, Iterator, List, NamedTuple, Set, Tuple

import numpy as np
import structlog

from common.constants import ALL_WALLS
from game_rng import GameRNG
from labyrinth.errors import ConfigurationError, MalformedStateError

log = structlog.get_logger()

HEX_DIGITS = "0123456789abcdef"


class Direction(IntEnum):
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    @property
    def bit(self) -> int:
        return 1 << int(self)


DIRECTIONS: Tuple[Direction, ...] = (
    Direction.UP,
    Direction.RIGHT,
    Direction.DOWN,
    Direction.LEFT,
)

_OPPOSITE = {
    Direction.UP: Direction.DOWN,
    Direction.RIGHT: Direction.LEFT,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
}

_DELTA = {
    Direction.UP: (0, -1),
    Direction.RIGHT: (1, 0),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
}


class CellContent(IntEnum):
    EMPTY = 0
    LOCATION = 1
    HOSPITAL = 2
    ARSENAL = 3


class Pos(NamedTuple):
    x: int
    y: int


class Cell(NamedTuple):
    """Read-only view of one maze cell."""
    pos: Pos
    walls: int
    content: CellContent

    def has_wall(self, direction: Direction) -> bool:
        return bool(self.walls & direction.bit)


def opposite(direction: Direction) -> Direction:
    return _OPPOSITE[direction]


def step(pos: Tuple[int, int], direction: Direction) -> Pos:
    """Neighbour coordinate in ``direction``. Does not check bounds."""
    dx, dy = _DELTA[direction]
    return Pos(pos[0] + dx, pos[1] + dy)


def parse_direction(text: str) -> Direction:
    """Parse ``"up"``/``"RIGHT"``/... into a :class:`Direction`."""
    try:
        return Direction[text.strip().upper()]
    except KeyError:
        raise ValueError(f"Unknown direction: {text!r}") from None


class Maze:
    def __init__(self, width: int, height: int):
        """
        Creates a fully walled ``width`` x ``height`` grid.
        Walls and content tags are kept in row-major numpy arrays indexed ``[y, x]``.
        """
        if width <= 0 or height <= 0:
            log.error("Invalid maze dimensions", width=width, height=height)
            raise ConfigurationError("Maze width and height must be positive integers.")
        self._width = width
        self._height = height
        self.walls: np.ndarray = np.full(
            (height, width), fill_value=ALL_WALLS, dtype=np.uint8, order="C"
        )
        self.content: np.ndarray = np.full(
            (height, width), fill_value=CellContent.EMPTY, dtype=np.uint8, order="C"
        )
        log.debug("Maze arrays initialized", shape=(height, width))

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def in_bounds(self, pos: Tuple[int, int]) -> bool:
        x, y = pos
        return 0 <= x < self._width and 0 <= y < self._height

    def at(self, pos: Tuple[int, int]) -> Cell:
        if not self.in_bounds(pos):
            raise IndexError(f"Cell {tuple(pos)} outside {self._width}x{self._height} maze")
        x, y = pos
        return Cell(Pos(x, y), int(self.walls[y, x]), CellContent(int(self.content[y, x])))

    def has_wall(self, pos: Tuple[int, int], direction: Direction) -> bool:
        return self.at(pos).has_wall(direction)

    def positions(self) -> Iterator[Pos]:
        """All cell positions in row-major order."""
        for y in range(self._height):
            for x in range(self._width):
                yield Pos(x, y)

    def random_position(self, rng: GameRNG) -> Pos:
        # x is drawn before y
        x = rng.get_below(self._width)
        y = rng.get_below(self._height)
        return Pos(x, y)

    # --- Paired wall mutation ---
    def _edge(self, pos: Tuple[int, int], direction: Direction) -> Tuple[Pos, Pos]:
        if not self.in_bounds(pos):
            raise IndexError(f"Wall origin {tuple(pos)} out of bounds")
        other = step(pos, direction)
        if not self.in_bounds(other):
            raise IndexError(f"Wall target {tuple(other)} out of bounds")
        return Pos(*pos), other

    def remove_wall(self, pos: Tuple[int, int], direction: Direction) -> None:
        """Open the passage between ``pos`` and its neighbour on both sides."""
        a, b = self._edge(pos, direction)
        self.walls[a.y, a.x] &= ~direction.bit & ALL_WALLS
        back = opposite(direction)
        self.walls[b.y, b.x] &= ~back.bit & ALL_WALLS

    def place_wall(self, pos: Tuple[int, int], direction: Direction) -> None:
        """Close the passage between ``pos`` and its neighbour on both sides."""
        a, b = self._edge(pos, direction)
        self.walls[a.y, a.x] |= direction.bit
        self.walls[b.y, b.x] |= opposite(direction).bit

    def set_content(self, cells: Iterable[Tuple[int, int]], content: CellContent) -> None:
        for x, y in cells:
            self.content[y, x] = content

    # --- Whole-grid queries ---
    def open_passages(self) -> int:
        """Number of open internal edges (each counted once)."""
        horizontal = np.count_nonzero((self.walls[:, :-1] & Direction.RIGHT.bit) == 0)
        vertical = np.count_nonzero((self.walls[:-1, :] & Direction.DOWN.bit) == 0)
        return int(horizontal + vertical)

    def internal_walls(self) -> int:
        """Number of closed internal edges (each counted once)."""
        total_edges = (self._width - 1) * self._height + self._width * (self._height - 1)
        return total_edges - self.open_passages()

    def boundary_closed(self) -> bool:
        """True if every wall on the grid edge is set."""
        return bool(
            np.all(self.walls[0, :] & Direction.UP.bit)
            and np.all(self.walls[-1, :] & Direction.DOWN.bit)
            and np.all(self.walls[:, 0] & Direction.LEFT.bit)
            and np.all(self.walls[:, -1] & Direction.RIGHT.bit)
        )

    def is_symmetric(self) -> bool:
        """True if both sides of every internal edge agree."""
        right = (self.walls[:, :-1] & Direction.RIGHT.bit) != 0
        left = (self.walls[:, 1:] & Direction.LEFT.bit) != 0
        down = (self.walls[:-1, :] & Direction.DOWN.bit) != 0
        up = (self.walls[1:, :] & Direction.UP.bit) != 0
        return bool(np.array_equal(right, left) and np.array_equal(down, up))

    def reachable_from(self, start: Tuple[int, int]) -> Set[Pos]:
        """Flood fill across open walls."""
        start = Pos(*start)
        visited = {start}
        queue = deque([start])
        while queue:
            cur = queue.popleft()
            walls = int(self.walls[cur.y, cur.x])
            for direction in DIRECTIONS:
                if walls & direction.bit:
                    continue
                nxt = step(cur, direction)
                if self.in_bounds(nxt) and nxt not in visited:
                    visited.add(nxt)
                    queue.append(nxt)
        return visited

    def is_fully_connected(self) -> bool:
        return len(self.reachable_from((0, 0))) == self._width * self._height

    # --- Hex row codec (one nibble per cell) ---
    def to_hex_rows(self) -> List[str]:
        return [
            "".join(HEX_DIGITS[int(w) & ALL_WALLS] for w in row) for row in self.walls
        ]

    @classmethod
    def from_hex_rows(cls, width: int, height: int, rows: List[str]) -> "Maze":
        """Rebuild a maze from ``height`` rows of at least ``width`` hex digits.

        Whitespace inside a row is ignored and digits past ``width`` are not
        read.  Raises :class:`MalformedStateError` on short, missing or
        non-hex rows.
        """
        if width <= 0 or height <= 0:
            raise MalformedStateError(f"Invalid maze size {width}x{height}")
        if len(rows) < height:
            raise MalformedStateError(
                f"Expected {height} maze rows, got {len(rows)}"
            )
        maze = cls(width, height)
        for y, line in enumerate(rows[:height]):
            digits = "".join(line.split())
            if len(digits) < width:
                raise MalformedStateError(f"Row {y} is too short")
            for x, char in enumerate(digits[:width]):
                # int(char, 16) would also accept non-ASCII digits
                if char not in string.hexdigits:
                    raise MalformedStateError(
                        f"Invalid hex digit {char!r} at row {y}, column {x}"
                    )
                maze.walls[y, x] = int(char, 16) & ALL_WALLS
        return maze
