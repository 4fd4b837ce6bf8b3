# labyrinth/snapshot.py
"""Flat-text session snapshots.

Layout, one record after another::

    [RNG]
    <seed> <counter>
    [MAZE]
    <width> <height>
    <height rows of width hex nibbles: bit0=UP bit1=RIGHT bit2=DOWN bit3=LEFT>
    [PLAYER]                      (zero or more)
    <name> <x> <y> <color>
    [LOCATION]                    (zero or more)
    <TYPE>
    <cell count>
    <x> <y>                       (one line per cell)

Reading is all-or-nothing: any problem raises and no partial state is
returned.  Writing goes through a temporary file that replaces the target
only once it is complete.
"""
import os
import re
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple, Union

import structlog

from common.constants import TAG_LOCATION, TAG_MAZE, TAG_PLAYER, TAG_RNG
from game_rng import GameRNG, RandomState
from labyrinth.errors import MalformedStateError
from labyrinth.game_state import GameState
from labyrinth.players import Player
from labyrinth.world.locations import Location, LocationCatalog
from labyrinth.world.maze import Maze, Pos

log = structlog.get_logger()

_INTEGER = re.compile(r"-?[0-9]+")


def is_valid_tag(token: str) -> bool:
    return len(token) >= 2 and token.startswith("[") and token.endswith("]")


class _TokenReader:
    """Whitespace tokens across lines, plus raw-line reads for maze rows."""

    def __init__(self, text: str):
        self._lines = text.splitlines()
        self._next_line = 0
        self._pending: List[str] = []

    def _fill(self) -> bool:
        while not self._pending:
            if self._next_line >= len(self._lines):
                return False
            self._pending = self._lines[self._next_line].split()
            self._next_line += 1
        return True

    def peek(self) -> Optional[str]:
        return self._pending[0] if self._fill() else None

    def token(self, what: str) -> str:
        if not self._fill():
            raise MalformedStateError(f"Unexpected end of input while reading {what}")
        return self._pending.pop(0)

    def integer(self, what: str) -> int:
        raw = self.token(what)
        # ASCII decimal only; int() alone would take "1_0" or non-ASCII digits
        if not _INTEGER.fullmatch(raw):
            raise MalformedStateError(f"Expected integer for {what}, got {raw!r}")
        return int(raw)

    def end_line(self, what: str) -> None:
        """The current line must hold no further tokens."""
        if self._pending:
            raise MalformedStateError(f"Unexpected tokens after {what}: {self._pending}")

    def lines(self, count: int, what: str) -> List[str]:
        self.end_line(what)
        rows = self._lines[self._next_line : self._next_line + count]
        if len(rows) < count:
            raise MalformedStateError(
                f"Unexpected end of input while reading {what} rows"
            )
        self._next_line += count
        return rows

    def skip_payload(self) -> List[str]:
        skipped: List[str] = []
        while (tok := self.peek()) is not None and not tok.startswith("["):
            skipped.append(self.token("payload"))
        return skipped


# --- Writing ---
def dumps(state: GameState) -> str:
    rng_state = state.rng.get_state()
    out: List[str] = [TAG_RNG, f"{rng_state['seed']} {rng_state['counter']}"]

    out.append(TAG_MAZE)
    out.append(f"{state.width} {state.height}")
    out.extend(state.maze.to_hex_rows())

    for player in state.players:
        out.append(TAG_PLAYER)
        out.append(f"{player.name} {player.pos.x} {player.pos.y} {player.color}")

    for location in state.locations:
        out.append(TAG_LOCATION)
        out.append(location.type_name)
        out.append(str(len(location.cells)))
        out.extend(f"{c.x} {c.y}" for c in location.cells)
    return "\n".join(out) + "\n"


def write_text_atomic(path: Union[str, Path], text: str) -> None:
    """Write ``text`` to a temp file beside ``path``, then swap it in.

    Readers see either the old file or the complete new one.
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        log.error("Failed to write file", path=str(path), exc_info=True)
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def save(state: GameState, path: Union[str, Path]) -> None:
    """Write ``state`` to ``path`` atomically."""
    text = dumps(state)
    write_text_atomic(path, text)
    log.info("Snapshot saved", path=str(path), bytes=len(text))


# --- Reading ---
def _read_rng(reader: _TokenReader) -> RandomState:
    seed = reader.integer("RNG seed")
    counter = reader.integer("RNG counter")
    try:
        return RandomState(seed, counter)
    except ValueError as e:
        raise MalformedStateError(str(e)) from None


def _read_maze(reader: _TokenReader) -> Maze:
    width = reader.integer("maze width")
    height = reader.integer("maze height")
    if width <= 0 or height <= 0:
        raise MalformedStateError(f"Invalid maze size in header: {width}x{height}")
    rows = reader.lines(height, "maze")
    return Maze.from_hex_rows(width, height, rows)


def _read_player(reader: _TokenReader) -> Player:
    name = reader.token("player name")
    x = reader.integer("player x")
    y = reader.integer("player y")
    color = reader.token("player color")
    try:
        return Player(name, Pos(x, y), color)
    except ValueError as e:
        raise MalformedStateError(str(e)) from None


def _read_location(reader: _TokenReader, catalog: LocationCatalog) -> Location:
    type_name = reader.token("location type")
    kind = catalog.get(type_name)
    count = reader.integer("location cell count")
    if count < 0:
        raise MalformedStateError(f"Negative cell count for {type_name}")
    cells: List[Tuple[int, int]] = []
    for _ in range(count):
        cells.append((reader.integer("location x"), reader.integer("location y")))
    try:
        return Location(kind, tuple(Pos(*c) for c in cells))
    except ValueError as e:
        raise MalformedStateError(str(e)) from None


def _check_consistency(maze: Maze, players: List[Player], locations: List[Location]) -> None:
    if not maze.is_symmetric():
        raise MalformedStateError("Maze wall bits disagree across an edge")

    names = set()
    for player in players:
        if player.name in names:
            raise MalformedStateError(f"Duplicate player {player.name}")
        names.add(player.name)
        if not maze.in_bounds(player.pos):
            raise MalformedStateError(f"Player {player.name} out of bounds at {player.pos}")

    claimed = set()
    for location in locations:
        for cell in location.cells:
            if not maze.in_bounds(cell):
                raise MalformedStateError(f"{location.type_name} cell {cell} out of bounds")
            if cell in claimed:
                raise MalformedStateError(f"Cell {cell} claimed by more than one location")
            claimed.add(cell)


def loads(text: str, catalog: LocationCatalog) -> GameState:
    reader = _TokenReader(text)
    rng_state: Optional[RandomState] = None
    maze: Optional[Maze] = None
    players: List[Player] = []
    locations: List[Location] = []

    while (tag := reader.peek()) is not None:
        reader.token("tag")
        if not is_valid_tag(tag):
            log.error("Cannot parse record tag", tag=tag)
            raise MalformedStateError(f"Cannot parse tag {tag!r}")

        if tag == TAG_RNG:
            if rng_state is not None:
                raise MalformedStateError("Repeated [RNG] record")
            rng_state = _read_rng(reader)
        elif tag == TAG_MAZE:
            if maze is not None:
                raise MalformedStateError("Repeated [MAZE] record")
            maze = _read_maze(reader)
        elif tag == TAG_PLAYER:
            players.append(_read_player(reader))
        elif tag == TAG_LOCATION:
            locations.append(_read_location(reader, catalog))
        else:
            skipped = reader.skip_payload()
            log.debug("Skipping unknown record", tag=tag, tokens=len(skipped))

    if rng_state is None:
        raise MalformedStateError("Missing [RNG] record")
    if maze is None:
        raise MalformedStateError("Missing [MAZE] record")
    _check_consistency(maze, players, locations)

    rng = GameRNG.restore(rng_state.seed, rng_state.counter)
    return GameState(maze, rng, catalog, locations, players)


def load(path: Union[str, Path], catalog: LocationCatalog) -> GameState:
    path = Path(path)
    if not path.is_file():
        log.error("Snapshot file not found", path=str(path))
        raise FileNotFoundError(f"Snapshot file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        log.error("Snapshot is not valid UTF-8", path=str(path), error=str(e))
        raise MalformedStateError(f"Snapshot {path} is not valid UTF-8: {e}") from e
    state = loads(text, catalog)
    log.info(
        "Snapshot loaded",
        path=str(path),
        size=(state.width, state.height),
        players=len(state.players),
        locations=len(state.locations),
    )
    return state
