# labyrinth/game_state.py
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Sequence, Set, Tuple, Union

import structlog

from common.constants import DEFAULT_MAX_PLACEMENT_ROUNDS, DEFAULT_OPENNESS, PLAYER_PALETTE
from game_rng import GameRNG
from labyrinth.errors import PlayerNotFound
from labyrinth.players import Player, validate_player_name
from labyrinth.world.locations import Location, LocationCatalog, default_catalog
from labyrinth.world.maze import DIRECTIONS, Direction, Maze, Pos, parse_direction, step
from labyrinth.world.mazegen import generate_maze
from labyrinth.world.placement import place_locations

log = structlog.get_logger()


@dataclass(frozen=True)
class GameEvent:
    kind: str  # "bump_edge", "bump_wall", "moved", "enter", "leave", "breath"
    player: str
    message: str
    location: Optional[str] = None


class GameState:
    """Owns one generation session: RNG, maze, locations and players.

    Render and narration code should only read through the query methods
    (``width``, ``height``, ``has_wall``, ``locations``, ``players``,
    ``location_at``); the maze and RNG are mutated only here and by the
    placement engine during :meth:`generate`.
    """

    def __init__(
        self,
        maze: Maze,
        rng: GameRNG,
        catalog: LocationCatalog,
        locations: Sequence[Location] = (),
        players: Sequence[Player] = (),
    ):
        self.maze: Maze = maze
        self.rng: GameRNG = rng
        self.catalog: LocationCatalog = catalog
        self._locations: List[Location] = list(locations)
        self._players: List[Player] = list(players)
        self._reserved: Set[Pos] = set()
        for location in self._locations:
            self._reserved.update(location.cells)
            self.maze.set_content(location.cells, location.kind.content)
        log.debug(
            "GameState initialized",
            size=(maze.width, maze.height),
            locations=len(self._locations),
            players=len(self._players),
            rng=repr(rng),
        )

    @classmethod
    def generate(
        cls,
        width: int,
        height: int,
        openness: int = DEFAULT_OPENNESS,
        seed: Optional[int] = None,
        catalog: Optional[LocationCatalog] = None,
        max_rounds: Optional[int] = DEFAULT_MAX_PLACEMENT_ROUNDS,
    ) -> "GameState":
        """Carve a maze and place one location of every catalog kind."""
        catalog = catalog if catalog is not None else default_catalog()
        rng = GameRNG(seed)
        maze = generate_maze(width, height, openness, rng)
        reserved: Set[Pos] = set()
        locations = place_locations(maze, rng, catalog, reserved, max_rounds)
        state = cls(maze, rng, catalog, locations)
        log.info(
            "Session generated",
            seed=rng.seed,
            counter=rng.counter,
            locations=[loc.type_name for loc in locations],
        )
        return state

    # --- Query surface ---
    @property
    def width(self) -> int:
        return self.maze.width

    @property
    def height(self) -> int:
        return self.maze.height

    @property
    def locations(self) -> Tuple[Location, ...]:
        return tuple(self._locations)

    @property
    def players(self) -> Tuple[Player, ...]:
        return tuple(self._players)

    @property
    def reserved(self) -> FrozenSet[Pos]:
        return frozenset(self._reserved)

    def has_wall(self, pos: Tuple[int, int], direction: Direction) -> bool:
        return self.maze.has_wall(pos, direction)

    def location_at(self, pos: Tuple[int, int]) -> Optional[Location]:
        for location in self._locations:
            if location.contains(pos):
                return location
        return None

    def player(self, name: str) -> Player:
        for p in self._players:
            if p.name == name:
                return p
        log.error("Player not found", name=name)
        raise PlayerNotFound(f"Player {name} not found")

    # --- Players ---
    def add_player_random(self, name: str) -> List[GameEvent]:
        """Spawn ``name`` on a random cell and report what they notice there."""
        validate_player_name(name)
        if any(p.name == name for p in self._players):
            raise ValueError(f"Player {name} already exists")

        pos = self.maze.random_position(self.rng)
        color = PLAYER_PALETTE[len(self._players) % len(PLAYER_PALETTE)]
        player = Player(name, pos, color)
        self._players.append(player)
        log.info("Player added", name=name, pos=pos, color=color)

        events: List[GameEvent] = []
        if self._has_adjacent_other(player):
            events.append(self._breath_event(player))
        location = self.location_at(pos)
        if location is not None:
            events.append(
                GameEvent("enter", name, location.kind.on_enter(name), location.type_name)
            )
        return events

    def move_player(self, name: str, direction: Union[Direction, str]) -> List[GameEvent]:
        """Move ``name`` one cell, bumping into walls and the outer edge."""
        if isinstance(direction, str):
            direction = parse_direction(direction)
        player = self.player(name)
        cur = player.pos
        nxt = step(cur, direction)

        events: List[GameEvent] = []
        if not self.maze.in_bounds(nxt):
            events.append(GameEvent("bump_edge", name, f"{name} bumped into the outer wall"))
        elif self.maze.has_wall(cur, direction):
            events.append(GameEvent("bump_wall", name, f"{name} bumped into a wall"))
        else:
            for location in self._locations:
                was_in = location.contains(cur)
                will_be_in = location.contains(nxt)
                if was_in and not will_be_in:
                    events.append(
                        GameEvent("leave", name, location.kind.on_leave(name), location.type_name)
                    )
                if will_be_in and not was_in:
                    events.append(
                        GameEvent("enter", name, location.kind.on_enter(name), location.type_name)
                    )
            player.pos = nxt
            events.append(GameEvent("moved", name, f"{name} moved {direction.name.lower()}"))
            log.debug("Player moved", name=name, src=cur, dst=nxt)

        if self._has_adjacent_other(player):
            events.append(self._breath_event(player))
        return events

    def _has_adjacent_other(self, who: Player) -> bool:
        for direction in DIRECTIONS:
            if self.maze.has_wall(who.pos, direction):
                continue
            neighbor = step(who.pos, direction)
            if not self.maze.in_bounds(neighbor):
                continue
            if any(p is not who and p.pos == neighbor for p in self._players):
                return True
        return False

    @staticmethod
    def _breath_event(player: Player) -> GameEvent:
        return GameEvent("breath", player.name, f"{player.name} felt someone breathing nearby")
