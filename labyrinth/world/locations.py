# labyrinth/world/locations.py
"""Location kinds and the catalog that maps type keywords to them.

A :class:`LocationKind` is a plain capability record: the event text a
location produces, how it is drawn, and the policies the placer calls
(shape choice, anchor choice, optional extra openings).  Kinds are looked up
through a :class:`LocationCatalog` built once at start-up and handed to the
placer and the snapshot reader; there is no module-level registry.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import structlog

from common.constants import DEFAULT_PLACEMENT_ATTEMPTS
from game_rng import GameRNG
from labyrinth.errors import ConfigurationError, UnknownLocationType
from labyrinth.world.maze import CellContent, Direction, Maze, Pos
from labyrinth.world.shapes import DEFAULT_SHAPES, Shape, pick_random_anchor, pick_random_shape

log = structlog.get_logger()

Edge = Tuple[Pos, Direction]
ShapePicker = Callable[[GameRNG, Sequence[Shape]], Shape]
AnchorPicker = Callable[[Maze, GameRNG], Pos]
# (maze, rng, cells, remaining exit candidates) -> edges to open as well
OpeningsHook = Callable[[Maze, GameRNG, Tuple[Pos, ...], List[Edge]], List[Edge]]


@dataclass(frozen=True)
class LocationKind:
    type_name: str
    display_name: str
    content: CellContent = CellContent.LOCATION
    fill: str = "#888888"
    enter_text: str = "{player} entered the {name}"
    leave_text: str = "{player} left the {name}"
    placement_attempts: int = DEFAULT_PLACEMENT_ATTEMPTS
    shapes: Tuple[Shape, ...] = DEFAULT_SHAPES
    shape_picker: ShapePicker = pick_random_shape
    anchor_picker: AnchorPicker = pick_random_anchor
    extra_openings: Optional[OpeningsHook] = None

    def __post_init__(self) -> None:
        if not self.type_name or any(ch.isspace() for ch in self.type_name):
            raise ConfigurationError(
                f"Location type must be a non-empty token: {self.type_name!r}"
            )
        if self.placement_attempts < 1:
            raise ConfigurationError(
                f"placement_attempts must be >= 1 for {self.type_name}"
            )
        if not self.shapes:
            raise ConfigurationError(f"{self.type_name} has no shapes")

    def pick_shape(self, rng: GameRNG) -> Shape:
        return self.shape_picker(rng, self.shapes)

    def pick_anchor(self, maze: Maze, rng: GameRNG) -> Pos:
        return self.anchor_picker(maze, rng)

    def on_enter(self, player: str) -> str:
        return self.enter_text.format(player=player, name=self.display_name)

    def on_leave(self, player: str) -> str:
        return self.leave_text.format(player=player, name=self.display_name)


@dataclass
class Location:
    kind: LocationKind
    cells: Tuple[Pos, ...]
    _cell_set: frozenset = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.cells = tuple(Pos(*c) for c in self.cells)
        self._cell_set = frozenset(self.cells)
        if len(self._cell_set) != len(self.cells):
            raise ValueError(f"Duplicate cells in {self.kind.type_name} location")

    @property
    def type_name(self) -> str:
        return self.kind.type_name

    def contains(self, pos: Tuple[int, int]) -> bool:
        return Pos(*pos) in self._cell_set


def open_second_exit(
    maze: Maze, rng: GameRNG, cells: Tuple[Pos, ...], closed_edges: List[Edge]
) -> List[Edge]:
    """Openings hook: one extra exit picked uniformly from the remaining candidates."""
    if not closed_edges:
        return []
    return [closed_edges[rng.get_below(len(closed_edges))]]


class LocationCatalog:
    """Ordered mapping of type keyword -> :class:`LocationKind`."""

    def __init__(self, kinds: Sequence[LocationKind] = ()) -> None:
        self._kinds: Dict[str, LocationKind] = {}
        for kind in kinds:
            self.register(kind)

    def register(self, kind: LocationKind) -> None:
        if kind.type_name in self._kinds:
            raise ValueError(f"Location type already registered: {kind.type_name}")
        self._kinds[kind.type_name] = kind
        log.debug("Registered location kind", type=kind.type_name)

    def get(self, type_name: str) -> LocationKind:
        try:
            return self._kinds[type_name]
        except KeyError:
            log.error("Unknown location type", type=type_name, known=list(self._kinds))
            raise UnknownLocationType(f"Unknown location type: {type_name}") from None

    def create(self, type_name: str, cells: Sequence[Tuple[int, int]]) -> Location:
        return Location(self.get(type_name), tuple(Pos(*c) for c in cells))

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._kinds

    def __iter__(self) -> Iterator[LocationKind]:
        return iter(self._kinds.values())

    def __len__(self) -> int:
        return len(self._kinds)


HOSPITAL = LocationKind(
    type_name="HOSPITAL",
    display_name="hospital",
    content=CellContent.HOSPITAL,
    fill="#d62728",
)

ARSENAL = LocationKind(
    type_name="ARSENAL",
    display_name="arsenal",
    content=CellContent.ARSENAL,
    fill="#ffcc00",
)

BUILTIN_KINDS: Dict[str, LocationKind] = {
    HOSPITAL.type_name: HOSPITAL,
    ARSENAL.type_name: ARSENAL,
}

OPENINGS_HOOKS: Dict[str, OpeningsHook] = {
    "second_exit": open_second_exit,
}


def default_catalog() -> LocationCatalog:
    """HOSPITAL then ARSENAL, with their built-in settings."""
    return LocationCatalog(list(BUILTIN_KINDS.values()))


def build_catalog(location_cfgs: Optional[Sequence[Mapping[str, Any]]]) -> LocationCatalog:
    """
    Builds a catalog from config entries such as
    ``{"type": "ARSENAL", "attempts": 8, "hook": "second_exit"}``.
    Entry order is placement order. ``None`` gives :func:`default_catalog`.
    """
    if location_cfgs is None:
        return default_catalog()

    kinds: List[LocationKind] = []
    for entry in location_cfgs:
        if not isinstance(entry, Mapping) or "type" not in entry:
            raise ConfigurationError(f"Location entry needs a 'type': {entry!r}")
        type_name = str(entry["type"]).upper()
        base = BUILTIN_KINDS.get(type_name)
        if base is None:
            raise ConfigurationError(f"No built-in location type {type_name!r}")

        overrides: Dict[str, Any] = {}
        if "attempts" in entry:
            try:
                overrides["placement_attempts"] = int(entry["attempts"])
            except (TypeError, ValueError):
                raise ConfigurationError(
                    f"attempts for {type_name} must be an integer"
                ) from None
        if "fill" in entry:
            overrides["fill"] = str(entry["fill"])
        hook_name = entry.get("hook")
        if hook_name is not None:
            if hook_name not in OPENINGS_HOOKS:
                raise ConfigurationError(f"Unknown placement hook {hook_name!r}")
            overrides["extra_openings"] = OPENINGS_HOOKS[hook_name]
        kinds.append(replace(base, **overrides))

    try:
        return LocationCatalog(kinds)
    except ValueError as e:
        raise ConfigurationError(str(e)) from None
