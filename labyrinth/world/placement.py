# labyrinth/world/placement.py
from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, List, Optional, Set, Tuple

import structlog

from common.constants import DEFAULT_MAX_PLACEMENT_ROUNDS
from game_rng import GameRNG
from labyrinth.errors import ConfigurationError, PlacementExhausted
from labyrinth.world.locations import Edge, Location, LocationCatalog, LocationKind
from labyrinth.world.maze import DIRECTIONS, Direction, Maze, Pos, step
from labyrinth.world.shapes import translate

log = structlog.get_logger()


@dataclass
class LocationPlan:
    """Cells and wall operations of one successful attempt, not yet applied."""
    kind: LocationKind
    cells: Tuple[Pos, ...]
    interior_open: List[Edge] = field(default_factory=list)
    boundary_place: List[Edge] = field(default_factory=list)
    exit: Optional[Edge] = None
    extra_open: List[Edge] = field(default_factory=list)

    @property
    def walls_to_place(self) -> List[Edge]:
        return list(self.boundary_place)

    @property
    def walls_to_clear(self) -> List[Edge]:
        clears = list(self.interior_open)
        if self.exit is not None:
            clears.append(self.exit)
        clears.extend(self.extra_open)
        return clears

    @property
    def doorsteps(self) -> List[Pos]:
        """Outside cells that the exit and any extra openings lead to."""
        openings = ([self.exit] if self.exit is not None else []) + self.extra_open
        return [step(pos, direction) for pos, direction in openings]

    def to_location(self) -> Location:
        return Location(self.kind, self.cells)


def _interior_ops(cell_set: Set[Pos], cells: Iterable[Pos]) -> List[Edge]:
    # RIGHT/DOWN only, so each adjacent pair is queued once
    ops: List[Edge] = []
    for p in cells:
        for direction in (Direction.RIGHT, Direction.DOWN):
            if step(p, direction) in cell_set:
                ops.append((p, direction))
    return ops


def _boundary_edges(maze: Maze, cell_set: Set[Pos], cells: Iterable[Pos]) -> List[Edge]:
    edges: List[Edge] = []
    for p in cells:
        for direction in DIRECTIONS:
            q = step(p, direction)
            if q in cell_set or not maze.in_bounds(q):
                continue
            edges.append((p, direction))
    return edges


def _validate_extra(
    kind: LocationKind, extra: Iterable[Edge], candidates: List[Edge]
) -> List[Edge]:
    allowed = set(candidates)
    accepted: List[Edge] = []
    for pos, direction in extra:
        edge = (Pos(*pos), Direction(direction))
        if edge not in allowed:
            log.error(
                "Openings hook returned an edge it may not open",
                type=kind.type_name,
                edge=edge,
            )
            raise ValueError(
                f"{kind.type_name} hook may only open closed boundary walls, got {edge}"
            )
        if edge not in accepted:
            accepted.append(edge)
    return accepted


def _build_plan(
    maze: Maze,
    rng: GameRNG,
    kind: LocationKind,
    cells: Tuple[Pos, ...],
    reserved: AbstractSet[Pos],
) -> Optional[LocationPlan]:
    cell_set = set(cells)
    plan = LocationPlan(kind=kind, cells=cells)
    plan.interior_open = _interior_ops(cell_set, cells)

    borders = _boundary_edges(maze, cell_set, cells)
    # Every border gets a wall, but an opening may not lead into another location
    candidates = [e for e in borders if step(*e) not in reserved]
    if not candidates:
        log.debug("No exterior face to open", type=kind.type_name, cells=cells)
        return None
    plan.exit = candidates.pop(rng.get_below(len(candidates)))

    if kind.extra_openings is not None:
        extra = kind.extra_openings(maze, rng, cells, list(candidates))
        plan.extra_open = _validate_extra(kind, extra, candidates)

    opened = set(plan.extra_open)
    opened.add(plan.exit)
    plan.boundary_place = [e for e in borders if e not in opened]
    return plan


def propose_location(
    maze: Maze,
    rng: GameRNG,
    kind: LocationKind,
    reserved: AbstractSet[Pos],
    doorsteps: AbstractSet[Pos] = frozenset(),
) -> Optional[LocationPlan]:
    """
    Tries up to ``kind.placement_attempts`` random shape/anchor pairs.
    Cells may not overlap ``reserved`` or cover a ``doorsteps`` cell in front
    of an earlier location's opening. Returns the first valid plan, or None.
    The maze is never modified here.
    """
    for attempt in range(kind.placement_attempts):
        shape = kind.pick_shape(rng)
        anchor = kind.pick_anchor(maze, rng)
        cells = translate(shape, anchor)

        log_context = {"type": kind.type_name, "attempt": attempt, "anchor": anchor}
        if not all(maze.in_bounds(c) for c in cells):
            log.debug("Placement out of bounds", **log_context)
            continue
        if not reserved.isdisjoint(cells):
            log.debug("Placement collides with reserved cells", **log_context)
            continue
        if not doorsteps.isdisjoint(cells):
            log.debug("Placement blocks an existing exit", **log_context)
            continue

        plan = _build_plan(maze, rng, kind, cells, reserved)
        if plan is None:
            continue
        log.debug("Placement proposed", cells=cells, exit=plan.exit, **log_context)
        return plan
    return None


def commit_location(
    maze: Maze,
    plan: LocationPlan,
    reserved: Set[Pos],
    doorsteps: Optional[Set[Pos]] = None,
) -> bool:
    """
    Re-checks ``plan`` against the current ``reserved`` and ``doorsteps``
    sets, then applies it. Places go first and clears last, so interior,
    exit and hook openings always end up open. Returns False without
    touching anything if the plan is stale.
    """
    blocked = doorsteps if doorsteps is not None else set()
    if not all(maze.in_bounds(c) for c in plan.cells):
        log.warning("Stale plan: cells out of bounds", type=plan.kind.type_name)
        return False
    if not reserved.isdisjoint(plan.cells) or not blocked.isdisjoint(plan.cells):
        log.warning("Stale plan: cells already reserved", type=plan.kind.type_name)
        return False
    if not reserved.isdisjoint(plan.doorsteps):
        log.warning("Stale plan: exit leads into a location", type=plan.kind.type_name)
        return False

    for pos, direction in plan.walls_to_place:
        maze.place_wall(pos, direction)
    for pos, direction in plan.walls_to_clear:
        maze.remove_wall(pos, direction)
    maze.set_content(plan.cells, plan.kind.content)
    reserved.update(plan.cells)
    if doorsteps is not None:
        doorsteps.update(plan.doorsteps)
    return True


def place_locations(
    maze: Maze,
    rng: GameRNG,
    catalog: LocationCatalog,
    reserved: Optional[Set[Pos]] = None,
    max_rounds: Optional[int] = DEFAULT_MAX_PLACEMENT_ROUNDS,
) -> List[Location]:
    """
    Places one location of every catalog kind, in catalog order.

    Each kind is retried until a plan commits. ``max_rounds`` caps those
    retries per kind and raises :class:`PlacementExhausted` when hit;
    ``None`` retries forever, which can stall on grids without enough room.
    """
    if max_rounds is not None and max_rounds < 1:
        raise ConfigurationError("max_rounds must be >= 1 or None")
    if reserved is None:
        reserved = set()
    doorsteps: Set[Pos] = set()

    locations: List[Location] = []
    for kind in catalog:
        rounds = 0
        while True:
            if max_rounds is not None and rounds >= max_rounds:
                log.error(
                    "Location placement exhausted",
                    type=kind.type_name,
                    rounds=rounds,
                    reserved=len(reserved),
                )
                raise PlacementExhausted(kind.type_name, rounds)
            rounds += 1

            plan = propose_location(maze, rng, kind, reserved, doorsteps)
            if plan is None:
                continue
            if commit_location(maze, plan, reserved, doorsteps):
                location = plan.to_location()
                locations.append(location)
                log.info(
                    "Location placed",
                    type=kind.type_name,
                    cells=location.cells,
                    exit=plan.exit,
                    rounds=rounds,
                )
                break
    return locations
