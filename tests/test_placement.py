import pytest
from structlog.testing import capture_logs

from game_rng import GameRNG
from labyrinth.errors import ConfigurationError, PlacementExhausted
from labyrinth.world.locations import LocationCatalog, LocationKind, default_catalog, open_second_exit
from labyrinth.world.maze import DIRECTIONS, CellContent, Direction, Maze, Pos, step
from labyrinth.world.mazegen import generate_maze
from labyrinth.world.placement import commit_location, place_locations, propose_location

PAIR = ((0, 0), (1, 0))


def _fixed_kind(anchor=Pos(2, 2), shape=PAIR, **kwargs):
    return LocationKind(
        type_name="TEST",
        display_name="test room",
        shapes=(shape,),
        anchor_picker=lambda maze, rng: anchor,
        **kwargs,
    )


def _open_grid(width=6, height=6):
    return generate_maze(width, height, 100, GameRNG(seed=1))


def _open_boundary_edges(maze, cells):
    cells = set(cells)
    opened = []
    for c in cells:
        for d in DIRECTIONS:
            q = step(c, d)
            if q in cells or not maze.in_bounds(q):
                continue
            if not maze.has_wall(c, d):
                opened.append((c, d))
    return opened


def _interior_open(maze, cells):
    cells = set(cells)
    return all(
        not maze.has_wall(c, d)
        for c in cells
        for d in DIRECTIONS
        if step(c, d) in cells
    )


def test_propose_does_not_touch_the_maze():
    maze = _open_grid()
    before = maze.to_hex_rows()
    plan = propose_location(maze, GameRNG(seed=3), _fixed_kind(), set())
    assert plan is not None
    assert maze.to_hex_rows() == before
    assert maze.at((2, 2)).content is CellContent.EMPTY


def test_plan_wall_operations():
    plan = propose_location(_open_grid(), GameRNG(seed=3), _fixed_kind(), set())
    assert plan.cells == (Pos(2, 2), Pos(3, 2))
    assert plan.interior_open == [(Pos(2, 2), Direction.RIGHT)]
    # Six in-bounds faces: one becomes the exit, five get walls
    assert len(plan.walls_to_place) == 5
    assert plan.exit not in plan.walls_to_place
    assert plan.walls_to_clear == [(Pos(2, 2), Direction.RIGHT), plan.exit]
    assert plan.doorsteps == [step(*plan.exit)]


def test_commit_leaves_exactly_one_exit():
    maze = _open_grid()
    reserved = set()
    plan = propose_location(maze, GameRNG(seed=3), _fixed_kind(), reserved)
    assert commit_location(maze, plan, reserved)

    assert _open_boundary_edges(maze, plan.cells) == [plan.exit]
    assert _interior_open(maze, plan.cells)
    assert reserved == {Pos(2, 2), Pos(3, 2)}
    assert maze.at((3, 2)).content is CellContent.LOCATION
    assert maze.is_symmetric()


def test_edge_of_grid_gets_no_wall_operations():
    maze = _open_grid()
    plan = propose_location(maze, GameRNG(seed=4), _fixed_kind(anchor=Pos(0, 0)), set())
    # (0,0)-(1,0): UP and LEFT of (0,0), UP of (1,0) are outside the grid
    edges = plan.walls_to_place + [plan.exit]
    assert len(edges) == 3
    assert all(maze.in_bounds(step(pos, d)) for pos, d in edges)


def test_reserved_and_out_of_bounds_attempts_fail():
    maze = _open_grid()
    kind = _fixed_kind(placement_attempts=3)
    assert propose_location(maze, GameRNG(seed=5), kind, {Pos(3, 2)}) is None

    off_grid = _fixed_kind(anchor=Pos(5, 2))
    assert propose_location(maze, GameRNG(seed=5), off_grid, set()) is None


def test_shape_without_exterior_face_fails():
    maze = Maze(2, 1)
    assert propose_location(maze, GameRNG(seed=6), _fixed_kind(anchor=Pos(0, 0)), set()) is None


def test_exit_never_leads_into_a_reserved_cell():
    maze = _open_grid()
    # Reserve every outside neighbour but (1,2), the cell left of the pair
    reserved = {Pos(2, 1), Pos(3, 1), Pos(4, 2), Pos(2, 3), Pos(3, 3)}
    for seed in range(1, 30):
        plan = propose_location(maze, GameRNG(seed=seed), _fixed_kind(), reserved)
        assert plan.exit == (Pos(2, 2), Direction.LEFT)
        assert len(plan.walls_to_place) == 5


def test_placement_may_not_cover_an_existing_doorstep():
    maze = _open_grid()
    kind = _fixed_kind()
    assert propose_location(maze, GameRNG(seed=7), kind, set(), {Pos(3, 2)}) is None

    plan = propose_location(maze, GameRNG(seed=7), kind, set())
    doorsteps = {Pos(2, 2)}
    assert not commit_location(maze, plan, set(), doorsteps)


def test_stale_plan_is_not_committed():
    maze = _open_grid()
    plan = propose_location(maze, GameRNG(seed=3), _fixed_kind(), set())
    before = maze.to_hex_rows()
    reserved = {Pos(3, 2)}
    with capture_logs() as logs:
        assert not commit_location(maze, plan, reserved)
    assert maze.to_hex_rows() == before
    assert reserved == {Pos(3, 2)}
    assert any(entry["log_level"] == "warning" for entry in logs)


def test_hook_adds_a_second_exit():
    maze = _open_grid()
    kind = _fixed_kind(extra_openings=open_second_exit)
    reserved = set()
    plan = propose_location(maze, GameRNG(seed=9), kind, reserved)
    assert len(plan.extra_open) == 1
    assert commit_location(maze, plan, reserved)

    opened = _open_boundary_edges(maze, plan.cells)
    assert sorted(opened) == sorted([plan.exit] + plan.extra_open)
    assert len(plan.walls_to_place) == 4


def test_hook_may_not_open_an_interior_edge():
    def bad_hook(maze, rng, cells, closed):
        return [(Pos(2, 2), Direction.RIGHT)]

    kind = _fixed_kind(extra_openings=bad_hook)
    with pytest.raises(ValueError):
        propose_location(_open_grid(), GameRNG(seed=9), kind, set())


def test_place_locations_default_catalog():
    maze = generate_maze(10, 10, 50, GameRNG(seed=7))
    rng = GameRNG(seed=7, counter=500)
    reserved = set()
    locations = place_locations(maze, rng, default_catalog(), reserved)

    assert [loc.type_name for loc in locations] == ["HOSPITAL", "ARSENAL"]
    hospital, arsenal = locations
    assert set(hospital.cells).isdisjoint(arsenal.cells)
    assert reserved == set(hospital.cells) | set(arsenal.cells)
    for location in locations:
        assert len(_open_boundary_edges(maze, location.cells)) == 1
        assert _interior_open(maze, location.cells)
        for cell in location.cells:
            assert maze.at(cell).content is location.kind.content
    assert maze.is_symmetric()
    assert maze.boundary_closed()


@pytest.mark.parametrize("seed", [2, 13, 77, 1234])
def test_single_exit_holds_for_every_placed_location(seed):
    maze = generate_maze(6, 6, 30, GameRNG(seed=seed))
    catalog = LocationCatalog(
        [
            LocationKind("ROOM_A", "room a"),
            LocationKind("ROOM_B", "room b"),
            LocationKind("ROOM_C", "room c"),
        ]
    )
    locations = place_locations(maze, GameRNG(seed=seed), catalog)
    for location in locations:
        assert len(_open_boundary_edges(maze, location.cells)) == 1


def test_placement_is_reproducible():
    def run():
        maze = generate_maze(8, 8, 20, GameRNG(seed=21))
        return place_locations(maze, GameRNG(seed=21, counter=1000), default_catalog()), maze

    (locs_a, maze_a), (locs_b, maze_b) = run(), run()
    assert [loc.cells for loc in locs_a] == [loc.cells for loc in locs_b]
    assert maze_a.to_hex_rows() == maze_b.to_hex_rows()


def test_placement_exhausted_on_a_grid_too_small():
    maze = Maze(1, 1)
    with capture_logs() as logs:
        with pytest.raises(PlacementExhausted) as excinfo:
            place_locations(maze, GameRNG(seed=1), default_catalog(), max_rounds=5)
    assert excinfo.value.type_name == "HOSPITAL"
    assert excinfo.value.rounds == 5
    assert any(
        entry["event"] == "Location placement exhausted" and entry["log_level"] == "error"
        for entry in logs
    )


def test_max_rounds_must_be_positive():
    with pytest.raises(ConfigurationError):
        place_locations(Maze(3, 3), GameRNG(seed=1), default_catalog(), max_rounds=0)
