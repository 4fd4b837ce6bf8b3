import pytest

from labyrinth.errors import ConfigurationError, MalformedStateError
from labyrinth.world.maze import (
    DIRECTIONS,
    CellContent,
    Direction,
    Maze,
    Pos,
    opposite,
    parse_direction,
    step,
)


def test_direction_values_and_bits():
    assert [int(d) for d in DIRECTIONS] == [0, 1, 2, 3]
    assert [d.bit for d in DIRECTIONS] == [1, 2, 4, 8]
    assert opposite(Direction.UP) is Direction.DOWN
    assert opposite(Direction.LEFT) is Direction.RIGHT


def test_step_does_not_check_bounds():
    assert step((0, 0), Direction.UP) == Pos(0, -1)
    assert step((0, 0), Direction.LEFT) == Pos(-1, 0)
    assert step((3, 4), Direction.RIGHT) == Pos(4, 4)
    assert step((3, 4), Direction.DOWN) == Pos(3, 5)


def test_parse_direction():
    assert parse_direction("Up") is Direction.UP
    assert parse_direction(" left ") is Direction.LEFT
    with pytest.raises(ValueError):
        parse_direction("north")


def test_rejects_non_positive_size():
    with pytest.raises(ConfigurationError):
        Maze(0, 5)
    with pytest.raises(ValueError):
        Maze(4, -1)


def test_new_maze_is_fully_walled():
    maze = Maze(4, 3)
    assert maze.width == 4 and maze.height == 3
    assert maze.open_passages() == 0
    assert maze.internal_walls() == 3 * 3 + 4 * 2
    assert maze.boundary_closed()
    assert maze.is_symmetric()
    assert all(maze.at(p).content is CellContent.EMPTY for p in maze.positions())


def test_remove_and_place_wall_update_both_sides():
    maze = Maze(3, 3)
    maze.remove_wall((1, 1), Direction.RIGHT)
    assert not maze.has_wall((1, 1), Direction.RIGHT)
    assert not maze.has_wall((2, 1), Direction.LEFT)
    assert maze.is_symmetric()

    maze.remove_wall((1, 1), Direction.UP)
    assert not maze.has_wall((1, 0), Direction.DOWN)

    maze.place_wall((2, 1), Direction.LEFT)
    assert maze.has_wall((1, 1), Direction.RIGHT)
    assert maze.open_passages() == 1
    assert maze.is_symmetric()


def test_wall_ops_refuse_the_outer_boundary():
    maze = Maze(2, 2)
    with pytest.raises(IndexError):
        maze.remove_wall((0, 0), Direction.UP)
    with pytest.raises(IndexError):
        maze.place_wall((1, 1), Direction.RIGHT)
    with pytest.raises(IndexError):
        maze.at((2, 0))
    assert maze.boundary_closed()


def test_positions_are_row_major():
    maze = Maze(2, 2)
    assert list(maze.positions()) == [Pos(0, 0), Pos(1, 0), Pos(0, 1), Pos(1, 1)]


def test_reachable_from_follows_open_walls():
    maze = Maze(3, 1)
    maze.remove_wall((0, 0), Direction.RIGHT)
    assert maze.reachable_from((0, 0)) == {Pos(0, 0), Pos(1, 0)}
    assert not maze.is_fully_connected()
    maze.remove_wall((1, 0), Direction.RIGHT)
    assert maze.is_fully_connected()


def test_set_content():
    maze = Maze(3, 3)
    maze.set_content([(0, 0), (1, 0)], CellContent.HOSPITAL)
    assert maze.at((1, 0)).content is CellContent.HOSPITAL
    assert maze.at((2, 0)).content is CellContent.EMPTY


def test_hex_rows():
    maze = Maze(3, 2)
    assert maze.to_hex_rows() == ["fff", "fff"]
    maze.remove_wall((0, 0), Direction.RIGHT)
    # (0,0) keeps UP|DOWN|LEFT = 0xd, (1,0) keeps UP|RIGHT|DOWN = 0x7
    assert maze.to_hex_rows() == ["d7f", "fff"]


def test_from_hex_rows_ignores_whitespace_and_extra_digits():
    maze = Maze.from_hex_rows(2, 1, ["d 7 ff"])
    assert not maze.has_wall((0, 0), Direction.RIGHT)
    assert not maze.has_wall((1, 0), Direction.LEFT)
    assert maze.to_hex_rows() == ["d7"]


def test_from_hex_rows_rejects_bad_rows():
    with pytest.raises(MalformedStateError):
        Maze.from_hex_rows(3, 2, ["fff"])
    with pytest.raises(MalformedStateError):
        Maze.from_hex_rows(3, 1, ["ff"])
    with pytest.raises(MalformedStateError):
        Maze.from_hex_rows(2, 1, ["fg"])


def test_from_hex_rows_rejects_non_ascii_digits():
    with pytest.raises(MalformedStateError):
        Maze.from_hex_rows(2, 1, ["٥٥"])
    # Uppercase hex is still accepted
    assert Maze.from_hex_rows(1, 1, ["F"]).to_hex_rows() == ["f"]
