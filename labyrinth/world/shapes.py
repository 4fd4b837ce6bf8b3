# labyrinth/world/shapes.py
"""Small cell-offset templates that location kinds are cut from.

Every shape contains the origin ``(0, 0)``, which is the cell the anchor lands
on; the other offsets may be negative.
"""
from typing import Sequence, Tuple

from game_rng import GameRNG
from labyrinth.world.maze import Maze, Pos

Shape = Tuple[Tuple[int, int], ...]

DEFAULT_SHAPES: Tuple[Shape, ...] = (
    # pairs
    ((0, 0), (1, 0)),
    ((0, 0), (0, 1)),
    # straight triples
    ((0, 0), (1, 0), (2, 0)),
    ((0, 0), (0, 1), (0, 2)),
    # L-triples
    ((0, 0), (1, 0), (0, 1)),
    ((0, 0), (-1, 0), (0, 1)),
    ((0, 0), (1, 0), (0, -1)),
    ((0, 0), (-1, 0), (0, -1)),
    # square
    ((0, 0), (1, 0), (0, 1), (1, 1)),
    # straight quads
    ((0, 0), (1, 0), (2, 0), (3, 0)),
    ((0, 0), (0, 1), (0, 2), (0, 3)),
    # T-quads
    ((0, 0), (-1, 0), (1, 0), (0, 1)),
    ((0, 0), (-1, 0), (1, 0), (0, -1)),
)


def pick_random_shape(rng: GameRNG, shapes: Sequence[Shape] = DEFAULT_SHAPES) -> Shape:
    return rng.choice(shapes)


def pick_random_anchor(maze: Maze, rng: GameRNG) -> Pos:
    return maze.random_position(rng)


def translate(shape: Shape, anchor: Tuple[int, int]) -> Tuple[Pos, ...]:
    ax, ay = anchor
    return tuple(Pos(ax + dx, ay + dy) for dx, dy in shape)
