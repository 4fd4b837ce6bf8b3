# labyrinth/world/mazegen.py
from typing import List, Tuple

import numpy as np
import structlog

from common.constants import OPENNESS_MAX, OPENNESS_MIN
from game_rng import GameRNG
from labyrinth.errors import ConfigurationError
from labyrinth.world.maze import DIRECTIONS, Direction, Maze, Pos, step

log = structlog.get_logger()


def clamp_openness(openness: int) -> int:
    return max(OPENNESS_MIN, min(OPENNESS_MAX, int(openness)))


def _carve_spanning_tree(maze: Maze, rng: GameRNG) -> int:
    """
    Randomized depth-first carving from (0, 0) with an explicit stack.
    Returns the number of carved edges (always width * height - 1).
    """
    visited = np.zeros((maze.height, maze.width), dtype=bool)
    start = Pos(0, 0)
    visited[start.y, start.x] = True
    stack: List[Pos] = [start]
    carved = 0

    while stack:
        cur = stack[-1]

        neighbors: List[Tuple[Pos, Direction]] = []
        for direction in DIRECTIONS:
            nxt = step(cur, direction)
            if maze.in_bounds(nxt) and not visited[nxt.y, nxt.x]:
                neighbors.append((nxt, direction))

        if not neighbors:
            stack.pop()
            continue

        rng.shuffle(neighbors)
        nxt, direction = neighbors[0]
        maze.remove_wall(cur, direction)
        visited[nxt.y, nxt.x] = True
        stack.append(nxt)
        carved += 1

    log.debug("Spanning tree carved", edges=carved)
    return carved


def _inject_loops(maze: Maze, rng: GameRNG, openness: int) -> int:
    """
    Clears still-standing RIGHT/DOWN walls with probability ``openness`` percent.
    Cells are scanned in row-major order. Returns the number of extra passages.
    """
    if openness <= 0:
        return 0

    opened = 0
    for pos in maze.positions():
        for direction in (Direction.RIGHT, Direction.DOWN):
            if not maze.in_bounds(step(pos, direction)):
                continue
            if not maze.has_wall(pos, direction):
                continue
            if rng.get_below(100) < openness:
                maze.remove_wall(pos, direction)
                opened += 1
    return opened


def generate_maze(width: int, height: int, openness: int, rng: GameRNG) -> Maze:
    """Build a fully connected ``width`` x ``height`` maze."""
    if width <= 0 or height <= 0:
        log.error("Invalid maze dimensions", width=width, height=height)
        raise ConfigurationError("Maze width and height must be positive integers.")

    effective_openness = clamp_openness(openness)
    log.info(
        "Starting maze generation",
        width=width,
        height=height,
        openness=effective_openness,
        rng=repr(rng),
    )

    maze = Maze(width, height)
    carved = _carve_spanning_tree(maze, rng)
    extra = _inject_loops(maze, rng, effective_openness)

    log.info(
        "Maze generation complete",
        tree_edges=carved,
        extra_passages=extra,
        counter=rng.counter,
    )
    return maze
