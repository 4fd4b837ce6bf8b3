"""Seeded grid maze generator with enclosed single-exit locations.

The package is layered the same way a generation session runs: a
:class:`game_rng.GameRNG` drives :func:`labyrinth.world.mazegen.generate_maze`,
then :func:`labyrinth.world.placement.place_locations` fits the catalog's
location kinds into the carved maze.  :class:`labyrinth.game_state.GameState`
owns all of it and :mod:`labyrinth.snapshot` persists it.
"""

from .errors import (
    ConfigurationError,
    LabyrinthError,
    MalformedStateError,
    PlacementExhausted,
    PlayerNotFound,
    UnknownLocationType,
)
from .game_state import GameEvent, GameState
from .world.locations import LocationCatalog, LocationKind, default_catalog
from .world.maze import Direction, Maze, Pos

__all__ = [
    "ConfigurationError",
    "Direction",
    "GameEvent",
    "GameState",
    "LabyrinthError",
    "LocationCatalog",
    "LocationKind",
    "MalformedStateError",
    "Maze",
    "PlacementExhausted",
    "PlayerNotFound",
    "Pos",
    "UnknownLocationType",
    "default_catalog",
]
