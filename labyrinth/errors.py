"""Exceptions raised by maze generation, placement and snapshot loading."""


class LabyrinthError(Exception):
    """Base class for all labyrinth failures."""


class ConfigurationError(LabyrinthError, ValueError):
    """Raised for invalid generation parameters (e.g. non-positive size)."""


class MalformedStateError(LabyrinthError, ValueError):
    """Raised when a snapshot cannot be parsed; nothing is reconstructed."""


class UnknownLocationType(LabyrinthError, KeyError):
    """Raised when a location type has no entry in the catalog."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0]) if self.args else ""


class PlacementExhausted(LabyrinthError, RuntimeError):
    """Raised when a location type cannot be placed within the round budget."""

    def __init__(self, type_name: str, rounds: int) -> None:
        super().__init__(
            f"Could not place location {type_name!r} after {rounds} rounds"
        )
        self.type_name = type_name
        self.rounds = rounds


class PlayerNotFound(LabyrinthError, KeyError):
    """Raised when an operation names a player that is not in the session."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
