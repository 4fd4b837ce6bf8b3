# labyrinth/players.py
from dataclasses import dataclass

from labyrinth.world.maze import Pos


def validate_player_name(name: str) -> str:
    """Player names are single whitespace-free tokens (they are stored as one)."""
    if not name or any(ch.isspace() for ch in name):
        raise ValueError(f"Player name must be a non-empty token without spaces: {name!r}")
    return name


@dataclass
class Player:
    name: str
    pos: Pos
    color: str

    def __post_init__(self) -> None:
        validate_player_name(self.name)
        if not self.color or any(ch.isspace() for ch in self.color):
            raise ValueError(f"Player color must be a single token: {self.color!r}")
        self.pos = Pos(*self.pos)

    @property
    def initial(self) -> str:
        return self.name[0].upper()
