"""Common constants for maze generation and the snapshot format."""

# Wall bits, one per direction (bit index == Direction value)
WALL_UP: int = 0b0001
WALL_RIGHT: int = 0b0010
WALL_DOWN: int = 0b0100
WALL_LEFT: int = 0b1000
ALL_WALLS: int = 0b1111

# Generation defaults
DEFAULT_OPENNESS: int = 50
OPENNESS_MIN: int = 0
OPENNESS_MAX: int = 100
DEFAULT_PLACEMENT_ATTEMPTS: int = 1
DEFAULT_MAX_PLACEMENT_ROUNDS: int = 1000

# Player colours, assigned round-robin in join order
PLAYER_PALETTE: tuple[str, ...] = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)

# Snapshot record tags
TAG_RNG: str = "[RNG]"
TAG_MAZE: str = "[MAZE]"
TAG_PLAYER: str = "[PLAYER]"
TAG_LOCATION: str = "[LOCATION]"
