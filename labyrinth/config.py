# labyrinth/config.py
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import structlog
import yaml

from common.constants import DEFAULT_MAX_PLACEMENT_ROUNDS, DEFAULT_OPENNESS
from labyrinth.errors import ConfigurationError
from labyrinth.world.locations import LocationCatalog, build_catalog

log = structlog.get_logger()

PROJECT_DIR = Path(__file__).resolve().parent.parent
CONFIG_DIR = PROJECT_DIR / "config"
CONFIG_FILE = CONFIG_DIR / "config.yaml"


# --- Config Loading Helpers ---
def load_yaml_config(config_path: Path, config_name: str) -> Dict[str, Any]:
    """Loads a YAML configuration file."""
    if not config_path.is_file():
        log.error(f"{config_name} config file not found", path=str(config_path))
        raise FileNotFoundError(f"{config_name} configuration file not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        log.error(f"Error parsing YAML for {config_name}", path=str(config_path), error=str(e))
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
    if config_data is None:
        log.warning(f"{config_name} config file is empty.", path=str(config_path))
        return {}
    if not isinstance(config_data, dict):
        raise ConfigurationError(f"{config_name} config must be a mapping: {config_path}")
    log.info(f"{config_name} config loaded", path=str(config_path))
    return config_data


def load_toml_config(config_path: Path, config_name: str) -> Dict[str, Any]:
    """Loads a TOML configuration file."""
    if not config_path.is_file():
        log.error(f"{config_name} config file not found", path=str(config_path))
        raise FileNotFoundError(f"{config_name} configuration file not found: {config_path}")
    try:
        with config_path.open("rb") as f:  # tomllib requires bytes mode
            config_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        log.error(f"Error parsing TOML for {config_name}", path=str(config_path), error=str(e))
        raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e
    log.info(f"{config_name} config loaded", path=str(config_path))
    return config_data


def load_config_file(config_path: Path) -> Dict[str, Any]:
    if config_path.suffix.lower() == ".toml":
        return load_toml_config(config_path, "Main")
    return load_yaml_config(config_path, "Main")


def _int_or_none(section: Mapping[str, Any], key: str, default: Optional[int]) -> Optional[int]:
    value = section.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}") from None


@dataclass
class GenerationConfig:
    width: int = 10
    height: int = 10
    openness: int = DEFAULT_OPENNESS
    seed: Optional[int] = None
    max_rounds: Optional[int] = DEFAULT_MAX_PLACEMENT_ROUNDS
    locations: Optional[List[Dict[str, Any]]] = None
    log_level: str = "INFO"
    catalog: LocationCatalog = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            log.error("Invalid maze dimensions", width=self.width, height=self.height)
            raise ConfigurationError("Maze width and height must be positive integers.")
        if self.max_rounds is not None and self.max_rounds < 1:
            raise ConfigurationError("placement.max_rounds must be >= 1 or null")
        self.catalog = build_catalog(self.locations)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GenerationConfig":
        maze_cfg = data.get("maze", {}) or {}
        placement_cfg = data.get("placement", {}) or {}
        logging_cfg = data.get("logging", {}) or {}
        locations = data.get("locations")
        if locations is not None and not isinstance(locations, list):
            raise ConfigurationError("locations must be a list")

        width = _int_or_none(maze_cfg, "width", 10)
        height = _int_or_none(maze_cfg, "height", 10)
        openness = _int_or_none(maze_cfg, "openness", DEFAULT_OPENNESS)
        if width is None or height is None or openness is None:
            raise ConfigurationError("maze settings may not be null")
        return cls(
            width=width,
            height=height,
            openness=openness,
            seed=_int_or_none(maze_cfg, "seed", None),
            max_rounds=_int_or_none(placement_cfg, "max_rounds", DEFAULT_MAX_PLACEMENT_ROUNDS),
            locations=locations,
            log_level=str(logging_cfg.get("level", "INFO")).upper(),
        )


def load_generation_config(config_path: Optional[Path] = None) -> GenerationConfig:
    """Read ``config_path`` (default ``config/config.yaml``) into a GenerationConfig."""
    return GenerationConfig.from_mapping(load_config_file(config_path or CONFIG_FILE))
