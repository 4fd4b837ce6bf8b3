# main.py
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from utils.logging_utils import setup_logging

# Import core components; fail fast if dependencies are missing
try:
    from labyrinth import snapshot
    from labyrinth.config import CONFIG_FILE, GenerationConfig, load_generation_config
    from labyrinth.errors import LabyrinthError
    from labyrinth.game_state import GameEvent, GameState
    from labyrinth.render import render_ascii, render_svg
except ImportError as e:
    structlog.get_logger().error("CRITICAL: Failed to import labyrinth modules.", error=str(e))
    raise

log = structlog.get_logger()  # module-level logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate seeded mazes with enclosed locations and play on them."
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"YAML or TOML config file (default: {CONFIG_FILE})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level (overrides the config file)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a new maze and write a snapshot")
    gen.add_argument("--width", type=int, default=None)
    gen.add_argument("--height", type=int, default=None)
    gen.add_argument("--openness", type=int, default=None, help="0..100")
    gen.add_argument("--seed", type=int, default=None, help="0 or omitted picks a random seed")
    gen.add_argument("--max-rounds", type=int, default=None)
    gen.add_argument("--out", type=Path, required=True)

    add = sub.add_parser("add-player", help="Spawn a player at a random cell")
    add.add_argument("--state", type=Path, required=True)
    add.add_argument("--name", required=True)

    move = sub.add_parser("move", help="Move a player one cell")
    move.add_argument("--state", type=Path, required=True)
    move.add_argument("--name", required=True)
    move.add_argument("--dir", dest="direction", required=True, help="up, right, down or left")

    show = sub.add_parser("show", help="Print the maze as text")
    show.add_argument("--state", type=Path, required=True)

    svg = sub.add_parser("export-svg", help="Write the maze as an SVG image")
    svg.add_argument("--state", type=Path, required=True)
    svg.add_argument("--out", type=Path, required=True)
    return parser


def load_config(config_path: Optional[Path]) -> GenerationConfig:
    """Explicit paths must exist; a missing default file falls back to built-in defaults."""
    if config_path is None and not CONFIG_FILE.is_file():
        log.warning("Default config not found, using built-in defaults", path=str(CONFIG_FILE))
        return GenerationConfig()
    return load_generation_config(config_path)


def print_events(events: List[GameEvent]) -> None:
    for event in events:
        print(event.message)


def run_command(args: argparse.Namespace, config: GenerationConfig) -> int:
    catalog = config.catalog

    if args.command == "generate":
        seed = args.seed if args.seed is not None else config.seed
        state = GameState.generate(
            width=args.width if args.width is not None else config.width,
            height=args.height if args.height is not None else config.height,
            openness=args.openness if args.openness is not None else config.openness,
            seed=seed,
            catalog=catalog,
            max_rounds=args.max_rounds if args.max_rounds is not None else config.max_rounds,
        )
        snapshot.save(state, args.out)
        print(f"seed {state.rng.seed}")
        return 0

    state = snapshot.load(args.state, catalog)
    if args.command == "add-player":
        events = state.add_player_random(args.name)
        snapshot.save(state, args.state)
        print_events(events)
    elif args.command == "move":
        events = state.move_player(args.name, args.direction)
        snapshot.save(state, args.state)
        print_events(events)
    elif args.command == "show":
        print(render_ascii(state))
    elif args.command == "export-svg":
        snapshot.write_text_atomic(args.out, render_svg(state))
        log.info("SVG exported", path=str(args.out))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line."""
    args = build_parser().parse_args(argv)
    cli_level = logging.DEBUG if args.verbose else args.log_level
    # Provisional, uncached setup so config loading already logs to stderr
    setup_logging(cli_level or logging.INFO, cache=False)

    # --- Exception Handling ---
    try:
        config = load_config(args.config)
        setup_logging(cli_level or config.log_level)
        log.debug("Parsed arguments", command=args.command, config=str(args.config))
        return run_command(args, config)
    except FileNotFoundError as e:
        log.critical("Required file not found", error=str(e))
        return 1
    except LabyrinthError as e:
        log.critical("Labyrinth error", error=str(e), error_type=type(e).__name__)
        return 1
    except ValueError as e:
        log.critical("Invalid value", error=str(e))
        return 1
    except OSError as e:
        log.critical("File operation failed", error=str(e), exc_info=True)
        return 1
    # --- End Exception Handling ---


if __name__ == "__main__":
    sys.exit(main())
