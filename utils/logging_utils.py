import logging
import sys
from typing import Union

import structlog
from structlog.stdlib import add_log_level, add_logger_name


def resolve_level(level: Union[int, str]) -> int:
    """Accept ``logging.DEBUG`` style ints or names such as ``"debug"``."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logging(
    level: Union[int, str] = logging.INFO, colors: bool = True, cache: bool = True
) -> None:
    """Configure structlog and standard logging with the given level.

    Output goes to stderr so command output on stdout stays machine readable.
    """
    numeric_level = resolve_level(level)
    logging.basicConfig(level=numeric_level, format="%(message)s", stream=sys.stderr, force=True)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_logger_name,
            add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False),
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=cache,
    )
