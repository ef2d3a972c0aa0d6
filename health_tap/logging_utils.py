from __future__ import annotations

import logging
import sys

from colorlog import ColoredFormatter

# Below DEBUG; used for raw command output.
TRACE_LEVEL = 5

LOG_FORMAT = "%(log_color)s%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_COLORS = {
    "TRACE": "cyan",
    "DEBUG": "blue",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def configure_logging(level: int) -> None:
    logging.addLevelName(TRACE_LEVEL, "TRACE")
    # Snapshots go to stdout; keep log lines on stderr.
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ColoredFormatter(LOG_FORMAT, log_colors=LOG_COLORS))
    logging.basicConfig(level=level, handlers=[handler], force=True)


def resolve_log_level(verbosity: int, fallback: str) -> int:
    if verbosity >= 2:
        return TRACE_LEVEL
    if verbosity == 1:
        return logging.DEBUG
    level = logging.getLevelName(fallback.upper())
    return level if isinstance(level, int) else logging.INFO
