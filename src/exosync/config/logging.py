"""Root logger setup for the command line entry point."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "EXOSYNC_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Per-request and per-tick chatter from these is only useful when debugging.
_QUIET_LOGGERS = ("httpx", "httpcore", "hishel", "apscheduler")


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Configure the root logger; ``level`` defaults to ``$EXOSYNC_LOG_LEVEL`` or INFO."""

    resolved = level if level is not None else os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
