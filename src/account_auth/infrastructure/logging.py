"""Process logging setup for the API entrypoint."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_DRIVER_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncpg")


def resolve_log_level(level: str) -> int:
    """Map a level name such as `"debug"` to its numeric value, defaulting to INFO."""

    name = level.strip().upper()
    resolved = logging.getLevelName(name) if name else logging.INFO
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(*, level: str) -> int:
    """Install the root handler and return the effective level.

    Database driver loggers stay at WARNING unless DEBUG is requested.
    """

    resolved = resolve_log_level(level)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    driver_level = logging.DEBUG if resolved <= logging.DEBUG else logging.WARNING
    for name in _DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(driver_level)
    return resolved
