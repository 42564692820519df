"""Logger setup for glue_gun.

All loggers live below the ``glue_gun`` logger so that a single call to
:func:`configure_logging` controls the whole package.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Union

ROOT_LOGGER_NAME = "glue_gun"

_FORMAT = "%(levelname)-5s [%(name)s] %(message)s"
_DEBUG_FORMAT = "[%(asctime)s] %(levelname)-5s [%(name)s] %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger below the package root logger.

    Parameters
    ----------
    name : str, optional
        Component name, e.g. ``"Watch"``. Module names starting with ``glue_gun.`` are used
        as-is. If None, the package root logger is returned.
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(level: Union[int, str] = "INFO") -> logging.Logger:
    """Attach a stderr handler to the package root logger and set its level.

    Calling this more than once replaces the previously installed handler.
    """
    if isinstance(level, str):
        if level.upper() not in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            raise ValueError(f"Invalid log_level: {level}")
        level = getattr(logging, level.upper())

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if getattr(handler, "_glue_gun_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler._glue_gun_handler = True  # type: ignore[attr-defined]
    fmt = _DEBUG_FORMAT if level <= logging.DEBUG else _FORMAT
    handler.setFormatter(logging.Formatter(fmt, datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
