# dirmirror/logging/logger.py
"""
Logger factory.

All modules obtain their logger through get_logger(__name__), so every
logger lives under the "dirmirror" namespace and is configured in one
place by configure_logging().
"""

from __future__ import annotations

import logging
from typing import Union

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "dirmirror"

_HANDLER_NAME = "dirmirror-rich"


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the dirmirror namespace."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(level: Union[int, str] = logging.WARNING) -> logging.Logger:
    """
    Install a Rich handler writing to stderr on the dirmirror root logger.

    Safe to call more than once; the handler is replaced, not duplicated.

    Args:
        level: Logging level name or number.

    Returns:
        The configured root logger.
    """
    if isinstance(level, str):
        level = level.upper()

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root.addHandler(handler)
    root.setLevel(level)
    return root
