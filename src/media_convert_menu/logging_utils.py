"""Logging utilities for the conversion menu."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional


_LOGGER_SETUP = False
_ROOT_LOGGER_NAME = "media_convert_menu"
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _formatter() -> logging.Formatter:
    return logging.Formatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT)


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    """Configure the package logger with a stderr handler and an optional file.

    Parameters
    ----------
    verbose: bool
        If True, console level is DEBUG; otherwise WARNING so that log lines do
        not interleave with the interactive menu.
    log_file: Optional[Path]
        If provided, every record (DEBUG and up) is also written to this path.

    Returns
    -------
    logging.Logger
        The package root logger.
    """
    global _LOGGER_SETUP

    root_logger = logging.getLogger(_ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)

    # Reconfiguring replaces the previous handlers
    if _LOGGER_SETUP:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(_formatter())
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_formatter())
        root_logger.addHandler(file_handler)

    root_logger.propagate = False
    _LOGGER_SETUP = True
    return root_logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the package root logger.

    Module names such as ``media_convert_menu.planner`` are used as-is; any
    other name becomes a child of the root logger. Before :func:`setup_logging`
    runs, records propagate to whatever the host application configured.
    """
    if name is None or name == _ROOT_LOGGER_NAME:
        return logging.getLogger(_ROOT_LOGGER_NAME)

    if name.startswith(_ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)

    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")
