"""User-facing status messages."""
from __future__ import annotations

import typer

from .logging_utils import get_logger

logger = get_logger(__name__)


class Notifier:
    """Prints transient status text to the terminal and records it in the log."""

    def __init__(self, prefix: str = "convert-menu") -> None:
        self.prefix = prefix

    def notify(self, message: str) -> None:
        logger.info(message)
        typer.echo(f"[{self.prefix}] {message}")
