"""Interactive terminal menu driving a :class:`ConversionPlanner`."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional

import typer

from .constants import MENU_COMMANDS
from .errors import ConvertMenuError, UnsupportedFormatError
from .logging_utils import get_logger
from .planner import ConversionPlanner
from .scan import DirectoryListing

logger = get_logger(__name__)


class ConversionMenu:
    """Single-key menu over the media files of one directory.

    ``prompt`` and ``echo`` default to typer's; tests pass scripted ones.
    """

    def __init__(
        self,
        planner: ConversionPlanner,
        listing: DirectoryListing,
        prompt: Callable[[str], str] = typer.prompt,
        echo: Callable[[str], None] = typer.echo,
    ) -> None:
        self.planner = planner
        self.listing = listing
        self._prompt = prompt
        self._echo = echo
        self._index = 0

    # -- navigation --------------------------------------------------------

    @property
    def current(self) -> Optional[Path]:
        paths = self.listing.paths()
        if not paths:
            return None
        self._index = min(self._index, len(paths) - 1)
        return paths[self._index]

    def open(self, target: Optional[Path] = None) -> Path:
        """Select the initial target: ``target``, the first marked file, or the first file."""

        paths = self.listing.paths()
        if target is None:
            marked = self.listing.marked()
            target = marked[0] if marked else (paths[0] if paths else None)
        if target is None:
            raise UnsupportedFormatError(
                f"No media files in {self.listing.root}",
                hint="Open the menu in a directory containing images or videos",
            )
        selected = self.planner.select_target(target)
        if selected in paths:
            self._index = paths.index(selected)
        return selected

    def _move(self, step: int) -> None:
        paths = self.listing.paths()
        if not paths:
            return
        self._index = (self._index + step) % len(paths)
        self.planner.select_target(paths[self._index])

    def _toggle_mark(self) -> None:
        current = self.current
        if current is None:
            return
        if current in self.listing.marked():
            self.listing.unmark(current)
        else:
            self.listing.mark(current)

    # -- rendering ---------------------------------------------------------

    def render(self) -> str:
        lines: List[str] = [f"Directory: {self.listing.root}"]
        marked = set(self.listing.marked())
        target = self.planner.state.active_input_path
        for path in self.listing.paths():
            pointer = ">" if path == target else " "
            mark = "*" if path in marked else " "
            lines.append(f" {pointer}{mark} {path.name}")
        lines.append("")
        lines.append(self.planner.describe())
        lines.append("")
        lines.append("Formats:")
        for preset in self.planner.config.presets.values():
            lines.append(f"  {preset.label()}")
        lines.append("Commands: " + "  ".join(f"[{key}] {label}" for key, label in MENU_COMMANDS.items()))
        return "\n".join(lines)

    def show(self) -> None:
        self._echo(self.render())

    # -- dispatch ----------------------------------------------------------

    def handle(self, command: str) -> bool:
        """Apply one command; returns False when the menu should close.

        Planner errors are shown and the command is dropped.
        """

        choice = command.strip()
        key = choice.lower()
        try:
            if key == "x":
                return False
            if choice == "+":
                self.planner.increase_quality()
            elif choice == "-":
                self.planner.decrease_quality()
            elif key == "q":
                self.planner.set_quality(self._prompt("Quality (1-100)"))
            elif key == "w":
                self.planner.set_scale_by_width(self._prompt("Width in pixels"))
            elif key == "h":
                self.planner.set_scale_by_height(self._prompt("Height in pixels"))
            elif key == "r":
                self.planner.reset_scale()
            elif key == "n":
                self._move(1)
            elif key == "p":
                self._move(-1)
            elif key == "m":
                self._toggle_mark()
            elif key == "k":
                if not self.planner.kill_active_process():
                    self._echo("No conversion running")
            elif key == "g":
                self.listing.request_redisplay()
            elif key:
                self.planner.start_conversion(key)
        except ConvertMenuError as exc:
            logger.debug("Menu command %r rejected: %s", choice, exc)
            self._echo(f"ERROR: {exc.user_message()}")
        return True

    def run(self, target: Optional[Path] = None) -> None:
        self.open(target)
        while True:
            self.show()
            if not self.handle(self._prompt("Command")):
                break
