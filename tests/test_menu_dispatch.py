"""Interactive menu commands map onto planner operations."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

import pytest

from media_convert_menu.constants import SUPPORTED_MEDIA_EXTENSIONS
from media_convert_menu.errors import UnsupportedFormatError
from media_convert_menu.menu import ConversionMenu
from media_convert_menu.planner import ConversionPlanner
from media_convert_menu.scan import DirectoryListing


class Script:
    """Scripted prompt answers plus captured output."""

    def __init__(self, answers: Iterable[str]) -> None:
        self.answers: List[str] = list(answers)
        self.output: List[str] = []

    def prompt(self, text: str) -> str:
        return self.answers.pop(0)

    def echo(self, text: str) -> None:
        self.output.append(text)


def _menu(app_config, runner, notifier, root: Path, answers=()):
    listing = DirectoryListing(root, SUPPORTED_MEDIA_EXTENSIONS)
    planner = ConversionPlanner(app_config, runner, listing, notifier)
    script = Script(answers)
    return ConversionMenu(planner, listing, prompt=script.prompt, echo=script.echo), planner, script


def test_open_selects_first_file(app_config, runner, notifier, media_dir) -> None:
    menu, planner, _ = _menu(app_config, runner, notifier, media_dir)
    assert menu.open() == media_dir / "a_photo.jpg"
    assert planner.state.active_input_path == media_dir / "a_photo.jpg"


def test_open_prefers_marked_file(app_config, runner, notifier, media_dir) -> None:
    menu, planner, _ = _menu(app_config, runner, notifier, media_dir)
    menu.listing.mark(media_dir / "c_icon.png")
    assert menu.open() == media_dir / "c_icon.png"


def test_open_refuses_directory_without_media(app_config, runner, notifier, tmp_path) -> None:
    (tmp_path / "readme.txt").write_text("hi", encoding="utf-8")
    menu, _, _ = _menu(app_config, runner, notifier, tmp_path)
    with pytest.raises(UnsupportedFormatError):
        menu.open()


def test_commands_adjust_state(app_config, runner, notifier, media_dir) -> None:
    menu, planner, script = _menu(app_config, runner, notifier, media_dir, answers=["640", "30"])
    menu.open()
    start = planner.state.quality

    assert menu.handle("+")
    assert planner.state.quality == start + 5
    menu.handle("w")
    assert planner.state.scale.token() == "640:-1"
    menu.handle("q")
    assert planner.state.quality == 30
    menu.handle("r")
    assert planner.state.scale.token() == "1920:-1"
    menu.handle("n")
    assert planner.state.active_input_path == media_dir / "b_clip.MP4"
    menu.handle("p")
    menu.handle("p")
    assert planner.state.active_input_path == media_dir / "c_icon.png"
    assert menu.handle("x") is False


def test_errors_are_shown_and_state_kept(app_config, runner, notifier, media_dir) -> None:
    menu, planner, script = _menu(app_config, runner, notifier, media_dir, answers=["-20"])
    menu.open()
    assert menu.handle("h")
    assert planner.state.scale.token() == "1920:-1"
    assert menu.handle("nosuchformat")
    assert runner.spawned == []
    assert [line for line in script.output if line.startswith("ERROR:")] != []


def test_preset_key_starts_conversion_and_kill(app_config, runner, notifier, media_dir) -> None:
    menu, planner, script = _menu(app_config, runner, notifier, media_dir)
    menu.open()
    menu.handle("PNG")
    assert len(runner.spawned) == 1
    assert runner.spawned[0].cmd[-1] == str(media_dir / "a_photo.png")
    menu.handle("k")
    assert notifier.messages == ["Process killed"]
    runner.alive.clear()
    menu.handle("k")
    assert "No conversion running" in script.output


def test_render_shows_state_and_presets(app_config, runner, notifier, media_dir) -> None:
    menu, planner, _ = _menu(app_config, runner, notifier, media_dir)
    menu.open()
    menu.listing.mark(media_dir / "c_icon.png")
    text = menu.render()
    assert " >  a_photo.jpg" in text
    assert "* c_icon.png" in text
    assert "Quality: 75" in text
    assert "1920:-1" in text
    for key in app_config.presets:
        assert key in text


def test_run_loop_until_exit(app_config, runner, notifier, media_dir) -> None:
    menu, planner, script = _menu(app_config, runner, notifier, media_dir, answers=["+", "-", "-", "x"])
    start = planner.state.quality
    menu.run()
    assert planner.state.quality == start - 5
    assert len(script.output) == 4
