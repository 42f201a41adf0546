"""Pytest fixtures and fakes for media-convert-menu tests."""
from __future__ import annotations

import shutil
import subprocess
from concurrent.futures import Future
from pathlib import Path
from typing import List, Sequence

import pytest

from media_convert_menu.config import AppConfig, load_app_config
from media_convert_menu.planner import ConversionPlanner
from media_convert_menu.subprocess_utils import Completion, ProcessHandle


def has_ffmpeg() -> bool:
    """Check if ffmpeg is available in PATH."""
    return shutil.which("ffmpeg") is not None


def require_ffmpeg() -> None:
    """Skip test if ffmpeg is not available."""
    if not has_ffmpeg():
        pytest.skip("ffmpeg required for this test")


class FakeRunner:
    """Process collaborator whose completions are resolved by the test."""

    def __init__(self) -> None:
        self.spawned: List[ProcessHandle] = []
        self.alive: set[int] = set()
        self.terminated: List[ProcessHandle] = []

    def spawn(self, executable: str, args: Sequence[str]) -> ProcessHandle:
        handle = ProcessHandle(cmd=[executable, *args], process=None, completion=Future())
        self.spawned.append(handle)
        self.alive.add(id(handle))
        return handle

    def is_alive(self, handle: ProcessHandle) -> bool:
        return id(handle) in self.alive

    def terminate(self, handle: ProcessHandle) -> None:
        handle.killed = True
        self.terminated.append(handle)

    def finish(self, handle: ProcessHandle, success: bool = True, returncode: int = 0) -> None:
        self.alive.discard(id(handle))
        handle.completion.set_result(Completion(success=success, returncode=returncode))


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: List[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


class RecordingListing:
    def __init__(self) -> None:
        self.redisplays = 0

    def request_redisplay(self) -> None:
        self.redisplays += 1


@pytest.fixture
def app_config() -> AppConfig:
    return load_app_config()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def listing() -> RecordingListing:
    return RecordingListing()


@pytest.fixture
def planner(app_config, runner, listing, notifier) -> ConversionPlanner:
    return ConversionPlanner(app_config, runner, listing, notifier)


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    """Directory with a few empty media files, a text file and hidden entries."""
    for name in ("b_clip.MP4", "a_photo.jpg", "c_icon.png", "notes.txt", ".hidden.jpg"):
        (tmp_path / name).write_bytes(b"")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "nested.jpg").write_bytes(b"")
    return tmp_path


@pytest.fixture
def make_test_image():
    """Factory rendering a solid-colour image with ffmpeg's lavfi source."""
    require_ffmpeg()

    def _make(path: Path, size: str = "64x48") -> Path:
        subprocess.run(
            [
                "ffmpeg",
                "-hide_banner",
                "-loglevel",
                "error",
                "-y",
                "-f",
                "lavfi",
                "-i",
                f"color=c=red:s={size}",
                "-frames:v",
                "1",
                str(path),
            ],
            check=True,
            capture_output=True,
        )
        return path

    return _make
