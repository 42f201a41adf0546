"""Leaving the menu must not wait for a conversion that is still running."""
from __future__ import annotations

import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest
import yaml

pytestmark = pytest.mark.skipif(os.name != "posix", reason="needs a POSIX shell script as the executable")


def _slow_converter(tmp_path: Path, pid_file: Path) -> Path:
    script = tmp_path / "slow-ffmpeg"
    script.write_text(f"#!/bin/sh\necho $$ > '{pid_file}'\nexec sleep 30\n", encoding="utf-8")
    script.chmod(0o755)
    return script


def test_exit_returns_while_conversion_runs(tmp_path: Path) -> None:
    media = tmp_path / "media"
    media.mkdir()
    (media / "pic.jpg").write_bytes(b"")
    pid_file = tmp_path / "converter.pid"
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        yaml.safe_dump({"executable": str(_slow_converter(tmp_path, pid_file))}),
        encoding="utf-8",
    )

    started = time.monotonic()
    try:
        result = subprocess.run(
            [sys.executable, "-m", "media_convert_menu.cli", "menu", str(media), "--config", str(config_path)],
            input="png\nx\n",
            capture_output=True,
            text=True,
            timeout=15,
        )
        elapsed = time.monotonic() - started
    finally:
        deadline = time.monotonic() + 5
        while not pid_file.exists() and time.monotonic() < deadline:
            time.sleep(0.05)
        if pid_file.exists():
            try:
                os.kill(int(pid_file.read_text().strip()), signal.SIGTERM)
            except (ProcessLookupError, ValueError):
                pass

    assert result.returncode == 0, result.stderr
    assert elapsed < 15
    assert pid_file.exists()
