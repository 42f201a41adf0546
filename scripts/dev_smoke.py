#!/usr/bin/env python3
"""Quick smoke test for local development.

Renders a test image with ffmpeg, prints the planned command and runs one
conversion through the installed ``convert-menu`` console script.
"""
from __future__ import annotations

import json
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path

from media_convert_menu.subprocess_utils import run_cmd


def check_deps() -> bool:
    """Check that ffmpeg is usable."""
    print("Checking dependencies...")
    result = subprocess.run(["convert-menu", "check-deps", "--json"], capture_output=True, text=True)
    try:
        report = json.loads(result.stdout)
    except json.JSONDecodeError:
        print("ERROR: Failed to parse check-deps output")
        print(result.stderr)
        return False

    for warning in report.get("warnings", []):
        print(f"  warning: {warning.get('message')}")
    if not report.get("ok", False):
        for err in report.get("errors", []):
            print(f"  - {err.get('code')}: {err.get('message')}")
        return False

    print("Dependencies OK")
    return True


def gen_test_image(tmp_path: Path) -> Path:
    """Render a 320x240 test pattern as BMP."""
    print("Generating test image...")
    ffmpeg_path = shutil.which("ffmpeg")
    if not ffmpeg_path:
        print("ERROR: ffmpeg not found")
        sys.exit(1)

    output_path = tmp_path / "smoke_test.bmp"
    cmd = [
        ffmpeg_path,
        "-y",
        "-hide_banner",
        "-loglevel",
        "error",
        "-f",
        "lavfi",
        "-i",
        "testsrc=size=320x240",
        "-frames:v",
        "1",
        str(output_path),
    ]

    result = run_cmd(cmd, timeout_sec=30)
    if result.returncode != 0:
        print(f"ERROR: Failed to generate test image: {result.stderr}")
        sys.exit(1)

    print(f"Generated: {output_path}")
    return output_path


def run_convert(input_path: Path, format_key: str) -> bool:
    """Show the plan, then convert ``input_path`` to ``format_key``."""
    plan = subprocess.run(
        ["convert-menu", "plan", str(input_path), "--to", format_key, "--width", "160"],
        capture_output=True,
        text=True,
    )
    print(f"Plan: {plan.stdout.strip()}")

    result = subprocess.run(
        ["convert-menu", "convert", str(input_path), "--to", format_key, "--width", "160"],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        print(f"ERROR: convert failed ({result.returncode}): {result.stderr}")
        return False

    output = input_path.with_suffix(f".{format_key}")
    print(f"Converted: {output} ({output.stat().st_size} bytes)")
    return True


def main() -> int:
    """Main entry point."""
    if not check_deps():
        return 1

    with tempfile.TemporaryDirectory() as tmpdir:
        image = gen_test_image(Path(tmpdir))
        if not run_convert(image, "png"):
            return 1

    print("\nSmoke test passed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
