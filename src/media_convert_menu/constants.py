"""Constants and defaults for the conversion menu."""
from __future__ import annotations

from pathlib import Path

CONFIGS_DIR = Path(__file__).parent / "configs"
DEFAULT_CONFIG_PATH = CONFIGS_DIR / "default.yaml"

DEFAULT_EXECUTABLE = "ffmpeg"

QUALITY_MIN = 1
QUALITY_MAX = 100
DEFAULT_QUALITY = 75
DEFAULT_QUALITY_STEP = 5

# ffmpeg's scale filter uses -1 for "derive from aspect ratio"
SCALE_AUTO = -1
DEFAULT_SCALE_WIDTH = 1920

# Argument order of an invocation is fixed; only the flag spelling is configurable.
DEFAULT_FLAGS = {
    "overwrite": "-y",
    "input": "-i",
    "quality": "-q:v",
    "scale": "-vf",
}
# ffmpeg has no flag taking a bare "<w>:-1" token; the scale flag (-vf) gets it
# wrapped in the scale filter, e.g. "scale=1920:-1".
SCALE_FILTER_TEMPLATE = "scale={token}"

# Single-key menu commands. Preset keys may not collide with these.
MENU_COMMANDS = {
    "+": "quality +",
    "-": "quality -",
    "q": "set quality",
    "w": "scale by width",
    "h": "scale by height",
    "r": "reset scale",
    "n": "next file",
    "p": "previous file",
    "m": "mark/unmark file",
    "k": "kill conversion",
    "g": "refresh listing",
    "x": "exit",
}

# Default recognized extensions, lowercase without the dot (matched case-insensitively)
SUPPORTED_MEDIA_EXTENSIONS = (
    "jpg",
    "jpeg",
    "png",
    "webp",
    "gif",
    "bmp",
    "tiff",
    "avif",
    "heic",
    "mp4",
    "mkv",
    "mov",
    "webm",
    "avi",
)

IGNORED_NAMES = {"__MACOSX", ".DS_Store"}
