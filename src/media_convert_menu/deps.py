"""Dependency detection for the configured conversion executable.

Detection is best-effort: the executable is located on PATH, its version line
is parsed, and ``-encoders`` output is searched for every encoder the presets
name through ``-c:v``/``-c:a``. No media is converted.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
import platform
import re
import shutil
from typing import Dict, Iterable, List, Mapping, Optional

from .errors import ErrorCode, ExitCode
from .presets import FormatPreset
from .subprocess_utils import CmdResult, CommandTimeout, run_cmd

_CODEC_FLAGS = {"-c:v", "-c:a", "-codec:v", "-codec:a", "-vcodec", "-acodec"}


@dataclass
class ToolInfo:
    """Information about a detected tool binary."""

    name: str
    path: str
    version: Optional[str]
    detection: Optional[CmdResult] = None


@dataclass
class DepsReport:
    """Structured report for dependency checks."""

    ok: bool
    tool: Optional[ToolInfo]
    encoders: Dict[str, bool] = field(default_factory=dict)
    errors: List[Dict[str, Optional[str]]] = field(default_factory=list)
    warnings: List[Dict[str, str]] = field(default_factory=list)
    created_at: str = ""
    platform: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def parse_version(output: str) -> Optional[str]:
    """Extract a version token from the first non-empty ``-version`` line.

    Example: ``ffmpeg version 7.0.2 Copyright (c) ...`` gives ``7.0.2``.
    """

    for line in output.splitlines():
        if line.strip():
            match = re.search(r"version\s+([\w.\-]+)", line)
            return match.group(1) if match else None
    return None


def required_encoders(presets: Iterable[FormatPreset]) -> List[str]:
    """Encoders named by the presets, in first-seen order."""

    names: List[str] = []
    for preset in presets:
        tokens = list(preset.args)
        for flag, value in zip(tokens, tokens[1:]):
            if flag in _CODEC_FLAGS and value != "copy" and value not in names:
                names.append(value)
    return names


def detect_tool(executable: str, timeout_sec: int = 10) -> Optional[ToolInfo]:
    """Locate and inspect ``executable``; ``None`` if it is not on PATH."""

    path = shutil.which(executable)
    if not path:
        return None

    detection = run_cmd([path, "-version"], timeout_sec=timeout_sec)
    version_raw = detection.stdout.strip() or detection.stderr.strip()
    return ToolInfo(name=executable, path=path, version=parse_version(version_raw), detection=detection)


def detect_encoders(tool_path: str, wanted: Iterable[str], timeout_sec: int = 15) -> Dict[str, bool]:
    """Check which of ``wanted`` appear in ``-encoders`` output."""

    result = run_cmd([tool_path, "-hide_banner", "-encoders"], timeout_sec=timeout_sec)
    listing = result.stdout.lower() if result.returncode == 0 else ""
    return {name: bool(re.search(rf"\s{re.escape(name.lower())}\s", listing)) for name in wanted}


def _platform_info() -> Dict[str, str]:
    return {
        "system": platform.system(),
        "release": platform.release(),
        "machine": platform.machine(),
        "python_version": platform.python_version(),
    }


def _build_error(code: str, message: str, hint: Optional[str] = None) -> Dict[str, Optional[str]]:
    return {"code": code, "message": message, "hint": hint}


def determine_exit_code(report: DepsReport) -> int:
    """Map a report to an exit code; missing outranks broken."""

    codes = {item.get("code") for item in report.errors}
    if ErrorCode.DEPS_MISSING in codes:
        return ExitCode.DEPS_MISSING
    if ErrorCode.DEPS_BROKEN in codes:
        return ExitCode.DEPS_BROKEN
    return ExitCode.SUCCESS


def check_deps(executable: str, presets: Mapping[str, FormatPreset]) -> DepsReport:
    """Run dependency checks and return a structured report.

    Missing encoders are warnings: the formats that need them will fail at
    conversion time, the others still work.
    """

    errors: List[Dict[str, Optional[str]]] = []
    warnings: List[Dict[str, str]] = []
    encoders: Dict[str, bool] = {}
    tool: Optional[ToolInfo] = None

    try:
        tool = detect_tool(executable)
    except CommandTimeout as exc:
        errors.append(
            _build_error(
                ErrorCode.DEPS_BROKEN,
                f"{executable} timed out after {exc.timeout_sec}s",
                hint=f"Check the {executable} installation.",
            )
        )
    except OSError as exc:
        errors.append(_build_error(ErrorCode.DEPS_BROKEN, f"{executable} detection failed: {exc}"))

    if tool is None and not errors:
        errors.append(
            _build_error(
                ErrorCode.DEPS_MISSING,
                f"{executable} not found in PATH",
                hint=f"Install {executable} and ensure it is available in PATH.",
            )
        )
    elif tool is not None and tool.detection is not None and tool.detection.returncode != 0:
        errors.append(
            _build_error(
                ErrorCode.DEPS_BROKEN,
                f"{executable} returned non-zero exit code: {tool.detection.returncode}",
                hint=f"Reinstall {executable}.",
            )
        )
    elif tool is not None:
        try:
            encoders = detect_encoders(tool.path, required_encoders(presets.values()))
        except CommandTimeout as exc:
            errors.append(_build_error(ErrorCode.DEPS_BROKEN, f"{executable} -encoders timed out after {exc.timeout_sec}s"))
        for name, present in encoders.items():
            if not present:
                users = [p.key for p in presets.values() if name in p.args]
                warnings.append(
                    {
                        "code": "encoder_missing",
                        "message": f"Encoder {name} not available (used by: {', '.join(users)})",
                    }
                )

    report = DepsReport(
        ok=not errors,
        tool=tool,
        encoders=encoders,
        errors=errors,
        warnings=warnings,
        created_at=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        platform=_platform_info(),
    )
    return report
