"""Configuration loading and validation for the conversion menu."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from jsonschema import Draft202012Validator

from .constants import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_EXECUTABLE,
    DEFAULT_FLAGS,
    DEFAULT_QUALITY,
    DEFAULT_QUALITY_STEP,
    DEFAULT_SCALE_WIDTH,
    MENU_COMMANDS,
    QUALITY_MAX,
    QUALITY_MIN,
    SUPPORTED_MEDIA_EXTENSIONS,
)
from .errors import ErrorCode
from .presets import FormatPreset, build_preset_table


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""

    code = ErrorCode.CONFIG_INVALID


_PRESET_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["args"],
    "properties": {
        "args": {"type": "array", "items": {"type": "string"}},
        "description": {"type": "string"},
        "glyph": {"type": "string"},
    },
    "additionalProperties": False,
}

# Menu keys are matched case-insensitively before presets
_RESERVED_PRESET_KEYS = sorted(
    variant for key in MENU_COMMANDS if key.isalnum() for variant in (key.lower(), key.upper())
)

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "executable": {"type": "string", "minLength": 1},
        "default_quality": {"type": "integer", "minimum": QUALITY_MIN, "maximum": QUALITY_MAX},
        "quality_step": {"type": "integer", "minimum": 1},
        "default_scale_width": {"type": "integer", "minimum": 1},
        "flags": {
            "type": "object",
            "properties": {
                "overwrite": {"type": "string", "minLength": 1},
                "input": {"type": "string", "minLength": 1},
                "quality": {"type": "string", "minLength": 1},
                "scale": {"type": "string", "minLength": 1},
            },
            "additionalProperties": False,
        },
        "extensions": {
            "type": "array",
            "items": {"type": "string", "pattern": "^[^.\\s/]+$"},
            "minItems": 1,
        },
        "presets": {
            "type": "object",
            "propertyNames": {
                "pattern": "^[A-Za-z0-9]+$",
                "not": {"enum": _RESERVED_PRESET_KEYS},
            },
            "additionalProperties": _PRESET_SCHEMA,
        },
    },
    "additionalProperties": False,
}


def validate_config(config: Mapping[str, Any]) -> None:
    """Validate a merged configuration document against :data:`CONFIG_SCHEMA`.

    Raises
    ------
    ConfigError
        Listing every violation found, ordered by location in the document.
    """

    validator = Draft202012Validator(CONFIG_SCHEMA)
    errors = sorted(validator.iter_errors(config), key=lambda err: list(err.path))
    if errors:
        details = "; ".join(
            f"{'/'.join(str(part) for part in err.path) or '<root>'}: {err.message}" for err in errors
        )
        raise ConfigError(f"Invalid configuration: {details}")


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")
    return data


def load_default_config() -> Dict[str, Any]:
    """Load the configuration bundled with the package."""

    if not DEFAULT_CONFIG_PATH.exists():
        raise ConfigError(f"Default config not found at {DEFAULT_CONFIG_PATH}")
    return _read_yaml(DEFAULT_CONFIG_PATH)


def merge_config(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` over ``base``.

    Top-level keys are replaced, except ``presets`` and ``flags`` which are
    merged per key so a user file can add one preset without restating the rest.
    """

    merged = dict(base)
    for key, value in override.items():
        if key in ("presets", "flags") and isinstance(value, dict):
            merged[key] = {**dict(base.get(key) or {}), **value}
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the default configuration, merge an optional user file, validate.

    Parameters
    ----------
    config_path : Path | None
        Optional YAML file overriding the bundled defaults.

    Returns
    -------
    Dict[str, Any]
        The merged and validated configuration document.
    """

    base = load_default_config()
    if config_path is None or Path(config_path) == DEFAULT_CONFIG_PATH:
        merged = base
    else:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config path does not exist: {path}")
        merged = merge_config(base, _read_yaml(path))

    validate_config(merged)
    return merged


@dataclass(frozen=True)
class AppConfig:
    """Design-time settings shared by the planner and the menu host."""

    executable: str = DEFAULT_EXECUTABLE
    default_quality: int = DEFAULT_QUALITY
    quality_step: int = DEFAULT_QUALITY_STEP
    default_scale_width: int = DEFAULT_SCALE_WIDTH
    extensions: Tuple[str, ...] = SUPPORTED_MEDIA_EXTENSIONS
    flags: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_FLAGS))
    presets: Mapping[str, FormatPreset] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "AppConfig":
        flags = {**DEFAULT_FLAGS, **dict(config.get("flags") or {})}
        extensions = tuple(str(ext).lower() for ext in config.get("extensions") or SUPPORTED_MEDIA_EXTENSIONS)
        return cls(
            executable=str(config.get("executable", DEFAULT_EXECUTABLE)),
            default_quality=int(config.get("default_quality", DEFAULT_QUALITY)),
            quality_step=int(config.get("quality_step", DEFAULT_QUALITY_STEP)),
            default_scale_width=int(config.get("default_scale_width", DEFAULT_SCALE_WIDTH)),
            extensions=extensions,
            flags=flags,
            presets=build_preset_table(config.get("presets") or {}),
        )

    def is_supported(self, path: Path) -> bool:
        """Case-insensitive membership test of the path's extension."""

        suffix = Path(path).suffix
        return bool(suffix) and suffix[1:].lower() in self.extensions


def load_app_config(config_path: Optional[Path] = None) -> AppConfig:
    return AppConfig.from_dict(load_config(config_path))
