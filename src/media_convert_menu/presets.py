"""Output format presets keyed by format name."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from .errors import UnknownPresetError


@dataclass(frozen=True)
class FormatPreset:
    """Extra ffmpeg arguments, description and display glyph for one format.

    ``args`` holds discrete argv tokens; a token may contain spaces and is never
    split again when the invocation is built.
    """

    key: str
    args: Tuple[str, ...]
    description: str = ""
    glyph: str = ""

    def label(self) -> str:
        glyph = f"{self.glyph} " if self.glyph else ""
        return f"{glyph}{self.key} - {self.description}" if self.description else f"{glyph}{self.key}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "args": list(self.args),
            "description": self.description,
            "glyph": self.glyph,
        }


def build_preset_table(raw: Mapping[str, Mapping[str, Any]]) -> Mapping[str, FormatPreset]:
    """Build the read-only preset table from the ``presets`` config section.

    Keys are normalized to lowercase; insertion order is preserved so menus list
    presets in the order they were configured.
    """

    table: Dict[str, FormatPreset] = {}
    for key, entry in raw.items():
        normalized = str(key).lower()
        table[normalized] = FormatPreset(
            key=normalized,
            args=tuple(str(token) for token in entry.get("args") or ()),
            description=str(entry.get("description", "")),
            glyph=str(entry.get("glyph", "")),
        )
    return MappingProxyType(table)


def lookup_preset(presets: Mapping[str, FormatPreset], format_key: str) -> FormatPreset:
    """Return the preset for ``format_key`` or raise :class:`UnknownPresetError`."""

    preset = presets.get(format_key.lower())
    if preset is None:
        known = ", ".join(presets) or "none"
        raise UnknownPresetError(
            f"No preset configured for format '{format_key}'",
            hint=f"Known formats: {known}",
        )
    return preset


def presets_to_list(presets: Iterable[FormatPreset]) -> List[Dict[str, Any]]:
    return [preset.to_dict() for preset in presets]
