"""Conversion parameters: quality, scale descriptor and session state."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from .constants import DEFAULT_QUALITY, DEFAULT_SCALE_WIDTH, QUALITY_MAX, QUALITY_MIN, SCALE_AUTO
from .errors import InvalidParameterError

if TYPE_CHECKING:
    from .subprocess_utils import ProcessHandle


def clamp_quality(value: int) -> int:
    return max(QUALITY_MIN, min(QUALITY_MAX, value))


def parse_quality(value: Any) -> int:
    """Parse a user-supplied quality value, rejecting anything outside [1, 100]."""

    if isinstance(value, bool):
        raise InvalidParameterError(f"Quality must be an integer, got {value!r}")
    try:
        quality = int(str(value).strip())
    except ValueError as exc:
        raise InvalidParameterError(
            f"Quality must be an integer, got {value!r}",
            hint=f"Use a whole number between {QUALITY_MIN} and {QUALITY_MAX}",
        ) from exc
    if not QUALITY_MIN <= quality <= QUALITY_MAX:
        raise InvalidParameterError(
            f"Quality {quality} is out of range",
            hint=f"Use a whole number between {QUALITY_MIN} and {QUALITY_MAX}",
        )
    return quality


def parse_dimension(value: Any, name: str) -> int:
    """Parse a positive pixel dimension (``width`` or ``height``)."""

    if isinstance(value, bool):
        raise InvalidParameterError(f"{name.capitalize()} must be a positive integer, got {value!r}")
    try:
        pixels = int(str(value).strip())
    except ValueError as exc:
        raise InvalidParameterError(f"{name.capitalize()} must be a positive integer, got {value!r}") from exc
    if pixels <= 0:
        raise InvalidParameterError(
            f"{name.capitalize()} must be a positive integer, got {pixels}",
            hint="The other dimension is derived from the aspect ratio",
        )
    return pixels


@dataclass(frozen=True)
class ScaleDescriptor:
    """One explicit dimension plus one derived from the aspect ratio."""

    width: Optional[int] = DEFAULT_SCALE_WIDTH
    height: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.width is None) == (self.height is None):
            raise InvalidParameterError("Scale needs exactly one explicit dimension")

    @classmethod
    def by_width(cls, width: Any) -> "ScaleDescriptor":
        return cls(width=parse_dimension(width, "width"), height=None)

    @classmethod
    def by_height(cls, height: Any) -> "ScaleDescriptor":
        return cls(width=None, height=parse_dimension(height, "height"))

    def token(self) -> str:
        width = SCALE_AUTO if self.width is None else self.width
        height = SCALE_AUTO if self.height is None else self.height
        return f"{width}:{height}"

    def describe(self) -> str:
        if self.width is not None:
            return f"width {self.width}px, height auto"
        return f"height {self.height}px, width auto"


@dataclass
class ConversionState:
    """Mutable per-session state owned by a single planner."""

    quality: int = DEFAULT_QUALITY
    scale: ScaleDescriptor = field(default_factory=ScaleDescriptor)
    active_input_path: Optional[Path] = None
    active_process: Optional["ProcessHandle"] = None
