"""Error model and error code constants for the conversion menu."""
from __future__ import annotations

from typing import Any, Dict, Optional


class ErrorCode:
    """Error code constants for structured error reporting."""

    # Dependency errors
    DEPS_MISSING = "deps_missing"
    DEPS_BROKEN = "deps_broken"

    # Input errors
    INPUT_NOT_FOUND = "input_not_found"
    INPUT_UNSUPPORTED = "input_unsupported"

    # Configuration errors
    CONFIG_INVALID = "config_invalid"

    # Parameter errors
    UNKNOWN_PRESET = "unknown_preset"
    INVALID_PARAMS = "invalid_params"

    # Conversion errors
    CONVERT_FAILED = "convert_failed"


class ExitCode:
    """Exit code constants for the CLI."""

    SUCCESS = 0
    GENERAL_FAILED = 1
    DEPS_MISSING = 2
    DEPS_BROKEN = 3
    INPUT_NOT_FOUND = 10
    INPUT_UNSUPPORTED = 11
    UNKNOWN_PRESET = 12
    INVALID_PARAMS = 13
    CONFIG_INVALID = 14
    CONVERT_FAILED = 21


ERROR_TO_EXIT_CODE: Dict[str, int] = {
    ErrorCode.DEPS_MISSING: ExitCode.DEPS_MISSING,
    ErrorCode.DEPS_BROKEN: ExitCode.DEPS_BROKEN,
    ErrorCode.INPUT_NOT_FOUND: ExitCode.INPUT_NOT_FOUND,
    ErrorCode.INPUT_UNSUPPORTED: ExitCode.INPUT_UNSUPPORTED,
    ErrorCode.CONFIG_INVALID: ExitCode.CONFIG_INVALID,
    ErrorCode.UNKNOWN_PRESET: ExitCode.UNKNOWN_PRESET,
    ErrorCode.INVALID_PARAMS: ExitCode.INVALID_PARAMS,
    ErrorCode.CONVERT_FAILED: ExitCode.CONVERT_FAILED,
}


class ConvertMenuError(Exception):
    """Base class for errors reported synchronously to the menu host."""

    code = ErrorCode.INVALID_PARAMS

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    @property
    def exit_code(self) -> int:
        return ERROR_TO_EXIT_CODE.get(self.code, ExitCode.GENERAL_FAILED)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.hint is not None:
            result["hint"] = self.hint
        return result

    def user_message(self) -> str:
        hint = f" (hint: {self.hint})" if self.hint else ""
        return f"{self.message}{hint}"


class UnsupportedFormatError(ConvertMenuError):
    """Raised when a non-media file is selected as conversion input."""

    code = ErrorCode.INPUT_UNSUPPORTED


class UnknownPresetError(ConvertMenuError):
    """Raised when no preset is configured for a requested output format."""

    code = ErrorCode.UNKNOWN_PRESET


class InvalidParameterError(ConvertMenuError):
    """Raised for a non-positive scale dimension or a malformed quality value."""

    code = ErrorCode.INVALID_PARAMS
