"""Conversion planner: parameter state and ffmpeg invocation building.

The planner owns one :class:`ConversionState` per session. Every mutation is
validated before it is applied, so a rejected request leaves the state as it
was. Host facilities (file listing, process spawning, notifications) are
injected and only used through the small protocols below.
"""
from __future__ import annotations

from concurrent.futures import Future
import threading
from pathlib import Path
from typing import Any, Callable, List, NamedTuple, Optional, Protocol, Sequence, Tuple

from .config import AppConfig
from .constants import SCALE_FILTER_TEMPLATE
from .errors import InvalidParameterError, UnsupportedFormatError
from .logging_utils import get_logger
from .params import ConversionState, ScaleDescriptor, clamp_quality, parse_quality
from .presets import lookup_preset
from .subprocess_utils import Completion, ProcessHandle

logger = get_logger(__name__)


class FileListing(Protocol):
    def request_redisplay(self) -> None: ...


class ProcessSpawner(Protocol):
    def spawn(self, executable: str, args: Sequence[str]) -> ProcessHandle: ...

    def is_alive(self, handle: ProcessHandle) -> bool: ...

    def terminate(self, handle: ProcessHandle) -> None: ...


class StatusNotifier(Protocol):
    def notify(self, message: str) -> None: ...


class Invocation(NamedTuple):
    """Everything needed to run one conversion."""

    executable: str
    args: Tuple[str, ...]
    output_path: Path

    def command(self) -> List[str]:
        return [self.executable, *self.args]


class ConversionPlanner:
    """Holds quality/scale/target state and turns it into ffmpeg invocations."""

    def __init__(
        self,
        config: AppConfig,
        runner: ProcessSpawner,
        listing: FileListing,
        notifier: StatusNotifier,
        state: Optional[ConversionState] = None,
    ) -> None:
        self.config = config
        self.runner = runner
        self.listing = listing
        self.notifier = notifier
        self.state = state if state is not None else self.default_state(config)
        # Completion callbacks arrive on the runner's waiter threads
        self._lock = threading.RLock()
        self._listeners: List[Callable[[ConversionState], None]] = []

    @staticmethod
    def default_state(config: AppConfig) -> ConversionState:
        return ConversionState(
            quality=clamp_quality(config.default_quality),
            scale=ScaleDescriptor(width=config.default_scale_width),
        )

    # -- change signal -----------------------------------------------------

    def subscribe(self, listener: Callable[[ConversionState], None]) -> None:
        """Register a callable invoked with the state after every change."""
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self.state)

    # -- quality -----------------------------------------------------------

    def increase_quality(self) -> int:
        return self._step_quality(self.config.quality_step)

    def decrease_quality(self) -> int:
        return self._step_quality(-self.config.quality_step)

    def _step_quality(self, delta: int) -> int:
        with self._lock:
            self.state.quality = clamp_quality(self.state.quality + delta)
            quality = self.state.quality
        logger.debug("Quality set to %d", quality)
        self._changed()
        return quality

    def set_quality(self, value: Any) -> int:
        quality = parse_quality(value)
        with self._lock:
            self.state.quality = quality
        logger.debug("Quality set to %d", quality)
        self._changed()
        return quality

    # -- scale -------------------------------------------------------------

    def set_scale_by_width(self, width: Any) -> ScaleDescriptor:
        return self._set_scale(ScaleDescriptor.by_width(width))

    def set_scale_by_height(self, height: Any) -> ScaleDescriptor:
        return self._set_scale(ScaleDescriptor.by_height(height))

    def reset_scale(self) -> ScaleDescriptor:
        return self._set_scale(ScaleDescriptor(width=self.config.default_scale_width))

    def _set_scale(self, scale: ScaleDescriptor) -> ScaleDescriptor:
        with self._lock:
            self.state.scale = scale
        logger.debug("Scale set to %s", scale.token())
        self._changed()
        return scale

    # -- target ------------------------------------------------------------

    def select_target(self, path: Path | str) -> Path:
        target = Path(path)
        if not self.config.is_supported(target):
            raise UnsupportedFormatError(
                f"Not a recognized media file: {target.name}",
                hint=f"Supported extensions: {', '.join(self.config.extensions)}",
            )
        with self._lock:
            self.state.active_input_path = target
        logger.debug("Target selected: %s", target)
        self._changed()
        return target

    # -- invocation --------------------------------------------------------

    def build_invocation(self, input_path: Path | str, format_key: str) -> Invocation:
        """Build the ffmpeg invocation converting ``input_path`` to ``format_key``.

        Argument order: overwrite flag, input flag and path, preset tokens,
        quality flag and value, scale flag and filter, output path. Nothing
        is executed.
        """

        preset = lookup_preset(self.config.presets, format_key)
        source = Path(input_path)
        output_path = source.with_suffix(f".{preset.key}")
        flags = self.config.flags

        with self._lock:
            quality = self.state.quality
            scale = self.state.scale

        args: List[str] = [flags["overwrite"], flags["input"], str(source)]
        args.extend(preset.args)
        args.extend([flags["quality"], str(quality)])
        args.extend([flags["scale"], SCALE_FILTER_TEMPLATE.format(token=scale.token())])
        args.append(str(output_path))
        return Invocation(executable=self.config.executable, args=tuple(args), output_path=output_path)

    def start_conversion(self, format_key: str) -> ProcessHandle:
        """Spawn a conversion of the selected target and track its process.

        A previously active process is not waited for or terminated; it simply
        stops being tracked.
        """

        with self._lock:
            source = self.state.active_input_path
            if source is None:
                raise InvalidParameterError(
                    "No file selected for conversion",
                    hint="Select a media file before choosing a format",
                )
            invocation = self.build_invocation(source, format_key)
            logger.info("Converting %s -> %s", source, invocation.output_path)
            logger.debug("Command: %s", " ".join(invocation.command()))
            handle = self.runner.spawn(invocation.executable, invocation.args)
            self.state.active_process = handle
        self._changed()

        format_name = format_key.lower()
        handle.completion.add_done_callback(
            lambda future: self._on_completion(handle, format_name, invocation, future)
        )
        return handle

    def _on_completion(
        self,
        handle: ProcessHandle,
        format_key: str,
        invocation: Invocation,
        future: "Future[Completion]",
    ) -> None:
        # exception() raises CancelledError on a cancelled future
        if future.cancelled():
            completion = Completion(success=False, returncode=None, error="cancelled")
        elif future.exception() is not None:
            completion = Completion(success=False, returncode=None, error=str(future.exception()))
        else:
            completion = future.result()

        with self._lock:
            if self.state.active_process is handle:
                self.state.active_process = None

        if not completion.success:
            logger.warning(
                "Conversion to %s did not succeed (returncode=%s%s)",
                format_key,
                completion.returncode,
                f", error={completion.error}" if completion.error else "",
            )
            return

        self.notifier.notify(f"Converted {invocation.output_path.name} ({format_key})")
        self.listing.request_redisplay()

    # -- process control ---------------------------------------------------

    def kill_active_process(self) -> bool:
        """Terminate the tracked process if it is still running."""

        with self._lock:
            handle = self.state.active_process
            if handle is None or not self.runner.is_alive(handle):
                return False
            self.runner.terminate(handle)
        logger.info("Killed conversion process %s", handle.pid)
        self.notifier.notify("Process killed")
        return True

    def describe(self) -> str:
        with self._lock:
            target = self.state.active_input_path
            lines = [
                f"Target:  {target.name if target else '(none)'}",
                f"Quality: {self.state.quality}",
                f"Scale:   {self.state.scale.token()} ({self.state.scale.describe()})",
            ]
            if self.state.active_process is not None and self.runner.is_alive(self.state.active_process):
                lines.append(f"Running: pid {self.state.active_process.pid}")
        return "\n".join(lines)
