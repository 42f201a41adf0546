"""Utilities for running ffmpeg, synchronously or in the background."""
from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
import subprocess
import threading
import time
from typing import List, Optional, Sequence

from .logging_utils import get_logger

logger = get_logger(__name__)


@dataclass
class CmdResult:
    """Normalized result of a short subprocess invocation."""

    cmd: List[str]
    returncode: int
    stdout: str
    stderr: str
    duration_ms: int


class CommandTimeout(RuntimeError):
    """Raised when a subprocess exceeds the allowed timeout."""

    def __init__(self, cmd: List[str], timeout_sec: int, duration_ms: int) -> None:
        message = f"Command timed out after {timeout_sec}s: {' '.join(cmd)}"
        super().__init__(message)
        self.cmd = cmd
        self.timeout_sec = timeout_sec
        self.duration_ms = duration_ms


def run_cmd(cmd: List[str], timeout_sec: int = 30) -> CmdResult:
    """Run a short command (e.g. ``ffmpeg -version``) and capture its output.

    Output is decoded as UTF-8 with replacement. A timeout raises
    :class:`CommandTimeout`.
    """

    start = time.monotonic()
    try:
        completed = subprocess.run(
            cmd,
            check=False,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout_sec,
        )
    except subprocess.TimeoutExpired:
        duration_ms = int((time.monotonic() - start) * 1000)
        raise CommandTimeout(list(cmd), timeout_sec=timeout_sec, duration_ms=duration_ms)
    duration_ms = int((time.monotonic() - start) * 1000)
    return CmdResult(
        cmd=list(cmd),
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
        duration_ms=duration_ms,
    )


@dataclass(frozen=True)
class Completion:
    """Outcome of a background process: success flag plus diagnostics."""

    success: bool
    returncode: Optional[int]
    error: Optional[str] = None


@dataclass
class ProcessHandle:
    """Reference to one spawned conversion process.

    ``completion`` resolves once the process has exited, or immediately when
    the spawn itself failed (``process`` is then ``None``).
    """

    cmd: List[str]
    process: Optional[subprocess.Popen]
    completion: "Future[Completion]" = field(default_factory=Future)
    killed: bool = False

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process is not None else None


class ProcessRunner:
    """Spawns conversions without blocking and reports their completion.

    Each process is waited on by its own daemon thread, so completion callbacks
    run on that thread. Daemon waiters never keep the interpreter alive: a
    conversion still running when the host exits carries on unobserved.
    """

    def __init__(self) -> None:
        self._waiters: List[threading.Thread] = []

    def spawn(self, executable: str, args: Sequence[str]) -> ProcessHandle:
        cmd = [executable, *args]
        logger.debug("Spawning: %s", " ".join(cmd))
        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.warning("Failed to start %s: %s", executable, exc)
            handle = ProcessHandle(cmd=cmd, process=None)
            handle.completion.set_result(Completion(success=False, returncode=None, error=str(exc)))
            return handle

        handle = ProcessHandle(cmd=cmd, process=process)
        waiter = threading.Thread(
            target=self._wait,
            args=(process, handle.completion),
            name=f"convert-wait-{process.pid}",
            daemon=True,
        )
        self._waiters = [thread for thread in self._waiters if thread.is_alive()]
        self._waiters.append(waiter)
        waiter.start()
        return handle

    @staticmethod
    def _wait(process: subprocess.Popen, completion: "Future[Completion]") -> None:
        # A cancelled completion is left alone; the process is still reaped.
        observed = completion.set_running_or_notify_cancel()
        returncode = process.wait()
        if observed:
            completion.set_result(Completion(success=returncode == 0, returncode=returncode))

    def is_alive(self, handle: ProcessHandle) -> bool:
        return handle.process is not None and handle.process.poll() is None

    def terminate(self, handle: ProcessHandle) -> None:
        if handle.process is None:
            return
        handle.killed = True
        handle.process.terminate()

    def shutdown(self, wait: bool = True) -> None:
        """Join the waiter threads when ``wait`` is set; otherwise return at once."""
        if not wait:
            return
        for thread in list(self._waiters):
            thread.join()
        self._waiters.clear()
