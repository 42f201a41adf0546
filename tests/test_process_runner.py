"""Background process runner used for conversions."""
from __future__ import annotations

import sys
import threading

from media_convert_menu.subprocess_utils import ProcessRunner, run_cmd


def test_successful_process_completes() -> None:
    runner = ProcessRunner()
    handle = runner.spawn(sys.executable, ["-c", "pass"])
    completion = handle.completion.result(timeout=30)
    runner.shutdown()
    assert completion.success is True
    assert completion.returncode == 0
    assert handle.pid is not None


def test_failing_process_reports_failure() -> None:
    runner = ProcessRunner()
    handle = runner.spawn(sys.executable, ["-c", "raise SystemExit(3)"])
    completion = handle.completion.result(timeout=30)
    runner.shutdown()
    assert completion.success is False
    assert completion.returncode == 3


def test_spawn_failure_resolves_immediately() -> None:
    runner = ProcessRunner()
    handle = runner.spawn("definitely-not-a-real-ffmpeg", ["-version"])
    assert handle.process is None
    assert handle.completion.done()
    completion = handle.completion.result()
    assert completion.success is False
    assert completion.error
    assert runner.is_alive(handle) is False
    runner.terminate(handle)
    runner.shutdown()


def test_terminate_running_process() -> None:
    runner = ProcessRunner()
    handle = runner.spawn(sys.executable, ["-c", "import time; time.sleep(30)"])
    assert runner.is_alive(handle)
    runner.terminate(handle)
    completion = handle.completion.result(timeout=30)
    runner.shutdown()
    assert handle.killed is True
    assert completion.success is False
    assert runner.is_alive(handle) is False


def test_run_cmd_captures_output() -> None:
    result = run_cmd([sys.executable, "-c", "print('hello')"])
    assert result.returncode == 0
    assert result.stdout.strip() == "hello"


def test_waiter_threads_are_daemons() -> None:
    runner = ProcessRunner()
    handle = runner.spawn(sys.executable, ["-c", "import time; time.sleep(30)"])
    waiters = [thread for thread in threading.enumerate() if thread.name == f"convert-wait-{handle.pid}"]
    assert len(waiters) == 1
    assert waiters[0].daemon is True

    runner.shutdown(wait=False)
    assert runner.is_alive(handle)
    runner.terminate(handle)
    assert handle.completion.result(timeout=30).success is False
    runner.shutdown()
