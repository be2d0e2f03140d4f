from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from pathlib import Path
from typing import IO, Mapping, Sequence

from .types import KILLED_EXIT_CODE, ProcessResult

logger = logging.getLogger(__name__)

RESOURCE_EXHAUSTION_MARKERS = (
    "OutOfMemoryError",
    "Cannot allocate memory",
    "MemoryError",
    "JavaScript heap out of memory",
    "std::bad_alloc",
    "memory allocation of",
    "failed to allocate memory",
    "out of memory",
    "Allowed memory size of",
)
_READ_CHUNK_CHARS = 8192


def detect_resource_exceeded(stderr: str) -> bool:
    """Guess from stderr whether the program ran out of memory.

    Best-effort text match; nothing is enforced at the OS level.

    Example:
        ```python
        detect_resource_exceeded("java.lang.OutOfMemoryError: Java heap space")  # True
        ```
    """
    return any(marker in stderr for marker in RESOURCE_EXHAUSTION_MARKERS)


class _Accumulator:
    """Capped text buffer filled by one drain thread.

    Example:
        ```python
        acc = _Accumulator(limit=1024)
        ```
    """

    def __init__(self, limit: int) -> None:
        """Start empty with a character limit.

        Example:
            ```python
            acc = _Accumulator(limit=10)
            ```
        """
        self._limit = limit
        self._chunks: list[str] = []
        self._size = 0

    def append(self, chunk: str) -> None:
        """Keep chunks until the size passes the limit, drop them afterwards.

        Example:
            ```python
            acc.append("line\\n")
            ```
        """
        if self._size > self._limit:
            return
        self._chunks.append(chunk)
        self._size += len(chunk)

    def terminate_line(self) -> None:
        """Add a trailing newline to an unterminated last line.

        Example:
            ```python
            acc.terminate_line()
            ```
        """
        if self._chunks and not self._chunks[-1].endswith("\n"):
            self._chunks.append("\n")
            self._size += 1

    def text(self) -> str:
        """Return everything kept so far.

        Example:
            ```python
            acc.text()
            ```
        """
        return "".join(list(self._chunks))


def _drain(stream: IO[str], accumulator: _Accumulator) -> None:
    """Read a child stream until EOF into an accumulator.

    Example:
        ```python
        _drain(process.stdout, acc)
        ```
    """
    try:
        for chunk in iter(lambda: stream.readline(_READ_CHUNK_CHARS), ""):
            accumulator.append(chunk)
    except (OSError, ValueError) as exc:
        logger.debug("Stopped reading child stream: %s", exc)
    finally:
        accumulator.terminate_line()
        try:
            stream.close()
        except OSError:
            logger.debug("Child stream already closed")


def _feed(stream: IO[str], text: str) -> None:
    """Write stdin text to the child and close its input.

    Example:
        ```python
        _feed(process.stdin, "1 2\\n")
        ```
    """
    try:
        stream.write(text)
        stream.flush()
    except (BrokenPipeError, ValueError):
        logger.debug("Child exited before reading all of stdin")
    except OSError as exc:
        logger.debug("Could not write stdin: %s", exc)
    finally:
        try:
            stream.close()
        except OSError:
            logger.debug("Child stdin already closed")


def _terminate_tree(process: subprocess.Popen[str]) -> None:
    """Kill the child and everything in its process group.

    Example:
        ```python
        _terminate_tree(process)
        ```
    """
    try:
        if os.name == "posix":
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except (ProcessLookupError, PermissionError):
        logger.debug("Process group %s already gone", process.pid)


class ProcessRunner:
    """Run one command with a deadline and bounded, concurrently drained output.

    Example:
        ```python
        runner = ProcessRunner(max_output_chars=65536)
        result = runner.run(["python3", "main.py"], Path("/tmp/w"), "", timeout_ms=5000)
        ```
    """

    def __init__(
        self,
        *,
        max_output_chars: int,
        drain_grace_seconds: float = 1.0,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Configure output cap, drain grace period and child environment.

        Example:
            ```python
            runner = ProcessRunner(max_output_chars=4096, drain_grace_seconds=0.5)
            ```
        """
        if max_output_chars <= 0:
            raise ValueError("ProcessRunner requires a positive 'max_output_chars'")
        self._max_output_chars = int(max_output_chars)
        self._drain_grace_seconds = float(drain_grace_seconds)
        self._env = dict(env) if env is not None else None

    def run(
        self,
        command: Sequence[str],
        work_dir: Path,
        stdin: str,
        timeout_ms: int,
    ) -> ProcessResult:
        """Execute one command line and capture its result.

        Example:
            ```python
            result = runner.run(["./main"], Path("/tmp/w"), "5\\n", timeout_ms=2000)
            ```
        """
        logger.debug("Running %s in %s", list(command), work_dir)
        process = subprocess.Popen(
            list(command),
            cwd=str(work_dir),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            env=self._child_env(),
            start_new_session=os.name == "posix",
        )
        started = time.monotonic()

        assert process.stdin is not None
        assert process.stdout is not None
        assert process.stderr is not None
        stdout_acc = _Accumulator(self._max_output_chars)
        stderr_acc = _Accumulator(self._max_output_chars)
        helpers = [
            threading.Thread(target=_drain, args=(process.stdout, stdout_acc), daemon=True),
            threading.Thread(target=_drain, args=(process.stderr, stderr_acc), daemon=True),
        ]
        if stdin:
            helpers.append(
                threading.Thread(target=_feed, args=(process.stdin, stdin), daemon=True)
            )
        else:
            process.stdin.close()
        for thread in helpers:
            thread.start()

        timed_out = False
        try:
            exit_code = process.wait(timeout=max(timeout_ms, 1) / 1000)
        except subprocess.TimeoutExpired:
            timed_out = True
            _terminate_tree(process)
            process.wait()
            exit_code = KILLED_EXIT_CODE
        duration_ms = int((time.monotonic() - started) * 1000)

        if timed_out:
            logger.info("Process %s timed out after %sms and was killed", process.pid, timeout_ms)

        if not self._join(helpers):
            # Leftover descendants still hold the pipes open.
            logger.warning("Output readers for process %s did not finish in time", process.pid)
            _terminate_tree(process)

        stderr_text = stderr_acc.text()
        return ProcessResult(
            exit_code=exit_code,
            stdout=stdout_acc.text(),
            stderr=stderr_text,
            timed_out=timed_out,
            resource_exceeded=detect_resource_exceeded(stderr_text),
            duration_ms=duration_ms,
        )

    def _join(self, threads: list[threading.Thread]) -> bool:
        """Wait for helper threads up to the grace period; report completion.

        Example:
            ```python
            finished = runner._join(helpers)
            ```
        """
        deadline = time.monotonic() + self._drain_grace_seconds
        for thread in threads:
            thread.join(max(0.0, deadline - time.monotonic()))
        return not any(thread.is_alive() for thread in threads)

    def _child_env(self) -> dict[str, str]:
        """Return the environment passed to child processes.

        Example:
            ```python
            env = runner._child_env()
            ```
        """
        env = dict(self._env) if self._env is not None else os.environ.copy()
        env.setdefault("LANG", "C.UTF-8")
        return env
