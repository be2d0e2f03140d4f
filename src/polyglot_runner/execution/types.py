from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

KILLED_EXIT_CODE = -1


@dataclass(frozen=True, slots=True)
class ExecutionRequest:
    """Source code submitted for one execution.

    Example:
        ```python
        req = ExecutionRequest(language="python", source="print(input())", stdin="hi\\n")
        ```
    """

    language: str
    source: str
    stdin: str = ""


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """What one child process produced.

    ``exit_code`` is ``KILLED_EXIT_CODE`` when the process was killed on timeout.

    Example:
        ```python
        res = ProcessResult(exit_code=0, stdout="ok\\n", stderr="", timed_out=False)
        ```
    """

    exit_code: int
    stdout: str
    stderr: str
    timed_out: bool
    resource_exceeded: bool = False
    duration_ms: int = 0


@dataclass(frozen=True, slots=True)
class Workspace:
    """Private directory owned by a single execution.

    Example:
        ```python
        ws = Workspace(path=Path("/tmp/coder-abc123"))
        ```
    """

    path: Path

    def write_source(self, file_name: str, source: str) -> Path:
        """Write source text verbatim and return the file path.

        Example:
            ```python
            src = ws.write_source("main.py", "print(1)")
            ```
        """
        target = self.path / file_name
        with target.open("w", encoding="utf-8", newline="") as handle:
            handle.write(source)
        return target
