from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

from .types import ProcessResult


class CommandRunner(Protocol):
    def run(
        self,
        command: Sequence[str],
        work_dir: Path,
        stdin: str,
        timeout_ms: int,
    ) -> ProcessResult:
        """Run one command line and return its captured result.

        Example:
            ```python
            result = runner.run(["python3", "main.py"], Path("/tmp/w"), "", 5000)
            ```
        """
        ...
