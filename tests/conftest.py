from __future__ import annotations

import sys
from pathlib import Path
from typing import Sequence

import pytest

from polyglot_runner import ExecutionPipeline, ExecutionSettings, LanguageProfile, LanguageTable
from polyglot_runner.execution import ProcessResult

PY = sys.executable

SCRIPT_PROFILES = (
    LanguageProfile(
        id="success-lang",
        display_name="Script",
        extension=".py",
        default_file_name="main.py",
        run_template=(PY, "{file}"),
    ),
    LanguageProfile(
        id="compiled-lang",
        display_name="Checked Script",
        extension=".py",
        default_file_name="main.py",
        requires_compilation=True,
        compile_template=(PY, "-m", "py_compile", "{file}"),
        run_template=(PY, "{file}"),
    ),
    LanguageProfile(
        id="slow-compile-lang",
        display_name="Slow Compiler",
        extension=".py",
        default_file_name="main.py",
        requires_compilation=True,
        compile_template=(PY, "-c", "import time; time.sleep(30)"),
        run_template=(PY, "{file}"),
    ),
    LanguageProfile(
        id="no-run-lang",
        display_name="Nothing",
        extension=".txt",
        default_file_name="main.txt",
    ),
    LanguageProfile(
        id="missing-binary-lang",
        display_name="Missing",
        extension=".x",
        default_file_name="main.x",
        run_template=("polyglot-runner-no-such-binary", "{file}"),
    ),
)


class RecordingRunner:
    """Fake runner that records commands and replays canned results."""

    def __init__(self, *results: ProcessResult) -> None:
        self.results = list(results)
        self.calls: list[tuple[list[str], Path, str, int]] = []
        self.files_seen: list[list[str]] = []

    def run(self, command: Sequence[str], work_dir: Path, stdin: str, timeout_ms: int) -> ProcessResult:
        self.calls.append((list(command), work_dir, stdin, timeout_ms))
        self.files_seen.append(sorted(p.name for p in work_dir.iterdir()))
        if self.results:
            return self.results.pop(0)
        return ProcessResult(exit_code=0, stdout="", stderr="", timed_out=False)


@pytest.fixture
def script_languages() -> LanguageTable:
    return LanguageTable(SCRIPT_PROFILES)


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    return tmp_path / "workspaces"


@pytest.fixture
def settings(temp_root: Path) -> ExecutionSettings:
    return ExecutionSettings(
        timeout_ms=5000,
        max_output_chars=4096,
        temp_root=str(temp_root),
        drain_grace_seconds=0.5,
    )


@pytest.fixture
def pipeline(settings: ExecutionSettings, script_languages: LanguageTable) -> ExecutionPipeline:
    return ExecutionPipeline(settings, languages=script_languages)


def leftover_workspaces(root: Path) -> list[Path]:
    if not root.exists():
        return []
    return list(root.iterdir())
