from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from .execution.types import ProcessResult

TRUNCATION_MARKER = "\n... (output truncated)"
TIMEOUT_MESSAGE = "Execution timed out. Your program exceeded the time limit."
COMPILE_TIMEOUT_MESSAGE = "Compilation timed out."
MEMORY_MESSAGE = "Memory limit exceeded. Your program used too much memory."


class ExecutionStatus(StrEnum):
    SUCCESS = "SUCCESS"
    COMPILE_ERROR = "COMPILE_ERROR"
    RUNTIME_ERROR = "RUNTIME_ERROR"
    TIMEOUT = "TIMEOUT"
    RESOURCE_EXCEEDED = "RESOURCE_EXCEEDED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True, slots=True)
class ExecutionOutcome:
    """Final classified result of one execution.

    Example:
        ```python
        outcome = ExecutionOutcome(ExecutionStatus.SUCCESS, output="hi\\n")
        ```
    """

    status: ExecutionStatus
    output: str = ""
    error: str = ""
    execution_time_ms: int = 0

    @property
    def ok(self) -> bool:
        """Return True only for successful runs.

        Example:
            ```python
            if outcome.ok: ...
            ```
        """
        return self.status is ExecutionStatus.SUCCESS

    def as_response(self) -> dict[str, Any]:
        """Render the outbound response shape.

        Example:
            ```python
            outcome.as_response()
            # {"status": "SUCCESS", "output": "hi\\n", "error": "", "executionTimeMs": 12}
            ```
        """
        return {
            "status": self.status.value,
            "output": self.output,
            "error": self.error,
            "executionTimeMs": self.execution_time_ms,
        }

    @classmethod
    def internal_error(cls, message: str) -> "ExecutionOutcome":
        """Build the outcome for failures where nothing was executed.

        Example:
            ```python
            ExecutionOutcome.internal_error("Unsupported language: cobol")
            ```
        """
        return cls(ExecutionStatus.INTERNAL_ERROR, output="", error=message, execution_time_ms=0)


def truncate_output(text: str, limit: int) -> str:
    """Cut decoded text to ``limit`` characters and mark the cut.

    Example:
        ```python
        truncate_output("abcdef", 3)  # "abc\\n... (output truncated)"
        ```
    """
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def classify(result: ProcessResult, max_output_chars: int) -> ExecutionOutcome:
    """Map a run-phase process result to its outcome.

    Rules are checked in order: timeout, resource exhaustion, non-zero
    exit, success.

    Example:
        ```python
        outcome = classify(result, max_output_chars=65536)
        ```
    """
    output = truncate_output(result.stdout, max_output_chars)
    if result.timed_out:
        return ExecutionOutcome(
            ExecutionStatus.TIMEOUT, output, TIMEOUT_MESSAGE, result.duration_ms
        )
    if result.resource_exceeded:
        return ExecutionOutcome(
            ExecutionStatus.RESOURCE_EXCEEDED, output, MEMORY_MESSAGE, result.duration_ms
        )
    if result.exit_code != 0:
        return ExecutionOutcome(
            ExecutionStatus.RUNTIME_ERROR, output, result.stderr, result.duration_ms
        )
    return ExecutionOutcome(ExecutionStatus.SUCCESS, output, "", result.duration_ms)


def classify_compile(result: ProcessResult) -> ExecutionOutcome | None:
    """Return the outcome that stops a failed compile, or None to go on.

    Example:
        ```python
        stop = classify_compile(compile_result)
        ```
    """
    if result.timed_out:
        return ExecutionOutcome(
            ExecutionStatus.TIMEOUT, "", COMPILE_TIMEOUT_MESSAGE, result.duration_ms
        )
    if result.exit_code != 0:
        diagnostics = result.stderr or result.stdout
        return ExecutionOutcome(
            ExecutionStatus.COMPILE_ERROR, "", diagnostics, result.duration_ms
        )
    return None
