from __future__ import annotations

import logging

from .errors import UnknownLanguage, WorkspaceCreationError
from .execution.engine import CommandRunner
from .execution.process_runner import ProcessRunner
from .execution.types import ExecutionRequest, Workspace
from .execution.workspace import WorkspaceManager
from .languages import (
    DEFAULT_LANGUAGES,
    LanguageProfile,
    LanguageTable,
    compile_command,
    run_command,
    source_file_name,
)
from .outcome import ExecutionOutcome, classify, classify_compile
from .settings import ExecutionSettings

logger = logging.getLogger(__name__)


def _resolve_settings(
    settings: ExecutionSettings | None, settings_file: str | None
) -> ExecutionSettings:
    """Resolve the effective settings object for a run.

    Example:
        ```python
        settings = _resolve_settings(None, "/etc/polyglot-runner.toml")
        ```
    """
    if settings is not None and settings_file is not None:
        raise ValueError("Provide either 'settings' or 'settings_file', not both")
    if settings is None and settings_file is not None:
        return ExecutionSettings.from_file(settings_file)
    if settings is None:
        return ExecutionSettings()
    return settings


class ExecutionPipeline:
    """Compile and run one submission per call, always cleaning up.

    Instances hold only read-only collaborators, so one pipeline can
    serve many threads at once.

    Example:
        ```python
        pipeline = ExecutionPipeline(ExecutionSettings(timeout_ms=5000))
        outcome = pipeline.execute(ExecutionRequest("python", "print('hi')"))
        ```
    """

    def __init__(
        self,
        settings: ExecutionSettings | None = None,
        *,
        languages: LanguageTable = DEFAULT_LANGUAGES,
        runner: CommandRunner | None = None,
        workspaces: WorkspaceManager | None = None,
    ) -> None:
        """Wire the pipeline collaborators.

        Example:
            ```python
            pipeline = ExecutionPipeline(settings, languages=my_table)
            ```
        """
        self._settings = settings or ExecutionSettings()
        self._languages = languages
        self._runner: CommandRunner = runner or ProcessRunner(
            max_output_chars=self._settings.max_output_chars,
            drain_grace_seconds=self._settings.drain_grace_seconds,
        )
        self._workspaces = workspaces or WorkspaceManager(self._settings.temp_root)

    @property
    def settings(self) -> ExecutionSettings:
        """Return the limits this pipeline applies.

        Example:
            ```python
            pipeline.settings.timeout_ms
            ```
        """
        return self._settings

    def execute(self, request: ExecutionRequest) -> ExecutionOutcome:
        """Run a request through every phase and classify the result.

        Example:
            ```python
            outcome = pipeline.execute(ExecutionRequest("java", source, stdin="3\\n"))
            ```
        """
        try:
            profile = self._languages.resolve(request.language)
        except UnknownLanguage:
            logger.error("Invalid language: %s", request.language)
            return ExecutionOutcome.internal_error(f"Unsupported language: {request.language}")

        try:
            workspace = self._workspaces.acquire()
        except WorkspaceCreationError as exc:
            logger.error("%s", exc)
            return ExecutionOutcome.internal_error(str(exc))

        logger.info("Executing %s code in %s", profile.id, workspace.path)
        try:
            outcome = self._execute_in(workspace, profile, request)
        except Exception as exc:
            logger.exception("Execution error")
            outcome = ExecutionOutcome.internal_error(f"Execution failed: {exc}")
        finally:
            self._workspaces.release(workspace)

        logger.info(
            "Execution completed with status %s in %sms",
            outcome.status.value,
            outcome.execution_time_ms,
        )
        return outcome

    def _execute_in(
        self,
        workspace: Workspace,
        profile: LanguageProfile,
        request: ExecutionRequest,
    ) -> ExecutionOutcome:
        """Write, optionally compile, run and classify inside a workspace.

        Example:
            ```python
            outcome = pipeline._execute_in(ws, profile, request)
            ```
        """
        source_file = workspace.write_source(source_file_name(profile, request.source), request.source)

        if profile.requires_compilation:
            compile_cmd = compile_command(profile, source_file, workspace.path)
            if compile_cmd:
                logger.debug("Compile command for %s: %s", profile.id, compile_cmd)
                compile_result = self._runner.run(
                    compile_cmd, workspace.path, "", self._settings.timeout_ms
                )
                stop = classify_compile(compile_result)
                if stop is not None:
                    return stop

        run_cmd = run_command(
            profile, source_file, workspace.path, self._settings.memory_limit_bytes
        )
        logger.debug("Run command for %s: %s", profile.id, run_cmd)
        run_result = self._runner.run(
            run_cmd, workspace.path, request.stdin, self._settings.timeout_ms
        )
        return classify(run_result, self._settings.max_output_chars)


def execute_code(
    language: str,
    source: str,
    stdin: str = "",
    settings: ExecutionSettings | None = None,
    settings_file: str | None = None,
) -> ExecutionOutcome:
    """Execute source code in the given language with default collaborators.

    Example:
        ```python
        from polyglot_runner import execute_code
        outcome = execute_code("python", "print('Hello, World!')")
        ```
    """
    resolved = _resolve_settings(settings, settings_file)
    pipeline = ExecutionPipeline(resolved)
    return pipeline.execute(ExecutionRequest(language=language, source=source, stdin=stdin))
