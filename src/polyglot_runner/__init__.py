from .errors import UnknownLanguage, UnsupportedLanguage, WorkspaceCreationError
from .execution.types import ExecutionRequest
from .languages import DEFAULT_LANGUAGES, LanguageProfile, LanguageTable
from .outcome import ExecutionOutcome, ExecutionStatus
from .pipeline import ExecutionPipeline, execute_code
from .settings import ExecutionSettings

__all__ = [
    "DEFAULT_LANGUAGES",
    "ExecutionOutcome",
    "ExecutionPipeline",
    "ExecutionRequest",
    "ExecutionSettings",
    "ExecutionStatus",
    "LanguageProfile",
    "LanguageTable",
    "UnknownLanguage",
    "UnsupportedLanguage",
    "WorkspaceCreationError",
    "execute_code",
]
