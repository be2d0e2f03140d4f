from .engine import CommandRunner
from .process_runner import ProcessRunner, detect_resource_exceeded
from .types import ExecutionRequest, ProcessResult, Workspace
from .workspace import WorkspaceManager

__all__ = [
    "CommandRunner",
    "ExecutionRequest",
    "ProcessResult",
    "ProcessRunner",
    "Workspace",
    "WorkspaceManager",
    "detect_resource_exceeded",
]
