from __future__ import annotations

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..errors import WorkspaceCreationError
from .types import Workspace

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "coder-"


class WorkspaceManager:
    """Create and destroy per-execution temporary directories.

    Example:
        ```python
        manager = WorkspaceManager("/tmp/coder-platform")
        with manager.session() as ws:
            ws.write_source("main.py", "print(1)")
        ```
    """

    def __init__(self, root: str | Path | None = None) -> None:
        """Remember the base directory; ``None`` uses the system temp dir.

        Example:
            ```python
            manager = WorkspaceManager()
            ```
        """
        self._root = Path(root).expanduser() if root is not None else None

    @property
    def root(self) -> Path:
        """Return the directory new workspaces are created under.

        Example:
            ```python
            manager.root  # PosixPath('/tmp')
            ```
        """
        return self._root if self._root is not None else Path(tempfile.gettempdir())

    def acquire(self) -> Workspace:
        """Create a fresh, uniquely named workspace directory.

        Example:
            ```python
            ws = manager.acquire()
            ```
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            path = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=self.root))
        except OSError as exc:
            raise WorkspaceCreationError(f"Failed to create workspace: {exc}") from exc
        logger.debug("Created workspace %s", path)
        return Workspace(path=path)

    def release(self, workspace: Workspace) -> None:
        """Recursively delete a workspace; failures are logged, never raised.

        Example:
            ```python
            manager.release(ws)
            ```
        """
        try:
            shutil.rmtree(workspace.path)
        except FileNotFoundError:
            return
        except OSError:
            logger.warning("Failed to clean up workspace %s", workspace.path, exc_info=True)
            return
        logger.debug("Removed workspace %s", workspace.path)

    @contextmanager
    def session(self) -> Iterator[Workspace]:
        """Yield a workspace that is released on every exit path.

        Example:
            ```python
            with manager.session() as ws:
                ...
            ```
        """
        workspace = self.acquire()
        try:
            yield workspace
        finally:
            self.release(workspace)
