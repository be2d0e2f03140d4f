from __future__ import annotations


class UnknownLanguage(ValueError):
    """Raised when a language identifier matches no profile.

    Example:
        ```python
        raise UnknownLanguage("cobol")
        ```
    """

    def __init__(self, identifier: str) -> None:
        """Store the rejected identifier.

        Example:
            ```python
            err = UnknownLanguage("cobol")
            ```
        """
        super().__init__(f"Unknown language: {identifier}")
        self.identifier = identifier


class UnsupportedLanguage(ValueError):
    """Raised when a resolved profile has no run mapping.

    Example:
        ```python
        raise UnsupportedLanguage("java")
        ```
    """

    def __init__(self, identifier: str) -> None:
        """Store the identifier that has no run command.

        Example:
            ```python
            err = UnsupportedLanguage("java")
            ```
        """
        super().__init__(f"Unsupported language: {identifier}")
        self.identifier = identifier


class WorkspaceCreationError(RuntimeError):
    """Raised when a private workspace directory cannot be created.

    Example:
        ```python
        raise WorkspaceCreationError("Failed to create workspace: disk full")
        ```
    """
