from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any


def _default_settings_path() -> Path:
    """Return bundled default settings TOML path.

    Example:
        ```python
        path = _default_settings_path()
        ```
    """
    return Path(__file__).with_name("default_settings.toml")


def _read_settings_toml(path: Path) -> dict[str, Any]:
    """Read settings TOML and return the execution table.

    Accepts either an ``[execution]`` table or bare top-level keys.

    Example:
        ```python
        raw = _read_settings_toml(Path("/tmp/runner.toml"))
        ```
    """
    if not path.exists():
        return {
            "timeout_ms": 30000,
            "memory_limit_bytes": 256 * 1024 * 1024,
            "max_output_chars": 65536,
            "drain_grace_seconds": 1.0,
        }
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    settings_obj = raw.get("execution", raw)
    if not isinstance(settings_obj, dict):
        raise ValueError("Execution settings must be a TOML table")
    return settings_obj


def _optional_str(value: Any, field_name: str) -> str | None:
    """Validate an optional string setting.

    Example:
        ```python
        root = _optional_str("/tmp/coder-platform", "temp_root")
        ```
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{field_name}' must be a string")
    return value or None


_DEFAULT_SETTINGS_RAW = _read_settings_toml(_default_settings_path())
DEFAULT_TIMEOUT_MS = int(_DEFAULT_SETTINGS_RAW.get("timeout_ms", 30000))
DEFAULT_MEMORY_LIMIT_BYTES = int(
    _DEFAULT_SETTINGS_RAW.get("memory_limit_bytes", 256 * 1024 * 1024)
)
DEFAULT_MAX_OUTPUT_CHARS = int(_DEFAULT_SETTINGS_RAW.get("max_output_chars", 65536))
DEFAULT_DRAIN_GRACE_SECONDS = float(_DEFAULT_SETTINGS_RAW.get("drain_grace_seconds", 1.0))
DEFAULT_TEMP_ROOT = _optional_str(_DEFAULT_SETTINGS_RAW.get("temp_root"), "temp_root")


@dataclass(frozen=True, slots=True)
class ExecutionSettings:
    """Limits shared read-only by every execution.

    Example:
        ```python
        settings = ExecutionSettings(timeout_ms=2000, max_output_chars=4096)
        ```
    """

    timeout_ms: int = DEFAULT_TIMEOUT_MS
    memory_limit_bytes: int = DEFAULT_MEMORY_LIMIT_BYTES
    max_output_chars: int = DEFAULT_MAX_OUTPUT_CHARS
    temp_root: str | None = DEFAULT_TEMP_ROOT
    drain_grace_seconds: float = DEFAULT_DRAIN_GRACE_SECONDS
    config_path: str | None = None

    def __post_init__(self) -> None:
        """Reject non-positive limits.

        Example:
            ```python
            ExecutionSettings(timeout_ms=0)  # raises ValueError
            ```
        """
        for name in ("timeout_ms", "memory_limit_bytes", "max_output_chars"):
            if int(getattr(self, name)) <= 0:
                raise ValueError(f"'{name}' must be a positive integer")
        if self.drain_grace_seconds <= 0:
            raise ValueError("'drain_grace_seconds' must be positive")

    @property
    def timeout_seconds(self) -> float:
        """Return the process timeout in seconds.

        Example:
            ```python
            ExecutionSettings(timeout_ms=1500).timeout_seconds  # 1.5
            ```
        """
        return self.timeout_ms / 1000

    @classmethod
    def from_file(cls, config_path: str) -> "ExecutionSettings":
        """Create settings from a TOML file.

        Missing keys keep their bundled defaults.

        Example:
            ```python
            settings = ExecutionSettings.from_file("/etc/polyglot-runner.toml")
            ```
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {config_path}")
        raw = _read_settings_toml(path)
        return cls(
            timeout_ms=int(raw.get("timeout_ms", DEFAULT_TIMEOUT_MS)),
            memory_limit_bytes=int(raw.get("memory_limit_bytes", DEFAULT_MEMORY_LIMIT_BYTES)),
            max_output_chars=int(raw.get("max_output_chars", DEFAULT_MAX_OUTPUT_CHARS)),
            temp_root=_optional_str(raw.get("temp_root", DEFAULT_TEMP_ROOT), "temp_root"),
            drain_grace_seconds=float(
                raw.get("drain_grace_seconds", DEFAULT_DRAIN_GRACE_SECONDS)
            ),
            config_path=config_path,
        )
