from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator

from .errors import UnknownLanguage, UnsupportedLanguage

_COMMENT_PATTERN = re.compile(r"/\*.*?(?:\*/|\Z)|//[^\n]*", re.DOTALL)
_PUBLIC_TYPE_PATTERN = re.compile(
    r"\bpublic\s+(?:(?:abstract|final|static|sealed|strictfp)\s+)*"
    r"(?:class|interface|enum|record)\s+([A-Za-z_$][\w$]*)"
)


@dataclass(frozen=True, slots=True)
class LanguageProfile:
    """Static description of how to compile and run one language.

    Templates are argument tokens; ``{file}``, ``{base}``, ``{dir}``,
    ``{memory_kb}`` and ``{memory_mb}`` are substituted per execution.

    Example:
        ```python
        profile = LanguageProfile(
            id="python",
            display_name="Python",
            extension=".py",
            default_file_name="main.py",
            run_template=("python3", "{file}"),
        )
        ```
    """

    id: str
    display_name: str
    extension: str
    default_file_name: str
    requires_compilation: bool = False
    compile_template: tuple[str, ...] = ()
    run_template: tuple[str, ...] = ()
    entry_symbol_file_name: bool = False
    fallback_entry_name: str = "Main"


class LanguageTable:
    """Immutable registry of language profiles keyed by identifier.

    Example:
        ```python
        table = LanguageTable([profile])
        table.resolve("PYTHON")
        ```
    """

    def __init__(self, profiles: Iterable[LanguageProfile]) -> None:
        """Index profiles by lower-cased identifier.

        Example:
            ```python
            table = LanguageTable(DEFAULT_PROFILES)
            ```
        """
        by_id: dict[str, LanguageProfile] = {}
        for profile in profiles:
            key = profile.id.lower()
            if key in by_id:
                raise ValueError(f"Duplicate language id: {profile.id}")
            by_id[key] = profile
        self._by_id = MappingProxyType(by_id)

    def resolve(self, identifier: str) -> LanguageProfile:
        """Return the profile for an identifier, ignoring case.

        Example:
            ```python
            profile = DEFAULT_LANGUAGES.resolve("Java")
            ```
        """
        profile = self._by_id.get(str(identifier).strip().lower())
        if profile is None:
            raise UnknownLanguage(identifier)
        return profile

    def ids(self) -> list[str]:
        """Return supported identifiers in registration order.

        Example:
            ```python
            DEFAULT_LANGUAGES.ids()[:2]  # ["java", "python"]
            ```
        """
        return [profile.id for profile in self._by_id.values()]

    def __contains__(self, identifier: object) -> bool:
        """Check whether an identifier resolves.

        Example:
            ```python
            "rust" in DEFAULT_LANGUAGES
            ```
        """
        return isinstance(identifier, str) and identifier.strip().lower() in self._by_id

    def __iter__(self) -> Iterator[LanguageProfile]:
        """Iterate over profiles in registration order.

        Example:
            ```python
            names = [p.display_name for p in DEFAULT_LANGUAGES]
            ```
        """
        return iter(self._by_id.values())

    def __len__(self) -> int:
        """Return the number of registered profiles.

        Example:
            ```python
            len(DEFAULT_LANGUAGES)  # 14
            ```
        """
        return len(self._by_id)


def default_file_name(profile: LanguageProfile) -> str:
    """Return the file name used when nothing is derived from the source.

    Example:
        ```python
        default_file_name(DEFAULT_LANGUAGES.resolve("cpp"))  # "main.cpp"
        ```
    """
    return profile.default_file_name or f"code{profile.extension}"


def extract_entry_name(source: str) -> str | None:
    """Return the first public type name declared outside comments.

    Best-effort: it does not understand string literals, and the first
    candidate wins when several are declared.

    Example:
        ```python
        extract_entry_name("public class Solver { }")  # "Solver"
        ```
    """
    stripped = _COMMENT_PATTERN.sub(" ", source)
    match = _PUBLIC_TYPE_PATTERN.search(stripped)
    if match is None:
        return None
    return match.group(1)


def source_file_name(profile: LanguageProfile, source: str) -> str:
    """Return the file name the source must be written to.

    Example:
        ```python
        source_file_name(java, "public class Hello {}")  # "Hello.java"
        ```
    """
    if not profile.entry_symbol_file_name:
        return default_file_name(profile)
    name = extract_entry_name(source) or profile.fallback_entry_name
    return f"{name}{profile.extension}"


def _render(template: tuple[str, ...], values: dict[str, str]) -> list[str]:
    """Substitute placeholders in every template token.

    Example:
        ```python
        _render(("gcc", "-o", "{base}", "{file}"), {"file": "main.c", "base": "main"})
        ```
    """
    return [token.format(**values) for token in template]


def _template_values(source_file: Path, work_dir: Path, memory_budget_bytes: int = 0) -> dict[str, str]:
    """Build placeholder values for one source file.

    Example:
        ```python
        values = _template_values(Path("/tmp/w/Main.java"), Path("/tmp/w"), 1 << 20)
        ```
    """
    memory_kb = max(1, int(memory_budget_bytes) // 1024)
    return {
        "file": source_file.name,
        "base": source_file.stem,
        "dir": str(work_dir),
        "memory_kb": str(memory_kb),
        "memory_mb": str(max(1, memory_kb // 1024)),
    }


def compile_command(profile: LanguageProfile, source_file: Path, work_dir: Path) -> list[str]:
    """Return the compiler argument list; empty means no compile phase.

    Example:
        ```python
        compile_command(c, Path("/tmp/w/main.c"), Path("/tmp/w"))  # ["gcc", "-o", "main", "main.c"]
        ```
    """
    if not profile.requires_compilation or not profile.compile_template:
        return []
    return _render(profile.compile_template, _template_values(source_file, work_dir))


def run_command(
    profile: LanguageProfile,
    source_file: Path,
    work_dir: Path,
    memory_budget_bytes: int,
) -> list[str]:
    """Return the run argument list parameterized by the memory budget.

    Example:
        ```python
        run_command(java, Path("/tmp/w/Main.java"), Path("/tmp/w"), 256 << 20)
        # ["java", "-Xmx262144k", "Main"]
        ```
    """
    if not profile.run_template:
        raise UnsupportedLanguage(profile.id)
    values = _template_values(source_file, work_dir, memory_budget_bytes)
    return _render(profile.run_template, values)


DEFAULT_PROFILES: tuple[LanguageProfile, ...] = (
    LanguageProfile(
        id="java",
        display_name="Java",
        extension=".java",
        default_file_name="Main.java",
        requires_compilation=True,
        compile_template=("javac", "{file}"),
        run_template=("java", "-Xmx{memory_kb}k", "{base}"),
        entry_symbol_file_name=True,
    ),
    LanguageProfile(
        id="python",
        display_name="Python",
        extension=".py",
        default_file_name="main.py",
        run_template=("python3", "{file}"),
    ),
    LanguageProfile(
        id="javascript",
        display_name="JavaScript",
        extension=".js",
        default_file_name="main.js",
        run_template=("node", "--max-old-space-size={memory_mb}", "{file}"),
    ),
    LanguageProfile(
        id="typescript",
        display_name="TypeScript",
        extension=".ts",
        default_file_name="main.ts",
        requires_compilation=True,
        compile_template=("npx", "tsc", "--outDir", ".", "{file}"),
        run_template=("node", "--max-old-space-size={memory_mb}", "{base}.js"),
    ),
    LanguageProfile(
        id="c",
        display_name="C",
        extension=".c",
        default_file_name="main.c",
        requires_compilation=True,
        compile_template=("gcc", "-o", "{base}", "{file}"),
        run_template=("./{base}",),
    ),
    LanguageProfile(
        id="cpp",
        display_name="C++",
        extension=".cpp",
        default_file_name="main.cpp",
        requires_compilation=True,
        compile_template=("g++", "-o", "{base}", "{file}"),
        run_template=("./{base}",),
    ),
    LanguageProfile(
        id="go",
        display_name="Go",
        extension=".go",
        default_file_name="main.go",
        run_template=("go", "run", "{file}"),
    ),
    LanguageProfile(
        id="rust",
        display_name="Rust",
        extension=".rs",
        default_file_name="main.rs",
        requires_compilation=True,
        compile_template=("rustc", "-o", "{base}", "{file}"),
        run_template=("./{base}",),
    ),
    LanguageProfile(
        id="ruby",
        display_name="Ruby",
        extension=".rb",
        default_file_name="main.rb",
        run_template=("ruby", "{file}"),
    ),
    LanguageProfile(
        id="php",
        display_name="PHP",
        extension=".php",
        default_file_name="main.php",
        run_template=("php", "{file}"),
    ),
    LanguageProfile(
        id="kotlin",
        display_name="Kotlin",
        extension=".kt",
        default_file_name="Main.kt",
        requires_compilation=True,
        compile_template=("kotlinc", "{file}", "-include-runtime", "-d", "{base}.jar"),
        run_template=("java", "-Xmx{memory_kb}k", "-jar", "{base}.jar"),
    ),
    LanguageProfile(
        id="swift",
        display_name="Swift",
        extension=".swift",
        default_file_name="main.swift",
        run_template=("swift", "{file}"),
    ),
    LanguageProfile(
        id="perl",
        display_name="Perl",
        extension=".pl",
        default_file_name="main.pl",
        run_template=("perl", "{file}"),
    ),
    LanguageProfile(
        id="bash",
        display_name="Bash",
        extension=".sh",
        default_file_name="main.sh",
        run_template=("bash", "{file}"),
    ),
)

DEFAULT_LANGUAGES = LanguageTable(DEFAULT_PROFILES)
