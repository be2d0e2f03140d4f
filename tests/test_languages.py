from pathlib import Path

import pytest

from polyglot_runner import DEFAULT_LANGUAGES, LanguageProfile, LanguageTable, UnknownLanguage, UnsupportedLanguage
from polyglot_runner.languages import (
    compile_command,
    default_file_name,
    extract_entry_name,
    run_command,
    source_file_name,
)

WORK = Path("/tmp/coder-test")
MEMORY = 256 * 1024 * 1024


def _source(language: str) -> Path:
    profile = DEFAULT_LANGUAGES.resolve(language)
    return WORK / default_file_name(profile)


def test_table_lists_all_supported_languages() -> None:
    assert DEFAULT_LANGUAGES.ids() == [
        "java", "python", "javascript", "typescript", "c", "cpp", "go",
        "rust", "ruby", "php", "kotlin", "swift", "perl", "bash",
    ]
    assert len(DEFAULT_LANGUAGES) == 14


@pytest.mark.parametrize("language", DEFAULT_LANGUAGES.ids())
def test_every_language_has_run_command(language: str) -> None:
    profile = DEFAULT_LANGUAGES.resolve(language)
    command = run_command(profile, _source(language), WORK, MEMORY)
    assert command
    assert all(token for token in command)
    if profile.requires_compilation:
        assert compile_command(profile, _source(language), WORK)
    else:
        assert compile_command(profile, _source(language), WORK) == []


def test_resolve_is_case_insensitive() -> None:
    assert DEFAULT_LANGUAGES.resolve(" Python ").id == "python"
    assert DEFAULT_LANGUAGES.resolve("CPP").display_name == "C++"
    assert "Rust" in DEFAULT_LANGUAGES
    assert "cobol" not in DEFAULT_LANGUAGES


def test_unknown_language_raises() -> None:
    with pytest.raises(UnknownLanguage, match="Unknown language: cobol"):
        DEFAULT_LANGUAGES.resolve("cobol")


def test_duplicate_ids_are_rejected() -> None:
    profile = LanguageProfile(id="x", display_name="X", extension=".x", default_file_name="main.x")
    with pytest.raises(ValueError, match="Duplicate"):
        LanguageTable([profile, LanguageProfile(id="X", display_name="X2", extension=".x", default_file_name="m.x")])


def test_compiled_language_commands() -> None:
    c = DEFAULT_LANGUAGES.resolve("c")
    assert compile_command(c, WORK / "main.c", WORK) == ["gcc", "-o", "main", "main.c"]
    assert run_command(c, WORK / "main.c", WORK, MEMORY) == ["./main"]

    kotlin = DEFAULT_LANGUAGES.resolve("kotlin")
    assert compile_command(kotlin, WORK / "Main.kt", WORK) == [
        "kotlinc", "Main.kt", "-include-runtime", "-d", "Main.jar",
    ]


def test_run_command_uses_memory_budget() -> None:
    java = DEFAULT_LANGUAGES.resolve("java")
    node = DEFAULT_LANGUAGES.resolve("javascript")
    typescript = DEFAULT_LANGUAGES.resolve("typescript")

    assert run_command(java, WORK / "Main.java", WORK, MEMORY) == ["java", "-Xmx262144k", "Main"]
    assert run_command(node, WORK / "main.js", WORK, MEMORY) == [
        "node", "--max-old-space-size=256", "main.js",
    ]
    assert run_command(typescript, WORK / "main.ts", WORK, MEMORY)[-1] == "main.js"


def test_tiny_memory_budget_never_renders_zero() -> None:
    node = DEFAULT_LANGUAGES.resolve("javascript")
    assert run_command(node, WORK / "main.js", WORK, 1024)[1] == "--max-old-space-size=1"


def test_profile_without_run_template_is_unsupported() -> None:
    profile = LanguageProfile(id="text", display_name="Text", extension=".txt", default_file_name="a.txt")
    with pytest.raises(UnsupportedLanguage, match="Unsupported language: text"):
        run_command(profile, WORK / "a.txt", WORK, MEMORY)


def test_default_file_name_falls_back_to_extension() -> None:
    profile = LanguageProfile(id="lua", display_name="Lua", extension=".lua", default_file_name="")
    assert default_file_name(profile) == "code.lua"


def test_non_java_ignores_source_for_file_name() -> None:
    python = DEFAULT_LANGUAGES.resolve("python")
    assert source_file_name(python, "public class Nope {}") == "main.py"


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("public class Hello { }", "Hello.java"),
        ("public final class Solver {}", "Solver.java"),
        ("import java.util.*;\n\npublic   class\n  Spaced {}", "Spaced.java"),
        ("public record Point(int x, int y) {}", "Point.java"),
        ("class Hidden { public static void main(String[] a) {} }", "Main.java"),
        ("", "Main.java"),
        ("// public class Commented {}\npublic class Real {}", "Real.java"),
        ("/* public class Block {} */ public class Actual {}", "Actual.java"),
        ("public class First {}\npublic class Second {}", "First.java"),
        ("public class ../../etc/passwd {}", "Main.java"),
        ("public class Dollar$Sign {}", "Dollar$Sign.java"),
    ],
)
def test_java_file_name_follows_public_type(source: str, expected: str) -> None:
    java = DEFAULT_LANGUAGES.resolve("java")
    assert source_file_name(java, source) == expected


def test_entry_name_survives_pathological_input() -> None:
    assert extract_entry_name("/*" * 50_000) is None
    assert extract_entry_name("public " * 50_000) is None
    nested = "class A { " * 5_000 + "}" * 5_000
    assert extract_entry_name(nested) is None
    assert extract_entry_name("/* unterminated public class Ghost {}") is None
