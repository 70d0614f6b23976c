"""
Unit tests for the compiler oracle.
"""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from codeport.config.models import CompilerConfig
from codeport.verifier.compiler import SubprocessCompilerOracle, analyze_error
from codeport.verifier.shadow import SHADOW_DEFINITIONS, load_shadow


def _completed(returncode: int, stderr: str = "") -> MagicMock:
    result = MagicMock()
    result.returncode = returncode
    result.stderr = stderr
    result.stdout = ""
    return result


@pytest.fixture
def oracle():
    return SubprocessCompilerOracle(CompilerConfig(command=["swiftc", "-parse"], timeout=5))


def test_empty_code_fails_without_running_compiler(oracle):
    with patch("codeport.verifier.compiler.subprocess.run") as mock_run:
        result = oracle.validate("", SHADOW_DEFINITIONS)

    assert not result.ok
    assert result.diagnostic == "Empty or invalid code received."
    mock_run.assert_not_called()


@patch("codeport.verifier.compiler.subprocess.run")
def test_clean_parse_passes(mock_run, oracle):
    mock_run.return_value = _completed(0)

    result = oracle.validate("struct A {}", SHADOW_DEFINITIONS)

    assert result.ok
    cmd = mock_run.call_args.args[0]
    assert cmd[:2] == ["swiftc", "-parse"]
    assert cmd[2].endswith("candidate.swift")
    assert cmd[3].endswith("shadow.swift")


@patch("codeport.verifier.compiler.subprocess.run")
def test_code_and_shadow_are_written_to_disk(mock_run, oracle):
    seen = {}

    def capture(cmd, **kwargs):
        seen["code"] = Path(cmd[2]).read_text(encoding="utf-8")
        seen["shadow"] = Path(cmd[3]).read_text(encoding="utf-8")
        return _completed(0)

    mock_run.side_effect = capture
    oracle.validate("struct A {}", "// shadow")

    assert seen == {"code": "struct A {}", "shadow": "// shadow"}


@patch("codeport.verifier.compiler.subprocess.run")
def test_missing_module_counts_as_pass(mock_run, oracle):
    mock_run.return_value = _completed(1, "error: no such module 'FirebaseCore'")

    assert oracle.validate("import FirebaseCore", SHADOW_DEFINITIONS).ok


@patch("codeport.verifier.compiler.subprocess.run")
def test_diagnostic_and_suggestion_on_failure(mock_run, oracle):
    mock_run.return_value = _completed(1, "error: cannot find 'Modifier' in scope")

    result = oracle.validate("struct A { let m = Modifier }", SHADOW_DEFINITIONS)

    assert not result.ok
    assert "Modifier" in result.diagnostic
    assert result.suggestion.startswith("You left Android 'Modifier'")


@patch("codeport.verifier.compiler.subprocess.run")
def test_missing_toolchain_is_a_failed_validation(mock_run, oracle):
    mock_run.side_effect = FileNotFoundError()

    result = oracle.validate("struct A {}", SHADOW_DEFINITIONS)

    assert not result.ok
    assert "swiftc not found" in result.diagnostic


@patch("codeport.verifier.compiler.subprocess.run")
def test_timeout_is_a_failed_validation(mock_run, oracle):
    mock_run.side_effect = subprocess.TimeoutExpired(cmd="swiftc", timeout=5)

    result = oracle.validate("struct A {}", SHADOW_DEFINITIONS)

    assert not result.ok
    assert "timed out" in result.diagnostic


def test_analyze_error_unknown_diagnostic():
    assert analyze_error("error: something new") is None
    assert analyze_error("error: consecutive statements on a line") is not None


def test_load_shadow_override(tmp_path):
    shadow_file = tmp_path / "shadow.swift"
    shadow_file.write_text("public struct Fake {}", encoding="utf-8")

    assert load_shadow(shadow_file) == "public struct Fake {}"
    assert load_shadow(None) == SHADOW_DEFINITIONS


@patch("codeport.verifier.compiler.subprocess.run")
def test_missing_module_with_syntax_error_fails(mock_run, oracle):
    mock_run.return_value = _completed(
        1,
        "/tmp/candidate.swift:1:8: error: no such module 'Firebase'\n"
        "import Firebase\n"
        "       ^\n"
        "/tmp/candidate.swift:4:1: error: expected '}' in struct\n",
    )

    result = oracle.validate("import Firebase\nstruct A {\n", SHADOW_DEFINITIONS)

    assert not result.ok
    assert "expected '}'" in result.diagnostic


def test_is_module_error_ignores_source_excerpt_lines(oracle):
    diagnostic = "a.swift:1:8: error: no such module 'Lottie'\nimport Lottie\n       ^"
    assert oracle.is_module_error(diagnostic)
    assert not oracle.is_module_error("")


@patch("codeport.verifier.compiler.subprocess.run")
def test_unstartable_compiler_is_a_failed_validation(mock_run, oracle):
    mock_run.side_effect = PermissionError(13, "Permission denied")

    result = oracle.validate("struct A {}", SHADOW_DEFINITIONS)

    assert not result.ok
    assert "swiftc could not be started" in result.diagnostic
