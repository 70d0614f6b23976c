"""
Compiler oracle.

Parse-only validation of candidate target code. The oracle never raises on
garbage input, a missing toolchain or a timeout; each is reported as a failed
ValidationResult so the attempt cycle can retry.
"""

import logging
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from codeport.config.models import CompilerConfig, ValidationResult
from codeport.rules import DIAGNOSTIC_SUGGESTIONS

logger = logging.getLogger(__name__)


def analyze_error(diagnostic: str) -> str | None:
    """Map a known compiler diagnostic to a targeted repair suggestion."""
    for fragment, suggestion in DIAGNOSTIC_SUGGESTIONS:
        if fragment in diagnostic:
            return suggestion
    return None


class CompilerOracle(ABC):
    """Target-language validator: code + shadow definitions in, verdict out."""

    @abstractmethod
    def validate(self, code: str, shadow: str) -> ValidationResult:
        """Validate candidate code compiled together with the shadow definitions."""


class SubprocessCompilerOracle(CompilerOracle):
    """Runs a parse-only compiler command over a temp code file and a temp shadow file."""

    def __init__(self, config: CompilerConfig | None = None):
        self.config = config or CompilerConfig()

    def validate(self, code: str, shadow: str) -> ValidationResult:
        if not code or not isinstance(code, str):
            return ValidationResult(ok=False, diagnostic="Empty or invalid code received.")

        tool = self.config.command[0]
        with tempfile.TemporaryDirectory(prefix="codeport_") as tmp:
            code_path = Path(tmp) / "candidate.swift"
            shadow_path = Path(tmp) / "shadow.swift"
            code_path.write_text(code, encoding="utf-8")
            shadow_path.write_text(shadow, encoding="utf-8")

            cmd = [*self.config.command, str(code_path), str(shadow_path)]
            try:
                result = subprocess.run(
                    cmd,
                    capture_output=True,
                    text=True,
                    timeout=self.config.timeout,
                )
            except FileNotFoundError:
                logger.warning(f"Compiler '{tool}' not found")
                return ValidationResult(ok=False, diagnostic=f"{tool} not found. Install the target toolchain.")
            except OSError as e:
                logger.warning(f"Compiler '{tool}' could not be started: {e}")
                return ValidationResult(ok=False, diagnostic=f"{tool} could not be started: {e}")
            except subprocess.TimeoutExpired:
                return ValidationResult(
                    ok=False, diagnostic=f"Compilation timed out after {self.config.timeout} seconds"
                )

        if result.returncode == 0:
            return ValidationResult(ok=True)

        diagnostic = (result.stderr or result.stdout or "").strip() or "Unknown compiler error"

        # Frameworks that are not installed locally are not the candidate's fault
        if self.is_module_error(diagnostic):
            logger.debug(f"Treating unresolved module as a pass: {diagnostic.splitlines()[0]}")
            return ValidationResult(ok=True)

        return ValidationResult(ok=False, diagnostic=diagnostic, suggestion=analyze_error(diagnostic))

    def is_module_error(self, diagnostic: str) -> bool:
        """True when every reported error is an unresolved external module."""
        lines = [line for line in diagnostic.splitlines() if line.strip()]
        error_lines = [line for line in lines if "error:" in line] or lines
        if not error_lines:
            return False
        return all(
            any(marker in line for marker in self.config.module_error_markers) for line in error_lines
        )
