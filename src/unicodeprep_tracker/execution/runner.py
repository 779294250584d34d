"""Code execution collaborator.

Submissions are judged by running the user's code once per test case and
comparing its stdout with the expected output.
"""

import subprocess
import sys
import time
from typing import Protocol

import structlog

from unicodeprep_tracker.errors import ExecutionError, UnsupportedLanguageError
from unicodeprep_tracker.models.progress import TestCase, TestResult

logger = structlog.get_logger()


class CodeExecutor(Protocol):
    def execute(
        self, code: str, language: str, test_cases: list[TestCase]
    ) -> list[TestResult]:
        """Return one result per test case, in the same order."""
        ...


class SubprocessExecutor:
    """Runs Python submissions in a fresh interpreter per test case.

    This is a stand-in for a sandboxed execution service: it isolates
    processes but applies no resource limits beyond a wall-clock timeout.

    Args:
        timeout_seconds: Per-test wall-clock limit.
        python_executable: Interpreter used to run submissions.
    """

    SUPPORTED_LANGUAGES = ("python",)

    def __init__(self, timeout_seconds: float = 5.0, python_executable: str | None = None):
        self.timeout_seconds = timeout_seconds
        self.python_executable = python_executable or sys.executable

    def execute(
        self, code: str, language: str, test_cases: list[TestCase]
    ) -> list[TestResult]:
        if language.lower() not in self.SUPPORTED_LANGUAGES:
            raise UnsupportedLanguageError(language)
        results = [self._run_case(code, case) for case in test_cases]
        logger.info(
            "code_executed",
            language=language,
            test_count=len(results),
            passed=sum(r.passed for r in results),
        )
        return results

    def _run_case(self, code: str, case: TestCase) -> TestResult:
        started = time.perf_counter()
        try:
            proc = subprocess.run(
                [self.python_executable, "-c", code],
                input=case.input,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired:
            return TestResult(
                input=case.input,
                expected_output=case.expected_output,
                actual_output="Time Limit Exceeded",
                passed=False,
                execution_time=self.timeout_seconds * 1000,
            )
        except OSError as e:
            raise ExecutionError(f"Could not start interpreter: {e}") from e
        elapsed_ms = (time.perf_counter() - started) * 1000

        if proc.returncode != 0:
            actual = proc.stderr.strip().splitlines()[-1] if proc.stderr.strip() else "Runtime Error"
            passed = False
        else:
            actual = proc.stdout.strip()
            passed = actual == case.expected_output.strip()

        return TestResult(
            input=case.input,
            expected_output=case.expected_output,
            actual_output=actual,
            passed=passed,
            execution_time=round(elapsed_ms, 3),
        )
