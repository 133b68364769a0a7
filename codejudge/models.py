"""Data models for codejudge."""

from __future__ import annotations

from dataclasses import dataclass, field

from codejudge.errors import ExecutionError, ExecutionTimeout

DEFAULT_TIMEOUT_SECONDS = 5
DEFAULT_MEMORY_LIMIT_MB = 256


def _text(value) -> str:
    """Render a JSON scalar as program text; only a missing value is empty."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _whole_number(value, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a whole number")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{name} must be a whole number, got {value}")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a whole number, got {value!r}") from None


@dataclass(frozen=True)
class TestCase:
    __test__ = False  # not a pytest class

    input: str
    expected_output: str

    @classmethod
    def from_dict(cls, data: dict) -> TestCase:
        return cls(
            input=_text(data.get("input")),
            expected_output=_text(data.get("expectedOutput", data.get("expected_output"))),
        )


@dataclass
class ExecutionRequest:
    code: str
    language: str
    input: str | None = None
    test_cases: list[TestCase] = field(default_factory=list)
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    memory_limit_mb: int = DEFAULT_MEMORY_LIMIT_MB  # accepted, never enforced

    @classmethod
    def from_dict(cls, data: dict) -> ExecutionRequest:
        """Build a request from the camelCase wire shape.

        Ad hoc input may arrive as ``userInput`` (run-code) or ``input``.
        """
        user_input = data.get("userInput", data.get("input"))
        return cls(
            code=data.get("code") or "",
            language=data.get("language") or "",
            input=None if user_input is None else _text(user_input),
            test_cases=[TestCase.from_dict(tc) for tc in data.get("testCases") or []],
            timeout_seconds=_whole_number(data.get("timeoutSeconds", DEFAULT_TIMEOUT_SECONDS), "timeoutSeconds"),
            memory_limit_mb=_whole_number(data.get("memoryLimitMB", DEFAULT_MEMORY_LIMIT_MB), "memoryLimitMB"),
        )


@dataclass
class ExecutionResult:
    stdout: str
    stderr: str
    exit_code: int
    timed_out: bool = False

    def raise_for_status(self) -> None:
        """Raise ExecutionTimeout or ExecutionError if the run failed.

        Crashes and deliberate stderr output are not told apart.
        """
        if self.timed_out:
            raise ExecutionTimeout()
        if self.stderr.strip():
            raise ExecutionError(self.stderr.strip(), self.exit_code)
        if self.exit_code != 0:
            raise ExecutionError(f"Process exited with code {self.exit_code}", self.exit_code)


@dataclass
class TestCaseResult:
    __test__ = False  # not a pytest class

    input: str
    expected_output: str
    actual_output: str | None = None
    passed: bool = False
    error: str | None = None
    execution_time_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "input": self.input,
            "expectedOutput": self.expected_output,
            "actualOutput": self.actual_output,
            "passed": self.passed,
            "error": self.error,
            "executionTimeMs": self.execution_time_ms,
        }


@dataclass
class TestSuiteResult:
    __test__ = False  # not a pytest class

    success: bool = False
    test_results: list[TestCaseResult] = field(default_factory=list)
    total_tests: int = 0
    passed_tests: int = 0
    compilation_error: str | None = None
    total_execution_time_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "testResults": [tr.to_dict() for tr in self.test_results],
            "totalTests": self.total_tests,
            "passedTests": self.passed_tests,
            "compilationError": self.compilation_error,
            "totalExecutionTimeMs": self.total_execution_time_ms,
        }


@dataclass
class SingleRunResult:
    success: bool = False
    output: str | None = None
    error: str | None = None
    compilation_error: str | None = None
    execution_time_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "output": self.output,
            "error": self.error,
            "compilationError": self.compilation_error,
            "executionTimeMs": self.execution_time_ms,
        }
