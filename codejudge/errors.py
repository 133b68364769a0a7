"""Exception types raised by codejudge."""

from __future__ import annotations


class CodeJudgeError(Exception):
    """Base class for every error codejudge raises on purpose."""


class ValidationError(CodeJudgeError):
    """A request is missing a required field or carries a bad value."""


class UnsupportedLanguageError(CodeJudgeError):
    def __init__(self, language: str) -> None:
        super().__init__(f"Unsupported language: {language}")
        self.language = language


class StagingError(CodeJudgeError):
    """Source or scaffold files could not be written."""


class ExecutionError(CodeJudgeError):
    """The submitted program exited nonzero or wrote to stderr."""

    def __init__(self, message: str, exit_code: int) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class ExecutionTimeout(CodeJudgeError):
    """The submitted program ran past its wall-clock budget and was killed."""

    def __init__(self, timeout: float | None = None) -> None:
        super().__init__("Execution timed out")
        self.timeout = timeout
