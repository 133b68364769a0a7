"""Abstract executor interface for running staged code."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from codejudge.models import ExecutionResult
from codejudge.staging import StagedSource


@runtime_checkable
class CodeExecutor(Protocol):
    def execute(
        self,
        staged: StagedSource,
        stdin_input: str | None = None,
        timeout: float = 5,
        toolchain: Mapping[str, str] | None = None,
    ) -> ExecutionResult: ...
