"""Subprocess-based runner for staged code with a wall-clock timeout."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from collections.abc import Mapping
from pathlib import Path

from codejudge.errors import ExecutionError, ExecutionTimeout
from codejudge.languages import LanguageProfile
from codejudge.models import ExecutionResult
from codejudge.staging import StagedSource

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Execution timed out"


class LocalExecutor:
    """Builds and runs staged code as local child processes."""

    def execute(
        self,
        staged: StagedSource,
        stdin_input: str | None = None,
        timeout: float = 5,
        toolchain: Mapping[str, str] | None = None,
    ) -> ExecutionResult:
        return execute_staged(staged, stdin_input, timeout, toolchain)


def execute_staged(
    staged: StagedSource,
    stdin_input: str | None = None,
    timeout: float = 5,
    toolchain: Mapping[str, str] | None = None,
) -> ExecutionResult:
    """Run the profile's build steps, then the program, inside *timeout* seconds.

    One deadline covers every step. A failing build step stops the chain and
    its diagnostics become the result's stderr; output of a successful build
    is discarded.
    """
    *build_steps, run_step = staged.profile.commands(staged.source, toolchain)
    deadline = time.monotonic() + timeout

    for argv in build_steps:
        result = _run_step(argv, staged.directory, None, deadline)
        if result.timed_out:
            return result
        if result.exit_code != 0:
            diagnostics = result.stderr.strip() or result.stdout.strip()
            logger.info("Build step %s exited with %d", argv[0], result.exit_code)
            return ExecutionResult(
                stdout="",
                stderr=diagnostics or f"Build failed with exit code {result.exit_code}",
                exit_code=result.exit_code,
            )

    return _run_step(run_step, staged.directory, _stdin_bytes(stdin_input), deadline)


def _stdin_bytes(stdin_input: str | None) -> bytes:
    # Input is written as one line; programs reading a line need the newline.
    if stdin_input is None:
        return b""
    if not stdin_input.endswith("\n"):
        stdin_input += "\n"
    return stdin_input.encode("utf-8")


def _run_step(argv: list[str], cwd: Path, stdin_data: bytes | None, deadline: float) -> ExecutionResult:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        return _timed_out()

    try:
        proc = subprocess.Popen(
            argv,
            cwd=cwd,
            stdin=subprocess.DEVNULL if stdin_data is None else subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,  # own process group, killed as a unit
        )
    except FileNotFoundError:
        logger.warning("Toolchain executable not found: %s", argv[0])
        return ExecutionResult(stdout="", stderr=f"Toolchain not found: {argv[0]}", exit_code=127)
    except OSError as e:
        return ExecutionResult(stdout="", stderr=str(e), exit_code=-1)

    try:
        # communicate() drains stdout and stderr together
        stdout, stderr = proc.communicate(input=stdin_data, timeout=remaining)
    except subprocess.TimeoutExpired:
        logger.info("Process %d (%s) timed out; killing its process group", proc.pid, argv[0])
        _kill_process_group(proc)
        return _timed_out()
    except BaseException:
        _kill_process_group(proc)
        raise

    return ExecutionResult(
        stdout=_decode(stdout),
        stderr=_decode(stderr),
        exit_code=proc.returncode,
    )


def _kill_process_group(proc: subprocess.Popen) -> None:
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        proc.kill()
    proc.wait()
    for stream in (proc.stdin, proc.stdout, proc.stderr):
        if stream is not None:
            stream.close()


def _timed_out() -> ExecutionResult:
    return ExecutionResult(stdout="", stderr=TIMEOUT_MESSAGE, exit_code=-1, timed_out=True)


def _decode(raw: bytes | None) -> str:
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")


def normalize_output(profile: LanguageProfile, stdout: str) -> str:
    """Apply the profile's output hook, then trim surrounding whitespace."""
    return profile.normalize_output(stdout.strip()).strip()


def describe_failure(result: ExecutionResult) -> str | None:
    """Return the error text for a failed run, or ``None`` if it succeeded."""
    try:
        result.raise_for_status()
    except (ExecutionTimeout, ExecutionError) as e:
        return str(e)
    return None
