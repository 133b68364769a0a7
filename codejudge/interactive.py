"""Run submitted code once against ad hoc input and return its raw output."""

from __future__ import annotations

import logging
import time

from codejudge.config import Config
from codejudge.errors import StagingError, UnsupportedLanguageError
from codejudge.executor import LocalExecutor, describe_failure, normalize_output
from codejudge.executor_base import CodeExecutor
from codejudge.languages import resolve
from codejudge.models import ExecutionRequest, SingleRunResult
from codejudge.staging import stage

logger = logging.getLogger(__name__)


def run_once(
    request: ExecutionRequest,
    executor: CodeExecutor | None = None,
    config: Config | None = None,
) -> SingleRunResult:
    config = config or Config()
    executor = executor or LocalExecutor()
    started = time.monotonic()
    result = SingleRunResult()

    try:
        profile = resolve(request.language)
        with stage(request.code, profile, config.scratch_dir) as staged:
            execution = executor.execute(
                staged,
                request.input,
                config.clamp_timeout(request.timeout_seconds),
                config.toolchain,
            )
            output = normalize_output(profile, execution.stdout)
    except (UnsupportedLanguageError, StagingError) as e:
        logger.warning("Run rejected: %s", e)
        result.compilation_error = str(e)
    except Exception as e:
        logger.exception("Run failed for language %r", request.language)
        result.compilation_error = str(e) or type(e).__name__
    else:
        error = describe_failure(execution)
        result.success = error is None
        result.error = error
        if not execution.timed_out:
            result.output = output

    result.execution_time_ms = int((time.monotonic() - started) * 1000)
    return result
