"""Run submitted code against a batch of test cases and aggregate verdicts."""

from __future__ import annotations

import logging
import time

from codejudge.config import Config
from codejudge.errors import StagingError, UnsupportedLanguageError
from codejudge.executor import LocalExecutor, describe_failure, normalize_output
from codejudge.executor_base import CodeExecutor
from codejudge.languages import resolve
from codejudge.models import ExecutionRequest, TestCase, TestCaseResult, TestSuiteResult
from codejudge.staging import StagedSource, stage

logger = logging.getLogger(__name__)


def outputs_match(expected: str, actual: str) -> bool:
    """Exact, case-sensitive comparison after trimming both ends."""
    return expected.strip() == actual.strip()


def run_tests(
    request: ExecutionRequest,
    executor: CodeExecutor | None = None,
    config: Config | None = None,
) -> TestSuiteResult:
    """Stage the code once and run every test case against it, in order.

    A failing case is recorded and the loop moves on. Anything that goes
    wrong outside a single case (unknown language, staging, an unexpected
    error) aborts the suite: no case results, ``compilation_error`` set.
    """
    config = config or Config()
    executor = executor or LocalExecutor()
    started = time.monotonic()
    result = TestSuiteResult(total_tests=len(request.test_cases))
    timeout = config.clamp_timeout(request.timeout_seconds)

    try:
        profile = resolve(request.language)
        with stage(request.code, profile, config.scratch_dir) as staged:
            test_results = [
                _run_case(executor, staged, case, timeout, config)
                for case in request.test_cases
            ]
        result.test_results = test_results
        result.passed_tests = sum(1 for tr in test_results if tr.passed)
        result.success = result.passed_tests == result.total_tests
    except (UnsupportedLanguageError, StagingError) as e:
        logger.warning("Aborted test run: %s", e)
        _abort(result, e)
    except Exception as e:
        logger.exception("Aborted test run for language %r", request.language)
        _abort(result, e)

    result.total_execution_time_ms = _elapsed_ms(started)
    logger.info(
        "Test run finished: %d/%d passed in %d ms",
        result.passed_tests,
        result.total_tests,
        result.total_execution_time_ms,
    )
    return result


def _run_case(
    executor: CodeExecutor,
    staged: StagedSource,
    case: TestCase,
    timeout: float,
    config: Config,
) -> TestCaseResult:
    started = time.monotonic()
    case_result = TestCaseResult(input=case.input, expected_output=case.expected_output)
    try:
        execution = executor.execute(staged, case.input, timeout, config.toolchain)
        error = describe_failure(execution)
        if error is not None:
            case_result.error = error
        else:
            case_result.actual_output = normalize_output(staged.profile, execution.stdout)
            case_result.passed = outputs_match(case.expected_output, case_result.actual_output)
    except Exception as e:
        logger.warning("Test case raised %s", type(e).__name__)
        case_result.error = str(e)
        case_result.passed = False
    case_result.execution_time_ms = _elapsed_ms(started)
    return case_result


def _abort(result: TestSuiteResult, error: Exception) -> None:
    result.test_results = []
    result.passed_tests = 0
    result.compilation_error = str(error) or type(error).__name__
    result.success = False


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
