"""Tests for the test harness."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from codejudge.errors import StagingError
from codejudge.harness import outputs_match, run_tests
from codejudge.models import ExecutionRequest, ExecutionResult, TestCase

ECHO = "print(input())"


def _request(code: str = ECHO, cases: list[tuple[str, str]] | None = None, **kwargs) -> ExecutionRequest:
    cases = cases if cases is not None else [("5", "5")]
    return ExecutionRequest(
        code=code,
        language=kwargs.pop("language", "python"),
        test_cases=[TestCase(input=i, expected_output=e) for i, e in cases],
        **kwargs,
    )


def _ok(stdout: str) -> ExecutionResult:
    return ExecutionResult(stdout=stdout, stderr="", exit_code=0)


class TestOutputsMatch:
    def test_exact(self):
        assert outputs_match("42", "42")

    def test_trims_both_ends(self):
        assert outputs_match("  42\n", "42  ")

    def test_case_sensitive(self):
        assert not outputs_match("Yes", "yes")

    def test_no_internal_whitespace_normalization(self):
        assert not outputs_match("1 2", "1  2")
        assert not outputs_match("1\n2", "1 2")


class TestRunTestsWithPython:
    def test_echo_passes(self, config):
        suite = run_tests(_request(), config=config)
        assert suite.success
        assert suite.total_tests == 1
        assert suite.passed_tests == 1
        assert suite.compilation_error is None
        case = suite.test_results[0]
        assert case.passed
        assert case.actual_output == "5"
        assert case.error is None

    def test_partial_pass_keeps_order(self, config):
        suite = run_tests(_request(cases=[("1", "1"), ("2", "9")]), config=config)
        assert suite.passed_tests == 1
        assert suite.total_tests == 2
        assert not suite.success
        assert [tr.input for tr in suite.test_results] == ["1", "2"]
        assert [tr.passed for tr in suite.test_results] == [True, False]
        assert suite.test_results[1].actual_output == "2"
        assert suite.test_results[1].expected_output == "9"

    def test_timeout_case(self, config):
        code = "import time\ntime.sleep(30)\nprint(input())"
        suite = run_tests(_request(code=code, timeout_seconds=1), config=config)
        case = suite.test_results[0]
        assert case.error == "Execution timed out"
        assert not case.passed
        assert not suite.success
        assert suite.compilation_error is None

    def test_runtime_error_does_not_abort_remaining_cases(self, config):
        code = "n = int(input())\nif n == 0:\n    raise ZeroDivisionError('zero')\nprint(10 // n)"
        suite = run_tests(_request(code=code, cases=[("0", "x"), ("5", "2")]), config=config)
        assert len(suite.test_results) == 2
        assert "ZeroDivisionError" in suite.test_results[0].error
        assert not suite.test_results[0].passed
        assert suite.test_results[1].passed
        assert suite.passed_tests == 1

    def test_stderr_output_fails_case(self, config):
        code = "import sys\nsys.stderr.write('careful\\n')\nprint(input())"
        suite = run_tests(_request(code=code), config=config)
        assert suite.test_results[0].error == "careful"
        assert not suite.test_results[0].passed

    def test_staged_files_are_removed(self, config):
        run_tests(_request(), config=config)
        assert list(Path(config.scratch_dir).iterdir()) == []

    def test_records_times(self, config):
        suite = run_tests(_request(cases=[("1", "1"), ("2", "2")]), config=config)
        assert suite.total_execution_time_ms >= 0
        assert all(tr.execution_time_ms >= 0 for tr in suite.test_results)
        assert suite.total_execution_time_ms >= max(tr.execution_time_ms for tr in suite.test_results)

    def test_concurrent_requests_do_not_interfere(self, config):
        code = "import time\nx = input()\ntime.sleep(0.2)\nprint(x)"
        requests = [_request(code=code, cases=[(str(i), str(i)), (str(i) * 2, str(i) * 2)]) for i in range(1, 5)]
        with ThreadPoolExecutor(max_workers=4) as pool:
            suites = list(pool.map(lambda r: run_tests(r, config=config), requests))
        for i, suite in enumerate(suites, start=1):
            assert suite.success, suite
            assert [tr.actual_output for tr in suite.test_results] == [str(i), str(i) * 2]


class TestAbortedRuns:
    def test_unsupported_language_writes_nothing(self, config):
        executor = MagicMock()
        with patch("codejudge.harness.stage") as mock_stage:
            suite = run_tests(_request(language="ruby", cases=[("1", "1"), ("2", "2")]), executor, config)
        mock_stage.assert_not_called()
        executor.execute.assert_not_called()
        assert not suite.success
        assert suite.test_results == []
        assert suite.total_tests == 2
        assert suite.passed_tests == 0
        assert "ruby" in suite.compilation_error

    def test_staging_failure_aborts(self, config):
        executor = MagicMock()
        with patch("codejudge.harness.stage", side_effect=StagingError("disk full")):
            suite = run_tests(_request(cases=[("1", "1"), ("2", "2"), ("3", "3")]), executor, config)
        executor.execute.assert_not_called()
        assert suite.compilation_error == "disk full"
        assert suite.test_results == []
        assert suite.total_tests == 3
        assert not suite.success
        assert suite.total_execution_time_ms >= 0


class TestWithMockExecutor:
    def test_each_case_runs_once_in_order(self, config):
        executor = MagicMock()
        executor.execute.side_effect = [_ok("a\n"), _ok("b\n"), _ok("c\n")]
        suite = run_tests(_request(cases=[("1", "a"), ("2", "b"), ("3", "x")]), executor, config)
        inputs = [call.args[1] for call in executor.execute.call_args_list]
        assert inputs == ["1", "2", "3"]
        assert suite.passed_tests == 2
        assert [tr.actual_output for tr in suite.test_results] == ["a", "b", "c"]

    def test_all_cases_share_one_staged_source(self, config):
        executor = MagicMock()
        executor.execute.return_value = _ok("1")
        run_tests(_request(cases=[("1", "1"), ("1", "1")]), executor, config)
        staged = {id(call.args[0]) for call in executor.execute.call_args_list}
        assert len(staged) == 1

    def test_timeout_is_clamped_to_config(self, config):
        executor = MagicMock()
        executor.execute.return_value = _ok("5")
        config.max_timeout = 3
        run_tests(_request(timeout_seconds=600), executor, config)
        assert executor.execute.call_args.args[2] == 3

    def test_executor_exception_is_contained_to_its_case(self, config):
        executor = MagicMock()
        executor.execute.side_effect = [RuntimeError("spawn failed"), _ok("2")]
        suite = run_tests(_request(cases=[("1", "1"), ("2", "2")]), executor, config)
        assert suite.test_results[0].error == "spawn failed"
        assert suite.test_results[1].passed
        assert suite.compilation_error is None

    def test_nonzero_exit_without_stderr_fails(self, config):
        executor = MagicMock()
        executor.execute.return_value = ExecutionResult(stdout="5", stderr="", exit_code=1)
        suite = run_tests(_request(), executor, config)
        assert suite.test_results[0].error == "Process exited with code 1"
        assert suite.test_results[0].actual_output is None

    @pytest.mark.parametrize("outcomes", [[True, True], [True, False], [False, False]])
    def test_counts_invariants(self, config, outcomes):
        executor = MagicMock()
        executor.execute.side_effect = [_ok("y" if ok else "n") for ok in outcomes]
        suite = run_tests(_request(cases=[("", "y")] * len(outcomes)), executor, config)
        assert suite.total_tests == len(outcomes)
        assert 0 <= suite.passed_tests <= suite.total_tests
        assert suite.passed_tests == sum(outcomes)
        assert suite.success == all(outcomes)
