"""CLI interface for codejudge."""

from __future__ import annotations

import argparse
import json
import sys

from codejudge.config import Config
from codejudge.harness import run_tests
from codejudge.interactive import run_once
from codejudge.languages import supported_languages
from codejudge.logging_setup import configure_logging
from codejudge.models import ExecutionRequest, TestCase


def load_test_cases(path: str) -> list[TestCase]:
    """Load test cases from a JSON file.

    Accepts either a bare list of ``{input, expectedOutput}`` objects or an
    object with a ``testCases`` list.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("testCases", [])
    return [TestCase.from_dict(tc) for tc in data]


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="codejudge",
        description="codejudge: run submitted code against input or test cases",
    )
    parser.add_argument("--log-level", type=str, default=None, help="Logging level (default from env)")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run code once with ad hoc input")
    run_parser.add_argument("source", help="Path to the source file ('-' for stdin)")
    run_parser.add_argument("-l", "--language", required=True, help=f"One of: {', '.join(supported_languages())}")
    input_group = run_parser.add_mutually_exclusive_group()
    input_group.add_argument("--input", type=str, default=None, help="Text fed to the program's stdin")
    input_group.add_argument("--input-file", type=str, default=None, help="File fed to the program's stdin")
    run_parser.add_argument("--timeout", type=int, default=None, help="Wall-clock timeout in seconds")

    test_parser = subparsers.add_parser("test", help="Run code against a batch of test cases")
    test_parser.add_argument("source", help="Path to the source file ('-' for stdin)")
    test_parser.add_argument("-l", "--language", required=True, help=f"One of: {', '.join(supported_languages())}")
    test_parser.add_argument("--cases", required=True, help="Path to a JSON file of test cases")
    test_parser.add_argument("--timeout", type=int, default=None, help="Wall-clock timeout per case in seconds")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", type=str, default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=5000)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    overrides = {}
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    try:
        config = Config.from_env(**overrides)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    configure_logging(config.log_level)

    if args.command == "serve":
        from codejudge.web.app import create_app

        create_app(config).run(host=args.host, port=args.port, threaded=True)
        return

    code = _read_source(args.source)
    timeout = args.timeout if args.timeout is not None else config.default_timeout

    if args.command == "run":
        stdin_text = args.input
        if args.input_file is not None:
            with open(args.input_file, encoding="utf-8") as f:
                stdin_text = f.read()
        request = ExecutionRequest(
            code=code,
            language=args.language,
            input=stdin_text,
            timeout_seconds=timeout,
            memory_limit_mb=config.default_memory_mb,
        )
        result = run_once(request, config=config)
        if result.output:
            print(result.output)
        if not result.success:
            print(result.compilation_error or result.error, file=sys.stderr)
            sys.exit(1)
        return

    request = ExecutionRequest(
        code=code,
        language=args.language,
        test_cases=load_test_cases(args.cases),
        timeout_seconds=timeout,
        memory_limit_mb=config.default_memory_mb,
    )
    suite = run_tests(request, config=config)
    print(json.dumps(suite.to_dict(), indent=2))
    if not suite.success:
        print(f"{suite.passed_tests}/{suite.total_tests} test cases passed.", file=sys.stderr)
        sys.exit(1)
