"""Flask JSON API for codejudge."""

from __future__ import annotations

import logging

from flask import Blueprint, Flask, current_app, jsonify, request

from codejudge.config import Config
from codejudge.errors import ValidationError
from codejudge.harness import run_tests
from codejudge.interactive import run_once
from codejudge.languages import supported_languages
from codejudge.logging_setup import configure_logging
from codejudge.models import ExecutionRequest

logger = logging.getLogger(__name__)

api = Blueprint("compiler", __name__, url_prefix="/api/compiler")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_request(require_test_cases: bool) -> ExecutionRequest:
    """Validate the JSON body and turn it into an ExecutionRequest."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    if not str(data.get("code") or "").strip():
        raise ValidationError("Code cannot be empty")
    if not str(data.get("language") or "").strip():
        raise ValidationError("Language cannot be empty")

    test_cases = data.get("testCases")
    if require_test_cases:
        if not isinstance(test_cases, list) or not test_cases:
            raise ValidationError("At least one test case is required")
        if not all(isinstance(tc, dict) for tc in test_cases):
            raise ValidationError("Each test case must be an object")
    elif test_cases is not None and not isinstance(test_cases, list):
        raise ValidationError("testCases must be a list")

    try:
        parsed = ExecutionRequest.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid request field: {e}") from e

    if parsed.timeout_seconds <= 0:
        raise ValidationError("timeoutSeconds must be positive")
    if parsed.memory_limit_mb <= 0:
        raise ValidationError("memoryLimitMB must be positive")
    return parsed


def _config() -> Config:
    return current_app.config["CODEJUDGE"]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@api.route("/run-code", methods=["POST"])
def run_code():
    parsed = _parse_request(require_test_cases=False)
    result = run_once(parsed, config=_config())
    return jsonify(result.to_dict())


@api.route("/run-tests", methods=["POST"])
def run_test_cases():
    parsed = _parse_request(require_test_cases=True)
    result = run_tests(parsed, config=_config())
    return jsonify(result.to_dict())


@api.route("/languages", methods=["GET"])
def languages():
    return jsonify({"languages": supported_languages()})


@api.errorhandler(ValidationError)
def handle_validation_error(e: ValidationError):
    logger.info("Rejected request: %s", e)
    return jsonify({"success": False, "compilationError": str(e)}), 400


def create_app(config: Config | None = None) -> Flask:
    config = config or Config.from_env()
    configure_logging(config.log_level)

    app = Flask(__name__)
    app.config["CODEJUDGE"] = config
    app.register_blueprint(api)
    return app
