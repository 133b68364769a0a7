"""Shared fixtures: a Config that runs Python submissions with this interpreter."""

from __future__ import annotations

import sys

import pytest

from codejudge.config import Config


@pytest.fixture
def config(tmp_path) -> Config:
    scratch = tmp_path / "scratch"
    return Config(scratch_dir=str(scratch), toolchain={"python": sys.executable})


@pytest.fixture
def scratch_dir(config) -> str:
    return config.scratch_dir
