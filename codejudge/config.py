"""Configuration for codejudge, loaded from environment variables."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field

DEFAULT_TOOLCHAIN = {
    "python": "python3",
    "node": "node",
    "javac": "javac",
    "java": "java",
    "gcc": "gcc",
    "g++": "g++",
    "dotnet": "dotnet",
}


@dataclass
class Config:
    scratch_dir: str = field(default_factory=tempfile.gettempdir)
    default_timeout: int = 5  # seconds
    max_timeout: int = 30
    default_memory_mb: int = 256
    log_level: str = "INFO"
    toolchain: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TOOLCHAIN))

    def __post_init__(self) -> None:
        level = str(self.log_level).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {self.log_level!r}")
        self.log_level = level

    def clamp_timeout(self, timeout: float | None) -> float:
        """Return *timeout*, or the default when unset, capped at max_timeout."""
        if timeout is None or timeout <= 0:
            timeout = self.default_timeout
        return min(timeout, self.max_timeout)

    @classmethod
    def from_env(cls, **overrides) -> Config:
        kwargs: dict = {}
        env_map: dict[str, tuple[str, type]] = {
            "CODEJUDGE_SCRATCH_DIR": ("scratch_dir", str),
            "CODEJUDGE_DEFAULT_TIMEOUT": ("default_timeout", int),
            "CODEJUDGE_MAX_TIMEOUT": ("max_timeout", int),
            "CODEJUDGE_DEFAULT_MEMORY_MB": ("default_memory_mb", int),
            "CODEJUDGE_LOG_LEVEL": ("log_level", str),
        }
        for env_var, (field_name, conv) in env_map.items():
            val = os.environ.get(env_var)
            if val is not None:
                try:
                    kwargs[field_name] = conv(val)
                except ValueError:
                    raise ValueError(f"{env_var} must be {conv.__name__}, got {val!r}") from None

        # CODEJUDGE_PYTHON, CODEJUDGE_GXX, ... override single toolchain entries
        toolchain = dict(DEFAULT_TOOLCHAIN)
        for tool in DEFAULT_TOOLCHAIN:
            env_var = "CODEJUDGE_" + tool.upper().replace("+", "X")
            val = os.environ.get(env_var)
            if val:
                toolchain[tool] = val
        toolchain.update(overrides.pop("toolchain", None) or {})
        kwargs["toolchain"] = toolchain

        kwargs.update(overrides)
        return cls(**kwargs)
