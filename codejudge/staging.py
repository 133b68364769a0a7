"""Stage submitted source into a private per-request working directory."""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from codejudge.errors import StagingError
from codejudge.languages import LanguageProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StagedSource:
    directory: Path
    source: Path
    profile: LanguageProfile


@contextmanager
def stage(code: str, profile: LanguageProfile, scratch_root: str | None = None) -> Iterator[StagedSource]:
    """Write *code* for *profile* into a fresh directory and yield it.

    The directory is created with ``tempfile.mkdtemp`` under *scratch_root*
    (the system temp dir when ``None``) and removed when the block exits,
    however it exits.
    """
    try:
        if scratch_root:
            Path(scratch_root).mkdir(parents=True, exist_ok=True)
        directory = Path(tempfile.mkdtemp(prefix="code_", dir=scratch_root))
    except OSError as e:
        raise StagingError(f"Could not create working directory: {e}") from e

    try:
        try:
            source = profile.stage(code, directory)
        except OSError as e:
            raise StagingError(f"Could not write source file: {e}") from e
        logger.debug("Staged %s source at %s", profile.name, source)
        yield StagedSource(directory=directory, source=source, profile=profile)
    finally:
        shutil.rmtree(directory, ignore_errors=True)
        logger.debug("Removed working directory %s", directory)
