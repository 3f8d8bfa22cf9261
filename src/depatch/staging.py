"""Staging copies of dependencies and keeping patches inside them."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable

from .errors import ConfigError, EscapeError, StagingError

__all__ = [
    "check_staging_root",
    "guard_target",
    "is_within",
    "reset_staging_root",
    "stage_dependency",
]

LOGGER = logging.getLogger(__name__)

_COPY_IGNORE = shutil.ignore_patterns("__pycache__", "*.pyc", "*.pyo")


def check_staging_root(staging_root: Path, protected: Iterable[Path]) -> Path:
    """Refuse a staging root that is, or contains, one of the ``protected`` directories.

    The staging root is deleted on every run, so it must never cover a project.
    """
    root = Path(staging_root).resolve()
    for directory in protected:
        resolved = Path(directory).resolve()
        if is_within(resolved, root):
            raise ConfigError(
                f"Staging root {root} would delete the project directory {resolved}",
                details={"staging_root": str(root), "protected": str(resolved)},
            )
    return root


def reset_staging_root(staging_root: Path) -> None:
    """Delete ``staging_root`` and everything below it; a missing root is fine."""
    try:
        shutil.rmtree(staging_root)
    except FileNotFoundError:
        return
    LOGGER.debug("Cleared staging root %s", staging_root)


def stage_dependency(source_root: Path, staging_root: Path) -> Path:
    """Copy ``source_root`` below ``staging_root`` and return the resolved copy.

    The copy is named after the last component of ``source_root``.  Staging
    the same directory twice in one run overwrites the earlier copy.
    """
    source = Path(source_root).resolve()
    name = source.name
    if not name:
        raise StagingError("Dependency folder does not have a name", details={"source": str(source)})

    try:
        staging_root.mkdir(parents=True, exist_ok=True)
        destination = staging_root / name
        shutil.copytree(source, destination, ignore=_COPY_IGNORE, dirs_exist_ok=True)
    except (OSError, shutil.Error) as error:
        raise StagingError(
            f"Unable to stage {source} into {staging_root}: {error}",
            details={"source": str(source), "staging_root": str(staging_root)},
        ) from error

    staged = destination.resolve()
    LOGGER.debug("Staged %s at %s", source, staged)
    return staged


def is_within(path: Path, root: Path) -> bool:
    """Return True when ``path`` resides under ``root``."""
    return path.is_relative_to(root)


def guard_target(staged_root: Path, target: str) -> Path:
    """Resolve a patch target inside ``staged_root`` or abort the run."""
    candidate = (staged_root / target).resolve()
    if not is_within(candidate, staged_root):
        raise EscapeError(
            "Patch file tried to escape dependency folder",
            details={"target": target, "resolved": str(candidate), "staged_root": str(staged_root)},
        )
    return candidate
