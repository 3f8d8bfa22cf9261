"""Views over the resolved dependency set of a Python environment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib import metadata
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Protocol, Sequence, Tuple

from packaging.utils import canonicalize_name
from packaging.version import InvalidVersion, Version

from .errors import DependencyLookupError

__all__ = [
    "DependencyId",
    "InstalledDistributions",
    "ResolvedDependencyView",
    "StaticDependencyView",
]

LOGGER = logging.getLogger(__name__)

_METADATA_SUFFIXES: tuple[str, ...] = (".dist-info", ".egg-info", ".data")
_IGNORED_TOP_LEVEL = {"..", "__pycache__", "bin", "Scripts"}


@dataclass(frozen=True, slots=True)
class DependencyId:
    """Identity of one resolved dependency."""

    name: str
    version: Version

    @property
    def canonical_name(self) -> str:
        return canonicalize_name(self.name)

    def __str__(self) -> str:
        return f"{self.name} {self.version}"


class ResolvedDependencyView(Protocol):
    """Enumerates resolved dependencies and locates their sources on disk."""

    def dependencies(self) -> Sequence[DependencyId]:
        ...

    def source_root(self, dependency: DependencyId) -> Path:
        ...


class StaticDependencyView:
    """In-memory view over a fixed mapping of dependencies to source roots."""

    def __init__(self, entries: Mapping[DependencyId, Path] | None = None) -> None:
        self._entries: Dict[DependencyId, Path] = dict(entries or {})

    def add(self, name: str, version: str, root: Path) -> DependencyId:
        dependency = DependencyId(name=name, version=Version(version))
        self._entries[dependency] = Path(root)
        return dependency

    def dependencies(self) -> Sequence[DependencyId]:
        return list(self._entries)

    def source_root(self, dependency: DependencyId) -> Path:
        try:
            return self._entries[dependency]
        except KeyError as error:
            raise DependencyLookupError(f"Unknown dependency: {dependency}") from error


class InstalledDistributions:
    """View over the distributions installed on ``sys.path`` or given site directories.

    The source root of a distribution is its top-level package directory,
    which is what a staged copy has to shadow on ``sys.path``.  When the same
    name and version is installed in several locations the first one found
    wins, mirroring import precedence.
    """

    def __init__(self, paths: Sequence[Path | str] | None = None) -> None:
        self._paths = [str(path) for path in paths] if paths else None
        self._distributions: Dict[DependencyId, metadata.Distribution] | None = None

    def _load(self) -> Dict[DependencyId, metadata.Distribution]:
        if self._distributions is not None:
            return self._distributions
        if self._paths is None:
            found: Iterable[metadata.Distribution] = metadata.distributions()
        else:
            found = metadata.distributions(path=self._paths)
        loaded: Dict[DependencyId, metadata.Distribution] = {}
        for distribution in found:
            name = distribution.metadata["Name"]
            raw_version = distribution.version
            if not name or not raw_version:
                continue
            try:
                version = Version(raw_version)
            except InvalidVersion:
                LOGGER.debug("Skipping %s with invalid version %r", name, raw_version)
                continue
            loaded.setdefault(DependencyId(name=name, version=version), distribution)
        self._distributions = loaded
        LOGGER.debug("Resolved %d installed distribution(s)", len(loaded))
        return loaded

    def dependencies(self) -> Sequence[DependencyId]:
        return list(self._load())

    def source_root(self, dependency: DependencyId) -> Path:
        distribution = self._load().get(dependency)
        if distribution is None:
            raise DependencyLookupError(f"Unknown dependency: {dependency}")
        preferred = dependency.canonical_name.replace("-", "_")
        candidates = sorted(
            _top_level_names(distribution),
            key=lambda name: (name.lower() != preferred, name),
        )
        for name in candidates:
            candidate = Path(str(distribution.locate_file(name)))
            if candidate.is_dir():
                return candidate.resolve()
        raise DependencyLookupError(
            f"Unable to locate a package directory for {dependency}",
            details={"candidates": candidates},
        )


def _top_level_names(distribution: metadata.Distribution) -> List[str]:
    """Return the top-level import names shipped by ``distribution``."""
    declared = distribution.read_text("top_level.txt")
    if declared:
        names = [line.strip() for line in declared.splitlines() if line.strip()]
        if names:
            return names

    seen: Dict[str, None] = {}
    for entry in distribution.files or ():
        parts: Tuple[str, ...] = tuple(Path(str(entry)).parts)
        if len(parts) < 2:
            continue
        head = parts[0]
        if head in _IGNORED_TOP_LEVEL or head.endswith(_METADATA_SUFFIXES):
            continue
        seen.setdefault(head, None)
    return list(seen)
