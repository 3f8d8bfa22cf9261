"""Patch directives declared under ``[tool.depatch.patch]``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Sequence, Tuple

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.utils import canonicalize_name
from packaging.version import InvalidVersion, Version

__all__ = ["PatchDirective", "caret_range", "parse_directives", "parse_directive"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PatchDirective:
    """A dependency name, an optional version constraint and its patch files."""

    name: str
    version: SpecifierSet | None = None
    patches: Tuple[Path, ...] = ()

    @property
    def canonical_name(self) -> str:
        return canonicalize_name(self.name)

    def describe(self) -> str:
        if self.version is None:
            return self.name
        return f"{self.name} ({self.version})"


def parse_directives(table: Mapping[str, Any] | None) -> List[PatchDirective]:
    """Parse every entry of a ``[tool.depatch.patch]`` table in declared order."""
    if not table:
        return []
    if not isinstance(table, Mapping):
        LOGGER.warning("The patch section must be a table, got: %r", table)
        return []
    directives: List[PatchDirective] = []
    for name, entry in table.items():
        directive = parse_directive(str(name), entry)
        if directive is not None:
            directives.append(directive)
    return directives


def parse_directive(name: str, entry: Any) -> PatchDirective | None:
    """Build a directive from one entry; malformed pieces are dropped with a warning."""
    if not isinstance(entry, Mapping):
        LOGGER.warning("Entry %s must contain a table.", name)
        return None

    version: SpecifierSet | None = None
    raw_version = entry.get("version")
    if raw_version is not None:
        version = _parse_version(raw_version)

    patches: Tuple[Path, ...] = ()
    raw_patches = entry.get("patches")
    if isinstance(raw_patches, Sequence) and not isinstance(raw_patches, str):
        patches = _parse_patches(raw_patches)
    elif raw_patches is not None:
        LOGGER.warning("Patches of %s must be an array, got: %r", name, raw_patches)

    return PatchDirective(name=name, version=version, patches=patches)


def _parse_version(raw: Any) -> SpecifierSet | None:
    if isinstance(raw, str):
        try:
            return SpecifierSet(raw)
        except InvalidSpecifier:
            pass
        try:
            return caret_range(Version(raw.strip()))
        except InvalidVersion:
            pass
    LOGGER.warning("Version must be a valid PEP 440 specifier: %r", raw)
    return None


def caret_range(version: Version) -> SpecifierSet:
    """Return the compatible range a bare version stands for.

    The left-most non-zero release component is fixed, so ``2.31`` allows
    ``>=2.31,<3``, ``0.4.1`` allows ``>=0.4.1,<0.5`` and ``0.0.3`` allows
    ``>=0.0.3,<0.0.4``.
    """
    release = version.release
    for index, component in enumerate(release):
        if component:
            upper = release[:index] + (component + 1,)
            break
    else:
        upper = release[:-1] + (release[-1] + 1,)
    epoch = f"{version.epoch}!" if version.epoch else ""
    bound = ".".join(str(part) for part in upper)
    return SpecifierSet(f">={version.public},<{epoch}{bound}")


def _parse_patches(entries: Sequence[Any]) -> Tuple[Path, ...]:
    patches: List[Path] = []
    for entry in entries:
        if isinstance(entry, str):
            patches.append(Path(entry))
        else:
            LOGGER.warning("Patch entry must be a string: %r", entry)
    return tuple(patches)
