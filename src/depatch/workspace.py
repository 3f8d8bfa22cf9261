"""Discovery of the workspace root and its members."""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

from .config import MANIFEST_NAME, PatchSettings, load_manifest, tool_section
from .directives import PatchDirective, parse_directives
from .errors import ConfigError

__all__ = ["Workspace", "WorkspaceMember", "find_workspace_manifest"]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class WorkspaceMember:
    """A project of the workspace that may declare patch directives."""

    name: str
    root: Path
    manifest: Mapping[str, Any] = field(default_factory=dict)

    def directives(self) -> List[PatchDirective]:
        return parse_directives(tool_section(self.manifest).get("patch"))

    def resolve_patch(self, patch: Path) -> Path:
        """Return the location of a declared patch file relative to this member."""
        if patch.is_absolute():
            return patch
        return self.root / patch


@dataclass(slots=True)
class Workspace:
    """The root project plus any ``[tool.uv.workspace]`` members."""

    root: Path
    members: List[WorkspaceMember]
    settings: PatchSettings

    @classmethod
    def discover(cls, start: Path | str | None = None) -> "Workspace":
        manifest_path = find_workspace_manifest(Path(start or Path.cwd()))
        return cls.load(manifest_path)

    @classmethod
    def load(cls, manifest_path: Path) -> "Workspace":
        manifest_path = manifest_path.resolve()
        root = manifest_path.parent
        manifest = load_manifest(manifest_path)
        members = [_member_from_manifest(root, manifest)]
        for member_root in _member_roots(root, manifest):
            member_manifest = load_manifest(member_root / MANIFEST_NAME)
            members.append(_member_from_manifest(member_root, member_manifest))
        LOGGER.debug("Loaded workspace at %s with %d member(s)", root, len(members))
        return cls(root=root, members=members, settings=PatchSettings.from_manifest(manifest))

    @property
    def staging_root(self) -> Path:
        return self.settings.resolve_staging_root(self.root)


def find_workspace_manifest(start: Path) -> Path:
    """Return the nearest ``pyproject.toml`` at or above ``start``."""
    path = start.resolve()
    for candidate in (path, *path.parents):
        manifest = candidate / MANIFEST_NAME
        if manifest.is_file():
            return manifest
    raise ConfigError(f"Unable to locate {MANIFEST_NAME} in {path} or any parent directory")


def _member_from_manifest(root: Path, manifest: Mapping[str, Any]) -> WorkspaceMember:
    project = manifest.get("project")
    name = None
    if isinstance(project, Mapping):
        candidate = project.get("name")
        if isinstance(candidate, str) and candidate.strip():
            name = candidate.strip()
    return WorkspaceMember(name=name or root.name, root=root, manifest=manifest)


def _member_roots(root: Path, manifest: Mapping[str, Any]) -> List[Path]:
    """Expand ``[tool.uv.workspace]`` member globs into member directories."""
    tool = manifest.get("tool")
    uv = tool.get("uv") if isinstance(tool, Mapping) else None
    section = uv.get("workspace") if isinstance(uv, Mapping) else None
    if not isinstance(section, Mapping):
        return []

    includes = _string_list(section.get("members"))
    excludes = _string_list(section.get("exclude"))
    found: Dict[Path, None] = {}
    for pattern in includes:
        for candidate in sorted(root.glob(pattern)):
            if not (candidate / MANIFEST_NAME).is_file():
                continue
            resolved = candidate.resolve()
            if resolved == root or not resolved.is_relative_to(root):
                continue
            relative = resolved.relative_to(root).as_posix()
            if any(fnmatch.fnmatch(relative, exclude) for exclude in excludes):
                continue
            found.setdefault(resolved, None)
    return list(found)


def _string_list(value: Any) -> Sequence[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [entry for entry in value if isinstance(entry, str)]
    return []
