"""Loading of ``pyproject.toml`` manifests and the ``[tool.depatch]`` settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - fallback for earlier versions
    import tomli as tomllib  # type: ignore[assignment]

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

__all__ = [
    "MANIFEST_NAME",
    "TOOL_NAME",
    "PatchSettings",
    "load_manifest",
    "tool_section",
]

MANIFEST_NAME = "pyproject.toml"
TOOL_NAME = "depatch"
DEFAULT_STAGING_ROOT = Path(".depatch")


class PatchSettings(BaseModel):
    """Workspace-wide options read from the root manifest."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    staging_root: Path = Field(default=DEFAULT_STAGING_ROOT, alias="staging-root")

    @classmethod
    def from_manifest(cls, manifest: Mapping[str, Any]) -> "PatchSettings":
        section = tool_section(manifest)
        try:
            return cls.model_validate(section)
        except ValidationError as error:
            raise ConfigError(f"Invalid [tool.{TOOL_NAME}] settings: {error}") from error

    def resolve_staging_root(self, workspace_root: Path) -> Path:
        """Return the staging root as an absolute path."""
        if self.staging_root.is_absolute():
            return self.staging_root
        return (workspace_root / self.staging_root).resolve()


def load_manifest(path: Path) -> Dict[str, Any]:
    """Parse a ``pyproject.toml`` file into a dictionary."""
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as error:
        raise ConfigError(f"Manifest not found: {path}") from error
    except tomllib.TOMLDecodeError as error:
        raise ConfigError(f"Failed to parse {path}: {error}") from error


def tool_section(manifest: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return the ``[tool.depatch]`` table, or an empty mapping."""
    tool = manifest.get("tool")
    if not isinstance(tool, Mapping):
        return {}
    section = tool.get(TOOL_NAME)
    if not isinstance(section, Mapping):
        return {}
    return section
