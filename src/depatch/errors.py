"""Exception types raised by the patch pipeline.

Every hard failure derives from :class:`PatchError` so the CLI can surface
them uniformly.  Soft failures (unmatched directives, malformed entries) never
raise; they are logged and reported as outcomes instead.
"""

from __future__ import annotations

from typing import Any, Mapping


class PatchError(RuntimeError):
    """Raised when a run cannot continue."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = dict(details or {})


class ConfigError(PatchError):
    """Raised when a workspace manifest is missing or malformed."""


class DependencyLookupError(PatchError):
    """Raised when a resolved dependency has no usable source directory."""


class StagingError(PatchError):
    """Raised when a dependency cannot be copied into the staging root."""


class PatchFileNotFoundError(PatchError):
    """Raised when a declared patch file does not exist."""


class DiffParseError(PatchError):
    """Raised when a patch file is not a valid unified diff."""


class EscapeError(PatchError):
    """Raised when a patch targets a path outside its staged dependency."""
