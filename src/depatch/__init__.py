"""Stage third-party dependencies and apply local unified-diff patches to them."""

from .applier import HunkApplier, PositionalApplier, apply_hunks
from .directives import PatchDirective, parse_directives
from .errors import (
    ConfigError,
    DependencyLookupError,
    DiffParseError,
    EscapeError,
    PatchError,
    PatchFileNotFoundError,
    StagingError,
)
from .matcher import MatchedDirective, match_directives
from .normalize import normalize_hunk_headers
from .orchestrator import DirectiveOutcome, OutcomeStatus, PatchOrchestrator, RunReport
from .resolver import DependencyId, InstalledDistributions, ResolvedDependencyView, StaticDependencyView
from .staging import check_staging_root, guard_target, reset_staging_root, stage_dependency
from .workspace import Workspace, WorkspaceMember

__all__ = [
    "ConfigError",
    "DependencyId",
    "DependencyLookupError",
    "DiffParseError",
    "DirectiveOutcome",
    "EscapeError",
    "HunkApplier",
    "InstalledDistributions",
    "MatchedDirective",
    "OutcomeStatus",
    "PatchDirective",
    "PatchError",
    "PatchFileNotFoundError",
    "PatchOrchestrator",
    "PositionalApplier",
    "ResolvedDependencyView",
    "RunReport",
    "StagingError",
    "StaticDependencyView",
    "Workspace",
    "WorkspaceMember",
    "apply_hunks",
    "check_staging_root",
    "guard_target",
    "match_directives",
    "normalize_hunk_headers",
    "parse_directives",
    "reset_staging_root",
    "stage_dependency",
]
