"""Run loop staging dependencies and applying their patch files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Sequence, Tuple

from unidiff import PatchSet, UnidiffParseError

from .applier import HunkApplier, PositionalApplier
from .directives import PatchDirective
from .errors import DiffParseError, PatchFileNotFoundError
from .matcher import MatchedDirective, MatchFailure, match_directive
from .normalize import normalize_hunk_headers
from .resolver import DependencyId, ResolvedDependencyView
from .staging import check_staging_root, guard_target, reset_staging_root, stage_dependency
from .workspace import Workspace, WorkspaceMember

__all__ = [
    "DirectiveOutcome",
    "OutcomeStatus",
    "PatchOrchestrator",
    "RunReport",
    "read_patch_file",
]

LOGGER = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    """How a single directive ended."""

    APPLIED = "APPLIED"
    SKIPPED = "SKIPPED"
    ABORTED = "ABORTED"


@dataclass(slots=True)
class DirectiveOutcome:
    """Result of processing one directive of one workspace member."""

    member: str
    directive: PatchDirective
    status: OutcomeStatus
    reason: str | None = None
    dependency: DependencyId | None = None
    staged_path: Path | None = None
    patched_files: Tuple[Path, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "member": self.member,
            "dependency": self.directive.name,
            "version": str(self.directive.version) if self.directive.version is not None else None,
            "status": self.status.value,
            "reason": self.reason,
            "resolved": str(self.dependency) if self.dependency else None,
            "staged_path": self.staged_path.as_posix() if self.staged_path else None,
            "patched_files": [path.as_posix() for path in self.patched_files],
        }


@dataclass(slots=True)
class RunReport:
    """Ordered outcomes of one run."""

    staging_root: Path
    outcomes: List[DirectiveOutcome] = field(default_factory=list)

    @property
    def patched(self) -> bool:
        return any(outcome.status is OutcomeStatus.APPLIED for outcome in self.outcomes)

    @property
    def aborted(self) -> DirectiveOutcome | None:
        for outcome in self.outcomes:
            if outcome.status is OutcomeStatus.ABORTED:
                return outcome
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "staging_root": self.staging_root.as_posix(),
            "patched": self.patched,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


class PatchOrchestrator:
    """Sequences matching, staging and patching for every workspace member.

    Soft failures become ``SKIPPED`` outcomes.  Hard failures record an
    ``ABORTED`` outcome and propagate; directives finished before the failure
    stay applied.
    """

    def __init__(
        self,
        *,
        members: Sequence[WorkspaceMember],
        view: ResolvedDependencyView,
        staging_root: Path,
        applier: HunkApplier | None = None,
        progress: Callable[[str], None] | None = None,
    ) -> None:
        self._members = list(members)
        self._view = view
        self._staging_root = Path(staging_root)
        self._applier = applier or PositionalApplier()
        self._progress = progress or LOGGER.info
        self.report = RunReport(staging_root=self._staging_root)

    @classmethod
    def for_workspace(
        cls,
        workspace: Workspace,
        view: ResolvedDependencyView,
        *,
        staging_root: Path | None = None,
        applier: HunkApplier | None = None,
        progress: Callable[[str], None] | None = None,
    ) -> "PatchOrchestrator":
        """Convenience constructor used by the CLI."""
        return cls(
            members=workspace.members,
            view=view,
            staging_root=staging_root or workspace.staging_root,
            applier=applier,
            progress=progress,
        )

    def run(self) -> RunReport:
        """Reset the staging root and apply every matched directive."""
        self.report = RunReport(staging_root=self._staging_root)
        check_staging_root(self._staging_root, [member.root for member in self._members])
        reset_staging_root(self._staging_root)
        for member in self._members:
            self._run_member(member)
        return self.report

    def _run_member(self, member: WorkspaceMember) -> None:
        directives = member.directives()
        if not directives:
            LOGGER.debug("Member %s declares no patches", member.name)
            return
        dependencies = self._view.dependencies()
        for directive in directives:
            match = match_directive(directive, dependencies)
            if isinstance(match, MatchFailure):
                self.report.outcomes.append(
                    DirectiveOutcome(
                        member=member.name,
                        directive=directive,
                        status=OutcomeStatus.SKIPPED,
                        reason=match.reason,
                    )
                )
                continue
            outcome = DirectiveOutcome(
                member=member.name,
                directive=directive,
                status=OutcomeStatus.ABORTED,
                dependency=match.dependency,
            )
            self.report.outcomes.append(outcome)
            try:
                self._apply_directive(member, match, outcome)
            except Exception as error:  # noqa: BLE001 - recorded, then re-raised
                outcome.reason = str(error)
                raise
            outcome.status = OutcomeStatus.APPLIED

    def _apply_directive(
        self,
        member: WorkspaceMember,
        match: MatchedDirective,
        outcome: DirectiveOutcome,
    ) -> None:
        source_root = self._view.source_root(match.dependency)
        staged = stage_dependency(source_root, self._staging_root)
        outcome.staged_path = staged
        LOGGER.info("Staged %s at %s", match.dependency, staged)

        patched: List[Path] = []
        for patch in match.directive.patches:
            patch_path = member.resolve_patch(patch)
            patched.extend(self._apply_patch_file(match.directive.name, patch_path, staged))
            outcome.patched_files = tuple(patched)

    def _apply_patch_file(self, name: str, patch_path: Path, staged: Path) -> List[Path]:
        text = normalize_hunk_headers(read_patch_file(patch_path))
        try:
            patch_set = PatchSet.from_string(text)
        except UnidiffParseError as error:
            raise DiffParseError(
                f"Unable to parse patch file {patch_path}: {error}",
                details={"patch": str(patch_path)},
            ) from error
        if not patch_set:
            raise DiffParseError(
                f"Unable to parse patch file {patch_path}: no file diffs found",
                details={"patch": str(patch_path)},
            )

        # Every target is checked before the first write.
        targets = [(diff, guard_target(staged, diff.path)) for diff in patch_set]

        written: List[Path] = []
        for diff, target in targets:
            original = target.read_text(encoding="utf-8")
            target.write_text(self._applier.apply(diff, original), encoding="utf-8")
            written.append(target.relative_to(staged))
            self._progress(f"Patched {name}")
            LOGGER.debug("Applied %d hunk(s) from %s to %s", len(diff), patch_path, target)
        return written


def read_patch_file(path: Path) -> str:
    """Read a declared patch file, distinguishing a missing file from other I/O errors."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as error:
        raise PatchFileNotFoundError(
            f"Unable to find patch file with path: {path}",
            details={"patch": str(path)},
        ) from error
