"""Selection of the single resolved dependency each directive refers to."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .directives import PatchDirective
from .resolver import DependencyId, ResolvedDependencyView

__all__ = [
    "MatchFailure",
    "MatchedDirective",
    "find_candidates",
    "match_directive",
    "match_directives",
]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MatchedDirective:
    """A directive paired with exactly one resolved dependency."""

    directive: PatchDirective
    dependency: DependencyId


@dataclass(frozen=True, slots=True)
class MatchFailure:
    """A directive that matched no dependency or more than one."""

    directive: PatchDirective
    reason: str
    candidates: Tuple[DependencyId, ...] = ()


def find_candidates(directive: PatchDirective, dependencies: Sequence[DependencyId]) -> List[DependencyId]:
    """Return every dependency satisfying the directive's name and version."""
    candidates: List[DependencyId] = []
    for dependency in dependencies:
        if dependency.canonical_name != directive.canonical_name:
            continue
        if directive.version is not None and dependency.version not in directive.version:
            continue
        candidates.append(dependency)
    return candidates


def match_directive(
    directive: PatchDirective,
    dependencies: Sequence[DependencyId],
) -> MatchedDirective | MatchFailure:
    """Pair ``directive`` with its single candidate, or explain why there is none."""
    candidates = find_candidates(directive, dependencies)
    if len(candidates) == 1:
        return MatchedDirective(directive=directive, dependency=candidates[0])
    if candidates:
        reason = (
            f"There are multiple versions of {directive.name} available. "
            "Try specifying a version."
        )
    else:
        reason = f"Unable to find package {directive.name} in dependencies"
    LOGGER.warning("%s", reason)
    return MatchFailure(directive=directive, reason=reason, candidates=tuple(candidates))


def match_directives(
    directives: Sequence[PatchDirective],
    view: ResolvedDependencyView,
) -> Tuple[List[MatchedDirective], List[MatchFailure]]:
    """Match each directive against the resolved set.

    Directives without a unique match are reported as failures and left out;
    they never stop the remaining directives from being matched.
    """
    dependencies = view.dependencies()
    matched: List[MatchedDirective] = []
    failures: List[MatchFailure] = []
    for directive in directives:
        result = match_directive(directive, dependencies)
        if isinstance(result, MatchFailure):
            failures.append(result)
        else:
            matched.append(result)
    return matched, failures
