"""Positional replay of unified diff hunks onto file contents.

The applier trusts the line numbers declared by each hunk header.  Context
lines are never compared with the original text: a hunk whose ranges have
drifted from the file silently produces the wrong result rather than an
error.  Alternative appliers plug in through :class:`HunkApplier`.
"""

from __future__ import annotations

from typing import List, Protocol

from unidiff import PatchedFile
from unidiff.constants import LINE_TYPE_ADDED, LINE_TYPE_CONTEXT, LINE_TYPE_REMOVED

__all__ = ["HunkApplier", "PositionalApplier", "apply_hunks", "split_lines"]


class HunkApplier(Protocol):
    """Turns one file diff plus the original text into the patched text."""

    def apply(self, diff: PatchedFile, text: str) -> str:
        ...


class PositionalApplier:
    """Default applier replaying hunks by their declared starting lines."""

    def apply(self, diff: PatchedFile, text: str) -> str:
        return apply_hunks(diff, text)


def split_lines(text: str) -> List[str]:
    """Split ``text`` on line feeds without producing a trailing empty line."""
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _line_text(value: str) -> str:
    if value.endswith("\n"):
        value = value[:-1]
    if value.endswith("\r"):
        value = value[:-1]
    return value


def apply_hunks(diff: PatchedFile, text: str) -> str:
    """Return ``text`` with every hunk of ``diff`` applied in order."""
    original = split_lines(text)
    output: List[str] = []
    cursor = 0

    for hunk in diff:
        start = hunk.source_start - 1
        if cursor < start:
            output.extend(original[cursor:start])
            cursor = start
        for line in hunk:
            if line.line_type == LINE_TYPE_CONTEXT:
                # A hunk may carry more context than the file has left.
                if cursor < len(original):
                    output.append(original[cursor])
                cursor += 1
            elif line.line_type == LINE_TYPE_ADDED:
                output.append(_line_text(line.value))
            elif line.line_type == LINE_TYPE_REMOVED:
                cursor += 1

    output.extend(original[cursor:])
    if text.endswith("\n"):
        output.append("")
    return "\n".join(output)
