"""Hunk header normalisation applied before handing patch text to the parser."""

from __future__ import annotations

import re
from typing import Pattern

__all__ = ["HUNK_HEADER_PATTERN", "normalize_hunk_headers"]

# Some diff tools append the enclosing function or a context line after the
# closing ``@@``; only the bare range header is kept.
HUNK_HEADER_PATTERN: Pattern[str] = re.compile(
    r"^(?P<range_begin>@@ -[0-9]+,[0-9]+ \+[0-9]+)(?P<range_end>,[0-9]+)? @@.*\n",
    re.MULTILINE,
)
_HUNK_HEADER_REPLACEMENT = r"\g<range_begin>\g<range_end> @@\n"


def normalize_hunk_headers(text: str) -> str:
    """Strip trailing section text from every hunk header line in ``text``."""
    return HUNK_HEADER_PATTERN.sub(_HUNK_HEADER_REPLACEMENT, text)
