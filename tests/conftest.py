from __future__ import annotations

import sys
import textwrap
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from depatch.resolver import StaticDependencyView  # noqa: E402


def write_patch(path: Path, lines: Sequence[str]) -> Path:
    """Write ``lines`` as a newline-terminated patch file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@dataclass(slots=True)
class PatchWorkspace:
    """Fixture payload: a project root, a fake dependency and its view."""

    root: Path
    dependency_root: Path
    view: StaticDependencyView

    @property
    def staging_root(self) -> Path:
        return self.root / ".depatch"

    def write_manifest(self, body: str, *, member: Path | None = None) -> Path:
        target = (member or self.root) / "pyproject.toml"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
        return target

    def write_patch(self, relative: str, lines: Sequence[str], *, member: Path | None = None) -> Path:
        return write_patch((member or self.root) / relative, lines)


_GREET_PATCH = [
    "--- core.py\t2024-01-01 10:00:00.000000000 +0000",
    "+++ core.py\t2024-01-01 10:00:10.000000000 +0000",
    "@@ -1,2 +1,2 @@ def greet():",
    " def greet():",
    "-    return 'hello'",
    "+    return 'patched'",
]


@pytest.fixture()
def greet_patch() -> list[str]:
    """Patch turning ``greet`` into returning ``patched``."""
    return list(_GREET_PATCH)


@pytest.fixture()
def patch_workspace(tmp_path: Path) -> PatchWorkspace:
    """Create a workspace root plus an installed-looking ``fancylib`` source tree."""

    site = tmp_path / "site"
    package = site / "fancylib"
    package.mkdir(parents=True)
    (package / "__init__.py").write_text("from .core import greet\n", encoding="utf-8")
    (package / "core.py").write_text("def greet():\n    return 'hello'\n", encoding="utf-8")
    (package / "data").mkdir()
    (package / "data" / "notes.txt").write_text("first\nsecond\n", encoding="utf-8")
    (package / "__pycache__").mkdir()
    (package / "__pycache__" / "core.cpython-312.pyc").write_bytes(b"\x00")

    root = tmp_path / "workspace"
    root.mkdir()

    view = StaticDependencyView()
    view.add("fancylib", "1.2.0", package)
    return PatchWorkspace(root=root, dependency_root=package, view=view)
