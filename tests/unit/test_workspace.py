from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from depatch.config import PatchSettings
from depatch.errors import ConfigError
from depatch.workspace import Workspace, find_workspace_manifest


def _manifest(directory: Path, body: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_discover_walks_up_to_the_nearest_manifest(tmp_path: Path) -> None:
    manifest = _manifest(
        tmp_path / "app",
        """
        [project]
        name = "app"

        [tool.depatch.patch.requests]
        patches = ["patches/requests.patch"]
        """,
    )
    nested = tmp_path / "app" / "src" / "app"
    nested.mkdir(parents=True)

    workspace = Workspace.discover(nested)

    assert find_workspace_manifest(nested) == manifest.resolve()
    assert workspace.root == manifest.parent.resolve()
    assert [member.name for member in workspace.members] == ["app"]
    directive = workspace.members[0].directives()[0]
    assert directive.name == "requests"
    assert workspace.members[0].resolve_patch(directive.patches[0]) == workspace.root / "patches/requests.patch"


def test_uv_workspace_members_are_expanded(tmp_path: Path) -> None:
    _manifest(
        tmp_path,
        """
        [tool.uv.workspace]
        members = ["packages/*"]
        exclude = ["packages/skipped"]

        [tool.depatch]
        staging-root = "build/patched"
        """,
    )
    _manifest(tmp_path / "packages" / "beta", '[project]\nname = "beta"\n')
    _manifest(tmp_path / "packages" / "alpha", "[tool.depatch.patch.attrs]\npatches = []\n")
    _manifest(tmp_path / "packages" / "skipped", '[project]\nname = "skipped"\n')
    (tmp_path / "packages" / "not-a-project").mkdir()

    workspace = Workspace.discover(tmp_path)

    assert [member.name for member in workspace.members] == [tmp_path.name, "alpha", "beta"]
    assert workspace.staging_root == (tmp_path / "build" / "patched").resolve()
    assert [directive.name for directive in workspace.members[1].directives()] == ["attrs"]


def test_default_staging_root(tmp_path: Path) -> None:
    _manifest(tmp_path, '[project]\nname = "demo"\n')

    workspace = Workspace.discover(tmp_path)

    assert workspace.settings == PatchSettings()
    assert workspace.staging_root == (tmp_path / ".depatch").resolve()


def test_absolute_staging_root_is_kept(tmp_path: Path) -> None:
    settings = PatchSettings.from_manifest({"tool": {"depatch": {"staging-root": str(tmp_path / "abs")}}})

    assert settings.resolve_staging_root(Path("/elsewhere")) == tmp_path / "abs"


def test_invalid_settings_raise_config_error() -> None:
    with pytest.raises(ConfigError, match="Invalid"):
        PatchSettings.from_manifest({"tool": {"depatch": {"staging-root": 5}}})


def test_malformed_manifest_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text("[project\nname = ", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        Workspace.discover(tmp_path)


def test_missing_member_manifest_raises_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Manifest not found"):
        Workspace.load(tmp_path / "pyproject.toml")
