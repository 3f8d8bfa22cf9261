from __future__ import annotations

from pathlib import Path

import yaml
from typer.testing import CliRunner

from depatch.cli import app

MANIFEST = """
[project]
name = "app"

[tool.depatch.patch.fancylib]
patches = ["patches/greet.patch"]
"""


def _use_view(monkeypatch, view) -> None:
    monkeypatch.setattr("depatch.cli._build_view", lambda site_packages: view)


def test_apply_patches_and_reports_progress(patch_workspace, greet_patch, monkeypatch) -> None:
    _use_view(monkeypatch, patch_workspace.view)
    patch_workspace.write_manifest(MANIFEST)
    patch_workspace.write_patch("patches/greet.patch", greet_patch)

    runner = CliRunner()
    result = runner.invoke(app, ["apply", "--path", str(patch_workspace.root)], catch_exceptions=False)

    assert result.exit_code == 0, result.output
    assert "Patched fancylib" in result.output
    assert "No patches found" not in result.output
    staged = patch_workspace.staging_root / "fancylib" / "core.py"
    assert "patched" in staged.read_text(encoding="utf-8")


def test_apply_without_matches_prints_no_patches_found(patch_workspace, monkeypatch) -> None:
    _use_view(monkeypatch, patch_workspace.view)
    patch_workspace.write_manifest(
        """
        [tool.depatch.patch.missinglib]
        patches = ["patches/missing.patch"]
        """
    )

    result = CliRunner().invoke(app, ["apply", "--path", str(patch_workspace.root)], catch_exceptions=False)

    assert result.exit_code == 0, result.output
    assert "No patches found" in result.output
    assert not (patch_workspace.staging_root / "fancylib").exists()


def test_apply_escape_exits_with_failure(patch_workspace, monkeypatch) -> None:
    _use_view(monkeypatch, patch_workspace.view)
    patch_workspace.write_manifest(MANIFEST)
    patch_workspace.write_patch(
        "patches/greet.patch",
        ["--- ../escape.txt", "+++ ../escape.txt", "@@ -1,1 +1,1 @@", "-a", "+b"],
    )

    result = CliRunner().invoke(app, ["apply", "--path", str(patch_workspace.root)])

    assert result.exit_code == 1
    assert "escape dependency folder" in result.output


def test_apply_writes_yaml_report_with_staging_override(
    patch_workspace, greet_patch, monkeypatch, tmp_path: Path
) -> None:
    _use_view(monkeypatch, patch_workspace.view)
    patch_workspace.write_manifest(MANIFEST)
    patch_workspace.write_patch("patches/greet.patch", greet_patch)
    staging = tmp_path / "custom-staging"
    report_path = tmp_path / "reports" / "run.yaml"

    result = CliRunner().invoke(
        app,
        [
            "apply",
            "--path",
            str(patch_workspace.root),
            "--staging-root",
            str(staging),
            "--report",
            str(report_path),
        ],
        catch_exceptions=False,
    )

    assert result.exit_code == 0, result.output
    assert (staging / "fancylib" / "core.py").exists()
    report = yaml.safe_load(report_path.read_text(encoding="utf-8"))
    assert report["patched"] is True
    assert report["outcomes"][0]["status"] == "APPLIED"
    assert report["outcomes"][0]["patched_files"] == ["core.py"]


def test_apply_outside_a_project_fails(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr("depatch.cli.Workspace.discover", _raise_missing)

    result = CliRunner().invoke(app, ["apply", "--path", str(tmp_path)])

    assert result.exit_code == 1
    assert "Unable to locate pyproject.toml" in result.output


def _raise_missing(path):
    from depatch.errors import ConfigError

    raise ConfigError(f"Unable to locate pyproject.toml in {path} or any parent directory")


def test_status_lists_directive_matches(patch_workspace, monkeypatch) -> None:
    _use_view(monkeypatch, patch_workspace.view)
    patch_workspace.write_manifest(
        """
        [project]
        name = "app"

        [tool.depatch.patch.fancylib]
        version = ">=1,<2"
        patches = ["a.patch", "b.patch"]

        [tool.depatch.patch.missinglib]
        patches = []
        """
    )

    result = CliRunner().invoke(app, ["status", "--path", str(patch_workspace.root)], catch_exceptions=False)

    assert result.exit_code == 0, result.output
    assert "- fancylib (<2,>=1) [2 patch(es)] -> fancylib 1.2.0" in result.output
    assert "- missinglib [0 patch(es)] not found" in result.output
    assert not patch_workspace.staging_root.exists()


def test_clean_removes_staging_root(patch_workspace) -> None:
    patch_workspace.write_manifest('[project]\nname = "app"\n')
    (patch_workspace.staging_root / "fancylib").mkdir(parents=True)

    runner = CliRunner()
    first = runner.invoke(app, ["clean", "--path", str(patch_workspace.root)], catch_exceptions=False)
    second = runner.invoke(app, ["clean", "--path", str(patch_workspace.root)], catch_exceptions=False)

    assert first.exit_code == 0 and second.exit_code == 0
    assert not patch_workspace.staging_root.exists()


def test_clean_refuses_to_remove_the_workspace(patch_workspace) -> None:
    manifest = patch_workspace.write_manifest('[project]\nname = "app"\n')

    result = CliRunner().invoke(
        app,
        ["clean", "--path", str(patch_workspace.root), "--staging-root", str(patch_workspace.root)],
    )

    assert result.exit_code == 1
    assert "would delete the project directory" in result.output
    assert manifest.exists()
