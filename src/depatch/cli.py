"""CLI commands for staging and patching dependencies."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
import yaml

from .errors import PatchError
from .matcher import find_candidates
from .orchestrator import PatchOrchestrator, RunReport
from .resolver import InstalledDistributions, ResolvedDependencyView
from .staging import check_staging_root, reset_staging_root
from .workspace import Workspace

APP_HELP = "Apply local patch files to third-party dependencies."

app = typer.Typer(help=APP_HELP)


def _configure_logging(verbosity: int) -> None:
    """Map a ``-v`` count onto the root logger level."""
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _load_workspace(path: Path) -> Workspace:
    try:
        return Workspace.discover(path)
    except PatchError as error:
        typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(code=1) from error


def _build_view(site_packages: Optional[List[Path]]) -> ResolvedDependencyView:
    """Return the dependency view for the targeted environment."""
    return InstalledDistributions(site_packages or None)


def _write_report(report: RunReport, report_path: Path) -> None:
    """Persist run outcomes as YAML with stable ordering."""
    report_path.parent.mkdir(parents=True, exist_ok=True)
    with report_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(report.to_dict(), handle, sort_keys=False)


@app.command()
def apply(
    path: Path = typer.Option(
        Path("."),
        "--path",
        "-p",
        help="Directory inside the workspace to patch.",
    ),
    staging_root: Optional[Path] = typer.Option(
        None,
        "--staging-root",
        help="Directory receiving the patched copies (overrides [tool.depatch]).",
    ),
    site_packages: List[Path] = typer.Option(
        None,
        "--site-packages",
        help="Site directory to resolve dependencies from (repeatable, default: sys.path).",
    ),
    report: Optional[Path] = typer.Option(
        None,
        "--report",
        help="Write a YAML summary of every directive outcome.",
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase log verbosity."),
) -> None:
    """Stage every patched dependency and apply its patch files."""
    _configure_logging(verbose)
    workspace = _load_workspace(path)
    orchestrator = PatchOrchestrator.for_workspace(
        workspace,
        _build_view(site_packages),
        staging_root=staging_root.resolve() if staging_root else None,
        progress=typer.echo,
    )

    try:
        result = orchestrator.run()
    except (PatchError, OSError, UnicodeDecodeError) as error:
        typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(code=1) from error
    finally:
        if report is not None:
            _write_report(orchestrator.report, report)

    if not result.patched:
        typer.echo("No patches found")


@app.command()
def status(
    path: Path = typer.Option(
        Path("."),
        "--path",
        "-p",
        help="Directory inside the workspace to inspect.",
    ),
    site_packages: List[Path] = typer.Option(
        None,
        "--site-packages",
        help="Site directory to resolve dependencies from (repeatable, default: sys.path).",
    ),
) -> None:
    """Show declared patch directives and the dependencies they match."""
    workspace = _load_workspace(path)
    dependencies = _build_view(site_packages).dependencies()

    found = False
    for member in workspace.members:
        directives = member.directives()
        if not directives:
            continue
        found = True
        typer.echo(f"{member.name} ({member.root.as_posix()})")
        for directive in directives:
            candidates = find_candidates(directive, dependencies)
            if len(candidates) == 1:
                state = f"-> {candidates[0]}"
            elif candidates:
                state = "ambiguous: " + ", ".join(str(candidate) for candidate in candidates)
            else:
                state = "not found"
            typer.echo(f"- {directive.describe()} [{len(directive.patches)} patch(es)] {state}")
    if not found:
        typer.echo("No patches found")


@app.command()
def clean(
    path: Path = typer.Option(
        Path("."),
        "--path",
        "-p",
        help="Directory inside the workspace to clean.",
    ),
    staging_root: Optional[Path] = typer.Option(
        None,
        "--staging-root",
        help="Directory holding the patched copies (overrides [tool.depatch]).",
    ),
) -> None:
    """Remove the staging root and every patched copy below it."""
    workspace = _load_workspace(path)
    target = staging_root.resolve() if staging_root else workspace.staging_root
    try:
        check_staging_root(target, [member.root for member in workspace.members])
        reset_staging_root(target)
    except (PatchError, OSError) as error:
        typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(code=1) from error
    typer.echo(f"Removed {target.as_posix()}")


if __name__ == "__main__":
    app()
