"""CLI entry point for safe-bump."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from safe_bump.config import Settings, load_settings
from safe_bump.errors import BumpError
from safe_bump.models import RunState
from safe_bump.pipeline import describe, list_outdated, run_update


def _common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that reads the manifest."""
    options = [
        click.option(
            "-C",
            "--root",
            type=click.Path(exists=True, file_okay=False, path_type=Path),
            default=".",
            show_default=True,
            help="Root directory of the project to update.",
        ),
        click.option(
            "--manifest",
            default="pyproject.toml",
            show_default=True,
            help="Manifest file, relative to the root.",
        ),
        click.option(
            "-v", "--verbose", is_flag=True, help="Show output of test runs."
        ),
        click.option(
            "--index-url",
            default=None,
            help="PyPI-compatible JSON API.  [default: https://pypi.org/pypi]",
        ),
        click.option("--pre", is_flag=True, help="Allow pre-release versions."),
        click.option(
            "--discover-command",
            default=None,
            help="Shell command that upgrades the manifest, instead of the index.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _settings(root: Path, manifest: str, **options: Any) -> Settings:
    try:
        return load_settings(root, manifest, **options)
    except BumpError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(package_name="safe-bump")
def cli() -> None:
    """Upgrade dependencies, keeping only the upgrades your tests accept."""


@cli.command()
@_common_options
@click.option(
    "-t",
    "--test",
    "test_command",
    default=None,
    help="The command that evaluates if an update works.  [default: pytest]",
)
@click.option(
    "--commit/--no-commit",
    default=None,
    help="Commit the changes with git.  [default: no-commit]",
)
@click.option(
    "--sync-command",
    default=None,
    help="Command run after a successful upgrade, e.g. 'uv lock'.",
)
def upgrade(
    root: Path,
    manifest: str,
    verbose: bool,
    index_url: str | None,
    pre: bool,
    discover_command: str | None,
    test_command: str | None,
    commit: bool | None,
    sync_command: str | None,
) -> None:
    """Upgrade every dependency that keeps the tests passing."""
    settings = _settings(
        root,
        manifest,
        verbose=verbose or None,
        index_url=index_url,
        allow_prereleases=pre or None,
        discover_command=discover_command,
        test_command=test_command,
        commit=commit,
        sync_command=sync_command,
    )
    try:
        result = run_update(settings)
    except BumpError as exc:
        raise click.ClickException(str(exc)) from exc

    color = "red" if result.state == RunState.ABORTED else "green"
    click.secho(f"\n{result.message}", fg=color)


@cli.command()
@_common_options
def outdated(
    root: Path,
    manifest: str,
    verbose: bool,
    index_url: str | None,
    pre: bool,
    discover_command: str | None,
) -> None:
    """List available upgrades without testing or applying them."""
    settings = _settings(
        root,
        manifest,
        verbose=verbose or None,
        index_url=index_url,
        allow_prereleases=pre or None,
        discover_command=discover_command,
    )
    try:
        changes = list_outdated(settings)
    except BumpError as exc:
        raise click.ClickException(str(exc)) from exc

    if not changes:
        click.secho("all packages are up to date", fg="green")
        return
    click.echo()
    for change in changes:
        click.echo(describe(change))
