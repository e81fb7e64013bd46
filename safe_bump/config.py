"""Run configuration.

Settings come from three layers, highest precedence first: command line
options, the [tool.safe-bump] table of the project's pyproject.toml, and
the defaults below. For example:

    [tool.safe-bump]
    test-command = "pytest -x -q"
    sync-command = "uv lock"
    commit = true
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from .discover import DEFAULT_INDEX_URL
from .errors import ConfigError
from .toml import get_tool_config, load_pyproject


class Settings(BaseModel):
    """Plain values consumed by the update pipeline.

    Attributes:
        root: Project directory; commands run and the manifest lives here.
        test_command: Shell command whose exit status decides safety.
        commit: Commit the result with git when something was upgraded.
        verbose: Show the output of test and helper commands.
        manifest: Manifest file name, relative to root.
        index_url: PyPI-compatible JSON API used for discovery.
        allow_prereleases: Let discovery pick pre-releases.
        discover_command: Shell command that upgrades the manifest itself,
                          used instead of the index lookup when set.
        sync_command: Shell command run after a successful upgrade
                      (e.g. "uv lock").
    """

    model_config = ConfigDict(extra="forbid")

    root: Path = Path(".")
    test_command: str = "pytest"
    commit: bool = False
    verbose: bool = False
    manifest: str = "pyproject.toml"
    index_url: str = DEFAULT_INDEX_URL
    allow_prereleases: bool = False
    discover_command: str | None = None
    sync_command: str | None = None


def load_settings(
    root: Path, manifest: str = "pyproject.toml", **overrides: Any
) -> Settings:
    """Merge [tool.safe-bump] defaults with explicit overrides.

    Overrides whose value is None are treated as "not given", which lets
    the CLI pass every option through unconditionally. A missing manifest
    is not an error here; the pipeline reports it when it reads it.

    Raises:
        ConfigError: If the table holds unknown keys or bad values.
    """
    path = Path(root) / manifest
    file_config = get_tool_config(load_pyproject(path)) if path.exists() else {}
    # The table lives inside the manifest, so it cannot relocate it
    file_config.pop("root", None)
    file_config.pop("manifest", None)

    values = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    try:
        return Settings(root=Path(root), manifest=manifest, **values)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration in {path}:\n{exc}") from exc
