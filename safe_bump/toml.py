"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying
pyproject.toml files. Every rewrite safe-bump makes should leave a clean,
reviewable diff behind.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from .errors import ManifestReadError, ManifestWriteError

TOOL_TABLE = "safe-bump"


def parse_document(text: str) -> tomlkit.TOMLDocument:
    """Parse TOML text into a format-preserving document.

    Raises:
        ManifestReadError: If the text is not valid TOML.
    """
    try:
        return tomlkit.parse(text)
    except TOMLKitError as exc:
        raise ManifestReadError(f"invalid TOML: {exc}") from exc


def dump_document(doc: tomlkit.TOMLDocument) -> str:
    """Serialize a document back to text, preserving original formatting.

    Raises:
        ManifestWriteError: If the document cannot be serialized.
    """
    try:
        return tomlkit.dumps(doc)
    except (TOMLKitError, TypeError, ValueError) as exc:
        raise ManifestWriteError(f"cannot serialize manifest: {exc}") from exc


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Raises:
        ManifestReadError: If the file is missing, unreadable or malformed.
    """
    try:
        text = path.read_text()
    except OSError as exc:
        raise ManifestReadError(f"cannot read {path}: {exc}") from exc
    return parse_document(text)


def direct_dependency_lists(doc: tomlkit.TOMLDocument) -> list[list[Any]]:
    """Collect every list of direct dependency strings in a pyproject.toml.

    Gathers dependencies from three locations, in this order:
    - [project].dependencies (main runtime deps)
    - [project].optional-dependencies.* (extras like [dev], [test])
    - [dependency-groups].* (PEP 735 dependency groups)

    The returned lists are the document's own arrays, so rewriting an
    element rewrites the document. Group entries may be tables such as
    {include-group = "test"}; callers must skip non-string items.

    Raises:
        ManifestReadError: If one of those containers is not a table.
    """
    lists: list[list[Any]] = []
    project = _table(doc, "project")
    deps = project.get("dependencies")
    if isinstance(deps, list):
        lists.append(deps)
    # Collect optional dependency groups (e.g., [project.optional-dependencies.dev])
    for group in _table(project, "optional-dependencies", "project").values():
        if isinstance(group, list):
            lists.append(group)
    # Collect PEP 735 dependency groups (e.g., [dependency-groups.test])
    for group in _table(doc, "dependency-groups").values():
        if isinstance(group, list):
            lists.append(group)
    return lists


def constraint_dependency_list(doc: tomlkit.TOMLDocument) -> list[Any] | None:
    """Return [tool.uv].constraint-dependencies, pins on transitive packages."""
    uv = _table(_table(doc, "tool"), "uv", "tool")
    constraints = uv.get("constraint-dependencies")
    return constraints if isinstance(constraints, list) else None


def ensure_project_dependencies(doc: tomlkit.TOMLDocument) -> list[Any]:
    """Return [project].dependencies, creating the table and array if needed.

    Raises:
        ManifestReadError: If [project] is not a table or its dependencies
            are not an array.
    """
    if "project" not in doc:
        doc["project"] = tomlkit.table()
    project = _table(doc, "project")
    if "dependencies" not in project:
        project["dependencies"] = tomlkit.array()
    deps = project["dependencies"]
    if not isinstance(deps, list):
        raise ManifestReadError(
            f"[project].dependencies must be an array, not {_unwrap(deps)!r}"
        )
    return deps


def get_tool_config(doc: tomlkit.TOMLDocument) -> dict[str, Any]:
    """Extract the [tool.safe-bump] table as plain Python values.

    Keys are converted from kebab-case to snake_case so they line up with
    the Settings field names.

    Raises:
        ManifestReadError: If [tool] or [tool.safe-bump] is not a table.
    """
    table = _table(_table(doc, "tool"), TOOL_TABLE, "tool")
    return {key.replace("-", "_"): _unwrap(value) for key, value in table.items()}


def _table(container: Any, key: str, parent: str = "") -> Any:
    """Return the table under `key`, or {} when the key is absent.

    Raises:
        ManifestReadError: If `key` holds something other than a table.
    """
    value = container.get(key, {})
    if not isinstance(value, dict):
        name = f"{parent}.{key}" if parent else key
        raise ManifestReadError(f"[{name}] must be a table, not {_unwrap(value)!r}")
    return value


def _unwrap(value: Any) -> Any:
    # tomlkit items subclass the builtins; hand pydantic plain values
    return value.unwrap() if hasattr(value, "unwrap") else value
