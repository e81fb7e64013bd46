"""Dependency handling utilities.

Provides functions for parsing PEP 508 dependency strings and rewriting
the version they require, preserving extras, markers and the specifier
operator where possible.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from .errors import ManifestReadError

# Operators whose single clause names "the" version of a requirement.
VERSIONED_OPERATORS = ("==", "===", ">=", "~=")


def parse_dep(dep_str: str) -> Requirement:
    """Parse a PEP 508 string, translating failures to ManifestReadError."""
    try:
        return Requirement(dep_str)
    except InvalidRequirement as exc:
        raise ManifestReadError(f"invalid requirement {dep_str!r}: {exc}") from exc


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Handles version specifiers, extras, and normalizes the name per PEP 503
    (lowercase, hyphens instead of underscores).

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
    """
    return canonicalize_name(parse_dep(dep_str).name)


def dep_version(dep_str: str) -> str:
    """Return the version a dependency string is declared at.

    Only a single clause with one of the VERSIONED_OPERATORS counts:

        "requests==2.31.0" → "2.31.0"
        "requests>=2.0" → "2.0"
        "requests>=2.0,<3" → ""
        "requests" → ""
    """
    req = parse_dep(dep_str)
    if req.url:
        return ""
    specs = list(req.specifier)
    if len(specs) == 1 and specs[0].operator in VERSIONED_OPERATORS:
        return specs[0].version
    return ""


def pin_dep(dep_str: str, version: str) -> str:
    """Pin a PEP 508 dependency to an exact version.

    Preserves any extras specified in the original dependency string,
    but replaces the version specifier with an exact pin.

    Examples:
        pin_dep("requests>=2.0", "2.31.0") → "requests==2.31.0"
        pin_dep("pkg[extra1,extra2]~=1.0", "1.5.0") → "pkg[extra1,extra2]==1.5.0"
    """
    req = parse_dep(dep_str)
    # Sort extras alphabetically for consistent output
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    return f"{req.name}{extras}=={version}"


def set_dep_version(dep_str: str, version: str) -> str:
    """Rewrite the version of a dependency string, keeping its shape.

    A single clause with a VERSIONED_OPERATOR keeps its operator; anything
    else becomes an exact pin. Extras and environment markers are kept.

    Examples:
        set_dep_version("requests>=2.0", "2.31.0") → "requests>=2.31.0"
        set_dep_version("pkg[b,a]==1.0; python_version<'3.12'", "2.0")
            → "pkg[a,b]==2.0; python_version < \"3.12\""
        set_dep_version("pkg>=1,<2", "3.0") → "pkg==3.0"
    """
    req = parse_dep(dep_str)
    specs = list(req.specifier)
    operator = "=="
    if len(specs) == 1 and specs[0].operator in VERSIONED_OPERATORS:
        operator = specs[0].operator
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    marker = f"; {req.marker}" if req.marker else ""
    return f"{req.name}{extras}{operator}{version}{marker}"


def rewrite_dep_list(deps: list[Any], versions: Mapping[str, str]) -> set[str]:
    """Rewrite matching dependencies in a list, modifying it in place.

    Iterates through a list of PEP 508 dependency strings and replaces any
    that match a name in `versions` with the new version. Non-string items
    (such as {include-group = ...} tables) are left alone.

    Args:
        deps: List of dependency strings (modified in place).
        versions: Map of canonical package name → version to set.

    Returns:
        The canonical names that were found in the list.
    """
    found: set[str] = set()
    for i, dep_str in enumerate(deps):
        if not isinstance(dep_str, str):
            continue
        name = dep_canonical_name(str(dep_str))
        if name in versions:
            deps[i] = set_dep_version(str(dep_str), versions[name])
            found.add(name)
    return found
