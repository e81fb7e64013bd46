"""Version parsing and comparison utilities.

Handles conversion between version strings and semver objects, with
special handling for incomplete version strings (e.g., "1.0" → "1.0.0"),
and picks the latest release out of a PyPI release listing.
"""

from __future__ import annotations

import semver
from packaging.version import InvalidVersion, Version


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3" → "1.2.3"

    Only the first 3 components are used (major.minor.patch).

    Raises:
        ValueError: If the components are not plain integers (e.g. "2.0rc1").
    """
    parts = version_str.split(".")
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts[:3]))


def change_kind(old: str, new: str) -> str:
    """Classify a version change as major, minor or patch.

    Examples:
        "1.2.3" → "2.0.0" is "major"
        "1.2" → "1.3" is "minor"
        "1.2.3" → "1.2.4" is "patch"

    Returns "unknown" when either side is not semver-like, or when the
    versions only differ beyond the patch component.
    """
    try:
        a, b = parse_version(old), parse_version(new)
    except ValueError:
        return "unknown"
    if a.major != b.major:
        return "major"
    if a.minor != b.minor:
        return "minor"
    if a.patch != b.patch:
        return "patch"
    return "unknown"


def is_newer(candidate: str, current: str) -> bool:
    """Return True if candidate is a strictly greater PEP 440 version.

    An unparsable (or empty) current version is always considered older.
    """
    try:
        current_v = Version(current)
    except InvalidVersion:
        return True
    return Version(candidate) > current_v


def latest_release(
    releases: dict[str, list[dict]], allow_prereleases: bool = False
) -> str | None:
    """Pick the greatest usable version from a PyPI JSON "releases" map.

    Skips keys that are not valid PEP 440 versions, pre-releases (unless
    allowed) and releases whose files were all yanked.

    Args:
        releases: Map of version string → list of uploaded file records.
        allow_prereleases: Consider alpha/beta/rc/dev releases too.

    Returns:
        The latest version string, or None if nothing qualifies.
    """
    best: Version | None = None
    best_str: str | None = None
    for version_str, files in releases.items():
        try:
            version = Version(version_str)
        except InvalidVersion:
            continue
        if version.is_prerelease and not allow_prereleases:
            continue
        if files and all(f.get("yanked", False) for f in files):
            continue
        if best is None or version > best:
            best, best_str = version, version_str
    return best_str

