"""Exception types raised by safe-bump.

Every fatal condition is a subclass of BumpError so the CLI can turn them
into a clean error exit. A failing test run is never an exception: it is
the normal input of the bisection.
"""

from __future__ import annotations


class BumpError(Exception):
    """Base class for all fatal safe-bump errors."""


class ManifestReadError(BumpError):
    """The manifest is missing, is not valid TOML, or holds a bad requirement."""


class ManifestWriteError(BumpError):
    """The manifest could not be serialized or written to disk."""


class VerifierLaunchError(BumpError):
    """The verification command could not be started at all."""


class DiscoveryError(BumpError):
    """Looking up or applying the latest versions failed."""


class CommitError(BumpError):
    """Staging or committing the result with git failed."""


class SyncError(BumpError):
    """The post-update sync command (e.g. ``uv lock``) failed."""


class ConfigError(BumpError):
    """The [tool.safe-bump] table or a command line option is invalid."""
