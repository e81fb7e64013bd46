"""Discovery: advance every direct requirement to its latest release.

Discovery is side-effecting by contract. It rewrites the manifest on disk
and the pipeline observes the result by reading the manifest back, so a
tool such as `uv add --upgrade` can stand in for the built-in PyPI lookup.
"""

from __future__ import annotations

import contextlib
from pathlib import Path
from typing import Protocol

import httpx
from packaging.version import InvalidVersion, Version

from .errors import DiscoveryError
from .manifest import ManifestStore
from .shell import sh, step
from .versions import is_newer, latest_release

DEFAULT_INDEX_URL = "https://pypi.org/pypi"


class Discovery(Protocol):
    def discover(self) -> None:
        """Rewrite the on-disk manifest with the latest versions.

        Raises:
            DiscoveryError: If the latest versions cannot be determined
                or applied.
        """
        ...


class PyPIDiscovery:
    """Looks up latest versions through the PyPI JSON API.

    Only direct requirements that carry a version are looked up. A version
    is only ever moved forward: a pin newer than anything on the index
    (e.g. a pre-release) is left alone.

    Args:
        store: Manifest to read and rewrite.
        index_url: Base URL of a PyPI-compatible JSON API.
        allow_prereleases: Consider alpha/beta/rc/dev releases.
        client: Optional preconfigured httpx client. When omitted a client
                is created and closed for each discover() call.
        timeout: Request timeout in seconds for the default client.
    """

    def __init__(
        self,
        store: ManifestStore,
        index_url: str = DEFAULT_INDEX_URL,
        allow_prereleases: bool = False,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.store = store
        self.index_url = index_url.rstrip("/")
        self.allow_prereleases = allow_prereleases
        self.client = client
        self.timeout = timeout

    def discover(self) -> None:
        step(f"Looking up latest versions on {self.index_url}")

        snapshot = self.store.read()
        latest: dict[str, str] = {}

        with self._open_client() as client:
            for req in snapshot.direct_requirements():
                if not req.version:
                    print(f"  {req.name}: skipped (no version declared)")
                    continue
                version = self.latest_version(client, req.name)
                if is_newer(version, req.version):
                    latest[req.name] = version
                    print(f"  {req.name}: {req.version} → {version}")

        if not latest:
            print("  Everything is already at the latest version")
            return
        self.store.write(snapshot.copy_with(latest))

    def latest_version(self, client: httpx.Client, name: str) -> str:
        """Return the latest usable release of `name` on the index.

        Raises:
            DiscoveryError: On HTTP failure, a non-2xx status, invalid JSON,
                or when the package has no usable release.
        """
        url = f"{self.index_url}/{name}/json"
        try:
            response = client.get(url)
            response.raise_for_status()
            metadata = response.json()
        except httpx.HTTPError as exc:
            raise DiscoveryError(f"cannot fetch {url}: {exc}") from exc
        except ValueError as exc:
            raise DiscoveryError(f"invalid JSON from {url}: {exc}") from exc

        if not isinstance(metadata, dict):
            raise DiscoveryError(f"unexpected response from {url}: not a JSON object")

        releases = metadata.get("releases") or {}
        info = metadata.get("info") or {}
        if isinstance(releases, dict) and releases:
            version = latest_release(releases, self.allow_prereleases)
        elif isinstance(info, dict):
            # Simple mirrors may only serve the info block
            version = info.get("version")
        else:
            version = None

        if not isinstance(version, str) or not _is_valid(version):
            raise DiscoveryError(f"no usable release found for {name}")
        return version

    def _open_client(self) -> contextlib.AbstractContextManager[httpx.Client]:
        if self.client is not None:
            return contextlib.nullcontext(self.client)
        return httpx.Client(timeout=self.timeout, follow_redirects=True)


class CommandDiscovery:
    """Delegates discovery to a shell command that rewrites the manifest.

    Example: "uv add --upgrade-package requests requests" or a project
    script. Indirect pins the command changes are discarded later, since
    every trial starts from the original manifest.
    """

    def __init__(self, command: str, root: Path, show_output: bool = False) -> None:
        self.command = command
        self.root = Path(root)
        self.show_output = show_output

    def discover(self) -> None:
        step(f"Running {self.command}")
        try:
            ok = sh(self.command, self.root, show_output=self.show_output)
        except OSError as exc:
            raise DiscoveryError(f"cannot run {self.command!r}: {exc}") from exc
        if not ok:
            raise DiscoveryError(f"{self.command}: exited with a non-zero status")


def _is_valid(version: str) -> bool:
    try:
        Version(version)
    except InvalidVersion:
        return False
    return True
