"""Manifest snapshots and the store that persists them.

A ManifestSnapshot is the full declared dependency state of a project at
one instant. It never changes once built: a modified snapshot is produced
by serializing the TOML text, rewriting a fresh parse of it and parsing
the result again, so a trial manifest can never alias the original one.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

from packaging.utils import canonicalize_name
from pydantic import BaseModel, ConfigDict

from .deps import dep_canonical_name, dep_version, pin_dep, rewrite_dep_list
from .errors import ManifestReadError, ManifestWriteError
from .models import CandidateUpdate, Requirement
from .toml import (
    constraint_dependency_list,
    direct_dependency_lists,
    dump_document,
    ensure_project_dependencies,
    parse_document,
)


class ManifestSnapshot(BaseModel):
    """Immutable view of a pyproject.toml.

    Attributes:
        text: Serialized TOML, exactly as it would be written to disk.
        requirements: Requirements in document order, one per name. Direct
                      dependency lists come first, then the
                      [tool.uv].constraint-dependencies (indirect). A name
                      declared several times takes its first versioned
                      declaration, and a direct one always wins.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    requirements: tuple[Requirement, ...] = ()

    @classmethod
    def parse(cls, text: str) -> ManifestSnapshot:
        """Build a snapshot from TOML text.

        Raises:
            ManifestReadError: If the text is not valid TOML, a dependency
                container is not a table, or a requirement is not valid
                PEP 508.
        """
        doc = parse_document(text)
        position: dict[str, int] = {}
        requirements: list[Requirement] = []

        def collect(deps: list, direct: bool) -> None:
            for dep_str in deps:
                if not isinstance(dep_str, str):
                    continue
                name = dep_canonical_name(str(dep_str))
                req = Requirement(
                    name=name, version=dep_version(str(dep_str)), direct=direct
                )
                if name not in position:
                    position[name] = len(requirements)
                    requirements.append(req)
                    continue
                # A later versioned declaration of the same kind replaces an
                # unversioned one; direct lists are scanned first
                first = requirements[position[name]]
                if not first.version and req.version and first.direct == direct:
                    requirements[position[name]] = req

        for deps in direct_dependency_lists(doc):
            collect(deps, direct=True)
        constraints = constraint_dependency_list(doc)
        if constraints is not None:
            collect(constraints, direct=False)

        return cls(text=text, requirements=tuple(requirements))

    def version_of(self, name: str) -> str:
        """Return the version required for `name`, or "" if absent."""
        canonical = canonicalize_name(name)
        for req in self.requirements:
            if req.name == canonical:
                return req.version
        return ""

    def versions(self) -> dict[str, str]:
        """Map of package name → version, the basis for comparing snapshots."""
        return {req.name: req.version for req in self.requirements}

    def direct_requirements(self) -> list[Requirement]:
        """Requirements declared by the project itself."""
        return [req for req in self.requirements if req.direct]

    def candidates(self, original: ManifestSnapshot) -> list[CandidateUpdate]:
        """List direct requirements whose version differs from `original`.

        This snapshot is the upgraded one. Requirements without a version
        are never candidates, since there is nothing to write back.
        """
        return [
            req
            for req in self.direct_requirements()
            if req.version and req.version != original.version_of(req.name)
        ]

    def copy_with(
        self, versions: Mapping[str, str] | Sequence[CandidateUpdate]
    ) -> ManifestSnapshot:
        """Return a new snapshot with the given versions applied.

        Every occurrence of a named package is rewritten, in the direct
        dependency lists and in the uv constraints alike. Names the
        manifest does not mention yet are appended to
        [project].dependencies as exact pins.

        Args:
            versions: Map of package name → version, or a list of
                      candidate updates.

        Raises:
            ManifestReadError: If this snapshot's text cannot be reparsed.
            ManifestWriteError: If the rewritten document cannot be dumped.
        """
        if not isinstance(versions, Mapping):
            versions = {req.name: req.version for req in versions}
        wanted = {canonicalize_name(name): v for name, v in versions.items()}

        doc = parse_document(self.text)
        found: set[str] = set()
        for deps in direct_dependency_lists(doc):
            found |= rewrite_dep_list(deps, wanted)
        constraints = constraint_dependency_list(doc)
        if constraints is not None:
            found |= rewrite_dep_list(constraints, wanted)

        missing = [name for name in wanted if name not in found]
        if missing:
            project_deps = ensure_project_dependencies(doc)
            for name in missing:
                project_deps.append(pin_dep(name, wanted[name]))

        return ManifestSnapshot.parse(dump_document(doc))


class ManifestStore:
    """Reads and writes the manifest of the project under `root`."""

    def __init__(self, root: Path, filename: str = "pyproject.toml") -> None:
        self.root = Path(root)
        self.path = self.root / filename

    def read(self) -> ManifestSnapshot:
        """Capture the manifest currently on disk.

        Raises:
            ManifestReadError: If the file is missing or malformed.
        """
        try:
            text = self.path.read_text()
        except OSError as exc:
            raise ManifestReadError(f"cannot read {self.path}: {exc}") from exc
        return ManifestSnapshot.parse(text)

    def write(self, snapshot: ManifestSnapshot) -> None:
        """Persist `snapshot` to the manifest location.

        Raises:
            ManifestWriteError: If the file cannot be written.
        """
        try:
            self.path.write_text(snapshot.text)
        except OSError as exc:
            raise ManifestWriteError(f"cannot write {self.path}: {exc}") from exc
