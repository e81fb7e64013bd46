"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
import tomlkit

from safe_bump.manifest import ManifestSnapshot, ManifestStore

PROJECT = """\
# managed by hand
[project]
name = "demo"
version = "0.1.0"
dependencies = [
    "alpha==1.0",
    "beta==1.0",
    "gamma==1.0",
]

[tool.uv]
constraint-dependencies = ["idna==3.4"]
"""


class RecordingVerifier:
    """Verifier that judges the manifest on disk with a predicate.

    Every call records the versions it saw, so tests can check both the
    number of verification runs and what each trial contained.
    """

    def __init__(
        self, store: ManifestStore, passes: Callable[[ManifestSnapshot], bool]
    ) -> None:
        self.store = store
        self.passes = passes
        self.trials: list[dict[str, str]] = []

    @property
    def calls(self) -> int:
        return len(self.trials)

    def verify(self) -> bool:
        snapshot = self.store.read()
        self.trials.append(snapshot.versions())
        return self.passes(snapshot)


class WritingDiscovery:
    """Discovery that applies a fixed set of versions to the manifest."""

    def __init__(self, store: ManifestStore, versions: dict[str, str]) -> None:
        self.store = store
        self.versions = versions
        self.calls = 0

    def discover(self) -> None:
        self.calls += 1
        self.store.write(self.store.read().copy_with(self.versions))


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    content = """\
[project]
name = "test-package"
version = "1.0.0"
dependencies = [
    "requests>=2.0",
    "click==8.1.0",
    "rich",
]

[project.optional-dependencies]
dev = ["pytest==8.0.0", "Click==8.1.0"]

[dependency-groups]
test = ["hypothesis~=6.0", {include-group = "lint"}]
lint = ["ruff==0.4.0"]

[tool.uv]
constraint-dependencies = ["urllib3==2.0.0", "requests==2.0"]
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "my-package"
version = "2.0.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0"]

[tool.uv]
constraint-dependencies = ["idna==3.4"]

[tool.safe-bump]
test-command = "pytest -x"
commit = true
"""
    return tomlkit.parse(content)


@pytest.fixture
def project(tmp_path: Path) -> ManifestStore:
    """A project with three pinned dependencies and one indirect pin."""
    (tmp_path / "pyproject.toml").write_text(PROJECT)
    return ManifestStore(tmp_path)


@pytest.fixture
def make_verifier() -> Callable[..., RecordingVerifier]:
    return RecordingVerifier


@pytest.fixture
def make_discovery() -> Callable[..., WritingDiscovery]:
    return WritingDiscovery
