"""Tests for safe_bump.manifest."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from safe_bump.errors import ManifestReadError, ManifestWriteError
from safe_bump.manifest import ManifestSnapshot, ManifestStore
from safe_bump.models import Requirement


@pytest.fixture
def snapshot(tmp_pyproject: Path) -> ManifestSnapshot:
    return ManifestStore(tmp_pyproject.parent).read()


class TestParse:
    def test_requirements_in_document_order(self, snapshot: ManifestSnapshot) -> None:
        assert [r.name for r in snapshot.requirements] == [
            "requests",
            "click",
            "rich",
            "pytest",
            "hypothesis",
            "ruff",
            "urllib3",
        ]

    def test_constraints_are_indirect(self, snapshot: ManifestSnapshot) -> None:
        indirect = [r for r in snapshot.requirements if not r.direct]
        assert indirect == [Requirement(name="urllib3", version="2.0.0", direct=False)]

    def test_direct_declaration_wins_over_constraint(
        self, snapshot: ManifestSnapshot
    ) -> None:
        requests = [r for r in snapshot.requirements if r.name == "requests"]
        assert requests == [Requirement(name="requests", version="2.0")]

    def test_versioned_declaration_wins_over_unversioned(self) -> None:
        snapshot = ManifestSnapshot.parse(
            '[project]\ndependencies = ["requests"]\n'
            '[project.optional-dependencies]\ndev = ["requests==2.0"]\n'
        )

        assert snapshot.requirements == (Requirement(name="requests", version="2.0"),)
        upgraded = snapshot.copy_with({"requests": "2.31.0"})
        assert upgraded.candidates(snapshot) == [
            Requirement(name="requests", version="2.31.0")
        ]

    def test_constraint_never_versions_a_direct_requirement(self) -> None:
        snapshot = ManifestSnapshot.parse(
            '[project]\ndependencies = ["requests"]\n'
            '[tool.uv]\nconstraint-dependencies = ["requests==2.0"]\n'
        )

        assert snapshot.requirements == (Requirement(name="requests", version=""),)

    def test_invalid_requirement(self) -> None:
        with pytest.raises(ManifestReadError):
            ManifestSnapshot.parse('[project]\ndependencies = ["???"]\n')

    @pytest.mark.parametrize(
        ("text", "key"),
        [
            ('project = "x"\n', "project"),
            (
                '[project]\noptional-dependencies = ["pytest"]\n',
                "project.optional-dependencies",
            ),
            ("dependency-groups = 1\n", "dependency-groups"),
            ("tool = 1\n", "tool"),
            ('[tool]\nuv = "fast"\n', "tool.uv"),
        ],
    )
    def test_wrongly_shaped_manifest(self, text: str, key: str) -> None:
        with pytest.raises(ManifestReadError, match=rf"\[{key}\] must be a table"):
            ManifestSnapshot.parse(text)

    def test_empty_manifest(self) -> None:
        assert ManifestSnapshot.parse("").requirements == ()

    def test_is_frozen(self, snapshot: ManifestSnapshot) -> None:
        with pytest.raises(ValidationError):
            snapshot.text = ""


class TestVersionOf:
    def test_pinned(self, snapshot: ManifestSnapshot) -> None:
        assert snapshot.version_of("click") == "8.1.0"

    def test_name_is_canonicalized(self, snapshot: ManifestSnapshot) -> None:
        assert snapshot.version_of("Click") == "8.1.0"

    def test_unversioned(self, snapshot: ManifestSnapshot) -> None:
        assert snapshot.version_of("rich") == ""

    def test_absent(self, snapshot: ManifestSnapshot) -> None:
        assert snapshot.version_of("django") == ""


class TestCopyWith:
    def test_empty_update_is_identity(self, snapshot: ManifestSnapshot) -> None:
        copy = snapshot.copy_with({})
        assert copy == snapshot
        assert copy.versions() == snapshot.versions()

    def test_does_not_touch_original(self, snapshot: ManifestSnapshot) -> None:
        text = snapshot.text

        copy = snapshot.copy_with({"click": "8.2.0"})

        assert snapshot.text == text
        assert snapshot.version_of("click") == "8.1.0"
        assert copy.version_of("click") == "8.2.0"

    def test_rewrites_every_occurrence(self, snapshot: ManifestSnapshot) -> None:
        copy = snapshot.copy_with({"click": "8.2.0"})
        assert '"click==8.2.0"' in copy.text
        assert '"Click==8.2.0"' in copy.text
        assert "8.1.0" not in copy.text

    def test_keeps_operator(self, snapshot: ManifestSnapshot) -> None:
        copy = snapshot.copy_with({"requests": "2.31.0"})
        assert '"requests>=2.31.0"' in copy.text
        # the constraint pin follows along
        assert '"requests==2.31.0"' in copy.text

    def test_pins_unversioned(self, snapshot: ManifestSnapshot) -> None:
        copy = snapshot.copy_with({"rich": "13.7.0"})
        assert copy.version_of("rich") == "13.7.0"

    def test_rewrites_indirect_pin(self, snapshot: ManifestSnapshot) -> None:
        copy = snapshot.copy_with({"urllib3": "2.2.0"})
        assert copy.version_of("urllib3") == "2.2.0"
        assert not [r for r in copy.requirements if r.name == "urllib3"][0].direct

    def test_adds_missing_package(self, snapshot: ManifestSnapshot) -> None:
        copy = snapshot.copy_with({"Django": "5.0"})
        assert copy.version_of("django") == "5.0"
        # appended to [project].dependencies, ahead of the optional groups
        names = [r.name for r in copy.direct_requirements()]
        assert names[:4] == ["requests", "click", "rich", "django"]

    def test_adds_dependencies_array(self) -> None:
        snapshot = ManifestSnapshot.parse('[project]\nname = "x"\n')
        copy = snapshot.copy_with({"click": "8.1.0"})
        assert copy.versions() == {"click": "8.1.0"}

    def test_accepts_candidate_list(self, snapshot: ManifestSnapshot) -> None:
        copy = snapshot.copy_with([Requirement(name="ruff", version="0.5.0")])
        assert copy.version_of("ruff") == "0.5.0"

    def test_preserves_formatting(self, snapshot: ManifestSnapshot) -> None:
        copy = snapshot.copy_with({"ruff": "0.5.0"})
        assert copy.text == snapshot.text.replace("ruff==0.4.0", "ruff==0.5.0")


class TestCandidates:
    def test_only_changed_direct_versions(self, snapshot: ManifestSnapshot) -> None:
        upgraded = snapshot.copy_with(
            {"click": "8.2.0", "urllib3": "2.2.0", "ruff": "0.5.0"}
        )

        candidates = upgraded.candidates(snapshot)

        assert candidates == [
            Requirement(name="click", version="8.2.0"),
            Requirement(name="ruff", version="0.5.0"),
        ]

    def test_nothing_changed(self, snapshot: ManifestSnapshot) -> None:
        assert snapshot.candidates(snapshot) == []

    def test_unversioned_is_never_a_candidate(self) -> None:
        original = ManifestSnapshot.parse('[project]\ndependencies = ["a==1.0"]\n')
        upgraded = ManifestSnapshot.parse('[project]\ndependencies = ["a"]\n')
        assert upgraded.candidates(original) == []


class TestManifestStore:
    def test_round_trip(self, tmp_pyproject: Path) -> None:
        store = ManifestStore(tmp_pyproject.parent)
        changed = store.read().copy_with({"click": "9.0.0"})

        store.write(changed)

        assert store.read() == changed

    def test_custom_filename(self, tmp_path: Path) -> None:
        (tmp_path / "deps.toml").write_text('[project]\ndependencies = ["a==1"]\n')
        store = ManifestStore(tmp_path, "deps.toml")
        assert store.read().version_of("a") == "1"

    def test_missing_manifest(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestReadError):
            ManifestStore(tmp_path).read()

    def test_malformed_manifest(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[project\n")
        with pytest.raises(ManifestReadError):
            ManifestStore(tmp_path).read()

    def test_unwritable_location(self, tmp_path: Path) -> None:
        store = ManifestStore(tmp_path / "missing-dir")
        with pytest.raises(ManifestWriteError):
            store.write(ManifestSnapshot.parse(""))
