"""Tests for safe_bump.deps."""

from __future__ import annotations

import pytest

from safe_bump.deps import (
    dep_canonical_name,
    dep_version,
    pin_dep,
    rewrite_dep_list,
    set_dep_version,
)
from safe_bump.errors import ManifestReadError


class TestDepCanonicalName:
    def test_simple_name(self) -> None:
        assert dep_canonical_name("requests") == "requests"

    def test_with_version_spec(self) -> None:
        assert dep_canonical_name("requests>=2.0") == "requests"

    def test_with_extras(self) -> None:
        assert dep_canonical_name("requests[security]>=2.0") == "requests"

    def test_normalizes_underscores(self) -> None:
        assert dep_canonical_name("my_package>=1.0") == "my-package"

    def test_normalizes_case(self) -> None:
        assert dep_canonical_name("MyPackage>=1.0") == "mypackage"

    def test_invalid_requirement(self) -> None:
        with pytest.raises(ManifestReadError, match="invalid requirement"):
            dep_canonical_name("not a requirement!!")


class TestDepVersion:
    def test_exact_pin(self) -> None:
        assert dep_version("requests==2.31.0") == "2.31.0"

    def test_lower_bound(self) -> None:
        assert dep_version("requests>=2.0") == "2.0"

    def test_compatible_release(self) -> None:
        assert dep_version("hypothesis~=6.0") == "6.0"

    def test_range_has_no_version(self) -> None:
        assert dep_version("requests>=2.0,<3") == ""

    def test_unpinned_has_no_version(self) -> None:
        assert dep_version("requests") == ""

    def test_upper_bound_has_no_version(self) -> None:
        assert dep_version("requests<3") == ""

    def test_url_has_no_version(self) -> None:
        assert dep_version("pkg @ https://example.com/pkg-1.0.tar.gz") == ""


class TestPinDep:
    def test_simple_dep(self) -> None:
        assert pin_dep("requests", "2.31.0") == "requests==2.31.0"

    def test_dep_with_existing_version(self) -> None:
        assert pin_dep("requests>=2.0", "2.31.0") == "requests==2.31.0"

    def test_preserves_multiple_extras_sorted(self) -> None:
        assert pin_dep("pkg[z,a,m]>=1.0", "3.0.0") == "pkg[a,m,z]==3.0.0"


class TestSetDepVersion:
    def test_keeps_exact_pin(self) -> None:
        assert set_dep_version("requests==2.0", "2.31.0") == "requests==2.31.0"

    def test_keeps_lower_bound_operator(self) -> None:
        assert set_dep_version("requests>=2.0", "2.31.0") == "requests>=2.31.0"

    def test_range_becomes_pin(self) -> None:
        assert set_dep_version("requests>=2.0,<3", "3.1.0") == "requests==3.1.0"

    def test_unpinned_becomes_pin(self) -> None:
        assert set_dep_version("requests", "2.31.0") == "requests==2.31.0"

    def test_preserves_extras_and_markers(self) -> None:
        result = set_dep_version("pkg[b,a]==1.0; python_version<'3.12'", "2.0")
        assert result == 'pkg[a,b]==2.0; python_version < "3.12"'


class TestRewriteDepList:
    def test_rewrites_matching_entries(self) -> None:
        deps = ["requests==2.0", "My_Pkg>=1.0", "click==8.0"]

        found = rewrite_dep_list(deps, {"my-pkg": "1.5", "requests": "2.31.0"})

        assert deps == ["requests==2.31.0", "My_Pkg>=1.5", "click==8.0"]
        assert found == {"requests", "my-pkg"}

    def test_skips_include_group_tables(self) -> None:
        deps = [{"include-group": "lint"}, "ruff==0.4.0"]

        found = rewrite_dep_list(deps, {"ruff": "0.5.0"})

        assert deps == [{"include-group": "lint"}, "ruff==0.5.0"]
        assert found == {"ruff"}

    def test_no_matches(self) -> None:
        deps = ["requests==2.0"]
        assert rewrite_dep_list(deps, {"click": "8.1"}) == set()
        assert deps == ["requests==2.0"]
