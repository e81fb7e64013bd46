"""Data models for safe-bump.

These Pydantic models represent the core data structures shared by the
manifest store, the bisection engine and the update pipeline.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .versions import change_kind


class Requirement(BaseModel):
    """A single declared dependency and its version.

    Attributes:
        name: PEP 503 canonical distribution name.
        version: Version of the requirement's single usable specifier
                 clause, or "" when it has none (unpinned, ranged, URL).
        direct: False for constraints on transitively pulled-in packages.
                Indirect requirements are never candidates for update.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    direct: bool = True


# A candidate update is a direct requirement from the upgraded manifest
# whose version differs from the original one.
CandidateUpdate = Requirement


class VersionChange(BaseModel):
    """Records a proposed version change for a package.

    Attributes:
        name: Canonical package name.
        old: Version in the original manifest ("" if newly added).
        new: Version proposed by discovery.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    old: str
    new: str

    @property
    def kind(self) -> str:
        """Semver classification of the change (major, minor, patch, unknown)."""
        return change_kind(self.old, self.new)


class UpdateOutcome(BaseModel):
    """Partition of the candidate set into accepted and rejected updates.

    Both lists keep the original candidate order.
    """

    accepted: list[VersionChange] = Field(default_factory=list)
    rejected: list[VersionChange] = Field(default_factory=list)

    @classmethod
    def partition(
        cls,
        old_versions: dict[str, str],
        candidates: Sequence[CandidateUpdate],
        accepted: Sequence[CandidateUpdate],
    ) -> UpdateOutcome:
        """Split candidates by membership in the accepted subset.

        Args:
            old_versions: Map of package name to its original version.
            candidates: Full candidate set, in discovery order.
            accepted: Subset of candidates that passed verification.
        """
        accepted_names = {c.name for c in accepted}
        outcome = cls()
        for candidate in candidates:
            change = VersionChange(
                name=candidate.name,
                old=old_versions.get(candidate.name, ""),
                new=candidate.version,
            )
            if candidate.name in accepted_names:
                outcome.accepted.append(change)
            else:
                outcome.rejected.append(change)
        return outcome


class RunState(str, Enum):
    """States of the update pipeline."""

    INIT = "init"
    PRECHECK = "precheck"
    DISCOVER = "discover"
    RESOLVE = "resolve"
    COMMIT = "commit"
    POSTCHECK = "postcheck"
    REPORT = "report"
    FAILED = "failed"
    ABORTED = "aborted"


class RunResult(BaseModel):
    """Final state of an update run.

    Attributes:
        state: REPORT on success, ABORTED when the pre- or post-check
               failed. FAILED runs raise instead of returning.
        outcome: Accepted/rejected partition, None when nothing was resolved.
        message: Human readable summary for the terminal.
    """

    state: RunState
    outcome: UpdateOutcome | None = None
    message: str = ""
