"""Update pipeline: check → discover → bisect → apply → re-check → report.

This module orchestrates a safe-bump run:
1. Read the original manifest
2. Run the tests on the untouched project (a failure here aborts the run)
3. Upgrade every direct requirement to its latest release
4. Bisect the upgrades down to the largest set that keeps the tests green
5. Write the original manifest plus the accepted upgrades
6. Run the tests once more on that combination
7. Report, then optionally sync the lock file and commit

The bisection only proves that each half passes on top of the original
manifest. Step 6 is what proves that the accepted halves pass together;
when they do not, the run is aborted and the original manifest restored.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from .bisection import BisectionEngine
from .config import Settings
from .discover import CommandDiscovery, Discovery, PyPIDiscovery
from .errors import CommitError, SyncError
from .manifest import ManifestSnapshot, ManifestStore
from .models import RunResult, RunState, UpdateOutcome, VersionChange
from .shell import git, sh, step, warn
from .verify import CommandVerifier, Verifier

FAILED_BEFORE = "test failed before upgrading anything, aborting."
FAILED_AFTER = "test failed after applying upgrades, aborting."
UP_TO_DATE = "all packages are up to date"


class GitCommitter:
    """Stages the whole working tree and commits it.

    When the commit itself fails, the index is reset again so nothing the
    run staged is left behind for the next manual commit.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def commit(self, message: str) -> None:
        """Create a commit with `message`.

        Raises:
            CommitError: If git cannot be run or either command fails.
        """
        step("Committing")
        try:
            git("add", "-A", cwd=self.root)
            git("commit", "-m", message, cwd=self.root)
        except subprocess.CalledProcessError as exc:
            if exc.cmd[3] == "commit":
                git("reset", "-q", cwd=self.root, check=False)
            detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise CommitError(f"git {exc.cmd[3]} failed: {detail}") from exc
        except OSError as exc:
            raise CommitError(f"cannot run git: {exc}") from exc
        print("  Committed")


def describe(change: VersionChange) -> str:
    return f"{change.name} {change.old} -> {change.new} ({change.kind})"


def report(outcome: UpdateOutcome) -> None:
    """Print the per-package result of a run."""
    step("Results")
    for change in outcome.accepted:
        print(f"  package upgraded: {describe(change)}")
    for change in outcome.rejected:
        print(f"  package upgrade failed: {describe(change)}")


def commit_message(outcome: UpdateOutcome, manifest_name: str) -> str:
    """Build the commit message summarizing accepted and failed upgrades."""
    lines = [f"Update {manifest_name}", ""]
    for c in outcome.accepted:
        lines.append(f"* upgrade {c.name} from {c.old} to {c.new}")
    for c in outcome.rejected:
        lines.append(f"* FAILED upgrade {c.name} from {c.old} to {c.new}")
    return "\n".join(lines)


class UpdateOrchestrator:
    """Drives one update run through its states.

    The current state is kept in `state` so a caller can tell where a
    failed run stopped. Any exception raised after the original manifest
    was captured restores that manifest before propagating.

    Args:
        store: Manifest store for the project.
        verifier: Judges the manifest currently on disk.
        discovery: Rewrites the manifest with the latest versions.
        committer: Commits the result; None disables committing.
        sync_command: Shell command run after a successful post-check.
        show_output: Stream the sync command's output.
    """

    def __init__(
        self,
        store: ManifestStore,
        verifier: Verifier,
        discovery: Discovery,
        committer: GitCommitter | None = None,
        sync_command: str | None = None,
        show_output: bool = False,
    ) -> None:
        self.store = store
        self.verifier = verifier
        self.discovery = discovery
        self.committer = committer
        self.sync_command = sync_command
        self.show_output = show_output
        self.state = RunState.INIT

    def run(self) -> RunResult:
        """Execute the full update run.

        Returns:
            A RunResult in state REPORT (done, possibly with nothing to do)
            or ABORTED (the tests failed before or after upgrading).

        Raises:
            BumpError: Any fatal error, after restoring the original manifest.
        """
        self.state = RunState.INIT
        step(f"Reading {self.store.path}")
        try:
            original = self.store.read()
        except Exception:
            self.state = RunState.FAILED
            raise
        direct = original.direct_requirements()
        print(f"  {len(direct)} direct requirements")

        try:
            return self._run(original)
        except (Exception, KeyboardInterrupt):
            self.state = RunState.FAILED
            self._restore(original)
            raise

    def _run(self, original: ManifestSnapshot) -> RunResult:
        self.state = RunState.PRECHECK
        step("Running tests before upgrading")
        if not self.verifier.verify():
            self.state = RunState.ABORTED
            return RunResult(state=self.state, message=FAILED_BEFORE)
        print("  test passed")

        self.state = RunState.DISCOVER
        self.discovery.discover()
        candidates = self.store.read().candidates(original)
        if not candidates:
            # Discovery may still have touched indirect pins
            self.store.write(original)
            self.state = RunState.REPORT
            return RunResult(
                state=self.state, outcome=UpdateOutcome(), message=UP_TO_DATE
            )

        self.state = RunState.RESOLVE
        step(f"Bisecting {len(candidates)} updates")
        engine = BisectionEngine(self.store, self.verifier)
        accepted = engine.resolve(original, candidates)
        outcome = UpdateOutcome.partition(original.versions(), candidates, accepted)

        self.state = RunState.COMMIT
        step(f"Applying {len(accepted)} of {len(candidates)} updates")
        self.store.write(original.copy_with(accepted))

        self.state = RunState.POSTCHECK
        step("Running tests with all accepted updates")
        if not self.verifier.verify():
            self.store.write(original)
            self.state = RunState.ABORTED
            return RunResult(state=self.state, outcome=outcome, message=FAILED_AFTER)
        print("  test passed")

        self.state = RunState.REPORT
        report(outcome)
        if self.sync_command:
            self._sync()
        if self.committer is not None and outcome.accepted:
            self.committer.commit(commit_message(outcome, self.store.path.name))

        message = f"{len(outcome.accepted)} of {len(candidates)} updates applied"
        return RunResult(state=self.state, outcome=outcome, message=message)

    def _sync(self) -> None:
        step(f"Running {self.sync_command}")
        try:
            ok = sh(self.sync_command, self.store.root, show_output=self.show_output)
        except OSError as exc:
            raise SyncError(f"cannot run {self.sync_command!r}: {exc}") from exc
        if not ok:
            raise SyncError(f"{self.sync_command}: exited with a non-zero status")

    def _restore(self, original: ManifestSnapshot) -> None:
        # Best effort: never mask the error that got us here
        try:
            self.store.write(original)
        except Exception as exc:
            warn(f"could not restore {self.store.path}: {exc}")


def build_discovery(settings: Settings, store: ManifestStore) -> Discovery:
    """Pick the discovery strategy the settings ask for."""
    if settings.discover_command:
        return CommandDiscovery(
            settings.discover_command, settings.root, show_output=settings.verbose
        )
    return PyPIDiscovery(
        store,
        index_url=settings.index_url,
        allow_prereleases=settings.allow_prereleases,
    )


def build_orchestrator(settings: Settings) -> UpdateOrchestrator:
    """Wire the default collaborators for a project on disk."""
    store = ManifestStore(settings.root, settings.manifest)
    return UpdateOrchestrator(
        store=store,
        verifier=CommandVerifier(
            settings.test_command, settings.root, show_output=settings.verbose
        ),
        discovery=build_discovery(settings, store),
        committer=GitCommitter(settings.root) if settings.commit else None,
        sync_command=settings.sync_command,
        show_output=settings.verbose,
    )


def run_update(settings: Settings) -> RunResult:
    """Execute the full update pipeline for the configured project."""
    return build_orchestrator(settings).run()


def list_outdated(settings: Settings) -> list[VersionChange]:
    """Report what discovery would upgrade, without running any tests.

    The original manifest is always written back afterwards.
    """
    store = ManifestStore(settings.root, settings.manifest)
    original = store.read()
    try:
        build_discovery(settings, store).discover()
        candidates = store.read().candidates(original)
    finally:
        store.write(original)
    return [
        VersionChange(name=c.name, old=original.version_of(c.name), new=c.version)
        for c in candidates
    ]
