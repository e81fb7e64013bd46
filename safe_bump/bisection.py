"""Bisection: find the largest set of updates that keeps the tests green.

Applying every update at once and re-testing only tells us that
*something* broke. BisectionEngine narrows that down by recursive halving:

1. Apply the whole candidate set on top of the original manifest and verify.
2. If it passes, keep all of it.
3. If a single candidate fails, drop it.
4. Otherwise split the set in two and resolve each half on its own,
   always against the same original manifest.

With n candidates this costs one verification when everything passes and
2n - 1 when everything fails. Verification must be deterministic: a flaky
test suite can make a safe update look broken.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from .manifest import ManifestSnapshot, ManifestStore
from .models import CandidateUpdate
from .verify import Verifier

T = TypeVar("T")


def split_alternating(items: Sequence[T]) -> tuple[list[T], list[T]]:
    """Split a sequence into its even-indexed and odd-indexed items.

    Adjacent candidates land in different halves. With an odd length the
    first half gets the extra item.

    Example:
        [a, b, c, d, e] → ([a, c, e], [b, d])
    """
    return list(items[0::2]), list(items[1::2])


class BisectionEngine:
    """Resolves a candidate set to its verified-safe subset.

    Args:
        store: Where each trial manifest is written before verifying.
        verifier: Judges the manifest currently on disk.
    """

    def __init__(self, store: ManifestStore, verifier: Verifier) -> None:
        self.store = store
        self.verifier = verifier

    def resolve(
        self,
        original: ManifestSnapshot,
        candidates: Sequence[CandidateUpdate],
        depth: int = 0,
    ) -> list[CandidateUpdate]:
        """Return the candidates that pass verification on top of `original`.

        The result lists the first half's survivors before the second
        half's. The union of results from sibling halves is not verified
        here; the caller must re-verify the final combination.

        Raises:
            ManifestReadError, ManifestWriteError: If a trial manifest
                cannot be built or written.
            VerifierLaunchError: If verification cannot be started.
        """
        indent = "  " * depth
        print(f"{indent}trying {len(candidates)} updates")
        _show(original, candidates, indent)

        if not candidates:
            return []

        trial = original.copy_with(candidates)
        self.store.write(trial)

        if self.verifier.verify():
            print(f"{indent}  test passed")
            return list(candidates)

        print(f"{indent}  test failed")

        # A single failing update is conclusively bad
        if len(candidates) == 1:
            return []

        first, second = split_alternating(candidates)
        accepted = self.resolve(original, first, depth + 1)
        accepted += self.resolve(original, second, depth + 1)

        print(f"{indent}keeping {len(accepted)} of {len(candidates)} updates:")
        _show(original, accepted, indent)

        return accepted


def _show(
    original: ManifestSnapshot, updates: Sequence[CandidateUpdate], indent: str
) -> None:
    for req in updates:
        old = original.version_of(req.name)
        print(f"{indent}  {req.name}: {old} -> {req.version}")
