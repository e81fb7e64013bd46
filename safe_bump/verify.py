"""Verification: the ground truth for "this update is safe".

A verifier runs against whatever is on disk right now. It keeps no state
of its own, so the caller must write the manifest under test first.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .errors import VerifierLaunchError
from .shell import sh


class Verifier(Protocol):
    """Anything that can tell whether the working tree currently passes."""

    def verify(self) -> bool:
        """Return True if verification passes.

        Raises:
            VerifierLaunchError: If the procedure could not be run at all.
        """
        ...


class CommandVerifier:
    """Runs a shell command (normally the test suite) in the project root.

    A non-zero exit is a failing result, not an error. Only a failure to
    start the command raises VerifierLaunchError, which aborts the run.
    """

    def __init__(self, command: str, root: Path, show_output: bool = False) -> None:
        self.command = command
        self.root = Path(root)
        self.show_output = show_output

    def verify(self) -> bool:
        try:
            return sh(self.command, self.root, show_output=self.show_output)
        except OSError as exc:
            raise VerifierLaunchError(
                f"cannot run test program {self.command!r}: {exc}"
            ) from exc
