"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running shell commands
and git operations, plus output formatting helpers.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


def git(*args: str, cwd: Path, check: bool = True) -> str:
    """Run a git command against the repository at `cwd` and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--short").
        cwd: Repository root, passed to git as -C.
        check: If True (default), raise on non-zero exit.

    Returns:
        Stripped stdout from the git command.

    Raises:
        subprocess.CalledProcessError: On non-zero exit when check is True.
        OSError: If git itself cannot be started.
    """
    result = subprocess.run(
        ["git", "-C", str(cwd), *args], capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def sh(command: str, cwd: Path, show_output: bool = False) -> bool:
    """Run a command line through /bin/sh and report whether it succeeded.

    Output streams directly to the terminal when show_output is set, so
    users can follow a long test run; otherwise it is discarded.

    Args:
        command: Shell command line (e.g., "pytest -x -q").
        cwd: Working directory for the command.
        show_output: Stream stdout/stderr instead of discarding them.

    Returns:
        True on a zero exit status, False otherwise.

    Raises:
        OSError: If the shell cannot be started at all (missing shell,
            missing working directory, permission denied).
    """
    sink = None if show_output else subprocess.DEVNULL
    result = subprocess.run(
        ["/bin/sh", "-c", command], cwd=cwd, stdout=sink, stderr=sink
    )
    return result.returncode == 0


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate the phases of an update run in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print a warning to stderr without stopping the run."""
    print(f"WARNING: {msg}", file=sys.stderr)
