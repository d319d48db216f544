"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running build tools
and git, plus the output helpers used to report pipeline progress.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

from .errors import GitError


def git(*args: str, cwd: Path | str | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "log", "--format=%H").
        cwd: Repository directory. Defaults to the current directory.
        check: If True (default), raise GitError on non-zero exit. Set to
               False for lookups that may legitimately fail (e.g., tags).

    Returns:
        Stripped stdout from the git command, or "" when an unchecked
        command fails.
    """
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=False
    )
    if result.returncode != 0:
        if check:
            raise GitError(
                f"git {' '.join(args)} failed with exit code "
                f"{result.returncode}: {result.stderr.strip()}"
            )
        return ""
    return result.stdout.strip()


def run(
    *args: str, cwd: Path | str | None = None, capture: bool = False
) -> subprocess.CompletedProcess[str]:
    """Run an arbitrary command without raising on failure.

    Output streams to the terminal unless capture is set, in which case
    stdout and stderr are returned on the CompletedProcess.
    """
    return subprocess.run(
        args, cwd=cwd, capture_output=capture, text=True, check=False
    )


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of the release pipeline in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print a non-fatal warning to stderr."""
    print(f"WARNING: {msg}", file=sys.stderr)
