# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Thin wrapper around the git executable.

Every git invocation in Revisar goes through run_git so timeouts, error
messages and logging look the same everywhere. We only ever run read-only
plumbing against mined repositories (clone, log, diff-tree, show); nothing
from a cloned repository is ever executed.
"""

import subprocess
from pathlib import Path
from typing import Optional

DEFAULT_GIT_TIMEOUT = 600


class GitCommandError(RuntimeError):
    """A git invocation exited non-zero or timed out."""

    def __init__(self, args: list[str], message: str) -> None:
        super().__init__(f"git {' '.join(args)} failed: {message}")
        self.args_list = args


def run_git(
    args: list[str],
    cwd: Optional[Path] = None,
    timeout: int = DEFAULT_GIT_TIMEOUT,
) -> str:
    """
    Run `git <args>` and return stdout.

    Output is decoded as UTF-8 with replacement, since old Java sources are
    often Latin-1 and we'd rather see a replacement character than crash.

    Raises:
        GitCommandError: On a non-zero exit or timeout.
    """
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=str(cwd) if cwd is not None else None,
            check=True,
            capture_output=True,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as err:
        stderr = err.stderr.decode("utf-8", errors="replace").strip()
        raise GitCommandError(args, stderr or f"exit code {err.returncode}") from err
    except subprocess.TimeoutExpired as err:
        raise GitCommandError(args, f"timed out after {timeout} seconds") from err

    return result.stdout.decode("utf-8", errors="replace")
