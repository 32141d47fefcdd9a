# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Environment validation for Revisar.

Mining shells out to git for every commit it walks, so a missing git binary
or an old interpreter should fail before the first clone, not halfway
through a history walk.
"""

import platform
import shutil
import subprocess
import sys
from typing import NamedTuple, Optional

MINIMUM_PYTHON_MAJOR = 3
MINIMUM_PYTHON_MINOR = 10


class SystemInfo(NamedTuple):
    """Snapshot of the current system environment."""

    python_version: str
    platform: str
    architecture: str
    hostname: str
    git_version: Optional[str]


def check_minimum_python() -> None:
    """
    Verify we're running a supported Python.

    Raises:
        RuntimeError: If the interpreter is too old.
    """
    major, minor = sys.version_info[:2]
    if (major, minor) < (MINIMUM_PYTHON_MAJOR, MINIMUM_PYTHON_MINOR):
        raise RuntimeError(
            f"Revisar requires Python >= {MINIMUM_PYTHON_MAJOR}.{MINIMUM_PYTHON_MINOR}, "
            f"but you're running {major}.{minor}. Please upgrade."
        )


def get_git_version() -> Optional[str]:
    """Return `git --version` output, or None when git isn't installed."""
    if shutil.which("git") is None:
        return None
    try:
        result = subprocess.run(
            ["git", "--version"],
            check=True,
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError):
        return None
    return result.stdout.strip()


def require_git() -> str:
    """
    Make sure a usable git binary is on PATH.

    Raises:
        RuntimeError: If git can't be run.
    """
    version = get_git_version()
    if version is None:
        raise RuntimeError("git executable not found on PATH; mining needs git")
    return version


def get_system_info() -> SystemInfo:
    """Collect basic system information for logging and diagnostics."""
    return SystemInfo(
        python_version=platform.python_version(),
        platform=platform.system(),
        architecture=platform.machine(),
        hostname=platform.node(),
        git_version=get_git_version(),
    )
