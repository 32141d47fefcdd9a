# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Path utilities for Revisar.

Pipeline outputs are always relative to the project root, and paths taken
from mined repositories are always POSIX-style, whatever the host OS.
"""

from pathlib import Path, PurePosixPath


def resolve_project_root(start: Path | None = None) -> Path:
    """
    Find the project root by walking up to the nearest pyproject.toml.

    When `start` is given we search from there; otherwise from the current
    working directory, and finally from this file's location so an editable
    install still finds its checkout.

    Raises:
        RuntimeError: If no pyproject.toml is found in any ancestor directory.
    """
    candidates = [start] if start is not None else [Path.cwd(), Path(__file__).parent]
    for candidate in candidates:
        current = candidate.resolve()
        while current != current.parent:
            if (current / "pyproject.toml").exists():
                return current
            current = current.parent
    raise RuntimeError(
        "Cannot find project root. No pyproject.toml found in any ancestor directory."
    )


def ensure_directory(path: Path) -> Path:
    """Create a directory (and parents) if it doesn't exist. Returns the path for chaining."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def has_allowed_extension(path: PurePosixPath, allowed_extensions: list[str]) -> bool:
    """Case-insensitive extension check against an allow-list like ['.java']."""
    suffix = path.suffix.lower()
    return any(suffix == ext.lower() for ext in allowed_extensions)


def is_in_excluded_directory(path: PurePosixPath, excluded_directories: list[str]) -> bool:
    """True when any directory component of the path is in the exclusion list."""
    excluded = set(excluded_directories)
    return any(part in excluded for part in path.parts[:-1])


def latest_version_dir(base_dir: Path) -> Path | None:
    """
    Find the newest versioned output directory under base_dir.

    Stages that produce content-addressed directories also write a LATEST
    file naming the newest one. Without it we fall back to the most recently
    modified non-temporary directory, ties broken by name.
    """
    if not base_dir.is_dir():
        return None

    pointer = base_dir / "LATEST"
    if pointer.is_file():
        name = pointer.read_text(encoding="utf-8").strip()
        if name and (base_dir / name).is_dir():
            return base_dir / name

    version_dirs = [
        d for d in base_dir.iterdir()
        if d.is_dir() and not d.name.startswith("_")
    ]
    if not version_dirs:
        return None
    return max(version_dirs, key=lambda d: (d.stat().st_mtime_ns, d.name))
