# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Safe filesystem operations for Revisar.

Atomic writes work by writing to a temporary file in the same directory as
the target, then renaming. Rename on the same filesystem is atomic on POSIX,
so a crash mid-write leaves a stray temp file instead of a half-written
shard or catalog.
"""

import json
import tempfile
from pathlib import Path
from typing import Any


def atomic_write(target_path: Path, content: str, encoding: str = "utf-8") -> None:
    """
    Write content to a file atomically.

    Raises:
        OSError: If the write or rename fails.
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    # delete=False so the file survives closing and can be renamed.
    temp_fd = tempfile.NamedTemporaryFile(
        mode="w",
        encoding=encoding,
        dir=str(target_path.parent),
        prefix=".revisar_tmp_",
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(temp_fd.name)

    try:
        temp_fd.write(content)
        temp_fd.flush()
        temp_fd.close()
        temp_path.replace(target_path)
    except BaseException:
        temp_fd.close()
        if temp_path.exists():
            temp_path.unlink()
        raise


def write_json(target_path: Path, data: Any) -> str:
    """
    Serialize data as pretty, key-sorted JSON and write it atomically.

    Returns the exact text written, so callers can hash it without
    reading the file back.
    """
    text = json.dumps(data, indent=2, sort_keys=True) + "\n"
    atomic_write(target_path, text)
    return text


def read_json(file_path: Path) -> Any:
    """
    Read a JSON file with proper error context.

    Raises:
        FileNotFoundError: If the path doesn't exist or isn't a file.
        ValueError: If the content isn't valid JSON.
    """
    if not file_path.is_file():
        raise FileNotFoundError(f"File not found: {file_path}")
    try:
        return json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as err:
        raise ValueError(f"Invalid JSON in {file_path}: {err}") from err
