# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Hashing utilities for Revisar.

Every artifact the pipeline writes (edit shards, cluster files, the
transformation catalog) is identified by SHA256. Edit ids are short
prefixes of the same digest so they stay readable in logs.
"""

import hashlib
from pathlib import Path

HASH_BUFFER_SIZE = 65536  # 64 KiB
SHORT_ID_LENGTH = 16


def compute_sha256(file_path: Path) -> str:
    """
    Compute the SHA256 hex digest of a file.

    Reads the file in 64 KiB chunks so large shards don't have to fit in
    memory.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        OSError: If the file can't be read.
    """
    hasher = hashlib.sha256()
    with open(file_path, "rb") as f:
        while True:
            chunk = f.read(HASH_BUFFER_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


def compute_sha256_bytes(data: bytes) -> str:
    """Compute the SHA256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def compute_sha256_text(text: str) -> str:
    """Compute the SHA256 hex digest of a UTF-8 string."""
    return compute_sha256_bytes(text.encode("utf-8"))


def short_id(*parts: str) -> str:
    """
    Build a stable short identifier from one or more strings.

    The parts are joined with a NUL separator before hashing, so
    ("ab", "c") and ("a", "bc") never collide.
    """
    return compute_sha256_text("\x00".join(parts))[:SHORT_ID_LENGTH]
