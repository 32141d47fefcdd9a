# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Fixed-size edit shard writer.

Extracted edits are packed into JSON Lines shards of roughly equal size.
Shards keep individual artifacts small enough to checksum and move around,
and let later stages stream edits back without loading a whole dataset.

Packing order is the extraction order, which is deterministic (sources by
name, commits newest first, paths sorted), so the same histories always
produce the same shards.
"""

import json
from pathlib import Path
from typing import Any, NamedTuple

from revisar.logging.logger import get_logger
from revisar.utils.filesystem import atomic_write
from revisar.utils.hashing import compute_sha256_bytes
from revisar.utils.paths import ensure_directory

SHARD_PREFIX = "edits_"
SHARD_SUFFIX = ".jsonl"


class ShardInfo(NamedTuple):
    """Metadata about a completed shard."""

    shard_id: int
    filename: str
    entry_count: int
    size_bytes: int
    sha256: str


class ShardWriter:
    """
    Accumulates edit records and packs them into shards.

    Usage:
      1. Create a ShardWriter with a target directory and size limit
      2. Call add_record() for each edit record
      3. Call finalize() to flush the last partial shard

    A shard is flushed when the next record would push it over the limit,
    so shards are approximately (not exactly) the target size.
    """

    def __init__(self, output_dir: Path, shard_size_bytes: int) -> None:
        self._output_dir = ensure_directory(output_dir)
        self._shard_size_bytes = shard_size_bytes
        self._current_lines: list[str] = []
        self._current_size = 0
        self._shard_counter = 0
        self._completed_shards: list[ShardInfo] = []
        self._logger = get_logger("revisar.mining.store.shard")

    def add_record(self, record: dict[str, Any]) -> None:
        line = json.dumps(record, sort_keys=True)
        size = len(line.encode("utf-8")) + 1

        if self._current_size + size > self._shard_size_bytes and self._current_lines:
            self._flush_current_shard()

        self._current_lines.append(line)
        self._current_size += size

    def finalize(self) -> list[ShardInfo]:
        """Flush any remaining records and return the complete shard list."""
        if self._current_lines:
            self._flush_current_shard()
        return list(self._completed_shards)

    def _flush_current_shard(self) -> None:
        filename = f"{SHARD_PREFIX}{self._shard_counter:06d}{SHARD_SUFFIX}"
        shard_content = "\n".join(self._current_lines) + "\n"
        atomic_write(self._output_dir / filename, shard_content)

        encoded = shard_content.encode("utf-8")
        info = ShardInfo(
            shard_id=self._shard_counter,
            filename=filename,
            entry_count=len(self._current_lines),
            size_bytes=len(encoded),
            sha256=compute_sha256_bytes(encoded),
        )
        self._completed_shards.append(info)

        self._logger.info(
            "Shard written",
            extra={
                "shard_id": info.shard_id,
                "entries": info.entry_count,
                "size_bytes": info.size_bytes,
            },
        )

        self._current_lines = []
        self._current_size = 0
        self._shard_counter += 1
