# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Edit dataset manifest.

The manifest is the table of contents of one edits dataset: which sources
contributed how many edits, the extraction settings, checksums for every
shard, and a single version hash that identifies the dataset. Same
histories + same settings = same version hash.
"""

import json
from pathlib import Path
from typing import Any, NamedTuple

from revisar.mining.store.shard import ShardInfo
from revisar.utils.filesystem import atomic_write
from revisar.utils.hashing import compute_sha256_bytes


class DatasetManifest(NamedTuple):
    version_hash: str
    total_edits: int
    total_shards: int
    total_size_bytes: int
    shards: list[dict[str, Any]]
    sources: dict[str, int]
    settings: dict[str, Any]


def compute_version_hash(shard_infos: list[ShardInfo], settings: dict[str, Any]) -> str:
    """
    SHA256 over all shard hashes in order, plus the extraction settings.

    The settings are part of the hash because an empty dataset produced
    with different settings is still a different dataset.
    """
    combined = "".join(info.sha256 for info in shard_infos)
    combined += json.dumps(settings, sort_keys=True)
    return compute_sha256_bytes(combined.encode("utf-8"))


def build_manifest(
    shard_infos: list[ShardInfo],
    sources: dict[str, int],
    settings: dict[str, Any],
) -> DatasetManifest:
    return DatasetManifest(
        version_hash=compute_version_hash(shard_infos, settings),
        total_edits=sum(info.entry_count for info in shard_infos),
        total_shards=len(shard_infos),
        total_size_bytes=sum(info.size_bytes for info in shard_infos),
        shards=[info._asdict() for info in shard_infos],
        sources=dict(sorted(sources.items())),
        settings=settings,
    )


def write_dataset_manifest(manifest: DatasetManifest, output_path: Path) -> None:
    atomic_write(output_path, json.dumps(manifest._asdict(), indent=2, sort_keys=True))


def write_checksums(shard_infos: list[ShardInfo], output_path: Path) -> None:
    """
    Write checksums.txt in sha256sum format: `<sha256>  <filename>` per line,
    so `sha256sum -c checksums.txt` works too.
    """
    lines = [f"{info.sha256}  {info.filename}" for info in shard_infos]
    content = "\n".join(lines) + "\n" if lines else ""
    atomic_write(output_path, content)
