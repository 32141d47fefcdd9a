# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Integrity verification and reading for edit datasets.

Verification recomputes every shard's SHA256 and compares it with
checksums.txt. Reading streams ConcreteEdits back out of the shards in
shard order.
"""

import json
from pathlib import Path
from typing import Any, Iterator

from revisar.logging.logger import get_logger
from revisar.mining.extract.edit import ConcreteEdit, edit_from_record
from revisar.mining.store.shard import SHARD_SUFFIX
from revisar.utils.hashing import compute_sha256


def compute_shard_checksums(dataset_dir: Path) -> dict[str, str]:
    """SHA256 of every shard file in the directory, keyed by filename."""
    shard_files = sorted(
        f for f in dataset_dir.iterdir()
        if f.is_file() and f.suffix == SHARD_SUFFIX
    )
    return {shard_file.name: compute_sha256(shard_file) for shard_file in shard_files}


def verify_store_integrity(dataset_dir: Path) -> bool:
    """
    Check every shard against checksums.txt.

    Returns False on a missing checksums file, a missing shard, or any
    mismatch; each problem is logged.
    """
    logger = get_logger("revisar.mining.store")

    checksums_path = dataset_dir / "checksums.txt"
    if not checksums_path.is_file():
        logger.error("No checksums.txt found", extra={"dir": str(dataset_dir)})
        return False

    expected: dict[str, str] = {}
    for line in checksums_path.read_text(encoding="utf-8").strip().splitlines():
        parts = line.strip().split("  ", 1)
        if len(parts) == 2:
            expected[parts[1]] = parts[0]

    if not expected:
        logger.warning("checksums.txt is empty", extra={"dir": str(dataset_dir)})
        return True

    actual = compute_shard_checksums(dataset_dir)

    all_valid = True
    for filename, expected_hash in expected.items():
        actual_hash = actual.get(filename)
        if actual_hash is None:
            logger.error("Missing shard file", extra={"shard": filename, "dir": str(dataset_dir)})
            all_valid = False
        elif actual_hash != expected_hash:
            logger.error(
                "Checksum mismatch",
                extra={"shard": filename, "expected": expected_hash, "actual": actual_hash},
            )
            all_valid = False

    if all_valid:
        logger.info(
            "Integrity check passed",
            extra={"shard_count": len(expected), "dir": str(dataset_dir)},
        )

    return all_valid


def load_manifest(dataset_dir: Path) -> dict[str, Any]:
    manifest_path = dataset_dir / "manifest.json"
    if not manifest_path.is_file():
        raise FileNotFoundError(f"No manifest.json found in {dataset_dir}")
    return json.loads(manifest_path.read_text(encoding="utf-8"))


def iter_edits(dataset_dir: Path) -> Iterator[ConcreteEdit]:
    """
    Stream edits from a dataset in manifest shard order.

    Raises:
        FileNotFoundError: If the manifest or a listed shard is missing.
    """
    manifest = load_manifest(dataset_dir)
    for shard in manifest["shards"]:
        shard_path = dataset_dir / shard["filename"]
        with open(shard_path, encoding="utf-8") as handle:
            for line in handle:
                line = line.strip()
                if line:
                    yield edit_from_record(json.loads(line))
