# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the edit store: shard packing, manifests, checksums and reading
edits back.
"""

from pathlib import Path

import pytest

from revisar.config.schema import ExtractConfig
from revisar.mining.extract.edit import edit_to_record
from revisar.mining.extract.extractor import extract_edits
from revisar.mining.history.walker import FileRevision
from revisar.mining.store.integrity import iter_edits, load_manifest, verify_store_integrity
from revisar.mining.store.manifest import (
    build_manifest,
    compute_version_hash,
    write_checksums,
    write_dataset_manifest,
)
from revisar.mining.store.shard import ShardWriter


def _sample_edits():
    revision = FileRevision(
        source="repo-a",
        commit="c1",
        parent="c0",
        path="A.java",
        before_text="StringBuffer a = new StringBuffer(); x = new ArrayList<String>();",
        after_text="StringBuilder a = new StringBuilder(); x = new ArrayList<>();",
    )
    return extract_edits(revision, ExtractConfig())


def _write_dataset(directory: Path, shard_size: int = 1_000_000) -> list:
    edits = _sample_edits()
    writer = ShardWriter(directory, shard_size)
    for edit in edits:
        writer.add_record(edit_to_record(edit))
    infos = writer.finalize()
    manifest = build_manifest(infos, {"repo-a": len(edits)}, {"k": 1})
    write_dataset_manifest(manifest, directory / "manifest.json")
    write_checksums(infos, directory / "checksums.txt")
    return edits


class TestShardWriter:
    def test_single_shard_when_everything_fits(self, tmp_path: Path) -> None:
        writer = ShardWriter(tmp_path, 1_000_000)
        for index in range(3):
            writer.add_record({"i": index})
        infos = writer.finalize()
        assert len(infos) == 1
        assert infos[0].filename == "edits_000000.jsonl"
        assert infos[0].entry_count == 3

    def test_splits_when_size_is_exceeded(self, tmp_path: Path) -> None:
        writer = ShardWriter(tmp_path, 20)
        for index in range(5):
            writer.add_record({"index": index})
        infos = writer.finalize()
        assert len(infos) > 1
        assert sum(info.entry_count for info in infos) == 5

    def test_oversized_record_gets_its_own_shard(self, tmp_path: Path) -> None:
        writer = ShardWriter(tmp_path, 5)
        writer.add_record({"payload": "x" * 50})
        infos = writer.finalize()
        assert len(infos) == 1

    def test_empty_writer_produces_no_shards(self, tmp_path: Path) -> None:
        assert ShardWriter(tmp_path, 100).finalize() == []


class TestManifest:
    def test_version_hash_is_deterministic(self, tmp_path: Path) -> None:
        _write_dataset(tmp_path / "a")
        _write_dataset(tmp_path / "b")
        assert load_manifest(tmp_path / "a")["version_hash"] == load_manifest(tmp_path / "b")["version_hash"]

    def test_settings_change_the_version(self) -> None:
        assert compute_version_hash([], {"a": 1}) != compute_version_hash([], {"a": 2})

    def test_manifest_counts(self, tmp_path: Path) -> None:
        edits = _write_dataset(tmp_path)
        manifest = load_manifest(tmp_path)
        assert manifest["total_edits"] == len(edits)
        assert manifest["sources"] == {"repo-a": len(edits)}

    def test_missing_manifest(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_manifest(tmp_path)


class TestIntegrity:
    def test_fresh_dataset_verifies(self, tmp_path: Path) -> None:
        _write_dataset(tmp_path)
        assert verify_store_integrity(tmp_path) is True

    def test_tampered_shard_fails(self, tmp_path: Path) -> None:
        _write_dataset(tmp_path)
        shard = tmp_path / "edits_000000.jsonl"
        shard.write_text(shard.read_text(encoding="utf-8") + "\n{}", encoding="utf-8")
        assert verify_store_integrity(tmp_path) is False

    def test_missing_shard_fails(self, tmp_path: Path) -> None:
        _write_dataset(tmp_path)
        (tmp_path / "edits_000000.jsonl").unlink()
        assert verify_store_integrity(tmp_path) is False

    def test_missing_checksums_fails(self, tmp_path: Path) -> None:
        assert verify_store_integrity(tmp_path) is False

    def test_checksums_use_sha256sum_format(self, tmp_path: Path) -> None:
        _write_dataset(tmp_path)
        line = (tmp_path / "checksums.txt").read_text(encoding="utf-8").splitlines()[0]
        digest, filename = line.split("  ")
        assert len(digest) == 64
        assert filename == "edits_000000.jsonl"


class TestIterEdits:
    def test_reads_edits_back_in_order(self, tmp_path: Path) -> None:
        edits = _write_dataset(tmp_path, shard_size=200)
        assert list(iter_edits(tmp_path)) == edits
