# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for greedy edit clustering and the clusters.json round trip.
"""

from pathlib import Path

import pytest

from revisar.clustering.clusterer import (
    CLUSTERS_FILENAME,
    build_clusters,
    cluster_from_json,
    cluster_to_json,
    load_clusters,
    run_clustering,
)
from revisar.config.schema import ClusteringConfig
from revisar.java.tree import parse_tree
from revisar.mining.extract.edit import ConcreteEdit, edit_to_record
from revisar.mining.store.manifest import build_manifest, write_checksums, write_dataset_manifest
from revisar.mining.store.shard import ShardWriter
from revisar.utils.filesystem import read_json


def _diamond(edit_id: str, source: str, type_name: str, type_args: str) -> ConcreteEdit:
    before = parse_tree(f"x = new {type_name}<{type_args}>();").children
    after = parse_tree(f"x = new {type_name}<>();").children
    return ConcreteEdit(
        edit_id=edit_id,
        source=source,
        commit="c1",
        parent="c0",
        path="A.java",
        line=1,
        left_context=before[2:4],
        before=before[4:5],
        after=after[4:5],
        right_context=before[5:6],
    )


def _buffer(edit_id: str, source: str) -> ConcreteEdit:
    before = parse_tree("StringBuffer sb;").children
    after = parse_tree("StringBuilder sb;").children
    return ConcreteEdit(
        edit_id=edit_id,
        source=source,
        commit="c1",
        parent="c0",
        path="B.java",
        line=1,
        left_context=(),
        before=before[:1],
        after=after[:1],
        right_context=before[1:2],
    )


def _config(**overrides) -> ClusteringConfig:
    settings = {"config_version": "1.0.0", "partition_depth": 1}
    settings.update(overrides)
    return ClusteringConfig(**settings)


@pytest.fixture()
def edits() -> list[ConcreteEdit]:
    return [
        _diamond("e1", "repo-a", "ArrayList", "String"),
        _buffer("e2", "repo-a"),
        _diamond("e3", "repo-b", "HashMap", "Integer, Long"),
        _diamond("e4", "repo-b", "ArrayList", "Integer"),
    ]


class TestBuildClusters:
    def test_diamond_edits_merge(self, edits) -> None:
        clusters = build_clusters(edits, _config())
        assert len(clusters) == 2

        diamond = clusters[0]
        assert [edit.edit_id for edit in diamond.members] == ["e1", "e3", "e4"]
        assert diamond.repositories == ("repo-a", "repo-b")
        assert diamond.template.render() == "new ?0<?1*>() ==> new ?0<>()"
        # e1+e4 cost 2, then adding e3 costs 5.
        assert diamond.cost == 7

        assert clusters[1].size == 1
        assert clusters[1].members[0].edit_id == "e2"

    def test_max_cost_blocks_merges(self, edits) -> None:
        clusters = build_clusters(edits, _config(max_cost=0))
        assert len(clusters) == 4

    def test_identical_edits_merge_for_free(self) -> None:
        clusters = build_clusters(
            [_buffer("e1", "repo-a"), _buffer("e2", "repo-b")], _config(max_cost=0)
        )
        assert len(clusters) == 1
        assert clusters[0].cost == 0
        assert clusters[0].template == _buffer("e1", "repo-a").template()

    def test_inapplicable_merges_are_refused(self) -> None:
        renames = [_buffer("e1", "repo-a"), _buffer("e2", "repo-b")]
        other = renames[1]._replace(
            before=parse_tree("Vector").children,
            after=parse_tree("List").children,
        )
        clusters = build_clusters([renames[0], other], _config())
        assert len(clusters) == 2

    def test_depth_two_separates_arities(self, edits) -> None:
        clusters = build_clusters(edits, _config(partition_depth=2))
        sizes = sorted(cluster.size for cluster in clusters)
        assert sizes == [1, 1, 2]

    def test_chunking_limits_partitions(self, edits) -> None:
        clusters = build_clusters(edits, _config(max_partition_size=2))
        assert sum(cluster.size for cluster in clusters) == len(edits)
        assert len(clusters) == 3

    def test_deterministic(self, edits) -> None:
        first = build_clusters(edits, _config())
        second = build_clusters(list(edits), _config())
        assert [c.cluster_id for c in first] == [c.cluster_id for c in second]


class TestClusterJson:
    def test_round_trip(self, edits) -> None:
        for cluster in build_clusters(edits, _config()):
            assert cluster_from_json(cluster_to_json(cluster)) == cluster

    def test_malformed_file(self, tmp_path: Path) -> None:
        path = tmp_path / CLUSTERS_FILENAME
        path.write_text('{"nothing": []}', encoding="utf-8")
        with pytest.raises(ValueError):
            load_clusters(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_clusters(tmp_path / CLUSTERS_FILENAME)


class TestRunClustering:
    def test_no_dataset(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            run_clustering(_config(), tmp_path)

    def test_writes_clusters_file(self, tmp_path: Path, edits) -> None:
        dataset = tmp_path / "data" / "edits" / "v1"
        writer = ShardWriter(dataset, 1_000_000)
        for edit in edits:
            writer.add_record(edit_to_record(edit))
        infos = writer.finalize()
        write_dataset_manifest(build_manifest(infos, {}, {}), dataset / "manifest.json")
        write_checksums(infos, dataset / "checksums.txt")

        result = run_clustering(_config(), tmp_path)

        assert result.dataset_version == "v1"
        assert result.total_edits == 4
        output = tmp_path / "data" / "clusters" / CLUSTERS_FILENAME
        assert result.output_path == str(output)
        data = read_json(output)
        assert data["dataset"] == "v1"
        assert len(data["clusters"]) == 2
        assert load_clusters(output) == result.clusters
