# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Greedy agglomerative edit clustering: the second step of the pipeline.

Inside each d-cap partition every edit starts out as its own cluster whose
template is the edit itself. We then repeatedly merge the two clusters
whose anti-unification is cheapest, as long as the merged template is
still applicable and the merge costs at most max_cost. When no pair
qualifies the partition is done.

Candidate merges sit in a heap keyed by (cost, first member, second
member), where a cluster's position is the read index of its first edit.
Equal costs therefore resolve in the order edits were read, and the same
dataset always clusters the same way.
"""

import heapq
from pathlib import Path
from typing import Any, NamedTuple

from revisar.clustering.antiunify import anti_unify
from revisar.clustering.partition import PartitionKey, partition_key, partition_label
from revisar.clustering.template import EditTemplate
from revisar.config.schema import ClusteringConfig
from revisar.logging.logger import get_logger
from revisar.mining.extract.edit import ConcreteEdit, edit_from_record, edit_to_record
from revisar.mining.store.integrity import iter_edits
from revisar.utils.filesystem import read_json, write_json
from revisar.utils.hashing import compute_sha256_text, short_id
from revisar.utils.paths import latest_version_dir

CLUSTERS_FILENAME = "clusters.json"


class Cluster(NamedTuple):
    """A group of edits and the template that covers all of them."""

    cluster_id: str
    partition: str
    template: EditTemplate
    cost: int
    members: tuple[ConcreteEdit, ...]

    @property
    def repositories(self) -> tuple[str, ...]:
        return tuple(sorted({edit.source for edit in self.members}))

    @property
    def size(self) -> int:
        return len(self.members)


class ClusteringResult(NamedTuple):
    dataset_version: str
    total_edits: int
    partitions: int
    clusters: list[Cluster]
    output_path: str
    clusters_hash: str


class _Working(NamedTuple):
    order: int
    template: EditTemplate
    cost: int
    members: tuple[tuple[int, ConcreteEdit], ...]


def _is_valid_merge(template: EditTemplate, cost: int, config: ClusteringConfig) -> bool:
    return cost <= config.max_cost and template.is_applicable(config.min_concrete_nodes)


def cluster_edits(
    edits: list[tuple[int, ConcreteEdit]],
    config: ClusteringConfig,
) -> list[_Working]:
    """
    Cluster one partition chunk. `edits` pairs each edit with its read index.

    Returns the surviving working clusters ordered by first member.
    """
    alive: dict[int, _Working] = {}
    for order, edit in edits:
        alive[order] = _Working(
            order=order,
            template=edit.template(),
            cost=0,
            members=((order, edit),),
        )

    # Entries: (cost, first order, second order, first generation, second
    # generation, template). Cluster keys are their order; a merged cluster
    # keeps the smaller one and bumps its generation, which retires every
    # entry computed from the old template.
    heap: list[tuple[int, int, int, int, int, EditTemplate]] = []
    generation: dict[int, int] = {order: 0 for order in alive}

    def push_pair(first: _Working, second: _Working) -> None:
        low, high = sorted((first, second), key=lambda working: working.order)
        template, cost = anti_unify(low.template, high.template)
        if _is_valid_merge(template, cost, config):
            heapq.heappush(
                heap,
                (cost, low.order, high.order, generation[low.order], generation[high.order], template),
            )

    orders = sorted(alive)
    for position, low in enumerate(orders):
        for high in orders[position + 1:]:
            push_pair(alive[low], alive[high])

    while heap:
        cost, low, high, low_generation, high_generation, template = heapq.heappop(heap)
        if low not in alive or high not in alive:
            continue
        if (low_generation, high_generation) != (generation[low], generation[high]):
            continue

        first, second = alive.pop(low), alive.pop(high)
        merged = _Working(
            order=low,
            template=template,
            cost=first.cost + second.cost + cost,
            members=tuple(sorted(first.members + second.members, key=lambda item: item[0])),
        )
        generation[low] += 1
        for other in sorted(alive):
            push_pair(merged, alive[other])
        alive[low] = merged

    return [alive[order] for order in sorted(alive)]


def _finish(working: _Working, key: PartitionKey) -> Cluster:
    members = tuple(edit for _, edit in working.members)
    return Cluster(
        cluster_id=short_id(*(edit.edit_id for edit in members)),
        partition=partition_label(key),
        template=working.template,
        cost=working.cost,
        members=members,
    )


def build_clusters(edits: list[ConcreteEdit], config: ClusteringConfig) -> list[Cluster]:
    """
    Partition and cluster a list of edits, in read order.

    Partitions bigger than max_partition_size are clustered in consecutive
    chunks of that size, which trades some recall for bounded run time.
    """
    logger = get_logger("revisar.clustering")

    partitions: dict[PartitionKey, list[tuple[int, ConcreteEdit]]] = {}
    for order, edit in enumerate(edits):
        key = partition_key(edit.template(), config.partition_depth)
        partitions.setdefault(key, []).append((order, edit))

    finished: list[tuple[int, Cluster]] = []
    for key, members in partitions.items():
        if len(members) > config.max_partition_size:
            logger.warning(
                "Partition too large, clustering in chunks",
                extra={
                    "partition": partition_label(key),
                    "size": len(members),
                    "chunk_size": config.max_partition_size,
                },
            )
        for offset in range(0, len(members), config.max_partition_size):
            chunk = members[offset:offset + config.max_partition_size]
            for working in cluster_edits(chunk, config):
                finished.append((working.order, _finish(working, key)))

    finished.sort(key=lambda item: item[0])
    return [cluster for _, cluster in finished]


def cluster_to_json(cluster: Cluster) -> dict[str, Any]:
    return {
        "cluster_id": cluster.cluster_id,
        "partition": cluster.partition,
        "template": cluster.template.to_json(),
        "rendered": cluster.template.render(),
        "cost": cluster.cost,
        "size": cluster.size,
        "repositories": list(cluster.repositories),
        "members": [edit_to_record(edit) for edit in cluster.members],
    }


def cluster_from_json(data: dict[str, Any]) -> Cluster:
    return Cluster(
        cluster_id=data["cluster_id"],
        partition=data["partition"],
        template=EditTemplate.from_json(data["template"]),
        cost=int(data["cost"]),
        members=tuple(edit_from_record(record) for record in data["members"]),
    )


def load_clusters(clusters_path: Path) -> list[Cluster]:
    """
    Read clusters.json back into Cluster objects.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If it isn't valid JSON or isn't a clusters file.
    """
    data = read_json(clusters_path)
    try:
        return [cluster_from_json(item) for item in data["clusters"]]
    except (KeyError, TypeError) as err:
        raise ValueError(f"Malformed clusters file {clusters_path}: {err}") from err


def run_clustering(config: ClusteringConfig, project_root: Path) -> ClusteringResult:
    """
    Cluster the latest edits dataset and write clusters.json.

    Raises:
        FileNotFoundError: If there is no edits dataset to read.
    """
    logger = get_logger("revisar.clustering")

    dataset_dir = latest_version_dir(project_root / config.edits_directory)
    if dataset_dir is None:
        raise FileNotFoundError(
            f"No edits dataset under {project_root / config.edits_directory}; run `revisar extract` first"
        )

    edits = list(iter_edits(dataset_dir))
    logger.info(
        "Clustering edits",
        extra={"dataset": dataset_dir.name[:16], "edits": len(edits)},
    )

    clusters = build_clusters(edits, config)
    partition_count = len({cluster.partition for cluster in clusters})

    payload = {
        "dataset": dataset_dir.name,
        "settings": config.model_dump(exclude={"config_version"}),
        "clusters": [cluster_to_json(cluster) for cluster in clusters],
    }
    output_path = project_root / config.output_directory / CLUSTERS_FILENAME
    text = write_json(output_path, payload)

    result = ClusteringResult(
        dataset_version=dataset_dir.name,
        total_edits=len(edits),
        partitions=partition_count,
        clusters=clusters,
        output_path=str(output_path),
        clusters_hash=compute_sha256_text(text),
    )

    logger.info(
        "Clustering complete",
        extra={
            "edits": result.total_edits,
            "partitions": result.partitions,
            "clusters": len(clusters),
            "multi_member": sum(1 for cluster in clusters if cluster.size > 1),
        },
    )

    return result
