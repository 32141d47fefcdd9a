# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Generalizer: the third step of the pipeline.

Turns clusters into transformations. A cluster qualifies when it has
enough members from enough distinct repositories and its template is
applicable. Each candidate is then checked against its own members: applied
to a member's before code it must reproduce that member's after code. A
template that can't even redo the edits it was learned from is dropped.

Survivors are ranked by support, then repository count, then id, and
written as the transformation catalog.
"""

import json
from pathlib import Path
from typing import NamedTuple, Optional

from revisar.clustering.clusterer import Cluster, load_clusters
from revisar.clustering.template import EditTemplate
from revisar.config.schema import ClusteringConfig, GeneralizeConfig
from revisar.logging.logger import get_logger
from revisar.mining.extract.edit import ConcreteEdit
from revisar.transform.applier import rewrite_nodes
from revisar.transform.transformation import CATALOG_FILENAME, Transformation, save_catalog
from revisar.utils.hashing import short_id


class GeneralizationResult(NamedTuple):
    clusters_read: int
    too_small: int
    not_applicable: int
    failed_validation: int
    transformations: list[Transformation]
    catalog_hash: str
    output_path: str


def failing_members(template: EditTemplate, members: tuple[ConcreteEdit, ...]) -> list[str]:
    """Ids of member edits the template does not reproduce."""
    failures: list[str] = []
    for edit in members:
        expected = edit.template()
        rewritten = rewrite_nodes(template, expected.before_pattern)
        if rewritten != expected.after_pattern:
            failures.append(edit.edit_id)
    return failures


def _example(edit: ConcreteEdit) -> dict:
    return {
        "edit_id": edit.edit_id,
        "source": edit.source,
        "commit": edit.commit,
        "path": edit.path,
        "line": edit.line,
        "rendered": edit.template().render(),
    }


def _to_transformation(cluster: Cluster, max_examples: int) -> Transformation:
    payload = json.dumps(cluster.template.to_json(), sort_keys=True)
    return Transformation(
        transformation_id=short_id("transformation", payload),
        cluster_id=cluster.cluster_id,
        template=cluster.template,
        support=cluster.size,
        repositories=cluster.repositories,
        examples=tuple(_example(edit) for edit in cluster.members[:max_examples]),
    )


def generalize_clusters(
    clusters: list[Cluster],
    config: GeneralizeConfig,
    min_concrete_nodes: int = 1,
) -> GeneralizationResult:
    """
    Filter, validate and rank clusters. Nothing is written.

    The returned result has an empty catalog_hash and output_path; the
    caller that saves the catalog fills them in.
    """
    logger = get_logger("revisar.transform.generalizer")

    too_small = 0
    not_applicable = 0
    failed = 0
    transformations: list[Transformation] = []

    for cluster in clusters:
        if cluster.size < config.min_edits or len(cluster.repositories) < config.min_repositories:
            too_small += 1
            continue

        if not cluster.template.is_applicable(min_concrete_nodes):
            not_applicable += 1
            continue

        failures = failing_members(cluster.template, cluster.members)
        if failures:
            failed += 1
            logger.warning(
                "Template does not reproduce its own edits, discarding",
                extra={
                    "cluster_id": cluster.cluster_id,
                    "template": cluster.template.render(),
                    "failing": failures[:5],
                },
            )
            continue

        transformations.append(_to_transformation(cluster, config.max_examples))

    transformations.sort(
        key=lambda t: (-t.support, -len(t.repositories), t.transformation_id)
    )

    return GeneralizationResult(
        clusters_read=len(clusters),
        too_small=too_small,
        not_applicable=not_applicable,
        failed_validation=failed,
        transformations=transformations,
        catalog_hash="",
        output_path="",
    )


def run_generalization(
    config: GeneralizeConfig,
    project_root: Path,
    clustering: Optional[ClusteringConfig] = None,
) -> GeneralizationResult:
    """
    Read clusters.json, generalize, and write transformations.json.

    Raises:
        FileNotFoundError: If the clusters file doesn't exist.
        ValueError: If it is malformed.
    """
    logger = get_logger("revisar.transform.generalizer")

    clusters_path = project_root / config.clusters_path
    clusters = load_clusters(clusters_path)
    min_concrete = clustering.min_concrete_nodes if clustering is not None else 1

    result = generalize_clusters(clusters, config, min_concrete)

    output_path = project_root / config.output_directory / CATALOG_FILENAME
    catalog_hash = save_catalog(
        result.transformations,
        output_path,
        metadata={
            "clusters_file": config.clusters_path,
            "settings": config.model_dump(exclude={"config_version"}),
        },
    )

    logger.info(
        "Generalization complete",
        extra={
            "clusters": result.clusters_read,
            "too_small": result.too_small,
            "not_applicable": result.not_applicable,
            "failed_validation": result.failed_validation,
            "transformations": len(result.transformations),
            "catalog_hash": catalog_hash[:16],
        },
    )

    return result._replace(catalog_hash=catalog_hash, output_path=str(output_path))
