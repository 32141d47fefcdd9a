# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Transformations and the transformation catalog.

A transformation is a validated cluster template plus the evidence behind
it: how many edits it was learned from, in which repositories, and a few
example edits so a human can judge whether it's worth applying.

The catalog is one JSON file. Its catalog_hash is the SHA256 of the
transformation list, so two catalogs with the same hash contain the same
rules in the same order.
"""

import json
from pathlib import Path
from typing import Any, NamedTuple

from revisar.clustering.template import EditTemplate
from revisar.java.render import render_nodes
from revisar.utils.filesystem import read_json, write_json
from revisar.utils.hashing import compute_sha256_text

CATALOG_FILENAME = "transformations.json"


class Transformation(NamedTuple):
    transformation_id: str
    cluster_id: str
    template: EditTemplate
    support: int
    repositories: tuple[str, ...]
    examples: tuple[dict[str, Any], ...]

    @property
    def before(self) -> str:
        return render_nodes(self.template.before_pattern)

    @property
    def after(self) -> str:
        return render_nodes(self.template.after_pattern)

    @property
    def rendered(self) -> str:
        return self.template.render()


def transformation_to_json(transformation: Transformation) -> dict[str, Any]:
    return {
        "transformation_id": transformation.transformation_id,
        "cluster_id": transformation.cluster_id,
        "template": transformation.template.to_json(),
        "before": transformation.before,
        "after": transformation.after,
        "rendered": transformation.rendered,
        "support": transformation.support,
        "repositories": list(transformation.repositories),
        "examples": list(transformation.examples),
    }


def transformation_from_json(data: dict[str, Any]) -> Transformation:
    return Transformation(
        transformation_id=data["transformation_id"],
        cluster_id=data["cluster_id"],
        template=EditTemplate.from_json(data["template"]),
        support=int(data["support"]),
        repositories=tuple(data["repositories"]),
        examples=tuple(data.get("examples", [])),
    )


def compute_catalog_hash(transformations: list[Transformation]) -> str:
    payload = [transformation_to_json(t) for t in transformations]
    return compute_sha256_text(json.dumps(payload, sort_keys=True))


def save_catalog(
    transformations: list[Transformation],
    output_path: Path,
    metadata: dict[str, Any] | None = None,
) -> str:
    """Write the catalog and return its hash."""
    catalog_hash = compute_catalog_hash(transformations)
    write_json(
        output_path,
        {
            "catalog_hash": catalog_hash,
            "count": len(transformations),
            "metadata": metadata or {},
            "transformations": [transformation_to_json(t) for t in transformations],
        },
    )
    return catalog_hash


def load_catalog(catalog_path: Path) -> list[Transformation]:
    """
    Load a transformation catalog.

    Raises:
        FileNotFoundError: If the catalog doesn't exist.
        ValueError: If it is malformed or its hash doesn't match its content.
    """
    data = read_json(catalog_path)
    try:
        transformations = [transformation_from_json(item) for item in data["transformations"]]
        expected = data["catalog_hash"]
    except (KeyError, TypeError) as err:
        raise ValueError(f"Malformed transformation catalog {catalog_path}: {err}") from err

    actual = compute_catalog_hash(transformations)
    if actual != expected:
        raise ValueError(
            f"Catalog hash mismatch in {catalog_path}: expected {expected}, got {actual}"
        )
    return transformations
