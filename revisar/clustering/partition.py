# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
d-cap partitioning.

Comparing every edit with every other edit is quadratic, and most pairs
have nothing in common anyway. Before clustering, edits are split by a
cheap structural fingerprint, the d-cap: the shape of the changed region
cut off at depth d, with identifiers and literals reduced to their kind.
Only edits in the same partition are ever compared.

  depth 1:  new ArrayList<String>()  ->  ("new", "IDENT", "<>", "()")
  depth 2:  new ArrayList<String>()  ->  ("new", "IDENT", ("<>", ("IDENT",)), ("()", ()))
"""

import json
from typing import Any

from revisar.clustering.template import EditTemplate
from revisar.java.lexer import IDENT, LITERAL_KINDS
from revisar.java.tree import Group, Hole, Leaf, Node

PartitionKey = tuple[tuple[Any, ...], tuple[Any, ...]]


def dcap(nodes: tuple[Node, ...], depth: int) -> tuple[Any, ...]:
    """Depth-limited abstraction of a node list. Depth 0 is always ()."""
    if depth <= 0:
        return ()
    capped: list[Any] = []
    for node in nodes:
        if isinstance(node, Leaf):
            capped.append(node.kind if node.kind == IDENT or node.kind in LITERAL_KINDS else node.text)
        elif isinstance(node, Group):
            if depth == 1:
                capped.append(node.label)
            else:
                capped.append((node.label, dcap(node.children, depth - 1)))
        elif isinstance(node, Hole):
            capped.append("?*" if node.sequence else "?")
    return tuple(capped)


def partition_key(template: EditTemplate, depth: int) -> PartitionKey:
    return dcap(template.before, depth), dcap(template.after, depth)


def partition_label(key: PartitionKey) -> str:
    """Stable printable form of a partition key, used in clusters.json."""
    return json.dumps(key, separators=(",", ":"))
