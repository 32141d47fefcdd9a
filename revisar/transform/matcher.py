# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Template pattern matching over bracket trees.

A pattern is a node sequence that may contain holes. It matches a
contiguous run of siblings in a tree:

  - a Leaf matches an equal leaf (same kind, same text)
  - a Group matches a group with the same brackets whose children match
    the pattern's children completely
  - `?N` matches exactly one node
  - `?N*` matches zero or more siblings

A hole that appears more than once must bind equal content every time.
Sequence holes make matching ambiguous, so the matcher is a backtracking
generator: it tries the shortest binding first and moves on only when
something later in the pattern fails.
"""

from typing import Iterator, NamedTuple, Optional

from revisar.java.tree import Group, Hole, Leaf, Node

Bindings = dict[int, tuple[Node, ...]]


class Match(NamedTuple):
    """A pattern occurrence: nodes[start:end] of one sibling list."""

    nodes: tuple[Node, ...]
    start: int
    end: int
    bindings: Bindings

    @property
    def matched(self) -> tuple[Node, ...]:
        return self.nodes[self.start:self.end]


def _bind(hole: Hole, value: tuple[Node, ...], bindings: Bindings) -> Optional[Bindings]:
    bound = bindings.get(hole.index)
    if bound is not None:
        return bindings if bound == value else None
    extended = dict(bindings)
    extended[hole.index] = value
    return extended


def _match_node(pattern: Node, node: Node, bindings: Bindings) -> Iterator[Bindings]:
    if isinstance(pattern, Hole):
        result = _bind(pattern, (node,), bindings)
        if result is not None:
            yield result
    elif isinstance(pattern, Leaf):
        if pattern == node:
            yield bindings
    elif isinstance(node, Group) and node.label == pattern.label:
        for _, result in _match_sequence(pattern.children, 0, node.children, 0, bindings, True):
            yield result


def _match_sequence(
    pattern: tuple[Node, ...],
    p_index: int,
    nodes: tuple[Node, ...],
    n_index: int,
    bindings: Bindings,
    anchored: bool,
) -> Iterator[tuple[int, Bindings]]:
    """
    Yield (end, bindings) for every way pattern[p_index:] matches nodes
    from n_index. Anchored matches must consume the rest of nodes.
    """
    if p_index == len(pattern):
        if not anchored or n_index == len(nodes):
            yield n_index, bindings
        return

    current = pattern[p_index]
    if isinstance(current, Hole) and current.sequence:
        bound = bindings.get(current.index)
        if bound is not None:
            if nodes[n_index:n_index + len(bound)] == bound:
                yield from _match_sequence(
                    pattern, p_index + 1, nodes, n_index + len(bound), bindings, anchored
                )
            return
        for end in range(n_index, len(nodes) + 1):
            extended = dict(bindings)
            extended[current.index] = nodes[n_index:end]
            yield from _match_sequence(pattern, p_index + 1, nodes, end, extended, anchored)
        return

    if n_index >= len(nodes):
        return
    for result in _match_node(current, nodes[n_index], bindings):
        yield from _match_sequence(pattern, p_index + 1, nodes, n_index + 1, result, anchored)


def match_at(
    pattern: tuple[Node, ...],
    nodes: tuple[Node, ...],
    start: int,
) -> Optional[Match]:
    """First non-empty match of pattern starting exactly at nodes[start]."""
    for end, bindings in _match_sequence(pattern, 0, nodes, start, {}, False):
        if end > start:
            return Match(nodes=nodes, start=start, end=end, bindings=bindings)
    return None


def find_matches(pattern: tuple[Node, ...], root: Group) -> list[Match]:
    """
    Leftmost non-overlapping matches of pattern anywhere in the tree.

    Sibling lists are scanned left to right. A match consumes its nodes, so
    nothing inside a matched region is searched again; unmatched groups are
    searched recursively. Matches come back in source order.
    """
    matches: list[Match] = []
    if not pattern:
        return matches

    def scan(nodes: tuple[Node, ...]) -> None:
        index = 0
        while index < len(nodes):
            found = match_at(pattern, nodes, index)
            if found is not None:
                matches.append(found)
                index = found.end
                continue
            node = nodes[index]
            if isinstance(node, Group):
                scan(node.children)
            index += 1

    scan(root.children)
    return matches
