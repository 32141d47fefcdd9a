# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Anti-unification of edit templates.

Anti-unifying two templates computes the most specific template that still
covers both: everything they agree on stays concrete, everything they
disagree on becomes a hole. Both sides of an edit are generalized with one
shared table of holes, so if `x` was replaced by `y` on the before side and
`x` shows up again on the after side, both places get the same `?N`. That
is what keeps the result usable as a rewrite rule.

Rules, applied recursively:

  - equal hole-free nodes stay as they are
  - two groups with the same brackets are generalized child by child
  - anything else (different leaves, different brackets, a hole on either
    side) becomes a single hole
  - two node lists of the same length are generalized pairwise
  - two lists of different lengths keep their common prefix and suffix;
    what's left in the middle becomes one sequence hole `?N*`

Contexts are aligned at the edit: left contexts from the right, right
contexts from the left, each truncated to the shorter of the two.

The cost of a generalization is the number of concrete nodes that had to
be replaced by holes. Anti-unifying a template with itself costs nothing.
"""

from typing import Hashable

from revisar.clustering.template import EditTemplate
from revisar.java.tree import Group, Hole, Node, count_concrete, iter_holes


def _hole_free(node: Node) -> bool:
    if isinstance(node, Hole):
        return False
    if isinstance(node, Group):
        return all(_hole_free(child) for child in node.children)
    return True


class _AntiUnifier:
    """One anti-unification run: the shared hole table and the running cost."""

    def __init__(self) -> None:
        self._holes: dict[Hashable, Hole] = {}
        self.cost = 0

    def _hole(self, key: Hashable, sequence: bool, cost: int) -> Hole:
        self.cost += cost
        hole = self._holes.get(key)
        if hole is None:
            hole = Hole(index=len(self._holes), sequence=sequence)
            self._holes[key] = hole
        return hole

    def node(self, x: Node, y: Node) -> Node:
        if x == y and _hole_free(x):
            return x
        if isinstance(x, Group) and isinstance(y, Group) and x.label == y.label:
            return Group(label=x.label, children=self.nodes(x.children, y.children))
        sequence = (isinstance(x, Hole) and x.sequence) or (isinstance(y, Hole) and y.sequence)
        return self._hole(
            ("node", x, y),
            sequence,
            count_concrete((x,)) + count_concrete((y,)),
        )

    def nodes(self, xs: tuple[Node, ...], ys: tuple[Node, ...]) -> tuple[Node, ...]:
        if len(xs) == len(ys):
            return tuple(self.node(x, y) for x, y in zip(xs, ys))

        shortest = min(len(xs), len(ys))
        prefix = 0
        while prefix < shortest and xs[prefix] == ys[prefix]:
            prefix += 1
        suffix = 0
        while suffix < shortest - prefix and xs[-1 - suffix] == ys[-1 - suffix]:
            suffix += 1

        middle_x = xs[prefix:len(xs) - suffix]
        middle_y = ys[prefix:len(ys) - suffix]

        head = tuple(self.node(x, y) for x, y in zip(xs[:prefix], ys[:prefix]))
        tail = tuple(
            self.node(x, y) for x, y in zip(xs[len(xs) - suffix:], ys[len(ys) - suffix:])
        )
        middle = self._hole(
            ("sequence", middle_x, middle_y),
            True,
            count_concrete(middle_x) + count_concrete(middle_y),
        )
        return head + (middle,) + tail


def _renumber(nodes: tuple[Node, ...], mapping: dict[int, int]) -> tuple[Node, ...]:
    renumbered: list[Node] = []
    for node in nodes:
        if isinstance(node, Hole):
            renumbered.append(Hole(index=mapping[node.index], sequence=node.sequence))
        elif isinstance(node, Group):
            renumbered.append(
                Group(
                    label=node.label,
                    children=_renumber(node.children, mapping),
                    line=node.line,
                    start=node.start,
                    end=node.end,
                )
            )
        else:
            renumbered.append(node)
    return tuple(renumbered)


def canonicalize(template: EditTemplate) -> EditTemplate:
    """
    Number holes 0, 1, 2, ... in order of first appearance.

    The reading order is left context, before, right context, after, i.e.
    the before pattern followed by the after side.
    """
    mapping: dict[int, int] = {}
    order = template.left_context + template.before + template.right_context + template.after
    for hole in iter_holes(order):
        if hole.index not in mapping:
            mapping[hole.index] = len(mapping)
    return EditTemplate(
        left_context=_renumber(template.left_context, mapping),
        before=_renumber(template.before, mapping),
        after=_renumber(template.after, mapping),
        right_context=_renumber(template.right_context, mapping),
    )


def anti_unify(a: EditTemplate, b: EditTemplate) -> tuple[EditTemplate, int]:
    """
    Least general template covering both a and b, and what it cost.

    The result is canonically numbered, so anti_unify(t, t) returns t for
    any canonical t at cost 0.
    """
    unifier = _AntiUnifier()

    width = min(len(a.left_context), len(b.left_context))
    left_a = a.left_context[len(a.left_context) - width:]
    left_b = b.left_context[len(b.left_context) - width:]
    width = min(len(a.right_context), len(b.right_context))
    right_a = a.right_context[:width]
    right_b = b.right_context[:width]

    left = tuple(unifier.node(x, y) for x, y in zip(left_a, left_b))
    before = unifier.nodes(a.before, b.before)
    right = tuple(unifier.node(x, y) for x, y in zip(right_a, right_b))
    after = unifier.nodes(a.after, b.after)

    template = EditTemplate(left_context=left, before=before, after=after, right_context=right)
    return canonicalize(template), unifier.cost

