# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tree differ: find the changed regions between two versions of a file.

The differ walks both bracket trees together. At each level it aligns the
two child lists with difflib.SequenceMatcher (nodes are hashable, so whole
subtrees compare in one step). For every non-equal opcode:

  - a one-to-one replacement of two same-label groups that still share at
    least one child is descended into, because the change lives deeper;
  - anything else becomes an EditRegion at this level.

The sharing rule is what keeps regions meaningful: `<String>` vs `<>` share
nothing, so the region is the whole type-argument list together with its
context (`new ArrayList`), not a bare deletion of `String`.

Context is taken only from siblings that are equal on both sides, so it is
the same for before and after by construction. It never crosses a
statement: a `;` ends it (kept on the right, dropped on the left) and `{}`
blocks are never included.
"""

from difflib import SequenceMatcher
from typing import NamedTuple

from revisar.java.tree import Group, Leaf, Node, first_line


class EditRegion(NamedTuple):
    """One changed region with its surrounding context."""

    left_context: tuple[Node, ...]
    before: tuple[Node, ...]
    after: tuple[Node, ...]
    right_context: tuple[Node, ...]
    line: int


def _is_statement_end(node: Node) -> bool:
    return isinstance(node, Leaf) and node.text == ";"


def _is_block(node: Node) -> bool:
    return isinstance(node, Group) and node.label == "{}"


def _left_context(
    a: tuple[Node, ...], b: tuple[Node, ...], i: int, j: int, limit: int
) -> tuple[Node, ...]:
    taken: list[Node] = []
    while len(taken) < limit and i > 0 and j > 0:
        node = a[i - 1]
        if node != b[j - 1] or _is_statement_end(node) or _is_block(node):
            break
        taken.append(node)
        i -= 1
        j -= 1
    return tuple(reversed(taken))


def _right_context(
    a: tuple[Node, ...], b: tuple[Node, ...], i: int, j: int, limit: int
) -> tuple[Node, ...]:
    taken: list[Node] = []
    while len(taken) < limit and i < len(a) and j < len(b):
        node = a[i]
        if node != b[j] or _is_block(node):
            break
        taken.append(node)
        if _is_statement_end(node):
            break
        i += 1
        j += 1
    return tuple(taken)


def _shares_child(x: Group, y: Group) -> bool:
    return bool(set(x.children) & set(y.children))


def _diff_children(
    a: tuple[Node, ...],
    b: tuple[Node, ...],
    context_before: int,
    context_after: int,
    out: list[EditRegion],
) -> None:
    matcher = SequenceMatcher(None, a, b, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue

        if tag == "replace" and i2 - i1 == 1 and j2 - j1 == 1:
            x, y = a[i1], b[j1]
            if (
                isinstance(x, Group)
                and isinstance(y, Group)
                and x.label == y.label
                and _shares_child(x, y)
            ):
                _diff_children(x.children, y.children, context_before, context_after, out)
                continue

        left = _left_context(a, b, i1, j1, context_before)
        right = _right_context(a, b, i2, j2, context_after)
        before = a[i1:i2]
        after = b[j1:j2]
        out.append(
            EditRegion(
                left_context=left,
                before=before,
                after=after,
                right_context=right,
                line=first_line(left + before + right) or first_line(after),
            )
        )


def diff_trees(
    before_root: Group,
    after_root: Group,
    context_before: int = 2,
    context_after: int = 1,
) -> list[EditRegion]:
    """
    List the changed regions between two trees, in source order.

    Identical trees (including trees that differ only in whitespace or
    comments, which the lexer already dropped) yield no regions.
    """
    regions: list[EditRegion] = []
    if before_root == after_root:
        return regions
    _diff_children(before_root.children, after_root.children, context_before, context_after, regions)
    return regions
