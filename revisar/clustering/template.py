# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Edit templates: the common currency of clustering and generalization.

A template is a before/after pair that shares its left and right context.
A concrete edit is a template without holes; a cluster's template is the
anti-unification of its members and may contain holes, numbered once for
the whole template so `?0` on the before side and `?0` on the after side
are the same variable.
"""

from typing import Any, NamedTuple

from revisar.java.render import render_nodes
from revisar.java.tree import Hole, Node, count_concrete, iter_holes, nodes_from_json, nodes_to_json


class EditTemplate(NamedTuple):
    left_context: tuple[Node, ...]
    before: tuple[Node, ...]
    after: tuple[Node, ...]
    right_context: tuple[Node, ...]

    @property
    def before_pattern(self) -> tuple[Node, ...]:
        """What a match looks like in code: context plus the old region."""
        return self.left_context + self.before + self.right_context

    @property
    def after_pattern(self) -> tuple[Node, ...]:
        """What replaces a match: context plus the new region."""
        return self.left_context + self.after + self.right_context

    def holes(self) -> set[Hole]:
        return set(iter_holes(self.before_pattern)) | set(iter_holes(self.after_pattern))

    def unbound_holes(self) -> set[Hole]:
        """Holes used on the after side that nothing on the before side binds."""
        bound = {hole.index for hole in iter_holes(self.before_pattern)}
        return {hole for hole in iter_holes(self.after_pattern) if hole.index not in bound}

    def is_applicable(self, min_concrete_nodes: int = 1) -> bool:
        """
        Can this template be used as a rewrite rule?

        Every after-side hole must be bound by the before side, the rewrite
        must change something, and the before side must keep enough concrete
        structure to not match arbitrary code.
        """
        if self.unbound_holes():
            return False
        if self.before == self.after:
            return False
        return count_concrete(self.before_pattern) >= min_concrete_nodes

    def render(self) -> str:
        return f"{render_nodes(self.before_pattern)} ==> {render_nodes(self.after_pattern)}"

    def to_json(self) -> dict[str, Any]:
        return {
            "left_context": nodes_to_json(self.left_context),
            "before": nodes_to_json(self.before),
            "after": nodes_to_json(self.after),
            "right_context": nodes_to_json(self.right_context),
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "EditTemplate":
        return cls(
            left_context=nodes_from_json(data["left_context"]),
            before=nodes_from_json(data["before"]),
            after=nodes_from_json(data["after"]),
            right_context=nodes_from_json(data["right_context"]),
        )
