# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Concrete edits and their JSON record form."""

from typing import Any, NamedTuple

from revisar.clustering.template import EditTemplate
from revisar.java.tree import Node, nodes_from_json, nodes_to_json


class ConcreteEdit(NamedTuple):
    """One change observed in one file in one commit."""

    edit_id: str
    source: str
    commit: str
    parent: str
    path: str
    line: int
    left_context: tuple[Node, ...]
    before: tuple[Node, ...]
    after: tuple[Node, ...]
    right_context: tuple[Node, ...]

    def template(self) -> EditTemplate:
        return EditTemplate(
            left_context=self.left_context,
            before=self.before,
            after=self.after,
            right_context=self.right_context,
        )


def edit_to_record(edit: ConcreteEdit) -> dict[str, Any]:
    """Serialize an edit for a JSONL shard. The rendered text is for humans."""
    return {
        "edit_id": edit.edit_id,
        "source": edit.source,
        "commit": edit.commit,
        "parent": edit.parent,
        "path": edit.path,
        "line": edit.line,
        "left_context": nodes_to_json(edit.left_context),
        "before": nodes_to_json(edit.before),
        "after": nodes_to_json(edit.after),
        "right_context": nodes_to_json(edit.right_context),
        "rendered": edit.template().render(),
    }


def edit_from_record(record: dict[str, Any]) -> ConcreteEdit:
    """
    Inverse of edit_to_record.

    Raises:
        KeyError: If a required field is missing.
        ValueError: If a node list is malformed.
    """
    return ConcreteEdit(
        edit_id=record["edit_id"],
        source=record["source"],
        commit=record["commit"],
        parent=record["parent"],
        path=record["path"],
        line=int(record["line"]),
        left_context=nodes_from_json(record["left_context"]),
        before=nodes_from_json(record["before"]),
        after=nodes_from_json(record["after"]),
        right_context=nodes_from_json(record["right_context"]),
    )
