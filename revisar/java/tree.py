# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Bracket trees over Java tokens.

We don't build a full Java AST. Edits are compared over a lighter tree in
which every bracket pair, `(...)`, `[...]`, `{...}` and type-argument
`<...>`, becomes a Group node and every other token becomes a Leaf. That
is enough structure for the differ to find the smallest changed region and
for anti-unification to abstract whole argument lists or type arguments.

Templates reuse the same node types and add Hole: `?N` matches a single
sibling node, `?N*` matches a run of zero or more siblings.

Equality and hashing only look at structure (kind, text, label, children).
Source positions ride along with compare=False so the applier can splice
text back into the original file.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Union

from revisar.java.lexer import (
    ANNOTATION,
    IDENT,
    KEYWORD,
    JavaSyntaxError,
    Token,
    tokenize,
)

ROOT_LABEL = ""
ANGLE_LABEL = "<>"

_LABELS = {"(": "()", "[": "[]", "{": "{}"}

_GENERIC_PREFIX_KEYWORDS = frozenset(
    {
        "public", "private", "protected", "static", "final", "abstract",
        "synchronized", "native", "default", "strictfp",
    }
)
_GENERIC_PREFIX_TEXT = frozenset({".", "{", "}", ";"})
_TYPE_ARGUMENT_KEYWORDS = frozenset(
    {
        "extends", "super", "int", "long", "short", "byte", "char",
        "boolean", "float", "double", "void",
    }
)
_TYPE_ARGUMENT_TEXT = frozenset({".", ",", "?", "&", "[", "]"})


@dataclass(frozen=True)
class Leaf:
    """
    A single token in the tree.

    `spaced` is False only on the tail pieces of a split shift operator, so
    rendering can glue `>` `>` back into `>>`.
    """

    kind: str
    text: str
    spaced: bool = field(default=True, compare=False)
    line: int = field(default=0, compare=False)
    start: int = field(default=-1, compare=False)
    end: int = field(default=-1, compare=False)


@dataclass(frozen=True)
class Group:
    """A bracketed run of nodes. `label` is the bracket pair, e.g. '()'."""

    label: str
    children: tuple["Node", ...]
    line: int = field(default=0, compare=False)
    start: int = field(default=-1, compare=False)
    end: int = field(default=-1, compare=False)

    @property
    def opener(self) -> str:
        return self.label[:1]

    @property
    def closer(self) -> str:
        return self.label[1:]


@dataclass(frozen=True)
class Hole:
    """A template variable."""

    index: int
    sequence: bool = False


Node = Union[Leaf, Group, Hole]


def _type_argument_pairs(tokens: list[Token], index: int) -> list[tuple[int, int]] | None:
    """
    Try to read a type-argument list starting at tokens[index] == '<'.

    Returns every (open, close) index pair inside it, outermost last, or
    None when the '<' is a comparison or shift.
    """
    stack: list[int] = []
    pairs: list[tuple[int, int]] = []
    for position in range(index, len(tokens)):
        token = tokens[position]
        if token.text == "<":
            stack.append(position)
        elif token.text == ">":
            pairs.append((stack.pop(), position))
            if not stack:
                return pairs
        elif token.kind in (IDENT, ANNOTATION):
            continue
        elif token.kind == KEYWORD and token.text in _TYPE_ARGUMENT_KEYWORDS:
            continue
        elif token.text in _TYPE_ARGUMENT_TEXT:
            continue
        else:
            return None
    return None


def _find_angle_brackets(tokens: list[Token]) -> dict[int, int]:
    """Map the index of every type-argument '<' to the index of its '>'."""
    pairs: dict[int, int] = {}
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token.text == "<" and index > 0:
            previous = tokens[index - 1]
            plausible = (
                previous.kind == IDENT
                or previous.kind == ANNOTATION
                or previous.text in _GENERIC_PREFIX_TEXT
                or (previous.kind == KEYWORD and previous.text in _GENERIC_PREFIX_KEYWORDS)
            )
            if plausible:
                found = _type_argument_pairs(tokens, index)
                if found is not None:
                    pairs.update(dict(found))
                    index = found[-1][1] + 1
                    continue
        index += 1
    return pairs


def _continues_shift(tokens: list[Token], index: int) -> bool:
    """True for the second and third `>` of a `>>` or `>>>` the lexer split up."""
    token = tokens[index]
    return (
        index > 0
        and not token.spaced
        and token.text.startswith(">")
        and tokens[index - 1].text == ">"
    )


def build_tree(tokens: list[Token]) -> Group:
    """
    Nest a token list into a bracket tree rooted at a Group with label ''.

    Raises:
        JavaSyntaxError: On unbalanced or mismatched brackets.
    """
    angles = _find_angle_brackets(tokens)
    angle_closers = set(angles.values())

    # Each frame: (label, opening token or None, children)
    stack: list[tuple[str, Token | None, list[Node]]] = [(ROOT_LABEL, None, [])]

    for index, token in enumerate(tokens):
        if token.text in _LABELS:
            stack.append((_LABELS[token.text], token, []))
        elif index in angles:
            stack.append((ANGLE_LABEL, token, []))
        elif token.text in (")", "]", "}") or index in angle_closers:
            label, opening, children = stack.pop()
            if opening is None or label[1] != token.text:
                raise JavaSyntaxError(f"unbalanced {token.text!r}", token.line)
            stack[-1][2].append(
                Group(
                    label=label,
                    children=tuple(children),
                    line=opening.line,
                    start=opening.start,
                    end=token.end,
                )
            )
        else:
            stack[-1][2].append(
                Leaf(
                    kind=token.kind,
                    text=token.text,
                    spaced=not _continues_shift(tokens, index),
                    line=token.line,
                    start=token.start,
                    end=token.end,
                )
            )

    if len(stack) != 1:
        _, opening, _ = stack[-1]
        line = opening.line if opening is not None else 0
        raise JavaSyntaxError("unclosed bracket", line)

    children = stack[0][2]
    end = tokens[-1].end if tokens else 0
    return Group(label=ROOT_LABEL, children=tuple(children), line=1, start=0, end=end)


def parse_tree(source: str) -> Group:
    """Tokenize and nest Java source. Raises JavaSyntaxError on bad input."""
    return build_tree(tokenize(source))


def node_size(node: Node) -> int:
    """Number of nodes in the subtree, counting the node itself."""
    if isinstance(node, Group):
        return 1 + sum(node_size(child) for child in node.children)
    return 1


def nodes_size(nodes: tuple[Node, ...]) -> int:
    return sum(node_size(node) for node in nodes)


def iter_holes(nodes: tuple[Node, ...]) -> Iterator[Hole]:
    """Yield every hole in a node sequence, depth first."""
    for node in nodes:
        if isinstance(node, Hole):
            yield node
        elif isinstance(node, Group):
            yield from iter_holes(node.children)


def count_concrete(nodes: tuple[Node, ...]) -> int:
    """Number of non-hole nodes in a sequence, groups included."""
    total = 0
    for node in nodes:
        if isinstance(node, Group):
            total += 1 + count_concrete(node.children)
        elif isinstance(node, Leaf):
            total += 1
    return total


def first_line(nodes: tuple[Node, ...]) -> int:
    for node in nodes:
        if not isinstance(node, Hole) and node.line:
            return node.line
    return 0


def node_to_json(node: Node) -> dict[str, Any]:
    """
    Serialize a node to plain JSON data.

    Positions are not kept. A leaf carries "spaced" only when it continues a
    split `>>`.
    """
    if isinstance(node, Leaf):
        if not node.spaced:
            return {"leaf": node.kind, "text": node.text, "spaced": False}
        return {"leaf": node.kind, "text": node.text}
    if isinstance(node, Group):
        return {"group": node.label, "children": [node_to_json(child) for child in node.children]}
    return {"hole": node.index, "sequence": node.sequence}


def node_from_json(data: dict[str, Any]) -> Node:
    """
    Inverse of node_to_json.

    Raises:
        ValueError: If the mapping isn't a serialized node.
    """
    if "leaf" in data:
        return Leaf(kind=data["leaf"], text=data["text"], spaced=bool(data.get("spaced", True)))
    if "group" in data:
        return Group(
            label=data["group"],
            children=tuple(node_from_json(child) for child in data["children"]),
        )
    if "hole" in data:
        return Hole(index=int(data["hole"]), sequence=bool(data.get("sequence", False)))
    raise ValueError(f"Not a serialized node: {data!r}")


def nodes_to_json(nodes: tuple[Node, ...]) -> list[dict[str, Any]]:
    return [node_to_json(node) for node in nodes]


def nodes_from_json(data: list[dict[str, Any]]) -> tuple[Node, ...]:
    return tuple(node_from_json(item) for item in data)
