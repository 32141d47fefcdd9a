# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Turn node sequences back into Java-looking text.

Used for log lines, the JSON catalog, and for the concrete parts of an
instantiated transformation. Spacing is heuristic: tight around `.`,
brackets and type arguments, single spaces elsewhere. The applier never
re-renders hole bindings; it copies their original source text.
"""

from typing import Callable, NamedTuple, Optional

from revisar.java.lexer import OPERATOR, SEPARATOR
from revisar.java.tree import ANGLE_LABEL, Group, Hole, Leaf, Node


class _Piece(NamedTuple):
    text: str
    role: str  # word, punct, open, close, angle_open, angle_close
    spaced: bool = True


_NO_SPACE_AFTER = frozenset({".", "::", "!", "~", "@"})
_NO_SPACE_BEFORE = frozenset({";", ",", ".", "::", "++", "--"})
_MODIFIERS = frozenset({"public", "private", "protected", "static", "final", "abstract"})
_CONTROL_KEYWORDS = frozenset(
    {"if", "for", "while", "switch", "catch", "synchronized", "return", "try", "throw", "assert"}
)


def _hole_text(hole: Hole) -> str:
    return f"?{hole.index}{'*' if hole.sequence else ''}"


def _collect(
    nodes: tuple[Node, ...],
    out: list[_Piece],
    hole_renderer: Optional[Callable[[Hole], str]],
) -> None:
    for node in nodes:
        if isinstance(node, Leaf):
            role = "punct" if node.kind in (OPERATOR, SEPARATOR) else "word"
            out.append(_Piece(node.text, role, node.spaced))
        elif isinstance(node, Group):
            angle = node.label == ANGLE_LABEL
            out.append(_Piece(node.opener, "angle_open" if angle else "open"))
            _collect(node.children, out, hole_renderer)
            out.append(_Piece(node.closer, "angle_close" if angle else "close"))
        else:
            text = hole_renderer(node) if hole_renderer is not None else _hole_text(node)
            if text:
                out.append(_Piece(text, "word"))


def _needs_space(previous: _Piece, current: _Piece) -> bool:
    if not current.spaced:
        return False
    if previous.role in ("open", "angle_open") or previous.text in _NO_SPACE_AFTER:
        return False
    if current.role in ("close", "angle_close") or current.text in _NO_SPACE_BEFORE:
        return False
    if current.role == "angle_open":
        return previous.text in _MODIFIERS or previous.role == "punct"
    if current.role == "open" and current.text != "{":
        # Calls, array access and constructor arguments hug their callee.
        if previous.role in ("close", "angle_close"):
            return False
        return previous.role == "punct" or previous.text in _CONTROL_KEYWORDS
    return True


def render_nodes(
    nodes: tuple[Node, ...],
    hole_renderer: Optional[Callable[[Hole], str]] = None,
) -> str:
    """
    Render a node sequence as a single line of Java.

    Holes render as `?N` / `?N*` unless a hole_renderer supplies text.
    """
    pieces: list[_Piece] = []
    _collect(nodes, pieces, hole_renderer)
    if not pieces:
        return ""

    parts = [pieces[0].text]
    for previous, current in zip(pieces, pieces[1:]):
        if _needs_space(previous, current):
            parts.append(" ")
        parts.append(current.text)
    return "".join(parts)
