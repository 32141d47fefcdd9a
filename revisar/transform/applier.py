# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Applying transformations to Java source.

The applier finds every occurrence of a transformation's before pattern
and rewrites only the changed region of each match; the surrounding
context is left exactly as written. Inside the region, concrete nodes are
rendered from the template while hole bindings are copied verbatim from
the original text, so user formatting and comments inside bound
expressions survive the rewrite.

Matches whose rewrite would produce the same nodes (e.g. a diamond
already in place) are not counted and not touched.
"""

from typing import NamedTuple, Optional

from revisar.clustering.template import EditTemplate
from revisar.java.render import render_nodes
from revisar.java.tree import Group, Hole, Node, first_line, parse_tree
from revisar.transform.matcher import Bindings, Match, find_matches, match_at
from revisar.transform.transformation import Transformation


class ApplyResult(NamedTuple):
    text: str
    applied: int
    sites: list[int]


class Suggestion(NamedTuple):
    transformation_id: str
    line: int
    original: str
    replacement: str


class _Splice(NamedTuple):
    start: int
    end: int
    replacement: str
    line: int
    window_start: int
    window_end: int


def instantiate(nodes: tuple[Node, ...], bindings: Bindings) -> tuple[Node, ...]:
    """Substitute every hole by the nodes bound to it."""
    result: list[Node] = []
    for node in nodes:
        if isinstance(node, Hole):
            result.extend(bindings[node.index])
        elif isinstance(node, Group):
            result.append(Group(label=node.label, children=instantiate(node.children, bindings)))
        else:
            result.append(node)
    return tuple(result)


def _source_text(source: str, nodes: tuple[Node, ...]) -> str:
    if not nodes:
        return ""
    return source[nodes[0].start:nodes[-1].end]


def _region_bounds(template: EditTemplate, match: Match) -> tuple[int, int]:
    """Node indexes of the changed region inside a match window."""
    return (
        match.start + len(template.left_context),
        match.end - len(template.right_context),
    )


def _plan_splice(source: str, template: EditTemplate, match: Match) -> Optional[_Splice]:
    region_start, region_end = _region_bounds(template, match)
    region = match.nodes[region_start:region_end]
    if instantiate(template.after, match.bindings) == region:
        return None

    replacement = render_nodes(
        template.after,
        hole_renderer=lambda hole: _source_text(source, match.bindings[hole.index]),
    )

    if region:
        start, end = region[0].start, region[-1].end
    elif region_start > match.start:
        start = end = match.nodes[region_start - 1].end
        replacement = " " + replacement
    else:
        start = end = match.nodes[region_end].start
        replacement = replacement + " "

    window = match.matched
    return _Splice(
        start=start,
        end=end,
        replacement=replacement,
        line=first_line(window),
        window_start=window[0].start,
        window_end=window[-1].end,
    )


def _plan(source: str, transformation: Transformation) -> list[_Splice]:
    """
    Raises:
        JavaSyntaxError: If the source doesn't parse.
    """
    root = parse_tree(source)
    template = transformation.template
    splices: list[_Splice] = []
    for match in find_matches(template.before_pattern, root):
        splice = _plan_splice(source, template, match)
        if splice is not None:
            splices.append(splice)
    return splices


def apply_transformation(source: str, transformation: Transformation) -> ApplyResult:
    """
    Rewrite every match of a transformation in one source text.

    A source without matches comes back unchanged with applied == 0.

    Raises:
        JavaSyntaxError: If the source doesn't parse.
    """
    splices = _plan(source, transformation)
    text = source
    for splice in reversed(splices):
        text = text[:splice.start] + splice.replacement + text[splice.end:]
    return ApplyResult(text=text, applied=len(splices), sites=[s.line for s in splices])


def apply_all(source: str, transformations: list[Transformation]) -> ApplyResult:
    """Apply transformations one after another, each to the previous result."""
    text = source
    applied = 0
    sites: list[int] = []
    for transformation in transformations:
        result = apply_transformation(text, transformation)
        text = result.text
        applied += result.applied
        sites.extend(result.sites)
    return ApplyResult(text=text, applied=applied, sites=sorted(sites))


def suggest(
    source: str,
    transformations: list[Transformation],
    max_suggestions: Optional[int] = None,
) -> list[Suggestion]:
    """
    List what each transformation would change, without rewriting.

    Suggestions are ordered by line, then transformation id.

    Raises:
        JavaSyntaxError: If the source doesn't parse.
    """
    suggestions: list[Suggestion] = []
    for transformation in transformations:
        for splice in _plan(source, transformation):
            original = source[splice.window_start:splice.window_end]
            replacement = (
                source[splice.window_start:splice.start]
                + splice.replacement
                + source[splice.end:splice.window_end]
            )
            suggestions.append(
                Suggestion(
                    transformation_id=transformation.transformation_id,
                    line=splice.line,
                    original=original,
                    replacement=replacement,
                )
            )
    suggestions.sort(key=lambda s: (s.line, s.transformation_id))
    if max_suggestions is not None:
        suggestions = suggestions[:max_suggestions]
    return suggestions


def rewrite_nodes(template: EditTemplate, nodes: tuple[Node, ...]) -> Optional[tuple[Node, ...]]:
    """
    Apply a template to a bare node sequence, e.g. a mined edit's before code.

    Uses the first match along the top-level sequence. Returns the rewritten
    sequence, or None when the template doesn't match anywhere.
    """
    for start in range(len(nodes)):
        match = match_at(template.before_pattern, nodes, start)
        if match is None:
            continue
        region_start, region_end = _region_bounds(template, match)
        return nodes[:region_start] + instantiate(template.after, match.bindings) + nodes[region_end:]
    return None
