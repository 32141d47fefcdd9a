# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for rendering node sequences back to Java text."""

import pytest

from revisar.java.lexer import tokenize
from revisar.java.render import render_nodes
from revisar.java.tree import Group, Hole, Leaf, nodes_from_json, nodes_to_json, parse_tree


def _round(source: str) -> str:
    return render_nodes(parse_tree(source).children)


class TestRendering:
    @pytest.mark.parametrize(
        "source",
        [
            'x.equals("")',
            "new ArrayList<String>()",
            "new HashMap<>()",
            "StringBuffer sb = new StringBuffer();",
            "list.add(a, b);",
            "Map<String, List<Integer>> m;",
            "int y = x >> 1;",
            "int z = x >>> n;",
            "x >>= 2;",
        ],
    )
    def test_canonical_sources_render_unchanged(self, source: str) -> None:
        assert _round(source) == source

    def test_rendering_keeps_token_order(self) -> None:
        source = "if(x!=null){y=x.get(0)+1;}// done"
        rendered = _round(source)
        assert [t.text for t in tokenize(rendered)] == [t.text for t in tokenize(source)]

    def test_holes_render_as_variables(self) -> None:
        nodes = (Hole(0), Leaf("SEPARATOR", "."), Leaf("IDENT", "isEmpty"), Group("()", ()))
        assert render_nodes(nodes) == "?0.isEmpty()"

    def test_sequence_hole_marker(self) -> None:
        nodes = (Leaf("IDENT", "f"), Group("()", (Hole(1, sequence=True),)))
        assert render_nodes(nodes) == "f(?1*)"

    def test_hole_renderer_supplies_text(self) -> None:
        nodes = (Hole(0), Leaf("OPERATOR", "+"), Leaf("NUMBER", "1"))
        assert render_nodes(nodes, hole_renderer=lambda hole: "count") == "count + 1"

    def test_empty(self) -> None:
        assert render_nodes(()) == ""

    def test_shift_survives_catalog_round_trip(self) -> None:
        nodes = nodes_from_json(nodes_to_json(parse_tree("v >> 1").children[1:]))
        assert render_nodes((Hole(0),) + nodes) == "?0 >> 1"
