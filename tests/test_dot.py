"""Tests for coral_dsl.formats.dot — Graphviz DOT to Graph-IR."""

import pytest

from coral_dsl.config import ImportOptions
from coral_dsl.formats.dot import parse_dot, tokenize
from coral_dsl.ir.model import GraphIR


def _graph(source: str, options: ImportOptions | None = None) -> GraphIR:
    result = parse_dot(source, options)
    assert result.success, result.errors
    assert result.graph is not None
    return result.graph


# ─── Tokenizer ───────────────────────────────────────────────────────────────


def test_tokenize_splits_operators_without_spaces():
    tokens = tokenize('A->B--C[label="x y"];')
    assert [t.text for t in tokens] == ["A", "->", "B", "--", "C", "[", "label", "=", "x y", "]", ";"]


def test_tokenize_skips_comments_and_tracks_lines():
    tokens = tokenize("// header\ndigraph {\n  /* block\n comment */ A\n}")
    assert [(t.text, t.line) for t in tokens] == [("digraph", 2), ("{", 2), ("A", 4), ("}", 5)]


def test_tokenize_unescapes_quoted_ids():
    token = tokenize(r'"say \"hi\""')[0]
    assert (token.text, token.quoted) == ('say "hi"', True)


# ─── digraph ─────────────────────────────────────────────────────────────────


def test_simple_digraph():
    graph = _graph("\ndigraph G {\n    A -> B;\n}\n")
    assert [n.id for n in graph.nodes] == ["A", "B"]
    assert [(e.id, e.source, e.target) for e in graph.edges] == [("edge_1", "A", "B")]


def test_nodes_with_labels():
    graph = _graph('digraph G {\n    A [label="Web App"];\n    B [label="API Gateway"];\n    A -> B;\n}')
    assert graph.find_node("A").label == "Web App"
    assert graph.find_node("B").label == "API Gateway"


@pytest.mark.parametrize(
    "shape,node_type",
    [
        ("cylinder", "database"),
        ("Mcylinder", "database"),
        ("box", "service"),
        ("ellipse", "actor"),
        ("doublecircle", "actor"),
        ("diamond", "module"),
        ("hexagon", "service"),
    ],
)
def test_node_shapes_map_to_types(shape, node_type):
    graph = _graph(f'digraph G {{\n    n [shape={shape}, label="N"];\n}}')
    assert graph.nodes[0].type == node_type


def test_other_node_attributes_become_properties():
    node = _graph('digraph { A [label="A", color=red, tooltip="hi"] }').nodes[0]
    assert node.properties == {"color": "red", "tooltip": "hi"}


def test_edge_labels():
    edge = _graph('digraph G {\n    A -> B [label="HTTP Request"];\n}').edges[0]
    assert (edge.source, edge.target, edge.label) == ("A", "B", "HTTP Request")


def test_edge_chain():
    graph = _graph("digraph G {\n    A -> B -> C;\n}")
    assert [(e.source, e.target) for e in graph.edges] == [("A", "B"), ("B", "C")]
    assert [e.id for e in graph.edges] == ["edge_1", "edge_2"]


def test_chain_attributes_apply_to_every_hop():
    graph = _graph('digraph { A -> B -> C [label="x"] }')
    assert [e.label for e in graph.edges] == ["x", "x"]


def test_graph_name_is_the_id():
    assert _graph("digraph MyArchitecture {\n    A -> B;\n}").id == "MyArchitecture"


def test_options_override_graph_name():
    graph = _graph("digraph MyArchitecture { A }", ImportOptions(graph_id="g1", graph_name="Demo"))
    assert (graph.id, graph.name) == ("g1", "Demo")


def test_anonymous_graph_uses_default_id():
    assert _graph("strict digraph { A }").id == "dot-graph"


def test_quoted_node_ids():
    graph = _graph('digraph G {\n    "web-app" -> "api-gateway";\n}')
    assert [n.id for n in graph.nodes] == ["web-app", "api-gateway"]


def test_default_statements_are_ignored():
    graph = _graph("digraph { node [shape=box]; edge [color=gray]; A -> B }")
    assert [n.type for n in graph.nodes] == ["service", "service"]


# ─── Undirected graph ────────────────────────────────────────────────────────


def test_undirected_graph():
    graph = _graph("graph G {\n    A -- B;\n}")
    assert len(graph.edges) == 1
    assert graph.edges[0].style == {"targetArrow": "none"}


# ─── Subgraphs ───────────────────────────────────────────────────────────────


def test_clusters_become_groups():
    source = 'digraph G {\n    subgraph cluster_backend {\n        label = "Backend";\n        A;\n        B;\n    }\n}'
    graph = _graph(source)
    backend = graph.find_node("cluster_backend")
    assert (backend.type, backend.label) == ("group", "Backend")
    assert [(c.id, c.parent) for c in backend.children] == [("A", "cluster_backend"), ("B", "cluster_backend")]
    assert [n.id for n in graph.nodes] == ["cluster_backend"]


def test_nested_clusters():
    source = "digraph { subgraph outer { graph [label=Outer]; subgraph inner { X } } }"
    outer = _graph(source).nodes[0]
    assert outer.label == "Outer"
    assert outer.children[0].id == "inner"
    assert outer.children[0].parent == "outer"
    assert outer.children[0].children[0].id == "X"


def test_node_stays_where_it_first_appeared():
    graph = _graph("digraph { A; subgraph cluster_x { A -> B } }")
    assert [n.id for n in graph.nodes] == ["A", "cluster_x"]
    assert [c.id for c in graph.find_node("cluster_x").children] == ["B"]


# ─── Graph attributes ────────────────────────────────────────────────────────


@pytest.mark.parametrize("rankdir,direction", [("LR", "RIGHT"), ("TB", "DOWN"), ("BT", "UP"), ("RL", "LEFT")])
def test_rankdir(rankdir, direction):
    graph = _graph(f"digraph G {{\n    rankdir={rankdir};\n    A -> B;\n}}")
    assert graph.layout_options == {"direction": direction}


def test_rankdir_in_graph_statement():
    assert _graph("digraph { graph [rankdir=LR] A }").layout_options["direction"] == "RIGHT"


def test_no_layout_options_by_default():
    assert _graph("digraph { A }").to_dict().get("layoutOptions") is None


# ─── Edge styles ─────────────────────────────────────────────────────────────


@pytest.mark.parametrize("style", ["dashed", "dotted"])
def test_edge_line_style(style):
    edge = _graph(f"digraph G {{\n    A -> B [style={style}];\n}}").edges[0]
    assert edge.style == {"lineStyle": style}


# ─── Errors ──────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("source", ["", "  \n "])
def test_empty_input(source):
    result = parse_dot(source)
    assert not result.success
    assert result.errors[0].message == "Empty input"


def test_malformed_input():
    result = parse_dot("not valid dot")
    assert not result.success
    assert result.errors[0].message == "Expected 'digraph' or 'graph', got 'not'"


def test_missing_closing_brace_reports_line():
    result = parse_dot("digraph G {\n  A -> B;\n  B -> C [label=\"x\"]\n")
    assert not result.success
    assert result.errors[0].message == "Expected '}', got 'end of input'"
    assert result.errors[0].line == 3


def test_unterminated_string():
    result = parse_dot('digraph {\n  A [label="oops]\n}')
    assert not result.success
    assert result.errors[0].line == 2


def test_trailing_tokens_are_an_error():
    result = parse_dot("digraph { A } B")
    assert not result.success
    assert "after graph" in result.errors[0].message
