"""Tests for coral_dsl.ir.model — construction, defaults and the JSON form."""

from coral_dsl.ir.model import Edge, GraphIR, Node, ParseError, ParseResult, Position, SourceInfo

# ─── Construction ────────────────────────────────────────────────────────────


def test_graph_defaults():
    graph = GraphIR()
    assert graph.version == "1.0.0"
    assert graph.id == "coral-graph"
    assert graph.name is None
    assert graph.nodes == []
    assert graph.edges == []


def test_node_new_classmethod():
    node = Node.new("api", "service", "API")
    assert (node.id, node.type, node.label) == ("api", "service", "API")
    assert node.parent is None
    assert node.children == []
    assert node.properties == {}
    assert not node.has_body()


def test_edge_new_classmethod():
    edge = Edge.new("a_to_b", "a", "b")
    assert edge.type is None
    assert edge.label is None
    assert edge.properties == {}


def test_walk_is_depth_first_in_document_order():
    leaf = Node.new("leaf", "module", "Leaf")
    inner = Node(id="inner", type="service", label="Inner", children=[leaf])
    graph = GraphIR(nodes=[Node(id="outer", type="group", label="Outer", children=[inner]), Node.new("z", "actor", "Z")])
    assert [n.id for n in graph.walk()] == ["outer", "inner", "leaf", "z"]
    assert graph.find_node("leaf") is leaf
    assert graph.find_node("missing") is None


# ─── Parse outcome ───────────────────────────────────────────────────────────


def test_parse_error_str():
    err = ParseError(message="Unclosed brace", line=3, column=0, offset=40)
    assert str(err) == "3:0: Unclosed brace"


def test_parse_result_is_success_or_failure():
    ok = ParseResult.ok(GraphIR())
    assert ok.success and ok.graph is not None and ok.errors == []
    failed = ParseResult.failed([ParseError("bad", 1, 0, 0)])
    assert not failed.success and failed.graph is None and len(failed.errors) == 1


# ─── JSON form ───────────────────────────────────────────────────────────────


def test_to_dict_omits_unset_fields():
    graph = GraphIR(nodes=[Node.new("api", "service", "API")], edges=[Edge.new("e", "a", "b")])
    assert graph.to_dict() == {
        "version": "1.0.0",
        "id": "coral-graph",
        "nodes": [{"id": "api", "type": "service", "label": "API"}],
        "edges": [{"id": "e", "source": "a", "target": "b"}],
    }


def test_to_dict_uses_camel_case_source_info():
    node = Node.new("api", "service", "API")
    node.source_info = SourceInfo.new(0, 13, Position(1, 0), Position(1, 13))
    assert node.to_dict()["sourceInfo"] == {
        "range": {
            "start": 0,
            "end": 13,
            "startPosition": {"line": 1, "column": 0},
            "endPosition": {"line": 1, "column": 13},
        }
    }


def test_dict_round_trip():
    child = Node(id="s", type="service", label="S", parent="m", properties={"k": "v"})
    child.source_info = SourceInfo.new(5, 9, Position(2, 2), Position(2, 6))
    graph = GraphIR(
        name="Demo",
        nodes=[Node(id="m", type="module", label="M", children=[child])],
        edges=[Edge(id="s_to_m", source="s", target="m", type="calls", label="x", properties={"n": "1"})],
    )
    assert GraphIR.from_dict(graph.to_dict()) == graph


def test_from_dict_tolerates_missing_optionals():
    graph = GraphIR.from_dict({"nodes": [{"id": "x", "type": "service"}]})
    assert graph.version == "1.0.0"
    assert graph.edges == []
    assert graph.nodes[0].label == ""


def test_from_dict_keeps_non_string_properties():
    node = Node.from_dict({"id": "x", "type": "service", "label": "X", "properties": {"port": 80}})
    assert node.properties == {"port": 80}


def test_style_layout_options_and_metadata_use_camel_case():
    graph = GraphIR(
        edges=[Edge(id="e", source="a", target="b", style={"lineStyle": "dashed"})],
        layout_options={"direction": "RIGHT"},
        metadata={"custom": {"diagramType": "sequence"}},
    )
    data = graph.to_dict()
    assert data["edges"][0]["style"] == {"lineStyle": "dashed"}
    assert list(data)[-2:] == ["layoutOptions", "metadata"]
    assert GraphIR.from_dict(data) == graph


def test_walk_handles_deep_nesting():
    root = current = Node.new("n0", "group", "N0")
    for i in range(1, 2000):
        child = Node(id=f"n{i}", type="group", label=f"N{i}", parent=current.id)
        current.children.append(child)
        current = child
    assert sum(1 for _ in GraphIR(nodes=[root]).walk()) == 2000
    assert GraphIR(nodes=[root]).find_node("n1999") is current
