"""Tests for coral_dsl.printer — Graph-IR to DSL text."""

from coral_dsl.config import FormatOptions, PrintOptions
from coral_dsl.ir.model import Edge, GraphIR, Node
from coral_dsl.printer import escape_string, pretty_print, print_graph


def _graph(nodes=None, edges=None) -> GraphIR:
    return GraphIR(id="test", nodes=nodes or [], edges=edges or [])


def _node(id, type="service", label=None, **kwargs) -> Node:
    return Node(id=id, type=type, label=label if label is not None else id.upper(), **kwargs)


# ─── Nodes ───────────────────────────────────────────────────────────────────


def test_simple_node():
    assert print_graph(_graph([_node("web_app", label="Web App")])) == 'service "Web App"'


def test_node_types_are_printed_verbatim():
    graph = _graph([_node("q", type="queue"), _node("d", type="database")])
    assert print_graph(graph) == 'queue "Q"\ndatabase "D"'


def test_properties_before_children():
    parent = _node(
        "payment",
        label="Payment Service",
        properties={"owner": "team"},
        children=[_node("validation", type="module", label="Validation", parent="payment")],
    )
    assert print_graph(_graph([parent])) == (
        'service "Payment Service" {\n  owner: "team"\n  module "Validation"\n}'
    )


def test_nested_indentation():
    child = _node("child", label="Child", parent="parent", properties={"key": "value"})
    parent = _node("parent", type="group", label="Parent", children=[child])
    assert print_graph(_graph([parent])) == 'group "Parent" {\n  service "Child" {\n    key: "value"\n  }\n}'


def test_custom_indent():
    child = _node("c", parent="p")
    parent = _node("p", type="group", children=[child])
    assert print_graph(_graph([parent]), PrintOptions(indent="\t")) == 'group "P" {\n\tservice "C"\n}'


def test_reserved_and_non_string_properties_are_skipped():
    node = _node("api", properties={"_layout": "x", "port": 8080, "tier": "edge"})
    assert print_graph(_graph([node])) == 'service "API" {\n  tier: "edge"\n}'


def test_node_without_label_or_type_falls_back():
    node = Node(id="my_service", type="", label="")
    assert print_graph(_graph([node])) == 'service "my_service"'


def test_escapes_quotes_and_backslashes():
    node = _node("t", label='Say "Hello" \\ bye', properties={"path": "C:\\tmp"})
    assert print_graph(_graph([node])) == 'service "Say \\"Hello\\" \\\\ bye" {\n  path: "C:\\\\tmp"\n}'


def test_escape_string_leaves_other_characters():
    assert escape_string("tab\there é") == "tab\there é"


# ─── Edges ───────────────────────────────────────────────────────────────────


def test_simple_edge():
    assert print_graph(_graph(edges=[Edge(id="e1", source="api", target="db")])) == "api -> db"


def test_edge_attribute_order():
    edge = Edge(
        id="e1",
        source="api",
        target="queue",
        type="event",
        label="OrderCreated",
        properties={"retries": "3", "label": "ignored", "weight": 2},
    )
    assert print_graph(_graph(edges=[edge])) == 'api -> queue [event, label = "OrderCreated", retries = "3"]'


def test_edge_with_only_properties():
    edge = Edge(id="e1", source="a", target="b", properties={"k": 'v"q'})
    assert print_graph(_graph(edges=[edge])) == 'a -> b [k = "v\\"q"]'


# ─── Layout ──────────────────────────────────────────────────────────────────


def test_empty_graph_prints_nothing():
    assert print_graph(_graph()) == ""


def test_blank_line_between_nodes_and_edges():
    graph = _graph([_node("a"), _node("b")], [Edge(id="e1", source="a", target="b")])
    assert print_graph(graph).split("\n") == ['service "A"', 'service "B"', "", "a -> b"]


def test_no_blank_line_with_edges_only():
    graph = _graph(edges=[Edge(id="e1", source="a", target="b"), Edge(id="e2", source="b", target="c")])
    assert print_graph(graph) == "a -> b\nb -> c"


def test_printing_does_not_mutate_graph():
    graph = _graph([_node("b", type="database"), _node("a", type="actor")])
    before = GraphIR.from_dict(graph.to_dict())
    pretty_print(graph, FormatOptions(sort_by_type=True))
    assert graph == before


# ─── Pretty print ────────────────────────────────────────────────────────────


def test_pretty_print_sorts_by_type():
    graph = _graph(
        [
            _node("grp", type="group"),
            _node("db", type="database"),
            _node("usr", type="actor"),
            _node("svc2"),
            _node("ext", type="external_api"),
            _node("svc1"),
            _node("mod", type="module"),
        ]
    )
    printed = pretty_print(graph, FormatOptions(sort_by_type=True))
    assert [line.split(" ")[1] for line in printed.split("\n")] == [
        '"USR"',
        '"SVC2"',
        '"SVC1"',
        '"MOD"',
        '"DB"',
        '"EXT"',
        '"GRP"',
    ]


def test_pretty_print_puts_unknown_types_last():
    graph = _graph([_node("q", type="queue"), _node("a", type="actor")])
    assert pretty_print(graph, FormatOptions(sort_by_type=True)) == 'actor "A"\nqueue "Q"'


def test_pretty_print_without_sorting_matches_print():
    graph = _graph([_node("db", type="database"), _node("usr", type="actor")])
    assert pretty_print(graph) == print_graph(graph)


def test_pretty_print_keeps_child_order():
    parent = _node("g", type="group", children=[_node("d", type="database"), _node("u", type="actor")])
    printed = pretty_print(_graph([parent]), FormatOptions(sort_by_type=True))
    assert printed == 'group "G" {\n  database "D"\n  actor "U"\n}'


def test_deep_nesting_prints_iteratively():
    root = current = _node("n0")
    for i in range(1, 1200):
        child = _node(f"n{i}", parent=current.id)
        current.children.append(child)
        current = child
    lines = print_graph(_graph([root])).split("\n")
    assert len(lines) == 1199 * 2 + 1
    assert lines[1199] == "  " * 1199 + 'service "N1199"'
    assert lines[1200] == "  " * 1198 + "}"
    assert lines[-1] == "}"


def test_edge_style_is_not_printed():
    edge = Edge(id="a_to_b", source="a", target="b", style={"lineStyle": "dashed"})
    assert print_graph(_graph(edges=[edge])) == "a -> b"
