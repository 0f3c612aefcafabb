"""Printer — turns Graph-IR back into Coral DSL text.

Output layout:
  1. Top-level nodes in order, children nested and indented; a node gets
     a ``{ ... }`` body only when it has properties or children, and its
     properties come before its children
  2. One blank line, only when there are both nodes and edges
  3. Edges, one per line: ``source -> target [type, label = "...", k = "v"]``

Only string property values are printed, and node properties whose key
starts with "_" are internal and skipped. Backslash and double quote are
the only escaped characters. For every graph the parser can produce,
parsing the printed text gives back an equal graph.
"""

from __future__ import annotations

from typing import Any

from coral_dsl.config import FormatOptions, PrintOptions
from coral_dsl.ir.model import Edge, GraphIR, Node
from coral_dsl.types import RESERVED_PREFIX, TYPE_ORDER, NodeType


def escape_string(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _printable_properties(properties: dict[str, Any], skip_reserved: bool) -> list[tuple[str, str]]:
    out: list[tuple[str, str]] = []
    for key, value in properties.items():
        if skip_reserved and key.startswith(RESERVED_PREFIX):
            continue
        if isinstance(value, str):
            out.append((key, value))
    return out


def _print_nodes(roots: list[Node], lines: list[str], indent: str) -> None:
    # Explicit stack: nesting depth is bounded only by the input.
    stack: list[tuple[Node, int, bool]] = [(n, 0, False) for n in reversed(roots)]
    while stack:
        node, depth, closing = stack.pop()
        prefix = indent * depth
        if closing:
            lines.append(prefix + "}")
            continue

        node_type = node.type or NodeType.default().value
        header = f'{prefix}{node_type} "{escape_string(node.label or node.id)}"'
        if not node.has_body():
            lines.append(header)
            continue

        lines.append(header + " {")
        for key, value in _printable_properties(node.properties, skip_reserved=True):
            lines.append(f'{prefix}{indent}{key}: "{escape_string(value)}"')
        stack.append((node, depth, True))
        stack.extend((child, depth + 1, False) for child in reversed(node.children))


def _print_edge(edge: Edge) -> str:
    attrs: list[str] = []
    if edge.type is not None:
        attrs.append(edge.type)
    if edge.label is not None:
        attrs.append(f'label = "{escape_string(edge.label)}"')
    for key, value in _printable_properties(edge.properties, skip_reserved=False):
        if key == "label":
            continue
        attrs.append(f'{key} = "{escape_string(value)}"')

    text = f"{edge.source} -> {edge.target}"
    if attrs:
        text += f" [{', '.join(attrs)}]"
    return text


def print_graph(graph: GraphIR, options: PrintOptions | None = None) -> str:
    """Print a Graph-IR as Coral DSL text.

    Args:
        graph: The graph to print; it is only read.
        options: Indentation string (default two spaces).

    Returns:
        The DSL text, without a trailing newline; empty for an empty graph.
    """
    opts = options or PrintOptions()
    lines: list[str] = []
    _print_nodes(graph.nodes, lines, opts.indent)
    if graph.nodes and graph.edges:
        lines.append("")
    for edge in graph.edges:
        lines.append(_print_edge(edge))
    return "\n".join(lines)


def _type_rank(node: Node) -> int:
    node_type = node.type or NodeType.default().value
    if node_type in TYPE_ORDER:
        return TYPE_ORDER.index(node_type)
    return len(TYPE_ORDER)


def pretty_print(graph: GraphIR, options: FormatOptions | None = None) -> str:
    """Print with optional human-oriented reordering.

    With ``sort_by_type`` the top-level nodes are stably ordered actor,
    service, module, database, external_api, group (unknown types last).
    Nesting order and edges are left alone.
    """
    opts = options or FormatOptions()
    nodes = list(graph.nodes)
    if opts.sort_by_type:
        nodes.sort(key=_type_rank)
    reordered = GraphIR(version=graph.version, id=graph.id, name=graph.name, nodes=nodes, edges=graph.edges)
    return print_graph(reordered, opts)
