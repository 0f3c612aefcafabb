"""Graph assembly shared by the Mermaid and DOT importers.

Imported diagrams name their nodes explicitly, so unlike the DSL parsers
no ids are generated from labels: a node id is whatever the source wrote,
and declaring the same id again updates the existing node.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from coral_dsl.config import ImportOptions
from coral_dsl.ir.model import Edge, GraphIR, Node, ParseError, ParseResult
from coral_dsl.types import NodeType


@dataclass
class DiagramBuilder:
    default_id: str
    options: ImportOptions = field(default_factory=ImportOptions)
    nodes: dict[str, Node] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)
    layout_options: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    graph_id: str | None = None
    _edge_count: int = 0

    # ── Nodes ────────────────────────────────────────────────────────────────

    def has(self, node_id: str) -> bool:
        return node_id in self.nodes

    def ensure(self, node_id: str, type: str | None = None, label: str | None = None) -> Node:
        """Return the node with this id, creating it if needed.

        A label or type given for an existing node replaces the old one.
        """
        node = self.nodes.get(node_id)
        if node is None:
            node = Node.new(node_id, type or NodeType.default().value, label or node_id)
            self.nodes[node_id] = node
            return node
        if label:
            node.label = label
        if type:
            node.type = type
        return node

    def add(self, node: Node, parent: Node | None = None) -> Node:
        """Register a fully built node, optionally as a child of ``parent``."""
        self.nodes[node.id] = node
        if parent is not None:
            self.adopt(parent, node)
        return node

    def adopt(self, parent: Node, child: Node) -> None:
        """Nest ``child`` under ``parent``; a node keeps its first parent."""
        if child.parent is not None or child is parent:
            return
        child.parent = parent.id
        parent.children.append(child)

    # ── Edges ────────────────────────────────────────────────────────────────

    def edge(self, prefix: str, source: str, target: str) -> Edge:
        """Append an edge with the next ``<prefix>_<n>`` id."""
        self._edge_count += 1
        edge = Edge.new(f"{prefix}_{self._edge_count}", source, target)
        self.edges.append(edge)
        return edge

    # ── Result ───────────────────────────────────────────────────────────────

    def error(self, message: str, line: int = 1, column: int = 0, offset: int = 0) -> None:
        self.errors.append(ParseError(message=message, line=line, column=column, offset=offset))

    def result(self) -> ParseResult:
        if self.errors:
            return ParseResult.failed(self.errors)
        graph = GraphIR.new(
            id=self.options.graph_id or self.graph_id or self.default_id,
            name=self.options.graph_name,
        )
        graph.nodes = [n for n in self.nodes.values() if n.parent is None]
        graph.edges = self.edges
        graph.layout_options = self.layout_options
        graph.metadata = self.metadata
        return ParseResult.ok(graph)


def empty_input() -> ParseResult:
    return ParseResult.failed([ParseError(message="Empty input", line=1, column=0, offset=0)])
