"""Graph view — loads a Graph-IR into a networkx MultiDiGraph for checks.

The parser does not check that edges point at declared nodes; this
module is the layer on top that does. Every node (nested ones included)
becomes a graph vertex carrying its Node under ``data``; every edge whose
endpoints are declared becomes a graph edge carrying its Edge. Parallel
edges are kept.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import networkx as nx

from coral_dsl.ir.model import Edge, GraphIR, Node
from coral_dsl.types import NODE_TYPES, NodeType


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    severity: Severity
    message: str
    suggestion: str | None = None

    def __str__(self) -> str:
        text = f"{self.severity.value}: [{self.code}] {self.message}"
        if self.suggestion:
            text += f" ({self.suggestion})"
        return text


class GraphView:
    """A Graph-IR loaded into networkx, with topology queries."""

    def __init__(self, graph: GraphIR, digraph: nx.MultiDiGraph, duplicates: list[str], dangling: list[Edge]) -> None:
        self.graph = graph
        self.digraph = digraph
        self.duplicate_ids = duplicates
        self.dangling_edges = dangling

    @classmethod
    def from_ir(cls, graph: GraphIR) -> GraphView:
        digraph: nx.MultiDiGraph = nx.MultiDiGraph()
        duplicates: list[str] = []
        for node in graph.walk():
            if node.id in digraph:
                duplicates.append(node.id)
                continue
            digraph.add_node(node.id, data=node)

        dangling: list[Edge] = []
        for edge in graph.edges:
            if edge.source in digraph and edge.target in digraph:
                digraph.add_edge(edge.source, edge.target, key=edge.id, data=edge)
            else:
                dangling.append(edge)

        return cls(graph, digraph, duplicates, dangling)

    def node_count(self) -> int:
        return self.digraph.number_of_nodes()

    def edge_count(self) -> int:
        return self.digraph.number_of_edges()

    def node(self, node_id: str) -> Node | None:
        if node_id not in self.digraph:
            return None
        return self.digraph.nodes[node_id]["data"]

    def children_of(self, node_id: str) -> list[str]:
        node = self.node(node_id)
        if node is None:
            return []
        return [c.id for c in node.children]

    def is_dag(self) -> bool:
        return nx.is_directed_acyclic_graph(self.digraph)

    def find_cycle(self) -> list[str] | None:
        """Return one cycle as a node path (first node repeated last), or None."""
        try:
            cycle = nx.find_cycle(self.digraph, orientation="original")
        except nx.NetworkXNoCycle:
            return None
        path = [u for u, _v, *_rest in cycle]
        path.append(path[0])
        return path


def validate(graph: GraphIR) -> list[ValidationIssue]:
    """Check referential integrity and vocabulary of a Graph-IR.

    Errors: DUPLICATE_ID, UNDEFINED_NODE. Warnings: UNKNOWN_TYPE,
    MISSING_LABEL, CYCLE.
    """
    view = GraphView.from_ir(graph)
    issues: list[ValidationIssue] = []

    for node_id in view.duplicate_ids:
        issues.append(
            ValidationIssue(
                code="DUPLICATE_ID",
                severity=Severity.ERROR,
                message=f"Duplicate node ID: '{node_id}'",
                suggestion=f"Rename one of the nodes with ID '{node_id}'",
            )
        )

    for edge in view.dangling_edges:
        for role, ref in (("source", edge.source), ("target", edge.target)):
            if ref not in view.digraph:
                issues.append(
                    ValidationIssue(
                        code="UNDEFINED_NODE",
                        severity=Severity.ERROR,
                        message=f"Edge '{edge.id}' references undefined {role} '{ref}'",
                        suggestion=f"Add a node with ID '{ref}' or check for typos",
                    )
                )

    for node in graph.walk():
        if not NodeType.is_known(node.type):
            issues.append(
                ValidationIssue(
                    code="UNKNOWN_TYPE",
                    severity=Severity.WARNING,
                    message=f"Node '{node.id}' has unknown type '{node.type}'",
                    suggestion=f"Valid types: {', '.join(NODE_TYPES)}",
                )
            )
        if not node.label:
            issues.append(
                ValidationIssue(
                    code="MISSING_LABEL",
                    severity=Severity.WARNING,
                    message=f"Node '{node.id}' has no label",
                )
            )

    cycle = view.find_cycle()
    if cycle is not None:
        issues.append(
            ValidationIssue(
                code="CYCLE",
                severity=Severity.WARNING,
                message=f"Cycle detected: {' -> '.join(cycle)}",
            )
        )

    return issues


def has_errors(issues: list[ValidationIssue], strict: bool = False) -> bool:
    """True if any issue is an error (or any issue at all when strict)."""
    if strict:
        return bool(issues)
    return any(i.severity is Severity.ERROR for i in issues)
