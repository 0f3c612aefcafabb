"""Intermediate representation: Graph-IR model and its networkx view."""

from coral_dsl.ir.graph import GraphView, Severity, ValidationIssue, validate
from coral_dsl.ir.model import Edge, GraphIR, Node, ParseError, ParseResult, Position, SourceInfo, SourceRange

__all__ = [
    "Edge",
    "GraphIR",
    "GraphView",
    "Node",
    "ParseError",
    "ParseResult",
    "Position",
    "Severity",
    "SourceInfo",
    "SourceRange",
    "ValidationIssue",
    "validate",
]
