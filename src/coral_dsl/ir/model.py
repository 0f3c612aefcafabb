"""Graph-IR data structures.

These types are the shared data model of the parsers and the printer:
dataclasses for the graph (GraphIR, Node, Edge), source positions
(SourceInfo, SourceRange, Position) and parse outcomes (ParseError,
ParseResult).

Optional collections are empty containers when unset, so an absent
``children``/``properties`` and an empty one compare equal. The JSON
form produced by ``to_dict`` uses the camelCase keys of the Graph-IR
schema and leaves unset fields out.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from coral_dsl.types import DEFAULT_GRAPH_ID, GRAPH_IR_VERSION

# ─── Source positions ────────────────────────────────────────────────────────


@dataclass
class Position:
    line: int  # 1-based
    column: int  # 0-based

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "column": self.column}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Position:
        return cls(line=int(data["line"]), column=int(data["column"]))


@dataclass
class SourceRange:
    start: int
    end: int
    start_position: Position | None = None
    end_position: Position | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"start": self.start, "end": self.end}
        if self.start_position is not None:
            out["startPosition"] = self.start_position.to_dict()
        if self.end_position is not None:
            out["endPosition"] = self.end_position.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceRange:
        start_pos = data.get("startPosition")
        end_pos = data.get("endPosition")
        return cls(
            start=int(data["start"]),
            end=int(data["end"]),
            start_position=Position.from_dict(start_pos) if start_pos else None,
            end_position=Position.from_dict(end_pos) if end_pos else None,
        )


@dataclass
class SourceInfo:
    range: SourceRange

    @classmethod
    def new(cls, start: int, end: int, start_position: Position, end_position: Position) -> SourceInfo:
        return cls(range=SourceRange(start, end, start_position, end_position))

    def to_dict(self) -> dict[str, Any]:
        return {"range": self.range.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceInfo:
        return cls(range=SourceRange.from_dict(data["range"]))


# ─── Graph ───────────────────────────────────────────────────────────────────


@dataclass
class Node:
    id: str
    type: str
    label: str
    parent: str | None = None
    children: list[Node] = field(default_factory=list)
    properties: dict[str, Any] = field(default_factory=dict)
    source_info: SourceInfo | None = None

    @classmethod
    def new(cls, id: str, type: str, label: str) -> Node:
        return cls(id=id, type=type, label=label)

    def has_body(self) -> bool:
        """True when printing this node needs a ``{ ... }`` body."""
        return bool(self.children) or bool(self.properties)

    def walk(self) -> Iterator[Node]:
        """Yield this node, then its descendants depth-first in order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "type": self.type, "label": self.label}
        if self.parent is not None:
            out["parent"] = self.parent
        if self.children:
            out["children"] = [c.to_dict() for c in self.children]
        if self.properties:
            out["properties"] = dict(self.properties)
        if self.source_info is not None:
            out["sourceInfo"] = self.source_info.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Node:
        info = data.get("sourceInfo")
        return cls(
            id=data["id"],
            type=data.get("type") or "",
            label=data.get("label") or "",
            parent=data.get("parent"),
            children=[cls.from_dict(c) for c in data.get("children") or []],
            properties=dict(data.get("properties") or {}),
            source_info=SourceInfo.from_dict(info) if info else None,
        )


@dataclass
class Edge:
    id: str
    source: str
    target: str
    type: str | None = None
    label: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)
    style: dict[str, str] = field(default_factory=dict)
    source_info: SourceInfo | None = None

    @classmethod
    def new(cls, id: str, source: str, target: str) -> Edge:
        return cls(id=id, source=source, target=target)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "source": self.source, "target": self.target}
        if self.type is not None:
            out["type"] = self.type
        if self.label is not None:
            out["label"] = self.label
        if self.properties:
            out["properties"] = dict(self.properties)
        if self.style:
            out["style"] = dict(self.style)
        if self.source_info is not None:
            out["sourceInfo"] = self.source_info.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Edge:
        info = data.get("sourceInfo")
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            type=data.get("type"),
            label=data.get("label"),
            properties=dict(data.get("properties") or {}),
            style=dict(data.get("style") or {}),
            source_info=SourceInfo.from_dict(info) if info else None,
        )


@dataclass
class GraphIR:
    version: str = GRAPH_IR_VERSION
    id: str = DEFAULT_GRAPH_ID
    name: str | None = None
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    layout_options: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def new(cls, id: str = DEFAULT_GRAPH_ID, name: str | None = None) -> GraphIR:
        return cls(id=id, name=name)

    def walk(self) -> Iterator[Node]:
        """Yield every node, nested ones included, in document order."""
        stack = list(reversed(self.nodes))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find_node(self, node_id: str) -> Node | None:
        return next((n for n in self.walk() if n.id == node_id), None)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"version": self.version, "id": self.id}
        if self.name is not None:
            out["name"] = self.name
        out["nodes"] = [n.to_dict() for n in self.nodes]
        out["edges"] = [e.to_dict() for e in self.edges]
        if self.layout_options:
            out["layoutOptions"] = dict(self.layout_options)
        if self.metadata:
            out["metadata"] = dict(self.metadata)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GraphIR:
        return cls(
            version=data.get("version") or GRAPH_IR_VERSION,
            id=data.get("id") or DEFAULT_GRAPH_ID,
            name=data.get("name"),
            nodes=[Node.from_dict(n) for n in data.get("nodes") or []],
            edges=[Edge.from_dict(e) for e in data.get("edges") or []],
            layout_options=dict(data.get("layoutOptions") or {}),
            metadata=dict(data.get("metadata") or {}),
        )


# ─── Parse outcome ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ParseError:
    message: str
    line: int  # 1-based
    column: int  # 0-based
    offset: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "line": self.line, "column": self.column, "offset": self.offset}


@dataclass
class ParseResult:
    """Outcome of a parse: either a graph or a non-empty error list, never both."""

    success: bool
    graph: GraphIR | None = None
    errors: list[ParseError] = field(default_factory=list)

    @classmethod
    def ok(cls, graph: GraphIR) -> ParseResult:
        return cls(success=True, graph=graph)

    @classmethod
    def failed(cls, errors: list[ParseError]) -> ParseResult:
        return cls(success=False, errors=list(errors))
