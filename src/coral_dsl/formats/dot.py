"""Graphviz DOT importer — digraph/graph/subgraph to Graph-IR.

Supported subset:
  digraph G { A -> B -> C [label="x", style=dashed]; }
  graph G { A -- B; }
  A [label="Web App", shape=cylinder];
  subgraph cluster_x { label = "Backend"; A; B; }
  rankdir=LR;  graph [rankdir=LR];

Shape to node type:
  cylinder, Mcylinder            database
  ellipse, circle, doublecircle  actor
  diamond                        module
  anything else                  service

``node [...]`` and ``edge [...]`` default statements are accepted and
ignored. Comments (``//`` and ``/* */``) are skipped by the tokenizer.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from coral_dsl.config import ImportOptions
from coral_dsl.formats.builder import DiagramBuilder, empty_input
from coral_dsl.ir.model import Edge, Node, ParseResult
from coral_dsl.types import Direction, NodeType

logger = logging.getLogger(__name__)

DEFAULT_DOT_GRAPH_ID = "dot-graph"

_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<comment>//[^\n]*|/\*.*?\*/)
    | (?P<string>"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')
    | (?P<op>->|--|[{};\[\],=])
    | (?P<word>[^\s{};\[\],="']+?)(?=->|--|[\s{};\[\],="']|$)
    """,
    re.VERBOSE | re.DOTALL,
)

_EDGE_OPS = ("->", "--")

_SHAPE_TYPES: dict[str, str] = {
    "cylinder": NodeType.DATABASE.value,
    "Mcylinder": NodeType.DATABASE.value,
    "ellipse": NodeType.ACTOR.value,
    "circle": NodeType.ACTOR.value,
    "doublecircle": NodeType.ACTOR.value,
    "diamond": NodeType.MODULE.value,
}

# Attributes that map onto Graph-IR fields rather than properties.
_NODE_FIELDS = frozenset({"label", "shape"})


class _DotSyntaxError(Exception):
    def __init__(self, message: str, line: int) -> None:
        super().__init__(message)
        self.line = line


@dataclass
class _Token:
    text: str
    line: int
    quoted: bool = False


def tokenize(source: str) -> list[_Token]:
    """Split DOT source into tokens, dropping whitespace and comments."""
    tokens: list[_Token] = []
    pos, line = 0, 1
    while pos < len(source):
        m = _TOKEN_RE.match(source, pos)
        if m is None:
            raise _DotSyntaxError(f"Unterminated string starting with {source[pos:pos + 10]!r}", line)
        kind = m.lastgroup
        text = m.group(0)
        if kind == "string":
            tokens.append(_Token(_unquote(text), line, quoted=True))
        elif kind in ("op", "word"):
            tokens.append(_Token(text, line))
        line += text.count("\n")
        pos = m.end()
    return tokens


def _unquote(text: str) -> str:
    return re.sub(r"\\(.)", r"\1", text[1:-1])


def shape_to_type(shape: str | None) -> str:
    return _SHAPE_TYPES.get(shape or "", NodeType.default().value)


def edge_style(style: str) -> dict[str, str]:
    if "dashed" in style:
        return {"lineStyle": "dashed"}
    if "dotted" in style:
        return {"lineStyle": "dotted"}
    return {}


def parse_dot(source: str, options: ImportOptions | None = None) -> ParseResult:
    """Import Graphviz DOT text as Graph-IR.

    Args:
        source: A single ``digraph``/``graph`` block.
        options: Graph id/name; the id otherwise comes from the graph name
            and falls back to ``dot-graph``.

    Returns:
        ParseResult; a syntax error fails the whole import with one error
        on the line where it occurred.
    """
    text = source.strip()
    if not text:
        return empty_input()

    builder = DiagramBuilder(default_id=DEFAULT_DOT_GRAPH_ID, options=options or ImportOptions())
    cursor = _TokenCursor(builder=builder)
    try:
        cursor.tokens = tokenize(text)
        cursor.parse_graph()
        if not cursor.eof():
            raise _DotSyntaxError(f"Unexpected '{cursor.peek()}' after graph", cursor.line())
    except _DotSyntaxError as e:
        builder.error(str(e), line=e.line)
    except RecursionError:
        logger.warning("dot import hit the recursion limit on %d character(s)", len(text))
        builder.error("Subgraphs nested too deep", line=cursor.line())
    return builder.result()


@dataclass
class _TokenCursor:
    """Recursive-descent parser over the DOT token stream."""

    builder: DiagramBuilder
    tokens: list[_Token] = field(default_factory=list)
    pos: int = 0
    directed: bool = True

    def eof(self) -> bool:
        return self.pos >= len(self.tokens)

    def peek(self) -> str | None:
        if self.eof():
            return None
        token = self.tokens[self.pos]
        # Quoted ids never compare equal to punctuation or keywords.
        return f'"{token.text}"' if token.quoted else token.text

    def line(self) -> int:
        if not self.tokens:
            return 1
        return self.tokens[min(self.pos, len(self.tokens) - 1)].line

    def consume(self) -> str:
        if self.eof():
            raise _DotSyntaxError("Unexpected end of input", self.line())
        token = self.tokens[self.pos]
        self.pos += 1
        return token.text

    def expect(self, expected: str) -> None:
        got = self.peek()
        if got != expected:
            raise _DotSyntaxError(f"Expected '{expected}', got '{got or 'end of input'}'", self.line())
        self.pos += 1

    def skip_semicolon(self) -> None:
        if self.peek() == ";":
            self.pos += 1

    # ── Graphs ───────────────────────────────────────────────────────────────

    def parse_graph(self) -> None:
        """``[strict] (digraph | graph) [ID] { stmt* }``"""
        keyword = self.consume()
        if keyword.lower() == "strict":
            keyword = self.consume()
        if keyword not in ("digraph", "graph"):
            raise _DotSyntaxError(f"Expected 'digraph' or 'graph', got '{keyword}'", self.line())
        self.directed = keyword == "digraph"
        if self.peek() != "{":
            self.builder.graph_id = self.consume()
        self.expect("{")
        self.parse_statements(parent=None)
        self.expect("}")

    def parse_subgraph(self, parent: Node | None) -> None:
        """``subgraph [ID] { stmt* }``; a named subgraph becomes a group."""
        self.consume()
        group = parent
        if self.peek() != "{":
            name = self.consume()
            group = self.builder.add(Node.new(name, NodeType.GROUP.value, name), parent=parent)
        self.expect("{")
        self.parse_statements(parent=group)
        self.expect("}")

    def parse_statements(self, parent: Node | None) -> None:
        while not self.eof() and self.peek() != "}":
            self.parse_statement(parent)

    # ── Statements ───────────────────────────────────────────────────────────

    def parse_statement(self, parent: Node | None) -> None:
        token = self.peek()
        if token == "subgraph":
            self.parse_subgraph(parent)
        elif token in ("graph", "node", "edge"):
            self.consume()
            attrs = self.parse_attributes() if self.peek() == "[" else {}
            if token == "graph":
                self.apply_graph_attributes(attrs, parent)
        elif token == ";":
            pass
        else:
            node_id = self.consume()
            if self.peek() == "=":
                self.consume()
                self.apply_graph_attributes({node_id: self.consume()}, parent)
            elif self.peek() in _EDGE_OPS:
                self.parse_edge_chain(node_id, parent)
            else:
                attrs = self.parse_attributes() if self.peek() == "[" else {}
                self.declare_node(node_id, attrs, parent)
        self.skip_semicolon()

    def parse_attributes(self) -> dict[str, str]:
        """``[ k=v (, | ;)? ... ]``, possibly repeated: ``[a=1][b=2]``."""
        attrs: dict[str, str] = {}
        while self.peek() == "[":
            self.consume()
            while not self.eof() and self.peek() != "]":
                key = self.consume()
                if self.peek() == "=":
                    self.consume()
                    attrs[key] = self.consume()
                if self.peek() in (",", ";"):
                    self.consume()
            self.expect("]")
        return attrs

    def parse_edge_chain(self, first: str, parent: Node | None) -> None:
        """``A -> B -> C [attrs]``; the attributes apply to every hop."""
        ids = [first]
        while self.peek() in _EDGE_OPS:
            self.consume()
            ids.append(self.consume())
        attrs = self.parse_attributes() if self.peek() == "[" else {}

        for node_id in ids:
            self.declare_node(node_id, {}, parent)
        for source, target in zip(ids, ids[1:]):
            self.apply_edge_attributes(self.builder.edge("edge", source, target), attrs)

    # ── Graph-IR updates ─────────────────────────────────────────────────────

    def declare_node(self, node_id: str, attrs: dict[str, str], parent: Node | None) -> None:
        created = not self.builder.has(node_id)
        node_type = shape_to_type(attrs["shape"]) if "shape" in attrs else None
        node = self.builder.ensure(node_id, node_type, attrs.get("label"))
        node.properties.update({k: v for k, v in attrs.items() if k not in _NODE_FIELDS})
        # Membership is decided where the node first appears.
        if created and parent is not None:
            self.builder.adopt(parent, node)

    def apply_edge_attributes(self, edge: Edge, attrs: dict[str, str]) -> None:
        if attrs.get("label"):
            edge.label = attrs["label"]
        if attrs.get("style"):
            edge.style = edge_style(attrs["style"])
        if not self.directed:
            edge.style.setdefault("targetArrow", "none")

    def apply_graph_attributes(self, attrs: dict[str, str], group: Node | None) -> None:
        if "rankdir" in attrs:
            self.builder.layout_options["direction"] = Direction.from_keyword(attrs["rankdir"]).value
        if attrs.get("label") and group is not None:
            group.label = attrs["label"]
