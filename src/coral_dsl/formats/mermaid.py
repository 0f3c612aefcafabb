"""Mermaid importer — flowchart and friends to Graph-IR.

The first non-blank line picks the diagram type. Flowcharts are read with
a small cursor parser (node references, shapes, edge chains, subgraphs);
the other diagram types are line-oriented and live in mermaid_diagrams.py.

Shape to node type:
  [(db)] database    ([x]) service    [[x]] module    (((x))) actor
  ((x))  actor       {{x}} group      (x)   service   {x}     module
  [x]    service     >x]   service
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from coral_dsl.config import ImportOptions
from coral_dsl.formats import mermaid_diagrams
from coral_dsl.formats.builder import DiagramBuilder, empty_input
from coral_dsl.ir.model import Node, ParseError, ParseResult
from coral_dsl.types import Direction, NodeType

logger = logging.getLogger(__name__)

# ─── Diagram detection ───────────────────────────────────────────────────────

_FLOWCHART_HEADER_RE = re.compile(r"^(?:flowchart|graph)(?:\s+(TB|TD|BT|LR|RL))?\b", re.IGNORECASE)

_DIAGRAM_HEADERS: list[tuple[str, re.Pattern[str]]] = [
    ("sequence", re.compile(r"^sequenceDiagram", re.IGNORECASE)),
    ("class", re.compile(r"^classDiagram", re.IGNORECASE)),
    ("state", re.compile(r"^stateDiagram(?:-v2)?", re.IGNORECASE)),
    ("er", re.compile(r"^erDiagram", re.IGNORECASE)),
    ("timeline", re.compile(r"^timeline", re.IGNORECASE)),
    ("block", re.compile(r"^block-beta", re.IGNORECASE)),
    ("packet", re.compile(r"^packet-beta", re.IGNORECASE)),
    ("kanban", re.compile(r"^kanban", re.IGNORECASE)),
    ("architecture", re.compile(r"^architecture-beta", re.IGNORECASE)),
]

_UNSUPPORTED: dict[str, str] = {
    "gantt": "Gantt charts",
    "pie": "Pie charts",
    "quadrantchart": "Quadrant charts",
    "requirementdiagram": "Requirement diagrams",
    "gitgraph": "Git graphs",
    "c4context": "C4 diagrams",
    "mindmap": "Mind maps",
    "journey": "User journey diagrams",
    "zenuml": "ZenUML diagrams",
    "sankey": "Sankey diagrams",
    "xychart": "XY charts",
    "radar": "Radar charts",
    "treemap": "Treemaps",
}

SUPPORTED_DIAGRAMS = ("flowchart", *(name for name, _ in _DIAGRAM_HEADERS))

_LineParser = Callable[[list[str], DiagramBuilder], None]

_LINE_PARSERS: dict[str, _LineParser] = {
    "sequence": mermaid_diagrams.parse_sequence,
    "class": mermaid_diagrams.parse_class,
    "state": mermaid_diagrams.parse_state,
    "er": mermaid_diagrams.parse_er,
    "timeline": mermaid_diagrams.parse_timeline,
    "block": mermaid_diagrams.parse_block,
    "packet": mermaid_diagrams.parse_packet,
    "kanban": mermaid_diagrams.parse_kanban,
    "architecture": mermaid_diagrams.parse_architecture,
}


def detect_diagram_type(first_line: str) -> str | None:
    """Return the diagram type named by a Mermaid header line, or None."""
    if _FLOWCHART_HEADER_RE.match(first_line):
        return "flowchart"
    for name, pattern in _DIAGRAM_HEADERS:
        if pattern.match(first_line):
            return name
    return None


def _unsupported_error(first_line: str) -> ParseError:
    lowered = first_line.lower()
    for keyword, description in _UNSUPPORTED.items():
        if lowered.startswith(keyword):
            message = (
                f"Unsupported Mermaid diagram type: {description}. "
                f"Supported types: {', '.join(SUPPORTED_DIAGRAMS)}"
            )
            return ParseError(message=message, line=1, column=0, offset=0)
    message = "Could not detect Mermaid diagram type. Line must start with a valid diagram keyword."
    return ParseError(message=message, line=1, column=0, offset=0)


def parse_mermaid(source: str, options: ImportOptions | None = None) -> ParseResult:
    """Import Mermaid text as Graph-IR.

    Args:
        source: Mermaid diagram text; the first line names the diagram type.
        options: Graph id/name; the id defaults to ``mermaid-<type>``.

    Returns:
        ParseResult. Empty input and unknown or unsupported diagram types
        fail with a single error on line 1.
    """
    text = source.strip()
    if not text:
        return empty_input()

    lines = text.split("\n")
    first_line = lines[0].strip()
    diagram = detect_diagram_type(first_line)
    if diagram is None:
        return ParseResult.failed([_unsupported_error(first_line)])

    builder = DiagramBuilder(default_id=f"mermaid-{diagram}", options=options or ImportOptions())
    logger.debug("importing mermaid %s diagram (%d line(s))", diagram, len(lines))
    if diagram == "flowchart":
        header = _FLOWCHART_HEADER_RE.match(first_line)
        builder.layout_options["direction"] = Direction.from_keyword(header.group(1) if header else None).value
        _FlowchartReader(builder).read(lines[1:])
    else:
        builder.metadata["custom"] = {"diagramType": diagram}
        _LINE_PARSERS[diagram](lines[1:], builder)
    return builder.result()


# ─── Flowchart ───────────────────────────────────────────────────────────────

_NODE_ID_RE = re.compile(r"[A-Za-z0-9_]+")
_WHITESPACE_RE = re.compile(r"[ \t]+")
_SUBGRAPH_RE = re.compile(r"^subgraph\s+(\w+)(?:\s*\[\s*\"?([^\]\"]*)\"?\s*\])?\s*$")
_DIRECTIVE_RE = re.compile(r"^(?:direction|classDef|class|style|linkStyle|click)\b")

# Longest openers first so "[(" wins over "[" and "(((" over "((".
_SHAPES: list[tuple[str, str, str]] = [
    ("[(", ")]", NodeType.DATABASE.value),
    ("[[", "]]", NodeType.MODULE.value),
    ("(((", ")))", NodeType.ACTOR.value),
    ("((", "))", NodeType.ACTOR.value),
    ("([", "])", NodeType.SERVICE.value),
    ("{{", "}}", NodeType.GROUP.value),
    ("(", ")", NodeType.SERVICE.value),
    ("{", "}", NodeType.MODULE.value),
    ("[", "]", NodeType.SERVICE.value),
    (">", "]", NodeType.SERVICE.value),
]

# Connector token -> edge style. Longest tokens first.
_CONNECTORS: list[tuple[str, dict[str, str]]] = [
    ("<-.->", {"lineStyle": "dashed", "sourceArrow": "arrow"}),
    ("<==>", {"lineStyle": "solid", "sourceArrow": "arrow"}),
    ("<-->", {"sourceArrow": "arrow"}),
    ("-.->", {"lineStyle": "dashed"}),
    ("-.-", {"lineStyle": "dashed", "targetArrow": "none"}),
    ("==>", {"lineStyle": "solid"}),
    ("===", {"lineStyle": "solid", "targetArrow": "none"}),
    ("-->", {}),
    ("---", {"targetArrow": "none"}),
    ("--o", {"targetArrow": "circle"}),
    ("--x", {"targetArrow": "none"}),
    ("~~~", {"lineStyle": "dotted"}),
]


@dataclass
class _NodeRef:
    id: str
    type: str | None = None
    label: str | None = None


@dataclass
class _Cursor:
    """Stateful cursor over one flowchart statement."""

    src: str
    pos: int = 0

    def eof(self) -> bool:
        return self.pos >= len(self.src)

    def peek(self, s: str) -> bool:
        return self.src.startswith(s, self.pos)

    def skip_ws(self) -> None:
        m = _WHITESPACE_RE.match(self.src, self.pos)
        if m:
            self.pos = m.end()

    def parse_quoted_string(self) -> str | None:
        end = self.pos + 1
        buf: list[str] = []
        while end < len(self.src):
            ch = self.src[end]
            if ch == '"':
                self.pos = end + 1
                return "".join(buf)
            if ch == "\\" and end + 1 < len(self.src):
                buf.append(self.src[end + 1])
                end += 2
                continue
            buf.append(ch)
            end += 1
        return None

    def parse_shape(self) -> tuple[str, str] | None:
        saved = self.pos
        for opener, closer, node_type in _SHAPES:
            if not self.peek(opener):
                continue
            self.pos += len(opener)
            if self.peek('"'):
                label = self.parse_quoted_string()
                if label is not None and self.peek(closer):
                    self.pos += len(closer)
                    return node_type, label
            else:
                end = self.src.find(closer, self.pos)
                if end != -1:
                    label = self.src[self.pos : end].strip()
                    self.pos = end + len(closer)
                    return node_type, label
            self.pos = saved
        return None

    def parse_node_ref(self) -> _NodeRef | None:
        self.skip_ws()
        m = _NODE_ID_RE.match(self.src, self.pos)
        if m is None:
            return None
        self.pos = m.end()
        ref = _NodeRef(id=m.group(0))
        shape = self.parse_shape()
        if shape is not None:
            ref.type, ref.label = shape
        return ref

    def parse_connector(self) -> dict[str, str] | None:
        self.skip_ws()
        for token, style in _CONNECTORS:
            if self.peek(token):
                self.pos += len(token)
                return style
        return None

    def try_parse_edge_label(self) -> str | None:
        self.skip_ws()
        if not self.peek("|"):
            return None
        end = self.src.find("|", self.pos + 1)
        if end == -1:
            return None
        text = self.src[self.pos + 1 : end].strip()
        self.pos = end + 1
        return text

    def parse_statement(self) -> tuple[list[_NodeRef], list[tuple[dict[str, str], str | None]]] | None:
        """Parse ``ref (connector [|label|] ref)*``; None if nothing matched."""
        first = self.parse_node_ref()
        if first is None:
            return None
        refs = [first]
        links: list[tuple[dict[str, str], str | None]] = []
        while True:
            saved = self.pos
            style = self.parse_connector()
            if style is None:
                self.pos = saved
                break
            label = self.try_parse_edge_label()
            target = self.parse_node_ref()
            if target is None:
                self.pos = saved
                break
            refs.append(target)
            links.append((style, label))
        self.skip_ws()
        if self.peek(";"):
            self.pos += 1
            self.skip_ws()
        return refs, links


@dataclass
class _Subgraph:
    node: Node
    members: list[str] = field(default_factory=list)


@dataclass
class _FlowchartReader:
    builder: DiagramBuilder
    stack: list[_Subgraph] = field(default_factory=list)

    def read(self, lines: list[str]) -> None:
        for raw in lines:
            line = raw.strip()
            if not line or line.startswith("%%") or _DIRECTIVE_RE.match(line):
                continue
            if self.try_subgraph(line):
                continue
            if line == "end" and self.stack:
                self.close_subgraph()
                continue
            self.statement(line)
        while self.stack:
            self.close_subgraph()

    def try_subgraph(self, line: str) -> bool:
        m = _SUBGRAPH_RE.match(line)
        if m is None:
            return False
        group_id, label = m.group(1), m.group(2)
        group = Node.new(group_id, NodeType.GROUP.value, label.strip() if label else group_id)
        self.stack.append(_Subgraph(node=group))
        return True

    def close_subgraph(self) -> None:
        sub = self.stack.pop()
        group = self.builder.add(sub.node)
        for member in sub.members:
            self.builder.adopt(group, self.builder.nodes[member])
        self.note_member(group.id)

    def note_member(self, node_id: str) -> None:
        if self.stack and node_id not in self.stack[-1].members:
            self.stack[-1].members.append(node_id)

    def statement(self, line: str) -> None:
        cursor = _Cursor(src=line)
        parsed = cursor.parse_statement()
        if parsed is None or not cursor.eof():
            logger.debug("skipping unrecognised flowchart line: %s", line)
            return
        refs, links = parsed
        for ref in refs:
            self.builder.ensure(ref.id, ref.type, ref.label)
            self.note_member(ref.id)
        for (style, label), (source, target) in zip(links, zip(refs, refs[1:])):
            edge = self.builder.edge("edge", source.id, target.id)
            if label:
                edge.label = label
            edge.style = dict(style)
