"""Line-oriented Coral parser — the default backend.

Classifies each physical line against a small fixed set of patterns
(closing brace, node declaration, property, edge declaration) and tracks
node bodies with an explicit brace stack. Malformed lines are recorded
as errors and scanning continues with the next line.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from coral_dsl.config import ParseOptions
from coral_dsl.errors import InternalParserError
from coral_dsl.ir.model import Edge, Node, ParseResult
from coral_dsl.parsers.context import ParseContext
from coral_dsl.types import NODE_TYPES

logger = logging.getLogger(__name__)

# ─── Line patterns ───────────────────────────────────────────────────────────

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"
_STRING_BODY = r'(?:[^"\\]|\\.)'

_NODE_RE = re.compile(
    r"^(" + "|".join(NODE_TYPES) + r')\s+"(' + _STRING_BODY + r'+)"(\s*\{\s*\}|\s*\{)?$'
)
_PROPERTY_RE = re.compile(r"^(" + _IDENT + r')\s*:\s*"(' + _STRING_BODY + r'*)"$')
_EDGE_RE = re.compile(r"^(" + _IDENT + r")\s*->\s*(" + _IDENT + r")(?:\s*\[(.*)\])?$")
_ATTR_RE = re.compile(r"\s*(?:(" + _IDENT + r')\s*=\s*"(' + _STRING_BODY + r'*)"|(' + _IDENT + r"))\s*")
_ESCAPE_RE = re.compile(r"\\(.)")

_COMMENT_PREFIX = "//"


def unescape(text: str) -> str:
    """Undo backslash escaping: ``\\x`` becomes ``x``."""
    return _ESCAPE_RE.sub(r"\1", text)


def parse_attributes(text: str) -> list[tuple[str, str | None]] | None:
    """Split an edge attribute list into ``(key, value)`` pairs.

    Bare identifiers come back as ``(name, None)``. Returns None when the
    list is not ``ATTR (',' ATTR)*``.
    """
    attrs: list[tuple[str, str | None]] = []
    pos = 0
    while True:
        m = _ATTR_RE.match(text, pos)
        if m is None:
            return None
        key, value, bare = m.groups()
        if bare is not None:
            attrs.append((bare, None))
        else:
            attrs.append((key, unescape(value)))
        pos = m.end()
        if pos == len(text):
            return attrs
        if text[pos] != ",":
            return None
        pos += 1


@dataclass
class _Frame:
    node: Node
    indent: int


@dataclass
class _LineScanner:
    """Walks the source one physical line at a time."""

    ctx: ParseContext
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    stack: list[_Frame] = field(default_factory=list)

    def scan(self) -> None:
        offset = 0
        for line in self.ctx.source.split("\n"):
            self.scan_line(line, offset)
            offset += len(line) + 1
        if self.stack:
            self.ctx.error_at_end("Unclosed brace")

    def scan_line(self, line: str, offset: int) -> None:
        trimmed = line.strip()
        if not trimmed or trimmed.startswith(_COMMENT_PREFIX):
            return
        indent = len(line) - len(line.lstrip())
        start = offset + indent

        if trimmed == "}":
            if self.stack:
                self.stack.pop()
            else:
                self.ctx.error("Unexpected closing brace", start)
            return
        if self.try_node(trimmed, indent, start):
            return
        if self.stack and self.try_property(trimmed):
            return
        if self.try_edge(trimmed, start):
            return
        self.ctx.error(f"Unexpected syntax: {trimmed}", start)

    # ── Node declaration ─────────────────────────────────────────────────────

    def try_node(self, trimmed: str, indent: int, start: int) -> bool:
        m = _NODE_RE.match(trimmed)
        if m is None:
            return False
        node_type, raw_label, body = m.group(1), m.group(2), m.group(3)
        if node_type is None or raw_label is None:
            raise InternalParserError(f"node pattern matched without type/label: {trimmed!r}")
        label = unescape(raw_label)
        node = Node.new(self.ctx.node_id(label), node_type, label)
        node.source_info = self.ctx.source_info(start, start + len(trimmed))

        if self.stack:
            parent = self.stack[-1].node
            node.parent = parent.id
            parent.children.append(node)
        else:
            self.nodes.append(node)

        if body is not None and body.strip() == "{":
            self.stack.append(_Frame(node=node, indent=indent))
        return True

    # ── Property ─────────────────────────────────────────────────────────────

    def try_property(self, trimmed: str) -> bool:
        m = _PROPERTY_RE.match(trimmed)
        if m is None:
            return False
        self.stack[-1].node.properties[m.group(1)] = unescape(m.group(2))
        return True

    # ── Edge declaration ─────────────────────────────────────────────────────

    def try_edge(self, trimmed: str, start: int) -> bool:
        m = _EDGE_RE.match(trimmed)
        if m is None:
            return False
        source, target, attr_text = m.groups()
        attrs: list[tuple[str, str | None]] = []
        if attr_text is not None:
            parsed = parse_attributes(attr_text)
            if parsed is None:
                return False
            attrs = parsed

        edge = Edge.new(self.ctx.edge_id(source, target), source, target)
        for i, (key, value) in enumerate(attrs):
            if value is None:
                # Only a leading bare identifier names the relation.
                if i == 0:
                    edge.type = key
            elif key == "label":
                edge.label = value
            else:
                edge.properties[key] = value
        edge.source_info = self.ctx.source_info(start, start + len(trimmed))
        self.edges.append(edge)
        return True


class LineParser:
    """Line-oriented Coral parser (no native dependencies)."""

    name = "line"

    def parse(self, source: str, options: ParseOptions | None = None) -> ParseResult:
        ctx = ParseContext(source=source, options=options or ParseOptions())
        scanner = _LineScanner(ctx=ctx)
        scanner.scan()
        logger.debug("line backend scanned %d line(s)", ctx.index.line_count())
        return ctx.result(scanner.nodes, scanner.edges)
