"""Per-parse state shared by the parser backends.

Holds the ID allocators, the collected errors and the offset→line/column
index for one parse call. A fresh ParseContext is created for every call,
so nothing leaks between parses.
"""

from __future__ import annotations

import bisect
import logging
import re
from dataclasses import dataclass, field

from coral_dsl.config import ParseOptions
from coral_dsl.ir.model import Edge, GraphIR, Node, ParseError, ParseResult, Position, SourceInfo

logger = logging.getLogger(__name__)

# Reported by backends that recurse per nesting level and run out of stack.
NESTING_TOO_DEEP = "Nesting too deep for the tree backend; use the line backend"

_SEPARATOR_RE = re.compile(r"[.\s-]+")
_INVALID_ID_CHAR_RE = re.compile(r"[^a-z0-9_]")
_UNDERSCORES_RE = re.compile(r"_+")


def label_to_id(label: str) -> str:
    """Convert a human label into a snake_case base identifier.

    >>> label_to_id("Node.js Service")
    'node_js_service'
    """
    base = _SEPARATOR_RE.sub("_", label.lower())
    base = _INVALID_ID_CHAR_RE.sub("", base)
    base = _UNDERSCORES_RE.sub("_", base)
    return base.strip("_")


class IdAllocator:
    """Hands out unique ids: ``base``, then ``base_2``, ``base_3``...

    Candidates already issued (e.g. a label that itself ends in ``_2``)
    are skipped so every id returned is unique within the allocator.
    """

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}
        self._issued: set[str] = set()

    def allocate(self, base: str) -> str:
        count = self._counts.get(base, 0)
        candidate = base if count == 0 else f"{base}_{count + 1}"
        while candidate in self._issued:
            count += 1
            candidate = f"{base}_{count + 1}"
        self._counts[base] = count + 1
        self._issued.add(candidate)
        return candidate


class LineIndex:
    """Maps string offsets to 1-based lines and 0-based columns."""

    def __init__(self, source: str) -> None:
        self._starts = [0]
        for m in re.finditer(r"\n", source):
            self._starts.append(m.end())

    def position(self, offset: int) -> Position:
        row = bisect.bisect_right(self._starts, offset) - 1
        return Position(line=row + 1, column=offset - self._starts[row])

    def line_count(self) -> int:
        return len(self._starts)


@dataclass
class ParseContext:
    source: str
    options: ParseOptions
    node_ids: IdAllocator = field(default_factory=IdAllocator)
    edge_ids: IdAllocator = field(default_factory=IdAllocator)
    errors: list[ParseError] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.index = LineIndex(self.source)

    # ── IDs ──────────────────────────────────────────────────────────────────

    def node_id(self, label: str) -> str:
        return self.node_ids.allocate(label_to_id(label))

    def edge_id(self, source: str, target: str) -> str:
        return self.edge_ids.allocate(f"{source}_to_{target}")

    # ── Errors ───────────────────────────────────────────────────────────────

    def error(self, message: str, offset: int) -> None:
        pos = self.index.position(offset)
        self.errors.append(ParseError(message=message, line=pos.line, column=pos.column, offset=offset))

    def error_at_end(self, message: str) -> None:
        self.error(message, len(self.source))

    # ── Source info ──────────────────────────────────────────────────────────

    def source_info(self, start: int, end: int) -> SourceInfo | None:
        """Return the source span, or None when source tracking is off."""
        if not self.options.include_source_info:
            return None
        return SourceInfo.new(start, end, self.index.position(start), self.index.position(end))

    # ── Result ───────────────────────────────────────────────────────────────

    def result(self, nodes: list[Node], edges: list[Edge]) -> ParseResult:
        """Build the final result; any collected error makes the parse fail."""
        if self.errors:
            logger.debug("parse failed with %d error(s)", len(self.errors))
            return ParseResult.failed(self.errors)
        graph = GraphIR.new(id=self.options.graph_id, name=self.options.graph_name)
        graph.nodes = nodes
        graph.edges = edges
        logger.debug("parsed %d top-level node(s), %d edge(s)", len(nodes), len(edges))
        return ParseResult.ok(graph)
