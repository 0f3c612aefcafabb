"""Importer registry — Mermaid and Graphviz DOT diagrams to Graph-IR.

Formats:
  - "mermaid": flowchart, sequence, class, state, er, timeline, block,
    packet, kanban and architecture diagrams
  - "dot": Graphviz digraph/graph with subgraph clusters
  - "auto": pick one from the first line of the source

Imported graphs keep the ids the diagram wrote. ``with_dsl_ids`` re-keys
a graph the way the Coral parser would, so its printed DSL parses back
to the same ids.
"""

from __future__ import annotations

import copy
import logging
import re
from collections.abc import Callable

from coral_dsl.config import ImportOptions
from coral_dsl.errors import UnknownFormatError
from coral_dsl.formats.dot import parse_dot
from coral_dsl.formats.mermaid import SUPPORTED_DIAGRAMS, detect_diagram_type, parse_mermaid
from coral_dsl.ir.model import GraphIR, ParseResult
from coral_dsl.parsers.context import IdAllocator, label_to_id

logger = logging.getLogger(__name__)

_IMPORTERS: dict[str, Callable[[str, ImportOptions | None], ParseResult]] = {
    "mermaid": parse_mermaid,
    "dot": parse_dot,
}

FORMATS: tuple[str, ...] = tuple(_IMPORTERS)
FORMAT_NAMES: tuple[str, ...] = (*FORMATS, "auto")

_DOT_HEADER_RE = re.compile(r"^(?:strict\s+)?(?:di)?graph\b[^{\n]*\{", re.IGNORECASE)


def detect_format(source: str) -> str:
    """Return "dot", "mermaid" or "coral" for a piece of diagram text."""
    stripped = source.strip()
    first_line = stripped.split("\n", 1)[0].strip()
    if _DOT_HEADER_RE.match(stripped):
        return "dot"
    if detect_diagram_type(first_line) is not None:
        return "mermaid"
    return "coral"


def import_diagram(source: str, format: str = "auto", options: ImportOptions | None = None) -> ParseResult:
    """Import Mermaid or DOT text as Graph-IR.

    Raises:
        UnknownFormatError: If ``format`` is not a known importer, or
            ``auto`` cannot recognise the source.
    """
    if format == "auto":
        format = detect_format(source)
        logger.debug("detected %s input", format)
    importer = _IMPORTERS.get(format)
    if importer is None:
        raise UnknownFormatError(f"Unknown diagram format '{format}'; use one of {', '.join(FORMAT_NAMES)}")
    return importer(source, options)


def with_dsl_ids(graph: GraphIR) -> GraphIR:
    """Return a copy whose ids are the ones the Coral parser would assign.

    Nodes are renamed in document order from their labels; edges become
    ``source_to_target``. Endpoints that name no node are kept verbatim.
    """
    out = copy.deepcopy(graph)
    node_ids, edge_ids = IdAllocator(), IdAllocator()
    renamed: dict[str, str] = {}
    for node in out.walk():
        new_id = node_ids.allocate(label_to_id(node.label))
        renamed[node.id] = new_id
        node.id = new_id
    for node in out.walk():
        if node.parent is not None:
            node.parent = renamed.get(node.parent, node.parent)
    for edge in out.edges:
        edge.source = renamed.get(edge.source, edge.source)
        edge.target = renamed.get(edge.target, edge.target)
        edge.id = edge_ids.allocate(f"{edge.source}_to_{edge.target}")
    return out


__all__ = [
    "FORMATS",
    "FORMAT_NAMES",
    "SUPPORTED_DIAGRAMS",
    "detect_format",
    "import_diagram",
    "parse_dot",
    "parse_mermaid",
    "with_dsl_ids",
]
