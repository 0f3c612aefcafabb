"""coral-dsl: Coral architecture DSL to Graph-IR and back."""

from coral_dsl.config import FormatOptions, ImportOptions, ParseOptions, PrintOptions
from coral_dsl.errors import (
    BackendUnavailableError,
    CoralError,
    InternalParserError,
    UnknownBackendError,
    UnknownFormatError,
)
from coral_dsl.formats import detect_format, import_diagram, parse_dot, parse_mermaid
from coral_dsl.ir import (
    Edge,
    GraphIR,
    GraphView,
    Node,
    ParseError,
    ParseResult,
    Severity,
    SourceInfo,
    ValidationIssue,
    validate,
)
from coral_dsl.parsers import available_backends, get_parser, label_to_id, parse
from coral_dsl.printer import pretty_print, print_graph
from coral_dsl.types import NODE_TYPES, NodeType

__all__ = [
    "NODE_TYPES",
    "BackendUnavailableError",
    "CoralError",
    "Edge",
    "FormatOptions",
    "GraphIR",
    "GraphView",
    "ImportOptions",
    "InternalParserError",
    "Node",
    "NodeType",
    "ParseError",
    "ParseOptions",
    "ParseResult",
    "PrintOptions",
    "Severity",
    "SourceInfo",
    "UnknownBackendError",
    "UnknownFormatError",
    "ValidationIssue",
    "available_backends",
    "detect_format",
    "get_parser",
    "import_diagram",
    "label_to_id",
    "parse",
    "parse_dot",
    "parse_mermaid",
    "pretty_print",
    "print_graph",
    "validate",
]
