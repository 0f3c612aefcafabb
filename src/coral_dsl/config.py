"""Centralized configuration for coral-dsl."""

from __future__ import annotations

from dataclasses import dataclass

from coral_dsl.types import DEFAULT_GRAPH_ID


@dataclass
class ParseOptions:
    """Options accepted by every parser backend."""

    include_source_info: bool = False
    graph_id: str = DEFAULT_GRAPH_ID
    graph_name: str | None = None


@dataclass
class PrintOptions:
    """Options for the DSL printer."""

    indent: str = "  "
    # Reserved for metadata comments; currently has no effect.
    include_comments: bool = False


@dataclass
class FormatOptions(PrintOptions):
    """Printer options plus the pretty-print reordering switch."""

    sort_by_type: bool = False


@dataclass
class ImportOptions:
    """Options for the Mermaid and DOT importers.

    ``graph_id`` defaults to a per-format id (``mermaid-flowchart``,
    ``dot-graph``...) when left unset.
    """

    graph_id: str | None = None
    graph_name: str | None = None
