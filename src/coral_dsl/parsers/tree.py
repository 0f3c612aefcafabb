"""Syntax-tree Coral parser — the formal-grammar backend.

Builds a concrete syntax tree with parsimonious from the PEG grammar in
grammar.py, then walks it by rule name (node_type, label, node_body,
identifier, edge_attributes...) to produce the same Graph-IR shape as the
line backend. Error nodes left by the grammar's recovery rules become
ParseErrors; the walk carries on past them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from functools import lru_cache

from parsimonious.exceptions import ParseError as GrammarError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node as SyntaxNode

from coral_dsl.config import ParseOptions
from coral_dsl.errors import InternalParserError
from coral_dsl.grammar import GRAMMAR
from coral_dsl.ir.model import Edge, Node, ParseResult
from coral_dsl.parsers.context import NESTING_TOO_DEEP, ParseContext
from coral_dsl.parsers.line import unescape

logger = logging.getLogger(__name__)

_ERROR_RULES = ("error_line", "body_error")


@lru_cache(maxsize=1)
def coral_grammar() -> Grammar:
    """Compile the grammar once per process."""
    return Grammar(GRAMMAR)


# ─── Tree helpers ────────────────────────────────────────────────────────────


def named_children(node: SyntaxNode) -> Iterator[SyntaxNode]:
    """Yield the nearest descendants that carry a rule name.

    Anonymous sequences, optionals and repetitions are looked through, so
    a rule's fields come back in source order.
    """
    for child in node.children:
        if child.expr_name:
            yield child
        else:
            yield from named_children(child)


def child_field(node: SyntaxNode, name: str) -> SyntaxNode | None:
    return next((c for c in named_children(node) if c.expr_name == name), None)


def child_fields(node: SyntaxNode, name: str) -> list[SyntaxNode]:
    return [c for c in named_children(node) if c.expr_name == name]


def _only_child(node: SyntaxNode) -> SyntaxNode:
    """Unwrap a choice rule (top_statement, body_statement, attribute)."""
    child = next(named_children(node), None)
    if child is None:
        raise InternalParserError(f"empty {node.expr_name!r} at offset {node.start}")
    return child


def _string_value(node: SyntaxNode) -> str:
    return unescape(node.text[1:-1])


# ─── Walker ──────────────────────────────────────────────────────────────────


@dataclass
class _TreeWalker:
    ctx: ParseContext
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    unclosed_reported: bool = False

    def walk(self, root: SyntaxNode) -> None:
        for item in child_fields(root, "top_item"):
            stmt = child_field(item, "top_statement")
            if stmt is None:
                raise InternalParserError(f"top_item without statement at offset {item.start}")
            self.statement(_only_child(stmt), parent=None)
        if self.unclosed_reported:
            self.ctx.error_at_end("Unclosed brace")

    def statement(self, decl: SyntaxNode, parent: Node | None) -> None:
        kind = decl.expr_name
        if kind == "node_decl":
            node = self.node_decl(decl, parent)
            if parent is None:
                self.nodes.append(node)
            else:
                parent.children.append(node)
        elif kind == "edge_decl":
            self.edges.append(self.edge_decl(decl))
        elif kind == "property" and parent is not None:
            key = child_field(decl, "identifier")
            value = child_field(decl, "string")
            if key is None or value is None:
                raise InternalParserError(f"property without key/value at offset {decl.start}")
            parent.properties[key.text] = _string_value(value)
        elif kind == "stray_close":
            self.ctx.error("Unexpected closing brace", decl.start)
        elif kind in _ERROR_RULES:
            self.ctx.error(f"Parse error: unexpected '{decl.text.rstrip()}'", decl.start)
        else:
            raise InternalParserError(f"unexpected rule {kind!r} at offset {decl.start}")

    def node_decl(self, decl: SyntaxNode, parent: Node | None) -> Node:
        type_node = child_field(decl, "node_type")
        label_node = child_field(decl, "label")
        if type_node is None or label_node is None:
            raise InternalParserError(f"node declaration without type/label at offset {decl.start}")

        label = _string_value(label_node)
        node = Node.new(self.ctx.node_id(label), type_node.text, label)
        if parent is not None:
            node.parent = parent.id
        node.source_info = self.ctx.source_info(decl.start, decl.end)

        body = child_field(decl, "node_body")
        if body is not None:
            for item in child_fields(body, "body_item"):
                stmt = child_field(item, "body_statement")
                if stmt is None:
                    raise InternalParserError(f"body_item without statement at offset {item.start}")
                self.statement(_only_child(stmt), parent=node)
            if child_field(body, "close_brace") is None:
                # Reported once, at end of input, however deep the nesting.
                self.unclosed_reported = True
        return node

    def edge_decl(self, decl: SyntaxNode) -> Edge:
        ends = child_fields(decl, "identifier")
        if len(ends) != 2:
            raise InternalParserError(f"edge declaration without source/target at offset {decl.start}")
        source, target = ends[0].text, ends[1].text
        edge = Edge.new(self.ctx.edge_id(source, target), source, target)

        attrs = child_field(decl, "edge_attributes")
        if attrs is not None:
            for i, attr in enumerate(child_fields(attrs, "attribute")):
                inner = _only_child(attr)
                if inner.expr_name == "identifier":
                    if i == 0:
                        edge.type = inner.text
                    continue
                key = child_field(inner, "identifier")
                value = child_field(inner, "string")
                if key is None or value is None:
                    raise InternalParserError(f"attribute without key/value at offset {inner.start}")
                if key.text == "label":
                    edge.label = _string_value(value)
                else:
                    edge.properties[key.text] = _string_value(value)

        edge.source_info = self.ctx.source_info(decl.start, decl.end)
        return edge


class TreeParser:
    """Formal-grammar Coral parser backed by parsimonious."""

    name = "tree"

    def parse(self, source: str, options: ParseOptions | None = None) -> ParseResult:
        ctx = ParseContext(source=source, options=options or ParseOptions())
        walker = _TreeWalker(ctx=ctx)
        try:
            root = coral_grammar().parse(source)
            walker.walk(root)
        except GrammarError as exc:
            # The recovery rules make this unreachable for well-formed
            # grammars; report it rather than raise.
            ctx.error(f"Parse error: {exc}", exc.pos)
            return ctx.result([], [])
        except RecursionError:
            # parsimonious and the walker both recurse once per nesting level.
            logger.warning("tree backend hit the recursion limit on %d character(s)", len(source))
            ctx.errors.clear()
            ctx.error(NESTING_TOO_DEEP, 0)
            return ctx.result([], [])

        logger.debug("tree backend walked %d top-level statement(s)", len(child_fields(root, "top_item")))
        return ctx.result(walker.nodes, walker.edges)
