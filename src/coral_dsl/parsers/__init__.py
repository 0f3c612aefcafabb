"""Parser registry — pick a backend by name and dispatch to it.

Backends:
  - "line": line-oriented scanner, always available (the default)
  - "tree": parsimonious syntax-tree parser
  - "auto": "tree" when it can be loaded, otherwise "line"
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from coral_dsl.config import ParseOptions
from coral_dsl.errors import BackendUnavailableError, UnknownBackendError
from coral_dsl.ir.model import ParseResult
from coral_dsl.parsers.base import Parser
from coral_dsl.parsers.context import NESTING_TOO_DEEP, label_to_id
from coral_dsl.parsers.line import LineParser

logger = logging.getLogger(__name__)

DEFAULT_BACKEND = "line"


def _load_line() -> Parser:
    return LineParser()


def _load_tree() -> Parser:
    try:
        from coral_dsl.parsers.tree import TreeParser
    except ImportError as exc:
        raise BackendUnavailableError(f"tree backend cannot be loaded: {exc}") from exc
    return TreeParser()


_BACKENDS: dict[str, Callable[[], Parser]] = {
    "line": _load_line,
    "tree": _load_tree,
}

BACKEND_NAMES: tuple[str, ...] = (*_BACKENDS, "auto")


def get_parser(name: str = DEFAULT_BACKEND) -> Parser:
    """Return a parser instance for the named backend.

    Raises:
        UnknownBackendError: If no backend has that name.
        BackendUnavailableError: If the backend exists but cannot be loaded.
    """
    if name == "auto":
        try:
            return _load_tree()
        except BackendUnavailableError as exc:
            logger.warning("%s; falling back to the line backend", exc)
            return _load_line()
    loader = _BACKENDS.get(name)
    if loader is None:
        raise UnknownBackendError(f"Unknown parser backend '{name}'; use one of {', '.join(BACKEND_NAMES)}")
    return loader()


def available_backends() -> list[str]:
    """Names of the backends that can be loaded here."""
    names: list[str] = []
    for name, loader in _BACKENDS.items():
        try:
            loader()
        except BackendUnavailableError:
            continue
        names.append(name)
    return names


def parse(source: str, options: ParseOptions | None = None, backend: str = DEFAULT_BACKEND) -> ParseResult:
    """Parse Coral DSL text into Graph-IR.

    Args:
        source: Coral DSL source text.
        options: Source tracking and graph id/name; defaults to ParseOptions().
        backend: "line" (default), "tree" or "auto".

    Returns:
        ParseResult with ``graph`` on success, or the full error list.
    """
    parser = get_parser(backend)
    logger.debug("parsing %d character(s) with the %s backend", len(source), parser.name)
    result = parser.parse(source, options)
    if backend == "auto" and parser.name != "line" and _too_deep(result):
        logger.warning("%s backend cannot nest this deep; falling back to the line backend", parser.name)
        return _load_line().parse(source, options)
    return result


def _too_deep(result: ParseResult) -> bool:
    return [e.message for e in result.errors] == [NESTING_TOO_DEEP]


__all__ = [
    "BACKEND_NAMES",
    "DEFAULT_BACKEND",
    "Parser",
    "available_backends",
    "get_parser",
    "label_to_id",
    "parse",
]
