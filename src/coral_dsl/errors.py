"""Exceptions for programming-level failures.

Malformed DSL input is never reported through these: parsers return a
failed ``ParseResult`` instead.
"""

from __future__ import annotations


class CoralError(Exception):
    """Base class for coral-dsl exceptions."""


class InternalParserError(CoralError):
    """A parser invariant was broken; this is a bug in the parser."""


class BackendUnavailableError(CoralError):
    """The requested parser backend cannot be loaded in this environment."""


class UnknownBackendError(CoralError, ValueError):
    """No parser backend is registered under the requested name."""


class UnknownFormatError(CoralError, ValueError):
    """No diagram importer is registered under the requested format name."""
