"""Base parser protocol."""

from __future__ import annotations

from typing import Protocol

from coral_dsl.config import ParseOptions
from coral_dsl.ir.model import ParseResult


class Parser(Protocol):
    """Protocol that all Coral parser backends implement."""

    name: str

    def parse(self, source: str, options: ParseOptions | None = None) -> ParseResult:
        """Parse DSL text into a ParseResult; never raises for malformed input."""
        ...
