"""Shared type definitions for coral-dsl.

The node-type vocabulary and the constants shared by the parsers, the
printer and the Graph-IR model.
"""

from __future__ import annotations

from enum import Enum

GRAPH_IR_VERSION = "1.0.0"
DEFAULT_GRAPH_ID = "coral-graph"

# Property keys with this prefix are internal and never printed.
RESERVED_PREFIX = "_"


class NodeType(Enum):
    SERVICE = "service"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    ACTOR = "actor"
    MODULE = "module"
    GROUP = "group"

    @classmethod
    def default(cls) -> NodeType:
        return cls.SERVICE

    @classmethod
    def is_known(cls, value: str | None) -> bool:
        return value in NODE_TYPES


# Declaration order, which is also the order the grammar lists them in.
NODE_TYPES: tuple[str, ...] = tuple(t.value for t in NodeType)

# Pretty-print precedence for top-level nodes.
TYPE_ORDER: tuple[str, ...] = (
    NodeType.ACTOR.value,
    NodeType.SERVICE.value,
    NodeType.MODULE.value,
    NodeType.DATABASE.value,
    NodeType.EXTERNAL_API.value,
    NodeType.GROUP.value,
)


class Direction(Enum):
    """Layout direction hint carried by imported diagrams."""

    DOWN = "DOWN"
    UP = "UP"
    RIGHT = "RIGHT"
    LEFT = "LEFT"

    @classmethod
    def default(cls) -> Direction:
        return cls.DOWN

    @classmethod
    def from_keyword(cls, keyword: str | None) -> Direction:
        """Map a Mermaid/DOT rank keyword (TB, TD, BT, LR, RL) to a direction."""
        return _RANK_KEYWORDS.get((keyword or "").upper(), cls.default())


_RANK_KEYWORDS: dict[str, Direction] = {
    "TB": Direction.DOWN,
    "TD": Direction.DOWN,
    "BT": Direction.UP,
    "LR": Direction.RIGHT,
    "RL": Direction.LEFT,
}
