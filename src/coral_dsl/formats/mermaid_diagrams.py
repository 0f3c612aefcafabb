"""Line-oriented Mermaid diagram readers (everything except flowcharts).

Each reader takes the lines after the header and fills a DiagramBuilder.
Lines a reader does not recognise are skipped, as Mermaid itself
tolerates directives these readers do not model.
"""

from __future__ import annotations

import re

from coral_dsl.formats.builder import DiagramBuilder
from coral_dsl.ir.model import Node
from coral_dsl.types import NodeType

_SERVICE = NodeType.SERVICE.value
_MODULE = NodeType.MODULE.value
_DATABASE = NodeType.DATABASE.value
_ACTOR = NodeType.ACTOR.value
_GROUP = NodeType.GROUP.value


def _statements(lines: list[str]) -> list[str]:
    return [s for s in (line.strip() for line in lines) if s and not s.startswith("%%")]


def _attach(builder: DiagramBuilder, node: Node, parent_id: str | None) -> None:
    """Register ``node``, nested under ``parent_id`` when that node exists."""
    builder.add(node)
    if parent_id and builder.has(parent_id):
        builder.adopt(builder.nodes[parent_id], node)


# ─── Sequence ────────────────────────────────────────────────────────────────

_PARTICIPANT_RE = re.compile(r"^(participant|actor)\s+(\w+)(?:\s+as\s+(.+))?$", re.IGNORECASE)
_MESSAGE_RE = re.compile(r"^(\w+)\s*(--?>?>|<<--?>>?|--?x|--?\))\s*(\w+)\s*:\s*(.*)$")


def parse_sequence(lines: list[str], builder: DiagramBuilder) -> None:
    for line in _statements(lines):
        m = _PARTICIPANT_RE.match(line)
        if m:
            kind, node_id, alias = m.groups()
            if not builder.has(node_id):
                node_type = _ACTOR if kind.lower() == "actor" else _SERVICE
                builder.add(Node.new(node_id, node_type, alias or node_id))
            continue

        m = _MESSAGE_RE.match(line)
        if m:
            source, arrow, target, text = m.groups()
            for node_id in (source, target):
                if not builder.has(node_id):
                    builder.add(Node.new(node_id, _SERVICE, node_id))
            edge = builder.edge("msg", source, target)
            edge.type = "message"
            edge.label = text
            if "--" in arrow:
                edge.style["lineStyle"] = "dashed"
            if "x" in arrow:
                edge.style["targetArrow"] = "none"


# ─── Class ───────────────────────────────────────────────────────────────────

_CLASS_BODY_RE = re.compile(r'^class\s+(\w+)(?:\["([^"]+)"\])?\s*\{$')
_CLASS_RE = re.compile(r'^class\s+(\w+)(?:\["([^"]+)"\])?$')
_RELATION_RE = re.compile(r"^(\w+)\s*(<\|--|<\|\.\.|\*--|o--|-->|--|\.\.>|\.\.\|>|\.\.)\s*(\w+)(?:\s*:\s*(.+))?$")

_RELATION_TYPES = {
    "<|--": "inheritance",
    "<|..": "realization",
    "*--": "composition",
    "o--": "aggregation",
    "-->": "association",
    "--": "link",
    "..>": "dependency",
    "..|>": "realization",
    "..": "dashed_link",
}


def parse_class(lines: list[str], builder: DiagramBuilder) -> None:
    current: Node | None = None
    for line in _statements(lines):
        if current is not None:
            if line == "}":
                current = None
            else:
                current.properties["members"].append(line)
            continue

        m = _CLASS_BODY_RE.match(line)
        if m:
            class_id, label = m.groups()
            current = builder.add(Node.new(class_id, _MODULE, label or class_id))
            current.properties["members"] = []
            continue

        m = _CLASS_RE.match(line)
        if m:
            class_id, label = m.groups()
            if not builder.has(class_id):
                builder.add(Node.new(class_id, _MODULE, label or class_id))
            continue

        m = _RELATION_RE.match(line)
        if m:
            class_a, relation, class_b, label = m.groups()
            for class_id in (class_a, class_b):
                if not builder.has(class_id):
                    builder.add(Node.new(class_id, _MODULE, class_id))
            # "A <|-- B" reads "B extends A", so the edge runs from B.
            edge = builder.edge("rel", class_b, class_a)
            edge.type = _RELATION_TYPES.get(relation, "association")
            if label:
                edge.label = label.strip()
            if ".." in relation:
                edge.style["lineStyle"] = "dashed"


# ─── State ───────────────────────────────────────────────────────────────────

_STATE_RE = re.compile(r'^state\s+"?(\w+)"?(?:\s*:\s*(.+))?$')
_TRANSITION_RE = re.compile(r"^(\[\*\]|\w+)\s*-->\s*(\[\*\]|\w+)(?:\s*:\s*(.+))?$")

_START_ID = "_start_"
_END_ID = "_end_"


def _state_node(builder: DiagramBuilder, ref: str, pseudo_id: str, pseudo_label: str) -> str:
    if ref == "[*]":
        if not builder.has(pseudo_id):
            builder.add(Node.new(pseudo_id, _ACTOR, pseudo_label))
        return pseudo_id
    if not builder.has(ref):
        builder.add(Node.new(ref, _MODULE, ref))
    return ref


def parse_state(lines: list[str], builder: DiagramBuilder) -> None:
    for line in _statements(lines):
        if line.startswith("direction"):
            continue

        m = _STATE_RE.match(line)
        if m:
            state_id, description = m.groups()
            if not builder.has(state_id):
                node = builder.add(Node.new(state_id, _MODULE, state_id))
                if description:
                    node.properties["description"] = description.strip()
            continue

        m = _TRANSITION_RE.match(line)
        if m:
            source_ref, target_ref, label = m.groups()
            source = _state_node(builder, source_ref, _START_ID, "Start")
            target = _state_node(builder, target_ref, _END_ID, "End")
            edge = builder.edge("trans", source, target)
            edge.type = "transition"
            if label:
                edge.label = label.strip()


# ─── Entity relationship ─────────────────────────────────────────────────────

_ENTITY_BLOCK_RE = re.compile(r"^(\w+)\s*\{$")
_CARDINALITY = r"(\|o|\|\||o\{|\}\||\|\{|\}o|o\|)"
_ER_RELATION_RE = re.compile(
    r"^(\w+)\s*" + _CARDINALITY + r"\s*(?:--|\.\.)\s*" + _CARDINALITY + r'\s*(\w+)\s*:\s*"?([^"]+)"?$'
)


def parse_er(lines: list[str], builder: DiagramBuilder) -> None:
    current: Node | None = None
    for line in _statements(lines):
        m = _ENTITY_BLOCK_RE.match(line)
        if m:
            current = builder.add(Node.new(m.group(1), _DATABASE, m.group(1)))
            current.properties["attributes"] = []
            continue

        if current is not None:
            if line == "}":
                current = None
            else:
                current.properties["attributes"].append(line)
            continue

        m = _ER_RELATION_RE.match(line)
        if m:
            entity_a, card_a, card_b, entity_b, label = m.groups()
            for entity in (entity_a, entity_b):
                if not builder.has(entity):
                    builder.add(Node.new(entity, _DATABASE, entity))
            edge = builder.edge("rel", entity_a, entity_b)
            edge.type = "relationship"
            edge.label = label.strip()
            edge.properties["sourceCardinality"] = card_a
            edge.properties["targetCardinality"] = card_b


# ─── Timeline ────────────────────────────────────────────────────────────────

_SECTION_RE = re.compile(r"^section\s+(.+)$")
_PERIOD_RE = re.compile(r"^([^:]+?)\s*:\s*(.+)$")


def parse_timeline(lines: list[str], builder: DiagramBuilder) -> None:
    counter = 0
    section: Node | None = None
    previous: str | None = None
    for line in _statements(lines):
        if line.startswith("title "):
            continue

        m = _SECTION_RE.match(line)
        if m:
            counter += 1
            section = builder.add(Node.new(f"section_{counter}", _GROUP, m.group(1).strip()))
            continue

        m = _PERIOD_RE.match(line)
        if m:
            counter += 1
            period = Node.new(f"period_{counter}", _MODULE, m.group(1).strip())
            period.properties["events"] = [e.strip() for e in m.group(2).split(":")]
            _attach(builder, period, section.id if section else None)
            if previous is not None:
                builder.edge("seq", previous, period.id).type = "sequence"
            previous = period.id


# ─── Block ───────────────────────────────────────────────────────────────────

_BLOCK_EDGE_RE = re.compile(
    r'^(\w+)(?:\["([^"]+)"\])?\s*(-->|---)\s*(?:\|"([^"]+)"\|)?\s*(\w+)(?:\["([^"]+)"\])?$'
)
_BLOCK_RE = re.compile(r'^(\w+)(?:\["([^"]+)"\])?(?::(\d+))?$')


def parse_block(lines: list[str], builder: DiagramBuilder) -> None:
    for line in _statements(lines):
        if line.startswith("columns") or line == "end":
            continue

        m = _BLOCK_EDGE_RE.match(line)
        if m:
            source, source_label, arrow, label, target, target_label = m.groups()
            for node_id, node_label in ((source, source_label), (target, target_label)):
                if not builder.has(node_id):
                    builder.add(Node.new(node_id, _SERVICE, node_label or node_id))
            edge = builder.edge("edge", source, target)
            if label:
                edge.label = label
            if arrow == "---":
                edge.style["targetArrow"] = "none"
            continue

        m = _BLOCK_RE.match(line)
        if m:
            node_id, label, span = m.groups()
            if not builder.has(node_id):
                node = builder.add(Node.new(node_id, _SERVICE, label or node_id))
                if span:
                    node.properties["columnSpan"] = int(span)


# ─── Packet ──────────────────────────────────────────────────────────────────

_RANGE_RE = re.compile(r'^(\d+)-(\d+)\s*:\s*"([^"]+)"$')
_RELATIVE_RE = re.compile(r'^\+(\d+)\s*:\s*"([^"]+)"$')


def parse_packet(lines: list[str], builder: DiagramBuilder) -> None:
    counter = 0
    next_bit = 0
    for line in _statements(lines):
        m = _RANGE_RE.match(line)
        if m:
            start, end, label = int(m.group(1)), int(m.group(2)), m.group(3)
        else:
            m = _RELATIVE_RE.match(line)
            if m is None:
                continue
            width, label = int(m.group(1)), m.group(2)
            start, end = next_bit, next_bit + width - 1

        counter += 1
        field_node = builder.add(Node.new(f"field_{counter}", _MODULE, label))
        field_node.properties.update(bitStart=start, bitEnd=end, bitWidth=end - start + 1)
        next_bit = end + 1


# ─── Kanban ──────────────────────────────────────────────────────────────────

_COLUMN_RE = re.compile(r"^(\w+)\[([^\]]+)\]$")
_TASK_RE = re.compile(r"^(\w+)\[([^\]]+)\](?:@\{([^}]+)\})?$")


def _task_metadata(text: str) -> dict[str, str]:
    metadata: dict[str, str] = {}
    for pair in text.split(","):
        key, _, value = pair.partition(":")
        key, value = key.strip().replace('"', ""), value.strip().replace('"', "")
        if key and value:
            metadata[key] = value
    return metadata


def parse_kanban(lines: list[str], builder: DiagramBuilder) -> None:
    column: Node | None = None
    column_indent = 0
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("%%"):
            continue
        indent = len(raw) - len(raw.lstrip())

        # Tasks are indented deeper than the column that holds them.
        if column is None or indent <= column_indent:
            m = _COLUMN_RE.match(line)
            if m:
                column = builder.add(Node.new(m.group(1), _GROUP, m.group(2)))
                column_indent = indent
            continue

        m = _TASK_RE.match(line)
        if m:
            task_id, label, meta = m.groups()
            task = builder.add(Node.new(task_id, _SERVICE, label), parent=column)
            if meta:
                task.properties["metadata"] = _task_metadata(meta)


# ─── Architecture ────────────────────────────────────────────────────────────

_ARCH_NODE_RE = re.compile(r"^(group|service)\s+(\w+)(?:\(([^)]*)\))?\[([^\]]+)\](?:\s+in\s+(\w+))?$")
_JUNCTION_RE = re.compile(r"^junction\s+(\w+)(?:\s+in\s+(\w+))?$")
_ARCH_EDGE_RE = re.compile(r"^(\w+)(?:\{(\w+)\})?:([TBLR])\s*(<)?--?(>)?\s*([TBLR]):(\w+)(?:\{(\w+)\})?$")


def parse_architecture(lines: list[str], builder: DiagramBuilder) -> None:
    for line in _statements(lines):
        m = _ARCH_NODE_RE.match(line)
        if m:
            kind, node_id, icon, label, parent_id = m.groups()
            node = Node.new(node_id, _GROUP if kind == "group" else _SERVICE, label)
            if icon:
                node.properties["icon"] = icon
            _attach(builder, node, parent_id)
            continue

        m = _JUNCTION_RE.match(line)
        if m:
            node_id, parent_id = m.groups()
            _attach(builder, Node.new(node_id, _MODULE, node_id), parent_id)
            continue

        m = _ARCH_EDGE_RE.match(line)
        if m:
            source, source_group, source_side, left, right, target_side, target, target_group = m.groups()
            edge = builder.edge("edge", source, target)
            edge.properties.update(
                sourceSide=source_side,
                targetSide=target_side,
                bidirectional=bool(left and right),
            )
            if source_group:
                edge.properties["sourceGroup"] = source_group
            if target_group:
                edge.properties["targetGroup"] = target_group
