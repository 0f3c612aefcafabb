"""Tests for coral_dsl.parsers.line — the default line-oriented backend."""

import pytest

from coral_dsl.config import ParseOptions
from coral_dsl.errors import InternalParserError
from coral_dsl.parsers.line import LineParser, parse_attributes, unescape


def parse(source, **opts):
    return LineParser().parse(source, ParseOptions(**opts))


def test_parse_simple_service():
    result = parse('service "Web App"')
    assert result.success
    node = result.graph.nodes[0]
    assert (node.id, node.type, node.label) == ("web_app", "service", "Web App")


def test_parse_all_node_types():
    source = '\nservice "API"\ndatabase "DB"\nexternal_api "Stripe"\nactor "User"\nmodule "Auth"\ngroup "Backend"\n'
    result = parse(source)
    assert [n.type for n in result.graph.nodes] == [
        "service",
        "database",
        "external_api",
        "actor",
        "module",
        "group",
    ]


def test_parse_empty_body_variants():
    result = parse('service "A" { }\nservice "B" {}\nservice "C"{}')
    assert result.success
    assert len(result.graph.nodes) == 3


def test_parse_indented_and_crlf_lines():
    result = parse('group "G" {\r\n\tservice "S"\r\n}\r\n')
    assert result.success
    assert result.graph.nodes[0].children[0].label == "S"


def test_parse_escaped_label():
    result = parse(r'service "Say \"Hello\""')
    assert result.graph.nodes[0].label == 'Say "Hello"'
    assert result.graph.nodes[0].id == "say_hello"


def test_empty_label_is_rejected():
    result = parse('service ""')
    assert not result.success
    assert result.errors[0].message == 'Unexpected syntax: service ""'


def test_one_line_body_is_rejected():
    result = parse('service "A" { key: "v" }')
    assert not result.success


def test_edge_without_spaces():
    result = parse("a->b")
    assert result.graph.edges[0].id == "a_to_b"


def test_edge_attribute_value_with_comma_and_bracket():
    result = parse('a -> b [calls, note = "x, y]"]')
    edge = result.graph.edges[0]
    assert edge.type == "calls"
    assert edge.properties == {"note": "x, y]"}


def test_bare_attribute_after_first_is_ignored():
    result = parse('a -> b [calls, async, label = "x"]')
    edge = result.graph.edges[0]
    assert edge.type == "calls"
    assert edge.label == "x"
    assert edge.properties == {}


@pytest.mark.parametrize(
    "line",
    ["a -> b []", "a -> b [calls,]", "a -> b [retries = 3]", "a -> b [x] [y]", "a -> b [calls label]"],
)
def test_malformed_attribute_lists(line):
    result = parse(line)
    assert not result.success
    assert result.errors[0].message == f"Unexpected syntax: {line}"


def test_unclosed_brace_position_is_end_of_input():
    source = 'service "S" {\n  k: "v"'
    result = parse(source)
    err = result.errors[0]
    assert err.message == "Unclosed brace"
    assert err.offset == len(source)
    assert (err.line, err.column) == (2, 8)


def test_source_info_skips_indentation():
    result = parse('group "G" {\n    service "S"\n}', include_source_info=True)
    child = result.graph.nodes[0].children[0]
    rng = child.source_info.range
    assert rng.start == 16
    assert rng.start_position.column == 4
    assert rng.end - rng.start == len('service "S"')


def test_parse_attributes_helper():
    assert parse_attributes('calls, label = "a\\"b"') == [("calls", None), ("label", 'a"b')]
    assert parse_attributes("") is None


def test_unescape():
    assert unescape(r"a\\b\"c\x") == 'a\\b"cx'


def test_broken_node_pattern_raises_internal_error(monkeypatch):
    import re

    from coral_dsl.parsers import line

    monkeypatch.setattr(line, "_NODE_RE", re.compile(r"^(zzz)?(service)?(.*)$"))
    with pytest.raises(InternalParserError):
        parse('service "A"')
