"""CLI entry point for coral-dsl."""

import json
import logging
import sys

import click

from coral_dsl.config import FormatOptions, ImportOptions, ParseOptions
from coral_dsl.errors import CoralError
from coral_dsl.formats import FORMAT_NAMES, import_diagram, with_dsl_ids
from coral_dsl.ir.graph import has_errors, validate
from coral_dsl.ir.model import GraphIR, ParseResult
from coral_dsl.parsers import BACKEND_NAMES, parse
from coral_dsl.printer import pretty_print, print_graph

_backend_option = click.option(
    "--backend",
    "-b",
    type=click.Choice(BACKEND_NAMES),
    default="line",
    show_default=True,
    help="Parser backend",
)


def _read_input(input: str | None) -> str:
    if not input:
        return sys.stdin.read()
    try:
        with open(input) as f:
            return f.read()
    except OSError as e:
        click.echo(f"error: cannot read '{input}': {e}", err=True)
        sys.exit(1)


def _write_output(output: str | None, text: str) -> None:
    if text and not text.endswith("\n"):
        text += "\n"
    if not output:
        click.echo(text, nl=False)
        return
    try:
        with open(output, "w") as f:
            f.write(text)
    except OSError as e:
        click.echo(f"error: cannot write '{output}': {e}", err=True)
        sys.exit(1)


def _parse_or_exit(text: str, backend: str, options: ParseOptions | None = None) -> GraphIR:
    try:
        result: ParseResult = parse(text, options, backend=backend)
    except CoralError as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(1)
    return _graph_or_exit(result)


def _import_or_exit(text: str, format: str, options: ImportOptions) -> GraphIR:
    try:
        result = import_diagram(text, format, options)
    except CoralError as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(1)
    return _graph_or_exit(result)


def _graph_or_exit(result: ParseResult) -> GraphIR:
    if not result.success or result.graph is None:
        click.echo("parse error:", err=True)
        for err in result.errors:
            click.echo(f"  {err}", err=True)
        sys.exit(1)
    return result.graph


def _looks_like_json(text: str) -> bool:
    return text.lstrip().startswith(("{", "["))


def _load_json_or_exit(text: str) -> GraphIR:
    try:
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return GraphIR.from_dict(data)
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        click.echo(f"error: invalid Graph-IR JSON: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log parser activity to stderr")
def main(verbose: bool) -> None:
    """Coral architecture DSL: parse to Graph-IR JSON, print it back, import Mermaid and DOT."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("parse")
@click.argument("input", required=False, type=click.Path(exists=True))
@_backend_option
@click.option("--source-info", is_flag=True, help="Attach source positions to nodes and edges")
@click.option("--graph-id", type=str, default=None, help="Graph identifier (default 'coral-graph')")
@click.option("--graph-name", type=str, default=None, help="Graph display name")
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
def parse_cmd(
    input: str | None,
    backend: str,
    source_info: bool,
    graph_id: str | None,
    graph_name: str | None,
    output: str | None,
) -> None:
    """Parse Coral DSL into Graph-IR JSON."""
    options = ParseOptions(include_source_info=source_info, graph_name=graph_name)
    if graph_id:
        options.graph_id = graph_id
    graph = _parse_or_exit(_read_input(input), backend, options)
    _write_output(output, json.dumps(graph.to_dict(), indent=2))


@main.command("print")
@click.argument("input", required=False, type=click.Path(exists=True))
@click.option("--indent", "-i", type=int, default=2, show_default=True, help="Spaces per nesting level")
@click.option("--sort-by-type", is_flag=True, help="Order top-level nodes by type")
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
def print_cmd(input: str | None, indent: int, sort_by_type: bool, output: str | None) -> None:
    """Print Graph-IR JSON as Coral DSL."""
    graph = _load_json_or_exit(_read_input(input))
    text = pretty_print(graph, FormatOptions(indent=" " * indent, sort_by_type=sort_by_type))
    _write_output(output, text)


@main.command("fmt")
@click.argument("input", required=False, type=click.Path(exists=True))
@_backend_option
@click.option("--sort-by-type", is_flag=True, help="Order top-level nodes by type")
@click.option("--check", is_flag=True, help="Exit 1 if the input is not already formatted")
def fmt_cmd(input: str | None, backend: str, sort_by_type: bool, check: bool) -> None:
    """Reformat Coral DSL (comments are not kept)."""
    text = _read_input(input)
    graph = _parse_or_exit(text, backend)
    formatted = pretty_print(graph, FormatOptions(sort_by_type=sort_by_type))
    if check:
        if text.strip("\n") != formatted:
            click.echo(f"would reformat {input or '<stdin>'}", err=True)
            sys.exit(1)
        return
    _write_output(None, formatted)


@main.command("convert")
@click.argument("input", required=False, type=click.Path(exists=True))
@click.option(
    "--from",
    "from_format",
    type=click.Choice(FORMAT_NAMES),
    default="auto",
    show_default=True,
    help="Input diagram format",
)
@click.option(
    "--to",
    "to_format",
    type=click.Choice(["coral", "json"]),
    default="coral",
    show_default=True,
    help="Output: Coral DSL or Graph-IR JSON",
)
@click.option("--graph-id", type=str, default=None, help="Graph identifier (default depends on the format)")
@click.option("--graph-name", type=str, default=None, help="Graph display name")
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
def convert_cmd(
    input: str | None,
    from_format: str,
    to_format: str,
    graph_id: str | None,
    graph_name: str | None,
    output: str | None,
) -> None:
    """Convert a Mermaid or Graphviz DOT diagram to Coral DSL or Graph-IR JSON."""
    options = ImportOptions(graph_id=graph_id, graph_name=graph_name)
    graph = _import_or_exit(_read_input(input), from_format, options)
    if to_format == "json":
        _write_output(output, json.dumps(graph.to_dict(), indent=2))
    else:
        _write_output(output, print_graph(with_dsl_ids(graph)))


@main.command("validate")
@click.argument("input", required=False, type=click.Path(exists=True))
@_backend_option
@click.option("--strict", is_flag=True, help="Treat warnings as errors")
def validate_cmd(input: str | None, backend: str, strict: bool) -> None:
    """Check Coral DSL or Graph-IR JSON for dangling references and other issues."""
    text = _read_input(input)
    if _looks_like_json(text):
        graph = _load_json_or_exit(text)
    else:
        graph = _parse_or_exit(text, backend)

    issues = validate(graph)
    for issue in issues:
        click.echo(str(issue))
    node_count = sum(1 for _ in graph.walk())
    click.echo(f"{node_count} node(s), {len(graph.edges)} edge(s), {len(issues)} issue(s)")
    if has_errors(issues, strict=strict):
        sys.exit(1)


if __name__ == "__main__":
    main()
