"""Smoke tests: imports work, CLI --help works."""

from click.testing import CliRunner

from coral_dsl.__main__ import main


def test_import():
    import coral_dsl

    assert coral_dsl.parse is not None
    assert coral_dsl.print_graph is not None


def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "Coral architecture DSL" in result.output
