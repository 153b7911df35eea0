"""Tests for the grammar CLI command."""

from __future__ import annotations

import json
from collections.abc import Generator

import pytest
from click.testing import CliRunner

from storectl.cli import cli
from storectl.services.telemetry import disable_telemetry


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None]:
    yield
    disable_telemetry()


@pytest.mark.usefixtures("_isolated_cwd")
class TestGrammarCommand:
    def test_grammar_lists_keywords(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["grammar"])
        assert result.exit_code == 0
        assert "define_store" in result.stdout
        assert "add_basket_item" in result.stdout
        assert "36 commands" in result.stdout

    def test_grammar_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "grammar"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["data"]["count"] == 36
        keywords = {c["keyword"] for c in data["data"]["commands"]}
        assert {"define_store", "issue_command", "show_inventory"} <= keywords

    def test_grammar_verbose_shows_operations(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-v", "grammar"])
        assert result.exit_code == 0
        assert "store.provision_store" in result.stdout

    def test_grammar_quiet(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "grammar"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "OK: grammar"
