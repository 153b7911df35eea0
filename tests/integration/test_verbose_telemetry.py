"""End-to-end tests for verbose telemetry.

Validates the full pipeline:
  CLI flag (-v) -> AppContext -> enable_telemetry() -> @traced service methods
  -> span tree in ServiceResult.meta -> renderer outputs hierarchical span tree.
"""

from __future__ import annotations

import json
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from storectl.cli import cli
from storectl.services.telemetry import _current_span, _verbose_enabled, disable_telemetry

SCRIPT = str(Path(__file__).parent.parent / "fixtures" / "store.script")


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None]:
    """The --verbose flag sets a ContextVar that would leak across tests."""
    yield
    disable_telemetry()
    _current_span.set(None)


@pytest.mark.usefixtures("_isolated_cwd")
class TestVerboseTelemetry:
    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_verbose_run_shows_span_tree(self) -> None:
        result = self.runner.invoke(cli, ["-v", "run", SCRIPT])
        assert result.exit_code == 0
        assert "meta:" in result.stdout
        assert "ScriptService.run_file" in result.stdout
        assert "StoreService.provision_store" in result.stdout
        assert "ShoppingService.add_basket_item" in result.stdout

    def test_verbose_run_lists_applied_commands(self) -> None:
        result = self.runner.invoke(cli, ["-v", "run", SCRIPT])
        assert result.exit_code == 0
        assert "provision_inventory" in result.stdout

    def test_non_verbose_no_telemetry(self) -> None:
        result = self.runner.invoke(cli, ["run", SCRIPT])
        assert result.exit_code == 0
        assert "meta:" not in result.stdout
        assert _verbose_enabled.get() is False

    def test_json_verbose_includes_meta(self) -> None:
        result = self.runner.invoke(cli, ["--json", "-v", "run", SCRIPT])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert "duration_ms" in data["meta"]
        telemetry = data["meta"]["telemetry"]
        assert telemetry["name"] == "ScriptService.run_file"
        assert telemetry["children"]

    def test_log_json_produces_json_log_lines(self) -> None:
        result = self.runner.invoke(cli, ["-v", "--log-json", "run", SCRIPT])
        assert result.exit_code == 0
        events = []
        for line in result.stderr.splitlines():
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        completed = [e for e in events if e.get("event") == "service.complete"]
        assert completed
        assert all("span_name" in e and "level" in e for e in completed)
        assert any(e.get("event") == "script.start" for e in events)
