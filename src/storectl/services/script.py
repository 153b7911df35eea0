"""ScriptService — run and lint command scripts.

A run is successful as long as its source could be read to the end; lines
the engine refused are reported in ``data["errors"]`` and as warnings. An
unreadable source (missing file, bad encoding, I/O error part-way) stops
the run with ``SCRIPT_UNREADABLE``; commands applied before the failure
stay applied and are listed in the partial report.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from storectl.config.models import ScriptConfig
from storectl.domain.errors import CommandException
from storectl.infrastructure.script_source import read_script
from storectl.services.base import BaseService
from storectl.services.grammar import COMMANDS
from storectl.services.interpreter import CommandInterpreter, ScriptReport
from storectl.services.result import ServiceResult
from storectl.services.telemetry import get_current_span, traced

if TYPE_CHECKING:
    from storectl.infrastructure.registry import Registry

log = structlog.get_logger(__name__)

SCRIPT_UNREADABLE = "SCRIPT_UNREADABLE"
SCRIPT_INVALID = "SCRIPT_INVALID"


class ScriptService(BaseService):
    """Drive the command interpreter from files or in-memory lines."""

    def __init__(
        self,
        registry: Registry,
        *,
        config: ScriptConfig | None = None,
        on_line: Callable[[int, str], None] | None = None,
    ) -> None:
        super().__init__(registry)
        if config is None:
            config = ScriptConfig()
        self._config = config
        self._interpreter = CommandInterpreter(
            registry,
            comment_prefix=config.comment_prefix,
            on_line=on_line,
        )

    @property
    def interpreter(self) -> CommandInterpreter:
        return self._interpreter

    @traced
    def run_lines(self, lines: Iterable[str], *, source: str = "<lines>") -> ServiceResult:
        """Execute in-memory *lines* (numbered from 1)."""
        report = ScriptReport(source=source)
        numbered = ((n, line.rstrip("\r\n")) for n, line in enumerate(lines, start=1))
        self._interpreter.run(numbered, report)
        return _report_result("run_script", report)

    @traced
    def run_file(self, path: str | Path) -> ServiceResult:
        """Execute the script at *path*, isolating failures per line."""
        op = "run_script"
        report = ScriptReport(source=str(path))
        log.debug("script.start", path=str(path))
        try:
            self._interpreter.run(read_script(path, encoding=self._config.encoding), report)
        except (OSError, UnicodeDecodeError) as exc:
            return _unreadable(op, path, exc, report)
        log.debug(
            "script.complete",
            path=str(path),
            succeeded=len(report.records),
            failed=len(report.errors),
        )
        return _report_result(op, report)

    @traced
    def check_file(self, path: str | Path) -> ServiceResult:
        """Parse and bind every line of *path* without executing anything."""
        op = "check_script"
        report = ScriptReport(source=str(path))
        commands = 0
        try:
            for line_number, text in read_script(path, encoding=self._config.encoding):
                report.lines_read += 1
                try:
                    bound = self._interpreter.parse(text, line_number)
                except CommandException as exc:
                    report.errors.append(exc)
                    continue
                if bound is not None:
                    commands += 1
        except (OSError, UnicodeDecodeError) as exc:
            return _unreadable(op, path, exc, report)

        data = {
            "source": report.source,
            "lines_read": report.lines_read,
            "commands": commands,
            "failed": len(report.errors),
            "errors": [e.to_dict() for e in report.errors],
        }
        if report.errors:
            return ServiceResult.failure(
                op,
                SCRIPT_INVALID,
                f"{len(report.errors)} line(s) cannot be run",
                data=data,
                detail={"errors": data["errors"]},
            )
        return ServiceResult(ok=True, op=op, data=data)

    def describe_grammar(self) -> ServiceResult:
        """List every keyword the interpreter accepts."""
        commands = [
            {
                "keyword": spec.keyword,
                "arguments": " ".join(p.usage for p in spec.params),
                "operation": f"{spec.service}.{spec.method}",
                "summary": spec.summary,
            }
            for spec in COMMANDS
        ]
        return ServiceResult(ok=True, op="grammar", data={"commands": commands, "count": len(commands)})


def _report_result(op: str, report: ScriptReport) -> ServiceResult:
    span = get_current_span()
    if span is not None:
        span.annotate("lines_read", report.lines_read)
        span.annotate("failed", len(report.errors))
    warnings = [*report.warnings]
    warnings.extend(f"line {e.line_number}: {e.code}: {e.reason}" for e in report.errors)
    return ServiceResult(ok=True, op=op, data=report.to_dict(), warnings=warnings)


def _unreadable(
    op: str,
    path: str | Path,
    exc: OSError | UnicodeDecodeError,
    report: ScriptReport,
) -> ServiceResult:
    log.warning("script.unreadable", path=str(path), error=str(exc), lines_read=report.lines_read)
    return ServiceResult.failure(
        op,
        SCRIPT_UNREADABLE,
        f"Cannot read script {path}: {exc}",
        data=report.to_dict(),
        detail={"path": str(path), "lines_read": report.lines_read},
    )
