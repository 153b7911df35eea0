"""CommandInterpreter — replay a line-oriented command script.

Each line is tokenized (POSIX shell rules: quotes group words, the comment
prefix starts a comment), matched against :data:`GRAMMAR`, bound to the
target service method and executed. Failures of any kind are recorded as
:class:`CommandException` and processing continues with the next line.

INVARIANT: one bad line never aborts a run. Effects of earlier lines are
never rolled back.
"""

from __future__ import annotations

import shlex
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from storectl.config.logging import script_line_context
from storectl.domain.errors import CommandException
from storectl.services.grammar import GRAMMAR, CommandSpec
from storectl.services.shopping import ShoppingService
from storectl.services.store import StoreService
from storectl.services.telemetry import trace_span

if TYPE_CHECKING:
    from storectl.infrastructure.registry import Registry
    from storectl.services.result import ServiceResult

log = structlog.get_logger(__name__)

MALFORMED_COMMAND = "MALFORMED_COMMAND"
UNKNOWN_COMMAND = "UNKNOWN_COMMAND"


@dataclass(frozen=True)
class CommandRecord:
    """A script line that ran successfully."""

    line_number: int
    command: str
    op: str
    data: dict[str, Any]
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "line": self.line_number,
            "command": self.command,
            "op": self.op,
            "data": self.data,
        }


@dataclass
class ScriptReport:
    """Outcome of a run: what was applied and what was refused."""

    source: str = "<lines>"
    lines_read: int = 0
    records: list[CommandRecord] = field(default_factory=list)
    errors: list[CommandException] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def executed(self) -> int:
        return len(self.records) + len(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "lines_read": self.lines_read,
            "executed": self.executed,
            "succeeded": len(self.records),
            "failed": len(self.errors),
            "results": [r.to_dict() for r in self.records],
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass(frozen=True)
class BoundCommand:
    """A tokenized line matched to its grammar entry."""

    line_number: int
    text: str
    spec: CommandSpec
    kwargs: dict[str, Any]


class CommandInterpreter:
    """Parse and execute command lines against one Registry."""

    def __init__(
        self,
        registry: Registry,
        *,
        comment_prefix: str = "#",
        on_line: Callable[[int, str], None] | None = None,
    ) -> None:
        self._services: dict[str, Any] = {
            "store": StoreService(registry),
            "shopping": ShoppingService(registry),
        }
        self._comment_prefix = comment_prefix
        self._on_line = on_line

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def tokenize(self, text: str, line_number: int = 0) -> list[str]:
        """Split *text* into tokens; an empty list means nothing to run."""
        lexer = shlex.shlex(text, posix=True)
        lexer.whitespace_split = True
        lexer.commenters = self._comment_prefix
        try:
            return list(lexer)
        except ValueError as exc:
            raise CommandException(text.strip(), f"Cannot Parse Line: {exc}", line_number) from None

    def parse(self, text: str, line_number: int = 0) -> BoundCommand | None:
        """Bind one line to a grammar entry without executing it.

        Returns None for blank and comment-only lines.

        Raises:
            CommandException: unknown keyword, wrong arity, or a bad argument.
        """
        tokens = self.tokenize(text, line_number)
        if not tokens:
            return None
        command = text.strip()
        keyword, args = tokens[0].lower(), tokens[1:]
        spec = GRAMMAR.get(keyword)
        if spec is None:
            raise CommandException(command, "Unknown Command", line_number, code=UNKNOWN_COMMAND)
        try:
            kwargs = spec.bind(args)
        except ValueError as exc:
            raise CommandException(command, str(exc), line_number) from None
        return BoundCommand(line_number, command, spec, kwargs)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(self, bound: BoundCommand) -> ServiceResult:
        service = self._services[bound.spec.service]
        method: Callable[..., ServiceResult] = getattr(service, bound.spec.method)
        return method(**bound.kwargs)

    def execute_line(self, text: str, line_number: int = 0) -> CommandRecord | None:
        """Run one line.

        Returns the record of a successful command, or None for a blank or
        comment line.

        Raises:
            CommandException: the line could not be parsed or the engine
                refused the operation.
        """
        bound = self.parse(text, line_number)
        if bound is None:
            return None
        if self._on_line is not None:
            self._on_line(line_number, bound.text)
        with trace_span(f"line {line_number}"):
            result = self.execute(bound)
        if not result.ok:
            raise CommandException(
                bound.text,
                result.error.message if result.error else "Command Failed",
                line_number,
                code=result.error_code or MALFORMED_COMMAND,
            )
        return CommandRecord(line_number, bound.text, result.op, result.data, tuple(result.warnings))

    def run(self, lines: Iterable[tuple[int, str]], report: ScriptReport | None = None) -> ScriptReport:
        """Execute every ``(line_number, text)`` pair, isolating failures.

        *report* is filled in place, so a caller still holds the partial
        report if iterating *lines* raises.
        """
        report = report if report is not None else ScriptReport()
        for line_number, text in lines:
            report.lines_read += 1
            with script_line_context(report.source, line_number):
                try:
                    record = self.execute_line(text, line_number)
                except CommandException as exc:
                    log.info("command.failed", command=exc.command, code=exc.code, reason=exc.reason)
                    report.errors.append(exc)
                    continue
            if record is not None:
                report.records.append(record)
                report.warnings.extend(f"line {line_number}: {w}" for w in record.warnings)
        return report
