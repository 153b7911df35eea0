"""Rich renderers for ServiceResult.

Script-level ops (``run_script``, ``check_script``, ``grammar``) get their
own layout. Everything else is an engine operation whose payload holds at
most one entity snapshot (``store``, ``basket``...); it is printed as an
indented block with nested structures flattened to one line each:
locations as ``S1:A1:SH1``, child collections as their ids, item maps as
``P1=2``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from storectl.output.console import create_console, get_output

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from storectl.services.result import ServiceResult

    Renderer = Callable[[ServiceResult, Console, bool], None]

ENTITY_KEYS = ("store", "aisle", "shelf", "product", "inventory", "customer", "basket", "device")
_LOCATION_KEYS = ("store_id", "aisle_number", "shelf_id")


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render *result* to text (no ANSI codes outside a terminal)."""
    console = create_console()
    if not result.ok:
        _render_error(result, console, verbose)
    else:
        _RENDERERS.get(result.op, _render_operation)(result, console, verbose)
        if verbose:
            _render_meta(console, result.meta)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """One line per result for ``--quiet``."""
    if result.ok:
        failed = result.data.get("failed")
        return f"OK: {result.op}" if failed is None else f"OK: {result.op} ({failed} failed)"
    msg = result.error.message if result.error else "Unknown error"
    return f"ERROR: {result.op} — {msg}"


# ── Value formatting ──────────────────────────────────────────────────


def compact(value: Any) -> str:
    """Flatten a snapshot value to a single display string."""
    if value is None or value == [] or value == {}:
        return "-"
    if isinstance(value, dict):
        if set(value) <= set(_LOCATION_KEYS):
            return ":".join(str(value[k]) for k in _LOCATION_KEYS if k in value)
        if "id" in value:
            return str(value["id"])
        return ", ".join(f"{k}={v}" for k, v in value.items())
    if isinstance(value, list):
        return ", ".join(_child_id(item) for item in value)
    return str(value)


def _child_id(item: Any) -> str:
    if isinstance(item, dict):
        return str(item.get("id", item.get("number", "?")))
    return str(item)


def _field(console: Console, key: str, value: Any, *, indent: int = 2) -> None:
    style = "store.id" if key == "id" or key.endswith("_id") else ""
    console.print(
        Text(" " * indent + f"{key}: ", style="store.key"),
        Text(compact(value), style=style),
        sep="",
    )


def _status(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="store.ok"), Text(f"  {result.op}", style="store.op"), sep="")


# ── Engine operations ─────────────────────────────────────────────────


def _render_operation(result: ServiceResult, console: Console, verbose: bool) -> None:
    _status(console, result)
    for key, value in result.data.items():
        if key in ENTITY_KEYS and isinstance(value, dict):
            ident = value.get("id", value.get("number", ""))
            console.print(Text(f"  {key} ", style="store.key"), Text(str(ident), style="store.id"), sep="")
            for field_name, field_value in value.items():
                if field_name not in ("id", "number"):
                    _field(console, field_name, field_value, indent=4)
        else:
            _field(console, key, value)


# ── Script operations ─────────────────────────────────────────────────


def _error_table(errors: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, pad_edge=False)
    table.add_column("Line", style="store.line", justify="right")
    table.add_column("Code", style="store.code", no_wrap=True)
    table.add_column("Command", style="store.command")
    table.add_column("Reason")
    for err in errors:
        table.add_row(
            str(err.get("line", "")),
            str(err.get("code", "")),
            str(err.get("command", "")),
            str(err.get("reason", "")),
        )
    return table


def _render_run_script(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    _status(console, result)
    for key in ("source", "lines_read", "succeeded", "failed"):
        if key in d:
            _field(console, key, d[key])

    if verbose and d.get("results"):
        applied = Table(show_header=True, pad_edge=False)
        applied.add_column("Line", style="store.line", justify="right")
        applied.add_column("Op", style="store.op")
        applied.add_column("Command", style="store.command")
        for rec in d["results"]:
            applied.add_row(str(rec.get("line", "")), str(rec.get("op", "")), str(rec.get("command", "")))
        console.print()
        console.print(applied)

    if d.get("errors"):
        console.print()
        console.print(_error_table(d["errors"]))


def _render_check_script(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    console.print(
        f"[store.ok]OK[/store.ok]  {d.get('commands', 0)} commands in "
        f"{d.get('lines_read', 0)} lines, no problems found."
    )


def _render_grammar(result: ServiceResult, console: Console, verbose: bool) -> None:
    table = Table(show_header=True, pad_edge=False)
    table.add_column("Keyword", style="store.op", no_wrap=True)
    table.add_column("Arguments")
    if verbose:
        table.add_column("Operation", style="dim", no_wrap=True)
    table.add_column("Summary")
    for cmd in result.data.get("commands", []):
        row = [cmd.get("keyword", ""), cmd.get("arguments", "")]
        if verbose:
            row.append(cmd.get("operation", ""))
        row.append(cmd.get("summary", ""))
        table.add_row(*(str(cell) for cell in row))
    console.print(table)
    console.print(f"\n{result.data.get('count', 0)} commands")


_RENDERERS: dict[str, Renderer] = {
    "run_script": _render_run_script,
    "check_script": _render_check_script,
    "grammar": _render_grammar,
}


# ── Errors and verbose extras ─────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, verbose: bool) -> None:
    err = result.error
    parts = [Text("ERROR", style="store.error"), Text(f"  {result.op}", style="store.op")]
    if err is not None:
        parts.append(Text(f" [{err.code}]", style="store.code"))
    parts.append(Text(f" — {err.message if err else 'Unknown error'}"))
    console.print(*parts, sep="")
    if err is not None and err.action and err.action != result.op:
        console.print(Text(f"  refused by: {err.action}", style="dim"))

    errors = result.data.get("errors")
    if errors:
        console.print()
        console.print(_error_table(errors))

    if verbose and err is not None:
        for key, value in err.detail.items():
            if key != "errors":
                console.print(f"    {key}: {value}", style="dim")


def _render_meta(console: Console, meta: dict[str, Any] | None) -> None:
    if not meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in meta.items():
        if key == "telemetry":
            _render_span(console, value, depth=1)
        else:
            console.print(f"    {key}: {value}")


def _render_span(console: Console, span: dict[str, Any], depth: int) -> None:
    """One line per span, children indented below their parent."""
    duration = span.get("duration_ms", 0.0)
    style = "bold red" if duration > 1000 else "yellow" if duration > 100 else "dim"
    notes = " ".join(f"{k}={v}" for k, v in span.get("annotations", {}).items())
    line = Text(" " * (4 * depth))
    line.append(f"{duration:>8.2f}ms", style=style)
    line.append(f"  {span.get('name', '?')}")
    if notes:
        line.append(f"  ({notes})", style="dim")
    console.print(line)
    for child in span.get("children", []):
        _render_span(console, child, depth + 1)
