"""Verbose-mode timing for service calls and script lines.

Off unless ``--verbose`` calls :func:`enable_telemetry`; when off, every
entry point costs one ``ContextVar.get``. When on, the outermost
``@traced`` call opens a root :class:`Span`, nested traced calls and
:func:`trace_span` blocks hang children off it, and the finished tree is
written into the returned ``ServiceResult.meta``.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from storectl.services.result import ServiceResult

log = structlog.get_logger("storectl.telemetry")

_verbose_enabled: ContextVar[bool] = ContextVar("_verbose_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("_current_span", default=None)


@dataclass
class Span:
    """One timed step; children are the steps it performed."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            out["annotations"] = dict(self.annotations)
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        return out


@contextmanager
def _open_span(name: str) -> Iterator[Span]:
    """Make a new span current for the block, attached to the enclosing one."""
    parent = _current_span.get()
    span = Span(name=name, parent=parent)
    if parent is not None:
        parent.children.append(span)
    token = _current_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _current_span.reset(token)


@contextmanager
def trace_span(name: str) -> Iterator[Span | None]:
    """Time a step inside a traced call.

    Yields None when telemetry is off or no traced call is running.
    """
    if not _verbose_enabled.get() or _current_span.get() is None:
        yield None
        return
    with _open_span(name) as span:
        yield span


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Time a service method and report it in ``ServiceResult.meta``.

    ``meta["duration_ms"]`` is always set; ``meta["telemetry"]`` carries the
    span tree when the call had children or annotations.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _verbose_enabled.get():
            return func(*args, **kwargs)

        with _open_span(func.__qualname__) as span:
            result = func(*args, **kwargs)

        duration = round(span.duration_ms, 2)
        if not isinstance(result, ServiceResult):
            log.debug("service.complete", span_name=span.name, duration_ms=duration)
            return result

        log.debug(
            "service.complete",
            span_name=span.name,
            duration_ms=duration,
            op=result.op,
            ok=result.ok,
        )
        timing: dict[str, Any] = {"duration_ms": duration}
        if span.children or span.annotations:
            timing["telemetry"] = span.to_dict()
        return result.model_copy(update={"meta": {**(result.meta or {}), **timing}})  # type: ignore[return-value]

    return wrapper


def enable_telemetry() -> None:
    """Turn span collection on for the current context (``--verbose``)."""
    _verbose_enabled.set(True)


def disable_telemetry() -> None:
    _verbose_enabled.set(False)


def get_current_span() -> Span | None:
    """The span a caller may annotate, or None when telemetry is off."""
    if not _verbose_enabled.get():
        return None
    return _current_span.get()
