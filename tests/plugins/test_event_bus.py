"""Tests for EventBus — synchronous hook dispatch."""

from __future__ import annotations

from typing import Any

import pluggy
import pytest

from storectl.plugins.event_bus import EventBus
from storectl.plugins.manager import PluginManager

hookimpl = pluggy.HookimplMarker("storectl")


class RecordingPlugin:
    """Plugin that records device hook calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def device_event(
        self,
        device_id: str,
        device_type: str,
        store_id: str,
        aisle_number: str,
        event: str,
    ) -> None:
        self.calls.append(("device_event", {"device_id": device_id, "event": event}))


class FailingPlugin:
    @hookimpl
    def device_event(
        self,
        device_id: str,
        device_type: str,
        store_id: str,
        aisle_number: str,
        event: str,
    ) -> None:
        msg = "sensor offline"
        raise RuntimeError(msg)


def _bus(*plugins: object) -> EventBus:
    pm = PluginManager()
    for plugin in plugins:
        pm.register_plugin(plugin)
    return EventBus(pm)


_PAYLOAD = {
    "device_id": "D1",
    "device_type": "camera",
    "store_id": "S1",
    "aisle_number": "A1",
    "event": "motion",
}


class TestEventBus:
    def test_dispatch_calls_hook(self) -> None:
        recorder = RecordingPlugin()
        bus = _bus(recorder)
        bus.dispatch("device_event", _PAYLOAD)
        assert recorder.calls == [("device_event", {"device_id": "D1", "event": "motion"})]
        assert bus.dispatched == 1

    def test_dispatch_without_plugins(self) -> None:
        bus = _bus()
        bus.dispatch("device_event", _PAYLOAD)
        assert bus.dispatched == 1

    def test_unknown_hook(self) -> None:
        with pytest.raises(ValueError, match="Unknown hook: post_teleport"):
            _bus().dispatch("post_teleport", {})

    def test_plugin_errors_propagate(self) -> None:
        """The bus does not swallow errors; services turn them into warnings."""
        with pytest.raises(RuntimeError, match="sensor offline"):
            _bus(FailingPlugin()).dispatch("device_event", _PAYLOAD)

    def test_plugin_manager_exposed(self) -> None:
        pm = PluginManager()
        assert EventBus(pm).plugin_manager is pm
