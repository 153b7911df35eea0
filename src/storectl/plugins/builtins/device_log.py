"""Built-in device log plugin.

Writes every device event and appliance command to the ``storectl.devices``
logger and keeps an in-memory history of what was seen, so a script run can
report what its devices did.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pluggy
import structlog

hookimpl = pluggy.HookimplMarker("storectl")

log = structlog.get_logger("storectl.devices")


@dataclass(frozen=True)
class DeviceLogEntry:
    kind: str
    device_id: str
    device_type: str
    store_id: str
    aisle_number: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "device_id": self.device_id,
            "device_type": self.device_type,
            "store_id": self.store_id,
            "aisle_number": self.aisle_number,
            "message": self.message,
        }


class DeviceLogPlugin:
    """Record device events and commands."""

    def __init__(self) -> None:
        self.entries: list[DeviceLogEntry] = []

    @hookimpl
    def device_event(
        self,
        device_id: str,
        device_type: str,
        store_id: str,
        aisle_number: str,
        event: str,
    ) -> None:
        self.entries.append(
            DeviceLogEntry("event", device_id, device_type, store_id, aisle_number, event)
        )
        log.info(
            "device.event",
            device_id=device_id,
            device_type=device_type,
            location=f"{store_id}:{aisle_number}",
            event=event,
        )

    @hookimpl
    def device_command(
        self,
        device_id: str,
        device_type: str,
        store_id: str,
        aisle_number: str,
        command: str,
    ) -> None:
        self.entries.append(
            DeviceLogEntry("command", device_id, device_type, store_id, aisle_number, command)
        )
        log.info(
            "device.command",
            device_id=device_id,
            device_type=device_type,
            location=f"{store_id}:{aisle_number}",
            command=command,
        )
