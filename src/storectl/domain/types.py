"""Classification enums for the store hierarchy.

Values are the lowercase tokens used in command scripts and in
serialized snapshots.
"""

from __future__ import annotations

from enum import StrEnum


class Temperature(StrEnum):
    """Temperature zone shared by shelves and the products stored on them."""

    FROZEN = "frozen"
    REFRIGERATED = "refrigerated"
    AMBIENT = "ambient"
    WARM = "warm"
    HOT = "hot"


class ShelfLevel(StrEnum):
    """Vertical slot of a shelf; unique among the shelves of one aisle."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AisleLocation(StrEnum):
    """Where an aisle sits in the store."""

    FLOOR = "floor"
    STORE_ROOM = "store_room"


class InventoryType(StrEnum):
    STANDARD = "standard"
    FLEXIBLE = "flexible"


class CustomerType(StrEnum):
    """Only registered customers may shop."""

    GUEST = "guest"
    REGISTERED = "registered"


class CustomerAgeGroup(StrEnum):
    CHILD = "child"
    ADULT = "adult"
    SENIOR = "senior"


class DeviceCategory(StrEnum):
    """Sensors raise events; appliances also accept commands."""

    SENSOR = "sensor"
    APPLIANCE = "appliance"


class DeviceType(StrEnum):
    """Concrete device kinds placed in store aisles."""

    CAMERA = "camera"
    MICROPHONE = "microphone"
    ROBOT = "robot"
    SPEAKER = "speaker"

    @property
    def category(self) -> DeviceCategory:
        if self in (DeviceType.ROBOT, DeviceType.SPEAKER):
            return DeviceCategory.APPLIANCE
        return DeviceCategory.SENSOR
