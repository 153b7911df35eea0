"""Tests for classification enums."""

import pytest

from storectl.domain.types import (
    AisleLocation,
    CustomerType,
    DeviceCategory,
    DeviceType,
    ShelfLevel,
    Temperature,
)


class TestTemperature:
    def test_values_are_lowercase_tokens(self) -> None:
        assert [t.value for t in Temperature] == [
            "frozen",
            "refrigerated",
            "ambient",
            "warm",
            "hot",
        ]

    def test_str_is_value(self) -> None:
        assert str(Temperature.FROZEN) == "frozen"

    def test_unknown_value_rejected(self) -> None:
        with pytest.raises(ValueError):
            Temperature("lukewarm")


class TestDeviceType:
    @pytest.mark.parametrize("device_type", [DeviceType.ROBOT, DeviceType.SPEAKER])
    def test_appliances(self, device_type: DeviceType) -> None:
        assert device_type.category is DeviceCategory.APPLIANCE

    @pytest.mark.parametrize("device_type", [DeviceType.CAMERA, DeviceType.MICROPHONE])
    def test_sensors(self, device_type: DeviceType) -> None:
        assert device_type.category is DeviceCategory.SENSOR


def test_other_enums_round_trip_from_tokens() -> None:
    assert ShelfLevel("medium") is ShelfLevel.MEDIUM
    assert AisleLocation("store_room") is AisleLocation.STORE_ROOM
    assert CustomerType("guest") is CustomerType.GUEST
