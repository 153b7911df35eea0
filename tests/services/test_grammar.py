"""Tests for command keyword binding."""

from __future__ import annotations

import inspect

import pytest

from storectl.domain.types import CustomerAgeGroup, CustomerType, DeviceType, Temperature
from storectl.services.grammar import COMMANDS, GRAMMAR
from storectl.services.shopping import ShoppingService
from storectl.services.store import StoreService

_SERVICES = {"store": StoreService, "shopping": ShoppingService}


class TestGrammarTable:
    def test_keywords_unique(self) -> None:
        assert len(GRAMMAR) == len(COMMANDS)

    @pytest.mark.parametrize("spec", COMMANDS, ids=lambda s: s.keyword)
    def test_targets_match_service_signatures(self, spec: object) -> None:
        """Every bound keyword names a real parameter of its service method."""
        method = getattr(_SERVICES[spec.service], spec.method)  # type: ignore[attr-defined]
        accepted = set(inspect.signature(method).parameters) - {"self"}
        targets = {p.target for p in spec.params}  # type: ignore[attr-defined]
        assert targets <= accepted
        required = {
            name
            for name, param in inspect.signature(method).parameters.items()
            if name != "self" and param.default is inspect.Parameter.empty
        }
        assert required <= targets


class TestBind:
    def test_converts_numbers_and_enums(self) -> None:
        kwargs = GRAMMAR["define_product"].bind(
            ["P1", "Milk", "Whole milk", "1L", "dairy", "2.49", "REFRIGERATED"]
        )
        assert kwargs["price"] == 2.49
        assert kwargs["temperature"] is Temperature.REFRIGERATED

    def test_kwarg_renames(self) -> None:
        kwargs = GRAMMAR["define_device"].bind(["D1", "Cam", "camera", "S1", "A1"])
        assert kwargs["device_type"] is DeviceType.CAMERA
        assert "type" not in kwargs

    def test_optional_argument(self) -> None:
        spec = GRAMMAR["define_customer"]
        without = spec.bind(["C1", "Ada", "L", "guest", "a@x", "12 Elm"])
        assert without["customer_type"] is CustomerType.GUEST
        assert "age_group" not in without
        with_age = spec.bind(["C1", "Ada", "L", "guest", "a@x", "12 Elm", "senior"])
        assert with_age["age_group"] is CustomerAgeGroup.SENIOR

    def test_rest_argument_joins_words(self) -> None:
        kwargs = GRAMMAR["raise_event"].bind(["D1", "spill", "in", "aisle", "3"])
        assert kwargs == {"device_id": "D1", "event": "spill in aisle 3"}

    def test_rest_argument_required(self) -> None:
        with pytest.raises(ValueError, match="expected at least 2, got 1"):
            GRAMMAR["issue_command"].bind(["D1"])

    def test_too_few(self) -> None:
        with pytest.raises(ValueError, match=r"Wrong Number of Arguments: expected 3, got 2"):
            GRAMMAR["add_basket_item"].bind(["B1", "P1"])

    def test_too_many_with_optional(self) -> None:
        with pytest.raises(ValueError, match="expected 6 to 7, got 8"):
            GRAMMAR["define_customer"].bind(["C1", "a", "b", "guest", "e", "addr", "adult", "x"])

    def test_bad_integer(self) -> None:
        with pytest.raises(ValueError, match="Invalid quantity: Expected an Integer, Got 'five'"):
            GRAMMAR["add_basket_item"].bind(["B1", "P1", "five"])

    def test_bad_enum_lists_choices(self) -> None:
        with pytest.raises(ValueError, match=r"Invalid level: Expected one of \[low, medium, high\]"):
            GRAMMAR["define_shelf"].bind(["S1", "A1", "SH1", "n", "top", "d", "ambient"])

    def test_negative_delta(self) -> None:
        assert GRAMMAR["update_inventory"].bind(["I1", "-5"]) == {"inventory_id": "I1", "delta": -5}

    def test_no_argument_command(self) -> None:
        assert GRAMMAR["list_stores"].bind([]) == {}
        with pytest.raises(ValueError, match="expected 0, got 1"):
            GRAMMAR["list_stores"].bind(["S1"])


class TestUsage:
    def test_usage_string(self) -> None:
        assert GRAMMAR["add_basket_item"].usage == (
            "add_basket_item <basket_id> <product_id> <quantity:int>"
        )

    def test_usage_optional_and_rest(self) -> None:
        assert GRAMMAR["define_customer"].usage.endswith("[<age_group>]")
        assert GRAMMAR["raise_event"].usage == "raise_event <device_id> <event...>"
