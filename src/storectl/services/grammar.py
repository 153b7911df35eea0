"""Command-script grammar: one keyword per engine operation.

Each :class:`CommandSpec` names the service method a keyword drives and the
positional parameters it takes. :meth:`CommandSpec.bind` turns the tokens
after the keyword into keyword arguments for that method, converting
numbers and enum values; it raises ``ValueError`` with a readable reason
when the tokens do not fit.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from storectl.domain.types import (
    AisleLocation,
    CustomerAgeGroup,
    CustomerType,
    DeviceType,
    InventoryType,
    ShelfLevel,
    Temperature,
)

Converter = Callable[[str], Any]


def _int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Expected an Integer, Got {value!r}") from None


def _float(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Expected a Number, Got {value!r}") from None


def _enum(enum_cls: type[StrEnum]) -> Converter:
    choices = ", ".join(member.value for member in enum_cls)

    def convert(value: str) -> StrEnum:
        try:
            return enum_cls(value.lower())
        except ValueError:
            raise ValueError(f"Expected one of [{choices}], Got {value!r}") from None

    convert.__name__ = enum_cls.__name__
    return convert


@dataclass(frozen=True)
class Param:
    """One positional parameter of a command."""

    name: str
    convert: Converter = str
    kwarg: str | None = None
    optional: bool = False
    rest: bool = False

    @property
    def target(self) -> str:
        return self.kwarg or self.name

    @property
    def usage(self) -> str:
        if self.convert is _int:
            text = f"<{self.name}:int>"
        elif self.convert is _float:
            text = f"<{self.name}:float>"
        elif self.rest:
            text = f"<{self.name}...>"
        else:
            text = f"<{self.name}>"
        return f"[{text}]" if self.optional else text


@dataclass(frozen=True)
class CommandSpec:
    keyword: str
    service: str
    method: str
    params: tuple[Param, ...]
    summary: str

    @property
    def usage(self) -> str:
        return " ".join([self.keyword, *(p.usage for p in self.params)])

    def bind(self, args: list[str]) -> dict[str, Any]:
        """Map *args* onto this command's parameters.

        Raises:
            ValueError: on a wrong argument count or a failed conversion.
        """
        required = [p for p in self.params if not p.optional and not p.rest]
        rest = next((p for p in self.params if p.rest), None)
        max_args = None if rest else len(self.params)
        min_args = len(required) + (1 if rest else 0)
        if len(args) < min_args or (max_args is not None and len(args) > max_args):
            expected = f"at least {min_args}" if rest else _count_range(min_args, max_args or 0)
            raise ValueError(
                f"Wrong Number of Arguments: expected {expected}, got {len(args)} (usage: {self.usage})"
            )

        bound: dict[str, Any] = {}
        for index, param in enumerate(self.params):
            if param.rest:
                bound[param.target] = " ".join(args[index:])
                break
            if index >= len(args):
                break
            try:
                bound[param.target] = param.convert(args[index])
            except ValueError as exc:
                raise ValueError(f"Invalid {param.name}: {exc}") from None
        return bound


def _count_range(low: int, high: int) -> str:
    return str(low) if low == high else f"{low} to {high}"


def _p(name: str, convert: Converter = str, **kwargs: Any) -> Param:
    return Param(name, convert, **kwargs)


_STORE = "store"
_SHOPPING = "shopping"

COMMANDS: tuple[CommandSpec, ...] = (
    # -- stores ----------------------------------------------------------
    CommandSpec(
        "define_store",
        _STORE,
        "provision_store",
        (_p("store_id"), _p("name"), _p("address")),
        "Create a store.",
    ),
    CommandSpec("show_store", _STORE, "show_store", (_p("store_id"),), "Show a store."),
    CommandSpec("list_stores", _STORE, "list_stores", (), "Show every store."),
    CommandSpec(
        "update_store",
        _STORE,
        "update_store",
        (_p("store_id"), _p("description"), _p("address")),
        "Change a store's description and address.",
    ),
    CommandSpec(
        "delete_store",
        _STORE,
        "delete_store",
        (_p("store_id"),),
        "Delete a store and everything in it.",
    ),
    # -- aisles ----------------------------------------------------------
    CommandSpec(
        "define_aisle",
        _STORE,
        "provision_aisle",
        (
            _p("store_id"),
            _p("aisle_number"),
            _p("name"),
            _p("description"),
            _p("location", _enum(AisleLocation)),
        ),
        "Create an aisle in a store.",
    ),
    CommandSpec(
        "show_aisle",
        _STORE,
        "show_aisle",
        (_p("store_id"), _p("aisle_number")),
        "Show an aisle.",
    ),
    CommandSpec(
        "update_aisle",
        _STORE,
        "update_aisle",
        (
            _p("store_id"),
            _p("aisle_number"),
            _p("name"),
            _p("description"),
            _p("location", _enum(AisleLocation)),
        ),
        "Change an aisle's name, description and location.",
    ),
    CommandSpec(
        "delete_aisle",
        _STORE,
        "delete_aisle",
        (_p("store_id"), _p("aisle_number")),
        "Delete an aisle with its shelves, inventory and devices.",
    ),
    # -- shelves ---------------------------------------------------------
    CommandSpec(
        "define_shelf",
        _STORE,
        "provision_shelf",
        (
            _p("store_id"),
            _p("aisle_number"),
            _p("shelf_id"),
            _p("name"),
            _p("level", _enum(ShelfLevel)),
            _p("description"),
            _p("temperature", _enum(Temperature)),
        ),
        "Create a shelf in an aisle.",
    ),
    CommandSpec(
        "show_shelf",
        _STORE,
        "show_shelf",
        (_p("store_id"), _p("aisle_number"), _p("shelf_id")),
        "Show a shelf.",
    ),
    CommandSpec(
        "delete_shelf",
        _STORE,
        "delete_shelf",
        (_p("store_id"), _p("aisle_number"), _p("shelf_id")),
        "Delete a shelf and its inventory.",
    ),
    # -- products --------------------------------------------------------
    CommandSpec(
        "define_product",
        _STORE,
        "provision_product",
        (
            _p("product_id"),
            _p("name"),
            _p("description"),
            _p("size"),
            _p("category"),
            _p("price", _float),
            _p("temperature", _enum(Temperature)),
        ),
        "Add a product to the catalog.",
    ),
    CommandSpec("show_product", _STORE, "show_product", (_p("product_id"),), "Show a product."),
    CommandSpec(
        "delete_product",
        _STORE,
        "delete_product",
        (_p("product_id"),),
        "Remove a product that is not stocked anywhere.",
    ),
    # -- inventory -------------------------------------------------------
    CommandSpec(
        "define_inventory",
        _STORE,
        "provision_inventory",
        (
            _p("inventory_id"),
            _p("store_id"),
            _p("aisle_number"),
            _p("shelf_id"),
            _p("capacity", _int),
            _p("count", _int),
            _p("product_id"),
            _p("inventory_type", _enum(InventoryType)),
        ),
        "Stock a product on a shelf.",
    ),
    CommandSpec(
        "show_inventory",
        _STORE,
        "show_inventory",
        (_p("inventory_id"),),
        "Show an inventory record.",
    ),
    CommandSpec(
        "update_inventory",
        _STORE,
        "update_inventory",
        (_p("inventory_id"), _p("delta", _int)),
        "Change an inventory count by a signed amount.",
    ),
    CommandSpec(
        "delete_inventory",
        _STORE,
        "delete_inventory",
        (_p("inventory_id"),),
        "Remove an inventory record from its shelf.",
    ),
    # -- customers -------------------------------------------------------
    CommandSpec(
        "define_customer",
        _SHOPPING,
        "provision_customer",
        (
            _p("customer_id"),
            _p("first_name"),
            _p("last_name"),
            _p("type", _enum(CustomerType), kwarg="customer_type"),
            _p("email"),
            _p("account_address"),
            _p("age_group", _enum(CustomerAgeGroup), optional=True),
        ),
        "Register a customer.",
    ),
    CommandSpec("show_customer", _SHOPPING, "show_customer", (_p("customer_id"),), "Show a customer."),
    CommandSpec(
        "update_customer",
        _SHOPPING,
        "update_customer",
        (_p("customer_id"), _p("store_id"), _p("aisle_number")),
        "Move a customer to an aisle.",
    ),
    CommandSpec(
        "delete_customer",
        _SHOPPING,
        "delete_customer",
        (_p("customer_id"),),
        "Delete a customer, returning their basket first.",
    ),
    # -- baskets ---------------------------------------------------------
    CommandSpec("define_basket", _SHOPPING, "provision_basket", (_p("basket_id"),), "Create a basket."),
    CommandSpec("show_basket", _SHOPPING, "show_basket", (_p("basket_id"),), "Show a basket."),
    CommandSpec(
        "assign_basket",
        _SHOPPING,
        "assign_basket",
        (_p("customer_id"), _p("basket_id")),
        "Give a basket to a customer in a store.",
    ),
    CommandSpec(
        "get_customer_basket",
        _SHOPPING,
        "get_customer_basket",
        (_p("customer_id"),),
        "Show the basket a customer holds.",
    ),
    CommandSpec(
        "add_basket_item",
        _SHOPPING,
        "add_basket_item",
        (_p("basket_id"), _p("product_id"), _p("quantity", _int)),
        "Take product off the shelf into a basket.",
    ),
    CommandSpec(
        "remove_basket_item",
        _SHOPPING,
        "remove_basket_item",
        (_p("basket_id"), _p("product_id"), _p("quantity", _int)),
        "Put product from a basket back on the shelf.",
    ),
    CommandSpec(
        "clear_basket",
        _SHOPPING,
        "clear_basket",
        (_p("basket_id"),),
        "Return everything in a basket and detach it.",
    ),
    CommandSpec(
        "delete_basket",
        _SHOPPING,
        "delete_basket",
        (_p("basket_id"),),
        "Delete a basket, returning its contents first.",
    ),
    # -- devices ---------------------------------------------------------
    CommandSpec(
        "define_device",
        _STORE,
        "provision_device",
        (
            _p("device_id"),
            _p("name"),
            _p("type", _enum(DeviceType), kwarg="device_type"),
            _p("store_id"),
            _p("aisle_number"),
        ),
        "Place a device in an aisle.",
    ),
    CommandSpec("show_device", _STORE, "show_device", (_p("device_id"),), "Show a device."),
    CommandSpec("delete_device", _STORE, "delete_device", (_p("device_id"),), "Remove a device."),
    CommandSpec(
        "raise_event",
        _STORE,
        "raise_event",
        (_p("device_id"), _p("event", rest=True)),
        "Emit an event from a device.",
    ),
    CommandSpec(
        "issue_command",
        _STORE,
        "issue_command",
        (_p("device_id"), _p("command", rest=True)),
        "Send a command to an appliance.",
    ),
)

GRAMMAR: dict[str, CommandSpec] = {spec.keyword: spec for spec in COMMANDS}
