"""Store hierarchy entities and their local invariants.

Ownership: a Store exclusively owns its Aisles, Devices, Baskets, customer
presence, and a store-wide inventory index. Aisles own Shelves; Shelves own
Inventory records. Products and Customers are referenced by id.

Each container exposes add-child operations that enforce exactly one
invariant class: no duplicate identifier and, for shelves, no duplicate
level within an aisle. A failed add leaves the container unmodified.

Child maps are private. Accessors return copies so callers cannot bypass
the add-child checks.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from storectl.domain.errors import ErrorKind, StoreError, duplicate, not_found
from storectl.domain.types import (
    AisleLocation,
    CustomerAgeGroup,
    CustomerType,
    DeviceCategory,
    DeviceType,
    InventoryType,
    ShelfLevel,
    Temperature,
)

# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StoreLocation:
    """A position inside a store, at aisle granularity."""

    store_id: str
    aisle_number: str

    def to_dict(self) -> dict[str, str]:
        return {"store_id": self.store_id, "aisle_number": self.aisle_number}

    def __str__(self) -> str:
        return f"{self.store_id}:{self.aisle_number}"


@dataclass(frozen=True)
class InventoryLocation:
    """A position inside a store, at shelf granularity."""

    store_id: str
    aisle_number: str
    shelf_id: str

    def to_dict(self) -> dict[str, str]:
        return {
            "store_id": self.store_id,
            "aisle_number": self.aisle_number,
            "shelf_id": self.shelf_id,
        }

    def __str__(self) -> str:
        return f"{self.store_id}:{self.aisle_number}:{self.shelf_id}"


# ---------------------------------------------------------------------------
# Leaf entities
# ---------------------------------------------------------------------------


@dataclass
class Product:
    id: str
    name: str
    description: str
    size: str
    category: str
    price: float
    temperature: Temperature

    def __post_init__(self) -> None:
        if not math.isfinite(self.price) or self.price < 0:
            raise StoreError(
                ErrorKind.INVALID_QUANTITY,
                "provision_product",
                "Price Must Be a Non-Negative Number",
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "size": self.size,
            "category": self.category,
            "price": self.price,
            "temperature": str(self.temperature),
        }


@dataclass
class Inventory:
    """Stock of one product on one shelf.

    INVARIANT: ``0 <= count <= capacity`` at all times.
    """

    id: str
    capacity: int
    count: int
    product_id: str
    type: InventoryType
    location: InventoryLocation

    def __post_init__(self) -> None:
        if self.capacity < 0:
            raise StoreError(
                ErrorKind.INVALID_QUANTITY,
                "add_inventory",
                "Inventory Capacity Cannot Be Negative",
            )
        _check_count(self.count, self.capacity, "add_inventory")

    @property
    def free_capacity(self) -> int:
        return self.capacity - self.count

    def adjust(self, delta: int, *, action: str = "update_inventory") -> int:
        """Change the count by *delta*, keeping it within ``[0, capacity]``.

        Returns the new count. The count is untouched on failure.
        """
        new_count = self.count + delta
        _check_count(new_count, self.capacity, action)
        self.count = new_count
        return new_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "capacity": self.capacity,
            "count": self.count,
            "product_id": self.product_id,
            "type": str(self.type),
            "location": self.location.to_dict(),
        }


def _check_count(count: int, capacity: int, action: str) -> None:
    if count < 0:
        raise StoreError(ErrorKind.INVALID_QUANTITY, action, "Inventory Count Cannot Be Negative")
    if count > capacity:
        raise StoreError(ErrorKind.INVALID_QUANTITY, action, "Inventory Count Exceeds Capacity")


@dataclass
class Device:
    id: str
    name: str
    type: DeviceType
    location: StoreLocation

    @property
    def category(self) -> DeviceCategory:
        return self.type.category

    @property
    def is_appliance(self) -> bool:
        return self.category is DeviceCategory.APPLIANCE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": str(self.type),
            "category": str(self.category),
            "location": self.location.to_dict(),
        }


@dataclass
class Customer:
    """A shopper. ``location`` and ``basket_id`` are None until assigned."""

    id: str
    first_name: str
    last_name: str
    type: CustomerType
    email: str
    account_address: str
    age_group: CustomerAgeGroup | None = None
    last_seen: datetime | None = None
    location: StoreLocation | None = None
    basket_id: str | None = None

    @property
    def is_guest(self) -> bool:
        return self.type is CustomerType.GUEST

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "type": str(self.type),
            "email": self.email,
            "account_address": self.account_address,
            "age_group": str(self.age_group) if self.age_group else None,
            "last_seen": self.last_seen.isoformat() if self.last_seen else None,
            "location": self.location.to_dict() if self.location else None,
            "basket_id": self.basket_id,
        }


@dataclass
class Basket:
    """Product quantities reserved by a customer.

    INVARIANT: every held quantity is > 0; an absent key means zero.
    """

    id: str
    customer_id: str | None = None
    store_id: str | None = None
    _items: dict[str, int] = field(default_factory=dict, init=False, repr=False)

    @property
    def is_assigned(self) -> bool:
        return self.customer_id is not None

    def quantity(self, product_id: str) -> int:
        return self._items.get(product_id, 0)

    def items(self) -> dict[str, int]:
        return dict(self._items)

    def add(self, product_id: str, quantity: int) -> int:
        if quantity <= 0:
            raise StoreError(ErrorKind.INVALID_QUANTITY, "add_basket_item", "Quantity Must Be Positive")
        self._items[product_id] = self._items.get(product_id, 0) + quantity
        return self._items[product_id]

    def remove(self, product_id: str, quantity: int) -> int:
        """Drop *quantity* units of *product_id*; the entry disappears at zero."""
        held = self._items.get(product_id, 0)
        if quantity > held:
            raise StoreError(
                ErrorKind.REMOVE_EXCEEDS_HELD,
                "remove_basket_item",
                "Trying To Remove More Quantity Than Exists",
            )
        remaining = held - quantity
        if remaining:
            self._items[product_id] = remaining
        else:
            self._items.pop(product_id, None)
        return remaining

    def empty(self) -> None:
        self._items.clear()

    def detach(self) -> None:
        self.customer_id = None
        self.store_id = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "store_id": self.store_id,
            "items": dict(sorted(self._items.items())),
        }


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


@dataclass
class Shelf:
    id: str
    name: str
    level: ShelfLevel
    description: str
    temperature: Temperature
    _inventory: dict[str, Inventory] = field(default_factory=dict, init=False, repr=False)

    def add_inventory(
        self,
        inventory_id: str,
        store_id: str,
        aisle_number: str,
        capacity: int,
        count: int,
        product: Product,
        inventory_type: InventoryType,
    ) -> Inventory:
        """Construct and place an inventory record on this shelf.

        Rejects a duplicate id, a count outside ``[0, capacity]``, and a
        product whose temperature zone differs from the shelf's.
        """
        action = "add_inventory"
        if inventory_id in self._inventory:
            raise duplicate(action, "Inventory Already Exists")
        if product.temperature != self.temperature:
            raise StoreError(
                ErrorKind.TEMPERATURE_MISMATCH,
                action,
                "Product and Shelf Temperature Do Not Match",
            )
        inventory = Inventory(
            id=inventory_id,
            capacity=capacity,
            count=count,
            product_id=product.id,
            type=inventory_type,
            location=InventoryLocation(store_id, aisle_number, self.id),
        )
        self._inventory[inventory_id] = inventory
        return inventory

    def get_inventory(self, inventory_id: str) -> Inventory:
        try:
            return self._inventory[inventory_id]
        except KeyError:
            raise not_found("get_inventory", "Inventory") from None

    def remove_inventory(self, inventory_id: str) -> Inventory | None:
        return self._inventory.pop(inventory_id, None)

    def inventories(self) -> list[Inventory]:
        return list(self._inventory.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "level": str(self.level),
            "description": self.description,
            "temperature": str(self.temperature),
            "inventory": [inv.to_dict() for inv in self._inventory.values()],
        }


@dataclass
class Aisle:
    number: str
    name: str
    description: str
    location: AisleLocation
    _shelves: dict[str, Shelf] = field(default_factory=dict, init=False, repr=False)

    def add_shelf(
        self,
        shelf_id: str,
        name: str,
        level: ShelfLevel,
        description: str,
        temperature: Temperature,
    ) -> Shelf:
        action = "add_shelf"
        if shelf_id in self._shelves:
            raise duplicate(action, "Shelf Already Exists")
        if any(shelf.level == level for shelf in self._shelves.values()):
            raise duplicate(action, "Shelf Level Already Occupied")
        shelf = Shelf(
            id=shelf_id,
            name=name,
            level=level,
            description=description,
            temperature=temperature,
        )
        self._shelves[shelf_id] = shelf
        return shelf

    def find_shelf(self, shelf_id: str) -> Shelf | None:
        return self._shelves.get(shelf_id)

    def get_shelf(self, shelf_id: str) -> Shelf:
        shelf = self._shelves.get(shelf_id)
        if shelf is None:
            raise not_found("get_shelf", "Shelf")
        return shelf

    def remove_shelf(self, shelf_id: str) -> Shelf | None:
        return self._shelves.pop(shelf_id, None)

    def shelves(self) -> list[Shelf]:
        return list(self._shelves.values())

    def find_inventory(self, product_id: str) -> list[Inventory]:
        """Every inventory record for *product_id* across this aisle's shelves."""
        return [
            inventory
            for shelf in self._shelves.values()
            for inventory in shelf.inventories()
            if inventory.product_id == product_id
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "name": self.name,
            "description": self.description,
            "location": str(self.location),
            "shelves": [shelf.to_dict() for shelf in self._shelves.values()],
        }


@dataclass
class Store:
    """Aggregate root. Every lock in the engine is scoped to a store id."""

    id: str
    address: str
    description: str
    _aisles: dict[str, Aisle] = field(default_factory=dict, init=False, repr=False)
    _devices: dict[str, Device] = field(default_factory=dict, init=False, repr=False)
    _baskets: dict[str, Basket] = field(default_factory=dict, init=False, repr=False)
    _customers: dict[str, Customer] = field(default_factory=dict, init=False, repr=False)
    _inventory: dict[str, Inventory] = field(default_factory=dict, init=False, repr=False)

    # -- aisles ---------------------------------------------------------

    def add_aisle(
        self,
        number: str,
        name: str,
        description: str,
        location: AisleLocation,
    ) -> Aisle:
        if number in self._aisles:
            raise duplicate("add_aisle", "Aisle Already Exists")
        aisle = Aisle(number=number, name=name, description=description, location=location)
        self._aisles[number] = aisle
        return aisle

    def find_aisle(self, number: str) -> Aisle | None:
        return self._aisles.get(number)

    def get_aisle(self, number: str) -> Aisle:
        aisle = self._aisles.get(number)
        if aisle is None:
            raise not_found("get_aisle", "Aisle")
        return aisle

    def remove_aisle(self, number: str) -> Aisle | None:
        return self._aisles.pop(number, None)

    def aisles(self) -> list[Aisle]:
        return list(self._aisles.values())

    # -- devices --------------------------------------------------------

    def add_device(self, device: Device) -> Device:
        if device.id in self._devices:
            raise duplicate("add_device", "Device Already Exists")
        self._devices[device.id] = device
        return device

    def remove_device(self, device_id: str) -> Device | None:
        return self._devices.pop(device_id, None)

    def devices(self) -> list[Device]:
        return list(self._devices.values())

    # -- baskets --------------------------------------------------------

    def add_basket(self, basket: Basket) -> Basket:
        if basket.id in self._baskets:
            raise duplicate("add_basket", "Basket Already Exists")
        self._baskets[basket.id] = basket
        return basket

    def remove_basket(self, basket_id: str) -> Basket | None:
        return self._baskets.pop(basket_id, None)

    def baskets(self) -> list[Basket]:
        return list(self._baskets.values())

    # -- customers ------------------------------------------------------

    def add_customer(self, customer: Customer) -> Customer:
        if customer.id in self._customers:
            raise duplicate("add_customer", "Customer Already In Store")
        self._customers[customer.id] = customer
        return customer

    def has_customer(self, customer_id: str) -> bool:
        return customer_id in self._customers

    def remove_customer(self, customer_id: str) -> Customer | None:
        return self._customers.pop(customer_id, None)

    def customers(self) -> list[Customer]:
        return list(self._customers.values())

    # -- inventory index ------------------------------------------------

    def add_inventory(self, inventory: Inventory) -> Inventory:
        if inventory.id in self._inventory:
            raise duplicate("add_inventory", "Inventory Already Exists")
        self._inventory[inventory.id] = inventory
        return inventory

    def has_inventory(self, inventory_id: str) -> bool:
        return inventory_id in self._inventory

    def remove_inventory(self, inventory_id: str) -> Inventory | None:
        return self._inventory.pop(inventory_id, None)

    def inventories(self) -> list[Inventory]:
        return list(self._inventory.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "address": self.address,
            "description": self.description,
            "aisles": [aisle.to_dict() for aisle in self._aisles.values()],
            "devices": sorted(self._devices),
            "baskets": sorted(self._baskets),
            "customers": sorted(self._customers),
            "inventory": sorted(self._inventory),
        }
