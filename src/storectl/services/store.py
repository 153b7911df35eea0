"""StoreService — provisioning and lookup for the store hierarchy.

Covers stores, aisles, shelves, products, inventory and devices. Every
operation runs in one critical section scoped to the affected store; the
catalog lock is added whenever a global id index is read-then-written.

Provisioning resolves references in the order store, aisle, shelf, product
and fails NOT_FOUND at the first missing one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from storectl.domain.errors import ErrorKind, StoreError, duplicate
from storectl.domain.models import Device, Inventory, Product, Store, StoreLocation
from storectl.domain.types import (
    AisleLocation,
    DeviceType,
    InventoryType,
    ShelfLevel,
    Temperature,
)
from storectl.services.base import BaseService
from storectl.services.result import ServiceResult
from storectl.services.telemetry import traced

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

log = structlog.get_logger(__name__)


class StoreService(BaseService):
    """Stores, aisles, shelves, products, inventory and devices."""

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------

    @traced
    def provision_store(self, store_id: str, name: str, address: str) -> ServiceResult:
        """Create a store. *name* becomes the store's description."""
        op = "provision_store"
        try:
            with self._registry.transaction(store_id, catalog=True):
                if self._registry.stores.contains(store_id):
                    raise duplicate(op, "Store Already Exists")
                store = Store(id=store_id, address=address, description=name)
                self._registry.stores.put(store)
                data = store.to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return self._provisioned(op, "store", store_id, data)

    @traced
    def show_store(self, store_id: str) -> ServiceResult:
        op = "show_store"
        try:
            with self._registry.transaction(store_id):
                data = self._registry.stores.get(store_id, action=op).to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"store": data})

    @traced
    def list_stores(self) -> ServiceResult:
        """Snapshot every store, each under its own lock."""
        stores: list[dict[str, Any]] = []
        for store in self._registry.stores.all():
            with self._registry.transaction(store.id):
                if self._registry.stores.contains(store.id):
                    stores.append(store.to_dict())
        return ServiceResult(ok=True, op="list_stores", data={"stores": stores, "count": len(stores)})

    @traced
    def update_store(self, store_id: str, description: str, address: str) -> ServiceResult:
        op = "update_store"
        try:
            with self._registry.transaction(store_id):
                store = self._registry.stores.get(store_id, action=op)
                store.description = description
                store.address = address
                data = store.to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"store": data})

    @traced
    def delete_store(self, store_id: str) -> ServiceResult:
        """Delete a store and everything it owns.

        Baskets in the store are emptied and detached from their customers,
        customers in the store lose their location, and the store's
        inventory and devices leave the global indexes.
        """
        op = "delete_store"
        try:
            with self._registry.transaction(store_id, catalog=True):
                store = self._registry.stores.get(store_id, action=op)
                summary = self._cascade_store(store)
                self._registry.stores.remove(store_id)
        except StoreError as exc:
            return self._failure(op, exc)
        log.info("store.deleted", store_id=store_id, **summary)
        return self._deleted(op, "store", store_id, summary)

    def _cascade_store(self, store: Store) -> dict[str, int]:
        registry = self._registry
        for basket in store.baskets():
            customer = registry.customers.find(basket.customer_id)
            if customer is not None and customer.basket_id == basket.id:
                customer.basket_id = None
            basket.empty()
            basket.detach()
            store.remove_basket(basket.id)
        for customer in store.customers():
            customer.location = None
            store.remove_customer(customer.id)
        for inventory in store.inventories():
            registry.inventory.remove(inventory.id)
        for device in store.devices():
            registry.devices.remove(device.id)
        return {
            "aisles": len(store.aisles()),
            "inventory": len(store.inventories()),
            "devices": len(store.devices()),
        }

    # ------------------------------------------------------------------
    # Aisles
    # ------------------------------------------------------------------

    @traced
    def provision_aisle(
        self,
        store_id: str,
        aisle_number: str,
        name: str,
        description: str,
        location: AisleLocation,
    ) -> ServiceResult:
        op = "provision_aisle"
        try:
            with self._registry.transaction(store_id):
                store = self._registry.stores.get(store_id, action=op)
                aisle = store.add_aisle(aisle_number, name, description, location)
                data = aisle.to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return self._provisioned(op, "aisle", f"{store_id}:{aisle_number}", data)

    @traced
    def show_aisle(self, store_id: str, aisle_number: str) -> ServiceResult:
        op = "show_aisle"
        try:
            with self._registry.transaction(store_id):
                store = self._registry.stores.get(store_id, action=op)
                data = store.get_aisle(aisle_number).to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"aisle": data})

    @traced
    def update_aisle(
        self,
        store_id: str,
        aisle_number: str,
        name: str,
        description: str,
        location: AisleLocation,
    ) -> ServiceResult:
        op = "update_aisle"
        try:
            with self._registry.transaction(store_id):
                store = self._registry.stores.get(store_id, action=op)
                aisle = store.get_aisle(aisle_number)
                aisle.name = name
                aisle.description = description
                aisle.location = location
                data = aisle.to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"aisle": data})

    @traced
    def delete_aisle(self, store_id: str, aisle_number: str) -> ServiceResult:
        """Delete an aisle with its shelves, inventory and devices.

        Customers standing in the aisle keep their location; shopping from
        there fails AISLE_NOT_FOUND until they move. Refused with
        STOCK_IN_BASKET while a basket in the store holds one of the
        aisle's products.
        """
        op = "delete_aisle"
        try:
            with self._registry.transaction(store_id, catalog=True):
                store = self._registry.stores.get(store_id, action=op)
                aisle = store.get_aisle(aisle_number)
                doomed = [inv for shelf in aisle.shelves() for inv in shelf.inventories()]
                _refuse_if_held(store, doomed, op)
                removed = self._drop_shelf_inventory(store, doomed)
                for device in store.devices():
                    if device.location.aisle_number == aisle_number:
                        store.remove_device(device.id)
                        self._registry.devices.remove(device.id)
                store.remove_aisle(aisle_number)
        except StoreError as exc:
            return self._failure(op, exc)
        return self._deleted(op, "aisle", f"{store_id}:{aisle_number}", {"inventory": removed})

    # ------------------------------------------------------------------
    # Shelves
    # ------------------------------------------------------------------

    @traced
    def provision_shelf(
        self,
        store_id: str,
        aisle_number: str,
        shelf_id: str,
        name: str,
        level: ShelfLevel,
        description: str,
        temperature: Temperature,
    ) -> ServiceResult:
        op = "provision_shelf"
        try:
            with self._registry.transaction(store_id):
                store = self._registry.stores.get(store_id, action=op)
                aisle = store.get_aisle(aisle_number)
                shelf = aisle.add_shelf(shelf_id, name, level, description, temperature)
                data = shelf.to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return self._provisioned(op, "shelf", f"{store_id}:{aisle_number}:{shelf_id}", data)

    @traced
    def show_shelf(self, store_id: str, aisle_number: str, shelf_id: str) -> ServiceResult:
        op = "show_shelf"
        try:
            with self._registry.transaction(store_id):
                store = self._registry.stores.get(store_id, action=op)
                data = store.get_aisle(aisle_number).get_shelf(shelf_id).to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"shelf": data})

    @traced
    def delete_shelf(self, store_id: str, aisle_number: str, shelf_id: str) -> ServiceResult:
        """Delete a shelf and its inventory (STOCK_IN_BASKET if any is held)."""
        op = "delete_shelf"
        try:
            with self._registry.transaction(store_id, catalog=True):
                store = self._registry.stores.get(store_id, action=op)
                aisle = store.get_aisle(aisle_number)
                shelf = aisle.get_shelf(shelf_id)
                _refuse_if_held(store, shelf.inventories(), op)
                removed = self._drop_shelf_inventory(store, shelf.inventories())
                aisle.remove_shelf(shelf_id)
        except StoreError as exc:
            return self._failure(op, exc)
        return self._deleted(
            op, "shelf", f"{store_id}:{aisle_number}:{shelf_id}", {"inventory": removed}
        )

    def _drop_shelf_inventory(self, store: Store, inventories: list[Inventory]) -> int:
        for inventory in inventories:
            store.remove_inventory(inventory.id)
            self._registry.inventory.remove(inventory.id)
        return len(inventories)

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    @traced
    def provision_product(
        self,
        product_id: str,
        name: str,
        description: str,
        size: str,
        category: str,
        price: float,
        temperature: Temperature,
    ) -> ServiceResult:
        op = "provision_product"
        try:
            with self._registry.transaction(catalog=True):
                if self._registry.products.contains(product_id):
                    raise duplicate(op, "Product Already Exists")
                product = Product(
                    id=product_id,
                    name=name,
                    description=description,
                    size=size,
                    category=category,
                    price=price,
                    temperature=temperature,
                )
                self._registry.products.put(product)
        except StoreError as exc:
            return self._failure(op, exc)
        return self._provisioned(op, "product", product_id, product.to_dict())

    @traced
    def show_product(self, product_id: str) -> ServiceResult:
        op = "show_product"
        try:
            product = self._registry.products.get(product_id, action=op)
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"product": product.to_dict()})

    @traced
    def delete_product(self, product_id: str) -> ServiceResult:
        """Delete a product that no inventory record references."""
        op = "delete_product"
        try:
            with self._registry.transaction(catalog=True):
                self._registry.products.get(product_id, action=op)
                stocked = [i.id for i in self._registry.inventory.all() if i.product_id == product_id]
                if stocked:
                    raise StoreError(ErrorKind.PRODUCT_IN_USE, op, "Product Is Stocked In Inventory")
                self._registry.products.remove(product_id)
        except StoreError as exc:
            return self._failure(op, exc)
        return self._deleted(op, "product", product_id, {})

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    @traced
    def provision_inventory(
        self,
        inventory_id: str,
        store_id: str,
        aisle_number: str,
        shelf_id: str,
        capacity: int,
        count: int,
        product_id: str,
        inventory_type: InventoryType,
    ) -> ServiceResult:
        op = "provision_inventory"
        registry = self._registry
        try:
            with registry.transaction(store_id, catalog=True):
                store = registry.stores.get(store_id, action=op)
                shelf = store.get_aisle(aisle_number).get_shelf(shelf_id)
                product = registry.products.get(product_id, action=op)
                if registry.inventory.contains(inventory_id) or store.has_inventory(inventory_id):
                    raise duplicate(op, "Inventory Already Exists")
                inventory = shelf.add_inventory(
                    inventory_id,
                    store_id,
                    aisle_number,
                    capacity,
                    count,
                    product,
                    inventory_type,
                )
                store.add_inventory(inventory)
                registry.inventory.put(inventory)
                data = inventory.to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return self._provisioned(op, "inventory", inventory_id, data)

    @traced
    def show_inventory(self, inventory_id: str) -> ServiceResult:
        op = "show_inventory"
        try:
            with self._inventory_scope(inventory_id, op):
                data = self._registry.inventory.get(inventory_id, action=op).to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"inventory": data})

    @traced
    def update_inventory(self, inventory_id: str, delta: int) -> ServiceResult:
        """Change an inventory count by *delta* (restock or shrink).

        The new count must stay within ``[0, capacity]``.
        """
        op = "update_inventory"
        try:
            with self._inventory_scope(inventory_id, op):
                inventory = self._registry.inventory.get(inventory_id, action=op)
                inventory.adjust(delta, action=op)
                data = inventory.to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"inventory": data})

    @traced
    def delete_inventory(self, inventory_id: str) -> ServiceResult:
        """Delete an inventory record no basket in its store holds stock of."""
        op = "delete_inventory"
        try:
            with self._inventory_scope(inventory_id, op, catalog=True):
                inventory = self._registry.inventory.get(inventory_id, action=op)
                loc = inventory.location
                store = self._registry.stores.get(loc.store_id, action=op)
                _refuse_if_held(store, [inventory], op)
                aisle = store.find_aisle(loc.aisle_number)
                shelf = aisle.find_shelf(loc.shelf_id) if aisle is not None else None
                if shelf is not None:
                    shelf.remove_inventory(inventory_id)
                store.remove_inventory(inventory_id)
                self._registry.inventory.remove(inventory_id)
        except StoreError as exc:
            return self._failure(op, exc)
        return self._deleted(op, "inventory", inventory_id, {})

    def _inventory_scope(
        self, inventory_id: str, action: str, *, catalog: bool = False
    ) -> AbstractContextManager[None]:
        """Lock the store holding *inventory_id*; NOT_FOUND if it is unknown."""
        inventory = self._registry.inventory.get(inventory_id, action=action)
        return self._registry.transaction(inventory.location.store_id, catalog=catalog)

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------

    @traced
    def provision_device(
        self,
        device_id: str,
        name: str,
        device_type: DeviceType,
        store_id: str,
        aisle_number: str,
    ) -> ServiceResult:
        op = "provision_device"
        registry = self._registry
        try:
            with registry.transaction(store_id, catalog=True):
                store = registry.stores.get(store_id, action=op)
                store.get_aisle(aisle_number)
                if registry.devices.contains(device_id):
                    raise duplicate(op, "Device Already Exists")
                device = Device(
                    id=device_id,
                    name=name,
                    type=device_type,
                    location=StoreLocation(store_id, aisle_number),
                )
                store.add_device(device)
                registry.devices.put(device)
        except StoreError as exc:
            return self._failure(op, exc)
        return self._provisioned(op, "device", device_id, device.to_dict())

    @traced
    def show_device(self, device_id: str) -> ServiceResult:
        op = "show_device"
        try:
            device = self._registry.devices.get(device_id, action=op)
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"device": device.to_dict()})

    @traced
    def delete_device(self, device_id: str) -> ServiceResult:
        op = "delete_device"
        registry = self._registry
        try:
            device = registry.devices.get(device_id, action=op)
            with registry.transaction(device.location.store_id, catalog=True):
                device = registry.devices.get(device_id, action=op)
                store = registry.stores.find(device.location.store_id)
                if store is not None:
                    store.remove_device(device_id)
                registry.devices.remove(device_id)
        except StoreError as exc:
            return self._failure(op, exc)
        return self._deleted(op, "device", device_id, {})

    @traced
    def raise_event(self, device_id: str, event: str) -> ServiceResult:
        """Record an event emitted by any device and notify plugins."""
        op = "raise_event"
        try:
            device = self._registry.devices.get(device_id, action=op)
        except StoreError as exc:
            return self._failure(op, exc)
        warnings: list[str] = []
        self._dispatch_event("device_event", self._device_payload(device, event=event), warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={"device": device.to_dict(), "event": event},
            warnings=warnings,
        )

    @traced
    def issue_command(self, device_id: str, command: str) -> ServiceResult:
        """Send *command* to an appliance (robot or speaker)."""
        op = "issue_command"
        try:
            device = self._registry.devices.get(device_id, action=op)
            if not device.is_appliance:
                raise StoreError(ErrorKind.INVALID_DEVICE, op, "Device Is Not an Appliance")
        except StoreError as exc:
            return self._failure(op, exc)
        warnings: list[str] = []
        self._dispatch_event(
            "device_command", self._device_payload(device, command=command), warnings
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"device": device.to_dict(), "command": command},
            warnings=warnings,
        )

    @staticmethod
    def _device_payload(device: Device, **extra: str) -> dict[str, Any]:
        return {
            "device_id": device.id,
            "device_type": str(device.type),
            "store_id": device.location.store_id,
            "aisle_number": device.location.aisle_number,
            **extra,
        }

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _provisioned(self, op: str, entity: str, entity_id: str, data: dict[str, Any]) -> ServiceResult:
        warnings: list[str] = []
        self._dispatch_event(
            "post_provision",
            {"entity": entity, "entity_id": entity_id, "data": data},
            warnings,
        )
        return ServiceResult(ok=True, op=op, data={entity: data}, warnings=warnings)

    def _deleted(self, op: str, entity: str, entity_id: str, removed: dict[str, Any]) -> ServiceResult:
        warnings: list[str] = []
        self._dispatch_event("post_delete", {"entity": entity, "entity_id": entity_id}, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={"entity": entity, "id": entity_id, "removed": removed},
            warnings=warnings,
        )




def _refuse_if_held(store: Store, inventories: list[Inventory], action: str) -> None:
    """STOCK_IN_BASKET if a basket in *store* holds a product of *inventories*.

    Held units go back to a shelf of the same product, so that shelf has to
    outlive them.
    """
    products = {inventory.product_id for inventory in inventories}
    for basket in store.baskets():
        if any(basket.quantity(product_id) for product_id in products):
            raise StoreError(ErrorKind.STOCK_IN_BASKET, action, "Product Is Held In a Basket")
