"""ShoppingService — customers, baskets and the stateful shopping flow.

Stock moves between a shelf and a basket only through this service. The
shelf an item comes from (or goes back to) is resolved from the customer's
current aisle: exactly one inventory record of the product must be
reachable there.

Locking: basket and customer operations lock every store the involved
entities point at, re-resolving after acquisition (``Registry.locked``),
so a concurrent move or assignment cannot slip between check and act.

INVARIANT: a failed operation leaves counts, basket contents and
references unchanged.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import structlog

from storectl.domain.errors import ErrorKind, StoreError, duplicate, not_found
from storectl.domain.models import Basket, Customer, Inventory, StoreLocation
from storectl.domain.types import CustomerAgeGroup, CustomerType
from storectl.services.base import BaseService
from storectl.services.result import ServiceResult
from storectl.services.telemetry import traced

log = structlog.get_logger(__name__)

# (product_id, quantity, inventory_id) moved back to a shelf
_Returned = list[tuple[str, int, str]]


class ShoppingService(BaseService):
    """Customers, baskets, and moving stock in and out of baskets."""

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    @traced
    def provision_customer(
        self,
        customer_id: str,
        first_name: str,
        last_name: str,
        customer_type: CustomerType,
        email: str,
        account_address: str,
        age_group: CustomerAgeGroup | None = None,
    ) -> ServiceResult:
        op = "provision_customer"
        try:
            with self._registry.transaction(catalog=True):
                if self._registry.customers.contains(customer_id):
                    raise duplicate(op, "Customer Already Exists")
                customer = Customer(
                    id=customer_id,
                    first_name=first_name,
                    last_name=last_name,
                    type=customer_type,
                    email=email,
                    account_address=account_address,
                    age_group=age_group,
                )
                self._registry.customers.put(customer)
                data = customer.to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        warnings: list[str] = []
        self._dispatch_event(
            "post_provision",
            {"entity": "customer", "entity_id": customer_id, "data": data},
            warnings,
        )
        return ServiceResult(ok=True, op=op, data={"customer": data}, warnings=warnings)

    @traced
    def show_customer(self, customer_id: str) -> ServiceResult:
        op = "show_customer"
        try:
            with self._registry.locked(self._customer_stores(customer_id)):
                data = self._registry.customers.get(customer_id, action=op).to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"customer": data})

    @traced
    def update_customer(self, customer_id: str, store_id: str, aisle_number: str) -> ServiceResult:
        """Move a customer to *aisle_number* of *store_id*.

        Leaving a store clears the customer's basket (stock goes back to the
        shelves reachable from the old aisle) and detaches it. Moving between
        aisles of the same store keeps the basket.
        """
        op = "update_customer"
        registry = self._registry
        resolve_customer = self._customer_stores(customer_id)
        returned: _Returned = []
        cleared_basket_id = ""
        try:
            with registry.locked(lambda: [*resolve_customer(), store_id]):
                customer = registry.customers.get(customer_id, action=op)
                store = registry.stores.get(store_id, action=op)
                store.get_aisle(aisle_number)
                previous = customer.location
                basket_cleared = False
                if previous is not None and previous.store_id != store_id:
                    basket = registry.baskets.find(customer.basket_id)
                    if basket is not None:
                        cleared_basket_id = basket.id
                        returned = self._clear(basket, op)
                        basket_cleared = True
                    old_store = registry.stores.find(previous.store_id)
                    if old_store is not None:
                        old_store.remove_customer(customer_id)
                if not store.has_customer(customer_id):
                    store.add_customer(customer)
                customer.location = StoreLocation(store_id, aisle_number)
                customer.last_seen = datetime.now(UTC)
                data = customer.to_dict()
        except StoreError as exc:
            return self._failure(op, exc)

        log.debug(
            "customer.moved",
            customer_id=customer_id,
            store_id=store_id,
            aisle_number=aisle_number,
            basket_cleared=basket_cleared,
        )
        warnings: list[str] = []
        self._dispatch_returned(returned, cleared_basket_id, warnings)
        self._dispatch_event(
            "post_customer_move",
            {
                "customer_id": customer_id,
                "store_id": store_id,
                "aisle_number": aisle_number,
                "basket_cleared": basket_cleared,
            },
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "customer": data,
                "basket_cleared": basket_cleared,
                "returned": _returned_map(returned),
            },
            warnings=warnings,
        )

    @traced
    def delete_customer(self, customer_id: str) -> ServiceResult:
        """Delete a customer, first clearing any basket they hold."""
        op = "delete_customer"
        registry = self._registry
        returned: _Returned = []
        basket_id = ""
        try:
            with registry.locked(self._customer_stores(customer_id), catalog=True):
                customer = registry.customers.get(customer_id, action=op)
                basket = registry.baskets.find(customer.basket_id)
                if basket is not None:
                    basket_id = basket.id
                    returned = self._clear(basket, op)
                if customer.location is not None:
                    store = registry.stores.find(customer.location.store_id)
                    if store is not None:
                        store.remove_customer(customer_id)
                registry.customers.remove(customer_id)
        except StoreError as exc:
            return self._failure(op, exc)
        warnings: list[str] = []
        self._dispatch_returned(returned, basket_id, warnings)
        self._dispatch_event("post_delete", {"entity": "customer", "entity_id": customer_id}, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={"entity": "customer", "id": customer_id, "returned": _returned_map(returned)},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Baskets
    # ------------------------------------------------------------------

    @traced
    def provision_basket(self, basket_id: str) -> ServiceResult:
        op = "provision_basket"
        try:
            with self._registry.transaction(catalog=True):
                if self._registry.baskets.contains(basket_id):
                    raise duplicate(op, "Basket Already Exists")
                basket = Basket(id=basket_id)
                self._registry.baskets.put(basket)
                data = basket.to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        warnings: list[str] = []
        self._dispatch_event(
            "post_provision",
            {"entity": "basket", "entity_id": basket_id, "data": data},
            warnings,
        )
        return ServiceResult(ok=True, op=op, data={"basket": data}, warnings=warnings)

    @traced
    def show_basket(self, basket_id: str) -> ServiceResult:
        op = "show_basket"
        try:
            with self._registry.locked(self._basket_stores(basket_id)):
                data = self._registry.baskets.get(basket_id, action=op).to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"basket": data})

    @traced
    def delete_basket(self, basket_id: str) -> ServiceResult:
        """Delete a basket, first returning everything it holds."""
        op = "delete_basket"
        returned: _Returned = []
        try:
            with self._registry.locked(self._basket_stores(basket_id), catalog=True):
                basket = self._registry.baskets.get(basket_id, action=op)
                returned = self._clear(basket, op)
                self._registry.baskets.remove(basket_id)
        except StoreError as exc:
            return self._failure(op, exc)
        warnings: list[str] = []
        self._dispatch_returned(returned, basket_id, warnings)
        self._dispatch_event("post_delete", {"entity": "basket", "entity_id": basket_id}, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={"entity": "basket", "id": basket_id, "returned": _returned_map(returned)},
            warnings=warnings,
        )

    @traced
    def assign_basket(self, customer_id: str, basket_id: str) -> ServiceResult:
        """Hand an unassigned basket to a customer inside a store.

        Assigning the basket a customer already holds is a no-op.
        """
        op = "assign_basket"
        registry = self._registry
        resolve_customer = self._customer_stores(customer_id)
        resolve_basket = self._basket_stores(basket_id)
        try:
            with registry.locked(lambda: [*resolve_customer(), *resolve_basket()]):
                customer = registry.customers.get(customer_id, action=op)
                basket = registry.baskets.get(basket_id, action=op)
                if customer.location is None:
                    raise StoreError(ErrorKind.CUSTOMER_NOT_IN_STORE, op, "Customer Is Not In a Store")
                if customer.basket_id != basket_id or basket.customer_id != customer_id:
                    if customer.basket_id is not None:
                        raise StoreError(ErrorKind.BASKET_UNAVAILABLE, op, "Customer Already Has a Basket")
                    if basket.is_assigned:
                        raise StoreError(ErrorKind.BASKET_UNAVAILABLE, op, "Basket Is Already Assigned")
                    store = registry.stores.get(customer.location.store_id, action=op)
                    store.add_basket(basket)
                    basket.customer_id = customer_id
                    basket.store_id = store.id
                    customer.basket_id = basket_id
                data = basket.to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"basket": data})

    @traced
    def get_customer_basket(self, customer_id: str) -> ServiceResult:
        op = "get_customer_basket"
        registry = self._registry
        try:
            with registry.locked(self._customer_stores(customer_id)):
                customer = registry.customers.get(customer_id, action=op)
                if customer.basket_id is None:
                    raise StoreError(ErrorKind.NOT_FOUND, op, "Customer Does Not Have a Basket")
                data = registry.baskets.get(customer.basket_id, action=op).to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"basket": data})

    # ------------------------------------------------------------------
    # Moving stock
    # ------------------------------------------------------------------

    @traced
    def add_basket_item(self, basket_id: str, product_id: str, quantity: int) -> ServiceResult:
        """Take *quantity* units of *product_id* off the shelf into the basket."""
        op = "add_basket_item"
        registry = self._registry
        try:
            if quantity <= 0:
                raise StoreError(ErrorKind.INVALID_QUANTITY, op, "Quantity Must Be Positive")
            with registry.locked(self._basket_stores(basket_id)):
                basket = registry.baskets.get(basket_id, action=op)
                customer = self._shopper(basket, op)
                inventory = self._resolve(customer, product_id, op)
                if quantity > inventory.count:
                    raise StoreError(
                        ErrorKind.INSUFFICIENT_INVENTORY,
                        op,
                        "There Is Not Enough Inventory on the Shelf",
                    )
                inventory.adjust(-quantity, action=op)
                basket.add(product_id, quantity)
                data = {"basket": basket.to_dict(), "inventory": inventory.to_dict()}
        except StoreError as exc:
            return self._failure(op, exc)
        warnings: list[str] = []
        self._dispatch_event(
            "post_basket_change",
            {
                "basket_id": basket_id,
                "product_id": product_id,
                "delta": quantity,
                "inventory_id": inventory.id,
            },
            warnings,
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def remove_basket_item(self, basket_id: str, product_id: str, quantity: int) -> ServiceResult:
        """Put *quantity* units of *product_id* from the basket back on the shelf."""
        op = "remove_basket_item"
        registry = self._registry
        try:
            if quantity <= 0:
                raise StoreError(ErrorKind.INVALID_QUANTITY, op, "Quantity Must Be Positive")
            with registry.locked(self._basket_stores(basket_id)):
                basket = registry.baskets.get(basket_id, action=op)
                customer = self._shopper(basket, op)
                inventory = self._resolve(customer, product_id, op)
                if quantity > basket.quantity(product_id):
                    raise StoreError(
                        ErrorKind.REMOVE_EXCEEDS_HELD,
                        op,
                        "Trying To Remove More Quantity Than Exists",
                    )
                if quantity > inventory.free_capacity:
                    raise StoreError(
                        ErrorKind.CAPACITY_EXCEEDED,
                        op,
                        "There Is Not Enough Capacity on the Shelf",
                    )
                inventory.adjust(quantity, action=op)
                basket.remove(product_id, quantity)
                data = {"basket": basket.to_dict(), "inventory": inventory.to_dict()}
        except StoreError as exc:
            return self._failure(op, exc)
        warnings: list[str] = []
        self._dispatch_event(
            "post_basket_change",
            {
                "basket_id": basket_id,
                "product_id": product_id,
                "delta": -quantity,
                "inventory_id": inventory.id,
            },
            warnings,
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def clear_basket(self, basket_id: str) -> ServiceResult:
        """Return every held item to its shelf, then detach the basket.

        All-or-nothing: if any item cannot be returned, nothing changes.
        Clearing an empty, unassigned basket succeeds without effect.
        """
        op = "clear_basket"
        try:
            with self._registry.locked(self._basket_stores(basket_id)):
                basket = self._registry.baskets.get(basket_id, action=op)
                returned = self._clear(basket, op)
                data = basket.to_dict()
        except StoreError as exc:
            return self._failure(op, exc)
        warnings: list[str] = []
        self._dispatch_returned(returned, basket_id, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={"basket": data, "returned": _returned_map(returned)},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Internals (callers hold the locks)
    # ------------------------------------------------------------------

    def _clear(self, basket: Basket, action: str) -> _Returned:
        items = basket.items()
        returned: _Returned = []
        if items:
            customer = self._shopper(basket, action, allow_guest=True)
            plan: list[tuple[str, int, Inventory]] = []
            for product_id, quantity in sorted(items.items()):
                inventory = self._resolve(customer, product_id, action)
                if quantity > inventory.free_capacity:
                    raise StoreError(
                        ErrorKind.CAPACITY_EXCEEDED,
                        action,
                        "There Is Not Enough Capacity on the Shelf",
                    )
                plan.append((product_id, quantity, inventory))
            for product_id, quantity, inventory in plan:
                inventory.adjust(quantity, action=action)
                returned.append((product_id, quantity, inventory.id))
            basket.empty()
        self._detach(basket)
        return returned

    def _detach(self, basket: Basket) -> None:
        customer = self._registry.customers.find(basket.customer_id)
        if customer is not None and customer.basket_id == basket.id:
            customer.basket_id = None
        store = self._registry.stores.find(basket.store_id)
        if store is not None:
            store.remove_basket(basket.id)
        basket.detach()

    def _shopper(self, basket: Basket, action: str, *, allow_guest: bool = False) -> Customer:
        if basket.customer_id is None:
            raise StoreError(
                ErrorKind.BASKET_NOT_ASSIGNED, action, "Basket Is Not Assigned to a Customer"
            )
        customer = self._registry.customers.get(basket.customer_id, action=action)
        if customer.is_guest and not allow_guest:
            raise StoreError(ErrorKind.GUEST_NOT_ALLOWED, action, "Guests Are Not Allowed to Shop")
        return customer

    def _resolve(self, customer: Customer, product_id: str, action: str) -> Inventory:
        """The single inventory of *product_id* reachable from the customer's aisle."""
        location = customer.location
        if location is None:
            raise StoreError(ErrorKind.CUSTOMER_NOT_IN_STORE, action, "Customer Is Not In a Store")
        store = self._registry.stores.find(location.store_id)
        if store is None:
            raise not_found(action, "Store")
        aisle = store.find_aisle(location.aisle_number)
        if aisle is None:
            raise StoreError(ErrorKind.AISLE_NOT_FOUND, action, "Aisle Does Not Exist")
        candidates = aisle.find_inventory(product_id)
        if not candidates:
            raise StoreError(
                ErrorKind.CUSTOMER_NOT_NEAR_PRODUCT, action, "Customer Is Not Near Product"
            )
        if len(candidates) > 1:
            raise StoreError(
                ErrorKind.AMBIGUOUS_PRODUCT_LOCATION,
                action,
                "There Are Several Products In the Aisle",
            )
        return candidates[0]

    def _customer_stores(self, customer_id: str) -> Callable[[], list[str | None]]:
        """Resolver for the stores a customer and their basket point at."""

        def resolve() -> list[str | None]:
            customer = self._registry.customers.find(customer_id)
            if customer is None:
                return []
            basket = self._registry.baskets.find(customer.basket_id)
            return [
                customer.location.store_id if customer.location else None,
                basket.store_id if basket else None,
            ]

        return resolve

    def _basket_stores(self, basket_id: str) -> Callable[[], list[str | None]]:
        """Resolver for the stores a basket and its customer point at."""

        def resolve() -> list[str | None]:
            basket = self._registry.baskets.find(basket_id)
            if basket is None:
                return []
            customer = self._registry.customers.find(basket.customer_id)
            location = customer.location if customer is not None else None
            return [basket.store_id, location.store_id if location else None]

        return resolve

    def _dispatch_returned(self, returned: _Returned, basket_id: str, warnings: list[str]) -> None:
        for product_id, quantity, inventory_id in returned:
            self._dispatch_event(
                "post_basket_change",
                {
                    "basket_id": basket_id,
                    "product_id": product_id,
                    "delta": -quantity,
                    "inventory_id": inventory_id,
                },
                warnings,
            )


def _returned_map(returned: _Returned) -> dict[str, Any]:
    return {product_id: quantity for product_id, quantity, _ in returned}
