"""Pluggy hook specifications for storectl lifecycle and device events.

All hooks are dispatched synchronously after the engine has released its
locks. Hook return values are ignored.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("storectl")


class StorectlHookSpec:
    """Hook specifications for the storectl plugin system."""

    @hookspec
    def post_provision(self, entity: str, entity_id: str, data: dict[str, Any]) -> None:
        """Called after any entity is provisioned."""

    @hookspec
    def post_delete(self, entity: str, entity_id: str) -> None:
        """Called after any entity is deleted."""

    @hookspec
    def post_basket_change(
        self,
        basket_id: str,
        product_id: str,
        delta: int,
        inventory_id: str,
    ) -> None:
        """Called after stock moves between a shelf and a basket.

        *delta* is positive when units entered the basket.
        """

    @hookspec
    def post_customer_move(
        self,
        customer_id: str,
        store_id: str,
        aisle_number: str,
        basket_cleared: bool,
    ) -> None:
        """Called after a customer's location changes."""

    @hookspec
    def device_event(
        self,
        device_id: str,
        device_type: str,
        store_id: str,
        aisle_number: str,
        event: str,
    ) -> None:
        """Called when a device raises an event."""

    @hookspec
    def device_command(
        self,
        device_id: str,
        device_type: str,
        store_id: str,
        aisle_number: str,
        command: str,
    ) -> None:
        """Called when a command is issued to an appliance."""
