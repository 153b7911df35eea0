"""Shared pytest fixtures and test helpers for storectl tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from storectl.domain.types import (
    AisleLocation,
    CustomerType,
    InventoryType,
    ShelfLevel,
    Temperature,
)
from storectl.infrastructure.registry import Registry
from storectl.services.result import ServiceResult
from storectl.services.shopping import ShoppingService
from storectl.services.store import StoreService


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def registry() -> Registry:
    """A fresh, empty registry without plugins."""
    return Registry()


@pytest.fixture
def store_service(registry: Registry) -> StoreService:
    return StoreService(registry)


@pytest.fixture
def shopping_service(registry: Registry) -> ShoppingService:
    return ShoppingService(registry)


@pytest.fixture
def stocked(registry: Registry) -> Registry:
    """Store S1 / aisle A1 / ambient shelf SH1 holding 20 of 50 units of P1."""
    build_store(registry)
    return registry


@pytest.fixture
def shopper(stocked: Registry) -> Registry:
    """``stocked`` plus registered customer C1 at (S1, A1) holding empty basket B1."""
    add_shopper(stocked, "C1", "B1")
    return stocked


@pytest.fixture
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run in an empty temp directory with no config override in the env."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("STORECTL_CONFIG", raising=False)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def ok(result: ServiceResult) -> dict[str, Any]:
    """Assert success and return the result payload."""
    assert result.ok, result.error
    return result.data


def build_store(
    registry: Registry,
    *,
    store_id: str = "S1",
    capacity: int = 50,
    count: int = 20,
) -> None:
    """Provision store, aisle A1, shelf SH1, product P1 and inventory I1."""
    svc = StoreService(registry)
    ok(svc.provision_store(store_id, "Main Street", "1 Main St"))
    ok(svc.provision_aisle(store_id, "A1", "Pantry", "Dry goods", AisleLocation.FLOOR))
    ok(
        svc.provision_shelf(
            store_id, "A1", "SH1", "Top", ShelfLevel.HIGH, "Cereal", Temperature.AMBIENT
        )
    )
    if not registry.products.contains("P1"):
        ok(svc.provision_product("P1", "Oats", "Rolled oats", "1kg", "cereal", 3.5, Temperature.AMBIENT))
    inventory_id = "I1" if store_id == "S1" else f"I1-{store_id}"
    ok(
        svc.provision_inventory(
            inventory_id, store_id, "A1", "SH1", capacity, count, "P1", InventoryType.STANDARD
        )
    )


def add_shopper(
    registry: Registry,
    customer_id: str,
    basket_id: str,
    *,
    customer_type: CustomerType = CustomerType.REGISTERED,
    store_id: str = "S1",
    aisle_number: str = "A1",
) -> None:
    """Provision a customer, move them into an aisle and hand them a basket."""
    svc = ShoppingService(registry)
    ok(
        svc.provision_customer(
            customer_id,
            "Ada",
            "Lovelace",
            customer_type,
            f"{customer_id.lower()}@example.com",
            "12 Elm St",
        )
    )
    ok(svc.update_customer(customer_id, store_id, aisle_number))
    ok(svc.provision_basket(basket_id))
    ok(svc.assign_basket(customer_id, basket_id))
