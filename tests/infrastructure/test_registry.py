"""Tests for Registry collections and lock scopes."""

from __future__ import annotations

import threading
import time

import pytest

from storectl.config.models import PluginsConfig
from storectl.config.settings import StoreSettings
from storectl.domain.errors import ErrorKind, StoreError
from storectl.domain.models import Basket, Product, Store
from storectl.domain.types import Temperature
from storectl.infrastructure.kvstore import InMemoryKeyValueStore
from storectl.infrastructure.registry import Registry


class TestCollection:
    def test_put_and_get(self, registry: Registry) -> None:
        store = Store("S1", "1 Main St", "Main")
        registry.stores.put(store)
        assert registry.stores.get("S1", action="show_store") is store
        assert registry.stores.contains("S1")

    def test_get_missing_raises_not_found(self, registry: Registry) -> None:
        with pytest.raises(StoreError) as exc_info:
            registry.products.get("P9", action="show_product")
        assert exc_info.value.kind is ErrorKind.NOT_FOUND
        assert exc_info.value.action == "show_product"
        assert exc_info.value.reason == "Product Does Not Exist"

    def test_find(self, registry: Registry) -> None:
        assert registry.baskets.find("B1") is None
        assert registry.baskets.find(None) is None
        registry.baskets.put(Basket("B1"))
        assert registry.baskets.find("B1") is not None

    def test_kinds_do_not_collide(self, registry: Registry) -> None:
        """A store and a basket may share an id."""
        registry.stores.put(Store("X", "a", "b"))
        registry.baskets.put(Basket("X"))
        assert isinstance(registry.stores.get("X", action="t"), Store)
        assert isinstance(registry.baskets.get("X", action="t"), Basket)

    def test_all_is_sorted_by_id(self, registry: Registry) -> None:
        for product_id in ("P3", "P1", "P2"):
            registry.products.put(
                Product(product_id, "n", "d", "s", "c", 1.0, Temperature.AMBIENT)
            )
        assert [p.id for p in registry.products.all()] == ["P1", "P2", "P3"]

    def test_remove(self, registry: Registry) -> None:
        registry.baskets.put(Basket("B1"))
        registry.baskets.remove("B1")
        assert not registry.baskets.contains("B1")

    def test_shared_kv(self) -> None:
        kv = InMemoryKeyValueStore()
        registry = Registry(kv=kv)
        registry.baskets.put(Basket("B1"))
        assert kv.contains_key("basket:B1")
        assert registry.kv is kv

    def test_snapshot_counts(self, stocked: Registry) -> None:
        counts = stocked.snapshot_counts()
        assert counts["stores"] == 1
        assert counts["inventory"] == 1
        assert counts["customers"] == 0


class TestTransaction:
    def test_reentrant(self, registry: Registry) -> None:
        with registry.transaction("S1"), registry.transaction("S1", catalog=True):
            pass

    def test_none_ids_ignored(self, registry: Registry) -> None:
        with registry.transaction(None, "S1", None):
            pass

    def test_excludes_other_threads(self, registry: Registry) -> None:
        order: list[str] = []
        entered = threading.Event()

        def other() -> None:
            entered.wait()
            with registry.transaction("S1"):
                order.append("other")

        t = threading.Thread(target=other)
        t.start()
        with registry.transaction("S1"):
            entered.set()
            time.sleep(0.05)
            order.append("main")
        t.join()
        assert order == ["main", "other"]

    def test_different_stores_do_not_block(self, registry: Registry) -> None:
        done = threading.Event()

        def other() -> None:
            with registry.transaction("S2"):
                done.set()

        with registry.transaction("S1"):
            t = threading.Thread(target=other)
            t.start()
            assert done.wait(timeout=2)
        t.join()

    def test_opposite_order_does_not_deadlock(self, registry: Registry) -> None:
        def worker(first: str, second: str) -> None:
            for _ in range(200):
                with registry.transaction(first, second):
                    pass

        threads = [
            threading.Thread(target=worker, args=("S1", "S2")),
            threading.Thread(target=worker, args=("S2", "S1")),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)
        assert not any(t.is_alive() for t in threads)


class TestLocked:
    def test_retries_when_ids_change(self, registry: Registry) -> None:
        seen: list[str] = []
        calls = iter(["S1", "S2", "S2", "S2"])

        def resolve() -> list[str]:
            store_id = next(calls)
            seen.append(store_id)
            return [store_id]

        with registry.locked(resolve):
            pass
        assert seen == ["S1", "S2", "S2", "S2"]

    def test_stable_ids_resolve_twice(self, registry: Registry) -> None:
        calls: list[int] = []

        def resolve() -> list[str | None]:
            calls.append(1)
            return ["S1", None]

        with registry.locked(resolve, catalog=True):
            pass
        assert len(calls) == 2


class TestEventBusInit:
    def test_no_bus_by_default(self, registry: Registry) -> None:
        assert registry.event_bus is None

    def test_device_log_registered_by_default(self) -> None:
        registry = Registry()
        registry.init_event_bus()
        assert registry.event_bus is not None
        assert "device_log" in registry.event_bus.plugin_manager.list_plugin_names()

    def test_device_log_can_be_disabled(self) -> None:
        settings = StoreSettings(plugins=PluginsConfig(device_log=False, entry_points=False))
        registry = Registry(settings)
        registry.init_event_bus()
        assert registry.event_bus is not None
        assert "device_log" not in registry.event_bus.plugin_manager.list_plugin_names()
