"""Tests for BaseService and service inheritance."""

import pytest

from storectl.domain.errors import ErrorKind, StoreError
from storectl.infrastructure.registry import Registry
from storectl.services.base import BaseService
from storectl.services.script import ScriptService
from storectl.services.shopping import ShoppingService
from storectl.services.store import StoreService


class TestBaseService:
    def test_registry_stored(self, registry: Registry) -> None:
        assert BaseService(registry).registry is registry

    def test_failure_maps_store_error(self) -> None:
        exc = StoreError(ErrorKind.CAPACITY_EXCEEDED, "remove_basket_item", "No Room")
        result = BaseService._failure("remove_basket_item", exc)
        assert not result.ok
        assert result.op == "remove_basket_item"
        assert result.error is not None
        assert result.error.code == "CAPACITY_EXCEEDED"
        assert result.error.action == "remove_basket_item"
        assert result.error.message == "No Room"

    def test_dispatch_without_bus_is_noop(self, registry: Registry) -> None:
        warnings: list[str] = []
        BaseService(registry)._dispatch_event("post_delete", {}, warnings)
        assert warnings == []


ALL_SERVICES = [StoreService, ShoppingService, ScriptService]


class TestServiceInheritance:
    @pytest.mark.parametrize("service_cls", ALL_SERVICES, ids=lambda c: c.__name__)
    def test_inherits_base_service(self, service_cls: type) -> None:
        assert issubclass(service_cls, BaseService)

    @pytest.mark.parametrize("service_cls", ALL_SERVICES, ids=lambda c: c.__name__)
    def test_registry_injection(self, service_cls: type, registry: Registry) -> None:
        assert service_cls(registry).registry is registry
