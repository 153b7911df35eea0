"""BaseService — abstract foundation for all storectl services.

Every service receives a :class:`Registry` at construction time. The
Registry provides the entity collections and the per-store locks.
Services own their critical sections via ``self._registry.transaction()``
or ``self._registry.locked()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from storectl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from storectl.domain.errors import StoreError
    from storectl.infrastructure.registry import Registry

logger = logging.getLogger(__name__)


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class StoreService(BaseService):
            @traced
            def provision_store(self, store_id: str, ...) -> ServiceResult:
                try:
                    with self._registry.transaction(catalog=True):
                        ...
                except StoreError as exc:
                    return self._failure(op, exc)
    """

    def __init__(self, registry: Registry) -> None:
        self._registry = registry

    @property
    def registry(self) -> Registry:
        return self._registry

    @staticmethod
    def _failure(op: str, exc: StoreError) -> ServiceResult:
        """Convert a refused domain operation into a failed result."""
        return ServiceResult(ok=False, op=op, error=ServiceError.from_store_error(exc))

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch a lifecycle event. No-op if event bus not initialized.

        Must be called after the operation's locks are released.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus = self._registry.event_bus
        if bus is None:
            return
        try:
            bus.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")
