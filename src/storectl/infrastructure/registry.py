"""Registry — the explicit context object shared by every service.

There is no process-wide state: each CLI invocation or test builds its
own Registry, so state never leaks between runs.

The Registry owns two things:

- **Typed collections** over a :class:`KeyValueStore`, keyed ``kind:id``
  (``store:S1``, ``product:P1``...). Lookups through ``get()`` raise a
  NOT_FOUND :class:`StoreError`; ``find()`` returns None instead.
- **Critical sections.** :meth:`transaction` takes one re-entrant lock per
  store id (sorted, so multi-store operations cannot deadlock) and then,
  optionally, the catalog lock guarding global id uniqueness. Lock order is
  always store locks first, catalog last.

INVARIANT: every check-then-act sequence on an aggregate runs inside one
transaction scoped to that aggregate's store id.
"""

from __future__ import annotations

import logging
import threading
from contextlib import ExitStack, contextmanager
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from storectl.domain.errors import not_found
from storectl.domain.models import Basket, Customer, Device, Inventory, Product, Store
from storectl.infrastructure.kvstore import InMemoryKeyValueStore, KeyValueStore

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from storectl.config.settings import StoreSettings
    from storectl.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)

_T = TypeVar("_T", Store, Product, Customer, Basket, Inventory, Device)


class Collection(Generic[_T]):
    """One entity kind stored in the key-value store under ``{kind}:{id}``."""

    def __init__(self, kv: KeyValueStore, kind: str, label: str) -> None:
        self._kv = kv
        self._prefix = f"{kind}:"
        self.label = label

    def _key(self, entity_id: str) -> str:
        return f"{self._prefix}{entity_id}"

    def get(self, entity_id: str, *, action: str) -> _T:
        """Return the entity or raise NOT_FOUND attributed to *action*."""
        value = self._kv.get(self._key(entity_id))
        if value is None:
            raise not_found(action, self.label)
        return value

    def find(self, entity_id: str | None) -> _T | None:
        if entity_id is None:
            return None
        return self._kv.get(self._key(entity_id))

    def contains(self, entity_id: str) -> bool:
        return self._kv.contains_key(self._key(entity_id))

    def put(self, entity: _T) -> None:
        self._kv.put(self._key(entity.id), entity)

    def remove(self, entity_id: str) -> None:
        self._kv.remove(self._key(entity_id))

    def all(self) -> list[_T]:
        """Every stored entity of this kind, ordered by id."""
        keys = sorted(k for k in self._kv.keys() if k.startswith(self._prefix))
        return [v for v in (self._kv.get(k) for k in keys) if v is not None]


class Registry:
    """Context object: typed collections, per-store locks, event bus."""

    def __init__(
        self,
        settings: StoreSettings | None = None,
        *,
        kv: KeyValueStore | None = None,
    ) -> None:
        self.settings = settings
        self._kv = kv if kv is not None else InMemoryKeyValueStore()
        self.stores: Collection[Store] = Collection(self._kv, "store", "Store")
        self.products: Collection[Product] = Collection(self._kv, "product", "Product")
        self.customers: Collection[Customer] = Collection(self._kv, "customer", "Customer")
        self.baskets: Collection[Basket] = Collection(self._kv, "basket", "Basket")
        self.inventory: Collection[Inventory] = Collection(self._kv, "inventory", "Inventory")
        self.devices: Collection[Device] = Collection(self._kv, "device", "Device")

        self._catalog_lock = threading.RLock()
        self._store_locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        self._event_bus: EventBus | None = None

    @property
    def kv(self) -> KeyValueStore:
        return self._kv

    # ------------------------------------------------------------------
    # Critical sections
    # ------------------------------------------------------------------

    def _store_lock(self, store_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._store_locks.get(store_id)
            if lock is None:
                lock = self._store_locks[store_id] = threading.RLock()
            return lock

    @contextmanager
    def transaction(self, *store_ids: str | None, catalog: bool = False) -> Iterator[None]:
        """Hold the locks of *store_ids* (and the catalog lock) for the block.

        None entries are ignored, so callers can pass optional store ids
        straight from entity attributes.
        """
        with ExitStack() as stack:
            for store_id in sorted({s for s in store_ids if s}):
                stack.enter_context(self._store_lock(store_id))
            if catalog:
                stack.enter_context(self._catalog_lock)
            yield

    @contextmanager
    def locked(
        self,
        resolve_ids: Callable[[], Iterable[str | None]],
        *,
        catalog: bool = False,
    ) -> Iterator[None]:
        """Lock store ids that must be read before they can be locked.

        *resolve_ids* is evaluated, the resulting stores are locked, and it is
        evaluated again under the locks. If the set changed in between (a
        concurrent move or assignment), the locks are released and the
        scope is retried.
        """
        while True:
            wanted = frozenset(s for s in resolve_ids() if s)
            with self.transaction(*wanted, catalog=catalog):
                if frozenset(s for s in resolve_ids() if s) == wanted:
                    yield
                    return
            logger.debug("Lock scope changed while acquiring %s; retrying", sorted(wanted))

    # ------------------------------------------------------------------
    # Event bus
    # ------------------------------------------------------------------

    @property
    def event_bus(self) -> EventBus | None:
        """The event bus, or None when plugins have not been initialized."""
        return self._event_bus

    def init_event_bus(self) -> None:
        """Load plugins and create the synchronous event bus."""
        from storectl.plugins.event_bus import EventBus
        from storectl.plugins.manager import PluginManager

        pm = PluginManager()
        plugins = self.settings.plugins if self.settings is not None else None
        if plugins is None or plugins.device_log:
            from storectl.plugins.builtins.device_log import DeviceLogPlugin

            pm.register_plugin(DeviceLogPlugin(), name="device_log")
        if plugins is None:
            pm.discover_and_load()
        elif plugins.entry_points:
            pm.discover_and_load(disabled=plugins.disabled)
        self._event_bus = EventBus(pm)

    def snapshot_counts(self) -> dict[str, Any]:
        """Number of stored entities per kind (for summaries and debugging)."""
        return {
            "stores": len(self.stores.all()),
            "products": len(self.products.all()),
            "customers": len(self.customers.all()),
            "baskets": len(self.baskets.all()),
            "inventory": len(self.inventory.all()),
            "devices": len(self.devices.all()),
        }
