"""Key-value persistence abstraction.

The engine treats storage purely as a keyed map: no durability, no
transactions. A thread-safe container makes single calls atomic, but a
check-then-act sequence spanning several calls is NOT atomic here. The
registry owns those critical sections.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator


class KeyValueStore(ABC):
    """Minimal keyed storage consumed by :class:`~storectl.infrastructure.registry.Registry`."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the value stored under *key*, or None."""

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete *key*. Missing keys are ignored."""

    @abstractmethod
    def contains_key(self, key: str) -> bool: ...

    @abstractmethod
    def clear(self) -> None: ...

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate over a snapshot of the current keys."""

    @abstractmethod
    def size(self) -> int: ...


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local dict guarded by a lock."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def contains_key(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def keys(self) -> Iterator[str]:
        with self._lock:
            snapshot = list(self._data)
        return iter(snapshot)

    def size(self) -> int:
        with self._lock:
            return len(self._data)
