"""In-memory key/value store, intended for development and tests."""

import copy
import threading
from typing import Any, Dict, Iterable, List, Optional

from segment_weather.kv_store.base import KeyValueStore

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="kv_store/in_memory_store")


class InMemoryKeyValueStore(KeyValueStore):
    """Thread-safe dict-backed store (dev/test). Values are deep-copied on the way in and out."""

    def __init__(self) -> None:
        logger.debug("Initializing InMemoryKeyValueStore")
        self._items: dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            value = self._items.get(key)
            return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        with self._lock:
            self._items[key] = copy.deepcopy(value)

    async def remove(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._items.pop(key, None)

    async def scan(self, prefix: str) -> List[str]:
        with self._lock:
            return [k for k in self._items if k.startswith(prefix)]

    async def close(self) -> None:
        """Drop all items."""
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
