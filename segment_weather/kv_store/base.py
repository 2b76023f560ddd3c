"""Shared protocol for key/value storage backends."""

from typing import Any, Dict, Iterable, List, Optional, Protocol


class KeyValueStore(Protocol):
    """Async capability the weather cache is built on.

    Implementations raise CacheError on I/O or serialization failures.
    """
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the stored JSON object for `key`, or None if absent."""

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        """Store a JSON-serializable object under `key`, replacing any previous value."""

    async def remove(self, keys: Iterable[str]) -> None:
        """Delete the given keys without raising if some are absent."""

    async def scan(self, prefix: str) -> List[str]:
        """Return every key that starts with `prefix`."""

    async def close(self) -> None:
        """Release any underlying connections."""
