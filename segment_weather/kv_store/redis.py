"""Redis-backed key/value store. Values are stored as JSON strings."""

import json
from typing import Any, Dict, Iterable, List, Optional

from segment_weather.errors import CacheError
from segment_weather.kv_store.base import KeyValueStore
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="kv_store/redis_store")


class RedisKeyValueStore(KeyValueStore):
    """Async store over a `redis.asyncio.Redis` client.

    Expiry is enforced by the weather cache itself (lazy eviction on read),
    so keys are written without a Redis TTL.
    """

    def __init__(self, client) -> None:
        """Initialize with an async Redis client."""
        logger.debug("Initializing RedisKeyValueStore")
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisKeyValueStore":
        """Build a store from a redis:// URL."""
        from redis import asyncio as aioredis

        return cls(aioredis.Redis.from_url(url))

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self.client.get(key)
        except Exception as exc:
            raise CacheError(f"Failed to read {key} from Redis: {exc}") from exc
        if raw is None:
            return None
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            value = json.loads(raw)
        except (UnicodeDecodeError, ValueError) as exc:
            raise CacheError(f"Corrupt value stored under {key}: {exc}") from exc
        if not isinstance(value, dict):
            raise CacheError(f"Unexpected value type stored under {key}: {type(value).__name__}")
        return value

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise CacheError(f"Failed to serialize value for {key}: {exc}") from exc
        try:
            await self.client.set(key, payload)
        except Exception as exc:
            raise CacheError(f"Failed to write {key} to Redis: {exc}") from exc

    async def remove(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        try:
            await self.client.delete(*keys)
        except Exception as exc:
            raise CacheError(f"Failed to delete {len(keys)} key(s) from Redis: {exc}") from exc

    async def scan(self, prefix: str) -> List[str]:
        try:
            keys = [k async for k in self.client.scan_iter(match=f"{prefix}*")]
        except Exception as exc:
            raise CacheError(f"Failed to scan Redis for prefix {prefix!r}: {exc}") from exc
        return [k.decode("utf-8") if isinstance(k, bytes) else k for k in keys]

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except Exception as exc:  # pragma: no cover - best effort on shutdown
            logger.warning("Failed to close Redis client", extra={"error": str(exc)})
