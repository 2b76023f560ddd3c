"""Quantized, TTL-bounded weather cache on top of a KeyValueStore."""

from __future__ import annotations

import math
import time
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from segment_weather.config import CACHE_TTL_48_HOURS
from segment_weather.domain import CacheEntry, WeatherReading
from segment_weather.errors import CacheError
from segment_weather.kv_store.base import KeyValueStore
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="weather_cache")

DEFAULT_CACHE_PREFIX = "weather_data_"
SECONDS_PER_HOUR = 3600
COORDINATE_DECIMALS = 3  # ~110 m grid


def _round_half_up(value: float, decimals: int) -> float:
    """Round like Math.round: halves go toward +infinity, never to even."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def _format_coordinate(value: float) -> str:
    # %g drops trailing zeros; 6 significant digits covers +-180.000
    text = f"{value:g}"
    return "0" if text == "-0" else text


def quantize(lat: float, lng: float, timestamp: float, prefix: str = DEFAULT_CACHE_PREFIX) -> str:
    """Build the cache key for a location and time.

    Coordinates are rounded to 3 decimals and the timestamp (unix seconds)
    is floored to the start of its hour, so nearby requests share a key.
    Pure: no I/O, no clock.
    """
    rounded_lat = _format_coordinate(_round_half_up(lat, COORDINATE_DECIMALS))
    rounded_lng = _format_coordinate(_round_half_up(lng, COORDINATE_DECIMALS))
    rounded_ts = int(math.floor(timestamp / SECONDS_PER_HOUR) * SECONDS_PER_HOUR)
    return f"{prefix}{rounded_lat}_{rounded_lng}_{rounded_ts}"


class WeatherCache:
    """Read-through cache of WeatherReadings with lazy TTL eviction.

    Storage failures on `get`/`put` are logged and treated as misses so a
    broken backend never aborts an analysis.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        prefix: str = DEFAULT_CACHE_PREFIX,
        ttl_seconds: int = CACHE_TTL_48_HOURS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize with a backing store, key namespace, TTL and clock (unix seconds)."""
        self.store = store
        self.prefix = prefix
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def key_for(self, lat: float, lng: float, timestamp: float) -> str:
        """Quantize a lookup into this cache's namespace."""
        return quantize(lat, lng, timestamp, self.prefix)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _is_stale(self, cached_at_ms: int) -> bool:
        return self._now_ms() - cached_at_ms > self.ttl_seconds * 1000

    async def _evict(self, key: str) -> None:
        try:
            await self.store.remove([key])
        except CacheError as exc:
            logger.warning("Failed to evict cache entry", extra={"key": key, "error": str(exc)})

    async def get(self, key: str) -> Optional[WeatherReading]:
        """Return the cached reading, or None if absent, stale, unreadable or corrupt."""
        try:
            raw = await self.store.get(key)
        except CacheError as exc:
            logger.warning("Cache read failed; treating as miss", extra={"key": key, "error": str(exc)})
            return None
        if raw is None:
            return None

        try:
            entry = CacheEntry.model_validate({**raw, "key": key})
        except PydanticValidationError as exc:
            logger.warning("Dropping malformed cache entry", extra={"key": key, "error": str(exc)})
            await self._evict(key)
            return None

        if self._is_stale(entry.cached_at):
            logger.debug("Cache entry expired", extra={"key": key, "cached_at": entry.cached_at})
            await self._evict(key)
            return None

        return entry.data

    async def put(self, key: str, reading: WeatherReading) -> None:
        """Upsert a reading, stamping it with the current time."""
        entry = CacheEntry(key=key, data=reading, cached_at=self._now_ms())
        try:
            await self.store.set(key, entry.model_dump(mode="json", by_alias=True, exclude={"key"}))
        except CacheError as exc:
            logger.warning("Cache write failed; continuing without caching", extra={"key": key, "error": str(exc)})

    async def clear(self, prefix: str | None = None) -> int:
        """Remove every entry under `prefix` (defaults to this cache's namespace).

        Returns the number of keys removed. Storage failures propagate as CacheError.
        """
        prefix = self.prefix if prefix is None else prefix
        keys = await self.store.scan(prefix)
        if keys:
            await self.store.remove(keys)
        logger.info("Cleared weather cache", extra={"prefix": prefix, "removed": len(keys)})
        return len(keys)
