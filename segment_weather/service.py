"""Public entry point: segment in, weather impact analysis out.

decode path -> derive geometry -> cache-or-fetch reading -> run models.
"""
from __future__ import annotations

import asyncio
import time
from typing import Callable, Dict, Iterable, List, Optional

from segment_weather import config
from segment_weather.assist import assess_assist
from segment_weather.domain import (
    AssistAssessment,
    ImpactAnalysis,
    Segment,
    SegmentImpactRequest,
    SegmentImpactResult,
    WeatherReading,
)
from segment_weather.errors import SegmentWeatherError, ValidationError
from segment_weather.geometry import derive_geometry, initial_bearing, midpoint, validate_coordinate
from segment_weather.impact_engine import analyze_weather_impact
from segment_weather.impact_models import annotate_air_density
from segment_weather.kv_store import build_kv_store
from segment_weather.polyline import decode
from segment_weather.weather_cache import WeatherCache
from segment_weather.weather_client import WeatherClient
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="segment_weather_service")


def ensure_geometry(segment: Segment) -> Segment:
    """Fill in start/end/bearing on `segment` from its encoded path when missing.

    Raises ValidationError when neither endpoints nor a path are available
    or when an endpoint is not a real lat/lng, and DecodeError when the path
    is malformed.
    """
    if segment.start is None or segment.end is None:
        if not segment.encoded_path:
            raise ValidationError(f"Segment {segment.id} has no start/end coordinates and no encoded path")
        geometry = derive_geometry(decode(segment.encoded_path))
        validate_coordinate(geometry.start, f"Segment {segment.id} start")
        validate_coordinate(geometry.end, f"Segment {segment.id} end")
        segment.start = geometry.start
        segment.end = geometry.end
        if segment.bearing is None:
            segment.bearing = geometry.bearing
    else:
        validate_coordinate(segment.start, f"Segment {segment.id} start")
        validate_coordinate(segment.end, f"Segment {segment.id} end")
        if segment.bearing is None and segment.start != segment.end:
            segment.bearing = initial_bearing(segment.start, segment.end)
    return segment


class SegmentWeatherService:
    """Orchestrates geometry, caching, fetching and analysis for segments.

    Concurrent cache misses for the same quantized key share a single
    upstream request.
    """

    def __init__(
        self,
        cache: WeatherCache,
        client: WeatherClient,
        *,
        default_timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize with a cache, a weather client, a per-request timeout and a clock (unix seconds)."""
        self.cache = cache
        self.client = client
        self.default_timeout = default_timeout
        self._clock = clock
        self._in_flight: Dict[str, asyncio.Task] = {}

    @classmethod
    def from_settings(
        cls,
        settings: config.Settings | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> "SegmentWeatherService":
        """Build a service wired to the configured store and weather proxy.

        The cache, the client and the service share `clock`.
        """
        settings = settings or config.settings
        cache = WeatherCache(
            build_kv_store(settings),
            prefix=settings.cache_prefix,
            ttl_seconds=settings.cache_ttl_seconds,
            clock=clock,
        )
        client = WeatherClient(settings.weather_proxy_url, timeout=settings.request_timeout_seconds, clock=clock)
        return cls(cache, client, default_timeout=settings.request_timeout_seconds, clock=clock)

    async def __aenter__(self) -> "SegmentWeatherService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel outstanding fetches and release the client and store."""
        for task in list(self._in_flight.values()):
            task.cancel()
        self._in_flight.clear()
        await self.client.aclose()
        await self.cache.store.close()

    async def _fetch(self, lat: float, lng: float, timestamp: Optional[int], timeout: float | None) -> WeatherReading:
        if timestamp is not None:
            reading = await self.client.fetch_historical(lat, lng, timestamp, timeout=timeout)
        else:
            reading = await self.client.fetch_current(lat, lng, timeout=timeout)
        return annotate_air_density(reading)

    async def _fetch_and_store(
        self,
        key: str,
        lat: float,
        lng: float,
        timestamp: Optional[int],
        timeout: float | None,
    ) -> WeatherReading:
        logger.info(
            "Fetching fresh weather data",
            extra={"key": key, "latitude": lat, "longitude": lng, "timestamp": timestamp},
        )
        reading = await self._fetch(lat, lng, timestamp, timeout)
        await self.cache.put(key, reading)
        return reading

    def _release(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            self._in_flight.pop(key, None)
        # retrieve the exception so an abandoned shared fetch does not warn at GC
        if not task.cancelled():
            task.exception()

    async def get_reading(
        self,
        lat: float,
        lng: float,
        timestamp: Optional[int] = None,
        *,
        use_cache: bool = True,
        timeout: float | None = None,
    ) -> WeatherReading:
        """Return a reading for a point, from cache when fresh, else from the proxy.

        `timestamp` None means "now" and requests current conditions.
        """
        validate_coordinate((lat, lng), "Lookup point")
        timeout = self.default_timeout if timeout is None else timeout
        if not use_cache:
            return await self._fetch(lat, lng, timestamp, timeout)

        key_time = timestamp if timestamp is not None else self._clock()
        key = self.cache.key_for(lat, lng, key_time)

        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug("Using cached weather data", extra={"key": key})
            return cached

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._fetch_and_store(key, lat, lng, timestamp, timeout))
            self._in_flight[key] = task
            task.add_done_callback(lambda t, k=key: self._release(k, t))
        else:
            logger.debug("Joining in-flight weather request", extra={"key": key})
        # shield: one cancelled waiter must not cancel the fetch other waiters share
        return await asyncio.shield(task)

    async def get_impact(
        self,
        segment: Segment,
        timestamp: Optional[int] = None,
        *,
        use_cache: bool = True,
        timeout: float | None = None,
    ) -> ImpactAnalysis:
        """Analyse how weather at `timestamp` (unix seconds, None = now) affected `segment`."""
        ensure_geometry(segment)
        point = midpoint(segment.start, segment.end)
        reading = await self.get_reading(point.lat, point.lng, timestamp, use_cache=use_cache, timeout=timeout)
        analysis = analyze_weather_impact(segment.bearing, reading)
        logger.debug(
            "Computed weather impact",
            extra={"segment_id": segment.id, "rating": analysis.rating,
                   "time_impact": round(analysis.estimated_time_impact, 2)},
        )
        return analysis

    async def get_assist(
        self,
        segment: Segment,
        timestamp: Optional[int] = None,
        *,
        use_cache: bool = True,
        timeout: float | None = None,
    ) -> AssistAssessment:
        """Classify conditions for `segment` as favorable, neutral or unfavorable."""
        ensure_geometry(segment)
        point = midpoint(segment.start, segment.end)
        reading = await self.get_reading(point.lat, point.lng, timestamp, use_cache=use_cache, timeout=timeout)
        return assess_assist(segment, reading)

    async def _impact_result(
        self,
        request: SegmentImpactRequest,
        *,
        use_cache: bool,
        timeout: float | None,
    ) -> SegmentImpactResult:
        segment_id = request.segment.id
        try:
            analysis = await self.get_impact(request.segment, request.timestamp, use_cache=use_cache, timeout=timeout)
        except SegmentWeatherError as exc:
            logger.warning(
                "Failed to analyse segment",
                extra={"segment_id": segment_id, "error_type": type(exc).__name__, "error": str(exc)},
            )
            return SegmentImpactResult(segment_id=segment_id, error=str(exc), error_type=type(exc).__name__)
        except Exception as exc:
            logger.exception("Unexpected failure analysing segment", extra={"segment_id": segment_id})
            return SegmentImpactResult(segment_id=segment_id, error=str(exc) or repr(exc), error_type=type(exc).__name__)
        return SegmentImpactResult(segment_id=segment_id, analysis=analysis)

    async def get_impacts(
        self,
        requests: Iterable[SegmentImpactRequest],
        *,
        use_cache: bool = True,
        timeout: float | None = None,
    ) -> List[SegmentImpactResult]:
        """Analyse many segments concurrently; one failure never sinks the batch.

        Results keep the order of `requests`.
        """
        requests = list(requests)
        logger.info("Analysing segment batch", extra={"segments_count": len(requests)})
        results = await asyncio.gather(
            *(self._impact_result(r, use_cache=use_cache, timeout=timeout) for r in requests)
        )
        failures = sum(1 for r in results if not r.ok)
        if failures:
            logger.info("Segment batch finished with failures", extra={"failures": failures})
        return list(results)

    async def clear_cache(self, prefix: str | None = None) -> int:
        """Drop all cached readings under `prefix` (defaults to the cache namespace)."""
        return await self.cache.clear(prefix)
