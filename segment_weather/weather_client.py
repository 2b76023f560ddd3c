"""Async client for the weather proxy that fronts OpenWeatherMap.

The proxy injects provider credentials server-side, so this client never
holds an API key. It exposes a current and a historical lookup; the two
return differently shaped payloads and the shape to unwrap is decided by
which lookup was requested, never by inspecting the body.
"""
from __future__ import annotations

import time
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from segment_weather import config
from segment_weather.domain import WeatherReading
from segment_weather.errors import UpstreamError
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="weather_client")

WEATHER_PATH = "/weather"


class RequestMode(str, Enum):
    """Which proxy payload variant a request produces."""
    CURRENT = "current"  # {"current": {...}}
    HISTORICAL = "historical"  # {"data": [{...}, ...]}


def _provider_message(resp: httpx.Response) -> str:
    """Best-effort extraction of the provider's error message."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, Mapping):
        for field in ("message", "error"):
            value = body.get(field)
            if value:
                return str(value)
    return resp.reason_phrase or f"HTTP {resp.status_code}"


def _unwrap(payload: Any, mode: RequestMode) -> Mapping[str, Any]:
    """Select the observation block for the requested mode."""
    if not isinstance(payload, Mapping):
        raise KeyError("payload is not an object")
    if mode is RequestMode.HISTORICAL:
        data = payload["data"]
        if not isinstance(data, list) or not data:
            raise KeyError("data")
        block = data[0]
    else:
        block = payload["current"]
    if not isinstance(block, Mapping):
        raise KeyError(mode.value)
    return block


def _optional_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def parse_reading(block: Mapping[str, Any], *, timestamp: int, source: str) -> WeatherReading:
    """Normalize an OpenWeatherMap observation (metric units) into a WeatherReading."""
    rain = block.get("rain")
    precipitation = rain.get("1h") if isinstance(rain, Mapping) else None
    return WeatherReading(
        temperature=block["temp"],
        feels_like=block.get("feels_like", block["temp"]),
        humidity=block["humidity"],
        pressure=block["pressure"],
        wind_speed=block["wind_speed"],
        wind_direction=block.get("wind_deg", 0.0),
        wind_gust=_optional_float(block.get("wind_gust")),
        timestamp=timestamp,
        source=source,
        dew_point=_optional_float(block.get("dew_point")),
        uvi=_optional_float(block.get("uvi")),
        precipitation_1h=_optional_float(precipitation),
    )


class WeatherClient:
    """Fetch current or historical readings through the weather proxy.

    Failures surface as UpstreamError immediately; there is no retry.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        source: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Create a client. A supplied `http_client` is borrowed and not closed by `aclose`.

        `clock` (unix seconds) stamps current readings; share it with the cache
        so a reading falls in the hour its cache key names.
        """
        settings = config.settings
        self.base_url = (base_url or settings.weather_proxy_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.source = source or settings.weather_source_tag
        self._clock = clock
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self.timeout)
        logger.debug("Initialized WeatherClient", extra={"base_url": mask_url(self.base_url)})

    async def __aenter__(self) -> "WeatherClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def fetch_current(self, lat: float, lng: float, *, timeout: float | None = None) -> WeatherReading:
        """Fetch the latest observation for a point."""
        params = {"lat": lat, "lon": lng}
        payload, status = await self._get(params, timeout=timeout)
        return self._to_reading(payload, status, RequestMode.CURRENT, timestamp=int(self._clock()))

    async def fetch_historical(
        self,
        lat: float,
        lng: float,
        timestamp: int,
        *,
        timeout: float | None = None,
    ) -> WeatherReading:
        """Fetch the observation closest to `timestamp` (unix seconds) for a point."""
        params = {"lat": lat, "lon": lng, "dt": int(timestamp)}
        payload, status = await self._get(params, timeout=timeout)
        return self._to_reading(payload, status, RequestMode.HISTORICAL, timestamp=int(timestamp))

    async def _get(self, params: Dict[str, Any], *, timeout: float | None) -> tuple[Any, int]:
        url = f"{self.base_url}{WEATHER_PATH}"
        effective_timeout = self.timeout if timeout is None else timeout
        logger.debug("Requesting weather", extra={"params": params, "timeout": effective_timeout})
        try:
            resp = await self._http.get(url, params=params, timeout=effective_timeout)
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"Request timed out after {effective_timeout}s") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Request failed: {exc}") from exc

        if not resp.is_success:
            message = _provider_message(resp)
            logger.warning(
                "Weather proxy returned an error",
                extra={"status_code": resp.status_code, "provider_message": message},
            )
            raise UpstreamError(message, status_code=resp.status_code)

        try:
            return resp.json(), resp.status_code
        except ValueError as exc:
            raise UpstreamError("Response body is not valid JSON", status_code=resp.status_code) from exc

    def _to_reading(self, payload: Any, status: int, mode: RequestMode, *, timestamp: int) -> WeatherReading:
        try:
            block = _unwrap(payload, mode)
            return parse_reading(block, timestamp=timestamp, source=self.source)
        except (KeyError, TypeError, ValueError, PydanticValidationError) as exc:
            logger.warning("Malformed weather payload", extra={"mode": mode.value, "error": str(exc)})
            raise UpstreamError(f"Malformed {mode.value} weather payload: {exc}", status_code=status) from exc
