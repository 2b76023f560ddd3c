"""Domain vocabulary and schemas for segment weather impact analysis.

This module defines the contract between the numeric impact models, the
weather cache, and API callers: condition ladders, the segment descriptor,
normalized weather readings, and the Pydantic models for analysis payloads.
No interpretation logic lives here.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _StrictBaseModel(BaseModel):
    """Base model with strict extra handling."""

    model_config = ConfigDict(extra="forbid")


class Coordinate(NamedTuple):
    """Latitude/longitude pair in decimal degrees."""
    lat: float
    lng: float


class WindCondition(str, Enum):
    """Beaufort-like wind ladder, ordered calmest to strongest."""
    CALM = "Calm"
    LIGHT_AIR = "Light Air"
    LIGHT_BREEZE = "Light Breeze"
    GENTLE_BREEZE = "Gentle Breeze"
    MODERATE_BREEZE = "Moderate Breeze"
    FRESH_BREEZE = "Fresh Breeze"
    STRONG_BREEZE = "Strong Breeze"
    NEAR_GALE = "Near Gale"
    GALE = "Gale"
    STRONG_GALE = "Strong Gale"
    STORM = "Storm"
    VIOLENT_STORM = "Violent Storm"
    HURRICANE = "Hurricane"


class TemperatureCondition(str, Enum):
    """Temperature bands in Celsius, coldest to hottest."""
    FREEZING = "Freezing"
    VERY_COLD = "Very Cold"
    COLD = "Cold"
    COOL = "Cool"
    COMFORTABLE = "Comfortable"
    WARM = "Warm"
    HOT = "Hot"
    VERY_HOT = "Very Hot"


class AirDensityCondition(str, Enum):
    """Air density bands around the 1.225 kg/m3 sea-level reference."""
    VERY_LOW = "Very Low (High Altitude/Hot)"
    LOW = "Low"
    SLIGHTLY_LOW = "Slightly Low"
    NORMAL = "Normal"
    SLIGHTLY_HIGH = "Slightly High"
    HIGH = "High"
    VERY_HIGH = "Very High (Cold/Dense)"


class HumidityCondition(str, Enum):
    """Relative humidity bands."""
    DRY = "Dry"
    COMFORTABLE = "Comfortable"
    HUMID = "Humid"
    VERY_HUMID = "Very Humid"


class HumidityImpactLevel(str, Enum):
    """Coarse humidity impact level."""
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"


class SegmentType(str, Enum):
    """Terrain class of a segment, used by the assist classifier."""
    CLIMB = "climb"
    DESCENT = "descent"
    FLAT = "flat"
    SPRINT = "sprint"
    UNKNOWN = "unknown"


class AssistLevel(str, Enum):
    """Whether conditions helped or hindered an effort."""
    FAVORABLE = "Favorable"
    NEUTRAL = "Neutral"
    UNFAVORABLE = "Unfavorable"


class Segment(BaseModel):
    """Caller-owned path segment. Geometry may be filled in lazily from `encoded_path`."""
    id: str
    distance_meters: float = 0.0
    average_grade_percent: float | None = None
    encoded_path: str | None = None
    start: Coordinate | None = None
    end: Coordinate | None = None
    bearing: float | None = Field(default=None, ge=0.0, lt=360.0)

    model_config = ConfigDict(coerce_numbers_to_str=True)


class WeatherReading(BaseModel):
    """Normalized point-in-time weather observation (metric units)."""
    temperature: float
    feels_like: float
    humidity: float
    pressure: float
    wind_speed: float
    wind_direction: float
    wind_gust: float | None = None
    air_density: float | None = None
    timestamp: int
    source: str
    dew_point: float | None = None
    uvi: float | None = None
    precipitation_1h: float | None = None


class CacheEntry(_StrictBaseModel):
    """Persisted cache record; written wholesale and never partially updated."""
    key: str
    data: WeatherReading
    cached_at: int = Field(alias="cachedAt")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class WindImpact(_StrictBaseModel):
    """Wind vector decomposition relative to the segment bearing."""
    headwind: bool
    tailwind: bool
    significant_crosswind: bool
    effective_wind_speed: float
    crosswind_component: float
    relative_wind_angle: float
    estimated_time_impact: float
    gust_impact: float
    wind_gust: float
    condition: WindCondition


class TemperatureImpact(_StrictBaseModel):
    """Deviation from the optimal temperature band."""
    temperature: float
    feels_like: float
    optimal: bool
    estimated_time_impact: float
    perception_impact: float
    condition: TemperatureCondition


class AirDensityImpact(_StrictBaseModel):
    """Air density relative to the sea-level reference."""
    air_density: float
    density_difference_percent: float
    estimated_power_impact: float
    condition: AirDensityCondition


class HumidityImpact(_StrictBaseModel):
    """Qualitative humidity assessment."""
    humidity: float
    impact: HumidityImpactLevel
    condition: HumidityCondition


class ImpactComponents(_StrictBaseModel):
    """Breakdown of the submodel outputs behind an analysis."""
    wind: WindImpact
    temperature: TemperatureImpact
    air_density: AirDensityImpact
    humidity: HumidityImpact


class ConditionsSummary(_StrictBaseModel):
    """Per-factor qualitative labels."""
    wind: WindCondition
    temperature: TemperatureCondition
    humidity: HumidityCondition
    air_density: AirDensityCondition


class ImpactAnalysis(_StrictBaseModel):
    """Composite weather impact for one segment effort."""
    timestamp: int
    rating: int = Field(ge=0, le=100)
    estimated_time_impact: float
    summary: str
    conditions: ConditionsSummary
    components: ImpactComponents
    weather: WeatherReading


class AssistAssessment(_StrictBaseModel):
    """Coarse favorable/neutral/unfavorable verdict for a segment."""
    segment_type: SegmentType
    level: AssistLevel
    message: str
    factors: Dict[str, float] = Field(default_factory=dict)
    score: float


class SegmentImpactResult(_StrictBaseModel):
    """Per-segment batch outcome; exactly one of analysis/error is set."""
    segment_id: str
    analysis: Optional[ImpactAnalysis] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @model_validator(mode="after")
    def _one_outcome(self) -> "SegmentImpactResult":
        if (self.analysis is None) == (self.error is None):
            raise ValueError("exactly one of analysis or error must be set")
        return self

    @property
    def ok(self) -> bool:
        return self.analysis is not None


class SegmentImpactRequest(_StrictBaseModel):
    """One batch item: a segment and the unix time of the effort (None = now)."""
    segment: Segment
    timestamp: Optional[int] = None
