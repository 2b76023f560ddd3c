"""Combine submodel outputs into a rating, time impact and summary.

Wind and temperature drive the time estimate. Air density and humidity are
deliberately left out of the time sum but still cost rating points.
"""

from __future__ import annotations

import math
from typing import Optional

from segment_weather.domain import (
    AirDensityImpact,
    ConditionsSummary,
    HumidityCondition,
    HumidityImpact,
    HumidityImpactLevel,
    ImpactAnalysis,
    ImpactComponents,
    TemperatureCondition,
    TemperatureImpact,
    WeatherReading,
    WindCondition,
    WindImpact,
)
from segment_weather.impact_models import (
    calculate_air_density_impact,
    calculate_temperature_impact,
    calculate_wind_impact,
    resolve_air_density,
)

MAX_RATING = 100
MIN_RATING = 0

# Rating penalties, points per unit.
EFFECTIVE_WIND_PENALTY = 2.0
CROSSWIND_PENALTY = 1.5
GUST_PENALTY = 3.0
TEMPERATURE_PENALTY = 1.5
AIR_DENSITY_PENALTY = 0.5
MUGGY_TEMP_C = 25.0
MUGGY_HUMIDITY = 70.0
MUGGY_PENALTY = 0.2

MINIMAL_IMPACT_PERCENT = 1.0

# A segment without a bearing is analysed as if heading due north.
DEFAULT_BEARING = 0.0

_QUIET_WINDS = {WindCondition.CALM, WindCondition.LIGHT_AIR}
_NOTABLE_HUMIDITY = {HumidityCondition.VERY_HUMID, HumidityCondition.DRY}


def calculate_humidity_impact(humidity: float) -> HumidityImpact:
    """Bucket relative humidity into a condition and a coarse impact level."""
    if humidity > 80:
        condition, impact = HumidityCondition.VERY_HUMID, HumidityImpactLevel.HIGH
    elif humidity > 60:
        condition, impact = HumidityCondition.HUMID, HumidityImpactLevel.MODERATE
    elif humidity > 40:
        condition, impact = HumidityCondition.COMFORTABLE, HumidityImpactLevel.LOW
    else:
        condition, impact = HumidityCondition.DRY, HumidityImpactLevel.LOW
    return HumidityImpact(humidity=humidity, impact=impact, condition=condition)


def calculate_rating(
    wind: WindImpact,
    temperature: TemperatureImpact,
    air_density: AirDensityImpact,
    humidity: float,
) -> int:
    """Score conditions 0-100 (100 = ideal) by subtracting weighted penalties."""
    score = float(MAX_RATING)
    score -= abs(wind.effective_wind_speed) * EFFECTIVE_WIND_PENALTY
    score -= abs(wind.crosswind_component) * CROSSWIND_PENALTY
    score -= abs(wind.gust_impact) * GUST_PENALTY
    score -= abs(temperature.estimated_time_impact) * TEMPERATURE_PENALTY
    score -= abs(air_density.density_difference_percent) * AIR_DENSITY_PENALTY

    # humidity only hurts when it is also hot
    if temperature.temperature > MUGGY_TEMP_C and humidity > MUGGY_HUMIDITY:
        score -= (humidity - MUGGY_HUMIDITY) * MUGGY_PENALTY

    if math.isnan(score):
        return MIN_RATING
    score = max(float(MIN_RATING), min(float(MAX_RATING), score))
    # half-up rounding; round() would send 50.5 to 50
    return int(math.floor(score + 0.5))


def build_summary(conditions: ConditionsSummary, total_time_impact: float) -> str:
    """Render a one-sentence description listing only the non-neutral conditions."""
    parts: list[str] = []
    if conditions.temperature != TemperatureCondition.COMFORTABLE:
        parts.append(f"{conditions.temperature.value.lower()} temperature")
    if conditions.wind not in _QUIET_WINDS:
        parts.append(f"{conditions.wind.value.lower()} winds")
    if conditions.humidity in _NOTABLE_HUMIDITY:
        parts.append(f"{conditions.humidity.value.lower()} conditions")

    conditions_text = ", ".join(parts) if parts else "ideal conditions"

    if abs(total_time_impact) < MINIMAL_IMPACT_PERCENT:
        impact_text = "minimal impact on performance"
    elif total_time_impact > 0:
        impact_text = f"approximately {total_time_impact:.1f}% slower than ideal conditions"
    else:
        impact_text = f"approximately {abs(total_time_impact):.1f}% faster than ideal conditions"

    return f"Effort was made in {conditions_text} with {impact_text}."


def analyze_weather_impact(bearing: Optional[float], reading: WeatherReading) -> ImpactAnalysis:
    """Run all submodels against one reading and aggregate them for a segment heading `bearing`."""
    wind = calculate_wind_impact(
        reading.wind_speed,
        reading.wind_direction,
        DEFAULT_BEARING if bearing is None else bearing,
        reading.wind_gust,
    )
    temperature = calculate_temperature_impact(reading.temperature, reading.feels_like)
    density = resolve_air_density(reading)
    air_density = calculate_air_density_impact(density)
    humidity = calculate_humidity_impact(reading.humidity)

    conditions = ConditionsSummary(
        wind=wind.condition,
        temperature=temperature.condition,
        humidity=humidity.condition,
        air_density=air_density.condition,
    )
    total_time_impact = wind.estimated_time_impact + temperature.estimated_time_impact

    return ImpactAnalysis(
        timestamp=reading.timestamp,
        rating=calculate_rating(wind, temperature, air_density, reading.humidity),
        estimated_time_impact=total_time_impact,
        summary=build_summary(conditions, total_time_impact),
        conditions=conditions,
        components=ImpactComponents(
            wind=wind,
            temperature=temperature,
            air_density=air_density,
            humidity=humidity,
        ),
        weather=reading.model_copy(update={"air_density": density}),
    )
