"""Pure numeric submodels: wind decomposition, temperature deviation, air density.

Every function here is deterministic and side-effect free. Inputs are metric:
m/s, degrees Celsius, hPa, percent relative humidity.
"""

from __future__ import annotations

import math
from typing import Optional

from segment_weather.domain import (
    AirDensityCondition,
    AirDensityImpact,
    TemperatureCondition,
    TemperatureImpact,
    WeatherReading,
    WindCondition,
    WindImpact,
)

# Gust policy: when the provider reports no gust, assume gusts run 50% above
# the sustained speed.
DEFAULT_GUST_FACTOR = 1.5
HEADWIND_TIME_PERCENT_PER_MS = 3.0  # 1 m/s headwind ~ 3% slower on the flat
GUST_WEIGHT = 0.5
SIGNIFICANT_CROSSWIND_MS = 1.0

OPTIMAL_TEMP_LOW_C = 15.0
OPTIMAL_TEMP_HIGH_C = 25.0
COLD_PERCENT_PER_DEGREE = 0.5
HEAT_PERCENT_PER_DEGREE = 1.0
PERCEPTION_WEIGHT = 0.3

DRY_AIR_GAS_CONSTANT = 287.05  # J/(kg K)
WATER_VAPOR_GAS_CONSTANT = 461.495  # J/(kg K)
REFERENCE_AIR_DENSITY = 1.225  # kg/m3, sea level at 15 C
POWER_PERCENT_PER_DENSITY_PERCENT = 0.3

# Upper bounds (exclusive), ordered; anything above the last is the final label.
WIND_THRESHOLDS = (
    (0.5, WindCondition.CALM),
    (1.5, WindCondition.LIGHT_AIR),
    (3.3, WindCondition.LIGHT_BREEZE),
    (5.5, WindCondition.GENTLE_BREEZE),
    (7.9, WindCondition.MODERATE_BREEZE),
    (10.7, WindCondition.FRESH_BREEZE),
    (13.8, WindCondition.STRONG_BREEZE),
    (17.1, WindCondition.NEAR_GALE),
    (20.7, WindCondition.GALE),
    (24.4, WindCondition.STRONG_GALE),
    (28.4, WindCondition.STORM),
    (32.6, WindCondition.VIOLENT_STORM),
)

TEMPERATURE_THRESHOLDS = (
    (0.0, TemperatureCondition.FREEZING),
    (5.0, TemperatureCondition.VERY_COLD),
    (10.0, TemperatureCondition.COLD),
    (15.0, TemperatureCondition.COOL),
    (25.0, TemperatureCondition.COMFORTABLE),
    (30.0, TemperatureCondition.WARM),
    (35.0, TemperatureCondition.HOT),
)

AIR_DENSITY_THRESHOLDS = (
    (1.1, AirDensityCondition.VERY_LOW),
    (1.175, AirDensityCondition.LOW),
    (1.225, AirDensityCondition.SLIGHTLY_LOW),
    (1.275, AirDensityCondition.NORMAL),
    (1.325, AirDensityCondition.SLIGHTLY_HIGH),
    (1.4, AirDensityCondition.HIGH),
)


def _classify(value: float, thresholds, top):
    for bound, label in thresholds:
        if value < bound:
            return label
    return top


def classify_wind(speed: float) -> WindCondition:
    """Map a sustained wind speed (m/s) onto the Beaufort-like ladder."""
    return _classify(speed, WIND_THRESHOLDS, WindCondition.HURRICANE)


def classify_temperature(temp_c: float) -> TemperatureCondition:
    """Map a temperature onto one of eight bands."""
    return _classify(temp_c, TEMPERATURE_THRESHOLDS, TemperatureCondition.VERY_HOT)


def classify_air_density(density: float) -> AirDensityCondition:
    """Map an air density onto one of seven bands around the reference."""
    return _classify(density, AIR_DENSITY_THRESHOLDS, AirDensityCondition.VERY_HIGH)


def relative_wind_angle(wind_direction: float, bearing: float) -> float:
    """Angle in [0, 180] between where the wind comes from and the travel bearing.

    0 means the wind blows straight into the rider's face; 180 means it
    pushes from behind.
    """
    # Python's % is floored, so the result is already in [0, 360)
    return abs(((wind_direction - bearing + 180.0) % 360.0) - 180.0)


def calculate_wind_impact(
    wind_speed: float,
    wind_direction: float,
    bearing: float,
    wind_gust: Optional[float] = None,
) -> WindImpact:
    """Decompose wind into head/tail and cross components along `bearing`.

    Positive effective speed is a headwind and slows the rider.
    """
    gust = wind_gust if wind_gust is not None else wind_speed * DEFAULT_GUST_FACTOR
    angle = relative_wind_angle(wind_direction, bearing)
    angle_rad = math.radians(angle)

    effective = wind_speed * math.cos(angle_rad)
    crosswind = wind_speed * math.sin(angle_rad)
    gust_impact = (gust - wind_speed) * abs(math.sin(angle_rad)) * GUST_WEIGHT

    return WindImpact(
        headwind=effective > 0,
        tailwind=effective < 0,
        significant_crosswind=abs(crosswind) > SIGNIFICANT_CROSSWIND_MS,
        effective_wind_speed=effective,
        crosswind_component=crosswind,
        relative_wind_angle=angle,
        estimated_time_impact=effective * HEADWIND_TIME_PERCENT_PER_MS,
        gust_impact=gust_impact,
        wind_gust=gust,
        condition=classify_wind(wind_speed),
    )


def calculate_temperature_impact(temperature: float, feels_like: Optional[float] = None) -> TemperatureImpact:
    """Percent slowdown from riding outside the 15-25 C band.

    Cold costs 0.5%/degree, heat 1%/degree. The feels-like gap is reported as
    `perception_impact` but is not part of the time estimate.
    """
    feels_like = temperature if feels_like is None else feels_like
    if temperature < OPTIMAL_TEMP_LOW_C:
        impact = (OPTIMAL_TEMP_LOW_C - temperature) * COLD_PERCENT_PER_DEGREE
    elif temperature > OPTIMAL_TEMP_HIGH_C:
        impact = (temperature - OPTIMAL_TEMP_HIGH_C) * HEAT_PERCENT_PER_DEGREE
    else:
        impact = 0.0

    return TemperatureImpact(
        temperature=temperature,
        feels_like=feels_like,
        optimal=OPTIMAL_TEMP_LOW_C <= temperature <= OPTIMAL_TEMP_HIGH_C,
        estimated_time_impact=impact,
        perception_impact=abs(feels_like - temperature) * PERCEPTION_WEIGHT,
        condition=classify_temperature(temperature),
    )


def calculate_air_density(temperature: float, humidity: float, pressure: float) -> float:
    """Moist-air density in kg/m3 from temperature (C), humidity (%) and pressure (hPa).

    Saturation vapor pressure follows Tetens' formula; the result is the sum
    of the dry-air and water-vapor partial densities.
    """
    temp_k = temperature + 273.15
    saturation = 6.1078 * math.exp((17.27 * temperature) / (temperature + 237.3))
    vapor = (humidity / 100.0) * saturation
    dry = pressure - vapor
    return (dry * 100.0) / (DRY_AIR_GAS_CONSTANT * temp_k) + (vapor * 100.0) / (WATER_VAPOR_GAS_CONSTANT * temp_k)


def resolve_air_density(reading: WeatherReading) -> float:
    """Use the reading's density if present, else derive it from temperature, humidity and pressure."""
    if reading.air_density is not None:
        return reading.air_density
    return calculate_air_density(reading.temperature, reading.humidity, reading.pressure)


def calculate_air_density_impact(density: float) -> AirDensityImpact:
    """Compare a density to sea level and estimate the extra power needed (percent)."""
    difference = (density - REFERENCE_AIR_DENSITY) / REFERENCE_AIR_DENSITY * 100.0
    return AirDensityImpact(
        air_density=density,
        density_difference_percent=difference,
        estimated_power_impact=difference * POWER_PERCENT_PER_DENSITY_PERCENT,
        condition=classify_air_density(density),
    )


def annotate_air_density(reading: WeatherReading) -> WeatherReading:
    """Return a copy of `reading` with `air_density` computed from its own fields."""
    density = calculate_air_density(reading.temperature, reading.humidity, reading.pressure)
    return reading.model_copy(update={"air_density": density})
