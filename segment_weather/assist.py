"""Coarse favorable/neutral/unfavorable classifier for segment efforts.

A lighter-weight companion to the impact engine: each factor is a small
score in [-1, 1] and the verdict comes from their mean.
"""

from __future__ import annotations

from typing import Optional

from segment_weather.domain import AssistAssessment, AssistLevel, Segment, SegmentType, WeatherReading
from segment_weather.impact_models import relative_wind_angle

CLIMB_GRADE_PERCENT = 3.0
SPRINT_MAX_METERS = 500.0
MIN_ASSIST_WIND_MS = 1.0
STRONG_WIND_MS = 8.0
FAVORABLE_SCORE = 0.2


def determine_segment_type(segment: Segment) -> SegmentType:
    """Classify a segment by grade, then by length."""
    grade = segment.average_grade_percent
    if not grade:
        return SegmentType.UNKNOWN
    if grade > CLIMB_GRADE_PERCENT:
        return SegmentType.CLIMB
    if grade < -CLIMB_GRADE_PERCENT:
        return SegmentType.DESCENT
    if segment.distance_meters < SPRINT_MAX_METERS:
        return SegmentType.SPRINT
    return SegmentType.FLAT


def calculate_wind_assistance(speed: float, direction: float, bearing: Optional[float]) -> float:
    """Return 1 for a tailwind, -1 for a headwind, 0 for crosswind or still air.

    Without a bearing only the wind strength is known, so a small positive
    factor stands in for "some wind effect".
    """
    if not speed or speed < MIN_ASSIST_WIND_MS:
        return 0.0
    if bearing is None:
        return 0.5 if speed > STRONG_WIND_MS else 0.2

    angle = relative_wind_angle(direction, bearing)
    if angle >= 135:
        return 1.0
    if angle <= 45:
        return -1.0
    return 0.0


def _temperature_factor(temp: float) -> float:
    if temp < 5:
        return -0.8
    if temp < 10:
        return -0.4
    if temp > 30:
        return -0.8
    if temp > 25:
        return -0.4
    return 0.5


def _positive_message(reading: WeatherReading, segment_type: SegmentType) -> str:
    if reading.wind_speed > 5 and segment_type != SegmentType.CLIMB:
        return "Good tailwind conditions"
    if 15 <= reading.temperature <= 25:
        return "Ideal temperature"
    return "Favorable conditions"


def _negative_message(reading: WeatherReading, segment_type: SegmentType) -> str:
    if reading.precipitation_1h:
        return "Wet conditions"
    if reading.wind_speed > 5 and segment_type != SegmentType.CLIMB:
        return "Strong headwind"
    if reading.temperature > 30:
        return "Excessive heat"
    if reading.temperature < 5:
        return "Very cold"
    return "Challenging conditions"


def assess_assist(segment: Segment, reading: WeatherReading) -> AssistAssessment:
    """Average wind, temperature, precipitation and humidity factors into a verdict."""
    segment_type = determine_segment_type(segment)

    wind_factor = calculate_wind_assistance(reading.wind_speed, reading.wind_direction, segment.bearing)
    # a headwind on a climb mostly just cools the rider
    if segment_type == SegmentType.CLIMB and wind_factor < 0:
        wind_factor = wind_factor * -0.5

    factors = {
        "wind": wind_factor,
        "temperature": _temperature_factor(reading.temperature),
        "precipitation": -0.8 if reading.precipitation_1h and reading.precipitation_1h > 0 else 0.0,
        "humidity": -0.4 if reading.humidity > 85 else 0.0,
    }
    score = sum(factors.values()) / len(factors)

    if score > FAVORABLE_SCORE:
        level, message = AssistLevel.FAVORABLE, _positive_message(reading, segment_type)
    elif score < -FAVORABLE_SCORE:
        level, message = AssistLevel.UNFAVORABLE, _negative_message(reading, segment_type)
    else:
        level, message = AssistLevel.NEUTRAL, "Average conditions"

    return AssistAssessment(
        segment_type=segment_type,
        level=level,
        message=message,
        factors=factors,
        score=score,
    )
