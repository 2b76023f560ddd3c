"""Start/end/bearing estimation for decoded segment paths."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from segment_weather.domain import Coordinate
from segment_weather.errors import ValidationError


@dataclass(frozen=True)
class Geometry:
    """Endpoints of a path plus the compass bearing from start to end."""
    start: Coordinate
    end: Coordinate
    bearing: Optional[float]


MAX_LATITUDE = 90.0
MAX_LONGITUDE = 180.0


def validate_coordinate(coord: Coordinate, label: str = "coordinate") -> Coordinate:
    """Reject non-finite or out-of-range coordinates with a ValidationError."""
    lat, lng = coord[0], coord[1]
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValidationError(f"{label} ({lat}, {lng}) is not finite")
    if abs(lat) > MAX_LATITUDE or abs(lng) > MAX_LONGITUDE:
        raise ValidationError(f"{label} ({lat}, {lng}) is outside lat +-90 / lng +-180")
    return coord


def initial_bearing(start: Coordinate, end: Coordinate) -> float:
    """Forward azimuth from start to end in degrees, normalized to [0, 360).

    0 is north, 90 east. Inputs are degrees and are converted to radians
    before any trigonometry.
    """
    lat1 = math.radians(start[0])
    lat2 = math.radians(end[0])
    d_lng = math.radians(end[1] - start[1])

    y = math.sin(d_lng) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(d_lng)
    bearing = math.degrees(math.atan2(y, x)) % 360.0
    # -0.0 % 360 and tiny negatives can round up to exactly 360.0
    return 0.0 if bearing >= 360.0 else bearing


def midpoint(start: Coordinate, end: Coordinate) -> Coordinate:
    """Arithmetic mean of two coordinates; a single-point stand-in for the whole path."""
    return Coordinate((start[0] + end[0]) / 2, (start[1] + end[1]) / 2)


def derive_geometry(coords: Sequence[Coordinate]) -> Geometry:
    """Derive start, end and bearing from an ordered coordinate sequence.

    A single point yields no bearing; an empty sequence is a ValidationError.
    """
    if not coords:
        raise ValidationError("Cannot derive geometry from an empty path")

    start = Coordinate(*coords[0])
    end = Coordinate(*coords[-1])
    if len(coords) == 1:
        return Geometry(start=start, end=end, bearing=None)
    return Geometry(start=start, end=end, bearing=initial_bearing(start, end))
