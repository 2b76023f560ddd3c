"""Encoded polyline helpers built on the `polyline` package.

Paths use the standard 5-bit chunked, zig-zag encoding with a precision of
five decimal places. Decoding always returns a fully materialized list.
"""

from __future__ import annotations

from typing import Iterable, List

import polyline as _polyline

from segment_weather.domain import Coordinate
from segment_weather.errors import DecodeError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="polyline")

PRECISION = 5
_MIN_CHAR = 63
_MAX_CHAR = 126


def decode(encoded: str) -> List[Coordinate]:
    """Decode an encoded path into an ordered list of coordinates.

    Raises DecodeError when the input contains characters outside the
    encoding alphabet or ends in the middle of a value.
    """
    if not encoded:
        return []

    for position, char in enumerate(encoded):
        if not _MIN_CHAR <= ord(char) <= _MAX_CHAR:
            raise DecodeError(f"Invalid polyline character {char!r} at position {position}")

    try:
        points = _polyline.decode(encoded, PRECISION)
    except (IndexError, ValueError) as exc:
        logger.debug("Polyline decode failed", extra={"length": len(encoded), "error": str(exc)})
        raise DecodeError(f"Truncated polyline of length {len(encoded)}") from exc

    return [Coordinate(lat, lng) for lat, lng in points]


def encode(coords: Iterable[Coordinate]) -> str:
    """Encode coordinates back into a polyline string."""
    return _polyline.encode([(c[0], c[1]) for c in coords], PRECISION)
