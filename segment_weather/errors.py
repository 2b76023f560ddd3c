"""Exception taxonomy for segment weather analysis."""

from __future__ import annotations


class SegmentWeatherError(Exception):
    """Base class for all errors raised by this package."""


class DecodeError(SegmentWeatherError):
    """Raised when an encoded polyline is malformed or truncated."""


class ValidationError(SegmentWeatherError):
    """Raised when a segment lacks the geometry needed for a lookup."""


class CacheError(SegmentWeatherError):
    """Raised by storage backends on I/O or serialization failure.

    The weather cache recovers from these locally and treats them as misses.
    """


class UpstreamError(SegmentWeatherError):
    """Raised when the weather proxy fails or returns an unusable payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Store the HTTP status (None for transport failures) and provider message."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def __str__(self) -> str:
        if self.status_code is None:
            return f"Weather API error: {self.message}"
        return f"Weather API error ({self.status_code}): {self.message}"
