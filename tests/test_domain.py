import unittest

from pydantic import ValidationError as PydanticValidationError

from segment_weather.domain import SegmentImpactResult, WeatherReading
from segment_weather.impact_engine import analyze_weather_impact


def _analysis():
    reading = WeatherReading(
        temperature=20.0,
        feels_like=20.0,
        humidity=50.0,
        pressure=1013.25,
        wind_speed=2.0,
        wind_direction=0.0,
        timestamp=1_700_000_000,
        source="test",
    )
    return analyze_weather_impact(0.0, reading)


class TestSegmentImpactResult(unittest.TestCase):
    def test_success_result(self):
        result = SegmentImpactResult(segment_id="s", analysis=_analysis())
        self.assertTrue(result.ok)

    def test_error_result(self):
        result = SegmentImpactResult(segment_id="s", error="boom", error_type="RuntimeError")
        self.assertFalse(result.ok)

    def test_requires_an_outcome(self):
        with self.assertRaises(PydanticValidationError):
            SegmentImpactResult(segment_id="s")

    def test_rejects_both_outcomes(self):
        with self.assertRaises(PydanticValidationError):
            SegmentImpactResult(segment_id="s", analysis=_analysis(), error="boom")


if __name__ == "__main__":
    unittest.main()
