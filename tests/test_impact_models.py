import math
import unittest

import pytest

from segment_weather.domain import AirDensityCondition, TemperatureCondition, WeatherReading, WindCondition
from segment_weather.impact_models import (
    REFERENCE_AIR_DENSITY,
    WIND_THRESHOLDS,
    annotate_air_density,
    calculate_air_density,
    calculate_air_density_impact,
    calculate_temperature_impact,
    calculate_wind_impact,
    classify_air_density,
    classify_temperature,
    classify_wind,
    relative_wind_angle,
    resolve_air_density,
)


def _reading(**overrides) -> WeatherReading:
    values = dict(
        temperature=20.0,
        feels_like=20.0,
        humidity=50.0,
        pressure=1013.25,
        wind_speed=0.0,
        wind_direction=0.0,
        timestamp=1_700_000_000,
        source="test",
    )
    values.update(overrides)
    return WeatherReading(**values)


class TestWindImpact(unittest.TestCase):
    def test_wind_from_behind_is_a_tailwind(self):
        # riding east, wind blowing from the west
        impact = calculate_wind_impact(5.0, 270.0, 90.0)
        self.assertAlmostEqual(impact.relative_wind_angle, 180.0)
        self.assertTrue(impact.tailwind)
        self.assertFalse(impact.headwind)
        self.assertLess(impact.effective_wind_speed, 0)
        self.assertLess(impact.estimated_time_impact, 0)
        self.assertAlmostEqual(impact.estimated_time_impact, -15.0)

    def test_wind_in_the_face_is_a_headwind(self):
        impact = calculate_wind_impact(4.0, 90.0, 90.0)
        self.assertTrue(impact.headwind)
        self.assertAlmostEqual(impact.effective_wind_speed, 4.0)
        self.assertAlmostEqual(impact.estimated_time_impact, 12.0)
        self.assertAlmostEqual(impact.crosswind_component, 0.0)
        self.assertFalse(impact.significant_crosswind)

    def test_perpendicular_wind_is_all_crosswind(self):
        impact = calculate_wind_impact(6.0, 0.0, 90.0)
        self.assertAlmostEqual(impact.relative_wind_angle, 90.0)
        self.assertAlmostEqual(impact.effective_wind_speed, 0.0, places=9)
        self.assertAlmostEqual(impact.crosswind_component, 6.0)
        self.assertTrue(impact.significant_crosswind)

    def test_missing_gust_defaults_to_one_and_a_half_times_speed(self):
        impact = calculate_wind_impact(4.0, 0.0, 90.0)
        self.assertAlmostEqual(impact.wind_gust, 6.0)
        self.assertAlmostEqual(impact.gust_impact, (6.0 - 4.0) * 0.5)

    def test_reported_zero_gust_is_kept(self):
        impact = calculate_wind_impact(4.0, 0.0, 90.0, wind_gust=0.0)
        self.assertEqual(impact.wind_gust, 0.0)

    def test_calm_air_has_no_impact(self):
        impact = calculate_wind_impact(0.0, 123.0, 45.0)
        self.assertEqual(impact.estimated_time_impact, 0.0)
        self.assertEqual(impact.condition, WindCondition.CALM)
        self.assertFalse(impact.headwind or impact.tailwind)


@pytest.mark.parametrize(
    "direction,bearing,expected",
    [(0, 0, 0), (90, 0, 90), (270, 0, 90), (180, 0, 180), (10, 350, 20), (350, 10, 20), (720, 0, 0)],
)
def test_relative_wind_angle_is_folded_into_half_circle(direction, bearing, expected):
    assert relative_wind_angle(direction, bearing) == pytest.approx(expected)


def test_wind_ladder_is_monotonic():
    order = list(WindCondition)
    speeds = [i * 0.25 for i in range(0, 160)]
    ranks = [order.index(classify_wind(s)) for s in speeds]
    assert ranks == sorted(ranks)
    assert classify_wind(0.0) == WindCondition.CALM
    assert classify_wind(40.0) == WindCondition.HURRICANE


def test_wind_ladder_boundaries_are_exclusive_upper_bounds():
    for bound, label in WIND_THRESHOLDS:
        assert classify_wind(bound - 0.01) == label
        assert classify_wind(bound) != label


class TestTemperatureImpact(unittest.TestCase):
    def test_optimal_band_has_no_impact(self):
        for temp in (15.0, 20.0, 25.0):
            impact = calculate_temperature_impact(temp)
            self.assertTrue(impact.optimal)
            self.assertEqual(impact.estimated_time_impact, 0.0)

    def test_cold_costs_half_a_percent_per_degree(self):
        impact = calculate_temperature_impact(5.0)
        self.assertFalse(impact.optimal)
        self.assertAlmostEqual(impact.estimated_time_impact, 5.0)

    def test_heat_costs_one_percent_per_degree(self):
        impact = calculate_temperature_impact(30.0)
        self.assertAlmostEqual(impact.estimated_time_impact, 5.0)

    def test_heat_is_penalized_more_than_cold(self):
        cold = calculate_temperature_impact(10.0).estimated_time_impact
        hot = calculate_temperature_impact(30.0).estimated_time_impact
        self.assertGreater(hot, cold)

    def test_feels_like_only_affects_perception(self):
        impact = calculate_temperature_impact(20.0, feels_like=10.0)
        self.assertEqual(impact.estimated_time_impact, 0.0)
        self.assertAlmostEqual(impact.perception_impact, 3.0)

    def test_feels_like_defaults_to_temperature(self):
        impact = calculate_temperature_impact(12.0)
        self.assertEqual(impact.feels_like, 12.0)
        self.assertEqual(impact.perception_impact, 0.0)

    def test_classification_bands(self):
        self.assertEqual(classify_temperature(-5), TemperatureCondition.FREEZING)
        self.assertEqual(classify_temperature(12), TemperatureCondition.COOL)
        self.assertEqual(classify_temperature(20), TemperatureCondition.COMFORTABLE)
        self.assertEqual(classify_temperature(33), TemperatureCondition.HOT)
        self.assertEqual(classify_temperature(40), TemperatureCondition.VERY_HOT)


class TestAirDensity(unittest.TestCase):
    def test_standard_atmosphere_matches_reference(self):
        density = calculate_air_density(15.0, 0.0, 1013.25)
        self.assertLess(abs(density - REFERENCE_AIR_DENSITY) / REFERENCE_AIR_DENSITY, 0.01)

    def test_hot_humid_air_is_thinner(self):
        self.assertLess(calculate_air_density(35.0, 90.0, 1013.25), calculate_air_density(5.0, 30.0, 1013.25))

    def test_impact_relative_to_reference(self):
        impact = calculate_air_density_impact(REFERENCE_AIR_DENSITY)
        self.assertAlmostEqual(impact.density_difference_percent, 0.0)
        self.assertAlmostEqual(impact.estimated_power_impact, 0.0)
        self.assertEqual(impact.condition, AirDensityCondition.NORMAL)

        thin = calculate_air_density_impact(1.1025)
        self.assertAlmostEqual(thin.density_difference_percent, -10.0)
        self.assertAlmostEqual(thin.estimated_power_impact, -3.0)

    def test_classification_extremes(self):
        self.assertEqual(classify_air_density(1.0), AirDensityCondition.VERY_LOW)
        self.assertEqual(classify_air_density(1.5), AirDensityCondition.VERY_HIGH)

    def test_resolve_prefers_supplied_density(self):
        self.assertEqual(resolve_air_density(_reading(air_density=1.3)), 1.3)
        self.assertAlmostEqual(
            resolve_air_density(_reading()),
            calculate_air_density(20.0, 50.0, 1013.25),
        )

    def test_annotate_returns_copy(self):
        reading = _reading()
        annotated = annotate_air_density(reading)
        self.assertIsNone(reading.air_density)
        self.assertIsNotNone(annotated.air_density)
        self.assertFalse(math.isnan(annotated.air_density))


if __name__ == "__main__":
    unittest.main()
