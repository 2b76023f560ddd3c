import unittest

import pytest

from segment_weather.domain import Coordinate
from segment_weather.errors import DecodeError
from segment_weather.polyline import decode, encode

CANONICAL = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"
CANONICAL_POINTS = [(38.5, -120.2), (40.7, -120.95), (43.252, -126.453)]


class TestDecode(unittest.TestCase):
    def test_canonical_example(self):
        coords = decode(CANONICAL)
        self.assertEqual(len(coords), 3)
        for got, expected in zip(coords, CANONICAL_POINTS):
            self.assertAlmostEqual(got.lat, expected[0], places=6)
            self.assertAlmostEqual(got.lng, expected[1], places=6)

    def test_returns_materialized_coordinates(self):
        coords = decode(CANONICAL)
        self.assertIsInstance(coords, list)
        self.assertIsInstance(coords[0], Coordinate)
        # safe to iterate twice
        self.assertEqual(list(coords), list(coords))

    def test_empty_input_yields_empty_list(self):
        self.assertEqual(decode(""), [])

    def test_encode_matches_canonical(self):
        self.assertEqual(encode([Coordinate(*p) for p in CANONICAL_POINTS]), CANONICAL)


@pytest.mark.parametrize(
    "encoded",
    [
        "_p~iF~ps|U_",  # ends inside a latitude chunk
        "_p~iF",  # latitude without longitude
        "_p~iF~ps|U_ulL",  # second point missing its longitude
    ],
)
def test_truncated_input_raises_decode_error(encoded):
    with pytest.raises(DecodeError):
        decode(encoded)


def test_characters_outside_alphabet_raise_decode_error():
    with pytest.raises(DecodeError):
        decode("_p~iF ps|U")


if __name__ == "__main__":
    unittest.main()
