import pytest
from medroute.geometry import Coordinate
from medroute.regions import (
    GENERIC_LANDMARKS,
    REGION_LANDMARKS,
    find_region,
    landmark_vocabulary,
)


@pytest.mark.parametrize(
    "position,expected",
    [
        (Coordinate(40.75, -74.0), "nyc"),
        (Coordinate(51.5, -0.1), "london"),
        (Coordinate(48.85, 2.35), "paris"),
        (Coordinate(23.25, 77.40), "urban"),
        (Coordinate(40.7, -74.1), "nyc"),  # box corner counts as inside
        (Coordinate(40.69, -74.0), "urban"),
    ],
)
def test_find_region(position, expected):
    assert find_region(position) == expected


def test_landmark_vocabulary():
    assert landmark_vocabulary(Coordinate(51.5, -0.1)) == REGION_LANDMARKS["london"]
    assert landmark_vocabulary(Coordinate(-33.87, 151.21)) == GENERIC_LANDMARKS


def test_regions_accept_pairs():
    assert find_region((51.5, -0.1)) == "london"
    assert landmark_vocabulary([48.85, 2.35]) == REGION_LANDMARKS["paris"]
