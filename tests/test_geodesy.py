import pytest
import math
from medroute.exceptions import InvalidCoordinate, UndefinedGreatCircle
from medroute.geometry import Coordinate
from medroute.geodesy import (
    haversine_distance,
    calculate_bearing,
    compass_direction,
    interpolate,
    great_circle_waypoints,
    calculate_cumulative_distances,
    path_distance,
    manhattan_distance,
    ellipsoidal_distance,
    project_offset,
    distance_from_segment,
    GeoSegment,
)

BHOPAL = Coordinate(23.25, 77.40)
NEW_YORK = Coordinate(40.7128, -74.0060)
LONDON = Coordinate(51.5074, -0.1278)


def test_haversine_distance_known_values():
    # Paris to London
    paris = Coordinate(latitude=48.8566, longitude=2.3522)
    assert haversine_distance(paris, LONDON) == pytest.approx(343.5, abs=1)


def test_haversine_distance_new_york_london():
    assert haversine_distance(NEW_YORK, LONDON) == pytest.approx(5570, abs=5)


def test_haversine_distance_zero_distance():
    assert haversine_distance(NEW_YORK, NEW_YORK) == 0.0


def test_haversine_one_degree_of_longitude_at_equator():
    distance = haversine_distance(Coordinate(0, 0), Coordinate(0, 1))
    assert distance == pytest.approx(6371 * math.pi / 180, abs=1e-9)


def test_haversine_antipodal_points():
    distance = haversine_distance(Coordinate(0, 0), Coordinate(0, 180))
    assert distance == pytest.approx(math.pi * 6371, abs=1e-6)


def test_bearing_cardinal_directions():
    origin = Coordinate(0, 0)
    assert calculate_bearing(origin, Coordinate(1, 0)) == pytest.approx(0.0)
    assert calculate_bearing(origin, Coordinate(0, 1)) == pytest.approx(90.0)
    assert calculate_bearing(origin, Coordinate(-1, 0)) == pytest.approx(180.0)
    assert calculate_bearing(origin, Coordinate(0, -1)) == pytest.approx(270.0)


def test_bearing_of_coincident_points_is_north():
    assert calculate_bearing(BHOPAL, BHOPAL) == 0.0
    assert compass_direction(calculate_bearing(BHOPAL, BHOPAL)) == "N"


def test_bearing_new_york_to_london_is_north_east():
    bearing = calculate_bearing(NEW_YORK, LONDON)
    assert bearing == pytest.approx(51.2, abs=0.5)
    assert compass_direction(bearing) == "NE"


@pytest.mark.parametrize(
    "bearing,expected",
    [
        (0, "N"),
        (22.4, "N"),
        (22.5, "NE"),
        (45, "NE"),
        (90, "E"),
        (135, "SE"),
        (180, "S"),
        (225, "SW"),
        (270, "W"),
        (315, "NW"),
        (337.4, "NW"),
        (337.5, "N"),
        (359.9, "N"),
        (-45, "NW"),
        (405, "NE"),
    ],
)
def test_compass_direction_eight_points(bearing, expected):
    assert compass_direction(bearing) == expected


def test_compass_direction_sixteen_points():
    assert compass_direction(22.5, points=16) == "NNE"
    assert compass_direction(200, points=16) == "SSW"
    assert compass_direction(350, points=16) == "N"


def test_compass_direction_rejects_other_point_counts():
    with pytest.raises(ValueError):
        compass_direction(10, points=4)


def test_interpolate_endpoints():
    end = Coordinate(23.30, 77.45)
    assert interpolate(BHOPAL, end, 0.0) == BHOPAL
    assert interpolate(BHOPAL, end, 1.0) == end


def test_interpolate_midpoint_along_equator():
    midpoint = interpolate(Coordinate(0, 0), Coordinate(0, 10), 0.5)
    assert midpoint.latitude == pytest.approx(0.0, abs=1e-9)
    assert midpoint.longitude == pytest.approx(5.0, abs=1e-9)


def test_interpolate_along_meridian():
    point = interpolate(Coordinate(10, 20), Coordinate(40, 20), 1 / 3)
    assert point.latitude == pytest.approx(20.0, abs=1e-9)
    assert point.longitude == pytest.approx(20.0, abs=1e-9)


def test_interpolate_distance_is_proportional():
    fraction = 0.37
    point = interpolate(NEW_YORK, LONDON, fraction)
    total = haversine_distance(NEW_YORK, LONDON)
    assert haversine_distance(NEW_YORK, point) == pytest.approx(
        fraction * total, abs=1e-6
    )
    assert haversine_distance(point, LONDON) == pytest.approx(
        (1 - fraction) * total, abs=1e-6
    )


def test_interpolate_coincident_points_returns_start():
    assert interpolate(BHOPAL, BHOPAL, 0.5) == BHOPAL


def test_interpolate_crosses_antimeridian():
    point = interpolate(Coordinate(0, 170), Coordinate(0, -170), 0.5)
    assert abs(point.longitude) == pytest.approx(180.0, abs=1e-9)


def test_interpolate_antipodal_points_raises():
    with pytest.raises(UndefinedGreatCircle):
        interpolate(Coordinate(0, 0), Coordinate(0, 180), 0.5)


def test_undefined_great_circle_is_a_value_error():
    with pytest.raises(ValueError):
        interpolate(Coordinate(90, 0), Coordinate(-90, 0), 0.25)


@pytest.mark.parametrize("fraction", [-0.1, 1.5])
def test_interpolate_rejects_fraction_outside_unit_interval(fraction):
    with pytest.raises(ValueError):
        interpolate(BHOPAL, LONDON, fraction)


def test_great_circle_waypoints():
    waypoints = great_circle_waypoints(Coordinate(0, 0), Coordinate(0, 8), segments=4)
    assert len(waypoints) == 5
    assert waypoints[0] == Coordinate(0, 0)
    assert waypoints[-1] == Coordinate(0, 8)
    assert [w.longitude for w in waypoints] == pytest.approx([0, 2, 4, 6, 8])


def test_great_circle_waypoints_requires_a_segment():
    with pytest.raises(ValueError):
        great_circle_waypoints(BHOPAL, LONDON, segments=0)


def test_calculate_cumulative_distances_simple_route():
    route = [Coordinate(0.0, 0.0), Coordinate(0.0, 1.0), Coordinate(0.0, 2.0)]
    distances = calculate_cumulative_distances(route)
    assert len(distances) == 3
    assert distances[0] == 0.0
    assert distances[2] == pytest.approx(2 * haversine_distance(route[0], route[1]))
    assert path_distance(route) == distances[-1]


def test_calculate_cumulative_distances_empty_route():
    assert calculate_cumulative_distances([]) == []
    assert path_distance([]) == 0.0


def test_manhattan_distance_is_at_least_haversine():
    a = Coordinate(23.25, 77.40)
    b = Coordinate(23.30, 77.45)
    assert manhattan_distance(a, b) >= haversine_distance(a, b)
    assert manhattan_distance(a, a) == 0.0


def test_ellipsoidal_distance_close_to_spherical():
    spherical = haversine_distance(NEW_YORK, LONDON)
    ellipsoidal = ellipsoidal_distance(NEW_YORK, LONDON)
    assert ellipsoidal == pytest.approx(spherical, rel=0.006)


def test_project_offset_north_and_east():
    center = Coordinate(0, 0)
    north = project_offset(center, 111.0, 0.0)
    assert north.latitude == pytest.approx(1.0)
    assert north.longitude == pytest.approx(0.0, abs=1e-12)

    east = project_offset(center, 111.0, math.pi / 2)
    assert east.latitude == pytest.approx(0.0, abs=1e-12)
    assert east.longitude == pytest.approx(1.0)


def test_project_offset_stays_in_range_near_pole_and_antimeridian():
    near_pole = project_offset(Coordinate(89.9, 0), 50.0, 0.0)
    assert near_pole.latitude == 90.0

    wrapped = project_offset(Coordinate(0, 179.9), 50.0, math.pi / 2)
    assert -180.0 <= wrapped.longitude <= 180.0
    assert wrapped.longitude < 0


def test_distance_from_segment_perpendicular():
    start = Coordinate(0, 0)
    end = Coordinate(0, 2)
    point = Coordinate(0.5, 1)
    expected = haversine_distance(point, Coordinate(0, 1))
    assert distance_from_segment(point, start, end) == pytest.approx(expected, rel=0.02)


def test_distance_from_segment_capped_by_nearest_endpoint():
    start = Coordinate(0, 0)
    end = Coordinate(0, 1)
    beyond = Coordinate(0.1, 3)
    assert distance_from_segment(beyond, start, end) <= haversine_distance(beyond, end)


def test_distance_from_zero_length_segment():
    point = Coordinate(1, 1)
    assert distance_from_segment(point, BHOPAL, BHOPAL) == haversine_distance(
        point, BHOPAL
    )


def test_geo_segment_properties():
    segment = GeoSegment(Coordinate(0, 0), Coordinate(0, 10))
    assert segment.distance_km == pytest.approx(10 * 6371 * math.pi / 180)
    assert segment.initial_bearing_deg == pytest.approx(90.0)
    assert segment.compass_direction == "E"
    assert segment.midpoint.longitude == pytest.approx(5.0)
    assert segment.point_at(0.1).longitude == pytest.approx(1.0)
    assert segment.distance_to(Coordinate(0, 5)) == pytest.approx(0.0, abs=1e-3)


def test_functions_accept_latitude_longitude_pairs():
    assert haversine_distance((23.25, 77.40), (23.30, 77.45)) == pytest.approx(
        haversine_distance(BHOPAL, Coordinate(23.30, 77.45))
    )
    assert calculate_bearing((0.0, 0.0), (1.0, 0.0)) == 0.0
    assert manhattan_distance((0.0, 0.0), [0.0, 1.0]) == pytest.approx(
        6371 * math.pi / 180
    )
    assert ellipsoidal_distance((0.0, 0.0), (0.0, 1.0)) == pytest.approx(111.32, rel=1e-3)
    assert path_distance([(0.0, 0.0), (0.0, 1.0), (0.0, 2.0)]) == pytest.approx(
        2 * 6371 * math.pi / 180
    )
    assert project_offset((0.0, 0.0), 111.0, 0.0) == Coordinate(1.0, 0.0)


def test_interpolate_pairs_return_coordinates():
    assert interpolate((0.0, 0.0), (0.0, 10.0), 0.0) == Coordinate(0.0, 0.0)
    assert interpolate((5.0, 5.0), (5.0, 5.0), 0.5) == Coordinate(5.0, 5.0)
    assert isinstance(interpolate((0.0, 0.0), (0.0, 10.0), 0.5), Coordinate)


def test_geo_segment_converts_pairs():
    segment = GeoSegment((0.0, 0.0), (0.0, 10.0))
    assert segment.start == Coordinate(0.0, 0.0)
    assert segment.end == Coordinate(0.0, 10.0)
    assert segment.distance_to((0.0, 5.0)) == pytest.approx(0.0, abs=1e-3)


@pytest.mark.parametrize(
    "call",
    [
        lambda bad: haversine_distance(bad, BHOPAL),
        lambda bad: calculate_bearing(BHOPAL, bad),
        lambda bad: interpolate(bad, BHOPAL, 0.5),
        lambda bad: manhattan_distance(bad, BHOPAL),
        lambda bad: ellipsoidal_distance(BHOPAL, bad),
        lambda bad: project_offset(bad, 1.0, 0.0),
        lambda bad: distance_from_segment(bad, BHOPAL, LONDON),
        lambda bad: GeoSegment(bad, BHOPAL),
    ],
)
@pytest.mark.parametrize("bad", [(95.0, 0.0), (0.0,), "23.25,77.40", None])
def test_invalid_positions_raise_invalid_coordinate(call, bad):
    with pytest.raises(InvalidCoordinate):
        call(bad)
