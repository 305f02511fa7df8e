import pytest
import math
import random
from datetime import datetime, timezone
from hypothesis import given, settings, strategies as st, assume
from medroute.config import EngineConfig
from medroute.geometry import Coordinate
from medroute.geodesy import (
    angular_distance,
    haversine_distance,
    calculate_bearing,
    compass_direction,
    interpolate,
)
from medroute.generator import CheckpointGenerator, find_nearest
from medroute.scoring import duration, priority, Priority
from medroute.tracker import DistanceTracker

# Strategy for valid GPS coordinates
valid_lat = st.floats(-85.0, 85.0)
valid_lon = st.floats(-180.0, 180.0)
valid_position = st.builds(Coordinate, latitude=valid_lat, longitude=valid_lon)

# Positions within a few degrees of Bhopal, for routes of a manageable length
nearby_position = st.builds(
    Coordinate,
    latitude=st.floats(20.0, 26.0),
    longitude=st.floats(74.0, 80.0),
)

FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def far_from_antipodal(pos1, pos2):
    return angular_distance(pos1, pos2) < math.pi - 1e-3


class TestDistanceProperties:

    @given(valid_position, valid_position)
    def test_distance_is_non_negative(self, pos1, pos2):
        """Distance between any two points is always non-negative."""
        assert haversine_distance(pos1, pos2) >= 0

    @given(valid_position)
    def test_distance_to_self_is_zero(self, pos):
        """Distance from a point to itself is always zero."""
        assert haversine_distance(pos, pos) == 0

    @given(valid_position, valid_position)
    def test_distance_is_symmetric(self, pos1, pos2):
        """Distance from A to B equals distance from B to A."""
        assert abs(haversine_distance(pos1, pos2) - haversine_distance(pos2, pos1)) < 1e-9

    @given(valid_position, valid_position, valid_position)
    def test_triangle_inequality(self, pos1, pos2, pos3):
        """For any triangle, sum of two sides >= third side."""
        d12 = haversine_distance(pos1, pos2)
        d23 = haversine_distance(pos2, pos3)
        d13 = haversine_distance(pos1, pos3)
        assert d12 + d23 >= d13 - 1e-6

    @given(valid_position, valid_position)
    def test_distance_bounded_by_half_circumference(self, pos1, pos2):
        assert haversine_distance(pos1, pos2) <= math.pi * 6371.0 + 1e-9


class TestBearingProperties:

    @given(valid_position, valid_position)
    def test_bearing_range(self, pos1, pos2):
        """Bearing is always in range [0, 360)."""
        bearing = calculate_bearing(pos1, pos2)
        assert 0 <= bearing < 360

    @given(st.floats(-1000, 1000))
    def test_compass_direction_is_a_known_point(self, bearing):
        assert compass_direction(bearing) in {"N", "NE", "E", "SE", "S", "SW", "W", "NW"}


class TestInterpolationProperties:

    @given(valid_position, valid_position)
    def test_endpoints(self, pos1, pos2):
        assume(far_from_antipodal(pos1, pos2))
        start = interpolate(pos1, pos2, 0.0)
        end = interpolate(pos1, pos2, 1.0)
        assert haversine_distance(start, pos1) < 1e-6
        assert haversine_distance(end, pos2) < 1e-6

    @given(
        valid_position,
        valid_position,
        st.floats(0.0, 1.0),
        st.floats(0.0, 1.0),
    )
    def test_distance_from_start_is_monotone(self, pos1, pos2, f1, f2):
        assume(far_from_antipodal(pos1, pos2))
        low, high = sorted((f1, f2))
        d_low = haversine_distance(pos1, interpolate(pos1, pos2, low))
        d_high = haversine_distance(pos1, interpolate(pos1, pos2, high))
        assert d_low <= d_high + 1e-6

    @given(valid_position, valid_position, st.floats(0.0, 1.0))
    def test_interpolated_point_lies_on_the_arc(self, pos1, pos2, fraction):
        assume(far_from_antipodal(pos1, pos2))
        point = interpolate(pos1, pos2, fraction)
        total = haversine_distance(pos1, pos2)
        along = haversine_distance(pos1, point) + haversine_distance(point, pos2)
        assert along == pytest.approx(total, abs=1e-6)


class TestCheckpointProperties:

    @settings(max_examples=50, deadline=None)
    @given(nearby_position, nearby_position, st.floats(1.0, 50.0))
    def test_distances_strictly_increase_and_match_positions(
        self, origin, destination, spacing
    ):
        assume(haversine_distance(origin, destination) > 0.01)
        generator = CheckpointGenerator(
            rng=random.Random(0), clock=lambda: FIXED_NOW
        )
        route = generator.generate(origin, destination, "Hospital", spacing_km=spacing)

        distances = [cp.distance_from_start_km for cp in route]
        assert all(a < b for a, b in zip(distances, distances[1:]))
        for checkpoint in route:
            assert checkpoint.distance_from_start_km == pytest.approx(
                haversine_distance(origin, checkpoint.coordinates), abs=0.05
            )
            assert 0 <= checkpoint.distance_from_start_km <= route.total_distance_km + 1e-6

    @settings(max_examples=100, deadline=None)
    @given(
        nearby_position,
        st.floats(-1e-6, 1e-6),
        st.floats(-1e-6, 1e-6),
        st.integers(0, 5),
    )
    def test_nearly_coincident_endpoints_never_fail(
        self, origin, dlat, dlon, min_checkpoints
    ):
        """Endpoints within about a tenth of a meter give a well-formed route."""
        destination = Coordinate(origin.latitude + dlat, origin.longitude + dlon)
        generator = CheckpointGenerator(
            config=EngineConfig(min_checkpoints=min_checkpoints),
            rng=random.Random(0),
            clock=lambda: FIXED_NOW,
        )
        route = generator.generate(origin, destination, "Hospital")

        assert len(route) <= min_checkpoints
        distances = [cp.distance_from_start_km for cp in route]
        assert all(a < b for a, b in zip(distances, distances[1:]))

    @settings(max_examples=50, deadline=None)
    @given(nearby_position, nearby_position, st.floats(1.0, 20.0))
    def test_regular_checkpoints_sit_at_spacing_multiples(
        self, origin, destination, spacing
    ):
        total = haversine_distance(origin, destination)
        assume(total >= 2 * spacing)
        route = CheckpointGenerator(rng=random.Random(0)).generate(
            origin, destination, "Hospital", spacing_km=spacing
        )
        regular = [cp for cp in route if cp.id != "checkpoint-destination"]
        assert len(regular) == math.floor(total / spacing)
        for index, checkpoint in enumerate(regular, start=1):
            assert checkpoint.distance_from_start_km == pytest.approx(
                index * spacing, abs=0.05
            )

    @settings(max_examples=30, deadline=None)
    @given(nearby_position, nearby_position, st.lists(nearby_position, min_size=1, max_size=10))
    def test_find_nearest_matches_brute_force(self, origin, destination, probes):
        assume(haversine_distance(origin, destination) > 1.0)
        route = CheckpointGenerator(rng=random.Random(0)).generate(
            origin, destination, "Hospital", spacing_km=10.0
        )
        for probe in probes:
            nearest, distance = find_nearest(probe, route)
            expected = min(haversine_distance(probe, cp.coordinates) for cp in route)
            assert distance == expected
            assert haversine_distance(probe, nearest.coordinates) == expected


class TestScoringProperties:

    @given(st.floats(0.0, 20000.0))
    def test_expedited_is_never_slower(self, distance):
        assert duration(distance, expedited=True) <= duration(distance)

    @given(st.floats(0.0, 10000.0), st.floats(0.0, 10000.0))
    def test_duration_is_monotone(self, d1, d2):
        low, high = sorted((d1, d2))
        assert duration(low) <= duration(high)

    @given(st.floats(0.0, 1000.0))
    def test_unready_destination_is_low_priority(self, distance):
        assert priority(distance, False) == Priority.LOW

    @given(st.floats(0.0, 1000.0), st.floats(0.0, 1000.0))
    def test_priority_never_improves_with_distance(self, d1, d2):
        low, high = sorted((d1, d2))
        assert priority(low, True).rank <= priority(high, True).rank

    def test_thresholds_follow_config(self):
        config = EngineConfig(high_priority_km=1.0, medium_priority_km=2.0)
        assert priority(1.5, True, config) == Priority.MEDIUM


class TestTrackerProperties:

    @given(st.lists(nearby_position, min_size=1, max_size=20))
    def test_total_is_sum_of_legs(self, positions):
        tracker = DistanceTracker(clock=lambda: FIXED_NOW)
        tracker.start(positions[0])
        result = None
        for position in positions[1:]:
            result = tracker.update(position)

        expected = sum(
            haversine_distance(a, b) for a, b in zip(positions, positions[1:])
        )
        assert tracker.state.cumulative_distance_km == pytest.approx(expected)
        if result is not None:
            assert result.total_distance_km == pytest.approx(expected)
            assert result.average_speed_kmh == 0.0
