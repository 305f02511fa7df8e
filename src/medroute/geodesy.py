#!/usr/bin/env python3
"""
Great-circle geometry on a spherical Earth.

All distances are in kilometers and all angles exposed to callers are in
degrees. Internally everything works in radians on a sphere of mean radius
6371 km; the only ellipsoidal figure is ``ellipsoidal_distance``, which
delegates to pyproj's WGS84 geodesic solver.

Positions may be given as Coordinates or as (latitude, longitude) pairs;
pairs that are not valid positions raise InvalidCoordinate.
"""

from dataclasses import dataclass
from typing import List, Sequence
import logging
import math

import pyproj

from .exceptions import UndefinedGreatCircle
from .geometry import Coordinate, CoordinateLike, as_coordinate

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

# Kilometers per degree of latitude, used by the planar offset projection
KM_PER_DEGREE = 111.0

# Central angles (radians) below this are treated as coincident points
_ANGLE_EPSILON = 1e-12

_COMPASS_8 = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]
_COMPASS_16 = [
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
]

_GEOD = pyproj.Geod(ellps="WGS84")


def angular_distance(pos1: CoordinateLike, pos2: CoordinateLike) -> float:
    """
    Calculate the central angle between two positions.

    Args:
        pos1: First position
        pos2: Second position

    Returns:
        Central angle in radians, in [0, pi]
    """
    pos1, pos2 = as_coordinate(pos1), as_coordinate(pos2)
    lat1, lon1 = math.radians(pos1.latitude), math.radians(pos1.longitude)
    lat2, lon2 = math.radians(pos2.latitude), math.radians(pos2.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a fraction of an ulp above 1 for antipodal points
    return 2 * math.asin(math.sqrt(min(1.0, a)))


def haversine_distance(pos1: CoordinateLike, pos2: CoordinateLike) -> float:
    """
    Calculate the haversine (great-circle) distance between two positions.

    Args:
        pos1: First position
        pos2: Second position

    Returns:
        Distance in kilometers
    """
    return EARTH_RADIUS_KM * angular_distance(pos1, pos2)


def calculate_bearing(pos1: CoordinateLike, pos2: CoordinateLike) -> float:
    """
    Calculate the initial bearing (forward azimuth) from pos1 toward pos2.

    Args:
        pos1: Starting position
        pos2: Target position

    Returns:
        Bearing in degrees in [0, 360). Coincident points give 0.0 (north).
    """
    pos1, pos2 = as_coordinate(pos1), as_coordinate(pos2)
    if pos1 == pos2:
        return 0.0

    lat1 = math.radians(pos1.latitude)
    lat2 = math.radians(pos2.latitude)
    dlon = math.radians(pos2.longitude - pos1.longitude)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        dlon
    )

    bearing = math.degrees(math.atan2(y, x)) % 360.0
    # -0.0 and values that round up to 360.0 both mean north
    if bearing >= 360.0:
        bearing = 0.0
    return bearing + 0.0


def compass_direction(bearing: float, points: int = 8) -> str:
    """
    Bucket a bearing into a compass point.

    With 8 points each bucket spans 45 degrees centred on its direction, so
    the boundaries sit 22.5 degrees either side of N, NE, E, ...

    Args:
        bearing: Bearing in degrees (any value, normalized modulo 360)
        points: 8 or 16

    Returns:
        Compass point abbreviation such as "NE" (or "NNE" with 16 points)

    Raises:
        ValueError: If points is neither 8 nor 16
    """
    if points == 8:
        names = _COMPASS_8
    elif points == 16:
        names = _COMPASS_16
    else:
        raise ValueError(f"Compass must have 8 or 16 points, got {points}")

    width = 360.0 / points
    index = int(((bearing % 360.0) + width / 2) // width) % points
    return names[index]


def interpolate(
    pos1: CoordinateLike, pos2: CoordinateLike, fraction: float
) -> Coordinate:
    """
    Find the point a given fraction of the way along the great circle from
    pos1 to pos2 (spherical linear interpolation).

    Args:
        pos1: Start of the arc
        pos2: End of the arc
        fraction: Position along the arc, 0 = pos1 and 1 = pos2

    Returns:
        Interpolated position. If pos1 and pos2 coincide, pos1 is returned
        for every fraction.

    Raises:
        ValueError: If fraction is outside [0, 1]
        UndefinedGreatCircle: If pos1 and pos2 are antipodal
    """
    pos1, pos2 = as_coordinate(pos1), as_coordinate(pos2)
    if not 0.0 <= fraction <= 1.0:
        raise ValueError(f"Fraction must be within [0, 1], got {fraction}")

    delta = angular_distance(pos1, pos2)
    if delta < _ANGLE_EPSILON:
        return pos1
    if fraction == 0.0:
        return pos1
    if fraction == 1.0:
        return pos2

    sin_delta = math.sin(delta)
    if sin_delta < _ANGLE_EPSILON:
        raise UndefinedGreatCircle(
            f"Points ({pos1.latitude}, {pos1.longitude}) and "
            f"({pos2.latitude}, {pos2.longitude}) are antipodal"
        )

    coef_a = math.sin((1 - fraction) * delta) / sin_delta
    coef_b = math.sin(fraction * delta) / sin_delta

    lat1, lon1 = math.radians(pos1.latitude), math.radians(pos1.longitude)
    lat2, lon2 = math.radians(pos2.latitude), math.radians(pos2.longitude)

    x = coef_a * math.cos(lat1) * math.cos(lon1) + coef_b * math.cos(lat2) * math.cos(
        lon2
    )
    y = coef_a * math.cos(lat1) * math.sin(lon1) + coef_b * math.cos(lat2) * math.sin(
        lon2
    )
    z = coef_a * math.sin(lat1) + coef_b * math.sin(lat2)

    latitude = math.degrees(math.atan2(z, math.sqrt(x * x + y * y)))
    longitude = math.degrees(math.atan2(y, x))
    return Coordinate(latitude, longitude)


def great_circle_waypoints(
    start: CoordinateLike, end: CoordinateLike, segments: int = 4
) -> List[Coordinate]:
    """
    Split the great circle from start to end into equal-angle segments.

    Args:
        start: First waypoint
        end: Last waypoint
        segments: Number of segments (at least 1)

    Returns:
        List of segments + 1 positions, starting with start and ending with end
    """
    if segments < 1:
        raise ValueError(f"At least one segment is required, got {segments}")
    return [interpolate(start, end, i / segments) for i in range(segments + 1)]


def calculate_cumulative_distances(route: Sequence[CoordinateLike]) -> List[float]:
    """
    Calculate cumulative distances along a polyline.

    Args:
        route: Sequence of positions

    Returns:
        List of cumulative distances in kilometers, same length as route
    """
    if not route:
        return []

    cumulative_distances = [0.0]
    for i in range(1, len(route)):
        segment_distance = haversine_distance(route[i - 1], route[i])
        cumulative_distances.append(cumulative_distances[-1] + segment_distance)

    return cumulative_distances


def path_distance(route: Sequence[CoordinateLike]) -> float:
    """Total great-circle length of a polyline in kilometers."""
    distances = calculate_cumulative_distances(route)
    return distances[-1] if distances else 0.0


def manhattan_distance(pos1: CoordinateLike, pos2: CoordinateLike) -> float:
    """
    City-block distance: north-south plus east-west legs, in kilometers.

    The east-west leg is scaled by the cosine of pos1's latitude.
    """
    pos1, pos2 = as_coordinate(pos1), as_coordinate(pos2)
    lat_leg = abs(pos2.latitude - pos1.latitude) * math.pi / 180 * EARTH_RADIUS_KM
    lon_leg = (
        abs(pos2.longitude - pos1.longitude)
        * math.pi
        / 180
        * EARTH_RADIUS_KM
        * math.cos(math.radians(pos1.latitude))
    )
    return lat_leg + lon_leg


def ellipsoidal_distance(pos1: CoordinateLike, pos2: CoordinateLike) -> float:
    """
    Geodesic distance on the WGS84 ellipsoid, in kilometers.

    Useful as a cross-check of the spherical figure, which can differ by up
    to about half a percent.
    """
    pos1, pos2 = as_coordinate(pos1), as_coordinate(pos2)
    _, _, distance_m = _GEOD.inv(
        pos1.longitude, pos1.latitude, pos2.longitude, pos2.latitude
    )
    return distance_m / 1000.0


def project_offset(
    center: CoordinateLike, distance_km: float, angle: float
) -> Coordinate:
    """
    Offset a position by a distance along a direction using a local planar
    approximation.

    Args:
        center: Origin of the offset
        distance_km: Offset distance in kilometers
        angle: Direction in radians, 0 = north, pi/2 = east

    Returns:
        Offset position. Latitude is clamped to [-90, 90] and longitude is
        wrapped into [-180, 180].
    """
    center = as_coordinate(center)
    # Longitude degrees shrink with cos(latitude); floor it to stay finite at the poles
    lon_scale = max(abs(math.cos(math.radians(center.latitude))), 1e-6)

    latitude = center.latitude + (distance_km / KM_PER_DEGREE) * math.cos(angle)
    longitude = center.longitude + (
        distance_km / (KM_PER_DEGREE * lon_scale)
    ) * math.sin(angle)

    latitude = max(-90.0, min(90.0, latitude))
    if not -180.0 <= longitude <= 180.0:
        longitude = (longitude + 180.0) % 360.0 - 180.0
    return Coordinate(latitude, longitude)


def distance_from_segment(
    point: CoordinateLike, seg_start: CoordinateLike, seg_end: CoordinateLike
) -> float:
    """
    Approximate the perpendicular distance from a point to a segment.

    Treats the three pairwise great-circle distances as the sides of a plane
    triangle and takes the height over the segment side from Heron's
    formula. The height over-estimates for obtuse triangles, so the result
    is capped at the nearer endpoint distance.

    Args:
        point: Point to measure from
        seg_start: Segment start
        seg_end: Segment end

    Returns:
        Distance in kilometers. A zero-length segment gives the distance to
        seg_start.
    """
    a = haversine_distance(point, seg_start)
    b = haversine_distance(point, seg_end)
    c = haversine_distance(seg_start, seg_end)

    if c == 0:
        return a

    s = (a + b + c) / 2
    area = math.sqrt(max(0.0, s * (s - a) * (s - b) * (s - c)))
    height = (2 * area) / c

    return min(height, min(a, b))


@dataclass(frozen=True)
class GeoSegment:
    """An ordered pair of positions joined by a great-circle arc."""

    start: Coordinate
    end: Coordinate

    def __post_init__(self):
        object.__setattr__(self, "start", as_coordinate(self.start))
        object.__setattr__(self, "end", as_coordinate(self.end))

    @property
    def distance_km(self) -> float:
        return haversine_distance(self.start, self.end)

    @property
    def initial_bearing_deg(self) -> float:
        return calculate_bearing(self.start, self.end)

    @property
    def compass_direction(self) -> str:
        return compass_direction(self.initial_bearing_deg)

    @property
    def midpoint(self) -> Coordinate:
        return interpolate(self.start, self.end, 0.5)

    def point_at(self, fraction: float) -> Coordinate:
        """Position a fraction of the way along the segment."""
        return interpolate(self.start, self.end, fraction)

    def distance_to(self, point: CoordinateLike) -> float:
        """Approximate perpendicular distance from point to this segment in km."""
        return distance_from_segment(point, self.start, self.end)
