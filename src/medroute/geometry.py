#!/usr/bin/env python3
"""
Coordinate value type shared by every medroute module.
"""

from dataclasses import dataclass
from typing import Iterator, Sequence, Union
import math

from .exceptions import InvalidCoordinate


@dataclass(frozen=True)
class Coordinate:
    """A geographic position in decimal degrees.

    Raises:
        InvalidCoordinate: If either component is not a finite number or is
            outside [-90, 90] / [-180, 180].
    """

    latitude: float
    longitude: float

    def __post_init__(self):
        for name in ("latitude", "longitude"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidCoordinate(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise InvalidCoordinate(f"{name} must be finite, got {value!r}")
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidCoordinate(
                f"Latitude {self.latitude} is outside the range [-90, 90]"
            )
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidCoordinate(
                f"Longitude {self.longitude} is outside the range [-180, 180]"
            )

    def __iter__(self) -> Iterator[float]:
        """Allow unpacking as ``lat, lon = coordinate``."""
        return iter((self.latitude, self.longitude))

    def as_tuple(self) -> tuple:
        return (self.latitude, self.longitude)

    @classmethod
    def from_pair(cls, pair: Sequence[float]) -> "Coordinate":
        """Build a Coordinate from a ``(latitude, longitude)`` sequence."""
        if len(pair) != 2:
            raise InvalidCoordinate(
                f"Expected a (latitude, longitude) pair, got {len(pair)} values"
            )
        return cls(float(pair[0]), float(pair[1]))


CoordinateLike = Union[Coordinate, Sequence[float]]


def as_coordinate(value: CoordinateLike) -> Coordinate:
    """Return ``value`` as a Coordinate, converting pairs and validating them."""
    if isinstance(value, Coordinate):
        return value
    try:
        return Coordinate.from_pair(value)
    except (TypeError, ValueError) as e:
        if isinstance(e, InvalidCoordinate):
            raise
        raise InvalidCoordinate(f"Cannot interpret {value!r} as a coordinate: {e}")


def parse_coordinate(text: str) -> Coordinate:
    """
    Parse a "lat,lon" string such as ``"23.25,77.40"``.

    Args:
        text: Latitude and longitude separated by a comma

    Returns:
        The parsed Coordinate

    Raises:
        InvalidCoordinate: If the text cannot be parsed or is out of range
    """
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2:
        raise InvalidCoordinate(f"Expected 'lat,lon', got {text!r}")
    try:
        latitude, longitude = float(parts[0]), float(parts[1])
    except ValueError:
        raise InvalidCoordinate(f"Expected numeric 'lat,lon', got {text!r}")
    return Coordinate(latitude, longitude)
