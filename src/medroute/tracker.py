#!/usr/bin/env python3
"""
Distance tracking for a moving vehicle.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple, Optional
import logging

from .config import Clock, utc_now
from .geodesy import haversine_distance
from .geometry import Coordinate, CoordinateLike, as_coordinate

logger = logging.getLogger(__name__)

# Elapsed time below this (in hours) is too short for a meaningful speed
_MIN_ELAPSED_HOURS = 1e-9


class TrackerUpdate(NamedTuple):
    """Result of feeding one position sample to a tracker."""

    distance_traveled_km: float
    total_distance_km: float
    average_speed_kmh: float


@dataclass(frozen=True)
class DistanceTrackerState:
    """Snapshot of a tracker's trip."""

    start_position: Optional[Coordinate] = None
    last_position: Optional[Coordinate] = None
    cumulative_distance_km: float = 0.0
    started_at: Optional[datetime] = None


class DistanceTracker:
    """Accumulates the distance covered by successive position samples.

    One tracker follows one trip and expects a single caller; it does no
    locking. Calling ``update`` before ``start`` (or after ``reset``) starts
    the trip at that position and reports zero distance and speed.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or utc_now
        self._start_position: Optional[Coordinate] = None
        self._last_position: Optional[Coordinate] = None
        self._total_distance = 0.0
        self._started_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self._started_at is not None

    @property
    def state(self) -> DistanceTrackerState:
        return DistanceTrackerState(
            start_position=self._start_position,
            last_position=self._last_position,
            cumulative_distance_km=self._total_distance,
            started_at=self._started_at,
        )

    def start(self, position: CoordinateLike) -> None:
        """Begin a trip at position, discarding any previous trip."""
        position = as_coordinate(position)
        self._start_position = position
        self._last_position = position
        self._total_distance = 0.0
        self._started_at = self.clock()
        logger.debug(
            f"Tracking started at ({position.latitude:.5f}, {position.longitude:.5f})"
        )

    def update(self, position: CoordinateLike) -> TrackerUpdate:
        """
        Add the leg from the previous sample to position.

        Args:
            position: Current position

        Returns:
            TrackerUpdate with the leg length, the running total and the
            average speed since start (0 when no time has elapsed)
        """
        position = as_coordinate(position)
        if self._last_position is None or self._started_at is None:
            self.start(position)
            return TrackerUpdate(0.0, 0.0, 0.0)

        distance_traveled = haversine_distance(self._last_position, position)
        self._total_distance += distance_traveled
        self._last_position = position

        elapsed_hours = (self.clock() - self._started_at).total_seconds() / 3600
        if elapsed_hours > _MIN_ELAPSED_HOURS:
            average_speed = self._total_distance / elapsed_hours
        else:
            average_speed = 0.0

        return TrackerUpdate(distance_traveled, self._total_distance, average_speed)

    def reset(self) -> None:
        """Forget the current trip."""
        self._start_position = None
        self._last_position = None
        self._total_distance = 0.0
        self._started_at = None
