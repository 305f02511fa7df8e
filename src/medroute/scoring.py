#!/usr/bin/env python3
"""
Travel-time, priority and formatting helpers for candidate destinations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple
import logging
import math

from .config import EngineConfig, utc_now
from .geodesy import calculate_bearing, compass_direction, haversine_distance
from .geometry import Coordinate, CoordinateLike, as_coordinate

if TYPE_CHECKING:
    from .facilities import MedicalFacility

logger = logging.getLogger(__name__)

KM_PER_MILE = 1.60934
MILES_PER_KM = 0.621371

_DEFAULT_CONFIG = EngineConfig()


class Priority(Enum):
    """Dispatch priority tier, highest first."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def priority(
    distance_km: float, emergency_ready: bool, config: Optional[EngineConfig] = None
) -> Priority:
    """
    Assign a priority tier from distance and destination readiness.

    A destination that is not emergency ready is always low priority.

    Args:
        distance_km: Straight-line distance to the destination
        emergency_ready: Whether the destination can take an emergency now
        config: Thresholds (defaults: high within 5 km, medium within 15 km)

    Returns:
        Priority tier
    """
    config = config or _DEFAULT_CONFIG
    if emergency_ready and distance_km <= config.high_priority_km:
        return Priority.HIGH
    if emergency_ready and distance_km <= config.medium_priority_km:
        return Priority.MEDIUM
    return Priority.LOW


def duration(
    distance_km: float, expedited: bool = False, config: Optional[EngineConfig] = None
) -> float:
    """
    Estimate driving time for a distance.

    Normal mode drives at the base speed slowed by the traffic penalty.
    Expedited mode is a fixed discount on the normal-mode time, not a
    separate speed model.

    Args:
        distance_km: Distance to cover in kilometers
        expedited: Whether lights-and-sirens mode applies
        config: Speed, penalty and discount constants

    Returns:
        Duration in minutes

    Raises:
        ValueError: If distance_km is negative
    """
    if distance_km < 0:
        raise ValueError(f"Distance must not be negative, got {distance_km}")

    config = config or _DEFAULT_CONFIG
    normal = (distance_km / config.base_speed_kmh) * 60 * config.traffic_penalty
    if expedited:
        return normal * config.expedited_factor
    return normal


def format_duration(minutes: float) -> str:
    """Format minutes as "12 min" below an hour, otherwise "1h 5m"."""
    if minutes < 60:
        return f"{math.ceil(minutes)} min"
    hours = int(minutes // 60)
    remaining_minutes = math.ceil(minutes % 60)
    if remaining_minutes == 60:
        hours += 1
        remaining_minutes = 0
    return f"{hours}h {remaining_minutes}m"


def format_minutes(minutes: float) -> str:
    """Format a duration the way route exports show it, e.g. "17 minutes"."""
    return f"{math.ceil(minutes)} minutes"


def format_distance(km: float, unit: str = "auto") -> str:
    """
    Format a distance for display.

    Args:
        km: Distance in kilometers
        unit: "km", "mi", or "auto" (meters below 1 km, else km)

    Returns:
        Formatted distance such as "3.2 km", "2.0 mi" or "850 m"
    """
    if unit == "mi":
        return f"{km * MILES_PER_KM:.1f} mi"
    if unit == "km":
        return f"{km:.1f} km"
    if unit != "auto":
        raise ValueError(f"Unknown distance unit: {unit}")
    if km < 1:
        return f"{round(km * 1000)} m"
    return f"{km:.1f} km"


def distance_category(km: float) -> str:
    """Bucket a distance into very-close / close / medium / far / very-far."""
    if km <= 2:
        return "very-close"
    if km <= 5:
        return "close"
    if km <= 15:
        return "medium"
    if km <= 50:
        return "far"
    return "very-far"


def estimated_arrival(duration_min: float, now: Optional[datetime] = None) -> datetime:
    """Arrival time after driving for duration_min starting at now."""
    now = now or utc_now()
    return now + timedelta(minutes=duration_min)


@dataclass(frozen=True)
class Destination:
    """A candidate destination such as a hospital."""

    id: str
    name: str
    coordinates: Coordinate
    emergency_ready: bool = True
    address: str = ""
    phone: str = ""
    specialties: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "coordinates", as_coordinate(self.coordinates))


@dataclass(frozen=True)
class DestinationEstimate:
    """Distance, time and priority figures from a position to a destination."""

    name: str
    coordinates: Coordinate
    straight_line_km: float
    road_estimate_km: float
    duration_min: float
    expedited_duration_min: float
    bearing_deg: float
    direction: str
    priority: Priority
    destination: Optional[Destination] = None

    @property
    def travel_time(self) -> str:
        return format_duration(self.duration_min)

    @property
    def expedited_travel_time(self) -> str:
        return format_duration(self.expedited_duration_min)

    @property
    def distance_km_text(self) -> str:
        return format_distance(self.straight_line_km, "km")

    @property
    def distance_mi_text(self) -> str:
        return format_distance(self.straight_line_km, "mi")


def _estimate(
    position: CoordinateLike,
    target: CoordinateLike,
    name: str,
    emergency_ready: bool,
    config: EngineConfig,
    destination: Optional[Destination] = None,
) -> DestinationEstimate:
    position, target = as_coordinate(position), as_coordinate(target)
    straight_line = haversine_distance(position, target)
    bearing = calculate_bearing(position, target)
    return DestinationEstimate(
        name=name,
        coordinates=target,
        straight_line_km=straight_line,
        road_estimate_km=straight_line * config.road_distance_factor,
        duration_min=duration(straight_line, False, config),
        expedited_duration_min=duration(straight_line, True, config),
        bearing_deg=bearing,
        direction=compass_direction(bearing),
        priority=priority(straight_line, emergency_ready, config),
        destination=destination,
    )


def estimate_destination(
    position: CoordinateLike,
    destination: Destination,
    config: Optional[EngineConfig] = None,
) -> DestinationEstimate:
    """
    Compute distance, bearing, durations and priority toward a destination.

    Args:
        position: Current (ambulance) position
        destination: Candidate destination
        config: Scoring constants

    Returns:
        DestinationEstimate for the destination
    """
    return _estimate(
        position,
        destination.coordinates,
        destination.name,
        destination.emergency_ready,
        config or _DEFAULT_CONFIG,
        destination,
    )


def estimate_facility(
    position: CoordinateLike,
    facility: "MedicalFacility",
    config: Optional[EngineConfig] = None,
) -> DestinationEstimate:
    """
    Compute the same figures toward a medical facility.

    A facility counts as ready when it is operational and accepts
    emergencies.
    """
    return _estimate(
        position,
        facility.coordinates,
        facility.name,
        facility.accepts_emergencies,
        config or _DEFAULT_CONFIG,
    )


def rank_destinations(
    position: CoordinateLike,
    destinations: List[Destination],
    config: Optional[EngineConfig] = None,
) -> List[DestinationEstimate]:
    """
    Estimate every destination and order them by priority, then distance.

    Args:
        position: Current position
        destinations: Candidate destinations
        config: Scoring constants

    Returns:
        Estimates, highest priority and nearest first
    """
    position = as_coordinate(position)
    estimates = [estimate_destination(position, d, config) for d in destinations]
    estimates.sort(key=lambda e: (e.priority.rank, e.straight_line_km))
    logger.debug(
        f"Ranked {len(estimates)} destinations from "
        f"({position.latitude:.4f}, {position.longitude:.4f})"
    )
    return estimates
