#!/usr/bin/env python3
"""Data structures for checkpoints placed along an emergency route."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple
import logging

from .geometry import Coordinate

logger = logging.getLogger(__name__)

# Slack allowed when checking stored distances against the route length
_DISTANCE_TOLERANCE_KM = 1e-6


class CheckpointStatus(Enum):
    """Enumeration for checkpoint operating status."""

    OPERATIONAL = "operational"
    MAINTENANCE = "maintenance"

    def __str__(self) -> str:
        return self.value


class RoadVisibility(Enum):
    """How visible a checkpoint is from the road."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"

    def __str__(self) -> str:
        return self.value


class StoppingAreaType(Enum):
    """Kind of place an ambulance can pull over at a checkpoint."""

    PARKING_LOT = "parking_lot"
    EMERGENCY_BAY = "emergency_bay"
    FIRE_STATION = "fire_station"
    POLICE_STATION = "police_station"
    HOSPITAL_ENTRANCE = "hospital_entrance"


@dataclass(frozen=True)
class StoppingArea:
    area_type: StoppingAreaType
    description: str
    capacity: int


@dataclass(frozen=True)
class FacilityFlags:
    """Emergency facilities present at a checkpoint."""

    first_aid: bool = True
    defibrillator: bool = False
    oxygen_supply: bool = False
    emergency_phone: bool = True
    restroom: bool = False
    shelter: bool = True


@dataclass(frozen=True)
class Visibility:
    road_visibility: RoadVisibility = RoadVisibility.FAIR
    signage: bool = True
    lighting: bool = True
    emergency_beacon: bool = True


@dataclass(frozen=True)
class Accessibility:
    available_24_7: bool = True
    wheelchair_accessible: bool = True
    emergency_vehicle_access: bool = True


@dataclass(frozen=True)
class NearestServices:
    """Closest hospital, fire and police stations with distances in km."""

    hospital: str
    hospital_distance_km: float
    fire_station: str
    fire_station_distance_km: float
    police_station: str
    police_station_distance_km: float


@dataclass(frozen=True)
class Checkpoint:
    """A waypoint at a fixed interval along a route, carrying emergency metadata.

    Checkpoints are never modified after creation; a changed origin or
    destination means a new route is generated.
    """

    id: str
    code: str
    coordinates: Coordinate
    distance_from_start_km: float
    landmark: str
    secondary_landmark: str
    intersection: str
    stopping_area: StoppingArea
    facilities: FacilityFlags
    visibility: Visibility
    accessibility: Accessibility
    nearest_services: NearestServices
    last_inspected: datetime
    status: CheckpointStatus = CheckpointStatus.OPERATIONAL

    def get_short_description(self) -> str:
        """Short, human-readable description for logging, e.g. "CP3: Park 103"."""
        return f"{self.code}: {self.landmark}"


@dataclass(frozen=True)
class CheckpointRoute:
    """An ordered set of checkpoints between an origin and a destination.

    Raises:
        ValueError: If checkpoint distances are not strictly increasing or
            fall outside [0, total_distance_km].
    """

    route_id: str
    origin: Coordinate
    destination: Coordinate
    destination_label: str
    total_distance_km: float
    checkpoints: Tuple[Checkpoint, ...]
    created_at: datetime
    estimated_duration_min: float
    expedited_duration_min: float
    spacing_km: float
    interpolation_method: str = "great_circle"

    def __post_init__(self):
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "checkpoints", tuple(self.checkpoints))

        previous: Optional[Checkpoint] = None
        for checkpoint in self.checkpoints:
            distance = checkpoint.distance_from_start_km
            if (
                distance < -_DISTANCE_TOLERANCE_KM
                or distance > self.total_distance_km + _DISTANCE_TOLERANCE_KM
            ):
                raise ValueError(
                    f"{checkpoint.code} at {distance:.3f} km lies outside the "
                    f"route (0-{self.total_distance_km:.3f} km)"
                )
            if previous is not None and distance <= previous.distance_from_start_km:
                raise ValueError(
                    f"{checkpoint.code} at {distance:.3f} km does not follow "
                    f"{previous.code} at {previous.distance_from_start_km:.3f} km"
                )
            previous = checkpoint

    def __len__(self) -> int:
        """Return number of checkpoints on the route."""
        return len(self.checkpoints)

    def __getitem__(self, index):
        """Allow indexing into checkpoints."""
        return self.checkpoints[index]

    def __iter__(self):
        """Allow iteration over checkpoints."""
        return iter(self.checkpoints)
