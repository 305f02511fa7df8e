#!/usr/bin/env python3
"""
Checkpoint generation along a great-circle route.
"""

from datetime import datetime, timedelta
from typing import List, NamedTuple, Optional, Tuple
import logging
import math
import random

from .checkpoint import (
    Accessibility,
    Checkpoint,
    CheckpointRoute,
    CheckpointStatus,
    FacilityFlags,
    NearestServices,
    RoadVisibility,
    StoppingArea,
    StoppingAreaType,
    Visibility,
)
from .config import Clock, EngineConfig, utc_now
from .geodesy import haversine_distance, interpolate
from .geometry import Coordinate, CoordinateLike, as_coordinate
from .regions import GENERIC_LANDMARKS, STREET_NAMES, STREET_TYPES, landmark_vocabulary
from .scoring import duration

logger = logging.getLogger(__name__)

# Routes shorter than this (one millimeter) are treated as origin == destination
DEGENERATE_ROUTE_KM = 1e-6

STOPPING_AREAS = [
    StoppingArea(
        StoppingAreaType.PARKING_LOT,
        "Large public parking lot with emergency vehicle access",
        12,
    ),
    StoppingArea(
        StoppingAreaType.EMERGENCY_BAY,
        "Dedicated emergency vehicle stopping area",
        4,
    ),
    StoppingArea(
        StoppingAreaType.FIRE_STATION,
        "Fire station parking area with emergency facilities",
        6,
    ),
    StoppingArea(
        StoppingAreaType.POLICE_STATION,
        "Police station parking with 24/7 security",
        8,
    ),
]


class CheckpointValidation(NamedTuple):
    """Outcome of checking a checkpoint's readiness."""

    is_valid: bool
    issues: List[str]
    recommendations: List[str]


class CheckpointGenerator:
    """Places checkpoints at fixed intervals along the great circle between two points.

    Everything about a checkpoint is derived from its index and position
    except the last inspection time, which is drawn from ``rng``. Passing a
    seeded ``random.Random`` and a fixed ``clock`` makes generation fully
    reproducible.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config or EngineConfig()
        self.rng = rng or random.Random()
        self.clock = clock or utc_now

    def generate(
        self,
        origin: CoordinateLike,
        destination: CoordinateLike,
        destination_label: str,
        spacing_km: Optional[float] = None,
    ) -> CheckpointRoute:
        """
        Generate a checkpoint route from origin to destination.

        Args:
            origin: Starting position (e.g. ambulance)
            destination: Final position (e.g. hospital)
            destination_label: Name of the destination, used in checkpoint metadata
            spacing_km: Distance between checkpoints (default: config.spacing_km)

        Returns:
            CheckpointRoute with checkpoints in order of distance from origin.
            Coincident endpoints give a route with no checkpoints.

        Raises:
            InvalidCoordinate: If either endpoint is invalid
            ValueError: If spacing_km is not positive
            UndefinedGreatCircle: If the endpoints are antipodal
        """
        origin = as_coordinate(origin)
        destination = as_coordinate(destination)
        spacing = self.config.spacing_km if spacing_km is None else spacing_km
        if not spacing > 0 or not math.isfinite(spacing):
            raise ValueError(f"Checkpoint spacing must be positive, got {spacing}")

        now = self.clock()
        total_distance = haversine_distance(origin, destination)
        route_id = f"route-{self.rng.getrandbits(48):012x}"

        if total_distance < DEGENERATE_ROUTE_KM:
            logger.warning(
                "Origin and destination coincide; generating route without checkpoints"
            )
            return CheckpointRoute(
                route_id=route_id,
                origin=origin,
                destination=destination,
                destination_label=destination_label,
                total_distance_km=0.0,
                checkpoints=(),
                created_at=now,
                estimated_duration_min=0.0,
                expedited_duration_min=0.0,
                spacing_km=spacing,
            )

        fractions = self._checkpoint_fractions(total_distance, spacing)
        forced = len(fractions) > math.floor(total_distance / spacing)

        logger.debug(
            f"Generating {len(fractions)} checkpoints for "
            f"{total_distance:.1f}km route to {destination_label}"
        )

        checkpoints = []
        for fraction in fractions:
            coordinates = interpolate(origin, destination, fraction)
            distance_from_start = haversine_distance(origin, coordinates)
            previous = checkpoints[-1] if checkpoints else None
            if previous is not None and distance_from_start <= previous.distance_from_start_km:
                logger.warning(
                    f"Dropping checkpoint at fraction {fraction:.6f}: "
                    f"indistinguishable from {previous.code}"
                )
                continue
            index = len(checkpoints) + 1

            deviation = abs(distance_from_start - fraction * total_distance)
            if deviation > self.config.self_check_tolerance_km:
                logger.warning(
                    f"CP{index} lies {deviation:.3f}km off its target distance "
                    f"{fraction * total_distance:.3f}km"
                )

            checkpoints.append(
                self._build_checkpoint(
                    index,
                    coordinates,
                    distance_from_start,
                    destination,
                    destination_label,
                    now,
                )
            )

        remainder = math.fmod(total_distance, spacing)
        if (
            not forced
            and len(checkpoints) > 2
            and remainder > self.config.destination_remainder_km
        ):
            checkpoints.append(
                self._build_destination_checkpoint(
                    len(checkpoints) + 1,
                    destination,
                    total_distance,
                    destination_label,
                    now,
                )
            )

        route = CheckpointRoute(
            route_id=route_id,
            origin=origin,
            destination=destination,
            destination_label=destination_label,
            total_distance_km=total_distance,
            checkpoints=tuple(checkpoints),
            created_at=now,
            estimated_duration_min=duration(total_distance, False, self.config),
            expedited_duration_min=duration(total_distance, True, self.config),
            spacing_km=spacing,
        )

        logger.info(
            f"Generated {len(route)} checkpoints covering {total_distance:.1f}km"
        )
        return route

    def _checkpoint_fractions(self, total_distance: float, spacing: float) -> List[float]:
        """
        Fractions along the route at which checkpoints sit.

        Short routes that would get fewer than ``min_checkpoints`` regular
        checkpoints instead get exactly ``min_checkpoints`` of them, evenly
        spaced strictly between the endpoints.
        """
        count = math.floor(total_distance / spacing)
        minimum = self.config.min_checkpoints

        if minimum > 0 and count < minimum:
            logger.debug(
                f"Route of {total_distance:.2f}km is short for {spacing}km spacing; "
                f"placing {minimum} evenly spaced checkpoints"
            )
            return [i / (minimum + 1) for i in range(1, minimum + 1)]

        return [min(1.0, (i * spacing) / total_distance) for i in range(1, count + 1)]

    def _build_checkpoint(
        self,
        index: int,
        coordinates: Coordinate,
        distance_from_start: float,
        destination: Coordinate,
        destination_label: str,
        now: datetime,
    ) -> Checkpoint:
        """Build one regular checkpoint with synthetic metadata derived from its index."""
        landmarks = landmark_vocabulary(coordinates)

        if index % 4 == 0:
            road_visibility = RoadVisibility.EXCELLENT
        elif index % 3 == 0:
            road_visibility = RoadVisibility.GOOD
        else:
            road_visibility = RoadVisibility.FAIR

        inspected_days_ago = self.rng.uniform(0, self.config.inspection_max_age_days)

        return Checkpoint(
            id=f"checkpoint-{index}",
            code=f"CP{index}",
            coordinates=coordinates,
            distance_from_start_km=distance_from_start,
            landmark=f"{landmarks[index % len(landmarks)]} {index + 100}",
            secondary_landmark=(
                f"Near {GENERIC_LANDMARKS[(index + 1) % len(GENERIC_LANDMARKS)]} "
                f"{index + 200}"
            ),
            intersection=street_intersection(index),
            stopping_area=STOPPING_AREAS[index % len(STOPPING_AREAS)],
            facilities=FacilityFlags(
                first_aid=True,
                defibrillator=index % 2 == 0,
                oxygen_supply=index % 3 == 0,
                emergency_phone=True,
                restroom=index % 2 == 1,
                shelter=True,
            ),
            visibility=Visibility(road_visibility=road_visibility),
            accessibility=Accessibility(),
            nearest_services=NearestServices(
                hospital=destination_label,
                hospital_distance_km=haversine_distance(coordinates, destination),
                fire_station=f"Fire Station {index + 10}",
                fire_station_distance_km=1.0 + (index * 7 % 30) / 10,
                police_station=f"Police Station {index + 20}",
                police_station_distance_km=0.5 + (index * 3 % 20) / 10,
            ),
            last_inspected=now - timedelta(days=inspected_days_ago),
            status=(
                CheckpointStatus.MAINTENANCE
                if index % 10 == 0
                else CheckpointStatus.OPERATIONAL
            ),
        )

    def _build_destination_checkpoint(
        self,
        index: int,
        destination: Coordinate,
        total_distance: float,
        destination_label: str,
        now: datetime,
    ) -> Checkpoint:
        """Build the checkpoint at the destination's emergency entrance."""
        return Checkpoint(
            id="checkpoint-destination",
            code=f"CP{index}",
            coordinates=destination,
            distance_from_start_km=total_distance,
            landmark=f"{destination_label} - Emergency Entrance",
            secondary_landmark=f"{destination_label} Main Entrance",
            intersection=f"{destination_label} Main Entrance",
            stopping_area=StoppingArea(
                StoppingAreaType.HOSPITAL_ENTRANCE,
                "Hospital emergency entrance with dedicated ambulance bay",
                8,
            ),
            facilities=FacilityFlags(
                first_aid=True,
                defibrillator=True,
                oxygen_supply=True,
                emergency_phone=True,
                restroom=True,
                shelter=True,
            ),
            visibility=Visibility(road_visibility=RoadVisibility.EXCELLENT),
            accessibility=Accessibility(),
            nearest_services=NearestServices(
                hospital=destination_label,
                hospital_distance_km=0.0,
                fire_station="Hospital Fire Safety Unit",
                fire_station_distance_km=0.1,
                police_station="Hospital Security",
                police_station_distance_km=0.1,
            ),
            last_inspected=now,
            status=CheckpointStatus.OPERATIONAL,
        )

    def find_nearest(
        self, position: CoordinateLike, route: CheckpointRoute
    ) -> Optional[Tuple[Checkpoint, float]]:
        """Find the checkpoint on route closest to position (see ``find_nearest``)."""
        return find_nearest(position, route)

    def validate(
        self, checkpoint: Checkpoint, now: Optional[datetime] = None
    ) -> CheckpointValidation:
        """
        Check a checkpoint for conditions that make it unfit for use.

        Fair road visibility only produces a recommendation; every other
        finding is an issue and makes the checkpoint invalid.

        Args:
            checkpoint: Checkpoint to check
            now: Reference time for inspection age (default: the generator's clock).
                Must be timezone-aware exactly when the checkpoint's
                last_inspected is, which it is for the default UTC clock.

        Returns:
            CheckpointValidation with issues and recommendations

        Raises:
            ValueError: If now and last_inspected mix naive and aware datetimes
        """
        now = now or self.clock()
        if _is_aware(now) != _is_aware(checkpoint.last_inspected):
            raise ValueError(
                f"Reference time {now.isoformat()} and inspection time "
                f"{checkpoint.last_inspected.isoformat()} must both be "
                f"timezone-aware or both naive"
            )
        issues: List[str] = []
        recommendations: List[str] = []
        code = checkpoint.code

        if checkpoint.status != CheckpointStatus.OPERATIONAL:
            issues.append(f"Checkpoint {code} is currently {checkpoint.status.value}")

        days_since_inspection = (now - checkpoint.last_inspected).total_seconds() / 86400
        if days_since_inspection > self.config.inspection_max_age_days:
            issues.append(
                f"Checkpoint {code} last inspected "
                f"{math.floor(days_since_inspection)} days ago"
            )
            recommendations.append("Schedule inspection within 7 days")

        if not checkpoint.facilities.first_aid:
            issues.append(f"Checkpoint {code} lacks first aid facilities")

        if not checkpoint.facilities.emergency_phone:
            issues.append(f"Checkpoint {code} lacks emergency communication")

        if checkpoint.visibility.road_visibility == RoadVisibility.FAIR:
            recommendations.append(f"Improve road visibility at checkpoint {code}")

        if not checkpoint.visibility.emergency_beacon:
            issues.append(f"Checkpoint {code} lacks emergency beacon")

        if not checkpoint.accessibility.available_24_7:
            issues.append(f"Checkpoint {code} not available 24/7")

        return CheckpointValidation(
            is_valid=not issues, issues=issues, recommendations=recommendations
        )


def _is_aware(moment: datetime) -> bool:
    return moment.tzinfo is not None and moment.utcoffset() is not None


def street_intersection(index: int) -> str:
    """Synthetic cross-street name for the checkpoint with the given index."""
    street1 = (
        f"{STREET_NAMES[index % len(STREET_NAMES)]} "
        f"{STREET_TYPES[index % len(STREET_TYPES)]}"
    )
    street2 = (
        f"{STREET_NAMES[(index + 5) % len(STREET_NAMES)]} "
        f"{STREET_TYPES[(index + 2) % len(STREET_TYPES)]}"
    )
    return f"{street1} & {street2}"


def find_nearest(
    position: CoordinateLike, route: CheckpointRoute
) -> Optional[Tuple[Checkpoint, float]]:
    """
    Find the checkpoint closest to a position.

    Ties keep the checkpoint that comes first on the route.

    Args:
        position: Current position
        route: Route to search

    Returns:
        Tuple of (checkpoint, distance_km), or None if the route has no checkpoints
    """
    position = as_coordinate(position)
    if not route.checkpoints:
        return None

    nearest = route.checkpoints[0]
    min_distance = haversine_distance(position, nearest.coordinates)

    for checkpoint in route.checkpoints[1:]:
        distance = haversine_distance(position, checkpoint.coordinates)
        if distance < min_distance:
            min_distance = distance
            nearest = checkpoint

    return nearest, min_distance
