#!/usr/bin/env python3
"""
Route briefing: everything a crew needs for one emergency run in one place.

A briefing bundles the checkpoint route from the patient to a destination,
the medical facilities around the patient and the expected arrival time,
together with when the live figures were last refreshed and when they are
next due.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import List, Optional
import logging

from .checkpoint import CheckpointRoute
from .facilities import FacilityCatalog, MedicalFacility
from .generator import CheckpointGenerator
from .geometry import Coordinate, CoordinateLike, as_coordinate
from .scoring import Destination, estimated_arrival

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteBriefing:
    """Route, nearby facilities and timing for a run to one destination."""

    patient_location: Coordinate
    patient_address: str
    destination: Destination
    route: CheckpointRoute
    facilities: List[MedicalFacility]
    estimated_arrival: datetime
    last_updated: datetime
    next_update: datetime

    @property
    def emergency_facilities(self) -> List[MedicalFacility]:
        return [f for f in self.facilities if f.accepts_emergencies]


def build_briefing(
    patient_location: CoordinateLike,
    destination: Destination,
    generator: CheckpointGenerator,
    catalog: FacilityCatalog,
    radius_miles: float = 5.0,
    patient_address: str = "",
) -> RouteBriefing:
    """
    Plan a run from the patient to a destination.

    The arrival time assumes the expedited duration, as for a run under
    lights and sirens. Timestamps come from the generator's clock.

    Args:
        patient_location: Where the patient is
        destination: Where the patient is being taken
        generator: Builds the checkpoint route
        catalog: Synthesizes the surrounding facilities
        radius_miles: Facility search radius around the patient
        patient_address: Free-text address of the patient

    Returns:
        RouteBriefing for the run

    Raises:
        InvalidCoordinate: If patient_location is invalid
        InvalidRadius: If radius_miles is not a positive finite number
        UndefinedGreatCircle: If patient and destination are antipodal
    """
    patient_location = as_coordinate(patient_location)
    route = generator.generate(
        patient_location, destination.coordinates, destination.name
    )
    facilities = catalog.synthesize(
        patient_location, radius_miles, destination.coordinates
    )

    now = generator.clock()
    logger.info(
        f"Briefing for {destination.name}: {len(route)} checkpoints, "
        f"{len(facilities)} facilities within {radius_miles} miles"
    )
    return RouteBriefing(
        patient_location=patient_location,
        patient_address=patient_address,
        destination=destination,
        route=route,
        facilities=facilities,
        estimated_arrival=estimated_arrival(route.expedited_duration_min, now),
        last_updated=now,
        next_update=_next_update(now, generator.config.update_interval_min),
    )


def refresh_briefing(
    briefing: RouteBriefing,
    catalog: FacilityCatalog,
    now: Optional[datetime] = None,
) -> RouteBriefing:
    """
    Refresh the live facility figures and roll the update times forward.

    The facility list is refreshed in place (see ``FacilityCatalog.refresh``);
    the route and arrival estimate are left as planned.

    Args:
        briefing: Briefing to refresh
        catalog: Catalog whose rng drives the refresh
        now: Time of the refresh (default: the catalog's clock)

    Returns:
        A new RouteBriefing sharing the refreshed facility list
    """
    now = now or catalog.clock()
    catalog.refresh(briefing.facilities)
    logger.debug(f"Refreshed {len(briefing.facilities)} facilities at {now.isoformat()}")
    return replace(
        briefing,
        last_updated=now,
        next_update=_next_update(now, catalog.config.update_interval_min),
    )


def _next_update(now: datetime, interval_min: float) -> datetime:
    return now + timedelta(minutes=interval_min)
