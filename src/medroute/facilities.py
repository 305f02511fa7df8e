#!/usr/bin/env python3
"""
Medical facilities around a position: synthetic generation, periodic
refresh, filtering and sorting, and conversion of OpenStreetMap elements.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple
import logging
import math
import random

from .config import Clock, EngineConfig, utc_now
from .exceptions import InvalidRadius
from .geodesy import haversine_distance, distance_from_segment, project_offset
from .geometry import Coordinate, CoordinateLike, as_coordinate
from .scoring import KM_PER_MILE, Priority

logger = logging.getLogger(__name__)


class FacilityCategory(Enum):
    """Enumeration for medical facility categories."""

    EMERGENCY_STATION = "emergency_station"
    MEDICAL_CLINIC = "medical_clinic"
    AMBULANCE_STATION = "ambulance_station"
    FIRST_AID_CENTER = "first_aid_center"
    TEMPORARY_CAMP = "temporary_camp"

    def __str__(self) -> str:
        return self.value


class OperationalStatus(Enum):
    """Facility operating status, best first."""

    OPERATIONAL = "operational"
    LIMITED = "limited"
    EMERGENCY_ONLY = "emergency_only"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        return list(OperationalStatus).index(self)


class FacilitySource(Enum):
    """Where a facility record came from."""

    SYNTHETIC = "synthetic"
    EXTERNAL = "external"


class SortKey(Enum):
    DISTANCE = "distance"
    STATUS = "status"
    SERVICES = "services"
    RESPONSE_TIME = "response_time"


@dataclass(frozen=True)
class Availability:
    available_24_7: bool
    currently_open: bool
    emergency_access: bool
    next_open_time: Optional[datetime] = None


@dataclass(frozen=True)
class Services:
    """Clinical capabilities offered by a facility."""

    basic_first_aid: bool = True
    advanced_life_support: bool = False
    trauma: bool = False
    cardiac: bool = False
    pediatric: bool = False
    psychiatric: bool = False
    pharmacy: bool = False
    laboratory: bool = False
    imaging: bool = False
    surgery: bool = False

    def count(self) -> int:
        """Number of capabilities offered."""
        return sum(1 for value in vars(self).values() if value)


@dataclass(frozen=True)
class Equipment:
    defibrillator: bool = False
    ventilator: bool = False
    oxygen_supply: bool = False
    emergency_medications: bool = True
    ambulance_equipment: bool = False
    wheelchair_access: bool = True


@dataclass
class Staffing:
    doctors: int = 0
    nurses: int = 0
    paramedics: int = 0
    technicians: int = 0
    current_capacity: int = 0
    max_capacity: int = 0


@dataclass
class ResponseTime:
    average_min: float
    current_estimate_min: float
    priority: Priority = Priority.MEDIUM


@dataclass
class MedicalFacility:
    """A medical facility near a route, synthetic or from an external source.

    Position, category and capability fields never change after creation;
    ``FacilityCatalog.refresh`` only touches the current response estimate,
    the current capacity and ``last_updated``.
    """

    id: str
    name: str
    category: FacilityCategory
    coordinates: Coordinate
    operational_status: OperationalStatus
    availability: Availability
    services: Services
    equipment: Equipment
    staffing: Staffing
    response_time: ResponseTime
    last_updated: datetime
    address: str = ""
    phone: str = ""
    distance_from_center_km: float = 0.0
    distance_from_route_km: float = 0.0
    source: FacilitySource = FacilitySource.SYNTHETIC
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def capability_count(self) -> int:
        return self.services.count()

    @property
    def accepts_emergencies(self) -> bool:
        """True when the facility is operational and takes emergency patients."""
        return (
            self.operational_status == OperationalStatus.OPERATIONAL
            and self.availability.emergency_access
        )

    def get_short_description(self) -> str:
        return f"{self.category}: {self.name}"

    @classmethod
    def from_osm_element(
        cls, element: Dict[str, Any], last_updated: Optional[datetime] = None
    ) -> "MedicalFacility":
        """
        Create a facility from an OpenStreetMap element as returned by Overpass.

        Nodes carry ``lat``/``lon``; ways and relations must have been
        requested with ``out center`` so that they carry ``center``.

        Args:
            element: Overpass JSON element with ``id``, ``type`` and ``tags``
            last_updated: Timestamp for the record (default: now)

        Returns:
            MedicalFacility with source EXTERNAL

        Raises:
            KeyError: If the element has no id or no position
            ValueError: If the element is not a medical facility
            InvalidCoordinate: If its position is out of range
        """
        tags = element.get("tags", {})
        category = _osm_category(tags)
        if category is None:
            raise ValueError(
                f"OSM {element.get('type', 'element')} {element['id']} is not a medical facility"
            )

        if "lat" in element and "lon" in element:
            coordinates = Coordinate(float(element["lat"]), float(element["lon"]))
        else:
            center = element["center"]
            coordinates = Coordinate(float(center["lat"]), float(center["lon"]))

        opening_hours = tags.get("opening_hours", "")
        emergency = tags.get("emergency") == "yes" or category in (
            FacilityCategory.EMERGENCY_STATION,
            FacilityCategory.AMBULANCE_STATION,
        )
        disused = any(key.startswith(("disused:", "abandoned:")) for key in tags)

        return cls(
            id=f"osm-{element.get('type', 'node')}-{element['id']}",
            name=tags.get("name", f"<OSM {element['id']}>"),
            category=category,
            coordinates=coordinates,
            operational_status=(
                OperationalStatus.CLOSED if disused else OperationalStatus.OPERATIONAL
            ),
            availability=Availability(
                available_24_7=opening_hours == "24/7",
                currently_open=not disused,
                emergency_access=emergency and not disused,
            ),
            services=Services(
                advanced_life_support=emergency,
                trauma=emergency and category == FacilityCategory.EMERGENCY_STATION,
                pharmacy=tags.get("dispensing") == "yes",
            ),
            equipment=Equipment(
                defibrillator=emergency,
                oxygen_supply=emergency,
                ambulance_equipment=category == FacilityCategory.AMBULANCE_STATION,
                wheelchair_access=tags.get("wheelchair") != "no",
            ),
            staffing=Staffing(),
            response_time=ResponseTime(
                average_min=10.0,
                current_estimate_min=10.0,
                priority=Priority.HIGH if emergency else Priority.MEDIUM,
            ),
            last_updated=last_updated or utc_now(),
            address=_osm_address(tags),
            phone=tags.get("phone", tags.get("contact:phone", "")),
            source=FacilitySource.EXTERNAL,
            tags=dict(tags),
        )


def _osm_category(tags: Dict[str, str]) -> Optional[FacilityCategory]:
    """Map OSM tags to a facility category, or None for non-medical features."""
    amenity = tags.get("amenity")
    healthcare = tags.get("healthcare")
    if tags.get("emergency") == "ambulance_station":
        return FacilityCategory.AMBULANCE_STATION
    if amenity == "hospital" or healthcare == "hospital":
        return FacilityCategory.EMERGENCY_STATION
    if amenity in ("clinic", "doctors") or healthcare in ("clinic", "doctor", "centre"):
        return FacilityCategory.MEDICAL_CLINIC
    if healthcare == "first_aid" or tags.get("emergency") == "first_aid_kit":
        return FacilityCategory.FIRST_AID_CENTER
    if healthcare is not None:
        return FacilityCategory.MEDICAL_CLINIC
    return None


def _osm_address(tags: Dict[str, str]) -> str:
    street = " ".join(
        part for part in (tags.get("addr:housenumber"), tags.get("addr:street")) if part
    )
    return ", ".join(part for part in (street, tags.get("addr:city")) if part)


class FacilityQuery(NamedTuple):
    """Filter and sort options for ``FacilityCatalog.sort_and_filter``.

    Filters are AND-combined; ``within_radius_miles`` of 0 disables the
    radius filter and an empty ``categories`` allows every category.
    """

    sort_by: SortKey = SortKey.DISTANCE
    operational_only: bool = False
    available_24_7: bool = False
    within_radius_miles: float = 0.0
    categories: Tuple[FacilityCategory, ...] = ()


class _Layout(NamedTuple):
    """How one category is scattered around the center."""

    count_divisor: float
    count_base: int
    angle_offset: float
    reach: float


_LAYOUTS = {
    FacilityCategory.EMERGENCY_STATION: _Layout(3, 2, 0.0, 0.8),
    FacilityCategory.MEDICAL_CLINIC: _Layout(2, 3, math.pi / 4, 0.9),
    FacilityCategory.AMBULANCE_STATION: _Layout(4, 2, math.pi / 6, 0.7),
    FacilityCategory.FIRST_AID_CENTER: _Layout(1.5, 4, math.pi / 3, 1.0),
    FacilityCategory.TEMPORARY_CAMP: _Layout(8, 1, math.pi / 2, 0.6),
}


def category_count(category: FacilityCategory, radius_km: float) -> int:
    """Number of facilities of a category to synthesize for a radius."""
    layout = _LAYOUTS[category]
    return math.floor(radius_km / layout.count_divisor) + layout.count_base


class FacilityCatalog:
    """Synthesizes and maintains the medical facilities around a position.

    All randomness comes from ``rng`` and all timestamps from ``clock`` so a
    seeded generator and a fixed clock reproduce the same catalog.
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
        self._builders: Dict[FacilityCategory, Callable[..., MedicalFacility]] = {
            FacilityCategory.EMERGENCY_STATION: self._emergency_station,
            FacilityCategory.MEDICAL_CLINIC: self._medical_clinic,
            FacilityCategory.AMBULANCE_STATION: self._ambulance_station,
            FacilityCategory.FIRST_AID_CENTER: self._first_aid_center,
            FacilityCategory.TEMPORARY_CAMP: self._temporary_camp,
        }

    def synthesize(
        self,
        center: CoordinateLike,
        radius_miles: float,
        destination: Optional[CoordinateLike] = None,
    ) -> List[MedicalFacility]:
        """
        Generate medical facilities scattered within a radius of center.

        Args:
            center: Position the facilities surround (usually the patient)
            radius_miles: Search radius in miles
            destination: Route end used for distance-from-route; without it
                the route collapses to the center point

        Returns:
            Facilities of every category with distances filled in

        Raises:
            InvalidRadius: If radius_miles is not a positive finite number
            InvalidCoordinate: If center or destination is invalid
        """
        if (
            isinstance(radius_miles, bool)
            or not isinstance(radius_miles, (int, float))
            or not math.isfinite(radius_miles)
            or radius_miles <= 0
        ):
            raise InvalidRadius(f"Radius must be a positive number of miles, got {radius_miles!r}")

        center = as_coordinate(center)
        route_end = as_coordinate(destination) if destination is not None else center
        radius_km = radius_miles * KM_PER_MILE
        now = self.clock()

        facilities: List[MedicalFacility] = []
        for category, layout in _LAYOUTS.items():
            count = category_count(category, radius_km)
            build = self._builders[category]
            for i in range(count):
                angle = (i / count) * 2 * math.pi + layout.angle_offset
                offset = self.rng.random() * radius_km * layout.reach
                coordinates = project_offset(center, offset, angle)
                facilities.append(build(i + 1, coordinates, now))

        self._measure(facilities, center, route_end)

        logger.info(
            f"Generated {len(facilities)} medical facilities within "
            f"{radius_miles} mile radius"
        )
        return facilities

    def merge_external(
        self,
        facilities: List[MedicalFacility],
        elements: Iterable[Dict[str, Any]],
        center: CoordinateLike,
        destination: Optional[CoordinateLike] = None,
    ) -> List[MedicalFacility]:
        """
        Combine facilities with ones parsed from OpenStreetMap elements.

        Elements that cannot be parsed are logged and skipped. Elements whose
        id is already present are ignored.

        Args:
            facilities: Existing facilities (not modified)
            elements: Overpass JSON elements
            center: Position distances are measured from
            destination: Route end for distance-from-route

        Returns:
            New list: the existing facilities followed by the external ones
        """
        center = as_coordinate(center)
        route_end = as_coordinate(destination) if destination is not None else center
        now = self.clock()

        known_ids = {f.id for f in facilities}
        external = []
        for element in elements:
            try:
                facility = MedicalFacility.from_osm_element(element, now)
            except (KeyError, ValueError) as e:
                logger.warning(f"Failed to parse facility element: {e}")
                continue
            if facility.id in known_ids:
                logger.debug(f"Skipping duplicate facility {facility.id}")
                continue
            known_ids.add(facility.id)
            external.append(facility)

        self._measure(external, center, route_end)
        logger.debug(f"Merged {len(external)} external facilities")
        return list(facilities) + external

    @staticmethod
    def _measure(
        facilities: List[MedicalFacility], center: Coordinate, route_end: Coordinate
    ) -> None:
        """Fill in distance from center and from the center-to-destination segment."""
        for facility in facilities:
            facility.distance_from_center_km = haversine_distance(
                center, facility.coordinates
            )
            facility.distance_from_route_km = distance_from_segment(
                facility.coordinates, center, route_end
            )

    def refresh(self, facilities: List[MedicalFacility]) -> List[MedicalFacility]:
        """
        Nudge the live figures of every facility, in place.

        The current response estimate moves by up to 1.5 minutes (never
        below 1) and current capacity by a small whole number (kept within
        [0, max_capacity]). Nothing else changes.

        Args:
            facilities: Facilities to update

        Returns:
            The same list
        """
        now = self.clock()
        for facility in facilities:
            response = facility.response_time
            response.current_estimate_min = max(
                1.0, response.current_estimate_min + (self.rng.random() - 0.5) * 3
            )

            staffing = facility.staffing
            delta = math.floor((self.rng.random() - 0.5) * 3)
            staffing.current_capacity = max(
                0, min(staffing.max_capacity, staffing.current_capacity + delta)
            )

            facility.last_updated = now

        logger.debug(f"Refreshed {len(facilities)} medical facilities")
        return facilities

    @staticmethod
    def sort_and_filter(
        facilities: List[MedicalFacility], query: Optional[FacilityQuery] = None
    ) -> List[MedicalFacility]:
        """
        Filter facilities and sort what remains.

        Args:
            facilities: Facilities to select from (not modified)
            query: Filters and sort key (default: no filters, nearest first)

        Returns:
            New list of matching facilities in sorted order. Sorting is
            stable, so equal keys keep their input order.
        """
        query = query or FacilityQuery()
        selected = list(facilities)

        if query.operational_only:
            selected = [
                f for f in selected
                if f.operational_status == OperationalStatus.OPERATIONAL
            ]

        if query.available_24_7:
            selected = [f for f in selected if f.availability.available_24_7]

        if query.within_radius_miles > 0:
            radius_km = query.within_radius_miles * KM_PER_MILE
            selected = [f for f in selected if f.distance_from_center_km <= radius_km]

        if query.categories:
            allowed = set(query.categories)
            selected = [f for f in selected if f.category in allowed]

        if query.sort_by == SortKey.DISTANCE:
            selected.sort(key=lambda f: f.distance_from_center_km)
        elif query.sort_by == SortKey.STATUS:
            selected.sort(key=lambda f: f.operational_status.rank)
        elif query.sort_by == SortKey.SERVICES:
            selected.sort(key=lambda f: -f.capability_count)
        elif query.sort_by == SortKey.RESPONSE_TIME:
            selected.sort(key=lambda f: f.response_time.current_estimate_min)

        return selected

    def _chance(self, probability: float) -> bool:
        """True with the given probability."""
        return self.rng.random() < probability

    def _status(self, operational_probability: float) -> OperationalStatus:
        if self._chance(operational_probability):
            return OperationalStatus.OPERATIONAL
        return OperationalStatus.LIMITED

    def _opens_within(self, now: datetime, hours: float) -> datetime:
        return now + timedelta(hours=self.rng.random() * hours)

    def _emergency_station(
        self, number: int, coordinates: Coordinate, now: datetime
    ) -> MedicalFacility:
        rng = self.rng
        return MedicalFacility(
            id=f"emergency-station-{number}",
            name=f"Emergency Response Station {number}",
            category=FacilityCategory.EMERGENCY_STATION,
            coordinates=coordinates,
            address=f"{50 + number * 50} Emergency Blvd, Emergency District",
            phone=f"(555) {199 + number}00-{900 + number * 100}",
            operational_status=self._status(0.9),
            availability=Availability(
                available_24_7=True, currently_open=True, emergency_access=True
            ),
            services=Services(
                advanced_life_support=True,
                trauma=True,
                cardiac=True,
                pediatric=self._chance(0.5),
                pharmacy=self._chance(0.3),
            ),
            equipment=Equipment(
                defibrillator=True,
                ventilator=self._chance(0.4),
                oxygen_supply=True,
                ambulance_equipment=True,
            ),
            staffing=Staffing(
                doctors=rng.randint(1, 3),
                nurses=rng.randint(2, 6),
                paramedics=rng.randint(3, 6),
                technicians=rng.randint(1, 2),
                current_capacity=rng.randint(2, 9),
                max_capacity=10,
            ),
            response_time=ResponseTime(
                average_min=rng.randint(2, 6),
                current_estimate_min=rng.randint(3, 10),
                priority=Priority.HIGH,
            ),
            last_updated=now,
        )

    def _medical_clinic(
        self, number: int, coordinates: Coordinate, now: datetime
    ) -> MedicalFacility:
        rng = self.rng
        urgent_care = self._chance(0.4)
        next_open = None
        if not urgent_care and self._chance(0.2):
            next_open = self._opens_within(now, 12)
        return MedicalFacility(
            id=f"medical-clinic-{number}",
            name=(
                f"Urgent Care Center {number}" if urgent_care else f"Medical Clinic {number}"
            ),
            category=FacilityCategory.MEDICAL_CLINIC,
            coordinates=coordinates,
            address=f"{275 + number * 25} Medical Ave, Healthcare District",
            phone=f"(555) {299 + number}00-{1900 + number * 100}",
            operational_status=self._status(0.95),
            availability=Availability(
                available_24_7=urgent_care,
                currently_open=self._chance(0.8),
                emergency_access=urgent_care,
                next_open_time=next_open,
            ),
            services=Services(
                advanced_life_support=urgent_care,
                trauma=urgent_care,
                cardiac=urgent_care,
                pediatric=self._chance(0.6),
                psychiatric=self._chance(0.2),
                pharmacy=self._chance(0.7),
                laboratory=self._chance(0.5),
                imaging=urgent_care and self._chance(0.4),
            ),
            equipment=Equipment(
                defibrillator=urgent_care,
                oxygen_supply=urgent_care,
            ),
            staffing=Staffing(
                doctors=rng.randint(1, 4),
                nurses=rng.randint(2, 7),
                paramedics=rng.randint(1, 2) if urgent_care else 0,
                technicians=rng.randint(1, 3),
                current_capacity=rng.randint(3, 14),
                max_capacity=15,
            ),
            response_time=ResponseTime(
                average_min=rng.randint(5, 14),
                current_estimate_min=rng.randint(8, 22),
                priority=Priority.HIGH if urgent_care else Priority.MEDIUM,
            ),
            last_updated=now,
        )

    def _ambulance_station(
        self, number: int, coordinates: Coordinate, now: datetime
    ) -> MedicalFacility:
        rng = self.rng
        return MedicalFacility(
            id=f"ambulance-station-{number}",
            name=f"Ambulance Station {number}",
            category=FacilityCategory.AMBULANCE_STATION,
            coordinates=coordinates,
            address=f"{470 + number * 30} Ambulance Way, Emergency Services District",
            phone=f"(555) {399 + number}00-{2900 + number * 100}",
            operational_status=self._status(0.95),
            availability=Availability(
                available_24_7=True, currently_open=True, emergency_access=True
            ),
            services=Services(
                advanced_life_support=True,
                trauma=True,
                cardiac=True,
                pediatric=True,
            ),
            equipment=Equipment(
                defibrillator=True,
                ventilator=True,
                oxygen_supply=True,
                ambulance_equipment=True,
            ),
            staffing=Staffing(
                nurses=rng.randint(1, 2),
                paramedics=rng.randint(4, 9),
                technicians=rng.randint(2, 4),
                current_capacity=rng.randint(2, 7),
                max_capacity=8,
            ),
            response_time=ResponseTime(
                average_min=rng.randint(1, 3),
                current_estimate_min=rng.randint(2, 6),
                priority=Priority.HIGH,
            ),
            last_updated=now,
        )

    def _first_aid_center(
        self, number: int, coordinates: Coordinate, now: datetime
    ) -> MedicalFacility:
        rng = self.rng
        next_open = self._opens_within(now, 8) if self._chance(0.3) else None
        return MedicalFacility(
            id=f"first-aid-center-{number}",
            name=f"First Aid Center {number}",
            category=FacilityCategory.FIRST_AID_CENTER,
            coordinates=coordinates,
            address=f"{680 + number * 20} First Aid St, Community District",
            phone=f"(555) {499 + number}00-{3900 + number * 100}",
            operational_status=self._status(0.9),
            availability=Availability(
                available_24_7=self._chance(0.3),
                currently_open=self._chance(0.7),
                emergency_access=True,
                next_open_time=next_open,
            ),
            services=Services(
                cardiac=self._chance(0.2),
                pediatric=self._chance(0.4),
            ),
            equipment=Equipment(
                defibrillator=self._chance(0.5),
                oxygen_supply=self._chance(0.3),
                wheelchair_access=self._chance(0.6),
            ),
            staffing=Staffing(
                nurses=rng.randint(1, 2),
                paramedics=rng.randint(0, 1),
                technicians=rng.randint(1, 2),
                current_capacity=rng.randint(1, 4),
                max_capacity=5,
            ),
            response_time=ResponseTime(
                average_min=rng.randint(3, 10),
                current_estimate_min=rng.randint(5, 16),
                priority=Priority.MEDIUM,
            ),
            last_updated=now,
        )

    def _temporary_camp(
        self, number: int, coordinates: Coordinate, now: datetime
    ) -> MedicalFacility:
        rng = self.rng
        return MedicalFacility(
            id=f"temp-medical-camp-{number}",
            name=f"Temporary Medical Camp {number}",
            category=FacilityCategory.TEMPORARY_CAMP,
            coordinates=coordinates,
            address=f"{885 + number * 15} Temporary Site, Emergency Zone",
            phone=f"(555) {599 + number}00-{4900 + number * 100}",
            operational_status=self._status(0.8),
            availability=Availability(
                available_24_7=True,
                currently_open=self._chance(0.9),
                emergency_access=True,
            ),
            services=Services(
                advanced_life_support=self._chance(0.4),
                trauma=self._chance(0.3),
                cardiac=self._chance(0.2),
                pediatric=True,
                psychiatric=self._chance(0.1),
                pharmacy=self._chance(0.5),
            ),
            equipment=Equipment(
                defibrillator=self._chance(0.6),
                ventilator=self._chance(0.2),
                oxygen_supply=self._chance(0.7),
                ambulance_equipment=self._chance(0.3),
                wheelchair_access=self._chance(0.4),
            ),
            staffing=Staffing(
                doctors=rng.randint(1, 3),
                nurses=rng.randint(2, 5),
                paramedics=rng.randint(1, 3),
                technicians=rng.randint(1, 2),
                current_capacity=rng.randint(5, 14),
                max_capacity=20,
            ),
            response_time=ResponseTime(
                average_min=rng.randint(8, 19),
                current_estimate_min=rng.randint(10, 27),
                priority=Priority.MEDIUM,
            ),
            last_updated=now,
        )
