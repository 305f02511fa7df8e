"""
Coarse regional vocabularies for synthetic landmark names.

Regions are latitude/longitude boxes held as Shapely polygons in
(longitude, latitude) order. A position outside every box falls back to the
generic urban vocabulary.
"""

from typing import Dict, List, NamedTuple
from shapely.geometry import Point, box
from shapely.geometry.base import BaseGeometry

from .geometry import CoordinateLike, as_coordinate

URBAN = "urban"

GENERIC_LANDMARKS = [
    "Shopping Center",
    "Gas Station",
    "School",
    "Park",
    "Community Center",
    "Library",
    "Bank",
    "Restaurant",
    "Hotel",
    "Office Building",
]

REGION_LANDMARKS: Dict[str, List[str]] = {
    "nyc": ["Subway Station", "Bodega", "Pizza Place", "Deli", "Pharmacy"],
    "london": ["Pub", "Tube Station", "Post Office", "Tesco", "NHS Clinic"],
    "paris": ["Café", "Boulangerie", "Metro Station", "Pharmacie", "Mairie"],
    URBAN: GENERIC_LANDMARKS,
}

STREET_TYPES = ["St", "Ave", "Blvd", "Rd", "Way", "Dr", "Ln"]

STREET_NAMES = [
    "Main", "Oak", "Pine", "Maple", "Cedar", "Elm", "Park", "First", "Second",
    "Third", "Washington", "Lincoln", "Madison", "Jefferson", "Franklin",
    "Central", "Broadway", "Market", "Church", "School", "Mill", "Spring",
    "Hill", "Valley", "River",
]


class Region(NamedTuple):
    name: str
    bounds: BaseGeometry


# box() takes (min_lon, min_lat, max_lon, max_lat)
REGIONS = [
    Region("nyc", box(-74.1, 40.7, -73.9, 40.8)),
    Region("london", box(-0.3, 51.4, 0.1, 51.6)),
    Region("paris", box(2.2, 48.8, 2.5, 48.9)),
]


def find_region(position: CoordinateLike) -> str:
    """
    Name the region a position falls in.

    Box edges count as inside.

    Args:
        position: Position to classify

    Returns:
        Region name, or "urban" when no box covers the position
    """
    position = as_coordinate(position)
    point = Point(position.longitude, position.latitude)
    for region in REGIONS:
        if region.bounds.covers(point):
            return region.name
    return URBAN


def landmark_vocabulary(position: CoordinateLike) -> List[str]:
    """Landmark names appropriate for the region containing position."""
    return REGION_LANDMARKS[find_region(position)]
