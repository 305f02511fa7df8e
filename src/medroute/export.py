#!/usr/bin/env python3
"""
Export of checkpoint routes as JSON documents and GPX files.
"""

from typing import Any, Dict, List, Tuple
import json
import logging

import gpxpy
import gpxpy.gpx

from .checkpoint import Checkpoint, CheckpointRoute
from .exceptions import ExportFormatError, InvalidCoordinate
from .facilities import MedicalFacility
from .geometry import Coordinate
from .scoring import format_minutes

logger = logging.getLogger(__name__)

ROUTE_INFO_KEYS = (
    "route_id",
    "total_distance",
    "estimated_time",
    "expedited_time",
    "checkpoint_count",
    "interpolation_method",
    "origin",
    "destination",
    "destination_label",
    "created_at",
)

CHECKPOINT_KEYS = (
    "code",
    "coordinates",
    "distance_from_start",
    "landmark",
    "intersection",
    "status",
    "facilities",
    "nearest_services",
)


def _km(value: float) -> str:
    return f"{value:.1f} km"


def _checkpoint_to_dict(checkpoint: Checkpoint) -> Dict[str, Any]:
    facilities = checkpoint.facilities
    services = checkpoint.nearest_services
    return {
        "code": checkpoint.code,
        "coordinates": [
            checkpoint.coordinates.latitude,
            checkpoint.coordinates.longitude,
        ],
        "distance_from_start": _km(checkpoint.distance_from_start_km),
        "landmark": checkpoint.landmark,
        "intersection": checkpoint.intersection,
        "status": checkpoint.status.value,
        "facilities": {
            "first_aid": facilities.first_aid,
            "defibrillator": facilities.defibrillator,
            "oxygen_supply": facilities.oxygen_supply,
            "emergency_phone": facilities.emergency_phone,
            "restroom": facilities.restroom,
            "shelter": facilities.shelter,
        },
        "nearest_services": {
            "hospital": services.hospital,
            "hospital_distance": _km(services.hospital_distance_km),
            "fire_station": services.fire_station,
            "fire_station_distance": _km(services.fire_station_distance_km),
            "police_station": services.police_station,
            "police_station_distance": _km(services.police_station_distance_km),
        },
    }


def route_to_document(route: CheckpointRoute) -> Dict[str, Any]:
    """
    Build a JSON-native document describing a route and its checkpoints.

    Args:
        route: Route to describe

    Returns:
        Dictionary with "route_info" and "checkpoints" entries. Distances are
        rendered as "X.X km" and durations as whole minutes rounded up.
    """
    return {
        "route_info": {
            "route_id": route.route_id,
            "total_distance": _km(route.total_distance_km),
            "estimated_time": format_minutes(route.estimated_duration_min),
            "expedited_time": format_minutes(route.expedited_duration_min),
            "checkpoint_count": len(route),
            "interpolation_method": route.interpolation_method,
            "origin": [route.origin.latitude, route.origin.longitude],
            "destination": [route.destination.latitude, route.destination.longitude],
            "destination_label": route.destination_label,
            "created_at": route.created_at.isoformat(),
        },
        "checkpoints": [_checkpoint_to_dict(cp) for cp in route],
    }


def export_route(route: CheckpointRoute) -> str:
    """Serialize a route as indented JSON."""
    return json.dumps(route_to_document(route), indent=2)


def _require_keys(section: Dict[str, Any], keys: Tuple[str, ...], where: str) -> None:
    missing = [key for key in keys if key not in section]
    if missing:
        raise ExportFormatError(f"{where} is missing {', '.join(missing)}")


def parse_route_export(text: str) -> Dict[str, Any]:
    """
    Parse and validate a document produced by export_route.

    Args:
        text: JSON text

    Returns:
        The parsed document

    Raises:
        ExportFormatError: If the text is not JSON or lacks required fields
    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExportFormatError(f"Route export is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise ExportFormatError("Route export must be a JSON object")

    route_info = document.get("route_info")
    checkpoints = document.get("checkpoints")
    if not isinstance(route_info, dict):
        raise ExportFormatError("Route export has no route_info object")
    if not isinstance(checkpoints, list):
        raise ExportFormatError("Route export has no checkpoints list")

    _require_keys(route_info, ROUTE_INFO_KEYS, "route_info")
    for position, checkpoint in enumerate(checkpoints):
        if not isinstance(checkpoint, dict):
            raise ExportFormatError(f"checkpoints[{position}] is not an object")
        _require_keys(checkpoint, CHECKPOINT_KEYS, f"checkpoints[{position}]")

    if route_info["checkpoint_count"] != len(checkpoints):
        raise ExportFormatError(
            f"checkpoint_count is {route_info['checkpoint_count']} but "
            f"{len(checkpoints)} checkpoints are listed"
        )

    logger.debug(f"Parsed route export with {len(checkpoints)} checkpoints")
    return document


def facilities_to_document(facilities: List[MedicalFacility]) -> List[Dict[str, Any]]:
    """Summarize facilities as JSON-native dictionaries, one per facility."""
    return [
        {
            "id": facility.id,
            "name": facility.name,
            "category": facility.category.value,
            "coordinates": [
                facility.coordinates.latitude,
                facility.coordinates.longitude,
            ],
            "operational_status": facility.operational_status.value,
            "currently_open": facility.availability.currently_open,
            "emergency_access": facility.availability.emergency_access,
            "capabilities": facility.capability_count,
            "response_time_min": facility.response_time.current_estimate_min,
            "distance_from_center": _km(facility.distance_from_center_km),
            "source": facility.source.value,
        }
        for facility in facilities
    ]


def export_route_gpx(route: CheckpointRoute) -> str:
    """
    Write a route as GPX: one waypoint per checkpoint and a GPX route running
    origin, checkpoints, destination.

    Args:
        route: Route to export

    Returns:
        GPX XML text
    """
    gpx_data = gpxpy.gpx.GPX()
    gpx_data.name = f"Route to {route.destination_label}"
    gpx_data.description = route.route_id

    gpx_route = gpxpy.gpx.GPXRoute(name=route.destination_label)
    gpx_route.points.append(
        gpxpy.gpx.GPXRoutePoint(
            route.origin.latitude, route.origin.longitude, name="Origin"
        )
    )

    for checkpoint in route:
        latitude, longitude = checkpoint.coordinates
        gpx_data.waypoints.append(
            gpxpy.gpx.GPXWaypoint(
                latitude,
                longitude,
                name=checkpoint.code,
                description=checkpoint.landmark,
                comment=checkpoint.intersection,
                type=checkpoint.stopping_area.area_type.value,
            )
        )
        gpx_route.points.append(
            gpxpy.gpx.GPXRoutePoint(latitude, longitude, name=checkpoint.code)
        )

    gpx_route.points.append(
        gpxpy.gpx.GPXRoutePoint(
            route.destination.latitude,
            route.destination.longitude,
            name=route.destination_label,
        )
    )
    gpx_data.routes.append(gpx_route)

    return gpx_data.to_xml()


def parse_checkpoint_gpx(text: str) -> List[Tuple[str, Coordinate]]:
    """
    Read checkpoint waypoints back from GPX text.

    Args:
        text: GPX XML, e.g. from export_route_gpx

    Returns:
        List of (code, coordinates) pairs in file order

    Raises:
        ExportFormatError: If the GPX is malformed or holds an invalid waypoint
    """
    try:
        gpx_data = gpxpy.parse(text)
    except gpxpy.gpx.GPXException as e:
        raise ExportFormatError(f"Invalid GPX: {e}") from e

    checkpoints = []
    for waypoint in gpx_data.waypoints:
        try:
            coordinates = Coordinate(waypoint.latitude, waypoint.longitude)
        except InvalidCoordinate as e:
            raise ExportFormatError(f"Waypoint {waypoint.name}: {e}") from e
        checkpoints.append((waypoint.name or "", coordinates))

    logger.debug(f"Parsed {len(checkpoints)} checkpoint waypoints from GPX")
    return checkpoints
