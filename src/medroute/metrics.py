"""
Module for collecting and logging metrics about a checkpoint route.
"""

import collections
import logging
from typing import Dict, NamedTuple

from .checkpoint import CheckpointRoute, CheckpointStatus, RoadVisibility

logger = logging.getLogger(__name__)


class RouteMetrics(NamedTuple):
    """Container for checkpoint route metrics."""

    total: int
    operational: int
    maintenance: int
    with_defibrillator: int
    with_oxygen: int
    excellent_visibility: int
    average_spacing_km: float
    total_coverage_km: float
    stopping_areas: Dict[str, int]


def collect_metrics(route: CheckpointRoute) -> RouteMetrics:
    """
    Collect summary counts for the checkpoints on a route.

    Args:
        route: Route to analyze

    Returns:
        RouteMetrics for the route. Average spacing is 0 for a route without
        checkpoints.
    """
    operational = 0
    with_defibrillator = 0
    with_oxygen = 0
    excellent_visibility = 0
    stopping_areas: Dict[str, int] = collections.defaultdict(int)

    for checkpoint in route:
        if checkpoint.status == CheckpointStatus.OPERATIONAL:
            operational += 1
        if checkpoint.facilities.defibrillator:
            with_defibrillator += 1
        if checkpoint.facilities.oxygen_supply:
            with_oxygen += 1
        if checkpoint.visibility.road_visibility == RoadVisibility.EXCELLENT:
            excellent_visibility += 1
        stopping_areas[checkpoint.stopping_area.area_type.value] += 1

    total = len(route)
    return RouteMetrics(
        total=total,
        operational=operational,
        maintenance=total - operational,
        with_defibrillator=with_defibrillator,
        with_oxygen=with_oxygen,
        excellent_visibility=excellent_visibility,
        average_spacing_km=route.total_distance_km / total if total else 0.0,
        total_coverage_km=route.total_distance_km,
        stopping_areas=dict(stopping_areas),
    )


def log_metrics(route: CheckpointRoute, metrics: RouteMetrics, enabled: bool) -> None:
    """
    Log route metrics as a delimited block of key=value lines.

    Args:
        route: Route the metrics were collected from
        metrics: RouteMetrics from collect_metrics
        enabled: Whether metrics output was requested
    """
    if not enabled:
        return

    logger.debug("=== MEDROUTE_METRICS ===")
    logger.debug(f"route_id={route.route_id}")
    logger.debug(f"total_distance_km={route.total_distance_km:.3f}")
    logger.debug(f"total_checkpoints={metrics.total}")
    logger.debug(f"operational_checkpoints={metrics.operational}")
    logger.debug(f"maintenance_checkpoints={metrics.maintenance}")
    logger.debug(f"with_defibrillator={metrics.with_defibrillator}")
    logger.debug(f"with_oxygen={metrics.with_oxygen}")
    logger.debug(f"excellent_visibility={metrics.excellent_visibility}")
    logger.debug(f"average_spacing_km={metrics.average_spacing_km:.3f}")

    for area_type, count in metrics.stopping_areas.items():
        logger.debug(f"stopping_area[{area_type}]={count}")

    logger.debug("=== END_MEDROUTE_METRICS ===")
