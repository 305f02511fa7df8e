#!/usr/bin/env python3
"""
Medroute - Checkpoint routing for emergency medical transport.

This package places safety checkpoints along the great circle between an
origin and a destination, synthesizes nearby medical facilities, tracks
distance travelled and ranks candidate destinations by priority.
"""
import importlib.metadata

__version__ = importlib.metadata.version("medroute")

# Import main classes for public API
from .briefing import RouteBriefing, build_briefing, refresh_briefing
from .checkpoint import Checkpoint, CheckpointRoute, CheckpointStatus
from .config import EngineConfig
from .exceptions import (
    ExportFormatError,
    InvalidCoordinate,
    InvalidRadius,
    MedrouteError,
    UndefinedGreatCircle,
)
from .facilities import FacilityCatalog, FacilityQuery, MedicalFacility
from .generator import CheckpointGenerator, find_nearest
from .geometry import Coordinate
from .scoring import Destination, Priority, rank_destinations
from .tracker import DistanceTracker

__all__ = [
    "RouteBriefing",
    "build_briefing",
    "refresh_briefing",
    "Checkpoint",
    "CheckpointRoute",
    "CheckpointStatus",
    "EngineConfig",
    "ExportFormatError",
    "InvalidCoordinate",
    "InvalidRadius",
    "MedrouteError",
    "UndefinedGreatCircle",
    "FacilityCatalog",
    "FacilityQuery",
    "MedicalFacility",
    "CheckpointGenerator",
    "find_nearest",
    "Coordinate",
    "Destination",
    "Priority",
    "rank_destinations",
    "DistanceTracker",
]
