from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current time in UTC."""
    return datetime.now(timezone.utc)


@dataclass
class EngineConfig:
    """Policy constants for checkpoint generation and scoring."""

    spacing_km: float = 5.0
    min_checkpoints: int = 2
    destination_remainder_km: float = 2.0
    self_check_tolerance_km: float = 0.05
    inspection_max_age_days: int = 30
    base_speed_kmh: float = 35.0
    traffic_penalty: float = 1.4
    expedited_factor: float = 0.7
    high_priority_km: float = 5.0
    medium_priority_km: float = 15.0
    road_distance_factor: float = 1.3
    update_interval_min: float = 5.0
    log_level: str = "WARNING"
    metrics: bool = False
