import logging
import random
from medroute.generator import CheckpointGenerator
from medroute.geometry import Coordinate
from medroute.metrics import collect_metrics, log_metrics


def make_route(destination):
    return CheckpointGenerator(rng=random.Random(0)).generate(
        Coordinate(0.0, 0.0), destination, "Equator General"
    )


def test_collect_metrics_counts():
    # 0.65 degrees along the equator is about 72.28 km: 14 regular checkpoints
    # and a destination checkpoint
    route = make_route(Coordinate(0.0, 0.65))
    metrics = collect_metrics(route)

    assert metrics.total == len(route) == 15
    assert metrics.maintenance == 1  # CP10
    assert metrics.operational == 14
    # even indices 2..14 plus the destination checkpoint
    assert metrics.with_defibrillator == 8
    # 3, 6, 9, 12 plus the destination checkpoint
    assert metrics.with_oxygen == 5
    # 4, 8, 12 plus the destination checkpoint
    assert metrics.excellent_visibility == 4
    assert metrics.total_coverage_km == route.total_distance_km
    assert metrics.average_spacing_km == route.total_distance_km / 15
    assert metrics.stopping_areas["hospital_entrance"] == 1
    assert sum(metrics.stopping_areas.values()) == 15


def test_collect_metrics_empty_route():
    route = make_route(Coordinate(0.0, 0.0))
    metrics = collect_metrics(route)
    assert metrics.total == 0
    assert metrics.average_spacing_km == 0.0
    assert metrics.stopping_areas == {}


def test_log_metrics_block(caplog):
    route = make_route(Coordinate(0.0, 0.2))
    with caplog.at_level(logging.DEBUG, logger="medroute.metrics"):
        log_metrics(route, collect_metrics(route), enabled=True)
    assert "=== MEDROUTE_METRICS ===" in caplog.text
    assert "total_checkpoints=5" in caplog.text
    assert "=== END_MEDROUTE_METRICS ===" in caplog.text


def test_log_metrics_disabled(caplog):
    route = make_route(Coordinate(0.0, 0.2))
    with caplog.at_level(logging.DEBUG, logger="medroute.metrics"):
        log_metrics(route, collect_metrics(route), enabled=False)
    assert "MEDROUTE_METRICS" not in caplog.text
