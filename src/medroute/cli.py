#!/usr/bin/env python3
"""
Medroute command-line tool.

Generates checkpoint routes between two positions, locates the nearest
checkpoint, lists medical facilities around a position and ranks candidate
destinations. Coordinates are given as "lat,lon"; put "--" before
positional coordinates that start with a minus sign.
"""

from typing import List, Optional
import argparse
import json
import logging
import random
import sys

from . import __version__
from .checkpoint import CheckpointRoute
from .config import EngineConfig
from .exceptions import MedrouteError
from .export import export_route, export_route_gpx, facilities_to_document
from .facilities import (
    FacilityCatalog,
    FacilityCategory,
    FacilityQuery,
    SortKey,
)
from .file_utils import generate_output_filename
from .generator import CheckpointGenerator
from .geodesy import ellipsoidal_distance
from .geometry import parse_coordinate
from .metrics import collect_metrics, log_metrics
from .scoring import (
    Destination,
    distance_category,
    estimated_arrival,
    format_distance,
    format_duration,
    rank_destinations,
)

logger = logging.getLogger("medroute")


def parse_destination(text: str) -> Destination:
    """Parse "Name@lat,lon" into a Destination."""
    name, separator, position = text.rpartition("@")
    if not separator or not name.strip():
        raise ValueError(f"Expected 'Name@lat,lon', got {text!r}")
    return Destination(
        id=name.strip().lower().replace(" ", "-"),
        name=name.strip(),
        coordinates=parse_coordinate(position),
    )


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the random source, for reproducible output",
    )


def _add_route_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("origin", type=parse_coordinate, help="Origin as lat,lon")
    parser.add_argument(
        "destination", type=parse_coordinate, help="Destination as lat,lon"
    )
    parser.add_argument(
        "--label",
        type=str,
        default="Destination",
        help="Destination name used in checkpoint details (default: Destination)",
    )
    parser.add_argument(
        "--spacing",
        type=float,
        default=5.0,
        help="Distance between checkpoints in kilometers (default: 5.0)",
    )
    parser.add_argument(
        "--min-checkpoints",
        type=int,
        default=2,
        help="Checkpoints placed on routes too short for the spacing; 0 disables (default: 2)",
    )


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="medroute",
        description="Checkpoint routing for emergency medical transport",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"medroute {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command")

    route_parser = subparsers.add_parser(
        "route", help="Generate checkpoints between two positions and export them"
    )
    _add_route_arguments(route_parser)
    _add_common_arguments(route_parser)
    route_parser.add_argument(
        "--format",
        type=str,
        default="json",
        choices=["json", "gpx"],
        help="Export format (default: json)",
    )
    route_parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output file, or - for stdout (default: auto-generated from the label)",
    )
    route_parser.add_argument(
        "--metrics",
        action="store_true",
        help="Output structured metrics after processing",
    )

    nearest_parser = subparsers.add_parser(
        "nearest", help="Find the checkpoint nearest to a position"
    )
    _add_route_arguments(nearest_parser)
    _add_common_arguments(nearest_parser)
    nearest_parser.add_argument(
        "--position",
        type=parse_coordinate,
        required=True,
        help="Current position as lat,lon (use --position=lat,lon for negative values)",
    )

    facilities_parser = subparsers.add_parser(
        "facilities", help="List medical facilities around a position"
    )
    facilities_parser.add_argument(
        "center", type=parse_coordinate, help="Search center as lat,lon"
    )
    _add_common_arguments(facilities_parser)
    facilities_parser.add_argument(
        "--radius",
        type=float,
        default=5.0,
        help="Search radius in miles (default: 5.0)",
    )
    facilities_parser.add_argument(
        "--destination",
        type=parse_coordinate,
        default=None,
        help="Route end for distance-from-route, as lat,lon",
    )
    facilities_parser.add_argument(
        "--sort",
        type=str,
        default=SortKey.DISTANCE.value,
        choices=[key.value for key in SortKey],
        help="Sort order (default: distance)",
    )
    facilities_parser.add_argument(
        "--operational-only",
        action="store_true",
        help="Only list operational facilities",
    )
    facilities_parser.add_argument(
        "--available-24-7",
        action="store_true",
        help="Only list facilities open around the clock",
    )
    facilities_parser.add_argument(
        "--category",
        action="append",
        default=[],
        choices=[category.value for category in FacilityCategory],
        help="Only list this category (repeatable)",
    )
    facilities_parser.add_argument(
        "--osm-json",
        type=str,
        default=None,
        help="Overpass JSON file whose elements are merged into the listing",
    )
    facilities_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the facilities as JSON",
    )

    estimate_parser = subparsers.add_parser(
        "estimate", help="Rank destinations by priority and distance"
    )
    estimate_parser.add_argument(
        "position", type=parse_coordinate, help="Current position as lat,lon"
    )
    estimate_parser.add_argument(
        "destinations",
        type=parse_destination,
        nargs="+",
        help="Candidate destinations as Name@lat,lon",
    )
    _add_common_arguments(estimate_parser)

    return parser


def setup_logging(args: argparse.Namespace) -> None:
    """Setup logging configuration."""
    level = getattr(logging, args.log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure the root logger so all modules inherit the configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)


def build_config(args: argparse.Namespace) -> EngineConfig:
    """Create an EngineConfig from parsed arguments."""
    config = EngineConfig(
        log_level=args.log_level,
        metrics=getattr(args, "metrics", False),
    )
    if hasattr(args, "spacing"):
        config.spacing_km = args.spacing
        config.min_checkpoints = args.min_checkpoints
    return config


def determine_output_filename(
    label: str, extension: str, output_arg: Optional[str]
) -> str:
    """
    Determine the output filename to use.

    Args:
        label: Destination label the route leads to
        extension: File extension for the export format
        output_arg: Value from --output argument (None if not specified)

    Returns:
        Output filename to use

    Raises:
        RuntimeError: If auto-generation fails
        ValueError: If constructed filename would be illegal
    """
    if output_arg is not None:
        return output_arg

    try:
        return generate_output_filename(label, extension)
    except (RuntimeError, ValueError) as e:
        logger.error(f"Failed to generate output filename: {e}")
        raise


def _generate(args: argparse.Namespace, config: EngineConfig) -> CheckpointRoute:
    generator = CheckpointGenerator(config=config, rng=random.Random(args.seed))
    return generator.generate(args.origin, args.destination, args.label)


def log_route(route: CheckpointRoute) -> None:
    """Print a one-line summary per checkpoint."""
    print(
        f"{route.destination_label}: {format_distance(route.total_distance_km, 'km')}, "
        f"{len(route)} checkpoints, ETA {format_duration(route.estimated_duration_min)} "
        f"({format_duration(route.expedited_duration_min)} expedited)"
    )
    if not route.checkpoints:
        return

    distance_width = len(f"{route.total_distance_km:.0f}") + 2
    for checkpoint in route:
        print(
            f"{checkpoint.distance_from_start_km:{distance_width}.1f} km "
            f"{checkpoint.get_short_description()} ({checkpoint.status})"
        )


def run_route(args: argparse.Namespace, config: EngineConfig) -> None:
    route = _generate(args, config)
    log_route(route)
    logger.info(
        f"WGS84 ellipsoidal distance: "
        f"{ellipsoidal_distance(route.origin, route.destination):.2f} km"
    )

    if args.format == "gpx":
        content = export_route_gpx(route)
    else:
        content = export_route(route)

    if args.output == "-":
        print(content)
    else:
        output_filename = determine_output_filename(
            route.destination_label, args.format, args.output
        )
        logger.debug(f"Output filename: {output_filename}")
        with open(output_filename, "w", encoding="utf-8") as f:
            f.write(content)
        logger.info(f"Wrote {args.format} export to {output_filename}")

    log_metrics(route, collect_metrics(route), config.metrics)


def run_nearest(args: argparse.Namespace, config: EngineConfig) -> None:
    route = _generate(args, config)
    generator = CheckpointGenerator(config=config)
    nearest = generator.find_nearest(args.position, route)
    if nearest is None:
        print("Route has no checkpoints")
        return

    checkpoint, distance = nearest
    print(
        f"{checkpoint.code} {format_distance(distance)} away: {checkpoint.landmark} "
        f"({checkpoint.intersection})"
    )
    validation = generator.validate(checkpoint)
    for issue in validation.issues:
        print(f"  issue: {issue}")
    for recommendation in validation.recommendations:
        print(f"  recommendation: {recommendation}")


def _load_osm_elements(filename: str) -> List[dict]:
    with open(filename, "r", encoding="utf-8") as f:
        data = json.load(f)
    return data.get("elements", []) if isinstance(data, dict) else data


def run_facilities(args: argparse.Namespace, config: EngineConfig) -> None:
    catalog = FacilityCatalog(config=config, rng=random.Random(args.seed))
    facilities = catalog.synthesize(args.center, args.radius, args.destination)

    if args.osm_json:
        facilities = catalog.merge_external(
            facilities,
            _load_osm_elements(args.osm_json),
            args.center,
            args.destination,
        )

    query = FacilityQuery(
        sort_by=SortKey(args.sort),
        operational_only=args.operational_only,
        available_24_7=args.available_24_7,
        categories=tuple(FacilityCategory(c) for c in args.category),
    )
    selected = FacilityCatalog.sort_and_filter(facilities, query)

    if args.json:
        print(json.dumps(facilities_to_document(selected), indent=2))
        return

    print(f"{len(selected)} of {len(facilities)} facilities:")
    for facility in selected:
        print(
            f"{format_distance(facility.distance_from_center_km):>8} "
            f"{facility.get_short_description()} ({facility.operational_status}, "
            f"~{facility.response_time.current_estimate_min:.0f} min)"
        )


def run_estimate(args: argparse.Namespace, config: EngineConfig) -> None:
    estimates = rank_destinations(args.position, args.destinations, config)
    for estimate in estimates:
        print(
            f"[{estimate.priority}] {estimate.name}: {estimate.distance_km_text} "
            f"{estimate.direction} ({distance_category(estimate.straight_line_km)}), "
            f"{estimate.travel_time} ({estimate.expedited_travel_time} expedited), "
            f"arrive by {estimated_arrival(estimate.duration_min):%H:%M} UTC"
        )


_COMMANDS = {
    "route": run_route,
    "nearest": run_nearest,
    "facilities": run_facilities,
    "estimate": run_estimate,
}


def main(argv: Optional[List[str]] = None) -> None:
    """
    Parses command-line arguments and runs the selected subcommand.
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args)
    config = build_config(args)

    try:
        _COMMANDS[args.command](args, config)
    except MedrouteError as e:
        logger.error(str(e))
        sys.exit(1)
    except (RuntimeError, ValueError) as e:
        logger.error(f"Failed to {args.command}: {e}")
        sys.exit(1)
    except OSError as e:
        logger.error(f"File error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
