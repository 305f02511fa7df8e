#!/usr/bin/env python3
"""
Filename utilities for route export files.
"""

import os
import re
import logging

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 180


def _base_name(label: str) -> str:
    """Turn a destination label into a filesystem-safe base name."""
    cleaned = re.sub(r"[^\w\- ]+", "", label).strip()
    return (cleaned or "medroute") + " route"


def _reserve(candidate: str) -> bool:
    """Create candidate exclusively; False if it already exists."""
    try:
        with open(candidate, "x"):
            pass
        return True
    except FileExistsError:
        return False
    except OSError as e:
        logger.error(f"Cannot create file {candidate}: {e}")
        raise ValueError(f"Cannot create file: {e}")


def generate_output_filename(label: str, extension: str, directory: str = "") -> str:
    """
    Generates an export filename and reserves it by creating an empty file.

    "AIIMS Bhopal" with extension "json" becomes "AIIMS Bhopal route.json",
    then "AIIMS Bhopal route (1).json", "AIIMS Bhopal route (2).json" and so
    on when earlier names are taken. Exclusive creation (``open(path, 'x')``)
    reserves the name.

    Args:
        label: Destination label the route leads to
        extension: File extension without the dot, e.g. "json" or "gpx"
        directory: Directory to create the file in (default: current directory)

    Returns:
        Path of the reserved, empty file

    Raises:
        RuntimeError: If no name is free after MAX_ATTEMPTS numbered variants
        ValueError: If the file cannot be created (permissions, invalid name)
    """
    base_output = os.path.join(directory, _base_name(label))

    candidate = f"{base_output}.{extension}"
    if _reserve(candidate):
        return candidate

    for i in range(1, MAX_ATTEMPTS + 1):
        candidate = f"{base_output} ({i}).{extension}"
        if _reserve(candidate):
            return candidate

    logger.error(
        f"Could not find an available filename after {MAX_ATTEMPTS} attempts. "
        f"Please clean up your output directory or specify --output explicitly."
    )
    raise RuntimeError(f"No available filename found after {MAX_ATTEMPTS} attempts")
