################################################################################
# File Name: geometry.py
# Purpose/Description: Haversine distance over coordinate sequences
# Author: Mileage Core Team
# Creation Date: 2026-10-03
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-03    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Geometry engine.

Pure functions, no state. totalDistance() is the authoritative way to derive
a trip's distance; segmentDistance() exists for the auto-detection path,
which adds only the newest segment between periodic full recomputes.

Usage:
    from mileage.geometry import totalDistance, UNIT_MILES

    miles = totalDistance(trip.points, UNIT_MILES)
"""

import math
from collections.abc import Sequence

from .types import Coordinates

EARTH_RADIUS_MILES = 3958.8
EARTH_RADIUS_KM = 6371.0

UNIT_MILES = 'miles'
UNIT_KM = 'km'

_RADII = {
    UNIT_MILES: EARTH_RADIUS_MILES,
    UNIT_KM: EARTH_RADIUS_KM,
}


def distance(a: Coordinates, b: Coordinates, unit: str = UNIT_MILES) -> float:
    """
    Great-circle distance between two fixes.

    Args:
        a: First coordinate
        b: Second coordinate
        unit: 'miles' or 'km'

    Returns:
        Distance in the requested unit (0.0 for identical points)

    Raises:
        ValueError: If unit is unknown
    """
    if unit not in _RADII:
        raise ValueError(f"Unknown distance unit: {unit}")

    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    deltaLat = math.radians(b.lat - a.lat)
    deltaLng = math.radians(b.lng - a.lng)

    h = (
        math.sin(deltaLat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(deltaLng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return _RADII[unit] * c


def totalDistance(points: Sequence[Coordinates], unit: str = UNIT_MILES) -> float:
    """
    Sum of distances between consecutive points, in sequence order.

    Accumulates left to right, so a stored prefix total plus
    segmentDistance() reproduces this result exactly.

    Returns:
        Total path length, 0.0 for fewer than two points
    """
    total = 0.0
    for i in range(1, len(points)):
        total += distance(points[i - 1], points[i], unit)
    return total


def segmentDistance(points: Sequence[Coordinates], unit: str = UNIT_MILES) -> float:
    """
    Length of the newest segment (last two points).

    Returns:
        Distance of the last segment, 0.0 for fewer than two points
    """
    if len(points) < 2:
        return 0.0
    return distance(points[-2], points[-1], unit)
