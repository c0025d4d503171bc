"""
Geospatial Utilities
Pure functions for distances and coordinate cells
"""

import math
from decimal import Decimal, ROUND_FLOOR
from typing import Tuple

from scanguard.models.scan_event import GeoPoint

# Sphere radius MongoDB uses for 2dsphere distance calculations
EARTH_RADIUS_METERS = 6378100.0

METERS_PER_DEGREE = math.pi * EARTH_RADIUS_METERS / 180.0


def haversine_meters(a: GeoPoint, b: GeoPoint) -> float:
    """
    Great-circle distance between two points

    Args:
        a: First point
        b: Second point

    Returns:
        Distance in meters
    """
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlon = math.radians(b.lon - a.lon)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(h)))


def floor_to_precision(value: float, precision: int) -> float:
    """
    Truncate a coordinate down to a fixed number of decimal places

    Decimal arithmetic on the repr keeps values such as 12.3456 from
    landing in the cell below through binary rounding.
    """
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_FLOOR))


def coordinate_cell(point: GeoPoint, precision: int) -> Tuple[float, float]:
    """
    Grouping cell for a point

    Four decimal places is roughly 11m of latitude. Points differing only
    beyond the precision share a cell.

    Returns:
        (lat, lon) of the cell's south-west corner
    """
    return floor_to_precision(point.lat, precision), floor_to_precision(point.lon, precision)
