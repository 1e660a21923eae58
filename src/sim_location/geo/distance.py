"""Centralized geographic distance calculations.

This module provides Haversine distance calculations between WGS84
coordinates. Every length in the route engine (segment lengths, remaining
distance to a segment end, per-tick distance covered) comes from here.
"""

import math
from math import atan2, cos, radians, sin, sqrt
from typing import NamedTuple

EARTH_RADIUS_M = 6_371_000  # Earth radius in meters


class Coordinate(NamedTuple):
    """A (latitude, longitude) pair in degrees."""

    latitude: float
    longitude: float


def haversine_distance_m(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate the great-circle distance between two points in meters.

    Uses the Haversine formula to calculate the shortest distance over
    the Earth's surface between two points specified by latitude/longitude.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees

    Returns:
        Distance between the two points in meters
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push a past 1.0 for antipodal points
    a = min(1.0, a)
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_M * c


def distance(a: tuple[float, float], b: tuple[float, float]) -> float:
    """Great-circle distance in meters between two (lat, lon) coordinates.

    Symmetric, and exactly 0.0 when both points are equal.
    """
    if a == b:
        return 0.0
    return haversine_distance_m(a[0], a[1], b[0], b[1])


def calculate_heading(from_coords: tuple[float, float], to_coords: tuple[float, float]) -> float:
    """Initial bearing in degrees [0, 360) from one coordinate toward another."""
    lat1, lon1 = math.radians(from_coords[0]), math.radians(from_coords[1])
    lat2, lon2 = math.radians(to_coords[0]), math.radians(to_coords[1])

    dlon = lon2 - lon1

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)

    bearing_rad = math.atan2(y, x)
    bearing_deg = (math.degrees(bearing_rad) + 360) % 360

    return bearing_deg
