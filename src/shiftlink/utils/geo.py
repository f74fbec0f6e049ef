"""Geodesic helpers."""

from __future__ import annotations

import math

EARTH_RADIUS_METERS = 6371e3


def haversine_distance(
    origin_lat: float,
    origin_lon: float,
    target_lat: float,
    target_lon: float,
) -> float:
    """Great-circle distance in meters between two WGS84 points."""
    phi1 = math.radians(origin_lat)
    phi2 = math.radians(target_lat)
    d_phi = math.radians(target_lat - origin_lat)
    d_lambda = math.radians(target_lon - origin_lon)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
