"""
Great-circle distance and geofence classification.

Haversine on a spherical Earth (R = 6 371 000 m). Accurate to well under
the geofence radius at the distances that matter here.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Final, Optional

EARTH_RADIUS_M: Final[float] = 6371000.0

# Maximum accepted GPS error plus slack. Policy constant.
ARRIVAL_THRESHOLD_M: Final[float] = 50.0


class Proximity(str, Enum):
    WITHIN = "WITHIN"
    OUTSIDE = "OUTSIDE"


def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two WGS84 points.

    Args:
        lat1, lon1: First point in decimal degrees
        lat2, lon2: Second point in decimal degrees

    Returns:
        Distance in meters
    """
    p1 = math.radians(lat1)
    p2 = math.radians(lat2)
    delta_p = p2 - p1
    delta_l = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_p / 2) * math.sin(delta_p / 2)
        + math.cos(p1) * math.cos(p2) * math.sin(delta_l / 2) * math.sin(delta_l / 2)
    )
    # Rounding can push a just past 1 near antipodes.
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def classify(distance_m: float, threshold_m: float = ARRIVAL_THRESHOLD_M) -> Proximity:
    """
    Classify a distance against the geofence radius.

    The boundary itself is outside: only strictly closer claims pass.
    NaN never passes.
    """
    if distance_m < threshold_m:
        return Proximity.WITHIN
    return Proximity.OUTSIDE


def round_half_up(x: float) -> int:
    """Round like JavaScript Math.round (halves go toward +inf)."""
    return int(math.floor(x + 0.5))


def parse_coordinate(value: Any, lo: float, hi: float) -> Optional[float]:
    """
    Parse an untrusted coordinate (JSON number or numeric text).

    Returns:
        The value as float, or None if malformed, non-finite or out of range
    """
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value.isascii() or "_" in value:
            return None
    try:
        x = float(value)
    except (ValueError, OverflowError):
        return None

    if not math.isfinite(x) or not (lo <= x <= hi):
        return None
    return x


def parse_latitude(value: Any) -> Optional[float]:
    return parse_coordinate(value, -90.0, 90.0)


def parse_longitude(value: Any) -> Optional[float]:
    return parse_coordinate(value, -180.0, 180.0)
