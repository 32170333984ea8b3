"""Distance accumulation along a path with a latitude-dependent Earth radius.

Segment lengths use a first order cartesian approximation instead of the
elliptic integral: the radial difference (radius plus altitude) and the arc
length at the mean radius form the two legs of a right triangle.
"""

from __future__ import annotations

import math
from typing import Final

from geo_tracks.models import Coordinate

# WGS 84
EQUATORIAL_RADIUS_M: Final[float] = 6378137.0
POLAR_RADIUS_M: Final[float] = 6356752.0

_R1_2 = EQUATORIAL_RADIUS_M * EQUATORIAL_RADIUS_M
_R1_4 = _R1_2 * _R1_2
_R2_2 = POLAR_RADIUS_M * POLAR_RADIUS_M
_R2_4 = _R2_2 * _R2_2


def earth_radius(lat: float) -> float:
    """Return the geocentric WGS 84 radius in meters at latitude ``lat`` (degrees)."""

    phi = math.radians(lat)
    s_2 = math.sin(phi) ** 2
    c_2 = math.cos(phi) ** 2
    return math.sqrt((_R1_4 * c_2 + _R2_4 * s_2) / (_R1_2 * c_2 + _R2_2 * s_2))


def arc_angle(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the haversine central angle in radians between two points."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lon2) - math.radians(lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    return 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))


def segment_distance(prev: Coordinate | None, cur: Coordinate | None) -> float:
    """Distance in meters from ``prev`` to ``cur``; 0 if either is missing."""

    if prev is None or cur is None:
        return 0.0

    r1 = earth_radius(prev.lat)
    r2 = earth_radius(cur.lat)
    arc = arc_angle(prev.lat, prev.lon, cur.lat, cur.lon)
    return math.sqrt(
        (r1 + prev.alt - r2 - cur.alt) ** 2 + (arc * (r1 + prev.alt + r2 + cur.alt) / 2.0) ** 2
    )
