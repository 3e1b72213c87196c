"""
Reference geography for Kenya.

The outline is a coarse hand-simplified polygon, good enough to frame
the default map view; it is not a survey-grade border.

Functions
---------
kenya_outline()
    The boundary as a shapely Polygon in (lng, lat) order.
kenya_boundary_points()
    The boundary vertices as GeoPoints, closed ring.
"""
from __future__ import annotations

from typing import List, Tuple

from shapely.geometry import Polygon

from ..models.forest import GeoPoint
from .projector import GeoBounds

# Projection extent of the render surface
KENYA_BOUNDS = GeoBounds(min_lng=33.5, max_lng=42.0, min_lat=-5.0, max_lat=5.5)

KENYA_CENTER = GeoPoint(0.0236, 37.9062)

# ── Simplified border (lat, lng) waypoints, clockwise from the NW ─────
_BOUNDARY_LATLNG: List[Tuple[float, float]] = [
    (4.6, 35.5),     # Lake Turkana / Ilemi
    (3.9, 41.8),     # Mandera
    (-1.0, 41.0),
    (-2.0, 40.7),    # Lamu coast
    (-4.7, 39.2),    # Vanga
    (-3.0, 37.5),    # Kilimanjaro
    (-1.0, 34.0),    # Lake Victoria
    (1.0, 34.5),     # Mt Elgon
    (4.6, 35.5),
]


def kenya_boundary_points() -> List[GeoPoint]:
    return [GeoPoint(lat, lng) for lat, lng in _BOUNDARY_LATLNG]


def kenya_outline() -> Polygon:
    return Polygon([(lng, lat) for lat, lng in _BOUNDARY_LATLNG])
