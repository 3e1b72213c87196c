"""
Geographic to render-space projection.

The map is drawn on a fixed 800 x 1000 render surface.  Longitude maps
linearly onto x and latitude onto y (inverted, north up) within a
:class:`GeoBounds` box; the viewport then applies a :class:`Transform`
(uniform scale + translation) on top of those render coordinates.

Functions
---------
project(lat, lng, bounds)
    Geographic point to render coordinates.
unproject(x, y, bounds)
    Exact inverse of ``project``.
bounds_of(points)
    Render-space bounding box of a set of points.
fit_transform(bounds, zoom)
    Transform that fits a render box inside the padded surface.

Usage
-----
    x, y = project(-1.28, 36.82, KENYA_BOUNDS)
    t = fit_transform(bounds_of([(x, y)]), zoom=8.0)
    sx, sy = t.apply(x, y)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from ..config import DEGENERATE_SCALE, FIT_PADDING, MAP_HEIGHT, MAP_WIDTH
from ..models.forest import GeoPoint


@dataclass(frozen=True)
class GeoBounds:
    """Geographic box the render surface spans."""
    min_lng: float
    max_lng: float
    min_lat: float
    max_lat: float

    @property
    def is_degenerate(self) -> bool:
        return self.max_lng <= self.min_lng or self.max_lat <= self.min_lat


@dataclass(frozen=True)
class RenderBounds:
    """Axis-aligned box in render coordinates."""
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        return (self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0


FULL_SURFACE = RenderBounds(0.0, MAP_WIDTH, 0.0, MAP_HEIGHT)


@dataclass(frozen=True)
class Transform:
    """Screen = render * scale + translate."""
    translate_x: float = 0.0
    translate_y: float = 0.0
    scale: float = 1.0

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        return x * self.scale + self.translate_x, y * self.scale + self.translate_y

    def invert(self, sx: float, sy: float) -> Tuple[float, float]:
        return (sx - self.translate_x) / self.scale, (sy - self.translate_y) / self.scale

    def as_dict(self) -> dict:
        return {"x": self.translate_x, "y": self.translate_y, "k": self.scale}


IDENTITY = Transform()


# ── Projection ────────────────────────────────────────────────────────

def project(lat: float, lng: float, bounds: GeoBounds) -> Tuple[float, float]:
    """Project a WGS84 point into render coordinates.

    Parameters
    ----------
    lat, lng : float
        Point in degrees.  Points outside ``bounds`` project outside the
        surface; nothing is clamped.
    bounds : GeoBounds
        Geographic extent of the surface; must have positive area.

    Returns
    -------
    (x, y) in render units, y growing southwards.
    """
    if bounds.is_degenerate:
        raise ValueError(f"degenerate geographic bounds: {bounds}")
    x = (lng - bounds.min_lng) / (bounds.max_lng - bounds.min_lng) * MAP_WIDTH
    y = MAP_HEIGHT - (lat - bounds.min_lat) / (bounds.max_lat - bounds.min_lat) * MAP_HEIGHT
    return x, y


def unproject(x: float, y: float, bounds: GeoBounds) -> GeoPoint:
    """Inverse of :func:`project`."""
    if bounds.is_degenerate:
        raise ValueError(f"degenerate geographic bounds: {bounds}")
    lng = bounds.min_lng + x / MAP_WIDTH * (bounds.max_lng - bounds.min_lng)
    lat = bounds.min_lat + (MAP_HEIGHT - y) / MAP_HEIGHT * (bounds.max_lat - bounds.min_lat)
    return GeoPoint(lat, lng)


def bounds_of(points: Iterable[Tuple[float, float]]) -> RenderBounds:
    """Bounding box of render-space ``(x, y)`` points.

    An empty input yields the full render surface.
    """
    arr = np.asarray(list(points), dtype=float)
    if arr.size == 0:
        return FULL_SURFACE
    mins = arr.min(axis=0)
    maxs = arr.max(axis=0)
    return RenderBounds(float(mins[0]), float(maxs[0]), float(mins[1]), float(maxs[1]))


def fit_transform(bounds: RenderBounds, zoom: float = 1.0) -> Transform:
    """Transform that centres ``bounds`` on the surface.

    The box is scaled to fill the surface minus ``FIT_PADDING`` on each
    side, times ``zoom``.  A box with zero width or height (a single
    point, or collinear points) has no natural scale; it is centred at
    ``DEGENERATE_SCALE * zoom`` instead.
    """
    cx, cy = bounds.center
    if bounds.width == 0 or bounds.height == 0:
        scale = DEGENERATE_SCALE * zoom
    else:
        avail_w = MAP_WIDTH - 2 * FIT_PADDING
        avail_h = MAP_HEIGHT - 2 * FIT_PADDING
        scale = min(avail_w / bounds.width, avail_h / bounds.height) * zoom
    return Transform(
        translate_x=MAP_WIDTH / 2.0 - cx * scale,
        translate_y=MAP_HEIGHT / 2.0 - cy * scale,
        scale=scale,
    )
