"""
Viewport fitting and zoom animation.

The controller decides *what* the map should frame from a
:class:`FitContext` snapshot and owns the resulting :class:`Transform`.
Every change of target starts a :class:`TransformAnimation`; the GUI
polls :meth:`ViewportController.current_at` from a timer, while logic
and tests only look at :attr:`ViewportController.target`.

Fit priority (first match wins):

  1. SELECTION        a selected alert, zoom 8
  2. FILTERED_ALERTS  alerts view with at least one alert, zoom 0.9
  3. USER_LOCATION    a known user position, zoom 2.5
  4. ALL_DATA         any entity on the map, zoom 0.9
  5. DEFAULT_REGION   the Kenya outline, zoom 0.9

Usage
-----
    vp = ViewportController()
    vp.refresh(FitContext(all_points=pts, view_mode=ViewMode.ALL))
    painter.setTransform(...vp.current_at(time.monotonic())...)
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from ..config import (
    TRANSITION_S,
    ZOOM_ALERTS,
    ZOOM_ALL_DATA,
    ZOOM_SELECTION,
    ZOOM_USER_LOCATION,
)
from ..models.forest import Alert, GeoPoint
from .projector import (
    IDENTITY,
    GeoBounds,
    Transform,
    bounds_of,
    fit_transform,
    project,
)
from .regions import KENYA_BOUNDS, kenya_boundary_points

log = logging.getLogger(__name__)

Point = Tuple[float, float]


class ViewMode(Enum):
    ALL = "all"
    ALERTS = "alerts"


class FitMode(Enum):
    DEFAULT_REGION = "default_region"
    ALL_DATA = "all_data"
    FILTERED_ALERTS = "filtered_alerts"
    SELECTION = "selection"
    USER_LOCATION = "user_location"


@dataclass(frozen=True)
class FitContext:
    """What the map currently shows, in render coordinates."""
    all_points: Sequence[Point] = ()
    alert_points: Sequence[Point] = ()
    user_location: Optional[GeoPoint] = None
    selected_alert: Optional[Alert] = None
    view_mode: ViewMode = ViewMode.ALL


# ── Animation ─────────────────────────────────────────────────────────

def ease_in_out_cubic(t: float) -> float:
    if t < 0.5:
        return 4 * t * t * t
    return 1 - pow(-2 * t + 2, 3) / 2


@dataclass(frozen=True)
class TransformAnimation:
    start: Transform
    end: Transform
    started_at: float
    duration: float = TRANSITION_S

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return max(0.0, min((now - self.started_at) / self.duration, 1.0))

    def finished(self, now: float) -> bool:
        return self.progress(now) >= 1.0

    def frame(self, now: float) -> Transform:
        """Interpolated transform at time ``now``."""
        e = ease_in_out_cubic(self.progress(now))
        s, t = self.start, self.end
        return Transform(
            translate_x=s.translate_x + (t.translate_x - s.translate_x) * e,
            translate_y=s.translate_y + (t.translate_y - s.translate_y) * e,
            scale=s.scale + (t.scale - s.scale) * e,
        )


# ── Controller ────────────────────────────────────────────────────────

class ViewportController:
    """Owns the map transform and the reason it was chosen."""

    def __init__(
        self,
        bounds: GeoBounds = KENYA_BOUNDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._bounds = bounds
        self._clock = clock
        self._target = IDENTITY
        self._mode = FitMode.DEFAULT_REGION
        self._anim: Optional[TransformAnimation] = None

    @property
    def target(self) -> Transform:
        return self._target

    @property
    def mode(self) -> FitMode:
        return self._mode

    @property
    def animating(self) -> bool:
        return self._anim is not None and not self._anim.finished(self._clock())

    def current_at(self, now: Optional[float] = None) -> Transform:
        if self._anim is None:
            return self._target
        return self._anim.frame(self._clock() if now is None else now)

    def _default_region_points(self) -> Sequence[Point]:
        return [project(p.lat, p.lng, self._bounds) for p in kenya_boundary_points()]

    def _move_to(self, target: Transform, mode: FitMode) -> Transform:
        now = self._clock()
        start = self.current_at(now)
        self._anim = TransformAnimation(start=start, end=target, started_at=now)
        self._target = target
        self._mode = mode
        log.debug("Viewport -> %s  k=%.2f", mode.value, target.scale)
        return target

    def refresh(self, ctx: FitContext) -> Transform:
        """Re-fit according to the priority order in the module docstring."""
        if ctx.selected_alert is not None:
            loc = ctx.selected_alert.location
            pt = project(loc.lat, loc.lng, self._bounds)
            return self._move_to(fit_transform(bounds_of([pt]), ZOOM_SELECTION), FitMode.SELECTION)

        if ctx.view_mode is ViewMode.ALERTS and ctx.alert_points:
            return self._move_to(
                fit_transform(bounds_of(ctx.alert_points), ZOOM_ALERTS),
                FitMode.FILTERED_ALERTS,
            )

        if ctx.user_location is not None:
            pt = project(ctx.user_location.lat, ctx.user_location.lng, self._bounds)
            return self._move_to(
                fit_transform(bounds_of([pt]), ZOOM_USER_LOCATION),
                FitMode.USER_LOCATION,
            )

        if ctx.all_points:
            return self._move_to(
                fit_transform(bounds_of(ctx.all_points), ZOOM_ALL_DATA),
                FitMode.ALL_DATA,
            )

        return self._move_to(
            fit_transform(bounds_of(self._default_region_points()), ZOOM_ALL_DATA),
            FitMode.DEFAULT_REGION,
        )

    def focus(self, point: GeoPoint) -> Transform:
        """Zoom onto one geographic point at the selection zoom."""
        pt = project(point.lat, point.lng, self._bounds)
        return self._move_to(fit_transform(bounds_of([pt]), ZOOM_SELECTION), FitMode.SELECTION)

    def reset_zoom(self, ctx: FitContext) -> Transform:
        """Frame everything relevant to the view mode, ignoring selection."""
        if ctx.view_mode is ViewMode.ALERTS:
            points, mode, zoom = ctx.alert_points, FitMode.FILTERED_ALERTS, ZOOM_ALERTS
        else:
            points, mode, zoom = ctx.all_points, FitMode.ALL_DATA, ZOOM_ALL_DATA
        if not points:
            points, mode, zoom = self._default_region_points(), FitMode.DEFAULT_REGION, ZOOM_ALL_DATA
        return self._move_to(fit_transform(bounds_of(points), zoom), mode)
