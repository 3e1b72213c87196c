import pytest

from forestwatch.config import MAP_HEIGHT, MAP_WIDTH, TRANSITION_S
from forestwatch.geo.projector import IDENTITY, project
from forestwatch.geo.regions import KENYA_BOUNDS
from forestwatch.geo.viewport import (
    FitContext,
    FitMode,
    TransformAnimation,
    ViewMode,
    ViewportController,
    ease_in_out_cubic,
)
from forestwatch.models.forest import Alert, AlertType, GeoPoint, Severity


class Clock:
    def __init__(self, t: float = 100.0):
        self.t = t

    def __call__(self) -> float:
        return self.t


def _alert(lat=-1.25, lng=36.85):
    return Alert(
        type=AlertType.FIRE,
        severity=Severity.HIGH,
        location=GeoPoint(lat, lng),
        confidence=0.8,
        threat_weight_score=0.6,
        id="a-0",
    )


def _pts(*latlng):
    return [project(lat, lng, KENYA_BOUNDS) for lat, lng in latlng]


ALL = _pts((-1.28, 36.80), (-1.26, 36.82), (-4.42, 39.5))
ALERTS = _pts((-1.25, 36.85), (-1.0, 37.0))
USER = GeoPoint(0.5, 37.5)


def test_empty_context_frames_default_region():
    vp = ViewportController(clock=Clock())
    vp.refresh(FitContext())
    assert vp.mode is FitMode.DEFAULT_REGION


def test_all_data_when_entities_exist():
    vp = ViewportController(clock=Clock())
    vp.refresh(FitContext(all_points=ALL))
    assert vp.mode is FitMode.ALL_DATA


def test_user_location_beats_all_data():
    vp = ViewportController(clock=Clock())
    vp.refresh(FitContext(all_points=ALL, user_location=USER))
    assert vp.mode is FitMode.USER_LOCATION
    assert vp.target.scale == pytest.approx(125.0)


def test_alerts_view_beats_user_location():
    vp = ViewportController(clock=Clock())
    vp.refresh(FitContext(all_points=ALL, alert_points=ALERTS, user_location=USER,
                          view_mode=ViewMode.ALERTS))
    assert vp.mode is FitMode.FILTERED_ALERTS


def test_alerts_view_without_alerts_falls_through():
    vp = ViewportController(clock=Clock())
    vp.refresh(FitContext(all_points=ALL, view_mode=ViewMode.ALERTS))
    assert vp.mode is FitMode.ALL_DATA


def test_selection_beats_everything():
    vp = ViewportController(clock=Clock())
    alert = _alert()
    vp.refresh(FitContext(all_points=ALL, alert_points=ALERTS, user_location=USER,
                          selected_alert=alert, view_mode=ViewMode.ALERTS))
    assert vp.mode is FitMode.SELECTION
    assert vp.target.scale == pytest.approx(400.0)
    x, y = project(alert.location.lat, alert.location.lng, KENYA_BOUNDS)
    assert vp.target.apply(x, y) == pytest.approx((MAP_WIDTH / 2, MAP_HEIGHT / 2))


def test_reset_zoom_ignores_selection():
    vp = ViewportController(clock=Clock())
    ctx = FitContext(all_points=ALL, selected_alert=_alert())
    vp.refresh(ctx)
    vp.reset_zoom(ctx)
    assert vp.mode is FitMode.ALL_DATA


def test_reset_zoom_in_alerts_view():
    vp = ViewportController(clock=Clock())
    vp.reset_zoom(FitContext(all_points=ALL, alert_points=ALERTS, view_mode=ViewMode.ALERTS))
    assert vp.mode is FitMode.FILTERED_ALERTS


def test_transition_animates_to_target():
    clock = Clock()
    vp = ViewportController(clock=clock)
    assert vp.current_at() == IDENTITY

    target = vp.refresh(FitContext(all_points=ALL))
    assert vp.animating
    assert vp.current_at(clock.t) == IDENTITY

    mid = vp.current_at(clock.t + TRANSITION_S / 2)
    assert IDENTITY.scale != mid.scale != target.scale

    clock.t += TRANSITION_S
    assert not vp.animating
    assert vp.current_at() == target


def test_retarget_starts_from_current_frame():
    clock = Clock()
    vp = ViewportController(clock=clock)
    vp.refresh(FitContext(all_points=ALL))
    clock.t += TRANSITION_S / 2
    halfway = vp.current_at()
    vp.focus(GeoPoint(-1.25, 36.85))
    assert vp.current_at() == halfway


def test_ease_curve_endpoints():
    assert ease_in_out_cubic(0.0) == 0.0
    assert ease_in_out_cubic(0.5) == pytest.approx(0.5)
    assert ease_in_out_cubic(1.0) == 1.0


def test_zero_duration_animation_is_finished():
    anim = TransformAnimation(IDENTITY, IDENTITY, started_at=0.0, duration=0.0)
    assert anim.finished(0.0)
