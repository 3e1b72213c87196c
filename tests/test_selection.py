import pytest

from forestwatch.data import seed
from forestwatch.geo.viewport import ViewMode
from forestwatch.layers.entities import MapEntity
from forestwatch.layers.selection import MapInteractionController
from forestwatch.models.forest import Alert, AlertType, GeoPoint, Severity

ALERT = Alert(
    type=AlertType.LOGGING,
    severity=Severity.HIGH,
    location=GeoPoint(-1.27, 36.81),
    confidence=0.7,
    threat_weight_score=0.55,
    id="1700000000000-0",
)
SENSOR = MapEntity.of(seed.threat_sample().sensor_readings[0])
TILE = MapEntity.of(seed.threat_sample().satellite_tiles[0])
PROGRAM = MapEntity.of(seed.pes_programs()[0])
PROJECT = MapEntity.of(seed.restoration_projects()[0])


@pytest.fixture
def sel():
    return MapInteractionController()


def _kinds_selected(sel):
    return [
        x for x in (sel.selected_alert, sel.selected_background, sel.selected_program)
        if x is not None
    ]


def test_at_most_one_kind_selected(sel):
    for entity in (SENSOR, MapEntity.of(ALERT), PROGRAM, TILE, MapEntity.of(ALERT)):
        sel.select(entity)
        assert len(_kinds_selected(sel)) == 1


def test_alert_replaces_background(sel):
    sel.select(SENSOR)
    sel.select_alert(ALERT)
    assert sel.selected_alert == ALERT
    assert sel.selected_background is None


def test_program_popover_closes_when_something_else_selected(sel):
    sel.select(PROGRAM)
    assert sel.popover_program.id == "PES-FOREST-001"
    sel.select(TILE)
    assert sel.popover_program is None


def test_restoration_not_selectable(sel):
    with pytest.raises(ValueError):
        sel.select(PROJECT)


def test_alerts_view_only_selects_alerts(sel):
    sel.set_view_mode(ViewMode.ALERTS)
    with pytest.raises(ValueError):
        sel.select(SENSOR)
    sel.select_alert(ALERT)
    assert sel.selected_alert == ALERT


def test_switching_to_alerts_view_drops_background(sel):
    sel.select(SENSOR)
    sel.set_view_mode(ViewMode.ALERTS)
    assert sel.selection is None


def test_switching_to_alerts_view_keeps_alert(sel):
    sel.select_alert(ALERT)
    sel.set_view_mode(ViewMode.ALERTS)
    assert sel.selected_alert == ALERT


def test_background_click_clears(sel):
    sel.select(PROGRAM)
    sel.handle_click(None)
    assert sel.selection is None


def test_select_alert_none_only_clears_alerts(sel):
    sel.select(SENSOR)
    sel.select_alert(None)
    assert sel.selected_background == SENSOR
    sel.select_alert(ALERT)
    sel.select_alert(None)
    assert sel.selection is None


def test_close_detail_keeps_program_popover(sel):
    sel.select(PROGRAM)
    sel.close_detail()
    assert sel.selected_program is not None
    sel.select(TILE)
    sel.close_detail()
    assert sel.selection is None


def test_listeners_fire_on_change_only(sel):
    seen = []
    sel.add_listener(seen.append)
    sel.select(PROGRAM)
    sel.select(PROGRAM)
    sel.clear()
    sel.clear()
    assert seen == [PROGRAM, None]


def test_detail_collapse_resets_on_new_selection(sel):
    sel.select(SENSOR)
    assert sel.toggle_detail() is True
    assert sel.detail_collapsed
    sel.select(TILE)
    assert not sel.detail_collapsed
