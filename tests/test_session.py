import asyncio

import numpy as np
import pytest

from forestwatch.geo.projector import project
from forestwatch.geo.regions import KENYA_BOUNDS
from forestwatch.geo.viewport import FitMode, ViewMode
from forestwatch.layers.entities import EntityKind
from forestwatch.models.forest import GeoPoint
from forestwatch.session import DashboardSession

from conftest import wildfire_response


def _session(service, **kw):
    return DashboardSession(service, viewport_clock=lambda: 0.0, **kw)


@pytest.fixture
def wildfire(service):
    service.queue("forest", wildfire_response())
    session = _session(service, scenario_id="imminent-wildfire")
    asyncio.run(session.store.run_forest_analysis())
    return session


def test_starts_framed_on_all_data(service):
    session = _session(service)
    assert session.viewport.mode is FitMode.ALL_DATA
    assert session.view_mode is ViewMode.ALL


def test_user_location_frames_map(service):
    session = _session(service, user_location=GeoPoint(-1.0, 37.0))
    assert session.viewport.mode is FitMode.USER_LOCATION


def test_wildfire_alerts_view(wildfire):
    alert = wildfire.store.alerts[0]
    assert alert.id.endswith("-0")

    wildfire.set_view_mode(ViewMode.ALERTS)
    layers = wildfire.layers()
    assert len(layers.alerts) == 1
    assert layers.tiles == () and layers.sensors == () and layers.incentives == ()
    spot = next(h for h in layers.heat if h.source_id == alert.id)
    assert spot.radius == 80
    assert wildfire.viewport.mode is FitMode.FILTERED_ALERTS


def test_wildfire_evidence_resolves(wildfire):
    ev = wildfire.evidence_for(wildfire.store.alerts[0])
    assert [t.id for t in ev.tiles] == ["tile-fire-A"]
    assert [s.sensor_id for s in ev.sensors] == ["sensor-fire-1", "sensor-fire-2"]
    assert [r.report_id for r in ev.reports] == ["report-fire-1"]


def test_click_sensor_then_select_alert(wildfire):
    x, y = project(-1.27, 36.84, KENYA_BOUNDS)
    hit = wildfire.click_at(x, y, scale=10)
    assert hit.kind is EntityKind.SENSOR
    assert wildfire.selection.selected_background.entity_id == "sensor-fire-2"
    assert wildfire.viewport.mode is FitMode.ALL_DATA

    wildfire.select_alert(wildfire.store.alerts[0])
    assert wildfire.selection.selected_background is None
    assert wildfire.viewport.mode is FitMode.SELECTION
    assert wildfire.viewport.target.scale == pytest.approx(400)


def test_click_on_empty_map_clears(wildfire):
    wildfire.select_alert(wildfire.store.alerts[0])
    assert wildfire.click_at(5.0, 5.0, scale=1) is None
    assert wildfire.selection.selection is None
    assert wildfire.viewport.mode is FitMode.ALL_DATA


def test_alerts_view_drops_background_selection(wildfire):
    x, y = project(-1.27, 36.84, KENYA_BOUNDS)
    wildfire.click_at(x, y, scale=10)
    wildfire.set_view_mode(ViewMode.ALERTS)
    assert wildfire.selection.selection is None


def test_rerun_clears_alert_selection(wildfire, service):
    wildfire.select_alert(wildfire.store.alerts[0])
    service.queue("forest", wildfire_response())
    asyncio.run(wildfire.store.run_forest_analysis())
    assert wildfire.selection.selected_alert is None
    assert wildfire.viewport.mode is FitMode.ALL_DATA


def test_toggles(service):
    session = _session(service)
    assert session.toggle_heatmap() is False
    assert session.layers().heat == ()
    assert session.toggle_restoration() is False
    assert session.layers().restoration == ()


def test_simulate_tick_needs_scenario(service):
    session = _session(service)
    before = session.store.forest_input
    session.simulate_tick(np.random.default_rng(1))
    assert session.store.forest_input is before


def test_simulate_tick_advances_scenario(service):
    session = _session(service, scenario_id="imminent-wildfire")
    before = session.store.forest_input
    session.simulate_tick(np.random.default_rng(1))
    after = session.store.forest_input
    assert after is not before
    assert after.sensor_readings[0].temperature >= before.sensor_readings[0].temperature


def test_load_scenario_and_back(service):
    session = _session(service)
    session.load_scenario("illegal-logging")
    assert session.scenario_id == "illegal-logging"
    assert [t.id for t in session.store.forest_input.satellite_tiles] == ["tile-log-A"]
    assert any(item.entity.entity_id == "tile-log-A" for item in session.layers().tiles)

    session.load_sample()
    assert session.scenario_id is None
    assert session.store.forest_input.satellite_tiles[0].id == "ST-KRG-001"


def test_store_changes_wait_for_dispatch(service):
    queued = []
    session = _session(service, scenario_id="imminent-wildfire", dispatch=queued.append)
    service.queue("forest", wildfire_response())
    asyncio.run(session.store.run_forest_analysis())

    assert len(session.store.alerts) == 1
    assert session.index.alerts == ()
    for fn in queued:
        fn()
    assert len(session.index.alerts) == 1
    assert session.viewport.mode is FitMode.ALL_DATA


def test_selection_follow_up_runs_through_dispatch(service):
    queued = []
    session = _session(service, scenario_id="imminent-wildfire", dispatch=queued.append)
    service.queue("forest", wildfire_response())
    asyncio.run(session.store.run_forest_analysis())
    while queued:
        queued.pop(0)()

    session.select_alert(session.store.alerts[0])
    assert session.viewport.mode is FitMode.ALL_DATA
    assert len(queued) == 1
    queued.pop()()
    assert session.viewport.mode is FitMode.SELECTION


def test_user_marker(service):
    assert _session(service).user_marker() is None
    session = _session(service, user_location=GeoPoint(-1.0, 37.0))
    assert session.user_marker() == pytest.approx(project(-1.0, 37.0, KENYA_BOUNDS))
