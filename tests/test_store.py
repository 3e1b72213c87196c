import asyncio
import json

import pytest

from forestwatch.analysis.errors import MalformedResponseError, TransportError
from forestwatch.analysis.session import (
    FOREST,
    WASTE,
    AnalysisSessionStore,
    OperationStatus,
    merge_programs,
)
from forestwatch.data import seed
from forestwatch.layers.selection import MapInteractionController
from forestwatch.models.forest import (
    Alert,
    AlertType,
    ForestWatchResponse,
    GeoPoint,
    Severity,
)

from conftest import (
    FakeService,
    alert_payload,
    forest_payload,
    waste_response,
    wildfire_response,
)

NOW = 1_700_000_000.5


def _store(service, **kw):
    kw.setdefault("forest_input", seed.threat_sample())
    kw.setdefault("waste_input", seed.waste_sample())
    kw.setdefault("pes_programs", seed.pes_programs())
    return AnalysisSessionStore(service, clock=lambda: NOW, **kw)


def _response(n_alerts, risk="High"):
    return ForestWatchResponse.from_dict(
        forest_payload([alert_payload(tws=0.5 + i / 100) for i in range(n_alerts)], risk=risk)
    )


def _program(pid, name):
    return {"id": pid, "name": name, "type": "forest", "locationLabel": "Kakamega",
            "metrics": {"haMonitored": 50}, "readinessScore": 0.5,
            "indicativePaymentPerPeriodKes": 60000, "benefitSharing": []}


def test_forest_run_assigns_ids_and_timestamp(service):
    service.queue("forest", _response(3))
    store = _store(service)
    state = asyncio.run(store.run_forest_analysis())

    assert state.status is OperationStatus.SUCCEEDED
    assert [a.id for a in store.alerts] == [
        "1700000000500-0", "1700000000500-1", "1700000000500-2",
    ]
    assert store.forest_result.timestamp.startswith("2023-11-14T22:13:20")
    assert store.find_alert("1700000000500-1").threat_weight_score == pytest.approx(0.51)


def test_failure_keeps_previous_result(service):
    service.queue("forest", wildfire_response(), TransportError("timed out"))
    store = _store(service)
    asyncio.run(store.run_forest_analysis())
    first = store.forest_result

    state = asyncio.run(store.run_forest_analysis())
    assert state.status is OperationStatus.FAILED
    assert state.error == "Analysis service error: timed out"
    assert store.forest_result is first
    assert not store.is_pending(FOREST)


def test_pending_while_in_flight():
    service = FakeService(gated=True).queue("forest", wildfire_response())
    store = _store(service)
    seen = []
    store.add_listener(lambda op: seen.append((op, store.state(op).status)))

    async def scenario():
        task = asyncio.ensure_future(store.run_forest_analysis())
        await asyncio.sleep(0)
        assert store.is_pending(FOREST)
        service.release(0)
        await task

    asyncio.run(scenario())
    assert seen == [(FOREST, OperationStatus.PENDING), (FOREST, OperationStatus.SUCCEEDED)]
    assert not store.is_pending(FOREST)


def test_operations_are_pending_independently():
    service = FakeService(gated=True)
    service.queue("forest", wildfire_response()).queue("waste", waste_response())
    store = _store(service)

    async def scenario():
        forest = asyncio.ensure_future(store.run_forest_analysis())
        await asyncio.sleep(0)
        waste = asyncio.ensure_future(store.run_waste_analysis())
        await asyncio.sleep(0)
        assert store.is_pending(FOREST) and store.is_pending(WASTE)

        service.release(1)
        await waste
        assert store.is_pending(FOREST)
        assert store.state(WASTE).status is OperationStatus.SUCCEEDED

        service.release(0)
        await forest

    asyncio.run(scenario())
    assert store.state(FOREST).status is OperationStatus.SUCCEEDED
    assert len(store.alerts) == 1


@pytest.mark.parametrize("release_order", [(0, 1), (1, 0)])
def test_latest_run_wins(release_order):
    older, newer = _response(1, risk="Low"), _response(2, risk="Critical")
    service = FakeService(gated=True).queue("forest", older, newer)
    store = _store(service)

    async def scenario():
        first = asyncio.ensure_future(store.run_forest_analysis())
        await asyncio.sleep(0)
        second = asyncio.ensure_future(store.run_forest_analysis())
        await asyncio.sleep(0)
        for i in release_order:
            service.release(i)
            await asyncio.sleep(0)
        await asyncio.gather(first, second)

    asyncio.run(scenario())
    assert len(store.alerts) == 2
    assert store.forest_result.summary.overall_forest_risk is Severity.CRITICAL
    assert store.state(FOREST).status is OperationStatus.SUCCEEDED


def test_stale_failure_is_ignored():
    service = FakeService(gated=True).queue(
        "forest", MalformedResponseError("bad"), wildfire_response(),
    )
    store = _store(service)

    async def scenario():
        first = asyncio.ensure_future(store.run_forest_analysis())
        await asyncio.sleep(0)
        second = asyncio.ensure_future(store.run_forest_analysis())
        await asyncio.sleep(0)
        service.release(1)
        await second
        service.release(0)
        await first

    asyncio.run(scenario())
    assert store.state(FOREST).status is OperationStatus.SUCCEEDED
    assert store.state(FOREST).error is None


def test_forest_run_clears_selected_alert(service):
    service.queue("forest", wildfire_response())
    selection = MapInteractionController()
    selection.select_alert(Alert(AlertType.FIRE, Severity.HIGH, GeoPoint(-1.0, 37.0), 0.8, 0.6, id="old"))
    store = _store(service, selection=selection)
    asyncio.run(store.run_forest_analysis())
    assert selection.selected_alert is None


def test_waste_run(service):
    service.queue("waste", waste_response())
    store = _store(service)
    asyncio.run(store.run_waste_analysis())
    assert store.waste_result.summary.efficiency_score == 72
    assert store.waste_result.timestamp


def test_incentive_merge_is_insert_only(service, insights_factory):
    service.queue("incentives", insights_factory(
        _program("PES-FOREST-001", "Renamed by model"),
        _program("PES-FOREST-099", "Kakamega Canopy Watch"),
        _program("PES-FOREST-099", "Duplicate suggestion"),
    ))
    store = _store(service)
    asyncio.run(store.run_incentive_analysis())

    names = {p.id: p.name for p in store.pes_programs}
    assert [p.id for p in store.pes_programs] == ["PES-FOREST-001", "PES-WASTE-002", "PES-FOREST-099"]
    assert names["PES-FOREST-001"] == "Mau Forest Block A Conservation"
    assert names["PES-FOREST-099"] == "Kakamega Canopy Watch"
    assert store.incentive_insights.narrative_summary == "Two new programs."


def test_incentive_failure_leaves_programs(service):
    service.queue("incentives", TransportError("offline"))
    store = _store(service)
    before = store.pes_programs
    state = asyncio.run(store.run_incentive_analysis())
    assert state.status is OperationStatus.FAILED
    assert store.pes_programs == before


def test_repeated_suggestions_add_nothing(service, insights_factory):
    suggestion = insights_factory(_program("PES-FOREST-099", "Kakamega Canopy Watch"))
    service.queue("incentives", suggestion, suggestion)
    store = _store(service)
    asyncio.run(store.run_incentive_analysis())
    after_first = store.pes_programs
    asyncio.run(store.run_incentive_analysis())
    assert len(after_first) == 3
    assert store.pes_programs == after_first


def test_stale_incentive_suggestions_not_merged(insights_factory):
    service = FakeService(gated=True).queue(
        "incentives",
        insights_factory(_program("PES-OLD", "Stale")),
        insights_factory(_program("PES-NEW", "Fresh")),
    )
    store = _store(service)

    async def scenario():
        first = asyncio.ensure_future(store.run_incentive_analysis())
        await asyncio.sleep(0)
        second = asyncio.ensure_future(store.run_incentive_analysis())
        await asyncio.sleep(0)
        service.release(1)
        await second
        service.release(0)
        await first

    asyncio.run(scenario())
    ids = [p.id for p in store.pes_programs]
    assert "PES-NEW" in ids and "PES-OLD" not in ids


def test_incentive_request_sees_latest_results(service, insights_factory):
    service.queue("forest", wildfire_response())
    service.queue("incentives", insights_factory())
    store = _store(service)
    asyncio.run(store.run_forest_analysis())
    asyncio.run(store.run_incentive_analysis())
    _, forest_result, waste_result, forest_input, _, programs = service.calls[-1]
    assert forest_result is store.forest_result
    assert waste_result is None
    assert forest_input == store.forest_input
    assert len(programs) == 2


def test_merge_programs_unit():
    existing = seed.pes_programs()
    assert merge_programs(existing, existing) == existing
    assert merge_programs((), existing) == existing


def test_knowledge_and_plant(service, knowledge_answer, plant_answer):
    service.queue("knowledge", knowledge_answer)
    service.queue("plant", plant_answer)
    store = _store(service)
    asyncio.run(store.ask_knowledge("  What is Prunus africana?  "))
    asyncio.run(store.identify_plant(b"jpeg", GeoPoint(-0.3, 34.8)))
    assert store.knowledge_answer.related_species == ("Prunus africana",)
    assert store.plant_result.status == "Invasive"
    assert service.calls[0] == ("knowledge", "What is Prunus africana?")


def test_knowledge_tools_reject_empty_input(service):
    store = _store(service)
    with pytest.raises(ValueError):
        asyncio.run(store.ask_knowledge("   "))
    with pytest.raises(ValueError):
        asyncio.run(store.identify_plant(b""))
    assert store.state("knowledge").status is OperationStatus.IDLE


def test_unexpected_error_marks_run_failed(service):
    service.queue("forest", RuntimeError("bug"))
    store = _store(service)
    with pytest.raises(RuntimeError):
        asyncio.run(store.run_forest_analysis())
    state = store.state(FOREST)
    assert state.status is OperationStatus.FAILED
    assert state.error.startswith("Analysis service error: ")


def test_dataset_edits_notify(service):
    store = _store(service)
    seen = []
    store.add_listener(seen.append)
    store.set_waste_input(seed.waste_sample())
    assert seen == ["data"]


def test_event_log_written(service, tmp_path):
    service.queue("forest", wildfire_response())
    store = _store(service, event_log_dir=tmp_path)
    asyncio.run(store.run_forest_analysis())
    files = list(tmp_path.glob("analysis_forest_*.json"))
    assert len(files) == 1
    event = json.loads(files[0].read_text())
    assert event["status"] == "succeeded"
    assert event["alerts"][0]["id"] == "1700000000500-0"
    assert "error" not in event
