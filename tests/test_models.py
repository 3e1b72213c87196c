import pytest

from forestwatch.data import seed
from forestwatch.models.forest import (
    Alert,
    AlertType,
    ForestDataInput,
    ForestWatchResponse,
    GeoPoint,
    SatelliteTile,
    Severity,
    classify_severity,
    filter_alerts,
    sort_by_severity,
)
from forestwatch.models.knowledge import PlantAnalysisResult
from forestwatch.models.programs import GeneratedPesInsights, PesProgram
from forestwatch.models.waste import WasteAnalysisSummary

from conftest import alert_payload, forest_payload


@pytest.mark.parametrize("tws,expected", [
    (0.0, Severity.LOW),
    (0.1999, Severity.LOW),
    (0.20, Severity.MODERATE),
    (0.4499, Severity.MODERATE),
    (0.45, Severity.HIGH),
    (0.6999, Severity.HIGH),
    (0.70, Severity.CRITICAL),
    (1.0, Severity.CRITICAL),
])
def test_severity_bands(tws, expected):
    assert classify_severity(tws) is expected


def test_severity_is_monotonic():
    grid = [i / 100 for i in range(101)]
    bands = [classify_severity(t) for t in grid]
    assert all(a <= b for a, b in zip(bands, bands[1:]))


def test_off_schema_severity_uses_score():
    alert = Alert.from_dict(alert_payload(severity="Severe", tws=0.5))
    assert alert.severity is Severity.HIGH
    alert = Alert.from_dict({k: v for k, v in alert_payload(tws=0.1).items() if k != "severity"})
    assert alert.severity is Severity.LOW


def test_alert_type_parse_is_lenient():
    assert AlertType.parse("FIRE") is AlertType.FIRE
    assert AlertType.parse("wildfire") is AlertType.UNKNOWN


def test_response_parses_without_ids():
    resp = ForestWatchResponse.from_dict(forest_payload([alert_payload()]))
    assert resp.alerts[0].id == ""
    assert resp.summary.overall_forest_risk is Severity.HIGH


def test_response_missing_alerts_is_rejected():
    with pytest.raises(KeyError):
        ForestWatchResponse.from_dict({"summary": forest_payload()["summary"]})


def test_geo_point_range_checked():
    with pytest.raises(ValueError):
        GeoPoint(91.0, 0.0)
    with pytest.raises(ValueError):
        GeoPoint(0.0, -181.0)


def test_tile_needs_three_vertices():
    with pytest.raises(ValueError):
        SatelliteTile("T", ((0.0, 0.0), (1.0, 1.0)), 0.5)


def test_tile_centroid():
    tile = seed.threat_sample().satellite_tiles[0]
    assert tile.centroid.lat == pytest.approx(-1.27)
    assert tile.centroid.lng == pytest.approx(36.81)


def test_forest_input_wire_format():
    data = seed.threat_sample()
    assert ForestDataInput.from_dict(data.as_dict()) == data
    assert data.as_dict()["satellite_tiles"][0]["change_type"] == "vegetation_loss"


def test_program_wire_format_is_camel_case():
    program = seed.pes_programs()[0]
    wire = program.as_dict()
    assert wire["locationLabel"] == "Mau Complex, Rift Valley"
    assert wire["metrics"] == {"haMonitored": 500.0, "forestAlertsAvoided": 12.0}
    assert PesProgram.from_dict(wire) == program


def test_insights_need_program_list():
    with pytest.raises(KeyError):
        GeneratedPesInsights.from_dict({"narrativeSummary": "none"})


def test_plant_status_outside_vocabulary():
    res = PlantAnalysisResult.from_dict({"commonName": "Croton", "status": "Weird"})
    assert res.status == "Common"


def test_waste_summary_validation():
    s = WasteAnalysisSummary.from_dict({
        "efficiency_score": 140, "fraud_risk_level": "High",
        "suggested_route_optimization": "", "economic_value_generated": 0,
        "carbon_offset_tonnes": 0,
    })
    assert s.efficiency_score == 100.0
    with pytest.raises(ValueError):
        WasteAnalysisSummary.from_dict({"efficiency_score": 1, "fraud_risk_level": "Extreme"})


def test_filter_and_sort_alerts():
    alerts = [
        Alert.from_dict(alert_payload("logging", "High", tws=0.5)),
        Alert.from_dict(alert_payload("fire", "Critical", tws=0.9)),
        Alert.from_dict(alert_payload("fire", "High", tws=0.6)),
    ]
    ordered = sort_by_severity(alerts)
    assert [a.threat_weight_score for a in ordered] == [0.9, 0.6, 0.5]
    assert len(filter_alerts(alerts, severity=Severity.HIGH)) == 2
    assert len(filter_alerts(alerts, severity=Severity.HIGH, alert_type=AlertType.FIRE)) == 1


def test_seed_collections():
    assert len(seed.pes_programs()) == 2
    assert len(seed.restoration_projects()) == 2
    assert len(seed.partners()) == 3
    assert len(seed.tourism_products()) == 1
    assert seed.waste_sample().total_weight_kg == pytest.approx(17.5)
    assert seed.restoration_projects()[1].budget_utilisation == 0.0
