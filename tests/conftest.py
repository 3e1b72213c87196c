"""Shared fixtures: an in-memory analysis service and canned responses."""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from forestwatch.models.forest import ForestWatchResponse
from forestwatch.models.knowledge import KnowledgeQueryResult, PlantAnalysisResult
from forestwatch.models.programs import GeneratedPesInsights
from forestwatch.models.waste import CircularEconomyResponse


def forest_payload(alerts: Optional[List[Dict[str, Any]]] = None, risk: str = "High") -> Dict[str, Any]:
    return {
        "alerts": alerts if alerts is not None else [],
        "summary": {
            "overall_forest_risk": risk,
            "key_hotspots": ["Karura west ridge"],
            "notable_patterns": "Chainsaw noise correlates with canopy loss.",
            "recommended_priority_zones": ["Karura"],
        },
    }


def alert_payload(
    alert_type: str = "fire",
    severity: str = "Critical",
    lat: float = -1.25,
    lng: float = 36.85,
    tws: float = 0.92,
    evidence: Optional[Dict[str, List[str]]] = None,
) -> Dict[str, Any]:
    return {
        "type": alert_type,
        "severity": severity,
        "location": {"lat": lat, "lng": lng},
        "confidence": 0.9,
        "threat_weight_score": tws,
        "explanation": "Tile burning with hot smoky sensors nearby.",
        "recommended_action": "Dispatch fire crew.",
        "supporting_evidence": evidence or {"satellite_ids": [], "sensor_ids": [], "report_ids": []},
    }


def wildfire_response() -> ForestWatchResponse:
    return ForestWatchResponse.from_dict(forest_payload(
        [alert_payload(evidence={
            "satellite_ids": ["tile-fire-A"],
            "sensor_ids": ["sensor-fire-1", "sensor-fire-2"],
            "report_ids": ["report-fire-1"],
        })],
        risk="Critical",
    ))


def waste_response() -> CircularEconomyResponse:
    return CircularEconomyResponse.from_dict({
        "summary": {
            "efficiency_score": 72,
            "fraud_risk_level": "Low",
            "suggested_route_optimization": "Collect BIN-03 first.",
            "economic_value_generated": 412.5,
            "carbon_offset_tonnes": 0.04,
        },
        "actionable_insights": ["Replace BIN-03 battery."],
    })


class FakeService:
    """Stands in for AnalysisService.

    Queue results (or exceptions) per operation; when ``gated`` is set
    each call waits on its own asyncio.Event, released with ``release``.
    """

    def __init__(self, gated: bool = False):
        self.results: Dict[str, List[Any]] = {
            "forest": [], "waste": [], "incentives": [], "knowledge": [], "plant": [],
        }
        self.calls: List[tuple] = []
        self.gated = gated
        self.gates: List[asyncio.Event] = []

    def queue(self, operation: str, *results: Any) -> "FakeService":
        self.results[operation].extend(results)
        return self

    async def _answer(self, operation: str, *args: Any) -> Any:
        self.calls.append((operation,) + args)
        result = self.results[operation].pop(0)
        if self.gated:
            gate = asyncio.Event()
            self.gates.append(gate)
            await gate.wait()
        if isinstance(result, BaseException):
            raise result
        return result

    def release(self, index: int) -> None:
        self.gates[index].set()

    async def analyze_forest(self, data):
        return await self._answer("forest", data)

    async def analyze_waste(self, data):
        return await self._answer("waste", data)

    async def suggest_incentive_programs(self, *args):
        return await self._answer("incentives", *args)

    async def query_knowledge(self, question):
        return await self._answer("knowledge", question)

    async def identify_plant(self, image_bytes, location=None):
        return await self._answer("plant", image_bytes, location)


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest.fixture
def insights_factory():
    def _make(*programs: Dict[str, Any], narrative: str = "Two new programs.") -> GeneratedPesInsights:
        return GeneratedPesInsights.from_dict({
            "suggestedPrograms": list(programs),
            "narrativeSummary": narrative,
        })
    return _make


@pytest.fixture
def knowledge_answer() -> KnowledgeQueryResult:
    return KnowledgeQueryResult.from_dict({
        "answer": "Prunus africana is harvested for its bark.",
        "relatedSpecies": ["Prunus africana"],
        "suggestedActions": ["Plant seedlings in Kakamega"],
    })


@pytest.fixture
def plant_answer() -> PlantAnalysisResult:
    return PlantAnalysisResult.from_dict({
        "commonName": "Mathenge",
        "scientificName": "Prosopis juliflora",
        "status": "Invasive",
        "healthAssessment": "Vigorous.",
        "preservationActions": ["Uproot before seeding"],
        "funFact": "Introduced in the 1970s.",
    })
