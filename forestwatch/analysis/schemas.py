"""
JSON response schemas passed to the model as ``response_schema``.

Plain dicts in the Gemini schema dialect (upper-case type names); the
client validates them into ``types.Schema``.
"""
from __future__ import annotations

from typing import Any, Dict, Sequence

Schema = Dict[str, Any]


def _str(description: str = "") -> Schema:
    s: Schema = {"type": "STRING"}
    if description:
        s["description"] = description
    return s


def _num(description: str = "") -> Schema:
    s: Schema = {"type": "NUMBER"}
    if description:
        s["description"] = description
    return s


def _str_list(description: str = "") -> Schema:
    s: Schema = {"type": "ARRAY", "items": {"type": "STRING"}}
    if description:
        s["description"] = description
    return s


def _obj(properties: Schema, required: Sequence[str] = (), description: str = "") -> Schema:
    s: Schema = {"type": "OBJECT", "properties": properties}
    if required:
        s["required"] = list(required)
    if description:
        s["description"] = description
    return s


_LOCATION = _obj({"lat": _num(), "lng": _num()}, ["lat", "lng"])

FOREST_RESPONSE = _obj(
    {
        "alerts": {
            "type": "ARRAY",
            "description": "A list of detected threats.",
            "items": _obj(
                {
                    "type": _str("Type of threat."),
                    "severity": _str("Severity of the threat."),
                    "location": _LOCATION,
                    "confidence": _num("Confidence score from 0 to 1."),
                    "threat_weight_score": _num("Calculated threat weight score from 0 to 1."),
                    "explanation": _str("Detailed explanation citing specific data points."),
                    "recommended_action": _str("Suggested response action."),
                    "supporting_evidence": _obj({
                        "satellite_ids": _str_list(),
                        "sensor_ids": _str_list(),
                        "report_ids": _str_list(),
                    }),
                },
                ["type", "severity", "location", "confidence", "threat_weight_score",
                 "explanation", "recommended_action", "supporting_evidence"],
            ),
        },
        "summary": _obj(
            {
                "overall_forest_risk": _str("Overall risk level."),
                "key_hotspots": _str_list("List of high-risk zones."),
                "notable_patterns": _str("Observed trends or patterns."),
                "recommended_priority_zones": _str_list("Zones needing immediate attention."),
            },
            ["overall_forest_risk", "key_hotspots", "notable_patterns", "recommended_priority_zones"],
            description="An overall summary of forest health.",
        ),
    },
    ["alerts", "summary"],
)

WASTE_RESPONSE = _obj(
    {
        "summary": _obj(
            {
                "efficiency_score": _num(),
                "fraud_risk_level": _str(),
                "suggested_route_optimization": _str(),
                "economic_value_generated": _num(),
                "carbon_offset_tonnes": _num(),
            },
            ["efficiency_score", "fraud_risk_level", "suggested_route_optimization",
             "economic_value_generated", "carbon_offset_tonnes"],
        ),
        "actionable_insights": _str_list(),
    },
    ["summary", "actionable_insights"],
)

INCENTIVES_RESPONSE = _obj(
    {
        "suggestedPrograms": {
            "type": "ARRAY",
            "items": _obj(
                {
                    "id": _str(),
                    "name": _str(),
                    "type": _str("forest or waste"),
                    "locationLabel": _str(),
                    "metrics": _obj({
                        "forestAlertsAvoided": _num(),
                        "haMonitored": _num(),
                        "wasteDiversionKg": _num(),
                        "co2eAvoidedTons": _num(),
                    }),
                    "readinessScore": _num(),
                    "indicativePaymentPerPeriodKes": _num(),
                    "benefitSharing": {
                        "type": "ARRAY",
                        "items": _obj({"stakeholder": _str(), "percentage": _num()},
                                      ["stakeholder", "percentage"]),
                    },
                    "notes": _str(),
                },
                ["id", "name", "type", "locationLabel", "metrics", "readinessScore",
                 "indicativePaymentPerPeriodKes", "benefitSharing", "notes"],
            ),
        },
        "narrativeSummary": _str(),
    },
    ["suggestedPrograms", "narrativeSummary"],
)

KNOWLEDGE_RESPONSE = _obj(
    {
        "answer": _str(),
        "relatedSpecies": _str_list(),
        "suggestedActions": _str_list(),
    },
    ["answer", "relatedSpecies", "suggestedActions"],
)

PLANT_RESPONSE = _obj(
    {
        "commonName": _str(),
        "scientificName": _str(),
        "status": _str(),
        "healthAssessment": _str(),
        "preservationActions": _str_list(),
        "funFact": _str(),
    },
    ["commonName", "scientificName", "status", "healthAssessment",
     "preservationActions", "funFact"],
)
