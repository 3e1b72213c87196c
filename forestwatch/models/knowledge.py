"""Knowledge-hub answers and plant identification results."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

PLANT_STATUSES = ("Invasive", "Native", "Endangered", "Common")


@dataclass(frozen=True)
class KnowledgeQueryResult:
    answer: str
    related_species: Tuple[str, ...] = ()
    suggested_actions: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "KnowledgeQueryResult":
        return cls(
            answer=str(d["answer"]),
            related_species=tuple(str(s) for s in d.get("relatedSpecies") or ()),
            suggested_actions=tuple(str(s) for s in d.get("suggestedActions") or ()),
        )


@dataclass(frozen=True)
class PlantAnalysisResult:
    common_name: str
    scientific_name: str
    status: str
    health_assessment: str = ""
    preservation_actions: Tuple[str, ...] = ()
    fun_fact: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PlantAnalysisResult":
        status = str(d.get("status", "Common"))
        if status not in PLANT_STATUSES:
            status = "Common"
        return cls(
            common_name=str(d["commonName"]),
            scientific_name=str(d.get("scientificName", "")),
            status=status,
            health_assessment=str(d.get("healthAssessment", "")),
            preservation_actions=tuple(str(a) for a in d.get("preservationActions") or ()),
            fun_fact=str(d.get("funFact", "")),
        )
