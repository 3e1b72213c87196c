"""
Incentive (PES) programs, restoration projects and their partners.

PES = Payments for Ecosystem Services: a program pays communities for
measurable conservation outcomes (hectares monitored, waste diverted)
and splits the payment across stakeholders via ``benefit_sharing``.

Field names follow the dashboard's camelCase wire format in
``from_dict`` / ``as_dict`` so service suggestions parse directly.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .forest import GeoPoint


class ProgramType(Enum):
    FOREST = "forest"
    WASTE = "waste"


@dataclass(frozen=True)
class BenefitShare:
    stakeholder: str
    percentage: float

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BenefitShare":
        return cls(stakeholder=str(d["stakeholder"]), percentage=float(d["percentage"]))

    def as_dict(self) -> Dict[str, Any]:
        return {"stakeholder": self.stakeholder, "percentage": self.percentage}


def _opt_float(d: Dict[str, Any], key: str) -> Optional[float]:
    value = d.get(key)
    return None if value is None else float(value)


@dataclass(frozen=True)
class PesMetrics:
    forest_alerts_avoided: Optional[float] = None
    ha_monitored: Optional[float] = None
    waste_diversion_kg: Optional[float] = None
    co2e_avoided_tons: Optional[float] = None

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "PesMetrics":
        d = d or {}
        return cls(
            forest_alerts_avoided=_opt_float(d, "forestAlertsAvoided"),
            ha_monitored=_opt_float(d, "haMonitored"),
            waste_diversion_kg=_opt_float(d, "wasteDiversionKg"),
            co2e_avoided_tons=_opt_float(d, "co2eAvoidedTons"),
        )

    def as_dict(self) -> Dict[str, float]:
        pairs = {
            "forestAlertsAvoided": self.forest_alerts_avoided,
            "haMonitored": self.ha_monitored,
            "wasteDiversionKg": self.waste_diversion_kg,
            "co2eAvoidedTons": self.co2e_avoided_tons,
        }
        return {k: v for k, v in pairs.items() if v is not None}


@dataclass(frozen=True)
class PesProgram:
    """One incentive program.  Benefit shares should sum to 100 (not enforced)."""
    id: str
    name: str
    type: ProgramType
    location_label: str
    metrics: PesMetrics = field(default_factory=PesMetrics)
    readiness_score: float = 0.0
    indicative_payment_per_period_kes: float = 0.0
    benefit_sharing: Tuple[BenefitShare, ...] = ()
    location: Optional[GeoPoint] = None
    linked_forest_area_ids: Tuple[str, ...] = ()
    linked_waste_zone_ids: Tuple[str, ...] = ()
    notes: str = ""

    @property
    def linked_ids(self) -> Tuple[str, ...]:
        return self.linked_forest_area_ids + self.linked_waste_zone_ids

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PesProgram":
        loc = d.get("location")
        return cls(
            id=str(d["id"]),
            name=str(d["name"]),
            type=ProgramType(d["type"]),
            location_label=str(d.get("locationLabel", "")),
            metrics=PesMetrics.from_dict(d.get("metrics")),
            readiness_score=float(d.get("readinessScore", 0.0)),
            indicative_payment_per_period_kes=float(d.get("indicativePaymentPerPeriodKes", 0.0)),
            benefit_sharing=tuple(BenefitShare.from_dict(b) for b in d.get("benefitSharing") or ()),
            location=GeoPoint.from_dict(loc) if loc else None,
            linked_forest_area_ids=tuple(d.get("linkedForestAreaIds") or ()),
            linked_waste_zone_ids=tuple(d.get("linkedWasteZoneIds") or ()),
            notes=str(d.get("notes", "")),
        )

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "locationLabel": self.location_label,
            "metrics": self.metrics.as_dict(),
            "readinessScore": self.readiness_score,
            "indicativePaymentPerPeriodKes": self.indicative_payment_per_period_kes,
            "benefitSharing": [b.as_dict() for b in self.benefit_sharing],
            "notes": self.notes,
        }
        if self.location is not None:
            out["location"] = self.location.as_dict()
        if self.linked_forest_area_ids:
            out["linkedForestAreaIds"] = list(self.linked_forest_area_ids)
        if self.linked_waste_zone_ids:
            out["linkedWasteZoneIds"] = list(self.linked_waste_zone_ids)
        return out


@dataclass(frozen=True)
class GeneratedPesInsights:
    suggested_programs: Tuple[PesProgram, ...] = ()
    narrative_summary: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GeneratedPesInsights":
        return cls(
            suggested_programs=tuple(PesProgram.from_dict(p) for p in d["suggestedPrograms"]),
            narrative_summary=str(d.get("narrativeSummary", "")),
        )


# ── Restoration ───────────────────────────────────────────────────────

class ProjectStatus(Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True)
class ProjectLocation:
    lat: float
    lng: float
    label: str = ""

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.lat, self.lng)


@dataclass(frozen=True)
class RestorationMetrics:
    area_ha: Optional[float] = None
    mangroves_planted: Optional[int] = None
    trees_planted: Optional[int] = None
    mangrove_survival_rate: Optional[float] = None   # 0-1
    trash_removed_kg: Optional[float] = None
    co2e_sequestered_tons: Optional[float] = None


@dataclass(frozen=True)
class Participants:
    community_group_ids: Tuple[str, ...] = ()
    individual_ids: Tuple[str, ...] = ()
    partner_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProjectIncentives:
    pes_program_id: Optional[str] = None
    total_budget_kes: Optional[float] = None
    disbursed_kes: Optional[float] = None


@dataclass(frozen=True)
class RestorationProject:
    """Mangrove / forest / wetland restoration site.

    Expected (not enforced): ``disbursed_kes <= total_budget_kes``.
    """
    id: str
    name: str
    type: str                # "mangrove_planting", "forest_replanting", ...
    location: ProjectLocation
    ecosystem: str           # "mangrove", "forest", "wetland", "other"
    status: ProjectStatus
    metrics: RestorationMetrics = field(default_factory=RestorationMetrics)
    participants: Participants = field(default_factory=Participants)
    incentives: ProjectIncentives = field(default_factory=ProjectIncentives)
    degradation_source: str = ""
    linked_alert_ids: Tuple[str, ...] = ()
    start_date: str = ""

    @property
    def budget_utilisation(self) -> Optional[float]:
        """Fraction of budget disbursed, or None without a budget."""
        total = self.incentives.total_budget_kes
        if not total:
            return None
        return (self.incentives.disbursed_kes or 0.0) / total


@dataclass(frozen=True)
class Partner:
    id: str
    name: str
    type: str                # "community", "ngo", "knowledge_partner", ...
    roles: Tuple[str, ...] = ()
    linked_project_ids: Tuple[str, ...] = ()
    linked_tourism_product_ids: Tuple[str, ...] = ()
    location_label: str = ""
    description: str = ""
    # contributions
    documents_uploaded: int = 0
    training_events: int = 0
    volunteer_hours: float = 0.0
    funds_contributed_kes: float = 0.0


@dataclass(frozen=True)
class TourismProduct:
    id: str
    name: str
    type: str                # "mangrove_tour", "nature_walk", "community_homestay"
    location_label: str
    linked_restoration_project_id: Optional[str] = None
    price_kes_approx: Optional[float] = None
    eco_fee_kes_per_visit: Optional[float] = None
    description: str = ""
