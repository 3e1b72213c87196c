"""
Seed datasets loaded when a dashboard session starts.

Forest, waste and PES seeds are kept in their wire (JSON) form and
parsed through the models' ``from_dict`` so they double as format
fixtures.  Each ``*()`` accessor returns fresh values.
"""
from __future__ import annotations

from typing import Tuple

from ..models.forest import ForestDataInput
from ..models.programs import (
    Participants,
    Partner,
    PesProgram,
    ProjectIncentives,
    ProjectLocation,
    ProjectStatus,
    RestorationMetrics,
    RestorationProject,
    TourismProduct,
)
from ..models.waste import WasteDataInput

# ── Forest: Karura threat sample ──────────────────────────────────────

_THREAT_SAMPLE = {
    "satellite_tiles": [
        {
            "id": "ST-KRG-001",
            "coordinates": [[-1.28, 36.80], [-1.28, 36.82], [-1.26, 36.82], [-1.26, 36.80]],
            "risk_score": 0.75,
            "change_type": "vegetation_loss",
        }
    ],
    "sensor_readings": [
        {
            "sensor_id": "SN-KRG-A-01",
            "location": {"lat": -1.27, "lng": 36.81},
            "temperature": 32.1,
            "smoke_level": 0.1,
            "noise_level": 78.5,
            "timestamp": "2023-10-27T09:45:12Z",
        }
    ],
    "reports": [
        {
            "report_id": "REP-USR-XYZ",
            "location": {"lat": -1.272, "lng": 36.815},
            "category": "logging",
            "description": "Heard distinct chainsaw sounds for over 20 minutes from the western ridge.",
            "timestamp": "2023-10-27T09:50:00Z",
        }
    ],
}

# ── Waste: Nairobi bins, prices, hub transactions ─────────────────────

_WASTE_SAMPLE = {
    "smart_bins": [
        {"id": "BIN-01", "location": {"lat": -1.28, "lng": 36.82}, "fill_level": 85,
         "battery_level": 40, "type": "plastic", "last_collection": "2 days ago", "status": "online"},
        {"id": "BIN-02", "location": {"lat": -1.29, "lng": 36.81}, "fill_level": 20,
         "battery_level": 92, "type": "organic", "last_collection": "4 hours ago", "status": "online"},
        {"id": "BIN-03", "location": {"lat": -1.30, "lng": 36.83}, "fill_level": 98,
         "battery_level": 15, "type": "metal", "last_collection": "5 days ago", "status": "maintenance"},
    ],
    "market_prices": [
        {"material": "plastic", "price_per_kg": 15, "trend": "up", "currency": "KES"},
        {"material": "metal", "price_per_kg": 45, "trend": "stable", "currency": "KES"},
        {"material": "organic", "price_per_kg": 5, "trend": "down", "currency": "KES"},
    ],
    "recent_transactions": [
        {"id": "TX-101", "collector_id": "COL-88", "hub_id": "HUB-A", "waste_type": "plastic",
         "weight_kg": 12.5, "payout_amount": 187.5, "timestamp": "2023-10-27T08:30:00Z"},
        {"id": "TX-102", "collector_id": "COL-42", "hub_id": "HUB-A", "waste_type": "metal",
         "weight_kg": 5.0, "payout_amount": 225.0, "timestamp": "2023-10-27T09:15:00Z"},
    ],
}

# ── PES programs ──────────────────────────────────────────────────────

_PES_PROGRAMS = [
    {
        "id": "PES-FOREST-001",
        "name": "Mau Forest Block A Conservation",
        "type": "forest",
        "locationLabel": "Mau Complex, Rift Valley",
        "location": {"lat": -0.55, "lng": 35.7},
        "linkedForestAreaIds": ["AREA-MAU-A"],
        "metrics": {"haMonitored": 500, "forestAlertsAvoided": 12},
        "readinessScore": 0.85,
        "indicativePaymentPerPeriodKes": 600000,     # 500 ha * 1200
        "benefitSharing": [
            {"stakeholder": "Community Forest Association", "percentage": 60},
            {"stakeholder": "KWS Ranger Support", "percentage": 25},
            {"stakeholder": "Platform Admin Fee", "percentage": 15},
        ],
        "notes": "High readiness due to dense sensor network.",
    },
    {
        "id": "PES-WASTE-002",
        "name": "Nairobi East Circular Pilot",
        "type": "waste",
        "locationLabel": "Embakasi / Dandora",
        "location": {"lat": -1.285, "lng": 36.89},
        "linkedWasteZoneIds": ["ZONE-NBO-E"],
        "metrics": {"wasteDiversionKg": 2500, "co2eAvoidedTons": 6.25},
        "readinessScore": 0.65,
        "indicativePaymentPerPeriodKes": 28125,      # 2500 * 10 + 6.25 * 500
        "benefitSharing": [
            {"stakeholder": "Waste Picker Cooperative", "percentage": 70},
            {"stakeholder": "Aggregator Hub", "percentage": 20},
            {"stakeholder": "Platform Admin Fee", "percentage": 10},
        ],
        "notes": "Data gaps in manual weighing logs affect score.",
    },
]


def threat_sample() -> ForestDataInput:
    return ForestDataInput.from_dict(_THREAT_SAMPLE)


def waste_sample() -> WasteDataInput:
    return WasteDataInput.from_dict(_WASTE_SAMPLE)


def pes_programs() -> Tuple[PesProgram, ...]:
    return tuple(PesProgram.from_dict(p) for p in _PES_PROGRAMS)


def restoration_projects() -> Tuple[RestorationProject, ...]:
    return (
        RestorationProject(
            id="REST-MANG-001",
            name="Gazi Bay Mangrove Restoration",
            type="mangrove_planting",
            location=ProjectLocation(-4.42, 39.50, "Gazi Bay, Kwale"),
            ecosystem="mangrove",
            status=ProjectStatus.ACTIVE,
            degradation_source="Historical illegal logging",
            start_date="2023-01-15",
            metrics=RestorationMetrics(
                area_ha=15, mangroves_planted=12000,
                mangrove_survival_rate=0.82, co2e_sequestered_tons=450,
            ),
            participants=Participants(community_group_ids=("CFA-GAZI",), partner_ids=("PART-KMFRI",)),
            incentives=ProjectIncentives(
                pes_program_id="PES-MIKOKO-PAMOJA",
                total_budget_kes=1_500_000, disbursed_kes=850_000,
            ),
        ),
        RestorationProject(
            id="REST-FOR-002",
            name="Arabuko-Sokoke Seedling Initiative",
            type="forest_replanting",
            location=ProjectLocation(-3.30, 39.90, "Arabuko-Sokoke Forest"),
            ecosystem="forest",
            status=ProjectStatus.PLANNED,
            degradation_source="Charcoal burning encroachment",
            metrics=RestorationMetrics(area_ha=5, trees_planted=0, co2e_sequestered_tons=0),
            participants=Participants(community_group_ids=("CFA-SOKOKE",)),
            incentives=ProjectIncentives(total_budget_kes=500_000, disbursed_kes=0),
        ),
    )


def partners() -> Tuple[Partner, ...]:
    return (
        Partner(
            id="PART-KMFRI",
            name="Kenya Marine and Fisheries Research Institute",
            type="knowledge_partner",
            location_label="Mombasa",
            roles=("Scientific Advisor", "Monitoring & Evaluation"),
            linked_project_ids=("REST-MANG-001",),
            description="Leading marine research body providing scientific data and "
                        "monitoring protocols for mangrove restoration.",
            documents_uploaded=15,
            training_events=4,
        ),
        Partner(
            id="PART-ECO-TOURS",
            name="Blue Belt Eco-Adventures",
            type="tour_operator",
            location_label="Diani",
            roles=("Eco-Tourism Provider", "Donor"),
            linked_project_ids=("REST-MANG-001",),
            linked_tourism_product_ids=("TOUR-MANG-01",),
            description="Local tour operator channeling eco-fees directly to community "
                        "restoration groups.",
            funds_contributed_kes=450_000,
        ),
        Partner(
            id="PART-CFA-GAZI",
            name="Gazi Bay Community Forest Association",
            type="community",
            location_label="Gazi Bay",
            roles=("Restoration Implementer", "Community Mobilizer"),
            linked_project_ids=("REST-MANG-001",),
            description="Community group dedicated to planting and protecting mangrove "
                        "forests via local nurseries.",
            documents_uploaded=2,
            training_events=12,
            volunteer_hours=3500,
        ),
    )


def tourism_products() -> Tuple[TourismProduct, ...]:
    return (
        TourismProduct(
            id="TOUR-MANG-01",
            name="Gazi Mangrove Boardwalk & Canoe",
            type="mangrove_tour",
            location_label="Gazi Bay",
            linked_restoration_project_id="REST-MANG-001",
            price_kes_approx=1500,
            eco_fee_kes_per_visit=300,
            description="Guided canoe ride through restored mangrove channels.",
        ),
    )
