"""
PES readiness, payment and benefit-sharing calculations.

Indicative only: the rates are a flat table, not a pricing model.

    program = with_computed_fields(program)
    shares = normalize_shares(program.benefit_sharing)
"""
from __future__ import annotations

import math
from dataclasses import replace
from typing import List, Sequence

from .models.programs import BenefitShare, PesProgram, ProgramType

# KES rates
RATE_PER_HA_PROTECTED = 1200.0   # per hectare per period
RATE_PER_KG_DIVERTED = 10.0
RATE_PER_TON_CO2 = 500.0

_FOREST_HA_THRESHOLD = 100.0
_WASTE_KG_THRESHOLD = 500.0


def compute_readiness(program: PesProgram) -> float:
    """Heuristic 0-1 score of how well-supported a program is.

    Base 0.5; +0.2 when the primary metric clears its threshold; +0.1
    with at least one linked forest area (forest) or waste zone (waste);
    -0.2 without a benefit-sharing split.  Always within [0, 1].
    """
    score = 0.5
    m = program.metrics
    if program.type is ProgramType.FOREST:
        if (m.ha_monitored or 0.0) > _FOREST_HA_THRESHOLD:
            score += 0.2
        if program.linked_forest_area_ids:
            score += 0.1
    else:
        if (m.waste_diversion_kg or 0.0) > _WASTE_KG_THRESHOLD:
            score += 0.2
        if program.linked_waste_zone_ids:
            score += 0.1
    if not program.benefit_sharing:
        score -= 0.2
    return max(0.0, min(1.0, score))


def estimate_payment(program: PesProgram) -> float:
    m = program.metrics
    if program.type is ProgramType.FOREST:
        return (m.ha_monitored or 0.0) * RATE_PER_HA_PROTECTED
    return (
        (m.waste_diversion_kg or 0.0) * RATE_PER_KG_DIVERTED
        + (m.co2e_avoided_tons or 0.0) * RATE_PER_TON_CO2
    )


def normalize_shares(shares: Sequence[BenefitShare]) -> List[BenefitShare]:
    """Rescale percentages to whole numbers summing to exactly 100.

    Uses largest-remainder rounding: each share gets the floor of its
    exact value, and the leftover points go to the largest fractional
    parts (earlier shares win ties).  Empty input gives ``[]``; an
    all-zero split is returned unchanged.
    """
    if not shares:
        return []
    total = sum(s.percentage for s in shares)
    if total == 0:
        return list(shares)

    exact = [s.percentage * 100.0 / total for s in shares]
    floors = [math.floor(e) for e in exact]
    leftover = 100 - sum(floors)
    order = sorted(range(len(shares)), key=lambda i: (-(exact[i] - floors[i]), i))
    for i in order[:leftover]:
        floors[i] += 1
    return [replace(s, percentage=float(p)) for s, p in zip(shares, floors)]


def with_computed_fields(program: PesProgram) -> PesProgram:
    """Copy of ``program`` with readiness and payment recalculated."""
    return replace(
        program,
        readiness_score=compute_readiness(program),
        indicative_payment_per_period_kes=estimate_payment(program),
    )
