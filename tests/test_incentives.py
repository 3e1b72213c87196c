import itertools
from dataclasses import replace

import pytest

from forestwatch.data import seed
from forestwatch.incentives import (
    compute_readiness,
    estimate_payment,
    normalize_shares,
    with_computed_fields,
)
from forestwatch.models.programs import BenefitShare, PesMetrics, PesProgram, ProgramType


def _shares(*pcts):
    return [BenefitShare(f"s{i}", p) for i, p in enumerate(pcts)]


def _pcts(shares):
    return [s.percentage for s in shares]


def test_seed_program_calculations():
    forest, waste = seed.pes_programs()
    assert compute_readiness(forest) == pytest.approx(0.8)
    assert compute_readiness(waste) == pytest.approx(0.8)
    assert estimate_payment(forest) == pytest.approx(600_000)
    assert estimate_payment(waste) == pytest.approx(28_125)


def test_readiness_penalises_missing_benefit_split():
    p = PesProgram("P", "Bare", ProgramType.FOREST, "Nowhere")
    assert compute_readiness(p) == pytest.approx(0.3)


def test_link_bonus_follows_program_type():
    p = PesProgram("P", "Mixed", ProgramType.WASTE, "Here",
                   linked_forest_area_ids=("AREA-1",),
                   benefit_sharing=tuple(_shares(100)))
    assert compute_readiness(p) == pytest.approx(0.5)


@pytest.mark.parametrize("ptype,big,linked,split", list(itertools.product(
    list(ProgramType), [False, True], [False, True], [False, True])))
def test_readiness_always_in_unit_interval(ptype, big, linked, split):
    metrics = PesMetrics(ha_monitored=500 if big else 5, waste_diversion_kg=5000 if big else 5)
    p = PesProgram(
        "P", "Any", ptype, "Here",
        metrics=metrics,
        linked_forest_area_ids=("A",) if linked else (),
        linked_waste_zone_ids=("Z",) if linked else (),
        benefit_sharing=tuple(_shares(50, 50)) if split else (),
    )
    assert 0.0 <= compute_readiness(p) <= 1.0


def test_normalize_exact_thirds():
    assert _pcts(normalize_shares(_shares(1, 1, 1))) == [34, 33, 33]


def test_normalize_largest_remainder():
    assert _pcts(normalize_shares(_shares(10, 20))) == [33, 67]


def test_normalize_keeps_valid_split():
    assert _pcts(normalize_shares(_shares(60, 25, 15))) == [60, 25, 15]


def test_normalize_keeps_stakeholders_in_order():
    out = normalize_shares(_shares(3, 1))
    assert [s.stakeholder for s in out] == ["s0", "s1"]
    assert _pcts(out) == [75, 25]


@pytest.mark.parametrize("pcts", [(1, 1, 1), (10, 20), (7, 7, 7, 7, 7, 7), (0.5, 99.5), (70, 20, 10)])
def test_normalize_sums_to_100_and_is_idempotent(pcts):
    once = normalize_shares(_shares(*pcts))
    assert sum(_pcts(once)) == 100
    assert normalize_shares(once) == once


def test_normalize_degenerate_inputs():
    assert normalize_shares([]) == []
    zeros = _shares(0, 0)
    assert normalize_shares(zeros) == zeros


def test_with_computed_fields_overwrites_stale_values():
    forest = seed.pes_programs()[0]
    stale = replace(forest, readiness_score=0.1, indicative_payment_per_period_kes=1.0)
    fresh = with_computed_fields(stale)
    assert fresh.readiness_score == pytest.approx(0.8)
    assert fresh.indicative_payment_per_period_kes == pytest.approx(600_000)
    assert fresh.id == forest.id
