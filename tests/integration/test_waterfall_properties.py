# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall Property Validation

End-to-end checks of the laws every waterfall run must obey, run through the
public API across structure types and cash-flow shapes.
"""

from datetime import date

import pytest

from waterfall import (
    calculate_waterfall,
    create_irr_tiered_structure,
    create_multiple_tiered_structure,
    get_default_waterfall_structure,
    run_waterfall_scenarios,
)
from waterfall.core.primitives import StructureTypeEnum
from waterfall.deal.partnership import ManagementFees

from tests.conftest import make_proforma, make_structure, multiple_tier

PROFORMAS = {
    "single_exit": [(date(2024, 1, 1), -1_000_000.0), (date(2027, 1, 1), 1_500_000.0)],
    "operating_income": [
        (date(2024, 1, 1), -1_000_000.0),
        (date(2025, 1, 1), 60_000.0),
        (date(2026, 1, 1), 70_000.0),
        (date(2027, 1, 1), 1_800_000.0),
    ],
    "staged_funding": [
        (date(2024, 1, 1), -600_000.0),
        (date(2024, 9, 1), -400_000.0),
        (date(2025, 6, 1), 250_000.0),
        (date(2028, 3, 1), 2_400_000.0),
    ],
    "loss": [(date(2024, 1, 1), -1_000_000.0), (date(2026, 1, 1), 700_000.0)],
}

STRUCTURES = {
    "default": get_default_waterfall_structure,
    "irr_ladder": create_irr_tiered_structure,
    "multiple_ladder": create_multiple_tiered_structure,
    "european_ladder": lambda: create_irr_tiered_structure(structure_type=StructureTypeEnum.EUROPEAN),
    "hybrid_ladder": lambda: create_irr_tiered_structure(structure_type=StructureTypeEnum.HYBRID),
}


class TestProRataLaw:
    """Zero promote tiers and no pref degenerate to capital-structure percentages."""

    @pytest.mark.parametrize("shape", list(PROFORMAS))
    @pytest.mark.parametrize("lp_percent", [90.0, 75.0, 50.0])
    def test_each_party_gets_its_capital_share(self, shape, lp_percent):
        proforma = make_proforma(PROFORMAS[shape])
        results = calculate_waterfall(proforma, make_structure(lp_equity_percent=lp_percent))
        total = proforma.total_distributions
        assert results.final_results.lp.total_distributed == pytest.approx(total * lp_percent / 100)
        assert results.final_results.gp.total_distributed == pytest.approx(total * (100 - lp_percent) / 100)
        assert results.final_results.gp.promote_earned == pytest.approx(0.0, abs=1e-6)


class TestConservation:
    """Everything distributable is distributed, net of fees."""

    @pytest.mark.parametrize("shape", list(PROFORMAS))
    @pytest.mark.parametrize("name", list(STRUCTURES))
    def test_tier_totals_equal_net_cash(self, shape, name):
        proforma = make_proforma(PROFORMAS[shape], acquisition_cost=900_000.0)
        structure = STRUCTURES[name]().model_copy(
            update={
                "management_fees": ManagementFees(
                    acquisition_fee_percent=0.01,
                    asset_management_fee_percent=0.015,
                    disposition_fee_percent=0.01,
                )
            }
        )
        results = calculate_waterfall(proforma, structure)
        allocated = sum(t.total_distribution for t in results.tier_results)
        assert allocated == pytest.approx(proforma.total_distributions - results.fees.total_fees, rel=1e-9)
        assert allocated == pytest.approx(
            results.final_results.lp.total_distributed + results.final_results.gp.total_distributed
        )

    @pytest.mark.parametrize("name", list(STRUCTURES))
    def test_cumulative_distributions_non_decreasing(self, name):
        results = calculate_waterfall(make_proforma(PROFORMAS["operating_income"]), STRUCTURES[name]())
        lp = [row.cumulative_lp for row in results.distribution_schedule]
        gp = [row.cumulative_gp for row in results.distribution_schedule]
        assert lp == sorted(lp)
        assert gp == sorted(gp)


class TestPurity:
    def test_repeated_calls_identical(self):
        proforma = make_proforma(PROFORMAS["staged_funding"])
        structure = create_irr_tiered_structure()
        first = calculate_waterfall(proforma, structure).to_dict()
        second = calculate_waterfall(proforma, structure).to_dict()
        assert first == second

    def test_interleaved_structures_do_not_interfere(self):
        proforma = make_proforma(PROFORMAS["operating_income"])
        default_alone = calculate_waterfall(proforma, get_default_waterfall_structure())
        calculate_waterfall(proforma, create_multiple_tiered_structure())
        default_again = calculate_waterfall(proforma, get_default_waterfall_structure())
        assert default_alone.final_results == default_again.final_results


class TestMonotonicity:
    @pytest.mark.parametrize("shape", ["single_exit", "operating_income", "staged_funding"])
    def test_lp_irr_non_decreasing_in_pref_rate(self, shape):
        proforma = make_proforma(PROFORMAS[shape])
        base = get_default_waterfall_structure()
        irrs = []
        for rate in (0.0, 0.04, 0.06, 0.08, 0.10, 0.12):
            structure = base.model_copy(
                update={"preferred_return": base.preferred_return.model_copy(update={"rate": rate})}
            )
            irrs.append(calculate_waterfall(proforma, structure).final_results.lp.irr)
        for lower, higher in zip(irrs, irrs[1:]):
            assert higher >= lower - 1e-7


class TestBoundary:
    def test_exact_clearing_amount_leaves_no_residue(self):
        structure = make_structure(tiers=[multiple_tier(1, 1.2, 80), multiple_tier(2, 1.5, 70)])
        proforma = make_proforma([(date(2024, 1, 1), -1_000_000.0), (date(2025, 1, 1), 1_200_000.0)])
        tiers = calculate_waterfall(proforma, structure).tier_results
        assert tiers[1].total_distribution == pytest.approx(200_000, abs=1e-6)
        assert tiers[2].total_distribution == pytest.approx(0.0, abs=1e-6)


class TestReferenceScenario:
    """Default structure, $1M in on 2024-01-01 and $1.5M out on 2027-01-01."""

    def test_reference_outcome(self):
        results = calculate_waterfall(PROFORMAS["single_exit"], get_default_waterfall_structure())
        lp, gp = results.final_results.lp, results.final_results.gp
        assert lp.return_of_capital == pytest.approx(900_000)
        assert lp.preferred_return_received == pytest.approx(216_000, rel=0.01)
        assert 1.0 < lp.equity_multiple < 1.5
        assert gp.promote_earned > 0
        assert results.clawback.clawback_amount == 0.0


class TestClawbackDisabled:
    @pytest.mark.parametrize("shape", list(PROFORMAS))
    @pytest.mark.parametrize("name", list(STRUCTURES))
    def test_never_owed(self, shape, name):
        results = calculate_waterfall(make_proforma(PROFORMAS[shape]), STRUCTURES[name]())
        assert results.clawback.clawback_amount == 0


class TestScenarioOrdering:
    @pytest.mark.parametrize("shape", ["single_exit", "operating_income", "staged_funding"])
    @pytest.mark.parametrize("name", ["default", "irr_ladder", "multiple_ladder"])
    def test_ranges_ordered(self, shape, name):
        summary = run_waterfall_scenarios(make_proforma(PROFORMAS[shape]), STRUCTURES[name]()).summary
        for metric in (summary.lp_irr_range, summary.lp_multiple_range):
            assert metric.low <= metric.base + 1e-9
            assert metric.base <= metric.high + 1e-9
