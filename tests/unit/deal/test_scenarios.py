# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the exit-value scenario runner.
"""

from datetime import date

import pytest

from waterfall.core.primitives import ScenarioSettings, WaterfallSettings
from waterfall.deal import calculate_waterfall, run_waterfall_scenarios

from tests.conftest import make_proforma


class TestScenarioRunner:
    def test_default_shocks(self, three_year_proforma, default_structure):
        scenarios = run_waterfall_scenarios(three_year_proforma, default_structure)
        assert scenarios.downside.final_results.project.total_distributions == pytest.approx(1_200_000)
        assert scenarios.base.final_results.project.total_distributions == pytest.approx(1_500_000)
        assert scenarios.upside.final_results.project.total_distributions == pytest.approx(1_800_000)
        assert (scenarios.summary.downside_shock, scenarios.summary.upside_shock) == (-0.20, 0.20)

    def test_base_matches_plain_run(self, three_year_proforma, default_structure):
        scenarios = run_waterfall_scenarios(three_year_proforma, default_structure)
        plain = calculate_waterfall(three_year_proforma, default_structure)
        assert scenarios.base.final_results == plain.final_results

    def test_downside_pays_no_promote(self, three_year_proforma, default_structure):
        """$1.2M covers capital and part of the pref only."""
        downside = run_waterfall_scenarios(three_year_proforma, default_structure).downside
        assert downside.final_results.gp.promote_earned == pytest.approx(0.0)
        assert downside.final_results.lp.total_distributed == pytest.approx(1_100_000)

    def test_summary_ranges_ordered(self, three_year_proforma, default_structure):
        summary = run_waterfall_scenarios(three_year_proforma, default_structure).summary
        for metric in (summary.lp_irr_range, summary.lp_multiple_range, summary.gp_promote_range):
            assert metric.low <= metric.base <= metric.high

    def test_one_month_hold_ranges_defined(self, default_structure):
        """IRRs far above 1000% stay defined in every scenario."""
        proforma = make_proforma([(date(2024, 1, 1), -1_000_000.0), (date(2024, 2, 1), 1_200_000.0)])
        summary = run_waterfall_scenarios(proforma, default_structure).summary
        irr = summary.lp_irr_range
        assert None not in (irr.low, irr.base, irr.high)
        assert irr.low <= irr.base <= irr.high

    def test_custom_shocks(self, three_year_proforma, default_structure):
        settings = WaterfallSettings(
            scenarios=ScenarioSettings(downside_shock=-0.5, base_shock=0.0, upside_shock=0.5)
        )
        scenarios = run_waterfall_scenarios(three_year_proforma, default_structure, settings)
        assert scenarios.upside.final_results.project.total_distributions == pytest.approx(2_250_000)
        assert scenarios.summary.downside_shock == -0.5

    def test_input_not_mutated(self, three_year_proforma, default_structure):
        before = three_year_proforma.model_dump()
        run_waterfall_scenarios(three_year_proforma, default_structure)
        assert three_year_proforma.model_dump() == before
