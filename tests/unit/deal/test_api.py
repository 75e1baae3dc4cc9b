# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the public entry points: input coercion and fail-closed validation.
"""

import logging
from datetime import date

import pytest

import waterfall
from waterfall.deal import (
    calculate_management_fees,
    calculate_waterfall,
    run_waterfall_scenarios,
)
from waterfall.exceptions import ConfigurationError, InputDataError, WaterfallError

from tests.conftest import irr_tier, make_proforma, make_structure

FLOWS = [(date(2024, 1, 1), -1_000_000.0), (date(2027, 1, 1), 1_500_000.0)]


class TestInputCoercion:
    def test_dict_inputs(self, default_structure):
        from_models = calculate_waterfall(make_proforma(FLOWS), default_structure)
        from_dicts = calculate_waterfall(
            {"events": [{"date": d.isoformat(), "amount": a} for d, a in FLOWS]},
            default_structure.model_dump(mode="json"),
        )
        assert from_dicts.final_results == from_models.final_results

    def test_pair_list_proforma(self, default_structure):
        results = calculate_waterfall(FLOWS, default_structure)
        assert results.final_results.project.total_equity == pytest.approx(1_000_000)

    def test_settings_as_dict(self, default_structure):
        results = calculate_waterfall(FLOWS, default_structure, {"solver": {"irr_max_iterations": 100}})
        assert results.final_results.lp.irr is not None

    def test_top_level_exports(self):
        structure = waterfall.get_default_waterfall_structure()
        results = waterfall.calculate_waterfall(FLOWS, structure)
        assert results.final_results.gp.promote_earned > 0


class TestFailClosed:
    """Every entry point validates before computing."""

    @pytest.mark.parametrize("entry_point", [calculate_waterfall, calculate_management_fees, run_waterfall_scenarios])
    def test_bad_capital_structure(self, entry_point):
        structure = {"capital_structure": {"lp_equity_percent": 80, "gp_equity_percent": 10}}
        with pytest.raises(ConfigurationError):
            entry_point(FLOWS, structure)

    @pytest.mark.parametrize("entry_point", [calculate_waterfall, calculate_management_fees, run_waterfall_scenarios])
    def test_missing_distribution(self, entry_point, default_structure):
        with pytest.raises(InputDataError):
            entry_point(FLOWS[:1], default_structure)

    @pytest.mark.parametrize("amount", [float("nan"), float("inf"), float("-inf")])
    @pytest.mark.parametrize("entry_point", [calculate_waterfall, calculate_management_fees, run_waterfall_scenarios])
    def test_non_finite_amount(self, entry_point, amount, default_structure):
        flows = [FLOWS[0], (date(2025, 1, 1), amount), FLOWS[1]]
        with pytest.raises(InputDataError):
            entry_point(flows, default_structure)

    def test_structure_checked_before_proforma(self):
        structure = make_structure(pref_enabled=True, catch_up_enabled=True)
        with pytest.raises(ConfigurationError):
            calculate_waterfall(FLOWS[:1], structure)

    def test_decreasing_hurdles(self):
        structure = make_structure(tiers=[irr_tier(1, 0.2, 80), irr_tier(2, 0.1, 70)])
        with pytest.raises(ConfigurationError):
            calculate_waterfall(FLOWS, structure)

    def test_unparseable_structure(self):
        with pytest.raises(ConfigurationError):
            calculate_waterfall(FLOWS, {"promote_tiers": [{"lp_share": "lots"}]})

    def test_errors_share_base_and_value_error(self):
        with pytest.raises(WaterfallError):
            calculate_waterfall(FLOWS, {"structure_type": "unknown"})
        with pytest.raises(ValueError):
            calculate_waterfall([(date(2025, 1, 1), -1.0), (date(2024, 1, 1), 2.0)], make_structure())


class TestLogging:
    def test_entry_point_logs_at_info(self, caplog, default_structure):
        with caplog.at_level(logging.INFO, logger="waterfall"):
            calculate_waterfall(FLOWS, default_structure)
        assert any("Calculating waterfall" in record.getMessage() for record in caplog.records)
