# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tests for settings models.
"""

import pytest
from pydantic import ValidationError

from waterfall.core.primitives import ScenarioSettings, SolverSettings, WaterfallSettings


class TestSolverSettings:
    def test_defaults(self):
        solver = SolverSettings()
        assert solver.irr_lower_bound == -0.99
        assert solver.irr_upper_bound == 10.0
        assert solver.irr_tolerance == 1e-6
        assert solver.days_per_year == 365.0

    def test_inverted_bracket_rejected(self):
        with pytest.raises(ValidationError):
            SolverSettings(irr_lower_bound=0.5, irr_upper_bound=0.1)

    def test_lower_bound_must_exceed_minus_one(self):
        with pytest.raises(ValidationError):
            SolverSettings(irr_lower_bound=-1.0)

    def test_settings_are_frozen(self):
        solver = SolverSettings()
        with pytest.raises(ValidationError):
            solver.irr_tolerance = 1e-3


class TestScenarioSettings:
    def test_default_shocks(self):
        shocks = ScenarioSettings()
        assert (shocks.downside_shock, shocks.base_shock, shocks.upside_shock) == (-0.20, 0.0, 0.20)

    def test_shocks_must_be_ordered(self):
        with pytest.raises(ValidationError):
            ScenarioSettings(downside_shock=0.1, base_shock=0.0, upside_shock=0.2)

    def test_waterfall_settings_nest_both(self):
        settings = WaterfallSettings(solver={"irr_max_iterations": 50}, scenarios={"upside_shock": 0.3})
        assert settings.solver.irr_max_iterations == 50
        assert settings.scenarios.upside_shock == 0.3
