# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from pydantic import Field, model_validator

from .model import Model
from .types import PositiveFloat, PositiveInt


class SolverSettings(Model):
    """
    Configuration for the bounded root-finding loops.

    Two solvers run inside the engine: the IRR solve (NPV(rate) = 0 over a
    wide bracket) and the hurdle-amount solve (binary search over an event's
    remaining cash). Both stop at their iteration cap and return a flagged
    best estimate instead of looping indefinitely.

    Usage Examples:
        # Defaults: -99%..1000% bracket widened up to 1e7 for short holds, 1e-6 NPV tolerance
        solver = SolverSettings()

        # Tighter cap for an interactive editor
        solver = SolverSettings(irr_max_iterations=50, hurdle_max_iterations=60)
    """

    irr_lower_bound: float = Field(
        default=-0.99, gt=-1.0, description="Lower edge of the IRR search bracket."
    )
    irr_upper_bound: float = Field(
        default=10.0, description="Upper edge of the IRR search bracket (10.0 = 1000%)."
    )
    irr_bracket_expansions: int = Field(
        default=6,
        ge=0,
        description="Times the upper edge is raised tenfold while NPV is still positive there.",
    )
    irr_tolerance: PositiveFloat = Field(
        default=1e-6,
        description="Convergence test on |NPV| / invested capital at the solved rate.",
    )
    irr_max_iterations: PositiveInt = Field(
        default=200, description="Hard iteration cap for the IRR solver."
    )
    hurdle_tolerance: PositiveFloat = Field(
        default=1e-9,
        description="Relative width of the cash interval at which a hurdle solve stops.",
    )
    hurdle_max_iterations: PositiveInt = Field(
        default=200, description="Hard iteration cap for the hurdle-amount binary search."
    )
    metric_tolerance: float = Field(
        default=1e-9,
        ge=0,
        description="Slack allowed when comparing a metric against its hurdle.",
    )
    days_per_year: PositiveFloat = Field(
        default=365.0, description="Day-count basis for accrual (Actual/365)."
    )

    @model_validator(mode="after")
    def validate_bracket(self) -> "SolverSettings":
        """IRR bracket must be a proper interval."""
        if self.irr_upper_bound <= self.irr_lower_bound:
            raise ValueError("irr_upper_bound must exceed irr_lower_bound")
        return self


class ScenarioSettings(Model):
    """Shocks applied to the exit (disposition) value for scenario comparison."""

    downside_shock: float = Field(
        default=-0.20, gt=-1.0, le=0.0, description="Downside change in exit value."
    )
    base_shock: float = Field(default=0.0, description="Base-case change in exit value.")
    upside_shock: float = Field(
        default=0.20, ge=0.0, description="Upside change in exit value."
    )

    @model_validator(mode="after")
    def validate_ordering(self) -> "ScenarioSettings":
        """Shocks must be ordered downside <= base <= upside."""
        if not (self.downside_shock <= self.base_shock <= self.upside_shock):
            raise ValueError("Scenario shocks must satisfy downside <= base <= upside")
        return self


class WaterfallSettings(Model):
    """
    Top-level settings container passed explicitly to every entry point.

    Nothing here is global: each call receives its own settings (or the
    defaults), so concurrent calls with different settings never interfere.
    """

    solver: SolverSettings = Field(default_factory=SolverSettings)
    scenarios: ScenarioSettings = Field(default_factory=ScenarioSettings)
