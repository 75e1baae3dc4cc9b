# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Exit-value scenarios.

Runs the full waterfall pipeline on downside, base and upside variants of a
proforma, each with its disposition events scaled by the configured shock
(-20% / 0% / +20% by default). Variants are independent runs; nothing is
shared between them.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field

from ..core.primitives import Model, WaterfallSettings
from .orchestrator import WaterfallCalculator
from .partnership import WaterfallStructure
from .proforma import Proforma
from .results import WaterfallResults

logger = logging.getLogger(__name__)


class RangeSummary(Model):
    """A metric across the three scenarios (None where undefined)."""

    low: Optional[float] = Field(default=None, description="Downside scenario value")
    base: Optional[float] = Field(default=None, description="Base scenario value")
    high: Optional[float] = Field(default=None, description="Upside scenario value")


class ScenarioSummary(Model):
    lp_irr_range: RangeSummary
    lp_multiple_range: RangeSummary
    gp_promote_range: RangeSummary
    downside_shock: float
    base_shock: float
    upside_shock: float


class ScenarioSet(Model):
    """Waterfall results for the three exit scenarios plus their summary."""

    downside: WaterfallResults
    base: WaterfallResults
    upside: WaterfallResults
    summary: ScenarioSummary


def run_scenarios(
    proforma: Proforma, structure: WaterfallStructure, settings: WaterfallSettings
) -> ScenarioSet:
    """
    Run downside, base and upside waterfalls.

    Args:
        proforma: Validated base proforma
        structure: Validated waterfall structure
        settings: Settings carrying the scenario shocks

    Returns:
        ScenarioSet with per-scenario results and LP IRR, LP multiple and GP
        promote ranges
    """
    shocks = settings.scenarios
    calculator = WaterfallCalculator(structure, settings)

    downside = calculator.run(proforma.with_exit_shock(shocks.downside_shock))
    base = calculator.run(proforma.with_exit_shock(shocks.base_shock))
    upside = calculator.run(proforma.with_exit_shock(shocks.upside_shock))

    def metric_range(getter) -> RangeSummary:
        return RangeSummary(low=getter(downside), base=getter(base), high=getter(upside))

    summary = ScenarioSummary(
        lp_irr_range=metric_range(lambda r: r.final_results.lp.irr),
        lp_multiple_range=metric_range(lambda r: r.final_results.lp.equity_multiple),
        gp_promote_range=metric_range(lambda r: r.final_results.gp.promote_earned),
        downside_shock=shocks.downside_shock,
        base_shock=shocks.base_shock,
        upside_shock=shocks.upside_shock,
    )
    logger.debug(
        f"Scenario LP IRR range: {summary.lp_irr_range.low} / "
        f"{summary.lp_irr_range.base} / {summary.lp_irr_range.high}"
    )
    return ScenarioSet(downside=downside, base=base, upside=upside, summary=summary)
