# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall Orchestrator

`WaterfallCalculator` runs one complete waterfall pipeline over a proforma:

1. **Ledger build** - split contributions LP/GP, queue distributable events
2. **Management fees** - deduct fee charges from the distribution queue
3. **Tier allocation** - route net cash through the waterfall stages
4. **Clawback** - true up GP promote against whole-life allocation
5. **Aggregation** - package final, tier, schedule and fee results

The calculator coordinates the specialist services without duplicating their
logic. It holds no state between runs: every `run()` builds fresh ledgers and
engine state, so the same calculator can evaluate several proformas (e.g.
scenario variants) independently.

Example:
    ```python
    calculator = WaterfallCalculator(structure, WaterfallSettings())
    results = calculator.run(proforma)
    print(f"LP IRR: {results.final_results.lp.irr:.2%}")
    ```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..core.primitives import WaterfallSettings
from .clawback import ClawbackEvaluator
from .distribution_calculator import DistributionCalculator
from .fees import FeeBreakdown, ManagementFeeCalculator
from .ledger import build_ledgers
from .partnership import WaterfallStructure
from .proforma import Proforma
from .results import WaterfallResults, aggregate_results

logger = logging.getLogger(__name__)


@dataclass
class WaterfallCalculator:
    """
    Service class that runs the full waterfall pipeline for one structure.

    Attributes:
        structure: Validated waterfall structure
        settings: Solver and scenario settings
    """

    structure: WaterfallStructure
    settings: WaterfallSettings = field(default_factory=WaterfallSettings)

    def fees(self, proforma: Proforma) -> FeeBreakdown:
        """Management fee breakdown for `proforma` without running the waterfall."""
        build = build_ledgers(proforma, self.structure)
        breakdown, _ = ManagementFeeCalculator(self.structure, self.settings.solver).apply(proforma, build)
        return breakdown

    def run(self, proforma: Proforma) -> WaterfallResults:
        """
        Execute the pipeline.

        Args:
            proforma: Validated proforma timeline

        Returns:
            WaterfallResults for this proforma
        """
        solver = self.settings.solver

        build = build_ledgers(proforma, self.structure)
        fees, distributions = ManagementFeeCalculator(self.structure, solver).apply(proforma, build)
        logger.debug(f"Fees deducted: {fees.total_fees:,.2f} across {len(distributions)} events")

        outcome = DistributionCalculator(self.structure, solver).calculate(build, distributions)
        clawback = ClawbackEvaluator(self.structure, solver).evaluate(build, distributions, outcome)

        results = aggregate_results(outcome, proforma, fees, clawback, solver)
        for message in results.warnings:
            logger.debug(f"Run warning: {message}")
        return results
