# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
GP clawback evaluation.

At deal termination the GP's actual promote (earned event by event) is
compared with the promote it would have earned had every net distribution
arrived as one lump sum on the final distribution date. Promote earned early
on interim cash that the whole-life deal does not support is excess; excess
beyond the escrow buffer (`escrow_percent` of actual promote) is owed back.

The clawback is reported only. Party ledgers and final results are not
adjusted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from ..core.primitives import EventKindEnum, SolverSettings
from .distribution_calculator import AllocationOutcome, DistributionCalculator
from .ledger import DistributionEvent, LedgerBuild
from .partnership import WaterfallStructure
from .results import ClawbackResult

logger = logging.getLogger(__name__)


@dataclass
class ClawbackEvaluator:
    """
    Computes the clawback owed by the GP for one completed run.

    Attributes:
        structure: Waterfall structure (clawback provisions and tiers)
        solver: Solver settings reused for the whole-life re-run
    """

    structure: WaterfallStructure
    solver: SolverSettings = field(default_factory=SolverSettings)

    def entitled_promote(self, build: LedgerBuild, distributions: Sequence[DistributionEvent]) -> float:
        """
        Promote under whole-life allocation: the same contributions and one
        collapsed distribution of all net cash on the final date.
        """
        net_total = sum(event.available_cash for event in distributions)
        final_date = max(event.date for event in distributions)
        collapsed = DistributionEvent(
            date=final_date,
            gross_amount=net_total,
            kind=EventKindEnum.DISPOSITION,
            net_amount=net_total,
        )
        outcome = DistributionCalculator(self.structure, self.solver).calculate(build, [collapsed])
        return outcome.total_promote

    def evaluate(
        self,
        build: LedgerBuild,
        distributions: Sequence[DistributionEvent],
        outcome: AllocationOutcome,
    ) -> ClawbackResult:
        """
        Evaluate the clawback for a finished run.

        Args:
            build: Ledger build the run used
            distributions: Fee-adjusted distribution events the run used
            outcome: The run's engine output

        Returns:
            ClawbackResult; `clawback_amount` is 0 when clawback is disabled
        """
        provisions = self.structure.clawback_provisions
        actual = outcome.total_promote
        if not provisions.gp_clawback_enabled:
            return ClawbackResult(enabled=False, actual_promote=actual)

        entitled = self.entitled_promote(build, distributions)
        excess = max(actual - entitled, 0.0)
        buffer = provisions.escrow_percent * actual
        amount = excess - buffer if excess > buffer else 0.0

        if amount > 0:
            logger.info(
                f"GP clawback of {amount:,.2f} owed (actual promote {actual:,.2f}, "
                f"entitled {entitled:,.2f}, escrow buffer {buffer:,.2f})"
            )
        return ClawbackResult(
            enabled=True,
            actual_promote=actual,
            entitled_promote=entitled,
            excess_promote=excess,
            escrow_buffer=buffer,
            clawback_amount=amount,
        )
