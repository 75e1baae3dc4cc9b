# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall results (Result Aggregator).

Typed, immutable result models packaged for the presentation layer, plus the
aggregation that turns an engine run into per-party and project-level
figures. This module contains no allocation logic of its own: distributions
come from the tier engine, return math from `FinancialCalculations`.
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import pandas as pd
from pydantic import Field

from ..core.calculations import FinancialCalculations
from ..core.primitives import ConvergenceStatus, Model, SolverSettings, WaterfallStageEnum
from .fees import FeeBreakdown

if TYPE_CHECKING:
    from .distribution_calculator import AllocationOutcome
    from .proforma import Proforma


# ==========================================================================
# PER-TIER AND PER-EVENT RECORDS
# ==========================================================================


class TierResult(Model):
    """Distribution totals for one waterfall stage or promote tier."""

    tier_number: Optional[int] = Field(default=None, description="Promote tier number; None for fixed stages")
    tier_name: str
    stage: WaterfallStageEnum
    hurdle_type: Optional[str] = None
    hurdle: Optional[float] = None
    irr_hurdle: Optional[float] = None
    multiple_hurdle: Optional[float] = None
    lp_share: float = Field(..., description="Nominal LP share (percent)")
    gp_share: float = Field(..., description="Nominal GP share (percent)")
    lp_distribution: float = 0.0
    gp_distribution: float = 0.0
    total_distribution: float = 0.0
    cumulative_lp: float = 0.0
    cumulative_gp: float = 0.0
    lp_multiple_at_tier: Optional[float] = None
    lp_irr_at_tier: Optional[float] = None
    gp_promote_in_tier: float = 0.0


class EventAllocation(Model):
    """How one distribution event's cash moved through the waterfall."""

    date: dt.date
    gross_cash: float
    fees_paid: float
    net_cash: float
    return_of_capital: float = 0.0
    preferred_return: float = 0.0
    catch_up: float = 0.0
    promote: float = 0.0
    lp_distribution: float = 0.0
    gp_distribution: float = 0.0
    cumulative_lp: float = 0.0
    cumulative_gp: float = 0.0
    lp_multiple_to_date: Optional[float] = None
    lp_irr_to_date: Optional[float] = None


# ==========================================================================
# FINAL RESULTS
# ==========================================================================


class PartyResult(Model):
    """Final position of one party."""

    total_invested: float
    total_distributed: float
    profit: float
    irr: Optional[float] = None
    irr_status: ConvergenceStatus = ConvergenceStatus.UNDEFINED
    equity_multiple: Optional[float] = None


class LPResult(PartyResult):
    return_of_capital: float = 0.0
    preferred_return_received: float = 0.0
    profit_share_received: float = 0.0
    preferred_return_forfeited: float = 0.0
    cash_on_cash_avg: Optional[float] = Field(
        default=None, description="Average annual distributions per dollar invested"
    )
    payback_period_months: Optional[float] = Field(
        default=None, description="Months until cumulative LP cash turns non-negative; None if never"
    )


class GPResult(PartyResult):
    promote_earned: float = 0.0
    co_invest_return: float = 0.0
    fees_earned: float = 0.0


class ProjectResult(Model):
    """Project-level figures on the gross proforma."""

    total_cost: float
    total_equity: float
    total_distributions: float
    total_fees: float
    net_profit: float
    project_irr: Optional[float] = None
    equity_multiple: Optional[float] = None


class FinalResults(Model):
    lp: LPResult
    gp: GPResult
    project: ProjectResult


class ClawbackResult(Model):
    """GP promote true-up at deal termination."""

    enabled: bool = False
    actual_promote: float = 0.0
    entitled_promote: Optional[float] = None
    excess_promote: float = 0.0
    escrow_buffer: float = 0.0
    clawback_amount: float = 0.0


class WaterfallResults(Model):
    """
    Complete output of one waterfall run.

    Example access:
        results = calculate_waterfall(proforma, structure)
        lp_irr = results.final_results.lp.irr
        promote = results.final_results.gp.promote_earned
        frame = results.tier_results_df()
    """

    tier_results: List[TierResult]
    final_results: FinalResults
    distribution_schedule: List[EventAllocation] = Field(default_factory=list)
    fees: FeeBreakdown = Field(default_factory=FeeBreakdown)
    clawback: ClawbackResult = Field(default_factory=ClawbackResult)
    lp_cash_flows: List[Tuple[dt.date, float]] = Field(default_factory=list, description="(date, amount) LP ledger")
    gp_cash_flows: List[Tuple[dt.date, float]] = Field(default_factory=list, description="(date, amount) GP ledger")
    warnings: List[str] = Field(default_factory=list)

    @property
    def total_distributed(self) -> float:
        return sum(t.total_distribution for t in self.tier_results)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict form for the presentation layer."""
        return self.model_dump(mode="json")

    def tier_results_df(self) -> pd.DataFrame:
        """Tier results as a DataFrame, one row per stage/tier."""
        return pd.DataFrame([t.model_dump(mode="json") for t in self.tier_results])

    def schedule_df(self) -> pd.DataFrame:
        """Distribution schedule as a DataFrame indexed by event date."""
        frame = pd.DataFrame([e.model_dump() for e in self.distribution_schedule])
        if frame.empty:
            return frame
        frame["date"] = pd.to_datetime(frame["date"])
        return frame.set_index("date")

    def lp_cash_flow_series(self) -> pd.Series:
        return _flows_to_series(self.lp_cash_flows, "LP")

    def gp_cash_flow_series(self) -> pd.Series:
        return _flows_to_series(self.gp_cash_flows, "GP")


def _flows_to_series(flows: List[Tuple[dt.date, float]], name: str) -> pd.Series:
    if not flows:
        return pd.Series(dtype=float, name=name)
    dates, amounts = zip(*flows)
    series = pd.Series(list(amounts), index=pd.to_datetime(list(dates)), dtype=float, name=name)
    return series.groupby(level=0).sum()


# ==========================================================================
# AGGREGATION
# ==========================================================================


def _stage_total(tiers: List[TierResult], stage: WaterfallStageEnum, party: str) -> float:
    attr = f"{party}_distribution"
    return sum(getattr(t, attr) for t in tiers if t.stage == stage)


def aggregate_results(
    outcome: "AllocationOutcome",
    proforma: "Proforma",
    fees: FeeBreakdown,
    clawback: ClawbackResult,
    solver: SolverSettings,
) -> WaterfallResults:
    """
    Package an engine run into `WaterfallResults`.

    Args:
        outcome: Tier engine output (ledgers, tier rows, schedule, warnings)
        proforma: The proforma the run was computed on
        fees: Management fee breakdown of the run
        clawback: Clawback evaluation of the run
        solver: Solver settings for the final IRR solves
    """
    tiers = outcome.tier_results
    warnings = list(outcome.warnings)

    lp_flows = outcome.lp_ledger.flows()
    gp_flows = outcome.gp_ledger.flows()
    lp_irr = FinancialCalculations.calculate_irr(lp_flows, solver)
    gp_irr = FinancialCalculations.calculate_irr(gp_flows, solver)
    for party, irr in (("LP", lp_irr), ("GP", gp_irr)):
        if irr.status == ConvergenceStatus.NOT_CONVERGED:
            warnings.append(f"{party} IRR did not converge; reporting best estimate {irr.value}")

    lp_invested = outcome.lp_ledger.contributed
    lp_distributed = outcome.lp_ledger.distributed
    lp_roc = _stage_total(tiers, WaterfallStageEnum.RETURN_OF_CAPITAL, "lp")
    lp_pref = _stage_total(tiers, WaterfallStageEnum.PREFERRED_RETURN, "lp")
    lp = LPResult(
        total_invested=lp_invested,
        total_distributed=lp_distributed,
        profit=lp_distributed - lp_invested,
        irr=lp_irr.value,
        irr_status=lp_irr.status,
        equity_multiple=outcome.lp_ledger.equity_multiple,
        return_of_capital=lp_roc,
        preferred_return_received=lp_pref,
        profit_share_received=max(lp_distributed - lp_roc - lp_pref, 0.0),
        preferred_return_forfeited=outcome.preferred_return_forfeited,
        cash_on_cash_avg=outcome.lp_ledger.cash_on_cash_average(solver.days_per_year),
        payback_period_months=outcome.lp_ledger.payback_period_months(solver.days_per_year),
    )

    gp_invested = outcome.gp_ledger.contributed
    gp_distributed = outcome.gp_ledger.distributed
    promote = sum(t.gp_promote_in_tier for t in tiers)
    gp = GPResult(
        total_invested=gp_invested,
        total_distributed=gp_distributed,
        profit=gp_distributed - gp_invested,
        irr=gp_irr.value,
        irr_status=gp_irr.status,
        equity_multiple=outcome.gp_ledger.equity_multiple,
        promote_earned=promote,
        co_invest_return=gp_distributed - promote,
        fees_earned=fees.total_fees,
    )

    gross_flows = [(e.date, e.amount) for e in proforma.active_events]
    project_irr = FinancialCalculations.calculate_irr(gross_flows, solver)
    project = ProjectResult(
        total_cost=proforma.resolved_total_cost,
        total_equity=proforma.total_equity,
        total_distributions=proforma.total_distributions,
        total_fees=fees.total_fees,
        net_profit=proforma.total_distributions - proforma.total_equity,
        project_irr=project_irr.value,
        equity_multiple=FinancialCalculations.calculate_equity_multiple(gross_flows),
    )

    return WaterfallResults(
        tier_results=tiers,
        final_results=FinalResults(lp=lp, gp=gp, project=project),
        distribution_schedule=outcome.schedule,
        fees=fees,
        clawback=clawback,
        lp_cash_flows=lp_flows,
        gp_cash_flows=gp_flows,
        warnings=warnings,
    )
