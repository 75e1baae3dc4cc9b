# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tier Allocation Engine

Walks the contribution and distribution timeline in date order and routes
each distribution event's net cash through the waterfall stages:

1. Return of capital (ordering set by `structure_type`)
2. LP preferred return (accrued Actual/365 on unreturned LP capital)
3. GP catch-up (`catch_up_percent` to GP until GP holds `catch_up_target` of profit)
4. Promote tiers, in list order, each gated by an LP IRR hurdle, a multiple
   hurdle, or both joined by AND / OR

Stage 4 uses the return calculators as an oracle: for each tier the engine
binary-searches the cash tranche that lifts LP exactly to the hurdle. The
tranche is paid at the previous split; cash beyond it moves on to the next
tier. Cash remaining once every hurdle is cleared pays at the last tier's
split.

All engine state (unreturned capital, accrued pref, tier cursor, party
ledgers) is built fresh inside `calculate()`, so a `DistributionCalculator`
can be reused across runs and threads.
"""

from __future__ import annotations

import datetime as dt
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..core.calculations import FinancialCalculations
from ..core.primitives import (
    ConvergenceStatus,
    HurdleLogicEnum,
    HurdleTypeEnum,
    PreferredReturnTypeEnum,
    SolverSettings,
    StructureTypeEnum,
    WaterfallStageEnum,
)
from ..exceptions import ComputationError
from .ledger import ContributionSplit, DistributionEvent, LedgerBuild, PartyLedger
from .partnership import PromoteTier, WaterfallStructure
from .results import EventAllocation, TierResult

logger = logging.getLogger(__name__)

_EPSILON = 1e-9


@dataclass
class AllocationOutcome:
    """Everything one engine run produced."""

    lp_ledger: PartyLedger
    gp_ledger: PartyLedger
    tier_results: List[TierResult]
    schedule: List[EventAllocation]
    warnings: List[str] = field(default_factory=list)
    preferred_return_forfeited: float = 0.0
    preferred_return_outstanding: float = 0.0
    lp_unreturned_capital: float = 0.0
    gp_unreturned_capital: float = 0.0

    @property
    def total_promote(self) -> float:
        return sum(t.gp_promote_in_tier for t in self.tier_results)

    @property
    def total_distributed(self) -> float:
        return self.lp_ledger.distributed + self.gp_ledger.distributed


@dataclass
class _TierAccumulator:
    """Mutable running totals behind one `TierResult` row."""

    tier_name: str
    stage: WaterfallStageEnum
    lp_share: float
    gp_share: float
    tier_number: Optional[int] = None
    hurdle_type: Optional[str] = None
    hurdle: Optional[float] = None
    irr_hurdle: Optional[float] = None
    multiple_hurdle: Optional[float] = None
    lp_distribution: float = 0.0
    gp_distribution: float = 0.0
    gp_promote: float = 0.0
    cumulative_lp: float = 0.0
    cumulative_gp: float = 0.0
    lp_multiple: Optional[float] = None
    lp_irr: Optional[float] = None

    def to_result(self) -> TierResult:
        return TierResult(
            tier_number=self.tier_number,
            tier_name=self.tier_name,
            stage=self.stage,
            hurdle_type=self.hurdle_type,
            hurdle=self.hurdle,
            irr_hurdle=self.irr_hurdle,
            multiple_hurdle=self.multiple_hurdle,
            lp_share=self.lp_share,
            gp_share=self.gp_share,
            lp_distribution=self.lp_distribution,
            gp_distribution=self.gp_distribution,
            total_distribution=self.lp_distribution + self.gp_distribution,
            cumulative_lp=self.cumulative_lp,
            cumulative_gp=self.cumulative_gp,
            lp_multiple_at_tier=self.lp_multiple,
            lp_irr_at_tier=self.lp_irr,
            gp_promote_in_tier=self.gp_promote,
        )


@dataclass
class _EngineState:
    """Per-run state. Never shared between runs."""

    lp: PartyLedger
    gp: PartyLedger
    lp_unreturned: float = 0.0
    gp_unreturned: float = 0.0
    pref_unpaid: float = 0.0
    pref_forfeited: float = 0.0
    accrual_date: Optional[dt.date] = None
    # LP/GP cash from the pref, catch-up and promote stages
    profit_lp: float = 0.0
    profit_gp: float = 0.0
    tier_cursor: int = 0
    warnings: List[str] = field(default_factory=list)


@dataclass
class _EventTotals:
    return_of_capital: float = 0.0
    preferred_return: float = 0.0
    catch_up: float = 0.0
    promote: float = 0.0
    lp: float = 0.0
    gp: float = 0.0

    def add(self, stage: WaterfallStageEnum, lp_amount: float, gp_amount: float) -> None:
        amount = lp_amount + gp_amount
        if stage == WaterfallStageEnum.RETURN_OF_CAPITAL:
            self.return_of_capital += amount
        elif stage == WaterfallStageEnum.PREFERRED_RETURN:
            self.preferred_return += amount
        elif stage == WaterfallStageEnum.CATCH_UP:
            self.catch_up += amount
        else:
            self.promote += amount
        self.lp += lp_amount
        self.gp += gp_amount


@dataclass
class DistributionCalculator:
    """
    Allocates distributable cash between LP and GP through the waterfall.

    Attributes:
        structure: Validated waterfall structure
        solver: Tolerances and iteration caps for the IRR and hurdle solves
    """

    structure: WaterfallStructure
    solver: SolverSettings = field(default_factory=SolverSettings)

    def __post_init__(self):
        self._return_capital: Callable[[_EngineState, float, bool], Tuple[float, float]] = {
            StructureTypeEnum.AMERICAN: self._return_capital_pari_passu,
            StructureTypeEnum.EUROPEAN: self._return_capital_lp_first,
            StructureTypeEnum.HYBRID: self._return_capital_hybrid,
        }[self.structure.structure_type]

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    def calculate(
        self,
        build: LedgerBuild,
        distributions: Optional[Sequence[DistributionEvent]] = None,
    ) -> AllocationOutcome:
        """
        Run the waterfall over one timeline.

        Args:
            build: Split contributions and the gross distribution queue
            distributions: Fee-adjusted distribution events; defaults to the
                queue in `build` (no fees)

        Returns:
            AllocationOutcome with party ledgers, tier rows, the per-event
            schedule and any solver warnings
        """
        events = tuple(distributions) if distributions is not None else build.distributions
        state = _EngineState(lp=PartyLedger("LP"), gp=PartyLedger("GP"))
        rows = self._build_rows()
        schedule: List[EventAllocation] = []

        # Contributions sort ahead of distributions on the same date
        timeline: List[Tuple[dt.date, int, int, object]] = []
        for seq, contribution in enumerate(build.contributions):
            timeline.append((contribution.date, 0, seq, contribution))
        for seq, event in enumerate(events):
            timeline.append((event.date, 1, seq, event))
        timeline.sort(key=lambda item: item[:3])

        final_seq = len(events) - 1
        for _, order, seq, item in timeline:
            if order == 0:
                self._contribute(state, item)
            else:
                schedule.append(self._distribute(state, rows, item, is_final=seq == final_seq))

        if state.pref_unpaid > _EPSILON:
            logger.info(f"Preferred return of {state.pref_unpaid:,.2f} remains unpaid at the final event")

        return AllocationOutcome(
            lp_ledger=state.lp,
            gp_ledger=state.gp,
            tier_results=[row.to_result() for row in rows.values()],
            schedule=schedule,
            warnings=state.warnings,
            preferred_return_forfeited=state.pref_forfeited,
            preferred_return_outstanding=state.pref_unpaid,
            lp_unreturned_capital=state.lp_unreturned,
            gp_unreturned_capital=state.gp_unreturned,
        )

    # ------------------------------------------------------------------
    # Timeline steps
    # ------------------------------------------------------------------

    def _contribute(self, state: _EngineState, contribution: ContributionSplit) -> None:
        self._accrue_preferred_return(state, contribution.date)
        state.lp.contribute(contribution.date, contribution.lp_amount)
        state.gp.contribute(contribution.date, contribution.gp_amount)
        state.lp_unreturned += contribution.lp_amount
        state.gp_unreturned += contribution.gp_amount

    def _distribute(
        self,
        state: _EngineState,
        rows: Dict[str, _TierAccumulator],
        event: DistributionEvent,
        is_final: bool,
    ) -> EventAllocation:
        on = event.date
        self._accrue_preferred_return(state, on)
        totals = _EventTotals()
        remaining = max(event.available_cash, 0.0)

        # 1. Return of capital
        lp_roc, gp_roc = self._return_capital(state, remaining, is_final)
        state.lp_unreturned -= lp_roc
        state.gp_unreturned -= gp_roc
        self._allocate(state, rows["roc"], totals, on, lp_roc, gp_roc)
        remaining -= lp_roc + gp_roc

        # 2. Preferred return
        pref = self.structure.preferred_return
        if pref.enabled:
            payment = min(remaining, state.pref_unpaid)
            if payment > 0:
                state.pref_unpaid -= payment
                self._allocate(state, rows["pref"], totals, on, payment, 0.0)
                remaining -= payment
            if pref.type == PreferredReturnTypeEnum.NON_CUMULATIVE and state.pref_unpaid > 0:
                state.pref_forfeited += state.pref_unpaid
                state.pref_unpaid = 0.0

        # 3. GP catch-up
        if pref.catch_up_active and remaining > _EPSILON:
            remaining -= self._pay_catch_up(state, rows["catch_up"], totals, on, remaining)

        # 4. Promote tiers
        if remaining > _EPSILON:
            self._pay_promote(state, rows, totals, on, remaining)

        lp_irr = FinancialCalculations.calculate_irr(state.lp.flows(), self.solver)
        return EventAllocation(
            date=on,
            gross_cash=event.gross_amount,
            fees_paid=event.fees_paid,
            net_cash=event.available_cash,
            return_of_capital=totals.return_of_capital,
            preferred_return=totals.preferred_return,
            catch_up=totals.catch_up,
            promote=totals.promote,
            lp_distribution=totals.lp,
            gp_distribution=totals.gp,
            cumulative_lp=state.lp.distributed,
            cumulative_gp=state.gp.distributed,
            lp_multiple_to_date=state.lp.equity_multiple,
            lp_irr_to_date=lp_irr.value,
        )

    def _accrue_preferred_return(self, state: _EngineState, on: dt.date) -> None:
        """Accrue LP pref from the last event to `on`."""
        pref = self.structure.preferred_return
        if state.accrual_date is None:
            state.accrual_date = on
            return
        years = (on - state.accrual_date).days / self.solver.days_per_year
        state.accrual_date = max(state.accrual_date, on)
        if not pref.enabled or pref.rate <= 0 or years <= 0:
            return

        if pref.type == PreferredReturnTypeEnum.COMPOUNDING:
            accrual = (state.lp_unreturned + state.pref_unpaid) * ((1.0 + pref.rate) ** years - 1.0)
        else:
            accrual = state.lp_unreturned * pref.rate * years
        state.pref_unpaid += max(accrual, 0.0)

    # ------------------------------------------------------------------
    # Stage 1: return of capital
    # ------------------------------------------------------------------

    def _return_capital_pari_passu(
        self, state: _EngineState, cash: float, is_final: bool
    ) -> Tuple[float, float]:
        """American: LP and GP capital returned together, pro rata to balances."""
        unreturned = state.lp_unreturned + state.gp_unreturned
        if unreturned <= 0 or cash <= 0:
            return 0.0, 0.0
        payment = min(cash, unreturned)
        lp_amount = min(payment * state.lp_unreturned / unreturned, state.lp_unreturned)
        gp_amount = min(payment - lp_amount, state.gp_unreturned)
        return lp_amount, gp_amount

    def _return_capital_lp_first(
        self, state: _EngineState, cash: float, is_final: bool
    ) -> Tuple[float, float]:
        """European: all LP capital back before any GP capital."""
        if cash <= 0:
            return 0.0, 0.0
        lp_amount = min(cash, state.lp_unreturned)
        gp_amount = min(cash - lp_amount, state.gp_unreturned)
        return lp_amount, gp_amount

    def _return_capital_hybrid(
        self, state: _EngineState, cash: float, is_final: bool
    ) -> Tuple[float, float]:
        """Hybrid: pari passu while the deal runs, LP first at the final event."""
        if is_final:
            return self._return_capital_lp_first(state, cash, is_final)
        return self._return_capital_pari_passu(state, cash, is_final)

    # ------------------------------------------------------------------
    # Stage 3: catch-up
    # ------------------------------------------------------------------

    def _pay_catch_up(
        self,
        state: _EngineState,
        row: _TierAccumulator,
        totals: _EventTotals,
        on: dt.date,
        remaining: float,
    ) -> float:
        """
        Pay catch-up cash until GP holds `catch_up_target` of profit.

        GP receives `catch_up_percent` of each catch-up dollar and LP the
        rest, so the cash needed is
        (target * profit_lp - (1 - target) * profit_gp) / (percent - target).
        """
        pref = self.structure.preferred_return
        target, percent = pref.catch_up_target, pref.catch_up_percent
        needed = (target * state.profit_lp - (1.0 - target) * state.profit_gp) / (percent - target)
        if needed <= _EPSILON:
            return 0.0
        payment = min(needed, remaining)
        gp_amount = payment * percent
        self._allocate(state, row, totals, on, payment - gp_amount, gp_amount)
        return payment

    # ------------------------------------------------------------------
    # Stage 4: promote tiers
    # ------------------------------------------------------------------

    def _previous_split(self, index: int) -> Tuple[float, float]:
        """LP/GP split in force below tier `index`'s hurdle."""
        tiers = self.structure.promote_tiers
        if index > 0:
            return tiers[index - 1].split
        pref = self.structure.preferred_return
        if pref.catch_up_active:
            return 1.0 - pref.catch_up_target, pref.catch_up_target
        capital = self.structure.capital_structure
        return capital.lp_fraction, capital.gp_fraction

    def _pay_promote(
        self,
        state: _EngineState,
        rows: Dict[str, _TierAccumulator],
        totals: _EventTotals,
        on: dt.date,
        remaining: float,
    ) -> None:
        tiers = self.structure.promote_tiers
        if not tiers:
            capital = self.structure.capital_structure
            lp_amount = remaining * capital.lp_fraction
            self._allocate(state, rows["pro_rata"], totals, on, lp_amount, remaining - lp_amount)
            return

        while remaining > _EPSILON:
            if state.tier_cursor >= len(tiers):
                lp_share, _ = tiers[-1].split
                lp_amount = remaining * lp_share
                self._allocate(state, rows[f"tier_{len(tiers) - 1}"], totals, on, lp_amount, remaining - lp_amount)
                return

            index = state.tier_cursor
            tier = tiers[index]
            row = rows[f"tier_{index}"]
            prev_lp, _ = self._previous_split(index)
            tranche = self._solve_hurdle_tranche(state, tier, index, prev_lp, on, remaining)

            if tranche is None:
                lp_share, _ = tier.split
                lp_amount = remaining * lp_share
                self._allocate(state, row, totals, on, lp_amount, remaining - lp_amount)
                return

            if tranche > 0:
                lp_amount = tranche * prev_lp
                self._allocate(state, row, totals, on, lp_amount, tranche - lp_amount)
                remaining -= tranche
            state.tier_cursor += 1
            logger.debug(f"{tier.display_name} hurdle cleared on {on}")

    def _lp_metric(self, state: _EngineState, metric: HurdleTypeEnum, on: dt.date, extra_lp: float) -> float:
        """LP IRR or multiple as if `extra_lp` more were distributed on `on`."""
        if metric == HurdleTypeEnum.IRR:
            result = FinancialCalculations.calculate_irr(state.lp.flows_with(on, extra_lp), self.solver)
            # Undefined here means no distributions or an IRR below the bracket
            return result.value if result.value is not None else -math.inf
        if state.lp.contributed <= 0:
            return -math.inf
        return (state.lp.distributed + extra_lp) / state.lp.contributed

    def _hurdle_gap(self, state: _EngineState, tier: PromoteTier, on: dt.date, extra_lp: float) -> float:
        """
        Signed distance of LP from the tier hurdle; >= 0 means cleared.

        Combined tiers take the smaller gap under AND and the larger under OR.
        """
        gaps = [
            self._lp_metric(state, metric, on, extra_lp) - hurdle
            for metric, hurdle in tier.conditions
        ]
        if tier.hurdle_logic == HurdleLogicEnum.AND:
            return min(gaps)
        return max(gaps)

    def _solve_hurdle_tranche(
        self,
        state: _EngineState,
        tier: PromoteTier,
        index: int,
        prev_lp: float,
        on: dt.date,
        remaining: float,
    ) -> Optional[float]:
        """
        Find the cash tranche X (paid at the previous split) that lifts LP to
        the tier hurdle.

        Returns:
            0 when LP is at or above the hurdle before any cash, None when
            `remaining` cannot reach it, otherwise X in (0, remaining].
        """
        tolerance = self.solver.metric_tolerance

        def reached(tranche: float) -> bool:
            return self._hurdle_gap(state, tier, on, tranche * prev_lp) >= -tolerance

        if reached(0.0):
            if index > 0 and self._hurdle_gap(state, tier, on, 0.0) > tolerance:
                message = (
                    f"{tier.display_name} hurdle was already exceeded on {on} "
                    f"before any cash reached it; tiers are out of order or mix hurdle types"
                )
                logger.warning(message)
                state.warnings.append(message)
            else:
                logger.debug(f"{tier.display_name} hurdle already met on {on}")
            return 0.0

        gap_at_remaining = self._hurdle_gap(state, tier, on, remaining * prev_lp)
        if gap_at_remaining < -tolerance:
            return None
        if gap_at_remaining <= tolerance:
            # Cash exactly clears the hurdle
            return remaining

        try:
            tranche = self._bisect_tranche(reached, remaining)
        except ComputationError as exc:
            message = f"{tier.display_name} hurdle solve on {on} hit the iteration cap: {exc}"
            logger.warning(message)
            state.warnings.append(message)
            tranche = exc.estimate

        width = self.solver.hurdle_tolerance * max(remaining, 1.0)
        if remaining - tranche <= width:
            tranche = remaining
        return tranche

    def _bisect_tranche(self, reached: Callable[[float], bool], remaining: float) -> float:
        """Smallest tranche in [0, remaining] that reaches the hurdle (monotone search)."""
        lo, hi = 0.0, remaining
        width = self.solver.hurdle_tolerance * max(remaining, 1.0)
        iterations = 0
        while hi - lo > width:
            if iterations >= self.solver.hurdle_max_iterations:
                raise ComputationError(
                    f"stopped after {iterations} iterations with interval [{lo:.6f}, {hi:.6f}]",
                    estimate=hi,
                )
            mid = 0.5 * (lo + hi)
            if reached(mid):
                hi = mid
            else:
                lo = mid
            iterations += 1
        return hi

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def _allocate(
        self,
        state: _EngineState,
        row: _TierAccumulator,
        totals: _EventTotals,
        on: dt.date,
        lp_amount: float,
        gp_amount: float,
    ) -> None:
        """Record one LP/GP payment in the ledgers, the tier row and the event totals."""
        lp_amount = max(lp_amount, 0.0)
        gp_amount = max(gp_amount, 0.0)
        if lp_amount + gp_amount <= 0:
            return

        state.lp.distribute(on, lp_amount)
        state.gp.distribute(on, gp_amount)
        if row.stage != WaterfallStageEnum.RETURN_OF_CAPITAL:
            state.profit_lp += lp_amount
            state.profit_gp += gp_amount

        if row.stage in (WaterfallStageEnum.CATCH_UP, WaterfallStageEnum.PROMOTE):
            pro_rata_gp = (lp_amount + gp_amount) * self.structure.capital_structure.gp_fraction
            row.gp_promote += max(gp_amount - pro_rata_gp, 0.0)

        row.lp_distribution += lp_amount
        row.gp_distribution += gp_amount
        row.cumulative_lp = state.lp.distributed
        row.cumulative_gp = state.gp.distributed
        row.lp_multiple = state.lp.equity_multiple
        lp_irr = FinancialCalculations.calculate_irr(state.lp.flows(), self.solver)
        if lp_irr.status != ConvergenceStatus.UNDEFINED:
            row.lp_irr = lp_irr.value
        totals.add(row.stage, lp_amount, gp_amount)

    def _build_rows(self) -> Dict[str, _TierAccumulator]:
        """Tier rows in waterfall order, keyed for the allocation steps."""
        capital = self.structure.capital_structure
        pref = self.structure.preferred_return
        rows: Dict[str, _TierAccumulator] = {
            "roc": _TierAccumulator(
                tier_name="Return of Capital",
                stage=WaterfallStageEnum.RETURN_OF_CAPITAL,
                lp_share=capital.lp_equity_percent,
                gp_share=capital.gp_equity_percent,
            )
        }
        if pref.enabled:
            rows["pref"] = _TierAccumulator(
                tier_name="Preferred Return",
                stage=WaterfallStageEnum.PREFERRED_RETURN,
                hurdle_type=HurdleTypeEnum.IRR.value,
                hurdle=pref.rate,
                lp_share=100.0,
                gp_share=0.0,
            )
        if pref.catch_up_active:
            rows["catch_up"] = _TierAccumulator(
                tier_name="GP Catch-Up",
                stage=WaterfallStageEnum.CATCH_UP,
                hurdle=pref.catch_up_target,
                lp_share=(1.0 - pref.catch_up_percent) * 100.0,
                gp_share=pref.catch_up_percent * 100.0,
            )
        for index, tier in enumerate(self.structure.promote_tiers):
            rows[f"tier_{index}"] = _TierAccumulator(
                tier_number=tier.tier_number,
                tier_name=tier.display_name,
                stage=WaterfallStageEnum.PROMOTE,
                hurdle_type=tier.hurdle_type.value,
                hurdle=tier.hurdle,
                irr_hurdle=tier.irr_hurdle,
                multiple_hurdle=tier.multiple_hurdle,
                lp_share=tier.lp_share,
                gp_share=tier.gp_share,
            )
        if not self.structure.promote_tiers:
            rows["pro_rata"] = _TierAccumulator(
                tier_name="Pro-Rata Split",
                stage=WaterfallStageEnum.PRO_RATA,
                lp_share=capital.lp_equity_percent,
                gp_share=capital.gp_equity_percent,
            )
        return rows
