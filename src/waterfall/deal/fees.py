# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Deal-level management fees.

Derives acquisition, construction management, asset management and
disposition fee charges from the proforma and deducts them from distributable
cash before tier allocation runs.

Charge timing:
- Acquisition fee: acquisition cost x rate, charged at funding (first
  contribution)
- Construction management fee: hard cost x rate, charged at the end of
  funding (last contribution)
- Asset management fee: contributed equity x annual rate x years elapsed,
  charged at every distribution event for the period since the previous one
- Disposition fee: gross disposition proceeds x rate, charged at each
  disposition event

Fees are paid first-in first-out from each distribution event's gross cash.
When a charge exceeds the cash available, the shortfall defers to the next
event, so net distributable cash is never negative. Fees are reported here
and in the GP's `fees_earned`; they never enter party ledgers as
distributions.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from pydantic import Field

from ..core.primitives import EventKindEnum, FeeTypeEnum, Model, SolverSettings
from .ledger import DistributionEvent, LedgerBuild
from .partnership import WaterfallStructure
from .proforma import Proforma

logger = logging.getLogger(__name__)

_EPSILON = 1e-9


class FeeLine(Model):
    """Totals for one fee type."""

    fee_type: FeeTypeEnum
    base: float = Field(..., description="Amount the rate applies to")
    rate: float = Field(..., description="Fee rate (decimal; annual for asset management)")
    accrued: float = Field(default=0.0, description="Total charged")
    paid: float = Field(default=0.0, description="Paid from distributable cash")
    unpaid: float = Field(default=0.0, description="Charged but never covered by cash")


class FeePayment(Model):
    """Fee deduction at one distribution event."""

    date: dt.date
    gross_cash: float
    fees_paid: float
    net_cash: float


class FeeBreakdown(Model):
    """
    Full management fee report.

    `total_fees` is what was actually deducted from distributable cash, so
    `sum(gross distributions) - total_fees == sum(net distributable cash)`.
    """

    lines: List[FeeLine] = Field(default_factory=list)
    payments: List[FeePayment] = Field(default_factory=list)
    total_fees: float = 0.0
    total_accrued: float = 0.0
    unpaid_fees: float = 0.0

    def line(self, fee_type: FeeTypeEnum) -> Optional[FeeLine]:
        for item in self.lines:
            if item.fee_type == fee_type:
                return item
        return None

    def _accrued(self, fee_type: FeeTypeEnum) -> float:
        item = self.line(fee_type)
        return item.accrued if item is not None else 0.0

    @property
    def acquisition_fee(self) -> float:
        return self._accrued(FeeTypeEnum.ACQUISITION)

    @property
    def construction_management_fee(self) -> float:
        return self._accrued(FeeTypeEnum.CONSTRUCTION_MANAGEMENT)

    @property
    def asset_management_fee(self) -> float:
        return self._accrued(FeeTypeEnum.ASSET_MANAGEMENT)

    @property
    def disposition_fee(self) -> float:
        return self._accrued(FeeTypeEnum.DISPOSITION)


@dataclass(frozen=True)
class FeeCharge:
    """A single fee amount falling due on a date."""

    fee_type: FeeTypeEnum
    date: dt.date
    amount: float


@dataclass
class _OutstandingFee:
    """Unpaid remainder of a fee charge, settled FIFO."""

    fee_type: FeeTypeEnum
    amount: float


@dataclass
class ManagementFeeCalculator:
    """
    Schedules fee charges and deducts them from the distribution queue.

    Attributes:
        structure: Waterfall structure providing the four fee rates
        solver: Settings providing the day-count basis
    """

    structure: WaterfallStructure
    solver: SolverSettings

    def schedule_charges(self, proforma: Proforma, build: LedgerBuild) -> List[FeeCharge]:
        """Fee charges in trigger-date order (stable for equal dates)."""
        fees = self.structure.management_fees
        charges: List[FeeCharge] = []

        if fees.acquisition_fee_percent and proforma.acquisition_cost:
            charges.append(
                FeeCharge(
                    FeeTypeEnum.ACQUISITION,
                    build.first_contribution_date,
                    proforma.acquisition_cost * fees.acquisition_fee_percent,
                )
            )
        if fees.construction_management_fee_percent and proforma.hard_cost:
            charges.append(
                FeeCharge(
                    FeeTypeEnum.CONSTRUCTION_MANAGEMENT,
                    build.last_contribution_date,
                    proforma.hard_cost * fees.construction_management_fee_percent,
                )
            )

        anchor = build.first_contribution_date
        for event in build.distributions:
            if fees.asset_management_fee_percent:
                years = max((event.date - anchor).days, 0) / self.solver.days_per_year
                amount = build.total_equity * fees.asset_management_fee_percent * years
                if amount > 0:
                    charges.append(FeeCharge(FeeTypeEnum.ASSET_MANAGEMENT, event.date, amount))
            if fees.disposition_fee_percent and event.kind == EventKindEnum.DISPOSITION:
                charges.append(
                    FeeCharge(
                        FeeTypeEnum.DISPOSITION,
                        event.date,
                        event.gross_amount * fees.disposition_fee_percent,
                    )
                )
            anchor = max(anchor, event.date)

        return sorted(charges, key=lambda c: c.date)

    def apply(
        self, proforma: Proforma, build: LedgerBuild
    ) -> Tuple[FeeBreakdown, Tuple[DistributionEvent, ...]]:
        """
        Deduct fees from the distribution queue.

        Returns:
            (FeeBreakdown, fee-adjusted distribution events)
        """
        charges = self.schedule_charges(proforma, build)
        accrued: Dict[FeeTypeEnum, float] = {}
        paid: Dict[FeeTypeEnum, float] = {}
        for charge in charges:
            accrued[charge.fee_type] = accrued.get(charge.fee_type, 0.0) + charge.amount

        outstanding: List[_OutstandingFee] = []
        next_charge = 0
        adjusted: List[DistributionEvent] = []
        payments: List[FeePayment] = []

        for event in build.distributions:
            while next_charge < len(charges) and charges[next_charge].date <= event.date:
                charge = charges[next_charge]
                outstanding.append(_OutstandingFee(charge.fee_type, charge.amount))
                next_charge += 1

            cash = event.gross_amount
            fees_paid = 0.0
            for owed in outstanding:
                if cash - fees_paid <= _EPSILON:
                    break
                payment = min(owed.amount, cash - fees_paid)
                owed.amount -= payment
                fees_paid += payment
                paid[owed.fee_type] = paid.get(owed.fee_type, 0.0) + payment
            outstanding = [owed for owed in outstanding if owed.amount > _EPSILON]

            if outstanding:
                logger.debug(
                    f"Fees of {sum(owed.amount for owed in outstanding):,.2f} deferred past {event.date}"
                )

            net = max(cash - fees_paid, 0.0)
            adjusted.append(replace(event, fees_paid=fees_paid, net_amount=net))
            payments.append(
                FeePayment(date=event.date, gross_cash=cash, fees_paid=fees_paid, net_cash=net)
            )

        fees = self.structure.management_fees
        bases = {
            FeeTypeEnum.ACQUISITION: (proforma.acquisition_cost, fees.acquisition_fee_percent),
            FeeTypeEnum.CONSTRUCTION_MANAGEMENT: (proforma.hard_cost, fees.construction_management_fee_percent),
            FeeTypeEnum.ASSET_MANAGEMENT: (build.total_equity, fees.asset_management_fee_percent),
            FeeTypeEnum.DISPOSITION: (proforma.disposition_proceeds, fees.disposition_fee_percent),
        }
        lines = [
            FeeLine(
                fee_type=fee_type,
                base=base,
                rate=rate,
                accrued=accrued.get(fee_type, 0.0),
                paid=paid.get(fee_type, 0.0),
                unpaid=max(accrued.get(fee_type, 0.0) - paid.get(fee_type, 0.0), 0.0),
            )
            for fee_type, (base, rate) in bases.items()
        ]
        total_fees = sum(line.paid for line in lines)
        total_accrued = sum(line.accrued for line in lines)
        breakdown = FeeBreakdown(
            lines=lines,
            payments=payments,
            total_fees=total_fees,
            total_accrued=total_accrued,
            unpaid_fees=max(total_accrued - total_fees, 0.0),
        )
        if breakdown.unpaid_fees > _EPSILON:
            logger.warning(
                f"Management fees of {breakdown.unpaid_fees:,.2f} exceed distributable cash and remain unpaid"
            )
        return breakdown, tuple(adjusted)
