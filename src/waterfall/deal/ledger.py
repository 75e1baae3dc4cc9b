# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Cash Flow Ledger Builder

Splits proforma contributions between LP and GP per the capital structure and
collects distributable events into a single chronological queue of gross
(pre-fee) amounts. Also defines the per-party ledger the tier engine writes
distributions into.

Party ledgers are engine-internal and recomputed on every run; nothing here is
cached or persisted between calls.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import pandas as pd

from ..core.primitives import EventKindEnum
from .partnership import WaterfallStructure
from .proforma import Proforma

logger = logging.getLogger(__name__)

_PAYBACK_TOLERANCE = 1e-9


@dataclass(frozen=True)
class ContributionSplit:
    """A contribution event split between LP and GP (positive amounts)."""

    date: dt.date
    amount: float
    lp_amount: float
    gp_amount: float


@dataclass(frozen=True)
class DistributionEvent:
    """
    A distributable cash event.

    `gross_amount` is the proforma amount; `fees_paid` and `net_amount` are
    filled in by the fee calculator (net equals gross until then).
    """

    date: dt.date
    gross_amount: float
    kind: EventKindEnum = EventKindEnum.OPERATING
    fees_paid: float = 0.0
    net_amount: Optional[float] = None

    @property
    def available_cash(self) -> float:
        return self.gross_amount if self.net_amount is None else self.net_amount


@dataclass(frozen=True)
class LedgerBuild:
    """Output of the ledger builder: split contributions and the distribution queue."""

    contributions: Tuple[ContributionSplit, ...]
    distributions: Tuple[DistributionEvent, ...]

    @property
    def total_equity(self) -> float:
        return sum(c.amount for c in self.contributions)

    @property
    def lp_equity(self) -> float:
        return sum(c.lp_amount for c in self.contributions)

    @property
    def gp_equity(self) -> float:
        return sum(c.gp_amount for c in self.contributions)

    @property
    def first_contribution_date(self) -> dt.date:
        return self.contributions[0].date

    @property
    def last_contribution_date(self) -> dt.date:
        return self.contributions[-1].date

    @property
    def final_date(self) -> dt.date:
        return self.distributions[-1].date


@dataclass
class PartyLedger:
    """
    Ordered dated signed cash flows for one party plus running totals.

    Contributions are stored negative, distributions positive.
    """

    party: str
    dates: List[dt.date] = field(default_factory=list)
    amounts: List[float] = field(default_factory=list)
    contributed: float = 0.0
    distributed: float = 0.0

    def contribute(self, on: dt.date, amount: float) -> None:
        if amount <= 0:
            return
        self.dates.append(on)
        self.amounts.append(-amount)
        self.contributed += amount

    def distribute(self, on: dt.date, amount: float) -> None:
        if amount <= 0:
            return
        self.dates.append(on)
        self.amounts.append(amount)
        self.distributed += amount

    def flows(self) -> List[Tuple[dt.date, float]]:
        return list(zip(self.dates, self.amounts))

    def flows_with(self, on: dt.date, extra: float) -> List[Tuple[dt.date, float]]:
        """Flows as if `extra` were distributed on `on` (ledger unchanged)."""
        flows = self.flows()
        if extra > 0:
            flows.append((on, extra))
        return flows

    @property
    def equity_multiple(self) -> Optional[float]:
        if self.contributed <= 0:
            return None
        return self.distributed / self.contributed

    def to_series(self) -> pd.Series:
        """Net flow per date (DatetimeIndex)."""
        series = pd.Series(self.amounts, index=pd.to_datetime(self.dates), dtype=float, name=self.party)
        return series.groupby(level=0).sum()

    def hold_years(self, days_per_year: float = 365.0) -> float:
        """Years from the first to the last ledger entry."""
        if not self.dates:
            return 0.0
        return (max(self.dates) - min(self.dates)).days / days_per_year

    def cash_on_cash_average(self, days_per_year: float = 365.0) -> Optional[float]:
        """Average annual distributions per dollar contributed over the hold."""
        years = self.hold_years(days_per_year)
        if self.contributed <= 0 or years <= 0:
            return None
        return self.distributed / years / self.contributed

    def payback_period_months(self, days_per_year: float = 365.0) -> Optional[float]:
        """
        Months from the first contribution until cumulative net cash turns
        non-negative; None when the party is never paid back.
        """
        if self.contributed <= 0:
            return None
        cumulative = self.to_series().cumsum()
        paid_back = cumulative[cumulative >= -_PAYBACK_TOLERANCE * self.contributed]
        if paid_back.empty:
            return None
        days = (paid_back.index[0] - cumulative.index[0]).days
        return days / days_per_year * 12.0


def build_ledgers(proforma: Proforma, structure: WaterfallStructure) -> LedgerBuild:
    """
    Split contributions LP/GP and queue distributable events chronologically.

    Args:
        proforma: Validated proforma timeline
        structure: Waterfall structure (capital structure is re-checked here)

    Returns:
        LedgerBuild with contribution splits and gross distribution queue

    Raises:
        ConfigurationError: If LP/GP equity percentages do not sum to 100 (±0.01)
        InputDataError: If the proforma is missing events or out of order
    """
    structure.capital_structure.validate_consistency()
    proforma.validate_events()

    capital = structure.capital_structure
    exit_positions = set(proforma.disposition_positions())

    contributions: List[ContributionSplit] = []
    distributions: List[DistributionEvent] = []
    for position, event in enumerate(proforma.events):
        if event.is_contribution:
            amount = -event.amount
            contributions.append(
                ContributionSplit(
                    date=event.date,
                    amount=amount,
                    lp_amount=amount * capital.lp_fraction,
                    gp_amount=amount * capital.gp_fraction,
                )
            )
        elif event.is_distribution:
            kind = EventKindEnum.DISPOSITION if position in exit_positions else EventKindEnum.OPERATING
            distributions.append(
                DistributionEvent(date=event.date, gross_amount=event.amount, kind=kind)
            )

    logger.debug(
        f"Ledger built: {len(contributions)} contributions, {len(distributions)} distribution events"
    )
    return LedgerBuild(contributions=tuple(contributions), distributions=tuple(distributions))
