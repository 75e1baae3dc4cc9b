# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Proforma input models.

The proforma is the dated cash-flow timeline produced by an external
financial model. Negative amounts are equity contributions, positive amounts
are distributable cash. The engine never generates events of its own; it only
reads this finite, already-determined sequence.

Example:
    ```python
    proforma = Proforma(
        events=[
            CashFlowEvent(date=date(2024, 1, 1), amount=-1_000_000),
            CashFlowEvent(date=date(2027, 1, 1), amount=1_500_000, kind="disposition"),
        ],
        acquisition_cost=950_000,
    )
    ```
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Any, List, Optional

import pandas as pd
from pydantic import Field, ValidationError, field_validator

from ..core.primitives import EventKindEnum, Model, NonNegativeFloat
from ..exceptions import InputDataError


class CashFlowEvent(Model):
    """A single dated, signed proforma cash flow."""

    date: dt.date = Field(..., description="Event date")
    amount: float = Field(
        ..., allow_inf_nan=False, description="Negative = contribution, positive = distributable cash"
    )
    kind: Optional[EventKindEnum] = Field(
        default=None, description="Explicit classification; inferred from sign when omitted"
    )
    description: Optional[str] = Field(default=None)

    @property
    def is_contribution(self) -> bool:
        return self.amount < 0

    @property
    def is_distribution(self) -> bool:
        return self.amount > 0


class Proforma(Model):
    """
    Dated cash-flow timeline plus the cost bases management fees are charged on.

    Attributes:
        events: Chronologically ordered cash-flow events
        acquisition_cost: Base for the acquisition fee
        hard_cost: Base for the construction management fee
        total_cost: Total project cost for reporting; derived when omitted
    """

    events: List[CashFlowEvent] = Field(..., description="Chronologically ordered events")
    acquisition_cost: NonNegativeFloat = Field(default=0.0)
    hard_cost: NonNegativeFloat = Field(default=0.0)
    total_cost: Optional[NonNegativeFloat] = Field(default=None)
    name: Optional[str] = Field(default=None)

    @field_validator("events", mode="before")
    @classmethod
    def coerce_event_pairs(cls, v: Any) -> Any:
        """Accept (date, amount) pairs alongside event objects and dicts."""
        if isinstance(v, (list, tuple)):
            return [
                {"date": item[0], "amount": item[1]} if isinstance(item, (list, tuple)) else item
                for item in v
            ]
        return v

    @classmethod
    def coerce(cls, value: Any) -> "Proforma":
        """Build a Proforma from a model, dict or event list, raising InputDataError."""
        if isinstance(value, cls):
            return value
        try:
            if isinstance(value, (list, tuple)):
                return cls(events=value)
            return cls.model_validate(value)
        except ValidationError as exc:
            raise InputDataError(f"Invalid proforma: {exc}") from exc

    def validate_events(self) -> None:
        """
        Check the timeline is usable before any computation.

        Raises:
            InputDataError: Non-finite amounts, missing contributions or
                distributions, events out of chronological order, or an
                explicit kind contradicting the sign of its amount.
        """
        for event in self.events:
            if not math.isfinite(event.amount):
                raise InputDataError(f"Event on {event.date} has a non-finite amount ({event.amount})")

        active = self.active_events
        if not any(e.is_contribution for e in active):
            raise InputDataError("Proforma must contain at least one contribution (negative) event")
        if not any(e.is_distribution for e in active):
            raise InputDataError("Proforma must contain at least one distribution (positive) event")

        for previous, current in zip(self.events, self.events[1:]):
            if current.date < previous.date:
                raise InputDataError(
                    f"Proforma events must be chronological: {current.date} follows {previous.date}"
                )

        for event in active:
            if event.kind == EventKindEnum.CONTRIBUTION and event.amount > 0:
                raise InputDataError(f"Contribution event on {event.date} has a positive amount")
            if event.kind in (EventKindEnum.OPERATING, EventKindEnum.DISPOSITION) and event.amount < 0:
                raise InputDataError(f"Distribution event on {event.date} has a negative amount")

    @property
    def active_events(self) -> List[CashFlowEvent]:
        """Events with a non-zero amount."""
        return [e for e in self.events if e.amount != 0]

    @property
    def contributions(self) -> List[CashFlowEvent]:
        return [e for e in self.events if e.is_contribution]

    @property
    def distributions(self) -> List[CashFlowEvent]:
        return [e for e in self.events if e.is_distribution]

    @property
    def total_equity(self) -> float:
        """Total contributed equity (positive number)."""
        return -sum(e.amount for e in self.contributions)

    @property
    def total_distributions(self) -> float:
        return sum(e.amount for e in self.distributions)

    def disposition_positions(self) -> List[int]:
        """
        Positions in `events` of the exit events.

        Events tagged `disposition` when any exist, otherwise the last
        positive event.
        """
        tagged = [
            i for i, e in enumerate(self.events)
            if e.kind == EventKindEnum.DISPOSITION and e.amount > 0
        ]
        if tagged:
            return tagged
        positives = [i for i, e in enumerate(self.events) if e.amount > 0]
        return positives[-1:]

    @property
    def disposition_proceeds(self) -> float:
        """Gross disposition proceeds."""
        return sum(self.events[i].amount for i in self.disposition_positions())

    @property
    def resolved_total_cost(self) -> float:
        if self.total_cost is not None:
            return self.total_cost
        if self.acquisition_cost or self.hard_cost:
            return self.acquisition_cost + self.hard_cost
        return self.total_equity

    def with_exit_shock(self, shock: float) -> "Proforma":
        """
        Return a copy with disposition events scaled by (1 + shock).

        Args:
            shock: Relative change in exit value (e.g., -0.20 for a 20% haircut)
        """
        positions = set(self.disposition_positions())
        events = [
            e.model_copy(update={"amount": e.amount * (1.0 + shock)}) if i in positions else e
            for i, e in enumerate(self.events)
        ]
        return self.model_copy(update={"events": events})

    def to_series(self) -> pd.Series:
        """Net cash flow per date as a pandas Series (DatetimeIndex)."""
        frame = pd.DataFrame(
            {"date": pd.to_datetime([e.date for e in self.events]), "amount": [e.amount for e in self.events]}
        )
        return frame.groupby("date")["amount"].sum()
