# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Financial calculation functions.

Contains static methods for the return metrics the waterfall engine depends
on. These functions are pure (math-only) and independent of ledger structure;
the tier engine uses them as its oracle when solving for hurdle-clearing
amounts, so every module delegates here for a single source of truth.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from pydantic import Field
from pyxirr import xnpv
from scipy.optimize import brentq

from ..exceptions import ComputationError
from .primitives import ConvergenceStatus, Model, SolverSettings

logger = logging.getLogger(__name__)

DatedCashFlows = Union[pd.Series, Sequence[Tuple[date, float]]]


class IRRResult(Model):
    """IRR value annotated with the solver's convergence quality."""

    value: Optional[float] = Field(default=None, description="IRR as decimal, None if undefined")
    status: ConvergenceStatus = Field(default=ConvergenceStatus.UNDEFINED)

    @property
    def is_defined(self) -> bool:
        return self.value is not None

    @property
    def converged(self) -> bool:
        return self.status == ConvergenceStatus.CONVERGED


def _to_date(value) -> date:
    if isinstance(value, pd.Period):
        return value.to_timestamp().date()
    if isinstance(value, (pd.Timestamp, datetime)):
        return value.date()
    return value


def _as_dated_arrays(cash_flows: DatedCashFlows) -> Tuple[List[date], np.ndarray]:
    """Normalize a Series or a sequence of (date, amount) pairs."""
    if isinstance(cash_flows, pd.Series):
        dates = [_to_date(idx) for idx in cash_flows.index]
        amounts = cash_flows.to_numpy(dtype=float)
    else:
        pairs = list(cash_flows)
        dates = [_to_date(d) for d, _ in pairs]
        amounts = np.array([a for _, a in pairs], dtype=float)
    return dates, amounts


class FinancialCalculations:
    """
    Pure mathematical functions for return metrics.

    Static methods, independent of ledger structure or waterfall logic.
    """

    @staticmethod
    def calculate_npv(cash_flows: DatedCashFlows, rate: float) -> Optional[float]:
        """
        Calculate Net Present Value of dated flows using PyXIRR (Actual/365).

        Args:
            cash_flows: Series indexed by date, or (date, amount) pairs
            rate: Annual discount rate as decimal (e.g., 0.10 for 10%)

        Returns:
            NPV as float or None if it cannot be calculated
        """
        dates, amounts = _as_dated_arrays(cash_flows)
        if amounts.size == 0 or rate <= -1:
            return None
        return float(xnpv(rate, dates, amounts))

    @staticmethod
    def calculate_irr(
        cash_flows: DatedCashFlows, solver: Optional[SolverSettings] = None
    ) -> IRRResult:
        """
        Calculate IRR over irregular dated cash flows by bracketed root-finding.

        NPV(rate) is evaluated with PyXIRR and solved with Brent's method over
        the configured bracket (default -99%..1000%), capped at
        `solver.irr_max_iterations`. While NPV is still positive at the upper
        edge, the edge is raised tenfold up to `solver.irr_bracket_expansions`
        times. The result is converged when |NPV| / invested capital at the
        root is within `solver.irr_tolerance`.

        Args:
            cash_flows: Series indexed by date, or (date, amount) pairs.
                       Negative values = contributions, positive = distributions
            solver: Solver settings; defaults are used when omitted

        Returns:
            IRRResult. `status` is UNDEFINED (value None) when the flows do not
            carry both signs or NPV does not change sign inside the bracket,
            and NOT_CONVERGED (value = best estimate) when the cap is hit or
            the IRR lies above the widest bound (value = that bound).

        Example:
            ```python
            flows = [(date(2024, 1, 1), -1000.0), (date(2025, 1, 1), 1100.0)]
            result = FinancialCalculations.calculate_irr(flows)
            print(f"IRR: {result.value:.2%}")  # IRR: 9.97%
            ```
        """
        solver = solver or SolverSettings()
        dates, amounts = _as_dated_arrays(cash_flows)

        if amounts.size < 2 or not ((amounts < 0).any() and (amounts > 0).any()):
            return IRRResult(value=None, status=ConvergenceStatus.UNDEFINED)

        invested = float(np.abs(amounts[amounts < 0].sum()))

        def npv(rate: float) -> float:
            return float(xnpv(rate, dates, amounts))

        lower, upper = solver.irr_lower_bound, solver.irr_upper_bound
        npv_lower, npv_upper = npv(lower), npv(upper)

        # Short, high-return holds put the root above the bracket
        expansions = 0
        while npv_lower > 0 and npv_upper > 0 and expansions < solver.irr_bracket_expansions:
            lower, npv_lower = upper, npv_upper
            upper = max(upper, 1.0) * 10.0
            npv_upper = npv(upper)
            expansions += 1

        if npv_lower > 0 and npv_upper > 0:
            logger.warning(f"IRR exceeds the widest search bound {upper:g}; reporting the bound")
            return IRRResult(value=upper, status=ConvergenceStatus.NOT_CONVERGED)

        if npv_lower == 0.0:
            return IRRResult(value=lower, status=ConvergenceStatus.CONVERGED)
        if npv_upper == 0.0:
            return IRRResult(value=upper, status=ConvergenceStatus.CONVERGED)
        if np.sign(npv_lower) == np.sign(npv_upper):
            return IRRResult(value=None, status=ConvergenceStatus.UNDEFINED)

        try:
            rate = _bracketed_root(npv, lower, upper, invested, solver)
        except ComputationError as exc:
            logger.warning(f"IRR solve did not converge: {exc}")
            return IRRResult(value=exc.estimate, status=ConvergenceStatus.NOT_CONVERGED)

        return IRRResult(value=rate, status=ConvergenceStatus.CONVERGED)

    @staticmethod
    def calculate_equity_multiple(cash_flows: DatedCashFlows) -> Optional[float]:
        """
        Calculate equity multiple (total distributions / total contributions).

        Returns:
            Multiple as float, or None when no contribution exists

        Example:
            ```python
            flows = [(date(2024, 1, 1), -1000.0), (date(2026, 1, 1), 1600.0)]
            FinancialCalculations.calculate_equity_multiple(flows)  # 1.6
            ```
        """
        _, amounts = _as_dated_arrays(cash_flows)
        invested = float(np.abs(amounts[amounts < 0].sum()))
        if invested == 0:
            return None
        return float(amounts[amounts > 0].sum()) / invested


def _bracketed_root(npv, lower: float, upper: float, invested: float, solver: SolverSettings) -> float:
    rate, info = brentq(
        npv,
        lower,
        upper,
        xtol=1e-12,
        maxiter=solver.irr_max_iterations,
        full_output=True,
        disp=False,
    )
    residual = abs(npv(rate)) / invested if invested > 0 else abs(npv(rate))
    if not info.converged or residual > solver.irr_tolerance:
        raise ComputationError(
            f"stopped after {info.iterations} iterations at rate {rate:.8f} "
            f"(relative NPV residual {residual:.2e})",
            estimate=float(rate),
        )
    return float(rate)


def compute_irr(cash_flows: DatedCashFlows, solver: Optional[SolverSettings] = None) -> IRRResult:
    """Module-level shortcut for `FinancialCalculations.calculate_irr`."""
    return FinancialCalculations.calculate_irr(cash_flows, solver)


def compute_multiple(cash_flows: DatedCashFlows) -> Optional[float]:
    """Module-level shortcut for `FinancialCalculations.calculate_equity_multiple`."""
    return FinancialCalculations.calculate_equity_multiple(cash_flows)


def compute_npv(cash_flows: DatedCashFlows, rate: float) -> Optional[float]:
    """Module-level shortcut for `FinancialCalculations.calculate_npv`."""
    return FinancialCalculations.calculate_npv(cash_flows, rate)
