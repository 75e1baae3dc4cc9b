# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall error taxonomy.

- ConfigurationError: the waterfall structure is invalid or inconsistent.
  Raised before any computation; the caller must fix the structure.
- InputDataError: the proforma is missing required events or is out of
  chronological order. Raised before any computation.
- ComputationError: a root-finding stage exhausted its iteration budget.
  Raised internally and recovered by the calling stage, which keeps the
  best estimate and flags it; it never escapes a public entry point.
"""

from __future__ import annotations

from typing import Optional


class WaterfallError(Exception):
    """Base class for all waterfall engine errors."""


class ConfigurationError(WaterfallError, ValueError):
    """Invalid or inconsistent waterfall structure."""


class InputDataError(WaterfallError, ValueError):
    """Invalid proforma cash-flow input."""


class ComputationError(WaterfallError, ArithmeticError):
    """A bounded solver failed to converge within its iteration cap."""

    def __init__(self, message: str, estimate: Optional[float] = None):
        super().__init__(message)
        self.estimate = estimate


__all__ = [
    "WaterfallError",
    "ConfigurationError",
    "InputDataError",
    "ComputationError",
]
