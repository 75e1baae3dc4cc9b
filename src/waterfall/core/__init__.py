# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall Core Framework

Primitives, settings and the return-metric calculator shared by every
deal-level component.
"""

from . import primitives
from .calculations import (
    FinancialCalculations,
    IRRResult,
    compute_irr,
    compute_multiple,
    compute_npv,
)

__all__ = [
    "primitives",
    "FinancialCalculations",
    "IRRResult",
    "compute_irr",
    "compute_multiple",
    "compute_npv",
]
