# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall - LP/GP Equity Waterfall Engine

Allocates a real estate deal's dated cash flows between limited partners and
the general partner through return of capital, preferred return, GP catch-up
and IRR or equity-multiple promote tiers, with management fees, clawback and
exit-value scenarios.

Key Entry Points:
- waterfall.calculate_waterfall() - Full allocation with typed results
- waterfall.calculate_management_fees() - Fee breakdown only
- waterfall.run_waterfall_scenarios() - Downside / base / upside runs
- waterfall.get_default_waterfall_structure() - Standard 90/10 contract

Example Usage:
    ```python
    from datetime import date
    from waterfall import calculate_waterfall, get_default_waterfall_structure

    results = calculate_waterfall(
        [(date(2024, 1, 1), -1_000_000), (date(2027, 1, 1), 1_500_000)],
        get_default_waterfall_structure(),
    )
    print(f"LP IRR: {results.final_results.lp.irr:.2%}")
    print(f"GP promote: {results.final_results.gp.promote_earned:,.0f}")
    ```
"""

import logging

from .core.calculations import IRRResult, compute_irr, compute_multiple, compute_npv
from .core.primitives import ScenarioSettings, SolverSettings, WaterfallSettings
from .deal import (
    CapitalStructure,
    CashFlowEvent,
    ClawbackProvisions,
    ManagementFees,
    PreferredReturn,
    Proforma,
    PromoteTier,
    ScenarioSet,
    WaterfallResults,
    WaterfallStructure,
    calculate_management_fees,
    calculate_waterfall,
    create_catch_up_structure,
    create_irr_tiered_structure,
    create_multiple_tiered_structure,
    create_pref_split_structure,
    get_default_waterfall_structure,
    run_waterfall_scenarios,
)
from .exceptions import (
    ComputationError,
    ConfigurationError,
    InputDataError,
    WaterfallError,
)

# Silent unless the application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Entry points
    "calculate_waterfall",
    "calculate_management_fees",
    "run_waterfall_scenarios",
    "get_default_waterfall_structure",
    # Constructs
    "create_pref_split_structure",
    "create_catch_up_structure",
    "create_irr_tiered_structure",
    "create_multiple_tiered_structure",
    # Models
    "CashFlowEvent",
    "Proforma",
    "CapitalStructure",
    "PreferredReturn",
    "PromoteTier",
    "ClawbackProvisions",
    "ManagementFees",
    "WaterfallStructure",
    "WaterfallResults",
    "ScenarioSet",
    # Settings
    "WaterfallSettings",
    "SolverSettings",
    "ScenarioSettings",
    # Metrics
    "IRRResult",
    "compute_irr",
    "compute_multiple",
    "compute_npv",
    # Errors
    "WaterfallError",
    "ConfigurationError",
    "InputDataError",
    "ComputationError",
]
