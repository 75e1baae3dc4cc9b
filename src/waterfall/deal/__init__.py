# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall Deal Models
Public API for the waterfall.deal subpackage.

This module contains the waterfall contract models, the proforma input
models, the allocation services and the entry points that run them.
"""

from .api import (
    calculate_management_fees,
    calculate_waterfall,
    run_waterfall_scenarios,
)
from .clawback import ClawbackEvaluator
from .constructs import (
    create_catch_up_structure,
    create_irr_tiered_structure,
    create_multiple_tiered_structure,
    create_pref_split_structure,
    get_default_waterfall_structure,
)
from .distribution_calculator import AllocationOutcome, DistributionCalculator
from .fees import FeeBreakdown, FeeLine, FeePayment, ManagementFeeCalculator
from .ledger import LedgerBuild, PartyLedger, build_ledgers
from .orchestrator import WaterfallCalculator
from .partnership import (
    CapitalStructure,
    ClawbackProvisions,
    ManagementFees,
    PreferredReturn,
    PromoteTier,
    WaterfallStructure,
)
from .proforma import CashFlowEvent, Proforma
from .results import (
    ClawbackResult,
    EventAllocation,
    FinalResults,
    GPResult,
    LPResult,
    ProjectResult,
    TierResult,
    WaterfallResults,
)
from .scenarios import RangeSummary, ScenarioSet, ScenarioSummary

__all__ = [
    # Entry points
    "calculate_waterfall",
    "calculate_management_fees",
    "run_waterfall_scenarios",
    # Inputs
    "CashFlowEvent",
    "Proforma",
    # Structure
    "CapitalStructure",
    "PreferredReturn",
    "PromoteTier",
    "ClawbackProvisions",
    "ManagementFees",
    "WaterfallStructure",
    # Constructs
    "get_default_waterfall_structure",
    "create_pref_split_structure",
    "create_catch_up_structure",
    "create_irr_tiered_structure",
    "create_multiple_tiered_structure",
    # Services
    "build_ledgers",
    "LedgerBuild",
    "PartyLedger",
    "ManagementFeeCalculator",
    "DistributionCalculator",
    "AllocationOutcome",
    "ClawbackEvaluator",
    "WaterfallCalculator",
    # Results
    "FeeBreakdown",
    "FeeLine",
    "FeePayment",
    "TierResult",
    "EventAllocation",
    "LPResult",
    "GPResult",
    "ProjectResult",
    "FinalResults",
    "ClawbackResult",
    "WaterfallResults",
    "RangeSummary",
    "ScenarioSummary",
    "ScenarioSet",
]
