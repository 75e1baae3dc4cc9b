# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Test utilities and fixtures for waterfall testing.

This module provides small builders for proformas and structures so tests
can state only the terms they care about.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence, Tuple

import pytest

from waterfall.core.primitives import (
    HurdleLogicEnum,
    HurdleTypeEnum,
    PreferredReturnTypeEnum,
    StructureTypeEnum,
)
from waterfall.deal import (
    CapitalStructure,
    CashFlowEvent,
    PreferredReturn,
    Proforma,
    PromoteTier,
    WaterfallStructure,
    get_default_waterfall_structure,
)


# Proforma Utilities
def make_proforma(
    flows: Sequence[Tuple[date, float]],
    acquisition_cost: float = 0.0,
    hard_cost: float = 0.0,
) -> Proforma:
    """
    Create a proforma from (date, amount) pairs.

    Example:
        >>> proforma = make_proforma([(date(2024, 1, 1), -100.0), (date(2025, 1, 1), 120.0)])
        >>> proforma.total_equity
        100.0
    """
    return Proforma(
        events=[CashFlowEvent(date=d, amount=a) for d, a in flows],
        acquisition_cost=acquisition_cost,
        hard_cost=hard_cost,
    )


# Structure Utilities
def make_structure(
    structure_type: StructureTypeEnum = StructureTypeEnum.AMERICAN,
    lp_equity_percent: float = 90.0,
    pref_enabled: bool = False,
    pref_rate: float = 0.08,
    pref_type: PreferredReturnTypeEnum = PreferredReturnTypeEnum.CUMULATIVE,
    catch_up_enabled: bool = False,
    catch_up_target: float = 0.20,
    catch_up_percent: float = 1.0,
    tiers: Optional[List[PromoteTier]] = None,
    **updates,
) -> WaterfallStructure:
    """Create a structure with no pref and no tiers unless asked for."""
    return WaterfallStructure(
        name="Test Structure",
        structure_type=structure_type,
        capital_structure=CapitalStructure(
            lp_equity_percent=lp_equity_percent, gp_equity_percent=100.0 - lp_equity_percent
        ),
        preferred_return=PreferredReturn(
            enabled=pref_enabled,
            rate=pref_rate,
            type=pref_type,
            catch_up_enabled=catch_up_enabled,
            catch_up_target=catch_up_target,
            catch_up_percent=catch_up_percent,
        ),
        promote_tiers=tiers or [],
        **updates,
    )


def multiple_tier(number: int, hurdle: float, lp_share: float) -> PromoteTier:
    return PromoteTier(
        tier_number=number,
        name=f"{hurdle:.2f}x",
        hurdle_type=HurdleTypeEnum.MULTIPLE,
        multiple_hurdle=hurdle,
        lp_share=lp_share,
        gp_share=100.0 - lp_share,
    )


def irr_tier(number: int, hurdle: float, lp_share: float) -> PromoteTier:
    return PromoteTier(
        tier_number=number,
        name=f"{hurdle:.0%} IRR",
        hurdle_type=HurdleTypeEnum.IRR,
        irr_hurdle=hurdle,
        lp_share=lp_share,
        gp_share=100.0 - lp_share,
    )


def both_tier(
    number: int,
    irr_hurdle: float,
    multiple_hurdle: float,
    lp_share: float,
    logic: HurdleLogicEnum = HurdleLogicEnum.OR,
) -> PromoteTier:
    return PromoteTier(
        tier_number=number,
        name=f"{irr_hurdle:.0%} IRR {logic.value} {multiple_hurdle:.2f}x",
        hurdle_type=HurdleTypeEnum.BOTH,
        irr_hurdle=irr_hurdle,
        multiple_hurdle=multiple_hurdle,
        hurdle_logic=logic,
        lp_share=lp_share,
        gp_share=100.0 - lp_share,
    )


@pytest.fixture
def default_structure() -> WaterfallStructure:
    """Standard 90/10, 8% pref, catch-up to 20%, one 20% IRR tier at 70/30."""
    return get_default_waterfall_structure()


@pytest.fixture
def three_year_proforma() -> Proforma:
    """$1M in on 2024-01-01, $1.5M out on 2027-01-01 (1,096 days)."""
    return make_proforma([(date(2024, 1, 1), -1_000_000.0), (date(2027, 1, 1), 1_500_000.0)])


@pytest.fixture
def pro_rata_structure() -> WaterfallStructure:
    """No pref, no catch-up, no promote tiers."""
    return make_structure()
