# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall Constructs - Structure Builders

Constructs compose the primitive structure models into complete, validated
waterfall contracts with industry-standard defaults. Every construct returns
a plain `WaterfallStructure` that can be inspected and edited with
`model_copy(update=...)` afterwards.

## Available Constructs

#### `get_default_waterfall_structure()`
American, 90/10 LP/GP, 8% cumulative pref with catch-up to 20%, a single
20% IRR tier at 70/30, clawback disabled, zero fees.

#### `create_pref_split_structure()`
Preferred return followed by a single fixed split ("80/20 with 8% pref").

#### `create_catch_up_structure()`
Preferred return, 100% GP catch-up to the target share, then the split.

#### `create_irr_tiered_structure()`
Institutional ladder of IRR hurdles with increasing promote.

#### `create_multiple_tiered_structure()`
Ladder of equity-multiple hurdles.

## Usage

```python
from waterfall.deal.constructs import create_irr_tiered_structure

structure = create_irr_tiered_structure(
    hurdles=[(0.08, 80, 20), (0.12, 70, 30), (0.18, 60, 40)],
)
```
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from ..core.primitives import (
    HurdleTypeEnum,
    PreferredReturnTypeEnum,
    StructureTypeEnum,
)
from .partnership import (
    CapitalStructure,
    ClawbackProvisions,
    ManagementFees,
    PreferredReturn,
    PromoteTier,
    WaterfallStructure,
)


def get_default_waterfall_structure() -> WaterfallStructure:
    """
    Standard 90/10 waterfall.

    Returns:
        WaterfallStructure: american, LP/GP 90/10, 8% cumulative preferred
        return with catch-up enabled (target 20%), one promote tier at a 20%
        IRR hurdle splitting 70/30 LP/GP, clawback disabled, zero fees.
    """
    return WaterfallStructure(
        name="Standard 90/10 Waterfall",
        structure_type=StructureTypeEnum.AMERICAN,
        capital_structure=CapitalStructure(lp_equity_percent=90.0, gp_equity_percent=10.0),
        preferred_return=PreferredReturn(
            enabled=True,
            rate=0.08,
            type=PreferredReturnTypeEnum.CUMULATIVE,
            catch_up_enabled=True,
            catch_up_target=0.20,
        ),
        promote_tiers=[
            PromoteTier(
                tier_number=1,
                name="20% IRR Hurdle",
                hurdle_type=HurdleTypeEnum.IRR,
                irr_hurdle=0.20,
                lp_share=70.0,
                gp_share=30.0,
            )
        ],
        clawback_provisions=ClawbackProvisions(gp_clawback_enabled=False, escrow_percent=0.0),
        management_fees=ManagementFees(),
    )


def create_pref_split_structure(
    pref_rate: float = 0.08,
    lp_share: float = 80.0,
    lp_equity_percent: float = 90.0,
    split_hurdle: float = 0.0,
    structure_type: StructureTypeEnum = StructureTypeEnum.AMERICAN,
) -> WaterfallStructure:
    """
    Preferred return, then one split for everything above it.

    Args:
        pref_rate: LP preferred return (decimal)
        lp_share: LP share of cash after the pref (percent)
        lp_equity_percent: LP share of contributed equity (percent)
        split_hurdle: IRR hurdle of the split tier; the default 0% is cleared
            by the pref itself
        structure_type: Return-of-capital ordering
    """
    structure = WaterfallStructure(
        name=f"{lp_share:g}/{100 - lp_share:g} with {pref_rate:.0%} Pref",
        structure_type=structure_type,
        capital_structure=CapitalStructure(
            lp_equity_percent=lp_equity_percent, gp_equity_percent=100.0 - lp_equity_percent
        ),
        preferred_return=PreferredReturn(enabled=True, rate=pref_rate, catch_up_enabled=False),
        promote_tiers=[
            PromoteTier(
                tier_number=1,
                name="Base Split",
                irr_hurdle=split_hurdle,
                lp_share=lp_share,
                gp_share=100.0 - lp_share,
            )
        ],
    )
    return structure.validate_consistency()


def create_catch_up_structure(
    pref_rate: float = 0.08,
    catch_up_target: float = 0.20,
    lp_equity_percent: float = 90.0,
    structure_type: StructureTypeEnum = StructureTypeEnum.AMERICAN,
    catch_up_percent: float = 1.0,
) -> WaterfallStructure:
    """
    Preferred return, GP catch-up to `catch_up_target`, then the same split.

    The single tier's split equals the catch-up target so GP's share of
    profit stays at the target once catch-up completes.
    `catch_up_percent` is the GP share of catch-up cash (1.0 = full catch-up).
    """
    gp_share = catch_up_target * 100.0
    structure = WaterfallStructure(
        name=f"{100 - gp_share:g}/{gp_share:g} with Catch-Up",
        structure_type=structure_type,
        capital_structure=CapitalStructure(
            lp_equity_percent=lp_equity_percent, gp_equity_percent=100.0 - lp_equity_percent
        ),
        preferred_return=PreferredReturn(
            enabled=True,
            rate=pref_rate,
            catch_up_enabled=True,
            catch_up_target=catch_up_target,
            catch_up_percent=catch_up_percent,
        ),
        promote_tiers=[
            PromoteTier(
                tier_number=1,
                name="After Catch-Up",
                irr_hurdle=pref_rate,
                lp_share=100.0 - gp_share,
                gp_share=gp_share,
            )
        ],
    )
    return structure.validate_consistency()


def _tier_ladder(
    hurdles: Sequence[Tuple[float, float, float]], hurdle_type: HurdleTypeEnum, label
) -> List[PromoteTier]:
    tiers = []
    for number, (hurdle, lp_share, gp_share) in enumerate(hurdles, start=1):
        tiers.append(
            PromoteTier(
                tier_number=number,
                name=label(hurdle),
                hurdle_type=hurdle_type,
                irr_hurdle=hurdle if hurdle_type == HurdleTypeEnum.IRR else None,
                multiple_hurdle=hurdle if hurdle_type == HurdleTypeEnum.MULTIPLE else None,
                lp_share=lp_share,
                gp_share=gp_share,
            )
        )
    return tiers


def create_irr_tiered_structure(
    hurdles: Optional[Sequence[Tuple[float, float, float]]] = None,
    pref_rate: float = 0.08,
    catch_up_enabled: bool = True,
    catch_up_target: float = 0.20,
    lp_equity_percent: float = 90.0,
    structure_type: StructureTypeEnum = StructureTypeEnum.AMERICAN,
) -> WaterfallStructure:
    """
    Institutional IRR ladder.

    Args:
        hurdles: (irr_hurdle, lp_share, gp_share) per tier in ascending order.
            Defaults to 8% 80/20, 12% 70/30, 18% 60/40, 25% 50/50.
        pref_rate: LP preferred return (decimal)
        catch_up_enabled: Whether GP catches up after the pref
        catch_up_target: GP target share of profit for the catch-up
        lp_equity_percent: LP share of contributed equity (percent)
        structure_type: Return-of-capital ordering

    Returns:
        Validated WaterfallStructure
    """
    if hurdles is None:
        hurdles = [(0.08, 80.0, 20.0), (0.12, 70.0, 30.0), (0.18, 60.0, 40.0), (0.25, 50.0, 50.0)]
    structure = WaterfallStructure(
        name="IRR Tiered",
        structure_type=structure_type,
        capital_structure=CapitalStructure(
            lp_equity_percent=lp_equity_percent, gp_equity_percent=100.0 - lp_equity_percent
        ),
        preferred_return=PreferredReturn(
            enabled=True,
            rate=pref_rate,
            catch_up_enabled=catch_up_enabled,
            catch_up_target=catch_up_target,
        ),
        promote_tiers=_tier_ladder(hurdles, HurdleTypeEnum.IRR, lambda h: f"{h:.0%} IRR"),
    )
    return structure.validate_consistency()


def create_multiple_tiered_structure(
    hurdles: Optional[Sequence[Tuple[float, float, float]]] = None,
    pref_rate: float = 0.08,
    lp_equity_percent: float = 90.0,
    structure_type: StructureTypeEnum = StructureTypeEnum.AMERICAN,
) -> WaterfallStructure:
    """
    Equity-multiple ladder.

    Args:
        hurdles: (multiple_hurdle, lp_share, gp_share) per tier in ascending
            order. Defaults to 1.0x 80/20, 1.5x 70/30, 2.0x 60/40.
    """
    if hurdles is None:
        hurdles = [(1.0, 80.0, 20.0), (1.5, 70.0, 30.0), (2.0, 60.0, 40.0)]
    structure = WaterfallStructure(
        name="Multiple-Based Hurdles",
        structure_type=structure_type,
        capital_structure=CapitalStructure(
            lp_equity_percent=lp_equity_percent, gp_equity_percent=100.0 - lp_equity_percent
        ),
        preferred_return=PreferredReturn(enabled=True, rate=pref_rate),
        promote_tiers=_tier_ladder(hurdles, HurdleTypeEnum.MULTIPLE, lambda h: f"{h:.1f}x"),
    )
    return structure.validate_consistency()
