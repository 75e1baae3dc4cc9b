# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall Structure Models

This module defines the negotiated equity waterfall contract between the
passive investors (LP) and the sponsor (GP): capital splits, preferred return,
GP catch-up, promote tiers, clawback and management fees.

Key Features:
- Immutable structure models; edits produce new structures
- Field-level constraints enforced by pydantic at construction time
- Cross-field consistency (share sums, hurdle ordering, catch-up without
  tiers) checked by `validate_consistency()`, which every entry point runs
  before computing and which raises `ConfigurationError`

Units: capital and tier shares are whole percentages (90 means 90%); rates,
hurdles, catch-up target, escrow and fee percentages are decimals
(0.08 means 8%).

Example:
    ```python
    structure = WaterfallStructure(
        structure_type="american",
        capital_structure=CapitalStructure(lp_equity_percent=90, gp_equity_percent=10),
        preferred_return=PreferredReturn(enabled=True, rate=0.08),
        promote_tiers=[
            PromoteTier(tier_number=1, name="Above 8%", irr_hurdle=0.12, lp_share=80, gp_share=20),
            PromoteTier(tier_number=2, name="Above 12%", irr_hurdle=0.18, lp_share=70, gp_share=30),
        ],
    )
    structure.validate_consistency()
    ```
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from pydantic import Field, ValidationError

from ..core.primitives import (
    FloatBetween0And1,
    HurdleLogicEnum,
    HurdleTypeEnum,
    Model,
    NonNegativeFloat,
    Percentage,
    PreferredReturnTypeEnum,
    StructureTypeEnum,
)
from ..exceptions import ConfigurationError

SHARE_TOLERANCE = 0.01

# =============================================================================
# STRUCTURE COMPONENTS
# =============================================================================


class CapitalStructure(Model):
    """LP/GP split of contributed equity, in percent."""

    lp_equity_percent: Percentage = Field(default=90.0, description="LP share of equity (percent)")
    gp_equity_percent: Percentage = Field(default=10.0, description="GP share of equity (percent)")

    @property
    def lp_fraction(self) -> float:
        return self.lp_equity_percent / 100.0

    @property
    def gp_fraction(self) -> float:
        return self.gp_equity_percent / 100.0

    def validate_consistency(self) -> None:
        total = self.lp_equity_percent + self.gp_equity_percent
        if abs(total - 100.0) > SHARE_TOLERANCE:
            raise ConfigurationError(
                f"LP and GP equity percentages must sum to 100, got {total:.4f}"
            )


class PreferredReturn(Model):
    """LP preferred return and optional GP catch-up."""

    enabled: bool = Field(default=True)
    rate: float = Field(default=0.08, description="Annual preferred rate (decimal)")
    type: PreferredReturnTypeEnum = Field(default=PreferredReturnTypeEnum.CUMULATIVE)
    catch_up_enabled: bool = Field(default=False)
    catch_up_target: float = Field(
        default=0.20, description="GP target share of profit after catch-up (decimal)"
    )
    catch_up_percent: float = Field(
        default=1.0, description="Share of catch-up cash paid to GP (decimal); LP receives the rest"
    )

    @property
    def catch_up_active(self) -> bool:
        return self.enabled and self.catch_up_enabled

    def validate_consistency(self) -> None:
        if self.rate < 0:
            raise ConfigurationError(f"Preferred return rate must be non-negative, got {self.rate}")
        if self.catch_up_enabled and not (0.0 < self.catch_up_target < 1.0):
            raise ConfigurationError(
                f"Catch-up target must be between 0 and 1 (exclusive), got {self.catch_up_target}"
            )
        if self.catch_up_enabled and not (self.catch_up_target < self.catch_up_percent <= 1.0):
            raise ConfigurationError(
                f"Catch-up percent must exceed the catch-up target and be at most 1, "
                f"got {self.catch_up_percent} with target {self.catch_up_target}"
            )


class PromoteTier(Model):
    """
    A promote tier: an LP return hurdle and the LP/GP split tied to it.

    Cash paid while LP is below this tier's hurdle splits at this tier's
    shares; the tranche that lifts LP exactly to the hurdle is paid at the
    previous tier's split. A `both` tier carries an IRR and a multiple hurdle
    joined by `hurdle_logic`.
    """

    tier_number: int = Field(default=1, description="Display order number")
    name: Optional[str] = Field(default=None)
    hurdle_type: HurdleTypeEnum = Field(default=HurdleTypeEnum.IRR)
    irr_hurdle: Optional[float] = Field(default=None, description="LP IRR hurdle (decimal)")
    multiple_hurdle: Optional[float] = Field(default=None, description="LP equity multiple hurdle")
    hurdle_logic: HurdleLogicEnum = Field(
        default=HurdleLogicEnum.OR, description="How a `both` tier joins its two hurdles"
    )
    lp_share: Percentage = Field(..., description="LP share of tier cash (percent)")
    gp_share: Percentage = Field(..., description="GP share of tier cash (percent)")

    @property
    def hurdle(self) -> Optional[float]:
        """Hurdle value in the units of `hurdle_type`; None for combined tiers."""
        if self.hurdle_type == HurdleTypeEnum.IRR:
            return self.irr_hurdle
        if self.hurdle_type == HurdleTypeEnum.MULTIPLE:
            return self.multiple_hurdle
        return None

    @property
    def conditions(self) -> List[Tuple[HurdleTypeEnum, float]]:
        """(metric, hurdle) pairs the tier is tested against."""
        if self.hurdle_type == HurdleTypeEnum.BOTH:
            return [
                (HurdleTypeEnum.IRR, self.irr_hurdle),
                (HurdleTypeEnum.MULTIPLE, self.multiple_hurdle),
            ]
        return [(self.hurdle_type, self.hurdle)]

    @property
    def display_name(self) -> str:
        return self.name or f"Tier {self.tier_number}"

    @property
    def split(self) -> Tuple[float, float]:
        """(LP, GP) split as fractions."""
        return self.lp_share / 100.0, self.gp_share / 100.0

    def validate_consistency(self) -> None:
        total = self.lp_share + self.gp_share
        if abs(total - 100.0) > SHARE_TOLERANCE:
            raise ConfigurationError(
                f"{self.display_name}: LP and GP shares must sum to 100, got {total:.4f}"
            )
        if self.hurdle_type in (HurdleTypeEnum.IRR, HurdleTypeEnum.BOTH):
            if self.irr_hurdle is None:
                raise ConfigurationError(f"{self.display_name}: irr_hurdle is required for IRR hurdles")
            if self.irr_hurdle <= -1.0:
                raise ConfigurationError(f"{self.display_name}: irr_hurdle must exceed -100%")
        if self.hurdle_type in (HurdleTypeEnum.MULTIPLE, HurdleTypeEnum.BOTH):
            if self.multiple_hurdle is None:
                raise ConfigurationError(
                    f"{self.display_name}: multiple_hurdle is required for multiple hurdles"
                )
            if self.multiple_hurdle < 0:
                raise ConfigurationError(f"{self.display_name}: multiple_hurdle must be non-negative")


class ClawbackProvisions(Model):
    """GP clawback and the escrow buffer tolerated before a true-up is owed."""

    gp_clawback_enabled: bool = Field(default=False)
    escrow_percent: FloatBetween0And1 = Field(
        default=0.0, description="Share of actual promote held back as a buffer (decimal)"
    )


class ManagementFees(Model):
    """Management fee rates (decimals) and the bases they apply to."""

    acquisition_fee_percent: NonNegativeFloat = Field(
        default=0.0, description="Applied to acquisition cost at funding"
    )
    construction_management_fee_percent: NonNegativeFloat = Field(
        default=0.0, description="Applied to hard cost"
    )
    asset_management_fee_percent: NonNegativeFloat = Field(
        default=0.0, description="Applied annually to contributed equity"
    )
    disposition_fee_percent: NonNegativeFloat = Field(
        default=0.0, description="Applied to gross disposition proceeds"
    )

    @property
    def has_fees(self) -> bool:
        return any(
            (
                self.acquisition_fee_percent,
                self.construction_management_fee_percent,
                self.asset_management_fee_percent,
                self.disposition_fee_percent,
            )
        )


# =============================================================================
# WATERFALL STRUCTURE
# =============================================================================


class WaterfallStructure(Model):
    """
    Complete waterfall contract.

    Promote tiers are walked strictly in list order; they are never re-sorted.
    """

    name: Optional[str] = Field(default=None, description="Display name")
    structure_type: StructureTypeEnum = Field(default=StructureTypeEnum.AMERICAN)
    capital_structure: CapitalStructure = Field(default_factory=CapitalStructure)
    preferred_return: PreferredReturn = Field(default_factory=PreferredReturn)
    promote_tiers: List[PromoteTier] = Field(default_factory=list)
    clawback_provisions: ClawbackProvisions = Field(default_factory=ClawbackProvisions)
    management_fees: ManagementFees = Field(default_factory=ManagementFees)

    @classmethod
    def coerce(cls, value: Any) -> "WaterfallStructure":
        """Build a structure from a model or dict, raising ConfigurationError."""
        if isinstance(value, cls):
            return value
        try:
            return cls.model_validate(value)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid waterfall structure: {exc}") from exc

    def validate_consistency(self) -> "WaterfallStructure":
        """
        Validate cross-field rules the engine relies on.

        Returns:
            self, to allow `structure = WaterfallStructure.coerce(x).validate_consistency()`

        Raises:
            ConfigurationError: Shares not summing to 100, negative rates,
                missing hurdle values, catch-up without promote tiers, or
                decreasing hurdles between consecutive tiers of the same type.
        """
        self.capital_structure.validate_consistency()
        self.preferred_return.validate_consistency()

        if self.preferred_return.catch_up_enabled and not self.promote_tiers:
            raise ConfigurationError("Catch-up requires at least one promote tier")

        for tier in self.promote_tiers:
            tier.validate_consistency()

        for previous, current in zip(self.promote_tiers, self.promote_tiers[1:]):
            if previous.hurdle_type != current.hurdle_type:
                continue
            for (metric, value), (_, prior) in zip(current.conditions, previous.conditions):
                if value < prior:
                    raise ConfigurationError(
                        f"Promote tier {metric.value} hurdles must be non-decreasing: "
                        f"{current.display_name} ({value}) follows {previous.display_name} ({prior})"
                    )
        return self

    @property
    def has_promote(self) -> bool:
        return bool(self.promote_tiers)

    def __str__(self) -> str:
        pref = self.preferred_return
        pref_info = f"{pref.rate:.1%} {pref.type.value} pref" if pref.enabled else "no pref"
        return (
            f"Waterfall: {self.structure_type.value}, "
            f"{self.capital_structure.lp_equity_percent:g}/{self.capital_structure.gp_equity_percent:g} LP/GP, "
            f"{pref_info}, {len(self.promote_tiers)} promote tier(s)"
        )


__all__ = [
    "CapitalStructure",
    "PreferredReturn",
    "PromoteTier",
    "ClawbackProvisions",
    "ManagementFees",
    "WaterfallStructure",
]
