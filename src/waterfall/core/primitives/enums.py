# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from enum import Enum


class StructureTypeEnum(str, Enum):
    """
    Waterfall structure type.

    Selects how the return-of-capital stage splits cash between LP and GP:

    - AMERICAN: distributions as earned; capital returns pari passu, pro rata
      to each party's unreturned balance.
    - EUROPEAN: return of capital to LP first, then GP, before any profit
      stage receives cash.
    - HYBRID: pari passu at interim events, LP first at the final event.
    """

    AMERICAN = "american"
    EUROPEAN = "european"
    HYBRID = "hybrid"


class PreferredReturnTypeEnum(str, Enum):
    """How the LP preferred return accrues between events."""

    CUMULATIVE = "cumulative"  # Simple accrual, unpaid balance carries forward
    COMPOUNDING = "compounding"  # Unpaid balance compounds with capital
    NON_CUMULATIVE = "non_cumulative"  # Unpaid accrual forfeited at each distribution


class HurdleTypeEnum(str, Enum):
    """Metric a promote tier's hurdle is measured in."""

    IRR = "irr"
    MULTIPLE = "multiple"
    BOTH = "both"  # IRR and multiple hurdles combined by `HurdleLogicEnum`

    @classmethod
    def _missing_(cls, value):
        # Stored structures use "equity_multiple" for multiple hurdles
        if isinstance(value, str) and value.lower() in ("equity_multiple", "em"):
            return cls.MULTIPLE
        return None


class HurdleLogicEnum(str, Enum):
    """How the two hurdles of a combined IRR + multiple tier are joined."""

    AND = "and"  # LP must clear both hurdles
    OR = "or"  # Either hurdle clears the tier


class EventKindEnum(str, Enum):
    """Classification of a proforma cash-flow event."""

    CONTRIBUTION = "contribution"
    OPERATING = "operating"
    DISPOSITION = "disposition"


class WaterfallStageEnum(str, Enum):
    """Stages of the distribution waterfall, in payment order."""

    RETURN_OF_CAPITAL = "return_of_capital"
    PREFERRED_RETURN = "preferred_return"
    CATCH_UP = "catch_up"
    PROMOTE = "promote"
    PRO_RATA = "pro_rata"


class FeeTypeEnum(str, Enum):
    """Management fee categories."""

    ACQUISITION = "acquisition"
    CONSTRUCTION_MANAGEMENT = "construction_management"
    ASSET_MANAGEMENT = "asset_management"
    DISPOSITION = "disposition"


class ConvergenceStatus(str, Enum):
    """Quality flag attached to every solver output."""

    CONVERGED = "converged"
    NOT_CONVERGED = "not_converged"
    UNDEFINED = "undefined"
