# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall Core Primitives

Shared building blocks: the immutable base model, constrained numeric types,
enums and settings.
"""

from .enums import (
    ConvergenceStatus,
    EventKindEnum,
    FeeTypeEnum,
    HurdleTypeEnum,
    HurdleLogicEnum,
    PreferredReturnTypeEnum,
    StructureTypeEnum,
    WaterfallStageEnum,
)
from .model import Model
from .settings import ScenarioSettings, SolverSettings, WaterfallSettings
from .types import (
    FloatBetween0And1,
    NonNegativeFloat,
    Percentage,
    PositiveFloat,
    PositiveInt,
)

__all__ = [
    # Core models
    "Model",
    # Settings
    "WaterfallSettings",
    "SolverSettings",
    "ScenarioSettings",
    # Enums
    "ConvergenceStatus",
    "EventKindEnum",
    "FeeTypeEnum",
    "HurdleTypeEnum",
    "HurdleLogicEnum",
    "PreferredReturnTypeEnum",
    "StructureTypeEnum",
    "WaterfallStageEnum",
    # Types
    "PositiveFloat",
    "PositiveInt",
    "NonNegativeFloat",
    "FloatBetween0And1",
    "Percentage",
]
