# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Annotated

from pydantic import Field

PositiveFloat = Annotated[float, Field(gt=0)]
NonNegativeFloat = Annotated[float, Field(ge=0)]
PositiveInt = Annotated[int, Field(gt=0)]
FloatBetween0And1 = Annotated[float, Field(ge=0, le=1)]
# Whole-number percentages (90 means 90%)
Percentage = Annotated[float, Field(ge=0, le=100)]
