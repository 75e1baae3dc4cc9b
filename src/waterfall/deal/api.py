# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall API

Public entry points for running equity waterfalls. Every entry point accepts
models or plain dicts, validates before computing and fails closed with a
`ConfigurationError` (structure) or `InputDataError` (proforma). Settings are
explicit: when omitted a fresh `WaterfallSettings()` is used, and nothing is
cached between calls.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from ..core.primitives import WaterfallSettings
from .constructs import get_default_waterfall_structure
from .fees import FeeBreakdown
from .orchestrator import WaterfallCalculator
from .partnership import WaterfallStructure
from .proforma import Proforma
from .results import WaterfallResults
from .scenarios import ScenarioSet, run_scenarios

logger = logging.getLogger(__name__)


def _prepare(
    proforma: Any, structure: Any, settings: Optional[WaterfallSettings]
) -> Tuple[Proforma, WaterfallStructure, WaterfallSettings]:
    """Coerce and validate inputs. Raises before any computation runs."""
    structure = WaterfallStructure.coerce(structure).validate_consistency()
    proforma = Proforma.coerce(proforma)
    proforma.validate_events()
    if settings is None:
        settings = WaterfallSettings()
    elif isinstance(settings, dict):
        settings = WaterfallSettings.model_validate(settings)
    return proforma, structure, settings


def calculate_waterfall(
    proforma: Any,
    structure: Any,
    settings: Optional[WaterfallSettings] = None,
) -> WaterfallResults:
    """
    Allocate a proforma's cash flows between LP and GP.

    Args:
        proforma: `Proforma`, dict, or list of (date, amount) pairs
        structure: `WaterfallStructure` or equivalent dict
        settings: Optional solver and scenario settings

    Returns:
        WaterfallResults with tier results, final LP/GP/project results, the
        distribution schedule, fee breakdown, clawback and warnings

    Raises:
        ConfigurationError: If the structure is invalid
        InputDataError: If the proforma is invalid

    Example:
        ```python
        results = calculate_waterfall(
            [(date(2024, 1, 1), -1_000_000), (date(2027, 1, 1), 1_500_000)],
            get_default_waterfall_structure(),
        )
        print(f"LP multiple: {results.final_results.lp.equity_multiple:.2f}x")
        ```
    """
    proforma, structure, settings = _prepare(proforma, structure, settings)
    logger.info(
        f"Calculating waterfall ({structure}) over {len(proforma.active_events)} events"
    )
    results = WaterfallCalculator(structure, settings).run(proforma)
    if results.warnings:
        logger.info(f"Waterfall completed with {len(results.warnings)} warning(s)")
    return results


def calculate_management_fees(
    proforma: Any,
    structure: Any,
    settings: Optional[WaterfallSettings] = None,
) -> FeeBreakdown:
    """
    Compute management fees without running the waterfall.

    Returns:
        FeeBreakdown with per-fee and per-event figures
    """
    proforma, structure, settings = _prepare(proforma, structure, settings)
    logger.info(f"Calculating management fees for {structure.name or 'waterfall structure'}")
    return WaterfallCalculator(structure, settings).fees(proforma)


def run_waterfall_scenarios(
    proforma: Any,
    structure: Any,
    settings: Optional[WaterfallSettings] = None,
) -> ScenarioSet:
    """
    Run the waterfall under downside, base and upside exit values.

    Shocks come from `settings.scenarios` (-20% / 0% / +20% by default) and
    apply to disposition events only.

    Returns:
        ScenarioSet with per-scenario results and a range summary
    """
    proforma, structure, settings = _prepare(proforma, structure, settings)
    logger.info(
        f"Running waterfall scenarios with exit shocks {settings.scenarios.downside_shock:+.0%} / "
        f"{settings.scenarios.base_shock:+.0%} / {settings.scenarios.upside_shock:+.0%}"
    )
    return run_scenarios(proforma, structure, settings)


__all__ = [
    "calculate_waterfall",
    "calculate_management_fees",
    "run_waterfall_scenarios",
    "get_default_waterfall_structure",
]
