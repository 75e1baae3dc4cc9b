# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tests for proforma input models.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from waterfall.core.primitives import EventKindEnum
from waterfall.deal.proforma import CashFlowEvent, Proforma
from waterfall.exceptions import InputDataError

from tests.conftest import make_proforma


class TestProformaParsing:
    def test_accepts_pairs(self):
        proforma = Proforma(events=[(date(2024, 1, 1), -100.0), (date(2025, 1, 1), 150.0)])
        assert proforma.total_equity == 100.0
        assert proforma.total_distributions == 150.0

    def test_coerce_list(self):
        proforma = Proforma.coerce([(date(2024, 1, 1), -100.0), (date(2025, 1, 1), 150.0)])
        assert len(proforma.events) == 2

    def test_coerce_dict_with_iso_dates(self):
        proforma = Proforma.coerce(
            {"events": [{"date": "2024-01-01", "amount": -100}, {"date": "2025-01-01", "amount": 120}]}
        )
        assert proforma.events[0].date == date(2024, 1, 1)

    def test_coerce_garbage_raises_input_data_error(self):
        with pytest.raises(InputDataError):
            Proforma.coerce({"events": [{"date": "not a date", "amount": 1}]})

    def test_negative_cost_basis_rejected(self):
        with pytest.raises(InputDataError):
            Proforma.coerce({"events": [], "acquisition_cost": -5})


class TestProformaValidation:
    def test_missing_distribution(self):
        proforma = make_proforma([(date(2024, 1, 1), -100.0)])
        with pytest.raises(InputDataError, match="distribution"):
            proforma.validate_events()

    def test_missing_contribution(self):
        proforma = make_proforma([(date(2024, 1, 1), 100.0)])
        with pytest.raises(InputDataError, match="contribution"):
            proforma.validate_events()

    def test_non_chronological(self):
        proforma = make_proforma([(date(2025, 1, 1), -100.0), (date(2024, 1, 1), 150.0)])
        with pytest.raises(InputDataError, match="chronological"):
            proforma.validate_events()

    def test_kind_contradicting_sign(self):
        proforma = Proforma(
            events=[
                CashFlowEvent(date=date(2024, 1, 1), amount=-100.0),
                CashFlowEvent(date=date(2025, 1, 1), amount=-10.0, kind="disposition"),
                CashFlowEvent(date=date(2025, 1, 1), amount=150.0),
            ]
        )
        with pytest.raises(InputDataError):
            proforma.validate_events()

    @pytest.mark.parametrize("amount", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_amount_rejected_at_construction(self, amount):
        with pytest.raises(ValidationError):
            CashFlowEvent(date=date(2024, 6, 1), amount=amount)

    @pytest.mark.parametrize("amount", [float("nan"), float("inf")])
    def test_non_finite_amount_rejected_by_validation(self, amount):
        bad = CashFlowEvent.model_construct(date=date(2024, 6, 1), amount=amount)
        proforma = Proforma(
            events=[
                CashFlowEvent(date=date(2024, 1, 1), amount=-100.0),
                bad,
                CashFlowEvent(date=date(2025, 1, 1), amount=150.0),
            ]
        )
        with pytest.raises(InputDataError, match="non-finite"):
            proforma.validate_events()

    def test_zero_events_ignored(self):
        proforma = make_proforma([(date(2024, 1, 1), -100.0), (date(2024, 6, 1), 0.0), (date(2025, 1, 1), 150.0)])
        proforma.validate_events()
        assert len(proforma.active_events) == 2


class TestDisposition:
    def test_last_positive_event_is_exit_by_default(self):
        proforma = make_proforma(
            [(date(2024, 1, 1), -100.0), (date(2025, 1, 1), 10.0), (date(2026, 1, 1), 150.0)]
        )
        assert proforma.disposition_positions() == [2]
        assert proforma.disposition_proceeds == 150.0

    def test_tagged_dispositions_win(self):
        proforma = Proforma(
            events=[
                CashFlowEvent(date=date(2024, 1, 1), amount=-100.0),
                CashFlowEvent(date=date(2025, 1, 1), amount=80.0, kind=EventKindEnum.DISPOSITION),
                CashFlowEvent(date=date(2026, 1, 1), amount=5.0),
            ]
        )
        assert proforma.disposition_positions() == [1]

    def test_exit_shock_scales_disposition_only(self):
        proforma = make_proforma(
            [(date(2024, 1, 1), -100.0), (date(2025, 1, 1), 10.0), (date(2026, 1, 1), 150.0)]
        )
        shocked = proforma.with_exit_shock(-0.2)
        assert [e.amount for e in shocked.events] == pytest.approx([-100.0, 10.0, 120.0])
        # Original untouched
        assert proforma.events[2].amount == 150.0

    def test_total_cost_resolution(self):
        flows = [(date(2024, 1, 1), -100.0), (date(2025, 1, 1), 150.0)]
        assert make_proforma(flows).resolved_total_cost == 100.0
        assert make_proforma(flows, acquisition_cost=300.0, hard_cost=200.0).resolved_total_cost == 500.0

    def test_to_series_groups_same_date(self):
        proforma = make_proforma(
            [(date(2024, 1, 1), -100.0), (date(2024, 1, 1), -50.0), (date(2025, 1, 1), 200.0)]
        )
        series = proforma.to_series()
        assert len(series) == 2
        assert series.iloc[0] == -150.0
