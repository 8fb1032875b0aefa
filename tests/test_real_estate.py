"""Tests for real estate analytics."""

import math
from datetime import date

import pytest
from pydantic import ValidationError

from investment_tracker.models.instruments import (
    Acquisition,
    Financing,
    OperatingExpenses,
    PropertyValuation,
    RealEstateProperty,
    RentalIncome,
)
from investment_tracker.services.real_estate import (
    appreciation_rate,
    calculate_real_estate_metrics,
    debt_service_coverage,
    equity,
    monthly_mortgage_payment,
    mortgage_payment,
)


def _rental(financing=None) -> RealEstateProperty:
    return RealEstateProperty(
        label="Duplex",
        acquisition=Acquisition(
            purchase_date=date(2020, 1, 1), purchase_price=300000, closing_costs=5000, improvements=10000
        ),
        financing=financing,
        income=RentalIncome(monthly_rent=2500),
        expenses=OperatingExpenses(maintenance=100, taxes=300, insurance=100),
        valuation=PropertyValuation(current_value=350000, valuation_date=date(2024, 1, 1)),
    )


def test_mortgage_payment_thirty_year() -> None:
    assert mortgage_payment(400000, 6.5, 360) == pytest.approx(2528, abs=1)


def test_mortgage_payment_degenerate_inputs() -> None:
    assert mortgage_payment(0, 6.5, 360) == 0.0
    assert mortgage_payment(400000, 0, 360) == 0.0


def test_stated_payment_wins_over_amortized() -> None:
    stated = Financing(has_mortgage=True, principal=240000, interest_rate_pct=6.0, monthly_payment=1500)
    derived = Financing(has_mortgage=True, principal=240000, interest_rate_pct=6.0, term_months=360)
    assert monthly_mortgage_payment(stated) == 1500
    assert monthly_mortgage_payment(derived) == pytest.approx(mortgage_payment(240000, 6.0, 360))
    assert monthly_mortgage_payment(None) == 0.0


def test_mortgage_requires_principal_and_rate() -> None:
    with pytest.raises(ValidationError):
        Financing(has_mortgage=True, principal=100000)


def test_leveraged_rental_metrics() -> None:
    financing = Financing(has_mortgage=True, principal=240000, interest_rate_pct=6.0, monthly_payment=1500)
    m = calculate_real_estate_metrics(_rental(financing))
    assert m["total_cost_basis"] == pytest.approx(315000.0)
    assert m["noi"] == pytest.approx(24000.0)
    assert m["cap_rate"] == pytest.approx(24000 / 350000 * 100)
    assert m["monthly_cash_flow"] == pytest.approx(500.0)
    assert m["equity"] == pytest.approx(110000.0)
    assert m["loan_to_value"] == pytest.approx(240000 / 350000 * 100)
    assert m["dscr"] == pytest.approx(24000 / 18000)
    assert m["cash_on_cash_return"] == pytest.approx(8.0)
    assert m["unrealized_pl"] == pytest.approx(35000.0)
    assert m["total_return"] == pytest.approx(50000 / 300000 * 100)


def test_unleveraged_rental_metrics() -> None:
    m = calculate_real_estate_metrics(_rental())
    assert m["equity"] == pytest.approx(350000.0)
    assert m["loan_to_value"] == 0.0
    assert m["monthly_mortgage_payment"] == 0.0
    assert math.isinf(m["dscr"])
    assert m["cash_on_cash_return"] == pytest.approx(2000 * 12 / 315000 * 100)


def test_equity_never_negative() -> None:
    underwater = Financing(has_mortgage=True, principal=500000, interest_rate_pct=5.0)
    assert equity(400000, underwater) == 0.0


def test_dscr_infinite_without_debt() -> None:
    assert math.isinf(debt_service_coverage(12000, 0))


def test_appreciation_rate_compounds_annually() -> None:
    rate = appreciation_rate(100000, 146410, date(2020, 1, 1), date(2024, 1, 1))
    assert rate == pytest.approx(10.0)
    assert appreciation_rate(100000, 120000, date(2024, 1, 1), date(2024, 1, 1)) == 0.0
