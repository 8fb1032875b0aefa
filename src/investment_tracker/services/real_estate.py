"""Real estate analytics: cost basis, income, leverage and return figures."""

from __future__ import annotations

import math
from datetime import date
from typing import Optional

from investment_tracker.models.core import RealEstateMetrics
from investment_tracker.models.instruments import (
    Acquisition,
    Financing,
    OperatingExpenses,
    RealEstateProperty,
    RentalIncome,
)


def total_cost_basis(acquisition: Acquisition) -> float:
    return acquisition.purchase_price + acquisition.closing_costs + acquisition.improvements


def mortgage_payment(principal: float, annual_rate_pct: float, term_months: int) -> float:
    """Level monthly payment for a fully amortizing loan; 0 for non-positive inputs."""
    if principal <= 0 or annual_rate_pct <= 0 or term_months <= 0:
        return 0.0
    r = annual_rate_pct / 100.0 / 12.0
    growth = (1.0 + r) ** term_months
    return principal * r * growth / (growth - 1.0)


def monthly_mortgage_payment(financing: Optional[Financing]) -> float:
    """Stated payment when present, else the amortized payment from the loan terms."""
    if financing is None or not financing.has_mortgage:
        return 0.0
    if financing.monthly_payment:
        return financing.monthly_payment
    return mortgage_payment(
        financing.principal or 0.0, financing.interest_rate_pct or 0.0, financing.term_months or 0
    )


def equity(current_value: float, financing: Optional[Financing] = None) -> float:
    """
    Property value less the mortgage, floored at 0.

    Uses the original principal, not the amortized balance.
    """
    if financing is None or not financing.has_mortgage or not financing.principal:
        return current_value
    return max(0.0, current_value - financing.principal)


def _monthly_income(income: Optional[RentalIncome]) -> float:
    return income.monthly_total if income is not None else 0.0


def _monthly_expenses(expenses: Optional[OperatingExpenses]) -> float:
    return expenses.monthly_total if expenses is not None else 0.0


def net_operating_income(income: Optional[RentalIncome], expenses: Optional[OperatingExpenses]) -> float:
    """Annualized NOI."""
    return (_monthly_income(income) - _monthly_expenses(expenses)) * 12


def cap_rate(noi: float, current_value: float) -> float:
    if current_value <= 0:
        return 0.0
    return noi / current_value * 100.0


def monthly_cash_flow(
    income: Optional[RentalIncome],
    expenses: Optional[OperatingExpenses],
    financing: Optional[Financing] = None,
) -> float:
    return _monthly_income(income) - _monthly_expenses(expenses) - monthly_mortgage_payment(financing)


def cash_on_cash_return(annual_cash_flow: float, cash_invested: float) -> float:
    if cash_invested <= 0:
        return 0.0
    return annual_cash_flow / cash_invested * 100.0


def loan_to_value(loan_amount: float, property_value: float) -> float:
    if property_value <= 0:
        return 0.0
    return loan_amount / property_value * 100.0


def debt_service_coverage(noi: float, annual_debt_service: float) -> float:
    """NOI over annual debt service; infinite when there is no debt service."""
    if annual_debt_service <= 0:
        return math.inf
    return noi / annual_debt_service


def appreciation_rate(purchase_price: float, current_value: float, purchase_date: date, as_of: date) -> float:
    """Compound annual growth of the property value, in percent; 0 when undefined."""
    years_owned = (as_of - purchase_date).days / 365.25
    if years_owned <= 0 or purchase_price <= 0:
        return 0.0
    return ((current_value / purchase_price) ** (1.0 / years_owned) - 1.0) * 100.0


def total_return(purchase_price: float, current_value: float, cash_flow_received: float = 0.0) -> float:
    if purchase_price <= 0:
        return 0.0
    return (current_value + cash_flow_received - purchase_price) / purchase_price * 100.0


def calculate_real_estate_metrics(prop: RealEstateProperty) -> RealEstateMetrics:
    acquisition = prop.acquisition
    value = prop.valuation.current_value
    financing = prop.financing
    cost_basis = total_cost_basis(acquisition)
    noi = net_operating_income(prop.income, prop.expenses)
    payment = monthly_mortgage_payment(financing)
    cash_flow = monthly_cash_flow(prop.income, prop.expenses, financing)

    mortgaged = financing is not None and financing.has_mortgage and bool(financing.principal)
    loan = financing.principal if mortgaged else 0.0
    # Down payment plus costs; the whole basis when bought outright
    cash_invested = cost_basis - loan if mortgaged else cost_basis

    return {
        "total_cost_basis": cost_basis,
        "equity": equity(value, financing),
        "noi": noi,
        "cap_rate": cap_rate(noi, value),
        "monthly_cash_flow": cash_flow,
        "unrealized_pl": value - cost_basis,
        "appreciation_rate": appreciation_rate(
            acquisition.purchase_price, value, acquisition.purchase_date, prop.valuation.valuation_date
        ),
        "loan_to_value": loan_to_value(loan, value) if mortgaged else 0.0,
        "dscr": debt_service_coverage(noi, payment * 12),
        "monthly_mortgage_payment": payment,
        "cash_on_cash_return": cash_on_cash_return(cash_flow * 12, cash_invested),
        "total_return": total_return(acquisition.purchase_price, value, prop.cash_flow_received),
    }
