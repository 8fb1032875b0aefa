"""Cash account interest projections and currency metadata."""

from __future__ import annotations

import re
from datetime import date, timedelta
from typing import Any, Dict, Optional, Union

from investment_tracker.config.constants import COMPOUNDING_PERIODS_PER_YEAR, CURRENCY_INFO
from investment_tracker.models.core import CashMetrics
from investment_tracker.models.instruments import CashAccount, Compounding
from investment_tracker.services.calendar_utils import add_months

CompoundingLike = Union[Compounding, str]

_CURRENCY_CODE_RE = re.compile(r"^[A-Z]{3}$")


def compounding_periods(compounding: CompoundingLike) -> int:
    return COMPOUNDING_PERIODS_PER_YEAR[Compounding(compounding).value]


def calculate_interest(
    principal: float,
    apy_pct: float,
    compounding: CompoundingLike,
    days_held: float = 30,
) -> float:
    """
    Interest earned over days_held.

    "none" is simple interest; every other frequency uses
    P * ((1 + r/n) ** (n * years) - 1) with years = days / 365.
    """
    if apy_pct <= 0 or principal <= 0:
        return 0.0
    rate = apy_pct / 100.0
    years = days_held / 365.0
    if Compounding(compounding) == Compounding.NONE:
        return principal * rate * years
    n = compounding_periods(compounding)
    return principal * ((1.0 + rate / n) ** (n * years) - 1.0)


def monthly_interest(principal: float, apy_pct: float, compounding: CompoundingLike) -> float:
    return calculate_interest(principal, apy_pct, compounding, 30)


def annual_interest(principal: float, apy_pct: float, compounding: CompoundingLike) -> float:
    return calculate_interest(principal, apy_pct, compounding, 365)


def effective_annual_rate(apy_pct: float, compounding: CompoundingLike) -> float:
    """(1 + r/n) ** n - 1 in percent; the nominal rate for simple interest."""
    if apy_pct <= 0:
        return 0.0
    if Compounding(compounding) == Compounding.NONE:
        return apy_pct
    n = compounding_periods(compounding)
    return ((1.0 + apy_pct / 100.0 / n) ** n - 1.0) * 100.0


def next_interest_credit_date(compounding: CompoundingLike, reference: Optional[date] = None) -> date:
    reference = reference or date.today()
    freq = Compounding(compounding)
    if freq == Compounding.DAILY:
        return reference + timedelta(days=1)
    if freq == Compounding.MONTHLY:
        return add_months(reference, 1)
    if freq == Compounding.QUARTERLY:
        return add_months(reference, 3)
    return add_months(reference, 12)


def accrued_interest_ytd(
    principal: float,
    apy_pct: float,
    compounding: CompoundingLike,
    account_open_date: Optional[date] = None,
    current_date: Optional[date] = None,
) -> float:
    """Interest since the later of January 1 and the account open date."""
    current_date = current_date or date.today()
    start = date(current_date.year, 1, 1)
    if account_open_date is not None and account_open_date > start:
        start = account_open_date
    days = max(0, (current_date - start).days)
    return calculate_interest(principal, apy_pct, compounding, days)


def future_value(principal: float, apy_pct: float, compounding: CompoundingLike, years: float) -> float:
    if years <= 0:
        return principal
    return principal + calculate_interest(principal, apy_pct, compounding, years * 365)


def currency_info(code: str) -> Dict[str, Any]:
    """Name, symbol and decimal places for an ISO code; 2 decimals for unknown codes."""
    if code in CURRENCY_INFO:
        return dict(CURRENCY_INFO[code])
    return {"name": code, "symbol": code, "decimals": 2}


def is_valid_currency_code(code: str) -> bool:
    return bool(_CURRENCY_CODE_RE.match(code or ""))


def calculate_cash_metrics(
    amount: float,
    apy_pct: float = 0.0,
    compounding: CompoundingLike = Compounding.MONTHLY,
    account_open_date: Optional[date] = None,
    current_date: Optional[date] = None,
) -> CashMetrics:
    current_date = current_date or date.today()
    return {
        "current_balance": amount,
        "projected_monthly_interest": monthly_interest(amount, apy_pct, compounding),
        "projected_annual_interest": annual_interest(amount, apy_pct, compounding),
        "effective_annual_rate": effective_annual_rate(apy_pct, compounding),
        "accrued_interest_ytd": accrued_interest_ytd(amount, apy_pct, compounding, account_open_date, current_date),
        "next_credit_date": next_interest_credit_date(compounding, current_date),
        "future_value_one_year": future_value(amount, apy_pct, compounding, 1),
    }


def calculate_account_metrics(account: CashAccount, current_date: Optional[date] = None) -> CashMetrics:
    return calculate_cash_metrics(
        account.amount, account.apy_pct, account.compounding, account.opened_on, current_date
    )
