"""Bond analytics: coupon schedule, accrued interest, dirty price, cost basis, yield."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence, Tuple, Union

from investment_tracker.config.constants import (
    COUPON_PAYMENTS_PER_YEAR,
    DAY_COUNT_DAYS_IN_YEAR,
    DEFAULT_PAR_VALUE,
)
from investment_tracker.models.core import BondMetrics
from investment_tracker.models.instruments import BondLot, BondTerms, CouponFrequency, DayCount, EntryMode
from investment_tracker.services.calendar_utils import add_months, days_30_360

FrequencyLike = Union[CouponFrequency, str]
DayCountLike = Union[DayCount, str]


def payments_per_year(frequency: FrequencyLike) -> int:
    return COUPON_PAYMENTS_PER_YEAR[CouponFrequency(frequency).value]


def days_in_year(day_count: DayCountLike) -> int:
    return DAY_COUNT_DAYS_IN_YEAR[DayCount(day_count).value]


def days_between(start: date, end: date, day_count: DayCountLike = DayCount.ACT_365) -> int:
    """Unsigned day count between two dates under the given convention."""
    if end < start:
        start, end = end, start
    if DayCount(day_count) == DayCount.THIRTY_360:
        return days_30_360(start, end)
    return (end - start).days


def _coupon_steps_back(maturity: date, frequency: FrequencyLike, reference: date) -> Tuple[int, int]:
    """
    Walk back from maturity one coupon period at a time until on or before reference.

    Returns:
        (periods_walked, months_per_period)
    """
    months = 12 // payments_per_year(frequency)
    steps = 0
    coupon = maturity
    while coupon > reference:
        steps += 1
        coupon = add_months(maturity, -steps * months)
    return steps, months


def last_coupon_date(maturity: date, frequency: FrequencyLike, reference: Optional[date] = None) -> date:
    """Most recent coupon date on or before reference. Zero-coupon bonds return maturity."""
    if CouponFrequency(frequency) == CouponFrequency.ZERO:
        return maturity
    reference = reference or date.today()
    steps, months = _coupon_steps_back(maturity, frequency, reference)
    return add_months(maturity, -steps * months)


def next_coupon_date(maturity: date, frequency: FrequencyLike, reference: Optional[date] = None) -> date:
    """Coupon date one period after the last coupon, capped at maturity.

    Zero-coupon and matured bonds return maturity.
    """
    if CouponFrequency(frequency) == CouponFrequency.ZERO:
        return maturity
    reference = reference or date.today()
    if reference >= maturity:
        return maturity
    steps, months = _coupon_steps_back(maturity, frequency, reference)
    return add_months(maturity, -(steps - 1) * months)


def coupon_payment(coupon_rate: float, par_value: float, frequency: FrequencyLike) -> float:
    """Cash paid per bond each coupon date."""
    per_year = payments_per_year(frequency)
    if per_year == 0:
        return 0.0
    return (coupon_rate / 100.0) * par_value / per_year


def accrued_interest(
    coupon_rate: float,
    par_value: float,
    frequency: FrequencyLike,
    day_count: DayCountLike,
    maturity: date,
    settlement: Optional[date] = None,
) -> float:
    """Interest accrued per bond since the last coupon.

    Zero-coupon and 0% bonds accrue nothing, nor does anything settled on or
    after maturity.
    """
    if CouponFrequency(frequency) == CouponFrequency.ZERO or coupon_rate == 0:
        return 0.0
    settlement = settlement or date.today()
    if settlement >= maturity:
        return 0.0
    last = last_coupon_date(maturity, frequency, settlement)
    nxt = next_coupon_date(maturity, frequency, settlement)
    period_days = days_between(last, nxt, day_count)
    if period_days <= 0:
        return 0.0
    elapsed = days_between(last, settlement, day_count)
    return coupon_payment(coupon_rate, par_value, frequency) * (elapsed / period_days)


def dirty_price(clean_price_pct: float, accrued: float, par_value: float = DEFAULT_PAR_VALUE) -> float:
    """Clean price (percent of par) in currency plus accrued interest."""
    return (clean_price_pct / 100.0) * par_value + accrued


def total_quantity(lots: Iterable[BondLot]) -> float:
    return sum(lot.quantity for lot in lots)


def weighted_average_clean_price(lots: Sequence[BondLot]) -> float:
    qty = total_quantity(lots)
    if qty == 0:
        return 0.0
    return sum(lot.quantity * lot.clean_price_pct for lot in lots) / qty


def bond_cost_basis(
    lots: Iterable[BondLot],
    coupon_rate: float,
    frequency: FrequencyLike,
    day_count: DayCountLike,
    maturity: date,
    par_value: float = DEFAULT_PAR_VALUE,
) -> float:
    """Sum of quantity * dirty price at each lot's settlement, plus fees."""
    total = 0.0
    for lot in lots:
        settlement = lot.settlement_date or lot.trade_date
        accrued = accrued_interest(coupon_rate, par_value, frequency, day_count, maturity, settlement)
        total += lot.quantity * dirty_price(lot.clean_price_pct, accrued, par_value) + lot.fees
    return total


def bond_market_value(
    quantity: float,
    mark_clean_price_pct: float,
    coupon_rate: float,
    frequency: FrequencyLike,
    day_count: DayCountLike,
    maturity: date,
    par_value: float = DEFAULT_PAR_VALUE,
    valuation_date: Optional[date] = None,
) -> float:
    accrued = accrued_interest(coupon_rate, par_value, frequency, day_count, maturity, valuation_date)
    return quantity * dirty_price(mark_clean_price_pct, accrued, par_value)


def approximate_ytm(
    clean_price_pct: float,
    coupon_rate: float,
    maturity: date,
    par_value: float = DEFAULT_PAR_VALUE,
    as_of: Optional[date] = None,
) -> float:
    """
    Closed-form yield-to-maturity approximation, in percent.

    (annual coupon + straight-line pull to par) / average of price and par.
    Not a solved internal rate of return. Returns 0 at or after maturity.
    """
    as_of = as_of or date.today()
    years = (maturity - as_of).days / 365.0
    if years <= 0:
        return 0.0
    price = (clean_price_pct / 100.0) * par_value
    annual_coupon = (coupon_rate / 100.0) * par_value
    pull_to_par = (par_value - price) / years
    return (annual_coupon + pull_to_par) / ((price + par_value) / 2.0) * 100.0


def calculate_bond_metrics(terms: BondTerms, as_of: Optional[date] = None) -> BondMetrics:
    """All bond figures for a holding at as_of (defaults to today)."""
    as_of = as_of or date.today()
    par = terms.par_value

    if terms.entry_mode == EntryMode.LOTS:
        quantity = total_quantity(terms.lots)
        avg_clean = weighted_average_clean_price(terms.lots)
        cost_basis = bond_cost_basis(
            terms.lots, terms.coupon_rate, terms.frequency, terms.day_count, terms.maturity, par
        )
    elif terms.average is not None:
        quantity = terms.average.total_quantity
        avg_clean = terms.average.avg_clean_price_pct
        cost_basis = quantity * (avg_clean / 100.0) * par + terms.average.total_fees
    else:
        quantity, avg_clean, cost_basis = 0.0, 0.0, 0.0

    accrued = accrued_interest(terms.coupon_rate, par, terms.frequency, terms.day_count, terms.maturity, as_of)
    mark = terms.mark_clean_price_pct or avg_clean
    market_value = bond_market_value(
        quantity, mark, terms.coupon_rate, terms.frequency, terms.day_count, terms.maturity, par, as_of
    )
    ytm = approximate_ytm(mark, terms.coupon_rate, terms.maturity, par, as_of) if mark > 0 else 0.0

    is_zero = CouponFrequency(terms.frequency) == CouponFrequency.ZERO
    annual_coupon = 0.0 if is_zero else (terms.coupon_rate / 100.0) * par
    return {
        "total_quantity": quantity,
        "cost_basis": cost_basis,
        "accrued_interest": accrued,
        "dirty_price": dirty_price(mark, accrued, par),
        "market_value": market_value,
        "unrealized_pl": market_value - cost_basis,
        "approximate_ytm": ytm,
        "weighted_avg_clean_price": avg_clean,
        "last_coupon_date": last_coupon_date(terms.maturity, terms.frequency, as_of),
        "next_coupon_date": next_coupon_date(terms.maturity, terms.frequency, as_of),
        "annual_coupon_income": annual_coupon * quantity,
        "daily_accrual": annual_coupon / days_in_year(terms.day_count),
    }
