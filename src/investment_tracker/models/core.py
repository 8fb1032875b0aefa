"""Typed structures for engine outputs (for documentation and API)."""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Tuple, TypedDict


class PositionMetrics(TypedDict):
    """Per-position metrics as returned by compute_position_metrics.

    ``today_change`` is a per-unit figure (already scaled by the multiplier);
    callers multiply by ``quantity`` for a currency amount.
    """

    quantity: float
    avg_cost: float
    realized_pl: float
    unrealized_pl: float
    today_change: float
    last_price: float
    market_value: float
    cost_basis: float
    fees_total: float


class PortfolioTotals(TypedDict):
    """Aggregate metrics as returned by compute_portfolio_metrics."""

    total_unrealized: float
    total_realized: float
    total_today: float
    total_market_value: float
    total_cost_basis: float
    position_count: int


class LotMetrics(TypedDict):
    """One lot marked at a price; cost basis includes the lot's fees."""

    id: str
    quantity: float
    price: float
    fees: float
    trade_date: date
    cost_basis: float
    current_value: float
    unrealized_pl: float
    unrealized_pl_pct: float


class DiversificationMetrics(TypedDict):
    """Value shares in percent; concentration is sorted largest first."""

    concentration: List[Tuple[str, float]]
    sector_allocation: Dict[str, float]
    asset_class_allocation: Dict[str, float]
    herfindahl_index: float


class OptionBreakeven(TypedDict):
    """Payoff bounds for an option position; None marks an unlimited amount."""

    breakeven: float
    max_profit: Optional[float]
    max_loss: Optional[float]
    intrinsic_value: float
    time_value: float


class BondMetrics(TypedDict):
    total_quantity: float
    cost_basis: float
    accrued_interest: float
    dirty_price: float
    market_value: float
    unrealized_pl: float
    approximate_ytm: float
    weighted_avg_clean_price: float
    last_coupon_date: date
    next_coupon_date: date
    annual_coupon_income: float
    daily_accrual: float


class CommodityMetrics(TypedDict):
    mode: str
    quantity: float
    notional: float
    cost_basis: float
    unrealized_pl: float
    days_to_expiry: Optional[int]
    expiry_date: Optional[date]
    estimated_margin: Optional[float]


class RealEstateMetrics(TypedDict):
    total_cost_basis: float
    equity: float
    noi: float
    cap_rate: float
    monthly_cash_flow: float
    unrealized_pl: float
    appreciation_rate: float
    loan_to_value: float
    dscr: float
    monthly_mortgage_payment: float
    cash_on_cash_return: float
    total_return: float


class CashMetrics(TypedDict):
    current_balance: float
    projected_monthly_interest: float
    projected_annual_interest: float
    effective_annual_rate: float
    accrued_interest_ytd: float
    next_credit_date: date
    future_value_one_year: float


class ExpressionResult(TypedDict):
    """Outcome of a custom P/L expression; ``error`` is None on success."""

    result: float
    error: Optional[str]


class CustomMetrics(TypedDict):
    total_quantity: float
    cost_basis: float
    avg_cost: float
    notional: float
    unrealized_pl: float
    fees_total: float
    pl_error: Optional[str]
    annual_income: float


class InstrumentValuation(TypedDict):
    """Common projection of any instrument kind."""

    kind: str
    open_quantity: float
    cost_basis: float
    market_value: float
    unrealized_pl: float


class HoldingsSummary(TypedDict):
    total_cost_basis: float
    total_market_value: float
    total_unrealized: float
    by_kind: Dict[str, InstrumentValuation]
    holdings: List[InstrumentValuation]
