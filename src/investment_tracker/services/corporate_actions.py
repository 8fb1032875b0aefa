"""Corporate actions, dividend income and option payoffs over lots (pure functions)."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, List, Literal, Optional

from investment_tracker.config.constants import DEFAULT_OPTION_MULTIPLIER
from investment_tracker.models.core import OptionBreakeven
from investment_tracker.models.instruments import Dividend, Lot
from investment_tracker.services.cost_basis import compute_weighted_average_cost


def apply_split(lots: Iterable[Lot], ratio_numerator: float, ratio_denominator: float) -> List[Lot]:
    """
    Restate lots for a stock split of ``numerator:denominator`` (2:1 doubles shares).

    Quantity is multiplied and price divided by the same ratio, so
    quantity * price per lot is unchanged. Ratios are validated by callers.
    """
    ratio = ratio_numerator / ratio_denominator
    return [
        lot.model_copy(update={"quantity": lot.quantity * ratio, "price": lot.price / ratio})
        for lot in lots
    ]


def trailing_12m_dividend_per_share(dividends: Iterable[Dividend], as_of: date) -> float:
    """Sum of per-share dividends paid (or going ex, when no pay date) in the year up to as_of."""
    cutoff = as_of - timedelta(days=365)
    return sum(
        d.amount_per_share
        for d in dividends
        if (d.pay_date or d.ex_date) >= cutoff
    )


def dividend_yield_pct(dividends: Iterable[Dividend], as_of: date, current_price: float) -> float:
    if not current_price or current_price <= 0:
        return 0.0
    return trailing_12m_dividend_per_share(dividends, as_of) / current_price * 100.0


def option_expiration_pl(lots: Iterable[Lot], position_is_long: bool) -> float:
    """
    Realized P/L when an option expires worthless.

    A long position loses its remaining cost; a short position keeps the
    remaining premium. Long/short semantics are resolved by the caller.
    Not scaled by the contract multiplier.
    """
    quantity, avg_cost = compute_weighted_average_cost(lots)
    if quantity == 0:
        return 0.0
    if position_is_long:
        return -quantity * avg_cost
    return quantity * avg_cost


def option_breakeven(
    option_type: Literal["call", "put"],
    action: Literal["buy", "sell"],
    strike: float,
    premium: float,
    contracts: float = 1,
    multiplier: float = DEFAULT_OPTION_MULTIPLIER,
    underlying_price: Optional[float] = None,
) -> OptionBreakeven:
    """
    Breakeven and payoff bounds at expiry for a single-leg option position.

    Args:
        option_type: "call" or "put".
        action: "buy" for a long position, "sell" for a short one.
        strike: Strike price per underlying unit.
        premium: Premium per underlying unit.
        contracts: Number of contracts.
        multiplier: Underlying units per contract.
        underlying_price: Current underlying price; without it the whole
            premium counts as time value.

    Returns:
        OptionBreakeven. Bounds are currency amounts for the whole position;
        None marks an unlimited profit or loss. Intrinsic and time value are
        per underlying unit.
    """
    units = contracts * multiplier
    total_premium = premium * units

    if option_type == "call":
        breakeven = strike + premium
        intrinsic = max(0.0, underlying_price - strike) if underlying_price is not None else 0.0
        if action == "buy":
            max_profit, max_loss = None, total_premium
        else:
            max_profit, max_loss = total_premium, None
    else:
        breakeven = strike - premium
        intrinsic = max(0.0, strike - underlying_price) if underlying_price is not None else 0.0
        # The underlying can fall no further than zero
        floor_payoff = max(0.0, breakeven) * units
        if action == "buy":
            max_profit, max_loss = floor_payoff, total_premium
        else:
            max_profit, max_loss = total_premium, floor_payoff

    return {
        "breakeven": breakeven,
        "max_profit": max_profit,
        "max_loss": max_loss,
        "intrinsic_value": intrinsic,
        "time_value": max(0.0, premium - intrinsic),
    }
