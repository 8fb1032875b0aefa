"""Position and portfolio P/L metrics (pure functions)."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Union

from investment_tracker.config.constants import COST_METHOD_ALIASES
from investment_tracker.config.settings import get_settings
from investment_tracker.models.core import DiversificationMetrics, LotMetrics, PortfolioTotals, PositionMetrics
from investment_tracker.models.instruments import AllocationEntry, CostMethod, Lot, PortfolioPosition, Quote
from investment_tracker.services.cost_basis import (
    calculate_realized_pl_average,
    calculate_realized_pl_fifo,
    compute_weighted_average_cost,
    total_fees,
)

logger = logging.getLogger(__name__)


def resolve_cost_method(method: Union[CostMethod, str, None]) -> CostMethod:
    """
    Normalize a cost method given as enum or loose string.

    Unknown or missing values fall back to the configured default.
    """
    if isinstance(method, CostMethod):
        return method
    if isinstance(method, str):
        key = method.strip().lower().replace("-", "_").replace(" ", "_")
        resolved = COST_METHOD_ALIASES.get(key)
        if resolved is not None:
            return CostMethod(resolved)

    default = get_settings().valuation.default_cost_method
    if method is not None:
        logger.warning("Unknown cost method %r, using %s", method, default.value)
    return default


def resolve_last_price(quote: Optional[Quote]) -> float:
    """Last trade, else previous close, else 0."""
    if quote is None:
        return 0.0
    if quote.last is not None:
        return quote.last
    if quote.prev_close is not None:
        return quote.prev_close
    return 0.0


def compute_position_metrics(
    lots: Iterable[Lot],
    quote: Optional[Quote] = None,
    cost_method: Union[CostMethod, str, None] = CostMethod.FIFO,
    multiplier: float = 1.0,
) -> PositionMetrics:
    """
    Compute metrics for one position from its lots and a quote.

    Args:
        lots: Position lots, in any order (walked by trade date).
        quote: Latest quote; missing prices fall back to prev close, then 0.
        cost_method: FIFO or AVG realized P/L policy.
        multiplier: Contract multiplier (100 for equity options).

    Returns:
        PositionMetrics. today_change is per unit; multiply by quantity for
        a currency amount.
    """
    lots = list(lots)
    method = resolve_cost_method(cost_method)
    quantity, avg_cost = compute_weighted_average_cost(lots)
    last = resolve_last_price(quote)

    prev_close = quote.prev_close if quote is not None else None
    today_change = (last - prev_close) * multiplier if prev_close is not None else 0.0

    unrealized = (last - avg_cost) * quantity * multiplier if quantity > 0 else 0.0

    if method == CostMethod.FIFO:
        realized = calculate_realized_pl_fifo(lots)
    else:
        realized = calculate_realized_pl_average(lots)

    return {
        "quantity": quantity,
        "avg_cost": avg_cost,
        "realized_pl": realized * multiplier,
        "unrealized_pl": unrealized,
        "today_change": today_change,
        "last_price": last,
        "market_value": quantity * last * multiplier if quantity > 0 else 0.0,
        "cost_basis": quantity * avg_cost * multiplier if quantity > 0 else 0.0,
        "fees_total": total_fees(lots),
    }


def compute_portfolio_metrics(
    positions: Iterable[PortfolioPosition],
    cost_method: Union[CostMethod, str, None] = CostMethod.FIFO,
) -> PortfolioTotals:
    """
    Sum position metrics across a portfolio under its declared cost method.

    Today's change is scaled by each position's quantity here, so
    total_today is a currency amount.
    """
    method = resolve_cost_method(cost_method)
    totals: PortfolioTotals = {
        "total_unrealized": 0.0,
        "total_realized": 0.0,
        "total_today": 0.0,
        "total_market_value": 0.0,
        "total_cost_basis": 0.0,
        "position_count": 0,
    }
    for position in positions:
        m = compute_position_metrics(position.lots, position.quote, method, position.multiplier)
        totals["total_unrealized"] += m["unrealized_pl"]
        totals["total_realized"] += m["realized_pl"]
        totals["total_today"] += m["today_change"] * m["quantity"]
        totals["total_market_value"] += m["market_value"]
        totals["total_cost_basis"] += m["cost_basis"]
        totals["position_count"] += 1
    logger.debug("Aggregated %d positions with %s", totals["position_count"], method.value)
    return totals


def compute_all_position_metrics(
    positions: Iterable[PortfolioPosition],
    cost_method: Union[CostMethod, str, None] = CostMethod.FIFO,
) -> List[PositionMetrics]:
    """Per-position metrics in input order, under one cost method."""
    method = resolve_cost_method(cost_method)
    return [compute_position_metrics(p.lots, p.quote, method, p.multiplier) for p in positions]


def compute_lot_metrics(lot: Lot, current_price: float) -> LotMetrics:
    """
    Mark a single lot at current_price.

    Cost basis includes the lot's fees; the percentage is 0 when cost is 0.
    """
    cost_basis = lot.quantity * lot.price + lot.fees
    current_value = lot.quantity * current_price
    unrealized = current_value - cost_basis
    return {
        "id": lot.id,
        "quantity": lot.quantity,
        "price": lot.price,
        "fees": lot.fees,
        "trade_date": lot.trade_date,
        "cost_basis": cost_basis,
        "current_value": current_value,
        "unrealized_pl": unrealized,
        "unrealized_pl_pct": unrealized / cost_basis * 100.0 if cost_basis > 0 else 0.0,
    }


def _shares(values: Dict[str, float], total: float) -> Dict[str, float]:
    return {key: (value / total * 100.0 if total > 0 else 0.0) for key, value in values.items()}


def calculate_diversification_metrics(entries: Iterable[AllocationEntry]) -> DiversificationMetrics:
    """
    Portfolio concentration by position, sector and asset class.

    Args:
        entries: One entry per position with its current value.

    Returns:
        DiversificationMetrics. Percentages are of the summed value (all 0
        when that is 0). Untagged entries are grouped under "Unknown".
        herfindahl_index is the sum of squared position percentages, so
        10000 means a single holding.
    """
    entries = list(entries)
    total = sum(e.value for e in entries)

    by_symbol: Dict[str, float] = {}
    by_sector: Dict[str, float] = {}
    by_class: Dict[str, float] = {}
    for e in entries:
        by_symbol[e.symbol] = by_symbol.get(e.symbol, 0.0) + e.value
        sector = e.sector or "Unknown"
        by_sector[sector] = by_sector.get(sector, 0.0) + e.value
        asset_class = e.asset_class or "Unknown"
        by_class[asset_class] = by_class.get(asset_class, 0.0) + e.value

    concentration = sorted(_shares(by_symbol, total).items(), key=lambda item: item[1], reverse=True)
    return {
        "concentration": concentration,
        "sector_allocation": _shares(by_sector, total),
        "asset_class_allocation": _shares(by_class, total),
        "herfindahl_index": sum(pct * pct for _, pct in concentration),
    }
