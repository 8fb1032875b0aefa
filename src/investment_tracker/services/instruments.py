"""
Uniform valuation across instrument kinds.

Each kind registers one valuer that projects its own metrics onto the shared
open quantity / cost basis / market value / unrealized P/L figures, so
holdings of different asset classes can be summed without inspecting them.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, Iterable, Mapping, Optional

from investment_tracker.config.settings import get_settings
from investment_tracker.models.core import HoldingsSummary, InstrumentValuation
from investment_tracker.models.instruments import (
    BondTerms,
    CashAccount,
    CommodityPosition,
    CustomInstrument,
    Instrument,
    OptionHolding,
    Quote,
    RealEstateProperty,
    SecurityHolding,
)
from investment_tracker.services.bond import calculate_bond_metrics
from investment_tracker.services.commodity import calculate_commodity_metrics
from investment_tracker.services.custom import calculate_custom_metrics
from investment_tracker.services.metrics import compute_position_metrics
from investment_tracker.services.real_estate import calculate_real_estate_metrics, total_cost_basis

logger = logging.getLogger(__name__)

Valuer = Callable[..., InstrumentValuation]

_VALUERS: Dict[str, Valuer] = {}


def register_valuer(*kinds: str) -> Callable[[Valuer], Valuer]:
    def decorator(fn: Valuer) -> Valuer:
        for kind in kinds:
            _VALUERS[kind] = fn
        return fn

    return decorator


def _quoted_price(quote: Optional[Quote]) -> Optional[float]:
    """Last, else previous close; None when the quote carries no price."""
    if quote is None:
        return None
    return quote.last if quote.last is not None else quote.prev_close


def _valuation(kind: str, qty: float, cost_basis: float, market_value: float, unrealized: float) -> InstrumentValuation:
    return {
        "kind": kind,
        "open_quantity": qty,
        "cost_basis": cost_basis,
        "market_value": market_value,
        "unrealized_pl": unrealized,
    }


@register_valuer("stock", "etf", "crypto", "option")
def _value_lot_holding(holding, quote: Optional[Quote], as_of: Optional[date]) -> InstrumentValuation:
    method = get_settings().valuation.default_cost_method
    m = compute_position_metrics(holding.lots, quote, method, holding.multiplier)
    return _valuation(holding.kind, m["quantity"], m["cost_basis"], m["market_value"], m["unrealized_pl"])


@register_valuer("bond")
def _value_bond(terms: BondTerms, quote: Optional[Quote], as_of: Optional[date]) -> InstrumentValuation:
    # A bond quote is a clean price in percent of par
    price = _quoted_price(quote)
    if price is not None and price > 0:
        terms = terms.model_copy(update={"mark_clean_price_pct": price})
    m = calculate_bond_metrics(terms, as_of)
    return _valuation("bond", m["total_quantity"], m["cost_basis"], m["market_value"], m["unrealized_pl"])


@register_valuer("commodity")
def _value_commodity(position: CommodityPosition, quote: Optional[Quote], as_of: Optional[date]) -> InstrumentValuation:
    m = calculate_commodity_metrics(position, _quoted_price(quote), as_of)
    return _valuation("commodity", m["quantity"], m["cost_basis"], m["notional"], m["unrealized_pl"])


@register_valuer("real_estate")
def _value_real_estate(prop: RealEstateProperty, quote: Optional[Quote], as_of: Optional[date]) -> InstrumentValuation:
    m = calculate_real_estate_metrics(prop)
    return _valuation(
        "real_estate", 1.0, total_cost_basis(prop.acquisition), prop.valuation.current_value, m["unrealized_pl"]
    )


@register_valuer("cash")
def _value_cash(account: CashAccount, quote: Optional[Quote], as_of: Optional[date]) -> InstrumentValuation:
    return _valuation("cash", account.amount, account.amount, account.amount, 0.0)


@register_valuer("custom")
def _value_custom(instrument: CustomInstrument, quote: Optional[Quote], as_of: Optional[date]) -> InstrumentValuation:
    state = instrument.state
    price = _quoted_price(quote)
    if price is not None:
        state = state.model_copy(update={"mark_price": price})
    m = calculate_custom_metrics(instrument.definition, state)
    return _valuation("custom", m["total_quantity"], m["cost_basis"], m["notional"], m["unrealized_pl"])


def quote_key(instrument: Instrument) -> Optional[str]:
    """Key an instrument's quote is looked up under: symbol, CUSIP or slug."""
    if isinstance(instrument, (SecurityHolding, OptionHolding, CommodityPosition)):
        return instrument.symbol
    if isinstance(instrument, BondTerms):
        return instrument.cusip
    if isinstance(instrument, CustomInstrument):
        return instrument.definition.slug
    return None


def value_instrument(
    instrument: Instrument,
    quote: Optional[Quote] = None,
    as_of: Optional[date] = None,
) -> InstrumentValuation:
    """
    Shared valuation figures for any instrument kind.

    Raises:
        KeyError: if no valuer is registered for the instrument's kind.
    """
    valuer = _VALUERS.get(instrument.kind)
    if valuer is None:
        raise KeyError(f"No valuer registered for kind {instrument.kind!r}")
    return valuer(instrument, quote, as_of)


def summarize_holdings(
    instruments: Iterable[Instrument],
    quotes: Optional[Mapping[str, Quote]] = None,
    as_of: Optional[date] = None,
) -> HoldingsSummary:
    """Value every holding and total the results overall and per kind."""
    quotes = quotes or {}
    summary: HoldingsSummary = {
        "total_cost_basis": 0.0,
        "total_market_value": 0.0,
        "total_unrealized": 0.0,
        "by_kind": {},
        "holdings": [],
    }
    for instrument in instruments:
        key = quote_key(instrument)
        v = value_instrument(instrument, quotes.get(key) if key else None, as_of)
        summary["holdings"].append(v)
        summary["total_cost_basis"] += v["cost_basis"]
        summary["total_market_value"] += v["market_value"]
        summary["total_unrealized"] += v["unrealized_pl"]

        bucket = summary["by_kind"].setdefault(v["kind"], _valuation(v["kind"], 0.0, 0.0, 0.0, 0.0))
        bucket["open_quantity"] += v["open_quantity"]
        bucket["cost_basis"] += v["cost_basis"]
        bucket["market_value"] += v["market_value"]
        bucket["unrealized_pl"] += v["unrealized_pl"]
    logger.debug("Summarized %d holdings across %d kinds", len(summary["holdings"]), len(summary["by_kind"]))
    return summary
