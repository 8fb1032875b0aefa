"""Commodity analytics for spot holdings and futures contracts (pure functions)."""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Dict, NamedTuple, Optional, Union

from investment_tracker.config.constants import COMMODITY_INFO, FUTURES_MONTH_CODES
from investment_tracker.config.settings import get_settings
from investment_tracker.models.core import CommodityMetrics
from investment_tracker.models.instruments import CommodityMode, CommodityPosition
from investment_tracker.services.calendar_utils import last_business_day

_CONTRACT_CODE_RE = re.compile(r"^([A-Z]+)([FGHJKMNQUVXZ])(\d)$")


class ContractCode(NamedTuple):
    root: str
    month: str
    year: int


def spot_notional(units: float, price_per_unit: float) -> float:
    return units * price_per_unit


def futures_notional(contracts: float, multiplier: float, price_per_unit: float) -> float:
    return contracts * multiplier * price_per_unit


def spot_pl(units: float, entry_price: float, current_price: float) -> float:
    return units * (current_price - entry_price)


def futures_pl(contracts: float, multiplier: float, entry_price: float, current_price: float) -> float:
    return contracts * multiplier * (current_price - entry_price)


def tick_pl(contracts: float, entry_price: float, current_price: float, tick_size: float, tick_value: float) -> float:
    """Mark-to-market P/L counted in ticks: ticks moved * tick value * contracts."""
    if tick_size <= 0:
        return 0.0
    return (current_price - entry_price) / tick_size * tick_value * contracts


def commodity_cost_basis(
    mode: Union[CommodityMode, str],
    quantity: float,
    entry_price: float,
    multiplier: float = 1.0,
    fees: float = 0.0,
) -> float:
    """Entry notional plus fees; quantity is units for spot, contracts for futures."""
    if CommodityMode(mode) == CommodityMode.SPOT:
        return quantity * entry_price + fees
    return quantity * multiplier * entry_price + fees


def estimated_margin(contracts: float, multiplier: float, price_per_unit: float, margin_rate: float = 0.05) -> float:
    """Rough initial margin as a flat fraction of futures notional."""
    return futures_notional(contracts, multiplier, price_per_unit) * margin_rate


def expiry_date(month_code: str, year: int) -> Optional[date]:
    """Last business day of the contract month, or None for an unknown month code."""
    month = FUTURES_MONTH_CODES.get((month_code or "").upper())
    if month is None:
        return None
    return last_business_day(year, month)


def days_to_expiry(month_code: str, year: int, as_of: Optional[date] = None) -> int:
    """Days from as_of to the contract's expiry; 0 when expired or the month code is unknown."""
    expiry = expiry_date(month_code, year)
    if expiry is None:
        return 0
    as_of = as_of or date.today()
    return max(0, (expiry - as_of).days)


def parse_contract_code(contract_code: str, as_of: Optional[date] = None) -> Optional[ContractCode]:
    """
    Parse ``{root}{month letter}{year digit}`` notation such as ``CLZ5``.

    The year digit resolves within the current decade, rolling to the next
    decade when that year has already passed. Returns None when the code
    does not match.
    """
    match = _CONTRACT_CODE_RE.match((contract_code or "").strip().upper())
    if not match:
        return None
    root, month, digit = match.groups()
    current_year = (as_of or date.today()).year
    year = current_year // 10 * 10 + int(digit)
    if year < current_year:
        year += 10
    return ContractCode(root, month, year)


def format_contract_code(root: str, month_code: str, year: int) -> str:
    return f"{root}{month_code}{str(year)[-1]}"


def commodity_info(symbol: str) -> Dict[str, Any]:
    """Static metadata for a commodity symbol or futures contract code."""
    if symbol in COMMODITY_INFO:
        return dict(COMMODITY_INFO[symbol])
    parsed = parse_contract_code(symbol)
    if parsed and parsed.root in COMMODITY_INFO:
        return dict(COMMODITY_INFO[parsed.root])
    return {"name": symbol, "unit_type": "units"}


def _contract_month_year(position: CommodityPosition, as_of: Optional[date]) -> Optional[ContractCode]:
    if position.contract_month and position.contract_year:
        return ContractCode(position.symbol, position.contract_month.upper(), position.contract_year)
    if position.contract_code:
        return parse_contract_code(position.contract_code, as_of)
    return None


def calculate_commodity_metrics(
    position: CommodityPosition,
    current_price: Optional[float] = None,
    as_of: Optional[date] = None,
) -> CommodityMetrics:
    """
    Notional, cost basis and mark-to-market P/L for a commodity position.

    Notional uses the current price when given, else the entry price; P/L is
    0 without a current price. Expiry fields are only set for futures.
    """
    qty = position.quantity
    mark = current_price if current_price is not None else position.entry_price
    cost_basis = commodity_cost_basis(
        position.mode, qty, position.entry_price, position.effective_multiplier, position.fees
    )

    if position.mode == CommodityMode.SPOT:
        return {
            "mode": position.mode.value,
            "quantity": qty,
            "notional": spot_notional(qty, mark),
            "cost_basis": cost_basis,
            "unrealized_pl": spot_pl(qty, position.entry_price, current_price) if current_price is not None else 0.0,
            "days_to_expiry": None,
            "expiry_date": None,
            "estimated_margin": None,
        }

    multiplier = position.effective_multiplier
    contract = _contract_month_year(position, as_of)
    expiry = expiry_date(contract.month, contract.year) if contract else None
    margin_rate = get_settings().valuation.futures_margin_rate
    return {
        "mode": position.mode.value,
        "quantity": qty,
        "notional": futures_notional(qty, multiplier, mark),
        "cost_basis": cost_basis,
        "unrealized_pl": (
            futures_pl(qty, multiplier, position.entry_price, current_price) if current_price is not None else 0.0
        ),
        "days_to_expiry": days_to_expiry(contract.month, contract.year, as_of) if contract else None,
        "expiry_date": expiry,
        "estimated_margin": estimated_margin(qty, multiplier, mark, margin_rate),
    }
