"""Cost basis and realized P/L over a position's lots (pure functions)."""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, List, Tuple

from investment_tracker.models.instruments import Lot, LotSide

# Remainders below this are treated as fully consumed
_QTY_EPSILON = 1e-12


def sort_lots(lots: Iterable[Lot]) -> List[Lot]:
    """Return lots ordered by trade date; same-day lots keep their given order."""
    return sorted(lots, key=lambda lot: lot.trade_date)


def compute_weighted_average_cost(lots: Iterable[Lot]) -> Tuple[float, float]:
    """
    Blended weighted-average cost over all lots.

    Buys count positive, sells negative, so a sell lowers the quantity and
    also backs its own price out of the weighted sum rather than depleting
    the cost of the lots it closed. This is a known simplification and is
    kept as-is.

    Returns:
        Tuple of (open_quantity, avg_cost). avg_cost is 0 when nothing is open.
    """
    open_qty = 0.0
    weighted = 0.0
    for lot in lots:
        signed = lot.signed_quantity
        open_qty += signed
        weighted += signed * lot.price
    avg_cost = weighted / open_qty if open_qty > 0 else 0.0
    return open_qty, avg_cost


def total_fees(lots: Iterable[Lot]) -> float:
    return sum(lot.fees for lot in lots)


def calculate_realized_pl_fifo(lots: Iterable[Lot]) -> float:
    """
    Realized P/L matching each sell against the oldest open buy quantity first.

    Sell quantity beyond what is open is ignored.
    """
    open_buys: Deque[List[float]] = deque()  # [remaining_qty, price]
    realized = 0.0
    for lot in sort_lots(lots):
        if lot.side == LotSide.BUY:
            open_buys.append([lot.quantity, lot.price])
            continue
        sell_qty = lot.quantity
        while sell_qty > _QTY_EPSILON and open_buys:
            buy = open_buys[0]
            used = min(buy[0], sell_qty)
            realized += used * (lot.price - buy[1])
            buy[0] -= used
            sell_qty -= used
            if buy[0] <= _QTY_EPSILON:
                open_buys.popleft()
    return realized


def calculate_realized_pl_average(lots: Iterable[Lot]) -> float:
    """
    Realized P/L against the running average cost of buys.

    Each sell realizes ``quantity * (price - running_avg)`` and then removes
    ``quantity * running_avg`` from the running cost, so the average is stable
    through sells. Sell quantity beyond what is open is ignored, so a sell
    while nothing is open is skipped.
    """
    total_qty = 0.0
    total_cost = 0.0
    realized = 0.0
    for lot in sort_lots(lots):
        if lot.side == LotSide.BUY:
            total_qty += lot.quantity
            total_cost += lot.quantity * lot.price
            continue
        if total_qty <= _QTY_EPSILON:
            continue
        avg = total_cost / total_qty
        close_qty = min(total_qty, lot.quantity)
        realized += close_qty * (lot.price - avg)
        total_qty -= close_qty
        total_cost = avg * total_qty
    return realized
