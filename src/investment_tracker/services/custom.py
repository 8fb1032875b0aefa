"""User-defined instruments: cost basis, standard or formula P/L, income projection."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Sequence, Union

from investment_tracker.config.constants import SAMPLE_EXPRESSION_VARIABLES
from investment_tracker.models.core import CustomMetrics, ExpressionResult
from investment_tracker.models.instruments import (
    CustomAverage,
    CustomDefinition,
    CustomLot,
    CustomState,
    EntryMode,
    IncomeConfig,
)
from investment_tracker.services.expression import ExpressionError, evaluate_expression

logger = logging.getLogger(__name__)


def cost_basis_from_lots(lots: Iterable[CustomLot]) -> float:
    return sum(lot.quantity * lot.unit_cost + lot.fees for lot in lots)


def cost_basis_from_average(average: CustomAverage) -> float:
    return average.total_quantity * average.avg_unit_cost + average.total_fees


def total_quantity_from_lots(lots: Iterable[CustomLot]) -> float:
    return sum(lot.quantity for lot in lots)


def total_fees_from_lots(lots: Iterable[CustomLot]) -> float:
    return sum(lot.fees for lot in lots)


def weighted_average_cost(
    entry_mode: Union[EntryMode, str],
    lots: Optional[Sequence[CustomLot]] = None,
    average: Optional[CustomAverage] = None,
) -> float:
    """Per-unit cost excluding fees; 0 when there is nothing to average."""
    mode = EntryMode(entry_mode)
    if mode == EntryMode.LOTS and lots:
        qty = total_quantity_from_lots(lots)
        if qty <= 0:
            return 0.0
        return sum(lot.quantity * lot.unit_cost for lot in lots) / qty
    if mode == EntryMode.AVERAGE and average is not None:
        return average.avg_unit_cost
    return 0.0


def notional(quantity: float, mark_price: float, multiplier: float = 1.0) -> float:
    return quantity * mark_price * multiplier


def standard_pl(
    quantity: float,
    avg_cost: float,
    mark_price: float,
    multiplier: float = 1.0,
    fees_total: float = 0.0,
) -> float:
    return (mark_price - avg_cost) * quantity * multiplier - fees_total


def evaluate_custom_expression(expression: str, variables: Mapping[str, float]) -> ExpressionResult:
    """
    Evaluate a user P/L formula against the bound variables.

    Never raises for bad user input: a parse failure, a limit breach or a
    non-finite result comes back as ``{"result": 0.0, "error": message}``.
    """
    try:
        result = evaluate_expression(expression, variables)
    except ExpressionError as e:
        logger.warning("Rejected custom P/L expression %r: %s", expression, e)
        return {"result": 0.0, "error": str(e)}
    return {"result": result, "error": None}


def try_expression(expression: str) -> ExpressionResult:
    """Dry-run a formula against fixed sample bindings."""
    return evaluate_custom_expression(expression, SAMPLE_EXPRESSION_VARIABLES)


def calculate_custom_income(
    income: Optional[IncomeConfig],
    total_quantity: float,
    avg_cost: float,
    period: str = "annual",
) -> float:
    """
    Projected income for one period.

    ``apy`` pays value% a year on quantity * avg cost; ``fixed`` is a flat
    amount per period.
    """
    if income is None or income.kind == "none":
        return 0.0
    if income.kind == "apy":
        annual = total_quantity * avg_cost * (income.value / 100.0)
        return annual / 12.0 if period == "monthly" else annual
    if income.kind == "fixed":
        return income.value
    return 0.0


def calculate_custom_metrics(definition: CustomDefinition, state: CustomState) -> CustomMetrics:
    multiplier = definition.multiplier
    mark = state.mark_price

    if definition.entry_mode == EntryMode.LOTS and state.lots:
        qty = total_quantity_from_lots(state.lots)
        cost_basis = cost_basis_from_lots(state.lots)
        fees = total_fees_from_lots(state.lots)
        avg_cost = weighted_average_cost(EntryMode.LOTS, lots=state.lots)
    elif definition.entry_mode == EntryMode.AVERAGE and state.average is not None:
        qty = state.average.total_quantity
        cost_basis = cost_basis_from_average(state.average)
        fees = state.average.total_fees
        avg_cost = state.average.avg_unit_cost
    else:
        qty, cost_basis, fees, avg_cost = 0.0, 0.0, 0.0, 0.0

    pl_error: Optional[str] = None
    if definition.pl_model.type == "expression" and definition.pl_model.expression:
        outcome = evaluate_custom_expression(
            definition.pl_model.expression,
            {
                "quantity": qty,
                "avgCost": avg_cost,
                "mark": mark,
                "multiplier": multiplier,
                "feesTotal": fees,
            },
        )
        unrealized = outcome["result"]
        pl_error = outcome["error"]
    else:
        unrealized = standard_pl(qty, avg_cost, mark, multiplier, fees)

    return {
        "total_quantity": qty,
        "cost_basis": cost_basis,
        "avg_cost": avg_cost,
        "notional": notional(qty, mark, multiplier),
        "unrealized_pl": unrealized,
        "fees_total": fees,
        "pl_error": pl_error,
        "annual_income": calculate_custom_income(state.income, qty, avg_cost),
    }


def format_quantity(quantity: float, precision: int = 2) -> str:
    return f"{quantity:.{precision}f}"


def validate_slug(slug: Optional[str], existing_slugs: Iterable[str] = ()) -> bool:
    """True when slug is empty or not already taken (case-insensitive)."""
    if not slug:
        return True
    return slug.lower() not in {s.lower() for s in existing_slugs}
