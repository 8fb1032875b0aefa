"""Core API entrypoints for the investment tracker valuation engine.

Turns plain store records (dicts with the store's camelCase keys) into
validated models and runs the engine over them. Callers such as a UI, a
CLI or scripts should go through these functions rather than building
models by hand.
"""

from __future__ import annotations

import logging
from datetime import date
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import TypeAdapter

from .config.settings import Settings, get_settings
from .models.core import HoldingsSummary, PortfolioTotals, PositionMetrics
from .models.instruments import Instrument, Lot, PortfolioPosition, Quote
from .services import instruments, metrics

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_instrument_adapter: TypeAdapter = TypeAdapter(Instrument)


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Install console (and optional rotating file) handlers on the package logger.

    Safe to call more than once; existing handlers are replaced.

    Args:
        settings: Settings to read the level and file from; defaults to get_settings().

    Returns:
        The package logger.
    """
    settings = settings or get_settings()
    logger = logging.getLogger("investment_tracker")
    logger.setLevel(settings.logging.level.upper())
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if settings.logging.file:
        settings.logging.file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(settings.logging.file, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    return logger


def lots_from_records(records: Iterable[Mapping[str, Any]]) -> List[Lot]:
    """Validate lot records from the store.

    Args:
        records: Dicts with id, side, quantity, price, fees, date (or tradeDate), note.

    Returns:
        List of Lot models in input order.

    Raises:
        pydantic.ValidationError: if a record is malformed.
    """
    return [Lot.model_validate(r) for r in records]


def quote_from_record(record: Optional[Mapping[str, Any]]) -> Quote:
    """Build a Quote from a ``{last, prevClose}`` record; None gives an empty quote."""
    if record is None:
        return Quote()
    return Quote.model_validate(record)


def instrument_from_record(record: Mapping[str, Any]) -> Instrument:
    """Validate an instrument record, dispatching on its ``kind`` tag."""
    return _instrument_adapter.validate_python(record)


def compute_position(
    lot_records: Iterable[Mapping[str, Any]],
    quote_record: Optional[Mapping[str, Any]] = None,
    cost_method: Optional[str] = None,
    multiplier: float = 1.0,
) -> PositionMetrics:
    """Metrics for one position straight from store records.

    Args:
        lot_records: The position's lot records.
        quote_record: ``{last, prevClose}`` or None.
        cost_method: "FIFO" or "AVG" (case-insensitive); None uses the configured default.
        multiplier: Contract multiplier.

    Returns:
        PositionMetrics; today_change is per unit.
    """
    return metrics.compute_position_metrics(
        lots_from_records(lot_records),
        quote_from_record(quote_record),
        cost_method,
        multiplier,
    )


def summarize_portfolio(
    positions: Iterable[Mapping[str, Any]],
    cost_method: Optional[str] = None,
) -> PortfolioTotals:
    """Portfolio totals from ``{lots, quote, multiplier}`` records.

    Args:
        positions: One record per position; quote and multiplier are optional.
        cost_method: The portfolio's declared cost method.

    Returns:
        PortfolioTotals; total_today is a currency amount.
    """
    models = [
        PortfolioPosition(
            lots=tuple(lots_from_records(p.get("lots") or [])),
            quote=quote_from_record(p.get("quote")),
            multiplier=p.get("multiplier") or 1.0,
        )
        for p in positions
    ]
    return metrics.compute_portfolio_metrics(models, cost_method)


def value_holdings(
    records: Iterable[Mapping[str, Any]],
    quotes: Optional[Mapping[str, Mapping[str, Any]]] = None,
    as_of: Optional[date] = None,
) -> HoldingsSummary:
    """Value a mixed list of instrument records.

    Args:
        records: Instrument records tagged with ``kind``.
        quotes: Quote records keyed by symbol, CUSIP or custom slug.
        as_of: Valuation date; defaults to today.

    Returns:
        HoldingsSummary with totals overall and per kind.
    """
    parsed_quotes: Dict[str, Quote] = {k: quote_from_record(v) for k, v in (quotes or {}).items()}
    return instruments.summarize_holdings(
        [instrument_from_record(r) for r in records],
        parsed_quotes,
        as_of,
    )
