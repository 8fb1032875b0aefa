"""Tests for app core API (record conversion and record-level entrypoints)."""

import logging
from datetime import date
from logging.handlers import RotatingFileHandler

import pytest
from pydantic import ValidationError

from investment_tracker.app import (
    compute_position,
    configure_logging,
    instrument_from_record,
    lots_from_records,
    quote_from_record,
    summarize_portfolio,
    value_holdings,
)
from investment_tracker.config.settings import LoggingSettings, Settings
from investment_tracker.models.instruments import BondTerms, CashAccount, LotSide

LOT_RECORDS = [
    {"id": "lot-1", "side": "buy", "quantity": 10, "price": 100, "date": "2024-01-02T15:04:05.000Z"},
    {"id": "lot-2", "side": "buy", "quantity": 10, "price": 120, "date": "2024-02-01T15:04:05.000Z"},
    {"id": "lot-3", "side": "sell", "quantity": 5, "price": 130, "date": "2024-03-01T15:04:05.000Z"},
]


def test_lots_from_store_records() -> None:
    """Store timestamps are reduced to their trade date."""
    lots = lots_from_records(LOT_RECORDS)
    assert [lot.id for lot in lots] == ["lot-1", "lot-2", "lot-3"]
    assert lots[0].trade_date == date(2024, 1, 2)
    assert lots[2].side == LotSide.SELL
    assert lots[2].signed_quantity == -5


def test_lots_reject_malformed_records() -> None:
    """Wrong-shape records fail fast."""
    with pytest.raises(ValidationError):
        lots_from_records([{"side": "buy", "quantity": -1, "price": 10, "date": "2024-01-01"}])
    with pytest.raises(ValidationError):
        lots_from_records([{"side": "hold", "quantity": 1, "price": 10, "date": "2024-01-01"}])


def test_quote_from_record() -> None:
    q = quote_from_record({"last": None, "prevClose": 99.5})
    assert q.last is None
    assert q.prev_close == 99.5
    assert quote_from_record(None).last is None


def test_compute_position_from_records() -> None:
    m = compute_position(LOT_RECORDS, {"last": 125.0, "prevClose": 121.0}, "avg")
    assert m["realized_pl"] == 100.0
    assert m["today_change"] == pytest.approx(4.0)


def test_summarize_portfolio_from_records() -> None:
    totals = summarize_portfolio(
        [
            {"lots": LOT_RECORDS, "quote": {"last": 125.0, "prevClose": 121.0}},
            {"lots": [], "quote": None},
        ],
        "FIFO",
    )
    assert totals["total_realized"] == 150.0
    assert totals["total_today"] == pytest.approx(60.0)
    assert totals["position_count"] == 2


def test_instrument_from_record_dispatches_on_kind() -> None:
    bond = instrument_from_record(
        {"kind": "bond", "couponRate": 5, "frequency": "semiannual", "maturity": "2030-06-15"}
    )
    assert isinstance(bond, BondTerms)
    cash = instrument_from_record({"kind": "cash", "amount": 100, "apyPct": 4.0})
    assert isinstance(cash, CashAccount)
    with pytest.raises(ValidationError):
        instrument_from_record({"kind": "timeshare"})


def test_value_holdings_from_records() -> None:
    summary = value_holdings(
        [
            {"kind": "stock", "symbol": "SPY", "lots": [{"quantity": 2, "price": 500, "date": "2024-01-02"}]},
            {"kind": "cash", "amount": 1000},
        ],
        {"SPY": {"last": 510.0, "prevClose": 505.0}},
        date(2024, 6, 1),
    )
    assert summary["total_market_value"] == pytest.approx(2020.0)
    assert summary["total_unrealized"] == pytest.approx(20.0)
    assert set(summary["by_kind"]) == {"stock", "cash"}


def test_configure_logging_console_and_file(tmp_path) -> None:
    log_file = tmp_path / "logs" / "engine.log"
    settings = Settings(logging=LoggingSettings(level="debug", file=log_file))
    logger = configure_logging(settings)
    try:
        assert logger.level == logging.DEBUG
        assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
        logging.getLogger("investment_tracker.services.metrics").debug("hello")
        for h in logger.handlers:
            h.flush()
        assert "| DEBUG    | investment_tracker.services.metrics | hello" in log_file.read_text()

        # Reconfiguring replaces handlers rather than stacking them
        configure_logging(Settings())
        assert len(logger.handlers) == 1
    finally:
        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()
        logger.setLevel(logging.NOTSET)
