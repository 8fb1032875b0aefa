"""Tests for position metrics and portfolio aggregation."""

import logging
from datetime import date

import pytest

from investment_tracker.models.instruments import AllocationEntry, CostMethod, Lot, PortfolioPosition, Quote
from investment_tracker.services.metrics import (
    calculate_diversification_metrics,
    compute_all_position_metrics,
    compute_lot_metrics,
    compute_portfolio_metrics,
    compute_position_metrics,
    resolve_cost_method,
    resolve_last_price,
)


def _lot(side: str, qty: float, price: float, d: str, fees: float = 0.0) -> Lot:
    return Lot(side=side, quantity=qty, price=price, trade_date=date.fromisoformat(d), fees=fees)


LOTS = [
    _lot("buy", 10, 100, "2024-01-02", fees=1.0),
    _lot("buy", 10, 120, "2024-02-01", fees=1.0),
    _lot("sell", 5, 130, "2024-03-01", fees=1.0),
]


def test_compute_position_metrics_empty() -> None:
    """No lots and no quote return zeroed metrics."""
    m = compute_position_metrics([])
    assert m["quantity"] == 0.0
    assert m["avg_cost"] == 0.0
    assert m["realized_pl"] == 0.0
    assert m["unrealized_pl"] == 0.0
    assert m["today_change"] == 0.0
    assert m["market_value"] == 0.0
    assert m["fees_total"] == 0.0


def test_last_price_fallback_chain() -> None:
    """last, then prev close, then 0."""
    assert resolve_last_price(Quote(last=10.0, prev_close=9.0)) == 10.0
    assert resolve_last_price(Quote(prev_close=9.0)) == 9.0
    assert resolve_last_price(Quote()) == 0.0
    assert resolve_last_price(None) == 0.0


def test_today_change_is_per_unit_times_multiplier() -> None:
    """today_change is not scaled by quantity."""
    m = compute_position_metrics(LOTS, Quote(last=125.0, prev_close=121.0), multiplier=100)
    assert m["today_change"] == pytest.approx(400.0)


def test_today_change_zero_without_prev_close() -> None:
    m = compute_position_metrics(LOTS, Quote(last=125.0))
    assert m["today_change"] == 0.0


def test_unrealized_uses_blended_average() -> None:
    """Unrealized P/L marks open quantity against the blended avg cost."""
    m = compute_position_metrics(LOTS, Quote(last=125.0, prev_close=121.0))
    assert m["quantity"] == 15.0
    assert m["unrealized_pl"] == pytest.approx((125.0 - 1550 / 15) * 15)
    assert m["market_value"] == pytest.approx(125.0 * 15)
    assert m["cost_basis"] == pytest.approx(1550.0)
    assert m["fees_total"] == pytest.approx(3.0)


@pytest.mark.parametrize(
    "method, expected",
    [(CostMethod.FIFO, 150.0), (CostMethod.AVG, 100.0), ("fifo", 150.0), ("average", 100.0)],
)
def test_realized_by_cost_method(method, expected) -> None:
    """Realized P/L follows the selected policy; fees are not deducted."""
    m = compute_position_metrics(LOTS, Quote(last=125.0), method)
    assert m["realized_pl"] == expected


def test_realized_scaled_by_multiplier() -> None:
    m = compute_position_metrics(LOTS, Quote(last=125.0), CostMethod.FIFO, multiplier=100)
    assert m["realized_pl"] == pytest.approx(15000.0)


def test_resolve_cost_method_unknown_falls_back(caplog) -> None:
    """Unknown method strings fall back to the configured default with a warning."""
    with caplog.at_level(logging.WARNING, logger="investment_tracker.services.metrics"):
        assert resolve_cost_method("lifo") == CostMethod.FIFO
    assert "Unknown cost method" in caplog.text
    assert resolve_cost_method(None) == CostMethod.FIFO


def test_resolve_cost_method_honours_env_default(monkeypatch) -> None:
    from investment_tracker.config.settings import get_settings

    monkeypatch.setenv("VALUATION_DEFAULT_COST_METHOD", "avg")
    get_settings.cache_clear()
    assert resolve_cost_method(None) == CostMethod.AVG


def test_portfolio_totals_scale_today_by_quantity() -> None:
    """total_today is per-unit change times quantity, summed."""
    positions = [
        PortfolioPosition(lots=tuple(LOTS), quote=Quote(last=125.0, prev_close=121.0)),
        PortfolioPosition(
            lots=(_lot("buy", 2, 50, "2024-01-05"),),
            quote=Quote(last=48.0, prev_close=50.0),
        ),
    ]
    totals = compute_portfolio_metrics(positions, CostMethod.FIFO)
    assert totals["total_today"] == pytest.approx(4.0 * 15 + (-2.0) * 2)
    assert totals["total_realized"] == pytest.approx(150.0)
    assert totals["total_unrealized"] == pytest.approx((125.0 - 1550 / 15) * 15 + (48.0 - 50.0) * 2)
    assert totals["position_count"] == 2


def test_portfolio_empty() -> None:
    totals = compute_portfolio_metrics([], "AVG")
    assert totals["total_unrealized"] == 0.0
    assert totals["total_realized"] == 0.0
    assert totals["total_today"] == 0.0
    assert totals["position_count"] == 0


def test_all_position_metrics_in_input_order() -> None:
    positions = [
        PortfolioPosition(lots=(_lot("buy", 1, 10, "2024-01-01"),), quote=Quote(last=11.0)),
        PortfolioPosition(lots=(_lot("buy", 3, 20, "2024-01-01"),), quote=Quote(last=19.0)),
    ]
    out = compute_all_position_metrics(positions)
    assert [m["quantity"] for m in out] == [1.0, 3.0]


def test_lot_metrics_include_fees() -> None:
    m = compute_lot_metrics(Lot(id="1", quantity=100, price=50, fees=10, trade_date=date(2024, 1, 1)), 60)
    assert m["cost_basis"] == 5010
    assert m["current_value"] == 6000
    assert m["unrealized_pl"] == 990
    assert m["unrealized_pl_pct"] == pytest.approx(19.76, abs=0.01)
    assert m["trade_date"] == date(2024, 1, 1)


def test_lot_metrics_without_fees_or_cost() -> None:
    assert compute_lot_metrics(_lot("buy", 50, 100, "2024-01-01"), 110)["unrealized_pl_pct"] == pytest.approx(10.0)
    assert compute_lot_metrics(_lot("buy", 5, 0, "2024-01-01"), 3)["unrealized_pl_pct"] == 0.0


def test_diversification_metrics() -> None:
    entries = [
        AllocationEntry(symbol="AAPL", value=6000, sector="Technology", asset_class="equity"),
        AllocationEntry(symbol="MSFT", value=2000, sector="Technology", asset_class="equity"),
        AllocationEntry(symbol="TLT", value=2000, assetClass="bond"),
    ]
    d = calculate_diversification_metrics(entries)
    assert d["concentration"][0] == ("AAPL", pytest.approx(60.0))
    assert [s for s, _ in d["concentration"]] == ["AAPL", "MSFT", "TLT"]
    assert d["sector_allocation"] == {"Technology": pytest.approx(80.0), "Unknown": pytest.approx(20.0)}
    assert d["asset_class_allocation"] == {"equity": pytest.approx(80.0), "bond": pytest.approx(20.0)}
    assert d["herfindahl_index"] == pytest.approx(3600 + 400 + 400)


def test_diversification_single_holding_and_empty() -> None:
    single = calculate_diversification_metrics([AllocationEntry(symbol="X", value=5)])
    assert single["herfindahl_index"] == pytest.approx(10000)
    empty = calculate_diversification_metrics([])
    assert empty["concentration"] == []
    assert empty["herfindahl_index"] == 0.0
