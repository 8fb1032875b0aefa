"""Tests for splits, dividends and option expiry."""

import random
from datetime import date

import pytest

from investment_tracker.models.instruments import Dividend, Lot
from investment_tracker.services.corporate_actions import (
    apply_split,
    dividend_yield_pct,
    option_breakeven,
    option_expiration_pl,
    trailing_12m_dividend_per_share,
)


def test_two_for_one_split() -> None:
    """2:1 doubles quantity and halves price."""
    lots = [Lot(quantity=10, price=100, trade_date=date(2024, 1, 2))]
    out = apply_split(lots, 2, 1)
    assert out[0].quantity == 20
    assert out[0].price == 50
    assert out[0].id == lots[0].id
    assert lots[0].quantity == 10


@pytest.mark.parametrize("seed", range(20))
def test_split_preserves_lot_cost(seed: int) -> None:
    """quantity * price per lot survives any positive ratio."""
    rng = random.Random(seed)
    lots = [
        Lot(quantity=rng.uniform(0.1, 500), price=rng.uniform(0.01, 2000), trade_date=date(2024, 1, 2))
        for _ in range(rng.randint(1, 10))
    ]
    num, den = rng.randint(1, 20), rng.randint(1, 20)
    for before, after in zip(lots, apply_split(lots, num, den)):
        assert after.quantity * after.price == pytest.approx(before.quantity * before.price)


def test_trailing_dividends_use_pay_date_then_ex_date() -> None:
    as_of = date(2024, 12, 31)
    dividends = [
        Dividend(ex_date=date(2023, 12, 1), pay_date=date(2024, 1, 15), amount_per_share=0.5),
        Dividend(ex_date=date(2024, 6, 1), amount_per_share=0.5),
        Dividend(ex_date=date(2023, 6, 1), pay_date=date(2023, 6, 20), amount_per_share=9.0),
    ]
    assert trailing_12m_dividend_per_share(dividends, as_of) == pytest.approx(1.0)
    assert dividend_yield_pct(dividends, as_of, 50.0) == pytest.approx(2.0)


def test_dividend_yield_zero_price() -> None:
    assert dividend_yield_pct([], date(2024, 1, 1), 0.0) == 0.0


def test_option_expiration_long_and_short() -> None:
    """Long loses remaining cost, short keeps remaining premium."""
    lots = [Lot(quantity=2, price=3.5, trade_date=date(2024, 1, 2))]
    assert option_expiration_pl(lots, True) == pytest.approx(-7.0)
    assert option_expiration_pl(lots, False) == pytest.approx(7.0)
    assert option_expiration_pl([], True) == 0.0


def test_long_call_breakeven() -> None:
    b = option_breakeven("call", "buy", 100, 5, 1, 100)
    assert b["breakeven"] == 105
    assert b["max_profit"] is None
    assert b["max_loss"] == pytest.approx(500.0)
    assert b["time_value"] == 5


def test_long_put_breakeven() -> None:
    b = option_breakeven("put", "buy", 100, 8, 2, 100)
    assert b["breakeven"] == 92
    assert b["max_profit"] == pytest.approx(18400.0)
    assert b["max_loss"] == pytest.approx(1600.0)


def test_short_call_loss_is_unlimited() -> None:
    b = option_breakeven("call", "sell", 110, 3, 1, 100)
    assert b["breakeven"] == 113
    assert b["max_profit"] == pytest.approx(300.0)
    assert b["max_loss"] is None


def test_short_put_breakeven() -> None:
    b = option_breakeven("put", "sell", 90, 4, 1, 100)
    assert b["breakeven"] == 86
    assert b["max_profit"] == pytest.approx(400.0)
    assert b["max_loss"] == pytest.approx(8600.0)


def test_intrinsic_and_time_value_from_underlying() -> None:
    """An in-the-money call splits its premium into intrinsic and time value."""
    b = option_breakeven("call", "buy", 100, 7, underlying_price=105)
    assert b["intrinsic_value"] == pytest.approx(5.0)
    assert b["time_value"] == pytest.approx(2.0)
    out_of_money = option_breakeven("put", "buy", 100, 3, underlying_price=110)
    assert out_of_money["intrinsic_value"] == 0.0
    assert out_of_money["time_value"] == pytest.approx(3.0)
