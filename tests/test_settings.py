"""Tests for runtime settings loading."""

import pytest
from pydantic import ValidationError

from investment_tracker.config.settings import (
    ExpressionSettings,
    Settings,
    ValuationSettings,
    get_settings,
    load_settings,
)
from investment_tracker.models.instruments import CostMethod


def test_defaults() -> None:
    s = Settings()
    assert s.expression.max_length == 500
    assert s.valuation.default_cost_method == CostMethod.FIFO
    assert s.valuation.futures_margin_rate == 0.05
    assert s.logging.level == "WARNING"
    assert s.logging.file is None


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("EXPRESSION_MAX_NODES", "50")
    monkeypatch.setenv("VALUATION_DEFAULT_COST_METHOD", "avg")
    s = Settings()
    assert s.expression.max_nodes == 50
    assert s.valuation.default_cost_method == CostMethod.AVG


def test_yaml_with_env_precedence(monkeypatch, tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "expression:\n  max_length: 120\n  max_depth: 8\n"
        "valuation:\n  default_cost_method: AVG\n"
        "logging:\n  level: INFO\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("EXPRESSION_MAX_DEPTH", "4")
    s = load_settings(path)
    assert s.expression.max_length == 120
    assert s.expression.max_depth == 4
    assert s.valuation.default_cost_method == CostMethod.AVG
    assert s.logging.level == "INFO"


def test_missing_yaml_gives_defaults(tmp_path) -> None:
    assert load_settings(tmp_path / "absent.yaml").expression.max_depth == 32


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()


def test_out_of_range_values_rejected() -> None:
    with pytest.raises(ValidationError):
        ExpressionSettings(max_nodes=0)
    with pytest.raises(ValidationError):
        ValuationSettings(futures_margin_rate=1.5)
