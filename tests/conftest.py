"""Pytest configuration: ensure src is on path when running tests from repo root."""

import sys
from pathlib import Path

import pytest

_root = Path(__file__).resolve().parents[1]
_src = _root / "src"
if _src.is_dir() and str(_src) not in sys.path:
    sys.path.insert(0, str(_src))

from investment_tracker.config.settings import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch, tmp_path):
    """Each test sees default settings, unaffected by a local .env or config file."""
    monkeypatch.chdir(tmp_path)
    for var in ("EXPRESSION_MAX_LENGTH", "EXPRESSION_MAX_NODES", "EXPRESSION_MAX_DEPTH",
                "VALUATION_DEFAULT_COST_METHOD", "VALUATION_FUTURES_MARGIN_RATE", "LOG_LEVEL", "LOG_FILE"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
