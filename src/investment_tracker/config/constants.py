"""Global configuration constants for the investment tracker valuation engine.

These values are intentionally free of any UI or storage concerns so they
can be reused by every calculation service and by host applications.
"""

from __future__ import annotations

# --- Bonds ---

# Coupon payments per year by frequency
COUPON_PAYMENTS_PER_YEAR = {
    "zero": 0,
    "annual": 1,
    "semiannual": 2,
    "quarterly": 4,
    "monthly": 12,
}

# Day-count basis (days in a year) by convention
DAY_COUNT_DAYS_IN_YEAR = {
    "ACT/365": 365,
    "ACT/360": 360,
    "30/360": 360,
}

DEFAULT_PAR_VALUE = 1000.0

# --- Commodities ---

# Standard single-letter futures month codes (1 = January)
FUTURES_MONTH_CODES = {
    "F": 1,
    "G": 2,
    "H": 3,
    "J": 4,
    "K": 5,
    "M": 6,
    "N": 7,
    "Q": 8,
    "U": 9,
    "V": 10,
    "X": 11,
    "Z": 12,
}

DEFAULT_FUTURES_MARGIN_RATE = 0.05

# Common commodity symbols and their contract properties
COMMODITY_INFO = {
    "CL": {"name": "Crude Oil WTI", "unit_type": "bbl", "standard_multiplier": 1000, "venue": "NYMEX"},
    "NG": {"name": "Natural Gas", "unit_type": "MMBtu", "standard_multiplier": 10000, "venue": "NYMEX"},
    "GC": {"name": "Gold", "unit_type": "oz", "standard_multiplier": 100, "venue": "COMEX"},
    "SI": {"name": "Silver", "unit_type": "oz", "standard_multiplier": 5000, "venue": "COMEX"},
    "HG": {"name": "Copper", "unit_type": "lb", "standard_multiplier": 25000, "venue": "COMEX"},
    "ZC": {"name": "Corn", "unit_type": "bu", "standard_multiplier": 5000, "venue": "CBOT"},
    "ZS": {"name": "Soybeans", "unit_type": "bu", "standard_multiplier": 5000, "venue": "CBOT"},
    "ZW": {"name": "Wheat", "unit_type": "bu", "standard_multiplier": 5000, "venue": "CBOT"},
    "XAU": {"name": "Gold Spot", "unit_type": "oz"},
    "XAG": {"name": "Silver Spot", "unit_type": "oz"},
    "WTI": {"name": "WTI Crude Spot", "unit_type": "bbl"},
    "BRENT": {"name": "Brent Crude Spot", "unit_type": "bbl"},
}

# --- Cash ---

# Compounding periods per year; "none" is simple interest credited yearly
COMPOUNDING_PERIODS_PER_YEAR = {
    "daily": 365,
    "monthly": 12,
    "quarterly": 4,
    "none": 1,
}

# Currency metadata keyed by ISO 4217 code
CURRENCY_INFO = {
    "USD": {"name": "US Dollar", "symbol": "$", "decimals": 2},
    "EUR": {"name": "Euro", "symbol": "€", "decimals": 2},
    "GBP": {"name": "British Pound", "symbol": "£", "decimals": 2},
    "JPY": {"name": "Japanese Yen", "symbol": "¥", "decimals": 0},
    "CHF": {"name": "Swiss Franc", "symbol": "CHF", "decimals": 2},
    "CAD": {"name": "Canadian Dollar", "symbol": "C$", "decimals": 2},
    "AUD": {"name": "Australian Dollar", "symbol": "A$", "decimals": 2},
    "CNY": {"name": "Chinese Yuan", "symbol": "¥", "decimals": 2},
    "INR": {"name": "Indian Rupee", "symbol": "₹", "decimals": 2},
    "KRW": {"name": "South Korean Won", "symbol": "₩", "decimals": 0},
    "BRL": {"name": "Brazilian Real", "symbol": "R$", "decimals": 2},
    "MXN": {"name": "Mexican Peso", "symbol": "$", "decimals": 2},
}

# --- Custom instruments ---

# Variables a custom P/L expression may reference
EXPRESSION_VARIABLES = ("quantity", "avgCost", "mark", "multiplier", "feesTotal")

# Sample bindings used to try out an expression before saving it
SAMPLE_EXPRESSION_VARIABLES = {
    "quantity": 100.0,
    "avgCost": 50.0,
    "mark": 55.0,
    "multiplier": 1.0,
    "feesTotal": 10.0,
}

# Evaluator ceilings (overridable through settings)
DEFAULT_EXPRESSION_MAX_LENGTH = 500
DEFAULT_EXPRESSION_MAX_NODES = 200
DEFAULT_EXPRESSION_MAX_DEPTH = 32

# External price adapters a custom instrument may name
PRICE_ADAPTERS = {
    "polygon": {"name": "Polygon.io", "description": "Stocks, options, forex, crypto", "symbol_example": "AAPL"},
    "alpha": {"name": "Alpha Vantage", "description": "Stocks, forex, commodities", "symbol_example": "MSFT"},
    "coingecko": {"name": "CoinGecko", "description": "Cryptocurrencies", "symbol_example": "bitcoin"},
    "custom": {"name": "Custom API", "description": "Your own price feed", "symbol_example": "api.example.com/price"},
}

# --- Positions ---

# Accepted spellings of the two realized-P/L policies
COST_METHOD_ALIASES = {
    "fifo": "FIFO",
    "avg": "AVG",
    "average": "AVG",
    "weighted_average": "AVG",
    "weightedaverage": "AVG",
}

DEFAULT_OPTION_MULTIPLIER = 100.0
