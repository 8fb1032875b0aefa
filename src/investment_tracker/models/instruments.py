"""Immutable input records consumed by the valuation engine.

Every record accepts snake_case field names as well as the camelCase keys the
store layer persists (``prevClose``, ``cleanPricePct``, ``apyPct``...). Field
constraints fail fast at construction; the calculation services assume
well-formed records and never re-validate them.
"""

from __future__ import annotations

import re
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from investment_tracker.config.constants import DEFAULT_OPTION_MULTIPLIER, DEFAULT_PAR_VALUE, PRICE_ADAPTERS

_SLUG_RE = re.compile(r"^[a-z0-9-]*$")


def _date_part(v):
    """Store timestamps such as ``2024-01-15T09:30:00.000Z`` keep only their date."""
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, str) and "T" in v:
        return v.split("T", 1)[0]
    return v


class EngineModel(BaseModel):
    """Frozen base model shared by every engine input."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class LotSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class CostMethod(str, Enum):
    FIFO = "FIFO"
    AVG = "AVG"


class EntryMode(str, Enum):
    LOTS = "lots"
    AVERAGE = "average"


class CouponFrequency(str, Enum):
    ZERO = "zero"
    ANNUAL = "annual"
    SEMIANNUAL = "semiannual"
    QUARTERLY = "quarterly"
    MONTHLY = "monthly"


class DayCount(str, Enum):
    ACT_365 = "ACT/365"
    ACT_360 = "ACT/360"
    THIRTY_360 = "30/360"


class CommodityMode(str, Enum):
    SPOT = "spot"
    FUTURES = "futures"


class Compounding(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    NONE = "none"


# --- Positions ---


class Lot(EngineModel):
    """One buy or sell transaction. Quantity is always positive; ``side`` carries direction."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    side: LotSide = LotSide.BUY
    quantity: float = Field(gt=0)
    price: float = Field(ge=0)
    fees: float = Field(default=0.0, ge=0)
    trade_date: date = Field(validation_alias=AliasChoices("trade_date", "tradeDate", "date"))
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator("trade_date", mode="before")
    @classmethod
    def _trade_date_part(cls, v):
        return _date_part(v)

    @property
    def signed_quantity(self) -> float:
        return self.quantity if self.side == LotSide.BUY else -self.quantity


class Quote(EngineModel):
    """Transient market data; either price may be missing."""

    last: Optional[float] = None
    prev_close: Optional[float] = None


class PortfolioPosition(EngineModel):
    """One position's lots and quote as handed to the portfolio aggregator."""

    lots: Tuple[Lot, ...] = ()
    quote: Quote = Field(default_factory=Quote)
    multiplier: float = Field(default=1.0, gt=0)


class AllocationEntry(EngineModel):
    """A position's current value with its optional sector and asset-class tags."""

    symbol: str
    value: float = Field(ge=0)
    sector: Optional[str] = None
    asset_class: Optional[str] = None


class Dividend(EngineModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    ex_date: date
    pay_date: Optional[date] = None
    amount_per_share: float = Field(ge=0)
    currency: str = "USD"


class SecurityHolding(EngineModel):
    """Lot-based listed holding (stock, ETF, crypto)."""

    kind: Literal["stock", "etf", "crypto"] = "stock"
    symbol: str
    lots: Tuple[Lot, ...] = ()
    multiplier: float = Field(default=1.0, gt=0)
    currency: str = "USD"


class OptionHolding(EngineModel):
    """Lot-based option contract; price is the premium per underlying unit."""

    kind: Literal["option"] = "option"
    symbol: str
    lots: Tuple[Lot, ...] = ()
    multiplier: float = Field(default=DEFAULT_OPTION_MULTIPLIER, gt=0)
    strike: Optional[float] = Field(default=None, gt=0)
    expiration: Optional[date] = None
    right: Optional[Literal["call", "put"]] = None
    currency: str = "USD"


# --- Bonds ---


class BondLot(EngineModel):
    trade_date: date
    settlement_date: Optional[date] = None
    quantity: float = Field(gt=0, validation_alias=AliasChoices("quantity", "quantityBonds"))
    clean_price_pct: float = Field(gt=0)
    fees: float = Field(default=0.0, ge=0)


class BondAverage(EngineModel):
    avg_clean_price_pct: float = Field(gt=0)
    total_quantity: float = Field(gt=0, validation_alias=AliasChoices("total_quantity", "totalQuantityBonds"))
    total_fees: float = Field(default=0.0, ge=0)


class BondTerms(EngineModel):
    kind: Literal["bond"] = "bond"
    issuer: str = ""
    category: Optional[Literal["treasury", "sovereign", "corporate", "municipal"]] = None
    cusip: Optional[str] = None
    coupon_rate: float = Field(ge=0)
    frequency: CouponFrequency
    day_count: DayCount = DayCount.ACT_365
    maturity: date
    par_value: float = Field(
        default=DEFAULT_PAR_VALUE, gt=0, validation_alias=AliasChoices("par_value", "parValue", "parPerBond")
    )
    entry_mode: EntryMode = EntryMode.LOTS
    lots: Tuple[BondLot, ...] = ()
    average: Optional[BondAverage] = None
    mark_clean_price_pct: Optional[float] = Field(default=None, gt=0)
    currency: str = "USD"


# --- Commodities ---


class CommodityPosition(EngineModel):
    """Spot holding or futures position; the mode decides which fields apply."""

    kind: Literal["commodity"] = "commodity"
    mode: CommodityMode
    symbol: str
    venue: Optional[str] = None
    entry_date: Optional[date] = None
    entry_price: float = Field(
        gt=0,
        validation_alias=AliasChoices(
            "entry_price", "entryPrice", "entryPricePerUnit", "entryPricePerUnitFut"
        ),
    )
    fees: float = Field(default=0.0, ge=0)
    currency: str = "USD"
    # spot
    units: Optional[float] = Field(default=None, gt=0)
    unit_type: Optional[str] = None
    # futures
    contract_code: Optional[str] = None
    contract_month: Optional[str] = Field(default=None, min_length=1, max_length=1)
    contract_year: Optional[int] = None
    contracts: Optional[float] = Field(default=None, gt=0)
    multiplier: Optional[float] = Field(default=None, gt=0)
    tick_size: Optional[float] = Field(default=None, gt=0)
    tick_value: Optional[float] = Field(default=None, gt=0)
    margin_posted: Optional[float] = Field(default=None, ge=0)
    target_price: Optional[float] = Field(default=None, gt=0)
    stop_price: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _check_mode_fields(self) -> "CommodityPosition":
        if self.mode == CommodityMode.SPOT and self.units is None:
            raise ValueError("Spot commodities require units")
        if self.mode == CommodityMode.FUTURES and (self.contracts is None or self.multiplier is None):
            raise ValueError("Futures require contracts and multiplier")
        return self

    @property
    def quantity(self) -> float:
        """Units for spot, contracts for futures."""
        if self.mode == CommodityMode.SPOT:
            return self.units or 0.0
        return self.contracts or 0.0

    @property
    def effective_multiplier(self) -> float:
        if self.mode == CommodityMode.SPOT:
            return 1.0
        return self.multiplier or 1.0


# --- Real estate ---


class Acquisition(EngineModel):
    purchase_date: date
    purchase_price: float = Field(gt=0)
    closing_costs: float = Field(default=0.0, ge=0)
    improvements: float = Field(
        default=0.0, ge=0, validation_alias=AliasChoices("improvements", "improvementsToDate")
    )


class Financing(EngineModel):
    has_mortgage: bool = False
    principal: Optional[float] = Field(default=None, gt=0)
    interest_rate_pct: Optional[float] = Field(default=None, ge=0)
    term_months: Optional[int] = Field(default=None, gt=0)
    monthly_payment: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _check_mortgage(self) -> "Financing":
        if self.has_mortgage and (self.principal is None or self.interest_rate_pct is None):
            raise ValueError("Mortgage requires principal and interest rate")
        return self


class RentalIncome(EngineModel):
    monthly_rent: float = Field(default=0.0, ge=0)
    other_monthly_income: float = Field(default=0.0, ge=0)

    @property
    def monthly_total(self) -> float:
        return self.monthly_rent + self.other_monthly_income


class OperatingExpenses(EngineModel):
    """Monthly operating expenses."""

    maintenance: float = Field(default=0.0, ge=0)
    taxes: float = Field(default=0.0, ge=0)
    insurance: float = Field(default=0.0, ge=0)
    management: float = Field(default=0.0, ge=0)

    @property
    def monthly_total(self) -> float:
        return self.maintenance + self.taxes + self.insurance + self.management


class PropertyValuation(EngineModel):
    current_value: float = Field(gt=0)
    valuation_date: date


class RealEstateProperty(EngineModel):
    kind: Literal["real_estate"] = "real_estate"
    label: str = ""
    property_type: Optional[Literal["residential", "commercial", "land", "mixed"]] = None
    currency: str = "USD"
    acquisition: Acquisition
    financing: Optional[Financing] = None
    income: Optional[RentalIncome] = None
    expenses: Optional[OperatingExpenses] = None
    valuation: PropertyValuation
    cash_flow_received: float = 0.0


# --- Cash ---


class CashAccount(EngineModel):
    kind: Literal["cash"] = "cash"
    label: str = ""
    institution: Optional[str] = None
    currency: str = Field(default="USD", pattern=r"^[A-Z]{3}$")
    amount: float = Field(ge=0)
    apy_pct: float = Field(default=0.0, ge=0)
    compounding: Compounding = Compounding.MONTHLY
    opened_on: Optional[date] = None


# --- Custom instruments ---


class CustomLot(EngineModel):
    trade_date: date = Field(validation_alias=AliasChoices("trade_date", "tradeDate", "date"))
    quantity: float = Field(gt=0)
    unit_cost: float = Field(ge=0)
    fees: float = Field(default=0.0, ge=0)


class CustomAverage(EngineModel):
    avg_unit_cost: float = Field(ge=0)
    total_quantity: float = Field(gt=0)
    total_fees: float = Field(default=0.0, ge=0)


class PriceSource(EngineModel):
    type: Literal["manual", "external"] = "manual"
    adapter: Optional[str] = None
    adapter_symbol: Optional[str] = None
    price_path: Optional[str] = None

    @model_validator(mode="after")
    def _check_external(self) -> "PriceSource":
        if self.type == "external" and not (self.adapter and self.adapter_symbol):
            raise ValueError("External price source requires adapter and symbol")
        if self.adapter is not None and self.adapter not in PRICE_ADAPTERS:
            raise ValueError(f"Unknown price adapter {self.adapter!r}")
        return self


class PLModel(EngineModel):
    type: Literal["standard", "expression"] = "standard"
    expression: Optional[str] = None

    @model_validator(mode="after")
    def _check_expression(self) -> "PLModel":
        if self.type == "expression" and not (self.expression and self.expression.strip()):
            raise ValueError("Expression P/L model requires an expression")
        return self


class IncomeConfig(EngineModel):
    kind: Literal["none", "apy", "fixed"] = "none"
    value: float = Field(default=0.0, ge=0)
    reinvest: bool = False


class CustomDefinition(EngineModel):
    label: str = Field(min_length=1)
    slug: Optional[str] = None
    category: Optional[str] = None
    currency: str = "USD"
    unit_name: str = Field(default="units", min_length=1)
    quantity_precision: int = Field(default=2, ge=0, le=8)
    multiplier: float = Field(default=1.0, gt=0)
    entry_mode: EntryMode = EntryMode.LOTS
    price_source: PriceSource = Field(default_factory=PriceSource)
    pl_model: PLModel = Field(default_factory=PLModel)

    @model_validator(mode="after")
    def _check_slug(self) -> "CustomDefinition":
        if self.slug and not _SLUG_RE.match(self.slug):
            raise ValueError("Slug must contain only lowercase letters, numbers, and hyphens")
        return self


class CustomState(EngineModel):
    lots: Tuple[CustomLot, ...] = ()
    average: Optional[CustomAverage] = None
    mark_price: float = Field(default=0.0, ge=0)
    mark_as_of: Optional[date] = None
    income: Optional[IncomeConfig] = None


class CustomInstrument(EngineModel):
    kind: Literal["custom"] = "custom"
    definition: CustomDefinition
    state: CustomState


Instrument = Annotated[
    Union[
        SecurityHolding,
        OptionHolding,
        BondTerms,
        CommodityPosition,
        RealEstateProperty,
        CashAccount,
        CustomInstrument,
    ],
    Field(discriminator="kind"),
]
