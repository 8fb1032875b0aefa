"""Runtime configuration using Pydantic Settings."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from investment_tracker.config.constants import (
    DEFAULT_EXPRESSION_MAX_DEPTH,
    DEFAULT_EXPRESSION_MAX_LENGTH,
    DEFAULT_EXPRESSION_MAX_NODES,
    DEFAULT_FUTURES_MARGIN_RATE,
)
from investment_tracker.models.instruments import CostMethod

DEFAULT_CONFIG_PATH = Path("config/config.yaml")


class ExpressionSettings(BaseSettings):
    """Ceilings for the custom P/L expression evaluator."""

    model_config = SettingsConfigDict(
        env_prefix="EXPRESSION_",
        env_file=".env",
        extra="ignore",
    )

    max_length: int = Field(
        default=DEFAULT_EXPRESSION_MAX_LENGTH, ge=1, le=10000, description="Max expression length in characters"
    )
    max_nodes: int = Field(
        default=DEFAULT_EXPRESSION_MAX_NODES, ge=1, le=1000, description="Max parsed nodes per expression"
    )
    max_depth: int = Field(
        default=DEFAULT_EXPRESSION_MAX_DEPTH, ge=1, le=100, description="Max nesting depth"
    )


class ValuationSettings(BaseSettings):
    """Defaults applied when callers leave a policy unspecified."""

    model_config = SettingsConfigDict(
        env_prefix="VALUATION_",
        env_file=".env",
        extra="ignore",
    )

    default_cost_method: CostMethod = Field(
        default=CostMethod.FIFO, description="Realized P/L policy when none or an unknown one is given"
    )
    futures_margin_rate: float = Field(
        default=DEFAULT_FUTURES_MARGIN_RATE, ge=0, le=1, description="Fraction of notional posted as margin"
    )

    @field_validator("default_cost_method", mode="before")
    @classmethod
    def upper_cost_method(cls, v):
        """Accept lowercase spellings from env files."""
        return v.upper() if isinstance(v, str) else v


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    level: str = Field(default="WARNING", description="Log level")
    file: Optional[Path] = Field(default=None, description="Optional rotating log file path")


class Settings(BaseSettings):
    """Main settings container."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    expression: ExpressionSettings = Field(default_factory=ExpressionSettings)
    valuation: ValuationSettings = Field(default_factory=ValuationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, config_path: Path = DEFAULT_CONFIG_PATH) -> "Settings":
        """Load settings from a YAML file, with env vars taking precedence."""
        yaml_config = {}
        if config_path.exists():
            with open(config_path, encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}

        sections = {}
        for name, prefix in (("expression", "EXPRESSION_"), ("valuation", "VALUATION_"), ("logging", "LOG_")):
            section = dict(yaml_config.get(name) or {})
            # Drop YAML values that an env var already sets
            for key in list(section):
                if os.environ.get(f"{prefix}{key}".upper()):
                    section.pop(key)
            sections[name] = section

        return cls(
            expression=ExpressionSettings(**sections["expression"]),
            valuation=ValuationSettings(**sections["valuation"]),
            logging=LoggingSettings(**sections["logging"]),
        )


def load_settings(config_path: Path = DEFAULT_CONFIG_PATH) -> Settings:
    """Load settings from config file and environment."""
    if config_path.exists():
        return Settings.from_yaml(config_path)
    return Settings()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, loaded once. Call get_settings.cache_clear() to reload."""
    return load_settings()
