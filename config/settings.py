"""Pydantic settings for the lending simulator."""

import json
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Annotated, Dict

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from src.core.constants import DEFAULT_LIQUIDATION_FEE


class Settings(BaseSettings):
    """Protocol policy and simulation defaults loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LENDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Assets
    collateral_symbol: str = Field(default="XPM", description="Collateral asset symbol")
    debt_symbol: str = Field(default="XRP", description="Debt asset symbol")
    reference_currency: str = Field(default="USD", description="Valuation currency")

    # Initial market
    collateral_price: Decimal = Field(default=Decimal("0.02"), gt=0, description="Collateral price in USD")
    debt_asset_price: Decimal = Field(default=Decimal("3.00"), gt=0, description="Debt asset price in USD")
    liquidation_fee_percent: Decimal = Field(default=DEFAULT_LIQUIDATION_FEE, ge=0, le=100, description="Liquidation penalty (%)")

    # Risk policy
    liquidation_threshold: Decimal = Field(default=Decimal("65"), gt=0, le=100, description="Liquidation LTV (%)")
    max_initial_ltv: Decimal = Field(default=Decimal("50"), gt=0, le=100, description="Maximum LTV at origination (%)")
    warning_ltv: Decimal = Field(default=Decimal("50"), gt=0, le=100, description="Margin call warning LTV (%)")
    min_loan_value: Decimal = Field(default=Decimal("50"), ge=0, description="Minimum debt value at origination (USD)")
    min_collateral_value: Decimal = Field(default=Decimal("100"), ge=0, description="Minimum collateral value (USD)")
    repayment_tolerance_percent: Decimal = Field(
        default=Decimal("1"), ge=0, le=10, description="Overpayment tolerated on partial repayment (%)"
    )

    # Interest
    default_interest_rate: Decimal = Field(default=Decimal("16"), ge=0, le=100, description="Fallback APR (%)")
    term_interest_rates: Annotated[Dict[int, Decimal], NoDecode] = Field(
        default_factory=lambda: {30: Decimal("19"), 60: Decimal("16"), 90: Decimal("15")},
        description="APR (%) by loan term in days",
    )

    # Engine behaviour
    auto_liquidate: bool = Field(default=False, description="Liquidate eligible loans after every recompute")
    price_history_limit: int = Field(default=100, ge=1, le=10000, description="Price history points kept")

    # Price simulation
    simulation_volatility: Decimal = Field(default=Decimal("0.02"), ge=0, le=1, description="Max price move per tick")
    mean_reversion_strength: Decimal = Field(default=Decimal("0.0001"), ge=0, le=1)
    min_simulated_price: Decimal = Field(default=Decimal("0.01"), gt=0, description="Floor for simulated prices (USD)")
    simulation_seed: int = Field(default=42, description="Seed for the price random walk")

    @field_validator("term_interest_rates", mode="before")
    @classmethod
    def parse_term_rates(cls, v):
        """Parse "30:19,60:16" style strings, or a JSON object."""
        if isinstance(v, str):
            if not v.strip():
                return {}
            if v.strip().startswith("{"):
                return json.loads(v)
            rates = {}
            for item in v.split(","):
                days, _, rate = item.partition(":")
                try:
                    rates[int(days.strip())] = Decimal(rate.strip())
                except (ValueError, InvalidOperation):
                    raise ValueError(f"Invalid term rate entry: {item!r}") from None
            return rates
        return v

    @model_validator(mode="after")
    def check_thresholds(self) -> "Settings":
        """The origination cap must leave room below the liquidation threshold."""
        if self.max_initial_ltv >= self.liquidation_threshold:
            raise ValueError(
                f"max_initial_ltv ({self.max_initial_ltv}) must be below "
                f"liquidation_threshold ({self.liquidation_threshold})"
            )
        return self


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
