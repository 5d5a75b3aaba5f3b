"""Market snapshot model."""

from dataclasses import dataclass
from decimal import Decimal

from src.core.constants import DEFAULT_LIQUIDATION_FEE
from src.core.errors import InvalidPriceError, InvalidAmountError
from src.core.numbers import require_positive, require_non_negative


@dataclass
class MarketSnapshot:
    """
    Current prices of the two loan assets in the reference currency.

    The cross-rate is derived on every read so it can never drift from
    the two USD legs.
    """

    collateral_price: Decimal        # Reference currency per collateral unit
    debt_asset_price: Decimal        # Reference currency per debt unit
    liquidation_fee_percent: Decimal = DEFAULT_LIQUIDATION_FEE

    collateral_symbol: str = "XPM"
    debt_symbol: str = "XRP"
    reference_currency: str = "USD"

    def __post_init__(self):
        self.collateral_price = require_positive(self.collateral_price, "collateral_price", InvalidPriceError)
        self.debt_asset_price = require_positive(self.debt_asset_price, "debt_asset_price", InvalidPriceError)
        self.liquidation_fee_percent = require_non_negative(
            self.liquidation_fee_percent, "liquidation_fee_percent", InvalidAmountError
        )

    @property
    def name(self) -> str:
        """Human-readable pair name."""
        return f"{self.collateral_symbol}/{self.debt_symbol}"

    @property
    def cross_rate(self) -> Decimal:
        """Collateral price denominated in debt asset units."""
        return self.collateral_price / self.debt_asset_price

    def update_collateral_price(self, new_price) -> Decimal:
        """Set the collateral price, returning the previous one."""
        price = require_positive(new_price, "collateral_price", InvalidPriceError)
        previous = self.collateral_price
        self.collateral_price = price
        return previous

    def update_debt_asset_price(self, new_price) -> Decimal:
        """Set the debt asset price, returning the previous one."""
        price = require_positive(new_price, "debt_asset_price", InvalidPriceError)
        previous = self.debt_asset_price
        self.debt_asset_price = price
        return previous

    def copy_with(self, collateral_price=None, debt_asset_price=None) -> "MarketSnapshot":
        """Return a detached snapshot with some prices replaced."""
        return MarketSnapshot(
            collateral_price=self.collateral_price if collateral_price is None else collateral_price,
            debt_asset_price=self.debt_asset_price if debt_asset_price is None else debt_asset_price,
            liquidation_fee_percent=self.liquidation_fee_percent,
            collateral_symbol=self.collateral_symbol,
            debt_symbol=self.debt_symbol,
            reference_currency=self.reference_currency,
        )

    def to_dict(self) -> dict:
        return {
            "collateral_symbol": self.collateral_symbol,
            "debt_symbol": self.debt_symbol,
            "reference_currency": self.reference_currency,
            "collateral_price": str(self.collateral_price),
            "debt_asset_price": str(self.debt_asset_price),
            "cross_rate": str(self.cross_rate),
            "liquidation_fee_percent": str(self.liquidation_fee_percent),
        }
