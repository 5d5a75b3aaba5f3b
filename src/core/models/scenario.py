"""Market scenario models for what-if analysis."""

from dataclasses import dataclass
from decimal import Decimal

from src.core.constants import HUNDRED
from src.core.errors import InvalidAmountError
from src.core.numbers import to_decimal

from .market import MarketSnapshot


@dataclass(frozen=True)
class MarketScenario:
    """A simultaneous percentage shock to both asset prices."""

    name: str
    collateral_change_percent: Decimal = Decimal("0")
    debt_change_percent: Decimal = Decimal("0")
    description: str = ""

    def __post_init__(self):
        for field_name in ("collateral_change_percent", "debt_change_percent"):
            value = to_decimal(getattr(self, field_name), field_name)
            if value <= -HUNDRED:
                raise InvalidAmountError(
                    field_name, f"{field_name} must be above -100%, got {value}", value
                )
            object.__setattr__(self, field_name, value)

    def shocked_prices(self, market: MarketSnapshot) -> tuple[Decimal, Decimal]:
        """(collateral_price, debt_asset_price) after the shock."""
        return (
            market.collateral_price * (1 + self.collateral_change_percent / HUNDRED),
            market.debt_asset_price * (1 + self.debt_change_percent / HUNDRED),
        )

    def apply_to(self, market: MarketSnapshot) -> MarketSnapshot:
        """Detached snapshot with the shock applied."""
        collateral_price, debt_asset_price = self.shocked_prices(market)
        return market.copy_with(collateral_price=collateral_price, debt_asset_price=debt_asset_price)


@dataclass(frozen=True)
class ScenarioImpact:
    """Effect of a scenario on one loan."""

    loan_id: str
    ltv_before: Decimal
    ltv_after: Decimal
    liquidation_price_after: Decimal
    liquidatable_after: bool

    @property
    def ltv_change(self) -> Decimal:
        return self.ltv_after - self.ltv_before

    def to_dict(self) -> dict:
        return {
            "loan_id": self.loan_id,
            "ltv_before": str(self.ltv_before),
            "ltv_after": str(self.ltv_after),
            "ltv_change": str(self.ltv_change),
            "liquidation_price_after": str(self.liquidation_price_after),
            "liquidatable_after": self.liquidatable_after,
        }
