"""Historical records produced by the engine."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class LiquidationEvent:
    """A liquidation, recorded once per liquidated loan and never mutated."""

    loan_id: str
    timestamp: datetime              # Simulation time
    price: Decimal                   # Collateral price at liquidation
    collateral: Decimal              # Collateral seized
    debt: Decimal                    # Total debt recovered (debt asset units)

    debt_asset_price: Decimal = Decimal("0")
    penalty_value: Decimal = Decimal("0")       # Reference currency
    collateral_returned: Decimal = Decimal("0")
    shortfall_value: Decimal = Decimal("0")     # Unrecovered value (reference currency)

    def to_dict(self) -> dict:
        return {
            "loan_id": self.loan_id,
            "timestamp": self.timestamp.isoformat(),
            "price": str(self.price),
            "collateral": str(self.collateral),
            "debt": str(self.debt),
            "debt_asset_price": str(self.debt_asset_price),
            "penalty_value": str(self.penalty_value),
            "collateral_returned": str(self.collateral_returned),
            "shortfall_value": str(self.shortfall_value),
        }


class LiquidationOutcome(Enum):
    """Result of a liquidation request."""

    LIQUIDATED = "liquidated"
    NO_ACTION = "no_action"          # Loan already repaid or liquidated


@dataclass(frozen=True)
class LiquidationResult:
    """Outcome of liquidate(); event is None when no action was taken."""

    loan_id: str
    outcome: LiquidationOutcome
    event: Optional[LiquidationEvent] = None
    reason: str = ""

    @property
    def executed(self) -> bool:
        return self.outcome == LiquidationOutcome.LIQUIDATED


@dataclass(frozen=True)
class Repayment:
    """How a repayment was applied."""

    loan_id: str
    timestamp: datetime
    amount: Decimal                  # Amount credited (capped at total debt)
    interest_paid: Decimal
    principal_paid: Decimal
    remaining_debt: Decimal
    fully_repaid: bool

    def to_dict(self) -> dict:
        return {
            "loan_id": self.loan_id,
            "timestamp": self.timestamp.isoformat(),
            "amount": str(self.amount),
            "interest_paid": str(self.interest_paid),
            "principal_paid": str(self.principal_paid),
            "remaining_debt": str(self.remaining_debt),
            "fully_repaid": self.fully_repaid,
        }


@dataclass(frozen=True)
class PricePoint:
    """Market and portfolio state at a point in simulation time."""

    timestamp: datetime
    collateral_price: Decimal
    debt_asset_price: Decimal
    portfolio_value: Decimal         # Collateral value of open loans
    total_debt_value: Decimal
    average_ltv: Decimal             # Value-weighted portfolio LTV

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "collateral_price": str(self.collateral_price),
            "debt_asset_price": str(self.debt_asset_price),
            "portfolio_value": str(self.portfolio_value),
            "total_debt_value": str(self.total_debt_value),
            "average_ltv": str(self.average_ltv),
        }
