"""Portfolio rollup model."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class PortfolioMetrics:
    """Aggregates over open loans. All zeros for an empty portfolio."""

    loan_count: int = 0
    total_collateral: Decimal = Decimal("0")     # Collateral units
    total_borrowed: Decimal = Decimal("0")       # Debt asset units
    total_interest: Decimal = Decimal("0")       # Debt asset units
    collateral_value: Decimal = Decimal("0")     # Reference currency
    debt_value: Decimal = Decimal("0")           # Reference currency
    portfolio_ltv: Decimal = Decimal("0")        # Value-weighted LTV (%)
    average_ltv: Decimal = Decimal("0")          # Simple mean of loan LTVs (%)
    at_risk_count: int = 0                       # LTV >= warning threshold
    liquidatable_count: int = 0                  # LTV >= liquidation threshold

    @property
    def total_debt(self) -> Decimal:
        """Principal plus interest across open loans."""
        return self.total_borrowed + self.total_interest

    def to_dict(self) -> dict:
        return {
            "loan_count": self.loan_count,
            "total_collateral": str(self.total_collateral),
            "total_borrowed": str(self.total_borrowed),
            "total_interest": str(self.total_interest),
            "total_debt": str(self.total_debt),
            "collateral_value": str(self.collateral_value),
            "debt_value": str(self.debt_value),
            "portfolio_ltv": str(self.portfolio_ltv),
            "average_ltv": str(self.average_ltv),
            "at_risk_count": self.at_risk_count,
            "liquidatable_count": self.liquidatable_count,
        }
