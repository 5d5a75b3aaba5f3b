"""Read-only portfolio rollups over the loan ledger."""

from decimal import Decimal
from typing import Iterable

from src.core.constants import DEFAULT_WARNING_LTV, ZERO
from src.core.models import Loan, MarketSnapshot, PortfolioMetrics

from .risk import RiskCalculator


class PortfolioView:
    """Aggregates open loans against a market snapshot."""

    def __init__(self, warning_ltv=DEFAULT_WARNING_LTV):
        self.warning_ltv = Decimal(str(warning_ltv))

    def metrics(self, loans: Iterable[Loan], market: MarketSnapshot) -> PortfolioMetrics:
        """
        Calculate portfolio metrics.

        Only open loans count. LTVs are recomputed from the snapshot rather
        than read from the loans so the rollup is consistent with the
        prices passed in.

        Args:
            loans: Loans to aggregate (terminal loans are skipped)
            market: Prices to value them at

        Returns:
            PortfolioMetrics, all zeros when nothing is open
        """
        open_loans = [loan for loan in loans if loan.is_open]
        if not open_loans:
            return PortfolioMetrics()

        total_collateral = ZERO
        total_borrowed = ZERO
        total_interest = ZERO
        ltv_sum = ZERO
        at_risk = 0
        liquidatable = 0

        for loan in open_loans:
            total_collateral += loan.collateral_amount
            total_borrowed += loan.borrowed_amount
            total_interest += loan.accrued_interest

            ltv = RiskCalculator.loan_ltv(
                loan.collateral_amount, loan.total_debt, market.collateral_price, market.debt_asset_price
            )
            ltv_sum += ltv
            if ltv >= self.warning_ltv:
                at_risk += 1
            if ltv >= loan.liquidation_threshold:
                liquidatable += 1

        collateral_value = RiskCalculator.collateral_value(total_collateral, market.collateral_price)
        debt_value = RiskCalculator.debt_value(total_borrowed + total_interest, market.debt_asset_price)

        return PortfolioMetrics(
            loan_count=len(open_loans),
            total_collateral=total_collateral,
            total_borrowed=total_borrowed,
            total_interest=total_interest,
            collateral_value=collateral_value,
            debt_value=debt_value,
            portfolio_ltv=RiskCalculator.loan_to_value(collateral_value, debt_value),
            average_ltv=ltv_sum / len(open_loans),
            at_risk_count=at_risk,
            liquidatable_count=liquidatable,
        )
