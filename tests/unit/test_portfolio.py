"""Unit tests for PortfolioView."""

from datetime import datetime, timezone
from decimal import Decimal

from src.core.models import Loan, LoanStatus, MarketSnapshot, PortfolioMetrics
from src.engine import PortfolioView


def make_loan(loan_id, collateral, borrowed, interest="0", status=LoanStatus.ACTIVE) -> Loan:
    return Loan(
        id=loan_id,
        collateral_amount=Decimal(collateral),
        borrowed_amount=Decimal(borrowed),
        accrued_interest=Decimal(interest),
        interest_rate=Decimal("16"),
        liquidation_threshold=Decimal("65"),
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        status=status,
    )


class TestPortfolioView:
    """Tests for portfolio aggregation."""

    def test_empty_portfolio_is_zero(self, market):
        """Test empty portfolio is zero."""
        metrics = PortfolioView().metrics([], market)

        assert metrics == PortfolioMetrics()
        assert metrics.loan_count == 0
        assert metrics.portfolio_ltv == 0
        assert metrics.average_ltv == 0

    def test_only_terminal_loans_is_zero(self, market):
        """Test only terminal loans is zero."""
        loans = [
            make_loan("a", "150000", "500", status=LoanStatus.REPAID),
            make_loan("b", "150000", "500", status=LoanStatus.LIQUIDATED),
        ]
        assert PortfolioView().metrics(loans, market).loan_count == 0

    def test_totals(self, market):
        """Test totals cover open loans only."""
        loans = [
            make_loan("a", "150000", "500"),
            make_loan("b", "150000", "100", interest="50"),
            make_loan("c", "999999", "999", status=LoanStatus.REPAID),
        ]
        metrics = PortfolioView().metrics(loans, market)

        assert metrics.loan_count == 2
        assert metrics.total_collateral == Decimal("300000")
        assert metrics.total_borrowed == Decimal("600")
        assert metrics.total_interest == Decimal("50")
        assert metrics.total_debt == Decimal("650")
        assert metrics.collateral_value == Decimal("6000")
        assert metrics.debt_value == Decimal("1950")

    def test_weighted_and_simple_ltv(self, market):
        """50% and 10% loans of equal size: both averages are 30%."""
        loans = [make_loan("a", "150000", "500"), make_loan("b", "150000", "100")]
        metrics = PortfolioView().metrics(loans, market)

        assert metrics.portfolio_ltv == Decimal("30")
        assert metrics.average_ltv == Decimal("30")

    def test_weighted_ltv_differs_from_mean(self, market):
        """Test weighted LTV differs from mean."""
        loans = [make_loan("a", "150000", "500"), make_loan("b", "1500000", "1000")]
        metrics = PortfolioView().metrics(loans, market)

        # 4,500 / 33,000 vs mean of 50% and 10%
        assert abs(metrics.portfolio_ltv - Decimal("13.6363636364")) < Decimal("1e-9")
        assert metrics.average_ltv == Decimal("30")

    def test_risk_counts(self, market):
        """Test risk counts."""
        loans = [make_loan("a", "150000", "500"), make_loan("b", "150000", "100")]
        crashed = market.copy_with(collateral_price=Decimal("0.015"))

        metrics = PortfolioView(warning_ltv=Decimal("50")).metrics(loans, crashed)

        assert metrics.at_risk_count == 1
        assert metrics.liquidatable_count == 1

    def test_uses_snapshot_not_stored_ltv(self):
        """Stored current_ltv is ignored; the rollup prices from the snapshot."""
        loan = make_loan("a", "150000", "500")
        loan.current_ltv = Decimal("99")
        market = MarketSnapshot(collateral_price=Decimal("0.02"), debt_asset_price=Decimal("3"))

        assert PortfolioView().metrics([loan], market).average_ltv == Decimal("50")

    def test_to_dict(self, market):
        """Test dict serialization."""
        data = PortfolioView().metrics([make_loan("a", "150000", "500")], market).to_dict()
        assert data["loan_count"] == 1
        assert data["total_debt"] == "500"
