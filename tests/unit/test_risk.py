"""Unit tests for RiskCalculator."""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from src.core.errors import InvalidAmountError, InvalidPriceError
from src.core.models import Loan, MarketSnapshot
from src.engine import RiskCalculator, RiskLevel

amounts = st.decimals(min_value=Decimal("1"), max_value=Decimal("1000000"), places=4,
                      allow_nan=False, allow_infinity=False)
prices = st.decimals(min_value=Decimal("0.0001"), max_value=Decimal("10000"), places=6,
                     allow_nan=False, allow_infinity=False)
thresholds = st.decimals(min_value=Decimal("1"), max_value=Decimal("100"), places=2,
                         allow_nan=False, allow_infinity=False)


def make_loan(collateral="150000", borrowed="500", interest="0", threshold="65") -> Loan:
    return Loan(
        id="loan-1",
        collateral_amount=Decimal(collateral),
        borrowed_amount=Decimal(borrowed),
        accrued_interest=Decimal(interest),
        interest_rate=Decimal("0"),
        liquidation_threshold=Decimal(threshold),
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )


class TestValues:
    """Tests for value and LTV arithmetic."""

    def test_collateral_value(self):
        """Test collateral value."""
        assert RiskCalculator.collateral_value(Decimal("150000"), Decimal("0.02")) == Decimal("3000")

    def test_debt_value(self):
        """Test debt value."""
        assert RiskCalculator.debt_value(Decimal("500"), Decimal("3")) == Decimal("1500")

    def test_ltv_example(self):
        """500 debt at $3 against 150,000 collateral at $0.02 is 50%."""
        ltv = RiskCalculator.loan_ltv(Decimal("150000"), Decimal("500"), Decimal("0.02"), Decimal("3"))
        assert ltv == Decimal("50")

    def test_ltv_zero_collateral_value(self):
        """Zero collateral value is defined as 0 LTV, not an error."""
        assert RiskCalculator.loan_to_value(Decimal("0"), Decimal("100")) == Decimal("0")

    def test_ltv_accepts_plain_numbers(self):
        """Test LTV accepts plain numbers."""
        assert RiskCalculator.loan_to_value(200, 50) == Decimal("25")

    @pytest.mark.parametrize("price", [Decimal("0"), Decimal("-1"), float("nan"), float("inf")])
    def test_invalid_price_rejected(self, price):
        """Test invalid price rejected."""
        with pytest.raises(InvalidPriceError):
            RiskCalculator.collateral_value(Decimal("1"), price)

    def test_negative_amount_rejected(self):
        """Test negative amount rejected."""
        with pytest.raises(InvalidAmountError):
            RiskCalculator.debt_value(Decimal("-1"), Decimal("1"))

    def test_max_borrow(self):
        """Test max borrow."""
        value = RiskCalculator.max_borrow(Decimal("150000"), Decimal("0.02"), Decimal("40"))
        assert value == Decimal("1200")

    def test_max_borrow_amount_in_debt_units(self):
        """Test max borrow amount in debt units."""
        amount = RiskCalculator.max_borrow_amount(
            Decimal("150000"), Decimal("0.02"), Decimal("40"), Decimal("3")
        )
        assert amount == Decimal("400")

    def test_required_collateral(self):
        """Test required collateral."""
        collateral = RiskCalculator.required_collateral(Decimal("1500"), Decimal("0.02"), Decimal("50"))
        assert collateral == Decimal("150000")


class TestLiquidationTriggerPrice:
    """Tests for liquidation trigger prices."""

    def test_example_trigger_price(self):
        """Debt value 1,500 on 150,000 collateral at 65% triggers near $0.01538."""
        price = RiskCalculator.liquidation_trigger_price(Decimal("1500"), Decimal("150000"), Decimal("65"))
        assert abs(price - Decimal("0.0153846153846")) < Decimal("1e-12")

    def test_ltv_at_trigger_is_threshold(self):
        """Test LTV at trigger is threshold."""
        loan = make_loan()
        price = RiskCalculator.loan_liquidation_price(loan, Decimal("3"))
        ltv = RiskCalculator.loan_ltv(loan.collateral_amount, loan.total_debt, price, Decimal("3"))
        assert ltv == Decimal("65")
        assert RiskCalculator.is_liquidatable(loan, price, Decimal("3"))

    def test_just_above_trigger_not_liquidatable(self):
        """Test just above trigger not liquidatable."""
        loan = make_loan()
        price = RiskCalculator.loan_liquidation_price(loan, Decimal("3"))
        assert not RiskCalculator.is_liquidatable(loan, price * Decimal("1.001"), Decimal("3"))

    def test_example_price_liquidatable(self):
        """At $0.01538 the example loan is past the 65% boundary."""
        loan = make_loan()
        assert RiskCalculator.is_liquidatable(loan, Decimal("0.01538"), Decimal("3"))

    def test_zero_collateral_rejected(self):
        """Test zero collateral rejected."""
        with pytest.raises(InvalidAmountError):
            RiskCalculator.liquidation_trigger_price(Decimal("1500"), Decimal("0"), Decimal("65"))

    def test_zero_threshold_rejected(self):
        """Test zero threshold rejected."""
        with pytest.raises(InvalidAmountError):
            RiskCalculator.liquidation_trigger_price(Decimal("1500"), Decimal("1"), Decimal("0"))

    def test_debt_asset_trigger_price(self):
        """Collateral worth $3,000 at 65% tolerates 500 debt units up to $3.90."""
        price = RiskCalculator.debt_asset_trigger_price(Decimal("3000"), Decimal("500"), Decimal("65"))
        assert price == Decimal("3.9")

    def test_debt_asset_trigger_price_without_debt(self):
        """Test debt asset trigger price without debt."""
        assert RiskCalculator.debt_asset_trigger_price(Decimal("3000"), Decimal("0"), Decimal("65")) == 0

    @given(debt=amounts, collateral=amounts, threshold=thresholds, debt_price=prices)
    @settings(max_examples=100)
    def test_trigger_price_is_boundary(self, debt, collateral, threshold, debt_price):
        """
        PROPERTY: at the trigger price the loan is liquidatable at its threshold.
        """
        loan = make_loan(collateral=str(collateral), borrowed=str(debt), threshold=str(threshold))
        price = RiskCalculator.loan_liquidation_price(loan, debt_price)
        assert RiskCalculator.is_liquidatable(loan, price, debt_price)


class TestLiquidationSplit:
    """Tests for liquidation payouts."""

    def test_example_split(self):
        """Fee 10% on 500 recovers 550; at $0.01538 that is ~35,760 units."""
        split = RiskCalculator.liquidation_split(
            Decimal("500"), Decimal("10"), Decimal("0.01538"), Decimal("150000")
        )
        assert split.penalty_value == Decimal("50")
        assert split.amount_to_recover == Decimal("550")
        assert abs(split.collateral_seized - Decimal("35760.7")) < Decimal("0.1")
        assert abs(split.collateral_returned - Decimal("114239.3")) < Decimal("0.1")
        assert split.shortfall_value == 0
        assert not split.undercollateralized

    def test_undercollateralized_returns_nothing(self):
        """Test undercollateralized returns nothing."""
        split = RiskCalculator.liquidation_split(
            Decimal("5000"), Decimal("10"), Decimal("0.01"), Decimal("150000")
        )
        assert split.collateral_seized == Decimal("150000")
        assert split.collateral_returned == Decimal("0")
        assert split.shortfall_value == Decimal("4000")
        assert split.undercollateralized

    def test_zero_price_rejected(self):
        """Test zero price rejected."""
        with pytest.raises(InvalidPriceError):
            RiskCalculator.liquidation_split(Decimal("500"), Decimal("10"), Decimal("0"), Decimal("1"))

    @given(debt=amounts, fee=st.decimals(min_value=0, max_value=50, places=2), price=prices, available=amounts)
    @settings(max_examples=100)
    def test_seized_never_exceeds_available(self, debt, fee, price, available):
        """
        PROPERTY: seized <= available and returned >= 0, always.
        """
        split = RiskCalculator.liquidation_split(debt, fee, price, available)
        assert split.collateral_seized <= available
        assert split.collateral_returned >= 0
        assert abs(split.collateral_seized + split.collateral_returned - available) < Decimal("1e-15")


class TestMonotonicity:
    """LTV moves opposite to collateral amount and price."""

    @given(collateral=amounts, extra=amounts, debt=amounts, price=prices)
    @settings(max_examples=100)
    def test_more_collateral_never_raises_ltv(self, collateral, extra, debt, price):
        """Test more collateral never raises LTV."""
        before = RiskCalculator.loan_ltv(collateral, debt, price, Decimal("1"))
        after = RiskCalculator.loan_ltv(collateral + extra, debt, price, Decimal("1"))
        assert after <= before

    @given(collateral=amounts, debt=amounts, price=prices, factor=st.decimals(min_value=Decimal("1.01"), max_value=10, places=2))
    @settings(max_examples=100)
    def test_higher_price_never_raises_ltv(self, collateral, debt, price, factor):
        """Test higher price never raises LTV."""
        before = RiskCalculator.loan_ltv(collateral, debt, price, Decimal("1"))
        after = RiskCalculator.loan_ltv(collateral, debt, price * factor, Decimal("1"))
        assert after <= before


class TestRiskLevels:
    """Tests for risk classification."""

    @pytest.mark.parametrize(
        "ltv,expected",
        [
            (Decimal("30"), RiskLevel.LOW),
            (Decimal("48.75"), RiskLevel.MEDIUM),
            (Decimal("58.5"), RiskLevel.HIGH),
            (Decimal("65"), RiskLevel.CRITICAL),
            (Decimal("80"), RiskLevel.CRITICAL),
        ],
    )
    def test_bands(self, ltv, expected):
        """Test risk level bands relative to the threshold."""
        assert RiskCalculator.risk_level(ltv, Decimal("65")) == expected

    def test_liquidation_risk(self):
        """Test liquidation risk through the engine."""
        loan = make_loan()
        market = MarketSnapshot(collateral_price=Decimal("0.02"), debt_asset_price=Decimal("3"))
        risk = RiskCalculator.liquidation_risk(loan, market)

        assert risk.current_ltv == Decimal("50")
        assert risk.risk_level == RiskLevel.MEDIUM
        assert risk.liquidation_price_debt_asset == Decimal("3.9")
        assert abs(risk.collateral_drop_percent - Decimal("23.0769")) < Decimal("0.001")
        assert risk.debt_asset_rise_percent == Decimal("30")

    def test_distance_floored_at_zero(self):
        """Test distance floored at zero."""
        assert RiskCalculator.distance_to_liquidation(Decimal("0.01"), Decimal("0.02")) == 0
