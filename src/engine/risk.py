"""Risk calculation utilities for collateralized loans."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from src.core.constants import (
    HUNDRED,
    HIGH_RISK_FRACTION,
    LTV_QUANTUM,
    MEDIUM_RISK_FRACTION,
    ZERO,
)
from src.core.errors import InvalidPriceError
from src.core.models import Loan, MarketSnapshot
from src.core.numbers import require_non_negative, require_positive


class RiskLevel(Enum):
    """Risk band of a loan relative to its liquidation threshold."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class LiquidationSplit:
    """How collateral is divided when a loan is liquidated."""

    total_debt_value: Decimal        # Reference currency
    penalty_value: Decimal
    amount_to_recover: Decimal       # Debt + penalty
    collateral_seized: Decimal       # Collateral units, <= collateral_available
    collateral_returned: Decimal     # Never negative
    shortfall_value: Decimal         # Recovery not covered by collateral

    @property
    def undercollateralized(self) -> bool:
        return self.shortfall_value > 0


@dataclass(frozen=True)
class LiquidationRisk:
    """How far a loan is from liquidation under both price legs."""

    current_ltv: Decimal
    liquidation_price_collateral: Decimal   # Collateral price that triggers liquidation
    liquidation_price_debt_asset: Decimal   # Debt asset price that triggers liquidation
    collateral_drop_percent: Decimal        # Fall needed, floored at 0
    debt_asset_rise_percent: Decimal        # Rise needed, floored at 0
    risk_level: RiskLevel


class RiskCalculator:
    """
    Calculator for loan risk metrics.

    Handles LTV, liquidation trigger prices, max borrow and liquidation
    payouts. All values are converted through the reference currency.
    Invalid denominators raise instead of producing Infinity or NaN.
    """

    @staticmethod
    def collateral_value(amount, price) -> Decimal:
        """Collateral value in the reference currency."""
        amount = require_non_negative(amount, "collateral_amount")
        price = require_positive(price, "collateral_price", InvalidPriceError)
        return amount * price

    @staticmethod
    def debt_value(amount, price) -> Decimal:
        """Debt value in the reference currency."""
        amount = require_non_negative(amount, "debt_amount")
        price = require_positive(price, "debt_asset_price", InvalidPriceError)
        return amount * price

    @staticmethod
    def loan_to_value(collateral_value, debt_value) -> Decimal:
        """
        Calculate LTV percentage.

        LTV = Debt Value / Collateral Value * 100

        Returns 0 when there is no collateral value so that empty or
        worthless positions do not leak NaN into aggregates. The result is
        quantized to LTV_QUANTUM so a price solved algebraically for a
        threshold compares equal to that threshold.

        Args:
            collateral_value: Collateral value in reference currency
            debt_value: Debt value in reference currency

        Returns:
            LTV percentage (0-100+)
        """
        collateral_value = require_non_negative(collateral_value, "collateral_value")
        debt_value = require_non_negative(debt_value, "debt_value")
        if collateral_value == 0:
            return ZERO

        return (debt_value / collateral_value * HUNDRED).quantize(LTV_QUANTUM)

    @staticmethod
    def loan_ltv(
        collateral_amount,
        debt_amount,
        collateral_price,
        debt_asset_price,
    ) -> Decimal:
        """LTV from raw amounts and both USD prices."""
        return RiskCalculator.loan_to_value(
            RiskCalculator.collateral_value(collateral_amount, collateral_price),
            RiskCalculator.debt_value(debt_amount, debt_asset_price),
        )

    @staticmethod
    def max_borrow(collateral_amount, collateral_price, target_ltv) -> Decimal:
        """
        Maximum borrow value at a target LTV.

        max = collateral_amount * collateral_price * target_ltv / 100

        Returns:
            Borrowable value in reference currency
        """
        target_ltv = require_non_negative(target_ltv, "target_ltv")
        collateral_value = RiskCalculator.collateral_value(collateral_amount, collateral_price)
        return collateral_value * target_ltv / HUNDRED

    @staticmethod
    def max_borrow_amount(collateral_amount, collateral_price, target_ltv, debt_asset_price) -> Decimal:
        """Maximum borrow at a target LTV, in debt asset units."""
        debt_asset_price = require_positive(debt_asset_price, "debt_asset_price", InvalidPriceError)
        return RiskCalculator.max_borrow(collateral_amount, collateral_price, target_ltv) / debt_asset_price

    @staticmethod
    def liquidation_trigger_price(debt_value, collateral_amount, liquidation_threshold) -> Decimal:
        """
        Collateral price at which LTV reaches the liquidation threshold.

        At liquidation: debt_value / (collateral_amount * price) * 100 = threshold
        price = (debt_value / collateral_amount) * (100 / threshold)

        Args:
            debt_value: Total debt value in reference currency
            collateral_amount: Collateral units locked
            liquidation_threshold: Liquidation LTV (%)

        Returns:
            Trigger price in reference currency per collateral unit
        """
        debt_value = require_non_negative(debt_value, "debt_value")
        collateral_amount = require_positive(collateral_amount, "collateral_amount")
        threshold = require_positive(liquidation_threshold, "liquidation_threshold")

        return (debt_value / collateral_amount) * (HUNDRED / threshold)

    @staticmethod
    def debt_asset_trigger_price(collateral_value, debt_amount, liquidation_threshold) -> Decimal:
        """
        Debt asset price at which LTV reaches the liquidation threshold.

        price = collateral_value * (threshold / 100) / debt_amount

        Returns 0 when there is no debt (no debt price can liquidate it).
        """
        collateral_value = require_non_negative(collateral_value, "collateral_value")
        debt_amount = require_non_negative(debt_amount, "debt_amount")
        threshold = require_positive(liquidation_threshold, "liquidation_threshold")
        if debt_amount == 0:
            return ZERO

        return collateral_value * (threshold / HUNDRED) / debt_amount

    @staticmethod
    def loan_liquidation_price(loan: Loan, debt_asset_price) -> Decimal:
        """Collateral trigger price for a loan's current balances."""
        if loan.collateral_amount == 0:
            return ZERO
        return RiskCalculator.liquidation_trigger_price(
            RiskCalculator.debt_value(loan.total_debt, debt_asset_price),
            loan.collateral_amount,
            loan.liquidation_threshold,
        )

    @staticmethod
    def is_liquidatable(
        loan: Loan,
        collateral_price,
        debt_asset_price,
        threshold=None,
    ) -> bool:
        """
        Check if a loan is eligible for liquidation at the given prices.

        The comparison is inclusive: a loan exactly at the threshold is
        liquidatable.

        Args:
            loan: Loan to check
            collateral_price: Collateral price in reference currency
            debt_asset_price: Debt asset price in reference currency
            threshold: Liquidation LTV (%), defaults to the loan's own

        Returns:
            True if LTV >= threshold
        """
        if threshold is None:
            threshold = loan.liquidation_threshold
        threshold = require_positive(threshold, "liquidation_threshold")
        ltv = RiskCalculator.loan_ltv(
            loan.collateral_amount, loan.total_debt, collateral_price, debt_asset_price
        )
        return ltv >= threshold

    @staticmethod
    def liquidation_split(
        total_debt_value,
        liquidation_fee_percent,
        collateral_price,
        collateral_available,
    ) -> LiquidationSplit:
        """
        Split collateral between liquidator and borrower.

        penalty = debt * fee / 100
        recover = debt + penalty
        seized = min(recover / price, available)
        returned = available - seized

        Seizure is clamped to the available collateral, so an
        undercollateralized loan returns nothing and reports a shortfall.

        Args:
            total_debt_value: Debt plus interest in reference currency
            liquidation_fee_percent: Penalty (%) on total debt
            collateral_price: Collateral price in reference currency
            collateral_available: Collateral units locked in the loan

        Returns:
            LiquidationSplit
        """
        total_debt_value = require_non_negative(total_debt_value, "total_debt_value")
        fee = require_non_negative(liquidation_fee_percent, "liquidation_fee_percent")
        price = require_positive(collateral_price, "collateral_price", InvalidPriceError)
        available = require_non_negative(collateral_available, "collateral_available")

        penalty = total_debt_value * fee / HUNDRED
        to_recover = total_debt_value + penalty
        needed = to_recover / price

        seized = min(needed, available)
        returned = max(ZERO, available - seized)
        shortfall = max(ZERO, to_recover - seized * price)

        return LiquidationSplit(
            total_debt_value=total_debt_value,
            penalty_value=penalty,
            amount_to_recover=to_recover,
            collateral_seized=seized,
            collateral_returned=returned,
            shortfall_value=shortfall,
        )

    @staticmethod
    def risk_level(ltv, liquidation_threshold) -> RiskLevel:
        """
        Classify LTV against the liquidation threshold.

        CRITICAL at or above the threshold, HIGH from 90% of it,
        MEDIUM from 75% of it, LOW below.
        """
        ltv = require_non_negative(ltv, "ltv")
        threshold = require_positive(liquidation_threshold, "liquidation_threshold")

        if ltv >= threshold:
            return RiskLevel.CRITICAL
        if ltv >= threshold * HIGH_RISK_FRACTION:
            return RiskLevel.HIGH
        if ltv >= threshold * MEDIUM_RISK_FRACTION:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    @staticmethod
    def distance_to_liquidation(current_price, liquidation_price) -> Decimal:
        """
        Percentage price drop until liquidation, floored at 0.

        Returns:
            Percentage drop (0-100)
        """
        current_price = require_positive(current_price, "current_price", InvalidPriceError)
        liquidation_price = require_non_negative(liquidation_price, "liquidation_price")
        return max(ZERO, (current_price - liquidation_price) / current_price * HUNDRED)

    @staticmethod
    def liquidation_risk(loan: Loan, market: MarketSnapshot) -> LiquidationRisk:
        """
        Assess a loan against both asset prices.

        The collateral leg shows how far the collateral can fall, the debt
        leg how far the borrowed asset can rise, each with the other held.
        """
        collateral_value = RiskCalculator.collateral_value(loan.collateral_amount, market.collateral_price)
        ltv = RiskCalculator.loan_ltv(
            loan.collateral_amount, loan.total_debt, market.collateral_price, market.debt_asset_price
        )
        collateral_trigger = RiskCalculator.loan_liquidation_price(loan, market.debt_asset_price)
        debt_trigger = RiskCalculator.debt_asset_trigger_price(
            collateral_value, loan.total_debt, loan.liquidation_threshold
        )

        drop = RiskCalculator.distance_to_liquidation(market.collateral_price, collateral_trigger)
        if debt_trigger == 0:
            rise = ZERO
        else:
            rise = max(ZERO, (debt_trigger - market.debt_asset_price) / market.debt_asset_price * HUNDRED)

        return LiquidationRisk(
            current_ltv=ltv,
            liquidation_price_collateral=collateral_trigger,
            liquidation_price_debt_asset=debt_trigger,
            collateral_drop_percent=drop,
            debt_asset_rise_percent=rise,
            risk_level=RiskCalculator.risk_level(ltv, loan.liquidation_threshold),
        )

    @staticmethod
    def required_collateral(borrow_value, collateral_price, target_ltv) -> Decimal:
        """
        Collateral units needed to borrow a value at a target LTV.

        collateral = borrow_value * 100 / (target_ltv * price)
        """
        borrow_value = require_non_negative(borrow_value, "borrow_value")
        price = require_positive(collateral_price, "collateral_price", InvalidPriceError)
        target_ltv = require_positive(target_ltv, "target_ltv")
        return borrow_value * HUNDRED / (target_ltv * price)
