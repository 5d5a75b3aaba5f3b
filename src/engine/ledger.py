"""Loan ledger: loan records and their lifecycle commands."""

import logging
import uuid
from datetime import timedelta
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from src.core.constants import (
    DEFAULT_LIQUIDATION_THRESHOLD,
    DEFAULT_MAX_INITIAL_LTV,
    DEFAULT_REPAYMENT_TOLERANCE,
    HUNDRED,
    TERM_INTEREST_RATES,
    ZERO,
)
from src.core.errors import (
    InvalidAmountError,
    LoanNotFoundError,
    LoanStateError,
    LTVLimitError,
    RepaymentExceedsDebtError,
    ValidationError,
)
from src.core.models import (
    LiquidationEvent,
    LiquidationOutcome,
    LiquidationResult,
    Loan,
    LoanParams,
    LoanStatus,
    MarketSnapshot,
    Repayment,
)
from src.core.numbers import require_non_negative, require_positive, to_decimal

from .clock import SimulationClock
from .risk import RiskCalculator

logger = logging.getLogger(__name__)


class LoanLedger:
    """
    Authoritative collection of loans.

    Owns loan identity and status transitions. Reads prices from the shared
    market snapshot and time from the simulation clock; never mutates either.
    Every command validates fully before touching a loan.
    """

    def __init__(
        self,
        market: MarketSnapshot,
        clock: SimulationClock,
        liquidation_threshold=DEFAULT_LIQUIDATION_THRESHOLD,
        max_initial_ltv=DEFAULT_MAX_INITIAL_LTV,
        min_loan_value=ZERO,
        min_collateral_value=ZERO,
        repayment_tolerance_percent=DEFAULT_REPAYMENT_TOLERANCE,
        default_interest_rate=Decimal("16"),
        term_interest_rates: Optional[Mapping[int, Decimal]] = None,
    ):
        """
        Initialize ledger.

        Args:
            market: Shared market snapshot
            clock: Shared simulation clock
            liquidation_threshold: Default liquidation LTV (%) for new loans
            max_initial_ltv: Maximum LTV (%) allowed at origination
            min_loan_value: Minimum debt value at origination (reference currency)
            min_collateral_value: Minimum collateral value at origination
            repayment_tolerance_percent: Overpayment tolerated on partial repayment
            default_interest_rate: APR (%) for terms missing from the rate table
            term_interest_rates: APR (%) by term in days
        """
        self.market = market
        self.clock = clock
        self.liquidation_threshold = require_positive(liquidation_threshold, "liquidation_threshold")
        self.max_initial_ltv = require_positive(max_initial_ltv, "max_initial_ltv")
        self.min_loan_value = require_non_negative(min_loan_value, "min_loan_value")
        self.min_collateral_value = require_non_negative(min_collateral_value, "min_collateral_value")
        self.repayment_tolerance_percent = require_non_negative(
            repayment_tolerance_percent, "repayment_tolerance_percent"
        )
        self.default_interest_rate = require_non_negative(default_interest_rate, "default_interest_rate")
        self.term_interest_rates = dict(TERM_INTEREST_RATES if term_interest_rates is None else term_interest_rates)

        self._loans: Dict[str, Loan] = {}
        self._events: List[LiquidationEvent] = []

    # Queries

    def __len__(self) -> int:
        return len(self._loans)

    def __contains__(self, loan_id: str) -> bool:
        return loan_id in self._loans

    def get(self, loan_id: str) -> Loan:
        """Get a loan by id, raising LoanNotFoundError if unknown."""
        loan = self._loans.get(loan_id)
        if loan is None:
            raise LoanNotFoundError(loan_id)
        return loan

    def loans(self, status: Optional[LoanStatus] = None) -> List[Loan]:
        """All loans in creation order, optionally filtered by status."""
        if status is None:
            return list(self._loans.values())
        return [loan for loan in self._loans.values() if loan.status == status]

    def open_loans(self) -> List[Loan]:
        """Loans that are active or matured."""
        return [loan for loan in self._loans.values() if loan.is_open]

    @property
    def events(self) -> Tuple[LiquidationEvent, ...]:
        """Liquidation history, oldest first."""
        return tuple(self._events)

    def interest_rate_for_term(self, term_days: Optional[int]) -> Decimal:
        if term_days is None:
            return self.default_interest_rate
        return self.term_interest_rates.get(term_days, self.default_interest_rate)

    # Risk recomputation

    def recompute(self, loan: Loan) -> Loan:
        """Refresh a loan's LTV and liquidation price from the current market."""
        loan.current_ltv = RiskCalculator.loan_ltv(
            loan.collateral_amount,
            loan.total_debt,
            self.market.collateral_price,
            self.market.debt_asset_price,
        )
        loan.liquidation_price = RiskCalculator.loan_liquidation_price(loan, self.market.debt_asset_price)
        return loan

    def recompute_all(self) -> int:
        """Refresh every open loan. Returns the number refreshed."""
        loans = self.open_loans()
        for loan in loans:
            self.recompute(loan)
        logger.debug(f"Recomputed risk for {len(loans)} open loans")
        return len(loans)

    # Commands

    def create(self, params: LoanParams) -> Loan:
        """
        Open a new loan at the current market and simulation time.

        Args:
            params: Loan parameters

        Returns:
            The new loan

        Raises:
            InvalidAmountError: non-positive collateral or borrow, bad term,
                or values below the protocol minimums
            LTVLimitError: initial LTV above the origination cap or at the
                loan's liquidation threshold
        """
        collateral = require_positive(params.collateral_amount, "collateral_amount")

        if (params.borrow_amount is None) == (params.target_ltv is None):
            raise InvalidAmountError(
                "borrow_amount", "Provide exactly one of borrow_amount or target_ltv"
            )

        threshold = params.liquidation_threshold
        if threshold is None:
            threshold = self.liquidation_threshold
        threshold = require_positive(threshold, "liquidation_threshold")
        if threshold > HUNDRED:
            raise InvalidAmountError(
                "liquidation_threshold", f"liquidation_threshold must be at most 100, got {threshold}", threshold
            )

        term_days = params.term_days
        if term_days is not None:
            if isinstance(term_days, bool) or not isinstance(term_days, int) or term_days <= 0:
                raise InvalidAmountError("term_days", f"term_days must be a positive integer, got {term_days}", term_days)

        if params.interest_rate is None:
            rate = self.interest_rate_for_term(term_days)
        else:
            rate = require_non_negative(params.interest_rate, "interest_rate")

        if params.borrow_amount is not None:
            borrow = require_positive(params.borrow_amount, "borrow_amount")
        else:
            target_ltv = require_positive(params.target_ltv, "target_ltv")
            borrow = RiskCalculator.max_borrow_amount(
                collateral, self.market.collateral_price, target_ltv, self.market.debt_asset_price
            )

        collateral_value = RiskCalculator.collateral_value(collateral, self.market.collateral_price)
        debt_value = RiskCalculator.debt_value(borrow, self.market.debt_asset_price)
        if collateral_value < self.min_collateral_value:
            raise InvalidAmountError(
                "collateral_amount",
                f"Collateral value {collateral_value:.2f} is below minimum {self.min_collateral_value}",
                collateral,
            )
        if debt_value < self.min_loan_value:
            raise InvalidAmountError(
                "borrow_amount",
                f"Loan value {debt_value:.2f} is below minimum {self.min_loan_value}",
                borrow,
            )

        ltv = RiskCalculator.loan_to_value(collateral_value, debt_value)
        if ltv > self.max_initial_ltv:
            raise LTVLimitError(ltv, self.max_initial_ltv)
        if ltv >= threshold:
            raise LTVLimitError(ltv, threshold)

        now = self.clock.now
        loan = Loan(
            id=uuid.uuid4().hex,
            collateral_amount=collateral,
            borrowed_amount=borrow,
            interest_rate=rate,
            liquidation_threshold=threshold,
            created_at=now,
            borrower=params.borrower,
            term_days=term_days,
            maturity_date=now + timedelta(days=term_days) if term_days else None,
        )
        self.recompute(loan)
        self._loans[loan.id] = loan

        logger.info(
            f"Created loan {loan.id}: {collateral} {self.market.collateral_symbol} collateral, "
            f"{borrow} {self.market.debt_symbol} borrowed, LTV={float(loan.current_ltv):.2f}%"
        )
        return loan

    def repay(self, loan_id: str, amount=None) -> Repayment:
        """
        Repay part or all of a loan.

        Payment goes to interest first, then principal. Omitting amount, or
        paying at least the total debt, repays in full and closes the loan.
        Overpayment beyond the tolerance is rejected.

        Args:
            loan_id: Loan to repay
            amount: Debt asset units, or None for full repayment

        Returns:
            Repayment describing how the amount was applied
        """
        loan = self._require_open(loan_id, "repay")
        total_debt = loan.total_debt

        if amount is not None:
            amount = require_positive(amount, "amount")
            limit = total_debt * (1 + self.repayment_tolerance_percent / HUNDRED)
            if amount > limit:
                raise RepaymentExceedsDebtError(amount, total_debt)

        now = self.clock.now
        if amount is None or amount >= total_debt:
            repayment = Repayment(
                loan_id=loan.id,
                timestamp=now,
                amount=total_debt,
                interest_paid=loan.accrued_interest,
                principal_paid=loan.borrowed_amount,
                remaining_debt=ZERO,
                fully_repaid=True,
            )
            loan.accrued_interest = ZERO
            loan.borrowed_amount = ZERO
            self.recompute(loan)
            self._close(loan, LoanStatus.REPAID)
            logger.info(f"Loan {loan.id} fully repaid ({total_debt} {self.market.debt_symbol})")
            return repayment

        interest_paid = min(amount, loan.accrued_interest)
        principal_paid = amount - interest_paid
        loan.accrued_interest -= interest_paid
        loan.borrowed_amount -= principal_paid
        self.recompute(loan)

        logger.info(
            f"Loan {loan.id} repaid {amount} {self.market.debt_symbol}, "
            f"remaining {loan.total_debt}, LTV={float(loan.current_ltv):.2f}%"
        )
        return Repayment(
            loan_id=loan.id,
            timestamp=now,
            amount=amount,
            interest_paid=interest_paid,
            principal_paid=principal_paid,
            remaining_debt=loan.total_debt,
            fully_repaid=False,
        )

    def add_collateral(self, loan_id: str, amount) -> Loan:
        """Lock more collateral into an open loan, lowering its LTV."""
        loan = self._require_open(loan_id, "add collateral to")
        amount = require_positive(amount, "amount")

        loan.collateral_amount += amount
        self.recompute(loan)

        logger.info(
            f"Loan {loan.id} collateral +{amount} {self.market.collateral_symbol}, "
            f"LTV={float(loan.current_ltv):.2f}%"
        )
        return loan

    def liquidate(self, loan_id: str) -> LiquidationResult:
        """
        Liquidate an open loan at the current collateral price.

        Liquidating an already repaid or liquidated loan is a no-op that
        reports NO_ACTION; the event log gets exactly one entry per loan.

        Raises:
            LoanNotFoundError: unknown loan id
        """
        loan = self.get(loan_id)
        if not loan.is_open:
            logger.info(f"Liquidation skipped for loan {loan.id}: already {loan.status.value}")
            return LiquidationResult(
                loan_id=loan.id,
                outcome=LiquidationOutcome.NO_ACTION,
                reason=f"Loan is {loan.status.value}",
            )

        split = RiskCalculator.liquidation_split(
            RiskCalculator.debt_value(loan.total_debt, self.market.debt_asset_price),
            self.market.liquidation_fee_percent,
            self.market.collateral_price,
            loan.collateral_amount,
        )
        self.recompute(loan)
        event = LiquidationEvent(
            loan_id=loan.id,
            timestamp=self.clock.now,
            price=self.market.collateral_price,
            collateral=split.collateral_seized,
            debt=loan.total_debt,
            debt_asset_price=self.market.debt_asset_price,
            penalty_value=split.penalty_value,
            collateral_returned=split.collateral_returned,
            shortfall_value=split.shortfall_value,
        )
        self._events.append(event)
        self._close(loan, LoanStatus.LIQUIDATED)

        logger.warning(
            f"Liquidated loan {loan.id} at {self.market.collateral_price} "
            f"(LTV={float(loan.current_ltv):.2f}%): seized {split.collateral_seized}, "
            f"returned {split.collateral_returned}"
        )
        return LiquidationResult(loan_id=loan.id, outcome=LiquidationOutcome.LIQUIDATED, event=event)

    def check_margin_calls(self) -> List[Loan]:
        """Open loans at or above their liquidation threshold."""
        return [loan for loan in self.open_loans() if loan.current_ltv >= loan.liquidation_threshold]

    check_liquidatable = check_margin_calls

    def check_warnings(self, warning_ltv) -> List[Loan]:
        """Open loans at or above a warning LTV."""
        warning_ltv = to_decimal(warning_ltv, "warning_ltv")
        return [loan for loan in self.open_loans() if loan.current_ltv >= warning_ltv]

    def check_matured(self) -> List[Loan]:
        """Open loans whose maturity date has passed."""
        now = self.clock.now
        return [loan for loan in self.open_loans() if loan.is_past_maturity(now)]

    def mark_matured(self) -> List[Loan]:
        """Move active loans past maturity to MATURED. Returns those moved."""
        now = self.clock.now
        matured = [
            loan
            for loan in self._loans.values()
            if loan.status == LoanStatus.ACTIVE and loan.is_past_maturity(now)
        ]
        for loan in matured:
            loan.status = LoanStatus.MATURED
            logger.info(f"Loan {loan.id} matured")
        return matured

    # Helpers

    def _require_open(self, loan_id: str, operation: str) -> Loan:
        loan = self.get(loan_id)
        if not loan.is_open:
            raise LoanStateError(loan.id, loan.status, operation)
        return loan

    def _close(self, loan: Loan, status: LoanStatus) -> None:
        if not loan.is_open:
            raise ValidationError("status", f"Loan {loan.id} is already {loan.status.value}", loan.status.value)
        loan.status = status
        loan.closed_at = self.clock.now
