"""Loan data models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from src.core.constants import DEFAULT_BORROWER, SECONDS_PER_DAY


class LoanStatus(Enum):
    """Lifecycle status of a loan."""

    ACTIVE = "active"
    MATURED = "matured"        # Past maturity date, still open
    REPAID = "repaid"
    LIQUIDATED = "liquidated"

    @property
    def is_open(self) -> bool:
        return self in (LoanStatus.ACTIVE, LoanStatus.MATURED)


@dataclass
class LoanParams:
    """
    Parameters for opening a loan.

    Exactly one of borrow_amount (debt asset units) or target_ltv (%) is given.
    interest_rate defaults from the term rate table when omitted.
    """

    collateral_amount: Decimal
    borrow_amount: Optional[Decimal] = None
    target_ltv: Optional[Decimal] = None
    interest_rate: Optional[Decimal] = None
    term_days: Optional[int] = 60
    liquidation_threshold: Optional[Decimal] = None
    borrower: str = DEFAULT_BORROWER


@dataclass
class Loan:
    """
    A single collateralized loan.

    collateral_amount is in collateral units; borrowed_amount and
    accrued_interest are in debt asset units. current_ltv and
    liquidation_price are as of the last recompute.
    """

    id: str
    collateral_amount: Decimal
    borrowed_amount: Decimal
    interest_rate: Decimal            # APR (%), fixed for the loan's life
    liquidation_threshold: Decimal    # LTV (%)
    created_at: datetime

    borrower: str = DEFAULT_BORROWER
    accrued_interest: Decimal = Decimal("0")
    term_days: Optional[int] = None
    maturity_date: Optional[datetime] = None

    # Derived risk fields
    current_ltv: Decimal = Decimal("0")
    liquidation_price: Decimal = Decimal("0")

    status: LoanStatus = LoanStatus.ACTIVE
    last_accrual_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    # Original principal, for reporting
    initial_borrowed_amount: Decimal = field(default=Decimal("0"))

    def __post_init__(self):
        if self.last_accrual_at is None:
            self.last_accrual_at = self.created_at
        if self.initial_borrowed_amount == 0:
            self.initial_borrowed_amount = self.borrowed_amount

    @property
    def total_debt(self) -> Decimal:
        """Principal plus interest owed, in debt asset units."""
        return self.borrowed_amount + self.accrued_interest

    @property
    def is_open(self) -> bool:
        return self.status.is_open

    def is_past_maturity(self, now: datetime) -> bool:
        return self.maturity_date is not None and now >= self.maturity_date

    def days_until_maturity(self, now: datetime) -> Optional[Decimal]:
        """Days left until maturity (negative once past it)."""
        if self.maturity_date is None:
            return None
        seconds = Decimal(str((self.maturity_date - now).total_seconds()))
        return seconds / SECONDS_PER_DAY

    def to_dict(self) -> dict:
        """Serialize to a flat dictionary."""
        return {
            "id": self.id,
            "borrower": self.borrower,
            "collateral_amount": str(self.collateral_amount),
            "borrowed_amount": str(self.borrowed_amount),
            "initial_borrowed_amount": str(self.initial_borrowed_amount),
            "accrued_interest": str(self.accrued_interest),
            "total_debt": str(self.total_debt),
            "interest_rate": str(self.interest_rate),
            "liquidation_threshold": str(self.liquidation_threshold),
            "term_days": self.term_days,
            "created_at": self.created_at.isoformat(),
            "maturity_date": self.maturity_date.isoformat() if self.maturity_date else None,
            "current_ltv": str(self.current_ltv),
            "liquidation_price": str(self.liquidation_price),
            "status": self.status.value,
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
        }
