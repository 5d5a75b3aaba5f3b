"""Exception types raised by the lending engine.

Every command validates before it mutates, so a raised error means the
ledger, market snapshot and clock are exactly as they were before the call.
"""

from typing import Any, Dict, Optional


class LendingError(Exception):
    """Base class for lending engine errors."""

    code = "LENDING_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ValidationError(LendingError, ValueError):
    """Input rejected at an operation boundary."""

    code = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(message, {"field": field, "value": value})
        self.field = field
        self.value = value


class InvalidAmountError(ValidationError):
    """Amount is zero, negative, non-finite or below a protocol minimum."""

    code = "INVALID_AMOUNT"


class InvalidPriceError(ValidationError):
    """Price is zero, negative or non-finite."""

    code = "INVALID_PRICE"


class LTVLimitError(ValidationError):
    """Loan would open above the maximum initial LTV."""

    code = "LTV_LIMIT"

    def __init__(self, ltv, max_ltv):
        super().__init__(
            "ltv",
            f"Initial LTV {ltv:.2f}% exceeds maximum {max_ltv}%",
            ltv,
        )
        self.ltv = ltv
        self.max_ltv = max_ltv


class RepaymentExceedsDebtError(ValidationError):
    """Partial repayment larger than total debt beyond tolerance."""

    code = "REPAYMENT_EXCEEDS_DEBT"

    def __init__(self, amount, total_debt):
        super().__init__(
            "amount",
            f"Repayment {amount} exceeds total debt {total_debt}",
            amount,
        )
        self.total_debt = total_debt


class LoanStateError(ValidationError):
    """Operation requires an open loan."""

    code = "LOAN_STATE"

    def __init__(self, loan_id: str, status, operation: str):
        super().__init__(
            "status",
            f"Cannot {operation} loan {loan_id} in status {status.value}",
            status.value,
        )
        self.loan_id = loan_id
        self.status = status


class LoanNotFoundError(LendingError, KeyError):
    """Unknown loan id."""

    code = "LOAN_NOT_FOUND"

    def __init__(self, loan_id: str):
        super().__init__(f"Loan not found: {loan_id}", {"loan_id": loan_id})
        self.loan_id = loan_id
