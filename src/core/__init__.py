"""Core module - models, constants and errors."""

from .models import (
    MarketSnapshot,
    Loan,
    LoanParams,
    LoanStatus,
    LiquidationEvent,
    LiquidationOutcome,
    LiquidationResult,
    Repayment,
    PricePoint,
    PortfolioMetrics,
    MarketScenario,
    ScenarioImpact,
)
from .constants import SECONDS_PER_DAY, DAYS_PER_YEAR
from .errors import (
    LendingError,
    ValidationError,
    InvalidAmountError,
    InvalidPriceError,
    LTVLimitError,
    RepaymentExceedsDebtError,
    LoanStateError,
    LoanNotFoundError,
)

__all__ = [
    "MarketSnapshot",
    "Loan",
    "LoanParams",
    "LoanStatus",
    "LiquidationEvent",
    "LiquidationOutcome",
    "LiquidationResult",
    "Repayment",
    "PricePoint",
    "PortfolioMetrics",
    "MarketScenario",
    "ScenarioImpact",
    "SECONDS_PER_DAY",
    "DAYS_PER_YEAR",
    "LendingError",
    "ValidationError",
    "InvalidAmountError",
    "InvalidPriceError",
    "LTVLimitError",
    "RepaymentExceedsDebtError",
    "LoanStateError",
    "LoanNotFoundError",
]
