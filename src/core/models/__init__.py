"""Core data models for the lending simulator."""

from .market import MarketSnapshot
from .loan import Loan, LoanParams, LoanStatus
from .events import (
    LiquidationEvent,
    LiquidationOutcome,
    LiquidationResult,
    Repayment,
    PricePoint,
)
from .portfolio import PortfolioMetrics
from .scenario import MarketScenario, ScenarioImpact

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
]
