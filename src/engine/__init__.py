"""Lending engine components."""

from .risk import RiskCalculator, RiskLevel, LiquidationSplit, LiquidationRisk
from .clock import SimulationClock
from .interest import InterestModel, InterestAccrual
from .ledger import LoanLedger
from .portfolio import PortfolioView
from .lending import LendingEngine

__all__ = [
    "RiskCalculator",
    "RiskLevel",
    "LiquidationSplit",
    "LiquidationRisk",
    "SimulationClock",
    "InterestModel",
    "InterestAccrual",
    "LoanLedger",
    "PortfolioView",
    "LendingEngine",
]
