"""Pytest configuration and fixtures."""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from config.settings import Settings
from src.core.models import LoanParams, MarketSnapshot
from src.engine import LendingEngine, LoanLedger, SimulationClock

START = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def start_time() -> datetime:
    return START


@pytest.fixture
def market() -> MarketSnapshot:
    """Collateral at $0.02, debt asset at $3.00, 10% liquidation fee."""
    return MarketSnapshot(
        collateral_price=Decimal("0.02"),
        debt_asset_price=Decimal("3.00"),
        liquidation_fee_percent=Decimal("10"),
    )


@pytest.fixture
def clock() -> SimulationClock:
    return SimulationClock(START)


@pytest.fixture
def ledger(market, clock) -> LoanLedger:
    return LoanLedger(market, clock)


@pytest.fixture
def engine(market, clock, ledger) -> LendingEngine:
    return LendingEngine(market, clock=clock, ledger=ledger)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def standard_params() -> LoanParams:
    """150,000 collateral borrowing 500 at 0% APR: LTV 50%."""
    return LoanParams(
        collateral_amount=Decimal("150000"),
        borrow_amount=Decimal("500"),
        interest_rate=Decimal("0"),
        term_days=60,
        liquidation_threshold=Decimal("65"),
    )


@pytest.fixture
def standard_loan(engine, standard_params):
    return engine.create_loan(standard_params)
