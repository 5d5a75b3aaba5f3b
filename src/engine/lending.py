"""Lending engine: the single owned store behind every command and query."""

import logging
from collections import deque
from datetime import datetime
from decimal import Decimal
from typing import Deque, List, Optional, Tuple

from config.settings import Settings, get_settings
from src.core.constants import DEFAULT_PRICE_HISTORY_LIMIT, DEFAULT_WARNING_LTV
from src.core.errors import InvalidPriceError, ValidationError
from src.core.models import (
    LiquidationEvent,
    LiquidationResult,
    Loan,
    LoanParams,
    LoanStatus,
    MarketScenario,
    MarketSnapshot,
    PortfolioMetrics,
    PricePoint,
    Repayment,
    ScenarioImpact,
)
from src.core.numbers import require_positive

from .clock import SimulationClock
from .interest import InterestAccrual
from .ledger import LoanLedger
from .portfolio import PortfolioView
from .risk import LiquidationRisk, RiskCalculator

logger = logging.getLogger(__name__)


class LendingEngine:
    """
    Dual-asset lending engine.

    Owns the market snapshot, simulation clock and loan ledger. Every
    command runs to completion, including the recompute pass over open
    loans, before it returns, so readers never see LTVs or liquidation
    prices that lag the inputs they depend on. A command that raises has
    changed nothing.
    """

    def __init__(
        self,
        market: MarketSnapshot,
        clock: Optional[SimulationClock] = None,
        ledger: Optional[LoanLedger] = None,
        accrual: Optional[InterestAccrual] = None,
        warning_ltv=DEFAULT_WARNING_LTV,
        price_history_limit: int = DEFAULT_PRICE_HISTORY_LIMIT,
        auto_liquidate: bool = False,
    ):
        """
        Initialize engine.

        Args:
            market: Market snapshot, owned by the engine from here on
            clock: Simulation clock (default: starts at current UTC time)
            ledger: Loan ledger bound to market and clock (default policy if omitted)
            accrual: Interest accrual process
            warning_ltv: LTV (%) that counts a loan as at risk
            price_history_limit: Price points kept
            auto_liquidate: Liquidate eligible loans after every recompute
        """
        self.market = market
        self.clock = clock or SimulationClock()
        self.ledger = ledger or LoanLedger(self.market, self.clock)
        if self.ledger.market is not self.market or self.ledger.clock is not self.clock:
            raise ValidationError("ledger", "Ledger must share the engine's market and clock")
        self.accrual = accrual or InterestAccrual()
        self.portfolio_view = PortfolioView(warning_ltv)
        self.auto_liquidate = auto_liquidate
        self._price_history: Deque[PricePoint] = deque(maxlen=price_history_limit)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        start: Optional[datetime] = None,
    ) -> "LendingEngine":
        """Build an engine from application settings."""
        settings = settings or get_settings()
        market = MarketSnapshot(
            collateral_price=settings.collateral_price,
            debt_asset_price=settings.debt_asset_price,
            liquidation_fee_percent=settings.liquidation_fee_percent,
            collateral_symbol=settings.collateral_symbol,
            debt_symbol=settings.debt_symbol,
            reference_currency=settings.reference_currency,
        )
        clock = SimulationClock(start)
        ledger = LoanLedger(
            market,
            clock,
            liquidation_threshold=settings.liquidation_threshold,
            max_initial_ltv=settings.max_initial_ltv,
            min_loan_value=settings.min_loan_value,
            min_collateral_value=settings.min_collateral_value,
            repayment_tolerance_percent=settings.repayment_tolerance_percent,
            default_interest_rate=settings.default_interest_rate,
            term_interest_rates=settings.term_interest_rates,
        )
        return cls(
            market,
            clock=clock,
            ledger=ledger,
            warning_ltv=settings.warning_ltv,
            price_history_limit=settings.price_history_limit,
            auto_liquidate=settings.auto_liquidate,
        )

    # Queries

    @property
    def now(self) -> datetime:
        """Current simulation time."""
        return self.clock.now

    @property
    def cross_rate(self) -> Decimal:
        return self.market.cross_rate

    @property
    def liquidation_events(self) -> Tuple[LiquidationEvent, ...]:
        return self.ledger.events

    @property
    def price_history(self) -> List[PricePoint]:
        return list(self._price_history)

    def list_loans(self, status: Optional[LoanStatus] = None) -> List[Loan]:
        return self.ledger.loans(status)

    def get_loan(self, loan_id: str) -> Loan:
        return self.ledger.get(loan_id)

    def portfolio(self) -> PortfolioMetrics:
        """Aggregated metrics over open loans at current prices."""
        return self.portfolio_view.metrics(self.ledger.loans(), self.market)

    def liquidation_risk(self, loan_id: str) -> LiquidationRisk:
        return RiskCalculator.liquidation_risk(self.ledger.get(loan_id), self.market)

    def check_margin_calls(self) -> List[Loan]:
        """Open loans at or above their liquidation threshold."""
        return self.ledger.check_margin_calls()

    def check_warnings(self) -> List[Loan]:
        """Open loans at or above the warning LTV."""
        return self.ledger.check_warnings(self.portfolio_view.warning_ltv)

    def check_matured_loans(self) -> List[Loan]:
        return self.ledger.check_matured()

    def preview_scenario(self, scenario: MarketScenario) -> List[ScenarioImpact]:
        """
        Evaluate a price shock against every open loan without applying it.

        Args:
            scenario: Price changes to apply to both legs

        Returns:
            One ScenarioImpact per open loan
        """
        shocked = scenario.apply_to(self.market)
        impacts = []
        for loan in self.ledger.open_loans():
            ltv_after = RiskCalculator.loan_ltv(
                loan.collateral_amount, loan.total_debt, shocked.collateral_price, shocked.debt_asset_price
            )
            impacts.append(
                ScenarioImpact(
                    loan_id=loan.id,
                    ltv_before=loan.current_ltv,
                    ltv_after=ltv_after,
                    liquidation_price_after=RiskCalculator.loan_liquidation_price(loan, shocked.debt_asset_price),
                    liquidatable_after=ltv_after >= loan.liquidation_threshold,
                )
            )
        return impacts

    # Loan commands

    def create_loan(self, params: LoanParams) -> Loan:
        loan = self.ledger.create(params)
        self._after_update()
        return loan

    def repay_loan(self, loan_id: str, amount=None) -> Repayment:
        repayment = self.ledger.repay(loan_id, amount)
        self._after_update()
        return repayment

    def add_collateral(self, loan_id: str, amount) -> Loan:
        loan = self.ledger.add_collateral(loan_id, amount)
        self._after_update()
        return loan

    def liquidate_loan(self, loan_id: str) -> LiquidationResult:
        return self.ledger.liquidate(loan_id)

    # Market and time commands

    def set_collateral_price(self, price) -> Decimal:
        """Update the collateral price and refresh every open loan."""
        previous = self.market.update_collateral_price(price)
        logger.info(
            f"{self.market.collateral_symbol} price {previous} -> {self.market.collateral_price} "
            f"{self.market.reference_currency}"
        )
        self._after_update(record=True)
        return self.market.collateral_price

    def set_debt_asset_price(self, price) -> Decimal:
        """Update the debt asset price and refresh every open loan."""
        previous = self.market.update_debt_asset_price(price)
        logger.info(
            f"{self.market.debt_symbol} price {previous} -> {self.market.debt_asset_price} "
            f"{self.market.reference_currency}"
        )
        self._after_update(record=True)
        return self.market.debt_asset_price

    def set_prices(self, collateral_price=None, debt_asset_price=None) -> None:
        """Update one or both prices with a single recompute pass."""
        collateral = None
        debt = None
        if collateral_price is not None:
            collateral = require_positive(collateral_price, "collateral_price", InvalidPriceError)
        if debt_asset_price is not None:
            debt = require_positive(debt_asset_price, "debt_asset_price", InvalidPriceError)

        if collateral is not None:
            self.market.update_collateral_price(collateral)
        if debt is not None:
            self.market.update_debt_asset_price(debt)
        logger.info(
            f"Prices set: {self.market.collateral_symbol}={self.market.collateral_price}, "
            f"{self.market.debt_symbol}={self.market.debt_asset_price}"
        )
        self._after_update(record=True)

    def apply_scenario(self, scenario: MarketScenario) -> List[ScenarioImpact]:
        """Apply a price shock to the live market, returning its impact."""
        impacts = self.preview_scenario(scenario)
        collateral_price, debt_asset_price = scenario.shocked_prices(self.market)
        logger.info(f"Applying scenario '{scenario.name}'")
        self.set_prices(collateral_price, debt_asset_price)
        return impacts

    def advance_time(self, days) -> datetime:
        """
        Advance the simulation clock.

        Accrues interest on every open loan, refreshes LTVs, marks loans
        past maturity as matured and records a price point.

        Args:
            days: Days to advance, must be positive

        Returns:
            New simulation time
        """
        now = self.clock.advance(days)
        self.accrual.accrue_all(self.ledger.open_loans(), now)
        self.ledger.mark_matured()
        logger.info(f"Advanced {days} days to {now.isoformat()}")
        self._after_update(record=True)
        return now

    def simulate_tick(self, days, collateral_price=None, debt_asset_price=None) -> PricePoint:
        """
        Move prices and time together as one simulation step.

        Everything is validated first; the step then accrues interest,
        refreshes loans once and records a single price point.
        """
        days = require_positive(days, "days")
        collateral = None
        debt = None
        if collateral_price is not None:
            collateral = require_positive(collateral_price, "collateral_price", InvalidPriceError)
        if debt_asset_price is not None:
            debt = require_positive(debt_asset_price, "debt_asset_price", InvalidPriceError)

        now = self.clock.advance(days)
        self.accrual.accrue_all(self.ledger.open_loans(), now)
        if collateral is not None:
            self.market.update_collateral_price(collateral)
        if debt is not None:
            self.market.update_debt_asset_price(debt)
        self.ledger.mark_matured()
        self._after_update(record=True)
        return self._price_history[-1]

    def clear_price_history(self) -> None:
        self._price_history.clear()

    # Internals

    def _after_update(self, record: bool = False) -> None:
        self.ledger.recompute_all()
        if record:
            self._record_price_point()
        if self.auto_liquidate:
            self._liquidate_eligible()

    def _liquidate_eligible(self) -> List[LiquidationResult]:
        eligible = self.ledger.check_margin_calls()
        if eligible:
            logger.warning(f"Auto-liquidating {len(eligible)} loans")
        return [self.ledger.liquidate(loan.id) for loan in eligible]

    def _record_price_point(self) -> PricePoint:
        metrics = self.portfolio()
        point = PricePoint(
            timestamp=self.clock.now,
            collateral_price=self.market.collateral_price,
            debt_asset_price=self.market.debt_asset_price,
            portfolio_value=metrics.collateral_value,
            total_debt_value=metrics.debt_value,
            average_ltv=metrics.portfolio_ltv,
        )
        self._price_history.append(point)
        return point
