"""Interest accrual for open loans."""

import logging
from datetime import datetime
from decimal import Decimal

from src.core.constants import DAYS_PER_YEAR, HUNDRED, ZERO
from src.core.models import Loan
from src.core.numbers import require_non_negative

from .clock import SimulationClock

logger = logging.getLogger(__name__)


class InterestModel:
    """
    Daily-compounding interest.

    interest = principal * ((1 + rate / 365 / 100) ** days - 1)

    Every loan accrues with this one formula. fixed_term_interest is only a
    quoting helper for the simple-interest figure shown at origination.
    """

    @staticmethod
    def daily_rate(annual_rate_percent) -> Decimal:
        """Daily periodic rate from an APR percentage."""
        rate = require_non_negative(annual_rate_percent, "interest_rate")
        return rate / DAYS_PER_YEAR / HUNDRED

    @staticmethod
    def growth_factor(annual_rate_percent, days) -> Decimal:
        """Balance multiplier after compounding daily for days."""
        days = require_non_negative(days, "days")
        base = 1 + InterestModel.daily_rate(annual_rate_percent)
        if days == days.to_integral_value():
            return base ** int(days)
        return base ** days

    @staticmethod
    def compound_interest(principal, annual_rate_percent, days) -> Decimal:
        """
        Interest owed on principal after days of daily compounding.

        Args:
            principal: Amount borrowed
            annual_rate_percent: APR (%)
            days: Elapsed days (fractional allowed)

        Returns:
            Interest in the principal's units
        """
        principal = require_non_negative(principal, "principal")
        return principal * (InterestModel.growth_factor(annual_rate_percent, days) - 1)

    @staticmethod
    def fixed_term_interest(principal, annual_rate_percent, term_days) -> Decimal:
        """Simple interest for a full term: principal * rate/100 * term/365."""
        principal = require_non_negative(principal, "principal")
        rate = require_non_negative(annual_rate_percent, "interest_rate")
        term = require_non_negative(term_days, "term_days")
        return principal * (rate / HUNDRED) * (term / DAYS_PER_YEAR)


class InterestAccrual:
    """Applies the interest model to loans as simulation time passes."""

    def __init__(self, model: InterestModel = None):
        self.model = model or InterestModel()

    def accrue(self, loan: Loan, now: datetime) -> Decimal:
        """
        Accrue interest on one loan up to now.

        The outstanding balance (principal plus interest already owed)
        compounds from last_accrual_at; the growth is added to
        accrued_interest. Terminal loans are left untouched.

        Returns:
            Interest added by this call
        """
        if not loan.is_open:
            return ZERO

        days = SimulationClock.days_between(loan.last_accrual_at, now)
        if days <= 0:
            return ZERO

        added = self.model.compound_interest(loan.total_debt, loan.interest_rate, days)
        loan.accrued_interest += added
        loan.last_accrual_at = now
        return added

    def accrue_all(self, loans, now: datetime) -> Decimal:
        """Accrue every open loan, returning total interest added."""
        total = ZERO
        count = 0
        for loan in loans:
            added = self.accrue(loan, now)
            if added:
                total += added
                count += 1
        if count:
            logger.debug(f"Accrued {total} interest across {count} loans")
        return total
