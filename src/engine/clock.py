"""Virtual time for the lending simulation."""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from src.core.constants import SECONDS_PER_DAY
from src.core.errors import InvalidAmountError
from src.core.numbers import require_positive

logger = logging.getLogger(__name__)

# datetime resolution
MIN_STEP_SECONDS = Decimal("0.000001")


class SimulationClock:
    """
    Explicit "now" used instead of wall-clock time.

    Only advances forward, by whole or fractional days.
    """

    def __init__(self, start: Optional[datetime] = None):
        """
        Initialize clock.

        Args:
            start: Initial simulation time (default: current UTC time)
        """
        if start is None:
            start = datetime.now(timezone.utc)
        elif start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._start = start
        self._now = start

    @property
    def now(self) -> datetime:
        return self._now

    @property
    def start(self) -> datetime:
        return self._start

    @property
    def elapsed_days(self) -> Decimal:
        """Days advanced since the clock started."""
        return self.days_between(self._start, self._now)

    def advance(self, days) -> datetime:
        """
        Move the clock forward.

        Args:
            days: Days to advance, must be positive

        Returns:
            New simulation time

        Raises:
            InvalidAmountError: days not positive, below the clock resolution,
                or past the latest representable date
        """
        days = require_positive(days, "days")
        seconds = days * SECONDS_PER_DAY
        if seconds < MIN_STEP_SECONDS:
            raise InvalidAmountError("days", f"days must be at least one microsecond, got {days}", days)
        try:
            self._now = self._now + timedelta(seconds=float(seconds))
        except OverflowError:
            raise InvalidAmountError("days", f"days is out of the clock's range, got {days}", days) from None
        logger.debug(f"Clock advanced {days} days to {self._now.isoformat()}")
        return self._now

    def days_until(self, moment: datetime) -> Decimal:
        """Days from now until moment (negative if in the past)."""
        return self.days_between(self._now, moment)

    @staticmethod
    def days_between(start: datetime, end: datetime) -> Decimal:
        return Decimal(str((end - start).total_seconds())) / SECONDS_PER_DAY
