"""Seeded random-walk price simulation."""

import logging
from decimal import Decimal
from typing import List, Optional

import numpy as np

from config.settings import Settings, get_settings
from src.core.constants import DEFAULT_TICK_MINUTES, VOLATILITY_PRESETS
from src.core.errors import InvalidAmountError, InvalidPriceError
from src.core.models import PricePoint
from src.core.numbers import require_non_negative, require_positive

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = Decimal("1440")


class PriceSimulator:
    """
    Random-walk price generator with weak mean reversion.

    Each tick:
        change = N(0, 1) * volatility * 0.5 + (target - price) * strength
        price  = max(min_price, price * (1 + change))

    The collateral leg always moves; the debt asset leg moves only when
    debt_volatility is non-zero. A fixed seed reproduces the same path.
    """

    def __init__(
        self,
        volatility=Decimal("0.02"),
        mean_reversion_strength=Decimal("0.0001"),
        target_price=None,
        min_price=Decimal("0.01"),
        debt_volatility=Decimal("0"),
        debt_target_price=None,
        seed: Optional[int] = None,
    ):
        """
        Initialize simulator.

        Args:
            volatility: Collateral shock scale per tick (0.02 = 2%)
            mean_reversion_strength: Pull toward target per unit of price gap
            target_price: Collateral reversion target (default: first price seen)
            min_price: Price floor for both legs
            debt_volatility: Debt asset shock scale per tick
            debt_target_price: Debt asset reversion target (default: first price seen)
            seed: Random seed
        """
        self.volatility = require_non_negative(volatility, "volatility")
        self.mean_reversion_strength = require_non_negative(mean_reversion_strength, "mean_reversion_strength")
        self.min_price = require_positive(min_price, "min_price", InvalidPriceError)
        self.debt_volatility = require_non_negative(debt_volatility, "debt_volatility")
        self.target_price = (
            None if target_price is None else require_positive(target_price, "target_price", InvalidPriceError)
        )
        self.debt_target_price = (
            None
            if debt_target_price is None
            else require_positive(debt_target_price, "debt_target_price", InvalidPriceError)
        )
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides) -> "PriceSimulator":
        settings = settings or get_settings()
        kwargs = {
            "volatility": settings.simulation_volatility,
            "mean_reversion_strength": settings.mean_reversion_strength,
            "min_price": settings.min_simulated_price,
            "seed": settings.simulation_seed,
        }
        kwargs.update(overrides)
        return cls(**kwargs)

    @classmethod
    def with_preset(cls, preset: str, **kwargs) -> "PriceSimulator":
        """Build a simulator from a named volatility preset."""
        if preset not in VOLATILITY_PRESETS:
            raise InvalidAmountError("preset", f"Unknown volatility preset: {preset}", preset)
        return cls(volatility=VOLATILITY_PRESETS[preset], **kwargs)

    def reset(self, seed: Optional[int] = None) -> None:
        """Restart the random stream."""
        if seed is not None:
            self.seed = seed
        self._rng = np.random.default_rng(self.seed)

    def next_price(self, price, volatility, target=None) -> Decimal:
        """Draw the next price for one leg."""
        price = require_positive(price, "price", InvalidPriceError)
        if target is None:
            target = price

        shock = Decimal(str(self._rng.standard_normal()))
        change = shock * volatility * Decimal("0.5")
        change += (target - price) * self.mean_reversion_strength

        return max(self.min_price, price * (1 + change))

    def generate_path(self, start_price, ticks: int) -> List[Decimal]:
        """
        Generate a collateral price path without touching an engine.

        Returns:
            ticks prices following start_price
        """
        if ticks < 0:
            raise InvalidAmountError("ticks", f"ticks must not be negative, got {ticks}", ticks)
        price = require_positive(start_price, "start_price", InvalidPriceError)
        target = self.target_price or price

        path = []
        for _ in range(ticks):
            price = self.next_price(price, self.volatility, target)
            path.append(price)
        return path

    def run(self, engine, ticks: int, tick_minutes=DEFAULT_TICK_MINUTES) -> List[PricePoint]:
        """
        Drive an engine through ticks price/time steps.

        Each tick moves the prices and advances the clock by tick_minutes
        through LendingEngine.simulate_tick, so every step gets the same
        recompute (and auto-liquidation, if enabled) as a manual update.

        Args:
            engine: LendingEngine to drive
            ticks: Number of steps
            tick_minutes: Simulated minutes per step

        Returns:
            The price point recorded at each step
        """
        if ticks < 0:
            raise InvalidAmountError("ticks", f"ticks must not be negative, got {ticks}", ticks)
        tick_days = require_positive(tick_minutes, "tick_minutes") / MINUTES_PER_DAY

        if self.target_price is None:
            self.target_price = engine.market.collateral_price
        if self.debt_target_price is None:
            self.debt_target_price = engine.market.debt_asset_price

        points = []
        for _ in range(ticks):
            collateral_price = self.next_price(engine.market.collateral_price, self.volatility, self.target_price)
            debt_price = None
            if self.debt_volatility > 0:
                debt_price = self.next_price(
                    engine.market.debt_asset_price, self.debt_volatility, self.debt_target_price
                )
            points.append(engine.simulate_tick(tick_days, collateral_price, debt_price))

        if points:
            logger.info(
                f"Simulated {ticks} ticks: collateral price {points[0].collateral_price} -> "
                f"{points[-1].collateral_price}"
            )
        return points
