"""Unit tests for the price simulator."""

import pytest
from decimal import Decimal

from src.core.errors import InvalidAmountError, InvalidPriceError
from src.simulation import PriceSimulator


class TestPriceSimulator:
    """Tests for seeded random-walk prices."""

    def test_same_seed_same_path(self):
        """Test same seed same path."""
        a = PriceSimulator(seed=7).generate_path(Decimal("0.02"), 50)
        b = PriceSimulator(seed=7).generate_path(Decimal("0.02"), 50)
        assert a == b
        assert len(a) == 50

    def test_different_seed_different_path(self):
        """Test different seed different path."""
        a = PriceSimulator(seed=1).generate_path(Decimal("0.02"), 20)
        b = PriceSimulator(seed=2).generate_path(Decimal("0.02"), 20)
        assert a != b

    def test_reset_replays(self):
        """Test reset replays."""
        simulator = PriceSimulator(seed=3)
        first = simulator.generate_path(Decimal("1"), 10)
        simulator.reset()
        assert simulator.generate_path(Decimal("1"), 10) == first

    def test_price_floor(self):
        """Test price floor."""
        simulator = PriceSimulator(volatility=Decimal("0.5"), min_price=Decimal("0.01"), seed=0)
        path = simulator.generate_path(Decimal("0.011"), 200)
        assert min(path) >= Decimal("0.01")

    def test_zero_volatility_is_flat(self):
        """Test zero volatility is flat."""
        simulator = PriceSimulator(volatility=Decimal("0"), seed=0)
        assert simulator.generate_path(Decimal("0.02"), 5) == [Decimal("0.02")] * 5

    def test_presets(self):
        """Test the preset catalogue."""
        simulator = PriceSimulator.with_preset("extreme", seed=1)
        assert simulator.volatility == Decimal("0.50")
        with pytest.raises(InvalidAmountError):
            PriceSimulator.with_preset("apocalyptic")

    def test_from_settings(self, settings):
        """Test construction from settings."""
        simulator = PriceSimulator.from_settings(settings, seed=99)
        assert simulator.volatility == settings.simulation_volatility
        assert simulator.min_price == settings.min_simulated_price
        assert simulator.seed == 99

    def test_rejects_negative_ticks(self):
        """Test rejects negative ticks."""
        with pytest.raises(InvalidAmountError):
            PriceSimulator(seed=0).generate_path(Decimal("1"), -1)

    def test_rejects_bad_start_price(self):
        """Test rejects bad start price."""
        with pytest.raises(InvalidPriceError):
            PriceSimulator(seed=0).generate_path(Decimal("0"), 1)
