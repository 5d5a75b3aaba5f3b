"""Price and scenario simulation tools."""

from .price_path import PriceSimulator
from .scenarios import PRESET_SCENARIOS, custom_scenario, get_scenario, list_scenarios

__all__ = [
    "PriceSimulator",
    "PRESET_SCENARIOS",
    "custom_scenario",
    "get_scenario",
    "list_scenarios",
]
