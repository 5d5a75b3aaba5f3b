"""Preset dual-asset market scenarios."""

from decimal import Decimal
from typing import Dict, List

from src.core.errors import InvalidAmountError
from src.core.models import MarketScenario

STABLE = MarketScenario(
    name="stable",
    description="Both prices unchanged",
)
COLLATERAL_CRASH = MarketScenario(
    name="collateral_crash",
    collateral_change_percent=Decimal("-30"),
    description="Collateral loses 30%, debt asset flat",
)
MARKET_CRASH = MarketScenario(
    name="market_crash",
    collateral_change_percent=Decimal("-25"),
    debt_change_percent=Decimal("-25"),
    description="Both assets fall 25%",
)
COLLATERAL_RECOVERY = MarketScenario(
    name="collateral_recovery",
    collateral_change_percent=Decimal("50"),
    description="Collateral gains 50%",
)
BULL_MARKET = MarketScenario(
    name="bull_market",
    collateral_change_percent=Decimal("40"),
    debt_change_percent=Decimal("40"),
    description="Both assets rise 40%",
)
WORST_CASE = MarketScenario(
    name="worst_case",
    collateral_change_percent=Decimal("-30"),
    debt_change_percent=Decimal("30"),
    description="Collateral -30% while the debt asset rises 30%",
)

PRESET_SCENARIOS: Dict[str, MarketScenario] = {
    s.name: s
    for s in (STABLE, COLLATERAL_CRASH, MARKET_CRASH, COLLATERAL_RECOVERY, BULL_MARKET, WORST_CASE)
}


def get_scenario(name: str) -> MarketScenario:
    """Look up a preset scenario by name."""
    try:
        return PRESET_SCENARIOS[name]
    except KeyError:
        raise InvalidAmountError("scenario", f"Unknown scenario: {name}", name) from None


def custom_scenario(collateral_change_percent=0, debt_change_percent=0, name: str = "custom") -> MarketScenario:
    return MarketScenario(
        name=name,
        collateral_change_percent=collateral_change_percent,
        debt_change_percent=debt_change_percent,
    )


def list_scenarios() -> List[MarketScenario]:
    return list(PRESET_SCENARIOS.values())
