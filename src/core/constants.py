"""Constants for lending protocol calculations."""

from decimal import Decimal

# Time constants
SECONDS_PER_DAY = 24 * 3600
DAYS_PER_YEAR = Decimal("365")

# Precision
LTV_QUANTUM = Decimal("0.0000000001")  # LTV percentages are compared at 10 dp
ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Default protocol policy (percentages)
DEFAULT_LIQUIDATION_THRESHOLD = Decimal("65")
DEFAULT_MAX_INITIAL_LTV = Decimal("50")
DEFAULT_WARNING_LTV = Decimal("50")
DEFAULT_LIQUIDATION_FEE = Decimal("10")
DEFAULT_REPAYMENT_TOLERANCE = Decimal("1")

# Risk bands as fractions of the liquidation threshold
HIGH_RISK_FRACTION = Decimal("0.9")
MEDIUM_RISK_FRACTION = Decimal("0.75")

# APR (%) by loan term
TERM_INTEREST_RATES = {
    30: Decimal("19"),
    60: Decimal("16"),
    90: Decimal("15"),
}

# Price simulation
DEFAULT_PRICE_HISTORY_LIMIT = 100
DEFAULT_TICK_MINUTES = 10
VOLATILITY_PRESETS = {
    "calm": Decimal("0.005"),
    "normal": Decimal("0.02"),
    "volatile": Decimal("0.10"),
    "extreme": Decimal("0.50"),
}

DEFAULT_BORROWER = "demo-user"
