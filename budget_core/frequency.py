from budget_core.domain import DAILY, WEEKLY, MONTHLY, YEARLY

# Average-length factors, not calendar exact
MONTHLY_MULTIPLIERS: dict[str, float] = {
    DAILY: 30.4167,
    WEEKLY: 4.33,
    MONTHLY: 1.0,
    YEARLY: 1 / 12,
}


def to_monthly(value: float, frequency: str) -> float:
    return value * MONTHLY_MULTIPLIERS.get(frequency, 1.0)


def from_monthly(value: float, view: str) -> float:
    """Convert a canonical monthly figure back to the cadence shown in ``view``."""
    return value / MONTHLY_MULTIPLIERS.get(view, 1.0)
