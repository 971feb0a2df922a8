"""Compound-growth projections for accounts fed by allocation entries."""

import logging
from collections import defaultdict

import numpy as np
import pandas as pd

from budget_core.config import DEFAULT_ANNUAL_RETURN, DEFAULT_WITHDRAWAL_RATE, MAX_PROJECTION_MONTHS
from budget_core.domain import Account, Entry, ALLOCATION
from budget_core.functional import Maybe, Some, Nothing

logger = logging.getLogger(__name__)

TOTAL_COLUMN = "Total"


def contributions_by_account(entries: tuple[Entry, ...], values: dict[str, float]) -> dict[str, float]:
    """Monthly inflow per target account id, from resolved allocation values."""
    totals: dict[str, float] = defaultdict(float)
    for e in entries:
        if e.type == ALLOCATION and e.target_account:
            totals[e.target_account] += values.get(e.id, 0.0)
    return dict(totals)


def project_account_value(account: Account, years: float, monthly_contribution: float = 0.0) -> float:
    """Future value after ``years`` with monthly compounding and contributions."""
    r = account.expected_return / 12
    n = years * 12
    if r == 0:
        return account.balance + monthly_contribution * n
    growth = (1 + r) ** n
    return account.balance * growth + monthly_contribution * (growth - 1) / r


def project_accounts(
    accounts: tuple[Account, ...], contributions: dict[str, float], years: float
) -> dict[str, float]:
    return {
        a.id: project_account_value(a, years, contributions.get(a.id, 0.0))
        for a in accounts
    }


def net_worth(accounts: tuple[Account, ...]) -> float:
    return sum(a.balance for a in accounts if a.is_active)


def weighted_annual_return(accounts: tuple[Account, ...], default: float = DEFAULT_ANNUAL_RETURN) -> float:
    """Balance-weighted average return of the active accounts."""
    active = [a for a in accounts if a.is_active]
    total = sum(a.balance for a in active)
    if total == 0:
        return default
    return sum(a.balance * a.expected_return for a in active) / total


def time_to_target(
    accounts: tuple[Account, ...],
    monthly_wealth_building: float,
    target: float,
    max_months: int = MAX_PROJECTION_MONTHS,
) -> Maybe[int]:
    """Months until net worth reaches ``target``, or ``Nothing()`` if it never does.

    Different accounts grow at different rates, so instead of a closed form
    this steps month by month at the weighted average return, for at most
    ``max_months`` months.
    """
    if monthly_wealth_building <= 0:
        logger.warning("Target %.2f unreachable: no monthly wealth-building contribution", target)
        return Nothing()

    worth = net_worth(accounts)
    if worth >= target:
        return Some(0)

    monthly_rate = weighted_annual_return(accounts) / 12
    months = 0
    while months < max_months:
        worth = worth * (1 + monthly_rate) + monthly_wealth_building
        months += 1
        if worth >= target:
            return Some(months)

    logger.warning("Target %.2f not reached within %d months", target, max_months)
    return Nothing()


def passive_income(worth: float, withdrawal_rate: float = DEFAULT_WITHDRAWAL_RATE) -> float:
    """Yearly income a portfolio of ``worth`` supports at ``withdrawal_rate``."""
    return worth * withdrawal_rate


def _unique_label(base: str, taken) -> str:
    label, n = base, 1
    while label in taken:
        n += 1
        label = f"{base} {n}"
    return label


def projection_table(
    accounts: tuple[Account, ...], contributions: dict[str, float], years: int
) -> pd.DataFrame:
    """Projected value per account at the end of each year, plus a total column.

    Columns are account names, numbered when two accounts share one. The total
    column is named ``TOTAL_COLUMN`` unless an account already uses that name;
    its actual name is kept in ``df.attrs["total_column"]``.
    """
    year_index = np.arange(0, years + 1)
    n = year_index * 12
    columns: dict[str, np.ndarray] = {}
    for a in accounts:
        c = contributions.get(a.id, 0.0)
        r = a.expected_return / 12
        label = _unique_label(a.name, columns)
        if r == 0:
            columns[label] = a.balance + c * n
        else:
            growth = np.power(1 + r, n)
            columns[label] = a.balance * growth + c * (growth - 1) / r

    df = pd.DataFrame(columns, index=pd.Index(year_index, name="year"))
    total = _unique_label(TOTAL_COLUMN, columns)
    df[total] = df.sum(axis=1) if columns else 0.0
    df.attrs["total_column"] = total
    return df
