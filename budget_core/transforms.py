import json
import re
from dataclasses import replace
from typing import Any, Optional, Tuple

from budget_core.domain import (
    Account, Entry, AMOUNT, PERCENT, MONTHLY, SAVINGS, INCOME, EXPENSE,
)
from budget_core.valuation import Totals

_PERCENT_OF = re.compile(r"^(\d+(?:\.\d+)?)\s*%\s*(?:of\s*)?@?(\w+)$", re.IGNORECASE)
_JUST_PERCENT = re.compile(r"^(\d+(?:\.\d+)?)\s*%$")
_AT_REFERENCE = re.compile(r"@(\w+)")
_LEADING_NUMBER = re.compile(r"^-?\d*\.?\d+")


def _pick(d: dict, *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return default


def entry_from_dict(d: dict) -> Entry:
    """Build an Entry from a saved row. Accepts both the exported camelCase
    keys (``mode``, ``freq``, ``targetAccount`` ...) and field names."""
    return Entry(
        id=str(d["id"]),
        type=str(_pick(d, "type", default=EXPENSE)).lower(),
        name=_pick(d, "name", default=""),
        value_mode=str(_pick(d, "value_mode", "mode", default=AMOUNT)).lower(),
        value=float(_pick(d, "value", default=0) or 0),
        reference=_pick(d, "reference", default=""),
        frequency=str(_pick(d, "frequency", "freq", default=MONTHLY)).lower(),
        category=_pick(d, "category", default=""),
        is_wealth_building=bool(_pick(d, "is_wealth_building", "isWealthBuilding", default=False)),
        source_income=_pick(d, "source_income", "sourceIncome", default=""),
        target_account=_pick(d, "target_account", "targetAccount", default=""),
    )


def account_from_dict(d: dict) -> Account:
    return Account(
        id=str(d["id"]),
        name=d["name"],
        type=_pick(d, "type", default=SAVINGS),
        balance=float(_pick(d, "balance", default=0)),
        expected_return=float(_pick(d, "expected_return", "expectedReturn", default=0)),
        is_active=bool(_pick(d, "is_active", "isActive", default=True)),
    )


def load_seed(path: str) -> Tuple[Tuple[Entry, ...], Tuple[Account, ...]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    entries = tuple(entry_from_dict(r) for r in data.get("rows", []))
    accounts = tuple(account_from_dict(a) for a in data.get("accounts", []))
    return entries, accounts


def dump_budget(entries: Tuple[Entry, ...], accounts: Tuple[Account, ...]) -> dict:
    return {
        "rows": [
            {
                "id": e.id,
                "type": e.type,
                "name": e.name,
                "value": e.value,
                "mode": e.value_mode,
                "reference": e.reference,
                "freq": e.frequency,
                "category": e.category,
                "isWealthBuilding": e.is_wealth_building,
                "sourceIncome": e.source_income,
                "targetAccount": e.target_account,
            }
            for e in entries
        ],
        "accounts": [
            {
                "id": a.id,
                "name": a.name,
                "type": a.type,
                "balance": a.balance,
                "expectedReturn": a.expected_return,
                "isActive": a.is_active,
            }
            for a in accounts
        ],
    }


def add_entry(entries: Tuple[Entry, ...], e: Entry) -> Tuple[Entry, ...]:
    return entries + (e,)


def update_entry(entries: Tuple[Entry, ...], entry_id: str, **changes: Any) -> Tuple[Entry, ...]:
    return tuple(replace(e, **changes) if e.id == entry_id else e for e in entries)


def remove_entry(entries: Tuple[Entry, ...], entry_id: str) -> Tuple[Entry, ...]:
    return tuple(filter(lambda e: e.id != entry_id, entries))


def parse_value(text: str, entry: Optional[Entry] = None) -> dict[str, Any]:
    """Parse the quick-entry value syntax into Entry field changes.

    ``"30% of Salary"`` / ``"30%@Salary"``  -> percent of Salary
    ``"30%"``                               -> percent, reference kept
    ``"@Salary"``                           -> percent of Salary, value kept
    anything else                           -> plain amount
    """
    text = (text or "").strip()

    m = _PERCENT_OF.match(text)
    if m:
        return {"value_mode": PERCENT, "value": float(m.group(1)), "reference": m.group(2)}

    m = _JUST_PERCENT.match(text)
    if m:
        return {"value_mode": PERCENT, "value": float(m.group(1)), "reference": entry.reference if entry else ""}

    m = _AT_REFERENCE.search(text)
    if m:
        return {"value_mode": PERCENT, "value": entry.value if entry else 0.0, "reference": m.group(1)}

    # leading number only: "1.200.50" -> 1.2, "12-" -> 12
    m = _LEADING_NUMBER.match(re.sub(r"[^0-9.-]", "", text))
    amount = float(m.group(0)) if m else 0.0
    return {"value_mode": AMOUNT, "value": amount, "reference": ""}


def totals_by_category(entries: Tuple[Entry, ...], values: dict[str, float]) -> dict[str, dict[str, float]]:
    totals: dict[str, dict[str, float]] = {}
    for e in entries:
        if not e.category or e.type not in (INCOME, EXPENSE):
            continue
        bucket = totals.setdefault(e.category, {"income": 0.0, "expense": 0.0})
        bucket[e.type] += values.get(e.id, 0.0)
    return dict(sorted(totals.items()))


def savings_rate(totals: Totals) -> float:
    return totals.net / totals.income if totals.income > 0 else 0.0


def record_snapshot(history: Tuple[dict, ...], month: str, totals: Totals) -> Tuple[dict, ...]:
    """Keep one snapshot per month (``YYYY-MM``); the current month is overwritten."""
    snapshot = {"month": month, "income": totals.income, "expense": totals.expense, "net": totals.net}
    if not history or history[-1].get("month") != month:
        return history + (snapshot,)
    if history[-1] == snapshot:
        return history
    return history[:-1] + (snapshot,)


def example_entries() -> Tuple[Entry, ...]:
    return (
        Entry("1", INCOME, "Salary", AMOUNT, 75000, frequency="yearly", category="Salary"),
        Entry("2", INCOME, "Tips", AMOUNT, 5, frequency="daily", category="Other Income"),
        Entry("3", EXPENSE, "Income Tax", PERCENT, 30, reference="Salary", frequency="yearly", category="Other"),
        Entry("4", EXPENSE, "Electric", AMOUNT, 300, category="Utilities"),
        Entry("5", EXPENSE, "Mortgage", AMOUNT, 1800, category="Housing"),
        Entry("6", EXPENSE, "Internet", AMOUNT, 60, category="Utilities"),
        Entry("7", EXPENSE, "Groceries", AMOUNT, 500, category="Food"),
        Entry("8", EXPENSE, "Car Insurance", AMOUNT, 1200, frequency="yearly", category="Transport"),
        Entry("9", EXPENSE, "Gas", AMOUNT, 200, category="Transport"),
        Entry("10", EXPENSE, "Dining Out", AMOUNT, 300, category="Food"),
    )
