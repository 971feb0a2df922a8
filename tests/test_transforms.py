import json

import pytest

from budget_core.domain import Entry, Account, INCOME, EXPENSE, ALLOCATION, AMOUNT, PERCENT, YEARLY
from budget_core.transforms import (
    load_seed, dump_budget, add_entry, update_entry, remove_entry, parse_value,
    totals_by_category, savings_rate, record_snapshot, example_entries, entry_from_dict,
)
from budget_core.valuation import Totals, evaluate


def test_load_seed():
    entries, accounts = load_seed("data/seed.json")

    assert len(entries) >= 10
    assert len(accounts) >= 3
    assert all(isinstance(e, Entry) for e in entries)
    salary = next(e for e in entries if e.name == "Salary")
    assert salary.frequency == YEARLY
    allocations = [e for e in entries if e.type == ALLOCATION]
    assert allocations and all(e.target_account for e in allocations)


def test_load_seed_round_trip(tmp_path):
    entries = example_entries()
    accounts = (Account("a1", "Savings", "savings", 100.0, 0.04),)
    path = tmp_path / "budget.json"
    path.write_text(json.dumps(dump_budget(entries, accounts)), encoding="utf-8")

    loaded_entries, loaded_accounts = load_seed(str(path))
    assert loaded_accounts == accounts
    assert [e.name for e in loaded_entries] == [e.name for e in entries]


def test_entry_from_dict_accepts_field_names():
    e = entry_from_dict({"id": 7, "type": "Income", "name": "Rent in", "value_mode": "amount", "value": "12.5"})
    assert e.id == "7"
    assert e.type == INCOME
    assert e.value == 12.5


def test_add_update_remove_are_immutable():
    entries = example_entries()
    new = Entry("x", EXPENSE, "Gym", AMOUNT, 40)

    added = add_entry(entries, new)
    assert len(added) == len(entries) + 1
    assert new not in entries

    updated = update_entry(added, "x", value=45)
    assert updated[-1].value == 45
    assert added[-1].value == 40

    removed = remove_entry(updated, "x")
    assert removed == entries


def test_parse_value_percent_of_reference():
    assert parse_value("30% of Salary") == {"value_mode": PERCENT, "value": 30.0, "reference": "Salary"}
    assert parse_value("12.5%@Bonus") == {"value_mode": PERCENT, "value": 12.5, "reference": "Bonus"}


def test_parse_value_keeps_existing_reference_or_value():
    current = Entry("t", EXPENSE, "Tax", PERCENT, 20, reference="Salary")
    assert parse_value("25%", current) == {"value_mode": PERCENT, "value": 25.0, "reference": "Salary"}
    assert parse_value("@Wages", current) == {"value_mode": PERCENT, "value": 20, "reference": "Wages"}


def test_parse_value_amount():
    assert parse_value("$1,250.50") == {"value_mode": AMOUNT, "value": 1250.5, "reference": ""}
    assert parse_value("lots") == {"value_mode": AMOUNT, "value": 0.0, "reference": ""}


def test_parse_value_amount_reads_leading_number_only():
    assert parse_value("1.200.50")["value"] == pytest.approx(1.2)
    assert parse_value("12-")["value"] == 12
    assert parse_value("-40 refund")["value"] == -40
    assert parse_value(".5")["value"] == pytest.approx(0.5)
    assert parse_value("--3")["value"] == 0.0
    assert parse_value("")["value"] == 0.0


def test_totals_by_category():
    entries = example_entries()
    totals = totals_by_category(entries, evaluate(entries).values)
    assert list(totals) == sorted(totals)
    assert totals["Utilities"]["expense"] == pytest.approx(360)
    assert totals["Food"]["expense"] == pytest.approx(800)
    assert totals["Salary"]["income"] == pytest.approx(6250)


def test_savings_rate():
    assert savings_rate(Totals(income=4000, expense=3000, net=1000)) == pytest.approx(0.25)
    assert savings_rate(Totals()) == 0.0


def test_record_snapshot():
    jan = Totals(income=100, expense=60, net=40)
    history = record_snapshot((), "2025-01", jan)
    assert history == ({"month": "2025-01", "income": 100, "expense": 60, "net": 40},)

    assert record_snapshot(history, "2025-01", jan) is history

    changed = record_snapshot(history, "2025-01", Totals(income=120, expense=60, net=60))
    assert len(changed) == 1
    assert changed[0]["net"] == 60

    feb = record_snapshot(changed, "2025-02", jan)
    assert [s["month"] for s in feb] == ["2025-01", "2025-02"]
