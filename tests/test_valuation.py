import random

import pytest

from budget_core.domain import (
    Entry, INCOME, EXPENSE, INVESTMENT, ALLOCATION, AMOUNT, PERCENT, YEARLY, DAILY, MONTHLY,
)
from budget_core.valuation import (
    build_name_index, build_reference_graph, find_duplicate_names, evaluate, resolve_values,
    aggregate, lookup_reference,
)


def amount(id, name, value, freq=MONTHLY, type=EXPENSE, **kw):
    return Entry(id=id, type=type, name=name, value_mode=AMOUNT, value=value, frequency=freq, **kw)


def percent(id, name, value, reference, type=EXPENSE, **kw):
    return Entry(id=id, type=type, name=name, value_mode=PERCENT, value=value, reference=reference, **kw)


def make_budget():
    return (
        amount("1", "Salary", 75000, YEARLY, type=INCOME),
        amount("2", "Tips", 5, DAILY, type=INCOME),
        percent("3", "Tax", 30, "Salary"),
        amount("4", "Rent", 1800),
        percent("5", "Index Fund", 10, "salary", type=INVESTMENT),
        percent("6", "Roth", 5, "Salary", type=ALLOCATION, is_wealth_building=True, target_account="a1"),
        amount("7", "Buffer", 100, type=ALLOCATION, target_account="a2"),
    )


def test_salary_and_tax_scenario():
    entries = (
        amount("s", "Salary", 75000, YEARLY, type=INCOME),
        percent("t", "Tax", 30, "Salary"),
    )
    result = evaluate(entries)
    assert result.values["s"] == pytest.approx(6250)
    assert result.values["t"] == pytest.approx(1875)


def test_yearly_amount_scenario():
    result = evaluate((amount("x", "Bonus", 1000, YEARLY, type=INCOME),))
    assert result.values["x"] == pytest.approx(1000 / 12)


def test_percent_ignores_own_frequency():
    entries = (
        amount("s", "Salary", 6000, type=INCOME),
        Entry("t", EXPENSE, "Tax", PERCENT, 10, reference="Salary", frequency=YEARLY),
    )
    assert evaluate(entries).values["t"] == pytest.approx(600)


def test_reference_lookup_is_case_insensitive_and_trimmed():
    entries = (
        amount("s", "  Salary ", 1000, type=INCOME),
        percent("t", "Tax", 50, "SALARY  "),
    )
    assert evaluate(entries).values["t"] == pytest.approx(500)


def test_chained_percentages():
    entries = (
        percent("c", "C", 50, "B"),
        percent("b", "B", 50, "A"),
        amount("a", "A", 400, type=INCOME),
    )
    values = evaluate(entries).values
    assert values["b"] == pytest.approx(200)
    assert values["c"] == pytest.approx(100)


def test_missing_reference_resolves_to_zero():
    entries = (percent("t", "Tax", 30, "Nobody"), percent("u", "Blank", 30, ""))
    result = evaluate(entries)
    assert result.values == {"t": 0.0, "u": 0.0}
    assert set(result.diagnostics.missing_references) == {"t", "u"}
    assert result.diagnostics.cycles == ()


def test_mutual_cycle_resolves_both_to_zero():
    entries = (
        percent("a", "A", 50, "B"),
        percent("b", "B", 50, "A"),
    )
    result = evaluate(entries)
    assert result.values["a"] == 0
    assert result.values["b"] == 0
    assert set(result.diagnostics.cycles) == {"a", "b"}


def test_self_reference_resolves_to_zero():
    result = evaluate((percent("a", "A", 100, "a"),))
    assert result.values["a"] == 0
    assert result.diagnostics.cycles == ("a",)


def test_entry_feeding_a_cycle_is_zero_but_not_on_it():
    entries = (
        percent("x", "X", 10, "A"),
        percent("a", "A", 50, "B"),
        percent("b", "B", 50, "A"),
        amount("s", "Salary", 100, type=INCOME),
    )
    result = evaluate(entries)
    assert result.values["x"] == 0
    assert result.values["s"] == 100
    assert "x" not in result.diagnostics.cycles


def test_depth_bound_stops_long_chains():
    entries = [amount("n0", "n0", 100, type=INCOME)]
    for i in range(1, 60):
        entries.append(percent(f"n{i}", f"n{i}", 100, f"n{i - 1}"))
    entries = tuple(reversed(entries))

    values, diagnostics = resolve_values(entries, max_depth=50)
    assert values["n59"] == 0
    assert diagnostics.depth_exceeded
    # short chains are unaffected
    assert values["n10"] == pytest.approx(100)
    assert values["n0"] == 100


def test_values_cut_off_by_depth_are_not_reused():
    entries = (
        percent("c", "C", 100, "B"),
        percent("b", "B", 100, "A"),
        amount("a", "A", 10, type=INCOME),
    )
    values, diagnostics = resolve_values(entries, max_depth=1)
    assert values["c"] == 0
    assert values["b"] == 10
    assert diagnostics.depth_exceeded == ("a",)


def test_duplicate_names_last_one_wins():
    entries = (
        amount("1", "Salary", 1000, type=INCOME),
        amount("2", "salary", 3000, type=INCOME),
        percent("t", "Tax", 10, "Salary"),
    )
    result = evaluate(entries)
    assert result.values["t"] == pytest.approx(300)
    assert result.diagnostics.duplicate_names == {"salary": ("1", "2")}
    assert build_name_index(entries)["salary"] == "2"


def test_find_duplicate_names_ignores_blank_names():
    entries = (amount("1", "", 1), amount("2", "  ", 2), amount("3", "Rent", 3))
    assert find_duplicate_names(entries) == {}


def test_reference_graph_edges():
    entries = make_budget()
    graph = build_reference_graph(entries)
    assert graph["3"] == "1"
    assert graph["5"] == "1"
    assert graph["1"] is None
    assert graph["4"] is None


def test_lookup_reference():
    index = build_name_index(make_budget())
    assert lookup_reference(index, "Rent").get_or_else(None) == "4"
    assert lookup_reference(index, "Car").is_none()


def test_aggregates():
    entries = make_budget()
    totals = evaluate(entries).totals
    tips = 5 * 30.4167
    assert totals.income == pytest.approx(6250 + tips)
    assert totals.expense == pytest.approx(1875 + 1800)
    assert totals.investment == pytest.approx(625)
    assert totals.allocation == pytest.approx(312.5 + 100)
    assert totals.wealth_building == pytest.approx(625 + 312.5)
    assert totals.net == pytest.approx(6250 + tips - 1875 - 1800)


def test_aggregate_empty():
    totals = aggregate((), {})
    assert totals.as_dict() == {
        "income": 0.0,
        "expense": 0.0,
        "investment": 0.0,
        "allocation": 0.0,
        "wealth_building": 0.0,
        "net": 0.0,
    }


def test_evaluation_is_deterministic_and_order_independent():
    entries = make_budget()
    first = evaluate(entries)
    assert evaluate(entries) == first

    shuffled = list(entries)
    random.Random(7).shuffle(shuffled)
    again = evaluate(tuple(shuffled))
    assert again.values == pytest.approx(first.values)
    assert again.totals.net == pytest.approx(first.totals.net)


def test_evaluate_does_not_touch_input():
    entries = make_budget()
    copy = tuple(entries)
    evaluate(entries)
    assert entries == copy


def test_has_warnings():
    assert not evaluate(make_budget()).diagnostics.has_warnings
    assert evaluate((percent("a", "A", 10, "A"),)).diagnostics.has_warnings
