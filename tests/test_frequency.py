import pytest

from budget_core.domain import DAILY, WEEKLY, MONTHLY, YEARLY, FREQUENCIES
from budget_core.frequency import to_monthly, from_monthly


def test_to_monthly_factors():
    assert to_monthly(10, DAILY) == pytest.approx(304.167)
    assert to_monthly(100, WEEKLY) == pytest.approx(433)
    assert to_monthly(250, MONTHLY) == 250
    assert to_monthly(1200, YEARLY) == pytest.approx(100)


def test_yearly_income_scenario():
    assert to_monthly(1000, YEARLY) == pytest.approx(83.3333333)


@pytest.mark.parametrize("freq", FREQUENCIES)
def test_round_trip(freq):
    for v in (0, 1, 83.5, 75000, -42.25):
        assert from_monthly(to_monthly(v, freq), freq) == pytest.approx(v)


def test_from_monthly_for_display():
    assert from_monthly(6250, YEARLY) == pytest.approx(75000)
    assert from_monthly(433, WEEKLY) == pytest.approx(100)


def test_unknown_frequency_is_monthly():
    assert to_monthly(50, "fortnightly") == 50
    assert from_monthly(50, "fortnightly") == 50
