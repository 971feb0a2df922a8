import logging
from datetime import datetime
from typing import Callable, Dict, Any, Optional, Sequence

from budget_core.domain import Account, Entry, ALLOCATION
from budget_core.events import diagnostics_payload, valuation_warning_handler, VALUATION_WARNING, Event
from budget_core.memo import ValuationCache
from budget_core.projection import (
    contributions_by_account, net_worth, passive_income, project_accounts,
    time_to_target, weighted_annual_return,
)
from budget_core.transforms import savings_rate

logger = logging.getLogger(__name__)

Validator = Callable[[tuple[Entry, ...], tuple[Account, ...]], Sequence[str]]
Calculator = Callable[[tuple[Entry, ...], tuple[Account, ...], Dict[str, Any]], Dict[str, Any]]


class BudgetService:
    """Facade that runs injected validators and calculators over one snapshot.

    validators: functions (entries, accounts) -> messages
    calculators: functions (entries, accounts, acc) -> partial results; ``acc``
    holds everything earlier calculators returned
    """

    def __init__(self, validators: Sequence[Validator], calculators: Sequence[Calculator]):
        self.validators = validators
        self.calculators = calculators

    def report(self, entries: tuple[Entry, ...], accounts: tuple[Account, ...]) -> Dict[str, Any]:
        """Run validators and calculators and return an aggregated report with intermediate steps."""
        entries, accounts = tuple(entries), tuple(accounts)
        report = {
            "validation": [],
            "steps": [],
            "result": {}
        }

        for v in self.validators:
            try:
                msgs = v(entries, accounts)
            except Exception as e:
                logger.exception("Validator %s failed", getattr(v, "__name__", v))
                msgs = [f"validator_error: {e}"]
            report["validation"].append({"validator": getattr(v, "__name__", str(v)), "messages": list(msgs)})

        acc: Dict[str, Any] = {}
        for calc in self.calculators:
            out = calc(entries, accounts, acc)
            report["steps"].append({"calculator": getattr(calc, "__name__", str(calc)), "output": out})
            if isinstance(out, dict):
                acc.update(out)

        report["result"] = acc
        return report


def account_registry_check(entries: tuple[Entry, ...], accounts: tuple[Account, ...]) -> list[str]:
    msgs = []
    seen: dict[str, str] = {}
    for a in accounts:
        key = a.name.strip().lower()
        if key in seen:
            msgs.append(f"Accounts {seen[key]} and {a.name} share a name")
        seen.setdefault(key, a.name)

    known = {a.id for a in accounts}
    for e in entries:
        if e.type == ALLOCATION and e.target_account and e.target_account not in known:
            msgs.append(f"{e.name or e.id} targets unknown account {e.target_account}")
    return msgs


def default_budget_service(
    cache: Optional[ValuationCache] = None, target: float = 0.0, years: int = 10
) -> BudgetService:
    """Valuation, diagnostics, wealth and time-to-target steps over a shared cache."""
    cache = cache if cache is not None else ValuationCache()

    def valuation_diagnostics(entries, accounts):
        valuation = cache.get_or_evaluate(entries)
        payload = diagnostics_payload(entries, valuation.diagnostics)
        event = Event(name=VALUATION_WARNING, ts=datetime.now().isoformat(), payload=payload)
        return valuation_warning_handler(event, payload).get("alerts", [])

    def monthly_totals(entries, accounts, acc):
        valuation = cache.get_or_evaluate(entries)
        return {
            "values": valuation.values,
            "totals": valuation.totals.as_dict(),
            "savings_rate": savings_rate(valuation.totals),
        }

    def wealth(entries, accounts, acc):
        contributions = contributions_by_account(entries, acc["values"])
        worth = net_worth(accounts)
        return {
            "contributions": contributions,
            "net_worth": worth,
            "weighted_return": weighted_annual_return(accounts),
            "passive_income": passive_income(worth),
            "projections": project_accounts(accounts, contributions, years),
        }

    def months_to_target(entries, accounts, acc):
        if target <= 0:
            return {}
        months = time_to_target(accounts, acc["totals"]["wealth_building"], target)
        return {"target": target, "months_to_target": months.get_or_else(None)}

    return BudgetService(
        validators=[valuation_diagnostics, account_registry_check],
        calculators=[monthly_totals, wealth, months_to_target],
    )
