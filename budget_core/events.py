from typing import Callable, Dict, List, NamedTuple
from datetime import datetime
from budget_core.domain import Entry
from budget_core.valuation import Diagnostics

__all__ = [
    'event_bus', 'VALUATION_WARNING', 'ACCOUNT_DELETED', 'TARGET_REACHED', 'Event', 'EventBus',
    'diagnostics_payload',
]

class Event(NamedTuple):
    name: str
    ts: str
    payload: dict

class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Event, dict], dict]]] = {}

    def subscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        self._subscribers.setdefault(name, [])
        if handler not in self._subscribers[name]:
            self._subscribers[name].append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        if name not in self._subscribers:
            return []

        event = Event(
            name=name,
            ts=datetime.now().isoformat(),
            payload=payload
        )

        return [handler(event, payload) for handler in list(self._subscribers[name])]

    def unsubscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)

VALUATION_WARNING = "VALUATION_WARNING"
ACCOUNT_DELETED = "ACCOUNT_DELETED"
TARGET_REACHED = "TARGET_REACHED"

event_bus = EventBus()


def diagnostics_payload(entries: tuple[Entry, ...], diagnostics: Diagnostics) -> dict:
    """Describe diagnostics by entry name, for the editing layer."""
    names = {e.id: (e.name or e.id) for e in entries}
    refs = {e.id: e.reference for e in entries}
    return {
        "cycles": [names.get(i, i) for i in diagnostics.cycles],
        "missing_references": [(names.get(i, i), refs.get(i, "")) for i in diagnostics.missing_references],
        "depth_exceeded": [names.get(i, i) for i in diagnostics.depth_exceeded],
        "duplicate_names": sorted(diagnostics.duplicate_names),
    }

def valuation_warning_handler(event: Event, payload: dict) -> dict:
    alerts = []
    cycles = payload.get("cycles") or []
    if cycles:
        alerts.append(f"Circular reference between {', '.join(cycles)}: counted as 0")
    for name, reference in payload.get("missing_references") or []:
        if reference:
            alerts.append(f"{name} refers to unknown entry '{reference}': counted as 0")
        else:
            alerts.append(f"{name} is a percentage without a reference: counted as 0")
    deep = payload.get("depth_exceeded") or []
    if deep:
        alerts.append(f"Reference chain too long at {', '.join(deep)}: counted as 0")
    for name in payload.get("duplicate_names") or []:
        alerts.append(f"Several entries are named '{name}': percentages use the last one")
    return {"alerts": alerts} if alerts else {}

def account_deleted_handler(event: Event, payload: dict) -> dict:
    name = payload.get("account_name", "")
    removed = payload.get("removed_entries", 0)
    if removed:
        return {"alert": f"Deleted account {name} and {removed} allocation(s) feeding it"}
    return {"alert": f"Deleted account {name}"}

def target_reached_handler(event: Event, payload: dict) -> dict:
    worth = payload.get("net_worth", 0)
    target = payload.get("target", 0)

    if target > 0 and worth >= target:
        return {
            "alert": f"Net worth {worth:,.0f} has reached the target of {target:,.0f}",
            "net_worth": worth,
            "target": target
        }
    return {"remaining": max(target - worth, 0)}

def register_default_handlers():
    event_bus.subscribe(VALUATION_WARNING, valuation_warning_handler)
    event_bus.subscribe(ACCOUNT_DELETED, account_deleted_handler)
    event_bus.subscribe(TARGET_REACHED, target_reached_handler)

register_default_handlers()
