"""Resolve budget entries to canonical monthly values.

Percent-mode entries point at another entry by name, so the entries form a
graph (node = entry id, edge = entry -> the entry it references). Every
entry has at most one outgoing edge. Resolution walks that graph depth first
with a memo table: cycles and chains longer than ``MAX_RESOLUTION_DEPTH``
resolve to 0 instead of raising, and are reported in ``Diagnostics``.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional

from budget_core.config import MAX_RESOLUTION_DEPTH
from budget_core.domain import Entry, INCOME, EXPENSE, INVESTMENT, ALLOCATION, PERCENT
from budget_core.frequency import to_monthly
from budget_core.functional import Maybe, from_optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Totals:
    income: float = 0.0
    expense: float = 0.0
    investment: float = 0.0
    allocation: float = 0.0
    wealth_building: float = 0.0
    net: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return {
            "income": self.income,
            "expense": self.expense,
            "investment": self.investment,
            "allocation": self.allocation,
            "wealth_building": self.wealth_building,
            "net": self.net,
        }


@dataclass(frozen=True)
class Diagnostics:
    cycles: tuple[str, ...] = ()              # ids of entries on a reference cycle
    missing_references: tuple[str, ...] = ()  # percent entries whose reference is unknown
    depth_exceeded: tuple[str, ...] = ()      # ids cut off by the depth bound
    duplicate_names: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @property
    def has_warnings(self) -> bool:
        return bool(self.cycles or self.missing_references or self.depth_exceeded or self.duplicate_names)


@dataclass(frozen=True)
class Valuation:
    values: dict[str, float]
    totals: Totals
    diagnostics: Diagnostics


def normalize_name(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def build_name_index(entries: Iterable[Entry]) -> dict[str, str]:
    """Map normalized names to entry ids. With duplicate names the last entry wins."""
    index: dict[str, str] = {}
    for e in entries:
        key = normalize_name(e.name)
        if key:
            index[key] = e.id
    return index


def find_duplicate_names(entries: Iterable[Entry]) -> dict[str, tuple[str, ...]]:
    ids_by_name: dict[str, list[str]] = defaultdict(list)
    for e in entries:
        key = normalize_name(e.name)
        if key:
            ids_by_name[key].append(e.id)
    return {name: tuple(ids) for name, ids in ids_by_name.items() if len(ids) > 1}


def lookup_reference(index: dict[str, str], name: str) -> Maybe[str]:
    return from_optional(index.get(normalize_name(name)))


def build_reference_graph(
    entries: tuple[Entry, ...], index: Optional[dict[str, str]] = None
) -> dict[str, Optional[str]]:
    """Adjacency of the reference graph: entry id -> referenced id, or None."""
    if index is None:
        index = build_name_index(entries)
    graph: dict[str, Optional[str]] = {}
    for e in entries:
        if e.value_mode == PERCENT:
            graph[e.id] = lookup_reference(index, e.reference).get_or_else(None)
        else:
            graph[e.id] = None
    return graph


def resolve_values(
    entries: tuple[Entry, ...], max_depth: int = MAX_RESOLUTION_DEPTH
) -> tuple[dict[str, float], Diagnostics]:
    by_id = {e.id: e for e in entries}
    graph = build_reference_graph(entries)

    memo: dict[str, float] = {}
    path: list[str] = []
    on_path: set[str] = set()
    cycles: dict[str, None] = {}
    missing: dict[str, None] = {}
    too_deep: dict[str, None] = {}

    def resolve(entry_id: str, depth: int) -> tuple[float, bool]:
        # the flag is False when the value came from a cut-short path
        if entry_id in memo:
            return memo[entry_id], True
        if entry_id in on_path:
            for member in path[path.index(entry_id):]:
                cycles[member] = None
            return 0.0, False
        if depth > max_depth:
            too_deep[entry_id] = None
            return 0.0, False

        entry = by_id[entry_id]
        complete = True
        if entry.value_mode == PERCENT:
            ref_id = graph[entry_id]
            if ref_id is None:
                missing[entry_id] = None
                value = 0.0
            else:
                path.append(entry_id)
                on_path.add(entry_id)
                try:
                    ref_value, complete = resolve(ref_id, depth + 1)
                finally:
                    path.pop()
                    on_path.discard(entry_id)
                value = ref_value * entry.value / 100
        else:
            value = to_monthly(entry.value, entry.frequency)

        if complete:
            memo[entry_id] = value
        return value, complete

    values = {e.id: resolve(e.id, 0)[0] for e in entries}
    diagnostics = Diagnostics(
        cycles=tuple(cycles),
        missing_references=tuple(missing),
        depth_exceeded=tuple(too_deep),
        duplicate_names=find_duplicate_names(entries),
    )
    return values, diagnostics


def aggregate(entries: tuple[Entry, ...], values: dict[str, float]) -> Totals:
    """Sum resolved values per entry type.

    Investments always count as wealth building; allocations only when
    flagged. Investments and allocations stay out of ``expense``, so
    ``net`` is income minus consumption.
    """
    buckets: dict[str, float] = defaultdict(float)
    wealth = 0.0
    for e in entries:
        v = values.get(e.id, 0.0)
        buckets[e.type] += v
        if e.type == INVESTMENT or (e.type == ALLOCATION and e.is_wealth_building):
            wealth += v

    return Totals(
        income=buckets[INCOME],
        expense=buckets[EXPENSE],
        investment=buckets[INVESTMENT],
        allocation=buckets[ALLOCATION],
        wealth_building=wealth,
        net=buckets[INCOME] - buckets[EXPENSE],
    )


def evaluate(entries: tuple[Entry, ...]) -> Valuation:
    entries = tuple(entries)
    values, diagnostics = resolve_values(entries)

    if diagnostics.cycles:
        logger.warning("Reference cycle through entries %s, resolved to 0", list(diagnostics.cycles))
    if diagnostics.missing_references:
        logger.warning("Entries %s reference unknown names", list(diagnostics.missing_references))
    if diagnostics.depth_exceeded:
        logger.warning("Reference chain deeper than %d at %s", MAX_RESOLUTION_DEPTH, list(diagnostics.depth_exceeded))
    if diagnostics.duplicate_names:
        logger.warning("Duplicate entry names %s, last one wins", sorted(diagnostics.duplicate_names))

    totals = aggregate(entries, values)
    logger.debug("Evaluated %d entries: %s", len(entries), totals)
    return Valuation(values=values, totals=totals, diagnostics=diagnostics)
