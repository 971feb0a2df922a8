from collections import defaultdict
from typing import Callable, Iterable, Iterator, Tuple

from budget_core.domain import Entry, EXPENSE

OTHER_CATEGORY = "Other"


def by_type(entry_type: str):
    def _filter(e: Entry) -> bool:
        return e.type == entry_type

    return _filter


def iter_entries(
    entries: Iterable[Entry], pred: Callable[[Entry], bool]
) -> Iterator[Entry]:
    for e in entries:
        if pred(e):
            yield e


def lazy_top_categories(
    entries: Iterable[Entry], values: dict[str, float], k: int
) -> Iterator[tuple[str, float]]:
    """Yield ``(category, monthly expense)`` for the ``k`` biggest expense categories."""
    totals_by_category: dict[str, float] = defaultdict(float)

    for e in iter_entries(entries, by_type(EXPENSE)):
        if e.category:
            totals_by_category[e.category] += values.get(e.id, 0.0)

    ordered: list[Tuple[str, float]] = sorted(
        ((cat, total) for cat, total in totals_by_category.items() if total > 0),
        key=lambda item: (-item[1], item[0]),
    )

    for name, total in ordered[: max(0, k)]:
        yield name, total


def category_breakdown(
    entries: Tuple[Entry, ...], values: dict[str, float], k: int = 8
) -> list[tuple[str, float]]:
    """Top ``k`` expense categories, the rest folded into one "Other" row."""
    ordered = list(lazy_top_categories(entries, values, k=len(entries)))
    top, rest = ordered[:k], ordered[k:]
    remainder = sum(total for _, total in rest)
    if remainder > 0:
        top.append((OTHER_CATEGORY, remainder))
    return top
