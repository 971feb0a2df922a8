import logging
from collections import OrderedDict
from typing import Callable, Hashable

from budget_core.domain import Entry
from budget_core.valuation import Valuation, evaluate

logger = logging.getLogger(__name__)


def fingerprint(entries: tuple[Entry, ...]) -> tuple[Hashable, ...]:
    """Structural key of a snapshot, in snapshot order.

    Any add, remove, reorder or edit of a field that can change a resolved
    value or a total gives a different key.
    """
    return tuple(
        (e.id, e.value, e.value_mode, e.frequency, e.reference, e.name, e.type, e.is_wealth_building)
        for e in entries
    )


class ValuationCache:
    """Memo table of evaluation results owned by the caller.

    The least recently used snapshot is dropped once ``max_size`` is reached.
    """

    def __init__(self, max_size: int = 32, evaluator: Callable[[tuple[Entry, ...]], Valuation] = evaluate):
        self.max_size = max_size
        self.evaluator = evaluator
        self._results: "OrderedDict[tuple, Valuation]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get_or_evaluate(self, entries: tuple[Entry, ...]) -> Valuation:
        entries = tuple(entries)
        key = fingerprint(entries)
        if key in self._results:
            self.hits += 1
            self._results.move_to_end(key)
            logger.debug("Valuation cache hit (%d entries)", len(entries))
            return self._results[key]

        self.misses += 1
        logger.debug("Valuation cache miss (%d entries)", len(entries))
        result = self.evaluator(entries)
        self._results[key] = result
        while len(self._results) > self.max_size:
            self._results.popitem(last=False)
        return result

    def invalidate(self) -> None:
        self._results.clear()

    def __len__(self) -> int:
        return len(self._results)
