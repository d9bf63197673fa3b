"""Numeric aggregate terminal operations."""

from typing import Any, Callable, Optional


def _selected(cursor, selector: Optional[Callable[[Any], Any]]):
    for _, value in cursor:
        yield selector(value) if selector else value


def _fold(cursor, selector: Optional[Callable[[Any], Any]], combine: Callable[[Any, Any], Any]) -> Any:
    """Fold selected values with combine, seeding with the first one.

    Returns None for an empty sequence instead of inventing a numeric default.
    """
    result = None
    first_iteration = True
    for current in _selected(cursor, selector):
        if first_iteration:
            result = current
            first_iteration = False
            continue
        result = combine(result, current)
    return result


class AggregateOperations:
    """min, max, sum and avg mixed into Pipeline.

    Each accepts an optional selector applied to every value before it is
    aggregated, e.g. `pipeline.max(lambda order: order.total)`.
    """

    def min(self, selector: Optional[Callable[[Any], Any]] = None) -> Any:
        """Smallest (selected) value, or None if the pipeline is empty."""
        return _fold(self._cursor, selector, lambda x, y: y if y < x else x)

    def max(self, selector: Optional[Callable[[Any], Any]] = None) -> Any:
        """Largest (selected) value, or None if the pipeline is empty."""
        return _fold(self._cursor, selector, lambda x, y: y if y > x else x)

    def sum(self, selector: Optional[Callable[[Any], Any]] = None) -> Any:
        """Sum of the (selected) values, or None if the pipeline is empty.

        Values are combined with +, so anything addable (strings, lists,
        Decimals) works as well as numbers.
        """
        return _fold(self._cursor, selector, lambda x, y: x + y)

    def avg(self, selector: Optional[Callable[[Any], Any]] = None) -> Optional[float]:
        """Arithmetic mean of the (selected) values, or None if the pipeline is empty."""
        total = None
        count = 0
        for current in _selected(self._cursor, selector):
            total = current if count == 0 else total + current
            count += 1
        return total / count if count else None
