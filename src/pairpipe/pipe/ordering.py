"""Eager intermediate operations that reorder the whole sequence.

sort, reverse and shuffle must see every upstream item before they can emit
the first one.  Draining happens the first time the returned pipeline is
pulled, not when the operation is called, so chains over infinite sources
can still be built; they only fail to terminate once consumed.
"""
from functools import cmp_to_key
from typing import Any, Callable, Iterable, List, Optional, Tuple, TYPE_CHECKING
import logging
from numpy import random
from pydantic import ValidationError
from pairpipe.util import constants
from pairpipe.util.config import get_setting

if TYPE_CHECKING:
    from pairpipe.pipe.core import Pipeline

logger = logging.getLogger(__name__)


def natural_order(a: Any, b: Any) -> int:
    """Three-way comparison using < and >."""
    return (a > b) - (a < b)


def reverse_natural_order(a: Any, b: Any) -> int:
    return (a < b) - (a > b)


def _configured_seed() -> Optional[int]:
    """The shuffle_seed config value, or None if it is unset or invalid."""
    try:
        return get_setting(constants.SHUFFLE_SEED)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid {constants.SHUFFLE_SEED} setting: {e}")
        return None


def _drained(cursor: Iterable[Tuple[Any, Any]],
             reorder: Callable[[List[Tuple[Any, Any]]], Iterable[Tuple[Any, Any]]],
             label: str):
    """Generator that drains cursor into a list on first pull and emits reorder(list)."""
    items = list(cursor)
    logger.debug(f"{label} drained {len(items)} items")
    yield from reorder(items)


class OrderingOperations:
    """Eager (buffering) operations mixed into Pipeline."""

    def sort(self, comparator: Callable[[Any, Any], int]) -> 'Pipeline':
        """Sort items by value with a three-way comparator.

        comparator(a, b) must return a negative number if a sorts first, zero
        if they are equal and a positive number if b sorts first.  Each key
        stays attached to its value and equal values keep their upstream
        order.
        """
        by_value = cmp_to_key(lambda left, right: comparator(left[1], right[1]))
        return self._derive(_drained(self._cursor, lambda items: sorted(items, key=by_value), "sort"))

    def asc(self) -> 'Pipeline':
        """Sort values in natural ascending order."""
        return self.sort(natural_order)

    def desc(self) -> 'Pipeline':
        """Sort values in natural descending order."""
        return self.sort(reverse_natural_order)

    def reverse(self) -> 'Pipeline':
        """Emit the items last to first, keys preserved."""
        return self._derive(_drained(self._cursor, reversed, "reverse"))

    def shuffle(self, seed: Optional[int] = None) -> 'Pipeline':
        """Emit the values in a uniformly random order, re-keyed 0, 1, 2, ...

        Args:
            seed: Seed for the random generator.  Defaults to the shuffle_seed
                config setting; if that is unset or invalid the order is
                unpredictable.
        """
        if seed is None:
            seed = _configured_seed()

        def reorder(items):
            order = random.default_rng(seed).permutation(len(items))
            for position, index in enumerate(order):
                yield position, items[index][1]

        return self._derive(_drained(self._cursor, reorder, "shuffle"))
