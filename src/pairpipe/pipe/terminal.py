"""Terminal operations.

These are the only places where items are actually pulled through a chain.
Each drains the cursor (or, for the short-circuiting ones, stops at the
deciding item) and returns a plain Python value.  Calling a terminal
operation on an exhausted pipeline returns that operation's empty result.
"""
from typing import Any, Callable, Dict, List, Tuple


class TerminalOperations:
    """Terminal operations mixed into Pipeline."""

    def reduce(self, initial: Any, reducer: Callable[[Any, Any, Any], Any]) -> Any:
        """Left fold: reducer(accumulator, value, key) over every item, seeded with initial."""
        accumulator = initial
        for key, value in self._cursor:
            accumulator = reducer(accumulator, value, key)
        return accumulator

    def to_dict(self) -> Dict[Any, Any]:
        """Materialize as {key: value}.  Later items overwrite earlier ones with the same key.

        This is the way to build a dict; dict(pipeline) does not work because
        keys() is a pipeline operation, not a mapping view.
        """
        return {key: value for key, value in self._cursor}

    def to_list(self) -> List[Any]:
        """Materialize the values in order, regardless of key collisions."""
        return [value for _, value in self._cursor]

    def to_pairs(self) -> List[Tuple[Any, Any]]:
        """Materialize every (key, value) pair in order."""
        return list(self._cursor)

    def for_each(self, consumer: Callable[[Any, Any], Any]) -> None:
        """Call consumer(value, key) for every item."""
        for key, value in self._cursor:
            consumer(value, key)

    def head(self, default: Any = None) -> Any:
        """First value, or default if there is none.  Pulls at most one item."""
        item = self._cursor.consume()
        return item[1] if item else default

    def tail(self, default: Any = None) -> Any:
        """Last value, or default if there is none."""
        last = default
        for _, value in self._cursor:
            last = value
        return last

    def count(self) -> int:
        count = 0
        for _ in self._cursor:
            count += 1
        return count

    def join(self, separator: str = "") -> str:
        """Concatenate str(value) for every item with separator between them."""
        return separator.join(str(value) for _, value in self._cursor)

    def group_by(self, classifier: Callable[[Any], Any]) -> Dict[Any, List[Any]]:
        """Group values into lists keyed by classifier(value).

        Groups appear in order of first occurrence and each list keeps the
        upstream order of its values.
        """
        grouped: Dict[Any, List[Any]] = {}
        for _, value in self._cursor:
            grouped.setdefault(classifier(value), []).append(value)
        return grouped

    def find_first(self, predicate: Callable[[Any], bool], default: Any = None) -> Any:
        """First value satisfying predicate, or default.  Stops pulling at the match."""
        for _, value in self._cursor:
            if predicate(value):
                return value
        return default

    def any_match(self, predicate: Callable[[Any], bool]) -> bool:
        for _, value in self._cursor:
            if predicate(value):
                return True
        return False

    def all_match(self, predicate: Callable[[Any], bool]) -> bool:
        for _, value in self._cursor:
            if not predicate(value):
                return False
        return True

    def none_match(self, predicate: Callable[[Any], bool]) -> bool:
        for _, value in self._cursor:
            if predicate(value):
                return False
        return True

