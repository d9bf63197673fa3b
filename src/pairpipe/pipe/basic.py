"""Lazy intermediate operations.

Each operation wraps the current cursor in a generator and returns a new
Pipeline over it.  None of them pulls more than one upstream item per item
it emits, except filter, skip, drop_while and distinct, which discard the
items they skip as they go; nothing is buffered.
"""
from typing import Annotated, Any, Callable, Optional, TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from pairpipe.pipe.core import Pipeline

logger = logging.getLogger(__name__)


class _SeenValues:
    """Membership set for distinct().

    Hashable values go into a set; unhashable ones (lists, dicts, ...) fall
    back to a list compared with ==.
    """

    def __init__(self):
        self._hashed = set()
        self._unhashable = []

    def add(self, value: Any) -> bool:
        """Record value; return False if it had been seen already."""
        try:
            if value in self._hashed:
                return False
            self._hashed.add(value)
            return True
        except TypeError:
            if value in self._unhashable:
                return False
            self._unhashable.append(value)
            return True


class IntermediateOperations:
    """Lazy operations mixed into Pipeline."""

    def map(self, transform: Callable[[Any], Any]) -> 'Pipeline':
        """Apply transform to each value.  Keys are unchanged."""
        cursor = self._cursor

        def gen():
            for key, value in cursor:
                yield key, transform(value)
        return self._derive(gen())

    def filter(self, predicate: Callable[[Any], bool]) -> 'Pipeline':
        """Keep only the items whose value satisfies predicate."""
        cursor = self._cursor

        def gen():
            for key, value in cursor:
                if predicate(value):
                    yield key, value
        return self._derive(gen())

    def peek(self, action: Callable[[Any], Any]) -> 'Pipeline':
        """Call action on each value as it passes, re-emitting the item unchanged."""
        cursor = self._cursor

        def gen():
            for key, value in cursor:
                action(value)
                yield key, value
        return self._derive(gen())

    def limit(self, n: Annotated[int, "Maximum number of items to emit"]) -> 'Pipeline':
        """Emit at most the first n items.

        Upstream is not pulled again after the n-th item, so limit() makes
        infinite sources finite.
        """
        cursor = self._cursor
        n = int(n)

        def gen():
            if n <= 0:
                return
            emitted = 0
            for item in cursor:
                yield item
                emitted += 1
                if emitted >= n:
                    return
        return self._derive(gen())

    def skip(self, n: Annotated[int, "Number of leading items to discard.  Negative counts as zero."]) -> 'Pipeline':
        """Discard the first n items, then emit the rest."""
        cursor = self._cursor
        n = max(int(n), 0)

        def gen():
            remaining = n
            for item in cursor:
                if remaining > 0:
                    remaining -= 1
                    continue
                yield item
        return self._derive(gen())

    def take_while(self, predicate: Callable[[Any], bool]) -> 'Pipeline':
        """Emit items while predicate holds; stop for good at the first failure.

        The failing item is pulled from upstream and discarded.
        """
        cursor = self._cursor

        def gen():
            for key, value in cursor:
                if not predicate(value):
                    return
                yield key, value
        return self._derive(gen())

    def drop_while(self, predicate: Callable[[Any], bool]) -> 'Pipeline':
        """Discard the leading items that satisfy predicate, then emit everything else."""
        cursor = self._cursor

        def gen():
            dropping = True
            for key, value in cursor:
                if dropping:
                    if predicate(value):
                        continue
                    dropping = False
                yield key, value
        return self._derive(gen())

    def rekey(self, key_transform: Callable[[Any], Any]) -> 'Pipeline':
        """Replace each key with key_transform(key)."""
        cursor = self._cursor

        def gen():
            for key, value in cursor:
                yield key_transform(key), value
        return self._derive(gen())

    def keys(self) -> 'Pipeline':
        """Emit the keys as values, re-keyed 0, 1, 2, ..."""
        cursor = self._cursor

        def gen():
            for position, (key, _) in enumerate(cursor):
                yield position, key
        return self._derive(gen())

    def values(self) -> 'Pipeline':
        """Emit the values re-keyed 0, 1, 2, ..., discarding the original keys."""
        cursor = self._cursor

        def gen():
            for position, (_, value) in enumerate(cursor):
                yield position, value
        return self._derive(gen())

    def distinct(self, selector: Optional[Callable[[Any], Any]] = None) -> 'Pipeline':
        """Emit the first item for each distinct value.

        If selector is given, items are compared by selector(value) instead of
        the value itself.  Comparison is Python equality: hashable values are
        compared by hash and ==, unhashable ones by == alone.
        Hashable and unhashable values are tracked separately, so two values
        that are equal across that divide, such as {1} and frozenset({1}),
        are both emitted.
        """
        cursor = self._cursor

        def gen():
            seen = _SeenValues()
            for key, value in cursor:
                if seen.add(selector(value) if selector else value):
                    yield key, value
        return self._derive(gen())

    def apply(self, chain: Callable[['Pipeline'], Any]) -> Any:
        """Run a reusable chain of operations on this pipeline.

        chain receives a fresh Pipeline over the same cursor and its return
        value is returned unchanged:

            def evens_squared(p):
                return p.filter(lambda x: x % 2 == 0).map(lambda x: x * x)

            Pipeline.from_(range(6)).apply(evens_squared).to_list()   # [0, 4, 16]
        """
        logger.debug(f"Applying chain {getattr(chain, '__name__', chain)}")
        return chain(type(self)(self._cursor))
