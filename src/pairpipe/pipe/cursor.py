"""The single-pass cursor every pipeline pulls from."""
from typing import Any, Iterable, Iterator, Tuple, TypeVar, Union

K = TypeVar('K')
V = TypeVar('V')


class _Exhausted:
    """Type of the EXHAUSTED sentinel.

    The sentinel is falsy so callers can drain a pipeline with
    `while item := pipeline.consume(): ...`; real items are 2-tuples and
    therefore always truthy.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "EXHAUSTED"

    def __reduce__(self):
        return (_Exhausted, ())


EXHAUSTED = _Exhausted()


def is_exhausted(item: Any) -> bool:
    """Check whether a consume() result is the exhaustion sentinel."""
    return item is EXHAUSTED


class Cursor(Iterator[Tuple[K, V]]):
    """A single-pass position within a sequence of (key, value) pairs.

    Each consume() call advances irreversibly by exactly one element.  Once
    the wrapped iterator has signalled the end, the cursor stays exhausted
    even if that iterator would produce more items later.

    A Cursor is also a Python iterator over its remaining pairs, which is how
    the lazy combinators pull from it.
    """

    def __init__(self, pairs: Iterable[Tuple[K, V]]):
        self._iterator = iter(pairs)
        self._exhausted = False

    @property
    def exhausted(self) -> bool:
        """True once consume() has returned EXHAUSTED."""
        return self._exhausted

    def consume(self) -> Union[Tuple[K, V], _Exhausted]:
        """Return the next (key, value) pair, or EXHAUSTED."""
        if self._exhausted:
            return EXHAUSTED
        try:
            key, value = next(self._iterator)
        except StopIteration:
            self._exhausted = True
            # Drop the reference so the source can be collected
            self._iterator = iter(())
            return EXHAUSTED
        return key, value

    def __iter__(self) -> Iterator[Tuple[K, V]]:
        return self

    def __next__(self) -> Tuple[K, V]:
        item = self.consume()
        if item is EXHAUSTED:
            raise StopIteration
        return item
