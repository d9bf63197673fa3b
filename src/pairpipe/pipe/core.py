"""Core definitions for pairpipe

This module contains the Pipeline class, which wraps a single-pass Cursor
over (key, value) pairs.  The operations themselves live in mixin classes
(basic, ordering, terminal, math, fork) that Pipeline combines here.

Every intermediate operation consumes the pipeline it is called on and
returns a new Pipeline whose cursor pulls lazily from the old one.  Nothing
is pulled until a terminal operation (or direct iteration) asks for items.
"""
import functools
import logging
from collections.abc import Mapping
from typing import Any, Generic, Iterable, Iterator, Tuple, TypeVar, Union

from pairpipe.pipe.basic import IntermediateOperations
from pairpipe.pipe.cursor import EXHAUSTED, Cursor, _Exhausted, is_exhausted
from pairpipe.pipe.fork import BranchingOperations
from pairpipe.pipe.math import AggregateOperations
from pairpipe.pipe.ordering import OrderingOperations
from pairpipe.pipe.terminal import TerminalOperations
from pairpipe.registry import extension_registry

__all__ = ["EXHAUSTED", "Cursor", "Pipeline", "from_", "from_pairs", "is_exhausted"]

logger = logging.getLogger(__name__)

K = TypeVar('K')
V = TypeVar('V')


class Pipeline(IntermediateOperations,
               OrderingOperations,
               TerminalOperations,
               AggregateOperations,
               BranchingOperations,
               Generic[K, V]):
    """A lazy, chainable sequence of (key, value) pairs.

    Key characteristics:
    - Wraps exactly one Cursor; intermediate operations return a new Pipeline
      and the old one must not be used afterwards
    - Items flow only when a terminal operation (or iteration) pulls them
    - Keys are kept by most operations; the ones that re-key positionally say so
    - Operations registered with pairpipe.registry are callable as methods
    - Use to_dict() rather than dict(pipeline): dict() sees the keys()
      operation, treats the pipeline as a mapping and fails after consuming it

    Examples:
        Pipeline.from_([3, 1, 2]).map(lambda x: x * 10).asc().to_list()
        # [10, 20, 30]

        Pipeline.from_({"a": 1, "b": 2}).rekey(str.upper).to_dict()
        # {"A": 1, "B": 2}
    """

    def __init__(self, cursor: Union[Cursor, Iterable[Tuple[K, V]]]):
        if not isinstance(cursor, Cursor):
            cursor = Cursor(cursor)
        self._cursor = cursor

    @classmethod
    def from_(cls, source: Union[Mapping, Iterable[V], 'Pipeline']) -> 'Pipeline':
        """Wrap any finite or infinite iterable as a pipeline.

        Mappings contribute their own (key, value) items.  Any other iterable
        contributes its elements as values keyed 0, 1, 2, ...  A Pipeline is
        re-wrapped around its existing cursor.
        """
        if isinstance(source, Pipeline):
            return cls(source.cursor)
        if isinstance(source, Mapping):
            return cls(Cursor(iter(source.items())))
        return cls(Cursor(enumerate(source)))

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[K, V]]) -> 'Pipeline':
        """Wrap an iterable that already yields (key, value) pairs."""
        return cls(Cursor(pairs))

    @property
    def cursor(self) -> Cursor:
        """The cursor this pipeline pulls from."""
        return self._cursor

    def consume(self) -> Union[Tuple[K, V], _Exhausted]:
        """Pull one (key, value) pair directly, or EXHAUSTED."""
        return self._cursor.consume()

    def _derive(self, pairs: Iterable[Tuple[Any, Any]]) -> 'Pipeline':
        return type(self)(Cursor(pairs))

    def __iter__(self) -> Iterator[Tuple[K, V]]:
        return self._cursor

    def call_extension(self, operation: str, *args, **kwargs) -> Any:
        """Call the registered extension operation on this pipeline.

        Raises:
            OperationNotFoundError: If no extension is registered under operation
        """
        func = extension_registry.get(operation)
        logger.debug(f"Dispatching extension '{operation}'")
        return func(self, *args, **kwargs)

    def __getattr__(self, name: str):
        # Only reached for names the class does not define
        if name.startswith('_'):
            raise AttributeError(name)
        func = extension_registry.get(name)
        return functools.partial(func, self)

    def __repr__(self):
        state = "exhausted" if self._cursor.exhausted else "pending"
        return f"<{type(self).__name__} {state}>"


def from_(source: Union[Mapping, Iterable[Any], Pipeline]) -> Pipeline:
    """Shortcut for Pipeline.from_."""
    return Pipeline.from_(source)


def from_pairs(pairs: Iterable[Tuple[Any, Any]]) -> Pipeline:
    """Shortcut for Pipeline.from_pairs."""
    return Pipeline.from_pairs(pairs)
